"""Thin CLI wrapper for ci_versioning.

This module provides the command-line interface using Typer.
All business logic is delegated to core modules.
"""

import json
from typing import TYPE_CHECKING, Annotated

import typer
from rich.console import Console

from ci_versioning import __version__
from ci_versioning.config import (
    ConfigError,
    configure_logging,
    get_settings,
    print_settings_json,
)

if TYPE_CHECKING:
    from ci_versioning.builds.store import BuildStore

app = typer.Typer(
    name="ci-versioning",
    help="CI Versioning - track Unity image builds reported by CI runners",
    no_args_is_help=True,
)
console = Console()

STATUS_COLORS = {
    "started": "blue",
    "failed": "red",
    "published": "green",
}


def _print_json(text: str) -> None:
    """Print JSON without wrapping, markup or highlighting."""
    console.print(text, soft_wrap=True, markup=False, highlight=False)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"ci-versioning version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-V",
            help="Show version and exit",
            callback=version_callback,
            is_eager=True,
        ),
    ] = None,
) -> None:
    """CI Versioning - track Unity image builds reported by CI runners."""
    configure_logging()


@app.command()
def config(
    json_output: Annotated[
        bool,
        typer.Option("--json", help="Output as JSON"),
    ] = False,
) -> None:
    """Show effective configuration."""
    settings = get_settings()
    if json_output:
        _print_json(print_settings_json(settings))
        return

    def _configured(value: object) -> str:
        return "(configured)" if value is not None else "(not set)"

    console.print("[bold]Effective Configuration:[/bold]")
    console.print()
    console.print("[bold]Storage:[/bold]")
    console.print(f"  Database URL:        {settings.db_url}")
    console.print(f"  Log level:           {settings.log_level}")
    console.print()
    console.print("[bold]GitHub App:[/bold]")
    console.print(f"  API URL:             {settings.github_api_url}")
    console.print(f"  App ID:              {settings.github_app_id or '(not set)'}")
    console.print(
        f"  Installation ID:     {settings.github_installation_id or '(not set)'}"
    )
    console.print(f"  Private key:         {_configured(settings.github_private_key)}")
    console.print(
        f"  Client secret:       {_configured(settings.github_client_secret)}"
    )
    console.print(f"  Timeout (seconds):   {settings.github_timeout}")
    console.print()
    console.print("[bold]Build store policies:[/bold]")
    console.print(f"  Propagate create errors:   {settings.propagate_create_errors}")
    console.print(
        f"  Allow published overwrite: {settings.allow_published_overwrite}"
    )


db_app = typer.Typer(help="Manage the database")
app.add_typer(db_app, name="db")


@db_app.command("init")
def db_init() -> None:
    """Create database tables."""
    from ci_versioning.db import create_all_tables, get_engine

    settings = get_settings()
    engine = get_engine(settings.db_url)
    create_all_tables(engine)
    console.print(f"[green]Database initialized:[/green] {settings.db_url}")


builds_app = typer.Typer(help="Inspect CI build records")
app.add_typer(builds_app, name="builds")


def _open_store() -> "BuildStore":
    """Open the build store configured by settings, creating tables."""
    from ci_versioning.builds.store import BuildStore
    from ci_versioning.db import create_all_tables, get_engine, get_session_factory

    settings = get_settings()
    engine = get_engine(settings.db_url)
    create_all_tables(engine)
    return BuildStore(get_session_factory(engine), settings)


@builds_app.command("list")
def builds_list(
    json_output: Annotated[
        bool,
        typer.Option("--json", help="Output as JSON"),
    ] = False,
) -> None:
    """List all build records."""
    from ci_versioning.builds.store import StoreError

    store = _open_store()
    try:
        builds = store.get_all()
    except StoreError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(code=1) from None

    if json_output:
        output = [b.model_dump(mode="json", by_alias=True) for b in builds]
        _print_json(json.dumps(output, indent=2))
        return

    if not builds:
        console.print("[yellow]No build records found[/yellow]")
        return

    console.print(f"[bold]Found {len(builds)} build(s):[/bold]")
    console.print()
    for b in builds:
        color = STATUS_COLORS.get(b.status.value, "white")
        console.print(f"  [{color}]{b.build_id}[/{color}]")
        console.print(f"    Job: {b.job_id}")
        console.print(f"    Image type: {b.image_type.value}")
        console.print(f"    Status: {b.status.value}")
        console.print(f"    Failures: {b.meta.failure_count}")
        if b.failure:
            console.print(f"    Last failure: {b.failure.reason}")
        if b.docker_info:
            console.print(
                f"    Image: {b.docker_info.image_repo}/{b.docker_info.image_name}"
                f":{b.docker_info.specific_tag}"
            )
        console.print()


@builds_app.command("show")
def builds_show(
    build_id: Annotated[str, typer.Argument(help="Build ID to show")],
    json_output: Annotated[
        bool,
        typer.Option("--json", help="Output as JSON"),
    ] = False,
) -> None:
    """Show a single build record."""
    from ci_versioning.builds.store import BuildNotFoundError, StoreError

    store = _open_store()
    try:
        build = store.get(build_id)
    except BuildNotFoundError:
        console.print(f"[red]Build not found: {build_id}[/red]")
        raise typer.Exit(code=1) from None
    except StoreError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(code=1) from None

    if json_output:
        _print_json(json.dumps(build.model_dump(mode="json", by_alias=True), indent=2))
        return

    color = STATUS_COLORS.get(build.status.value, "white")
    info = build.unity_version_info
    console.print(f"[bold]Build:[/bold] {build.build_id}")
    console.print(f"  Job:             {build.job_id}")
    console.print(f"  Image type:      {build.image_type.value}")
    console.print(f"  Status:          [{color}]{build.status.value}[/{color}]")
    console.print(f"  Base OS:         {info.base_os}")
    console.print(f"  Unity version:   {info.unity_version}")
    console.print(f"  Target platform: {info.target_platform}")
    console.print(f"  Repo version:    {info.repo_version}")
    console.print(f"  Failures:        {build.meta.failure_count}")
    console.print(f"  Added:           {build.added_date.isoformat()}")
    console.print(f"  Modified:        {build.modified_date.isoformat()}")


github_app = typer.Typer(help="GitHub App integration")
app.add_typer(github_app, name="github")


@github_app.command("check")
def github_check() -> None:
    """Verify the GitHub App credentials."""
    from ci_versioning.github import AuthError, init_client

    settings = get_settings()
    try:
        client = init_client(settings)
    except (ConfigError, AuthError) as e:
        console.print(f"[red]Error ({e.code}):[/red] {e}")
        raise typer.Exit(code=1) from None

    app_info = client.app
    client.close()

    slug = app_info.get("slug") or settings.github_app_id
    name = app_info.get("name") or slug
    console.print(
        f"[green]Authenticated as GitHub App {slug}[/green] "
        f"({name}, installation {settings.github_installation_id})",
        highlight=False,
    )


if __name__ == "__main__":
    app()
