"""
Typer application for inspecting data sources and exercising providers.

The CLI builds the same :class:`DataProviderService` the web backend uses, so
operators can check OAuth configuration and provider connectivity from a shell.
"""

from __future__ import annotations

import asyncio
import json
from importlib import resources
from pathlib import Path
from typing import Any, Coroutine, List, Optional, TypeVar

import typer

from ..config import load_secrets
from ..core import AuthFilter, DataSourceRegistry, Project, RegistryLoadError, configure_logging
from ..providers import AdapterError, DataSourceAdaptee
from ..services import DataProviderLoader, DataProviderService

T = TypeVar("T")

app = typer.Typer(
    no_args_is_help=True,
    add_completion=False,
    help=(
        "Digital Excellence data provider CLI.\n\n"
        "Command groups:\n"
        "- sources: list configured data sources and run the OAuth flow.\n"
        "- projects: fetch projects from a data source."
    ),
)
sources_app = typer.Typer(help="Inspect configured data sources and their OAuth endpoints.")
app.add_typer(sources_app, name="sources")
projects_app = typer.Typer(help="Retrieve projects from a data source.")
app.add_typer(projects_app, name="projects")

_TOKEN_ENV = "DEX_ACCESS_TOKEN"


def _load_registry(registry_file: Optional[Path]) -> DataSourceRegistry:
    if registry_file:
        return DataSourceRegistry.from_yaml(registry_file)
    datasources_pkg = "dex_data_providers.resources.datasources"
    with resources.as_file(resources.files(datasources_pkg) / "core.yaml") as resolved:
        return DataSourceRegistry.from_yaml(resolved)


def _parse_auth_filter(value: str) -> AuthFilter:
    try:
        return AuthFilter(value.lower())
    except ValueError:
        raise typer.BadParameter(f"Unknown filter '{value}'. Expected one of: {', '.join(item.value for item in AuthFilter)}.") from None


def _require_service(ctx: typer.Context) -> DataProviderService:
    state = ctx.ensure_object(dict)
    service = state.get("service")
    if not isinstance(service, DataProviderService):
        raise typer.Exit(code=2)
    return service


def _run(coroutine: Coroutine[Any, Any, T]) -> T:
    try:
        return asyncio.run(coroutine)
    except AdapterError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from exc


def _echo_projects(projects: List[Project], output_json: bool) -> None:
    if output_json:
        typer.echo(json.dumps([project.to_dict() for project in projects], ensure_ascii=False, indent=2))
        return
    if not projects:
        typer.echo("No projects found.")
        return
    header = f"{'ID':<12} {'Owner':<20} {'Name':<30} URI"
    typer.echo(header)
    typer.echo("-" * len(header))
    for project in projects:
        typer.echo(f"{project.id:<12} {project.owner:<20} {project.name:<30} {project.uri}")


@app.callback(invoke_without_command=False)
def main(
    ctx: typer.Context,
    registry_file: Optional[Path] = typer.Option(
        None,
        "--registry",
        "-r",
        help="Override data source registry YAML file.",
        exists=True,
        dir_okay=False,
        readable=True,
    ),
    log_level: Optional[str] = typer.Option(None, "--log-level", help="Logging level (defaults to DEX_LOG_LEVEL or INFO)."),
) -> None:
    """
    Load the registry and secrets once and share the service with sub-commands.
    """

    configure_logging(log_level, force=log_level is not None)
    try:
        registry = _load_registry(registry_file)
        loader = DataProviderLoader.from_registry(registry, load_secrets(strict=False))
    except RegistryLoadError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from exc

    state = ctx.ensure_object(dict)
    state["service"] = DataProviderService(loader=loader)


@sources_app.command("list")
def sources_list(
    ctx: typer.Context,
    auth: str = typer.Option("all", "--auth", "-a", help="Filter by tier: all, authorized or public."),
) -> None:
    """List configured data sources."""

    service = _require_service(ctx)
    sources = service.retrieve_data_sources(_parse_auth_filter(auth))
    if not sources:
        typer.echo("No data sources match the requested filter.")
        raise typer.Exit(code=0)

    header = f"{'GUID':<38} {'Kind':<11} {'Provider':<9} Name"
    typer.echo(header)
    typer.echo("-" * len(header))
    for source in sources:
        typer.echo(f"{source.guid:<38} {source.kind.value:<11} {source.provider:<9} {source.name}")


def _require_source(service: DataProviderService, guid: str) -> DataSourceAdaptee:
    adaptee = service.loader.get_data_source_by_guid(guid)
    if adaptee is None:
        typer.echo(f"Data source '{guid}' is not registered.", err=True)
        raise typer.Exit(code=1)
    return adaptee


@sources_app.command("describe")
def sources_describe(
    ctx: typer.Context,
    guid: str = typer.Argument(..., help="Guid of the data source."),
    output_json: bool = typer.Option(False, "--json", help="Emit descriptor in JSON format."),
) -> None:
    """Show the configuration of one data source."""

    descriptor = _require_source(_require_service(ctx), guid).descriptor
    if output_json:
        typer.echo(descriptor.to_json())
        return

    typer.echo(f"GUID: {descriptor.guid}")
    typer.echo(f"Name: {descriptor.name}")
    typer.echo(f"Key: {descriptor.key}")
    typer.echo(f"Provider: {descriptor.provider}")
    typer.echo(f"Kind: {descriptor.kind.value}")
    typer.echo(f"API URL: {descriptor.api_url}")
    typer.echo(f"Web URL: {descriptor.web_url}")
    if descriptor.authorization_url:
        typer.echo(f"Authorization URL: {descriptor.authorization_url}")
    if descriptor.token_url:
        typer.echo(f"Token URL: {descriptor.token_url}")
    if descriptor.scopes:
        typer.echo(f"Scopes: {', '.join(descriptor.scopes)}")
    if descriptor.description:
        typer.echo(f"Description: {descriptor.description}")


@sources_app.command("oauth-url")
def sources_oauth_url(
    ctx: typer.Context,
    guid: str = typer.Argument(..., help="Guid of an authorized data source."),
) -> None:
    """Print the URL that starts the OAuth flow for a data source."""

    service = _require_service(ctx)
    try:
        url = service.get_oauth_url(guid)
    except AdapterError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from exc
    typer.echo(url)


@sources_app.command("exchange-code")
def sources_exchange_code(
    ctx: typer.Context,
    guid: str = typer.Argument(..., help="Guid of an authorized data source."),
    code: str = typer.Argument(..., help="Authorization code returned to the redirect URI."),
) -> None:
    """Exchange an authorization code for tokens and print them as JSON."""

    service = _require_service(ctx)
    tokens = _run(service.get_tokens(code, guid))
    typer.echo(json.dumps(tokens.to_dict(), ensure_ascii=False, indent=2))


@projects_app.command("list")
def projects_list(
    ctx: typer.Context,
    guid: str = typer.Argument(..., help="Guid of the data source."),
    token: Optional[str] = typer.Option(None, "--token", envvar=_TOKEN_ENV, help="Access token for authenticated listing."),
    owner: Optional[str] = typer.Option(None, "--owner", "-o", help="User or namespace whose public projects are listed."),
    needs_auth: bool = typer.Option(False, "--needs-auth/--no-needs-auth", help="Send the access token and list the token owner's projects."),
    output_json: bool = typer.Option(False, "--json", help="Emit projects in JSON format."),
) -> None:
    """List projects of a data source."""

    service = _require_service(ctx)
    projects = _run(service.get_all_projects(guid, token, needs_auth, owner=owner))
    _echo_projects(projects, output_json)


@projects_app.command("get")
def projects_get(
    ctx: typer.Context,
    guid: str = typer.Argument(..., help="Guid of the data source."),
    project_id: int = typer.Argument(..., help="Provider id of the project."),
    token: Optional[str] = typer.Option(None, "--token", envvar=_TOKEN_ENV, help="Access token for private projects."),
    needs_auth: bool = typer.Option(False, "--needs-auth/--no-needs-auth", help="Send the access token with the request."),
) -> None:
    """Fetch a single project by id and print it as JSON."""

    service = _require_service(ctx)
    project = _run(service.get_project_by_guid(guid, token, project_id, needs_auth))
    typer.echo(json.dumps(project.to_dict(), ensure_ascii=False, indent=2))


@projects_app.command("import-uri")
def projects_import_uri(
    ctx: typer.Context,
    guid: str = typer.Argument(..., help="Guid of the data source."),
    uri: str = typer.Argument(..., help="Web address of the project."),
    token: Optional[str] = typer.Option(None, "--token", envvar=_TOKEN_ENV, help="Access token for private projects."),
) -> None:
    """Fetch a project from its web address and print it as JSON."""

    service = _require_service(ctx)
    project = _run(service.get_project_from_uri(guid, uri, token))
    typer.echo(json.dumps(project.to_dict(), ensure_ascii=False, indent=2))


if __name__ == "__main__":  # pragma: no cover
    app()
