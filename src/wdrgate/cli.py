"""
WdrGate CLI - Inspect the discovery surface.

Commands:
    wdrgate info          Discovery document (version, capabilities, routes)
    wdrgate capabilities  Published and advertised capabilities
    wdrgate routes        Registered contracts by route prefix
    wdrgate scopes        Permitted tokens and auth state for a token
"""

from __future__ import annotations

import json
from typing import Any, Optional

import click

from wdrgate.config import get_config
from wdrgate.errors import CredentialFormatError, RegistrationError
from wdrgate.gateway import Gateway, build_gateway
from wdrgate.logger import configure_logging


def _echo_json(data: Any) -> None:
    click.echo(json.dumps(data, indent=2))


def _build(ctx: click.Context) -> Gateway:
    overrides = {k: v for k, v in ctx.obj.items() if v is not None}
    config = get_config(**overrides) if overrides else get_config()
    try:
        return build_gateway(config)
    except (RegistrationError, CredentialFormatError, FileNotFoundError) as e:
        raise click.ClickException(f"Startup failed: {e}")


@click.group()
@click.version_option(package_name="wdrgate")
@click.option("--tokens-file", type=click.Path(dir_okay=False), help="YAML token table")
@click.option("--oauth-url", help="OAuth token request URL to advertise")
@click.option(
    "--log-level",
    type=click.Choice(["debug", "info", "warning", "error"]),
    default="warning",
    show_default=True,
)
@click.pass_context
def main(ctx: click.Context, tokens_file: Optional[str], oauth_url: Optional[str], log_level: str):
    """WdrGate - contract discovery and scope authorization."""
    configure_logging(level=log_level, fmt="text", stream=click.get_text_stream("stderr"))
    ctx.ensure_object(dict)
    ctx.obj["tokens_file"] = tokens_file
    ctx.obj["oauth_token_request_url"] = oauth_url


@main.command("info")
@click.pass_context
def info_cmd(ctx: click.Context):
    """Print the discovery document."""
    gateway = _build(ctx)
    _echo_json(gateway.api_info.describe())


@main.command("capabilities")
@click.option("--all", "show_all", is_flag=True, help="Include capabilities without a contract")
@click.pass_context
def capabilities_cmd(ctx: click.Context, show_all: bool):
    """List advertised capabilities."""
    gateway = _build(ctx)
    if show_all:
        _echo_json([d.model_dump() for d in gateway.capabilities.definitions()])
    else:
        _echo_json(gateway.registry.get_capabilities())


@main.command("routes")
@click.pass_context
def routes_cmd(ctx: click.Context):
    """List registered contracts."""
    gateway = _build(ctx)
    for registration in gateway.registry.registrations():
        caps = ", ".join(registration.capabilities) or "-"
        click.echo(f"{registration.route_prefix}\t{registration.name}\t{caps}")


@main.command("scopes")
@click.option("--token", "-t", help="Bearer token to evaluate (omit for anonymous)")
@click.pass_context
def scopes_cmd(ctx: click.Context, token: Optional[str]):
    """Evaluate permitted scopes for a token."""
    gateway = _build(ctx)
    if token and gateway.validator is None:
        raise click.ClickException("No token store configured (use --tokens-file)")

    try:
        credential = gateway.validator.resolve(token) if gateway.validator else None
        result = gateway.api_info.get_permitted_auth_scopes(credential)
    except CredentialFormatError as e:
        raise click.ClickException(f"Malformed credential: {e}")

    _echo_json(result.to_wire())


if __name__ == "__main__":
    main()
