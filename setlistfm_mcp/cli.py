"""CLI entry point for setlistfm-mcp."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

import click

from . import __version__
from .config import REQUIRED_ENV_VARS, ConfigError, Settings, load_settings
from .oauth.session import SpotifySession
from .oauth.store import CredentialStore, CredentialStoreError
from .output import OutputHandler, describe_auth_status

# Logger for CLI
logger = logging.getLogger("setlistfm_mcp")

CONFIG_HELP = (
    "Set these variables in the environment or in a .env file:\n  "
    + "\n  ".join(REQUIRED_ENV_VARS)
)


@click.group()
@click.option("--json", "json_mode", is_flag=True, help="Output in JSON format")
@click.option("--env-file", "env_path", type=click.Path(exists=True), help="Path to .env file")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
@click.version_option(version=__version__)
@click.pass_context
def main(ctx: click.Context, json_mode: bool, env_path: str | None, verbose: bool) -> None:
    """setlistfm-mcp - setlist.fm and Spotify tools for MCP clients."""
    ctx.ensure_object(dict)
    ctx.obj["json_mode"] = json_mode
    ctx.obj["env_path"] = Path(env_path) if env_path else None
    ctx.obj["output"] = OutputHandler(json_mode)

    # Logs go to stderr; stdout belongs to the MCP stdio transport
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        )
    else:
        logging.basicConfig(level=logging.WARNING)


def get_settings(ctx: click.Context) -> Settings:
    """Load settings from context, exiting on missing configuration."""
    output: OutputHandler = ctx.obj["output"]
    try:
        return load_settings(ctx.obj["env_path"])
    except ConfigError as e:
        output.error(e, error_type="ConfigurationMissing", help_text=CONFIG_HELP)


def get_session(ctx: click.Context) -> SpotifySession:
    settings = get_settings(ctx)
    return SpotifySession(settings, CredentialStore(settings.state_dir))


@main.command()
@click.pass_context
def serve(ctx: click.Context) -> None:
    """Run the MCP server on stdio with the Spotify callback listener."""
    from .server import create_server

    settings = get_settings(ctx)
    server = create_server(settings)

    try:
        asyncio.run(server.run())
    except KeyboardInterrupt:
        logger.debug("Interrupted, shutting down")


@main.group()
@click.pass_context
def auth(ctx: click.Context) -> None:
    """Manage the stored Spotify login."""
    pass


@auth.command("url")
@click.pass_context
def auth_url(ctx: click.Context) -> None:
    """Print a new Spotify authorization URL.

    The callback is only received while `serve` is running.
    """
    output: OutputHandler = ctx.obj["output"]
    session = get_session(ctx)

    url = session.begin_authorization()
    output.success(
        {"authorization_url": url, "redirect_uri": session.settings.spotify_redirect_uri},
        human_message=f"Open this URL to authorize Spotify: {url}",
    )


@auth.command("status")
@click.pass_context
def auth_status(ctx: click.Context) -> None:
    """Show whether a Spotify token is stored (never prints the token)."""
    output: OutputHandler = ctx.obj["output"]
    session = get_session(ctx)
    store = session.store

    try:
        token = store.read_token()
    except CredentialStoreError as e:
        output.error(e, help_text="Run 'setlistfm-mcp auth logout' and authorize again.")

    status = {
        "authenticated": token is not None,
        "has_refresh_token": token.has_refresh_token() if token else False,
        "pending_authorization": store.load_verifier() is not None,
        "token_file": str(store.token_path),
    }

    output.success(status, human_message=describe_auth_status(status))


@auth.command("logout")
@click.pass_context
def auth_logout(ctx: click.Context) -> None:
    """Delete the stored Spotify token and any pending verifier."""
    output: OutputHandler = ctx.obj["output"]
    session = get_session(ctx)

    deleted = session.logout()
    message = "Removed stored Spotify token." if deleted else "No stored Spotify token found."
    output.success({"deleted": deleted}, human_message=message)


if __name__ == "__main__":
    main()
