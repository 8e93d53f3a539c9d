"""CLI output: a JSON envelope for scripts, plain lines for people.

Only the CLI writes here. The MCP server owns stdout while it runs, so
nothing in this module is used by `serve` after startup.
"""

import json
import sys
from typing import Any, NoReturn

import click


def envelope(data: Any = None, error: dict[str, str] | None = None) -> dict[str, Any]:
    """Wrap a result or an error in the {"success": ..., ...} document."""
    if error is not None:
        return {"success": False, "error": error}
    return {"success": True, "data": data}


def describe_error(
    error: Exception,
    error_type: str | None = None,
    help_text: str | None = None,
) -> dict[str, str]:
    return {
        "type": error_type or type(error).__name__,
        "message": str(error),
        "help": help_text or "",
    }


def describe_auth_status(status: dict[str, Any]) -> str:
    """One-line summary of `auth status` for a terminal."""
    if not status["authenticated"]:
        message = "Not authenticated with Spotify."
        if status.get("pending_authorization"):
            message += (
                " An authorization is pending; open the URL and let `serve` receive the callback."
            )
        return message

    if status.get("has_refresh_token"):
        return "Authenticated with Spotify (refresh token stored)."
    return "Authenticated with Spotify."


class OutputHandler:
    """Writes command results in JSON or human mode."""

    def __init__(self, json_mode: bool = False):
        self.json_mode = json_mode

    def success(self, data: Any, human_message: str | None = None) -> None:
        if self.json_mode:
            click.echo(json.dumps(envelope(data), indent=2, default=str))
        elif human_message:
            click.echo(human_message)
        else:
            click.echo(json.dumps(data, indent=2, default=str))

    def error(
        self,
        error: Exception,
        error_type: str | None = None,
        help_text: str | None = None,
    ) -> NoReturn:
        """Report a failure and exit with status 1.

        JSON mode prints the envelope on stdout so callers can parse it;
        human mode prints to stderr.
        """
        if self.json_mode:
            details = describe_error(error, error_type, help_text)
            click.echo(json.dumps(envelope(error=details), indent=2))
        else:
            click.secho(f"Error: {error}", fg="red", err=True)
            if help_text:
                click.echo(f"\n{help_text}", err=True)
        sys.exit(1)
