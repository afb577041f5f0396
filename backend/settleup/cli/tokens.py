"""Flask CLI commands for refresh-token maintenance."""

from __future__ import annotations

import logging

import click
from flask import current_app
from flask.cli import with_appcontext

from settleup.services.auth.service import SessionManager

LOGGER = logging.getLogger(__name__)


@click.group("tokens")
def tokens_cli() -> None:
    """Inspect and clean up stored refresh tokens."""


@tokens_cli.command("purge-expired")
@with_appcontext
def purge_expired_command() -> None:
    """Delete every refresh-token record past its expiry."""
    removed = SessionManager.from_app(current_app).purge_expired()
    LOGGER.info("Purged expired refresh tokens", extra={"event": "tokens.purged"})
    click.echo(f"Purged {removed} expired refresh token(s).")


@tokens_cli.command("list")
@click.argument("account_id")
@with_appcontext
def list_command(account_id: str) -> None:
    """Show the active sessions of ACCOUNT_ID (timestamps only, never tokens)."""
    sessions = SessionManager.from_app(current_app).active_sessions(account_id)
    if not sessions:
        click.echo("No active sessions.")
        return
    click.echo(f"{len(sessions)} active session(s):")
    for view in sessions:
        click.echo(
            f"  created={view.created_at.isoformat(timespec='seconds')}"
            f"  expires={view.expires_at.isoformat(timespec='seconds')}"
        )
