"""Flask CLI commands for token housekeeping."""

from __future__ import annotations

import logging

import click
from flask.cli import with_appcontext

from authcore.core.extensions import get_components

LOGGER = logging.getLogger(__name__)


@click.group("auth")
def auth_cli() -> None:
    """Authentication maintenance commands."""


@auth_cli.command("cleanup-tokens")
@click.option(
    "--skip-revocations",
    is_flag=True,
    help="Only delete refresh tokens; leave the access-token revocation list alone.",
)
@with_appcontext
def cleanup_tokens(skip_revocations: bool) -> None:
    """Delete expired or revoked refresh tokens and purge expired revocations."""
    components = get_components()
    deleted = components.refresh_store.cleanup_expired()
    purged = 0 if skip_revocations else components.revocation_store.purge_expired()
    LOGGER.info("token cleanup finished", extra={"details": {"deleted": deleted, "purged": purged}})
    click.echo("Token cleanup summary:")
    click.echo(f"  refresh tokens deleted   {deleted:>6}")
    click.echo(f"  revocations purged       {purged:>6}")
