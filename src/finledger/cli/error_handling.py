"""CLI error handling helpers."""

import click

from finledger.domain.errors import DomainError, ImportPartialFailureError, PersistenceError


def handle_domain_error(ctx: click.Context, error: DomainError | ValueError) -> None:
    """Render a ledger error on stderr and exit with status 1.

    Storage failures get a hint, since the in-memory change already happened
    and the database may disagree with it.
    """
    click.echo(f"Error: {error}", err=True)
    if isinstance(error, ImportPartialFailureError):
        click.echo(
            "The database may be partly cleared. Import the backup again or restore an earlier export.",
            err=True,
        )
    elif isinstance(error, PersistenceError):
        click.echo("The change was not saved. Check the database file and retry.", err=True)
    ctx.exit(1)
