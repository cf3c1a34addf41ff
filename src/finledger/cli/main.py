"""Main CLI entry point."""

import logging

import click

from finledger.database.factories import create_sqlite_database
from finledger.database.writer import PersistenceWriter
from finledger.domain.ledger import LedgerStore
from finledger.logging_config import get_logger, setup_logging

# Import and register all commands at module level
from finledger.cli.commands import account, audit, backup, mandate, transaction

logger = get_logger("cli")


@click.group()
@click.option(
    "--db-path",
    type=click.Path(),
    help="Path to database file (overrides FINLEDGER_DB_PATH environment variable)",
    envvar="FINLEDGER_DB_PATH",
)
@click.option(
    "--log-file",
    type=click.Path(),
    help="Write JSON logs to this file (overrides FINLEDGER_LOG_FILE environment variable)",
    envvar="FINLEDGER_LOG_FILE",
)
@click.option("--verbose", "-v", count=True, help="Increase log output (-v info, -vv debug)")
@click.pass_context
def cli(ctx, db_path: str | None, log_file: str | None, verbose: int):
    """Finledger - Personal finance ledger.

    Keep accounts, transactions and recurring transfers (mandates) with
    balances that always match the transactions posted to them.
    """
    ctx.ensure_object(dict)

    # Initialize the store only when actually running a command
    # (not when showing help)
    if ctx.invoked_subcommand is None:
        return

    level = {0: logging.WARNING, 1: logging.INFO}.get(verbose, logging.DEBUG)
    setup_logging(level=level, log_file=log_file)

    db = create_sqlite_database(database_path=db_path)
    db.connect()
    db.initialize_schema()

    store = LedgerStore(db, writer=PersistenceWriter(db))
    store.load()
    ctx.obj["db"] = db
    ctx.obj["store"] = store
    ctx.call_on_close(lambda: _shutdown(store))


def _shutdown(store: LedgerStore) -> None:
    for error in store.close():
        click.echo(f"Warning: {error}", err=True)
    store.db.disconnect()
    logger.debug("Store closed")


# Register all commands
account.register_commands(cli)
transaction.register_commands(cli)
mandate.register_commands(cli)
audit.register_commands(cli)
backup.register_commands(cli)


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
