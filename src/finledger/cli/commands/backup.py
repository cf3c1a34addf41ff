"""Backup export and import commands."""

import json
from pathlib import Path

import click

from finledger.cli.error_handling import handle_domain_error
from finledger.domain.errors import DomainError
from finledger.domain.snapshot import snapshot_from_dict, snapshot_to_dict


@click.group()
def backup_group():
    """Export and restore the whole ledger."""
    pass


@backup_group.command("export")
@click.argument("path", type=click.Path(dir_okay=False, path_type=Path))
@click.pass_context
def export_backup(ctx, path: Path) -> None:
    """Write every collection and the settings to a JSON file.

    Examples:
        finledger backup export ~/finledger-backup.json
    """
    store = ctx.obj["store"]
    snapshot = store.export_snapshot()
    with path.open("w", encoding="utf-8") as f:
        json.dump(snapshot_to_dict(snapshot), f, indent=2)
    click.echo(
        f"Exported {len(snapshot.accounts)} accounts and {len(snapshot.transactions)} transactions to {path}"
    )


@backup_group.command("import")
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--yes", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
def import_backup(ctx, path: Path, yes: bool) -> None:
    """Replace ALL data with the contents of a JSON backup.

    Balances and audit entries are restored exactly as exported. The import
    is not atomic: if it fails midway the database is left partly cleared,
    so export a backup of the current data first.

    Examples:
        finledger backup import ~/finledger-backup.json
    """
    store = ctx.obj["store"]

    try:
        with path.open("r", encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        click.echo(f"Error: {path} is not valid JSON: {e}", err=True)
        ctx.exit(1)

    try:
        snapshot = snapshot_from_dict(data)
    except DomainError as e:
        handle_domain_error(ctx, e)

    click.echo(
        f"Backup holds {len(snapshot.accounts)} accounts, {len(snapshot.transactions)} transactions "
        f"and {len(snapshot.mandates)} mandates."
    )
    if not yes and not click.confirm(
        "This replaces all current data and cannot be undone; a failure midway leaves "
        "the ledger partly cleared. Continue?"
    ):
        click.echo("Import cancelled.")
        return

    try:
        store.import_data(snapshot)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Imported backup from {path}")


def register_commands(cli):
    """Register backup commands with main CLI."""
    cli.add_command(backup_group, name="backup")
