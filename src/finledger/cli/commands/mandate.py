"""Mandate (recurring transfer) commands."""

import click

from finledger.cli.account_resolution import resolve_account_or_exit, resolve_id_or_exit
from finledger.cli.error_handling import handle_domain_error
from finledger.domain.entities import Mandate, MandatePatch, new_id
from finledger.domain.errors import DomainError
from finledger.domain.mandates import MandateScheduler, is_due_today, is_settled
from finledger.utils.amount_parser import parse_amount


def _resolve_mandate_or_exit(ctx, store, reference: str) -> str:
    return resolve_id_or_exit(ctx, "mandate", [m.id for m in store.mandates], reference)


@click.group()
def mandate_group():
    """Manage recurring monthly transfers."""
    pass


@mandate_group.command("add")
@click.option("--from", "source", required=True, help="Source account name or ID")
@click.option("--to", "destination", required=True, help="Destination account name or ID")
@click.option("--amount", required=True, help="Transfer amount")
@click.option("--day", type=int, required=True, help="Day of month to run on (1-31)")
@click.option("--description", required=True, help="Shown in the transaction note")
@click.pass_context
def add_mandate(ctx, source: str, destination: str, amount: str, day: int, description: str) -> None:
    """Add a mandate.

    Examples:
        finledger mandate add --from "HDFC Savings" --to "Home Loan" --amount 25000 \\
            --day 5 --description "Home loan EMI"
    """
    store = ctx.obj["store"]
    try:
        mandate = store.add_mandate(
            Mandate(
                id=new_id(),
                source_account_id=resolve_account_or_exit(ctx, store, source),
                destination_account_id=resolve_account_or_exit(ctx, store, destination),
                amount=parse_amount(amount),
                day_of_month=day,
                description=description,
            )
        )
    except (DomainError, ValueError) as e:
        handle_domain_error(ctx, e)
    click.echo(f"Added mandate '{mandate.description}' (ID: {mandate.id})")


@mandate_group.command("list")
@click.pass_context
def list_mandates(ctx) -> None:
    """List mandates with their status for the current month."""
    store = ctx.obj["store"]
    today = store.clock().date()

    mandates = sorted(store.mandates, key=lambda m: m.order)
    if not mandates:
        click.echo("No mandates found.")
        return

    for mandate in mandates:
        if not mandate.is_enabled:
            status = "disabled"
        elif is_due_today(mandate, today):
            status = "due"
        elif is_settled(mandate, today):
            ran = mandate.last_run_date is not None and mandate.last_run_date.replace(day=1) == today.replace(day=1)
            status = "done" if ran else "skipped"
        else:
            status = "pending"
        click.echo(
            f"{mandate.id[:8]} | day {mandate.day_of_month:2d} | {mandate.amount:>12,.2f} | "
            f"{store.account_name(mandate.source_account_id)} -> "
            f"{store.account_name(mandate.destination_account_id)} | {mandate.description} | {status}"
        )


@mandate_group.command("check")
@click.pass_context
def check_mandates(ctx) -> None:
    """Run every mandate due today. Safe to run repeatedly."""
    store = ctx.obj["store"]
    created = MandateScheduler(store).check_and_run()
    click.echo(f"Ran {len(created)} mandate{'s' if len(created) != 1 else ''}")


@mandate_group.command("run")
@click.argument("mandate_id")
@click.pass_context
def run_mandate(ctx, mandate_id: str) -> None:
    """Run a mandate now, whether or not it is due."""
    store = ctx.obj["store"]
    mandate_id = _resolve_mandate_or_exit(ctx, store, mandate_id)
    try:
        transaction = MandateScheduler(store).run_mandate(mandate_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Ran mandate {mandate_id} (transaction {transaction.id})")


@mandate_group.command("skip")
@click.argument("mandate_id")
@click.pass_context
def skip_mandate(ctx, mandate_id: str) -> None:
    """Skip a mandate for the current month."""
    store = ctx.obj["store"]
    mandate_id = _resolve_mandate_or_exit(ctx, store, mandate_id)
    try:
        MandateScheduler(store).skip_mandate(mandate_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Skipped mandate {mandate_id} for this month")


def _set_enabled(ctx, mandate_id: str, enabled: bool) -> None:
    store = ctx.obj["store"]
    mandate_id = _resolve_mandate_or_exit(ctx, store, mandate_id)
    try:
        store.update_mandate(mandate_id, MandatePatch(is_enabled=enabled))
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"{'Enabled' if enabled else 'Disabled'} mandate {mandate_id}")


@mandate_group.command("enable")
@click.argument("mandate_id")
@click.pass_context
def enable_mandate(ctx, mandate_id: str) -> None:
    """Enable a mandate."""
    _set_enabled(ctx, mandate_id, True)


@mandate_group.command("disable")
@click.argument("mandate_id")
@click.pass_context
def disable_mandate(ctx, mandate_id: str) -> None:
    """Disable a mandate. It stays in the list but never runs."""
    _set_enabled(ctx, mandate_id, False)


@mandate_group.command("delete")
@click.argument("mandate_id")
@click.pass_context
def delete_mandate(ctx, mandate_id: str) -> None:
    """Delete a mandate. Transactions it already created are kept."""
    store = ctx.obj["store"]
    mandate_id = _resolve_mandate_or_exit(ctx, store, mandate_id)
    try:
        store.delete_mandate(mandate_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Deleted mandate {mandate_id}")


def register_commands(cli):
    """Register mandate commands with main CLI."""
    cli.add_command(mandate_group, name="mandate")
