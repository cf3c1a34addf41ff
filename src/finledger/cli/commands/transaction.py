"""Transaction management commands."""

from dataclasses import replace

import click

from finledger.cli.account_resolution import resolve_account_or_exit, resolve_id_or_exit
from finledger.cli.error_handling import handle_domain_error
from finledger.domain.entities import Transaction, TransactionType, new_id
from finledger.domain.errors import DomainError
from finledger.utils.amount_parser import parse_amount
from finledger.utils.date_parser import get_date_range, parse_date, parse_datetime

TRANSACTION_TYPES = [t.value for t in TransactionType]
PERIODS = ["this-month", "last-month", "this-year", "last-year"]


def _parse_or_exit(ctx, parser, value, label):
    try:
        return parser(value)
    except ValueError as e:
        click.echo(f"Error: Invalid {label} format: {e}", err=True)
        ctx.exit(1)


def _resolve_transaction_or_exit(ctx, store, reference: str) -> str:
    return resolve_id_or_exit(ctx, "transaction", [t.id for t in store.transactions], reference)


@click.group()
def transaction_group():
    """Manage transactions."""
    pass


@transaction_group.command("add")
@click.option("--account", required=True, help="Source account name or ID")
@click.option("--amount", required=True, help="Transaction amount (positive)")
@click.option("--type", "txn_type", type=click.Choice(TRANSACTION_TYPES), default="expense", show_default=True)
@click.option("--to-account", help="Destination account name or ID (transfers only)")
@click.option("--category", default="Uncategorized", show_default=True, help="Category name")
@click.option("--date", "txn_date", help="Transaction date (YYYY-MM-DD, 'today', 'yesterday'); defaults to now")
@click.option("--note", help="Free-text note")
@click.option("--event", "event_id", help="Event ID to attach the transaction to")
@click.option("--exclude-from-balance", is_flag=True, help="Record without moving any balance")
@click.pass_context
def add_transaction(
    ctx,
    account: str,
    amount: str,
    txn_type: str,
    to_account: str | None,
    category: str,
    txn_date: str | None,
    note: str | None,
    event_id: str | None,
    exclude_from_balance: bool,
) -> None:
    """Post a transaction and update the affected balances.

    Examples:
        finledger transaction add --account "HDFC Savings" --amount 450 --category Food
        finledger transaction add --account Salary --amount 90000 --type income
        finledger transaction add --account "HDFC Savings" --to-account "Home Loan" \\
            --amount 25000 --type transfer
    """
    store = ctx.obj["store"]

    transaction = Transaction(
        id=new_id(),
        account_id=resolve_account_or_exit(ctx, store, account),
        to_account_id=resolve_account_or_exit(ctx, store, to_account) if to_account else None,
        amount=_parse_or_exit(ctx, parse_amount, amount, "amount"),
        type=TransactionType(txn_type),
        category=category,
        date=_parse_or_exit(ctx, parse_datetime, txn_date, "date") if txn_date else store.clock(),
        note=note,
        event_id=event_id,
        exclude_from_balance=exclude_from_balance,
    )
    try:
        store.add_transaction(transaction)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Added transaction {transaction.id}")


@transaction_group.command("edit")
@click.argument("transaction_id")
@click.option("--account", help="Source account name or ID")
@click.option("--amount", help="Transaction amount (positive)")
@click.option("--type", "txn_type", type=click.Choice(TRANSACTION_TYPES))
@click.option("--to-account", help="Destination account name or ID, or empty string to clear")
@click.option("--category", help="Category name")
@click.option("--date", "txn_date", help="Transaction date")
@click.option("--note", help="Free-text note")
@click.option("--exclude-from-balance/--include-in-balance", default=None)
@click.pass_context
def edit_transaction(
    ctx,
    transaction_id: str,
    account: str | None,
    amount: str | None,
    txn_type: str | None,
    to_account: str | None,
    category: str | None,
    txn_date: str | None,
    note: str | None,
    exclude_from_balance: bool | None,
) -> None:
    """Edit a transaction, moving balances to match the new values.

    Updates only the fields that are provided. TRANSACTION_ID may be a
    unique prefix of the ID.

    Examples:
        finledger transaction edit 3fa9c2 --amount 500
        finledger transaction edit 3fa9c2 --type expense --to-account ""
    """
    store = ctx.obj["store"]
    transaction_id = _resolve_transaction_or_exit(ctx, store, transaction_id)
    current = store.get_transaction(transaction_id)

    changes = {}
    if account is not None:
        changes["account_id"] = resolve_account_or_exit(ctx, store, account)
    if to_account is not None:
        changes["to_account_id"] = resolve_account_or_exit(ctx, store, to_account) if to_account else None
    if amount is not None:
        changes["amount"] = _parse_or_exit(ctx, parse_amount, amount, "amount")
    if txn_type is not None:
        changes["type"] = TransactionType(txn_type)
    if category is not None:
        changes["category"] = category
    if txn_date is not None:
        changes["date"] = _parse_or_exit(ctx, parse_datetime, txn_date, "date")
    if note is not None:
        changes["note"] = note
    if exclude_from_balance is not None:
        changes["exclude_from_balance"] = exclude_from_balance

    if not changes:
        click.echo("Nothing to update.")
        return

    try:
        store.edit_transaction(transaction_id, replace(current, **changes))
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Updated transaction {transaction_id}")


@transaction_group.command("delete")
@click.argument("transaction_id")
@click.pass_context
def delete_transaction(ctx, transaction_id: str) -> None:
    """Delete a transaction and revert its effect on balances."""
    store = ctx.obj["store"]
    transaction_id = _resolve_transaction_or_exit(ctx, store, transaction_id)
    try:
        store.delete_transaction(transaction_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Deleted transaction {transaction_id}")


@transaction_group.command("list")
@click.option("--account", help="Account name or ID (as source or destination)")
@click.option("--start-date", help="Start date (YYYY-MM-DD or 'today', 'yesterday')")
@click.option("--end-date", help="End date (YYYY-MM-DD or 'today', 'yesterday')")
@click.option("--period", type=click.Choice(PERIODS), help="Named period; cannot be combined with dates")
@click.pass_context
def list_transactions(ctx, account: str | None, start_date: str | None, end_date: str | None, period: str | None):
    """View transactions, newest first."""
    store = ctx.obj["store"]

    if period and (start_date or end_date):
        click.echo("Error: --period cannot be combined with --start-date or --end-date.", err=True)
        ctx.exit(1)

    start = end = None
    if period:
        start, end = get_date_range(period, today=store.clock().date())
    if start_date:
        start = _parse_or_exit(ctx, parse_date, start_date, "start date")
    if end_date:
        end = _parse_or_exit(ctx, parse_date, end_date, "end date")

    account_id = resolve_account_or_exit(ctx, store, account) if account else None
    transactions = store.list_transactions(account_id=account_id, start_date=start, end_date=end)
    if not transactions:
        click.echo("No transactions found.")
        return

    for txn in transactions:
        target = store.account_name(txn.account_id)
        if txn.type is TransactionType.TRANSFER:
            target = f"{target} -> {store.account_name(txn.to_account_id)}"
        flag = " (excluded)" if txn.exclude_from_balance else ""
        click.echo(
            f"{txn.id[:8]} | {txn.date.date().isoformat()} | {txn.type.value:8s} | "
            f"{txn.amount:>12,.2f} | {txn.category:16s} | {target}{flag}"
        )
    click.echo(f"\nTotal: {len(transactions)} transactions")


def register_commands(cli):
    """Register transaction commands with main CLI."""
    cli.add_command(transaction_group, name="transaction")
