"""Account management commands."""

from decimal import Decimal

import click

from finledger.cli.account_resolution import resolve_account_or_exit
from finledger.cli.error_handling import handle_domain_error
from finledger.domain.entities import (
    Account,
    AccountGroup,
    AccountPatch,
    AccountType,
    CreditCardDetails,
    LoanDetails,
    new_id,
)
from finledger.domain.errors import DomainError
from finledger.utils.amount_parser import parse_amount

ACCOUNT_TYPES = [t.value for t in AccountType]
ACCOUNT_GROUPS = [g.value for g in AccountGroup]


def _amount_or_exit(ctx, value: str | None, allow_negative: bool = False, cents_only: bool = True) -> Decimal | None:
    if value is None:
        return None
    try:
        return parse_amount(value, allow_negative=allow_negative, cents_only=cents_only)
    except ValueError as e:
        click.echo(f"Error: Invalid amount format: {e}", err=True)
        ctx.exit(1)


def _loan_details(ctx, principal, interest_rate, emi, emis_left) -> LoanDetails | None:
    if principal is None and emi is None:
        return None
    if principal is None or emi is None or emis_left is None:
        click.echo("Error: Loan details need --principal, --emi and --emis-left", err=True)
        ctx.exit(1)
    return LoanDetails(
        principal_amount=_amount_or_exit(ctx, principal),
        interest_rate=_amount_or_exit(ctx, interest_rate or "0", cents_only=False),
        monthly_emi=_amount_or_exit(ctx, emi),
        emis_left=emis_left,
    )


@click.group()
def account_group():
    """Manage accounts."""
    pass


@account_group.command("create")
@click.argument("name", metavar="ACCOUNT_NAME")
@click.option("--type", "account_type", type=click.Choice(ACCOUNT_TYPES), default="savings", show_default=True)
@click.option("--balance", default="0", help="Opening balance (outstanding debt for loans)")
@click.option("--sub-name", help="Secondary label, e.g. the bank branch")
@click.option("--group", type=click.Choice(ACCOUNT_GROUPS), help="Override the group inferred from the type")
@click.option("--primary", is_flag=True, help="Mark as the primary account")
@click.option("--principal", help="Loan principal amount")
@click.option("--interest-rate", help="Loan annual interest rate in percent")
@click.option("--emi", help="Loan monthly EMI")
@click.option("--emis-left", type=int, help="Number of EMIs still to pay")
@click.option("--statement-day", type=click.IntRange(1, 31), help="Credit card statement day of month")
@click.option("--due-day", type=click.IntRange(1, 31), help="Credit card payment due day of month")
@click.pass_context
def create_account(
    ctx,
    name: str,
    account_type: str,
    balance: str,
    sub_name: str | None,
    group: str | None,
    primary: bool,
    principal: str | None,
    interest_rate: str | None,
    emi: str | None,
    emis_left: int | None,
    statement_day: int | None,
    due_day: int | None,
):
    """Create a new account.

    The opening balance is taken as given; no transaction is recorded for it.

    Examples:
        finledger account create "HDFC Savings" --balance 25000
        finledger account create "Home Loan" --type loan --balance 1500000 \\
            --principal 2000000 --interest-rate 8.5 --emi 25000 --emis-left 72
        finledger account create "Amex" --type credit --statement-day 15 --due-day 5
    """
    store = ctx.obj["store"]

    card = None
    if statement_day is not None:
        card = CreditCardDetails(statement_date=statement_day, due_date=due_day or statement_day)

    account = Account(
        id=new_id(),
        name=name,
        type=AccountType(account_type),
        balance=_amount_or_exit(ctx, balance, allow_negative=True),
        sub_name=sub_name,
        is_primary=primary,
        group=AccountGroup(group) if group else None,
        loan_details=_loan_details(ctx, principal, interest_rate, emi, emis_left),
        credit_card_details=card,
    )
    try:
        stored = store.add_account(account)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Created account '{stored.name}' (ID: {stored.id})")


@account_group.command("list")
@click.option("--all", "show_all", is_flag=True, help="Include account types hidden in settings")
@click.pass_context
def list_accounts(ctx, show_all: bool):
    """List all accounts in display order."""
    store = ctx.obj["store"]

    accounts = sorted(store.accounts, key=lambda a: a.order)
    if not show_all:
        accounts = [a for a in accounts if not store.is_account_type_hidden(a.type, a.resolved_group)]
    if not accounts:
        click.echo("No accounts found.")
        return

    click.echo("\nAccounts:")
    click.echo("-" * 78)
    for acc in accounts:
        line = f"{acc.id[:8]} | {acc.name:24s} | {acc.type.value:13s} | {acc.balance:>14,.2f}"
        if acc.loan_details is not None:
            line += f" | EMIs left: {acc.loan_details.emis_left}"
        click.echo(line)


@account_group.command("show")
@click.argument("account", metavar="ACCOUNT")
@click.pass_context
def show_account(ctx, account: str) -> None:
    """Show account details, including statement figures for credit cards."""
    store = ctx.obj["store"]
    acc = store.get_account(resolve_account_or_exit(ctx, store, account))

    click.echo(f"ID:       {acc.id}")
    click.echo(f"Name:     {acc.name}")
    click.echo(f"Type:     {acc.type.value} ({acc.resolved_group.value})")
    click.echo(f"Balance:  {acc.balance:,.2f}")
    if acc.loan_details is not None:
        details = acc.loan_details
        click.echo(f"EMI:      {details.monthly_emi:,.2f} ({details.emis_left} left)")
    if acc.type is AccountType.CREDIT and acc.credit_card_details is not None:
        stats = store.credit_card_stats(acc.id)
        click.echo(f"Billed:   {stats.billed:,.2f}")
        click.echo(f"Unbilled: {stats.unbilled:,.2f}")


@account_group.command("update")
@click.argument("account", metavar="ACCOUNT")
@click.option("--name", help="New account name")
@click.option("--sub-name", help="New secondary label")
@click.option("--balance", help="Overwrite the balance (no transaction is recorded)")
@click.option("--emis-left", type=int, help="Loan EMIs still to pay")
@click.option("--include-in-reports/--exclude-from-reports", default=None)
@click.option("--include-in-net-worth/--exclude-from-net-worth", default=None)
@click.pass_context
def update_account(
    ctx,
    account: str,
    name: str | None,
    sub_name: str | None,
    balance: str | None,
    emis_left: int | None,
    include_in_reports: bool | None,
    include_in_net_worth: bool | None,
) -> None:
    """Update an account.

    ACCOUNT can be an account name or ID. Only the given fields change.

    Examples:
        finledger account update "HDFC Savings" --name "HDFC Salary"
        finledger account update "Home Loan" --emis-left 60
    """
    store = ctx.obj["store"]
    account_id = resolve_account_or_exit(ctx, store, account)
    current = store.get_account(account_id)

    loan_details = None
    if emis_left is not None:
        if current.loan_details is None:
            click.echo(f"Error: Account '{current.name}' has no loan details", err=True)
            ctx.exit(1)
        loan_details = LoanDetails(
            principal_amount=current.loan_details.principal_amount,
            interest_rate=current.loan_details.interest_rate,
            monthly_emi=current.loan_details.monthly_emi,
            emis_left=emis_left,
        )

    patch = AccountPatch(
        name=name,
        sub_name=sub_name,
        balance=_amount_or_exit(ctx, balance, allow_negative=True),
        loan_details=loan_details,
        include_in_reports=include_in_reports,
        include_in_net_worth=include_in_net_worth,
    )
    if not patch.changes():
        click.echo("Nothing to update.")
        return

    try:
        updated = store.update_account(account_id, patch)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Updated account '{updated.name}'")


@account_group.command("delete")
@click.argument("account", metavar="ACCOUNT")
@click.option("--yes", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
def delete_account(ctx, account: str, yes: bool) -> None:
    """Delete an account and every transaction that references it.

    ACCOUNT can be an account name or ID. Balances of the other side of
    deleted transfers are left unchanged.

    Examples:
        finledger account delete "Old Wallet"
    """
    store = ctx.obj["store"]
    account_id = resolve_account_or_exit(ctx, store, account)
    account_obj = store.get_account(account_id)

    count = len(store.list_transactions(account_id=account_id))
    prompt = f"Delete account '{account_obj.name}' and its {count} transaction{'s' if count != 1 else ''}?"
    if not yes and not click.confirm(prompt):
        click.echo("Deletion cancelled.")
        return

    try:
        removed = store.delete_account(account_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Deleted account '{account_obj.name}' and {len(removed)} transactions")


def register_commands(cli):
    """Register account commands with main CLI."""
    cli.add_command(account_group, name="account")
