"""Credit card statement-cycle figures."""

from datetime import date, datetime, time, UTC
from decimal import Decimal
from typing import Iterable

from dateutil.relativedelta import relativedelta

from finledger.domain.entities import Account, AccountType, CreditCardStats, Transaction, TransactionType

ZERO = Decimal("0")


def _as_utc(value: datetime) -> datetime:
    return value.replace(tzinfo=UTC) if value.tzinfo is None else value


def _statement_close(month_start: date, statement_day: int) -> datetime:
    # relativedelta clamps day 31 to the last day of shorter months
    day = month_start + relativedelta(day=statement_day)
    return datetime.combine(day, time(23, 59, 59), tzinfo=UTC)


def last_statement_close(statement_day: int, today: date) -> datetime:
    """Return the end of the most recent statement day on or before ``today``."""
    close = _statement_close(today.replace(day=1), statement_day)
    if today < close.date():
        close = _statement_close(today.replace(day=1) - relativedelta(months=1), statement_day)
    return close


def debt_impact(account_id: str, transaction: Transaction) -> Decimal:
    """Net effect on card debt: positive adds debt, negative pays it down."""
    if transaction.exclude_from_balance:
        return ZERO
    if transaction.account_id == account_id:
        if transaction.type is TransactionType.INCOME:
            return -transaction.amount
        return transaction.amount
    if transaction.to_account_id == account_id:
        return -transaction.amount
    return ZERO


def credit_card_stats(account: Account, transactions: Iterable[Transaction], today: date) -> CreditCardStats:
    """Split a card's outstanding balance into billed and unbilled parts.

    Billed is the net debt of the last closed statement cycle, reduced by any
    credits posted since. Credits beyond the billed amount are applied to the
    debits posted since the statement.
    """
    details = account.credit_card_details
    if account.type is not AccountType.CREDIT or details is None:
        return CreditCardStats(unbilled=ZERO, billed=ZERO, total_due=account.balance)

    last_close = last_statement_close(details.statement_date, today)
    prev_close = last_close - relativedelta(months=1)

    billed_balance = ZERO
    post_credits = ZERO
    post_debts = ZERO
    for transaction in transactions:
        occurred = _as_utc(transaction.date)
        impact = debt_impact(account.id, transaction)
        if prev_close < occurred <= last_close:
            billed_balance += impact
        elif occurred > last_close:
            if impact < 0:
                post_credits += -impact
            else:
                post_debts += impact

    remaining_billed = billed_balance - post_credits
    billed = max(ZERO, remaining_billed)
    excess_credit = max(ZERO, -remaining_billed)
    unbilled = max(ZERO, post_debts - excess_credit)
    return CreditCardStats(unbilled=unbilled, billed=billed, total_due=account.balance)
