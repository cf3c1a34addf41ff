"""Balance engine: the signed effect of a transaction on account balances.

Every ledger mutation goes through ``balance_delta``. Reverting a transaction
re-runs the same rules and subtracts, so revert after apply is always the
identity, whatever fields an edit later changes.
"""

from collections.abc import Mapping
from dataclasses import replace
from decimal import Decimal

from finledger.domain.entities import Account, Transaction, TransactionType

ZERO = Decimal("0")


def balance_delta(account: Account, transaction: Transaction) -> Decimal:
    """Return the signed amount ``transaction`` adds to ``account.balance``.

    Loan balances hold outstanding debt as a positive number: money leaving
    a loan account is new debt, money arriving is a repayment.
    """
    if transaction.exclude_from_balance:
        return ZERO

    amount = transaction.amount
    if account.id == transaction.account_id:
        if transaction.type is TransactionType.INCOME:
            return amount
        # expense and transfer outflow share the same rule
        return amount if account.is_loan else -amount

    if transaction.type is TransactionType.TRANSFER and account.id == transaction.to_account_id:
        return -amount if account.is_loan else amount

    return ZERO


def _post(accounts: Mapping[str, Account], transaction: Transaction, sign: int) -> dict[str, Account]:
    touched: dict[str, Account] = {}
    if transaction.exclude_from_balance:
        return touched

    for account_id in transaction.account_ids:
        account = accounts.get(account_id)
        if account is None:
            # dangling leg
            continue
        delta = balance_delta(account, transaction)
        touched[account_id] = replace(account, balance=account.balance + sign * delta)
    return touched


def apply_transaction(accounts: Mapping[str, Account], transaction: Transaction) -> dict[str, Account]:
    """Apply the forward effect of ``transaction``.

    Args:
        accounts: Current accounts keyed by ID
        transaction: Transaction to post

    Returns:
        Only the touched accounts, keyed by ID, with their new balances
    """
    return _post(accounts, transaction, 1)


def revert_transaction(accounts: Mapping[str, Account], transaction: Transaction) -> dict[str, Account]:
    """Undo the effect of ``transaction``. Mirror of ``apply_transaction``."""
    return _post(accounts, transaction, -1)
