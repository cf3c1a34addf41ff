"""Tests for the balance engine."""

import pytest
from datetime import datetime, UTC
from decimal import Decimal

from finledger.domain.balance import apply_transaction, balance_delta, revert_transaction
from finledger.domain.entities import Account, AccountType, Transaction, TransactionType

NOW = datetime(2024, 3, 5, tzinfo=UTC)


def _account(account_id, account_type=AccountType.SAVINGS, balance="1000"):
    return Account(id=account_id, name=account_id, type=account_type, balance=Decimal(balance))


def _txn(txn_type, amount="100", to_account_id=None, exclude=False):
    return Transaction(
        id="t1",
        account_id="src",
        amount=Decimal(amount),
        type=txn_type,
        category="General",
        date=NOW,
        to_account_id=to_account_id,
        exclude_from_balance=exclude,
    )


@pytest.mark.parametrize(
    "account_type,txn_type,expected",
    [
        (AccountType.SAVINGS, TransactionType.INCOME, "100"),
        (AccountType.SAVINGS, TransactionType.EXPENSE, "-100"),
        (AccountType.SAVINGS, TransactionType.TRANSFER, "-100"),
        (AccountType.LOAN, TransactionType.INCOME, "100"),
        (AccountType.LOAN, TransactionType.EXPENSE, "100"),
        (AccountType.LOAN, TransactionType.TRANSFER, "100"),
    ],
)
def test_source_delta(account_type, txn_type, expected):
    to_account_id = "dst" if txn_type is TransactionType.TRANSFER else None
    delta = balance_delta(_account("src", account_type), _txn(txn_type, to_account_id=to_account_id))
    assert delta == Decimal(expected)


@pytest.mark.parametrize(
    "account_type,expected",
    [(AccountType.SAVINGS, "100"), (AccountType.CREDIT, "100"), (AccountType.LOAN, "-100")],
)
def test_destination_delta(account_type, expected):
    delta = balance_delta(_account("dst", account_type), _txn(TransactionType.TRANSFER, to_account_id="dst"))
    assert delta == Decimal(expected)


def test_unrelated_account_delta_is_zero():
    assert balance_delta(_account("other"), _txn(TransactionType.EXPENSE)) == Decimal("0")


def test_loan_sign_convention():
    """An expense raises a loan's outstanding balance and lowers a savings balance."""
    accounts = {"src": _account("src", AccountType.LOAN)}
    assert apply_transaction(accounts, _txn(TransactionType.EXPENSE, "1000"))["src"].balance == Decimal("2000")

    accounts = {"src": _account("src", AccountType.SAVINGS)}
    assert apply_transaction(accounts, _txn(TransactionType.EXPENSE, "1000"))["src"].balance == Decimal("0")


def test_transfer_conservation():
    accounts = {"src": _account("src"), "dst": _account("dst", AccountType.CASH, "50")}
    touched = apply_transaction(accounts, _txn(TransactionType.TRANSFER, "75.25", to_account_id="dst"))

    assert touched["src"].balance == Decimal("924.75")
    assert touched["dst"].balance == Decimal("125.25")
    assert sum(a.balance for a in touched.values()) == Decimal("1050")


@pytest.mark.parametrize("txn_type", list(TransactionType))
def test_excluded_transaction_touches_nothing(txn_type):
    to_account_id = "dst" if txn_type is TransactionType.TRANSFER else None
    accounts = {"src": _account("src", AccountType.LOAN), "dst": _account("dst")}
    txn = _txn(txn_type, to_account_id=to_account_id, exclude=True)

    assert apply_transaction(accounts, txn) == {}
    assert revert_transaction(accounts, txn) == {}


@pytest.mark.parametrize("source_type", [AccountType.SAVINGS, AccountType.LOAN])
@pytest.mark.parametrize("dest_type", [AccountType.CASH, AccountType.LOAN])
@pytest.mark.parametrize("txn_type", list(TransactionType))
def test_revert_after_apply_is_identity(source_type, dest_type, txn_type):
    accounts = {"src": _account("src", source_type, "123.45"), "dst": _account("dst", dest_type, "-0.10")}
    to_account_id = "dst" if txn_type is TransactionType.TRANSFER else None
    txn = _txn(txn_type, "33.33", to_account_id=to_account_id)

    after = {**accounts, **apply_transaction(accounts, txn)}
    restored = {**after, **revert_transaction(after, txn)}

    assert restored == accounts


def test_missing_destination_is_skipped():
    accounts = {"src": _account("src")}
    touched = apply_transaction(accounts, _txn(TransactionType.TRANSFER, to_account_id="gone"))
    assert set(touched) == {"src"}
    assert touched["src"].balance == Decimal("900")


def test_inputs_are_not_mutated():
    accounts = {"src": _account("src")}
    apply_transaction(accounts, _txn(TransactionType.EXPENSE))
    assert accounts["src"].balance == Decimal("1000")
