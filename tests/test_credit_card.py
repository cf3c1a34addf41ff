"""Tests for credit card statement figures."""

import pytest
from datetime import date, datetime, UTC
from decimal import Decimal

from finledger.domain.credit_card import credit_card_stats, debt_impact, last_statement_close
from finledger.domain.entities import (
    Account,
    AccountType,
    CreditCardDetails,
    Transaction,
    TransactionType,
)
from finledger.domain.errors import NotFoundError

CARD = Account(
    id="card",
    name="Card",
    type=AccountType.CREDIT,
    balance=Decimal("-700"),
    credit_card_details=CreditCardDetails(statement_date=15, due_date=5),
)


def _txn(day: datetime, amount: str, txn_type=TransactionType.EXPENSE, account_id="card", to_account_id=None):
    return Transaction(
        id=f"t{day.isoformat()}{amount}",
        account_id=account_id,
        amount=Decimal(amount),
        type=txn_type,
        category="Shopping",
        date=day,
        to_account_id=to_account_id,
    )


@pytest.mark.parametrize(
    "statement_day,today,expected",
    [
        (15, date(2024, 3, 20), datetime(2024, 3, 15, 23, 59, 59, tzinfo=UTC)),
        (15, date(2024, 3, 15), datetime(2024, 3, 15, 23, 59, 59, tzinfo=UTC)),
        (15, date(2024, 3, 10), datetime(2024, 2, 15, 23, 59, 59, tzinfo=UTC)),
        (31, date(2024, 2, 29), datetime(2024, 2, 29, 23, 59, 59, tzinfo=UTC)),
        (31, date(2024, 3, 5), datetime(2024, 2, 29, 23, 59, 59, tzinfo=UTC)),
    ],
)
def test_last_statement_close(statement_day, today, expected):
    assert last_statement_close(statement_day, today) == expected


def test_debt_impact():
    when = datetime(2024, 3, 1, tzinfo=UTC)
    assert debt_impact("card", _txn(when, "10")) == Decimal("10")
    assert debt_impact("card", _txn(when, "10", TransactionType.INCOME)) == Decimal("-10")
    payment = _txn(when, "10", TransactionType.TRANSFER, account_id="bank", to_account_id="card")
    assert debt_impact("card", payment) == Decimal("-10")
    assert debt_impact("other", payment) == Decimal("0")


def test_billed_and_unbilled():
    transactions = [
        _txn(datetime(2024, 2, 10, tzinfo=UTC), "999"),  # previous cycle, ignored
        _txn(datetime(2024, 2, 20, tzinfo=UTC), "500"),  # billed
        _txn(datetime(2024, 3, 1, tzinfo=UTC), "300"),  # billed
        _txn(datetime(2024, 3, 18, tzinfo=UTC), "200"),  # unbilled
    ]

    stats = credit_card_stats(CARD, transactions, date(2024, 3, 20))

    assert stats.billed == Decimal("800")
    assert stats.unbilled == Decimal("200")
    assert stats.total_due == Decimal("-700")


def test_payment_beyond_bill_reduces_unbilled():
    payment = _txn(
        datetime(2024, 3, 17, tzinfo=UTC), "900", TransactionType.TRANSFER, account_id="bank", to_account_id="card"
    )
    transactions = [
        _txn(datetime(2024, 3, 1, tzinfo=UTC), "800"),
        payment,
        _txn(datetime(2024, 3, 18, tzinfo=UTC), "250"),
    ]

    stats = credit_card_stats(CARD, transactions, date(2024, 3, 20))

    assert stats.billed == Decimal("0")
    assert stats.unbilled == Decimal("150")


def test_non_card_account():
    savings = Account(id="s", name="S", type=AccountType.SAVINGS, balance=Decimal("42"))
    stats = credit_card_stats(savings, [], date(2024, 3, 20))
    assert (stats.billed, stats.unbilled, stats.total_due) == (Decimal("0"), Decimal("0"), Decimal("42"))


def test_store_credit_card_stats(store, sample_accounts, make_transaction):
    card = sample_accounts["card"]
    store.add_transaction(make_transaction(card.id, 120, date=datetime(2024, 2, 10, tzinfo=UTC)))

    stats = store.credit_card_stats(card.id)

    assert stats.billed == Decimal("120")
    assert stats.total_due == Decimal("-120")
    with pytest.raises(NotFoundError):
        store.credit_card_stats("missing")
