"""Shared pytest fixtures for finledger tests."""

import os
import tempfile
from datetime import datetime, UTC
from decimal import Decimal

import pytest

from finledger.database.factories import create_sqlite_database
from finledger.database.writer import PersistenceWriter
from finledger.domain.entities import (
    Account,
    AccountType,
    CreditCardDetails,
    LoanDetails,
    Transaction,
    TransactionType,
    new_id,
)
from finledger.domain.ledger import LedgerStore


class FakeClock:
    """Settable clock returning an aware UTC datetime."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture
def temp_db():
    """Create a temporary database for testing."""
    # Create a temporary file for the database
    fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(fd)

    # Create database
    db = create_sqlite_database(database_path=db_path)
    # Store the path for tests that need it
    db.database_path = db_path
    db.connect()
    db.initialize_schema()

    yield db

    # Cleanup
    db.disconnect()
    if os.path.exists(db_path):
        os.unlink(db_path)


@pytest.fixture
def clock():
    """Clock fixed at 2024-03-05 09:30 UTC."""
    return FakeClock(datetime(2024, 3, 5, 9, 30, tzinfo=UTC))


@pytest.fixture
def store(temp_db, clock):
    """Create a loaded LedgerStore on the temporary database."""
    ledger = LedgerStore(temp_db, writer=PersistenceWriter(temp_db), clock=clock)
    ledger.load()
    yield ledger
    ledger.close()


@pytest.fixture
def reload(temp_db, clock):
    """Return a function that flushes a store and loads a fresh one from the same database."""

    opened = []

    def _reload(current: LedgerStore) -> LedgerStore:
        assert current.flush() == []
        fresh = LedgerStore(temp_db, writer=PersistenceWriter(temp_db), clock=clock)
        fresh.load()
        opened.append(fresh)
        return fresh

    yield _reload

    for fresh in opened:
        fresh.close()


@pytest.fixture
def sample_accounts(store):
    """Create savings, cash, loan and credit card accounts."""
    savings = store.add_account(
        Account(id=new_id(), name="Savings", type=AccountType.SAVINGS, balance=Decimal("1000"))
    )
    cash = store.add_account(Account(id=new_id(), name="Cash", type=AccountType.CASH, balance=Decimal("200")))
    loan = store.add_account(
        Account(
            id=new_id(),
            name="Home Loan",
            type=AccountType.LOAN,
            balance=Decimal("5000"),
            loan_details=LoanDetails(
                principal_amount=Decimal("10000"),
                interest_rate=Decimal("8.5"),
                monthly_emi=Decimal("500"),
                emis_left=12,
            ),
        )
    )
    card = store.add_account(
        Account(
            id=new_id(),
            name="Card",
            type=AccountType.CREDIT,
            balance=Decimal("0"),
            credit_card_details=CreditCardDetails(statement_date=15, due_date=5),
        )
    )
    return {"savings": savings, "cash": cash, "loan": loan, "card": card}


@pytest.fixture
def make_transaction(clock):
    """Return a factory for transactions dated at the fixed clock time."""

    def _make(account_id, amount, txn_type=TransactionType.EXPENSE, to_account_id=None, **kwargs):
        return Transaction(
            id=kwargs.pop("id", new_id()),
            account_id=account_id,
            amount=Decimal(str(amount)),
            type=txn_type,
            category=kwargs.pop("category", "General"),
            date=kwargs.pop("date", clock()),
            to_account_id=to_account_id,
            **kwargs,
        )

    return _make


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    from click.testing import CliRunner

    return CliRunner()
