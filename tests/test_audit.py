"""Tests for the audit trail."""

import pytest
from datetime import datetime, timedelta, UTC
from decimal import Decimal

from finledger.domain.entities import AuditAction, AuditEntity, TransactionType
from finledger.domain.errors import ValidationError


def test_create_update_delete_entries(store, sample_accounts, make_transaction, clock):
    cash = sample_accounts["cash"]
    txn = store.add_transaction(make_transaction(cash.id, 10))
    clock.now += timedelta(minutes=1)
    updated = store.edit_transaction(txn.id, make_transaction(cash.id, 15))
    clock.now += timedelta(minutes=1)
    store.delete_transaction(txn.id)

    delete, update, create = store.audit_trails

    assert create.action is AuditAction.CREATE
    assert create.previous is None
    assert create.current == txn

    assert update.action is AuditAction.UPDATE
    assert update.previous == txn
    assert update.current == updated

    assert delete.action is AuditAction.DELETE
    assert delete.previous == updated
    assert delete.current is None
    assert all(e.entity_type is AuditEntity.TRANSACTION and e.entity_id == txn.id for e in store.audit_trails)


def test_entries_are_most_recent_first(store, sample_accounts, make_transaction, clock):
    cash = sample_accounts["cash"]
    for minute in range(3):
        clock.now = datetime(2024, 3, 5, 10, minute, tzinfo=UTC)
        store.add_transaction(make_transaction(cash.id, 1))

    timestamps = [entry.timestamp for entry in store.audit_trails]
    assert timestamps == sorted(timestamps, reverse=True)


def test_rejected_mutation_records_nothing(store, sample_accounts, make_transaction):
    store.add_transaction(make_transaction(sample_accounts["cash"].id, 5))
    before = store.audit_trails

    with pytest.raises(ValidationError):
        store.add_transaction(make_transaction("nowhere", 5))

    assert store.audit_trails == before


def test_audit_trail_survives_reload(store, sample_accounts, make_transaction, reload, clock):
    savings, loan = sample_accounts["savings"], sample_accounts["loan"]
    txn = store.add_transaction(make_transaction(savings.id, "12.34", TransactionType.TRANSFER, loan.id))
    clock.now += timedelta(seconds=5)
    store.edit_transaction(txn.id, make_transaction(savings.id, "56.78", TransactionType.TRANSFER, loan.id))

    fresh = reload(store)

    assert fresh.audit_trails == store.audit_trails
    assert fresh.audit_trails[0].previous.amount == Decimal("12.34")
