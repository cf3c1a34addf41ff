"""Tests for domain entities."""

import pytest
from dataclasses import FrozenInstanceError
from datetime import datetime, date, UTC
from decimal import Decimal

from finledger.domain.entities import (
    Account,
    AccountGroup,
    AccountPatch,
    AccountType,
    Holding,
    Mandate,
    MandatePatch,
    Settings,
    SettingsPatch,
    Transaction,
    TransactionType,
    new_id,
    to_money,
)
from finledger.domain.errors import DomainError, ValidationError

NOW = datetime(2024, 3, 5, tzinfo=UTC)


def _txn(**overrides):
    values = dict(
        id="t1",
        account_id="a1",
        amount=Decimal("100"),
        type=TransactionType.EXPENSE,
        category="Food",
        date=NOW,
    )
    values.update(overrides)
    return Transaction(**values)


class TestAccount:
    """Tests for Account entity."""

    def test_account_immutability(self):
        """Test that Account entities are immutable."""
        account = Account(id="a1", name="Savings", type=AccountType.SAVINGS, balance=Decimal("10"))
        with pytest.raises(FrozenInstanceError):
            account.balance = Decimal("20")

    @pytest.mark.parametrize(
        "account_type,group",
        [
            (AccountType.SAVINGS, AccountGroup.BANKING),
            (AccountType.LOAN, AccountGroup.BANKING),
            (AccountType.STOCK, AccountGroup.INVESTMENT),
            (AccountType.MUTUAL_FUND, AccountGroup.INVESTMENT),
            (AccountType.OTHER, AccountGroup.INVESTMENT),
        ],
    )
    def test_resolved_group_inferred_from_type(self, account_type, group):
        account = Account(id="a1", name="A", type=account_type, balance=Decimal("0"))
        assert account.resolved_group is group

    def test_explicit_group_wins(self):
        account = Account(
            id="a1", name="A", type=AccountType.OTHER, balance=Decimal("0"), group=AccountGroup.BANKING
        )
        assert account.resolved_group is AccountGroup.BANKING

    def test_is_loan(self):
        assert Account(id="a", name="L", type=AccountType.LOAN, balance=Decimal("0")).is_loan
        assert not Account(id="a", name="S", type=AccountType.SAVINGS, balance=Decimal("0")).is_loan

    def test_holding_purchase_price(self):
        holding = Holding(id="h1", name="ACME", quantity=Decimal("3"), purchase_rate=Decimal("10.50"))
        assert holding.purchase_price == Decimal("31.50")


class TestTransaction:
    """Tests for Transaction shape validation."""

    def test_valid_expense(self):
        _txn().validate_shape()

    def test_valid_transfer(self):
        _txn(type=TransactionType.TRANSFER, to_account_id="a2").validate_shape()

    @pytest.mark.parametrize("amount", ["0", "-5"])
    def test_non_positive_amount_rejected(self, amount):
        with pytest.raises(ValidationError, match="positive"):
            _txn(amount=Decimal(amount)).validate_shape()

    def test_transfer_requires_destination(self):
        with pytest.raises(ValidationError, match="destination"):
            _txn(type=TransactionType.TRANSFER).validate_shape()

    def test_transfer_to_same_account_rejected(self):
        with pytest.raises(ValidationError):
            _txn(type=TransactionType.TRANSFER, to_account_id="a1").validate_shape()

    def test_income_with_destination_rejected(self):
        with pytest.raises(ValidationError):
            _txn(type=TransactionType.INCOME, to_account_id="a2").validate_shape()

    def test_account_ids(self):
        assert _txn().account_ids == ("a1",)
        assert _txn(type=TransactionType.TRANSFER, to_account_id="a2").account_ids == ("a1", "a2")

    def test_validation_error_is_value_error(self):
        """Domain errors keep ValueError compatibility."""
        assert issubclass(ValidationError, DomainError)
        assert issubclass(ValidationError, ValueError)


class TestMandate:
    """Tests for Mandate validation."""

    def _mandate(self, **overrides):
        values = dict(
            id="m1",
            source_account_id="a1",
            destination_account_id="a2",
            amount=Decimal("200"),
            day_of_month=5,
            description="Rent",
        )
        values.update(overrides)
        return Mandate(**values)

    def test_valid(self):
        self._mandate().validate()

    @pytest.mark.parametrize(
        "overrides",
        [
            {"destination_account_id": "a1"},
            {"amount": Decimal("0")},
            {"day_of_month": 0},
            {"day_of_month": 32},
        ],
    )
    def test_invalid(self, overrides):
        with pytest.raises(ValidationError):
            self._mandate(**overrides).validate()


class TestPatches:
    """Tests for partial update patches."""

    def test_unset_fields_are_unchanged(self):
        account = Account(id="a1", name="Savings", type=AccountType.SAVINGS, balance=Decimal("10"))
        updated = AccountPatch(name="Salary").apply(account)
        assert updated.name == "Salary"
        assert updated.balance == Decimal("10")
        assert updated.type is AccountType.SAVINGS

    def test_changes_lists_only_set_fields(self):
        patch = MandatePatch(is_enabled=False, last_run_date=date(2024, 3, 5))
        assert patch.changes() == {"is_enabled": False, "last_run_date": date(2024, 3, 5)}

    def test_false_is_a_change(self):
        settings = SettingsPatch(is_balance_hidden=False).apply(Settings())
        assert settings.is_balance_hidden is False


def test_new_id_is_unique():
    assert new_id() != new_id()


class TestMoney:
    """Tests for cent rounding of money fields."""

    @pytest.mark.parametrize(
        "value,expected",
        [("10.005", "10.01"), ("-10.005", "-10.01"), ("0.004", "0.00"), (7, "7.00"), (0.1, "0.10")],
    )
    def test_to_money(self, value, expected):
        assert str(to_money(value)) == expected

    def test_entities_round_on_construction(self):
        assert _txn(amount=Decimal("0.125")).amount == Decimal("0.13")
        account = Account(id="a1", name="S", type=AccountType.SAVINGS, balance=Decimal("1.005"))
        assert account.balance == Decimal("1.01")

    def test_patch_merge_rounds(self):
        account = Account(id="a1", name="S", type=AccountType.SAVINGS, balance=Decimal("1"))
        assert AccountPatch(balance=Decimal("2.499")).apply(account).balance == Decimal("2.50")

    def test_sub_cent_transaction_fails_validation(self):
        with pytest.raises(ValidationError, match="positive"):
            _txn(amount=Decimal("0.004")).validate_shape()

    def test_non_finite_amount_fails_validation(self):
        with pytest.raises(ValidationError):
            _txn(amount=Decimal("NaN")).validate_shape()
