"""Domain model entities for finledger.

These are pure data classes representing ledger concepts, independent of the
database schema. The ledger store replaces them wholesale on every change, so
they are frozen.
"""

from dataclasses import dataclass, field, fields, replace
from datetime import datetime, date
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Any, Optional
from uuid import uuid4

from finledger.domain.errors import ValidationError


def new_id() -> str:
    """Return a fresh random identifier."""
    return uuid4().hex


# Smallest unit stored for money columns
CENTS = Decimal("0.01")


def to_money(value: Any) -> Decimal:
    """Round a money value to cents, half up.

    Non-finite values pass through unchanged so validation can reject them.
    """
    amount = value if isinstance(value, Decimal) else Decimal(str(value))
    if not amount.is_finite():
        return amount
    return amount.quantize(CENTS, rounding=ROUND_HALF_UP)


def _round_money_fields(entity: Any, *names: str) -> None:
    for name in names:
        value = getattr(entity, name)
        if value is not None:
            object.__setattr__(entity, name, to_money(value))


class Collection(str, Enum):
    """Persisted collections owned by the ledger store."""

    ACCOUNTS = "accounts"
    TRANSACTIONS = "transactions"
    CATEGORIES = "categories"
    EVENTS = "events"
    MANDATES = "mandates"
    AUDIT_TRAILS = "audit_trails"
    INVESTMENT_LOGS = "investment_logs"
    EVENT_LOGS = "event_logs"
    EVENT_PLANS = "event_plans"


class AccountType(str, Enum):
    FIXED_DEPOSIT = "fixed-deposit"
    SAVINGS = "savings"
    CREDIT = "credit"
    CASH = "cash"
    STOCK = "stock"
    MUTUAL_FUND = "mutual-fund"
    OTHER = "other"
    LAND = "land"
    INSURANCE = "insurance"
    LOAN = "loan"
    ONLINE_WALLET = "online-wallet"


class AccountGroup(str, Enum):
    BANKING = "banking"
    INVESTMENT = "investment"


INVESTMENT_TYPES = frozenset(
    {
        AccountType.STOCK,
        AccountType.MUTUAL_FUND,
        AccountType.LAND,
        AccountType.INSURANCE,
        AccountType.OTHER,
    }
)


class TransactionType(str, Enum):
    INCOME = "income"
    EXPENSE = "expense"
    TRANSFER = "transfer"


class AuditAction(str, Enum):
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


class AuditEntity(str, Enum):
    TRANSACTION = "transaction"
    INVESTMENT_LOG = "investment-log"


@dataclass(frozen=True)
class Holding:
    """A position held in a stock or mutual-fund account."""

    id: str
    name: str
    quantity: Decimal
    purchase_rate: Decimal

    @property
    def purchase_price(self) -> Decimal:
        return self.quantity * self.purchase_rate


@dataclass(frozen=True)
class LoanDetails:
    principal_amount: Decimal
    interest_rate: Decimal  # annual, in percent
    monthly_emi: Decimal
    emis_left: int


@dataclass(frozen=True)
class CreditCardDetails:
    statement_date: int  # day of month
    due_date: int  # day of month


@dataclass(frozen=True)
class InsuranceDetails:
    policy_number: str
    premium_amount: Decimal
    renewal_date: date


@dataclass(frozen=True)
class Account:
    """Account carrying a single cached balance.

    For loan accounts the balance is the outstanding debt stored as a
    positive number.
    """

    id: str
    name: str
    type: AccountType
    balance: Decimal
    sub_name: Optional[str] = None
    is_primary: bool = False
    group: Optional[AccountGroup] = None
    color: Optional[str] = None
    account_number: Optional[str] = None
    customer_id: Optional[str] = None
    dmat_id: Optional[str] = None
    loan_details: Optional[LoanDetails] = None
    holdings: tuple[Holding, ...] = ()
    credit_card_details: Optional[CreditCardDetails] = None
    insurance_details: Optional[InsuranceDetails] = None
    order: int = 0
    include_in_reports: bool = True
    include_in_net_worth: bool = True
    logs_required: bool = False

    def __post_init__(self):
        _round_money_fields(self, "balance")

    @property
    def resolved_group(self) -> AccountGroup:
        """Explicit group, or the group inferred from the account type."""
        if self.group is not None:
            return self.group
        if self.type in INVESTMENT_TYPES:
            return AccountGroup.INVESTMENT
        return AccountGroup.BANKING

    @property
    def is_loan(self) -> bool:
        return self.type is AccountType.LOAN


@dataclass(frozen=True)
class Transaction:
    """Ledger transaction.

    ``category`` is a name snapshot, not a reference. ``event_id`` is a weak
    reference that may dangle.
    """

    id: str
    account_id: str
    amount: Decimal
    type: TransactionType
    category: str
    date: datetime
    to_account_id: Optional[str] = None
    note: Optional[str] = None
    event_id: Optional[str] = None
    exclude_from_balance: bool = False

    def __post_init__(self):
        _round_money_fields(self, "amount")

    def validate_shape(self) -> None:
        """Check amount and source/destination rules.

        Raises:
            ValidationError: If the transaction can never be posted
        """
        if not self.amount.is_finite() or self.amount <= 0:
            raise ValidationError(f"Transaction amount must be positive, got {self.amount}")
        if self.type is TransactionType.TRANSFER:
            if not self.to_account_id:
                raise ValidationError("Transfer requires a destination account")
            if self.to_account_id == self.account_id:
                raise ValidationError("Transfer destination must differ from its source account")
        elif self.to_account_id:
            raise ValidationError(f"A {self.type.value} transaction cannot have a destination account")

    @property
    def account_ids(self) -> tuple[str, ...]:
        """Accounts whose balance this transaction may touch."""
        if self.type is TransactionType.TRANSFER and self.to_account_id:
            return (self.account_id, self.to_account_id)
        return (self.account_id,)


@dataclass(frozen=True)
class Category:
    """Category reference data, looked up by name."""

    id: str
    name: str
    type: TransactionType
    icon: str = "tag"
    color: str = "#64748b"
    order: int = 0
    limit: Optional[Decimal] = None
    cc_limit: Optional[Decimal] = None

    def __post_init__(self):
        _round_money_fields(self, "limit", "cc_limit")


@dataclass(frozen=True)
class Event:
    id: str
    name: str
    start_date: date
    color: str = "#6366f1"
    icon: str = "calendar"
    description: Optional[str] = None
    end_date: Optional[date] = None
    order: int = 0
    include_in_reports: bool = True
    show_logs: bool = True
    show_transactions: bool = True
    show_plans: bool = True


@dataclass(frozen=True)
class EventLog:
    """Manual entry scoped to an event. Never affects balances."""

    id: str
    amount: Decimal
    type: TransactionType
    description: str
    date: date
    event_id: Optional[str] = None

    def __post_init__(self):
        _round_money_fields(self, "amount")


@dataclass(frozen=True)
class EventPlan:
    id: str
    event_id: str
    amount: Decimal
    description: str
    date: date

    def __post_init__(self):
        _round_money_fields(self, "amount")


class InvestmentLogType(str, Enum):
    VALUE = "value"
    PROFIT = "profit"


@dataclass(frozen=True)
class InvestmentLog:
    id: str
    account_id: str
    date: date
    type: InvestmentLogType
    amount: Decimal
    note: Optional[str] = None

    def __post_init__(self):
        _round_money_fields(self, "amount")


@dataclass(frozen=True)
class Mandate:
    """Recurring monthly transfer instruction."""

    id: str
    source_account_id: str
    destination_account_id: str
    amount: Decimal
    day_of_month: int
    description: str
    is_enabled: bool = True
    last_run_date: Optional[date] = None
    last_skipped_date: Optional[date] = None
    order: int = 0

    def __post_init__(self):
        _round_money_fields(self, "amount")

    def validate(self) -> None:
        if self.source_account_id == self.destination_account_id:
            raise ValidationError("Mandate source and destination accounts must differ")
        if not self.amount.is_finite() or self.amount <= 0:
            raise ValidationError(f"Mandate amount must be positive, got {self.amount}")
        if not 1 <= self.day_of_month <= 31:
            raise ValidationError(f"Mandate day of month must be between 1 and 31, got {self.day_of_month}")


@dataclass(frozen=True)
class AuditEntry:
    """Immutable record of one mutation with before/after snapshots."""

    id: str
    timestamp: datetime
    action: AuditAction
    entity_type: AuditEntity
    entity_id: str
    previous: Optional[Any] = None
    current: Optional[Any] = None
    note: Optional[str] = None


DEFAULT_HIDDEN_ACCOUNT_TYPES = ("credit", "land", "insurance")


@dataclass(frozen=True)
class Settings:
    """User preferences exported alongside the data collections."""

    is_balance_hidden: bool = True
    is_accounts_balance_hidden: bool = False
    hidden_account_types: tuple[str, ...] = DEFAULT_HIDDEN_ACCOUNT_TYPES
    report_sort_by: str = "date"
    show_events_in_report: bool = True
    show_logs_in_report: bool = True
    show_manual_in_report: bool = True
    pdf_include_charts: bool = True
    pdf_include_account_summary: bool = True
    pdf_include_transactions: bool = True
    pdf_include_event_summary: bool = True
    auto_backup_enabled: bool = True
    show_investment_accounts: bool = True
    show_audit_trail: bool = True


class _Patch:
    """Mixin for partial updates: ``None`` fields are left unchanged."""

    def changes(self) -> dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self) if getattr(self, f.name) is not None}

    def apply(self, entity):
        return replace(entity, **self.changes())


@dataclass(frozen=True)
class AccountPatch(_Patch):
    name: Optional[str] = None
    type: Optional[AccountType] = None
    balance: Optional[Decimal] = None
    sub_name: Optional[str] = None
    is_primary: Optional[bool] = None
    group: Optional[AccountGroup] = None
    color: Optional[str] = None
    account_number: Optional[str] = None
    customer_id: Optional[str] = None
    dmat_id: Optional[str] = None
    loan_details: Optional[LoanDetails] = None
    holdings: Optional[tuple[Holding, ...]] = None
    credit_card_details: Optional[CreditCardDetails] = None
    insurance_details: Optional[InsuranceDetails] = None
    include_in_reports: Optional[bool] = None
    include_in_net_worth: Optional[bool] = None
    logs_required: Optional[bool] = None


@dataclass(frozen=True)
class CategoryPatch(_Patch):
    name: Optional[str] = None
    type: Optional[TransactionType] = None
    icon: Optional[str] = None
    color: Optional[str] = None
    limit: Optional[Decimal] = None
    cc_limit: Optional[Decimal] = None


@dataclass(frozen=True)
class EventPatch(_Patch):
    name: Optional[str] = None
    start_date: Optional[date] = None
    color: Optional[str] = None
    icon: Optional[str] = None
    description: Optional[str] = None
    end_date: Optional[date] = None
    include_in_reports: Optional[bool] = None
    show_logs: Optional[bool] = None
    show_transactions: Optional[bool] = None
    show_plans: Optional[bool] = None


@dataclass(frozen=True)
class EventLogPatch(_Patch):
    amount: Optional[Decimal] = None
    type: Optional[TransactionType] = None
    description: Optional[str] = None
    date: Optional[date] = None
    event_id: Optional[str] = None


@dataclass(frozen=True)
class EventPlanPatch(_Patch):
    amount: Optional[Decimal] = None
    description: Optional[str] = None
    date: Optional[date] = None


@dataclass(frozen=True)
class MandatePatch(_Patch):
    source_account_id: Optional[str] = None
    destination_account_id: Optional[str] = None
    amount: Optional[Decimal] = None
    day_of_month: Optional[int] = None
    description: Optional[str] = None
    is_enabled: Optional[bool] = None
    last_run_date: Optional[date] = None
    last_skipped_date: Optional[date] = None


@dataclass(frozen=True)
class SettingsPatch(_Patch):
    is_balance_hidden: Optional[bool] = None
    is_accounts_balance_hidden: Optional[bool] = None
    hidden_account_types: Optional[tuple[str, ...]] = None
    report_sort_by: Optional[str] = None
    show_events_in_report: Optional[bool] = None
    show_logs_in_report: Optional[bool] = None
    show_manual_in_report: Optional[bool] = None
    pdf_include_charts: Optional[bool] = None
    pdf_include_account_summary: Optional[bool] = None
    pdf_include_transactions: Optional[bool] = None
    pdf_include_event_summary: Optional[bool] = None
    auto_backup_enabled: Optional[bool] = None
    show_investment_accounts: Optional[bool] = None
    show_audit_trail: Optional[bool] = None


@dataclass(frozen=True)
class CreditCardStats:
    unbilled: Decimal
    billed: Decimal
    total_due: Decimal
