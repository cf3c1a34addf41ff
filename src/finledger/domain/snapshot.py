"""Backup snapshot shape and its dictionary codec.

The dictionaries use the camelCase keys of the backup file format. Money is
written as a string so that it reads back as the exact same Decimal.
"""

from dataclasses import dataclass, field, fields
from datetime import datetime, date, UTC
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from dateutil import parser as date_parser

from finledger.domain.entities import (
    Account,
    AccountGroup,
    AccountType,
    AuditAction,
    AuditEntity,
    AuditEntry,
    Category,
    CreditCardDetails,
    Event,
    EventLog,
    EventPlan,
    Holding,
    InsuranceDetails,
    InvestmentLog,
    InvestmentLogType,
    LoanDetails,
    Mandate,
    Settings,
    Transaction,
    TransactionType,
)
from finledger.domain.errors import ValidationError

SNAPSHOT_VERSION = "1.0"


@dataclass(frozen=True)
class Snapshot:
    """In-memory shape of a full export."""

    accounts: tuple[Account, ...] = ()
    transactions: tuple[Transaction, ...] = ()
    categories: tuple[Category, ...] = ()
    events: tuple[Event, ...] = ()
    mandates: tuple[Mandate, ...] = ()
    audit_trails: tuple[AuditEntry, ...] = ()
    investment_logs: tuple[InvestmentLog, ...] = ()
    event_logs: tuple[EventLog, ...] = ()
    event_plans: tuple[EventPlan, ...] = ()
    settings: Settings = field(default_factory=Settings)
    export_date: Optional[datetime] = None
    version: str = SNAPSHOT_VERSION


# Scalar helpers


def _money(value: Optional[Decimal]) -> Optional[str]:
    return None if value is None else str(value)


def _parse_money(value: Any) -> Optional[Decimal]:
    if value is None:
        return None
    try:
        # str() first so floats from hand-written files keep their printed digits
        return Decimal(str(value))
    except InvalidOperation as e:
        raise ValidationError(f"Invalid amount '{value}'") from e


def _iso(value: Optional[date]) -> Optional[str]:
    return None if value is None else value.isoformat()


def _parse_datetime(value: Any) -> Optional[datetime]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    try:
        return date_parser.isoparse(value)
    except (ValueError, TypeError) as e:
        raise ValidationError(f"Invalid timestamp '{value}'") from e


def _parse_date(value: Any) -> Optional[date]:
    if value is None or value == "":
        return None
    if isinstance(value, date) and not isinstance(value, datetime):
        return value
    parsed = _parse_datetime(value)
    return parsed.date() if parsed is not None else None


def _optional(data: dict[str, Any], key: str, convert=None):
    value = data.get(key)
    if value is None:
        return None
    return convert(value) if convert is not None else value


def _required(data: dict[str, Any], key: str, kind: str) -> Any:
    if data.get(key) is None:
        raise ValidationError(f"{kind} record is missing '{key}'")
    return data[key]


def _enum(enum_cls, value: Any, kind: str):
    try:
        return enum_cls(value)
    except ValueError as e:
        raise ValidationError(f"Invalid {kind} '{value}'") from e


def _drop_none(data: dict[str, Any]) -> dict[str, Any]:
    return {key: value for key, value in data.items() if value is not None}


# Accounts


def holding_to_dict(holding: Holding) -> dict[str, Any]:
    return {
        "id": holding.id,
        "name": holding.name,
        "quantity": _money(holding.quantity),
        "purchaseRate": _money(holding.purchase_rate),
        "purchasePrice": _money(holding.purchase_price),
    }


def holding_from_dict(data: dict[str, Any]) -> Holding:
    return Holding(
        id=_required(data, "id", "Holding"),
        name=data.get("name", ""),
        quantity=_parse_money(data.get("quantity", 0)),
        purchase_rate=_parse_money(data.get("purchaseRate", 0)),
    )


def loan_details_to_dict(loan: LoanDetails) -> dict[str, Any]:
    return {
        "principalAmount": _money(loan.principal_amount),
        "interestRate": _money(loan.interest_rate),
        "monthlyEmi": _money(loan.monthly_emi),
        "emisLeft": loan.emis_left,
    }


def loan_details_from_dict(data: dict[str, Any]) -> LoanDetails:
    return LoanDetails(
        principal_amount=_parse_money(data.get("principalAmount", 0)),
        interest_rate=_parse_money(data.get("interestRate", 0)),
        monthly_emi=_parse_money(data.get("monthlyEmi", 0)),
        emis_left=int(data.get("emisLeft", 0)),
    )


def credit_card_details_to_dict(card: CreditCardDetails) -> dict[str, Any]:
    return {"statementDate": card.statement_date, "dueDate": card.due_date}


def credit_card_details_from_dict(data: dict[str, Any]) -> CreditCardDetails:
    return CreditCardDetails(statement_date=int(data["statementDate"]), due_date=int(data["dueDate"]))


def insurance_details_to_dict(insurance: InsuranceDetails) -> dict[str, Any]:
    return {
        "policyNumber": insurance.policy_number,
        "premiumAmount": _money(insurance.premium_amount),
        "renewalDate": _iso(insurance.renewal_date),
    }


def insurance_details_from_dict(data: dict[str, Any]) -> InsuranceDetails:
    return InsuranceDetails(
        policy_number=data.get("policyNumber", ""),
        premium_amount=_parse_money(data.get("premiumAmount", 0)),
        renewal_date=_parse_date(data.get("renewalDate")),
    )


def account_to_dict(account: Account) -> dict[str, Any]:
    loan = account.loan_details
    card = account.credit_card_details
    insurance = account.insurance_details
    return _drop_none(
        {
            "id": account.id,
            "name": account.name,
            "subName": account.sub_name,
            "type": account.type.value,
            "balance": _money(account.balance),
            "group": account.group.value if account.group else None,
            "color": account.color,
            "isPrimary": account.is_primary,
            "accountNumber": account.account_number,
            "customerId": account.customer_id,
            "dmatId": account.dmat_id,
            "loanDetails": loan_details_to_dict(loan) if loan else None,
            "holdings": [holding_to_dict(h) for h in account.holdings] if account.holdings else None,
            "creditCardDetails": credit_card_details_to_dict(card) if card else None,
            "insuranceDetails": insurance_details_to_dict(insurance) if insurance else None,
            "order": account.order,
            "includeInReports": account.include_in_reports,
            "includeInNetWorth": account.include_in_net_worth,
            "logsRequired": account.logs_required,
        }
    )


def account_from_dict(data: dict[str, Any]) -> Account:
    loan = data.get("loanDetails")
    card = data.get("creditCardDetails")
    insurance = data.get("insuranceDetails")
    return Account(
        id=_required(data, "id", "Account"),
        name=_required(data, "name", "Account"),
        type=_enum(AccountType, _required(data, "type", "Account"), "account type"),
        balance=_parse_money(data.get("balance", 0)),
        sub_name=data.get("subName"),
        is_primary=bool(data.get("isPrimary", False)),
        group=_optional(data, "group", lambda v: _enum(AccountGroup, v, "account group")),
        color=data.get("color"),
        account_number=data.get("accountNumber"),
        customer_id=data.get("customerId"),
        dmat_id=data.get("dmatId"),
        loan_details=loan_details_from_dict(loan) if loan else None,
        holdings=tuple(holding_from_dict(h) for h in data.get("holdings") or ()),
        credit_card_details=credit_card_details_from_dict(card) if card else None,
        insurance_details=insurance_details_from_dict(insurance) if insurance else None,
        order=int(data.get("order") or 0),
        include_in_reports=data.get("includeInReports", True) is not False,
        include_in_net_worth=data.get("includeInNetWorth", True) is not False,
        logs_required=bool(data.get("logsRequired", False)),
    )


# Transactions


def transaction_to_dict(transaction: Transaction) -> dict[str, Any]:
    return _drop_none(
        {
            "id": transaction.id,
            "accountId": transaction.account_id,
            "toAccountId": transaction.to_account_id,
            "amount": _money(transaction.amount),
            "type": transaction.type.value,
            "category": transaction.category,
            "date": _iso(transaction.date),
            "note": transaction.note,
            "eventId": transaction.event_id,
            "excludeFromBalance": transaction.exclude_from_balance or None,
        }
    )


def transaction_from_dict(data: dict[str, Any]) -> Transaction:
    return Transaction(
        id=_required(data, "id", "Transaction"),
        account_id=_required(data, "accountId", "Transaction"),
        to_account_id=data.get("toAccountId") or None,
        amount=_parse_money(_required(data, "amount", "Transaction")),
        type=_enum(TransactionType, _required(data, "type", "Transaction"), "transaction type"),
        category=data.get("category", ""),
        date=_parse_datetime(_required(data, "date", "Transaction")),
        note=data.get("note"),
        event_id=data.get("eventId") or None,
        exclude_from_balance=bool(data.get("excludeFromBalance", False)),
    )


# Reference data


def category_to_dict(category: Category) -> dict[str, Any]:
    return _drop_none(
        {
            "id": category.id,
            "name": category.name,
            "type": category.type.value,
            "icon": category.icon,
            "color": category.color,
            "order": category.order,
            "limit": _money(category.limit),
            "ccLimit": _money(category.cc_limit),
        }
    )


def category_from_dict(data: dict[str, Any]) -> Category:
    return Category(
        id=_required(data, "id", "Category"),
        name=_required(data, "name", "Category"),
        type=_enum(TransactionType, data.get("type", "expense"), "category type"),
        icon=data.get("icon", "tag"),
        color=data.get("color", "#64748b"),
        order=int(data.get("order") or 0),
        limit=_optional(data, "limit", _parse_money),
        cc_limit=_optional(data, "ccLimit", _parse_money),
    )


def event_to_dict(event: Event) -> dict[str, Any]:
    return _drop_none(
        {
            "id": event.id,
            "name": event.name,
            "description": event.description,
            "startDate": _iso(event.start_date),
            "endDate": _iso(event.end_date),
            "color": event.color,
            "icon": event.icon,
            "order": event.order,
            "includeInReports": event.include_in_reports,
            "showLogs": event.show_logs,
            "showTransactions": event.show_transactions,
            "showPlans": event.show_plans,
        }
    )


def event_from_dict(data: dict[str, Any]) -> Event:
    return Event(
        id=_required(data, "id", "Event"),
        name=_required(data, "name", "Event"),
        description=data.get("description"),
        start_date=_parse_date(_required(data, "startDate", "Event")),
        end_date=_parse_date(data.get("endDate")),
        color=data.get("color", "#6366f1"),
        icon=data.get("icon", "calendar"),
        order=int(data.get("order") or 0),
        include_in_reports=data.get("includeInReports", True) is not False,
        show_logs=data.get("showLogs", True) is not False,
        show_transactions=data.get("showTransactions", True) is not False,
        show_plans=data.get("showPlans", True) is not False,
    )


def event_log_to_dict(log: EventLog) -> dict[str, Any]:
    return _drop_none(
        {
            "id": log.id,
            "eventId": log.event_id,
            "amount": _money(log.amount),
            "type": log.type.value,
            "description": log.description,
            "date": _iso(log.date),
        }
    )


def event_log_from_dict(data: dict[str, Any]) -> EventLog:
    return EventLog(
        id=_required(data, "id", "Event log"),
        event_id=data.get("eventId"),
        amount=_parse_money(_required(data, "amount", "Event log")),
        type=_enum(TransactionType, data.get("type", "expense"), "event log type"),
        description=data.get("description", ""),
        date=_parse_date(_required(data, "date", "Event log")),
    )


def event_plan_to_dict(plan: EventPlan) -> dict[str, Any]:
    return {
        "id": plan.id,
        "eventId": plan.event_id,
        "amount": _money(plan.amount),
        "description": plan.description,
        "date": _iso(plan.date),
    }


def event_plan_from_dict(data: dict[str, Any]) -> EventPlan:
    return EventPlan(
        id=_required(data, "id", "Event plan"),
        event_id=_required(data, "eventId", "Event plan"),
        amount=_parse_money(_required(data, "amount", "Event plan")),
        description=data.get("description", ""),
        date=_parse_date(_required(data, "date", "Event plan")),
    )


def investment_log_to_dict(log: InvestmentLog) -> dict[str, Any]:
    return _drop_none(
        {
            "id": log.id,
            "accountId": log.account_id,
            "date": _iso(log.date),
            "type": log.type.value,
            "amount": _money(log.amount),
            "note": log.note,
        }
    )


def investment_log_from_dict(data: dict[str, Any]) -> InvestmentLog:
    return InvestmentLog(
        id=_required(data, "id", "Investment log"),
        account_id=_required(data, "accountId", "Investment log"),
        date=_parse_date(_required(data, "date", "Investment log")),
        type=_enum(InvestmentLogType, data.get("type", "value"), "investment log type"),
        amount=_parse_money(_required(data, "amount", "Investment log")),
        note=data.get("note"),
    )


# Mandates and audit trail


def mandate_to_dict(mandate: Mandate) -> dict[str, Any]:
    return _drop_none(
        {
            "id": mandate.id,
            "sourceAccountId": mandate.source_account_id,
            "destinationAccountId": mandate.destination_account_id,
            "amount": _money(mandate.amount),
            "dayOfMonth": mandate.day_of_month,
            "description": mandate.description,
            "isEnabled": mandate.is_enabled,
            "lastRunDate": _iso(mandate.last_run_date),
            "lastSkippedDate": _iso(mandate.last_skipped_date),
            "order": mandate.order,
        }
    )


def mandate_from_dict(data: dict[str, Any]) -> Mandate:
    return Mandate(
        id=_required(data, "id", "Mandate"),
        source_account_id=_required(data, "sourceAccountId", "Mandate"),
        destination_account_id=_required(data, "destinationAccountId", "Mandate"),
        amount=_parse_money(_required(data, "amount", "Mandate")),
        day_of_month=int(_required(data, "dayOfMonth", "Mandate")),
        description=data.get("description", ""),
        is_enabled=bool(data.get("isEnabled", True)),
        last_run_date=_parse_date(data.get("lastRunDate")),
        last_skipped_date=_parse_date(data.get("lastSkippedDate")),
        order=int(data.get("order") or 0),
    )


_AUDIT_CODECS = {
    AuditEntity.TRANSACTION: (transaction_to_dict, transaction_from_dict),
    AuditEntity.INVESTMENT_LOG: (investment_log_to_dict, investment_log_from_dict),
}


def audit_details_to_dict(entry: AuditEntry) -> dict[str, Any]:
    """Return the ``details`` object holding the before/after snapshots."""
    encode, _ = _AUDIT_CODECS[entry.entity_type]
    details = {}
    if entry.previous is not None:
        details["previous"] = encode(entry.previous)
    if entry.current is not None:
        details["current"] = encode(entry.current)
    return details


def audit_details_from_dict(entity_type: AuditEntity, details: dict[str, Any]) -> tuple[Any, Any]:
    _, decode = _AUDIT_CODECS[entity_type]
    previous = details.get("previous")
    current = details.get("current")
    return (
        decode(previous) if previous else None,
        decode(current) if current else None,
    )


def audit_entry_to_dict(entry: AuditEntry) -> dict[str, Any]:
    return _drop_none(
        {
            "id": entry.id,
            "timestamp": _iso(entry.timestamp),
            "action": entry.action.value,
            "entityType": entry.entity_type.value,
            "entityId": entry.entity_id,
            "details": audit_details_to_dict(entry),
            "note": entry.note,
        }
    )


def audit_entry_from_dict(data: dict[str, Any]) -> AuditEntry:
    entity_type = _enum(AuditEntity, data.get("entityType", "transaction"), "audit entity type")
    previous, current = audit_details_from_dict(entity_type, data.get("details") or {})
    return AuditEntry(
        id=_required(data, "id", "Audit entry"),
        timestamp=_parse_datetime(_required(data, "timestamp", "Audit entry")),
        action=_enum(AuditAction, _required(data, "action", "Audit entry"), "audit action"),
        entity_type=entity_type,
        entity_id=_required(data, "entityId", "Audit entry"),
        previous=previous,
        current=current,
        note=data.get("note"),
    )


# Settings


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.capitalize() for part in rest)


def settings_to_dict(settings: Settings) -> dict[str, Any]:
    data = {}
    for f in fields(settings):
        value = getattr(settings, f.name)
        data[_camel(f.name)] = list(value) if isinstance(value, tuple) else value
    return data


def settings_from_dict(data: dict[str, Any]) -> Settings:
    values = {}
    for f in fields(Settings):
        key = _camel(f.name)
        if key in data and data[key] is not None:
            value = data[key]
            values[f.name] = tuple(value) if isinstance(value, list) else value
    return Settings(**values)


# Whole snapshot


REQUIRED_COLLECTIONS = ("accounts", "transactions", "categories")

_COLLECTION_CODECS = {
    "accounts": (account_to_dict, account_from_dict),
    "transactions": (transaction_to_dict, transaction_from_dict),
    "categories": (category_to_dict, category_from_dict),
    "events": (event_to_dict, event_from_dict),
    "mandates": (mandate_to_dict, mandate_from_dict),
    "auditTrails": (audit_entry_to_dict, audit_entry_from_dict),
    "investmentLogs": (investment_log_to_dict, investment_log_from_dict),
    "eventLogs": (event_log_to_dict, event_log_from_dict),
    "eventPlans": (event_plan_to_dict, event_plan_from_dict),
}

_SNAPSHOT_ATTRS = {
    "accounts": "accounts",
    "transactions": "transactions",
    "categories": "categories",
    "events": "events",
    "mandates": "mandates",
    "auditTrails": "audit_trails",
    "investmentLogs": "investment_logs",
    "eventLogs": "event_logs",
    "eventPlans": "event_plans",
}


def validate_snapshot_dict(data: Any) -> None:
    """Reject a backup file before it reaches ``LedgerStore.import_data``.

    Raises:
        ValidationError: If accounts, transactions or categories are missing,
            or there are no accounts at all
    """
    if not isinstance(data, dict):
        raise ValidationError("Backup must be a JSON object")
    for key in REQUIRED_COLLECTIONS:
        if not isinstance(data.get(key), list):
            raise ValidationError(f"Backup is missing the '{key}' list")
    if not data["accounts"]:
        raise ValidationError("Backup contains no accounts")


def snapshot_to_dict(snapshot: Snapshot) -> dict[str, Any]:
    data: dict[str, Any] = {}
    for key, (encode, _) in _COLLECTION_CODECS.items():
        data[key] = [encode(item) for item in getattr(snapshot, _SNAPSHOT_ATTRS[key])]
    data["settings"] = settings_to_dict(snapshot.settings)
    data["exportDate"] = _iso(snapshot.export_date or datetime.now(UTC))
    data["version"] = snapshot.version
    return data


def snapshot_from_dict(data: dict[str, Any]) -> Snapshot:
    validate_snapshot_dict(data)
    collections = {}
    for key, (_, decode) in _COLLECTION_CODECS.items():
        collections[_SNAPSHOT_ATTRS[key]] = tuple(decode(item) for item in data.get(key) or ())
    return Snapshot(
        **collections,
        settings=settings_from_dict(data.get("settings") or {}),
        export_date=_parse_datetime(data.get("exportDate")),
        version=str(data.get("version", SNAPSHOT_VERSION)),
    )
