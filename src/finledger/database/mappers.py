"""Mapper functions to convert between domain models and SQLAlchemy models.

This layer isolates the conversion logic, so the domain entities stay free of
storage concerns such as JSON columns and naive UTC timestamps.
"""

from dataclasses import fields as dataclass_fields
from datetime import datetime, UTC
from enum import Enum
from typing import Any

from finledger.domain import entities as domain
from finledger.domain.entities import Collection
from finledger.domain.snapshot import (
    audit_details_from_dict,
    audit_details_to_dict,
    credit_card_details_from_dict,
    credit_card_details_to_dict,
    holding_from_dict,
    holding_to_dict,
    insurance_details_from_dict,
    insurance_details_to_dict,
    loan_details_from_dict,
    loan_details_to_dict,
)
from finledger.database.models import (
    Account as ORMAccount,
    AuditTrail as ORMAuditTrail,
    Category as ORMCategory,
    Event as ORMEvent,
    EventLog as ORMEventLog,
    EventPlan as ORMEventPlan,
    InvestmentLog as ORMInvestmentLog,
    Mandate as ORMMandate,
    Transaction as ORMTransaction,
)

ORM_MODELS = {
    Collection.ACCOUNTS: ORMAccount,
    Collection.TRANSACTIONS: ORMTransaction,
    Collection.CATEGORIES: ORMCategory,
    Collection.EVENTS: ORMEvent,
    Collection.MANDATES: ORMMandate,
    Collection.AUDIT_TRAILS: ORMAuditTrail,
    Collection.INVESTMENT_LOGS: ORMInvestmentLog,
    Collection.EVENT_LOGS: ORMEventLog,
    Collection.EVENT_PLANS: ORMEventPlan,
}


def _to_utc_naive(value: datetime) -> datetime:
    if value.tzinfo is not None:
        value = value.astimezone(UTC)
    return value.replace(tzinfo=None)


def _from_utc_naive(value: datetime) -> datetime:
    return value.replace(tzinfo=UTC) if value.tzinfo is None else value


def _holdings_to_json(holdings) -> list[dict[str, Any]] | None:
    return [holding_to_dict(h) for h in holdings] or None


def _holdings_from_json(data) -> tuple[domain.Holding, ...]:
    return tuple(holding_from_dict(h) for h in data or ())


# Nested account structures reuse the backup-file codec
_ACCOUNT_JSON_FIELDS = {
    "loan_details": (loan_details_to_dict, loan_details_from_dict),
    "holdings": (_holdings_to_json, _holdings_from_json),
    "credit_card_details": (credit_card_details_to_dict, credit_card_details_from_dict),
    "insurance_details": (insurance_details_to_dict, insurance_details_from_dict),
}


def _account_json_to_domain(name: str, value: Any) -> Any:
    _, decode = _ACCOUNT_JSON_FIELDS[name]
    if name == "holdings":
        return decode(value)
    return decode(value) if value else None


def fields_to_columns(collection: Collection, fields: dict[str, Any]) -> dict[str, Any]:
    """Convert domain field values into ORM attribute values."""
    columns = {}
    for name, value in fields.items():
        if collection is Collection.ACCOUNTS and name in _ACCOUNT_JSON_FIELDS:
            encode, _ = _ACCOUNT_JSON_FIELDS[name]
            columns[name] = encode(value) if value is not None else None
        elif isinstance(value, Enum):
            columns[name] = value.value
        elif isinstance(value, datetime):
            columns[name] = _to_utc_naive(value)
        else:
            columns[name] = value
    return columns


def record_to_columns(collection: Collection, record: Any) -> dict[str, Any]:
    """Convert a whole domain record into ORM constructor arguments."""
    if collection is Collection.AUDIT_TRAILS:
        return {
            "id": record.id,
            "timestamp": _to_utc_naive(record.timestamp),
            "action": record.action.value,
            "entity_type": record.entity_type.value,
            "entity_id": record.entity_id,
            "details": audit_details_to_dict(record),
            "note": record.note,
        }
    values = {f.name: getattr(record, f.name) for f in dataclass_fields(record)}
    return fields_to_columns(collection, values)


def account_to_domain(row: ORMAccount) -> domain.Account:
    """Convert SQLAlchemy Account model to domain Account entity."""
    return domain.Account(
        id=row.id,
        name=row.name,
        type=domain.AccountType(row.type),
        balance=row.balance,
        sub_name=row.sub_name,
        is_primary=row.is_primary,
        group=domain.AccountGroup(row.group) if row.group else None,
        color=row.color,
        account_number=row.account_number,
        customer_id=row.customer_id,
        dmat_id=row.dmat_id,
        loan_details=_account_json_to_domain("loan_details", row.loan_details),
        holdings=_account_json_to_domain("holdings", row.holdings),
        credit_card_details=_account_json_to_domain("credit_card_details", row.credit_card_details),
        insurance_details=_account_json_to_domain("insurance_details", row.insurance_details),
        order=row.order,
        include_in_reports=row.include_in_reports,
        include_in_net_worth=row.include_in_net_worth,
        logs_required=row.logs_required,
    )


def transaction_to_domain(row: ORMTransaction) -> domain.Transaction:
    """Convert SQLAlchemy Transaction model to domain Transaction entity."""
    return domain.Transaction(
        id=row.id,
        account_id=row.account_id,
        to_account_id=row.to_account_id,
        amount=row.amount,
        type=domain.TransactionType(row.type),
        category=row.category,
        date=_from_utc_naive(row.date),
        note=row.note,
        event_id=row.event_id,
        exclude_from_balance=row.exclude_from_balance,
    )


def category_to_domain(row: ORMCategory) -> domain.Category:
    return domain.Category(
        id=row.id,
        name=row.name,
        type=domain.TransactionType(row.type),
        icon=row.icon,
        color=row.color,
        order=row.order,
        limit=row.limit,
        cc_limit=row.cc_limit,
    )


def event_to_domain(row: ORMEvent) -> domain.Event:
    return domain.Event(
        id=row.id,
        name=row.name,
        start_date=row.start_date,
        color=row.color,
        icon=row.icon,
        description=row.description,
        end_date=row.end_date,
        order=row.order,
        include_in_reports=row.include_in_reports,
        show_logs=row.show_logs,
        show_transactions=row.show_transactions,
        show_plans=row.show_plans,
    )


def event_log_to_domain(row: ORMEventLog) -> domain.EventLog:
    return domain.EventLog(
        id=row.id,
        event_id=row.event_id,
        amount=row.amount,
        type=domain.TransactionType(row.type),
        description=row.description,
        date=row.date,
    )


def event_plan_to_domain(row: ORMEventPlan) -> domain.EventPlan:
    return domain.EventPlan(
        id=row.id,
        event_id=row.event_id,
        amount=row.amount,
        description=row.description,
        date=row.date,
    )


def investment_log_to_domain(row: ORMInvestmentLog) -> domain.InvestmentLog:
    return domain.InvestmentLog(
        id=row.id,
        account_id=row.account_id,
        date=row.date,
        type=domain.InvestmentLogType(row.type),
        amount=row.amount,
        note=row.note,
    )


def mandate_to_domain(row: ORMMandate) -> domain.Mandate:
    """Convert SQLAlchemy Mandate model to domain Mandate entity."""
    return domain.Mandate(
        id=row.id,
        source_account_id=row.source_account_id,
        destination_account_id=row.destination_account_id,
        amount=row.amount,
        day_of_month=row.day_of_month,
        description=row.description,
        is_enabled=row.is_enabled,
        last_run_date=row.last_run_date,
        last_skipped_date=row.last_skipped_date,
        order=row.order,
    )


def audit_entry_to_domain(row: ORMAuditTrail) -> domain.AuditEntry:
    """Convert SQLAlchemy AuditTrail model to domain AuditEntry entity."""
    entity_type = domain.AuditEntity(row.entity_type)
    previous, current = audit_details_from_dict(entity_type, row.details or {})
    return domain.AuditEntry(
        id=row.id,
        timestamp=_from_utc_naive(row.timestamp),
        action=domain.AuditAction(row.action),
        entity_type=entity_type,
        entity_id=row.entity_id,
        previous=previous,
        current=current,
        note=row.note,
    )


TO_DOMAIN = {
    Collection.ACCOUNTS: account_to_domain,
    Collection.TRANSACTIONS: transaction_to_domain,
    Collection.CATEGORIES: category_to_domain,
    Collection.EVENTS: event_to_domain,
    Collection.MANDATES: mandate_to_domain,
    Collection.AUDIT_TRAILS: audit_entry_to_domain,
    Collection.INVESTMENT_LOGS: investment_log_to_domain,
    Collection.EVENT_LOGS: event_log_to_domain,
    Collection.EVENT_PLANS: event_plan_to_domain,
}
