"""SQLAlchemy models for finledger database."""

from sqlalchemy import (
    Column,
    Integer,
    String,
    DateTime,
    Date,
    Numeric,
    Boolean,
    JSON,
    create_engine,
)
from sqlalchemy.orm import declarative_base, sessionmaker, Session

Base = declarative_base()

MONEY = Numeric(18, 2, asdecimal=True)


class Account(Base):
    """Account model. Nested details are stored as JSON."""

    __tablename__ = "accounts"

    id = Column(String, primary_key=True)
    name = Column(String, nullable=False)
    type = Column(String, nullable=False)
    balance = Column(MONEY, nullable=False, default=0)
    sub_name = Column(String, nullable=True)
    is_primary = Column(Boolean, default=False, nullable=False)
    group = Column("account_group", String, nullable=True)
    color = Column(String, nullable=True)
    account_number = Column(String, nullable=True)
    customer_id = Column(String, nullable=True)
    dmat_id = Column(String, nullable=True)
    loan_details = Column(JSON, nullable=True)
    holdings = Column(JSON, nullable=True)
    credit_card_details = Column(JSON, nullable=True)
    insurance_details = Column(JSON, nullable=True)
    order = Column("sort_order", Integer, default=0, nullable=False)
    include_in_reports = Column(Boolean, default=True, nullable=False)
    include_in_net_worth = Column(Boolean, default=True, nullable=False)
    logs_required = Column(Boolean, default=False, nullable=False)


class Transaction(Base):
    """Transaction model.

    ``account_id`` and ``to_account_id`` are deliberately not foreign keys:
    transactions may outlive the accounts they reference.
    """

    __tablename__ = "transactions"

    id = Column(String, primary_key=True)
    account_id = Column(String, nullable=False, index=True)
    to_account_id = Column(String, nullable=True, index=True)
    amount = Column(MONEY, nullable=False)
    type = Column(String, nullable=False)
    category = Column(String, nullable=False, default="")
    date = Column(DateTime, nullable=False)
    note = Column(String, nullable=True)
    event_id = Column(String, nullable=True, index=True)
    exclude_from_balance = Column(Boolean, default=False, nullable=False)


class Category(Base):
    __tablename__ = "categories"

    id = Column(String, primary_key=True)
    name = Column(String, nullable=False)
    type = Column(String, nullable=False)
    icon = Column(String, nullable=False)
    color = Column(String, nullable=False)
    order = Column("sort_order", Integer, default=0, nullable=False)
    limit = Column("spend_limit", MONEY, nullable=True)
    cc_limit = Column(MONEY, nullable=True)


class Event(Base):
    __tablename__ = "events"

    id = Column(String, primary_key=True)
    name = Column(String, nullable=False)
    start_date = Column(Date, nullable=False)
    color = Column(String, nullable=False)
    icon = Column(String, nullable=False)
    description = Column(String, nullable=True)
    end_date = Column(Date, nullable=True)
    order = Column("sort_order", Integer, default=0, nullable=False)
    include_in_reports = Column(Boolean, default=True, nullable=False)
    show_logs = Column(Boolean, default=True, nullable=False)
    show_transactions = Column(Boolean, default=True, nullable=False)
    show_plans = Column(Boolean, default=True, nullable=False)


class EventLog(Base):
    __tablename__ = "event_logs"

    id = Column(String, primary_key=True)
    event_id = Column(String, nullable=True, index=True)
    amount = Column(MONEY, nullable=False)
    type = Column(String, nullable=False)
    description = Column(String, nullable=False, default="")
    date = Column(Date, nullable=False)


class EventPlan(Base):
    __tablename__ = "event_plans"

    id = Column(String, primary_key=True)
    event_id = Column(String, nullable=False, index=True)
    amount = Column(MONEY, nullable=False)
    description = Column(String, nullable=False, default="")
    date = Column(Date, nullable=False)


class InvestmentLog(Base):
    __tablename__ = "investment_logs"

    id = Column(String, primary_key=True)
    account_id = Column(String, nullable=False, index=True)
    date = Column(Date, nullable=False)
    type = Column(String, nullable=False)
    amount = Column(MONEY, nullable=False)
    note = Column(String, nullable=True)


class Mandate(Base):
    """Recurring monthly transfer model."""

    __tablename__ = "mandates"

    id = Column(String, primary_key=True)
    source_account_id = Column(String, nullable=False)
    destination_account_id = Column(String, nullable=False)
    amount = Column(MONEY, nullable=False)
    day_of_month = Column(Integer, nullable=False)
    description = Column(String, nullable=False, default="")
    is_enabled = Column(Boolean, default=True, nullable=False)
    last_run_date = Column(Date, nullable=True)
    last_skipped_date = Column(Date, nullable=True)
    order = Column("sort_order", Integer, default=0, nullable=False)


class AuditTrail(Base):
    """Append-only audit entry model."""

    __tablename__ = "audit_trails"

    id = Column(String, primary_key=True)
    timestamp = Column(DateTime, nullable=False, index=True)
    action = Column(String, nullable=False)
    entity_type = Column(String, nullable=False)
    entity_id = Column(String, nullable=False)
    details = Column(JSON, nullable=False, default=dict)
    note = Column(String, nullable=True)


class Setting(Base):
    """Key/value preference row."""

    __tablename__ = "settings"

    key = Column(String, primary_key=True)
    value = Column(JSON, nullable=True)


def create_session_factory(database_url: str) -> sessionmaker[Session]:
    """Create a SQLAlchemy session factory."""
    connect_args = {}
    if database_url.startswith("sqlite"):
        # Writes run on the persistence worker thread
        connect_args["check_same_thread"] = False
    engine = create_engine(database_url, echo=False, connect_args=connect_args)
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine, expire_on_commit=False)
