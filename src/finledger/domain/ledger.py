"""Ledger store: the in-memory owner of every collection.

All mutations go through ``LedgerStore``. Each one updates memory
synchronously, so the change is visible to the next call immediately. The
matching database writes are queued on the ``PersistenceWriter`` and are not
awaited. Transaction mutations also drive the balance engine and the audit
recorder.
"""

from dataclasses import fields, replace
from datetime import date, datetime, UTC
from decimal import Decimal
from typing import Any, Callable, Optional

from finledger.database.base import Database
from finledger.database.writer import PersistenceWriter
from finledger.domain.audit import AuditRecorder
from finledger.domain.balance import apply_transaction, revert_transaction
from finledger.domain.credit_card import credit_card_stats
from finledger.domain.entities import (
    Account,
    AccountGroup,
    AccountPatch,
    AccountType,
    AuditEntity,
    AuditEntry,
    Category,
    CategoryPatch,
    Collection,
    CreditCardStats,
    Event,
    EventLog,
    EventLogPatch,
    EventPatch,
    EventPlan,
    EventPlanPatch,
    InvestmentLog,
    Mandate,
    MandatePatch,
    Settings,
    SettingsPatch,
    Transaction,
)
from finledger.domain.errors import (
    ImportPartialFailureError,
    NotFoundError,
    PersistenceError,
    ValidationError,
    account_not_found,
    entity_not_found,
    mandate_not_found,
    transaction_not_found,
)
from finledger.domain.snapshot import Snapshot
from finledger.logging_config import get_logger

logger = get_logger("ledger")

UNKNOWN_ACCOUNT_NAME = "Unknown"

# Collections that carry a user-controlled ``order`` field
ORDERED_COLLECTIONS = (Collection.ACCOUNTS, Collection.CATEGORIES, Collection.EVENTS, Collection.MANDATES)

# Snapshot attribute holding each collection
_SNAPSHOT_FIELDS = {
    Collection.ACCOUNTS: "accounts",
    Collection.TRANSACTIONS: "transactions",
    Collection.CATEGORIES: "categories",
    Collection.EVENTS: "events",
    Collection.MANDATES: "mandates",
    Collection.AUDIT_TRAILS: "audit_trails",
    Collection.INVESTMENT_LOGS: "investment_logs",
    Collection.EVENT_LOGS: "event_logs",
    Collection.EVENT_PLANS: "event_plans",
}


def _utc_now() -> datetime:
    return datetime.now(UTC)


def _record_fields(record: Any) -> dict[str, Any]:
    return {f.name: getattr(record, f.name) for f in fields(record)}


class LedgerStore:
    """Authoritative single-writer state for accounts, transactions and the rest.

    Construct one per process and pass it to every caller. Mutation methods
    are not safe to call concurrently.
    """

    def __init__(
        self,
        db: Database,
        writer: Optional[PersistenceWriter] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """Initialize ledger store.

        Args:
            db: Database the in-memory state is mirrored to
            writer: Persistence writer to queue writes on (one is created if omitted)
            clock: Returns the current timestamp (defaults to UTC now)
        """
        self.db = db
        self.writer = writer if writer is not None else PersistenceWriter(db)
        self.clock = clock if clock is not None else _utc_now
        self.audit = AuditRecorder(db, self.writer, self.clock)
        self._data: dict[Collection, list[Any]] = {
            collection: [] for collection in Collection if collection is not Collection.AUDIT_TRAILS
        }
        self._settings = Settings()

    # Loading and persistence plumbing

    def load(self) -> None:
        """Fill memory from the database. Call once before any mutation."""
        for collection in self._data:
            self._data[collection] = list(self.db.get_all(collection))
        self.audit.replace_all(self.db.get_all(Collection.AUDIT_TRAILS))
        self._settings = self.db.get_settings()
        logger.info(
            "Loaded %d accounts, %d transactions, %d mandates",
            len(self._data[Collection.ACCOUNTS]),
            len(self._data[Collection.TRANSACTIONS]),
            len(self._data[Collection.MANDATES]),
        )

    def _persist(self, operation: str, fn: Callable[..., Any], *args: Any) -> None:
        self.writer.submit(operation, fn, *args)

    def flush(self) -> list[PersistenceError]:
        """Wait for queued writes and return the failures since the last flush."""
        return self.writer.flush()

    def close(self) -> list[PersistenceError]:
        """Flush pending writes and stop the persistence worker."""
        return self.writer.close()

    # Generic collection helpers

    def _find(self, collection: Collection, entity_id: str) -> Optional[Any]:
        for item in self._data[collection]:
            if item.id == entity_id:
                return item
        return None

    def _require(self, collection: Collection, entity_id: str, message: str) -> Any:
        item = self._find(collection, entity_id)
        if item is None:
            raise NotFoundError(message)
        return item

    def _put(self, collection: Collection, item: Any) -> None:
        items = self._data[collection]
        for index, existing in enumerate(items):
            if existing.id == item.id:
                items[index] = item
                return
        raise NotFoundError(entity_not_found(collection.value, item.id))

    def _insert(self, collection: Collection, item: Any, prepend: bool = False) -> Any:
        if self._find(collection, item.id) is not None:
            raise ValidationError(f"Duplicate id {item.id} in {collection.value}")
        if collection in ORDERED_COLLECTIONS:
            item = replace(item, order=len(self._data[collection]))
        if prepend:
            self._data[collection].insert(0, item)
        else:
            self._data[collection].append(item)
        self._persist(f"add {collection.value} {item.id}", self.db.add, collection, item)
        return item

    def _patch(self, collection: Collection, entity_id: str, patch: Any, message: str) -> Any:
        merged = patch.apply(self._require(collection, entity_id, message))
        self._put(collection, merged)
        self._persist(f"update {collection.value} {entity_id}", self.db.update, collection, entity_id, patch.changes())
        return merged

    def _remove(self, collection: Collection, entity_id: str, message: str) -> Any:
        item = self._require(collection, entity_id, message)
        self._data[collection] = [existing for existing in self._data[collection] if existing.id != entity_id]
        self._persist(f"delete {collection.value} {entity_id}", self.db.delete, collection, entity_id)
        return item

    # Read access

    @property
    def accounts(self) -> tuple[Account, ...]:
        return tuple(self._data[Collection.ACCOUNTS])

    @property
    def transactions(self) -> tuple[Transaction, ...]:
        return tuple(self._data[Collection.TRANSACTIONS])

    @property
    def categories(self) -> tuple[Category, ...]:
        return tuple(self._data[Collection.CATEGORIES])

    @property
    def events(self) -> tuple[Event, ...]:
        return tuple(self._data[Collection.EVENTS])

    @property
    def mandates(self) -> tuple[Mandate, ...]:
        return tuple(self._data[Collection.MANDATES])

    @property
    def investment_logs(self) -> tuple[InvestmentLog, ...]:
        return tuple(self._data[Collection.INVESTMENT_LOGS])

    @property
    def event_logs(self) -> tuple[EventLog, ...]:
        return tuple(self._data[Collection.EVENT_LOGS])

    @property
    def event_plans(self) -> tuple[EventPlan, ...]:
        return tuple(self._data[Collection.EVENT_PLANS])

    @property
    def audit_trails(self) -> tuple[AuditEntry, ...]:
        """Audit entries, most recent first."""
        return self.audit.entries()

    @property
    def settings(self) -> Settings:
        return self._settings

    def get_account(self, account_id: str) -> Optional[Account]:
        return self._find(Collection.ACCOUNTS, account_id)

    def get_transaction(self, transaction_id: str) -> Optional[Transaction]:
        return self._find(Collection.TRANSACTIONS, transaction_id)

    def get_mandate(self, mandate_id: str) -> Optional[Mandate]:
        return self._find(Collection.MANDATES, mandate_id)

    def get_account_balance(self, account_id: str) -> Decimal:
        """Balance of an account, or zero when it does not exist."""
        account = self.get_account(account_id)
        return account.balance if account is not None else Decimal("0")

    def account_name(self, account_id: Optional[str]) -> str:
        """Display name for a possibly dangling account reference."""
        account = self.get_account(account_id) if account_id else None
        return account.name if account is not None else UNKNOWN_ACCOUNT_NAME

    def list_transactions(
        self,
        account_id: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> list[Transaction]:
        """List transactions, newest first.

        Args:
            account_id: Only transactions where this account is source or destination
            start_date: Optional inclusive start date
            end_date: Optional inclusive end date
        """
        result = []
        for transaction in self._data[Collection.TRANSACTIONS]:
            if account_id is not None and account_id not in (transaction.account_id, transaction.to_account_id):
                continue
            day = transaction.date.date()
            if start_date is not None and day < start_date:
                continue
            if end_date is not None and day > end_date:
                continue
            result.append(transaction)
        return sorted(result, key=lambda t: t.date, reverse=True)

    def credit_card_stats(self, account_id: str, today: Optional[date] = None) -> CreditCardStats:
        account = self.get_account(account_id)
        if account is None:
            raise NotFoundError(account_not_found(account_id))
        return credit_card_stats(account, self._data[Collection.TRANSACTIONS], today or self.clock().date())

    # Accounts

    def add_account(self, account: Account) -> Account:
        """Add an account. Its balance is taken as given.

        Returns:
            The stored account, with ``order`` set to its position
        """
        stored = self._insert(Collection.ACCOUNTS, account)
        logger.debug("Added account %s (%s)", stored.id, stored.name)
        return stored

    def update_account(self, account_id: str, patch: AccountPatch) -> Account:
        """Merge ``patch`` into an account.

        The balance engine is not involved: a patched balance is written as is.

        Raises:
            NotFoundError: If the account does not exist
        """
        return self._patch(Collection.ACCOUNTS, account_id, patch, account_not_found(account_id))

    def toggle_account_report_inclusion(self, account_id: str) -> Account:
        account = self._require(Collection.ACCOUNTS, account_id, account_not_found(account_id))
        return self.update_account(account_id, AccountPatch(include_in_reports=not account.include_in_reports))

    def delete_account(self, account_id: str) -> list[Transaction]:
        """Delete an account and every transaction referencing it.

        Balances of other accounts are not recomputed, even when a deleted
        transfer had credited or debited them.

        Returns:
            The transactions removed by the cascade

        Raises:
            NotFoundError: If the account does not exist
        """
        self._remove(Collection.ACCOUNTS, account_id, account_not_found(account_id))

        kept, removed = [], []
        for transaction in self._data[Collection.TRANSACTIONS]:
            if account_id in (transaction.account_id, transaction.to_account_id):
                removed.append(transaction)
            else:
                kept.append(transaction)
        self._data[Collection.TRANSACTIONS] = kept

        self._persist(
            f"delete transactions from {account_id}",
            self.db.delete_where,
            Collection.TRANSACTIONS,
            "account_id",
            account_id,
        )
        self._persist(
            f"delete transactions to {account_id}",
            self.db.delete_where,
            Collection.TRANSACTIONS,
            "to_account_id",
            account_id,
        )
        logger.debug("Deleted account %s and %d transactions", account_id, len(removed))
        return removed

    # Transactions

    def _account_map(self) -> dict[str, Account]:
        return {account.id: account for account in self._data[Collection.ACCOUNTS]}

    def _set_balances(self, touched: dict[str, Account]) -> None:
        for account in touched.values():
            self._put(Collection.ACCOUNTS, account)

    def _persist_balances(self, touched: dict[str, Account]) -> None:
        for account in touched.values():
            self._persist(
                f"update balance {account.id}",
                self.db.update,
                Collection.ACCOUNTS,
                account.id,
                {"balance": account.balance},
            )

    def add_transaction(self, transaction: Transaction) -> Transaction:
        """Post a transaction: move balances, store it, record a create entry.

        Raises:
            ValidationError: If the amount or the transfer legs are invalid,
                or an account does not exist. Nothing is changed.
        """
        transaction.validate_shape()
        accounts = self._account_map()
        for account_id in transaction.account_ids:
            if account_id not in accounts:
                raise ValidationError(account_not_found(account_id))
        if self._find(Collection.TRANSACTIONS, transaction.id) is not None:
            raise ValidationError(f"Duplicate transaction id {transaction.id}")

        touched = apply_transaction(accounts, transaction)
        self._set_balances(touched)
        self._persist_balances(touched)

        self._data[Collection.TRANSACTIONS].append(transaction)
        self._persist(f"add transaction {transaction.id}", self.db.add, Collection.TRANSACTIONS, transaction)

        self.audit.record_create(transaction)
        logger.debug(
            "Added %s transaction %s of %s", transaction.type.value, transaction.id, transaction.amount
        )
        return transaction

    def edit_transaction(self, transaction_id: str, updated: Transaction) -> Transaction:
        """Replace a transaction, reverting its old effect and applying the new one.

        The revert runs against the current balances and the apply against
        the reverted ones, so any combination of changed fields converges in
        a single pass.

        Raises:
            NotFoundError: If the transaction does not exist
            ValidationError: If the new transaction is invalid or names an
                unknown account that the old one did not reference
        """
        old = self._require(Collection.TRANSACTIONS, transaction_id, transaction_not_found(transaction_id))
        if updated.id != transaction_id:
            updated = replace(updated, id=transaction_id)
        updated.validate_shape()

        accounts = self._account_map()
        for account_id in updated.account_ids:
            if account_id not in accounts and account_id not in old.account_ids:
                raise ValidationError(account_not_found(account_id))

        reverted = revert_transaction(accounts, old)
        accounts.update(reverted)
        applied = apply_transaction(accounts, updated)
        touched = {**reverted, **applied}
        self._set_balances(touched)

        self._put(Collection.TRANSACTIONS, updated)
        self._persist(
            f"update transaction {transaction_id}",
            self.db.update,
            Collection.TRANSACTIONS,
            transaction_id,
            _record_fields(updated),
        )
        self.audit.record_update(old, updated)
        self._persist_balances(touched)
        logger.debug("Edited transaction %s", transaction_id)
        return updated

    def delete_transaction(self, transaction_id: str) -> Transaction:
        """Revert a transaction's effect and remove it.

        Raises:
            NotFoundError: If the transaction does not exist
        """
        old = self._require(Collection.TRANSACTIONS, transaction_id, transaction_not_found(transaction_id))

        touched = revert_transaction(self._account_map(), old)
        self._set_balances(touched)

        self._remove(Collection.TRANSACTIONS, transaction_id, transaction_not_found(transaction_id))
        self.audit.record_delete(old)
        self._persist_balances(touched)
        logger.debug("Deleted transaction %s", transaction_id)
        return old

    # Categories

    def add_category(self, category: Category) -> Category:
        return self._insert(Collection.CATEGORIES, category)

    def update_category(self, category_id: str, patch: CategoryPatch) -> Category:
        """Update a category. Transactions keep the category name they were saved with."""
        return self._patch(Collection.CATEGORIES, category_id, patch, entity_not_found("category", category_id))

    def delete_category(self, category_id: str) -> Category:
        return self._remove(Collection.CATEGORIES, category_id, entity_not_found("category", category_id))

    # Events

    def add_event(self, event: Event) -> Event:
        return self._insert(Collection.EVENTS, event)

    def update_event(self, event_id: str, patch: EventPatch) -> Event:
        return self._patch(Collection.EVENTS, event_id, patch, entity_not_found("event", event_id))

    def toggle_event_report_inclusion(self, event_id: str) -> Event:
        event = self._require(Collection.EVENTS, event_id, entity_not_found("event", event_id))
        return self.update_event(event_id, EventPatch(include_in_reports=not event.include_in_reports))

    def delete_event(self, event_id: str) -> Event:
        """Delete an event and detach, but keep, its transactions."""
        event = self._remove(Collection.EVENTS, event_id, entity_not_found("event", event_id))
        transactions = self._data[Collection.TRANSACTIONS]
        for index, transaction in enumerate(transactions):
            if transaction.event_id == event_id:
                transactions[index] = replace(transaction, event_id=None)
                self._persist(
                    f"detach transaction {transaction.id}",
                    self.db.update,
                    Collection.TRANSACTIONS,
                    transaction.id,
                    {"event_id": None},
                )
        return event

    def add_event_log(self, log: EventLog) -> EventLog:
        return self._insert(Collection.EVENT_LOGS, log, prepend=True)

    def update_event_log(self, log_id: str, patch: EventLogPatch) -> EventLog:
        return self._patch(Collection.EVENT_LOGS, log_id, patch, entity_not_found("event log", log_id))

    def delete_event_log(self, log_id: str) -> EventLog:
        return self._remove(Collection.EVENT_LOGS, log_id, entity_not_found("event log", log_id))

    def add_event_plan(self, plan: EventPlan) -> EventPlan:
        return self._insert(Collection.EVENT_PLANS, plan, prepend=True)

    def update_event_plan(self, plan_id: str, patch: EventPlanPatch) -> EventPlan:
        return self._patch(Collection.EVENT_PLANS, plan_id, patch, entity_not_found("event plan", plan_id))

    def delete_event_plan(self, plan_id: str) -> EventPlan:
        return self._remove(Collection.EVENT_PLANS, plan_id, entity_not_found("event plan", plan_id))

    # Investment logs

    def add_investment_log(self, log: InvestmentLog) -> InvestmentLog:
        return self._insert(Collection.INVESTMENT_LOGS, log, prepend=True)

    def delete_investment_log(self, log_id: str, reason: Optional[str] = None) -> InvestmentLog:
        """Delete an investment log, keeping a copy in the audit trail."""
        log = self._remove(Collection.INVESTMENT_LOGS, log_id, entity_not_found("investment log", log_id))
        self.audit.record_delete(log, entity_type=AuditEntity.INVESTMENT_LOG, note=reason)
        return log

    # Mandates

    def add_mandate(self, mandate: Mandate) -> Mandate:
        """Add a mandate.

        Raises:
            ValidationError: If the mandate is invalid or names an unknown account
        """
        mandate.validate()
        for account_id in (mandate.source_account_id, mandate.destination_account_id):
            if self.get_account(account_id) is None:
                raise ValidationError(account_not_found(account_id))
        return self._insert(Collection.MANDATES, mandate)

    def update_mandate(self, mandate_id: str, patch: MandatePatch) -> Mandate:
        current = self._require(Collection.MANDATES, mandate_id, mandate_not_found(mandate_id))
        patch.apply(current).validate()
        return self._patch(Collection.MANDATES, mandate_id, patch, mandate_not_found(mandate_id))

    def delete_mandate(self, mandate_id: str) -> Mandate:
        return self._remove(Collection.MANDATES, mandate_id, mandate_not_found(mandate_id))

    # Ordering

    def reorder(self, collection: Collection, ordered_ids: list[str]) -> None:
        """Set ``order`` to each listed entity's index in ``ordered_ids``.

        Entities not listed keep their order. Only changed entities are
        written.

        Raises:
            ValidationError: If the collection has no order field
        """
        if collection not in ORDERED_COLLECTIONS:
            raise ValidationError(f"Collection '{collection.value}' cannot be reordered")
        positions = {entity_id: index for index, entity_id in enumerate(ordered_ids)}
        items = self._data[collection]
        for index, item in enumerate(items):
            position = positions.get(item.id)
            if position is None or item.order == position:
                continue
            items[index] = replace(item, order=position)
            self._persist(
                f"reorder {collection.value} {item.id}",
                self.db.update,
                collection,
                item.id,
                {"order": position},
            )

    # Settings

    def update_settings(self, patch: SettingsPatch) -> Settings:
        self._settings = patch.apply(self._settings)
        self._persist("save settings", self.db.save_settings, self._settings)
        return self._settings

    @staticmethod
    def _visibility_key(account_type: AccountType, group: Optional[AccountGroup]) -> str:
        if account_type is AccountType.OTHER and group is not None:
            return f"{group.value}-other"
        return account_type.value

    def is_account_type_hidden(self, account_type: AccountType, group: Optional[AccountGroup] = None) -> bool:
        return self._visibility_key(account_type, group) in self._settings.hidden_account_types

    def toggle_account_type_visibility(
        self, account_type: AccountType, group: Optional[AccountGroup] = None
    ) -> Settings:
        key = self._visibility_key(account_type, group)
        hidden = self._settings.hidden_account_types
        if key in hidden:
            hidden = tuple(t for t in hidden if t != key)
        else:
            hidden = hidden + (key,)
        return self.update_settings(SettingsPatch(hidden_account_types=hidden))

    # Backup

    def export_snapshot(self) -> Snapshot:
        """Return every collection plus settings. No side effects."""
        return Snapshot(
            accounts=self.accounts,
            transactions=self.transactions,
            categories=self.categories,
            events=self.events,
            mandates=self.mandates,
            audit_trails=self.audit_trails,
            investment_logs=self.investment_logs,
            event_logs=self.event_logs,
            event_plans=self.event_plans,
            settings=self._settings,
            export_date=self.clock(),
        )

    def _write_now(self, operation: str, fn: Callable[..., Any], *args: Any) -> None:
        self.writer.submit(operation, fn, *args).result()

    def import_data(self, snapshot: Snapshot) -> None:
        """Replace all data with ``snapshot``.

        Balances and audit entries are taken as given; the balance engine
        and audit recorder are not run. Memory is swapped only after every
        database write succeeded. The writes are not atomic: a failure
        midway leaves the database partly cleared, so take a backup first.

        Raises:
            ImportPartialFailureError: If any clear or write fails
        """
        cleared: list[str] = []
        operation = ""
        try:
            for collection in Collection:
                operation = f"clear {collection.value}"
                self._write_now(operation, self.db.clear, collection)
                cleared.append(collection.value)
            for collection, attr in _SNAPSHOT_FIELDS.items():
                operation = f"write {collection.value}"
                self._write_now(operation, self.db.bulk_replace, collection, getattr(snapshot, attr))
            operation = "write settings"
            self._write_now(operation, self.db.save_settings, snapshot.settings)
        except PersistenceError as e:
            logger.error("Import failed at %s: %s", operation, e.cause)
            raise ImportPartialFailureError(cleared, operation, e.cause) from e

        for collection, attr in _SNAPSHOT_FIELDS.items():
            if collection is Collection.AUDIT_TRAILS:
                self.audit.replace_all(snapshot.audit_trails)
            else:
                self._data[collection] = list(getattr(snapshot, attr))
        self._settings = snapshot.settings
        logger.info(
            "Imported %d accounts, %d transactions, %d categories",
            len(snapshot.accounts),
            len(snapshot.transactions),
            len(snapshot.categories),
        )
