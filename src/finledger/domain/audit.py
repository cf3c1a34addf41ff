"""Audit trail recorder."""

from datetime import datetime
from typing import Any, Callable, Iterable, Optional

from finledger.database.base import Database
from finledger.database.writer import PersistenceWriter
from finledger.domain.entities import AuditAction, AuditEntity, AuditEntry, Collection, new_id
from finledger.logging_config import get_logger

logger = get_logger("audit")


class AuditRecorder:
    """Append-only sink for mutation records.

    Entries are kept most recent first. The recorder never edits or removes
    an entry once recorded.
    """

    def __init__(self, db: Database, writer: PersistenceWriter, clock: Callable[[], datetime]):
        """Initialize audit recorder.

        Args:
            db: Database the entries are mirrored to
            writer: Persistence writer the mirrored writes are queued on
            clock: Returns the current timestamp
        """
        self.db = db
        self.writer = writer
        self.clock = clock
        self._entries: list[AuditEntry] = []

    def entries(self) -> tuple[AuditEntry, ...]:
        """All entries, most recent first."""
        return tuple(self._entries)

    def replace_all(self, entries: Iterable[AuditEntry]) -> None:
        """Swap the in-memory list wholesale. Used by load and import only."""
        self._entries = list(entries)

    def _record(
        self,
        action: AuditAction,
        entity_id: str,
        entity_type: AuditEntity = AuditEntity.TRANSACTION,
        previous: Optional[Any] = None,
        current: Optional[Any] = None,
        note: Optional[str] = None,
    ) -> AuditEntry:
        entry = AuditEntry(
            id=new_id(),
            timestamp=self.clock(),
            action=action,
            entity_type=entity_type,
            entity_id=entity_id,
            previous=previous,
            current=current,
            note=note,
        )
        self._entries.insert(0, entry)
        self.writer.submit(f"audit {action.value} {entity_id}", self.db.add, Collection.AUDIT_TRAILS, entry)
        logger.debug("Recorded %s of %s %s", action.value, entity_type.value, entity_id)
        return entry

    def record_create(self, current: Any, entity_type: AuditEntity = AuditEntity.TRANSACTION) -> AuditEntry:
        return self._record(AuditAction.CREATE, current.id, entity_type, current=current)

    def record_update(
        self, previous: Any, current: Any, entity_type: AuditEntity = AuditEntity.TRANSACTION
    ) -> AuditEntry:
        return self._record(AuditAction.UPDATE, current.id, entity_type, previous=previous, current=current)

    def record_delete(
        self,
        previous: Any,
        entity_type: AuditEntity = AuditEntity.TRANSACTION,
        note: Optional[str] = None,
    ) -> AuditEntry:
        return self._record(AuditAction.DELETE, previous.id, entity_type, previous=previous, note=note)
