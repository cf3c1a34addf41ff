"""Abstract database interface (the ledger's persistence port)."""

from abc import ABC, abstractmethod
from typing import Any, Sequence

# Import entities directly to avoid circular import through domain/__init__.py
from finledger.domain.entities import Collection, Settings


class Database(ABC):
    """Abstract per-collection record store for finledger.

    Records are domain entities. ``update`` takes a mapping of domain field
    names to new values, as produced by the patch types.
    """

    @abstractmethod
    def connect(self) -> None:
        """Connect to the database."""
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Disconnect from the database."""
        pass

    @abstractmethod
    def initialize_schema(self) -> None:
        """Initialize database schema (create tables)."""
        pass

    @abstractmethod
    def get_all(self, collection: Collection) -> list[Any]:
        """Return every record of a collection."""
        pass

    @abstractmethod
    def add(self, collection: Collection, record: Any) -> str:
        """Insert a record. Returns its ID."""
        pass

    @abstractmethod
    def update(self, collection: Collection, record_id: str, fields: dict[str, Any]) -> None:
        """Update selected fields of a record. Missing records are ignored."""
        pass

    @abstractmethod
    def delete(self, collection: Collection, record_id: str) -> None:
        """Delete a record by ID. Missing records are ignored."""
        pass

    @abstractmethod
    def clear(self, collection: Collection) -> None:
        """Delete every record of a collection."""
        pass

    @abstractmethod
    def bulk_replace(self, collection: Collection, records: Sequence[Any]) -> None:
        """Clear a collection, then insert all given records."""
        pass

    @abstractmethod
    def delete_where(self, collection: Collection, field: str, value: Any) -> int:
        """Delete records whose ``field`` equals ``value``. Returns the count."""
        pass

    @abstractmethod
    def get_settings(self) -> Settings:
        """Return stored settings, or defaults when none were saved."""
        pass

    @abstractmethod
    def save_settings(self, settings: Settings) -> None:
        """Store the settings object."""
        pass
