"""Shared domain error messages and error types."""


class DomainError(ValueError):
    """Base class for domain-level errors.

    Subclasses provide semantic categories while preserving ValueError
    compatibility for existing error handling.
    """


class ValidationError(DomainError):
    """Invalid input, rejected before any state mutation."""


class NotFoundError(DomainError):
    """Requested domain entity does not exist."""


class PersistenceError(DomainError):
    """A backing-store write failed after the in-memory mutation was applied.

    The in-memory state is not rolled back. Callers that need durability
    must retry the write themselves.
    """

    def __init__(self, operation: str, cause: BaseException):
        super().__init__(f"Persistence failed for {operation}: {cause}")
        self.operation = operation
        self.cause = cause


class ImportPartialFailureError(DomainError):
    """Bulk import failed partway; the backing store may be inconsistent.

    Take a backup immediately before importing.
    """

    def __init__(self, cleared: list[str], failed: str, cause: BaseException):
        super().__init__(
            f"Import failed while writing '{failed}' ({cause}); "
            f"collections already cleared: {', '.join(cleared) or 'none'}"
        )
        self.cleared = cleared
        self.failed = failed
        self.cause = cause


def account_not_found(account_id: str) -> str:
    """Return message for missing account."""
    return f"Account {account_id} not found"


def transaction_not_found(transaction_id: str) -> str:
    """Return message for missing transaction."""
    return f"Transaction {transaction_id} not found"


def mandate_not_found(mandate_id: str) -> str:
    """Return message for missing mandate."""
    return f"Mandate {mandate_id} not found"


def entity_not_found(kind: str, entity_id: str) -> str:
    """Return message for any other missing entity."""
    return f"{kind.capitalize()} {entity_id} not found"
