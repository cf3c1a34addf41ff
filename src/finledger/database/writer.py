"""Background mirroring of in-memory mutations to the database.

The ledger store updates its in-memory state first and then hands each
persistence call to a ``PersistenceWriter``. Calls run one at a time, in
submission order, on a single worker thread. A failed call never propagates
into the mutation that queued it: it is logged and collected on the error
channel, where callers inspect it through ``errors`` or ``flush()``.
"""

import threading
from collections import deque
from concurrent.futures import Future, ThreadPoolExecutor, wait
from typing import Any, Callable, Iterable, Optional

from finledger.database.base import Database
from finledger.domain.errors import PersistenceError
from finledger.logging_config import get_logger

logger = get_logger("persistence")

# Oldest failures are dropped past this many undrained errors
MAX_RETAINED_ERRORS = 100


class PersistenceWriter:
    """Serial queue of persistence calls against one database."""

    def __init__(
        self,
        db: Database,
        on_error: Optional[Callable[[PersistenceError], None]] = None,
    ):
        """Initialize persistence writer.

        Args:
            db: Database instance the calls run against
            on_error: Optional callback invoked (on the worker thread) for
                every failed call
        """
        self.db = db
        self.on_error = on_error
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="finledger-persist")
        self._pending: set[Future] = set()
        self._errors: deque[PersistenceError] = deque(maxlen=MAX_RETAINED_ERRORS)
        self._lock = threading.Lock()

    def submit(self, operation: str, fn: Callable[..., Any], *args: Any) -> Future:
        """Queue ``fn(*args)``.

        Args:
            operation: Short description used in logs and errors
            fn: Callable to run, usually a bound ``Database`` method

        Returns:
            Future resolving to the call's result, or to a PersistenceError
            exception when the call failed
        """
        future = self._executor.submit(self._run, operation, fn, args)
        with self._lock:
            self._pending.add(future)
        # Runs at once if the call already finished
        future.add_done_callback(self._forget)
        return future

    def _forget(self, future: Future) -> None:
        with self._lock:
            self._pending.discard(future)

    @property
    def pending(self) -> int:
        """Number of queued or running calls."""
        with self._lock:
            return len(self._pending)

    def _run(self, operation: str, fn: Callable[..., Any], args: tuple) -> Any:
        try:
            return fn(*args)
        except Exception as e:
            error = PersistenceError(operation, e)
            logger.warning("%s", error)
            with self._lock:
                self._errors.append(error)
            if self.on_error is not None:
                self.on_error(error)
            raise error from e

    @property
    def errors(self) -> list[PersistenceError]:
        """Failures not yet drained by ``flush``, at most ``MAX_RETAINED_ERRORS``."""
        with self._lock:
            return list(self._errors)

    def wait(self, futures: Iterable[Future], timeout: Optional[float] = None) -> None:
        """Block until the given calls complete. Does not drain errors."""
        wait(list(futures), timeout=timeout)

    def flush(self, timeout: Optional[float] = None) -> list[PersistenceError]:
        """Wait for every queued call, then drain and return the failures."""
        with self._lock:
            pending = list(self._pending)
        wait(pending, timeout=timeout)
        with self._lock:
            errors = list(self._errors)
            self._errors.clear()
        return errors

    def close(self) -> list[PersistenceError]:
        """Flush and stop the worker thread."""
        errors = self.flush()
        self._executor.shutdown(wait=True)
        return errors
