"""Per-record locks.

Each stock record has its own lock, created on first use. Callers that need
several records pass their keys already sorted in the global order; the
registry acquires them in the order given and releases them in reverse.
"""

import threading
from contextlib import contextmanager

import structlog

from stockledger.ledger.rejections import LockTimeout

logger = structlog.get_logger(__name__)


class RecordLocks:
    def __init__(self, timeout=None):
        self.timeout = timeout
        self._guard = threading.Lock()
        self._locks = {}

    def _lock_for(self, key):
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = self._locks[key] = threading.Lock()
            return lock

    @contextmanager
    def hold(self, *keys):
        """Hold the locks for ``keys`` for the duration of the block.

        Raises ``LockTimeout`` if any lock is not acquired within ``timeout``
        seconds; locks already taken are released first.
        """
        if len(set(keys)) != len(keys):
            raise ValueError(f"Duplicate lock keys: {keys}")

        acquired = []
        try:
            for key in keys:
                lock = self._lock_for(key)
                if not lock.acquire(timeout=-1 if self.timeout is None else self.timeout):
                    logger.warning("Record lock timed out", record_id=key, timeout=self.timeout)
                    raise LockTimeout(f"Timed out waiting for the lock on record {key}")
                acquired.append(lock)
            yield
        finally:
            for lock in reversed(acquired):
                lock.release()
