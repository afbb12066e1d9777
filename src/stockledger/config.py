"""Runtime settings for the stock ledger, read from the environment."""

import os

from pydantic import BaseModel, Field

DEFAULT_LOCK_TIMEOUT = 5.0
DEFAULT_REORDER_LEVEL = 10


class LedgerSettings(BaseModel):
    """Tunables for lock acquisition and new-record defaults.

    ``lock_timeout`` is the number of seconds a request waits for a record
    lock before it is abandoned. ``None`` waits indefinitely.
    """

    lock_timeout: float | None = Field(default=DEFAULT_LOCK_TIMEOUT, gt=0)
    default_reorder_level: int = Field(default=DEFAULT_REORDER_LEVEL, ge=0)

    @classmethod
    def from_env(cls) -> "LedgerSettings":
        values = {}

        lock_timeout = os.getenv("STOCKLEDGER_LOCK_TIMEOUT")
        if lock_timeout is not None:
            values["lock_timeout"] = None if lock_timeout.lower() in ("", "none") else float(lock_timeout)

        reorder_level = os.getenv("STOCKLEDGER_DEFAULT_REORDER_LEVEL")
        if reorder_level:
            values["default_reorder_level"] = int(reorder_level)

        return cls(**values)
