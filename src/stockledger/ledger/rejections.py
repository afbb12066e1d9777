"""Rejection reasons and transient failures raised by the ledger.

Rejections are expected outcomes: they are returned to the caller as values
and never raised. Transient failures (``LedgerUnavailable``) are raised; the
caller decides whether to retry.
"""

from dataclasses import dataclass
from enum import Enum


class RejectionReason(Enum):
    INVALID_QUANTITY = "InvalidQuantity"
    NO_OP_TRANSFER = "NoOpTransfer"
    INSUFFICIENT_STOCK = "InsufficientStock"
    CROSS_PRODUCT_TRANSFER = "CrossProductTransfer"
    CONCURRENT_MODIFICATION = "ConcurrentModification"
    ITEM_NOT_FOUND = "ItemNotFound"


@dataclass(frozen=True)
class Rejection:
    """Why a transfer was refused. ``available`` is set for InsufficientStock."""

    reason: RejectionReason
    message: str
    available: int | None = None


class LedgerError(Exception):
    """Base class for ledger failures that are not business rejections."""


class LedgerUnavailable(LedgerError):
    """Persistence failed mid-transfer. Nothing was applied; retry later."""


class LockTimeout(LedgerUnavailable):
    """A record lock could not be acquired in time. The request had no effect."""


class InvalidStockDetails(LedgerError):
    """Free-text or record details do not fit the stored fields.

    Raised before any lock is taken or record is opened, so the request has
    no effect. ``messages`` maps each offending field to its errors, in the
    same shape as ``protean.exceptions.ValidationError.messages``.
    """

    def __init__(self, messages):
        self.messages = messages
        super().__init__("; ".join(f"{field}: {', '.join(errors)}" for field, errors in messages.items()))
