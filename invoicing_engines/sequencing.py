"""
RevisionGate -- keeps derived totals from being applied out of order.

Every input change gets a higher revision number. A caller that computes
totals for revision N and only finishes after revision N+1 was applied must
not apply the older result. The gate remembers the last applied revision and
refuses anything older.

Usage:
    gate = RevisionGate()
    revision = gate.next_revision()
    totals = aggregator.calculate(...)
    gate.apply(revision, totals)   # raises StaleRevisionError if superseded
"""

from __future__ import annotations

from typing import Generic, TypeVar

from invoicing_kernel.exceptions import StaleRevisionError
from invoicing_kernel.logging_config import get_logger

logger = get_logger("engines.sequencing")

T = TypeVar("T")


class RevisionGate(Generic[T]):
    """Holds the most recent applied value and its revision."""

    def __init__(self) -> None:
        self._issued = 0
        self._applied_revision: int | None = None
        self._current: T | None = None

    @property
    def applied_revision(self) -> int | None:
        return self._applied_revision

    @property
    def current(self) -> T | None:
        return self._current

    def next_revision(self) -> int:
        """Issue the revision number for a new input snapshot."""
        self._issued += 1
        return self._issued

    def is_stale(self, revision: int) -> bool:
        return self._applied_revision is not None and revision < self._applied_revision

    def apply(self, revision: int, value: T) -> T:
        """
        Record ``value`` as current for ``revision``.

        Re-applying the same revision is allowed; it replaces the value.

        Raises:
            StaleRevisionError: ``revision`` is older than the applied one.
        """
        if self.is_stale(revision):
            logger.warning("stale_revision_rejected", extra={
                "revision": revision,
                "applied_revision": self._applied_revision,
            })
            raise StaleRevisionError(revision, self._applied_revision)
        self._applied_revision = revision
        self._issued = max(self._issued, revision)
        self._current = value
        return value

    def try_apply(self, revision: int, value: T) -> bool:
        """``apply`` that reports a stale revision as ``False`` instead of raising."""
        if self.is_stale(revision):
            logger.debug("stale_revision_dropped", extra={
                "revision": revision,
                "applied_revision": self._applied_revision,
            })
            return False
        self.apply(revision, value)
        return True
