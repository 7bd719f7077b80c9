"""
OverdueSweeper -- bulk OPEN -> OVERDUE transition.

Contract:
    ``sweep()`` flags every active OPEN document whose due date is before
    today (from the injected Clock) as OVERDUE in one UPDATE statement and
    one transaction, and returns the number of rows flagged.

Invariants enforced:
    - Idempotent: a second sweep on the same day flags nothing.
    - Never touches SETTLED, CANCELLED, OVERDUE or removed documents.
    - Never raises: a failed sweep is rolled back, logged, and reported
      as 0 so the scheduler keeps running.
"""

from __future__ import annotations

from typing import Callable

from sqlalchemy.orm import Session

from backoffice_kernel.domain.clock import Clock, SystemClock
from backoffice_kernel.logging_config import get_logger
from backoffice_modules.documents.repository import DocumentRepository

logger = get_logger("batch.sweeper")


class OverdueSweeper:

    def __init__(
        self,
        session_factory: Callable[[], Session],
        clock: Clock | None = None,
    ):
        self._session_factory = session_factory
        self._clock = clock or SystemClock()

    def sweep(self) -> int:
        """Flag past-due documents; returns how many were flagged."""
        today = self._clock.today()
        session = self._session_factory()
        try:
            count = DocumentRepository(session).mark_overdue(today, self._clock.now())
            session.commit()
        except Exception:
            session.rollback()
            logger.exception("overdue_sweep_failed", extra={"as_of": today})
            return 0
        finally:
            session.close()

        logger.info("overdue_sweep_completed", extra={
            "as_of": today,
            "documents_flagged": count,
        })
        return count
