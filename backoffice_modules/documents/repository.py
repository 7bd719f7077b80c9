"""
Monetary Document Repository (``backoffice_modules.documents.repository``).

Responsibility
--------------
All SQL touching ``monetary_documents``.  Reads return frozen
``MonetaryDocument`` snapshots; writes are guarded ``UPDATE`` statements
whose row count tells the service whether it won the race.

Architecture position
---------------------
**Modules layer** -- persistence.  Operates on a caller-owned Session;
never commits.  Transaction boundaries belong to the service.

Invariants enforced
-------------------
* Soft-deleted rows (``is_active = FALSE``) are invisible to every read
  and write here.
* Status changes are ``UPDATE ... WHERE status IN (allowed)``; a zero row
  count means the row moved under us.
"""

from collections.abc import Iterable, Mapping
from datetime import date, datetime
from enum import Enum
from typing import Any
from uuid import UUID

from sqlalchemy import or_, select, update
from sqlalchemy.orm import Session

from backoffice_kernel.db.types import decimal_from_cents
from backoffice_modules.documents.models import (
    DocumentFilter,
    DocumentStatus,
    MonetaryDocument,
)
from backoffice_modules.documents.orm import MonetaryDocumentModel

_MONEY_COLUMNS = frozenset({"original", "discount", "interest", "penalty", "paid", "balance"})


def _column_values(values: Mapping[str, Any]) -> dict[str, Any]:
    """Translate service-level values (cents, enums) into column values."""
    columns: dict[str, Any] = {}
    for name, value in values.items():
        if name in _MONEY_COLUMNS:
            columns[name] = decimal_from_cents(value)
        elif isinstance(value, Enum):
            columns[name] = value.value
        else:
            columns[name] = value
    return columns


class DocumentRepository:
    """Session-scoped data access for monetary documents."""

    def __init__(self, session: Session):
        self._session = session

    def _active(self):
        return (
            select(MonetaryDocumentModel)
            .where(MonetaryDocumentModel.is_active.is_(True))
            .execution_options(populate_existing=True)
        )

    def find(self, document_id: UUID, *, for_update: bool = False) -> MonetaryDocument | None:
        """Load one active document, optionally locking the row."""
        stmt = self._active().where(MonetaryDocumentModel.id == document_id)
        if for_update:
            stmt = stmt.with_for_update()
        model = self._session.scalars(stmt).one_or_none()
        return model.to_dto() if model is not None else None

    def find_by_transaction(
        self,
        transaction_id: UUID,
        *,
        for_update: bool = False,
    ) -> list[MonetaryDocument]:
        """Active documents derived from one transaction, by installment."""
        stmt = (
            self._active()
            .where(MonetaryDocumentModel.source_transaction_id == transaction_id)
            .order_by(MonetaryDocumentModel.installment_sequence)
        )
        if for_update:
            stmt = stmt.with_for_update()
        return [model.to_dto() for model in self._session.scalars(stmt)]

    def add(self, document: MonetaryDocument, actor_id: UUID | None = None) -> None:
        self._session.add(MonetaryDocumentModel.from_dto(document, created_by_id=actor_id))
        self._session.flush()

    def transition(
        self,
        document_id: UUID,
        allowed: Iterable[DocumentStatus],
        values: Mapping[str, Any],
    ) -> int:
        """
        Guarded update of one active document.

        Returns:
            Number of rows changed: 1 on success, 0 when the document is no
            longer in one of the ``allowed`` statuses.
        """
        stmt = (
            update(MonetaryDocumentModel)
            .where(
                MonetaryDocumentModel.id == document_id,
                MonetaryDocumentModel.is_active.is_(True),
                MonetaryDocumentModel.status.in_([s.value for s in allowed]),
            )
            .values(**_column_values(values))
            .execution_options(synchronize_session=False)
        )
        return self._session.execute(stmt).rowcount

    def list_matching(self, criteria: DocumentFilter) -> list[MonetaryDocument]:
        """Active documents matching ``criteria``, ordered by due date."""
        stmt = self._active()
        if criteria.role is not None:
            stmt = stmt.where(MonetaryDocumentModel.role == criteria.role.value)
        if criteria.counterparty_id is not None:
            stmt = stmt.where(MonetaryDocumentModel.counterparty_id == criteria.counterparty_id)
        if criteria.status is not None:
            stmt = stmt.where(MonetaryDocumentModel.status == criteria.status.value)
        if criteria.due_from is not None:
            stmt = stmt.where(MonetaryDocumentModel.due_date >= criteria.due_from)
        if criteria.due_to is not None:
            stmt = stmt.where(MonetaryDocumentModel.due_date <= criteria.due_to)
        stmt = stmt.order_by(
            MonetaryDocumentModel.due_date.asc(),
            MonetaryDocumentModel.document_number.asc(),
        )
        return [model.to_dto() for model in self._session.scalars(stmt)]

    def list_overdue(self, today: date) -> list[MonetaryDocument]:
        """Active documents already flagged OVERDUE or OPEN past their due date."""
        stmt = (
            self._active()
            .where(
                or_(
                    MonetaryDocumentModel.status == DocumentStatus.OVERDUE.value,
                    (MonetaryDocumentModel.status == DocumentStatus.OPEN.value)
                    & (MonetaryDocumentModel.due_date < today),
                )
            )
            .order_by(MonetaryDocumentModel.due_date.asc())
        )
        return [model.to_dto() for model in self._session.scalars(stmt)]

    def mark_overdue(self, today: date, now: datetime) -> int:
        """Bulk OPEN -> OVERDUE for active documents due before ``today``."""
        stmt = (
            update(MonetaryDocumentModel)
            .where(
                MonetaryDocumentModel.is_active.is_(True),
                MonetaryDocumentModel.status == DocumentStatus.OPEN.value,
                MonetaryDocumentModel.due_date < today,
            )
            .values(status=DocumentStatus.OVERDUE.value, updated_at=now)
            .execution_options(synchronize_session=False)
        )
        return self._session.execute(stmt).rowcount
