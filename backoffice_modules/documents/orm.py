"""
Monetary Document ORM Model (``backoffice_modules.documents.orm``).

Responsibility
--------------
SQLAlchemy persistence model for payables and receivables.  Maps the
frozen ``MonetaryDocument`` dataclass to the ``monetary_documents`` table.

Architecture position
---------------------
**Modules layer** -- persistence.  Imports from ``backoffice_kernel.db``
and sibling ``models.py``.

Invariants enforced
-------------------
* Money is stored as Numeric(14, 2) and converted to/from integer cents
  at the DTO boundary.
* Provenance is flattened into ``source_*`` columns that are either all
  NULL (standalone) or all set (derived).
"""

from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import Boolean, Date, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from backoffice_kernel.db.base import TrackedBase
from backoffice_kernel.db.types import cents_from_decimal, decimal_from_cents
from backoffice_modules.documents.models import (
    DOCUMENT_NUMBER_MAX_LENGTH,
    SOURCE_MODEL_MAX_LENGTH,
    SOURCE_NUMBER_MAX_LENGTH,
    SOURCE_SERIES_MAX_LENGTH,
)


class MonetaryDocumentModel(TrackedBase):
    """
    ORM model for monetary documents of both roles.

    Guarantees:
        - status, role and kind stored as string enum values.
        - Inactive rows (soft-deleted) are never returned by the repository.
    """

    __tablename__ = "monetary_documents"

    __table_args__ = (
        Index("idx_monetary_documents_status", "status"),
        Index("idx_monetary_documents_due_date", "due_date"),
        Index("idx_monetary_documents_counterparty", "role", "counterparty_id"),
        Index("idx_monetary_documents_source_transaction", "source_transaction_id"),
    )

    role: Mapped[str] = mapped_column(String(20), nullable=False)
    counterparty_id: Mapped[UUID] = mapped_column(nullable=False)
    document_number: Mapped[str] = mapped_column(String(DOCUMENT_NUMBER_MAX_LENGTH), nullable=False)
    kind: Mapped[str] = mapped_column(String(30), nullable=False)
    issue_date: Mapped[date] = mapped_column(Date, nullable=False)
    due_date: Mapped[date] = mapped_column(Date, nullable=False)
    settlement_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    original: Mapped[Decimal] = mapped_column(nullable=False)
    discount: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))
    interest: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))
    penalty: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))
    paid: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))
    balance: Mapped[Decimal] = mapped_column(nullable=False)

    payment_method_id: Mapped[UUID | None] = mapped_column(nullable=True)
    settled_by_id: Mapped[UUID | None] = mapped_column(nullable=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="open")
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    source_transaction_id: Mapped[UUID | None] = mapped_column(nullable=True)
    source_model: Mapped[str | None] = mapped_column(String(SOURCE_MODEL_MAX_LENGTH), nullable=True)
    source_series: Mapped[str | None] = mapped_column(String(SOURCE_SERIES_MAX_LENGTH), nullable=True)
    source_number: Mapped[str | None] = mapped_column(String(SOURCE_NUMBER_MAX_LENGTH), nullable=True)
    installment_sequence: Mapped[int | None] = mapped_column(nullable=True)

    def to_dto(self):
        """Convert ORM model to frozen dataclass."""
        from backoffice_modules.documents.models import (
            DerivedFrom,
            DocumentKind,
            DocumentRole,
            DocumentStatus,
            MonetaryDocument,
            Standalone,
        )

        if self.source_transaction_id is not None:
            provenance = DerivedFrom(
                transaction_id=self.source_transaction_id,
                model=self.source_model,
                series=self.source_series,
                number=self.source_number,
                counterparty_id=self.counterparty_id,
                installment_sequence=self.installment_sequence,
            )
        else:
            provenance = Standalone()

        return MonetaryDocument(
            id=self.id,
            role=DocumentRole(self.role),
            counterparty_id=self.counterparty_id,
            document_number=self.document_number,
            kind=DocumentKind(self.kind),
            issue_date=self.issue_date,
            due_date=self.due_date,
            original=cents_from_decimal(self.original),
            discount=cents_from_decimal(self.discount),
            interest=cents_from_decimal(self.interest),
            penalty=cents_from_decimal(self.penalty),
            paid=cents_from_decimal(self.paid),
            balance=cents_from_decimal(self.balance),
            status=DocumentStatus(self.status),
            provenance=provenance,
            settlement_date=self.settlement_date,
            payment_method_id=self.payment_method_id,
            settled_by_id=self.settled_by_id,
            notes=self.notes,
            is_active=self.is_active,
            created_at=self.created_at,
            updated_at=self.updated_at,
            created_by_id=self.created_by_id,
            updated_by_id=self.updated_by_id,
        )

    @classmethod
    def from_dto(cls, dto, created_by_id: UUID | None = None) -> "MonetaryDocumentModel":
        """Create ORM model from frozen dataclass."""
        from backoffice_modules.documents.models import DerivedFrom

        source = dto.provenance if isinstance(dto.provenance, DerivedFrom) else None
        model = cls(
            id=dto.id,
            role=dto.role.value,
            counterparty_id=dto.counterparty_id,
            document_number=dto.document_number,
            kind=dto.kind.value,
            issue_date=dto.issue_date,
            due_date=dto.due_date,
            settlement_date=dto.settlement_date,
            original=decimal_from_cents(dto.original),
            discount=decimal_from_cents(dto.discount),
            interest=decimal_from_cents(dto.interest),
            penalty=decimal_from_cents(dto.penalty),
            paid=decimal_from_cents(dto.paid),
            balance=decimal_from_cents(dto.balance),
            payment_method_id=dto.payment_method_id,
            settled_by_id=dto.settled_by_id,
            status=dto.status.value,
            notes=dto.notes,
            is_active=dto.is_active,
            source_transaction_id=source.transaction_id if source else None,
            source_model=source.model if source else None,
            source_series=source.series if source else None,
            source_number=source.number if source else None,
            installment_sequence=source.installment_sequence if source else None,
            created_by_id=created_by_id,
            updated_by_id=created_by_id,
        )
        # Leave the server defaults in charge when no timestamp was supplied.
        if dto.created_at is not None:
            model.created_at = dto.created_at
        if dto.updated_at is not None:
            model.updated_at = dto.updated_at
        return model

    def __repr__(self) -> str:
        return f"<MonetaryDocumentModel {self.document_number}: {self.status}>"
