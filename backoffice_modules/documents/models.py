"""
Monetary Document Domain Models (``backoffice_modules.documents.models``).

Responsibility
--------------
Frozen value objects for payables and receivables: the document snapshot,
its provenance, and the request objects that flow into
``AccountLifecycleService``.

Architecture position
---------------------
**Modules layer** -- pure data definitions.  No I/O, no database.  These
objects flow *into* the service as requests and *out of* it as immutable
snapshots.

Invariants enforced
-------------------
* Money is integer cents on every field.
* ``balance == original - discount + interest + penalty - paid``
  (``compute_balance`` is the single formula).
* Provenance is a tagged variant: a document is either ``Standalone`` or
  ``DerivedFrom`` a transaction, never a bag of nullable source fields.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from uuid import UUID

# Column widths of the fiscal identifiers (see orm.py).
DOCUMENT_NUMBER_MAX_LENGTH = 60
SOURCE_MODEL_MAX_LENGTH = 10
SOURCE_SERIES_MAX_LENGTH = 10
SOURCE_NUMBER_MAX_LENGTH = 30


class DocumentRole(Enum):
    """Which side of the business the obligation sits on."""
    PAYABLE = "payable"
    RECEIVABLE = "receivable"


class DocumentStatus(Enum):
    """Document lifecycle states.  Must align with ``workflows.DOCUMENT_WORKFLOW.states``."""
    OPEN = "open"
    OVERDUE = "overdue"
    SETTLED = "settled"
    CANCELLED = "cancelled"


class DocumentKind(Enum):
    INVOICE = "invoice"
    DUPLICATE = "duplicate"
    BILL = "bill"
    FISCAL_NOTE = "fiscal_note"


@dataclass(frozen=True)
class Standalone:
    """Document entered directly, with no originating transaction."""


@dataclass(frozen=True)
class DerivedFrom:
    """Document generated by confirming one installment of a purchase or sale.

    ``model``/``series``/``number`` identify the fiscal document of the
    originating transaction.
    """
    transaction_id: UUID
    model: str
    series: str
    number: str
    counterparty_id: UUID
    installment_sequence: int


Provenance = Standalone | DerivedFrom


def compute_balance(
    original: int,
    discount: int = 0,
    interest: int = 0,
    penalty: int = 0,
    paid: int = 0,
) -> int:
    """Outstanding amount in cents."""
    return original - discount + interest + penalty - paid


@dataclass(frozen=True)
class MonetaryDocument:
    """A payable or receivable obligation.

    Contract: frozen snapshot returned by the lifecycle service.
    Guarantees: ``balance == total - paid``; ``balance == 0`` only when
    ``status`` is SETTLED.
    """
    id: UUID
    role: DocumentRole
    counterparty_id: UUID
    document_number: str
    kind: DocumentKind
    issue_date: date
    due_date: date
    original: int
    discount: int
    interest: int
    penalty: int
    paid: int
    balance: int
    status: DocumentStatus
    provenance: Provenance = field(default_factory=Standalone)
    settlement_date: date | None = None
    payment_method_id: UUID | None = None
    settled_by_id: UUID | None = None
    notes: str | None = None
    is_active: bool = True
    created_at: datetime | None = None
    updated_at: datetime | None = None
    created_by_id: UUID | None = None
    updated_by_id: UUID | None = None

    @property
    def total(self) -> int:
        """Amount due before any payment."""
        return compute_balance(self.original, self.discount, self.interest, self.penalty)

    @property
    def is_derived(self) -> bool:
        return isinstance(self.provenance, DerivedFrom)


@dataclass(frozen=True)
class NewDocument:
    """Input for creating a standalone document.

    ``kind`` defaults to the configured document kind when omitted.
    """
    role: DocumentRole
    counterparty_id: UUID
    document_number: str
    issue_date: date
    due_date: date
    original: int
    discount: int = 0
    interest: int = 0
    penalty: int = 0
    kind: DocumentKind | None = None
    payment_method_id: UUID | None = None
    notes: str | None = None


@dataclass(frozen=True)
class TransactionRef:
    """Identity of a confirmed purchase/sale whose installments become documents."""
    transaction_id: UUID
    role: DocumentRole
    counterparty_id: UUID
    model: str
    series: str
    number: str


@dataclass(frozen=True)
class SettlementRequest:
    """Full payment (or receipt) of a document.

    ``discount``/``interest``/``penalty`` override the stored values when
    given; ``paid`` must then match the recomputed total.
    """
    paid: int
    settlement_date: date
    payment_method_id: UUID | None
    settled_by_id: UUID | None = None
    discount: int | None = None
    interest: int | None = None
    penalty: int | None = None
    notes: str | None = None


@dataclass(frozen=True)
class DocumentChanges:
    """Partial update of an open document.  ``None`` means "leave as is"."""
    document_number: str | None = None
    kind: DocumentKind | None = None
    issue_date: date | None = None
    due_date: date | None = None
    original: int | None = None
    discount: int | None = None
    interest: int | None = None
    penalty: int | None = None
    paid: int | None = None
    payment_method_id: UUID | None = None
    notes: str | None = None

    MONETARY_FIELDS = ("original", "discount", "interest", "penalty", "paid")

    def provided(self) -> dict[str, object]:
        """Fields explicitly set on this change set."""
        return {
            name: value
            for name, value in vars(self).items()
            if value is not None
        }

    @property
    def touches_amounts(self) -> bool:
        return any(getattr(self, name) is not None for name in self.MONETARY_FIELDS)


@dataclass(frozen=True)
class DocumentFilter:
    """Criteria for listing active documents.  Due-date bounds are inclusive."""
    role: DocumentRole | None = None
    counterparty_id: UUID | None = None
    status: DocumentStatus | None = None
    due_from: date | None = None
    due_to: date | None = None
