"""
Account Lifecycle Service (``backoffice_modules.documents.service``).

Responsibility
--------------
Owns every state change of a payable or receivable: creation (standalone
or from a transaction's installments), full settlement, cancellation,
soft removal, field updates, and the read paths used by callers.

Architecture position
---------------------
**Modules layer** -- ``AccountLifecycleService`` is the sole public entry
point for document mutations.  It consults ``DOCUMENT_WORKFLOW`` for
allowed transitions, the ``CounterpartyDirectory`` port for existence
checks, and ``DocumentRepository`` for SQL.

Invariants enforced
-------------------
* Each public method owns its transaction (``transaction_scope``): commit
  on success, rollback on any exception.
* Validation precedes mutation; a rejected call leaves the row untouched.
* ``balance == original - discount + interest + penalty - paid`` after
  every write; ``balance == 0`` only through ``settle``.
* No partial settlement: ``paid`` must match the recomputed total within
  the configured tolerance.
* Every status change is a guarded UPDATE; losing a race raises
  ``ConcurrentModificationError``.
* SETTLED and CANCELLED documents never change again.

Failure modes
-------------
* ``ValidationError`` family  -> malformed input, unknown counterparty.
* ``DocumentNotFoundError``  -> unknown or removed document.
* ``ConflictError`` family  -> wrong status, partial payment, derived
  document, concurrent modification.
* ``InternalError``  -> database failure; original exception chained.

Usage::

    service = AccountLifecycleService(session_factory, counterparties, clock=clock)
    doc = service.create(NewDocument(...))
    service.settle(doc.id, SettlementRequest(paid=doc.balance, ...))
"""

from __future__ import annotations

from collections.abc import Callable, Iterator, Sequence
from contextlib import contextmanager
from dataclasses import replace
from datetime import date
from uuid import UUID, uuid4

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from backoffice_config.schema import EngineConfig
from backoffice_engines.installments import Installment
from backoffice_kernel.db.engine import transaction_scope
from backoffice_kernel.domain.clock import Clock, SystemClock
from backoffice_kernel.exceptions import (
    ConcurrentModificationError,
    ConflictError,
    CounterpartyNotFoundError,
    DerivedDocumentError,
    DocumentNotFoundError,
    EmptyPaymentTermError,
    InternalError,
    InvalidAmountError,
    InvalidTransitionError,
    PartialSettlementError,
    ValidationError,
)
from backoffice_kernel.logging_config import LogContext, get_logger
from backoffice_modules.documents.models import (
    DOCUMENT_NUMBER_MAX_LENGTH,
    SOURCE_MODEL_MAX_LENGTH,
    SOURCE_NUMBER_MAX_LENGTH,
    SOURCE_SERIES_MAX_LENGTH,
    DerivedFrom,
    DocumentChanges,
    DocumentFilter,
    DocumentKind,
    DocumentRole,
    DocumentStatus,
    MonetaryDocument,
    NewDocument,
    SettlementRequest,
    TransactionRef,
    compute_balance,
)
from backoffice_modules.documents.ports import CounterpartyDirectory
from backoffice_modules.documents.repository import DocumentRepository
from backoffice_modules.documents.workflows import (
    CANCEL,
    CANCEL_TRANSACTION,
    EDITABLE_STATES,
    SETTLE,
    source_statuses,
)

logger = get_logger("modules.documents.service")

REMOVE = "remove"
UPDATE = "update"


class AccountLifecycleService:
    """
    Lifecycle operations for monetary documents.

    Contract:
        Stateless between calls; each call opens its own session from
        ``session_factory``.  All money is integer cents.
    """

    def __init__(
        self,
        session_factory: Callable[[], Session],
        counterparties: CounterpartyDirectory,
        clock: Clock | None = None,
        config: EngineConfig | None = None,
    ):
        self._session_factory = session_factory
        self._counterparties = counterparties
        self._clock = clock or SystemClock()
        self._config = config or EngineConfig()

    # ------------------------------------------------------------------
    # Transaction boundary
    # ------------------------------------------------------------------

    @contextmanager
    def _transaction(self, operation: str) -> Iterator[DocumentRepository]:
        try:
            with transaction_scope(self._session_factory) as session:
                yield DocumentRepository(session)
        except SQLAlchemyError as exc:
            logger.error(
                "document_operation_failed",
                extra={"operation": operation},
                exc_info=True,
            )
            raise InternalError(operation) from exc

    # ------------------------------------------------------------------
    # Creation
    # ------------------------------------------------------------------

    def create(self, new: NewDocument, actor_id: UUID | None = None) -> MonetaryDocument:
        """
        Register a standalone document in status OPEN.

        Raises:
            CounterpartyNotFoundError: Supplier/customer unknown for the role.
            InvalidAmountError: Non-positive original or initial balance, or a
                negative discount/interest/penalty.
            ValidationError: Missing or overlong document number, missing dates.
        """
        self._require_counterparty(new.role, new.counterparty_id)
        if not new.document_number:
            raise ValidationError("Document number is required", field="document_number")
        _require_max_length("document_number", new.document_number, DOCUMENT_NUMBER_MAX_LENGTH)
        if new.issue_date is None:
            raise ValidationError("Issue date is required", field="issue_date")
        if new.due_date is None:
            raise ValidationError("Due date is required", field="due_date")
        if new.original <= 0:
            raise InvalidAmountError("original", new.original, "must be > 0")
        self._require_non_negative(
            discount=new.discount, interest=new.interest, penalty=new.penalty,
        )
        balance = compute_balance(new.original, new.discount, new.interest, new.penalty)
        if balance <= 0:
            raise InvalidAmountError("balance", balance, "initial balance must be > 0")

        now = self._clock.now()
        document = MonetaryDocument(
            id=uuid4(),
            role=new.role,
            counterparty_id=new.counterparty_id,
            document_number=new.document_number,
            kind=new.kind or self._default_kind(),
            issue_date=new.issue_date,
            due_date=new.due_date,
            original=new.original,
            discount=new.discount,
            interest=new.interest,
            penalty=new.penalty,
            paid=0,
            balance=balance,
            status=DocumentStatus.OPEN,
            payment_method_id=new.payment_method_id,
            notes=new.notes,
            created_at=now,
            updated_at=now,
            created_by_id=actor_id,
            updated_by_id=actor_id,
        )

        with self._transaction("create") as repo:
            repo.add(document, actor_id)

        logger.info("document_created", extra={
            "document_id": str(document.id),
            "role": document.role.value,
            "balance": balance,
            "due_date": document.due_date,
        })
        return document

    def create_from_installments(
        self,
        source: TransactionRef,
        installments: Sequence[Installment],
        issue_date: date,
        kind: DocumentKind | None = None,
        actor_id: UUID | None = None,
    ) -> list[MonetaryDocument]:
        """
        Create one derived document per installment of a confirmed
        purchase/sale, all in a single transaction.

        Raises:
            EmptyPaymentTermError: No installments.
            CounterpartyNotFoundError: Counterparty unknown for the role.
            InvalidAmountError: An installment amount is not positive.
            ValidationError: A fiscal identifier too long to store.
            ConflictError: The transaction already has active documents.
        """
        if not installments:
            raise EmptyPaymentTermError()
        self._require_counterparty(source.role, source.counterparty_id)
        for installment in installments:
            if installment.amount <= 0:
                raise InvalidAmountError(
                    "amount", installment.amount,
                    f"installment {installment.sequence_number} must be > 0",
                )
        _require_max_length("model", source.model, SOURCE_MODEL_MAX_LENGTH)
        _require_max_length("series", source.series, SOURCE_SERIES_MAX_LENGTH)
        _require_max_length("number", source.number, SOURCE_NUMBER_MAX_LENGTH)
        last = max(i.sequence_number for i in installments)
        _require_max_length(
            "document_number", f"{source.number}/{last}", DOCUMENT_NUMBER_MAX_LENGTH,
        )

        now = self._clock.now()
        documents = [
            MonetaryDocument(
                id=uuid4(),
                role=source.role,
                counterparty_id=source.counterparty_id,
                document_number=f"{source.number}/{installment.sequence_number}",
                kind=kind or self._default_kind(),
                issue_date=issue_date,
                due_date=installment.due_date,
                original=installment.amount,
                discount=0,
                interest=0,
                penalty=0,
                paid=0,
                balance=installment.amount,
                status=DocumentStatus.OPEN,
                provenance=DerivedFrom(
                    transaction_id=source.transaction_id,
                    model=source.model,
                    series=source.series,
                    number=source.number,
                    counterparty_id=source.counterparty_id,
                    installment_sequence=installment.sequence_number,
                ),
                payment_method_id=installment.payment_method_id,
                created_at=now,
                updated_at=now,
                created_by_id=actor_id,
                updated_by_id=actor_id,
            )
            for installment in installments
        ]

        with LogContext.bind(transaction_id=source.transaction_id):
            with self._transaction("create_from_installments") as repo:
                if repo.find_by_transaction(source.transaction_id):
                    raise ConflictError(
                        f"Transaction {source.transaction_id} already has documents"
                    )
                for document in documents:
                    repo.add(document, actor_id)

            logger.info("derived_documents_created", extra={
                "document_count": len(documents),
                "total": sum(d.balance for d in documents),
            })
        return documents

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def settle(self, document_id: UUID, payment: SettlementRequest) -> MonetaryDocument:
        """
        Settle a document in full.

        Discount/interest/penalty on the request override the stored
        values before the total is recomputed.  ``paid`` must equal that
        total within ``settlement_tolerance_cents``; the stored paid
        amount is the exact total.

        Raises:
            ValidationError: Non-positive paid amount, missing settlement
                date or payment method, negative override.
            DocumentNotFoundError: Unknown or removed document.
            InvalidTransitionError: Document is SETTLED or CANCELLED.
            PartialSettlementError: Paid amount differs from the total.
            ConcurrentModificationError: Row changed status concurrently.
        """
        if payment.paid <= 0:
            raise InvalidAmountError("paid", payment.paid, "must be > 0")
        if payment.settlement_date is None:
            raise ValidationError("Settlement date is required", field="settlement_date")
        if payment.payment_method_id is None:
            raise ValidationError("Payment method is required", field="payment_method_id")
        self._require_non_negative(
            discount=payment.discount, interest=payment.interest, penalty=payment.penalty,
        )

        with LogContext.bind(document_id=document_id, actor_id=payment.settled_by_id):
            with self._transaction(SETTLE) as repo:
                document = self._load(repo, document_id, for_update=True)
                allowed = source_statuses(SETTLE)
                if document.status not in allowed:
                    raise InvalidTransitionError(
                        str(document_id), document.status.value, SETTLE,
                    )

                discount = _override(payment.discount, document.discount)
                interest = _override(payment.interest, document.interest)
                penalty = _override(payment.penalty, document.penalty)
                total = compute_balance(document.original, discount, interest, penalty)
                if total <= 0:
                    raise InvalidAmountError("total", total, "settlement total must be > 0")
                if abs(payment.paid - total) > self._config.settlement_tolerance_cents:
                    logger.warning("document_partial_settlement_rejected", extra={
                        "expected": total,
                        "paid": payment.paid,
                    })
                    raise PartialSettlementError(str(document_id), total, payment.paid)

                changed = repo.transition(document_id, allowed, {
                    "discount": discount,
                    "interest": interest,
                    "penalty": penalty,
                    "paid": total,
                    "balance": 0,
                    "status": DocumentStatus.SETTLED,
                    "settlement_date": payment.settlement_date,
                    "payment_method_id": payment.payment_method_id,
                    "settled_by_id": payment.settled_by_id,
                    "notes": _override(payment.notes, document.notes),
                    "updated_at": self._clock.now(),
                    "updated_by_id": payment.settled_by_id,
                })
                self._require_changed(changed, document_id, SETTLE)
                settled = self._load(repo, document_id)

            logger.info("document_settled", extra={
                "paid": total,
                "settlement_date": payment.settlement_date,
                "previous_status": document.status.value,
            })
        return settled

    def cancel(self, document_id: UUID, actor_id: UUID | None = None) -> MonetaryDocument:
        """
        Cancel a standalone document.  Monetary fields are left untouched.

        Raises:
            DocumentNotFoundError: Unknown or removed document.
            InvalidTransitionError: Document is SETTLED or CANCELLED.
            DerivedDocumentError: Document belongs to a purchase/sale.
            ConcurrentModificationError: Row changed status concurrently.
        """
        with LogContext.bind(document_id=document_id, actor_id=actor_id):
            with self._transaction(CANCEL) as repo:
                document = self._load(repo, document_id, for_update=True)
                allowed = source_statuses(CANCEL)
                if document.status not in allowed:
                    raise InvalidTransitionError(
                        str(document_id), document.status.value, CANCEL,
                    )
                if isinstance(document.provenance, DerivedFrom):
                    raise DerivedDocumentError(
                        str(document_id), str(document.provenance.transaction_id),
                    )

                changed = repo.transition(document_id, allowed, {
                    "status": DocumentStatus.CANCELLED,
                    "updated_at": self._clock.now(),
                    "updated_by_id": actor_id,
                })
                self._require_changed(changed, document_id, CANCEL)
                cancelled = self._load(repo, document_id)

            logger.info("document_cancelled", extra={
                "previous_status": document.status.value,
            })
        return cancelled

    def cancel_for_transaction(
        self,
        transaction_id: UUID,
        actor_id: UUID | None = None,
    ) -> list[MonetaryDocument]:
        """
        Cancel every document derived from a transaction, atomically.

        Already-cancelled documents are left as they are.  If any document
        is SETTLED nothing is cancelled.

        Raises:
            InvalidTransitionError: A derived document is already SETTLED.
            ConcurrentModificationError: A row changed status concurrently.
        """
        with LogContext.bind(transaction_id=transaction_id, actor_id=actor_id):
            with self._transaction(CANCEL_TRANSACTION) as repo:
                documents = repo.find_by_transaction(transaction_id, for_update=True)
                allowed = source_statuses(CANCEL_TRANSACTION)
                for document in documents:
                    if document.status == DocumentStatus.SETTLED:
                        raise InvalidTransitionError(
                            str(document.id), document.status.value, CANCEL_TRANSACTION,
                        )

                now = self._clock.now()
                cancelled_count = 0
                for document in documents:
                    if document.status not in allowed:
                        continue
                    changed = repo.transition(document.id, allowed, {
                        "status": DocumentStatus.CANCELLED,
                        "updated_at": now,
                        "updated_by_id": actor_id,
                    })
                    self._require_changed(changed, document.id, CANCEL_TRANSACTION)
                    cancelled_count += 1
                result = repo.find_by_transaction(transaction_id)

            logger.info("transaction_documents_cancelled", extra={
                "document_count": len(documents),
                "cancelled_count": cancelled_count,
            })
        return result

    def remove(self, document_id: UUID, actor_id: UUID | None = None) -> None:
        """
        Soft-delete a document.  Its status is kept; it simply disappears
        from every lookup.

        Raises:
            DocumentNotFoundError: Unknown or already removed document.
            InvalidTransitionError: Document is SETTLED or CANCELLED.
        """
        with LogContext.bind(document_id=document_id, actor_id=actor_id):
            with self._transaction(REMOVE) as repo:
                document = self._load(repo, document_id, for_update=True)
                if document.status not in EDITABLE_STATES:
                    raise InvalidTransitionError(
                        str(document_id), document.status.value, REMOVE,
                    )
                changed = repo.transition(document_id, EDITABLE_STATES, {
                    "is_active": False,
                    "updated_at": self._clock.now(),
                    "updated_by_id": actor_id,
                })
                self._require_changed(changed, document_id, REMOVE)

            logger.info("document_removed", extra={"status": document.status.value})

    def update(
        self,
        document_id: UUID,
        changes: DocumentChanges,
        actor_id: UUID | None = None,
    ) -> MonetaryDocument:
        """
        Change fields of an OPEN or OVERDUE document.

        Any monetary change recomputes the balance with the creation
        formula.  A change that would zero the balance is refused: that
        is a settlement and must go through ``settle``.  The status is
        not touched, so moving the due date of an OVERDUE document does
        not reopen it.

        Raises:
            ValidationError: Empty change set or invalid field value.
            InvalidAmountError: Resulting balance would be negative.
            ConflictError: Document not editable, or balance would be zero.
        """
        provided = changes.provided()
        if not provided:
            raise ValidationError("No fields to update")
        if "document_number" in provided and not changes.document_number.strip():
            raise ValidationError("Document number cannot be blank", field="document_number")
        if "document_number" in provided:
            _require_max_length("document_number", changes.document_number, DOCUMENT_NUMBER_MAX_LENGTH)
        if changes.original is not None and changes.original <= 0:
            raise InvalidAmountError("original", changes.original, "must be > 0")
        self._require_non_negative(
            discount=changes.discount,
            interest=changes.interest,
            penalty=changes.penalty,
            paid=changes.paid,
        )

        with LogContext.bind(document_id=document_id, actor_id=actor_id):
            with self._transaction(UPDATE) as repo:
                document = self._load(repo, document_id, for_update=True)
                if document.status not in EDITABLE_STATES:
                    raise InvalidTransitionError(
                        str(document_id), document.status.value, UPDATE,
                    )

                values = dict(provided)
                if changes.touches_amounts:
                    candidate = replace(document, **{
                        name: provided[name]
                        for name in DocumentChanges.MONETARY_FIELDS
                        if name in provided
                    })
                    balance = compute_balance(
                        candidate.original,
                        candidate.discount,
                        candidate.interest,
                        candidate.penalty,
                        candidate.paid,
                    )
                    if balance < 0:
                        raise InvalidAmountError("balance", balance, "would become negative")
                    if balance == 0:
                        raise ConflictError(
                            f"Update would settle document {document_id}; use settle instead"
                        )
                    values["balance"] = balance
                values["updated_at"] = self._clock.now()
                values["updated_by_id"] = actor_id

                changed = repo.transition(document_id, EDITABLE_STATES, values)
                self._require_changed(changed, document_id, UPDATE)
                updated = self._load(repo, document_id)

            logger.info("document_updated", extra={
                "fields": sorted(provided),
                "balance": updated.balance,
            })
        return updated

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get(self, document_id: UUID) -> MonetaryDocument:
        """Return an active document or raise DocumentNotFoundError."""
        with self._transaction("get") as repo:
            return self._load(repo, document_id)

    def list_documents(self, criteria: DocumentFilter | None = None) -> list[MonetaryDocument]:
        """Active documents matching ``criteria``, ordered by due date."""
        with self._transaction("list_documents") as repo:
            return repo.list_matching(criteria or DocumentFilter())

    def list_overdue(self) -> list[MonetaryDocument]:
        """
        Active documents that are OVERDUE, or OPEN and already past due
        as of the injected clock's today (the sweep may not have run yet).
        """
        with self._transaction("list_overdue") as repo:
            return repo.list_overdue(self._clock.today())

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _default_kind(self) -> DocumentKind:
        return DocumentKind(self._config.default_document_kind)

    def _require_counterparty(self, role: DocumentRole, counterparty_id: UUID) -> None:
        if counterparty_id is None or self._counterparties.lookup(role, counterparty_id) is None:
            logger.warning("document_counterparty_not_found", extra={
                "role": role.value,
                "counterparty_id": str(counterparty_id),
            })
            raise CounterpartyNotFoundError(role.value, str(counterparty_id))

    @staticmethod
    def _require_non_negative(**amounts: int | None) -> None:
        for field, amount in amounts.items():
            if amount is not None and amount < 0:
                raise InvalidAmountError(field, amount, "must be >= 0")

    @staticmethod
    def _load(
        repo: DocumentRepository,
        document_id: UUID,
        *,
        for_update: bool = False,
    ) -> MonetaryDocument:
        document = repo.find(document_id, for_update=for_update)
        if document is None:
            raise DocumentNotFoundError(str(document_id))
        return document

    @staticmethod
    def _require_changed(rowcount: int, document_id: UUID, action: str) -> None:
        if rowcount != 1:
            logger.warning("document_concurrent_modification", extra={
                "document_id": str(document_id),
                "action": action,
            })
            raise ConcurrentModificationError(str(document_id), action)


def _override(value, current):
    return current if value is None else value


def _require_max_length(field: str, value: str | None, limit: int) -> None:
    if value is not None and len(value) > limit:
        raise ValidationError(
            f"{field} is longer than {limit} characters", field=field,
        )
