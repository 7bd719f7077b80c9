"""
FinancialDocumentEngine -- single entry point for callers of the engine.

Responsibility:
    Expose allocation, installment scheduling, document lifecycle and the
    overdue sweep behind one object, and return enriched ``DocumentView``s
    wherever a document comes back.

Architecture position:
    Services -- composition layer.  Owns no rules of its own: allocation and
    scheduling are delegated to ``backoffice_engines``, state changes to
    ``AccountLifecycleService``, display data to ``DocumentEnricher``.

Failure modes:
    - Whatever the delegated component raises (see
      ``backoffice_kernel.exceptions``).
    - ``EmptyPaymentTermError`` when a payment term yields no installments.

Usage:
    engine = FinancialDocumentEngine.from_config(
        get_active_config(), counterparties=directory,
    )
    view = engine.create_document(NewDocument(...))
    engine.settle_document(view.id, SettlementRequest(...))
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from datetime import date
from uuid import UUID

from sqlalchemy.orm import Session

from backoffice_batch.scheduler import SweepScheduler
from backoffice_batch.sweeper import OverdueSweeper
from backoffice_config.schema import EngineConfig
from backoffice_engines.allocation import (
    AllocationResult,
    AncillaryCosts,
    LineItem,
    MonetaryAllocator,
    TransactionTotals,
)
from backoffice_engines.installments import (
    InstallmentSchedule,
    InstallmentScheduler,
    InstallmentSpec,
)
from backoffice_kernel.db.engine import (
    create_tables,
    get_session_factory,
    init_engine_from_url,
)
from backoffice_kernel.domain.clock import Clock, SystemClock
from backoffice_kernel.exceptions import EmptyPaymentTermError
from backoffice_kernel.logging_config import get_logger
from backoffice_modules.documents.enrichment import DocumentEnricher, DocumentView
from backoffice_modules.documents.models import (
    DocumentChanges,
    DocumentFilter,
    DocumentKind,
    NewDocument,
    SettlementRequest,
    TransactionRef,
)
from backoffice_modules.documents.ports import (
    ActorDirectory,
    CounterpartyDirectory,
    PaymentMethodDirectory,
)
from backoffice_modules.documents.service import AccountLifecycleService

logger = get_logger("services.document_engine")


class FinancialDocumentEngine:
    """Facade over the allocator, scheduler, lifecycle service and sweeper."""

    def __init__(
        self,
        session_factory: Callable[[], Session],
        counterparties: CounterpartyDirectory,
        payment_methods: PaymentMethodDirectory | None = None,
        actors: ActorDirectory | None = None,
        clock: Clock | None = None,
        config: EngineConfig | None = None,
    ):
        self._config = config or EngineConfig()
        self._clock = clock or SystemClock()
        self._payment_methods = payment_methods
        self._allocator = MonetaryAllocator(unit_cost_places=self._config.unit_cost_places)
        self._scheduler = InstallmentScheduler()
        self._lifecycle = AccountLifecycleService(
            session_factory, counterparties, clock=self._clock, config=self._config,
        )
        self._enricher = DocumentEnricher(counterparties, payment_methods, actors)
        self._sweeper = OverdueSweeper(session_factory, clock=self._clock)

    @classmethod
    def from_config(
        cls,
        config: EngineConfig,
        counterparties: CounterpartyDirectory,
        payment_methods: PaymentMethodDirectory | None = None,
        actors: ActorDirectory | None = None,
        clock: Clock | None = None,
    ) -> FinancialDocumentEngine:
        """Connect to ``config.database_url``, ensure the schema, build the engine."""
        engine = init_engine_from_url(
            config.database_url,
            echo=config.echo,
            pool_pre_ping=config.pool_pre_ping,
        )
        create_tables(engine)
        return cls(
            get_session_factory(),
            counterparties,
            payment_methods=payment_methods,
            actors=actors,
            clock=clock,
            config=config,
        )

    # ------------------------------------------------------------------
    # Apportionment
    # ------------------------------------------------------------------

    def allocate_overhead(
        self,
        line_items: Sequence[LineItem],
        overhead_total: int,
        exact: bool = True,
    ) -> AllocationResult:
        return self._allocator.allocate(line_items, overhead_total, exact=exact)

    def allocate_costs(
        self,
        line_items: Sequence[LineItem],
        costs: AncillaryCosts,
        exact: bool = True,
    ) -> AllocationResult:
        return self._allocator.allocate_costs(line_items, costs, exact=exact)

    def transaction_totals(
        self,
        line_items: Sequence[LineItem],
        costs: AncillaryCosts,
    ) -> TransactionTotals:
        return self._allocator.totals(line_items, costs)

    # ------------------------------------------------------------------
    # Installments
    # ------------------------------------------------------------------

    def generate_installments(
        self,
        template: Sequence[InstallmentSpec],
        base_date: date,
        total_amount: int,
    ) -> InstallmentSchedule:
        """
        Build an installment schedule, resolving payment-method names.

        Raises:
            EmptyPaymentTermError: The template has no installments.
        """
        schedule = self._scheduler.generate(
            template, base_date, total_amount,
            method_names=self._method_names(template),
        )
        if not schedule.is_valid:
            raise EmptyPaymentTermError()
        return schedule

    def _method_names(self, template: Sequence[InstallmentSpec]) -> dict:
        if self._payment_methods is None:
            return {}
        names = {}
        for spec in template:
            if spec.payment_method_id is None:
                continue
            name = self._payment_methods.name_of(spec.payment_method_id)
            if name is not None:
                names[spec.payment_method_id] = name
        return names

    # ------------------------------------------------------------------
    # Documents
    # ------------------------------------------------------------------

    def create_document(self, new: NewDocument, actor_id: UUID | None = None) -> DocumentView:
        return self._enricher.enrich(self._lifecycle.create(new, actor_id))

    def create_documents_for_transaction(
        self,
        source: TransactionRef,
        template: Sequence[InstallmentSpec],
        base_date: date,
        total_amount: int,
        issue_date: date | None = None,
        kind: DocumentKind | None = None,
        actor_id: UUID | None = None,
    ) -> list[DocumentView]:
        """
        Schedule a confirmed transaction's total and turn every installment
        into a derived document, atomically.
        """
        schedule = self.generate_installments(template, base_date, total_amount)
        documents = self._lifecycle.create_from_installments(
            source,
            schedule.installments,
            issue_date=issue_date or base_date,
            kind=kind,
            actor_id=actor_id,
        )
        return self._enricher.enrich_all(documents)

    def settle_document(self, document_id: UUID, payment: SettlementRequest) -> DocumentView:
        return self._enricher.enrich(self._lifecycle.settle(document_id, payment))

    def cancel_document(self, document_id: UUID, actor_id: UUID | None = None) -> DocumentView:
        return self._enricher.enrich(self._lifecycle.cancel(document_id, actor_id))

    def cancel_transaction_documents(
        self,
        transaction_id: UUID,
        actor_id: UUID | None = None,
    ) -> list[DocumentView]:
        return self._enricher.enrich_all(
            self._lifecycle.cancel_for_transaction(transaction_id, actor_id)
        )

    def remove_document(self, document_id: UUID, actor_id: UUID | None = None) -> None:
        self._lifecycle.remove(document_id, actor_id)

    def update_document(
        self,
        document_id: UUID,
        changes: DocumentChanges,
        actor_id: UUID | None = None,
    ) -> DocumentView:
        return self._enricher.enrich(self._lifecycle.update(document_id, changes, actor_id))

    def get_document(self, document_id: UUID) -> DocumentView:
        return self._enricher.enrich(self._lifecycle.get(document_id))

    def list_documents(self, criteria: DocumentFilter | None = None) -> list[DocumentView]:
        return self._enricher.enrich_all(self._lifecycle.list_documents(criteria))

    def list_overdue(self) -> list[DocumentView]:
        return self._enricher.enrich_all(self._lifecycle.list_overdue())

    # ------------------------------------------------------------------
    # Overdue sweep
    # ------------------------------------------------------------------

    def sweep_overdue(self) -> int:
        return self._sweeper.sweep()

    def build_sweep_scheduler(self) -> SweepScheduler:
        """Scheduler running the sweep at the configured interval (not started)."""
        return SweepScheduler(
            self._sweeper,
            interval_seconds=self._config.overdue_sweep_interval_seconds,
        )
