"""
Read-side enrichment (``backoffice_modules.documents.enrichment``).

Responsibility
--------------
Compose a ``MonetaryDocument`` snapshot with master-data display fields
(counterparty name and tax id, payment-method name, settling actor name)
for callers that render documents.  Runs after the lifecycle operation;
the lifecycle service itself never sees display data.

Failure modes
-------------
* Unresolvable references are reported as ``None``; enrichment never
  fails a request that already succeeded.
"""

from dataclasses import dataclass

from backoffice_modules.documents.models import MonetaryDocument
from backoffice_modules.documents.ports import (
    ActorDirectory,
    CounterpartyDirectory,
    PaymentMethodDirectory,
)


@dataclass(frozen=True)
class DocumentView:
    """A document plus the display fields of what it references."""
    document: MonetaryDocument
    counterparty_name: str | None = None
    counterparty_tax_id: str | None = None
    payment_method_name: str | None = None
    settled_by_name: str | None = None

    @property
    def id(self):
        return self.document.id

    @property
    def status(self):
        return self.document.status

    @property
    def balance(self) -> int:
        return self.document.balance


class DocumentEnricher:

    def __init__(
        self,
        counterparties: CounterpartyDirectory,
        payment_methods: PaymentMethodDirectory | None = None,
        actors: ActorDirectory | None = None,
    ):
        self._counterparties = counterparties
        self._payment_methods = payment_methods
        self._actors = actors

    def enrich(self, document: MonetaryDocument) -> DocumentView:
        counterparty = self._counterparties.lookup(document.role, document.counterparty_id)
        method_name = None
        if self._payment_methods is not None and document.payment_method_id is not None:
            method_name = self._payment_methods.name_of(document.payment_method_id)
        settled_by_name = None
        if self._actors is not None and document.settled_by_id is not None:
            settled_by_name = self._actors.name_of(document.settled_by_id)

        return DocumentView(
            document=document,
            counterparty_name=counterparty.name if counterparty else None,
            counterparty_tax_id=counterparty.tax_id if counterparty else None,
            payment_method_name=method_name,
            settled_by_name=settled_by_name,
        )

    def enrich_all(self, documents: list[MonetaryDocument]) -> list[DocumentView]:
        return [self.enrich(document) for document in documents]
