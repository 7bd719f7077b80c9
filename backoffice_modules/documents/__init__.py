"""
Monetary Documents Module.

Payables and receivables share one structure and one lifecycle; the
document's role decides which counterparty directory (suppliers or
customers) is consulted.
"""

from backoffice_modules.documents.enrichment import DocumentEnricher, DocumentView
from backoffice_modules.documents.models import (
    DerivedFrom,
    DocumentChanges,
    DocumentFilter,
    DocumentKind,
    DocumentRole,
    DocumentStatus,
    MonetaryDocument,
    NewDocument,
    SettlementRequest,
    Standalone,
    TransactionRef,
)
from backoffice_modules.documents.ports import (
    ActorDirectory,
    Counterparty,
    CounterpartyDirectory,
    PaymentMethodDirectory,
)
from backoffice_modules.documents.service import AccountLifecycleService
from backoffice_modules.documents.workflows import DOCUMENT_WORKFLOW

__all__ = [
    "AccountLifecycleService",
    "ActorDirectory",
    "Counterparty",
    "CounterpartyDirectory",
    "DerivedFrom",
    "DOCUMENT_WORKFLOW",
    "DocumentChanges",
    "DocumentEnricher",
    "DocumentFilter",
    "DocumentKind",
    "DocumentRole",
    "DocumentStatus",
    "DocumentView",
    "MonetaryDocument",
    "NewDocument",
    "PaymentMethodDirectory",
    "SettlementRequest",
    "Standalone",
    "TransactionRef",
]
