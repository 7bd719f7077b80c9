"""
Collaborator ports (``backoffice_modules.documents.ports``).

Master data (suppliers, customers, payment methods, users) is owned by
other parts of the back office.  The lifecycle service and the read-side
enricher reach it only through these protocols.  The in-memory
implementations back embedded use and the test suite.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Protocol, runtime_checkable
from uuid import UUID

from backoffice_modules.documents.models import DocumentRole


@dataclass(frozen=True)
class Counterparty:
    """Display data for a supplier or customer."""
    id: UUID
    name: str
    tax_id: str | None = None


@runtime_checkable
class CounterpartyDirectory(Protocol):
    """Suppliers for payables, customers for receivables."""

    def lookup(self, role: DocumentRole, counterparty_id: UUID) -> Counterparty | None:
        """Return the counterparty, or None when it does not exist."""
        ...


@runtime_checkable
class PaymentMethodDirectory(Protocol):

    def name_of(self, payment_method_id: UUID) -> str | None: ...


@runtime_checkable
class ActorDirectory(Protocol):

    def name_of(self, actor_id: UUID) -> str | None: ...


class InMemoryCounterpartyDirectory:
    """Dict-backed CounterpartyDirectory keyed by role."""

    def __init__(
        self,
        suppliers: Mapping[UUID, Counterparty] | None = None,
        customers: Mapping[UUID, Counterparty] | None = None,
    ):
        self._by_role = {
            DocumentRole.PAYABLE: dict(suppliers or {}),
            DocumentRole.RECEIVABLE: dict(customers or {}),
        }

    def lookup(self, role: DocumentRole, counterparty_id: UUID) -> Counterparty | None:
        return self._by_role[role].get(counterparty_id)


class InMemoryNameDirectory:
    """Dict-backed id -> display name lookup (payment methods, actors)."""

    def __init__(self, names: Mapping[UUID, str] | None = None):
        self._names = dict(names or {})

    def name_of(self, key: UUID) -> str | None:
        return self._names.get(key)

