"""
Monetary Document Workflow (``backoffice_modules.documents.workflows``).

Responsibility
--------------
Declares the state machine for payables and receivables.  Guards name the
preconditions the lifecycle service checks before a transition is
written; the service consults ``DOCUMENT_WORKFLOW`` for which source
states each action accepts.

Architecture position
---------------------
**Modules layer** -- declarative workflow definitions.  Imports Guard,
Transition, Workflow from ``backoffice_kernel.domain.workflow``.

Invariants enforced
-------------------
* SETTLED and CANCELLED are terminal: no transition leaves them.
* A derived document is cancelled only by ``cancel_transaction``, the
  action used when the originating purchase/sale is cancelled.
* Field updates and soft removal are not status transitions; they are
  allowed only from ``EDITABLE_STATES``.
"""

from backoffice_kernel.domain.workflow import Guard, Transition, Workflow
from backoffice_kernel.logging_config import get_logger
from backoffice_modules.documents.models import DocumentStatus

logger = get_logger("modules.documents.workflows")


# -----------------------------------------------------------------------------
# Guards
# -----------------------------------------------------------------------------

FULL_SETTLEMENT = Guard(
    name="full_settlement",
    description="Paid amount equals the recomputed total within tolerance",
)

NOT_DERIVED = Guard(
    name="not_derived",
    description="Document was not generated by a purchase or sale",
)


# -----------------------------------------------------------------------------
# Actions
# -----------------------------------------------------------------------------

SETTLE = "settle"
CANCEL = "cancel"
CANCEL_TRANSACTION = "cancel_transaction"
MARK_OVERDUE = "mark_overdue"

_OPEN = DocumentStatus.OPEN.value
_OVERDUE = DocumentStatus.OVERDUE.value
_SETTLED = DocumentStatus.SETTLED.value
_CANCELLED = DocumentStatus.CANCELLED.value


DOCUMENT_WORKFLOW = Workflow(
    name="monetary_document",
    description="Payable/receivable lifecycle; settlement is always full",
    initial_state=_OPEN,
    states=(_OPEN, _OVERDUE, _SETTLED, _CANCELLED),
    transitions=(
        Transition(_OPEN, _SETTLED, action=SETTLE, guard=FULL_SETTLEMENT),
        Transition(_OVERDUE, _SETTLED, action=SETTLE, guard=FULL_SETTLEMENT),
        Transition(_OPEN, _CANCELLED, action=CANCEL, guard=NOT_DERIVED),
        Transition(_OVERDUE, _CANCELLED, action=CANCEL, guard=NOT_DERIVED),
        Transition(_OPEN, _CANCELLED, action=CANCEL_TRANSACTION),
        Transition(_OVERDUE, _CANCELLED, action=CANCEL_TRANSACTION),
        Transition(_OPEN, _OVERDUE, action=MARK_OVERDUE),
    ),
    terminal_states=(_SETTLED, _CANCELLED),
)

EDITABLE_STATES = (DocumentStatus.OPEN, DocumentStatus.OVERDUE)


def source_statuses(action: str) -> tuple[DocumentStatus, ...]:
    """Statuses from which ``action`` may fire."""
    return tuple(DocumentStatus(state) for state in DOCUMENT_WORKFLOW.sources_for(action))


logger.info(
    "document_workflow_defined",
    extra={
        "workflow": DOCUMENT_WORKFLOW.name,
        "state_count": len(DOCUMENT_WORKFLOW.states),
        "transition_count": len(DOCUMENT_WORKFLOW.transitions),
    },
)
