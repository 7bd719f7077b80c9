"""
Tests for the Workflow value objects and the monetary document lifecycle.

Covers:
- Workflow construction-time validation
- Document workflow shape: terminal states, reachable states, action sources
"""

from collections import deque

import pytest

from backoffice_kernel.domain.workflow import Guard, Transition, Workflow
from backoffice_modules.documents.models import DocumentStatus
from backoffice_modules.documents.workflows import (
    CANCEL,
    CANCEL_TRANSACTION,
    DOCUMENT_WORKFLOW,
    EDITABLE_STATES,
    MARK_OVERDUE,
    NOT_DERIVED,
    SETTLE,
    source_statuses,
)


def _reachable(workflow: Workflow) -> set[str]:
    seen = {workflow.initial_state}
    queue = deque([workflow.initial_state])
    while queue:
        state = queue.popleft()
        for transition in workflow.transitions_from(state):
            if transition.to_state not in seen:
                seen.add(transition.to_state)
                queue.append(transition.to_state)
    return seen


class TestWorkflowValidation:

    def test_unknown_initial_state_rejected(self):
        with pytest.raises(ValueError, match="initial state"):
            Workflow(
                name="w", description="", initial_state="x",
                states=("a",), transitions=(),
            )

    def test_transition_to_unknown_state_rejected(self):
        with pytest.raises(ValueError, match="unknown state"):
            Workflow(
                name="w", description="", initial_state="a",
                states=("a",), transitions=(Transition("a", "b", action="go"),),
            )

    def test_terminal_state_with_exit_rejected(self):
        with pytest.raises(ValueError, match="terminal state"):
            Workflow(
                name="w", description="", initial_state="a",
                states=("a", "b"),
                transitions=(Transition("b", "a", action="back"),),
                terminal_states=("b",),
            )

    def test_find_transition(self):
        guard = Guard("g", "guarded")
        workflow = Workflow(
            name="w", description="", initial_state="a", states=("a", "b"),
            transitions=(Transition("a", "b", action="go", guard=guard),),
        )
        assert workflow.find_transition("a", "go").guard is guard
        assert workflow.find_transition("b", "go") is None


class TestDocumentWorkflow:

    def test_every_status_is_a_state(self):
        assert set(DOCUMENT_WORKFLOW.states) == {s.value for s in DocumentStatus}

    def test_initial_state_is_open(self):
        assert DOCUMENT_WORKFLOW.initial_state == DocumentStatus.OPEN.value

    def test_all_states_reachable_from_open(self):
        assert _reachable(DOCUMENT_WORKFLOW) == set(DOCUMENT_WORKFLOW.states)

    @pytest.mark.parametrize("status", [DocumentStatus.SETTLED, DocumentStatus.CANCELLED])
    def test_terminal_states_have_no_exit(self, status):
        assert DOCUMENT_WORKFLOW.is_terminal(status.value)
        assert DOCUMENT_WORKFLOW.transitions_from(status.value) == ()

    def test_settle_allowed_from_open_and_overdue(self):
        assert source_statuses(SETTLE) == (DocumentStatus.OPEN, DocumentStatus.OVERDUE)

    def test_cancel_guarded_by_not_derived(self):
        for status in source_statuses(CANCEL):
            assert DOCUMENT_WORKFLOW.find_transition(status.value, CANCEL).guard == NOT_DERIVED

    def test_transaction_cancel_is_unguarded(self):
        for status in source_statuses(CANCEL_TRANSACTION):
            assert DOCUMENT_WORKFLOW.find_transition(status.value, CANCEL_TRANSACTION).guard is None

    def test_overdue_only_from_open(self):
        assert source_statuses(MARK_OVERDUE) == (DocumentStatus.OPEN,)

    def test_overdue_never_returns_to_open(self):
        targets = {t.to_state for t in DOCUMENT_WORKFLOW.transitions_from(DocumentStatus.OVERDUE.value)}
        assert DocumentStatus.OPEN.value not in targets

    def test_editable_states(self):
        assert EDITABLE_STATES == (DocumentStatus.OPEN, DocumentStatus.OVERDUE)
