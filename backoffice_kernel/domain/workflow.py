"""
Canonical workflow types (``backoffice_kernel.domain.workflow``).

Responsibility
--------------
Pure value objects for lifecycle state machines.  Guard, Transition and
Workflow are defined once here; the documents module declares its
lifecycle with them and the service consults the declaration before any
status change reaches the database.

Architecture position
---------------------
**Kernel domain layer** -- pure value objects.  ZERO I/O.  No imports
from ``db/`` or outer layers.

Invariants enforced
-------------------
* Transitions reference only states in ``Workflow.states``.
* ``initial_state`` is a member of ``states``.
* Terminal states have no outgoing transitions.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Guard:
    """A condition that must be satisfied before a transition fires.

    Contract: frozen, descriptive only.
    Non-goals: does not evaluate the condition -- the owning service does.
    """
    name: str
    description: str


@dataclass(frozen=True)
class Transition:
    """A valid state transition in a workflow."""
    from_state: str
    to_state: str
    action: str
    guard: Guard | None = None


@dataclass(frozen=True)
class Workflow:
    """A state machine definition for a document lifecycle.

    Contract: frozen; ``transitions`` reference only states in ``states``.
    Guarantees: ``initial_state`` is a member of ``states``.
    ``terminal_states`` are states with no outgoing transitions.
    """
    name: str
    description: str
    initial_state: str
    states: tuple[str, ...]
    transitions: tuple[Transition, ...]
    terminal_states: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if self.initial_state not in self.states:
            raise ValueError(
                f"Workflow {self.name}: initial state {self.initial_state!r} "
                f"is not a declared state"
            )
        for transition in self.transitions:
            for state in (transition.from_state, transition.to_state):
                if state not in self.states:
                    raise ValueError(
                        f"Workflow {self.name}: transition {transition.action!r} "
                        f"references unknown state {state!r}"
                    )
            if transition.from_state in self.terminal_states:
                raise ValueError(
                    f"Workflow {self.name}: terminal state "
                    f"{transition.from_state!r} has an outgoing transition"
                )

    def transitions_from(self, state: str) -> tuple[Transition, ...]:
        return tuple(t for t in self.transitions if t.from_state == state)

    def find_transition(self, state: str, action: str) -> Transition | None:
        """Return the transition for ``action`` out of ``state``, if declared."""
        for transition in self.transitions:
            if transition.from_state == state and transition.action == action:
                return transition
        return None

    def sources_for(self, action: str) -> tuple[str, ...]:
        """States from which ``action`` is allowed, in declaration order."""
        return tuple(t.from_state for t in self.transitions if t.action == action)

    def is_terminal(self, state: str) -> bool:
        return state in self.terminal_states
