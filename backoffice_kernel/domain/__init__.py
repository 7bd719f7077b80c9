"""Pure domain primitives: clock, workflow value objects, exact apportionment."""

from backoffice_kernel.domain.apportion import distribute_exactly
from backoffice_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from backoffice_kernel.domain.workflow import Guard, Transition, Workflow

__all__ = [
    "distribute_exactly",
    "Clock",
    "DeterministicClock",
    "SystemClock",
    "Guard",
    "Transition",
    "Workflow",
]
