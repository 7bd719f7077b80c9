"""
Pure calculation engines: overhead apportionment and installment scheduling.

Engines perform no I/O and hold no state; the lifecycle service and the
facade call them and persist the results.
"""

from backoffice_engines.allocation import (
    AllocationLine,
    AllocationMode,
    AllocationResult,
    AncillaryCosts,
    LineItem,
    MonetaryAllocator,
    TransactionTotals,
)
from backoffice_engines.installments import (
    Installment,
    InstallmentSchedule,
    InstallmentScheduler,
    InstallmentSpec,
)

__all__ = [
    "AllocationLine",
    "AllocationMode",
    "AllocationResult",
    "AncillaryCosts",
    "LineItem",
    "MonetaryAllocator",
    "TransactionTotals",
    "Installment",
    "InstallmentSchedule",
    "InstallmentScheduler",
    "InstallmentSpec",
]
