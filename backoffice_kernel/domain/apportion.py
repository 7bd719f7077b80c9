"""
Apportion -- exact integer split of a monetary total by weights.

Responsibility:
    The single place where a rounding remainder is resolved.  Both overhead
    allocation (half-up, proportional to line totals) and installment
    scheduling (floor, equal weights) delegate here so the remainder rule is
    written once.

Architecture position:
    Kernel > Domain -- pure function, zero I/O.

Invariants enforced:
    - sum(shares) == total whenever sum(weights) > 0.
    - every share >= 0: non-last shares are capped so the running total never
      exceeds ``total``; the last share absorbs the remainder.
    - zero weight sum never divides; every share is 0.

Failure modes:
    - ValidationError on a negative total or a negative weight.
"""

from collections.abc import Sequence
from decimal import ROUND_HALF_UP, Decimal

from backoffice_kernel.exceptions import ValidationError


def distribute_exactly(
    total: int,
    weights: Sequence[int | Decimal],
    rounding: str = ROUND_HALF_UP,
) -> list[int]:
    """
    Split ``total`` cents across ``weights`` without losing a single cent.

    Every share but the last is ``round(total * w_i / sum(w))`` with the
    given rounding mode; the last share receives ``total - sum(previous)``.

    Example:
        distribute_exactly(100, [333, 333, 334]) -> [33, 33, 34]
        distribute_exactly(1000, [1, 1, 1], ROUND_FLOOR) -> [333, 333, 334]
    """
    if total < 0:
        raise ValidationError(f"Total to distribute must be >= 0, got {total}", field="total")
    if not weights:
        return []
    for weight in weights:
        if weight < 0:
            raise ValidationError(f"Weights must be >= 0, got {weight}", field="weights")

    weight_sum = sum(Decimal(w) for w in weights)
    if weight_sum == 0:
        return [0] * len(weights)

    shares: list[int] = []
    running = 0
    for weight in weights[:-1]:
        raw = Decimal(total) * Decimal(weight) / weight_sum
        share = int(raw.quantize(Decimal(1), rounding=rounding))
        share = min(share, total - running)
        shares.append(share)
        running += share

    shares.append(total - running)
    return shares
