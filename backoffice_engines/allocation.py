"""
Module: backoffice_engines.allocation
Responsibility:
    Apportion a transaction's ancillary costs (freight, insurance, other
    expenses) across its line items in proportion to each line total, and
    derive the final landed cost per line and per unit.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import backoffice_kernel (domain, db.types, exceptions, logging).

Invariants enforced:
    - Exact mode: sum(share) == overhead_total; the rounding remainder lands
      on the last line item (via distribute_exactly).
    - Zero-total safety: when every line total is zero, every share is zero
      and no division happens.
    - Purity: stateless; any change to quantity, price, discount or ancillary
      costs means the caller recomputes the whole transaction.

Failure modes:
    - ValidationError on non-positive quantity, negative price/discount,
      discount above price, or negative overhead.

Usage:
    from backoffice_engines.allocation import LineItem, MonetaryAllocator

    allocator = MonetaryAllocator()
    result = allocator.allocate(
        [
            LineItem(item_id="p-1", quantity=Decimal("3"), unit_price=111),
            LineItem(item_id="p-2", quantity=Decimal("1"), unit_price=334),
        ],
        overhead_total=100,
    )
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from uuid import UUID

from backoffice_engines.tracer import traced_engine
from backoffice_kernel.db.types import round_money
from backoffice_kernel.domain.apportion import distribute_exactly
from backoffice_kernel.exceptions import InvalidAmountError, ValidationError
from backoffice_kernel.logging_config import get_logger

logger = get_logger("engines.allocation")

DEFAULT_UNIT_COST_PLACES = 4


class AllocationMode(str, Enum):
    """How the overhead is split across lines."""

    PROPORTIONAL = "proportional"  # Independent half-up rounding per line
    EXACT = "exact"  # Remainder to the last line; sums exactly


@dataclass(frozen=True)
class LineItem:
    """
    One line of a purchase or sale.

    Contract:
        Money fields are integer cents; ``quantity`` is a positive Decimal.
    Guarantees:
        - ``net_unit_price == unit_price - unit_discount`` and is >= 0.
        - ``line_total`` is ``net_unit_price * quantity`` rounded half-up to
          whole cents.
    """

    item_id: str | UUID
    quantity: Decimal
    unit_price: int
    unit_discount: int = 0

    def __post_init__(self) -> None:
        if self.quantity <= 0:
            raise ValidationError(
                f"Line {self.item_id}: quantity must be > 0, got {self.quantity}",
                field="quantity",
            )
        if self.unit_price < 0:
            raise InvalidAmountError("unit_price", self.unit_price, "must be >= 0")
        if self.unit_discount < 0:
            raise InvalidAmountError("unit_discount", self.unit_discount, "must be >= 0")
        if self.unit_discount > self.unit_price:
            raise InvalidAmountError(
                "unit_discount", self.unit_discount, "cannot exceed unit_price"
            )

    @property
    def net_unit_price(self) -> int:
        return self.unit_price - self.unit_discount

    @property
    def line_total(self) -> int:
        return int(round_money(Decimal(self.net_unit_price) * self.quantity, 0))


@dataclass(frozen=True)
class AncillaryCosts:
    """Freight, insurance and other expenses of one transaction, in cents."""

    freight: int = 0
    insurance: int = 0
    other_expenses: int = 0

    def __post_init__(self) -> None:
        for name in ("freight", "insurance", "other_expenses"):
            value = getattr(self, name)
            if value < 0:
                raise InvalidAmountError(name, value, "must be >= 0")

    @property
    def total(self) -> int:
        return self.freight + self.insurance + self.other_expenses


@dataclass(frozen=True)
class AllocationLine:
    """
    Allocation outcome for a single line item.

    Guarantees:
        - ``final_line_cost == line_total + share``.
        - ``final_unit_cost == final_line_cost / quantity`` in cents, rounded
          half-up to the allocator's unit-cost precision.
    """

    item_id: str | UUID
    quantity: Decimal
    line_total: int
    share: int
    final_line_cost: int
    final_unit_cost: Decimal


@dataclass(frozen=True)
class AllocationResult:
    """
    Complete allocation run.

    Guarantees:
        - EXACT mode: ``total_allocated == overhead_total`` whenever some
          line total is positive.
        - ``unallocated == overhead_total - total_allocated``; in
          PROPORTIONAL mode this is the rounding drift and may be negative.
    """

    overhead_total: int
    mode: AllocationMode
    lines: tuple[AllocationLine, ...]
    total_allocated: int

    @property
    def unallocated(self) -> int:
        return self.overhead_total - self.total_allocated

    @property
    def shares(self) -> list[int]:
        return [line.share for line in self.lines]


@dataclass(frozen=True)
class TransactionTotals:
    """
    Header totals of a transaction after apportionment.

    ``rounding_residual`` is what the exact split moved onto the last line
    compared with independent half-up rounding of every line.
    """

    subtotal: int
    overhead_total: int
    grand_total: int
    allocated_total: int
    rounding_residual: int


class MonetaryAllocator:
    """
    Apportion an overhead amount across line items by line total.

    Contract:
        Pure functions with deterministic rounding.  No I/O.
    Guarantees:
        - Proportional shares are ``round_half_up(overhead * lt_i / sum(lt))``.
        - Exact shares are the proportional ones with the drift pushed onto
          the last line item, so they always sum to ``overhead_total``.
    Non-goals:
        - Does not persist; callers store the final costs.
    """

    def __init__(self, unit_cost_places: int = DEFAULT_UNIT_COST_PLACES):
        if unit_cost_places < 0:
            raise ValueError("unit_cost_places must be >= 0")
        self._unit_cost_places = unit_cost_places

    @traced_engine("allocation", "1.0", fingerprint_fields=("overhead_total", "exact"))
    def allocate(
        self,
        line_items: Sequence[LineItem],
        overhead_total: int,
        exact: bool = True,
    ) -> AllocationResult:
        """
        Split ``overhead_total`` cents across ``line_items``.

        Args:
            line_items: Lines of the transaction, in display order.
            overhead_total: Sum of ancillary costs in cents (>= 0).
            exact: When True (default) the shares sum exactly to the
                overhead; when False each share is rounded independently.

        Returns:
            AllocationResult with one AllocationLine per input line.
        """
        if overhead_total < 0:
            raise InvalidAmountError("overhead_total", overhead_total, "must be >= 0")

        mode = AllocationMode.EXACT if exact else AllocationMode.PROPORTIONAL
        logger.info("allocation_started", extra={
            "overhead_total": overhead_total,
            "mode": mode.value,
            "line_count": len(line_items),
        })

        if not line_items:
            logger.warning("allocation_no_line_items", extra={
                "overhead_total": overhead_total,
            })
            return AllocationResult(
                overhead_total=overhead_total,
                mode=mode,
                lines=(),
                total_allocated=0,
            )

        line_totals = [item.line_total for item in line_items]
        match mode:
            case AllocationMode.EXACT:
                shares = distribute_exactly(overhead_total, line_totals, ROUND_HALF_UP)
            case AllocationMode.PROPORTIONAL:
                shares = self._proportional_shares(overhead_total, line_totals)

        lines = tuple(
            self._build_line(item, line_total, share)
            for item, line_total, share in zip(line_items, line_totals, shares)
        )
        result = AllocationResult(
            overhead_total=overhead_total,
            mode=mode,
            lines=lines,
            total_allocated=sum(shares),
        )

        logger.info("allocation_completed", extra={
            "overhead_total": overhead_total,
            "mode": mode.value,
            "total_allocated": result.total_allocated,
            "unallocated": result.unallocated,
        })
        return result

    def allocate_costs(
        self,
        line_items: Sequence[LineItem],
        costs: AncillaryCosts,
        exact: bool = True,
    ) -> AllocationResult:
        """Convenience method: allocate the sum of the ancillary costs."""
        return self.allocate(line_items, costs.total, exact=exact)

    def totals(
        self,
        line_items: Sequence[LineItem],
        costs: AncillaryCosts,
    ) -> TransactionTotals:
        """Compute header totals for a transaction and its ancillary costs."""
        exact = self.allocate(line_items, costs.total, exact=True)
        proportional = self.allocate(line_items, costs.total, exact=False)
        subtotal = sum(item.line_total for item in line_items)
        return TransactionTotals(
            subtotal=subtotal,
            overhead_total=costs.total,
            grand_total=subtotal + costs.total,
            allocated_total=exact.total_allocated,
            rounding_residual=exact.total_allocated - proportional.total_allocated,
        )

    @staticmethod
    def _proportional_shares(overhead_total: int, line_totals: list[int]) -> list[int]:
        grand = sum(line_totals)
        if grand == 0:
            return [0] * len(line_totals)
        return [
            int(round_money(Decimal(overhead_total) * lt / grand, 0))
            for lt in line_totals
        ]

    def _build_line(self, item: LineItem, line_total: int, share: int) -> AllocationLine:
        final_line_cost = line_total + share
        final_unit_cost = round_money(
            Decimal(final_line_cost) / item.quantity,
            self._unit_cost_places,
        )
        return AllocationLine(
            item_id=item.item_id,
            quantity=item.quantity,
            line_total=line_total,
            share=share,
            final_line_cost=final_line_cost,
            final_unit_cost=final_unit_cost,
        )
