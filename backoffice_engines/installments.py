"""
Module: backoffice_engines.installments
Responsibility:
    Expand a payment-term template into a dated installment schedule whose
    amounts add up exactly to the document total.

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Invariants enforced:
    - sum(amount) == total_amount for any non-empty template.
    - Every amount is >= floor(total / n); only the last installment carries
      the remainder.
    - due_date == base_date + days_to_payment calendar days.
    - Specs are processed in sequence_number order regardless of input order.

Failure modes:
    - InvalidAmountError on a negative total.
    - ValidationError on a negative days_to_payment.
    - An empty template yields an empty schedule carrying ``error``; callers
      decide whether that is fatal.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from datetime import date, timedelta
from decimal import ROUND_FLOOR, Decimal
from uuid import UUID

from backoffice_engines.tracer import traced_engine
from backoffice_kernel.domain.apportion import distribute_exactly
from backoffice_kernel.exceptions import InvalidAmountError, ValidationError
from backoffice_kernel.logging_config import get_logger

logger = get_logger("engines.installments")

EMPTY_TEMPLATE_ERROR = "Payment term has no installments"


@dataclass(frozen=True)
class InstallmentSpec:
    """
    One entry of a payment-term template.

    ``percentage_of_total`` is informational: amounts are always split
    evenly with the remainder on the last installment.
    """

    sequence_number: int
    days_to_payment: int
    percentage_of_total: Decimal = Decimal("0")
    payment_method_id: str | UUID | None = None

    def __post_init__(self) -> None:
        if self.days_to_payment < 0:
            raise ValidationError(
                f"days_to_payment must be >= 0, got {self.days_to_payment}",
                field="days_to_payment",
            )


@dataclass(frozen=True)
class Installment:
    """A scheduled portion of a total, not yet persisted."""

    sequence_number: int
    due_date: date
    amount: int
    payment_method_id: str | UUID | None = None
    payment_method_name: str | None = None


@dataclass(frozen=True)
class InstallmentSchedule:
    """Generated installments, or an empty schedule with the reason."""

    installments: tuple[Installment, ...]
    total_amount: int
    error: str | None = None

    @property
    def is_valid(self) -> bool:
        return self.error is None

    @property
    def scheduled_total(self) -> int:
        return sum(i.amount for i in self.installments)

    def __len__(self) -> int:
        return len(self.installments)

    def __iter__(self):
        return iter(self.installments)


class InstallmentScheduler:
    """
    Generate installment schedules from payment-term templates.

    Contract:
        Pure and stateless: the same inputs always produce the same schedule.
        Re-triggering means regenerating the whole schedule.
    """

    @traced_engine(
        "installments", "1.0",
        fingerprint_fields=("base_date", "total_amount"),
    )
    def generate(
        self,
        template: Sequence[InstallmentSpec],
        base_date: date,
        total_amount: int,
        method_names: Mapping[str | UUID, str] | None = None,
    ) -> InstallmentSchedule:
        """
        Build the schedule for ``total_amount`` cents starting at ``base_date``.

        Args:
            template: Installment specs of the payment term (any order).
            base_date: Date the due dates are counted from.
            total_amount: Total to split, in cents (>= 0).
            method_names: Optional payment-method display names by id.
                Unresolved ids keep the raw id with no display name.
        """
        if total_amount < 0:
            raise InvalidAmountError("total_amount", total_amount, "must be >= 0")

        if not template:
            logger.warning("installment_template_empty", extra={
                "total_amount": total_amount,
                "base_date": base_date,
            })
            return InstallmentSchedule(
                installments=(),
                total_amount=total_amount,
                error=EMPTY_TEMPLATE_ERROR,
            )

        ordered = sorted(template, key=lambda spec: spec.sequence_number)
        amounts = distribute_exactly(total_amount, [1] * len(ordered), ROUND_FLOOR)
        names = method_names or {}

        installments = tuple(
            Installment(
                sequence_number=spec.sequence_number,
                due_date=base_date + timedelta(days=spec.days_to_payment),
                amount=amount,
                payment_method_id=spec.payment_method_id,
                payment_method_name=names.get(spec.payment_method_id),
            )
            for spec, amount in zip(ordered, amounts)
        )

        logger.info("installments_generated", extra={
            "installment_count": len(installments),
            "total_amount": total_amount,
            "base_date": base_date,
        })
        return InstallmentSchedule(installments=installments, total_amount=total_amount)
