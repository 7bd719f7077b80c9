"""
Tests for InstallmentScheduler.

Covers:
- Due dates counted in calendar days from the base date
- Equal split with the remainder on the last installment
- Sequence ordering, payment-method resolution
- Empty template and invalid inputs
- Property: exact sum, floor lower bound
"""

from datetime import date
from decimal import Decimal

import pytest
from hypothesis import given
from hypothesis import strategies as st

from backoffice_engines.installments import (
    EMPTY_TEMPLATE_ERROR,
    InstallmentScheduler,
    InstallmentSpec,
)
from backoffice_kernel.exceptions import InvalidAmountError, ValidationError

METHOD_A = "method-a"
METHOD_B = "method-b"


class TestInstallmentScheduler:

    def setup_method(self):
        self.scheduler = InstallmentScheduler()

    def test_thirty_sixty_template(self):
        template = [
            InstallmentSpec(1, 30, Decimal("50"), METHOD_A),
            InstallmentSpec(2, 60, Decimal("50"), METHOD_B),
        ]
        schedule = self.scheduler.generate(template, date(2024, 1, 10), 10000)

        assert schedule.is_valid
        assert [(i.sequence_number, i.due_date, i.amount) for i in schedule] == [
            (1, date(2024, 2, 9), 5000),
            (2, date(2024, 3, 10), 5000),
        ]
        assert [i.payment_method_id for i in schedule] == [METHOD_A, METHOD_B]

    def test_remainder_on_last_installment(self):
        template = [InstallmentSpec(n, 30 * n) for n in (1, 2, 3)]
        schedule = self.scheduler.generate(template, date(2024, 1, 1), 1000)

        assert [i.amount for i in schedule] == [333, 333, 334]
        assert schedule.scheduled_total == 1000

    def test_percentages_do_not_drive_amounts(self):
        template = [
            InstallmentSpec(1, 0, Decimal("70")),
            InstallmentSpec(2, 30, Decimal("30")),
        ]
        schedule = self.scheduler.generate(template, date(2024, 1, 1), 1000)
        assert [i.amount for i in schedule] == [500, 500]

    def test_specs_processed_in_sequence_order(self):
        template = [InstallmentSpec(2, 60), InstallmentSpec(1, 30)]
        schedule = self.scheduler.generate(template, date(2024, 1, 1), 101)

        assert [i.sequence_number for i in schedule] == [1, 2]
        assert [i.amount for i in schedule] == [50, 51]
        assert schedule.installments[0].due_date == date(2024, 1, 31)

    def test_same_day_installment(self):
        schedule = self.scheduler.generate([InstallmentSpec(1, 0)], date(2024, 5, 5), 999)
        assert schedule.installments[0].due_date == date(2024, 5, 5)
        assert schedule.installments[0].amount == 999

    def test_method_names_resolved(self):
        template = [InstallmentSpec(1, 30, payment_method_id=METHOD_A),
                    InstallmentSpec(2, 60, payment_method_id=METHOD_B)]
        schedule = self.scheduler.generate(
            template, date(2024, 1, 1), 200, method_names={METHOD_A: "Pix"},
        )

        first, second = schedule.installments
        assert first.payment_method_name == "Pix"
        assert second.payment_method_id == METHOD_B
        assert second.payment_method_name is None

    def test_zero_total(self):
        schedule = self.scheduler.generate(
            [InstallmentSpec(1, 30), InstallmentSpec(2, 60)], date(2024, 1, 1), 0,
        )
        assert [i.amount for i in schedule] == [0, 0]

    def test_empty_template_yields_error_schedule(self):
        schedule = self.scheduler.generate([], date(2024, 1, 1), 1000)

        assert not schedule.is_valid
        assert schedule.error == EMPTY_TEMPLATE_ERROR
        assert len(schedule) == 0

    def test_negative_total_rejected(self):
        with pytest.raises(InvalidAmountError):
            self.scheduler.generate([InstallmentSpec(1, 30)], date(2024, 1, 1), -1)

    def test_negative_days_rejected(self):
        with pytest.raises(ValidationError):
            InstallmentSpec(1, -1)

    def test_regeneration_is_deterministic(self):
        template = [InstallmentSpec(n, 15 * n) for n in range(1, 5)]
        first = self.scheduler.generate(template, date(2024, 1, 1), 12345)
        second = self.scheduler.generate(template, date(2024, 1, 1), 12345)
        assert first == second


class TestInstallmentProperties:

    @given(
        total=st.integers(min_value=0, max_value=10**10),
        days=st.lists(st.integers(min_value=0, max_value=720), min_size=1, max_size=36),
    )
    def test_amounts_sum_exactly(self, total, days):
        template = [InstallmentSpec(i + 1, d) for i, d in enumerate(days)]
        schedule = InstallmentScheduler().generate(template, date(2024, 1, 1), total)

        amounts = [i.amount for i in schedule]
        base = total // len(days)
        assert sum(amounts) == total
        assert all(a >= base for a in amounts)
        assert amounts[:-1] == [base] * (len(days) - 1)
