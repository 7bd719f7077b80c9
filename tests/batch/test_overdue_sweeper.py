"""
Tests for OverdueSweeper and SweepScheduler.

Covers:
- OPEN past-due documents become OVERDUE; nothing else is touched
- Idempotence of repeated sweeps on the same day
- Failed sweeps roll back, log, and report zero
- Scheduler tick accounting and background thread lifecycle
"""

import threading
from datetime import date

import pytest

from backoffice_batch.scheduler import SweepScheduler
from backoffice_batch.sweeper import OverdueSweeper
from backoffice_kernel.db.engine import drop_tables
from backoffice_modules.documents.models import DocumentStatus, SettlementRequest
from tests.conftest import TEST_METHOD_PIX_ID


@pytest.fixture
def sweeper(session_factory, clock):
    return OverdueSweeper(session_factory, clock=clock)


class TestOverdueSweeper:

    def test_flags_only_past_due_open_documents(self, sweeper, lifecycle, make_new_document):
        past = lifecycle.create(make_new_document(document_number="P", due_date=date(2024, 1, 9)))
        due_today = lifecycle.create(make_new_document(document_number="T", due_date=date(2024, 1, 10)))
        future = lifecycle.create(make_new_document(document_number="F", due_date=date(2024, 2, 1)))

        assert sweeper.sweep() == 1

        assert lifecycle.get(past.id).status == DocumentStatus.OVERDUE
        assert lifecycle.get(due_today.id).status == DocumentStatus.OPEN
        assert lifecycle.get(future.id).status == DocumentStatus.OPEN

    def test_second_sweep_flags_nothing(self, sweeper, lifecycle, make_new_document):
        lifecycle.create(make_new_document(due_date=date(2024, 1, 1)))

        assert sweeper.sweep() == 1
        assert sweeper.sweep() == 0

    def test_terminal_and_removed_documents_untouched(self, sweeper, lifecycle, make_new_document):
        settled = lifecycle.create(make_new_document(document_number="S", due_date=date(2024, 1, 1)))
        cancelled = lifecycle.create(make_new_document(document_number="C", due_date=date(2024, 1, 1)))
        removed = lifecycle.create(make_new_document(document_number="R", due_date=date(2024, 1, 1)))
        lifecycle.settle(settled.id, SettlementRequest(
            paid=10000, settlement_date=date(2024, 1, 10), payment_method_id=TEST_METHOD_PIX_ID,
        ))
        lifecycle.cancel(cancelled.id)
        lifecycle.remove(removed.id)

        assert sweeper.sweep() == 0
        assert lifecycle.get(settled.id).status == DocumentStatus.SETTLED
        assert lifecycle.get(cancelled.id).status == DocumentStatus.CANCELLED

    def test_follows_clock(self, sweeper, lifecycle, clock, make_new_document):
        doc = lifecycle.create(make_new_document(due_date=date(2024, 1, 15)))
        assert sweeper.sweep() == 0

        clock.advance_days(6)
        assert sweeper.sweep() == 1
        assert lifecycle.get(doc.id).status == DocumentStatus.OVERDUE

    def test_logs_completion(self, sweeper, lifecycle, make_new_document, captured_logs):
        lifecycle.create(make_new_document(due_date=date(2024, 1, 1)))
        sweeper.sweep()

        completed = [r for r in captured_logs() if r["message"] == "overdue_sweep_completed"]
        assert completed[0]["documents_flagged"] == 1
        assert completed[0]["as_of"] == "2024-01-10"

    def test_failure_is_logged_and_reported_as_zero(self, sweeper, db_engine, captured_logs):
        drop_tables(db_engine)

        assert sweeper.sweep() == 0

        failures = [r for r in captured_logs() if r["message"] == "overdue_sweep_failed"]
        assert failures[0]["level"] == "ERROR"
        assert "traceback" in failures[0]


class _CountingSweeper:

    def __init__(self):
        self.calls = 0
        self.swept = threading.Event()

    def sweep(self) -> int:
        self.calls += 1
        self.swept.set()
        return 3


class TestSweepScheduler:

    def test_rejects_non_positive_interval(self):
        with pytest.raises(ValueError):
            SweepScheduler(_CountingSweeper(), interval_seconds=0)

    def test_tick_runs_one_sweep(self):
        sweeper = _CountingSweeper()
        scheduler = SweepScheduler(sweeper)

        assert scheduler.tick() == 3
        assert scheduler.tick() == 3
        assert scheduler.ticks == 2
        assert sweeper.calls == 2

    def test_tick_with_real_sweeper(self, sweeper, lifecycle, make_new_document):
        lifecycle.create(make_new_document(due_date=date(2024, 1, 1)))
        assert SweepScheduler(sweeper).tick() == 1

    def test_start_and_stop(self):
        sweeper = _CountingSweeper()
        scheduler = SweepScheduler(sweeper, interval_seconds=3600)

        scheduler.start()
        try:
            assert sweeper.swept.wait(timeout=5)
            assert scheduler.is_running
        finally:
            scheduler.stop(timeout=5)

        assert not scheduler.is_running
        assert scheduler.ticks == 1

    def test_start_is_idempotent(self):
        sweeper = _CountingSweeper()
        scheduler = SweepScheduler(sweeper, interval_seconds=3600)

        scheduler.start()
        try:
            assert sweeper.swept.wait(timeout=5)
            scheduler.start()
        finally:
            scheduler.stop(timeout=5)

        assert sweeper.calls == 1
