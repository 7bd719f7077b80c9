"""Scheduled batch work: the overdue sweep and its in-process scheduler."""

from backoffice_batch.scheduler import SweepScheduler
from backoffice_batch.sweeper import OverdueSweeper

__all__ = ["OverdueSweeper", "SweepScheduler"]
