"""Attendance aggregation for one worker and one period."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date
from decimal import Decimal
from typing import Protocol
from uuid import UUID

from payrollx_engine.calculators.types import (
    AttendanceRecord,
    AttendanceStatus,
    AttendanceSummary,
)

# Statuses meaning the worker was physically present
PRESENT_STATUSES = frozenset({AttendanceStatus.PRESENT.value, AttendanceStatus.LATE.value})


class AttendanceSource(Protocol):
    """Read access to stored daily attendance records."""

    async def records_between(
        self, employee_id: UUID, start: date, end: date
    ) -> list[AttendanceRecord]: ...


def summarize_attendance(records: Iterable[AttendanceRecord]) -> AttendanceSummary:
    """Reduce daily records into present/absent/leave counts and overtime hours.

    half_day, holiday and weekend rows are not counted in any bucket.
    """
    present = absent = leave = 0
    overtime = Decimal("0")

    for record in records:
        status = str(getattr(record.status, "value", record.status))
        if status in PRESENT_STATUSES:
            present += 1
        elif status == AttendanceStatus.ABSENT.value:
            absent += 1
        elif status == AttendanceStatus.ON_LEAVE.value:
            leave += 1

        if record.overtime_hours is not None:
            overtime += Decimal(record.overtime_hours)

    return AttendanceSummary(
        present_days=present,
        absent_days=absent,
        leave_days=leave,
        overtime_hours=overtime,
    )


class AttendanceAggregator:
    """Aggregates a worker's attendance for a period. Performs no writes."""

    def __init__(self, source: AttendanceSource):
        self.source = source

    async def summarize(
        self, employee_id: UUID, period_start: date, period_end: date
    ) -> AttendanceSummary:
        records = await self.source.records_between(employee_id, period_start, period_end)
        return summarize_attendance(records)
