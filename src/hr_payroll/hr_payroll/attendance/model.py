from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from ..core.enums import AttendanceStatus


@dataclass(frozen=True)
class AttendanceRecord:
    """Domain entity: one attendance record per employee per calendar day."""

    attendance_id: int
    employee_id: int
    attendance_period_id: int
    work_date: date
    check_in_time: datetime
    status: AttendanceStatus
    notes: Optional[str] = None
    ip_address: Optional[str] = None
    created_by: Optional[int] = None


@dataclass(frozen=True)
class AttendanceQuery:
    employee_id: Optional[int] = None
    attendance_period_id: Optional[int] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    status: Optional[AttendanceStatus] = None


@dataclass(frozen=True)
class AttendanceSummary:
    total: int
    present: int
    absent: int

    @property
    def attendance_rate(self) -> str:
        if self.total <= 0:
            return "0.00"
        rate = Decimal(self.present) * 100 / Decimal(self.total)
        return str(rate.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))
