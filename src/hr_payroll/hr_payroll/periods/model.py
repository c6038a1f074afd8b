from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..core.enums import PeriodStatus


@dataclass(frozen=True)
class AttendancePeriod:
    """Date range that scopes attendance, overtime, reimbursement and payroll."""

    period_id: int
    name: str
    start_date: date
    end_date: date
    is_active: bool
    status: PeriodStatus
    payroll_processed: bool = False
    processed_at: Optional[datetime] = None
    processed_by: Optional[int] = None
    created_by: Optional[int] = None
    updated_by: Optional[int] = None

    def contains(self, day: date) -> bool:
        return self.start_date <= day <= self.end_date

    def overlaps(self, start: date, end: date) -> bool:
        return (
            (self.start_date <= start <= self.end_date)
            or (self.start_date <= end <= self.end_date)
            or (start <= self.start_date and self.end_date <= end)
        )

    @property
    def can_process(self) -> bool:
        return not self.payroll_processed and self.status == PeriodStatus.ACTIVE


@dataclass(frozen=True)
class PeriodChanges:
    """Partial update; ``None`` means "leave as is"."""

    name: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    is_active: Optional[bool] = None
    status: Optional[PeriodStatus] = None


@dataclass(frozen=True)
class PeriodDependents:
    attendances: int = 0
    overtimes: int = 0
    reimbursements: int = 0
    payslips: int = 0

    @property
    def total(self) -> int:
        return self.attendances + self.overtimes + self.reimbursements + self.payslips
