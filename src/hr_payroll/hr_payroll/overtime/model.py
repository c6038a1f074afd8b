from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from ..core.enums import OvertimeStatus


@dataclass(frozen=True)
class OvertimeRequest:
    """Domain entity: overtime worked by one employee on one day."""

    overtime_id: int
    employee_id: int
    attendance_period_id: int
    work_date: date
    start_time: str
    end_time: str
    hours_worked: Decimal
    reason: str
    status: OvertimeStatus
    has_attendance: bool = True
    description: Optional[str] = None
    submitted_at: Optional[datetime] = None
    approved_at: Optional[datetime] = None
    approved_by: Optional[int] = None
    cancelled_at: Optional[datetime] = None
    ip_address: Optional[str] = None
    created_by: Optional[int] = None
    updated_by: Optional[int] = None


@dataclass(frozen=True)
class NewOvertime:
    work_date: date
    start_time: str
    end_time: str
    hours_worked: Decimal
    reason: str
    description: Optional[str] = None


@dataclass(frozen=True)
class OvertimeChanges:
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    hours_worked: Optional[Decimal] = None
    reason: Optional[str] = None
    description: Optional[str] = None


@dataclass(frozen=True)
class OvertimeQuery:
    employee_id: Optional[int] = None
    status: Optional[OvertimeStatus] = None
    from_date: Optional[date] = None
    to_date: Optional[date] = None
