"""Temporal and business rules deciding whether a submission is allowed.

Rules run in a fixed order and the first failure wins. A rejection is raised
as a DomainError subclass; an accepted submission gets back the period it
belongs to.
"""
from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Callable, Optional

from ..common.datetime_utils import is_weekend, now_local, parse_hhmm, to_date
from ..core.constants import (
    MAX_OVERTIME_HOURS,
    OVERTIME_HOURS_TOLERANCE,
    REGULAR_HOURS_END,
    REGULAR_HOURS_START,
)
from ..core.enums import AttendanceStatus, PeriodStatus, SubmissionKind
from ..core.exceptions import ConflictError, NotFoundError, ValidationError
from ..database.unit_of_work import Store
from ..employees.model import Employee
from ..overtime.model import NewOvertime
from ..periods.model import AttendancePeriod


def span_hours(start_time: str, end_time: str) -> Decimal:
    """Wall-clock hours between two "HH:MM" values; an end at or before the
    start is read as the next day."""
    start_h, start_m = parse_hhmm(start_time)
    end_h, end_m = parse_hhmm(end_time)
    start_minutes = start_h * 60 + start_m
    end_minutes = end_h * 60 + end_m
    if end_minutes <= start_minutes:
        end_minutes += 24 * 60
    return Decimal(end_minutes - start_minutes) / Decimal(60)


def is_outside_regular_hours(start_time: str, end_time: str) -> bool:
    start_h, _ = parse_hhmm(start_time)
    end_h, _ = parse_hhmm(end_time)
    return (
        start_h >= REGULAR_HOURS_END
        or end_h <= REGULAR_HOURS_START
        or (start_h < REGULAR_HOURS_START and end_h <= REGULAR_HOURS_START)
    )


def validate_overtime_span(start_time: str, end_time: str, hours_worked: Decimal) -> None:
    hours = Decimal(hours_worked)
    if hours <= 0:
        raise ValidationError("Hours worked must be greater than zero")
    if hours > MAX_OVERTIME_HOURS:
        raise ValidationError("Maximum overtime is 3 hours per day")
    if abs(span_hours(start_time, end_time) - hours) > OVERTIME_HOURS_TOLERANCE:
        raise ValidationError("Hours worked does not match the time range provided")
    if not is_outside_regular_hours(start_time, end_time):
        raise ValidationError("Overtime must be outside regular working hours (08:00-17:00)")


def require_unprocessed(period: AttendancePeriod, message: str) -> None:
    if period.payroll_processed:
        raise ValidationError(message)


class EligibilityGate:
    def __init__(self, *, clock: Callable[[], datetime] = now_local):
        self._clock = clock

    def can_submit(
        self,
        store: Store,
        kind: SubmissionKind,
        employee_id: int,
        on: Optional[date | datetime] = None,
        *,
        overtime: Optional[NewOvertime] = None,
        period_id: Optional[int] = None,
    ) -> AttendancePeriod:
        kind = SubmissionKind(kind)
        if kind == SubmissionKind.ATTENDANCE:
            return self.check_attendance(store, employee_id, on or self._clock())
        if kind == SubmissionKind.OVERTIME:
            if overtime is None:
                raise ValueError("overtime details are required")
            return self.check_overtime(store, employee_id, overtime)
        if period_id is None:
            raise ValueError("period_id is required")
        return self.check_reimbursement(store, employee_id, period_id)

    def require_active_employee(self, store: Store, employee_id: int) -> Employee:
        employee = store.employees.get_by_id(int(employee_id))
        if not employee:
            raise NotFoundError("Employee not found")
        if not employee.is_active:
            raise ValidationError("Employee account is not active")
        return employee

    def check_attendance(self, store: Store, employee_id: int, on: date | datetime) -> AttendancePeriod:
        day = to_date(on)
        if is_weekend(day):
            raise ValidationError("Cannot submit attendance on weekends")

        self.require_active_employee(store, employee_id)

        period = store.periods.find_active_containing(day)
        if not period:
            raise ValidationError("No active attendance period found for today")
        require_unprocessed(period, "Cannot submit attendance for processed payroll period")
        return period

    def check_overtime(self, store: Store, employee_id: int, overtime: NewOvertime) -> AttendancePeriod:
        self.require_active_employee(store, employee_id)

        period = store.periods.get_current()
        if not period or period.status != PeriodStatus.ACTIVE:
            raise ValidationError("No active attendance period found")
        if not period.contains(overtime.work_date):
            raise ValidationError("Overtime date must be within the active attendance period")
        require_unprocessed(period, "Cannot submit overtime for processed payroll period")

        if overtime.work_date > self._clock().date():
            raise ValidationError("Cannot submit overtime for future dates")

        if store.overtime.get_for_employee_and_date(int(employee_id), overtime.work_date):
            raise ConflictError("Overtime record already exists for this date")

        validate_overtime_span(overtime.start_time, overtime.end_time, overtime.hours_worked)

        attendance = store.attendance.get_for_employee_and_date(int(employee_id), overtime.work_date)
        if not attendance:
            raise ValidationError("No attendance record found for this date")
        if attendance.status != AttendanceStatus.PRESENT:
            raise ValidationError("Cannot submit overtime when attendance status is not PRESENT")
        return period

    def check_reimbursement(self, store: Store, employee_id: int, period_id: int) -> AttendancePeriod:
        self.require_active_employee(store, employee_id)

        period = store.periods.get_by_id(int(period_id))
        if not period:
            raise NotFoundError("Attendance period not found")
        self.require_open_for_reimbursement(period, action="submit")

        if not period.contains(self._clock().date()):
            raise ValidationError("Can only submit reimbursements during the active attendance period")
        return period

    @staticmethod
    def require_open_for_reimbursement(period: AttendancePeriod, *, action: str) -> None:
        if period.status != PeriodStatus.ACTIVE:
            raise ValidationError(f"Cannot {action} reimbursement for inactive period")
        require_unprocessed(period, f"Cannot {action} reimbursement for processed payroll period")
