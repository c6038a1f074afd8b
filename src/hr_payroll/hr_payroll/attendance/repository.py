from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import AttendanceStatus
from .model import AttendanceQuery, AttendanceRecord


class AttendanceRepository(Protocol):
    def get_by_id(self, attendance_id: int, *, employee_id: Optional[int] = None) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def get_for_employee_and_date(self, employee_id: int, work_date: date) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def create(
        self,
        *,
        employee_id: int,
        attendance_period_id: int,
        work_date: date,
        check_in_time: datetime,
        status: AttendanceStatus,
        notes: Optional[str],
        ip_address: Optional[str],
        created_by: int,
    ) -> AttendanceRecord:
        raise NotImplementedError

    def list_page(self, query: AttendanceQuery, *, offset: int, limit: int) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def count(self, query: AttendanceQuery) -> int:
        raise NotImplementedError

    def list_for_period(self, period_id: int, *, employee_id: Optional[int] = None) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def count_present(self, *, employee_id: int, period_id: int) -> int:
        raise NotImplementedError
