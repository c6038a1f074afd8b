from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Optional, Protocol, Sequence

from ..core.enums import OvertimeStatus
from .model import NewOvertime, OvertimeChanges, OvertimeQuery, OvertimeRequest


class OvertimeRepository(Protocol):
    def get_by_id(self, overtime_id: int, *, employee_id: Optional[int] = None) -> Optional[OvertimeRequest]:
        raise NotImplementedError

    def get_for_employee_and_date(self, employee_id: int, work_date: date) -> Optional[OvertimeRequest]:
        raise NotImplementedError

    def create(
        self,
        data: NewOvertime,
        *,
        employee_id: int,
        attendance_period_id: int,
        has_attendance: bool,
        submitted_at: datetime,
        ip_address: Optional[str],
        created_by: int,
    ) -> OvertimeRequest:
        raise NotImplementedError

    def update(
        self,
        overtime_id: int,
        changes: OvertimeChanges,
        *,
        updated_by: int,
        ip_address: Optional[str] = None,
    ) -> OvertimeRequest:
        raise NotImplementedError

    def set_status(
        self,
        overtime_id: int,
        *,
        status: OvertimeStatus,
        changed_at: datetime,
        updated_by: int,
    ) -> OvertimeRequest:
        """APPROVED stamps approved_at/approved_by; any other status stamps cancelled_at."""

        raise NotImplementedError

    def delete(self, overtime_id: int) -> bool:
        raise NotImplementedError

    def list_page(self, query: OvertimeQuery, *, offset: int, limit: int) -> Sequence[OvertimeRequest]:
        raise NotImplementedError

    def count(self, query: OvertimeQuery) -> int:
        raise NotImplementedError

    def sum_approved_hours(self, *, employee_id: int, period_id: int) -> Decimal:
        raise NotImplementedError
