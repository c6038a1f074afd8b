from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date, datetime
from typing import Callable, Optional

from ..audit.repository import AuditSink
from ..common.datetime_utils import now_local
from ..common.pagination import Page, PageRequest
from ..common.validators import clean_optional
from ..core.enums import AttendanceStatus, AuditAction, SubmissionKind
from ..core.exceptions import ConflictError, NotFoundError
from ..database.unit_of_work import Store, UnitOfWork
from ..eligibility.gate import EligibilityGate
from .model import AttendanceQuery, AttendanceRecord, AttendanceSummary

logger = logging.getLogger(__name__)

AUDIT_TABLE = "attendances"


class AttendanceService:
    def __init__(
        self,
        uow: UnitOfWork,
        gate: EligibilityGate,
        audit: AuditSink,
        *,
        clock: Callable[[], datetime] = now_local,
    ):
        self._uow = uow
        self._gate = gate
        self._audit = audit
        self._clock = clock

    def submit(
        self,
        employee_id: int,
        *,
        notes: Optional[str] = None,
        actor_id: Optional[int] = None,
        ip_address: Optional[str] = None,
        request_id: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> AttendanceRecord:
        """Check in for today. A second submission on the same day returns the
        record created by the first one."""
        now = now or self._clock()
        actor_id = int(actor_id if actor_id is not None else employee_id)

        def work(store: Store) -> tuple[AttendanceRecord, bool]:
            period = self._gate.can_submit(store, SubmissionKind.ATTENDANCE, employee_id, now)

            existing = store.attendance.get_for_employee_and_date(int(employee_id), now.date())
            if existing:
                return existing, False

            record = store.attendance.create(
                employee_id=int(employee_id),
                attendance_period_id=period.period_id,
                work_date=now.date(),
                check_in_time=now,
                status=AttendanceStatus.PRESENT,
                notes=clean_optional(notes),
                ip_address=ip_address,
                created_by=actor_id,
            )
            return record, True

        try:
            record, created = self._uow.run(work)
        except ConflictError:
            # A concurrent submit inserted the row after our read; it wins.
            record = self._uow.store.attendance.get_for_employee_and_date(int(employee_id), now.date())
            if not record:
                raise
            created = False
        if not created:
            logger.debug("Attendance for employee %s on %s already submitted", employee_id, record.work_date)
            return record

        self._audit.log_audit(
            AUDIT_TABLE,
            record.attendance_id,
            AuditAction.CREATE,
            None,
            {
                "employeeId": record.employee_id,
                "attendancePeriodId": record.attendance_period_id,
                "date": record.work_date,
                "checkInTime": record.check_in_time,
                "status": record.status,
                "notes": record.notes,
            },
            actor_id,
            ip_address,
            request_id,
        )
        return record

    def find_all(self, query: AttendanceQuery, page: Optional[PageRequest] = None) -> Page[AttendanceRecord]:
        page = page or PageRequest()
        attendance = self._uow.store.attendance
        rows = attendance.list_page(query, offset=page.offset, limit=page.limit)
        return Page.of(rows, attendance.count(query), page)

    def summary(
        self,
        employee_id: int,
        *,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> AttendanceSummary:
        attendance = self._uow.store.attendance
        base = AttendanceQuery(employee_id=int(employee_id), start_date=start_date, end_date=end_date)
        total = attendance.count(base)
        present = attendance.count(replace(base, status=AttendanceStatus.PRESENT))
        absent = attendance.count(replace(base, status=AttendanceStatus.ABSENT))
        return AttendanceSummary(total=total, present=present, absent=absent)

    def find_one(self, attendance_id: int, *, employee_id: Optional[int] = None) -> AttendanceRecord:
        record = self._uow.store.attendance.get_by_id(int(attendance_id), employee_id=employee_id)
        if not record:
            raise NotFoundError("Attendance record not found")
        return record

    def find_by_period(self, period_id: int, *, employee_id: Optional[int] = None) -> list[AttendanceRecord]:
        if not self._uow.store.periods.get_by_id(int(period_id)):
            raise NotFoundError("Attendance period not found")
        return list(self._uow.store.attendance.list_for_period(int(period_id), employee_id=employee_id))
