from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime
from typing import Callable, Optional

from ..audit.repository import AuditSink
from ..common.datetime_utils import now_local
from ..common.pagination import Page, PageRequest
from ..common.validators import clean_optional, require_non_empty, to_decimal
from ..core.enums import AuditAction, OvertimeStatus, SubmissionKind
from ..core.exceptions import ForbiddenError, NotFoundError
from ..database.unit_of_work import Store, UnitOfWork
from ..eligibility.gate import EligibilityGate, require_unprocessed, validate_overtime_span
from .model import NewOvertime, OvertimeChanges, OvertimeQuery, OvertimeRequest

logger = logging.getLogger(__name__)

AUDIT_TABLE = "overtimes"


def _snapshot(overtime: OvertimeRequest) -> dict:
    return {
        "employeeId": overtime.employee_id,
        "attendancePeriodId": overtime.attendance_period_id,
        "date": overtime.work_date,
        "startTime": overtime.start_time,
        "endTime": overtime.end_time,
        "hoursWorked": overtime.hours_worked,
        "reason": overtime.reason,
        "description": overtime.description,
        "status": overtime.status,
    }


def _load(store: Store, overtime_id: int, employee_id: Optional[int] = None) -> OvertimeRequest:
    overtime = store.overtime.get_by_id(int(overtime_id), employee_id=employee_id)
    if not overtime:
        raise NotFoundError("Overtime record not found")
    return overtime


def _require_unprocessed_period(store: Store, overtime: OvertimeRequest, *, action: str) -> None:
    period = store.periods.get_by_id(overtime.attendance_period_id)
    if period:
        require_unprocessed(period, f"Cannot {action} overtime for processed payroll period")


class OvertimeService:
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

    def create(
        self,
        employee_id: int,
        data: NewOvertime,
        *,
        actor_id: Optional[int] = None,
        ip_address: Optional[str] = None,
        request_id: Optional[str] = None,
    ) -> OvertimeRequest:
        data = replace(
            data,
            hours_worked=to_decimal(data.hours_worked, "Hours worked"),
            reason=require_non_empty(data.reason, "Reason"),
            description=clean_optional(data.description),
        )
        actor_id = int(actor_id if actor_id is not None else employee_id)

        def work(store: Store) -> OvertimeRequest:
            period = self._gate.can_submit(store, SubmissionKind.OVERTIME, employee_id, overtime=data)
            return store.overtime.create(
                data,
                employee_id=int(employee_id),
                attendance_period_id=period.period_id,
                has_attendance=True,
                submitted_at=self._clock(),
                ip_address=ip_address,
                created_by=actor_id,
            )

        overtime = self._uow.run(work)
        self._audit.log_audit(
            AUDIT_TABLE,
            overtime.overtime_id,
            AuditAction.CREATE,
            None,
            _snapshot(overtime),
            actor_id,
            ip_address,
            request_id,
        )
        return overtime

    def find_all(self, query: OvertimeQuery, page: Optional[PageRequest] = None) -> Page[OvertimeRequest]:
        page = page or PageRequest()
        overtime = self._uow.store.overtime
        rows = overtime.list_page(query, offset=page.offset, limit=page.limit)
        return Page.of(rows, overtime.count(query), page)

    def find_one(self, overtime_id: int, *, employee_id: Optional[int] = None) -> OvertimeRequest:
        return _load(self._uow.store, overtime_id, employee_id)

    def update(
        self,
        overtime_id: int,
        changes: OvertimeChanges,
        *,
        actor_id: int,
        employee_id: Optional[int] = None,
        ip_address: Optional[str] = None,
        request_id: Optional[str] = None,
    ) -> OvertimeRequest:
        if changes.hours_worked is not None:
            changes = replace(changes, hours_worked=to_decimal(changes.hours_worked, "Hours worked"))
        if changes.reason is not None:
            changes = replace(changes, reason=require_non_empty(changes.reason, "Reason"))

        def work(store: Store) -> tuple[OvertimeRequest, OvertimeRequest]:
            before = _load(store, overtime_id, employee_id)
            if before.status != OvertimeStatus.PENDING:
                raise ForbiddenError("Cannot update overtime that has been processed")
            _require_unprocessed_period(store, before, action="update")
            if changes.start_time and changes.end_time and changes.hours_worked is not None:
                validate_overtime_span(changes.start_time, changes.end_time, changes.hours_worked)

            after = store.overtime.update(
                before.overtime_id,
                changes,
                updated_by=int(actor_id),
                ip_address=ip_address,
            )
            return before, after

        before, after = self._uow.run(work)
        self._audit.log_audit(
            AUDIT_TABLE,
            after.overtime_id,
            AuditAction.UPDATE,
            _snapshot(before),
            _snapshot(after),
            actor_id,
            ip_address,
            request_id,
        )
        return after

    def remove(
        self,
        overtime_id: int,
        *,
        actor_id: int,
        employee_id: Optional[int] = None,
        ip_address: Optional[str] = None,
        request_id: Optional[str] = None,
    ) -> dict:
        def work(store: Store) -> OvertimeRequest:
            overtime = _load(store, overtime_id, employee_id)
            if overtime.status != OvertimeStatus.PENDING:
                raise ForbiddenError("Cannot delete overtime that has been processed")
            _require_unprocessed_period(store, overtime, action="delete")
            store.overtime.delete(overtime.overtime_id)
            return overtime

        overtime = self._uow.run(work)
        self._audit.log_audit(
            AUDIT_TABLE,
            overtime.overtime_id,
            AuditAction.DELETE,
            _snapshot(overtime),
            None,
            actor_id,
            ip_address,
            request_id,
        )
        return {"message": "Overtime deleted successfully"}

    def update_status(
        self,
        overtime_id: int,
        status: OvertimeStatus,
        *,
        actor_id: int,
        ip_address: Optional[str] = None,
        request_id: Optional[str] = None,
    ) -> OvertimeRequest:
        status = OvertimeStatus(status)

        def work(store: Store) -> tuple[OvertimeRequest, OvertimeRequest]:
            before = _load(store, overtime_id)
            if before.status == OvertimeStatus.APPROVED:
                raise ForbiddenError("Overtime request already approved, cannot update")
            _require_unprocessed_period(store, before, action="update")

            after = store.overtime.set_status(
                before.overtime_id,
                status=status,
                changed_at=self._clock(),
                updated_by=int(actor_id),
            )
            return before, after

        before, after = self._uow.run(work)
        logger.info("Overtime %s moved %s -> %s by %s", after.overtime_id, before.status.value, status.value, actor_id)

        self._audit.log_audit(
            AUDIT_TABLE,
            after.overtime_id,
            AuditAction.UPDATE,
            {"status": before.status},
            {"status": after.status, "approvedAt": after.approved_at, "cancelledAt": after.cancelled_at},
            actor_id,
            ip_address,
            request_id,
        )
        return after
