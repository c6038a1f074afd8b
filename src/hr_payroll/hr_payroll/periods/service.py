from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date
from typing import Optional

from ..audit.repository import AuditSink
from ..common.pagination import Page, PageRequest
from ..common.validators import require_max_length, require_non_empty
from ..core.constants import PERIOD_NAME_MAX_LENGTH
from ..core.enums import AuditAction, PeriodStatus
from ..core.exceptions import ConflictError, NotFoundError, ValidationError
from ..database.unit_of_work import Store, UnitOfWork
from .model import AttendancePeriod, PeriodChanges

logger = logging.getLogger(__name__)

AUDIT_TABLE = "attendance-periods"


def _require_valid_range(start: date, end: date) -> None:
    if start >= end:
        raise ValidationError("Start date must be before end date")


def _snapshot(period: AttendancePeriod) -> dict:
    return {
        "name": period.name,
        "startDate": period.start_date,
        "endDate": period.end_date,
        "isActive": period.is_active,
        "status": period.status,
    }


class AttendancePeriodService:
    """Lifecycle of attendance periods.

    Active <-> Inactive (is_active flag) while status is ACTIVE, then CLOSED.
    Once payroll_processed is set the period can no longer be changed or deleted.
    At most one period is active: activating one deactivates every other period
    inside the same unit of work.
    """

    def __init__(self, uow: UnitOfWork, audit: AuditSink):
        self._uow = uow
        self._audit = audit

    def create(
        self,
        *,
        name: str,
        start_date: date,
        end_date: date,
        created_by: int,
        is_active: bool = True,
    ) -> AttendancePeriod:
        name = require_max_length(require_non_empty(name, "Name"), "Name", PERIOD_NAME_MAX_LENGTH)
        _require_valid_range(start_date, end_date)

        def work(store: Store) -> AttendancePeriod:
            if store.periods.find_overlapping(start_date=start_date, end_date=end_date):
                raise ConflictError("Period overlaps with existing active period")
            if is_active:
                store.periods.lock_active()
                store.periods.deactivate_all()
            return store.periods.create(
                name=name,
                start_date=start_date,
                end_date=end_date,
                is_active=bool(is_active),
                created_by=int(created_by),
            )

        period = self._uow.run(work)
        if period.is_active:
            logger.info("Attendance period %s (%s) is now the active period", period.period_id, period.name)

        self._audit.log_audit(
            AUDIT_TABLE,
            period.period_id,
            AuditAction.CREATE,
            None,
            {**_snapshot(period), "createdById": created_by},
            created_by,
        )
        return period

    def find_all(self, page: Optional[PageRequest] = None) -> Page[AttendancePeriod]:
        page = page or PageRequest()
        periods = self._uow.store.periods.list_page(offset=page.offset, limit=page.limit)
        return Page.of(periods, self._uow.store.periods.count(), page)

    def find_one(self, period_id: int) -> AttendancePeriod:
        period = self._uow.store.periods.get_by_id(int(period_id))
        if not period:
            raise NotFoundError("Attendance period not found")
        return period

    def find_current(self) -> AttendancePeriod:
        period = self._uow.store.periods.get_current()
        if not period:
            raise NotFoundError("No active period found")
        return period

    def update(self, period_id: int, changes: PeriodChanges, *, updated_by: int) -> AttendancePeriod:
        if changes.name is not None:
            changes = replace(
                changes,
                name=require_max_length(require_non_empty(changes.name, "Name"), "Name", PERIOD_NAME_MAX_LENGTH),
            )

        def work(store: Store) -> tuple[AttendancePeriod, AttendancePeriod]:
            period = store.periods.get_by_id(int(period_id))
            if not period:
                raise NotFoundError("Attendance period not found")
            if period.payroll_processed:
                raise ValidationError("Cannot update period that has been processed")

            if changes.start_date is not None or changes.end_date is not None:
                _require_valid_range(
                    changes.start_date or period.start_date,
                    changes.end_date or period.end_date,
                )

            if changes.is_active is True:
                store.periods.lock_active()
                store.periods.deactivate_all(except_id=period.period_id)

            return period, store.periods.update(period.period_id, changes, updated_by=int(updated_by))

        before, after = self._uow.run(work)
        if after.is_active and not before.is_active:
            logger.info("Attendance period %s (%s) is now the active period", after.period_id, after.name)

        self._audit.log_audit(
            AUDIT_TABLE,
            after.period_id,
            AuditAction.UPDATE,
            _snapshot(before),
            {**_snapshot(after), "updatedById": updated_by},
            updated_by,
        )
        return after

    def close(self, period_id: int, *, updated_by: int) -> AttendancePeriod:
        return self.update(
            period_id,
            PeriodChanges(status=PeriodStatus.CLOSED, is_active=False),
            updated_by=updated_by,
        )

    def remove(self, period_id: int, *, deleted_by: Optional[int] = None) -> dict:
        def work(store: Store) -> AttendancePeriod:
            period = store.periods.get_by_id(int(period_id))
            if not period:
                raise NotFoundError("Attendance period not found")
            if period.payroll_processed:
                raise ValidationError("Cannot delete processed period")
            if store.periods.count_dependents(period.period_id).total > 0:
                raise ValidationError("Cannot delete period with existing records")
            store.periods.delete(period.period_id)
            return period

        period = self._uow.run(work)
        self._audit.log_audit(AUDIT_TABLE, period.period_id, AuditAction.DELETE, _snapshot(period), None, deleted_by)
        return {"message": "Period deleted successfully"}
