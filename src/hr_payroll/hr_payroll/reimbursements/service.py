from __future__ import annotations

import logging
from dataclasses import replace
from decimal import Decimal
from typing import Optional

from ..audit.repository import AuditSink
from ..common.pagination import Page, PageRequest
from ..common.validators import clean_optional, require_non_empty, require_positive_amount
from ..core.enums import AuditAction, ReimbursementStatus, SubmissionKind
from ..core.exceptions import NotFoundError, ValidationError
from ..database.unit_of_work import Store, UnitOfWork
from ..eligibility.gate import EligibilityGate
from .model import (
    Reimbursement,
    ReimbursementChanges,
    ReimbursementQuery,
    ReimbursementSummary,
)

logger = logging.getLogger(__name__)

AUDIT_TABLE = "reimbursements"


def _snapshot(reimbursement: Reimbursement) -> dict:
    return {
        "employeeId": reimbursement.employee_id,
        "attendancePeriodId": reimbursement.attendance_period_id,
        "amount": reimbursement.amount,
        "description": reimbursement.description,
        "receiptUrl": reimbursement.receipt_url,
        "status": reimbursement.status,
    }


def _load(store: Store, reimbursement_id: int, employee_id: Optional[int] = None) -> Reimbursement:
    reimbursement = store.reimbursements.get_by_id(int(reimbursement_id), employee_id=employee_id)
    if not reimbursement:
        raise NotFoundError("Reimbursement not found")
    return reimbursement


class ReimbursementService:
    def __init__(self, uow: UnitOfWork, gate: EligibilityGate, audit: AuditSink):
        self._uow = uow
        self._gate = gate
        self._audit = audit

    def create(
        self,
        employee_id: int,
        *,
        attendance_period_id: int,
        amount,
        description: str,
        receipt_url: Optional[str] = None,
        actor_id: Optional[int] = None,
        ip_address: Optional[str] = None,
        request_id: Optional[str] = None,
    ) -> Reimbursement:
        # Checked before any lookup so a bad amount never reaches the store.
        amount = require_positive_amount(amount)
        description = require_non_empty(description, "Description")
        actor_id = int(actor_id if actor_id is not None else employee_id)

        def work(store: Store) -> Reimbursement:
            period = self._gate.can_submit(
                store,
                SubmissionKind.REIMBURSEMENT,
                employee_id,
                period_id=attendance_period_id,
            )
            return store.reimbursements.create(
                employee_id=int(employee_id),
                attendance_period_id=period.period_id,
                amount=amount,
                description=description,
                receipt_url=clean_optional(receipt_url),
                ip_address=ip_address,
                created_by=actor_id,
            )

        reimbursement = self._uow.run(work)
        self._audit.log_audit(
            AUDIT_TABLE,
            reimbursement.reimbursement_id,
            AuditAction.CREATE,
            None,
            _snapshot(reimbursement),
            actor_id,
            ip_address,
            request_id,
        )
        return reimbursement

    def find_all(self, query: ReimbursementQuery, page: Optional[PageRequest] = None) -> Page[Reimbursement]:
        page = page or PageRequest()
        reimbursements = self._uow.store.reimbursements
        rows = reimbursements.list_page(query, offset=page.offset, limit=page.limit)
        return Page.of(rows, reimbursements.count(query), page)

    def find_one(self, reimbursement_id: int, *, employee_id: Optional[int] = None) -> Reimbursement:
        return _load(self._uow.store, reimbursement_id, employee_id)

    def _require_editable(self, store: Store, reimbursement: Reimbursement, *, action: str) -> None:
        if reimbursement.status != ReimbursementStatus.PENDING:
            raise ValidationError(f"Can only {action} pending reimbursements")
        period = store.periods.get_by_id(reimbursement.attendance_period_id)
        if not period:
            raise NotFoundError("Attendance period not found")
        self._gate.require_open_for_reimbursement(period, action=action)

    def update(
        self,
        reimbursement_id: int,
        changes: ReimbursementChanges,
        *,
        actor_id: int,
        employee_id: Optional[int] = None,
        ip_address: Optional[str] = None,
        request_id: Optional[str] = None,
    ) -> Reimbursement:
        if changes.amount is not None:
            changes = replace(changes, amount=require_positive_amount(changes.amount))
        if changes.description is not None:
            require_non_empty(changes.description, "Description")

        def work(store: Store) -> tuple[Reimbursement, Reimbursement]:
            before = _load(store, reimbursement_id, employee_id)
            self._require_editable(store, before, action="update")
            return before, store.reimbursements.update(before.reimbursement_id, changes, updated_by=int(actor_id))

        before, after = self._uow.run(work)
        self._audit.log_audit(
            AUDIT_TABLE,
            after.reimbursement_id,
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
        reimbursement_id: int,
        *,
        actor_id: int,
        employee_id: Optional[int] = None,
        ip_address: Optional[str] = None,
        request_id: Optional[str] = None,
    ) -> dict:
        def work(store: Store) -> Reimbursement:
            reimbursement = _load(store, reimbursement_id, employee_id)
            self._require_editable(store, reimbursement, action="delete")
            store.reimbursements.delete(reimbursement.reimbursement_id)
            return reimbursement

        reimbursement = self._uow.run(work)
        self._audit.log_audit(
            AUDIT_TABLE,
            reimbursement.reimbursement_id,
            AuditAction.DELETE,
            _snapshot(reimbursement),
            None,
            actor_id,
            ip_address,
            request_id,
        )
        return {"message": "Reimbursement deleted successfully"}

    def update_status(
        self,
        reimbursement_id: int,
        status: ReimbursementStatus,
        *,
        actor_id: int,
        ip_address: Optional[str] = None,
        request_id: Optional[str] = None,
    ) -> Reimbursement:
        status = ReimbursementStatus(status)

        def work(store: Store) -> tuple[Reimbursement, Reimbursement]:
            before = _load(store, reimbursement_id)
            period = store.periods.get_by_id(before.attendance_period_id)
            if period and period.payroll_processed:
                raise ValidationError("Cannot update reimbursement for processed payroll period")
            after = store.reimbursements.set_status(
                before.reimbursement_id,
                status=status,
                updated_by=int(actor_id),
            )
            return before, after

        before, after = self._uow.run(work)
        logger.info(
            "Reimbursement %s moved %s -> %s by %s",
            after.reimbursement_id,
            before.status.value,
            status.value,
            actor_id,
        )
        self._audit.log_audit(
            AUDIT_TABLE,
            after.reimbursement_id,
            AuditAction.UPDATE,
            {"status": before.status},
            {"status": after.status},
            actor_id,
            ip_address,
            request_id,
        )
        return after

    def summary(self, *, attendance_period_id: Optional[int] = None) -> ReimbursementSummary:
        by_status = list(self._uow.store.reimbursements.totals_by_status(attendance_period_id=attendance_period_id))
        return ReimbursementSummary(
            by_status=by_status,
            total_count=sum(row.count for row in by_status),
            total_amount=sum((row.total_amount for row in by_status), Decimal("0")),
        )
