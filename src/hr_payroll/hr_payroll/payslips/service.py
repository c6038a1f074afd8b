from __future__ import annotations

import uuid
from typing import Optional

from ..audit.repository import AuditSink
from ..core.enums import AuditAction
from ..core.exceptions import NotFoundError
from ..database.unit_of_work import UnitOfWork
from ..payroll.model import PayrollCalculation, Payslip
from ..payroll.service import PayrollService

AUDIT_TABLE = "payslips"


class PayslipService:
    """Employee-facing payslip views."""

    def __init__(self, uow: UnitOfWork, payroll: PayrollService, audit: AuditSink):
        self._uow = uow
        self._payroll = payroll
        self._audit = audit

    def preview(
        self,
        employee_id: int,
        *,
        actor_id: Optional[int] = None,
        ip_address: Optional[str] = None,
        request_id: Optional[str] = None,
    ) -> PayrollCalculation:
        """What the employee would be paid for the active period so far."""
        employee = self._uow.store.employees.get_by_id(int(employee_id))
        if not employee:
            raise NotFoundError("Employee not found")
        period = self._uow.store.periods.get_current()
        if not period:
            raise NotFoundError("No active period found")

        calculation = self._payroll.calculate(employee, period)
        self._audit.log_audit(
            AUDIT_TABLE,
            uuid.uuid4(),
            AuditAction.CREATE,
            None,
            {
                "employeeId": employee.employee_id,
                "attendancePeriodId": period.period_id,
                "grossPay": calculation.gross_pay,
                "netPay": calculation.net_pay,
            },
            actor_id if actor_id is not None else employee.employee_id,
            ip_address,
            request_id,
        )
        return calculation

    def get_for_period(self, employee_id: int, period_id: int) -> Payslip:
        if not self._uow.store.periods.get_by_id(int(period_id)):
            raise NotFoundError("Attendance period not found")
        payslip = self._uow.store.payslips.get_for_employee_and_period(
            employee_id=int(employee_id),
            period_id=int(period_id),
        )
        if not payslip:
            raise NotFoundError("Payslip not found for this period")
        return payslip
