from __future__ import annotations

import logging
from datetime import datetime
from decimal import Decimal
from typing import Callable, Iterable, Optional, Union

from ..audit.repository import AuditSink
from ..common.datetime_utils import now_local
from ..common.pagination import Page, PageRequest
from ..core.constants import PAYSLIP_NUMBER_TAG, PAYSLIP_NUMBER_WIDTH
from ..core.enums import AuditAction, EmployeeStatus, PeriodStatus
from ..core.exceptions import DomainError, NotFoundError, ValidationError
from ..database.unit_of_work import Store, UnitOfWork
from ..employees.model import Employee
from ..periods.model import AttendancePeriod
from ..sequencing.sequencer import CodeSequencer, month_prefix, with_retry
from .calculator.base import PayrollCalculator
from .model import (
    EmployeeFailure,
    PayrollCalculation,
    PayrollInputs,
    PayrollRunResult,
    PayrollStatus,
    PayrollSummary,
    Payslip,
    ProcessedPeriod,
)

logger = logging.getLogger(__name__)

AUDIT_TABLE = "payslips"
ZERO = Decimal("0")


def gather_inputs(store: Store, employee: Employee, period: AttendancePeriod) -> PayrollInputs:
    """Collect the facts of one (employee, period) pair the calculator needs."""
    return PayrollInputs(
        employee_id=employee.employee_id,
        employee_name=employee.full_name,
        monthly_salary=employee.monthly_salary,
        period_start=period.start_date,
        period_end=period.end_date,
        attended_days=store.attendance.count_present(employee_id=employee.employee_id, period_id=period.period_id),
        overtime_hours=store.overtime.sum_approved_hours(employee_id=employee.employee_id, period_id=period.period_id),
        reimbursements=store.reimbursements.sum_approved(employee_id=employee.employee_id, period_id=period.period_id),
    )


def payslip_prefix(period: AttendancePeriod) -> str:
    return month_prefix(PAYSLIP_NUMBER_TAG, period.start_date, four_digit_year=True)


class PayrollService:
    """Batch payroll for one attendance period.

    Each employee is processed in its own unit of work, so one failure never
    rolls back payslips already written for the others. A run only latches the
    period as processed when it covered every active employee without errors.
    """

    def __init__(
        self,
        uow: UnitOfWork,
        calculator: PayrollCalculator,
        audit: AuditSink,
        *,
        clock: Callable[[], datetime] = now_local,
    ):
        self._uow = uow
        self._calculator = calculator
        self._audit = audit
        self._clock = clock

    def _get_period(self, period_id: int) -> AttendancePeriod:
        period = self._uow.store.periods.get_by_id(int(period_id))
        if not period:
            raise NotFoundError("Attendance period not found")
        return period

    def process_payroll(
        self,
        period_id: int,
        employee_ids: Optional[Iterable[int]] = None,
        *,
        processed_by: int,
        ip_address: Optional[str] = None,
        request_id: Optional[str] = None,
    ) -> PayrollRunResult:
        period = self._get_period(period_id)
        if period.payroll_processed:
            raise ValidationError("Payroll already processed for this period")
        if period.status == PeriodStatus.CLOSED:
            raise ValidationError("Cannot process payroll for closed period")

        selected = None if employee_ids is None else [int(e) for e in employee_ids]
        employees = self._uow.store.employees.list_by_status(status=EmployeeStatus.ACTIVE, employee_ids=selected)
        if not employees:
            raise ValidationError("No active employees found for processing")

        logger.info("Processing payroll for period %s (%d employees)", period.period_id, len(employees))

        results: list[Union[Payslip, EmployeeFailure]] = []
        failed = 0
        for employee in employees:
            try:
                payslip = self._process_employee(period, employee, processed_by=int(processed_by))
            except DomainError as exc:
                logger.warning("Payroll failed for employee %s: %s", employee.employee_id, exc)
                results.append(EmployeeFailure(employee_id=employee.employee_id, error=str(exc)))
                failed += 1
                continue
            except Exception as exc:
                logger.exception("Payroll crashed for employee %s", employee.employee_id)
                results.append(EmployeeFailure(employee_id=employee.employee_id, error=str(exc) or type(exc).__name__))
                failed += 1
                continue

            logger.info("Generated payslip %s for employee %s", payslip.payslip_number, employee.employee_id)
            results.append(payslip)
            self._audit.log_audit(
                AUDIT_TABLE,
                payslip.payslip_id,
                AuditAction.CREATE,
                None,
                {
                    "employeeId": payslip.employee_id,
                    "attendancePeriodId": payslip.attendance_period_id,
                    "payslipNumber": payslip.payslip_number,
                    "grossPay": payslip.gross_pay,
                    "netPay": payslip.net_pay,
                },
                processed_by,
                ip_address,
                request_id,
            )

        if selected is None and failed == 0:
            processed_at = self._clock()
            self._uow.run(
                lambda store: store.periods.mark_processed(
                    period.period_id,
                    processed_at=processed_at,
                    processed_by=int(processed_by),
                )
            )
            logger.info("Period %s marked as payroll processed", period.period_id)
            self._audit.log_audit(
                "attendance-periods",
                period.period_id,
                AuditAction.UPDATE,
                {"payrollProcessed": False},
                {"payrollProcessed": True, "processedAt": processed_at, "processedBy": processed_by},
                processed_by,
                ip_address,
                request_id,
            )

        return PayrollRunResult(
            period_id=period.period_id,
            total_employees=len(employees),
            processed_successfully=len(employees) - failed,
            failed=failed,
            results=results,
        )

    def _process_employee(self, period: AttendancePeriod, employee: Employee, *, processed_by: int) -> Payslip:
        def work(store: Store) -> Payslip:
            if store.payslips.get_for_employee_and_period(employee_id=employee.employee_id, period_id=period.period_id):
                raise ValidationError("Payslip already exists for this period")

            calculation = self._calculator.calculate(gather_inputs(store, employee, period))
            numbers = CodeSequencer(store.payslips.latest_number_with_prefix, width=PAYSLIP_NUMBER_WIDTH)
            return with_retry(
                numbers,
                payslip_prefix(period),
                lambda number: store.payslips.create(
                    calculation,
                    period_id=period.period_id,
                    payslip_number=number,
                    generated_at=self._clock(),
                    created_by=processed_by,
                ),
            )

        return self._uow.run(work)

    def calculate(self, employee: Employee, period: AttendancePeriod) -> PayrollCalculation:
        """Live calculation, nothing is persisted."""
        return self._calculator.calculate(gather_inputs(self._uow.store, employee, period))

    def get_summary(self, period_id: int) -> PayrollSummary:
        period = self._get_period(period_id)
        payslips = list(self._uow.store.payslips.list_for_period(period.period_id))

        def total(attr: str) -> Decimal:
            return sum((getattr(p, attr) for p in payslips), ZERO)

        return PayrollSummary(
            period_id=period.period_id,
            period_name=period.name,
            total_employees=self._uow.store.employees.count_by_status(EmployeeStatus.ACTIVE),
            processed_employees=len(payslips),
            total_gross_pay=total("gross_pay"),
            total_net_pay=total("net_pay"),
            total_deductions=total("deductions"),
            total_overtime_pay=total("total_overtime_pay"),
            total_reimbursements=total("total_reimbursements"),
            processed_at=period.processed_at,
            processed_by=period.processed_by,
        )

    def get_status(self, period_id: int) -> PayrollStatus:
        period = self._get_period(period_id)
        return PayrollStatus(
            period_id=period.period_id,
            period_name=period.name,
            total_employees=self._uow.store.employees.count_by_status(EmployeeStatus.ACTIVE),
            processed_employees=self._uow.store.payslips.count_for_period(period.period_id),
            is_processed=period.payroll_processed,
            processed_at=period.processed_at,
            can_process=period.can_process,
        )

    def get_history(self, page: Optional[PageRequest] = None) -> Page[ProcessedPeriod]:
        page = page or PageRequest()
        store = self._uow.store
        rows = [
            ProcessedPeriod(
                period_id=p.period_id,
                period_name=p.name,
                start_date=p.start_date,
                end_date=p.end_date,
                processed_at=p.processed_at,
                processed_by=p.processed_by,
                payslip_count=store.payslips.count_for_period(p.period_id),
            )
            for p in store.periods.list_processed_page(offset=page.offset, limit=page.limit)
        ]
        return Page.of(rows, store.periods.count_processed(), page)
