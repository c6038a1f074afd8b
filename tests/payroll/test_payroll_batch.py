from datetime import date, datetime
from decimal import Decimal

import pytest

from src.hr_payroll.hr_payroll.core.enums import EmployeeStatus, OvertimeStatus, PeriodStatus, ReimbursementStatus
from src.hr_payroll.hr_payroll.core.exceptions import NotFoundError, ValidationError
from src.hr_payroll.hr_payroll.payroll.calculator.standard_calculator import StandardPayrollCalculator
from src.hr_payroll.hr_payroll.payroll.model import EmployeeFailure, Payslip
from src.hr_payroll.hr_payroll.payroll.service import PayrollService

from hr_payroll_fakes import FixedClock, InMemoryUnitOfWork, RecordingAudit, make_employee, make_period

RUN_AT = datetime(2024, 7, 1, 9, 0)


@pytest.fixture()
def uow():
    return InMemoryUnitOfWork()


@pytest.fixture()
def audit():
    return RecordingAudit()


@pytest.fixture()
def service(uow, audit):
    return PayrollService(uow, StandardPayrollCalculator(), audit, clock=FixedClock(RUN_AT))


@pytest.fixture()
def june(uow):
    return make_period(uow, date(2024, 6, 1), date(2024, 6, 30), name="June 2024")


def _attend(uow, employee, period, days):
    for day in days:
        uow.store.attendance.add(employee_id=employee.employee_id, attendance_period_id=period.period_id, work_date=day)


def _payslip_numbers(uow):
    return sorted(p.payslip_number for p in uow.store.payslips.rows.values())


def test_full_run_generates_payslips_and_latches_period(service, uow, audit, june):
    alice = make_employee(uow, monthly_salary=Decimal("4000"))
    bob = make_employee(uow, monthly_salary=Decimal("6000"))
    make_employee(uow, status=EmployeeStatus.INACTIVE)
    _attend(uow, alice, june, [date(2024, 6, 3), date(2024, 6, 4)])
    _attend(uow, bob, june, [date(2024, 6, 3)])

    result = service.process_payroll(june.period_id, processed_by=1, request_id="run-1")

    assert (result.total_employees, result.processed_successfully, result.failed) == (2, 2, 0)
    assert all(isinstance(r, Payslip) for r in result.results)
    assert _payslip_numbers(uow) == ["PAY2024060001", "PAY2024060002"]

    period = uow.store.periods.get_by_id(june.period_id)
    assert period.payroll_processed is True
    assert period.processed_at == RUN_AT
    assert period.processed_by == 1

    tables = [e["table_name"] for e in audit.entries]
    assert tables == ["payslips", "payslips", "attendance-periods"]


def test_payslip_snapshot_uses_only_approved_items(service, uow, june):
    employee = make_employee(uow, monthly_salary=Decimal("5000"))
    _attend(uow, employee, june, [date(2024, 6, 3), date(2024, 6, 4)])
    uow.store.overtime.add(
        employee_id=employee.employee_id,
        attendance_period_id=june.period_id,
        work_date=date(2024, 6, 3),
        hours="2",
        status=OvertimeStatus.APPROVED,
    )
    uow.store.overtime.add(
        employee_id=employee.employee_id,
        attendance_period_id=june.period_id,
        work_date=date(2024, 6, 4),
        hours="3",
        status=OvertimeStatus.PENDING,
    )
    uow.store.reimbursements.add(
        employee_id=employee.employee_id,
        attendance_period_id=june.period_id,
        amount="12.40",
        status=ReimbursementStatus.APPROVED,
    )
    uow.store.reimbursements.add(
        employee_id=employee.employee_id,
        attendance_period_id=june.period_id,
        amount="500",
        status=ReimbursementStatus.REJECTED,
    )

    payslip = service.process_payroll(june.period_id, processed_by=1).results[0]

    # 20 working days: daily 250, hourly overtime 250 / 8 * 1.5 = 46.875
    assert payslip.working_days == 20
    assert payslip.attended_days == 2
    assert payslip.prorated_salary == Decimal("500.00")
    assert payslip.total_overtime_hours == Decimal("2")
    assert payslip.total_overtime_pay == Decimal("93.75")
    assert payslip.total_reimbursements == Decimal("12.40")
    assert payslip.gross_pay == Decimal("606.15")
    assert payslip.deductions == Decimal("0.00")
    assert payslip.net_pay == Decimal("606.15")


def test_selected_run_does_not_latch_period(service, uow, june):
    alice = make_employee(uow)
    make_employee(uow)

    result = service.process_payroll(june.period_id, [alice.employee_id], processed_by=1)

    assert result.total_employees == 1
    assert uow.store.periods.get_by_id(june.period_id).payroll_processed is False


def test_rerun_after_partial_run_reports_existing_payslip(service, uow, june):
    alice = make_employee(uow)
    bob = make_employee(uow)
    service.process_payroll(june.period_id, [alice.employee_id], processed_by=1)

    result = service.process_payroll(june.period_id, processed_by=1)

    assert (result.processed_successfully, result.failed) == (1, 1)
    failure = next(r for r in result.results if isinstance(r, EmployeeFailure))
    assert failure.employee_id == alice.employee_id
    assert failure.error == "Payslip already exists for this period"
    assert uow.store.payslips.get_for_employee_and_period(employee_id=bob.employee_id, period_id=june.period_id)
    assert uow.store.periods.get_by_id(june.period_id).payroll_processed is False
    assert _payslip_numbers(uow) == ["PAY2024060001", "PAY2024060002"]


def test_failure_is_isolated_and_blocks_latch(service, uow, june):
    alice = make_employee(uow)
    bob = make_employee(uow)
    carol = make_employee(uow)
    uow.store.payslips.fail_for.add(bob.employee_id)

    result = service.process_payroll(june.period_id, processed_by=1)

    assert (result.processed_successfully, result.failed) == (2, 1)
    assert [type(r) for r in result.results] == [Payslip, EmployeeFailure, Payslip]
    assert result.results[1].error == "disk full"
    assert {p.employee_id for p in uow.store.payslips.rows.values()} == {alice.employee_id, carol.employee_id}
    assert _payslip_numbers(uow) == ["PAY2024060001", "PAY2024060002"]
    assert uow.store.periods.get_by_id(june.period_id).payroll_processed is False


def test_processed_period_cannot_run_again(service, uow, june):
    make_employee(uow)
    service.process_payroll(june.period_id, processed_by=1)
    with pytest.raises(ValidationError, match="Payroll already processed for this period"):
        service.process_payroll(june.period_id, processed_by=1)


def test_preconditions(service, uow):
    with pytest.raises(NotFoundError, match="Attendance period not found"):
        service.process_payroll(404, processed_by=1)

    closed = make_period(uow, date(2024, 5, 1), date(2024, 5, 31), status=PeriodStatus.CLOSED, is_active=False)
    with pytest.raises(ValidationError, match="Cannot process payroll for closed period"):
        service.process_payroll(closed.period_id, processed_by=1)

    open_period = make_period(uow, date(2024, 6, 1), date(2024, 6, 30))
    with pytest.raises(ValidationError, match="No active employees found for processing"):
        service.process_payroll(open_period.period_id, processed_by=1)


def test_summary_status_and_history(service, uow, june):
    make_employee(uow, monthly_salary=Decimal("4000"))
    make_employee(uow, monthly_salary=Decimal("6000"))

    status = service.get_status(june.period_id)
    assert (status.total_employees, status.processed_employees, status.can_process) == (2, 0, True)

    service.process_payroll(june.period_id, processed_by=7)

    summary = service.get_summary(june.period_id)
    assert summary.processed_employees == 2
    assert summary.total_gross_pay == Decimal("0.00")
    assert summary.processed_by == 7

    status = service.get_status(june.period_id)
    assert status.is_processed is True
    assert status.can_process is False

    history = service.get_history()
    assert history.total == 1
    assert history.data[0].period_name == "June 2024"
    assert history.data[0].payslip_count == 2
