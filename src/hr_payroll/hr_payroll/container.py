from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.service import AttendanceService
from .audit.mysql_audit_repository import MySQLAuditRepository
from .audit.repository import AuditSink
from .audit.service import AuditService
from .database.connection import DBConfig, DatabaseConnection
from .database.mysql_unit_of_work import MySQLUnitOfWork
from .database.unit_of_work import Store, UnitOfWork
from .eligibility.gate import EligibilityGate
from .employees.mysql_employee_repository import MySQLEmployeeRepository
from .employees.service import EmployeeService
from .overtime.mysql_overtime_repository import MySQLOvertimeRepository
from .overtime.service import OvertimeService
from .payroll.calculator.standard_calculator import StandardPayrollCalculator
from .payroll.mysql_payslip_repository import MySQLPayslipRepository
from .payroll.service import PayrollService
from .payslips.service import PayslipService
from .periods.mysql_period_repository import MySQLPeriodRepository
from .periods.service import AttendancePeriodService
from .reimbursements.mysql_reimbursement_repository import MySQLReimbursementRepository
from .reimbursements.service import ReimbursementService


@dataclass(frozen=True)
class Container:
    uow: UnitOfWork
    audit_service: AuditSink

    period_service: AttendancePeriodService
    employee_service: EmployeeService
    attendance_service: AttendanceService
    overtime_service: OvertimeService
    reimbursement_service: ReimbursementService
    payroll_service: PayrollService
    payslip_service: PayslipService


def build_services(uow: UnitOfWork, audit: AuditSink, *, gate: Optional[EligibilityGate] = None) -> Container:
    """Wire every service on top of an existing unit of work."""
    gate = gate or EligibilityGate()
    payroll_service = PayrollService(uow, StandardPayrollCalculator(), audit)
    return Container(
        uow=uow,
        audit_service=audit,
        period_service=AttendancePeriodService(uow, audit),
        employee_service=EmployeeService(uow, audit),
        attendance_service=AttendanceService(uow, gate, audit),
        overtime_service=OvertimeService(uow, gate, audit),
        reimbursement_service=ReimbursementService(uow, gate, audit),
        payroll_service=payroll_service,
        payslip_service=PayslipService(uow, payroll_service, audit),
    )


def build_container(*, db_config: dict) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_dict(db_config))

    store = Store(
        periods=MySQLPeriodRepository(conn),
        employees=MySQLEmployeeRepository(conn),
        attendance=MySQLAttendanceRepository(conn),
        overtime=MySQLOvertimeRepository(conn),
        reimbursements=MySQLReimbursementRepository(conn),
        payslips=MySQLPayslipRepository(conn),
    )
    uow = MySQLUnitOfWork(conn, store)
    audit = AuditService(MySQLAuditRepository(conn))
    return build_services(uow, audit)
