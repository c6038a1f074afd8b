from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Optional, Union


@dataclass(frozen=True)
class PayrollInputs:
    """Facts the calculator needs, already fetched by the caller."""

    employee_id: int
    employee_name: str
    monthly_salary: Decimal
    period_start: date
    period_end: date
    attended_days: int
    overtime_hours: Decimal = Decimal("0")
    reimbursements: Decimal = Decimal("0")


@dataclass(frozen=True)
class PayrollCalculation:
    employee_id: int
    employee_name: str
    base_salary: Decimal
    working_days: int
    attended_days: int
    prorated_salary: Decimal
    overtime_hours: Decimal
    overtime_rate: Decimal
    overtime_pay: Decimal
    reimbursements: Decimal
    gross_pay: Decimal
    deductions: Decimal
    net_pay: Decimal


@dataclass(frozen=True)
class Payslip:
    """Frozen snapshot of a calculation; never recalculated in place."""

    payslip_id: int
    employee_id: int
    attendance_period_id: int
    payslip_number: str
    base_salary: Decimal
    working_days: int
    attended_days: int
    prorated_salary: Decimal
    total_overtime_hours: Decimal
    overtime_rate: Decimal
    total_overtime_pay: Decimal
    total_reimbursements: Decimal
    gross_pay: Decimal
    deductions: Decimal
    net_pay: Decimal
    generated_at: Optional[datetime] = None
    created_by: Optional[int] = None


@dataclass(frozen=True)
class EmployeeFailure:
    employee_id: int
    error: str


@dataclass(frozen=True)
class PayrollRunResult:
    period_id: int
    total_employees: int
    processed_successfully: int
    failed: int
    results: list[Union[Payslip, EmployeeFailure]] = field(default_factory=list)


@dataclass(frozen=True)
class PayrollSummary:
    period_id: int
    period_name: str
    total_employees: int
    processed_employees: int
    total_gross_pay: Decimal
    total_net_pay: Decimal
    total_deductions: Decimal
    total_overtime_pay: Decimal
    total_reimbursements: Decimal
    processed_at: Optional[datetime] = None
    processed_by: Optional[int] = None


@dataclass(frozen=True)
class PayrollStatus:
    period_id: int
    period_name: str
    total_employees: int
    processed_employees: int
    is_processed: bool
    processed_at: Optional[datetime]
    can_process: bool


@dataclass(frozen=True)
class ProcessedPeriod:
    period_id: int
    period_name: str
    start_date: date
    end_date: date
    processed_at: Optional[datetime]
    processed_by: Optional[int]
    payslip_count: int
