from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Protocol, TypeVar

from ..attendance.repository import AttendanceRepository
from ..employees.repository import EmployeeRepository
from ..overtime.repository import OvertimeRepository
from ..payroll.repository import PayslipRepository
from ..periods.repository import PeriodRepository
from ..reimbursements.repository import ReimbursementRepository

T = TypeVar("T")


@dataclass(frozen=True)
class Store:
    """One set of repositories sharing the same transactional handle."""

    periods: PeriodRepository
    employees: EmployeeRepository
    attendance: AttendanceRepository
    overtime: OvertimeRepository
    reimbursements: ReimbursementRepository
    payslips: PayslipRepository


class UnitOfWork(Protocol):
    """Transaction boundary.

    ``store`` runs every call on its own short-lived connection (reads, single
    writes). ``run(work)`` hands ``work`` a Store bound to one transaction,
    commits when it returns and rolls back when it raises.
    """

    store: Store

    def run(self, work: Callable[[Store], T]) -> T:
        raise NotImplementedError
