from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from ..core.enums import EmployeeStatus


@dataclass(frozen=True)
class Employee:
    """Domain entity: employee master record (pure data, no DB access)."""

    employee_id: int
    employee_code: str
    full_name: str
    employee_number: str
    email: str
    monthly_salary: Decimal
    status: EmployeeStatus = EmployeeStatus.ACTIVE
    department: Optional[str] = None
    position: Optional[str] = None

    @property
    def is_active(self) -> bool:
        return self.status == EmployeeStatus.ACTIVE


@dataclass(frozen=True)
class NewEmployee:
    full_name: str
    employee_number: str
    email: str
    monthly_salary: Decimal
    department: Optional[str] = None
    position: Optional[str] = None
    status: EmployeeStatus = EmployeeStatus.ACTIVE


@dataclass(frozen=True)
class EmployeeChanges:
    full_name: Optional[str] = None
    email: Optional[str] = None
    department: Optional[str] = None
    position: Optional[str] = None
    monthly_salary: Optional[Decimal] = None
    status: Optional[EmployeeStatus] = None
