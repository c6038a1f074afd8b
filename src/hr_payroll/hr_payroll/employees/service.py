from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime
from decimal import Decimal
from typing import Callable, Optional

from ..audit.repository import AuditSink
from ..common.datetime_utils import now_local
from ..common.pagination import Page, PageRequest
from ..common.validators import clean_optional, require_non_empty, to_decimal
from ..core.constants import EMPLOYEE_CODE_TAG, EMPLOYEE_CODE_WIDTH
from ..core.enums import AuditAction
from ..core.exceptions import ConflictError, NotFoundError, ValidationError
from ..database.unit_of_work import UnitOfWork
from ..sequencing.sequencer import CodeSequencer, month_prefix, with_retry
from .model import Employee, EmployeeChanges, NewEmployee

logger = logging.getLogger(__name__)

AUDIT_TABLE = "employees"


def _snapshot(employee: Employee) -> dict:
    return {
        "employeeCode": employee.employee_code,
        "fullName": employee.full_name,
        "employeeNumber": employee.employee_number,
        "email": employee.email,
        "department": employee.department,
        "position": employee.position,
        "monthlySalary": employee.monthly_salary,
        "status": employee.status,
    }


def _require_salary(value) -> Decimal:
    salary = to_decimal(value, "Monthly salary")
    if salary < 0:
        raise ValidationError("Monthly salary must not be negative")
    return salary


class EmployeeService:
    def __init__(self, uow: UnitOfWork, audit: AuditSink, *, clock: Callable[[], datetime] = now_local):
        self._uow = uow
        self._audit = audit
        self._clock = clock
        self._codes = CodeSequencer(
            lambda prefix: self._uow.store.employees.latest_code_with_prefix(prefix),
            width=EMPLOYEE_CODE_WIDTH,
        )

    def create(self, data: NewEmployee, *, created_by: int) -> Employee:
        data = replace(
            data,
            full_name=require_non_empty(data.full_name, "Full name"),
            employee_number=require_non_empty(data.employee_number, "Employee number"),
            email=require_non_empty(data.email, "Email").lower(),
            monthly_salary=_require_salary(data.monthly_salary),
            department=clean_optional(data.department),
            position=clean_optional(data.position),
        )

        employees = self._uow.store.employees
        if employees.find_by_email_or_number(email=data.email, employee_number=data.employee_number):
            raise ConflictError("Employee email or number already exists")

        prefix = month_prefix(EMPLOYEE_CODE_TAG, self._clock())
        employee = with_retry(
            self._codes,
            prefix,
            lambda code: employees.create(data, employee_code=code, created_by=int(created_by)),
        )
        logger.info("Created employee %s (%s)", employee.employee_code, employee.employee_id)

        self._audit.log_audit(
            AUDIT_TABLE,
            employee.employee_id,
            AuditAction.CREATE,
            None,
            {**_snapshot(employee), "createdBy": created_by},
            created_by,
        )
        return employee

    def find_all(self, *, search: Optional[str] = None, page: Optional[PageRequest] = None) -> Page[Employee]:
        page = page or PageRequest()
        search = clean_optional(search)
        employees = self._uow.store.employees
        rows = employees.search_page(search=search, offset=page.offset, limit=page.limit)
        return Page.of(rows, employees.count_search(search=search), page)

    def find_one(self, employee_id: int) -> Employee:
        employee = self._uow.store.employees.get_by_id(int(employee_id))
        if not employee:
            raise NotFoundError("Employee not found")
        return employee

    def update(self, employee_id: int, changes: EmployeeChanges, *, updated_by: int) -> Employee:
        before = self.find_one(employee_id)
        employees = self._uow.store.employees

        if changes.email is not None:
            email = require_non_empty(changes.email, "Email").lower()
            if email != before.email and employees.find_by_email(email, exclude_id=before.employee_id):
                raise ConflictError("Email already exists")
            changes = replace(changes, email=email)
        if changes.full_name is not None:
            changes = replace(changes, full_name=require_non_empty(changes.full_name, "Full name"))
        if changes.monthly_salary is not None:
            changes = replace(changes, monthly_salary=_require_salary(changes.monthly_salary))

        after = employees.update(before.employee_id, changes, updated_by=int(updated_by))
        self._audit.log_audit(
            AUDIT_TABLE,
            after.employee_id,
            AuditAction.UPDATE,
            _snapshot(before),
            {**_snapshot(after), "updatedBy": updated_by},
            updated_by,
        )
        return after

    def remove(self, employee_id: int, *, deleted_by: Optional[int] = None) -> dict:
        employee = self.find_one(employee_id)
        self._uow.store.employees.delete(employee.employee_id)
        self._audit.log_audit(AUDIT_TABLE, employee.employee_id, AuditAction.DELETE, _snapshot(employee), None, deleted_by)
        return {"message": "Employee deleted successfully"}
