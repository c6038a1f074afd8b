from __future__ import annotations

from typing import Iterable, Optional, Sequence

from ..core.enums import EmployeeStatus
from ..database.mysql_base import MySQLRepository, fetchall, fetchone, to_decimal, translate_integrity_errors
from .model import Employee, EmployeeChanges, NewEmployee
from .repository import EmployeeRepository

_COLUMNS = """
    employee_id, employee_code, full_name, employee_number, email,
    department, position, monthly_salary, status
"""


def _row_to_employee(row: dict) -> Employee:
    return Employee(
        employee_id=int(row["employee_id"]),
        employee_code=row["employee_code"],
        full_name=row["full_name"],
        employee_number=row["employee_number"],
        email=row["email"],
        monthly_salary=to_decimal(row["monthly_salary"]),
        status=EmployeeStatus(row["status"]),
        department=row.get("department"),
        position=row.get("position"),
    )


def _search_clause(search: Optional[str]) -> tuple[str, tuple]:
    if not search:
        return "", ()
    like = f"%{search}%"
    return (
        "WHERE full_name LIKE %s OR email LIKE %s OR employee_number LIKE %s OR employee_code LIKE %s",
        (like, like, like, like),
    )


class MySQLEmployeeRepository(MySQLRepository, EmployeeRepository):
    def get_by_id(self, employee_id: int) -> Optional[Employee]:
        with self._cursor() as cur:
            cur.execute(f"SELECT {_COLUMNS} FROM employees WHERE employee_id=%s", (employee_id,))
            row = fetchone(cur)
            return _row_to_employee(row) if row else None

    def find_by_email_or_number(self, *, email: str, employee_number: str) -> Optional[Employee]:
        with self._cursor() as cur:
            cur.execute(
                f"SELECT {_COLUMNS} FROM employees WHERE email=%s OR employee_number=%s LIMIT 1",
                (email, employee_number),
            )
            row = fetchone(cur)
            return _row_to_employee(row) if row else None

    def find_by_email(self, email: str, *, exclude_id: Optional[int] = None) -> Optional[Employee]:
        with self._cursor() as cur:
            cur.execute(
                f"SELECT {_COLUMNS} FROM employees WHERE email=%s AND employee_id<>%s LIMIT 1",
                (email, exclude_id or 0),
            )
            row = fetchone(cur)
            return _row_to_employee(row) if row else None

    def latest_code_with_prefix(self, prefix: str) -> Optional[str]:
        with self._cursor() as cur:
            cur.execute(
                """
                SELECT employee_code FROM employees
                WHERE employee_code LIKE %s
                ORDER BY CHAR_LENGTH(employee_code) DESC, employee_code DESC
                LIMIT 1
                """,
                (f"{prefix}%",),
            )
            row = fetchone(cur)
            return row["employee_code"] if row else None

    def list_by_status(
        self,
        *,
        status: EmployeeStatus,
        employee_ids: Optional[Iterable[int]] = None,
    ) -> Sequence[Employee]:
        sql = f"SELECT {_COLUMNS} FROM employees WHERE status=%s"
        params: list = [EmployeeStatus(status).value]
        if employee_ids is not None:
            ids = [int(e) for e in employee_ids]
            if not ids:
                return []
            sql += f" AND employee_id IN ({', '.join(['%s'] * len(ids))})"
            params.extend(ids)
        sql += " ORDER BY employee_id"

        with self._cursor() as cur:
            cur.execute(sql, tuple(params))
            return [_row_to_employee(r) for r in fetchall(cur)]

    def search_page(self, *, search: Optional[str], offset: int, limit: int) -> Sequence[Employee]:
        where, params = _search_clause(search)
        with self._cursor() as cur:
            cur.execute(
                f"SELECT {_COLUMNS} FROM employees {where} ORDER BY created_at DESC, employee_id DESC LIMIT %s OFFSET %s",
                (*params, limit, offset),
            )
            return [_row_to_employee(r) for r in fetchall(cur)]

    def count_search(self, *, search: Optional[str]) -> int:
        where, params = _search_clause(search)
        with self._cursor() as cur:
            cur.execute(f"SELECT COUNT(*) AS n FROM employees {where}", params)
            return int(fetchone(cur)["n"])

    def count_by_status(self, status: EmployeeStatus) -> int:
        with self._cursor() as cur:
            cur.execute("SELECT COUNT(*) AS n FROM employees WHERE status=%s", (EmployeeStatus(status).value,))
            return int(fetchone(cur)["n"])

    def create(self, data: NewEmployee, *, employee_code: str, created_by: int) -> Employee:
        with self._cursor() as cur:
            with translate_integrity_errors(
                code_index="uq_employees_code",
                conflict_message="Employee email or number already exists",
            ):
                cur.execute(
                    """
                    INSERT INTO employees(
                        employee_code, full_name, employee_number, email,
                        department, position, monthly_salary, status, created_by
                    )
                    VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s)
                    """,
                    (
                        employee_code,
                        data.full_name,
                        data.employee_number,
                        data.email,
                        data.department,
                        data.position,
                        data.monthly_salary,
                        EmployeeStatus(data.status).value,
                        created_by,
                    ),
                )
            cur.execute(f"SELECT {_COLUMNS} FROM employees WHERE employee_id=%s", (int(cur.lastrowid),))
            return _row_to_employee(fetchone(cur))

    def update(self, employee_id: int, changes: EmployeeChanges, *, updated_by: int) -> Employee:
        sets: list[str] = ["updated_by=%s"]
        params: list = [updated_by]
        for column in ("full_name", "email", "department", "position", "monthly_salary"):
            value = getattr(changes, column)
            if value is not None:
                sets.append(f"{column}=%s")
                params.append(value)
        if changes.status is not None:
            sets.append("status=%s")
            params.append(EmployeeStatus(changes.status).value)

        with self._cursor() as cur:
            with translate_integrity_errors(conflict_message="Email already exists"):
                cur.execute(f"UPDATE employees SET {', '.join(sets)} WHERE employee_id=%s", (*params, employee_id))
            cur.execute(f"SELECT {_COLUMNS} FROM employees WHERE employee_id=%s", (employee_id,))
            return _row_to_employee(fetchone(cur))

    def delete(self, employee_id: int) -> bool:
        with self._cursor() as cur:
            with translate_integrity_errors(conflict_message="Cannot delete employee with existing payslips"):
                cur.execute("DELETE FROM employees WHERE employee_id=%s", (employee_id,))
            return cur.rowcount > 0
