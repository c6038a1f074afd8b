from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Optional, Sequence

from ..core.enums import OvertimeStatus
from ..database.mysql_base import MySQLRepository, fetchall, fetchone, to_decimal, translate_integrity_errors
from .model import NewOvertime, OvertimeChanges, OvertimeQuery, OvertimeRequest
from .repository import OvertimeRepository

_COLUMNS = """
    overtime_id, employee_id, attendance_period_id, work_date, start_time, end_time,
    hours_worked, reason, description, status, has_attendance, submitted_at,
    approved_at, approved_by, cancelled_at, ip_address, created_by, updated_by
"""


def _row_to_overtime(row: dict) -> OvertimeRequest:
    return OvertimeRequest(
        overtime_id=int(row["overtime_id"]),
        employee_id=int(row["employee_id"]),
        attendance_period_id=int(row["attendance_period_id"]),
        work_date=row["work_date"],
        start_time=str(row["start_time"]),
        end_time=str(row["end_time"]),
        hours_worked=to_decimal(row["hours_worked"]),
        reason=row["reason"],
        status=OvertimeStatus(row["status"]),
        has_attendance=bool(row.get("has_attendance", True)),
        description=row.get("description"),
        submitted_at=row.get("submitted_at"),
        approved_at=row.get("approved_at"),
        approved_by=row.get("approved_by"),
        cancelled_at=row.get("cancelled_at"),
        ip_address=row.get("ip_address"),
        created_by=row.get("created_by"),
        updated_by=row.get("updated_by"),
    )


def _where(query: OvertimeQuery) -> tuple[str, list]:
    clauses: list[str] = []
    params: list = []
    if query.employee_id is not None:
        clauses.append("employee_id=%s")
        params.append(query.employee_id)
    if query.status is not None:
        clauses.append("status=%s")
        params.append(OvertimeStatus(query.status).value)
    if query.from_date is not None:
        clauses.append("work_date>=%s")
        params.append(query.from_date)
    if query.to_date is not None:
        clauses.append("work_date<=%s")
        params.append(query.to_date)
    return ("WHERE " + " AND ".join(clauses)) if clauses else "", params


class MySQLOvertimeRepository(MySQLRepository, OvertimeRepository):
    def _get(self, cur, overtime_id: int) -> OvertimeRequest:
        cur.execute(f"SELECT {_COLUMNS} FROM overtimes WHERE overtime_id=%s", (overtime_id,))
        return _row_to_overtime(fetchone(cur))

    def get_by_id(self, overtime_id: int, *, employee_id: Optional[int] = None) -> Optional[OvertimeRequest]:
        sql = f"SELECT {_COLUMNS} FROM overtimes WHERE overtime_id=%s"
        params: list = [overtime_id]
        if employee_id is not None:
            sql += " AND employee_id=%s"
            params.append(employee_id)
        with self._cursor() as cur:
            cur.execute(sql, tuple(params))
            row = fetchone(cur)
            return _row_to_overtime(row) if row else None

    def get_for_employee_and_date(self, employee_id: int, work_date: date) -> Optional[OvertimeRequest]:
        with self._cursor() as cur:
            cur.execute(
                f"SELECT {_COLUMNS} FROM overtimes WHERE employee_id=%s AND work_date=%s",
                (employee_id, work_date),
            )
            row = fetchone(cur)
            return _row_to_overtime(row) if row else None

    def create(
        self,
        data: NewOvertime,
        *,
        employee_id: int,
        attendance_period_id: int,
        has_attendance: bool,
        submitted_at: datetime,
        ip_address: Optional[str],
        created_by: int,
    ) -> OvertimeRequest:
        with self._cursor() as cur:
            with translate_integrity_errors(conflict_message="Overtime record already exists for this date"):
                cur.execute(
                    """
                    INSERT INTO overtimes(
                        employee_id, attendance_period_id, work_date, start_time, end_time,
                        hours_worked, reason, description, status, has_attendance,
                        submitted_at, ip_address, created_by
                    )
                    VALUES(%s,%s,%s,%s,%s,%s,%s,%s,'PENDING',%s,%s,%s,%s)
                    """,
                    (
                        employee_id,
                        attendance_period_id,
                        data.work_date,
                        data.start_time,
                        data.end_time,
                        data.hours_worked,
                        data.reason,
                        data.description,
                        1 if has_attendance else 0,
                        submitted_at,
                        ip_address,
                        created_by,
                    ),
                )
            return self._get(cur, int(cur.lastrowid))

    def update(
        self,
        overtime_id: int,
        changes: OvertimeChanges,
        *,
        updated_by: int,
        ip_address: Optional[str] = None,
    ) -> OvertimeRequest:
        sets: list[str] = ["updated_by=%s"]
        params: list = [updated_by]
        for column in ("start_time", "end_time", "hours_worked", "reason", "description"):
            value = getattr(changes, column)
            if value is not None:
                sets.append(f"{column}=%s")
                params.append(value)
        if ip_address:
            sets.append("ip_address=%s")
            params.append(ip_address)

        with self._cursor() as cur:
            cur.execute(f"UPDATE overtimes SET {', '.join(sets)} WHERE overtime_id=%s", (*params, overtime_id))
            return self._get(cur, overtime_id)

    def set_status(
        self,
        overtime_id: int,
        *,
        status: OvertimeStatus,
        changed_at: datetime,
        updated_by: int,
    ) -> OvertimeRequest:
        status = OvertimeStatus(status)
        with self._cursor() as cur:
            if status == OvertimeStatus.APPROVED:
                cur.execute(
                    """
                    UPDATE overtimes
                    SET status=%s, approved_at=%s, approved_by=%s, updated_by=%s
                    WHERE overtime_id=%s
                    """,
                    (status.value, changed_at, updated_by, updated_by, overtime_id),
                )
            else:
                cur.execute(
                    "UPDATE overtimes SET status=%s, cancelled_at=%s, updated_by=%s WHERE overtime_id=%s",
                    (status.value, changed_at, updated_by, overtime_id),
                )
            return self._get(cur, overtime_id)

    def delete(self, overtime_id: int) -> bool:
        with self._cursor() as cur:
            cur.execute("DELETE FROM overtimes WHERE overtime_id=%s", (overtime_id,))
            return cur.rowcount > 0

    def list_page(self, query: OvertimeQuery, *, offset: int, limit: int) -> Sequence[OvertimeRequest]:
        where, params = _where(query)
        with self._cursor() as cur:
            cur.execute(
                f"SELECT {_COLUMNS} FROM overtimes {where} ORDER BY created_at DESC LIMIT %s OFFSET %s",
                (*params, limit, offset),
            )
            return [_row_to_overtime(r) for r in fetchall(cur)]

    def count(self, query: OvertimeQuery) -> int:
        where, params = _where(query)
        with self._cursor() as cur:
            cur.execute(f"SELECT COUNT(*) AS n FROM overtimes {where}", tuple(params))
            return int(fetchone(cur)["n"])

    def sum_approved_hours(self, *, employee_id: int, period_id: int) -> Decimal:
        with self._cursor() as cur:
            cur.execute(
                """
                SELECT COALESCE(SUM(hours_worked), 0) AS total
                FROM overtimes
                WHERE employee_id=%s AND attendance_period_id=%s AND status='APPROVED'
                """,
                (employee_id, period_id),
            )
            return to_decimal(fetchone(cur)["total"])
