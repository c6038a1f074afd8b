from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Sequence

from ..core.enums import AttendanceStatus
from ..database.mysql_base import MySQLRepository, fetchall, fetchone, translate_integrity_errors
from .model import AttendanceQuery, AttendanceRecord
from .repository import AttendanceRepository

_COLUMNS = """
    attendance_id, employee_id, attendance_period_id, work_date, check_in_time,
    status, notes, ip_address, created_by
"""


def _row_to_record(row: dict) -> AttendanceRecord:
    return AttendanceRecord(
        attendance_id=int(row["attendance_id"]),
        employee_id=int(row["employee_id"]),
        attendance_period_id=int(row["attendance_period_id"]),
        work_date=row["work_date"],
        check_in_time=row["check_in_time"],
        status=AttendanceStatus(row["status"]),
        notes=row.get("notes"),
        ip_address=row.get("ip_address"),
        created_by=row.get("created_by"),
    )


def _where(query: AttendanceQuery) -> tuple[str, list]:
    clauses: list[str] = []
    params: list = []
    if query.employee_id is not None:
        clauses.append("employee_id=%s")
        params.append(query.employee_id)
    if query.attendance_period_id is not None:
        clauses.append("attendance_period_id=%s")
        params.append(query.attendance_period_id)
    if query.start_date is not None:
        clauses.append("work_date>=%s")
        params.append(query.start_date)
    if query.end_date is not None:
        clauses.append("work_date<=%s")
        params.append(query.end_date)
    if query.status is not None:
        clauses.append("status=%s")
        params.append(AttendanceStatus(query.status).value)
    return ("WHERE " + " AND ".join(clauses)) if clauses else "", params


class MySQLAttendanceRepository(MySQLRepository, AttendanceRepository):
    def get_by_id(self, attendance_id: int, *, employee_id: Optional[int] = None) -> Optional[AttendanceRecord]:
        sql = f"SELECT {_COLUMNS} FROM attendances WHERE attendance_id=%s"
        params: list = [attendance_id]
        if employee_id is not None:
            sql += " AND employee_id=%s"
            params.append(employee_id)
        with self._cursor() as cur:
            cur.execute(sql, tuple(params))
            row = fetchone(cur)
            return _row_to_record(row) if row else None

    def get_for_employee_and_date(self, employee_id: int, work_date: date) -> Optional[AttendanceRecord]:
        with self._cursor() as cur:
            cur.execute(
                f"SELECT {_COLUMNS} FROM attendances WHERE employee_id=%s AND work_date=%s",
                (employee_id, work_date),
            )
            row = fetchone(cur)
            return _row_to_record(row) if row else None

    def create(
        self,
        *,
        employee_id: int,
        attendance_period_id: int,
        work_date: date,
        check_in_time: datetime,
        status: AttendanceStatus,
        notes: Optional[str],
        ip_address: Optional[str],
        created_by: int,
    ) -> AttendanceRecord:
        with self._cursor() as cur:
            with translate_integrity_errors(conflict_message="Attendance already submitted for this date"):
                cur.execute(
                    """
                    INSERT INTO attendances(
                        employee_id, attendance_period_id, work_date, check_in_time,
                        status, notes, ip_address, created_by
                    )
                    VALUES(%s,%s,%s,%s,%s,%s,%s,%s)
                    """,
                    (
                        employee_id,
                        attendance_period_id,
                        work_date,
                        check_in_time,
                        AttendanceStatus(status).value,
                        notes,
                        ip_address,
                        created_by,
                    ),
                )
            cur.execute(f"SELECT {_COLUMNS} FROM attendances WHERE attendance_id=%s", (int(cur.lastrowid),))
            return _row_to_record(fetchone(cur))

    def list_page(self, query: AttendanceQuery, *, offset: int, limit: int) -> Sequence[AttendanceRecord]:
        where, params = _where(query)
        with self._cursor() as cur:
            cur.execute(
                f"SELECT {_COLUMNS} FROM attendances {where} ORDER BY work_date DESC LIMIT %s OFFSET %s",
                (*params, limit, offset),
            )
            return [_row_to_record(r) for r in fetchall(cur)]

    def count(self, query: AttendanceQuery) -> int:
        where, params = _where(query)
        with self._cursor() as cur:
            cur.execute(f"SELECT COUNT(*) AS n FROM attendances {where}", tuple(params))
            return int(fetchone(cur)["n"])

    def list_for_period(self, period_id: int, *, employee_id: Optional[int] = None) -> Sequence[AttendanceRecord]:
        where, params = _where(AttendanceQuery(attendance_period_id=period_id, employee_id=employee_id))
        with self._cursor() as cur:
            cur.execute(f"SELECT {_COLUMNS} FROM attendances {where} ORDER BY work_date ASC", tuple(params))
            return [_row_to_record(r) for r in fetchall(cur)]

    def count_present(self, *, employee_id: int, period_id: int) -> int:
        return self.count(
            AttendanceQuery(employee_id=employee_id, attendance_period_id=period_id, status=AttendanceStatus.PRESENT)
        )
