from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Sequence

from ..core.enums import PeriodStatus
from ..database.mysql_base import MySQLRepository, fetchall, fetchone, translate_integrity_errors
from .model import AttendancePeriod, PeriodChanges, PeriodDependents
from .repository import PeriodRepository

_COLUMNS = """
    period_id, name, start_date, end_date, is_active, status,
    payroll_processed, processed_at, processed_by, created_by, updated_by
"""


def _row_to_period(row: dict) -> AttendancePeriod:
    return AttendancePeriod(
        period_id=int(row["period_id"]),
        name=row["name"],
        start_date=row["start_date"],
        end_date=row["end_date"],
        is_active=bool(row["is_active"]),
        status=PeriodStatus(row["status"]),
        payroll_processed=bool(row.get("payroll_processed", False)),
        processed_at=row.get("processed_at"),
        processed_by=row.get("processed_by"),
        created_by=row.get("created_by"),
        updated_by=row.get("updated_by"),
    )


class MySQLPeriodRepository(MySQLRepository, PeriodRepository):
    def _select_one(self, cur, where: str, params: tuple) -> Optional[AttendancePeriod]:
        cur.execute(f"SELECT {_COLUMNS} FROM attendance_periods WHERE {where} LIMIT 1", params)
        row = fetchone(cur)
        return _row_to_period(row) if row else None

    def get_by_id(self, period_id: int) -> Optional[AttendancePeriod]:
        with self._cursor() as cur:
            return self._select_one(cur, "period_id=%s", (period_id,))

    def get_current(self) -> Optional[AttendancePeriod]:
        with self._cursor() as cur:
            return self._select_one(cur, "is_active=1", ())

    def find_active_containing(self, day: date) -> Optional[AttendancePeriod]:
        with self._cursor() as cur:
            return self._select_one(
                cur,
                "is_active=1 AND status='ACTIVE' AND start_date<=%s AND end_date>=%s",
                (day, day),
            )

    def find_overlapping(self, *, start_date: date, end_date: date) -> Optional[AttendancePeriod]:
        with self._cursor() as cur:
            return self._select_one(
                cur,
                """
                status<>'CLOSED' AND (
                    (start_date<=%s AND end_date>=%s)
                    OR (start_date<=%s AND end_date>=%s)
                    OR (start_date>=%s AND end_date<=%s)
                )
                """,
                (start_date, start_date, end_date, end_date, start_date, end_date),
            )

    def list_page(self, *, offset: int, limit: int) -> Sequence[AttendancePeriod]:
        with self._cursor() as cur:
            cur.execute(
                f"SELECT {_COLUMNS} FROM attendance_periods ORDER BY start_date DESC LIMIT %s OFFSET %s",
                (limit, offset),
            )
            return [_row_to_period(r) for r in fetchall(cur)]

    def count(self) -> int:
        with self._cursor() as cur:
            cur.execute("SELECT COUNT(*) AS n FROM attendance_periods")
            return int(fetchone(cur)["n"])

    def list_processed_page(self, *, offset: int, limit: int) -> Sequence[AttendancePeriod]:
        with self._cursor() as cur:
            cur.execute(
                f"""
                SELECT {_COLUMNS} FROM attendance_periods
                WHERE payroll_processed=1
                ORDER BY processed_at DESC
                LIMIT %s OFFSET %s
                """,
                (limit, offset),
            )
            return [_row_to_period(r) for r in fetchall(cur)]

    def count_processed(self) -> int:
        with self._cursor() as cur:
            cur.execute("SELECT COUNT(*) AS n FROM attendance_periods WHERE payroll_processed=1")
            return int(fetchone(cur)["n"])

    def lock_active(self) -> None:
        with self._cursor() as cur:
            cur.execute("SELECT period_id FROM attendance_periods WHERE is_active=1 FOR UPDATE")
            fetchall(cur)

    def deactivate_all(self, *, except_id: Optional[int] = None) -> int:
        with self._cursor() as cur:
            if except_id is None:
                cur.execute("UPDATE attendance_periods SET is_active=0 WHERE is_active=1")
            else:
                cur.execute(
                    "UPDATE attendance_periods SET is_active=0 WHERE is_active=1 AND period_id<>%s",
                    (except_id,),
                )
            return int(cur.rowcount)

    def create(
        self,
        *,
        name: str,
        start_date: date,
        end_date: date,
        is_active: bool,
        created_by: int,
    ) -> AttendancePeriod:
        with self._cursor() as cur:
            with translate_integrity_errors(conflict_message="Another period is already active"):
                cur.execute(
                    """
                    INSERT INTO attendance_periods(name, start_date, end_date, is_active, status, created_by)
                    VALUES(%s,%s,%s,%s,'ACTIVE',%s)
                    """,
                    (name, start_date, end_date, 1 if is_active else 0, created_by),
                )
            return self._select_one(cur, "period_id=%s", (int(cur.lastrowid),))

    def update(self, period_id: int, changes: PeriodChanges, *, updated_by: int) -> AttendancePeriod:
        sets: list[str] = ["updated_by=%s"]
        params: list = [updated_by]
        if changes.name is not None:
            sets.append("name=%s")
            params.append(changes.name)
        if changes.start_date is not None:
            sets.append("start_date=%s")
            params.append(changes.start_date)
        if changes.end_date is not None:
            sets.append("end_date=%s")
            params.append(changes.end_date)
        if changes.is_active is not None:
            sets.append("is_active=%s")
            params.append(1 if changes.is_active else 0)
        if changes.status is not None:
            sets.append("status=%s")
            params.append(PeriodStatus(changes.status).value)

        with self._cursor() as cur:
            with translate_integrity_errors(conflict_message="Another period is already active"):
                cur.execute(
                    f"UPDATE attendance_periods SET {', '.join(sets)} WHERE period_id=%s",
                    (*params, period_id),
                )
            return self._select_one(cur, "period_id=%s", (period_id,))

    def mark_processed(self, period_id: int, *, processed_at: datetime, processed_by: int) -> bool:
        with self._cursor() as cur:
            cur.execute(
                """
                UPDATE attendance_periods
                SET payroll_processed=1, processed_at=%s, processed_by=%s, updated_by=%s
                WHERE period_id=%s AND payroll_processed=0
                """,
                (processed_at, processed_by, processed_by, period_id),
            )
            return cur.rowcount > 0

    def count_dependents(self, period_id: int) -> PeriodDependents:
        with self._cursor() as cur:
            cur.execute(
                """
                SELECT
                    (SELECT COUNT(*) FROM attendances WHERE attendance_period_id=%s) AS attendances,
                    (SELECT COUNT(*) FROM overtimes WHERE attendance_period_id=%s) AS overtimes,
                    (SELECT COUNT(*) FROM reimbursements WHERE attendance_period_id=%s) AS reimbursements,
                    (SELECT COUNT(*) FROM payslips WHERE attendance_period_id=%s) AS payslips
                """,
                (period_id, period_id, period_id, period_id),
            )
            row = fetchone(cur) or {}
            return PeriodDependents(
                attendances=int(row.get("attendances") or 0),
                overtimes=int(row.get("overtimes") or 0),
                reimbursements=int(row.get("reimbursements") or 0),
                payslips=int(row.get("payslips") or 0),
            )

    def delete(self, period_id: int) -> bool:
        with self._cursor() as cur:
            with translate_integrity_errors(conflict_message="Cannot delete period with existing records"):
                cur.execute("DELETE FROM attendance_periods WHERE period_id=%s", (period_id,))
            return cur.rowcount > 0
