from __future__ import annotations

from decimal import Decimal
from typing import Optional, Sequence

from ..core.enums import ReimbursementStatus
from ..database.mysql_base import MySQLRepository, fetchall, fetchone, to_decimal
from .model import Reimbursement, ReimbursementChanges, ReimbursementQuery, StatusTotal
from .repository import ReimbursementRepository

_COLUMNS = """
    reimbursement_id, employee_id, attendance_period_id, amount, description,
    status, receipt_url, ip_address, created_at, created_by, updated_by
"""


def _row_to_reimbursement(row: dict) -> Reimbursement:
    return Reimbursement(
        reimbursement_id=int(row["reimbursement_id"]),
        employee_id=int(row["employee_id"]),
        attendance_period_id=int(row["attendance_period_id"]),
        amount=to_decimal(row["amount"]),
        description=row["description"],
        status=ReimbursementStatus(row["status"]),
        receipt_url=row.get("receipt_url"),
        ip_address=row.get("ip_address"),
        created_at=row.get("created_at"),
        created_by=row.get("created_by"),
        updated_by=row.get("updated_by"),
    )


def _where(query: ReimbursementQuery) -> tuple[str, list]:
    clauses: list[str] = []
    params: list = []
    if query.employee_id is not None:
        clauses.append("employee_id=%s")
        params.append(query.employee_id)
    if query.attendance_period_id is not None:
        clauses.append("attendance_period_id=%s")
        params.append(query.attendance_period_id)
    if query.status is not None:
        clauses.append("status=%s")
        params.append(ReimbursementStatus(query.status).value)
    return ("WHERE " + " AND ".join(clauses)) if clauses else "", params


class MySQLReimbursementRepository(MySQLRepository, ReimbursementRepository):
    def _get(self, cur, reimbursement_id: int) -> Reimbursement:
        cur.execute(f"SELECT {_COLUMNS} FROM reimbursements WHERE reimbursement_id=%s", (reimbursement_id,))
        return _row_to_reimbursement(fetchone(cur))

    def get_by_id(self, reimbursement_id: int, *, employee_id: Optional[int] = None) -> Optional[Reimbursement]:
        sql = f"SELECT {_COLUMNS} FROM reimbursements WHERE reimbursement_id=%s"
        params: list = [reimbursement_id]
        if employee_id is not None:
            sql += " AND employee_id=%s"
            params.append(employee_id)
        with self._cursor() as cur:
            cur.execute(sql, tuple(params))
            row = fetchone(cur)
            return _row_to_reimbursement(row) if row else None

    def create(
        self,
        *,
        employee_id: int,
        attendance_period_id: int,
        amount: Decimal,
        description: str,
        receipt_url: Optional[str],
        ip_address: Optional[str],
        created_by: int,
    ) -> Reimbursement:
        with self._cursor() as cur:
            cur.execute(
                """
                INSERT INTO reimbursements(
                    employee_id, attendance_period_id, amount, description,
                    receipt_url, status, ip_address, created_by
                )
                VALUES(%s,%s,%s,%s,%s,'PENDING',%s,%s)
                """,
                (employee_id, attendance_period_id, amount, description, receipt_url, ip_address, created_by),
            )
            return self._get(cur, int(cur.lastrowid))

    def update(self, reimbursement_id: int, changes: ReimbursementChanges, *, updated_by: int) -> Reimbursement:
        sets: list[str] = ["updated_by=%s"]
        params: list = [updated_by]
        for column in ("amount", "description", "receipt_url"):
            value = getattr(changes, column)
            if value is not None:
                sets.append(f"{column}=%s")
                params.append(value)

        with self._cursor() as cur:
            cur.execute(
                f"UPDATE reimbursements SET {', '.join(sets)} WHERE reimbursement_id=%s",
                (*params, reimbursement_id),
            )
            return self._get(cur, reimbursement_id)

    def set_status(self, reimbursement_id: int, *, status: ReimbursementStatus, updated_by: int) -> Reimbursement:
        with self._cursor() as cur:
            cur.execute(
                "UPDATE reimbursements SET status=%s, updated_by=%s WHERE reimbursement_id=%s",
                (ReimbursementStatus(status).value, updated_by, reimbursement_id),
            )
            return self._get(cur, reimbursement_id)

    def delete(self, reimbursement_id: int) -> bool:
        with self._cursor() as cur:
            cur.execute("DELETE FROM reimbursements WHERE reimbursement_id=%s", (reimbursement_id,))
            return cur.rowcount > 0

    def list_page(self, query: ReimbursementQuery, *, offset: int, limit: int) -> Sequence[Reimbursement]:
        where, params = _where(query)
        with self._cursor() as cur:
            cur.execute(
                f"SELECT {_COLUMNS} FROM reimbursements {where} ORDER BY created_at DESC LIMIT %s OFFSET %s",
                (*params, limit, offset),
            )
            return [_row_to_reimbursement(r) for r in fetchall(cur)]

    def count(self, query: ReimbursementQuery) -> int:
        where, params = _where(query)
        with self._cursor() as cur:
            cur.execute(f"SELECT COUNT(*) AS n FROM reimbursements {where}", tuple(params))
            return int(fetchone(cur)["n"])

    def totals_by_status(self, *, attendance_period_id: Optional[int] = None) -> Sequence[StatusTotal]:
        where, params = _where(ReimbursementQuery(attendance_period_id=attendance_period_id))
        with self._cursor() as cur:
            cur.execute(
                f"""
                SELECT status, COUNT(*) AS n, COALESCE(SUM(amount), 0) AS total
                FROM reimbursements {where}
                GROUP BY status
                ORDER BY status
                """,
                tuple(params),
            )
            return [
                StatusTotal(
                    status=ReimbursementStatus(r["status"]),
                    count=int(r["n"]),
                    total_amount=to_decimal(r["total"]),
                )
                for r in fetchall(cur)
            ]

    def sum_approved(self, *, employee_id: int, period_id: int) -> Decimal:
        with self._cursor() as cur:
            cur.execute(
                """
                SELECT COALESCE(SUM(amount), 0) AS total
                FROM reimbursements
                WHERE employee_id=%s AND attendance_period_id=%s AND status='APPROVED'
                """,
                (employee_id, period_id),
            )
            return to_decimal(fetchone(cur)["total"])
