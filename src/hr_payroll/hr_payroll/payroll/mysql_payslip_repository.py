from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

from ..database.mysql_base import MySQLRepository, fetchall, fetchone, to_decimal, translate_integrity_errors
from .model import PayrollCalculation, Payslip
from .repository import PayslipRepository

_COLUMNS = """
    payslip_id, employee_id, attendance_period_id, payslip_number, base_salary,
    working_days, attended_days, prorated_salary, total_overtime_hours, overtime_rate,
    total_overtime_pay, total_reimbursements, gross_pay, deductions, net_pay,
    generated_at, created_by
"""


def _row_to_payslip(row: dict) -> Payslip:
    return Payslip(
        payslip_id=int(row["payslip_id"]),
        employee_id=int(row["employee_id"]),
        attendance_period_id=int(row["attendance_period_id"]),
        payslip_number=row["payslip_number"],
        base_salary=to_decimal(row["base_salary"]),
        working_days=int(row["working_days"]),
        attended_days=int(row["attended_days"]),
        prorated_salary=to_decimal(row["prorated_salary"]),
        total_overtime_hours=to_decimal(row["total_overtime_hours"]),
        overtime_rate=to_decimal(row["overtime_rate"]),
        total_overtime_pay=to_decimal(row["total_overtime_pay"]),
        total_reimbursements=to_decimal(row["total_reimbursements"]),
        gross_pay=to_decimal(row["gross_pay"]),
        deductions=to_decimal(row["deductions"]),
        net_pay=to_decimal(row["net_pay"]),
        generated_at=row.get("generated_at"),
        created_by=row.get("created_by"),
    )


class MySQLPayslipRepository(MySQLRepository, PayslipRepository):
    def get_for_employee_and_period(self, *, employee_id: int, period_id: int) -> Optional[Payslip]:
        with self._cursor() as cur:
            cur.execute(
                f"SELECT {_COLUMNS} FROM payslips WHERE employee_id=%s AND attendance_period_id=%s",
                (employee_id, period_id),
            )
            row = fetchone(cur)
            return _row_to_payslip(row) if row else None

    def latest_number_with_prefix(self, prefix: str) -> Optional[str]:
        with self._cursor() as cur:
            cur.execute(
                """
                SELECT payslip_number FROM payslips
                WHERE payslip_number LIKE %s
                ORDER BY CHAR_LENGTH(payslip_number) DESC, payslip_number DESC
                LIMIT 1
                """,
                (f"{prefix}%",),
            )
            row = fetchone(cur)
            return row["payslip_number"] if row else None

    def create(
        self,
        calculation: PayrollCalculation,
        *,
        period_id: int,
        payslip_number: str,
        generated_at: datetime,
        created_by: int,
    ) -> Payslip:
        with self._cursor() as cur:
            with translate_integrity_errors(
                code_index="uq_payslips_number",
                conflict_message="Payslip already exists for this period",
            ):
                cur.execute(
                    """
                    INSERT INTO payslips(
                        employee_id, attendance_period_id, payslip_number, base_salary,
                        working_days, attended_days, prorated_salary, total_overtime_hours,
                        overtime_rate, total_overtime_pay, total_reimbursements,
                        gross_pay, deductions, net_pay, generated_at, created_by
                    )
                    VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                    """,
                    (
                        calculation.employee_id,
                        period_id,
                        payslip_number,
                        calculation.base_salary,
                        calculation.working_days,
                        calculation.attended_days,
                        calculation.prorated_salary,
                        calculation.overtime_hours,
                        calculation.overtime_rate,
                        calculation.overtime_pay,
                        calculation.reimbursements,
                        calculation.gross_pay,
                        calculation.deductions,
                        calculation.net_pay,
                        generated_at,
                        created_by,
                    ),
                )
            cur.execute(f"SELECT {_COLUMNS} FROM payslips WHERE payslip_id=%s", (int(cur.lastrowid),))
            return _row_to_payslip(fetchone(cur))

    def list_for_period(self, period_id: int) -> Sequence[Payslip]:
        with self._cursor() as cur:
            cur.execute(
                f"SELECT {_COLUMNS} FROM payslips WHERE attendance_period_id=%s ORDER BY payslip_number",
                (period_id,),
            )
            return [_row_to_payslip(r) for r in fetchall(cur)]

    def count_for_period(self, period_id: int) -> int:
        with self._cursor() as cur:
            cur.execute("SELECT COUNT(*) AS n FROM payslips WHERE attendance_period_id=%s", (period_id,))
            return int(fetchone(cur)["n"])
