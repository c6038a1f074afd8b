from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from .model import PayrollCalculation, Payslip


class PayslipRepository(Protocol):
    def get_for_employee_and_period(self, *, employee_id: int, period_id: int) -> Optional[Payslip]:
        raise NotImplementedError

    def latest_number_with_prefix(self, prefix: str) -> Optional[str]:
        raise NotImplementedError

    def create(
        self,
        calculation: PayrollCalculation,
        *,
        period_id: int,
        payslip_number: str,
        generated_at: datetime,
        created_by: int,
    ) -> Payslip:
        """Raises DuplicateCodeError when ``payslip_number`` is taken and
        ConflictError when the (employee, period) pair already has a payslip."""

        raise NotImplementedError

    def list_for_period(self, period_id: int) -> Sequence[Payslip]:
        raise NotImplementedError

    def count_for_period(self, period_id: int) -> int:
        raise NotImplementedError
