from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import date
from decimal import Decimal

from ..model import PayrollCalculation, PayrollInputs


class PayrollCalculator(ABC):
    """Calculator interface (Strategy Pattern for payroll)."""

    @abstractmethod
    def working_days(self, start: date, end: date) -> int:
        raise NotImplementedError

    @abstractmethod
    def deductions(self, gross_pay: Decimal) -> Decimal:
        raise NotImplementedError

    @abstractmethod
    def calculate(self, inputs: PayrollInputs) -> PayrollCalculation:
        raise NotImplementedError
