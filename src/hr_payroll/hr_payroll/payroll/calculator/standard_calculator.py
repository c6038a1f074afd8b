from __future__ import annotations

from datetime import date
from decimal import ROUND_HALF_UP, Decimal

from ...common.datetime_utils import is_weekend, iter_days
from ...core.constants import HOURS_PER_DAY, OVERTIME_MULTIPLIER, TAX_RATE, TAX_THRESHOLD
from ..model import PayrollCalculation, PayrollInputs
from .base import PayrollCalculator

CENT = Decimal("0.01")
ZERO = Decimal("0")


def to_cents(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


class StandardPayrollCalculator(PayrollCalculator):
    """Standard rule: salary prorated over Mon-Fri working days, overtime at 1.5x
    the hourly rate, flat 10% deduction once gross pay exceeds the threshold.

    Components are computed at full precision and each one is rounded to cents
    on its own, so gross_pay is not necessarily the sum of the rounded parts.
    """

    def __init__(
        self,
        *,
        hours_per_day: Decimal = HOURS_PER_DAY,
        overtime_multiplier: Decimal = OVERTIME_MULTIPLIER,
        tax_threshold: Decimal = TAX_THRESHOLD,
        tax_rate: Decimal = TAX_RATE,
    ):
        self._hours_per_day = Decimal(hours_per_day)
        self._overtime_multiplier = Decimal(overtime_multiplier)
        self._tax_threshold = Decimal(tax_threshold)
        self._tax_rate = Decimal(tax_rate)

    def working_days(self, start: date, end: date) -> int:
        return sum(1 for day in iter_days(start, end) if not is_weekend(day))

    def deductions(self, gross_pay: Decimal) -> Decimal:
        if gross_pay > self._tax_threshold:
            return gross_pay * self._tax_rate
        return ZERO

    def calculate(self, inputs: PayrollInputs) -> PayrollCalculation:
        base_salary = Decimal(inputs.monthly_salary)
        working_days = self.working_days(inputs.period_start, inputs.period_end)
        overtime_hours = Decimal(inputs.overtime_hours)
        reimbursements = Decimal(inputs.reimbursements)

        if working_days > 0:
            daily_rate = base_salary / working_days
            prorated_salary = daily_rate * inputs.attended_days
            overtime_rate = daily_rate / self._hours_per_day * self._overtime_multiplier
        else:
            prorated_salary = ZERO
            overtime_rate = ZERO

        overtime_pay = overtime_hours * overtime_rate
        gross_pay = prorated_salary + overtime_pay + reimbursements
        deductions = self.deductions(gross_pay)
        net_pay = gross_pay - deductions

        return PayrollCalculation(
            employee_id=inputs.employee_id,
            employee_name=inputs.employee_name,
            base_salary=to_cents(base_salary),
            working_days=working_days,
            attended_days=int(inputs.attended_days),
            prorated_salary=to_cents(prorated_salary),
            overtime_hours=overtime_hours,
            overtime_rate=to_cents(overtime_rate),
            overtime_pay=to_cents(overtime_pay),
            reimbursements=to_cents(reimbursements),
            gross_pay=to_cents(gross_pay),
            deductions=to_cents(deductions),
            net_pay=to_cents(net_pay),
        )
