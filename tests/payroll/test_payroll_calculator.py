from datetime import date
from decimal import Decimal

from src.hr_payroll.hr_payroll.payroll.calculator.standard_calculator import StandardPayrollCalculator, to_cents
from src.hr_payroll.hr_payroll.payroll.model import PayrollInputs


def _inputs(**overrides) -> PayrollInputs:
    values = dict(
        employee_id=1,
        employee_name="A",
        monthly_salary=Decimal("5749.58"),
        # Mon 3 Jun .. Mon 10 Jun 2024: six weekdays
        period_start=date(2024, 6, 3),
        period_end=date(2024, 6, 10),
        attended_days=1,
        overtime_hours=Decimal("3"),
        reimbursements=Decimal("0"),
    )
    values.update(overrides)
    return PayrollInputs(**values)


def test_working_days_counts_weekdays_inclusive():
    calc = StandardPayrollCalculator()
    assert calc.working_days(date(2024, 6, 3), date(2024, 6, 10)) == 6
    assert calc.working_days(date(2024, 6, 1), date(2024, 6, 30)) == 20
    assert calc.working_days(date(2024, 6, 8), date(2024, 6, 9)) == 0


def test_reference_fixture():
    result = StandardPayrollCalculator().calculate(_inputs())

    assert result.working_days == 6
    assert result.prorated_salary == Decimal("958.26")
    assert result.overtime_rate == Decimal("179.67")
    assert result.overtime_pay == Decimal("539.02")
    assert result.gross_pay == Decimal("1497.29")
    assert result.deductions == Decimal("0.00")
    assert result.net_pay == Decimal("1497.29")


def test_deduction_applies_above_threshold_only():
    calc = StandardPayrollCalculator()
    full_week = dict(
        period_start=date(2024, 6, 3),
        period_end=date(2024, 6, 7),
        attended_days=5,
        overtime_hours=Decimal("0"),
    )

    high = calc.calculate(_inputs(monthly_salary=Decimal("10000"), **full_week))
    assert high.gross_pay == Decimal("10000.00")
    assert high.deductions == Decimal("1000.00")
    assert high.net_pay == Decimal("9000.00")

    exact = calc.calculate(_inputs(monthly_salary=Decimal("5000"), **full_week))
    assert exact.deductions == Decimal("0.00")
    assert exact.net_pay == Decimal("5000.00")


def test_reimbursements_are_added_to_gross():
    result = StandardPayrollCalculator().calculate(
        _inputs(overtime_hours=Decimal("0"), reimbursements=Decimal("120.50"))
    )
    assert result.reimbursements == Decimal("120.50")
    assert result.gross_pay == Decimal("1078.76")


def test_period_without_working_days_pays_only_reimbursements():
    result = StandardPayrollCalculator().calculate(
        _inputs(
            period_start=date(2024, 6, 8),
            period_end=date(2024, 6, 9),
            reimbursements=Decimal("40"),
        )
    )
    assert result.working_days == 0
    assert result.prorated_salary == Decimal("0.00")
    assert result.overtime_pay == Decimal("0.00")
    assert result.gross_pay == Decimal("40.00")


def test_to_cents_rounds_half_up():
    assert to_cents(Decimal("0.005")) == Decimal("0.01")
    assert to_cents(Decimal("2.345")) == Decimal("2.35")
