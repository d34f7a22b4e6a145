"""
Tests for SpecialPaymentCalculator.

Covers:
- Annual bonus (15 days per 365 worked)
- Severance by termination reason
- Settlement breakdown
- Salary conversions
"""

from decimal import Decimal

import pytest

from payroll_engines.special_payments import (
    DEFAULT_SEVERANCE_DAYS,
    SpecialPaymentCalculator,
    TerminationReason,
    calculate_annual_bonus,
    calculate_severance,
    daily_salary_from_hourly,
    monthly_salary_from_daily,
    severance_days_for,
)
from payroll_kernel.exceptions import (
    InvalidAttendanceError,
    InvalidRateError,
    InvalidSalaryError,
)


class TestAnnualBonus:

    def setup_method(self):
        self.calculator = SpecialPaymentCalculator()

    def test_full_year(self):
        assert self.calculator.calculate_annual_bonus(
            daily_salary=Decimal("300"), days_worked=365,
        ) == Decimal("4500.00")

    def test_defaults_to_full_year(self):
        assert calculate_annual_bonus(Decimal("300")) == Decimal("4500.00")

    def test_proportional(self):
        # 300 * 15 * 100 / 365 = 1232.876...
        assert self.calculator.calculate_annual_bonus(
            daily_salary=Decimal("300"), days_worked=100,
        ) == Decimal("1232.88")

    def test_more_than_a_year_is_not_clamped(self, captured_logs):
        amount = self.calculator.calculate_annual_bonus(
            daily_salary=Decimal("365"), days_worked=730,
        )

        assert amount == Decimal("10950.00")
        assert any(r["message"] == "annual_bonus_days_above_year" for r in captured_logs())

    def test_zero_days(self):
        assert self.calculator.calculate_annual_bonus(
            daily_salary=Decimal("300"), days_worked=0,
        ) == Decimal("0.00")

    def test_negative_days(self):
        with pytest.raises(InvalidAttendanceError):
            self.calculator.calculate_annual_bonus(daily_salary=Decimal("300"), days_worked=-1)

    @pytest.mark.parametrize("salary", ["0", "-1", "NaN", "Infinity"])
    def test_non_positive_salary(self, salary):
        with pytest.raises(InvalidSalaryError) as exc_info:
            self.calculator.calculate_annual_bonus(daily_salary=Decimal(salary))

        assert exc_info.value.code == "INVALID_SALARY"


class TestSeverance:

    def setup_method(self):
        self.calculator = SpecialPaymentCalculator()

    def test_without_cause(self):
        assert self.calculator.calculate_severance(
            daily_salary=Decimal("300"), termination_reason=TerminationReason.WITHOUT_CAUSE,
        ) == Decimal("27000.00")

    def test_voluntary(self):
        assert calculate_severance(Decimal("300"), "voluntary") == Decimal("6000.00")

    @pytest.mark.parametrize(
        "reason",
        [TerminationReason.MUTUAL_AGREEMENT, TerminationReason.WITH_CAUSE, "contract ended"],
    )
    def test_other_reasons_pay_default_days(self, reason):
        assert self.calculator.calculate_severance(
            daily_salary=Decimal("300"), termination_reason=reason,
        ) == Decimal("9000.00")

    def test_days_lookup(self):
        assert severance_days_for("without_cause") == 90
        assert severance_days_for(TerminationReason.VOLUNTARY) == 20
        assert severance_days_for("anything else") == DEFAULT_SEVERANCE_DAYS == 30

    def test_non_positive_salary(self):
        with pytest.raises(InvalidSalaryError):
            self.calculator.calculate_severance(
                daily_salary=Decimal("0"), termination_reason="voluntary",
            )


class TestSettlement:

    def setup_method(self):
        self.calculator = SpecialPaymentCalculator()

    def test_breakdown(self):
        result = self.calculator.calculate_settlement(
            daily_salary=Decimal("500"),
            pending_days=10,
            vacation_days=5,
            vacation_bonus_pct=Decimal("0.25"),
            proportional_aguinaldo=Decimal("1000"),
        )

        assert result.pending_pay == Decimal("5000.00")
        assert result.vacation_pay == Decimal("2500.00")
        assert result.vacation_bonus == Decimal("625.00")
        assert result.total == Decimal("9125.00")

    def test_no_vacation(self):
        result = self.calculator.calculate_settlement(
            daily_salary=Decimal("500"),
            pending_days=10,
            vacation_days=0,
            proportional_aguinaldo=Decimal("1000"),
        )

        assert result.vacation_pay == Decimal("0.00")
        assert result.vacation_bonus == Decimal("0.00")
        assert result.total == Decimal("6000.00")

    def test_negative_pending_days(self):
        with pytest.raises(InvalidAttendanceError):
            self.calculator.calculate_settlement(daily_salary=Decimal("500"), pending_days=-1)

    def test_negative_bonus_pct(self):
        with pytest.raises(InvalidRateError):
            self.calculator.calculate_settlement(
                daily_salary=Decimal("500"), vacation_bonus_pct=Decimal("-0.1"),
            )

    def test_non_finite_inputs(self):
        with pytest.raises(InvalidAttendanceError):
            self.calculator.calculate_settlement(
                daily_salary=Decimal("500"), vacation_days=Decimal("NaN"),
            )
        with pytest.raises(InvalidRateError):
            self.calculator.calculate_settlement(
                daily_salary=Decimal("500"), vacation_bonus_pct=Decimal("Infinity"),
            )


class TestSalaryConversions:

    def test_daily_from_hourly(self):
        assert daily_salary_from_hourly(Decimal("62.5")) == Decimal("500.00")
        assert daily_salary_from_hourly(Decimal("50"), hours_per_day=6) == Decimal("300.00")

    def test_monthly_from_daily(self):
        assert monthly_salary_from_daily(Decimal("300")) == Decimal("9000.00")
        assert monthly_salary_from_daily(Decimal("300"), days_per_month=31) == Decimal("9300.00")

    def test_negative_inputs_rejected(self):
        with pytest.raises(InvalidRateError):
            daily_salary_from_hourly(Decimal("-1"))
        with pytest.raises(InvalidSalaryError):
            monthly_salary_from_daily(Decimal("-1"))

    def test_float_rejected(self):
        with pytest.raises(TypeError):
            daily_salary_from_hourly(62.5)
