"""Tests for fold_adjustments and the engine tracer."""

from datetime import date, datetime, UTC
from decimal import Decimal
from uuid import uuid4

from payroll_engines.adjustments import fold_adjustments
from payroll_engines.special_payments import SpecialPaymentCalculator
from payroll_engines.tracer import compute_input_fingerprint
from payroll_kernel.domain.dtos import Adjustment, AdjustmentCategory, AdjustmentType


def adjustment(kind: AdjustmentType, amount: str, seq: int = 1) -> Adjustment:
    return Adjustment(
        adjustment_id=uuid4(),
        employee_id="E1",
        week_start=date(2026, 1, 5),
        type=kind,
        category=AdjustmentCategory.OTHER,
        amount=Decimal(amount),
        description="test",
        authorized_by="admin",
        created_at=datetime(2026, 1, 5, tzinfo=UTC),
        seq=seq,
    )


class TestFoldAdjustments:

    def test_no_adjustments(self):
        fold = fold_adjustments(Decimal("1950.00"), [])

        assert fold.total_bonuses == Decimal("0.00")
        assert fold.total_deductions == Decimal("0.00")
        assert fold.gross_pay == Decimal("1950.00")
        assert fold.net_pay == Decimal("1950.00")

    def test_bonus_and_deduction(self):
        fold = fold_adjustments(Decimal("1950.00"), [
            adjustment(AdjustmentType.BONUS, "200"),
            adjustment(AdjustmentType.DEDUCTION, "50", seq=2),
        ])

        assert fold.gross_pay == Decimal("2150.00")
        assert fold.net_pay == Decimal("2100.00")

    def test_sums_per_type(self):
        fold = fold_adjustments(Decimal("100"), [
            adjustment(AdjustmentType.BONUS, "10.10"),
            adjustment(AdjustmentType.BONUS, "20.20", seq=2),
            adjustment(AdjustmentType.DEDUCTION, "5.05", seq=3),
            adjustment(AdjustmentType.DEDUCTION, "1.00", seq=4),
        ])

        assert fold.total_bonuses == Decimal("30.30")
        assert fold.total_deductions == Decimal("6.05")
        assert fold.gross_pay == Decimal("130.30")
        assert fold.net_pay == Decimal("124.25")

    def test_negative_net_is_reported(self):
        fold = fold_adjustments(Decimal("100"), [adjustment(AdjustmentType.DEDUCTION, "150")])

        assert fold.net_pay == Decimal("-50.00")

    def test_accepts_generator(self):
        items = (adjustment(AdjustmentType.BONUS, "1") for _ in range(3))

        assert fold_adjustments(Decimal("0"), items).total_bonuses == Decimal("3.00")


class TestEngineTracer:

    def test_fingerprint_is_deterministic(self):
        kwargs = {"daily_salary": Decimal("300.00"), "days_worked": 365}

        first = compute_input_fingerprint(("daily_salary", "days_worked"), kwargs)
        second = compute_input_fingerprint(
            ("daily_salary", "days_worked"), {"daily_salary": Decimal("300"), "days_worked": 365},
        )

        assert first == second
        assert len(first) == 16

    def test_fingerprint_changes_with_input(self):
        fields = ("daily_salary",)

        assert compute_input_fingerprint(fields, {"daily_salary": Decimal("1")}) != (
            compute_input_fingerprint(fields, {"daily_salary": Decimal("2")})
        )

    def test_trace_record_emitted(self, captured_logs):
        SpecialPaymentCalculator().calculate_annual_bonus(daily_salary=Decimal("300"))

        traces = [r for r in captured_logs() if r["message"] == "PAYROLL_ENGINE_TRACE"]
        assert traces
        assert traces[-1]["engine_name"] == "special_payments"
        assert traces[-1]["input_fingerprint"]
