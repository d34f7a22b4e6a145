"""
payroll_engines.adjustments -- Fold manual adjustments into final pay.

Folding rule:
    total_bonuses    = sum of amounts where type = bonus
    total_deductions = sum of amounts where type = deduction
    gross_pay        = pre_adjustment_gross + total_bonuses
    net_pay          = gross_pay - total_deductions

The fold is recomputed from the ledger every time it is needed; results
are never cached, so added or removed adjustments are always reflected.
Net pay may be negative when deductions exceed gross; it is reported, not
clamped.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable

from payroll_kernel.db.types import round_money
from payroll_kernel.domain.dtos import Adjustment, AdjustmentType


@dataclass(frozen=True)
class AdjustmentFold:
    total_bonuses: Decimal
    total_deductions: Decimal
    gross_pay: Decimal
    net_pay: Decimal


def fold_adjustments(
    pre_adjustment_gross: Decimal,
    adjustments: Iterable[Adjustment],
) -> AdjustmentFold:
    bonuses = Decimal("0")
    deductions = Decimal("0")
    for adjustment in adjustments:
        if adjustment.type is AdjustmentType.BONUS:
            bonuses += adjustment.amount
        else:
            deductions += adjustment.amount

    bonuses = round_money(bonuses)
    deductions = round_money(deductions)
    gross = round_money(pre_adjustment_gross) + bonuses
    return AdjustmentFold(
        total_bonuses=bonuses,
        total_deductions=deductions,
        gross_pay=gross,
        net_pay=gross - deductions,
    )
