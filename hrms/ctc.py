"""Backward calculation from a monthly CTC to salary components."""
from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Callable, Dict, Optional

from .salary import FieldOrigin, SalaryForm, round_amount

PF_CAP = 1800
PF_CAP_BASIC = 15000
ESI_RATE = 0.0075
ESI_GROSS_LIMIT = 21000
DEFAULT_SPLIT = "40-40"
DEFAULT_PT_STATE = "maharashtra"


@dataclass(frozen=True)
class SplitOption:
    basic_percent: float
    hra_of_basic_percent: float
    label: str


SPLIT_OPTIONS: Dict[str, SplitOption] = {
    "high-basic": SplitOption(87.11, 5, "High Basic (87.11%) - Best for PF"),
    "40-40": SplitOption(40, 40, "40% Basic, HRA 40% of Basic"),
    "50-40": SplitOption(50, 40, "50% Basic, HRA 40% of Basic"),
}


def _slab(upper: float, upper_tax: int, lower: float, lower_tax: int) -> Callable[[float], int]:
    def calculate(gross: float) -> int:
        if gross > upper:
            return upper_tax
        if gross > lower:
            return lower_tax
        return 0

    return calculate


# monthly professional tax slabs by state
PT_RULES: Dict[str, Callable[[float], int]] = {
    "maharashtra": _slab(10000, 200, 7500, 175),
    "karnataka": _slab(15000, 200, 10000, 150),
    "gujarat": _slab(12000, 200, 9000, 150),
    "tamilnadu": _slab(21000, 208, 15000, 180),
    "westbengal": _slab(10000, 200, 6000, 150),
    "custom": lambda gross: 0,
}


@dataclass(frozen=True)
class CtcBreakdown:
    gross: float
    basic_salary: int
    hra: int
    special_allowance: float
    pf_deduction: int
    esi_deduction: int
    professional_tax: int


def pf_for_basic(basic: float) -> int:
    return PF_CAP if basic >= PF_CAP_BASIC else round_amount(basic * 0.12)


def esi_for_gross(gross: float) -> int:
    return round_amount(gross * ESI_RATE) if gross < ESI_GROSS_LIMIT else 0


def breakdown_from_ctc(
    ctc: float, split: str = DEFAULT_SPLIT, state: str = DEFAULT_PT_STATE
) -> Optional[CtcBreakdown]:
    if ctc <= 0:
        return None
    option = SPLIT_OPTIONS[split]
    gross = ctc
    basic = round_amount(gross * option.basic_percent / 100)
    hra = round_amount(basic * option.hra_of_basic_percent / 100)
    return CtcBreakdown(
        gross=gross,
        basic_salary=basic,
        hra=hra,
        special_allowance=gross - basic - hra,
        pf_deduction=pf_for_basic(basic),
        esi_deduction=esi_for_gross(gross),
        professional_tax=PT_RULES[state](gross),
    )


def apply_breakdown(form: SalaryForm, breakdown: CtcBreakdown) -> SalaryForm:
    return replace(
        form,
        basic_salary=breakdown.basic_salary,
        hra=breakdown.hra,
        hra_origin=FieldOrigin.AUTO,
        special_allowance=breakdown.special_allowance,
        pf_deduction=breakdown.pf_deduction,
        esi_deduction=breakdown.esi_deduction,
        professional_tax=breakdown.professional_tax,
    )
