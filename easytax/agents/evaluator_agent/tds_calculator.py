"""
EasyTax TDS and salary calculators — pure functions, no I/O.

  compute_tds()         section-wise TDS on the year's income, by head
  compute_salary_tax()  basic + HRA + other income → annual tax and take-home

Salary TDS (Section 192) and the salary calculator both run the slab engine
in tax_engine.py; there is no second copy of the slab tables here.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass

from easytax.agents.evaluator_agent.schemas import (
    Regime,
    SalaryTaxRequest,
    SalaryTaxResult,
    TDSLine,
    TDSRequest,
    TDSResult,
)
from easytax.agents.evaluator_agent.tax_engine import compute_tax, slab_breakdown
from easytax.agents.input_agent.schemas import STANDARD_DEDUCTION

logger = logging.getLogger(__name__)

# Salary TDS is estimated under the default (new) regime
SALARY_TDS_REGIME = Regime.new
DEFAULT_OTHER_RATE = 10.0


@dataclass(frozen=True)
class TDSRule:
    income_type: str
    section: str
    rate: float             # percent
    threshold: float = 0.0  # no TDS unless income exceeds this


# Flat-rate heads, in breakdown order (salary is always first)
TDS_RULES: dict[str, TDSRule] = {
    "professional_income": TDSRule("Professional Fees", "Section 194J", 10.0),
    "interest_income": TDSRule("Interest Income", "Section 194A", 10.0, threshold=40_000),
    "rent_income": TDSRule("Rent Income", "Section 194I", 10.0, threshold=240_000),
    "contractor_income": TDSRule("Contractor Payments", "Section 194C", 2.0),
    "commission_income": TDSRule("Commission", "Section 194H", 5.0),
}


def salary_tds(salary: float) -> TDSLine:
    """Section 192: slab tax plus cess on salary less the standard deduction."""
    taxable = max(0.0, salary - STANDARD_DEDUCTION)
    tds = compute_tax(taxable, SALARY_TDS_REGIME).total_tax
    rate = round(tds / salary * 100, 2) if salary > 0 else 0.0
    return TDSLine(income_type="Salary", section="Section 192", income=salary, rate=rate, tds=tds)


def flat_rate_tds(rule: TDSRule, income: float) -> TDSLine:
    """rate% of the whole amount once income crosses the threshold, else nil."""
    rate = rule.rate if income > rule.threshold else 0.0
    return TDSLine(
        income_type=rule.income_type,
        section=rule.section,
        income=income,
        rate=rate,
        tds=round(income * rate / 100, 2),
    )


def compute_tds(request: TDSRequest) -> TDSResult:
    """
    One breakdown line per head with a positive amount.

    Raises:
        ValueError: every income head is zero.
    """
    lines: list[TDSLine] = []
    if request.salary_income > 0:
        lines.append(salary_tds(request.salary_income))
    for field, rule in TDS_RULES.items():
        income = getattr(request, field)
        if income > 0:
            lines.append(flat_rate_tds(rule, income))
    if request.other_income > 0:
        rate = DEFAULT_OTHER_RATE if request.custom_rate is None else request.custom_rate
        rule = TDSRule("Other Income", "Various Sections", rate)
        lines.append(flat_rate_tds(rule, request.other_income))

    if not lines:
        raise ValueError("Enter at least one income amount to calculate TDS.")

    total_income = round(sum(line.income for line in lines), 2)
    total_tds = round(sum(line.tds for line in lines), 2)
    logger.info("TDS computed heads=%d total_tds=%.2f", len(lines), total_tds)
    return TDSResult(
        total_income=total_income,
        total_tds=total_tds,
        net_income=round(total_income - total_tds, 2),
        breakdown=lines,
    )


def compute_salary_tax(request: SalaryTaxRequest) -> SalaryTaxResult:
    total_income = round(request.basic_salary + request.hra + request.other_income, 2)
    if request.regime is Regime.old:
        deductions = round(request.section_80c + request.section_80d + request.home_loan_interest, 2)
    else:
        deductions = 0.0
    taxable = max(0.0, round(total_income - deductions, 2))

    tax = compute_tax(taxable, request.regime)
    return SalaryTaxResult(
        regime=request.regime,
        total_income=total_income,
        total_deductions=deductions,
        taxable_income=taxable,
        base_tax=tax.base_tax,
        cess=tax.cess,
        rebate=tax.rebate,
        total_tax=tax.total_tax,
        take_home=round(total_income - tax.total_tax, 2),
        slab_breakdown=slab_breakdown(taxable, request.regime),
    )
