"""
EasyTax ITR report aggregator.

build_itr_report() is the public entry point:
  1. gross_income     = sum of income heads
  2. total_deductions = sum of claimed sections + fixed standard deduction
  3. taxable_income   = max(0, gross - deductions)
  4. slab engine under both regimes → optimal regime (ties → old)
  5. tax_paid = TDS + advance tax + self-assessment tax → refund / payable,
     effective tax rate and refund processing window
  6. ITR form by income-source rules, filing due dates
  7. recommendations from the advisory layer (static text if the model fails)

Steps 1–6 are pure and deterministic; only step 7 touches the network and
it cannot fail the report.
"""
from __future__ import annotations

import logging
from datetime import MAXYEAR, MINYEAR, date, datetime, timezone
from typing import Optional

from easytax.agents.advisor_agent.llm_service import AdvisoryClient
from easytax.agents.advisor_agent.narratives import ITRSummary, generate_itr_recommendations
from easytax.agents.evaluator_agent.schemas import (
    ITRDueDates,
    ITRFormSuggestion,
    ITRReport,
    Regime,
    RegimeComparison,
)
from easytax.agents.evaluator_agent.tax_engine import choose_regime, compute_tax
from easytax.agents.input_agent.schemas import IncomeDetails, ITRProfile
from easytax.config import settings

logger = logging.getLogger(__name__)


def suggest_itr_form(income: IncomeDetails) -> ITRFormSuggestion:
    """First matching rule wins: business → ITR-3; capital gains / house property → ITR-2; else ITR-1."""
    if income.business_income > 0:
        return ITRFormSuggestion(form="ITR-3", reason="Required for business/professional income")
    if income.capital_gains > 0 or income.house_property_income > 0:
        return ITRFormSuggestion(form="ITR-2", reason="Required for capital gains or house property income")
    return ITRFormSuggestion(form="ITR-1 (Sahaj)", reason="Suitable for salary income up to ₹50 lakh")


def itr_due_dates(assessment_year: str) -> ITRDueDates:
    """
    AY 'YYYY-YY' → 31 July YYYY (original), 31 December YYYY (extended / belated).
    An unparsable AY, or one outside the calendar range of datetime.date,
    falls back to the configured one.
    """
    try:
        start = int(assessment_year.split("-")[0])
    except (AttributeError, ValueError):
        start = None
    if start is None or not MINYEAR <= start <= MAXYEAR:
        logger.info("Assessment year %r unusable, using configured %s", assessment_year, settings.assessment_year)
        start = int(settings.assessment_year.split("-")[0])
    return ITRDueDates(
        original_due_date=date(start, 7, 31),
        extended_due_date=date(start, 12, 31),
        belated_return_date=date(start, 12, 31),
    )


def settle(tax_paid: float, tax_liability: float) -> tuple[float, float, str]:
    """
    (refund_due, tax_payable, status) for tax already paid against the liability.
    At most one of the two amounts is non-zero; refund - payable == paid - liability.
    """
    if tax_paid > tax_liability:
        return round(tax_paid - tax_liability, 2), 0.0, "refund"
    if tax_liability > tax_paid:
        return 0.0, round(tax_liability - tax_paid, 2), "payable"
    return 0.0, 0.0, "balanced"


def effective_tax_rate(tax_liability: float, income: float) -> float:
    """Liability as a percentage of income; 0 when there is no income."""
    if income <= 0:
        return 0.0
    return round(tax_liability / income * 100, 2)


# Refund ceilings (inclusive) → typical processing window
_REFUND_PROCESSING: list[tuple[float, str]] = [
    (100_000, "20-30 days"),
    (500_000, "30-45 days"),
]
_REFUND_PROCESSING_MAX = "45-60 days"


def refund_processing_time(refund_due: float) -> Optional[str]:
    """Estimated refund window; None when nothing is refundable."""
    if refund_due <= 0:
        return None
    for ceiling, window in _REFUND_PROCESSING:
        if refund_due <= ceiling:
            return window
    return _REFUND_PROCESSING_MAX


async def build_itr_report(profile: ITRProfile, advisor: AdvisoryClient) -> ITRReport:
    """Full ITR report for a normalised, validated profile. Never raises on advisory failure."""
    gross_income = round(profile.income_details.total(), 2)
    total_deductions = round(profile.deductions.total(), 2)
    taxable_income = max(0.0, round(gross_income - total_deductions, 2))

    old = compute_tax(taxable_income, Regime.old)
    new = compute_tax(taxable_income, Regime.new)
    optimal = choose_regime(old, new)
    selected = old if optimal is Regime.old else new

    tax_paid = round(profile.tax_payments.total(), 2)
    refund_due, tax_payable, status = settle(tax_paid, selected.total_tax)
    due_dates = itr_due_dates(profile.personal_info.assessment_year or settings.assessment_year)

    advisory = await generate_itr_recommendations(
        advisor,
        profile,
        ITRSummary(
            gross_income=gross_income,
            taxable_income=taxable_income,
            optimal_regime=optimal,
            tax_savings=round(old.total_tax - new.total_tax, 2),
            filing_due_date=due_dates.original_due_date,
        ),
    )

    report = ITRReport(
        personal_info=profile.personal_info,
        gross_income=gross_income,
        total_deductions=total_deductions,
        taxable_income=taxable_income,
        tax_liability=selected.total_tax,
        tax_paid=tax_paid,
        refund_due=refund_due,
        tax_payable=tax_payable,
        refund_status=status,
        effective_tax_rate=effective_tax_rate(selected.total_tax, gross_income),
        refund_processing_time=refund_processing_time(refund_due),
        optimal_regime=optimal,
        regime_comparison=RegimeComparison(
            old_regime=old,
            new_regime=new,
            savings=round(abs(old.total_tax - new.total_tax), 2),
        ),
        recommendations=advisory.payload,
        income_breakdown=profile.income_details.model_dump(by_alias=True),
        deduction_breakdown=profile.deductions.breakdown(),
        tax_payment_breakdown=profile.tax_payments.model_dump(by_alias=True),
        suggested_itr_form=suggest_itr_form(profile.income_details),
        due_dates=due_dates,
        generated_at=datetime.now(timezone.utc),
        fallback=advisory.fallback,
    )
    logger.info(
        "ITR report built optimal_regime=%s form=%s status=%s advisory_source=%s",
        optimal.value, report.suggested_itr_form.form, status, advisory.source.value,
    )
    return report
