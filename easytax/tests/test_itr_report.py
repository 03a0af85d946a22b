"""
ITR report aggregator tests.

Covers the deterministic figures, regime choice, refund/payable settlement,
ITR form rules, due dates, and the advisory tiers feeding `recommendations`.
"""
from __future__ import annotations

from datetime import date

import pytest

from easytax.agents.advisor_agent.llm_service import AdvisoryClient
from easytax.agents.evaluator_agent.itr_report import (
    build_itr_report,
    effective_tax_rate,
    itr_due_dates,
    refund_processing_time,
    settle,
    suggest_itr_form,
)
from easytax.agents.evaluator_agent.schemas import Regime
from easytax.agents.input_agent.schemas import IncomeDetails, ITRProfile
from easytax.tests.demo_profiles import ITR_SALARIED, ITR_SALARIED_EXPECTED, ITR_TIE

DETERMINISTIC_FIELDS = (
    "gross_income", "total_deductions", "taxable_income", "tax_liability",
    "tax_paid", "refund_due", "tax_payable", "refund_status", "optimal_regime",
    "regime_comparison", "suggested_itr_form", "due_dates",
    "effective_tax_rate", "refund_processing_time",
)


# ---------------------------------------------------------------------------
# Pure helpers
# ---------------------------------------------------------------------------

@pytest.mark.parametrize(
    "income, form",
    [
        ({"salaryIncome": 900_000, "businessIncome": 1, "capitalGains": 50_000}, "ITR-3"),
        ({"businessIncome": 0, "capitalGains": 10_000}, "ITR-2"),
        ({"housePropertyIncome": 120_000}, "ITR-2"),
        ({"salaryIncome": 700_000}, "ITR-1 (Sahaj)"),
        ({}, "ITR-1 (Sahaj)"),
    ],
)
def test_suggest_itr_form(income: dict, form: str) -> None:
    assert suggest_itr_form(IncomeDetails.model_validate(income)).form == form


def test_itr_due_dates_from_assessment_year() -> None:
    due = itr_due_dates("2025-26")
    assert due.original_due_date == date(2025, 7, 31)
    assert due.extended_due_date == date(2025, 12, 31)
    assert due.belated_return_date == date(2025, 12, 31)


def test_itr_due_dates_unparsable_year_uses_configured() -> None:
    assert itr_due_dates("not a year") == itr_due_dates("2025-26")


@pytest.mark.parametrize("assessment_year", ["0-1", "10000-01", "-5-6", "99999"])
def test_itr_due_dates_out_of_range_year_uses_configured(assessment_year: str) -> None:
    assert itr_due_dates(assessment_year) == itr_due_dates("2025-26")


@pytest.mark.asyncio
async def test_out_of_range_assessment_year_still_produces_report(static_advisor: AdvisoryClient) -> None:
    profile = ITRProfile.model_validate({
        **ITR_SALARIED,
        "personalInfo": {**ITR_SALARIED["personalInfo"], "assessmentYear": "0-1"},
    })
    report = await build_itr_report(profile, static_advisor)
    assert report.due_dates.original_due_date == date(2025, 7, 31)
    assert report.taxable_income == pytest.approx(ITR_SALARIED_EXPECTED["taxable_income"])


@pytest.mark.parametrize(
    "paid, liability, expected",
    [
        (110_000, 61_620, (48_380.0, 0.0, "refund")),
        (10_000, 61_620, (0.0, 51_620.0, "payable")),
        (500, 500, (0.0, 0.0, "balanced")),
        (0, 0, (0.0, 0.0, "balanced")),
    ],
)
def test_settle(paid: float, liability: float, expected: tuple) -> None:
    assert settle(paid, liability) == expected


@pytest.mark.parametrize(
    "refund, window",
    [
        (0, None),
        (-5, None),
        (1, "20-30 days"),
        (100_000, "20-30 days"),
        (100_000.01, "30-45 days"),
        (500_000, "30-45 days"),
        (500_001, "45-60 days"),
    ],
)
def test_refund_processing_time(refund: float, window) -> None:
    assert refund_processing_time(refund) == window


def test_effective_tax_rate() -> None:
    assert effective_tax_rate(61_620, 1_220_000) == pytest.approx(5.05)
    assert effective_tax_rate(0, 1_000_000) == 0
    assert effective_tax_rate(500, 0) == 0


# ---------------------------------------------------------------------------
# Aggregator: static advisory tier
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_salaried_report_figures(static_advisor: AdvisoryClient) -> None:
    report = await build_itr_report(ITRProfile.model_validate(ITR_SALARIED), static_advisor)
    exp = ITR_SALARIED_EXPECTED

    assert report.gross_income == pytest.approx(exp["gross_income"])
    assert report.total_deductions == pytest.approx(exp["total_deductions"])
    assert report.taxable_income == pytest.approx(exp["taxable_income"])
    assert report.regime_comparison.old_regime.total_tax == pytest.approx(exp["old_total"])
    assert report.regime_comparison.new_regime.total_tax == pytest.approx(exp["new_total"])
    assert report.regime_comparison.savings == pytest.approx(exp["old_total"] - exp["new_total"])
    assert report.optimal_regime is Regime.new
    assert report.tax_liability == pytest.approx(exp["new_total"])
    assert report.tax_paid == pytest.approx(exp["tax_paid"])
    assert report.refund_due == pytest.approx(exp["refund_due"])
    assert report.tax_payable == 0
    assert report.refund_status == "refund"
    assert report.effective_tax_rate == pytest.approx(5.05)
    assert report.refund_processing_time == "20-30 days"
    assert report.suggested_itr_form.form == "ITR-1 (Sahaj)"
    assert report.due_dates.original_due_date == date(2025, 7, 31)
    assert report.deduction_breakdown["standardDeduction"] == 50_000
    assert report.income_breakdown["salaryIncome"] == 1_200_000


@pytest.mark.asyncio
async def test_static_tier_marks_fallback(static_advisor: AdvisoryClient) -> None:
    report = await build_itr_report(ITRProfile.model_validate(ITR_SALARIED), static_advisor)
    assert report.fallback is True
    assert report.recommendations.startswith("**Tax Filing Recommendations for FY 2024-25:**")
    assert "New regime" in report.recommendations
    assert "July 31, 2025" in report.recommendations


@pytest.mark.asyncio
async def test_tie_reports_old_regime(static_advisor: AdvisoryClient) -> None:
    report = await build_itr_report(ITRProfile.model_validate(ITR_TIE), static_advisor)
    assert report.taxable_income == pytest.approx(302_000)
    assert report.regime_comparison.savings == 0
    assert report.optimal_regime is Regime.old


@pytest.mark.asyncio
async def test_deductions_above_income_clamp_taxable_to_zero(static_advisor: AdvisoryClient) -> None:
    profile = ITRProfile.model_validate({
        "personalInfo": {"name": "Low", "pan": "LOWPA1234N"},
        "incomeDetails": {"salaryIncome": "40,000"},
        "taxPayments": {"tdsDeducted": "1000"},
    })
    report = await build_itr_report(profile, static_advisor)
    assert report.taxable_income == 0
    assert report.tax_liability == 0
    assert report.refund_due == pytest.approx(1_000)


@pytest.mark.parametrize(
    "payments",
    [{}, {"tdsDeducted": "61620"}, {"tdsDeducted": "20000", "advanceTax": "5000"}, {"selfAssessmentTax": "2,00,000"}],
)
@pytest.mark.asyncio
async def test_refund_and_payable_are_exclusive(static_advisor: AdvisoryClient, payments: dict) -> None:
    profile = ITRProfile.model_validate({**ITR_SALARIED, "taxPayments": payments})
    report = await build_itr_report(profile, static_advisor)
    assert report.refund_due == 0 or report.tax_payable == 0
    assert report.refund_due - report.tax_payable == pytest.approx(report.tax_paid - report.tax_liability, abs=0.01)


# ---------------------------------------------------------------------------
# Aggregator: model tiers
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_model_json_recommendations(fake_completion) -> None:
    fake = fake_completion(reply='```json\n{"recommendations": "Claim 80CCD(1B) for an extra ₹50,000 deduction."}\n```')
    report = await build_itr_report(ITRProfile.model_validate(ITR_SALARIED), AdvisoryClient(fake))
    assert report.recommendations == "Claim 80CCD(1B) for an extra ₹50,000 deduction."
    assert report.fallback is False
    # prompts carry figures only, never identity
    assert "Priya" not in fake.prompts[0]
    assert "ABCDE1234F" not in fake.prompts[0]
    assert "₹12,20,000" in fake.prompts[0]


@pytest.mark.asyncio
async def test_model_prose_recommendations(fake_completion) -> None:
    prose = "You should consider the new regime and invest early in the year to spread contributions."
    report = await build_itr_report(ITRProfile.model_validate(ITR_SALARIED), AdvisoryClient(fake_completion(reply=prose)))
    assert report.recommendations == prose
    assert report.fallback is False


@pytest.mark.parametrize("reply, error", [(None, RuntimeError("connection reset")), ("", None), ("   ", None), ("{broken", None)])
@pytest.mark.asyncio
async def test_model_failure_falls_back(fake_completion, reply, error) -> None:
    report = await build_itr_report(ITRProfile.model_validate(ITR_SALARIED), AdvisoryClient(fake_completion(reply=reply, error=error)))
    assert report.fallback is True
    assert report.recommendations
    assert report.taxable_income == pytest.approx(ITR_SALARIED_EXPECTED["taxable_income"])


@pytest.mark.asyncio
async def test_deterministic_fields_stable_across_narratives(fake_completion) -> None:
    profile = ITRProfile.model_validate(ITR_SALARIED)
    first = await build_itr_report(profile, AdvisoryClient(fake_completion(reply='{"recommendations": "First narrative."}')))
    second = await build_itr_report(profile, AdvisoryClient(fake_completion(error=TimeoutError())))

    assert first.recommendations != second.recommendations
    for field in DETERMINISTIC_FIELDS:
        assert getattr(first, field) == getattr(second, field), field


@pytest.mark.asyncio
async def test_report_serialises_camel_case(static_advisor: AdvisoryClient) -> None:
    report = await build_itr_report(ITRProfile.model_validate(ITR_SALARIED), static_advisor)
    data = report.model_dump(by_alias=True, mode="json")
    for key in (
        "grossIncome", "taxableIncome", "optimalRegime", "refundDue", "suggestedITRForm",
        "regimeComparison", "effectiveTaxRate", "refundProcessingTime",
    ):
        assert key in data
    assert data["optimalRegime"] == "new"
    assert data["dueDates"]["originalDueDate"] == "2025-07-31"
