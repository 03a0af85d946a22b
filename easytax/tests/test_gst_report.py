"""
GST report aggregator tests: figures, compliance rules, due dates, advisory tiers.
"""
from __future__ import annotations

from datetime import date

import pytest

from easytax.agents.advisor_agent.llm_service import AdvisoryClient
from easytax.agents.evaluator_agent.gst_report import (
    FULLY_COMPLIANT,
    GSTFigures,
    build_gst_report,
    compute_figures,
    evaluate_compliance,
)
from easytax.agents.input_agent.schemas import GSTProfile
from easytax.tests.demo_profiles import GST_TRADER


def _figures(**overrides) -> GSTFigures:
    base = dict(total_turnover=1_000_000, output_gst=180_000, itc_availed=60_000, net_payable=120_000, total_payments=120_000)
    base.update(overrides)
    return GSTFigures(**base)


# ---------------------------------------------------------------------------
# Compliance rules
# ---------------------------------------------------------------------------

def test_fully_compliant() -> None:
    assert evaluate_compliance(_figures()) == (FULLY_COMPLIANT, [])


def test_payment_shortfall() -> None:
    status, issues = evaluate_compliance(_figures(total_payments=119_999))
    assert issues == ["GST payment shortfall detected"]
    assert status == "Non-Compliant: GST payment shortfall detected"


def test_high_turnover_applies_to_any_state() -> None:
    status, issues = evaluate_compliance(_figures(total_turnover=5_000_001))
    assert issues == ["High turnover requires additional compliance"]


def test_turnover_at_threshold_is_not_high() -> None:
    assert evaluate_compliance(_figures(total_turnover=5_000_000))[0] == FULLY_COMPLIANT


def test_issues_listed_in_rule_order() -> None:
    status, issues = evaluate_compliance(_figures(total_turnover=9_000_000, total_payments=0))
    assert status == (
        "Non-Compliant: GST payment shortfall detected, High turnover requires additional compliance"
    )
    assert len(issues) == 2


def test_itc_above_output_gives_zero_net_payable() -> None:
    profile = GSTProfile.model_validate({
        "outwardSupplies": {"cgstAmount": "1000"},
        "inwardSupplies": {"itcCgst": "5000"},
    })
    figures = compute_figures(profile)
    assert figures.net_payable == 0
    assert evaluate_compliance(figures)[0] == FULLY_COMPLIANT


# ---------------------------------------------------------------------------
# Aggregator
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_trader_report(static_advisor: AdvisoryClient) -> None:
    report = await build_gst_report(GSTProfile.model_validate(GST_TRADER), static_advisor)

    assert report.total_turnover == pytest.approx(1_000_000)
    assert report.output_gst == pytest.approx(180_000)
    assert report.itc_availed == pytest.approx(60_000)
    assert report.net_payable == pytest.approx(120_000)
    assert report.total_payments == pytest.approx(60_000)
    assert report.compliance_status == "Non-Compliant: GST payment shortfall detected"
    assert report.period == "March 2025"
    assert report.return_type == "GSTR3B"
    assert report.due_dates.original_due_date == date(2025, 4, 20)
    assert report.due_dates.extended_due_date == date(2025, 4, 27)
    assert report.payment_breakdown["lateFee"] == 500
    assert report.outward_supplies_breakdown["b2bSupplies"] == 800_000


@pytest.mark.asyncio
async def test_static_recommendations(static_advisor: AdvisoryClient) -> None:
    report = await build_gst_report(GSTProfile.model_validate(GST_TRADER), static_advisor)
    assert report.fallback is True
    assert report.recommendations.startswith("**GST Compliance Recommendations:**")
    assert "Ensure GSTR3B is filed" in report.recommendations
    assert "Section 50" in report.recommendations       # net payable above ₹1 lakh
    assert "Maintain proper documentation" in report.recommendations


@pytest.mark.asyncio
async def test_model_recommendations_used(fake_completion) -> None:
    fake = fake_completion(reply='Here you go: {"recommendations": ["Reconcile GSTR-2B monthly.", "Pay the shortfall now."]}')
    report = await build_gst_report(GSTProfile.model_validate(GST_TRADER), AdvisoryClient(fake))
    assert report.recommendations == "Reconcile GSTR-2B monthly.\nPay the shortfall now."
    assert report.fallback is False
    assert "GST payment shortfall detected" in fake.prompts[0]
    assert "27AAPFU0939F1ZV" not in fake.prompts[0]


@pytest.mark.asyncio
async def test_model_failure_still_complete(fake_completion) -> None:
    report = await build_gst_report(
        GSTProfile.model_validate(GST_TRADER),
        AdvisoryClient(fake_completion(error=ConnectionError("no route"))),
    )
    assert report.fallback is True
    assert report.recommendations
    assert report.net_payable == pytest.approx(120_000)


@pytest.mark.asyncio
async def test_report_serialises_camel_case(static_advisor: AdvisoryClient) -> None:
    report = await build_gst_report(GSTProfile.model_validate(GST_TRADER), static_advisor)
    data = report.model_dump(by_alias=True, mode="json")
    for key in ("totalTurnover", "outputGST", "itcAvailed", "netPayable", "complianceStatus", "businessInfo"):
        assert key in data
    assert data["businessInfo"]["legalName"] == "Acme Traders Pvt Ltd"
