"""
EasyTax GST report aggregator.

build_gst_report():
  1. total_turnover = B2B + B2C + export + exempt + nil-rated supplies
  2. output_gst     = CGST + SGST + IGST + UTGST + cess on outward supplies
  3. itc_availed    = ITC across the same five heads
  4. net_payable    = max(0, output_gst - itc_availed)
  5. compliance rules (ordered) → status string
  6. due dates from return type + filing period
  7. recommendations from the advisory layer (static text if the model fails)
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Optional

from easytax.agents.advisor_agent.llm_service import AdvisoryClient
from easytax.agents.advisor_agent.narratives import GSTSummary, generate_gst_recommendations
from easytax.agents.evaluator_agent.gst_calculator import compute_due_dates
from easytax.agents.evaluator_agent.schemas import GSTReport
from easytax.agents.input_agent.schemas import GSTProfile

logger = logging.getLogger(__name__)

HIGH_TURNOVER_THRESHOLD = 5_000_000   # ₹50 lakh
FULLY_COMPLIANT = "Fully Compliant"


@dataclass(frozen=True)
class GSTFigures:
    total_turnover: float
    output_gst: float
    itc_availed: float
    net_payable: float
    total_payments: float


# A rule returns its issue text when triggered, None otherwise
ComplianceRule = Callable[[GSTFigures], Optional[str]]


def _payment_shortfall(f: GSTFigures) -> Optional[str]:
    if f.net_payable > f.total_payments:
        return "GST payment shortfall detected"
    return None


def _high_turnover(f: GSTFigures) -> Optional[str]:
    if f.total_turnover > HIGH_TURNOVER_THRESHOLD:
        return "High turnover requires additional compliance"
    return None


COMPLIANCE_RULES: tuple[ComplianceRule, ...] = (
    _payment_shortfall,
    _high_turnover,
)


def compute_figures(profile: GSTProfile) -> GSTFigures:
    output_gst = round(profile.outward_supplies.output_tax(), 2)
    itc = round(profile.inward_supplies.input_tax_credit(), 2)
    return GSTFigures(
        total_turnover=round(profile.outward_supplies.turnover(), 2),
        output_gst=output_gst,
        itc_availed=itc,
        net_payable=max(0.0, round(output_gst - itc, 2)),
        total_payments=round(profile.gst_payment.tax_paid(), 2),
    )


def evaluate_compliance(figures: GSTFigures) -> tuple[str, list[str]]:
    """Run every rule in order. Status lists all triggered issues, or 'Fully Compliant'."""
    issues = [issue for issue in (rule(figures) for rule in COMPLIANCE_RULES) if issue]
    if not issues:
        return FULLY_COMPLIANT, []
    return f"Non-Compliant: {', '.join(issues)}", issues


async def build_gst_report(profile: GSTProfile, advisor: AdvisoryClient) -> GSTReport:
    """Full GST report for a normalised, validated profile. Never raises on advisory failure."""
    info = profile.business_info
    figures = compute_figures(profile)
    status, issues = evaluate_compliance(figures)
    period = f"{info.filing_month} {info.filing_year}".strip()

    advisory = await generate_gst_recommendations(
        advisor,
        profile,
        GSTSummary(
            period=period,
            total_turnover=figures.total_turnover,
            output_gst=figures.output_gst,
            itc_availed=figures.itc_availed,
            net_payable=figures.net_payable,
            compliance_issues=tuple(issues),
        ),
    )

    report = GSTReport(
        business_info=info,
        period=period,
        return_type=info.return_type,
        total_turnover=figures.total_turnover,
        output_gst=figures.output_gst,
        itc_availed=figures.itc_availed,
        net_payable=figures.net_payable,
        total_payments=figures.total_payments,
        compliance_status=status,
        compliance_issues=issues,
        outward_supplies_breakdown=profile.outward_supplies.model_dump(by_alias=True),
        inward_supplies_breakdown=profile.inward_supplies.model_dump(by_alias=True),
        payment_breakdown=profile.gst_payment.model_dump(by_alias=True),
        recommendations=advisory.payload,
        due_dates=compute_due_dates(info.return_type, info.filing_month, info.filing_year),
        generated_at=datetime.now(timezone.utc),
        fallback=advisory.fallback,
    )
    logger.info(
        "GST report built return_type=%s issues=%d advisory_source=%s",
        info.return_type, len(issues), advisory.source.value,
    )
    return report
