"""
narratives.py — ITR and GST recommendation text.

Each report type owns one prompt builder and one deterministic fallback
generator. The prompts embed only the numeric profile (no name, PAN or
GSTIN) plus the output schema; the fallbacks are rule-based paragraphs that
read sensibly for any input.

generate_itr_recommendations() / generate_gst_recommendations() always return
an AdvisoryResult[str] — never raise.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date

from easytax.agents.advisor_agent.llm_service import AdvisoryClient, AdvisoryResult
from easytax.agents.advisor_agent.parsing import narrative_from_json, narrative_from_prose
from easytax.agents.evaluator_agent.schemas import Regime
from easytax.agents.input_agent.schemas import GSTProfile, ITRProfile
from easytax.config import settings

_RECOMMENDATION_SCHEMA = '{"recommendations": "markdown text, under 200 words"}'


def format_inr(amount: float) -> str:
    """₹ amount with Indian digit grouping: 1234567.8 → '₹12,34,568'."""
    rupees = int(round(amount))
    sign = "-" if rupees < 0 else ""
    digits = str(abs(rupees))
    if len(digits) > 3:
        head, tail = digits[:-3], digits[-3:]
        groups = []
        while len(head) > 2:
            groups.insert(0, head[-2:])
            head = head[:-2]
        if head:
            groups.insert(0, head)
        digits = ",".join(groups + [tail])
    return f"{sign}₹{digits}"


# ===========================================================================
# ITR
# ===========================================================================

@dataclass(frozen=True)
class ITRSummary:
    """Deterministic figures the ITR narrative is built around."""
    gross_income: float
    taxable_income: float
    optimal_regime: Regime
    tax_savings: float           # old total - new total (signed)
    filing_due_date: date


def build_itr_prompt(profile: ITRProfile, summary: ITRSummary) -> str:
    inc = profile.income_details
    ded = profile.deductions
    fy = profile.personal_info.financial_year or settings.financial_year
    return f"""Generate personalised ITR filing recommendations for this taxpayer (FY {fy}).

TAXPAYER PROFILE:
- Total Income: {format_inr(summary.gross_income)}
- Taxable Income: {format_inr(summary.taxable_income)}
- Optimal Regime: {summary.optimal_regime.value}
- Old minus New regime tax: {format_inr(summary.tax_savings)}

INCOME BREAKDOWN:
- Salary: {format_inr(inc.salary_income)}
- House Property: {format_inr(inc.house_property_income)}
- Business: {format_inr(inc.business_income)}
- Capital Gains: {format_inr(inc.capital_gains)}
- Other Sources: {format_inr(inc.other_sources)}

DEDUCTIONS CLAIMED:
- Section 80C: {format_inr(ded.section_80c)}
- Section 80D: {format_inr(ded.section_80d)}
- Section 80G: {format_inr(ded.section_80g)}
- Section 80E: {format_inr(ded.section_80e)}
- Section 80TTA: {format_inr(ded.section_80tta)}

PROVIDE RECOMMENDATIONS FOR:
1. Tax Optimization: ways to reduce tax liability next year
2. Compliance: points to remember while filing
3. Investment Planning: better tax-saving instruments
4. Next Year Planning: strategies for the coming financial year

RESPONSE FORMAT (JSON only):
{_RECOMMENDATION_SCHEMA}"""


def itr_fallback_text(profile: ITRProfile, summary: ITRSummary) -> str:
    regime = summary.optimal_regime
    fy = profile.personal_info.financial_year or settings.financial_year

    if summary.gross_income > 1_000_000:
        savings_line = "Consider maximizing the Section 80C limit of ₹1.5L through PPF, ELSS, or insurance."
    else:
        savings_line = "Explore tax-saving investments to reduce future liability."

    if regime is Regime.old:
        regime_line, next_year = "Old regime", "Continue with traditional tax-saving investments."
    else:
        regime_line, next_year = "New regime", "Focus on the lower slab rates and simplified filing of the new regime."

    return (
        f"**Tax Filing Recommendations for FY {fy}:**\n\n"
        f"1. **Optimal Tax Regime:** {regime_line} is beneficial for your income profile.\n\n"
        f"2. **Tax Savings:** {savings_line}\n\n"
        "3. **Compliance:** Ensure all TDS certificates (Form 16/16A) are included. "
        "Verify Form 26AS for complete tax payment details.\n\n"
        f"4. **Next Year Planning:** {next_year}\n\n"
        f"5. **Important:** File ITR before {summary.filing_due_date:%B %d, %Y}, to avoid late filing penalties. "
        "Consider advance tax payments if liability exceeds ₹10,000."
    )


async def generate_itr_recommendations(
    advisor: AdvisoryClient,
    profile: ITRProfile,
    summary: ITRSummary,
) -> AdvisoryResult[str]:
    return await advisor.generate(
        build_itr_prompt(profile, summary),
        strict=narrative_from_json,
        heuristic=narrative_from_prose,
        static=lambda: itr_fallback_text(profile, summary),
        label="itr_recommendations",
    )


# ===========================================================================
# GST
# ===========================================================================

@dataclass(frozen=True)
class GSTSummary:
    period: str
    total_turnover: float
    output_gst: float
    itc_availed: float
    net_payable: float
    compliance_issues: tuple[str, ...] = ()


def build_gst_prompt(profile: GSTProfile, summary: GSTSummary) -> str:
    info = profile.business_info
    issues = ", ".join(summary.compliance_issues) or "None identified"
    return f"""Generate compliance recommendations for this GST return.

BUSINESS PROFILE:
- Business Type: {info.business_type}
- Return Type: {info.return_type}
- Period: {summary.period}

FINANCIAL SUMMARY:
- Total Turnover: {format_inr(summary.total_turnover)}
- Output GST: {format_inr(summary.output_gst)}
- ITC Availed: {format_inr(summary.itc_availed)}
- Net GST Payable: {format_inr(summary.net_payable)}

COMPLIANCE ISSUES:
{issues}

PROVIDE RECOMMENDATIONS FOR:
1. Compliance Issues: address any identified problems
2. ITC Optimization: ways to improve input tax credit
3. Process Improvements: better GST management practices
4. Future Planning: strategies for the next periods

RESPONSE FORMAT (JSON only):
{_RECOMMENDATION_SCHEMA}"""


def gst_fallback_text(profile: GSTProfile, summary: GSTSummary) -> str:
    return_type = profile.business_info.return_type

    if summary.itc_availed > 0:
        itc_line = "Maintain proper documentation for all ITC claims. Verify supplier GST compliance."
    else:
        itc_line = "Consider claiming eligible ITC on business purchases to reduce tax liability."

    if summary.net_payable > 100_000:
        payment_line = "Large tax liability detected. Pay before the due date to avoid interest under Section 50."
    else:
        payment_line = "Ensure timely GST payments to maintain a good compliance record."

    if summary.total_turnover > 20_000_000:
        growth_line = "High turnover may require monthly GSTR-1 filing and other compliance measures."
    else:
        growth_line = "Monitor turnover growth for potential GST compliance changes."

    return (
        "**GST Compliance Recommendations:**\n\n"
        f"1. **Return Filing:** Ensure {return_type} is filed before the due date to avoid late fees.\n\n"
        f"2. **ITC Management:** {itc_line}\n\n"
        f"3. **Payment Compliance:** {payment_line}\n\n"
        f"4. **Business Growth:** {growth_line}"
    )


async def generate_gst_recommendations(
    advisor: AdvisoryClient,
    profile: GSTProfile,
    summary: GSTSummary,
) -> AdvisoryResult[str]:
    return await advisor.generate(
        build_gst_prompt(profile, summary),
        strict=narrative_from_json,
        heuristic=narrative_from_prose,
        static=lambda: gst_fallback_text(profile, summary),
        label="gst_recommendations",
    )
