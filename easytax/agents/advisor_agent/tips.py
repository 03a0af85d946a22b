"""
tips.py — categorised AI tax tips with static fallback tables.

TipCategory is closed: every member has exactly one prompt template and one
non-empty fallback table, and the module refuses to import otherwise.
Free-form category strings from clients go through TipCategory.parse(),
which maps anything unknown to GENERAL — past that boundary there is no
"unknown category" case.
"""
from __future__ import annotations

import logging
from enum import Enum

from easytax.agents.advisor_agent.llm_service import AdvisoryClient, AdvisoryResult
from easytax.agents.advisor_agent.parsing import MAX_TIPS, tips_from_json, tips_from_text
from easytax.agents.advisor_agent.schemas import TaxTip
from easytax.config import settings

logger = logging.getLogger(__name__)


class TipCategory(str, Enum):
    general = "general"
    salaried = "salaried"
    investment = "investment"
    business = "business"
    deductions = "deductions"

    @classmethod
    def parse(cls, value: str | None) -> "TipCategory":
        try:
            return cls((value or "").strip().lower())
        except ValueError:
            logger.info("Unknown tip category %r — using general", value)
            return cls.general


# ---------------------------------------------------------------------------
# Prompt templates
# ---------------------------------------------------------------------------

_CATEGORY_PROMPTS: dict[TipCategory, str] = {
    TipCategory.general: (
        "Generate {count} unique, actionable general tax saving tips for Indian taxpayers in FY {fy}. "
        "Focus on practical strategies that apply to most taxpayers. "
        "Include potential savings amounts where applicable."
    ),
    TipCategory.salaried: (
        "Generate {count} specific tax saving tips for salaried employees in India for FY {fy}. "
        "Focus on HRA, LTA, allowances, employer benefits, and salary structuring strategies."
    ),
    TipCategory.investment: (
        "Generate {count} investment-focused tax saving tips for FY {fy} in India. "
        "Cover Section 80C investments, ELSS, PPF, NPS, tax-saving FDs, and other investment options."
    ),
    TipCategory.business: (
        "Generate {count} tax saving tips for business owners and self-employed individuals in India for FY {fy}. "
        "Include business expenses, presumptive taxation, depreciation, and business-specific deductions."
    ),
    TipCategory.deductions: (
        "Generate {count} detailed tips about tax deductions available in India for FY {fy}. "
        "Cover Sections 80C, 80D, 80E, 80G, 24(b), and other important deduction sections."
    ),
}

_TIP_SCHEMA = """[
  {
    "title": "Brief tip title (max 8 words)",
    "description": "Detailed explanation (2-3 sentences)",
    "savings": "₹X,XXX - ₹Y,YYY annually",
    "section": "Section 80C/80D/etc (if applicable)"
  }
]"""


# ---------------------------------------------------------------------------
# Static fallback tables
# ---------------------------------------------------------------------------

_FALLBACK_TIPS: dict[TipCategory, tuple[TaxTip, ...]] = {
    TipCategory.general: (
        TaxTip(
            title="Maximize Section 80C Investments",
            description=(
                "Invest up to ₹1.5 lakh in PPF, ELSS, or life insurance to claim full deduction "
                "under Section 80C. This can save you ₹46,800 in taxes if you're in the 30% bracket."
            ),
            savings="Up to ₹46,800 annually",
            section="Section 80C",
        ),
        TaxTip(
            title="Choose Right Tax Regime",
            description=(
                "Compare old vs new tax regime based on your deductions. If you have significant "
                "investments and a home loan, the old regime might be better."
            ),
            savings="₹10,000 - ₹50,000 annually",
        ),
        TaxTip(
            title="Health Insurance Tax Benefits",
            description=(
                "Get tax deduction up to ₹25,000 for health insurance premiums under Section 80D. "
                "Additional ₹50,000 if you pay for parents above 60."
            ),
            savings="₹7,500 - ₹22,500 annually",
            section="Section 80D",
        ),
    ),
    TipCategory.salaried: (
        TaxTip(
            title="Optimize HRA Exemption",
            description=(
                "If you pay rent, claim HRA exemption which is the minimum of: actual HRA received, "
                "50% of salary (40% for non-metros), or actual rent minus 10% of salary."
            ),
            savings="₹15,000 - ₹1,00,000 annually",
            section="Section 10(13A)",
        ),
        TaxTip(
            title="Claim Standard Deduction",
            description=(
                "All salaried employees get an automatic ₹75,000 standard deduction from salary "
                "income in the new tax regime, ₹50,000 in the old regime."
            ),
            savings="₹15,000 - ₹22,500 annually",
            section="Section 16",
        ),
    ),
    TipCategory.investment: (
        TaxTip(
            title="Invest in ELSS Mutual Funds",
            description=(
                "ELSS funds offer deduction under 80C with only a 3-year lock-in period and potential "
                "for higher returns compared to other tax-saving investments."
            ),
            savings="₹46,800 + market returns",
            section="Section 80C",
        ),
        TaxTip(
            title="Additional NPS Contribution",
            description=(
                "Contribute an extra ₹50,000 to NPS over the ₹1.5 lakh limit to get additional "
                "deduction under Section 80CCD(1B)."
            ),
            savings="₹15,000 - ₹20,000 annually",
            section="Section 80CCD(1B)",
        ),
    ),
    TipCategory.business: (
        TaxTip(
            title="Business Expense Deductions",
            description=(
                "Claim all legitimate business expenses including travel, office rent, equipment, "
                "and professional fees to reduce taxable business income."
            ),
            savings="20-40% of expenses claimed",
            section="Section 37",
        ),
        TaxTip(
            title="Presumptive Taxation Benefits",
            description=(
                "If turnover is below ₹2 crores, opt for presumptive taxation under Section 44AD "
                "with deemed profit of 8% and no audit requirement."
            ),
            savings="Audit costs + simplified compliance",
            section="Section 44AD",
        ),
    ),
    TipCategory.deductions: (
        TaxTip(
            title="Education Loan Interest",
            description=(
                "Claim full deduction on interest paid for an education loan for higher studies "
                "with no upper limit under Section 80E."
            ),
            savings="Full interest amount",
            section="Section 80E",
        ),
        TaxTip(
            title="Charitable Donations",
            description=(
                "Donate to approved charitable institutions and claim 50-100% deduction under "
                "Section 80G. Some donations qualify for 100% deduction."
            ),
            savings="50-100% of donation amount",
            section="Section 80G",
        ),
    ),
}

_missing = [c.value for c in TipCategory if c not in _CATEGORY_PROMPTS or not _FALLBACK_TIPS.get(c)]
if _missing:
    raise RuntimeError(f"Tip categories without prompt or fallback table: {_missing}")


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def build_tip_prompt(category: TipCategory) -> str:
    fy = settings.financial_year
    task = _CATEGORY_PROMPTS[category].format(count=MAX_TIPS, fy=fy)
    return f"""{task}

REQUIREMENTS:
- Each tip must be accurate and legal under current Indian tax laws
- Include specific section references (like Section 80C, 80D, etc.) where applicable
- Mention potential savings amounts in INR where relevant
- Tips should be actionable and practical
- Use current FY {fy} limits and rates

RESPONSE FORMAT (JSON only):
{_TIP_SCHEMA}

Provide exactly {MAX_TIPS} tips in this JSON format only."""


def fallback_tips(category: TipCategory) -> list[TaxTip]:
    """Static tips for category — never empty."""
    return list(_FALLBACK_TIPS[category])


async def fetch_tips(advisor: AdvisoryClient, category: TipCategory | str) -> AdvisoryResult[list[TaxTip]]:
    """
    Up to 8 tips for category: model JSON → free-text recovery → static table.
    Always returns at least the static table's tips.
    """
    if not isinstance(category, TipCategory):
        category = TipCategory.parse(category)
    return await advisor.generate(
        build_tip_prompt(category),
        strict=tips_from_json,
        heuristic=tips_from_text,
        static=lambda: fallback_tips(category),
        label=f"tips:{category.value}",
    )
