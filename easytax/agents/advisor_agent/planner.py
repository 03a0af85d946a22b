"""
planner.py — AI tax-planning advisor.

generate_tax_plan() asks the model for a full plan as a JSON object. When the
reply is prose, the prose is kept as the narrative and the instrument amounts
are computed from income (heuristic tier). When the call fails outright, a
fully static plan is returned.

Amount rules (annual, INR):
  heuristic: PPF  min(1.5L, 12% income)  ELSS min(1.5L, 10% income)  insurance min(25K, 3% income)
  static:    PPF  min(1.5L, 12% income)  ELSS min(1.5L,  8% income)  insurance min(25K, 2% income)
  estimated tax saving = 30% of the suggested total
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Optional

from pydantic import ValidationError

from easytax.agents.advisor_agent.llm_service import AdvisoryClient
from easytax.agents.advisor_agent.narratives import format_inr
from easytax.agents.advisor_agent.parsing import extract_json
from easytax.agents.advisor_agent.schemas import (
    InvestmentSuggestion,
    PortfolioAllocation,
    RiskAppetite,
    TaxPlan,
    TaxPlanProfile,
)
from easytax.config import settings

logger = logging.getLogger(__name__)

CAP_80C = 150_000
CAP_80D_SELF = 25_000
_ASSUMED_MARGINAL_RATE = 0.30
_PROSE_SUMMARY_CHARS = 500

_ALLOCATIONS: dict[RiskAppetite, PortfolioAllocation] = {
    RiskAppetite.conservative: PortfolioAllocation(equity=30, debt=60, gold=10),
    RiskAppetite.moderate: PortfolioAllocation(equity=60, debt=30, gold=10),
    RiskAppetite.aggressive: PortfolioAllocation(equity=80, debt=15, gold=5),
}

_PLAN_SCHEMA = """{
  "recommendations": "Detailed analysis and recommendations (max 300 words)",
  "investmentSuggestions": [
    {"instrument": "PPF", "amount": 150000, "reason": "Explanation for this allocation"}
  ],
  "taxSavings": 45000,
  "portfolioAllocation": {"equity": 60, "debt": 30, "gold": 10},
  "actionPlan": ["Immediate action items"]
}"""


def risk_based_allocation(risk: RiskAppetite) -> PortfolioAllocation:
    return _ALLOCATIONS[risk]


def build_plan_prompt(profile: TaxPlanProfile) -> str:
    pd, inv, goals, prefs = (
        profile.personal_details,
        profile.current_investments,
        profile.financial_goals,
        profile.preferences,
    )
    return f"""Create a comprehensive, personalised tax plan for an Indian taxpayer.

USER PROFILE:
- Age: {pd.age}
- Annual Income: {format_inr(pd.annual_income)}
- Current Savings: {format_inr(pd.current_savings)}
- Dependents: {pd.dependents}

CURRENT INVESTMENTS:
- PPF: {format_inr(inv.ppf)}/year
- ELSS: {format_inr(inv.elss)}/year
- Insurance: {format_inr(inv.insurance)}/year
- Fixed Deposits: {format_inr(inv.fixed_deposits)}

FINANCIAL GOALS:
- Retirement Corpus: {format_inr(goals.retirement)}
- Child Education: {format_inr(goals.child_education)}
- Home Loan: {format_inr(goals.home_loan)}

PREFERENCES:
- Risk Appetite: {prefs.risk_appetite.value}
- Tax Regime: {prefs.tax_regime}
- Time Horizon: {prefs.time_horizon}

PROVIDE: tax analysis under the chosen regime, specific amounts per instrument,
estimated annual tax savings, a risk-adjusted allocation, goal-based strategies
and a phased action plan. Focus on Sections 80C, 80D and 80E.

RESPONSE FORMAT (JSON only):
{_PLAN_SCHEMA}

Consider FY {settings.financial_year} tax rates and limits."""


def _suggestions(income: float, elss_pct: float, insurance_pct: float) -> list[InvestmentSuggestion]:
    return [
        InvestmentSuggestion(
            instrument="PPF",
            amount=round(min(CAP_80C, income * 0.12), 2),
            reason="15-year tax-free investment with guaranteed returns under Section 80C",
        ),
        InvestmentSuggestion(
            instrument="ELSS Mutual Funds",
            amount=round(min(CAP_80C, income * elss_pct), 2),
            reason="Equity exposure with tax benefits and a 3-year lock-in",
        ),
        InvestmentSuggestion(
            instrument="Health Insurance",
            amount=round(min(CAP_80D_SELF, income * insurance_pct), 2),
            reason=f"Section 80D benefits up to {format_inr(CAP_80D_SELF)} with health protection",
        ),
    ]


def _estimated_savings(suggestions: list[InvestmentSuggestion]) -> float:
    return round(sum(s.amount for s in suggestions) * _ASSUMED_MARGINAL_RATE, 2)


def _now() -> datetime:
    return datetime.now(timezone.utc)


# ---------------------------------------------------------------------------
# Stages
# ---------------------------------------------------------------------------

def plan_from_json(text: str) -> Optional[TaxPlan]:
    """Strict stage: the documented JSON object, with defaults for missing keys."""
    data = extract_json(text, "object")
    if not isinstance(data, dict):
        return None
    try:
        return TaxPlan(
            recommendations=str(data.get("recommendations") or "Custom tax plan generated successfully."),
            investment_suggestions=data.get("investmentSuggestions") or [],
            tax_savings=data.get("taxSavings") or 0,
            portfolio_allocation=data.get("portfolioAllocation") or {},
            action_plan=[str(a) for a in data.get("actionPlan") or []],
            generated_at=_now(),
        )
    except (ValidationError, TypeError) as exc:
        logger.info("Plan JSON did not match schema: %s", exc)
        return None


def plan_from_prose(profile: TaxPlanProfile, text: str) -> Optional[TaxPlan]:
    """Heuristic stage: prose narrative + computed instrument amounts."""
    if not text.strip():
        return None
    summary = text.strip()
    if len(summary) > _PROSE_SUMMARY_CHARS:
        summary = summary[:_PROSE_SUMMARY_CHARS] + "..."
    suggestions = _suggestions(profile.personal_details.annual_income, 0.10, 0.03)
    return TaxPlan(
        recommendations=summary,
        investment_suggestions=suggestions,
        tax_savings=_estimated_savings(suggestions),
        portfolio_allocation=risk_based_allocation(profile.preferences.risk_appetite),
        action_plan=[
            "Start SIP in recommended ELSS funds",
            "Maximize PPF contribution for current FY",
            "Review and increase health insurance coverage",
        ],
        generated_at=_now(),
    )


def fallback_plan(profile: TaxPlanProfile) -> TaxPlan:
    pd = profile.personal_details
    suggestions = _suggestions(pd.annual_income, 0.08, 0.02)
    recommendations = (
        f"Based on your profile (Age: {pd.age}, Income: {format_inr(pd.annual_income)}), "
        "here's your personalised tax plan:\n\n"
        "1. **Tax Optimization**: Focus on maximizing the Section 80C limit of ₹1.5L annually\n"
        "2. **Investment Strategy**: Balance between tax savings and wealth creation\n"
        "3. **Risk Management**: Adequate insurance coverage for financial security\n"
        "4. **Goal Planning**: Systematic approach to achieve your financial objectives"
    )
    return TaxPlan(
        recommendations=recommendations,
        investment_suggestions=suggestions,
        tax_savings=_estimated_savings(suggestions),
        portfolio_allocation=risk_based_allocation(profile.preferences.risk_appetite),
        action_plan=[
            "Open PPF account if not existing",
            "Start monthly SIP in ELSS funds",
            "Review current insurance coverage",
            "Plan investments before March 31st",
        ],
        generated_at=_now(),
        fallback=True,
    )


async def generate_tax_plan(advisor: AdvisoryClient, profile: TaxPlanProfile) -> TaxPlan:
    result = await advisor.generate(
        build_plan_prompt(profile),
        strict=plan_from_json,
        heuristic=lambda text: plan_from_prose(profile, text),
        static=lambda: fallback_plan(profile),
        label="tax_plan",
    )
    return result.payload
