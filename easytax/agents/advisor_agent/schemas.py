"""
schemas.py — AdvisorAgent Pydantic v2 data contracts.

Defines:
  - TaxTip, TipsResponse          (tax-tip catalogue output)
  - InvestmentSuggestion, PortfolioAllocation
  - TaxPlanProfile (+ nested groups), TaxPlan  (tax-planning advisor)

Every record here may come from the language model, from the heuristic
text parser, or from a static table — the shape is identical in all three
cases. `fallback` on responses is True only for the static tier.
"""
from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from easytax.agents.input_agent.schemas import normalize_amount


class _Camel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ---------------------------------------------------------------------------
# Tax tips
# ---------------------------------------------------------------------------

class TaxTip(_Camel):
    title: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)
    savings: Optional[str] = None
    section: Optional[str] = None


class TipsResponse(_Camel):
    category: str
    tips: List[TaxTip]
    fallback: bool = False


# ---------------------------------------------------------------------------
# Tax planner
# ---------------------------------------------------------------------------

class RiskAppetite(str, Enum):
    conservative = "conservative"
    moderate = "moderate"
    aggressive = "aggressive"


class _Amounts(_Camel):
    """Optional monetary inputs — same coercion as the ITR/GST wizards."""

    @field_validator("*", mode="before")
    @classmethod
    def _coerce(cls, v):
        return normalize_amount(v) or 0.0


class PersonalDetails(_Camel):
    age: int = Field(default=30, ge=18, le=100)
    annual_income: float = Field(default=0.0, ge=0)
    current_savings: float = Field(default=0.0, ge=0)
    dependents: int = Field(default=0, ge=0)

    @field_validator("annual_income", "current_savings", mode="before")
    @classmethod
    def _coerce(cls, v):
        return normalize_amount(v) or 0.0


class CurrentInvestments(_Amounts):
    ppf: float = 0.0
    elss: float = 0.0
    insurance: float = 0.0
    fixed_deposits: float = 0.0


class FinancialGoals(_Amounts):
    retirement: float = 0.0
    child_education: float = 0.0
    home_loan: float = 0.0


class Preferences(_Camel):
    risk_appetite: RiskAppetite = RiskAppetite.moderate
    tax_regime: str = "old"
    time_horizon: str = "long"

    @field_validator("risk_appetite", mode="before")
    @classmethod
    def _lenient_risk(cls, v):
        # Unknown appetite from the client is treated as moderate
        try:
            return RiskAppetite(str(v).strip().lower())
        except ValueError:
            return RiskAppetite.moderate


class TaxPlanProfile(_Camel):
    personal_details: PersonalDetails = Field(default_factory=PersonalDetails)
    current_investments: CurrentInvestments = Field(default_factory=CurrentInvestments)
    financial_goals: FinancialGoals = Field(default_factory=FinancialGoals)
    preferences: Preferences = Field(default_factory=Preferences)


class InvestmentSuggestion(_Camel):
    instrument: str = Field(..., min_length=1)
    amount: float = Field(..., ge=0)
    reason: str = ""


class PortfolioAllocation(_Camel):
    equity: float = 0
    debt: float = 0
    gold: float = 0


class TaxPlan(_Camel):
    recommendations: str
    investment_suggestions: List[InvestmentSuggestion] = []
    tax_savings: float = 0.0
    portfolio_allocation: PortfolioAllocation = Field(default_factory=PortfolioAllocation)
    action_plan: List[str] = []
    generated_at: datetime
    fallback: bool = False


__all__ = [
    "TaxTip",
    "TipsResponse",
    "RiskAppetite",
    "PersonalDetails",
    "CurrentInvestments",
    "FinancialGoals",
    "Preferences",
    "TaxPlanProfile",
    "InvestmentSuggestion",
    "PortfolioAllocation",
    "TaxPlan",
]
