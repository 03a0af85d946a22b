"""
schemas.py — EvaluatorAgent Pydantic v2 data contracts.

Defines:
  - Regime                (old | new)
  - TaxComputationResult  (slab engine output for one regime)
  - RegimeComparison      (both regimes + absolute difference)
  - ITRFormSuggestion, ITRDueDates, ITRReport
  - GSTSplit, GSTDueDates, GSTReport
  - SlabTax, TDSLine, TDSResult, SalaryTaxResult
  - Request bodies for the calculator endpoints

Report field names are a compatibility contract with the mobile client:
they serialise in camelCase (grossIncome, optimalRegime, refundDue, ...),
so FastAPI response models must keep the default by_alias=True.
"""
from __future__ import annotations

from datetime import date, datetime
from enum import Enum
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from easytax.agents.input_agent.schemas import BusinessInfo, PersonalInfo


class Regime(str, Enum):
    old = "old"
    new = "new"


class _Report(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


# ---------------------------------------------------------------------------
# Slab engine output
# ---------------------------------------------------------------------------

class TaxComputationResult(_Report):
    """
    Tax for one regime on one taxable income.

    total_tax = base_tax + cess - rebate, never negative.
    cess is 4% of base_tax (pre-rebate); rebate is non-zero only under the
    old regime at or below the 87A ceiling.
    """
    base_tax: float
    cess: float
    rebate: float
    total_tax: float


class RegimeComparison(_Report):
    old_regime: TaxComputationResult
    new_regime: TaxComputationResult
    savings: float                       # abs(old.total_tax - new.total_tax)


class SlabTax(_Report):
    """One bracket of the slab table and the tax it contributes. ceiling None = no upper bound."""
    floor: float
    ceiling: Optional[float] = None
    rate: float
    tax: float


# ---------------------------------------------------------------------------
# ITR report
# ---------------------------------------------------------------------------

class ITRFormSuggestion(_Report):
    form: str
    reason: str


class ITRDueDates(_Report):
    original_due_date: date
    extended_due_date: date
    belated_return_date: date


class ITRReport(_Report):
    """Output of build_itr_report(). Immutable once built."""
    personal_info: PersonalInfo
    gross_income: float
    total_deductions: float
    taxable_income: float
    tax_liability: float                 # total_tax of the optimal regime
    tax_paid: float
    refund_due: float
    tax_payable: float
    refund_status: Literal["refund", "payable", "balanced"]
    effective_tax_rate: float            # tax_liability as % of gross_income
    refund_processing_time: Optional[str] = None
    optimal_regime: Regime
    regime_comparison: RegimeComparison
    recommendations: str
    income_breakdown: Dict[str, float]
    deduction_breakdown: Dict[str, float]
    tax_payment_breakdown: Dict[str, float]
    suggested_itr_form: ITRFormSuggestion = Field(alias="suggestedITRForm")
    due_dates: ITRDueDates
    generated_at: datetime
    fallback: bool = False               # True when recommendations came from the static tier


# ---------------------------------------------------------------------------
# GST
# ---------------------------------------------------------------------------

class GSTSplit(_Report):
    total_gst: float = Field(alias="totalGST")
    cgst: float
    sgst: float
    igst: float


class GSTDueDates(_Report):
    original_due_date: date
    extended_due_date: date


class GSTReport(_Report):
    """Output of build_gst_report(). Immutable once built."""
    business_info: BusinessInfo
    period: str
    return_type: str
    total_turnover: float
    output_gst: float = Field(alias="outputGST")
    itc_availed: float
    net_payable: float
    total_payments: float
    compliance_status: str
    compliance_issues: List[str] = []
    outward_supplies_breakdown: Dict[str, float]
    inward_supplies_breakdown: Dict[str, float]
    payment_breakdown: Dict[str, float]
    recommendations: str
    due_dates: GSTDueDates
    generated_at: datetime
    fallback: bool = False


# ---------------------------------------------------------------------------
# Calculator request bodies
# ---------------------------------------------------------------------------

class TaxComputeRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    taxable_income: float
    regime: Regime = Regime.old


class GSTSplitRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    taxable_value: float = Field(..., ge=0)
    rate: float = Field(..., ge=0, le=1, description="Fraction, e.g. 0.18 for 18%.")


class GSTINValidation(BaseModel):
    gstin: str
    valid: bool


# ---------------------------------------------------------------------------
# TDS and salary calculators
# ---------------------------------------------------------------------------

class TDSRequest(BaseModel):
    """Income received in the year, by TDS head. All amounts in rupees."""
    model_config = ConfigDict(extra="forbid")

    salary_income: float = Field(default=0.0, ge=0)
    professional_income: float = Field(default=0.0, ge=0)
    interest_income: float = Field(default=0.0, ge=0)
    rent_income: float = Field(default=0.0, ge=0)
    contractor_income: float = Field(default=0.0, ge=0)
    commission_income: float = Field(default=0.0, ge=0)
    other_income: float = Field(default=0.0, ge=0)
    custom_rate: Optional[float] = Field(
        default=None, ge=0, le=100, description="Percent applied to other_income; 10 when omitted.",
    )


class TDSLine(_Report):
    income_type: str
    section: str
    income: float
    rate: float                          # percent
    tds: float


class TDSResult(_Report):
    total_income: float
    total_tds: float
    net_income: float                    # total_income - total_tds
    breakdown: List[TDSLine]


class SalaryTaxRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    basic_salary: float = Field(default=0.0, ge=0)
    hra: float = Field(default=0.0, ge=0)
    other_income: float = Field(default=0.0, ge=0)
    section_80c: float = Field(default=0.0, ge=0)
    section_80d: float = Field(default=0.0, ge=0)
    home_loan_interest: float = Field(default=0.0, ge=0)
    regime: Regime = Regime.new


class SalaryTaxResult(_Report):
    """
    Annual tax and take-home for one salary under one regime.
    Deductions count only under the old regime; take_home = total_income - total_tax.
    """
    regime: Regime
    total_income: float
    total_deductions: float
    taxable_income: float
    base_tax: float
    cess: float
    rebate: float
    total_tax: float
    take_home: float
    slab_breakdown: List[SlabTax]


__all__ = [
    "Regime",
    "TaxComputationResult",
    "RegimeComparison",
    "SlabTax",
    "ITRFormSuggestion",
    "ITRDueDates",
    "ITRReport",
    "GSTSplit",
    "GSTDueDates",
    "GSTReport",
    "TaxComputeRequest",
    "GSTSplitRequest",
    "GSTINValidation",
    "TDSRequest",
    "TDSLine",
    "TDSResult",
    "SalaryTaxRequest",
    "SalaryTaxResult",
]
