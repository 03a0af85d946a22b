"""
schemas.py — InputAgent Pydantic v2 data contracts.

Defines:
  - normalize_amount()       (the single raw-string → amount boundary)
  - ITR wizard models        (PersonalInfo, IncomeDetails, Deductions, TaxPayments, ITRProfile)
  - GST wizard models        (BusinessInfo, OutwardSupplies, InwardSupplies, GSTPayment, GSTProfile)
  - ErrorDetail, ErrorBody, ErrorResponse  (cross-cutting error envelope)

The mobile wizards post every field as a string exactly as typed. Monetary
fields pass through normalize_amount() once, here; everything downstream
only ever sees non-negative floats. Identity fields are NOT defaulted —
validator.py rejects them before any computation runs.

All profile models are frozen: the aggregators read them, never mutate them.
"""
from __future__ import annotations

import logging
import math
import re
from enum import Enum
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

logger = logging.getLogger(__name__)

# Fixed standard deduction claimed on every ITR draft (old-regime figure)
STANDARD_DEDUCTION = 50_000.0

_AMOUNT_NOISE = re.compile(r"[₹,\s]|^rs\.?", re.IGNORECASE)


# ---------------------------------------------------------------------------
# Normalisation boundary
# ---------------------------------------------------------------------------

def normalize_amount(raw: Any) -> Optional[float]:
    """
    Convert one raw wizard value to a non-negative rupee amount.

    Accepts numbers and strings such as '1,20,000', '₹ 45000.50' or 'Rs. 500'.
    Indian and Western comma grouping are both handled by stripping commas.

    Returns:
        The amount as float, or None when the value is absent, non-numeric,
        non-finite or negative. Callers decide what None means (optional
        monetary fields treat it as zero).
    """
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, (int, float)):
        value = float(raw)
    else:
        cleaned = _AMOUNT_NOISE.sub("", str(raw))
        if not cleaned:
            return None
        try:
            value = float(cleaned)
        except ValueError:
            return None
    if not math.isfinite(value) or value < 0:
        return None
    return value


class _Model(BaseModel):
    """Base for every wizard model: camelCase on the wire, immutable in memory."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


class _AmountGroup(_Model):
    """Group of optional monetary fields — invalid or missing input becomes 0.0."""

    @field_validator("*", mode="before")
    @classmethod
    def _coerce_amount(cls, v: Any, info) -> float:
        amount = normalize_amount(v)
        if amount is None:
            if v not in (None, ""):
                logger.debug("Coerced invalid amount to zero field=%s", info.field_name)
            return 0.0
        return amount

    def total(self) -> float:
        """Sum of every field in the group."""
        return float(sum(self.model_dump().values()))


# ---------------------------------------------------------------------------
# ITR wizard
# ---------------------------------------------------------------------------

class PersonalInfo(_Model):
    """
    Filer identity as typed into the wizard.
    name and pan are required non-empty (validator.py); nothing else is checked.
    """
    name: str = ""
    pan: str = ""
    assessment_year: str = ""
    financial_year: str = ""

    @field_validator("*", mode="before")
    @classmethod
    def _strip(cls, v: Any) -> str:
        return "" if v is None else str(v).strip()


class IncomeDetails(_AmountGroup):
    salary_income: float = 0.0
    house_property_income: float = 0.0
    business_income: float = 0.0
    capital_gains: float = 0.0
    other_sources: float = 0.0


class Deductions(_AmountGroup):
    """
    Chapter VI-A sections claimed by the filer.
    The standard deduction is not an input — total() always adds STANDARD_DEDUCTION.
    """
    section_80c: float = Field(default=0.0, alias="section80C")
    section_80d: float = Field(default=0.0, alias="section80D")
    section_80g: float = Field(default=0.0, alias="section80G")
    section_80e: float = Field(default=0.0, alias="section80E")
    section_80tta: float = Field(default=0.0, alias="section80TTA")

    @property
    def standard_deduction(self) -> float:
        return STANDARD_DEDUCTION

    def total(self) -> float:
        return super().total() + STANDARD_DEDUCTION

    def breakdown(self) -> dict[str, float]:
        """Section → amount, including the fixed standard deduction."""
        out = self.model_dump(by_alias=True)
        out["standardDeduction"] = STANDARD_DEDUCTION
        return out


class TaxPayments(_AmountGroup):
    tds_deducted: float = 0.0
    advance_tax: float = 0.0
    self_assessment_tax: float = 0.0


class ITRProfile(_Model):
    """Complete ITR wizard submission after normalisation."""
    personal_info: PersonalInfo = Field(default_factory=PersonalInfo)
    income_details: IncomeDetails = Field(default_factory=IncomeDetails)
    deductions: Deductions = Field(default_factory=Deductions)
    tax_payments: TaxPayments = Field(default_factory=TaxPayments)


# ---------------------------------------------------------------------------
# GST wizard
# ---------------------------------------------------------------------------

class ReturnType(str, Enum):
    gstr1 = "GSTR1"
    gstr3b = "GSTR3B"
    gstr9 = "GSTR9"
    gstr4 = "GSTR4"


class BusinessInfo(_Model):
    """
    GST registration details. gstin and legal_name are required (validator.py).
    return_type stays a plain string: unknown return types still get the default due date.
    """
    gstin: str = ""
    legal_name: str = ""
    trade_name: str = ""
    business_type: str = "regular"
    return_type: str = ReturnType.gstr3b.value
    filing_month: str = ""
    filing_year: str = ""

    @field_validator("*", mode="before")
    @classmethod
    def _strip(cls, v: Any) -> str:
        return "" if v is None else str(v).strip()

    @field_validator("gstin", "return_type")
    @classmethod
    def _upper(cls, v: str) -> str:
        return v.upper()


class OutwardSupplies(_AmountGroup):
    # to_camel would give "b2BSupplies"
    b2b_supplies: float = Field(default=0.0, alias="b2bSupplies")
    b2c_supplies: float = Field(default=0.0, alias="b2cSupplies")
    export_supplies: float = 0.0
    exempt_supplies: float = 0.0
    nil_rated_supplies: float = 0.0
    cgst_amount: float = 0.0
    sgst_amount: float = 0.0
    igst_amount: float = 0.0
    utgst_amount: float = 0.0
    cess_amount: float = 0.0

    def turnover(self) -> float:
        return (
            self.b2b_supplies + self.b2c_supplies + self.export_supplies
            + self.exempt_supplies + self.nil_rated_supplies
        )

    def output_tax(self) -> float:
        return (
            self.cgst_amount + self.sgst_amount + self.igst_amount
            + self.utgst_amount + self.cess_amount
        )


class InwardSupplies(_AmountGroup):
    b2b_purchases: float = Field(default=0.0, alias="b2bPurchases")
    import_goods: float = 0.0
    import_services: float = 0.0
    inward_supplies_liable_to_rcm: float = Field(default=0.0, alias="inwardSuppliesLiableToRCM")
    itc_cgst: float = 0.0
    itc_sgst: float = 0.0
    itc_igst: float = 0.0
    itc_utgst: float = 0.0
    itc_cess: float = 0.0

    def input_tax_credit(self) -> float:
        return self.itc_cgst + self.itc_sgst + self.itc_igst + self.itc_utgst + self.itc_cess


class GSTPayment(_AmountGroup):
    cgst_payable: float = 0.0
    sgst_payable: float = 0.0
    igst_payable: float = 0.0
    utgst_payable: float = 0.0
    cess_payable: float = 0.0
    interest_payable: float = 0.0
    late_fee: float = 0.0
    penalty: float = 0.0

    def tax_paid(self) -> float:
        """Payments against tax heads only — interest, late fee and penalty excluded."""
        return (
            self.cgst_payable + self.sgst_payable + self.igst_payable
            + self.utgst_payable + self.cess_payable
        )


class GSTProfile(_Model):
    """Complete GST wizard submission after normalisation."""
    business_info: BusinessInfo = Field(default_factory=BusinessInfo)
    outward_supplies: OutwardSupplies = Field(default_factory=OutwardSupplies)
    inward_supplies: InwardSupplies = Field(default_factory=InwardSupplies)
    gst_payment: GSTPayment = Field(default_factory=GSTPayment)


# ---------------------------------------------------------------------------
# Error envelope: shared by every route and the global exception handlers
# ---------------------------------------------------------------------------

class ErrorDetail(BaseModel):
    field: Optional[str] = None
    issue: str


class ErrorBody(BaseModel):
    code: str
    message: str
    details: List[ErrorDetail] = []


class ErrorResponse(BaseModel):
    error: ErrorBody


__all__ = [
    "STANDARD_DEDUCTION",
    "normalize_amount",
    "PersonalInfo",
    "IncomeDetails",
    "Deductions",
    "TaxPayments",
    "ITRProfile",
    "ReturnType",
    "BusinessInfo",
    "OutwardSupplies",
    "InwardSupplies",
    "GSTPayment",
    "GSTProfile",
    "ErrorDetail",
    "ErrorBody",
    "ErrorResponse",
]
