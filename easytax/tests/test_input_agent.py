"""
InputAgent tests: amount normalisation, wizard model coercion and the
identity-field validators.
"""
from __future__ import annotations

import json

import pytest
from pydantic import ValidationError

from easytax.agents.input_agent.schemas import (
    STANDARD_DEDUCTION,
    GSTProfile,
    ITRProfile,
    normalize_amount,
)
from easytax.agents.input_agent.validator import validate_gst_profile, validate_itr_profile
from easytax.tests.demo_profiles import GST_TRADER, ITR_SALARIED


# ---------------------------------------------------------------------------
# normalize_amount
# ---------------------------------------------------------------------------

@pytest.mark.parametrize(
    "raw, expected",
    [
        ("1,20,000", 120_000.0),
        ("1,200,000", 1_200_000.0),
        ("₹ 45000.50", 45_000.5),
        ("Rs. 500", 500.0),
        (" 42 ", 42.0),
        (7, 7.0),
        (0, 0.0),
        (12.5, 12.5),
    ],
)
def test_normalize_accepts_typed_amounts(raw, expected) -> None:
    assert normalize_amount(raw) == expected


@pytest.mark.parametrize("raw", [None, "", "   ", "abc", "12abc", "-500", -1, float("nan"), float("inf"), True])
def test_normalize_rejects_unusable_values(raw) -> None:
    assert normalize_amount(raw) is None


# ---------------------------------------------------------------------------
# Wizard models
# ---------------------------------------------------------------------------

def test_itr_profile_coerces_strings() -> None:
    profile = ITRProfile.model_validate(ITR_SALARIED)
    assert profile.income_details.salary_income == 1_200_000.0
    assert profile.income_details.other_sources == 20_000.0
    assert profile.income_details.house_property_income == 0.0
    assert profile.deductions.section_80c == 150_000.0
    assert profile.deductions.section_80g == 0.0      # "abc"
    assert profile.tax_payments.tds_deducted == 110_000.0


def test_missing_groups_default_to_zero() -> None:
    profile = ITRProfile.model_validate({"personalInfo": {"name": "A", "pan": "B"}})
    assert profile.income_details.total() == 0.0
    assert profile.tax_payments.total() == 0.0


def test_deductions_always_include_standard_deduction() -> None:
    profile = ITRProfile.model_validate(ITR_SALARIED)
    assert profile.deductions.total() == 150_000 + 25_000 + STANDARD_DEDUCTION
    assert profile.deductions.breakdown()["standardDeduction"] == STANDARD_DEDUCTION
    assert "section80C" in profile.deductions.breakdown()


def test_profiles_are_immutable() -> None:
    profile = ITRProfile.model_validate(ITR_SALARIED)
    with pytest.raises(ValidationError):
        profile.income_details.salary_income = 1.0


def test_gst_profile_aggregates() -> None:
    profile = GSTProfile.model_validate(GST_TRADER)
    assert profile.business_info.gstin == "27AAPFU0939F1ZV"
    assert profile.business_info.return_type == "GSTR3B"
    assert profile.outward_supplies.turnover() == 1_000_000.0
    assert profile.outward_supplies.output_tax() == 180_000.0
    assert profile.inward_supplies.input_tax_credit() == 60_000.0
    # late fee is not a tax head
    assert profile.gst_payment.tax_paid() == 60_000.0


def test_turnover_includes_exempt_and_nil_rated() -> None:
    profile = GSTProfile.model_validate({
        "outwardSupplies": {"b2cSupplies": "100", "exportSupplies": "10", "exemptSupplies": "5", "nilRatedSupplies": "1"},
    })
    assert profile.outward_supplies.turnover() == 116.0


# ---------------------------------------------------------------------------
# Validators
# ---------------------------------------------------------------------------

def test_valid_itr_profile_passes() -> None:
    validate_itr_profile(ITRProfile.model_validate(ITR_SALARIED))


def test_itr_missing_name_and_pan_reports_both() -> None:
    profile = ITRProfile.model_validate({"personalInfo": {"name": "  ", "pan": ""}})
    with pytest.raises(ValueError) as exc_info:
        validate_itr_profile(profile)
    fields = [v["field"] for v in json.loads(str(exc_info.value))]
    assert fields == ["personalInfo.name", "personalInfo.pan"]


def test_valid_gst_profile_passes() -> None:
    validate_gst_profile(GSTProfile.model_validate(GST_TRADER))


def test_gst_bad_gstin_rejected() -> None:
    payload = {**GST_TRADER, "businessInfo": {**GST_TRADER["businessInfo"], "gstin": "22AAAAA0000A1Z"}}
    with pytest.raises(ValueError) as exc_info:
        validate_gst_profile(GSTProfile.model_validate(payload))
    violations = json.loads(str(exc_info.value))
    assert [v["field"] for v in violations] == ["businessInfo.gstin"]


def test_gst_collects_all_violations() -> None:
    profile = GSTProfile.model_validate({
        "businessInfo": {"gstin": "", "legalName": "", "filingMonth": "Smarch", "filingYear": "25"},
    })
    with pytest.raises(ValueError) as exc_info:
        validate_gst_profile(profile)
    fields = {v["field"] for v in json.loads(str(exc_info.value))}
    assert fields == {
        "businessInfo.gstin",
        "businessInfo.legalName",
        "businessInfo.filingMonth",
        "businessInfo.filingYear",
    }


@pytest.mark.parametrize("year", ["9999", "2016", "2101", "0000", "²⁰²⁵"])
def test_gst_filing_year_out_of_range_rejected(year: str) -> None:
    payload = {**GST_TRADER, "businessInfo": {**GST_TRADER["businessInfo"], "filingYear": year}}
    with pytest.raises(ValueError) as exc_info:
        validate_gst_profile(GSTProfile.model_validate(payload))
    assert [v["field"] for v in json.loads(str(exc_info.value))] == ["businessInfo.filingYear"]


@pytest.mark.parametrize("year", ["2017", "2025", "2100"])
def test_gst_filing_year_in_range_accepted(year: str) -> None:
    payload = {**GST_TRADER, "businessInfo": {**GST_TRADER["businessInfo"], "filingYear": year}}
    validate_gst_profile(GSTProfile.model_validate(payload))
