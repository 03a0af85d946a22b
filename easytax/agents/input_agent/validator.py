"""
InputAgent business-rule validator

Validates normalised ITR/GST profiles AFTER Pydantic structural validation has
already passed. Collects all violations in a single pass and raises ValueError
with a JSON-encoded list of {field, issue} dicts so the route (or the global
ValueError handler in main.py) can build the standard error envelope.

Rules enforced:
  ITR
    1. personalInfo.name  non-empty
    2. personalInfo.pan   non-empty (opaque — shape is not checked)
  GST
    1. businessInfo.gstin       valid 15-character GSTIN shape
    2. businessInfo.legalName   non-empty
    3. businessInfo.filingMonth recognisable month, when given
    4. businessInfo.filingYear  year in GST_MIN_YEAR..GST_MAX_YEAR, when given

Monetary fields are never rejected here: normalize_amount() has already
coerced anything unusable to zero.
"""
from __future__ import annotations

import json
import logging
from typing import Any

from easytax.agents.evaluator_agent.gst_calculator import (
    GST_MAX_YEAR,
    GST_MIN_YEAR,
    parse_month,
    validate_gstin,
)
from easytax.agents.input_agent.schemas import GSTProfile, ITRProfile

logger = logging.getLogger(__name__)


def _raise_if_any(violations: list[dict[str, Any]], kind: str) -> None:
    if violations:
        logger.info(
            "%s profile rejected: %d violation(s) fields=%s",
            kind, len(violations), [v["field"] for v in violations],
        )
        raise ValueError(json.dumps(violations))


def validate_itr_profile(profile: ITRProfile) -> None:
    """
    Validate the identity fields of an ITR submission.

    Raises:
        ValueError: JSON string containing a list of {"field", "issue"} dicts.
    """
    violations: list[dict[str, Any]] = []
    info = profile.personal_info

    if not info.name:
        violations.append({
            "field": "personalInfo.name",
            "issue": "Name is required to generate an ITR report.",
        })
    if not info.pan:
        violations.append({
            "field": "personalInfo.pan",
            "issue": "PAN is required to generate an ITR report.",
        })

    _raise_if_any(violations, "ITR")


def validate_gst_profile(profile: GSTProfile) -> None:
    """
    Validate the registration fields of a GST submission.

    Raises:
        ValueError: JSON string containing a list of {"field", "issue"} dicts.
    """
    violations: list[dict[str, Any]] = []
    info = profile.business_info

    # ---- 1. GSTIN shape ----------------------------------------------------
    if not validate_gstin(info.gstin):
        violations.append({
            "field": "businessInfo.gstin",
            "issue": "Please enter a valid 15-character GSTIN (e.g. 22AAAAA0000A1Z5).",
        })

    # ---- 2. Legal name -----------------------------------------------------
    if not info.legal_name:
        violations.append({
            "field": "businessInfo.legalName",
            "issue": "Legal name of the business is required.",
        })

    # ---- 3/4. Filing period (optional, but must parse when present) --------
    if info.filing_month and parse_month(info.filing_month) is None:
        violations.append({
            "field": "businessInfo.filingMonth",
            "issue": f"'{info.filing_month}' is not a recognised month.",
        })
    if info.filing_year and not (
        info.filing_year.isdecimal() and GST_MIN_YEAR <= int(info.filing_year) <= GST_MAX_YEAR
    ):
        violations.append({
            "field": "businessInfo.filingYear",
            "issue": f"'{info.filing_year}' is not a year between {GST_MIN_YEAR} and {GST_MAX_YEAR}.",
        })

    _raise_if_any(violations, "GST")
