"""
EvaluatorAgent HTTP routes — POST /api/tax/compute,
                              POST /api/gst/split,
                              GET  /api/gst/validate/{gstin},
                              GET  /api/gst/due-dates,
                              POST /api/tds/compute,
                              POST /api/tax/salary,
                              POST /api/itr/report,
                              POST /api/gst/report,
                              GET  /api/reports/{kind}/{session_id}

Report endpoints accept the wizard payload (camelCase, string amounts allowed),
reject missing identity fields / malformed GSTIN with 422 BEFORE any
computation, and always return a complete report once inputs are valid.
When session_id is given the report snapshot is stored for later retrieval.
"""
from __future__ import annotations

import json
import logging
from typing import Optional, Union

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import JSONResponse

from easytax.agents.advisor_agent.llm_service import AdvisoryClient
from easytax.agents.evaluator_agent.gst_calculator import (
    GST_MAX_YEAR,
    GST_MIN_YEAR,
    compute_due_dates,
    split_gst,
    validate_gstin,
)
from easytax.agents.evaluator_agent.gst_report import build_gst_report
from easytax.agents.evaluator_agent.itr_report import build_itr_report
from easytax.agents.evaluator_agent.schemas import (
    GSTDueDates,
    GSTINValidation,
    GSTReport,
    GSTSplit,
    GSTSplitRequest,
    ITRReport,
    SalaryTaxRequest,
    SalaryTaxResult,
    TaxComputationResult,
    TaxComputeRequest,
    TDSRequest,
    TDSResult,
)
from easytax.agents.evaluator_agent.tax_engine import compute_tax
from easytax.agents.evaluator_agent.tds_calculator import compute_salary_tax, compute_tds
from easytax.agents.input_agent.schemas import (
    ErrorBody,
    ErrorDetail,
    ErrorResponse,
    GSTProfile,
    ITRProfile,
)
from easytax.agents.input_agent.validator import validate_gst_profile, validate_itr_profile
from easytax.cache import KeyValueStore
from easytax.deps import get_advisor, get_store
from easytax.store import DraftKind, get_gst_report, get_itr_report, save_gst_report, save_itr_report

router = APIRouter(prefix="/api", tags=["evaluator_agent"])
logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _make_validation_error_response(violations_json: str) -> JSONResponse:
    """Parse JSON-encoded violations and return standard 422 error envelope."""
    try:
        violations: list[dict] = json.loads(violations_json)
    except (json.JSONDecodeError, ValueError):
        violations = [{"field": None, "issue": violations_json}]
    details = [ErrorDetail(field=v.get("field"), issue=v["issue"]) for v in violations]
    body = ErrorResponse(
        error=ErrorBody(
            code="VALIDATION_ERROR",
            message="Profile validation failed",
            details=details,
        )
    )
    return JSONResponse(status_code=422, content=body.model_dump())


# ---------------------------------------------------------------------------
# Calculators
# ---------------------------------------------------------------------------

@router.post("/tax/compute", response_model=TaxComputationResult)
async def tax_compute(body: TaxComputeRequest) -> TaxComputationResult:
    """Slab tax, cess, 87A rebate and total for one taxable income under one regime."""
    return compute_tax(body.taxable_income, body.regime)


@router.post("/gst/split", response_model=GSTSplit)
async def gst_split(body: GSTSplitRequest) -> GSTSplit:
    """GST on a taxable value, split intra-state into CGST + SGST."""
    return split_gst(body.taxable_value, body.rate)


@router.get("/gst/validate/{gstin}", response_model=GSTINValidation)
async def gst_validate(gstin: str) -> GSTINValidation:
    return GSTINValidation(gstin=gstin, valid=validate_gstin(gstin))


@router.get("/gst/due-dates", response_model=GSTDueDates)
async def gst_due_dates(
    return_type: str = Query(..., description="GSTR1, GSTR3B, GSTR9, ..."),
    month: str = Query(..., description="Filing month: name or 1-12"),
    year: int = Query(..., ge=GST_MIN_YEAR, le=GST_MAX_YEAR),
) -> GSTDueDates:
    return compute_due_dates(return_type, month, year)


@router.post("/tds/compute", response_model=TDSResult)
async def tds_compute(body: TDSRequest) -> TDSResult:
    """
    Section-wise TDS on the year's income.

    Returns:
      200: TDSResult with one breakdown line per non-zero head
      422: every income head is zero
    """
    return compute_tds(body)


@router.post("/tax/salary", response_model=SalaryTaxResult)
async def salary_tax(body: SalaryTaxRequest) -> SalaryTaxResult:
    """Annual tax, slab breakdown and take-home for a salary under one regime."""
    return compute_salary_tax(body)


# ---------------------------------------------------------------------------
# Reports
# ---------------------------------------------------------------------------

@router.post("/itr/report", response_model=ITRReport)
async def itr_report(
    profile: ITRProfile,
    session_id: Optional[str] = Query(default=None),
    advisor: AdvisoryClient = Depends(get_advisor),
    kv: KeyValueStore = Depends(get_store),
) -> Union[ITRReport, JSONResponse]:
    """
    Build the full ITR report: both regimes, optimal regime, refund/payable,
    suggested ITR form, due dates and recommendations.

    Returns:
      200: ITRReport (fallback=true when recommendations are static)
      422: name or PAN missing
    """
    try:
        validate_itr_profile(profile)
    except ValueError as exc:
        return _make_validation_error_response(str(exc))

    report = await build_itr_report(profile, advisor)
    if session_id:
        await save_itr_report(kv, session_id, report)
    return report


@router.post("/gst/report", response_model=GSTReport)
async def gst_report(
    profile: GSTProfile,
    session_id: Optional[str] = Query(default=None),
    advisor: AdvisoryClient = Depends(get_advisor),
    kv: KeyValueStore = Depends(get_store),
) -> Union[GSTReport, JSONResponse]:
    """
    Build the full GST report: turnover, output GST, ITC, net payable,
    compliance status, due dates and recommendations.

    Returns:
      200: GSTReport (fallback=true when recommendations are static)
      422: malformed GSTIN, missing legal name or unparsable filing period
    """
    try:
        validate_gst_profile(profile)
    except ValueError as exc:
        return _make_validation_error_response(str(exc))

    report = await build_gst_report(profile, advisor)
    if session_id:
        await save_gst_report(kv, session_id, report)
    return report


@router.get("/reports/{kind}/{session_id}", response_model=Union[ITRReport, GSTReport])
async def stored_report(
    kind: DraftKind,
    session_id: str,
    kv: KeyValueStore = Depends(get_store),
) -> Union[ITRReport, GSTReport]:
    """Last report snapshot stored for the session. 404 if none."""
    report = await (get_itr_report(kv, session_id) if kind == "itr" else get_gst_report(kv, session_id))
    if report is None:
        raise HTTPException(status_code=404, detail=f"No {kind} report for session {session_id}")
    return report
