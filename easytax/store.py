"""
store.py — Data access facade for EasyTax.

Provides a consistent, high-level API for persisting and retrieving wizard
drafts and report snapshots. Routes use these functions — no route touches
the key-value store directly.

Design principles:
  - All functions are async and accept a KeyValueStore parameter
  - Drafts are stored exactly as the client sent them (raw, un-normalised)
  - Reports are stored as their camelCase JSON and re-validated on read
  - Logs only session_id — never amounts, PAN, GSTIN or names
"""
import json
import logging
from typing import Any, Literal, Optional, TypeVar

from pydantic import BaseModel, ValidationError

from easytax.agents.advisor_agent.schemas import TaxPlan
from easytax.agents.evaluator_agent.schemas import GSTReport, ITRReport
from easytax.cache import (
    GST_DRAFT_PREFIX,
    GST_REPORT_PREFIX,
    ITR_DRAFT_PREFIX,
    ITR_REPORT_PREFIX,
    TAX_PLAN_PREFIX,
    KeyValueStore,
    make_key,
)

logger = logging.getLogger(__name__)

DraftKind = Literal["itr", "gst"]
M = TypeVar("M", bound=BaseModel)

_DRAFT_PREFIX = {"itr": ITR_DRAFT_PREFIX, "gst": GST_DRAFT_PREFIX}


# ---------------------------------------------------------------------------
# Draft operations
# ---------------------------------------------------------------------------

async def save_draft(
    kv: KeyValueStore,
    kind: DraftKind,
    session_id: str,
    draft: dict[str, Any],
) -> None:
    """Persist a raw wizard draft. Overwrites any previous draft for the session."""
    await kv.set(make_key(_DRAFT_PREFIX[kind], session_id), json.dumps(draft))
    logger.info("Saved %s draft session_id=%s", kind, session_id)


async def get_draft(
    kv: KeyValueStore,
    kind: DraftKind,
    session_id: str,
) -> Optional[dict[str, Any]]:
    """
    Retrieve a raw wizard draft.
    Returns None if never saved or if the stored blob is not a JSON object.
    """
    raw = await kv.get(make_key(_DRAFT_PREFIX[kind], session_id))
    if raw is None:
        return None
    try:
        data = json.loads(raw)
    except json.JSONDecodeError:
        logger.warning("Discarding corrupt %s draft session_id=%s", kind, session_id)
        return None
    return data if isinstance(data, dict) else None


# ---------------------------------------------------------------------------
# Report snapshot operations
# ---------------------------------------------------------------------------

async def _save_model(kv: KeyValueStore, prefix: str, session_id: str, model: BaseModel) -> None:
    await kv.set(make_key(prefix, session_id), model.model_dump_json(by_alias=True))
    logger.info("Saved %s snapshot session_id=%s", prefix, session_id)


async def _get_model(kv: KeyValueStore, prefix: str, session_id: str, model: type[M]) -> Optional[M]:
    raw = await kv.get(make_key(prefix, session_id))
    if raw is None:
        return None
    try:
        return model.model_validate_json(raw)
    except ValidationError:
        logger.warning("Discarding unreadable %s snapshot session_id=%s", prefix, session_id)
        return None


async def save_itr_report(kv: KeyValueStore, session_id: str, report: ITRReport) -> None:
    await _save_model(kv, ITR_REPORT_PREFIX, session_id, report)


async def get_itr_report(kv: KeyValueStore, session_id: str) -> Optional[ITRReport]:
    return await _get_model(kv, ITR_REPORT_PREFIX, session_id, ITRReport)


async def save_gst_report(kv: KeyValueStore, session_id: str, report: GSTReport) -> None:
    await _save_model(kv, GST_REPORT_PREFIX, session_id, report)


async def get_gst_report(kv: KeyValueStore, session_id: str) -> Optional[GSTReport]:
    return await _get_model(kv, GST_REPORT_PREFIX, session_id, GSTReport)


async def save_tax_plan(kv: KeyValueStore, session_id: str, plan: TaxPlan) -> None:
    await _save_model(kv, TAX_PLAN_PREFIX, session_id, plan)


async def get_tax_plan(kv: KeyValueStore, session_id: str) -> Optional[TaxPlan]:
    return await _get_model(kv, TAX_PLAN_PREFIX, session_id, TaxPlan)
