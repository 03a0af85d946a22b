"""
AdvisorAgent HTTP routes — GET  /api/tips/{category}
                           POST /api/plan
                           GET  /api/plan/{session_id}

Both advisory endpoints always answer 200: when the language model is
unavailable or its reply is unusable the static tables are returned with
fallback=true.
"""
from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from easytax.agents.advisor_agent.llm_service import AdvisoryClient
from easytax.agents.advisor_agent.planner import generate_tax_plan
from easytax.agents.advisor_agent.schemas import TaxPlan, TaxPlanProfile, TipsResponse
from easytax.agents.advisor_agent.tips import TipCategory, fetch_tips
from easytax.cache import KeyValueStore
from easytax.deps import get_advisor, get_store
from easytax.store import get_tax_plan, save_tax_plan

router = APIRouter(prefix="/api", tags=["advisor_agent"])
logger = logging.getLogger(__name__)


@router.get("/tips/{category}", response_model=TipsResponse)
async def tax_tips(
    category: str,
    advisor: AdvisoryClient = Depends(get_advisor),
) -> TipsResponse:
    """
    Up to 8 tax-saving tips for a category.
    Unknown categories are served as 'general'.
    """
    resolved = TipCategory.parse(category)
    result = await fetch_tips(advisor, resolved)
    return TipsResponse(category=resolved.value, tips=result.payload, fallback=result.fallback)


@router.post("/plan", response_model=TaxPlan)
async def tax_plan(
    profile: TaxPlanProfile,
    session_id: Optional[str] = Query(default=None),
    advisor: AdvisoryClient = Depends(get_advisor),
    kv: KeyValueStore = Depends(get_store),
) -> TaxPlan:
    """Personalised tax-saving plan; stored for the session when session_id is given."""
    plan = await generate_tax_plan(advisor, profile)
    if session_id:
        await save_tax_plan(kv, session_id, plan)
    return plan


@router.get("/plan/{session_id}", response_model=TaxPlan)
async def stored_plan(
    session_id: str,
    kv: KeyValueStore = Depends(get_store),
) -> TaxPlan:
    plan = await get_tax_plan(kv, session_id)
    if plan is None:
        raise HTTPException(status_code=404, detail=f"No tax plan for session {session_id}")
    return plan
