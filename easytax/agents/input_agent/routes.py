"""
InputAgent HTTP routes — PUT /api/drafts/{kind}/{session_id}
                         GET /api/drafts/{kind}/{session_id}

Wizard drafts are stored raw (exactly as typed) so the client can restore a
half-filled form. Nothing is normalised or validated here — that happens when
a report is requested.
"""
from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException

from easytax.cache import KeyValueStore
from easytax.deps import get_store
from easytax.store import DraftKind, get_draft, save_draft

router = APIRouter(prefix="/api", tags=["input_agent"])
logger = logging.getLogger(__name__)


@router.put("/drafts/{kind}/{session_id}")
async def put_draft(
    kind: DraftKind,
    session_id: str,
    draft: dict[str, Any] = Body(...),
    kv: KeyValueStore = Depends(get_store),
) -> dict:
    """
    Save (overwrite) the raw ITR or GST wizard draft for a session.

    Returns:
      200: {"session_id", "kind", "saved": true}
      422: kind is not 'itr' or 'gst', or body is not a JSON object
    """
    await save_draft(kv, kind, session_id, draft)
    return {"session_id": session_id, "kind": kind, "saved": True}


@router.get("/drafts/{kind}/{session_id}")
async def read_draft(
    kind: DraftKind,
    session_id: str,
    kv: KeyValueStore = Depends(get_store),
) -> dict[str, Any]:
    """
    Return the raw draft saved for a session.

    Returns:
      200: the draft object as it was saved
      404: no draft saved for this session
    """
    draft = await get_draft(kv, kind, session_id)
    if draft is None:
        raise HTTPException(status_code=404, detail=f"No {kind} draft for session {session_id}")
    return draft
