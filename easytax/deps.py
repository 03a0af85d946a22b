"""
deps.py — FastAPI dependencies for resources created in main.py lifespan.

Both resources live on app.state; routes receive them through Depends()
so tests can override them with app.dependency_overrides.
"""
from fastapi import HTTPException, Request

from easytax.agents.advisor_agent.llm_service import AdvisoryClient
from easytax.cache import KeyValueStore


def get_advisor(request: Request) -> AdvisoryClient:
    advisor = getattr(request.app.state, "advisor", None)
    # No client at all (lifespan not run) still yields a usable static-only advisor
    return advisor if advisor is not None else AdvisoryClient(None)


def get_store(request: Request) -> KeyValueStore:
    kv = getattr(request.app.state, "kv", None)
    if kv is None:
        raise HTTPException(status_code=503, detail="Key-value store not initialised")
    return kv
