"""
API tests with a scripted language model behind the advisor.

Overrides the `advisor` fixture from conftest so the app answers from the
model tiers instead of the static tables.
"""
from __future__ import annotations

import pytest
from httpx import AsyncClient

from easytax.agents.advisor_agent.llm_service import AdvisoryClient
from easytax.tests.demo_profiles import ITR_SALARIED

MODEL_REPLY = (
    '[{"title": "Claim HRA", "description": "Submit rent receipts to your employer.", '
    '"section": "Section 10(13A)"}]'
)


@pytest.fixture
def advisor(fake_completion) -> AdvisoryClient:
    return AdvisoryClient(fake_completion(reply=MODEL_REPLY))


@pytest.mark.asyncio
async def test_tips_from_model(client: AsyncClient) -> None:
    body = (await client.get("/api/tips/salaried")).json()
    assert body["fallback"] is False
    assert body["tips"] == [{
        "title": "Claim HRA",
        "description": "Submit rent receipts to your employer.",
        "savings": None,
        "section": "Section 10(13A)",
    }]


@pytest.mark.asyncio
async def test_report_falls_back_when_reply_does_not_fit(client: AsyncClient) -> None:
    """A tips-shaped array is neither a recommendations object nor prose."""
    body = (await client.post("/api/itr/report", json=ITR_SALARIED)).json()
    assert body["fallback"] is True
    assert body["optimalRegime"] == "new"
