"""
Test configuration for EasyTax tests.

Fixtures:
  fake_completion — factory for scripted CompletionService doubles
  static_advisor  — AdvisoryClient with no completion service (static tier only)
  kv              — fresh in-memory key-value store
  client          — httpx AsyncClient over the ASGI app, store and advisor overridden

No network: the Mistral client is never constructed in tests.
"""
from __future__ import annotations

from typing import Optional

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from easytax.agents.advisor_agent.llm_service import AdvisoryClient
from easytax.cache import InMemoryKeyValueStore


class FakeCompletion:
    """Scripted CompletionService: returns `reply`, or raises `error` when set."""

    def __init__(self, reply: Optional[str] = None, error: Optional[Exception] = None) -> None:
        self.reply = reply
        self.error = error
        self.prompts: list[str] = []

    async def complete(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.reply or ""


@pytest.fixture
def fake_completion():
    return FakeCompletion


@pytest.fixture
def static_advisor() -> AdvisoryClient:
    return AdvisoryClient(None)


@pytest.fixture
def kv() -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore()


@pytest.fixture
def advisor(static_advisor: AdvisoryClient) -> AdvisoryClient:
    """Advisor injected into the app; override per test to script the model."""
    return static_advisor


@pytest_asyncio.fixture
async def client(kv: InMemoryKeyValueStore, advisor: AdvisoryClient):
    """Async httpx client using ASGI transport — no live server, no Redis."""
    from easytax.deps import get_advisor, get_store
    from easytax.main import app

    app.dependency_overrides[get_store] = lambda: kv
    app.dependency_overrides[get_advisor] = lambda: advisor
    try:
        async with AsyncClient(
            transport=ASGITransport(app=app),
            base_url="http://test",
        ) as ac:
            yield ac
    finally:
        app.dependency_overrides.clear()
