"""
llm_service.py — language-model advisory layer for EasyTax.

Components:
  SYSTEM_PROMPT            — role framing shared by every advisory request
  CompletionService        — one-shot prompt → text protocol (the only external seam)
  MistralCompletionService — production CompletionService over mistralai
  AdvisorySource           — which tier produced a result: model / heuristic / static
  AdvisoryResult           — payload + source
  AdvisoryClient           — single-attempt completion + tiered parse with static fallback

The client is constructed once in main.py lifespan and stored on
app.state.advisor; routes and aggregators receive it as a parameter.
Tests construct AdvisoryClient with a fake CompletionService.

Failure semantics: network errors, auth errors, non-2xx responses and empty
output are all treated the same way — log, then fall through to the next
tier. No retries. Callers never see an exception from this module.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Generic, Optional, Protocol, Sequence, TypeVar

from mistralai import Mistral

logger = logging.getLogger(__name__)

T = TypeVar("T")


SYSTEM_PROMPT = """You are EasyTax AI, an Indian tax consultant for individual taxpayers and small businesses.

Rules you MUST follow:
1. Use current Indian income-tax and GST law, rates and limits for the financial year stated in the request.
2. Cite the relevant section (e.g. Section 80C, Section 16) whenever you state a limit or deduction.
3. Be practical and specific — state rupee amounts wherever they help.
4. When the request specifies a JSON output format, reply with that JSON only, no commentary.
5. Never invent figures for the taxpayer: use only the numbers given in the request."""


# ---------------------------------------------------------------------------
# Completion service seam
# ---------------------------------------------------------------------------

class CompletionService(Protocol):
    async def complete(self, prompt: str) -> str:
        """Return the model's text for prompt. May raise on any failure."""
        ...


class MistralCompletionService:
    """CompletionService backed by Mistral chat completion."""

    def __init__(
        self,
        client: Mistral,
        model: str,
        temperature: float = 0.3,
        max_tokens: int = 1024,
    ) -> None:
        self._client = client
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens

    async def complete(self, prompt: str) -> str:
        response = await self._client.chat.complete_async(
            model=self.model,
            messages=[
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            temperature=self.temperature,
            max_tokens=self.max_tokens,
        )
        content = response.choices[0].message.content
        if isinstance(content, str):
            return content
        # Chunked content (list of text chunks): keep only the text parts
        return "".join(getattr(chunk, "text", "") for chunk in content or [])


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------

class AdvisorySource(str, Enum):
    model = "model"          # strict JSON parse of the model's reply
    heuristic = "heuristic"  # model replied, but only free text was usable
    static = "static"        # hand-authored fallback table / generator


@dataclass(frozen=True)
class AdvisoryResult(Generic[T]):
    payload: T
    source: AdvisorySource

    @property
    def fallback(self) -> bool:
        return self.source is AdvisorySource.static


Stage = Callable[[str], Optional[T]]


# ---------------------------------------------------------------------------
# Client
# ---------------------------------------------------------------------------

class AdvisoryClient:
    """
    Wraps one CompletionService (or none, when no API key is configured).

    generate() runs the three-tier pipeline:
      1. strict stage   — parse the reply as the documented JSON schema
      2. heuristic stage — re-segment free text into the same structure
      3. static fallback — always succeeds
    Each stage returns None to fall through; the first non-None wins.
    """

    def __init__(self, completion: Optional[CompletionService] = None) -> None:
        self._completion = completion

    @property
    def available(self) -> bool:
        return self._completion is not None

    async def complete(self, prompt: str, label: str = "advisory") -> Optional[str]:
        """
        Single attempt at the completion service.
        Returns the stripped reply, or None on any failure or empty output.
        """
        if self._completion is None:
            logger.info("Advisory %s skipped: no completion service configured", label)
            return None

        logger.info("Calling completion service label=%s prompt_len=%d", label, len(prompt))
        try:
            text = await self._completion.complete(prompt)
        except Exception as exc:
            logger.warning("Completion failed label=%s: %s: %s", label, type(exc).__name__, exc)
            return None

        text = (text or "").strip()
        if not text:
            logger.warning("Completion returned empty text label=%s", label)
            return None
        logger.info("Completion received label=%s answer_len=%d", label, len(text))
        return text

    async def generate(
        self,
        prompt: str,
        *,
        strict: Stage[T],
        heuristic: Stage[T],
        static: Callable[[], T],
        label: str = "advisory",
    ) -> AdvisoryResult[T]:
        text = await self.complete(prompt, label=label)
        if text is not None:
            result = run_stages(text, [(AdvisorySource.model, strict), (AdvisorySource.heuristic, heuristic)])
            if result is not None:
                logger.info("Advisory %s resolved source=%s", label, result.source.value)
                return result
        logger.info("Advisory %s resolved source=static", label)
        return AdvisoryResult(payload=static(), source=AdvisorySource.static)


def run_stages(
    text: str,
    stages: Sequence[tuple[AdvisorySource, Stage[T]]],
) -> Optional[AdvisoryResult[T]]:
    """
    Apply stages in order; the first that returns a value wins.
    A stage that raises is logged and treated as declining.
    """
    for source, stage in stages:
        try:
            value = stage(text)
        except Exception as exc:
            logger.warning("Advisory stage failed source=%s: %s", source.value, type(exc).__name__)
            continue
        if value is not None:
            return AdvisoryResult(payload=value, source=source)
    return None
