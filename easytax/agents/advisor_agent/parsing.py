"""
parsing.py — turn model replies into structured advisory payloads.

Every public function here is a pipeline stage: it takes the raw reply text
and returns the structured value, or None to let the next stage try.
run_stages() in llm_service.py treats a stage that raises (RecursionError on
deeply nested JSON, for one) as declining.

  extract_json()          — first JSON array/object embedded in prose
  narrative_from_json()   — strict: {"recommendations": "..."} → str
  narrative_from_prose()  — heuristic: the reply itself, tidied
  tips_from_json()        — strict: [{title, description, savings, section}, ...]
  tips_from_text()        — heuristic: list markers → tips, with ₹ and Section extraction
"""
from __future__ import annotations

import json
import logging
import re
from typing import Any, Literal, Optional

from pydantic import ValidationError

from easytax.agents.advisor_agent.schemas import TaxTip

logger = logging.getLogger(__name__)

MAX_TIPS = 8
_TITLE_MAX = 60
_DESCRIPTION_MAX = 200
_MIN_DESCRIPTION_LINE = 20
_NARRATIVE_MIN_LEN = 40

_JSON_ARRAY = re.compile(r"\[[\s\S]*\]")
_JSON_OBJECT = re.compile(r"\{[\s\S]*\}")
_CODE_FENCE = re.compile(r"^```(?:json|markdown)?\s*|\s*```$", re.IGNORECASE)
_REFUSAL = re.compile(
    r"^(?:I'?m sorry|I am sorry|Sorry,|I can(?:no|')t|I(?:'m| am) unable|As an AI)",
    re.IGNORECASE,
)

# A new tip starts at a numbered item, bold marker, heading or dash bullet
_LIST_MARKER = re.compile(r"^(?:\d+[.)]|\*\*|#+|[-•*])\s*")
_SAVINGS = re.compile(r"₹\s?[\d,]+(?:\.\d+)?(?:\s?-\s?₹\s?[\d,]+(?:\.\d+)?)?")
_SECTION = re.compile(r"Section\s+\d+[A-Z]*(?:\(\w+\))?", re.IGNORECASE)
_DEFAULT_DESCRIPTION = "Tax saving strategy for Indian taxpayers."


# ---------------------------------------------------------------------------
# JSON extraction
# ---------------------------------------------------------------------------

def extract_json(text: str, kind: Literal["array", "object"]) -> Optional[Any]:
    """
    Find the outermost JSON array/object in text (greedy first-to-last bracket)
    and decode it. Returns None when nothing decodes.
    """
    pattern = _JSON_ARRAY if kind == "array" else _JSON_OBJECT
    match = pattern.search(text or "")
    if match is None:
        return None
    try:
        return json.loads(match.group(0))
    except json.JSONDecodeError as exc:
        logger.info("Embedded JSON %s did not decode: %s", kind, exc.msg)
        return None


# ---------------------------------------------------------------------------
# Narrative stages (ITR / GST recommendations)
# ---------------------------------------------------------------------------

def narrative_from_json(text: str) -> Optional[str]:
    """Strict stage: {"recommendations": "<non-empty string>"}."""
    data = extract_json(text, "object")
    if not isinstance(data, dict):
        return None
    value = data.get("recommendations")
    if isinstance(value, list):
        value = "\n".join(str(v) for v in value if v)
    if not isinstance(value, str) or not value.strip():
        return None
    return value.strip()


def narrative_from_prose(text: str) -> Optional[str]:
    """
    Heuristic stage: accept the reply as prose when it is long enough to be
    advice, is not a (broken) JSON blob and is not a refusal.

    A reply that embeds a decodable JSON object was already turned down by
    narrative_from_json(), so it is declined here too.
    """
    cleaned = _CODE_FENCE.sub("", (text or "").strip()).strip()
    if len(cleaned) < _NARRATIVE_MIN_LEN or cleaned[0] in "{[":
        return None
    if _REFUSAL.match(cleaned):
        logger.info("Narrative reply looks like a refusal")
        return None
    if extract_json(cleaned, "object") is not None:
        logger.info("Narrative reply wraps a JSON object without usable recommendations")
        return None
    return cleaned


# ---------------------------------------------------------------------------
# Tip stages
# ---------------------------------------------------------------------------

def _coerce_tip(raw: Any) -> Optional[TaxTip]:
    if not isinstance(raw, dict):
        return None
    title, description = raw.get("title"), raw.get("description")
    if not isinstance(title, str) or not isinstance(description, str):
        return None
    try:
        return TaxTip(
            title=title.strip(),
            description=description.strip(),
            savings=str(raw["savings"]).strip() if raw.get("savings") else None,
            section=str(raw["section"]).strip() if raw.get("section") else None,
        )
    except ValidationError:
        return None


def tips_from_json(text: str) -> Optional[list[TaxTip]]:
    """Strict stage: a JSON array of tip objects; invalid entries are dropped."""
    data = extract_json(text, "array")
    if not isinstance(data, list):
        return None
    tips = [tip for tip in (_coerce_tip(item) for item in data) if tip is not None]
    if not tips:
        return None
    logger.info("Parsed %d tips from JSON (%d raw entries)", len(tips), len(data))
    return tips[:MAX_TIPS]


def tips_from_text(text: str) -> Optional[list[TaxTip]]:
    """
    Heuristic stage: every list-marker line opens a tip (its title); following
    lines longer than 20 characters extend the description. The first ₹ amount
    and the first 'Section NN' reference found in the description are lifted
    into savings/section.
    """
    drafts: list[dict[str, Any]] = []
    current: Optional[dict[str, Any]] = None

    for line in (text or "").splitlines():
        line = line.strip()
        if not line:
            continue
        if _LIST_MARKER.match(line):
            title = _LIST_MARKER.sub("", line).replace("**", "").strip(" :")
            current = {"title": title[:_TITLE_MAX], "description": "", "savings": None, "section": None}
            if title:
                drafts.append(current)
        elif current is not None and len(line) > _MIN_DESCRIPTION_LINE:
            current["description"] = f"{current['description']} {line}".strip()
            if current["savings"] is None:
                found = _SAVINGS.search(line)
                current["savings"] = found.group(0) if found else None
            if current["section"] is None:
                found = _SECTION.search(line)
                current["section"] = found.group(0) if found else None

    tips = [
        TaxTip(
            title=d["title"],
            description=d["description"][:_DESCRIPTION_MAX] or _DEFAULT_DESCRIPTION,
            savings=d["savings"],
            section=d["section"],
        )
        for d in drafts[:MAX_TIPS]
    ]
    if not tips:
        return None
    logger.info("Recovered %d tips from free text", len(tips))
    return tips
