"""Locate plan JSON and plan-generation flags in assistant text."""
from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from typing import Any, Optional

from stoa.plans.models import PlanKind

logger = logging.getLogger(__name__)

FENCED_JSON_RE = re.compile(r"```(?:json)?\s*(\{.*?\})\s*```", re.DOTALL | re.IGNORECASE)
BARE_JSON_RE = re.compile(r"\{.*\}", re.DOTALL)

GENERATION_FLAGS = {
    PlanKind.HABIT: re.compile(r"\[HABITGEN\s*=\s*True\]", re.IGNORECASE),
    PlanKind.TASK: re.compile(r"\[TASKGEN\s*=\s*True\]", re.IGNORECASE),
}


@dataclass(frozen=True)
class ExtractedPayload:
    payload: Any
    text_without_payload: str


def extract_payload(text: str) -> Optional[ExtractedPayload]:
    """Return the first JSON object embedded in ``text``, if any.

    A fenced ```json block wins over a bare ``{...}`` span. Text that only
    looks like JSON but does not parse is treated as plain conversation.
    """
    if not text:
        return None

    for pattern in (FENCED_JSON_RE, BARE_JSON_RE):
        match = pattern.search(text)
        if not match:
            continue
        raw = match.group(1) if match.groups() else match.group(0)
        try:
            payload = json.loads(raw)
        except json.JSONDecodeError:
            logger.debug("Ignoring unparsable JSON-looking span (pattern=%s)", pattern.pattern)
            continue
        remaining = (text[: match.start()] + text[match.end():]).strip()
        return ExtractedPayload(payload=payload, text_without_payload=remaining)
    return None


def has_generation_flag(text: str, kind: PlanKind) -> bool:
    return bool(GENERATION_FLAGS[kind].search(text or ""))


def strip_generation_flags(text: str) -> str:
    for pattern in GENERATION_FLAGS.values():
        text = pattern.sub("", text)
    return text.strip()
