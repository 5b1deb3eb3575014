# Recover a positive / negative reply pair from free-form model output.
# Never raises: tagged lines first, then the first two non-empty lines, then
# fixed default phrases.

from __future__ import annotations

import logging
from typing import Optional

from .types import DualReply

logger = logging.getLogger(__name__)

POSITIVE_TAGS = ("YES:", "긍정:")
NEGATIVE_TAGS = ("NO:", "부정:")

DEFAULT_POSITIVE = "Okay, got it!"
DEFAULT_NEGATIVE = "Sorry, that's difficult."


def _find_tagged(lines, tags) -> Optional[str]:
    for line in lines:
        stripped = line.strip()
        for tag in tags:
            if stripped.startswith(tag):
                return stripped[len(tag):].strip()
    return None


def parse_dual_reply(raw: Optional[str]) -> DualReply:
    text = raw if isinstance(raw, str) else ""
    lines = text.splitlines()

    positive = _find_tagged(lines, POSITIVE_TAGS)
    negative = _find_tagged(lines, NEGATIVE_TAGS)

    if positive is None or negative is None:
        logger.warning("Dual reply tags missing, falling back to line split. raw=%r", text)
        non_empty = [l.strip() for l in lines if l.strip()]
        positive = non_empty[0] if len(non_empty) > 0 else ""
        negative = non_empty[1] if len(non_empty) > 1 else ""

    return DualReply(
        positive_reply=positive or DEFAULT_POSITIVE,
        negative_reply=negative or DEFAULT_NEGATIVE,
    )
