# Relationship categories and the register each one implies when a
# relationship is created without explicit politeness / vibe.

from __future__ import annotations

from typing import Dict, Tuple

DEFAULT_CATEGORY = "ACQUAINTANCE_CASUAL"
DEFAULT_POLITENESS = "POLITE"
DEFAULT_VIBE = "CALM"

POLITENESS_LEVELS = ("FORMAL", "POLITE", "CASUAL")
VIBE_TYPES = ("CALM", "DIRECT", "PLAYFUL", "CARING")

# category -> (politeness, vibe, emoji_level)
_CATEGORY_DEFAULTS: Dict[str, Tuple[str, str, int]] = {
    "FAMILY_ELDER_CLOSE": ("POLITE", "CARING", 0),
    "FAMILY_SIBLING_ELDER": ("CASUAL", "PLAYFUL", 1),
    "FAMILY_SIBLING_YOUNGER": ("CASUAL", "CARING", 1),
    "PARTNER_INTIMATE": ("CASUAL", "CARING", 2),
    "FRIEND_CLOSE": ("CASUAL", "PLAYFUL", 2),
    "ACQUAINTANCE_CASUAL": ("POLITE", "CALM", 0),
    "WORK_SENIOR_FORMAL": ("FORMAL", "CALM", 0),
    "WORK_SENIOR_FRIENDLY": ("POLITE", "CALM", 0),
    "WORK_PEER": ("POLITE", "DIRECT", 0),
    "WORK_JUNIOR": ("POLITE", "CALM", 0),
}

CATEGORIES = tuple(_CATEGORY_DEFAULTS)


def category_defaults(category: str) -> Tuple[str, str, int]:
    """Default (politeness, vibe, emoji_level) for a category.

    Unknown categories get the acquaintance register.
    """
    return _CATEGORY_DEFAULTS.get(category, _CATEGORY_DEFAULTS[DEFAULT_CATEGORY])
