# Typed dataclasses shared across the generate package.

from __future__ import annotations
from dataclasses import dataclass, field
from typing import List, Optional

from ..categories import DEFAULT_CATEGORY, DEFAULT_POLITENESS, DEFAULT_VIBE


@dataclass
class Message:
    """Single chat turn sent to a model client: system, user, or assistant."""
    role: str
    content: str


@dataclass
class ModelParams:
    """LLM parameters per request."""
    temperature: Optional[float] = None
    max_tokens: Optional[int] = None
    timeout: Optional[float] = None


@dataclass
class DialogueTurn:
    """One stored message between the user ("user") and a partner ("partner")."""
    role: str
    text: str
    created_at: Optional[str] = None


@dataclass
class RelationshipDescriptor:
    """How the user addresses a given partner."""
    category: str = DEFAULT_CATEGORY
    politeness: str = DEFAULT_POLITENESS
    vibe: str = DEFAULT_VIBE


@dataclass
class StyleProfile:
    """Aggregate style statistics over a user's tone samples."""
    politeness_level: Optional[str] = None
    vibe_type: Optional[str] = None
    sample_count: int = 0

    @property
    def characteristics(self) -> List[str]:
        lines = []
        if self.politeness_level:
            lines.append(f"Politeness: {self.politeness_level}")
        if self.vibe_type:
            lines.append(f"Vibe: {self.vibe_type}")
        lines.append(f"Analyzed samples: {self.sample_count}")
        return lines


@dataclass
class GenerationRequest:
    """Everything the prompt compiler needs for one draft."""
    user_name: str
    partner_name: str
    incoming_message: str
    samples: List[str] = field(default_factory=list)
    recent_turns: List[DialogueTurn] = field(default_factory=list)
    relationship: RelationshipDescriptor = field(default_factory=RelationshipDescriptor)
    custom_guidelines: Optional[str] = None
    style_profile: Optional[StyleProfile] = None


@dataclass
class DualReply:
    """An agreeing and a declining reply to the same message."""
    positive_reply: str
    negative_reply: str

