# Prompt fragments and the compiler that renders a GenerationRequest into the
# instruction text sent to the model client. Output is a pure function of the
# request, the mode and the (optional) default-constraints override.

from __future__ import annotations
from typing import List, Optional

from .types import GenerationRequest, Message

SINGLE = "single"
DUAL = "dual"
MODES = (SINGLE, DUAL)

POSITIVE_TAG = "YES:"
NEGATIVE_TAG = "NO:"

DEFAULT_CONSTRAINTS_HEADER = "[Reply constraints]"
CUSTOM_GUIDELINES_HEADER = "[CRITICAL: custom style rules - must strictly follow]"

DEFAULT_CONSTRAINTS = """\
- Reply naturally, following the style examples provided
- Keep the level of formality that fits the relationship ({category})
- When there is no relationship information (ACQUAINTANCE_CASUAL), use formal polite speech
- Keep the tone consistent with the recent conversation
"""

NO_EXAMPLES = "(no examples available)"
NO_RECENT_CONTEXT = "(no recent context)"
NO_ANALYSIS = "(analysis pending)"


def _constraints_block(request: GenerationRequest, default_constraints: Optional[str]) -> str:
    # Custom guidelines replace the defaults entirely; never emit both.
    if request.custom_guidelines and request.custom_guidelines.strip():
        return f"{CUSTOM_GUIDELINES_HEADER}\n{request.custom_guidelines.strip()}"
    template = default_constraints or DEFAULT_CONSTRAINTS
    body = template.replace("{category}", request.relationship.category)
    return f"{DEFAULT_CONSTRAINTS_HEADER}\n{body.strip()}"


def _transcript(request: GenerationRequest) -> str:
    lines = []
    for turn in request.recent_turns:
        speaker = request.user_name if turn.role == "user" else request.partner_name
        lines.append(f"{speaker}: {turn.text}")
    return "\n".join(lines) or NO_RECENT_CONTEXT


def _output_instruction(user_name: str, mode: str) -> str:
    if mode == DUAL:
        return f"""\
Important: write two replies to the message below.
1. Positive reply (YES): agrees with or accepts the message.
2. Negative reply (NO): declines it or says it is not possible.
Each reply must imitate {user_name}'s style and be at most 2-3 sentences, short and natural.

Response format (mandatory, exactly two lines):
{POSITIVE_TAG} [positive reply]
{NEGATIVE_TAG} [negative reply]"""
    return f"""\
Keep the reply natural and short: at most 2-3 sentences, only the essentials.
Taking everything above into account, reply exactly as {user_name} would."""


def compile_prompt(
    request: GenerationRequest,
    mode: str = SINGLE,
    default_constraints: Optional[str] = None,
) -> str:
    if mode not in MODES:
        raise ValueError(f"mode must be one of {MODES}, got {mode!r}")

    user = request.user_name
    rel = request.relationship
    examples = "\n".join(request.samples) or NO_EXAMPLES
    analysis = NO_ANALYSIS
    if request.style_profile is not None:
        analysis = "\n".join(request.style_profile.characteristics) or NO_ANALYSIS

    return f"""You are an assistant that imitates how '{user}' writes.

{_constraints_block(request, default_constraints)}

The rules above are absolute and must never be broken. If they forbid certain punctuation, never use it.

The conversation log below shows how {user} actually writes.
Mirror {user}'s sentence rhythm, interjections, intonation, sentence endings and sentence length closely.

[Style examples]
{examples}

[Conversation partner]
Name: {request.partner_name}
Relationship: {rel.category}
Politeness: {rel.politeness}
Vibe: {rel.vibe}

[Recent conversation]
{_transcript(request)}

[Style analysis]
{analysis}

{_output_instruction(user, mode)}"""


def compile_messages(
    request: GenerationRequest,
    mode: str = SINGLE,
    default_constraints: Optional[str] = None,
) -> List[Message]:
    """System message = compiled instructions; user message = the incoming line."""
    return [
        Message(role="system", content=compile_prompt(request, mode, default_constraints)),
        Message(role="user", content=f"{request.partner_name}: {request.incoming_message}"),
    ]
