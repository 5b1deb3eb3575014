# Offline model client for local dev (LLM_BACKEND=echo).
# Echoes the partner's line back; when the system prompt asks for the
# two-line YES/NO format it answers in that format so the dual path can be
# exercised end to end without an API key.

from typing import Any, Dict, List, Tuple

from ..prompts import NEGATIVE_TAG, POSITIVE_TAG
from ..types import Message, ModelParams

_DUAL_MARKER = f"{POSITIVE_TAG} [positive reply]"


class EchoDevClient:
    def __init__(self):
        self.model = "echo-dev"

    def generate(self, messages: List[Message], params: ModelParams) -> Tuple[str, Dict[str, Any]]:
        system = next((m.content for m in messages if m.role == "system"), "")
        incoming = next((m.content for m in reversed(messages) if m.role == "user"), "(no user input)")
        if _DUAL_MARKER in system:
            text = f"{POSITIVE_TAG} [echo] sure! ({incoming})\n{NEGATIVE_TAG} [echo] sorry, can't. ({incoming})"
        else:
            text = f"[echo] {incoming}"
        return text, {"engine": "echo", "model": self.model, "max_tokens": params.max_tokens}
