# Client for the OpenAI Chat Completions API.
# Same interface as OllamaClient; errors and timeouts become GenerationError.
# The SDK client is created on first use, so a missing key surfaces as a
# GenerationError on the first call rather than at wiring time.

import logging
import os
from typing import List, Tuple, Dict, Any

import openai
from openai import OpenAI

from ...errors import GenerationError
from ..types import Message, ModelParams

logger = logging.getLogger(__name__)


class OpenAIClient:
    def __init__(self, model: str = "gpt-4o-mini", api_key: str = None):
        self.model = model
        self.api_key = api_key
        self._client = None

    def _get_client(self) -> OpenAI:
        if self._client is None:
            self._client = OpenAI(api_key=self.api_key or os.getenv("OPENAI_API_KEY"))
        return self._client

    def generate(self, messages: List[Message], params: ModelParams) -> Tuple[str, Dict[str, Any]]:
        kwargs = {
            "model": self.model,
            "messages": [{"role": m.role, "content": m.content} for m in messages],
            "temperature": params.temperature if params.temperature is not None else 0.7,
            "max_tokens": params.max_tokens or 150,
        }
        # None would disable the SDK's own default timeout
        if params.timeout is not None:
            kwargs["timeout"] = params.timeout
        try:
            resp = self._get_client().chat.completions.create(**kwargs)
        except openai.APITimeoutError as e:
            logger.error("OpenAI completion timed out after %ss", params.timeout)
            raise GenerationError(f"OpenAI completion timed out: {e}") from e
        except openai.OpenAIError as e:
            logger.error("OpenAI completion failed: %s", e)
            raise GenerationError(f"OpenAI completion failed: {e}") from e
        text = (resp.choices[0].message.content or "").strip()
        meta = {"engine": "openai", "model": self.model}
        if resp.usage is not None:
            meta["tokens"] = {
                "prompt": resp.usage.prompt_tokens,
                "completion": resp.usage.completion_tokens,
                "total": resp.usage.total_tokens,
            }
        return text, meta
