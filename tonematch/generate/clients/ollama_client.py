# Client for Ollama local inference over /api/chat.
# Timeouts and HTTP failures surface as GenerationError; no retries here.

import logging
import os
from typing import Any, Dict, List, Tuple

import requests

from ...errors import GenerationError
from ..types import Message, ModelParams

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 180


class OllamaClient:
    def __init__(self, model: str = "mistral:7b-instruct", host: str = None):
        self.model = model
        self.host = (host or os.getenv("OLLAMA_HOST", "http://localhost:11434")).rstrip("/")

    def generate(self, messages: List[Message], params: ModelParams) -> Tuple[str, Dict[str, Any]]:
        payload = {
            "model": self.model,
            "messages": [{"role": m.role, "content": m.content} for m in messages],
            "stream": False,
            "options": {"temperature": params.temperature, "num_predict": params.max_tokens},
        }
        timeout = params.timeout or DEFAULT_TIMEOUT
        try:
            resp = requests.post(f"{self.host}/api/chat", json=payload, timeout=timeout)
            resp.raise_for_status()
            data = resp.json()
        except requests.Timeout as e:
            logger.error("Ollama chat timed out after %ss (model=%s)", timeout, self.model)
            raise GenerationError(f"Ollama generation timed out: {e}") from e
        except (requests.RequestException, ValueError) as e:
            logger.error("Ollama chat failed: %s", e)
            raise GenerationError(f"Ollama generation failed: {e}") from e

        text = (data.get("message") or {}).get("content", "")
        meta = {
            "engine": "ollama",
            "model": self.model,
            "eval_count": data.get("eval_count"),
            "prompt_eval_count": data.get("prompt_eval_count"),
        }
        return text.strip(), meta
