# ReplyGenerator: compiled prompt -> model client -> reply text / DualReply.
# Accepts any model client exposing generate(messages, params) (Ollama, OpenAI, Echo).

from __future__ import annotations

import logging
import os
from typing import Optional

import yaml

from .parser import parse_dual_reply
from .prompts import DUAL, SINGLE, compile_messages
from .types import DualReply, GenerationRequest, ModelParams

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = os.path.join(os.path.dirname(__file__), "config.yaml")


class ReplyGenerator:
    def __init__(self, model_client, config_path: Optional[str] = None):
        self.model_client = model_client
        self.config_path = config_path or DEFAULT_CONFIG_PATH
        self.cfg = self._load_config()

    def _load_config(self) -> dict:
        if not os.path.exists(self.config_path):
            return {}
        with open(self.config_path, "r", encoding="utf-8") as f:
            return yaml.safe_load(f) or {}

    def _params(self, mode: str, timeout: Optional[float]) -> ModelParams:
        mode_cfg = self.cfg.get(mode, {}) or {}
        return ModelParams(
            temperature=mode_cfg.get("temperature", 0.7),
            max_tokens=mode_cfg.get("max_tokens", 150 if mode == DUAL else 100),
            timeout=timeout if timeout is not None else self.cfg.get("timeout"),
        )

    def _complete(self, request: GenerationRequest, mode: str, timeout: Optional[float]) -> str:
        messages = compile_messages(request, mode, self.cfg.get("default_constraints"))
        params = self._params(mode, timeout)
        logger.debug("Compiled %s prompt:\n%s", mode, messages[0].content)
        logger.info(
            "Calling %s (mode=%s, temperature=%s, max_tokens=%s)",
            getattr(self.model_client, "model", type(self.model_client).__name__),
            mode,
            params.temperature,
            params.max_tokens,
        )
        text, meta = self.model_client.generate(messages, params)
        logger.debug("Raw completion (%s): %r", meta, text)
        return text

    def generate_single(self, request: GenerationRequest, timeout: Optional[float] = None) -> str:
        return self._complete(request, SINGLE, timeout).strip()

    def generate_dual(self, request: GenerationRequest, timeout: Optional[float] = None) -> DualReply:
        return parse_dual_reply(self._complete(request, DUAL, timeout))
