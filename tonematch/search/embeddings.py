# Embedding gateway: text -> fixed-length float32 vectors.
# Every backend exposes embed(text) and embed_batch(texts); batch output rows
# follow input order and an upstream failure fails the whole batch.

from __future__ import annotations

import logging
import os
from typing import List, Optional

import numpy as np
import requests

from ..errors import EmbeddingError

logger = logging.getLogger(__name__)

# Silence tokenizer parallelism warnings (local backend)
os.environ.setdefault("TOKENIZERS_PARALLELISM", "false")


def l2_normalize(x: np.ndarray, eps: float = 1e-12) -> np.ndarray:
    if x.ndim != 2:
        raise ValueError("Expected a 2D array for normalization")
    norms = np.linalg.norm(x, ord=2, axis=1, keepdims=True)
    norms = np.maximum(norms, eps)
    return (x / norms).astype(np.float32, copy=False)


class BaseEmbedder:
    """Shared embed() on top of a backend-specific _embed_many()."""

    normalize: bool = True

    def _embed_many(self, texts: List[str]) -> np.ndarray:
        raise NotImplementedError

    def embed(self, text: str) -> np.ndarray:
        return self.embed_batch([text])[0]

    def embed_batch(self, texts: List[str]) -> np.ndarray:
        if not texts:
            return np.empty((0, 0), dtype=np.float32)
        out = np.asarray(self._embed_many(list(texts)), dtype=np.float32)
        if out.ndim != 2 or out.shape[0] != len(texts):
            raise EmbeddingError(
                f"Embedding backend returned shape {out.shape} for {len(texts)} inputs"
            )
        return l2_normalize(out) if self.normalize else out


class OpenAIEmbedder(BaseEmbedder):
    """OpenAI embeddings; the SDK client is created on first use."""

    def __init__(self, model: str = "text-embedding-3-small", api_key: Optional[str] = None, timeout: float = 30.0):
        self.model = model
        self.timeout = timeout
        self.api_key = api_key
        self._client = None

    def _get_client(self):
        if self._client is None:
            from openai import OpenAI

            self._client = OpenAI(api_key=self.api_key or os.getenv("OPENAI_API_KEY"))
        return self._client

    def _embed_many(self, texts: List[str]) -> np.ndarray:
        import openai

        try:
            resp = self._get_client().embeddings.create(
                model=self.model,
                input=texts,
                encoding_format="float",
                timeout=self.timeout,
            )
        except openai.OpenAIError as e:
            logger.error("OpenAI embedding request failed: %s", e)
            raise EmbeddingError(f"OpenAI embedding failed: {e}") from e
        rows = sorted(resp.data, key=lambda d: d.index)
        return np.array([r.embedding for r in rows], dtype=np.float32)


class OllamaEmbedder(BaseEmbedder):
    """Embeds through Ollama /api/embeddings, one request per text."""

    def __init__(self, model: str = "bge-m3:latest", host: Optional[str] = None, timeout: float = 30.0):
        self.model = model
        self.host = host or os.getenv("OLLAMA_HOST", "http://localhost:11434")
        self.timeout = timeout

    def _embed_many(self, texts: List[str]) -> np.ndarray:
        url = f"{self.host}/api/embeddings"
        vecs = []
        for text in texts:
            try:
                resp = requests.post(url, json={"model": self.model, "prompt": text}, timeout=self.timeout)
                resp.raise_for_status()
                vecs.append(resp.json()["embedding"])
            except (requests.RequestException, KeyError, ValueError) as e:
                logger.error("Ollama embedding request failed: %s", e)
                raise EmbeddingError(f"Ollama embedding failed: {e}") from e
        return np.array(vecs, dtype=np.float32)


class LocalEmbedder(BaseEmbedder):
    """sentence-transformers model loaded lazily on first use."""

    def __init__(self, model: str = "BAAI/bge-small-en-v1.5", device: Optional[str] = None, batch_size: int = 64):
        self.model_name = model
        self.device = device or os.environ.get("EMBED_DEVICE", "cpu")
        self.batch_size = batch_size
        self._model = None

    def _get_model(self):
        if self._model is None:
            from sentence_transformers import SentenceTransformer  # heavy import delayed

            self._model = SentenceTransformer(self.model_name, device=self.device)
        return self._model

    def _embed_many(self, texts: List[str]) -> np.ndarray:
        model = self._get_model()
        try:
            return model.encode(
                texts,
                batch_size=min(self.batch_size, len(texts)),
                convert_to_numpy=True,
                normalize_embeddings=False,
                show_progress_bar=False,
            )
        except (RuntimeError, ValueError) as e:
            raise EmbeddingError(f"Local embedding failed: {e}") from e


def build_embedder(settings) -> BaseEmbedder:
    backend = settings.EMBED_BACKEND.lower()
    if backend == "openai":
        if not (settings.OPENAI_API_KEY or os.getenv("OPENAI_API_KEY")):
            logger.warning("EMBED_BACKEND=openai but OPENAI_API_KEY is not set; embedding calls will fail")
        return OpenAIEmbedder(model=settings.EMBED_MODEL, api_key=settings.OPENAI_API_KEY)
    if backend == "ollama":
        return OllamaEmbedder(model=settings.EMBED_MODEL, host=settings.OLLAMA_HOST)
    if backend == "local":
        return LocalEmbedder(model=settings.EMBED_MODEL)
    raise ValueError(f"Unknown EMBED_BACKEND: {settings.EMBED_BACKEND}")
