# Model client selection by LLM_BACKEND.

from .echo_dev_client import EchoDevClient


def build_model_client(settings):
    backend = settings.LLM_BACKEND.lower()
    if backend == "openai":
        from .openai_client import OpenAIClient
        return OpenAIClient(model=settings.LLM_MODEL, api_key=settings.OPENAI_API_KEY)
    if backend == "ollama":
        from .ollama_client import OllamaClient
        return OllamaClient(model=settings.LLM_MODEL, host=settings.OLLAMA_HOST)
    if backend == "echo":
        return EchoDevClient()
    raise ValueError(f"Unknown LLM_BACKEND: {settings.LLM_BACKEND}")


__all__ = ["EchoDevClient", "build_model_client"]
