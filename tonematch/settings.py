# tonematch/settings.py
import logging
import os

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # core
    APP_NAME: str = Field(default="tonematch")
    ENV: str = Field(default=os.getenv("APP_ENV", "dev"))
    DEBUG: bool = Field(default=True)
    LOG_LEVEL: str = Field(default="INFO")

    # storage
    DB_PATH: str = Field(default="data/tonematch.db")

    # embeddings: openai | ollama | local
    EMBED_BACKEND: str = Field(default="openai")
    EMBED_MODEL: str = Field(default="text-embedding-3-small")
    INDEX_METRIC: str = Field(default="cosine")

    # generation: openai | ollama | echo
    LLM_BACKEND: str = Field(default="echo")
    LLM_MODEL: str = Field(default="gpt-4o-mini")
    GENERATE_CONFIG: str | None = None
    GENERATION_TIMEOUT: float = Field(default=30.0)

    # retrieval
    TOP_K: int = Field(default=15)
    OVER_FETCH_FACTOR: int = Field(default=10)
    MMR_LAMBDA: float = Field(default=0.9, ge=0.0, le=1.0)
    RECENT_TURNS: int = Field(default=20)

    # secrets / hosts
    OPENAI_API_KEY: str | None = None
    OLLAMA_HOST: str = Field(default="http://localhost:11434")

    model_config = SettingsConfigDict(
        env_file=".env.dev",
        extra="ignore",
    )

    @property
    def app_name(self) -> str:
        return self.APP_NAME


settings = Settings()


def configure_logging(level: str | None = None) -> None:
    """Install a root handler once; later calls only adjust the level."""
    lvl = (level or settings.LOG_LEVEL).upper()
    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(
            level=lvl,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )
    root.setLevel(lvl)
