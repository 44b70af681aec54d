"""Runtime settings read from the environment.

``load_dotenv()`` runs before the first read, so a local ``.env`` file works
the same as exported variables. Malformed numeric values fall back to the
defaults instead of failing start-up.
"""

from __future__ import annotations

import os
from functools import lru_cache
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field


def _env_float(key: str, default: float) -> float:
    try:
        return float(os.getenv(key, str(default)))
    except ValueError:
        return default


def _env_int(key: str, default: int) -> int:
    try:
        return int(os.getenv(key, str(default)))
    except ValueError:
        return default


def _env_str(key: str) -> Optional[str]:
    value = os.getenv(key, "").strip()
    return value or None


class Settings(BaseModel):
    """Embedding collaborator and classifier configuration."""

    openai_api_key: Optional[str] = Field(None, repr=False)
    embedding_model: str = "text-embedding-3-large"
    embedding_dimensions: int = Field(1536, gt=0)
    embedding_batch_size: int = Field(20, gt=0, le=2048)
    embedding_timeout: float = Field(15.0, gt=0)

    praise_min_similarity: float = Field(0.45, ge=-1.0, le=1.0)
    praise_margin: float = Field(0.10, ge=0.0, le=2.0)

    lexicon_path: Optional[str] = None
    log_level: str = "INFO"
    debug: bool = False

    @property
    def embeddings_enabled(self) -> bool:
        return bool(self.openai_api_key)


def load_settings() -> Settings:
    load_dotenv()
    return Settings(
        openai_api_key=_env_str("OPENAI_API_KEY"),
        embedding_model=os.getenv("EMBEDDING_MODEL", "text-embedding-3-large").strip(),
        embedding_dimensions=_env_int("EMBEDDING_DIMENSIONS", 1536),
        embedding_batch_size=_env_int("EMBEDDING_BATCH_SIZE", 20),
        embedding_timeout=_env_float("EMBEDDING_TIMEOUT", 15.0),
        praise_min_similarity=_env_float("PRAISE_MIN_SIMILARITY", 0.45),
        praise_margin=_env_float("PRAISE_MARGIN", 0.10),
        lexicon_path=_env_str("PAINSCOPE_LEXICON_PATH"),
        log_level=os.getenv("LOG_LEVEL", "INFO").strip().upper() or "INFO",
        debug=os.getenv("DEBUG", "false").lower() == "true",
    )


@lru_cache
def get_settings() -> Settings:
    """Settings for the running process, read once."""
    return load_settings()
