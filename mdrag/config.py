"""
Runtime configuration for the pipeline.

Values come from the environment (a local ``.env`` file is loaded first)
and fall back to the defaults below.
"""
import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional, Tuple

from dotenv import load_dotenv

from .errors import ConfigurationError

load_dotenv()


def _as_bool(value: Optional[str], default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _as_number(name: str, default: str, cast, minimum=None):
    raw = os.getenv(name, default)
    try:
        value = cast(raw)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"{name} must be a {cast.__name__}, got {raw!r}") from e
    if minimum is not None and value < minimum:
        raise ConfigurationError(f"{name} must be at least {minimum}, got {value}")
    return value


def _as_extensions(value: str) -> Tuple[str, ...]:
    extensions = []
    for item in value.split(","):
        item = item.strip().lower()
        if not item:
            continue
        extensions.append(item if item.startswith(".") else f".{item}")
    return tuple(extensions)


@dataclass(frozen=True)
class Settings:
    """Pipeline settings."""
    ollama_url: str
    embedding_model: str
    reranker_url: str
    reranker_enabled: bool
    database_url: str
    chunk_size: int
    chunk_overlap: int
    embedding_retries: int
    retry_base_delay: float
    connect_timeout: float
    request_timeout: float
    rerank_timeout: float
    max_workers: int
    default_top_k: int
    file_extensions: Tuple[str, ...]
    log_level: str
    server_host: str
    server_port: int


def load_settings() -> Settings:
    """Build settings from the current environment."""
    return Settings(
        ollama_url=os.getenv("OLLAMA_URL", "http://localhost:11434").rstrip("/"),
        embedding_model=os.getenv("EMBEDDING_MODEL", "nomic-embed-text"),
        reranker_url=os.getenv("RERANKER_URL", "http://localhost:8002").rstrip("/"),
        reranker_enabled=_as_bool(os.getenv("RERANKER_ENABLED"), default=False),
        database_url=os.getenv("DATABASE_URL", "sqlite:///./rag_database.db"),
        chunk_size=_as_number("CHUNK_SIZE", "512", int),
        chunk_overlap=_as_number("CHUNK_OVERLAP", "50", int),
        embedding_retries=_as_number("EMBEDDING_RETRIES", "3", int, minimum=1),
        retry_base_delay=_as_number("RETRY_BASE_DELAY", "1.0", float, minimum=0),
        connect_timeout=_as_number("CONNECT_TIMEOUT", "30", float, minimum=0),
        request_timeout=_as_number("REQUEST_TIMEOUT", "60", float, minimum=0),
        rerank_timeout=_as_number("RERANK_TIMEOUT", "60", float, minimum=0),
        max_workers=_as_number("MAX_WORKERS", "4", int, minimum=1),
        default_top_k=_as_number("DEFAULT_TOP_K", "5", int, minimum=1),
        file_extensions=_as_extensions(os.getenv("FILE_EXTENSIONS", ".md")),
        log_level=os.getenv("LOG_LEVEL", "INFO").strip().upper(),
        server_host=os.getenv("SERVER_HOST", "127.0.0.1"),
        server_port=_as_number("SERVER_PORT", "8080", int, minimum=1),
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return the process-wide settings, built on first use."""
    return load_settings()
