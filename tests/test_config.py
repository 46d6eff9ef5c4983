"""Tests for the config module."""
import pytest

from mdrag.config import load_settings
from mdrag.errors import ConfigurationError


class TestLoadSettings:

    def test_defaults(self, monkeypatch):
        for name in ("OLLAMA_URL", "CHUNK_SIZE", "CHUNK_OVERLAP", "EMBEDDING_RETRIES",
                     "RETRY_BASE_DELAY", "CONNECT_TIMEOUT", "REQUEST_TIMEOUT", "RERANKER_ENABLED",
                     "FILE_EXTENSIONS"):
            monkeypatch.delenv(name, raising=False)

        settings = load_settings()

        assert settings.ollama_url == "http://localhost:11434"
        assert (settings.chunk_size, settings.chunk_overlap) == (512, 50)
        assert settings.embedding_retries == 3
        assert settings.retry_base_delay == 1.0
        assert (settings.connect_timeout, settings.request_timeout) == (30.0, 60.0)
        assert settings.reranker_enabled is False
        assert settings.file_extensions == (".md",)

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("OLLAMA_URL", "http://gpu-box:11434/")
        monkeypatch.setenv("CHUNK_SIZE", "256")
        monkeypatch.setenv("RERANKER_ENABLED", "yes")
        monkeypatch.setenv("FILE_EXTENSIONS", "md, .TXT ,")

        settings = load_settings()

        assert settings.ollama_url == "http://gpu-box:11434"
        assert settings.chunk_size == 256
        assert settings.reranker_enabled is True
        assert settings.file_extensions == (".md", ".txt")

    def test_bad_number(self, monkeypatch):
        monkeypatch.setenv("EMBEDDING_RETRIES", "three")

        with pytest.raises(ConfigurationError):
            load_settings()

    @pytest.mark.parametrize("name, value", [
        ("MAX_WORKERS", "0"),
        ("EMBEDDING_RETRIES", "0"),
        ("DEFAULT_TOP_K", "-1"),
        ("REQUEST_TIMEOUT", "-5"),
    ])
    def test_out_of_range(self, monkeypatch, name, value):
        monkeypatch.setenv(name, value)

        with pytest.raises(ConfigurationError, match=name):
            load_settings()
