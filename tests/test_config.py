# =============================================================================
# test_config.py - Configuration Tests
# =============================================================================

from zircon.config import CompilerConfig
from zircon.reader import DEFAULT_CHUNK_SIZE


class TestCompilerConfig:
    """Test defaults and environment overrides."""

    def test_defaults(self):
        config = CompilerConfig()
        assert config.chunk_size == DEFAULT_CHUNK_SIZE == 5_000
        assert config.max_errors == 10
        assert config.color is True

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("ZIRCON_CHUNK_SIZE", "64")
        monkeypatch.setenv("ZIRCON_MAX_ERRORS", "3")
        monkeypatch.setenv("NO_COLOR", "1")
        config = CompilerConfig.from_env()
        assert config.chunk_size == 64
        assert config.max_errors == 3
        assert config.color is False

    def test_invalid_values_ignored(self, monkeypatch):
        monkeypatch.setenv("ZIRCON_CHUNK_SIZE", "lots")
        monkeypatch.setenv("ZIRCON_MAX_ERRORS", "many")
        monkeypatch.delenv("NO_COLOR", raising=False)
        assert CompilerConfig.from_env() == CompilerConfig()

    def test_non_positive_chunk_size_ignored(self, monkeypatch):
        monkeypatch.setenv("ZIRCON_CHUNK_SIZE", "0")
        assert CompilerConfig.from_env().chunk_size == DEFAULT_CHUNK_SIZE
