"""Tests for the CLI entry point."""
import pytest

from emotalk.cli import main
from emotalk.config import reset_config


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    for name in ("OPEN_AI_KEY", "OPENAI_API_KEY", "INDEX_NAME", "CHROMA_PORT", "EMOTALK_LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)
    reset_config()
    yield
    reset_config()


class TestMain:
    """Test main() exit codes."""

    def test_invalid_config_exits_with_2(self, monkeypatch):
        monkeypatch.setenv("CHROMA_PORT", "not-a-port")

        assert main() == 2

    def test_missing_api_key_exits_with_2(self):
        assert main() == 2
