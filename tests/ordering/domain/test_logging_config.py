"""Tests for log level selection."""

from ordering.utils.logging import get_log_level, resolve_environment


class TestLogLevel:
    def test_environment_defaults(self, monkeypatch):
        monkeypatch.delenv("LOG_LEVEL", raising=False)
        assert get_log_level("production") == "INFO"
        assert get_log_level("development") == "DEBUG"
        assert get_log_level("test") == "WARNING"

    def test_explicit_level_wins(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "error")
        assert get_log_level("development") == "ERROR"

    def test_environment_from_protean_env(self, monkeypatch):
        monkeypatch.setenv("PROTEAN_ENV", "Production")
        assert resolve_environment() == "production"

    def test_unknown_environment_logs_at_info(self, monkeypatch):
        monkeypatch.delenv("LOG_LEVEL", raising=False)
        assert get_log_level("staging") == "INFO"
