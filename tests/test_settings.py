"""Tests for Settings validation."""

import pytest
from pydantic import ValidationError


class TestSettingsDefaults:
    def test_settings_created_with_overrides(self, settings):
        assert settings.poll_max_attempts == 5
        assert settings.retry_base_delay_ms == 10

    def test_code_defaults(self, tmp_path):
        from config.settings import Settings
        # _env_file=None keeps a local .env from leaking into the defaults
        s = Settings(_env_file=None, log_dir=tmp_path / "logs")
        assert s.use_backend is True
        assert s.backend_url == "http://localhost:3001"
        assert s.poll_max_attempts == 60
        assert s.poll_interval_seconds == 2.0
        assert s.retry_max_attempts == 3
        assert s.retry_base_delay_ms == 3000
        assert s.retry_backoff_multiplier == 2.0
        assert s.retry_rate_limit_multiplier == 2.0
        assert s.default_lang == "zh"

    def test_env_prefix(self, tmp_path, monkeypatch):
        from config.settings import Settings
        monkeypatch.setenv("INKFLOW_USE_BACKEND", "false")
        monkeypatch.setenv("INKFLOW_POLL_MAX_ATTEMPTS", "7")
        s = Settings(_env_file=None, log_dir=tmp_path / "logs")
        assert s.use_backend is False
        assert s.poll_max_attempts == 7

    def test_backend_url_trailing_slash_stripped(self, tmp_path):
        from config.settings import Settings
        s = Settings(_env_file=None, log_dir=tmp_path, backend_url="http://host:3001///")
        assert s.backend_url == "http://host:3001"

    def test_retry_policy_built_from_settings(self, settings):
        policy = settings.retry_policy()
        assert policy.max_attempts == 2
        assert policy.base_delay_ms == 10
        assert policy.max_delay_ms == 1000
        assert policy.jitter_ms == 0


class TestSettingsValidation:
    def test_zero_poll_attempts_raises(self, tmp_path):
        from config.settings import Settings
        with pytest.raises(ValidationError, match="poll_max_attempts"):
            Settings(_env_file=None, log_dir=tmp_path, poll_max_attempts=0)

    def test_negative_retry_attempts_raises(self, tmp_path):
        from config.settings import Settings
        with pytest.raises(ValidationError, match="retry_max_attempts"):
            Settings(_env_file=None, log_dir=tmp_path, retry_max_attempts=-1)

    def test_zero_retry_attempts_allowed(self, tmp_path):
        from config.settings import Settings
        s = Settings(_env_file=None, log_dir=tmp_path, retry_max_attempts=0)
        assert s.retry_policy().max_attempts == 0

    def test_multiplier_below_one_raises(self, tmp_path):
        from config.settings import Settings
        with pytest.raises(ValidationError, match="multiplier"):
            Settings(_env_file=None, log_dir=tmp_path, retry_backoff_multiplier=0.5)

    def test_delay_cap_below_base_raises(self, tmp_path):
        from config.settings import Settings
        with pytest.raises(ValidationError, match="retry_max_delay_ms"):
            Settings(_env_file=None, log_dir=tmp_path, retry_base_delay_ms=5000, retry_max_delay_ms=1000)

    def test_delay_cap_can_be_disabled(self, tmp_path):
        from config.settings import Settings
        s = Settings(_env_file=None, log_dir=tmp_path, retry_max_delay_ms=None)
        assert s.retry_policy().max_delay_ms is None

    def test_zero_interval_raises(self, tmp_path):
        from config.settings import Settings
        with pytest.raises(ValidationError):
            Settings(_env_file=None, log_dir=tmp_path, poll_interval_seconds=0)


class TestLoggingConfig:
    def test_setup_logging_creates_files(self, tmp_path):
        import logging
        from config.logging_config import setup_logging

        log_dir = tmp_path / "logs"
        setup_logging(level=logging.DEBUG, log_dir=log_dir, console_enabled=False)
        logging.getLogger("tools.model_invoker").debug("model call")
        for handler in logging.getLogger("tools.model_invoker").handlers:
            handler.flush()

        assert (log_dir / "inkflow.log").exists()
        assert "model call" in (log_dir / "llm_calls.log").read_text(encoding="utf-8")
