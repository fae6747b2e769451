"""Tests for environment-driven settings."""

import importlib
import logging

import pytest

from feedback_dashboard import config


@pytest.fixture
def reload_config(monkeypatch):
    """Reload config under patched env; restore the defaults afterwards."""

    def _reload(**env):
        for name, value in env.items():
            monkeypatch.setenv(name, value)
        return importlib.reload(config)

    yield _reload
    monkeypatch.undo()
    importlib.reload(config)


class TestHttpTimeout:
    """FEEDBACK_HTTP_TIMEOUT parsing."""

    def test_default(self, reload_config, monkeypatch):
        """Unset means 30 seconds."""
        monkeypatch.delenv("FEEDBACK_HTTP_TIMEOUT", raising=False)
        assert reload_config().FEEDBACK_HTTP_TIMEOUT == 30.0

    def test_fractional_seconds(self, reload_config):
        """'2.5' is accepted."""
        assert reload_config(FEEDBACK_HTTP_TIMEOUT="2.5").FEEDBACK_HTTP_TIMEOUT == 2.5

    @pytest.mark.parametrize("raw", ["soon", "0", "-3", "nan"])
    def test_bad_value_falls_back_with_warning(self, reload_config, caplog, raw):
        """Unusable values keep the default and log why."""
        with caplog.at_level(logging.WARNING, logger="feedback_dashboard.config"):
            cfg = reload_config(FEEDBACK_HTTP_TIMEOUT=raw)
        assert cfg.FEEDBACK_HTTP_TIMEOUT == 30.0
        assert any("FEEDBACK_HTTP_TIMEOUT" in rec.getMessage() for rec in caplog.records)


class TestHttpRetries:
    """FEEDBACK_HTTP_RETRIES parsing."""

    def test_whole_number(self, reload_config):
        """'2' enables two retries."""
        assert reload_config(FEEDBACK_HTTP_RETRIES="2").FEEDBACK_HTTP_RETRIES == 2

    def test_bad_value_falls_back_with_warning(self, reload_config, caplog):
        """Non-integers keep retries off."""
        with caplog.at_level(logging.WARNING, logger="feedback_dashboard.config"):
            cfg = reload_config(FEEDBACK_HTTP_RETRIES="1.5")
        assert cfg.FEEDBACK_HTTP_RETRIES == 0
        assert any("FEEDBACK_HTTP_RETRIES" in rec.getMessage() for rec in caplog.records)
