"""Tests for environment-driven settings."""

import pytest
from pydantic import ValidationError

from goldflow.core.config import Settings


class TestSettings:
    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("DATABASE_URL", raising=False)
        config = Settings(_env_file=None)

        assert config.WEIGHT_VARIANCE_ALERT_THRESHOLD == 5.0
        assert config.MAX_WORKER_WORKLOAD == 5
        assert config.AUTO_SUBMIT_ON_COMPLETION
        assert config.TRANSACTION_RETRY_ATTEMPTS == 1
        assert config.is_sqlite

    def test_reads_environment(self, monkeypatch):
        monkeypatch.setenv("MAX_WORKER_WORKLOAD", "3")
        monkeypatch.setenv("AUTO_SUBMIT_ON_COMPLETION", "false")
        monkeypatch.setenv("LOG_LEVEL", "debug")

        config = Settings(_env_file=None)

        assert config.MAX_WORKER_WORKLOAD == 3
        assert not config.AUTO_SUBMIT_ON_COMPLETION
        assert config.LOG_LEVEL == "DEBUG"

    @pytest.mark.parametrize(
        "overrides",
        [
            {"WEIGHT_VARIANCE_ALERT_THRESHOLD": 0},
            {"MAX_WORKER_WORKLOAD": 0},
            {"TRANSACTION_RETRY_ATTEMPTS": 2},
            {"LOG_LEVEL": "LOUD"},
            {"LOG_FORMAT": "xml"},
        ],
    )
    def test_rejects_invalid_values(self, overrides):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, **overrides)
