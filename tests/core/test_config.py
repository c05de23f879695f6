"""Tests for configuration loading and validation."""

from datetime import timedelta

import pytest
from pydantic import ValidationError

from shortlink.core.config import LinkDirectoryConfig, MetricsConfig, Settings


class TestLinkDirectoryConfig:

    def test_defaults(self):
        config = LinkDirectoryConfig()

        assert config.max_identifier_retries == 10
        assert config.cache_ttl == timedelta(hours=1)

    @pytest.mark.parametrize("retries", [0, -1])
    def test_rejects_non_positive_retries(self, retries):
        with pytest.raises(ValidationError):
            LinkDirectoryConfig(max_identifier_retries=retries)

    def test_rejects_non_positive_ttl(self):
        with pytest.raises(ValidationError):
            LinkDirectoryConfig(cache_ttl=timedelta(0))


class TestMetricsConfig:

    def test_defaults(self):
        config = MetricsConfig()

        assert config.flush_interval == timedelta(seconds=1)
        assert config.queue_capacity == 1000
        assert config.record_timeout == timedelta(milliseconds=100)

    @pytest.mark.parametrize("field", ["flush_interval", "record_timeout"])
    def test_rejects_non_positive_durations(self, field):
        with pytest.raises(ValidationError) as excinfo:
            MetricsConfig(**{field: timedelta(seconds=-1)})

        assert field in str(excinfo.value)

    def test_rejects_zero_capacity(self):
        with pytest.raises(ValidationError):
            MetricsConfig(queue_capacity=0)


class TestSettings:

    def test_builds_service_configs_from_environment(self, monkeypatch):
        monkeypatch.setenv("MAX_IDENTIFIER_RETRIES", "3")
        monkeypatch.setenv("CACHE_TTL_SECONDS", "120")
        monkeypatch.setenv("METRICS_FLUSH_INTERVAL_MS", "250")
        monkeypatch.setenv("METRICS_QUEUE_CAPACITY", "10")
        monkeypatch.setenv("RECORD_ENQUEUE_TIMEOUT_MS", "5")

        settings = Settings()

        assert settings.link_directory_config() == LinkDirectoryConfig(
            max_identifier_retries=3, cache_ttl=timedelta(seconds=120)
        )
        metrics_config = settings.metrics_config()
        assert metrics_config.flush_interval == timedelta(milliseconds=250)
        assert metrics_config.queue_capacity == 10
        assert metrics_config.record_timeout == timedelta(milliseconds=5)

    def test_invalid_service_config_fails(self, monkeypatch):
        monkeypatch.setenv("METRICS_QUEUE_CAPACITY", "0")

        with pytest.raises(ValidationError):
            Settings().metrics_config()

    def test_redis_uri(self, monkeypatch):
        monkeypatch.setenv("REDIS_HOST", "cache.internal")
        monkeypatch.setenv("REDIS_PASSWORD", "secret")
        monkeypatch.setenv("REDIS_DB", "2")

        assert Settings().REDIS_URI == "redis://:secret@cache.internal:6379/2"

    def test_log_level_is_normalized(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "debug")

        assert Settings().LOG_LEVEL == "DEBUG"

    def test_invalid_log_level(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "chatty")

        with pytest.raises(ValidationError):
            Settings()
