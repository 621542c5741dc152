"""Tests for configuration module."""

import os
import pytest
from unittest.mock import patch

from ticket_tracker.config import (
    CONTRIBUTOR_LIMIT,
    ApiConfig,
    ReconcileConfig,
    AppConfig,
    get_config,
)


class TestApiConfig:
    """Tests for ApiConfig."""

    def test_default_values(self):
        """Test default configuration values."""
        with patch.dict(os.environ, {}, clear=True):
            config = ApiConfig()
            assert config.base_url == "http://localhost:8080"
            assert config.ticket_timeout == 60
            assert config.contributor_timeout == 30
            assert config.max_retries == 3
            assert config.retry_delay == 1.0

    def test_env_override(self):
        """Test environment variable override."""
        with patch.dict(os.environ, {
            "TICKET_API_BASE_URL": "https://tickets.example.com",
            "TICKET_API_TIMEOUT": "15",
        }):
            config = ApiConfig()
            assert config.base_url == "https://tickets.example.com"
            assert config.ticket_timeout == 15.0


class TestReconcileConfig:
    """Tests for ReconcileConfig."""

    def test_default_limit(self):
        """Test the default contributor limit is the hard cap."""
        with patch.dict(os.environ, {}, clear=True):
            config = ReconcileConfig()
            assert config.max_contributors == CONTRIBUTOR_LIMIT
            assert config.directory_max_age == 300

    @pytest.mark.parametrize("configured,expected", [(5, 5), (25, 10), (0, 1)])
    def test_limit_clamped(self, configured, expected):
        """Test the effective limit never leaves 1..10."""
        assert ReconcileConfig(max_contributors=configured).contributor_limit == expected


class TestAppConfig:
    """Tests for AppConfig."""

    def test_validate_defaults(self):
        """Test validation passes with default settings."""
        config = AppConfig(api=ApiConfig(base_url="http://localhost:8080"), log_level="INFO")
        assert config.validate() == []

    def test_validate_bad_url(self):
        """Test validation catches a URL without scheme."""
        config = AppConfig(api=ApiConfig(base_url="localhost:8080"))
        errors = config.validate()
        assert any("TICKET_API_BASE_URL" in e for e in errors)

    def test_validate_missing_url(self):
        config = AppConfig(api=ApiConfig(base_url=""))
        assert any("is required" in e for e in config.validate())

    def test_validate_timeouts_and_retries(self):
        """Test validation catches non-positive timeouts and retries."""
        config = AppConfig(api=ApiConfig(
            base_url="http://localhost:8080",
            ticket_timeout=0,
            contributor_timeout=-1,
            max_retries=0,
        ))
        errors = config.validate()
        assert any("TICKET_API_TIMEOUT" in e for e in errors)
        assert any("CONTRIBUTOR_API_TIMEOUT" in e for e in errors)
        assert any("TICKET_API_MAX_RETRIES" in e for e in errors)

    def test_validate_contributor_limit(self):
        """Test a limit above the hard cap is reported."""
        config = AppConfig(
            api=ApiConfig(base_url="http://localhost:8080"),
            reconcile=ReconcileConfig(max_contributors=11),
        )
        assert any("MAX_CONTRIBUTORS" in e for e in config.validate())

    def test_validate_log_level(self):
        config = AppConfig(api=ApiConfig(base_url="http://localhost:8080"), log_level="LOUD")
        assert any("LOG_LEVEL" in e for e in config.validate())


class TestGetConfig:
    """Tests for get_config function."""

    def test_returns_app_config(self):
        """Test get_config returns AppConfig instance."""
        config = get_config()
        assert isinstance(config, AppConfig)
