"""Tests for config secret validation."""

from unittest.mock import patch

import pytest
from pydantic import ValidationError

from app.core.config import Settings

BASE_ENV = {
    "SUPABASE_URL": "https://test.supabase.co",
    "SUPABASE_SERVICE_ROLE_KEY": "test-service-key",
    "ADMIN_SECRET_KEY": "test-admin-secret",
}


class TestSecretValidation:
    """Test that required secrets are validated at startup."""

    def test_missing_single_secret_raises_error(self):
        """Missing one required secret raises ValueError."""
        env = {**BASE_ENV, "SUPABASE_URL": ""}
        with patch.dict("os.environ", env, clear=True):
            with pytest.raises(ValidationError) as exc_info:
                Settings(_env_file=None)

            assert "SUPABASE_URL" in str(exc_info.value)

    def test_missing_multiple_secrets_lists_all(self):
        """Missing multiple secrets lists all in error message."""
        env = {**BASE_ENV, "SUPABASE_URL": "", "ADMIN_SECRET_KEY": "   "}
        with patch.dict("os.environ", env, clear=True):
            with pytest.raises(ValidationError) as exc_info:
                Settings(_env_file=None)

            error_str = str(exc_info.value)
            assert "SUPABASE_URL" in error_str
            assert "ADMIN_SECRET_KEY" in error_str

    def test_all_secrets_present_succeeds(self):
        """All required secrets present allows Settings to load."""
        with patch.dict("os.environ", BASE_ENV, clear=True):
            settings = Settings(_env_file=None)
            assert settings.supabase_url == "https://test.supabase.co"
            assert settings.admin_secret_key == "test-admin-secret"

    def test_email_settings_are_optional(self):
        """Moderator email is off unless SMTP settings are provided."""
        with patch.dict("os.environ", BASE_ENV, clear=True):
            settings = Settings(_env_file=None)
            assert settings.email_host == ""
            assert settings.email_port == 587
            assert settings.moderator_email == ""


class TestEnvironmentSetting:
    """Test environment setting validation."""

    def test_environment_defaults_to_development(self):
        with patch.dict("os.environ", BASE_ENV, clear=True):
            settings = Settings(_env_file=None)
            assert settings.environment == "development"
            assert settings.rate_limit_enabled is True

    def test_environment_can_be_set_to_production(self):
        env = {
            **BASE_ENV,
            "ENVIRONMENT": "production",
            "CORS_ORIGINS": '["https://admin.example.com"]',
        }
        with patch.dict("os.environ", env, clear=True):
            settings = Settings(_env_file=None)
            assert settings.environment == "production"


class TestCorsValidation:
    """Test CORS origin validation in production."""

    def test_cors_allows_localhost_in_development(self):
        env = {**BASE_ENV, "CORS_ORIGINS": '["http://localhost:3000"]'}
        with patch.dict("os.environ", env, clear=True):
            settings = Settings(_env_file=None)
            assert "http://localhost:3000" in settings.cors_origins

    def test_cors_rejects_localhost_in_production(self):
        env = {
            **BASE_ENV,
            "ENVIRONMENT": "production",
            "CORS_ORIGINS": '["http://localhost:3000"]',
        }
        with patch.dict("os.environ", env, clear=True):
            with pytest.raises(ValidationError) as exc_info:
                Settings(_env_file=None)
            assert "localhost" in str(exc_info.value).lower()

    def test_cors_rejects_wildcard_in_production(self):
        env = {**BASE_ENV, "ENVIRONMENT": "production", "CORS_ORIGINS": '["*"]'}
        with patch.dict("os.environ", env, clear=True):
            with pytest.raises(ValidationError) as exc_info:
                Settings(_env_file=None)
            assert "wildcard" in str(exc_info.value).lower()

    def test_cors_allows_https_in_production(self):
        env = {
            **BASE_ENV,
            "ENVIRONMENT": "production",
            "CORS_ORIGINS": '["https://admin.example.com"]',
        }
        with patch.dict("os.environ", env, clear=True):
            settings = Settings(_env_file=None)
            assert "https://admin.example.com" in settings.cors_origins
