"""
Tests for settings, defaults and API key handling
"""
import pytest
from pydantic import SecretStr, ValidationError

from core.config import PRODUCTION_BASE_URL, Settings, get_settings
from core.exceptions import ConfigurationError, PollExhaustedError, ValidationError as VerifierValidationError

pytestmark = pytest.mark.unit


class TestSettingsDefaults:
    """Defaults without any environment or .env file"""

    def test_default_settings(self, monkeypatch):
        for var in ("ENVIRONMENT", "BOUNCEBAN_API_KEY", "BOUNCEBAN_SOURCE_TAG", "LOG_FORMAT"):
            monkeypatch.delenv(var, raising=False)

        settings = Settings(_env_file=None)

        assert settings.environment == "development"
        assert settings.bounceban_api_key is None
        assert settings.bounceban_base_url == PRODUCTION_BASE_URL
        assert settings.bounceban_source_tag == "python_client"
        assert settings.skip_tls_verify is True
        assert settings.max_concurrent_jobs == 10
        assert settings.max_poll_attempts == 50
        assert settings.min_poll_wait_seconds == 5.0
        assert settings.retry_server_max_retries == 3
        assert settings.retry_server_backoff_ms == 2000
        assert settings.retry_timeout_max_retries == 30
        assert settings.retry_timeout_wait_ms == 6000

    def test_environment_variables_are_read(self, monkeypatch):
        monkeypatch.setenv("MAX_CONCURRENT_JOBS", "25")
        monkeypatch.setenv("SKIP_TLS_VERIFY", "false")
        monkeypatch.setenv("BOUNCEBAN_BASE_URL", "https://dev.bounceban.com/api")

        settings = Settings(_env_file=None)

        assert settings.max_concurrent_jobs == 25
        assert settings.skip_tls_verify is False
        assert settings.bounceban_base_url == "https://dev.bounceban.com/api"

    def test_test_suite_settings(self):
        settings = get_settings()

        assert settings.environment == "test"
        assert settings.get_api_key() == "test-key"
        assert settings.bounceban_source_tag == "test_suite"


class TestSettingsValidation:
    def test_invalid_environment(self):
        with pytest.raises(ValidationError) as exc_info:
            Settings(_env_file=None, environment="qa")

        assert "Environment must be one of" in str(exc_info.value)

    def test_invalid_log_format(self):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, log_format="xml")

    @pytest.mark.parametrize("field", ["max_poll_attempts", "min_poll_wait_seconds"])
    def test_poll_settings_must_be_positive(self, field):
        with pytest.raises(ValidationError) as exc_info:
            Settings(_env_file=None, **{field: 0})

        assert f"{field} must be positive" in str(exc_info.value)

    def test_negative_concurrency_rejected(self):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, max_concurrent_jobs=-1)


class TestApiKey:
    def test_missing_key_raises_configuration_error(self):
        settings = Settings(_env_file=None, bounceban_api_key=None)

        with pytest.raises(ConfigurationError) as exc_info:
            settings.get_api_key()

        assert exc_info.value.details == {"setting": "bounceban_api_key"}

    def test_blank_key_is_missing(self):
        with pytest.raises(ConfigurationError):
            Settings(_env_file=None, bounceban_api_key="").get_api_key()

    def test_key_is_secret(self):
        settings = Settings(_env_file=None, bounceban_api_key="abcd1234efgh")

        assert isinstance(settings.bounceban_api_key, SecretStr)
        assert "abcd1234efgh" not in repr(settings)
        assert settings.get_api_key() == "abcd1234efgh"

    def test_model_dump_masks_key(self):
        settings = Settings(_env_file=None, bounceban_api_key="abcd1234efgh")

        assert settings.model_dump()["bounceban_api_key"] == "abcd********"
        assert Settings(_env_file=None, bounceban_api_key="abc").model_dump()["bounceban_api_key"] == "***"


class TestExceptions:
    def test_to_dict(self):
        error = VerifierValidationError("Email address is required", field="email")

        assert error.to_dict() == {
            "error": "VALIDATION_ERROR",
            "message": "Email address is required",
            "details": {"field": "email"},
        }
        assert error.status_code == 400

    def test_poll_exhausted_message(self):
        error = PollExhaustedError("task-1", 50)

        assert str(error) == "Failed to handle request."
        assert error.details == {"task_id": "task-1", "attempts": 50}
