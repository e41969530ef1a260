"""Unit tests for configuration utilities."""

from typing import Any
from unittest.mock import patch

import pytest

from anyschema.exceptions import ConfigurationException
from anyschema.utils.config import (
    ENV_AMBIGUITY,
    ENV_SCHEMA_URI,
    ENV_STRICT_COMPILE,
    AmbiguityPolicy,
    AnySchemaSettings,
    get_settings,
    load_environment,
)


class TestConfigurationUtils:
    """Test configuration utility functions."""

    @pytest.mark.unit
    @patch("anyschema.utils.config.load_dotenv")
    def test_load_environment(self, mock_load_dotenv: Any) -> None:
        """Test loading environment variables."""
        load_environment()
        mock_load_dotenv.assert_called_once()

    @pytest.mark.unit
    @patch("anyschema.utils.config.load_dotenv")
    def test_default_settings(self, mock_load_dotenv: Any) -> None:
        """Test settings when no variable is set."""
        settings = get_settings()

        assert settings == AnySchemaSettings()
        assert settings.ambiguity is AmbiguityPolicy.FIRST_MATCH
        assert settings.schema_uri is None
        assert settings.strict_compile is False
        mock_load_dotenv.assert_called_once()

    @pytest.mark.unit
    @patch("anyschema.utils.config.load_dotenv")
    def test_settings_from_environment(
        self, mock_load_dotenv: Any, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Test reading every ANYSCHEMA_* variable."""
        monkeypatch.setenv(ENV_AMBIGUITY, " Warn ")
        monkeypatch.setenv(ENV_SCHEMA_URI, "https://json-schema.org/draft-07/schema#")
        monkeypatch.setenv(ENV_STRICT_COMPILE, "yes")

        settings = get_settings()

        assert settings.ambiguity is AmbiguityPolicy.WARN
        assert settings.schema_uri == "https://json-schema.org/draft-07/schema#"
        assert settings.strict_compile is True

    @pytest.mark.unit
    @patch("anyschema.utils.config.load_dotenv")
    def test_empty_schema_uri_is_unset(
        self, mock_load_dotenv: Any, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Test that an empty URI does not emit $schema."""
        monkeypatch.setenv(ENV_SCHEMA_URI, "")

        assert get_settings().schema_uri is None

    @pytest.mark.unit
    @patch("anyschema.utils.config.load_dotenv")
    def test_invalid_ambiguity_raises_error(
        self, mock_load_dotenv: Any, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Test that unknown ambiguity policies are rejected."""
        monkeypatch.setenv(ENV_AMBIGUITY, "loud")

        with pytest.raises(ConfigurationException, match="first, warn, error") as exc_info:
            get_settings()

        assert exc_info.value.config_key == ENV_AMBIGUITY
        assert exc_info.value.config_value == "loud"

    @pytest.mark.unit
    @patch("anyschema.utils.config.load_dotenv")
    def test_invalid_flag_raises_error(
        self, mock_load_dotenv: Any, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Test that non-boolean strict flags are rejected."""
        monkeypatch.setenv(ENV_STRICT_COMPILE, "maybe")

        with pytest.raises(ConfigurationException, match="Invalid boolean") as exc_info:
            get_settings()

        assert exc_info.value.config_key == ENV_STRICT_COMPILE
