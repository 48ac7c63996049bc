"""Unit tests for AIClientFactory and AIRequestContext."""
import pytest
from unittest.mock import MagicMock, patch

from program_ingestor_api.ai.client_factory import (
    AIClientFactory,
    AIRequestContext,
    _HELICONE_OPENAI_BASE_URL,
)


@pytest.fixture
def mock_settings():
    with patch("program_ingestor_api.ai.client_factory.settings") as mock:
        mock.OPENAI_API_KEY = "sk-test-openai"
        mock.HELICONE_ENABLED = False
        mock.HELICONE_API_KEY = None
        mock.ENVIRONMENT = "development"
        mock.LLM_TIMEOUT_SECONDS = 60.0
        yield mock


@pytest.fixture
def mock_async_openai():
    with patch("program_ingestor_api.ai.client_factory.AsyncOpenAI") as mock_class:
        mock_class.return_value = MagicMock()
        yield mock_class


class TestAIRequestContextHeaders:
    """Test Helicone header generation from AIRequestContext."""

    def test_empty_context_includes_environment_only(self, mock_settings):
        mock_settings.ENVIRONMENT = "production"

        headers = AIRequestContext().to_tracking_headers()

        assert headers == {"Helicone-Property-Environment": "production"}

    def test_full_context_generates_all_headers(self, mock_settings):
        context = AIRequestContext(
            user_id="user_123",
            upload_id="upload_abc",
            feature_name="program_sheet_extraction",
            custom_properties={"sheet_count": "3"},
        )

        headers = context.to_tracking_headers()

        assert headers["Helicone-User-Id"] == "user_123"
        assert headers["Helicone-Session-Id"] == "upload_abc"
        assert headers["Helicone-Property-Feature"] == "program_sheet_extraction"
        assert headers["Helicone-Property-Sheet-Count"] == "3"


class TestAsyncOpenAIClientCreation:
    """Test AsyncOpenAI client creation with various configurations."""

    def test_creates_direct_client_when_helicone_disabled(self, mock_settings, mock_async_openai):
        AIClientFactory.create_async_openai_client()

        call_kwargs = mock_async_openai.call_args[1]
        assert call_kwargs["api_key"] == "sk-test-openai"
        assert call_kwargs["timeout"] == 60.0
        assert call_kwargs["max_retries"] == 0
        assert "base_url" not in call_kwargs

    def test_creates_proxied_client_when_helicone_enabled(self, mock_settings, mock_async_openai):
        mock_settings.HELICONE_ENABLED = True
        mock_settings.HELICONE_API_KEY = "sk-helicone-key"

        AIClientFactory.create_async_openai_client(
            context=AIRequestContext(user_id="user_123")
        )

        call_kwargs = mock_async_openai.call_args[1]
        assert call_kwargs["base_url"] == _HELICONE_OPENAI_BASE_URL
        assert call_kwargs["default_headers"]["Helicone-Auth"] == "Bearer sk-helicone-key"
        assert call_kwargs["default_headers"]["Helicone-User-Id"] == "user_123"

    def test_falls_back_to_direct_client_without_helicone_key(self, mock_settings, mock_async_openai):
        mock_settings.HELICONE_ENABLED = True
        mock_settings.HELICONE_API_KEY = None

        AIClientFactory.create_async_openai_client()

        assert "base_url" not in mock_async_openai.call_args[1]

    def test_explicit_timeout_overrides_setting(self, mock_settings, mock_async_openai):
        AIClientFactory.create_async_openai_client(timeout=5.0)

        assert mock_async_openai.call_args[1]["timeout"] == 5.0

    def test_missing_api_key_raises(self, mock_settings, mock_async_openai):
        mock_settings.OPENAI_API_KEY = None

        with pytest.raises(ValueError, match="OPENAI_API_KEY"):
            AIClientFactory.create_async_openai_client()

        mock_async_openai.assert_not_called()

    def test_helicone_without_context_sends_auth_only(self, mock_settings, mock_async_openai):
        mock_settings.HELICONE_ENABLED = True
        mock_settings.HELICONE_API_KEY = "sk-helicone-key"

        AIClientFactory.create_async_openai_client()

        headers = mock_async_openai.call_args[1]["default_headers"]
        assert headers == {"Helicone-Auth": "Bearer sk-helicone-key"}
