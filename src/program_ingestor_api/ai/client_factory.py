"""OpenAI client construction for sheet extraction, optionally routed through Helicone."""
import logging
from dataclasses import dataclass, field
from typing import Any

from openai import AsyncOpenAI

from program_ingestor_api.config import settings


logger = logging.getLogger(__name__)

_HELICONE_OPENAI_BASE_URL = "https://oai.helicone.ai/v1"


@dataclass
class AIRequestContext:
    """Who is uploading what; becomes Helicone headers when the proxy is on.

    ``upload_id`` is sent as the Helicone session so every sheet call of one
    upload is grouped together.
    """

    user_id: str | None = None
    upload_id: str | None = None
    feature_name: str | None = None
    custom_properties: dict[str, str] = field(default_factory=dict)

    def to_tracking_headers(self) -> dict[str, str]:
        headers: dict[str, str] = {
            "Helicone-Property-Environment": settings.ENVIRONMENT,
        }
        optional = {
            "Helicone-User-Id": self.user_id,
            "Helicone-Session-Id": self.upload_id,
            "Helicone-Property-Feature": self.feature_name,
        }
        headers.update({name: value for name, value in optional.items() if value})

        for key, value in self.custom_properties.items():
            headers[f"Helicone-Property-{key.replace('_', '-').title()}"] = str(value)

        return headers


class AIClientFactory:
    """Builds the AsyncOpenAI client shared by all sheet extractions of an upload."""

    @staticmethod
    def _helicone_settings(context: AIRequestContext | None) -> dict[str, Any]:
        if not settings.HELICONE_ENABLED:
            return {}
        if not settings.HELICONE_API_KEY:
            logger.warning(
                "HELICONE_ENABLED=true but HELICONE_API_KEY not set; calling OpenAI directly"
            )
            return {}

        headers = {"Helicone-Auth": f"Bearer {settings.HELICONE_API_KEY}"}
        if context:
            headers.update(context.to_tracking_headers())
        return {"base_url": _HELICONE_OPENAI_BASE_URL, "default_headers": headers}

    @staticmethod
    def create_async_openai_client(
        context: AIRequestContext | None = None,
        timeout: float | None = None,
    ) -> AsyncOpenAI:
        """
        Create the async OpenAI client used for sheet extraction.

        Args:
            context: Upload context, sent as tracking headers through Helicone
            timeout: Per-request timeout in seconds (defaults to LLM_TIMEOUT_SECONDS)

        Raises:
            ValueError: If OPENAI_API_KEY is not configured
        """
        if not settings.OPENAI_API_KEY:
            raise ValueError("OpenAI API key not configured. Set OPENAI_API_KEY environment variable.")

        client_kwargs: dict[str, Any] = {
            "api_key": settings.OPENAI_API_KEY,
            "timeout": timeout if timeout is not None else settings.LLM_TIMEOUT_SECONDS,
            # ai.retry owns retries; the SDK must not add attempts of its own
            "max_retries": 0,
        }
        client_kwargs.update(AIClientFactory._helicone_settings(context))

        logger.debug(
            f"Creating AsyncOpenAI client ({'helicone' if 'base_url' in client_kwargs else 'direct'})"
        )
        return AsyncOpenAI(**client_kwargs)
