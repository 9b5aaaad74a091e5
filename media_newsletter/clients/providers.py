"""LLM provider clients for OpenAI, Anthropic and OpenAI-compatible APIs."""

import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import aiohttp

from media_newsletter.exceptions import ProviderError, UnsupportedProviderError
from media_newsletter.models.settings import ProviderConfig

logger = logging.getLogger(__name__)

TEMPERATURE = 0.7
MAX_TOKENS = 2000
ANTHROPIC_VERSION = "2023-06-01"


@dataclass
class Completion:
    """Outcome of one provider call: either text or the error that stopped it."""

    text: Optional[str] = None
    error: Optional[ProviderError] = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.text is not None

    @classmethod
    def success(cls, text: str) -> "Completion":
        return cls(text=text)

    @classmethod
    def failure(cls, error: ProviderError) -> "Completion":
        return cls(error=error)


class ProviderDialect(ABC):
    """Request and response shape of one LLM provider."""

    path = "/chat/completions"

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider id this dialect is registered under."""

    @abstractmethod
    def build_request(self, config: ProviderConfig, prompt: str) -> Dict[str, Any]:
        """Build the JSON request body."""

    @abstractmethod
    def auth_headers(self, config: ProviderConfig) -> Dict[str, str]:
        """Headers that authenticate the request."""

    @abstractmethod
    def parse_response(self, data: Any) -> str:
        """Pull the generated text out of the response envelope.

        Raises:
            ProviderError: If the envelope does not have the expected shape
        """


class ChatDialect(ProviderDialect):
    """OpenAI chat completions."""

    system_message = (
        "You are a helpful assistant that creates engaging newsletter content "
        "about movies, TV shows, and music. Be creative, engaging, and write in "
        "a human-like style."
    )

    @property
    def name(self) -> str:
        return "openai"

    def build_request(self, config: ProviderConfig, prompt: str) -> Dict[str, Any]:
        return {
            "model": config.model,
            "messages": [
                {"role": "system", "content": self.system_message},
                {"role": "user", "content": prompt},
            ],
            "temperature": TEMPERATURE,
            "max_tokens": MAX_TOKENS,
        }

    def auth_headers(self, config: ProviderConfig) -> Dict[str, str]:
        return {"Authorization": f"Bearer {config.api_key}"}

    def parse_response(self, data: Any) -> str:
        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as e:
            raise ProviderError(f"Invalid {self.name} response: {e}") from e
        if not isinstance(content, str):
            raise ProviderError(f"Invalid {self.name} response: no message content")
        return content


class GenericDialect(ChatDialect):
    """Any OpenAI-compatible endpoint (self-hosted or third party)."""

    system_message = (
        "You are a helpful assistant that creates engaging newsletter content."
    )

    @property
    def name(self) -> str:
        return "custom"

    def auth_headers(self, config: ProviderConfig) -> Dict[str, str]:
        if config.api_key and config.api_key.strip():
            return {"Authorization": f"Bearer {config.api_key}"}
        return {}


class MessageBatchDialect(ProviderDialect):
    """Anthropic messages API."""

    path = "/messages"

    @property
    def name(self) -> str:
        return "anthropic"

    def build_request(self, config: ProviderConfig, prompt: str) -> Dict[str, Any]:
        return {
            "model": config.model,
            "max_tokens": MAX_TOKENS,
            "messages": [{"role": "user", "content": prompt}],
            "temperature": TEMPERATURE,
        }

    def auth_headers(self, config: ProviderConfig) -> Dict[str, str]:
        return {
            "x-api-key": config.api_key or "",
            "anthropic-version": ANTHROPIC_VERSION,
        }

    def parse_response(self, data: Any) -> str:
        try:
            text = data["content"][0]["text"]
        except (KeyError, IndexError, TypeError) as e:
            raise ProviderError(f"Invalid {self.name} response: {e}") from e
        if not isinstance(text, str):
            raise ProviderError(f"Invalid {self.name} response: no text block")
        return text


# Dialect registry
AVAILABLE_DIALECTS: Dict[str, ProviderDialect] = {
    dialect.name: dialect
    for dialect in (ChatDialect(), MessageBatchDialect(), GenericDialect())
}


def get_dialect(provider: str) -> ProviderDialect:
    """Get the dialect for a provider id (case-insensitive).

    Raises:
        UnsupportedProviderError: If no dialect is registered for ``provider``
    """
    dialect = AVAILABLE_DIALECTS.get((provider or "").strip().lower())
    if dialect is None:
        raise UnsupportedProviderError(provider)
    return dialect


def list_providers() -> List[str]:
    """List all supported provider ids."""
    return list(AVAILABLE_DIALECTS.keys())


class ProviderAdapter:
    """Sends prompts to the configured LLM provider."""

    def __init__(self, session: Optional[aiohttp.ClientSession] = None):
        """Initialize the adapter.

        Args:
            session: Shared aiohttp session; a short-lived one is opened per
                call when omitted
        """
        self._session = session

    async def invoke(self, config: ProviderConfig, prompt: str) -> str:
        """Send ``prompt`` and return the model's text.

        Raises:
            UnsupportedProviderError: If the provider id is unknown
            ProviderError: On network failure, a non-success status or an
                unrecognized response envelope
        """
        dialect = get_dialect(config.provider)
        url = f"{config.base_url.rstrip('/')}{dialect.path}"
        headers = {"Content-Type": "application/json", **dialect.auth_headers(config)}
        payload = dialect.build_request(config, prompt)

        logger.debug(f"Sending {len(prompt)} char prompt to {dialect.name} ({config.model})")

        if self._session is not None:
            data = await self._post(self._session, url, headers, payload, config.timeout)
        else:
            async with aiohttp.ClientSession() as session:
                data = await self._post(session, url, headers, payload, config.timeout)

        return dialect.parse_response(data)

    async def complete(self, config: ProviderConfig, prompt: str) -> Completion:
        """Like :meth:`invoke`, but report provider failures as a value."""
        try:
            return Completion.success(await self.invoke(config, prompt))
        except ProviderError as e:
            logger.error(f"AI provider call failed: {e}")
            return Completion.failure(e)

    async def _post(
        self,
        session: aiohttp.ClientSession,
        url: str,
        headers: Dict[str, str],
        payload: Dict[str, Any],
        timeout: float,
    ) -> Any:
        try:
            async with session.post(
                url,
                headers=headers,
                json=payload,
                timeout=aiohttp.ClientTimeout(total=timeout),
            ) as response:
                if response.status < 200 or response.status >= 300:
                    error_text = await response.text()
                    raise ProviderError(
                        f"AI API error: {response.status} - {error_text[:200]}",
                        status=response.status,
                    )
                return await response.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise ProviderError(f"Network error calling AI API: {e}") from e
        except ValueError as e:
            raise ProviderError(f"AI API returned invalid JSON: {e}") from e
