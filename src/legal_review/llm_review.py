from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional, Type

import httpx

from .config import ProviderConfig
from .errors import InvalidProviderError, ProviderError
from .logger import Log

MAX_OUTPUT_TOKENS = 2000
SYSTEM_INSTRUCTION = "You are a legal document reviewer providing constructive feedback."


class LLMProvider(ABC):
    """One outbound chat call to a hosted model."""

    name: str = ""
    label: str = ""
    endpoint: str = ""
    default_model: str = ""

    def __init__(self, api_key: str, model: Optional[str] = None):
        self.api_key = api_key
        self.model = model or self.default_model

    @abstractmethod
    def headers(self) -> Dict[str, str]:
        """Authentication and content headers for the request."""

    @abstractmethod
    def payload(self, prompt: str) -> Dict[str, Any]:
        """JSON body for the request."""

    @abstractmethod
    def reply_text(self, data: Dict[str, Any]) -> str:
        """Pull the reply out of a successful response body."""

    async def complete(self, client: httpx.AsyncClient, prompt: str) -> str:
        try:
            response = await client.post(
                self.endpoint, headers=self.headers(), json=self.payload(prompt)
            )
        except httpx.HTTPError as exc:
            raise ProviderError(f"{self.label} request failed: {exc}") from exc

        if not response.is_success:
            raise ProviderError(self._error_message(response))

        try:
            return self.reply_text(response.json())
        except (ValueError, KeyError, IndexError, TypeError) as exc:
            raise ProviderError(f"{self.label} returned an unexpected response") from exc

    def _error_message(self, response: httpx.Response) -> str:
        """Use the provider's own error message when the body carries one."""
        fallback = f"{self.label} API error"
        try:
            body = response.json()
        except ValueError:
            return fallback
        error = body.get("error") if isinstance(body, dict) else None
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
        return fallback


class OpenAIProvider(LLMProvider):
    name = "openai"
    label = "OpenAI"
    endpoint = "https://api.openai.com/v1/chat/completions"
    default_model = "gpt-4-turbo-preview"
    temperature = 0.7

    def headers(self) -> Dict[str, str]:
        return {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.api_key}",
        }

    def payload(self, prompt: str) -> Dict[str, Any]:
        return {
            "model": self.model,
            "messages": [
                {"role": "system", "content": SYSTEM_INSTRUCTION},
                {"role": "user", "content": prompt},
            ],
            "temperature": self.temperature,
            "max_tokens": MAX_OUTPUT_TOKENS,
        }

    def reply_text(self, data: Dict[str, Any]) -> str:
        return data["choices"][0]["message"]["content"]


class AnthropicProvider(LLMProvider):
    name = "anthropic"
    label = "Anthropic"
    endpoint = "https://api.anthropic.com/v1/messages"
    default_model = "claude-3-sonnet-20240229"
    api_version = "2023-06-01"

    def headers(self) -> Dict[str, str]:
        return {
            "Content-Type": "application/json",
            "x-api-key": self.api_key,
            "anthropic-version": self.api_version,
        }

    def payload(self, prompt: str) -> Dict[str, Any]:
        return {
            "model": self.model,
            "max_tokens": MAX_OUTPUT_TOKENS,
            "messages": [{"role": "user", "content": prompt}],
        }

    def reply_text(self, data: Dict[str, Any]) -> str:
        return data["content"][0]["text"]


PROVIDERS: Dict[str, Type[LLMProvider]] = {
    OpenAIProvider.name: OpenAIProvider,
    AnthropicProvider.name: AnthropicProvider,
}


def create_provider(config: ProviderConfig) -> LLMProvider:
    """Pick the provider strategy named in the configuration.

    Raises:
        InvalidProviderError: for any name outside ``PROVIDERS``.
    """
    provider_cls = PROVIDERS.get(config.provider)
    if provider_cls is None:
        raise InvalidProviderError("Invalid LLM provider")
    return provider_cls(config.api_key, model=config.model)


class LLMReviewer:
    """Sends a finished review prompt to the configured provider."""

    def __init__(self, config: ProviderConfig, client: Optional[httpx.AsyncClient] = None):
        self.config = config
        self._client = client

    async def review(self, prompt: str) -> str:
        """Return the model's reply verbatim. One attempt, no retries."""
        provider = create_provider(self.config)
        Log.info("Dispatching %d-character prompt to %s (%s)", len(prompt), provider.name, provider.model)
        if self._client is not None:
            return await provider.complete(self._client, prompt)
        async with httpx.AsyncClient(timeout=self.config.timeout_seconds) as client:
            return await provider.complete(client, prompt)
