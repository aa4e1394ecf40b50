"""Client for an OpenAI-compatible chat-completions endpoint."""

from __future__ import annotations

import logging
from typing import Any, Final

import httpx

from notestream.config import (
    NOTESTREAM_API_KEY,
    NOTESTREAM_API_URL,
    NOTESTREAM_MAX_TOKENS,
    NOTESTREAM_MODEL,
    NOTESTREAM_REQUEST_TIMEOUT_S,
    NOTESTREAM_TEMPERATURE,
    NOTESTREAM_USER_AGENT,
)
from notestream.exceptions import (
    AuthenticationError,
    ConfigurationError,
    GenerationError,
    MalformedResponseError,
    RateLimitError,
)

logger = logging.getLogger(__name__)

RATE_LIMIT_STATUS: Final[int] = 429
UNAUTHORIZED_STATUS: Final[int] = 401


class GenerationClient:
    """Send one system + user prompt pair and return the model's text.

    No retries are attempted; callers decide what to do with a failed chunk.
    """

    def __init__(
        self,
        *,
        api_key: str | None = NOTESTREAM_API_KEY,
        api_url: str = NOTESTREAM_API_URL,
        model: str = NOTESTREAM_MODEL,
        timeout_s: float = NOTESTREAM_REQUEST_TIMEOUT_S,
        max_tokens: int = NOTESTREAM_MAX_TOKENS,
        temperature: float = NOTESTREAM_TEMPERATURE,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.api_key = api_key
        self.api_url = api_url
        self.model = model
        self.timeout_s = timeout_s
        self.max_tokens = max_tokens
        self.temperature = temperature
        self._client = client

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    async def complete(
        self,
        *,
        system: str,
        user: str,
        json_mode: bool = False,
        max_tokens: int | None = None,
        temperature: float | None = None,
    ) -> str:
        """Run one chat completion.

        Args:
            system: System prompt.
            user: User prompt.
            json_mode: Ask the provider for a JSON object response.
            max_tokens: Override of the client's default.
            temperature: Override of the client's default.

        Returns:
            The trimmed content of the first choice.

        Raises:
            ConfigurationError: If no API key is configured.
            RateLimitError: On HTTP 429.
            AuthenticationError: On HTTP 401.
            GenerationError: On other HTTP errors or transport failures.
            MalformedResponseError: If the body has no message content.
        """
        if not self.configured:
            raise ConfigurationError("AI API not configured. Please add your API key.")

        payload: dict[str, Any] = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": system},
                {"role": "user", "content": user},
            ],
            "max_tokens": max_tokens if max_tokens is not None else self.max_tokens,
            "temperature": temperature if temperature is not None else self.temperature,
        }
        if json_mode:
            payload["response_format"] = {"type": "json_object"}

        if self._client is not None:
            response = await self._post(self._client, payload)
        else:
            async with httpx.AsyncClient(
                timeout=httpx.Timeout(self.timeout_s),
                headers={"User-Agent": NOTESTREAM_USER_AGENT},
            ) as client:
                response = await self._post(client, payload)

        return _extract_content(response)

    async def _post(self, client: httpx.AsyncClient, payload: dict[str, Any]) -> httpx.Response:
        headers = {"Authorization": f"Bearer {self.api_key}"}
        try:
            response = await client.post(self.api_url, json=payload, headers=headers)
        except httpx.RequestError as exc:
            logger.warning("Generation request failed: %s", exc)
            raise GenerationError(str(exc) or exc.__class__.__name__) from exc

        status = response.status_code
        if status == RATE_LIMIT_STATUS:
            raise RateLimitError(f"HTTP {status} from {self.api_url}", status_code=status)
        if status == UNAUTHORIZED_STATUS:
            raise AuthenticationError(f"HTTP {status} from {self.api_url}", status_code=status)
        if not 200 <= status < 300:
            logger.warning("Generation request returned HTTP %s", status)
            raise GenerationError(f"HTTP {status} from {self.api_url}", status_code=status)
        return response


def _extract_content(response: httpx.Response) -> str:
    try:
        body = response.json()
        content = body["choices"][0]["message"]["content"]
    except (ValueError, KeyError, IndexError, TypeError) as exc:
        raise MalformedResponseError(f"Unexpected completion body: {exc}") from exc
    if not isinstance(content, str):
        raise MalformedResponseError("Completion has no text content")
    return content.strip()
