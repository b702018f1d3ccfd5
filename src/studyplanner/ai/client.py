"""Client for an OpenAI-compatible chat-completion endpoint.

The client turns one prompt into one response string. Every failure mode of
the upstream call surfaces as ``TextGenerationError``.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from typing import Any

import httpx
import structlog

logger = structlog.get_logger()

_FENCE = re.compile(r"^```(?:json)?\s*(.*?)\s*```$", re.DOTALL)


class TextGenerationError(Exception):
    """The upstream text generation call failed."""

    def __init__(self, message: str = "generation failed") -> None:
        super().__init__(message)


class MalformedResponseError(TextGenerationError):
    """The upstream response was not the JSON the caller asked for."""


@dataclass(frozen=True)
class GenerationOptions:
    temperature: float = 0.7
    max_tokens: int = 1000
    model: str | None = None


class TextGenerationClient:
    """Sends chat-completion requests with httpx."""

    def __init__(
        self,
        base_url: str,
        api_key: str,
        default_model: str = "gpt-3.5-turbo",
        timeout: float = 60.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.default_model = default_model
        self.timeout = timeout
        self._transport = transport

    async def generate(
        self,
        prompt: str,
        *,
        system: str | None = None,
        options: GenerationOptions | None = None,
    ) -> str:
        """Return the model's reply to ``prompt``.

        Raises:
            TextGenerationError: On transport errors, non-2xx responses, or a
                response without message content.
        """
        options = options or GenerationOptions()
        messages: list[dict[str, str]] = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": prompt})
        body = {
            "model": options.model or self.default_model,
            "messages": messages,
            "temperature": options.temperature,
            "max_tokens": options.max_tokens,
        }

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(
                    f"{self.base_url}/chat/completions",
                    headers={"Authorization": f"Bearer {self.api_key}"},
                    json=body,
                )
                response.raise_for_status()
                payload = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("text_generation_failed", model=body["model"], error=str(e))
            raise TextGenerationError from e

        try:
            content = payload["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as e:
            logger.warning("text_generation_empty_response", model=body["model"])
            raise TextGenerationError from e
        if not isinstance(content, str) or not content.strip():
            raise TextGenerationError
        return content


def parse_json_response(text: str) -> Any:  # noqa: ANN401
    """Parse a JSON reply, tolerating a surrounding markdown code fence.

    Raises:
        MalformedResponseError: If the text is not valid JSON.
    """
    stripped = text.strip()
    match = _FENCE.match(stripped)
    if match:
        stripped = match.group(1)
    try:
        return json.loads(stripped)
    except json.JSONDecodeError as e:
        msg = "response was not valid JSON"
        raise MalformedResponseError(msg) from e
