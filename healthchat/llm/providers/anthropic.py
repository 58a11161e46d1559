"""
Anthropic Messages API provider.

Speaks the ``POST /v1/messages`` wire protocol directly.

Dependencies: ``httpx`` (async HTTP client).  No ``anthropic`` SDK needed.
"""

from __future__ import annotations

import logging
from typing import Sequence

import httpx

from healthchat.errors import TransportError
from healthchat.llm import codec
from healthchat.llm.providers.base import Provider
from healthchat.llm.types import Message, ModelResponse

logger = logging.getLogger(__name__)

DEFAULT_URL = "https://api.anthropic.com/v1"
DEFAULT_MODEL = "claude-3-opus-20240229"
DEFAULT_VERSION = "2023-06-01"


class AnthropicProvider(Provider):
    """
    Non-streaming provider for the Anthropic Messages API.

    Parameters
    ----------
    api_key:
        Value sent in the ``x-api-key`` header on every request.
    url:
        Base URL of the API, e.g. ``"https://api.anthropic.com/v1"``.
    model:
        Model identifier sent in the ``model`` field.
    version:
        Value of the ``anthropic-version`` header.
    max_output:
        Sent as ``max_tokens``.
    timeout:
        HTTP request timeout in seconds.
    max_retries:
        Number of automatic retries on transient failures (network errors,
        429, 5xx).  Zero surfaces the first failure.
    client:
        Optional pre-built ``httpx.AsyncClient``.  When omitted a client is
        opened per request.
    """

    def __init__(
        self,
        api_key: str,
        url: str = DEFAULT_URL,
        model: str = DEFAULT_MODEL,
        version: str = DEFAULT_VERSION,
        max_output: int = 1024,
        timeout: float = 120.0,
        max_retries: int = 0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._api_key = api_key
        self._url = url.rstrip("/")
        self._model = model
        self._version = version
        self._max_output = max_output
        self._timeout = timeout
        self._max_retries = max_retries
        self._client = client

    # ------------------------------------------------------------------
    # Provider interface
    # ------------------------------------------------------------------

    @property
    def name(self) -> str:
        return "anthropic"

    @property
    def model(self) -> str:
        return self._model

    @property
    def max_output_tokens(self) -> int:
        return self._max_output

    async def send(
        self,
        messages: Sequence[Message],
        tools: list[dict] | None = None,
        system: str = "",
    ) -> ModelResponse:
        body = self._build_body(messages, tools, system)
        headers = self._build_headers()
        data = await self._post(body, headers)
        return self._parse_response(data)

    # ------------------------------------------------------------------
    # Request building
    # ------------------------------------------------------------------

    def _build_headers(self) -> dict[str, str]:
        return {
            "content-type": "application/json",
            "x-api-key": self._api_key,
            "anthropic-version": self._version,
        }

    def _build_body(
        self,
        messages: Sequence[Message],
        tools: list[dict] | None,
        system: str,
    ) -> dict:
        wire_messages = [codec.encode_message(m) for m in messages]

        body: dict = {
            "model": self._model,
            "messages": wire_messages,
            "max_tokens": self._max_output,
        }
        if system:
            body["system"] = system
        if tools:
            body["tools"] = tools
        logger.info(
            "REQUEST: model=%s tools=%d messages=%d api_key=%s...",
            self._model,
            len(tools) if tools else 0,
            len(wire_messages),
            self._api_key[:12] if self._api_key else "(none)",
        )
        return body

    # ------------------------------------------------------------------
    # HTTP
    # ------------------------------------------------------------------

    async def _post(self, body: dict, headers: dict[str, str]) -> dict:
        url = f"{self._url}/messages"

        last_error: TransportError | None = None
        for attempt in range(1 + self._max_retries):
            try:
                if self._client is not None:
                    resp = await self._client.post(
                        url, json=body, headers=headers, timeout=self._timeout
                    )
                else:
                    async with httpx.AsyncClient(timeout=self._timeout) as client:
                        resp = await client.post(url, json=body, headers=headers)
            except httpx.HTTPError as exc:
                last_error = TransportError(f"Request to {url} failed: {exc}", cause=exc)
                logger.warning("Transport failure (attempt %d): %s", attempt + 1, exc)
                continue

            if resp.status_code == 429 or resp.status_code >= 500:
                last_error = TransportError(
                    f"Model service error: {_error_detail(resp)}",
                    status=resp.status_code,
                )
                logger.warning(
                    "HTTP %d from model service (attempt %d)",
                    resp.status_code,
                    attempt + 1,
                )
                continue

            if not resp.is_success:
                raise TransportError(
                    f"Model request rejected: {_error_detail(resp)}",
                    status=resp.status_code,
                )

            try:
                data = resp.json()
            except ValueError as exc:
                raise TransportError(
                    "Malformed response body: not JSON",
                    status=resp.status_code,
                    cause=exc,
                ) from exc
            if not isinstance(data, dict):
                raise TransportError(
                    "Malformed response body: expected an object",
                    status=resp.status_code,
                )
            return data

        assert last_error is not None
        raise last_error

    def _parse_response(self, data: dict) -> ModelResponse:
        content = data.get("content")
        if not isinstance(content, list):
            raise TransportError("Malformed response body: 'content' is not a list")
        usage = data.get("usage")
        return ModelResponse(
            content=codec.decode_content(content),
            stop_reason=data.get("stop_reason"),
            model=data.get("model"),
            usage=usage if isinstance(usage, dict) else {},
        )


def _error_detail(resp: httpx.Response) -> str:
    """Best-effort error message from an API error body."""
    try:
        data = resp.json()
    except ValueError:
        return resp.text[:200] or resp.reason_phrase
    error = data.get("error") if isinstance(data, dict) else None
    if isinstance(error, dict) and error.get("message"):
        return str(error["message"])
    return resp.reason_phrase or str(resp.status_code)
