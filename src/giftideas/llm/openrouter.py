"""OpenRouter-compatible gateway client implementation."""

from __future__ import annotations

import asyncio
import logging
import math
from typing import Any, Awaitable, Callable, Mapping

import httpx

from giftideas.llm.client import (
    build_request_body,
    parse_chat_response,
    parse_structured,
    retry_delay_ms,
)
from giftideas.llm.config import (
    GatewayConfig,
    load_gateway_config,
    merge_gateway_config,
    validate_gateway_config,
)
from giftideas.llm.errors import ErrorKind, GatewayError
from giftideas.llm.types import (
    ChatOptions,
    ChatResponse,
    ChatStructuredOptions,
    ChatStructuredResponse,
)

logger = logging.getLogger(__name__)

CHAT_COMPLETIONS_PATH = "/chat/completions"

Sleep = Callable[[float], Awaitable[Any]]


class OpenRouterClient:
    """Chat-completion client for an OpenAI-compatible gateway.

    The config is frozen for the lifetime of the instance; use
    :meth:`with_overrides` to derive a client with different settings. Derived
    clients share the parent's HTTP connection pool and leave closing it to the
    parent.
    """

    def __init__(
        self,
        *,
        config: GatewayConfig | None = None,
        api_key: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        http_client: httpx.AsyncClient | None = None,
        sleep: Sleep | None = None,
        **overrides: Any,
    ) -> None:
        if config is None:
            config = GatewayConfig(api_key=api_key or "")
        elif api_key is not None:
            overrides["api_key"] = api_key
        if overrides:
            config = merge_gateway_config(config, overrides)
        validate_gateway_config(config)

        self._config = config
        self._sleep = sleep or asyncio.sleep
        if http_client is None:
            self._client = httpx.AsyncClient(transport=transport)
            self._owns_client = True
        else:
            self._client = http_client
            self._owns_client = False

    @property
    def config(self) -> GatewayConfig:
        return self._config

    async def chat(self, options: ChatOptions) -> ChatResponse:
        body = build_request_body(options, self._config)
        payload = await self._request(body)
        return parse_chat_response(payload, body["model"])

    async def chat_structured(self, options: ChatStructuredOptions) -> ChatStructuredResponse:
        body = build_request_body(options, self._config, require_response_format=True)
        payload = await self._request(body)
        response = parse_chat_response(payload, body["model"])
        return ChatStructuredResponse(
            content=response.content,
            model=response.model,
            usage=response.usage,
            structured_data=parse_structured(response.content),
        )

    def with_overrides(self, **overrides: Any) -> "OpenRouterClient":
        return OpenRouterClient(
            config=merge_gateway_config(self._config, overrides),
            http_client=self._client,
            sleep=self._sleep,
        )

    def describe_config(self) -> dict[str, Any]:
        return self._config.to_dict()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "OpenRouterClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    def _headers(self) -> dict[str, str]:
        return {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self._config.api_key}",
        }

    async def _request(self, body: dict[str, Any]) -> Any:
        url = f"{self._config.base_url.rstrip('/')}{CHAT_COMPLETIONS_PATH}"
        retry = self._config.retry
        for attempt in range(retry.max_attempts):
            try:
                return await self._attempt(url, body)
            except GatewayError as error:
                delay_ms = retry_delay_ms(error, attempt, retry)
                if delay_ms is None or attempt >= retry.max_attempts - 1:
                    raise
                logger.warning(
                    "Gateway call failed (attempt %s/%s): %s; retrying in %.0fms",
                    attempt + 1,
                    retry.max_attempts,
                    error,
                    delay_ms,
                )
                await self._sleep(delay_ms / 1000)
        raise GatewayError(ErrorKind.UNKNOWN, "Request failed after all retries")

    async def _attempt(self, url: str, body: dict[str, Any]) -> Any:
        if self._client.is_closed:
            raise GatewayError(ErrorKind.CONFIGURATION, "HTTP client is closed")
        timeout_ms = self._config.request_timeout_ms
        timeout_s = timeout_ms / 1000
        logger.debug("POST %s model=%s messages=%d", url, body.get("model"), len(body.get("messages", [])))
        try:
            response = await asyncio.wait_for(
                self._client.post(url, json=body, headers=self._headers(), timeout=timeout_s),
                timeout=timeout_s,
            )
        except (asyncio.TimeoutError, httpx.TimeoutException) as exc:
            raise GatewayError(ErrorKind.TIMEOUT, f"Request timeout after {timeout_ms}ms") from exc
        except httpx.RequestError as exc:
            raise GatewayError(ErrorKind.NETWORK, f"Network error: {exc}") from exc

        if not response.is_success:
            raise _error_from_response(response)
        try:
            return response.json()
        except ValueError as exc:
            raise GatewayError(ErrorKind.PROVIDER_ERROR, "Gateway returned a non-JSON response body") from exc


def create_client_from_env(environ: Mapping[str, str] | None = None, **kwargs: Any) -> OpenRouterClient:
    return OpenRouterClient(config=load_gateway_config(environ), **kwargs)


def _error_from_response(response: httpx.Response) -> GatewayError:
    status = response.status_code
    message = _extract_error_message(response)
    if status == 429:
        return GatewayError(
            ErrorKind.RATE_LIMIT,
            message,
            status_code=status,
            retry_after_ms=_parse_retry_after(response.headers.get("Retry-After")),
        )
    if status >= 500:
        return GatewayError(ErrorKind.PROVIDER_ERROR, message, status_code=status)
    return GatewayError(ErrorKind.UNKNOWN, message, status_code=status)


def _extract_error_message(response: httpx.Response) -> str:
    fallback = f"Gateway error: {response.status_code} {response.reason_phrase}".strip()
    try:
        payload = response.json()
    except ValueError:
        return fallback
    if not isinstance(payload, dict):
        return fallback
    error = payload.get("error")
    if isinstance(error, dict) and isinstance(error.get("message"), str) and error["message"]:
        return error["message"]
    return fallback


def _parse_retry_after(value: str | None) -> int | None:
    # Only the delta-seconds form is honoured; HTTP-date values fall back to backoff.
    if not value:
        return None
    try:
        seconds = float(value.strip())
    except ValueError:
        return None
    if not math.isfinite(seconds) or seconds <= 0:
        return None
    return int(seconds * 1000)
