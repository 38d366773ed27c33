"""Client interface and shared helpers for gateway access."""

from __future__ import annotations

import json
from typing import Any, Mapping, Protocol, Sequence, runtime_checkable

from giftideas.llm.config import GatewayConfig, RetryConfig, merge_model_params
from giftideas.llm.errors import ErrorKind, GatewayError
from giftideas.llm.types import (
    ALLOWED_ROLES,
    ChatMessage,
    ChatOptions,
    ChatResponse,
    ChatStructuredOptions,
    ChatStructuredResponse,
    JsonSchemaFormat,
    MessageLike,
    ResponseFormatLike,
    TokenUsage,
)


@runtime_checkable
class ChatClient(Protocol):
    async def chat(self, options: ChatOptions) -> ChatResponse:
        """Execute a single chat completion."""

    async def chat_structured(self, options: ChatStructuredOptions) -> ChatStructuredResponse:
        """Execute a chat completion whose reply must be a JSON object."""

    def with_overrides(self, **overrides: Any) -> "ChatClient":
        """Return a new client with ``overrides`` merged over the current config."""

    def describe_config(self) -> dict[str, Any]:
        """Return the effective config with secrets redacted."""

    async def aclose(self) -> None:
        """Release any underlying client resources."""


def create_client(mode: str, **kwargs: Any) -> ChatClient:
    if mode == "mock":
        from giftideas.llm.mock import MOCK_BASE_URL, MockGateway
        from giftideas.llm.openrouter import OpenRouterClient

        gateway = kwargs.pop("gateway", None) or MockGateway()
        kwargs.setdefault("api_key", "mock-key")
        kwargs.setdefault("base_url", MOCK_BASE_URL)
        return OpenRouterClient(transport=gateway.transport(), **kwargs)
    if mode == "openrouter":
        from giftideas.llm.openrouter import OpenRouterClient

        return OpenRouterClient(**kwargs)
    raise ValueError(f"Unsupported LLM mode: {mode}")


def _invalid(message: str) -> GatewayError:
    return GatewayError(ErrorKind.INVALID_INPUT, message)


def normalize_message(message: MessageLike, index: int) -> dict[str, str]:
    if isinstance(message, ChatMessage):
        role, content = message.role, message.content
    elif isinstance(message, Mapping):
        role, content = message.get("role"), message.get("content")
    else:
        raise _invalid(f"Invalid message at index {index}: expected a role/content mapping")

    if role not in ALLOWED_ROLES:
        raise _invalid(f"Invalid role at message {index}: must be 'system', 'user', or 'assistant'")
    if not isinstance(content, str) or not content.strip():
        raise _invalid(f"Invalid content at message {index}: must be a non-empty string")
    return {"role": role, "content": content}


def validate_messages(messages: Sequence[MessageLike] | None) -> list[dict[str, str]]:
    if not messages or isinstance(messages, (str, bytes, Mapping)):
        raise _invalid("Messages list is required and must not be empty")
    return [normalize_message(message, index) for index, message in enumerate(messages)]


def validate_response_format(response_format: ResponseFormatLike | None) -> dict[str, Any]:
    if response_format is None:
        raise _invalid("response_format is required")
    if isinstance(response_format, JsonSchemaFormat):
        data = response_format.to_dict()
    elif isinstance(response_format, Mapping):
        data = dict(response_format)
    else:
        raise _invalid("response_format must be a mapping or JsonSchemaFormat")

    if data.get("type") != "json_schema":
        raise _invalid("response_format.type must be 'json_schema'")
    json_schema = data.get("json_schema")
    if not isinstance(json_schema, Mapping):
        raise _invalid("response_format.json_schema is required")
    name = json_schema.get("name")
    if not isinstance(name, str) or not name.strip():
        raise _invalid("response_format.json_schema.name is required and must be a non-empty string")
    if not isinstance(json_schema.get("schema"), Mapping):
        raise _invalid("response_format.json_schema.schema is required")
    return data


def build_request_body(
    options: ChatOptions,
    config: GatewayConfig,
    *,
    require_response_format: bool = False,
) -> dict[str, Any]:
    messages = validate_messages(options.messages)
    response_format = getattr(options, "response_format", None)
    if require_response_format or response_format is not None:
        response_format = validate_response_format(response_format)

    body: dict[str, Any] = {
        "model": options.model or config.default_model,
        "messages": messages,
    }
    body.update(merge_model_params(config.default_params, options.params).to_dict())
    if response_format is not None:
        body["response_format"] = response_format
    return body


def parse_chat_response(payload: Any, requested_model: str) -> ChatResponse:
    if not isinstance(payload, Mapping):
        raise GatewayError(ErrorKind.PROVIDER_ERROR, "Gateway response is not a JSON object")
    choices = payload.get("choices")
    if not isinstance(choices, list) or not choices:
        raise GatewayError(ErrorKind.PROVIDER_ERROR, "Gateway response has no choices")

    first = choices[0] if isinstance(choices[0], Mapping) else {}
    message = first.get("message")
    content = message.get("content") if isinstance(message, Mapping) else None
    if not isinstance(content, str) or not content:
        raise GatewayError(ErrorKind.PROVIDER_ERROR, "Gateway response choice has no message content")

    usage = payload.get("usage")
    return ChatResponse(
        content=content,
        model=str(payload.get("model") or requested_model),
        usage=TokenUsage.from_payload(usage if isinstance(usage, Mapping) else None),
    )


def parse_structured(content: str) -> dict[str, Any]:
    try:
        parsed = json.loads(content)
    except json.JSONDecodeError as exc:
        raise GatewayError(
            ErrorKind.VALIDATION,
            f"Failed to parse structured response as JSON: {exc}",
        ) from exc
    if not isinstance(parsed, dict):
        raise GatewayError(ErrorKind.VALIDATION, "Structured response is not a valid JSON object")
    return parsed


def backoff_delay_ms(attempt: int, retry: RetryConfig) -> float:
    return retry.base_delay_ms * retry.factor**attempt


def retry_delay_ms(error: GatewayError, attempt: int, retry: RetryConfig) -> float | None:
    """Return how long to wait before retrying ``error``, or None if it is terminal."""
    if error.kind is ErrorKind.RATE_LIMIT:
        return error.retry_after_ms or backoff_delay_ms(attempt, retry)
    if error.kind is ErrorKind.PROVIDER_ERROR:
        if error.status_code is not None and error.status_code >= 500:
            return backoff_delay_ms(attempt, retry)
        return None
    if error.kind in (ErrorKind.TIMEOUT, ErrorKind.NETWORK):
        return backoff_delay_ms(attempt, retry)
    return None
