"""Core request/response types for the gateway client."""

from __future__ import annotations

from dataclasses import dataclass, field
import math
from typing import Any, Mapping, Union

ALLOWED_ROLES = ("system", "user", "assistant")


@dataclass(frozen=True)
class ChatMessage:
    role: str
    content: str

    def to_dict(self) -> dict[str, str]:
        return {"role": self.role, "content": self.content}


@dataclass(frozen=True)
class ModelParams:
    temperature: float | None = None
    top_p: float | None = None
    max_tokens: int | None = None
    frequency_penalty: float | None = None
    presence_penalty: float | None = None

    def to_dict(self) -> dict[str, Any]:
        """Return only the parameters that are set."""
        values = {
            "temperature": self.temperature,
            "top_p": self.top_p,
            "max_tokens": self.max_tokens,
            "frequency_penalty": self.frequency_penalty,
            "presence_penalty": self.presence_penalty,
        }
        return {key: value for key, value in values.items() if value is not None}


@dataclass(frozen=True)
class JsonSchemaFormat:
    name: str
    schema: dict[str, Any]
    strict: bool = True
    type: str = "json_schema"

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type,
            "json_schema": {
                "name": self.name,
                "strict": self.strict,
                "schema": self.schema,
            },
        }


MessageLike = Union[ChatMessage, Mapping[str, Any]]
ParamsLike = Union[ModelParams, Mapping[str, Any]]
ResponseFormatLike = Union[JsonSchemaFormat, Mapping[str, Any]]


@dataclass
class ChatOptions:
    messages: list[MessageLike]
    model: str | None = None
    params: ParamsLike | None = None


@dataclass
class ChatStructuredOptions(ChatOptions):
    response_format: ResponseFormatLike | None = None


def _token_count(value: Any) -> int:
    if isinstance(value, bool):
        return 0
    if isinstance(value, (int, float)):
        return int(value) if math.isfinite(value) else 0
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return 0
    return 0


@dataclass(frozen=True)
class TokenUsage:
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any] | None) -> "TokenUsage":
        """Read usage counters; missing or non-numeric counters count as 0."""
        if not payload:
            return cls()
        return cls(
            prompt_tokens=_token_count(payload.get("prompt_tokens")),
            completion_tokens=_token_count(payload.get("completion_tokens")),
            total_tokens=_token_count(payload.get("total_tokens")),
        )

    def to_dict(self) -> dict[str, int]:
        return {
            "prompt_tokens": self.prompt_tokens,
            "completion_tokens": self.completion_tokens,
            "total_tokens": self.total_tokens,
        }


@dataclass
class ChatResponse:
    content: str
    model: str
    usage: TokenUsage = field(default_factory=TokenUsage)


@dataclass
class ChatStructuredResponse(ChatResponse):
    structured_data: dict[str, Any] = field(default_factory=dict)
