"""Gift idea generation on top of the gateway client."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
import logging
from typing import Any, Mapping

from giftideas.llm.client import ChatClient
from giftideas.llm.errors import ErrorKind, GatewayError
from giftideas.llm.types import ChatMessage, ChatStructuredOptions, JsonSchemaFormat, TokenUsage
from giftideas.validation import (
    ValidationIssue,
    ValidationResult,
    optional_int,
    optional_non_negative_number,
    optional_positive_int,
    optional_text,
)

logger = logging.getLogger(__name__)

MAX_TEXT_LENGTH = 1000
MIN_AGE = 1
MAX_AGE = 500
DEFAULT_SUGGESTION_COUNT = 5
MAX_SUGGESTION_COUNT = 10

SUGGESTIONS_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "suggestions": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "content": {
                        "type": "string",
                        "description": "Gift name followed by a one-sentence reason it fits.",
                    }
                },
                "required": ["content"],
                "additionalProperties": False,
            },
        }
    },
    "required": ["suggestions"],
    "additionalProperties": False,
}

SUGGESTIONS_RESPONSE_FORMAT = JsonSchemaFormat(
    name="gift_idea_suggestions",
    schema=SUGGESTIONS_SCHEMA,
    strict=True,
)

SYSTEM_PROMPT = (
    "You are a thoughtful gift advisor. Suggest concrete, purchasable or bookable gifts "
    "that match the recipient details you are given.\n"
    "Each suggestion is a short gift name, then ' - ', then one sentence on why it fits.\n"
    "Respect the budget when one is given. Do not repeat ideas.\n"
    'Reply with JSON only: {"suggestions": [{"content": "..."}]}.'
)


@dataclass(frozen=True)
class GenerateIdeaCommand:
    age: int | None = None
    interests: str | None = None
    person_description: str | None = None
    budget_min: float | None = None
    budget_max: float | None = None
    relation_id: int | None = None
    occasion_id: int | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "age": self.age,
            "interests": self.interests,
            "person_description": self.person_description,
            "budget_min": self.budget_min,
            "budget_max": self.budget_max,
            "relation_id": self.relation_id,
            "occasion_id": self.occasion_id,
        }


@dataclass(frozen=True)
class IdeaSuggestion:
    content: str


@dataclass(frozen=True)
class GeneratedIdeas:
    suggestions: list[IdeaSuggestion]
    model: str
    generated_at: str
    usage: TokenUsage = field(default_factory=TokenUsage)

    def to_dict(self) -> dict[str, Any]:
        return {
            "suggestions": [{"content": item.content} for item in self.suggestions],
            "metadata": {
                "model": self.model,
                "generated_at": self.generated_at,
                "usage": self.usage.to_dict(),
            },
        }


def validate_generate_request(data: Any) -> ValidationResult[GenerateIdeaCommand]:
    if not isinstance(data, Mapping):
        return ValidationResult(None, [ValidationIssue("body", "Must be a JSON object.")])

    errors: list[ValidationIssue] = []
    age = optional_int(data.get("age"), "age", errors, minimum=MIN_AGE, maximum=MAX_AGE)
    interests = optional_text(data.get("interests"), "interests", errors, max_length=MAX_TEXT_LENGTH)
    description = optional_text(
        data.get("person_description"),
        "person_description",
        errors,
        max_length=MAX_TEXT_LENGTH,
    )
    budget_min = optional_non_negative_number(data.get("budget_min"), "budget_min", errors)
    budget_max = optional_non_negative_number(data.get("budget_max"), "budget_max", errors)
    relation_id = optional_positive_int(data.get("relation_id"), "relation_id", errors)
    occasion_id = optional_positive_int(data.get("occasion_id"), "occasion_id", errors)

    if budget_min is not None and budget_max is not None and budget_max < budget_min:
        errors.append(
            ValidationIssue(
                "budget_max",
                "Maximum budget must be greater than or equal to minimum budget.",
            )
        )

    if errors:
        return ValidationResult(None, errors)
    return ValidationResult(
        GenerateIdeaCommand(
            age=age,
            interests=interests,
            person_description=description,
            budget_min=budget_min,
            budget_max=budget_max,
            relation_id=relation_id,
            occasion_id=occasion_id,
        )
    )


def _format_amount(value: float) -> str:
    if float(value).is_integer():
        return str(int(value))
    return f"{value:.2f}"


def _budget_line(command: GenerateIdeaCommand) -> str | None:
    low, high = command.budget_min, command.budget_max
    if low is not None and high is not None:
        return f"between {_format_amount(low)} and {_format_amount(high)}"
    if low is not None:
        return f"at least {_format_amount(low)}"
    if high is not None:
        return f"up to {_format_amount(high)}"
    return None


def build_generation_messages(
    command: GenerateIdeaCommand,
    *,
    relation_name: str | None = None,
    occasion_name: str | None = None,
    count: int = DEFAULT_SUGGESTION_COUNT,
) -> list[ChatMessage]:
    hints: list[tuple[str, str | None]] = [
        ("Age", str(command.age) if command.age is not None else None),
        ("Relation to me", relation_name),
        ("Occasion", occasion_name),
        ("Interests", command.interests),
        ("About them", command.person_description),
        ("Budget", _budget_line(command)),
    ]
    lines = [f"Suggest {count} gift ideas for the person described below."]
    present = [(label, value) for label, value in hints if value]
    if present:
        lines.extend(f"- {label}: {value}" for label, value in present)
    else:
        lines.append("No details were given; suggest broadly appealing gifts.")
    return [
        ChatMessage(role="system", content=SYSTEM_PROMPT),
        ChatMessage(role="user", content="\n".join(lines)),
    ]


def _extract_suggestions(data: Mapping[str, Any]) -> list[IdeaSuggestion]:
    raw = data.get("suggestions")
    if not isinstance(raw, list):
        raise GatewayError(ErrorKind.VALIDATION, "Structured response is missing a 'suggestions' list")
    suggestions: list[IdeaSuggestion] = []
    for index, item in enumerate(raw):
        content = item.get("content") if isinstance(item, Mapping) else None
        if not isinstance(content, str) or not content.strip():
            raise GatewayError(ErrorKind.VALIDATION, f"Suggestion {index} has no content")
        suggestions.append(IdeaSuggestion(content=content.strip()))
    return suggestions


async def generate_gift_ideas(
    client: ChatClient,
    command: GenerateIdeaCommand,
    *,
    relation_name: str | None = None,
    occasion_name: str | None = None,
    count: int = DEFAULT_SUGGESTION_COUNT,
    model: str | None = None,
) -> GeneratedIdeas:
    if not 1 <= count <= MAX_SUGGESTION_COUNT:
        raise ValueError(f"count must be between 1 and {MAX_SUGGESTION_COUNT}")

    messages = build_generation_messages(
        command,
        relation_name=relation_name,
        occasion_name=occasion_name,
        count=count,
    )
    response = await client.chat_structured(
        ChatStructuredOptions(
            messages=list(messages),
            model=model,
            response_format=SUGGESTIONS_RESPONSE_FORMAT,
        )
    )
    suggestions = _extract_suggestions(response.structured_data)[:count]
    logger.info("Generated %d gift suggestions with %s", len(suggestions), response.model)
    return GeneratedIdeas(
        suggestions=suggestions,
        model=response.model,
        generated_at=datetime.now(timezone.utc).isoformat(),
        usage=response.usage,
    )
