"""Idea list query: parameter validation, filtering, sorting and pagination."""

from __future__ import annotations

from dataclasses import dataclass
import math
from typing import Any, Iterable, Mapping

from giftideas.validation import (
    ValidationIssue,
    ValidationResult,
    choice,
    coerce_number,
    optional_int,
    optional_positive_int,
)

IDEA_SOURCES = ("manual", "ai", "edited-ai")
SORT_FIELDS = ("created_at", "updated_at", "name")
SORT_ORDERS = ("asc", "desc")
DEFAULT_PAGE = 1
DEFAULT_LIMIT = 20
MAX_LIMIT = 100


@dataclass(frozen=True)
class IdeaRecord:
    id: int
    name: str
    content: str
    source: str
    created_at: str
    updated_at: str
    age: int | None = None
    interests: str | None = None
    person_description: str | None = None
    budget_min: float | None = None
    budget_max: float | None = None
    relation_id: int | None = None
    occasion_id: int | None = None
    relation_name: str | None = None
    occasion_name: str | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "IdeaRecord":
        return cls(
            id=int(data["id"]),
            name=str(data["name"]),
            content=str(data["content"]),
            source=str(data["source"]),
            created_at=str(data["created_at"]),
            updated_at=str(data["updated_at"]),
            age=data.get("age"),
            interests=data.get("interests"),
            person_description=data.get("person_description"),
            budget_min=data.get("budget_min"),
            budget_max=data.get("budget_max"),
            relation_id=data.get("relation_id"),
            occasion_id=data.get("occasion_id"),
            relation_name=data.get("relation_name"),
            occasion_name=data.get("occasion_name"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "content": self.content,
            "age": self.age,
            "interests": self.interests,
            "person_description": self.person_description,
            "budget_min": self.budget_min,
            "budget_max": self.budget_max,
            "relation_id": self.relation_id,
            "occasion_id": self.occasion_id,
            "source": self.source,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
            "relation_name": self.relation_name,
            "occasion_name": self.occasion_name,
        }


@dataclass(frozen=True)
class IdeasQuery:
    page: int = DEFAULT_PAGE
    limit: int = DEFAULT_LIMIT
    sort: str = "created_at"
    order: str = "desc"
    relation_id: int | None = None
    occasion_id: int | None = None
    source: str | None = None

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


@dataclass(frozen=True)
class Pagination:
    page: int
    limit: int
    total: int
    total_pages: int

    def to_dict(self) -> dict[str, int]:
        return {
            "page": self.page,
            "limit": self.limit,
            "total": self.total,
            "total_pages": self.total_pages,
        }


@dataclass(frozen=True)
class PaginatedIdeas:
    data: list[IdeaRecord]
    pagination: Pagination

    def to_dict(self) -> dict[str, Any]:
        return {
            "data": [record.to_dict() for record in self.data],
            "pagination": self.pagination.to_dict(),
        }


def parse_ideas_query(params: Mapping[str, Any]) -> ValidationResult[IdeasQuery]:
    """Validate list query parameters, coercing query-string numbers."""
    errors: list[ValidationIssue] = []
    values = {key: coerce_number(value) for key, value in params.items()}

    page = optional_int(values.get("page"), "page", errors, minimum=1)
    limit = optional_int(values.get("limit"), "limit", errors, minimum=1, maximum=MAX_LIMIT)
    sort = choice(values.get("sort"), SORT_FIELDS, "sort", errors, default="created_at")
    order = choice(values.get("order"), SORT_ORDERS, "order", errors, default="desc")
    relation_id = optional_positive_int(values.get("relation_id"), "relation_id", errors)
    occasion_id = optional_positive_int(values.get("occasion_id"), "occasion_id", errors)
    source = choice(values.get("source"), IDEA_SOURCES, "source", errors)

    if errors:
        return ValidationResult(None, errors)
    return ValidationResult(
        IdeasQuery(
            page=DEFAULT_PAGE if page is None else page,
            limit=DEFAULT_LIMIT if limit is None else limit,
            sort=sort,
            order=order,
            relation_id=relation_id,
            occasion_id=occasion_id,
            source=source,
        )
    )


def _matches(record: IdeaRecord, query: IdeasQuery) -> bool:
    if query.relation_id is not None and record.relation_id != query.relation_id:
        return False
    if query.occasion_id is not None and record.occasion_id != query.occasion_id:
        return False
    if query.source is not None and record.source != query.source:
        return False
    return True


def _sort_key(record: IdeaRecord, field_name: str) -> str:
    if field_name == "name":
        return record.name.casefold()
    return getattr(record, field_name) or ""


def apply_ideas_query(records: Iterable[IdeaRecord], query: IdeasQuery) -> PaginatedIdeas:
    filtered = [record for record in records if _matches(record, query)]
    ordered = sorted(
        filtered,
        key=lambda record: _sort_key(record, query.sort),
        reverse=query.order == "desc",
    )
    page_items = ordered[query.offset : query.offset + query.limit]
    total = len(filtered)
    return PaginatedIdeas(
        data=page_items,
        pagination=Pagination(
            page=query.page,
            limit=query.limit,
            total=total,
            total_pages=math.ceil(total / query.limit),
        ),
    )
