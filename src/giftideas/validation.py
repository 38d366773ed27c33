"""Input validation helpers for idea hints and list queries."""

from __future__ import annotations

from dataclasses import dataclass, field
import math
from typing import Any, Generic, Iterable, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class ValidationIssue:
    path: str
    message: str

    def __str__(self) -> str:
        return f"{self.path}: {self.message}"


@dataclass(frozen=True)
class ValidationResult(Generic[T]):
    value: T | None
    errors: list[ValidationIssue] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


def _is_int(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return True
    return isinstance(value, float) and value.is_integer()


def coerce_number(value: Any) -> Any:
    """Turn query-string numbers into int/float; leave everything else untouched."""
    if not isinstance(value, str):
        return value
    text = value.strip()
    if not text:
        return value
    try:
        return int(text)
    except ValueError:
        pass
    try:
        return float(text)
    except ValueError:
        return value


def optional_int(
    value: Any,
    path: str,
    errors: list[ValidationIssue],
    *,
    minimum: int | None = None,
    maximum: int | None = None,
) -> int | None:
    if value is None:
        return None
    if not _is_int(value):
        errors.append(ValidationIssue(path, "Must be an integer."))
        return None
    number = int(value)
    if minimum is not None and number < minimum:
        errors.append(ValidationIssue(path, f"Must be at least {minimum}."))
        return None
    if maximum is not None and number > maximum:
        errors.append(ValidationIssue(path, f"Cannot exceed {maximum}."))
        return None
    return number


def optional_positive_int(value: Any, path: str, errors: list[ValidationIssue]) -> int | None:
    if value is None:
        return None
    if not _is_int(value) or int(value) < 1:
        errors.append(ValidationIssue(path, "Must be a positive integer."))
        return None
    return int(value)


def optional_non_negative_number(value: Any, path: str, errors: list[ValidationIssue]) -> float | int | None:
    if value is None:
        return None
    if not _is_number(value) or value < 0:
        errors.append(ValidationIssue(path, "Must be a non-negative number."))
        return None
    return value


def optional_text(
    value: Any,
    path: str,
    errors: list[ValidationIssue],
    *,
    max_length: int,
) -> str | None:
    """Trim text; blank strings collapse to None."""
    if value is None:
        return None
    if not isinstance(value, str):
        errors.append(ValidationIssue(path, "Must be a string."))
        return None
    text = value.strip()
    if len(text) > max_length:
        errors.append(ValidationIssue(path, f"Cannot exceed {max_length} characters."))
        return None
    return text or None


def choice(
    value: Any,
    allowed: Iterable[str],
    path: str,
    errors: list[ValidationIssue],
    *,
    default: str | None = None,
) -> str | None:
    options = tuple(allowed)
    if value is None:
        return default
    if value not in options:
        errors.append(ValidationIssue(path, f"Must be one of: {', '.join(options)}."))
        return default
    return value
