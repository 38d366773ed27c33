"""Gateway configuration models, override merging and env resolution."""

from __future__ import annotations

from dataclasses import dataclass, field
import math
import os
from typing import Any, Callable, Mapping

from giftideas.llm.errors import ErrorKind, GatewayError
from giftideas.llm.types import ModelParams

DEFAULT_BASE_URL = "https://openrouter.ai/api/v1"
DEFAULT_MODEL = "openai/gpt-4o-mini"
DEFAULT_REQUEST_TIMEOUT_MS = 30000
REDACTED = "***REDACTED***"

RETRY_FIELDS = ("max_attempts", "base_delay_ms", "factor")
PARAM_FIELDS = ("temperature", "top_p", "max_tokens", "frequency_penalty", "presence_penalty")
CONFIG_FIELDS = ("api_key", "base_url", "default_model", "default_params", "request_timeout_ms", "retry")


@dataclass(frozen=True)
class RetryConfig:
    max_attempts: int = 3
    base_delay_ms: int = 1000
    factor: float = 2

    def to_dict(self) -> dict[str, Any]:
        return {
            "max_attempts": self.max_attempts,
            "base_delay_ms": self.base_delay_ms,
            "factor": self.factor,
        }


def default_model_params() -> ModelParams:
    return ModelParams(temperature=0.7, max_tokens=10000)


@dataclass(frozen=True)
class GatewayConfig:
    api_key: str = field(repr=False)
    base_url: str = DEFAULT_BASE_URL
    default_model: str = DEFAULT_MODEL
    default_params: ModelParams = field(default_factory=default_model_params)
    request_timeout_ms: int = DEFAULT_REQUEST_TIMEOUT_MS
    retry: RetryConfig = field(default_factory=RetryConfig)

    def to_dict(self) -> dict[str, Any]:
        """Serialize the config with the API key redacted."""
        return {
            "api_key": REDACTED,
            "base_url": self.base_url,
            "default_model": self.default_model,
            "default_params": self.default_params.to_dict(),
            "request_timeout_ms": self.request_timeout_ms,
            "retry": self.retry.to_dict(),
        }


def _pick(overrides: Mapping[str, Any], key: str, fallback: Any) -> Any:
    value = overrides.get(key)
    return fallback if value is None else value


def _reject_unknown(overrides: Mapping[str, Any], allowed: tuple[str, ...], scope: str) -> None:
    unknown = sorted(set(overrides) - set(allowed))
    if unknown:
        raise GatewayError(
            ErrorKind.CONFIGURATION,
            f"Unknown {scope} override(s): {', '.join(unknown)}",
        )


def merge_retry_config(
    base: RetryConfig,
    overrides: RetryConfig | Mapping[str, Any] | None,
) -> RetryConfig:
    if overrides is None:
        return base
    if isinstance(overrides, RetryConfig):
        overrides = overrides.to_dict()
    _reject_unknown(overrides, RETRY_FIELDS, "retry")
    return RetryConfig(
        max_attempts=_pick(overrides, "max_attempts", base.max_attempts),
        base_delay_ms=_pick(overrides, "base_delay_ms", base.base_delay_ms),
        factor=_pick(overrides, "factor", base.factor),
    )


def merge_model_params(
    base: ModelParams,
    overrides: ModelParams | Mapping[str, Any] | None,
) -> ModelParams:
    if overrides is None:
        return base
    if isinstance(overrides, ModelParams):
        overrides = overrides.to_dict()
    _reject_unknown(overrides, PARAM_FIELDS, "params")
    return ModelParams(
        temperature=_pick(overrides, "temperature", base.temperature),
        top_p=_pick(overrides, "top_p", base.top_p),
        max_tokens=_pick(overrides, "max_tokens", base.max_tokens),
        frequency_penalty=_pick(overrides, "frequency_penalty", base.frequency_penalty),
        presence_penalty=_pick(overrides, "presence_penalty", base.presence_penalty),
    )


def merge_gateway_config(base: GatewayConfig, overrides: Mapping[str, Any]) -> GatewayConfig:
    """Apply overrides; nested groups merge per field instead of being replaced."""
    _reject_unknown(overrides, CONFIG_FIELDS, "config")
    return GatewayConfig(
        api_key=_pick(overrides, "api_key", base.api_key),
        base_url=_pick(overrides, "base_url", base.base_url),
        default_model=_pick(overrides, "default_model", base.default_model),
        default_params=merge_model_params(base.default_params, overrides.get("default_params")),
        request_timeout_ms=_pick(overrides, "request_timeout_ms", base.request_timeout_ms),
        retry=merge_retry_config(base.retry, overrides.get("retry")),
    )


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


def validate_gateway_config(config: GatewayConfig) -> None:
    if not isinstance(config.api_key, str) or not config.api_key.strip():
        raise GatewayError(
            ErrorKind.CONFIGURATION,
            "Gateway API key is required and must be a non-empty string",
        )
    if not isinstance(config.base_url, str) or not config.base_url.strip():
        raise GatewayError(ErrorKind.CONFIGURATION, "base_url must be a non-empty string")
    if not isinstance(config.default_model, str) or not config.default_model.strip():
        raise GatewayError(ErrorKind.CONFIGURATION, "default_model must be a non-empty string")
    if not _is_number(config.request_timeout_ms) or config.request_timeout_ms <= 0:
        raise GatewayError(ErrorKind.CONFIGURATION, "request_timeout_ms must be a positive number")
    retry = config.retry
    if not _is_number(retry.max_attempts) or not isinstance(retry.max_attempts, int) or retry.max_attempts < 1:
        raise GatewayError(ErrorKind.CONFIGURATION, "retry.max_attempts must be an integer >= 1")
    if not _is_number(retry.base_delay_ms) or retry.base_delay_ms < 0:
        raise GatewayError(ErrorKind.CONFIGURATION, "retry.base_delay_ms must be a number >= 0")
    if not _is_number(retry.factor) or retry.factor <= 0:
        raise GatewayError(ErrorKind.CONFIGURATION, "retry.factor must be a positive number")


def _env_number(
    environ: Mapping[str, str],
    key: str,
    convert: Callable[[str], Any],
) -> Any:
    raw = environ.get(key)
    if raw is None or not raw.strip():
        return None
    try:
        return convert(raw.strip())
    except ValueError as exc:
        raise GatewayError(ErrorKind.CONFIGURATION, f"{key} must be a number, got {raw!r}") from exc


def load_gateway_config(environ: Mapping[str, str] | None = None) -> GatewayConfig:
    """Resolve the gateway config from environment variables."""
    env = os.environ if environ is None else environ
    api_key = env.get("OPENROUTER_API_KEY")
    if not api_key:
        raise GatewayError(
            ErrorKind.CONFIGURATION,
            "OPENROUTER_API_KEY environment variable is not set",
        )
    base = GatewayConfig(api_key=api_key)
    overrides: dict[str, Any] = {
        "base_url": env.get("OPENROUTER_BASE_URL") or None,
        "default_model": env.get("GIFTIDEAS_DEFAULT_MODEL") or None,
        "request_timeout_ms": _env_number(env, "GIFTIDEAS_REQUEST_TIMEOUT_MS", int),
        "retry": {
            "max_attempts": _env_number(env, "GIFTIDEAS_RETRY_MAX_ATTEMPTS", int),
            "base_delay_ms": _env_number(env, "GIFTIDEAS_RETRY_BASE_DELAY_MS", int),
            "factor": _env_number(env, "GIFTIDEAS_RETRY_FACTOR", float),
        },
    }
    return merge_gateway_config(base, overrides)
