"""Gateway client interfaces and implementations."""

from giftideas.llm.client import ChatClient, build_request_body, create_client
from giftideas.llm.config import GatewayConfig, RetryConfig, load_gateway_config
from giftideas.llm.errors import ErrorKind, GatewayError
from giftideas.llm.mock import MockGateway
from giftideas.llm.openrouter import OpenRouterClient, create_client_from_env
from giftideas.llm.types import (
    ChatMessage,
    ChatOptions,
    ChatResponse,
    ChatStructuredOptions,
    ChatStructuredResponse,
    JsonSchemaFormat,
    ModelParams,
    TokenUsage,
)

__all__ = [
    "ChatClient",
    "ChatMessage",
    "ChatOptions",
    "ChatResponse",
    "ChatStructuredOptions",
    "ChatStructuredResponse",
    "ErrorKind",
    "GatewayConfig",
    "GatewayError",
    "JsonSchemaFormat",
    "MockGateway",
    "ModelParams",
    "OpenRouterClient",
    "RetryConfig",
    "TokenUsage",
    "build_request_body",
    "create_client",
    "create_client_from_env",
    "load_gateway_config",
]
