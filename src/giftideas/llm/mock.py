"""Mock gateway for offline runs and tests."""

from __future__ import annotations

import hashlib
import json
import time
from typing import Any

import httpx

MOCK_BASE_URL = "http://mock-gateway.local/api/v1"

GIFT_CATALOG = (
    "Personalized photo album - a collection of shared memories",
    "Experience voucher - an afternoon of something new together",
    "Curated book set - titles picked around their favourite topics",
    "Handmade ceramic mug - a one-off piece from a local maker",
    "Year-long subscription - a box or service they will enjoy every month",
    "Cooking class for two - learn a new cuisine side by side",
    "Custom star map - the night sky from a date that matters",
    "Quality headphones - for commutes, workouts and quiet evenings",
    "Indoor herb garden kit - fresh basil and mint on the windowsill",
    "Board game night bundle - a modern classic plus snacks",
)


class MockGateway:
    """Answers ``POST .../chat/completions`` like an OpenAI-compatible gateway.

    Replies are derived from a sha256 of the model and messages, so the same
    request always yields the same reply. Requests carrying ``response_format``
    get a JSON ``{"suggestions": [...]}`` object back.
    """

    def __init__(self, *, suggestions: int = 5) -> None:
        self._suggestions = suggestions
        self.requests: list[dict[str, Any]] = []

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    def handle(self, request: httpx.Request) -> httpx.Response:
        if request.method != "POST" or not request.url.path.endswith("/chat/completions"):
            return httpx.Response(404, json={"error": {"message": f"No route for {request.url.path}"}})
        body = json.loads(request.content or b"{}")
        self.requests.append(body)

        model = body.get("model") or "mock-model"
        messages = body.get("messages") or []
        seed = _stable_seed(model, messages)
        if body.get("response_format"):
            text = json.dumps({"suggestions": _mock_suggestions(seed, self._suggestions)})
        else:
            text = f"Mock reply from {model}."
        return httpx.Response(
            200,
            json={
                "id": f"mock-{seed.hex()[:12]}",
                "object": "chat.completion",
                "created": int(time.time()),
                "model": model,
                "choices": [
                    {
                        "index": 0,
                        "message": {"role": "assistant", "content": text},
                        "finish_reason": "stop",
                    }
                ],
                "usage": _mock_usage(messages, text),
            },
        )


def _stable_seed(model: str, messages: list[Any]) -> bytes:
    hasher = hashlib.sha256()
    hasher.update(model.encode("utf-8"))
    for message in messages:
        hasher.update(json.dumps(message, sort_keys=True).encode("utf-8"))
    return hasher.digest()


def _mock_suggestions(seed: bytes, count: int) -> list[dict[str, str]]:
    start = seed[0] % len(GIFT_CATALOG)
    count = max(1, min(count, len(GIFT_CATALOG)))
    return [{"content": GIFT_CATALOG[(start + offset) % len(GIFT_CATALOG)]} for offset in range(count)]


def _mock_usage(messages: list[Any], text: str) -> dict[str, int]:
    prompt_text = " ".join(str(message.get("content", "")) for message in messages if isinstance(message, dict))
    prompt_tokens = max(1, len(prompt_text) // 4)
    completion_tokens = max(1, len(text) // 4)
    return {
        "prompt_tokens": prompt_tokens,
        "completion_tokens": completion_tokens,
        "total_tokens": prompt_tokens + completion_tokens,
    }
