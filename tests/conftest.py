from __future__ import annotations

import json
from typing import Any, Callable

import httpx
import pytest

from giftideas.llm import OpenRouterClient

TEST_BASE_URL = "https://gateway.test/api/v1"


def _completion(
    content: str | None = "Hello there!",
    *,
    model: str = "openai/gpt-4o-mini",
    usage: dict[str, int] | None = None,
) -> dict[str, Any]:
    choices = []
    if content is not None:
        choices.append(
            {
                "index": 0,
                "message": {"role": "assistant", "content": content},
                "finish_reason": "stop",
            }
        )
    return {
        "id": "gen-123",
        "model": model,
        "created": 1700000000,
        "choices": choices,
        "usage": usage or {"prompt_tokens": 12, "completion_tokens": 5, "total_tokens": 17},
    }


class ScriptedGateway:
    """Replays scripted steps in order; the last step repeats once the script runs out.

    A step is an ``httpx.Response``, an exception to raise, or a callable taking
    the request (it may return a coroutine).
    """

    def __init__(self, *steps: Any) -> None:
        self._steps = list(steps)
        self.requests: list[httpx.Request] = []

    def handle(self, request: httpx.Request) -> Any:
        self.requests.append(request)
        step = self._steps.pop(0) if len(self._steps) > 1 else self._steps[0]
        if isinstance(step, Exception):
            raise step
        if callable(step):
            return step(request)
        # fresh copy per call: a scripted response may be replayed several times
        return httpx.Response(step.status_code, headers=step.headers, content=step.content)

    @property
    def calls(self) -> int:
        return len(self.requests)

    def bodies(self) -> list[dict[str, Any]]:
        return [json.loads(request.content) for request in self.requests]


class SleepRecorder:
    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


@pytest.fixture
def completion() -> Callable[..., dict[str, Any]]:
    return _completion


@pytest.fixture
def ok(completion) -> Callable[..., httpx.Response]:
    def _ok(content: str | None = "Hello there!", **kwargs: Any) -> httpx.Response:
        return httpx.Response(200, json=completion(content, **kwargs))

    return _ok


@pytest.fixture
def sleeps() -> SleepRecorder:
    return SleepRecorder()


@pytest.fixture
def scripted() -> type[ScriptedGateway]:
    return ScriptedGateway


@pytest.fixture
def make_client(sleeps: SleepRecorder) -> Callable[..., OpenRouterClient]:
    def _make(gateway: ScriptedGateway, **overrides: Any) -> OpenRouterClient:
        overrides.setdefault("api_key", "test-key")
        overrides.setdefault("base_url", TEST_BASE_URL)
        return OpenRouterClient(
            transport=httpx.MockTransport(gateway.handle),
            sleep=sleeps,
            **overrides,
        )

    return _make
