from __future__ import annotations

import httpx
import pytest

from giftideas.llm import ChatStructuredOptions, ErrorKind, GatewayError, JsonSchemaFormat

SCHEMA = {
    "type": "object",
    "properties": {"suggestions": {"type": "array"}},
    "required": ["suggestions"],
}
FORMAT = {
    "type": "json_schema",
    "json_schema": {"name": "gift_idea_suggestions", "strict": True, "schema": SCHEMA},
}
MESSAGES = [{"role": "user", "content": "Three gift ideas please."}]


def _options(response_format=FORMAT, messages=MESSAGES) -> ChatStructuredOptions:
    return ChatStructuredOptions(messages=list(messages), response_format=response_format)


@pytest.mark.asyncio
async def test_structured_reply_is_parsed(scripted, ok, make_client) -> None:
    gateway = scripted(ok('{"suggestions":[]}'))
    async with make_client(gateway) as client:
        response = await client.chat_structured(_options())

    assert response.structured_data == {"suggestions": []}
    assert response.content == '{"suggestions":[]}'
    assert response.usage.total_tokens == 17
    assert gateway.bodies()[0]["response_format"] == FORMAT


@pytest.mark.asyncio
async def test_json_schema_format_object_is_serialized(scripted, ok, make_client) -> None:
    gateway = scripted(ok('{"suggestions":[{"content":"Kite"}]}'))
    response_format = JsonSchemaFormat(name="gift_idea_suggestions", schema=SCHEMA)
    async with make_client(gateway) as client:
        response = await client.chat_structured(_options(response_format))

    assert response.structured_data["suggestions"][0]["content"] == "Kite"
    assert gateway.bodies()[0]["response_format"] == FORMAT


@pytest.mark.asyncio
async def test_reply_that_is_not_json_fails_validation(scripted, ok, make_client) -> None:
    gateway = scripted(ok("not json"))
    async with make_client(gateway) as client:
        with pytest.raises(GatewayError) as excinfo:
            await client.chat_structured(_options())
    assert excinfo.value.kind is ErrorKind.VALIDATION
    assert "Failed to parse structured response as JSON" in excinfo.value.message
    assert gateway.calls == 1


@pytest.mark.asyncio
@pytest.mark.parametrize("content", ["42", '"text"', "null", "true", "[1, 2]"])
async def test_reply_that_is_not_an_object_fails_validation(scripted, ok, make_client, content) -> None:
    gateway = scripted(ok(content))
    async with make_client(gateway) as client:
        with pytest.raises(GatewayError) as excinfo:
            await client.chat_structured(_options())
    assert excinfo.value.kind is ErrorKind.VALIDATION
    assert excinfo.value.message == "Structured response is not a valid JSON object"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("response_format", "expected"),
    [
        (None, "response_format is required"),
        ({"type": "json_object"}, "response_format.type must be 'json_schema'"),
        ({"type": "json_schema"}, "response_format.json_schema is required"),
        (
            {"type": "json_schema", "json_schema": {"schema": SCHEMA}},
            "response_format.json_schema.name is required and must be a non-empty string",
        ),
        (
            {"type": "json_schema", "json_schema": {"name": "  ", "schema": SCHEMA}},
            "response_format.json_schema.name is required and must be a non-empty string",
        ),
        (
            {"type": "json_schema", "json_schema": {"name": "ideas"}},
            "response_format.json_schema.schema is required",
        ),
        ("json_schema", "response_format must be a mapping or JsonSchemaFormat"),
    ],
)
async def test_malformed_response_format_rejected_without_network(
    scripted, ok, make_client, response_format, expected
) -> None:
    gateway = scripted(ok("{}"))
    async with make_client(gateway) as client:
        with pytest.raises(GatewayError) as excinfo:
            await client.chat_structured(_options(response_format))
    assert excinfo.value.kind is ErrorKind.INVALID_INPUT
    assert excinfo.value.message == expected
    assert gateway.calls == 0


@pytest.mark.asyncio
async def test_messages_are_checked_before_response_format(scripted, ok, make_client) -> None:
    gateway = scripted(ok("{}"))
    async with make_client(gateway) as client:
        with pytest.raises(GatewayError) as excinfo:
            await client.chat_structured(_options(None, messages=[]))
    assert excinfo.value.kind is ErrorKind.INVALID_INPUT
    assert "Messages" in excinfo.value.message


@pytest.mark.asyncio
async def test_structured_call_retries_like_chat(scripted, ok, make_client, sleeps) -> None:
    gateway = scripted(httpx.Response(500), ok('{"suggestions":[]}'))
    async with make_client(gateway) as client:
        response = await client.chat_structured(_options())
    assert response.structured_data == {"suggestions": []}
    assert sleeps.delays == [1.0]
