"""CLI entrypoint for giftideas."""

from __future__ import annotations

import asyncio
import json
import os
from pathlib import Path
from typing import Any, Optional

import typer

from giftideas.env import load_dotenv
from giftideas.ideas import (
    IdeaRecord,
    apply_ideas_query,
    generate_gift_ideas,
    parse_ideas_query,
    validate_generate_request,
)
from giftideas.ideas.generate import SUGGESTIONS_RESPONSE_FORMAT
from giftideas.llm import (
    ChatClient,
    ChatMessage,
    ChatOptions,
    ChatStructuredOptions,
    ErrorKind,
    GatewayConfig,
    GatewayError,
    build_request_body,
    create_client,
    create_client_from_env,
    load_gateway_config,
)
from giftideas.logging_config import configure_logging
from giftideas.storage import read_jsonl, write_json
from giftideas.ui.progress import status_spinner
from giftideas.ui.render import (
    render_error,
    render_ideas_table,
    render_info,
    render_success,
    render_suggestions,
    render_summary_table,
    render_validation_panel,
)

app = typer.Typer(add_completion=False, help="Gift idea suggestions backed by an LLM gateway.")
ideas_app = typer.Typer(add_completion=False, help="Generate and browse gift ideas.")
llm_app = typer.Typer(add_completion=False, help="Gateway utilities and diagnostics.")
app.add_typer(ideas_app, name="ideas")
app.add_typer(llm_app, name="llm")

KIND_MESSAGES = {
    ErrorKind.CONFIGURATION: "The AI gateway is not configured: {message}",
    ErrorKind.TIMEOUT: "The AI service took too long to answer. Please try again.",
    ErrorKind.RATE_LIMIT: "The AI service is busy right now. Please try again later.",
    ErrorKind.PROVIDER_ERROR: "The AI service reported an error: {message}",
    ErrorKind.VALIDATION: "The AI service returned an unexpected reply: {message}",
    ErrorKind.INVALID_INPUT: "The request was rejected before sending: {message}",
    ErrorKind.NETWORK: "Could not reach the AI service. Check your connection and try again.",
    ErrorKind.UNKNOWN: "The AI request failed: {message}",
}


@app.callback(invoke_without_command=True)
def root(
    ctx: typer.Context,
    log_level: Optional[str] = typer.Option(None, "--log-level", help="DEBUG, INFO, WARNING or ERROR."),
) -> None:
    """giftideas CLI."""
    load_dotenv()
    try:
        configure_logging(log_level)
    except ValueError as exc:
        render_error(str(exc))
        raise typer.Exit(code=2) from exc
    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit(code=0)


def gateway_error_message(error: GatewayError) -> str:
    if error.kind is ErrorKind.RATE_LIMIT and error.retry_after_ms:
        seconds = max(1, round(error.retry_after_ms / 1000))
        return f"The AI service is busy right now. Please try again in {seconds} seconds."
    return KIND_MESSAGES[error.kind].format(message=error.message)


def _fail(error: GatewayError) -> typer.Exit:
    render_error(gateway_error_message(error))
    return typer.Exit(code=1)


def _build_client(mock: bool) -> ChatClient:
    if mock:
        return create_client("mock")
    return create_client_from_env()


def _print_json(payload: dict[str, Any]) -> None:
    print(json.dumps(payload, indent=2, sort_keys=True, ensure_ascii=False))


@ideas_app.command("generate")
def ideas_generate(
    age: Optional[int] = typer.Option(None, "--age", help="Recipient age (1-500)."),
    interests: Optional[str] = typer.Option(None, "--interests", help="What they are into."),
    description: Optional[str] = typer.Option(None, "--description", help="Free-form description of the person."),
    budget_min: Optional[float] = typer.Option(None, "--budget-min"),
    budget_max: Optional[float] = typer.Option(None, "--budget-max"),
    relation: Optional[str] = typer.Option(None, "--relation", help="How you know them, e.g. 'Friend'."),
    occasion: Optional[str] = typer.Option(None, "--occasion", help="e.g. 'Birthday'."),
    count: int = typer.Option(5, "--count", "-n", min=1, max=10),
    model: Optional[str] = typer.Option(None, "--model", help="Override the default model."),
    mock: bool = typer.Option(False, "--mock", help="Use the offline mock gateway."),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Also write the result as JSON."),
    as_json: bool = typer.Option(False, "--json", help="Print JSON instead of a panel."),
) -> None:
    """Ask the gateway for gift suggestions."""
    validation = validate_generate_request(
        {
            "age": age,
            "interests": interests,
            "person_description": description,
            "budget_min": budget_min,
            "budget_max": budget_max,
        }
    )
    if not validation.ok:
        render_validation_panel("INVALID", [str(issue) for issue in validation.errors], style="error")
        raise typer.Exit(code=1)

    async def _run() -> Any:
        client = _build_client(mock)
        try:
            return await generate_gift_ideas(
                client,
                validation.value,
                relation_name=relation,
                occasion_name=occasion,
                count=count,
                model=model,
            )
        finally:
            await client.aclose()

    try:
        with status_spinner("Asking the gateway for ideas"):
            result = asyncio.run(_run())
    except GatewayError as error:
        raise _fail(error) from error

    if output is not None:
        write_json(output, result.to_dict())
    if as_json:
        _print_json(result.to_dict())
        return
    render_suggestions(result)
    if output is not None:
        render_success(f"Saved to {output}")


@ideas_app.command("list")
def ideas_list(
    path: Path = typer.Option(..., "--path", "-p", help="JSON-lines export of idea records."),
    page: Optional[int] = typer.Option(None, "--page"),
    limit: Optional[int] = typer.Option(None, "--limit"),
    sort: Optional[str] = typer.Option(None, "--sort", help="created_at, updated_at or name."),
    order: Optional[str] = typer.Option(None, "--order", help="asc or desc."),
    relation_id: Optional[int] = typer.Option(None, "--relation-id"),
    occasion_id: Optional[int] = typer.Option(None, "--occasion-id"),
    source: Optional[str] = typer.Option(None, "--source", help="manual, ai or edited-ai."),
    as_json: bool = typer.Option(False, "--json"),
) -> None:
    """Filter, sort and page through exported idea records."""
    params = {
        "page": page,
        "limit": limit,
        "sort": sort,
        "order": order,
        "relation_id": relation_id,
        "occasion_id": occasion_id,
        "source": source,
    }
    validation = parse_ideas_query({key: value for key, value in params.items() if value is not None})
    if not validation.ok:
        render_validation_panel("INVALID", [str(issue) for issue in validation.errors], style="error")
        raise typer.Exit(code=1)

    try:
        records = [IdeaRecord.from_dict(item) for item in read_jsonl(path)]
    except (OSError, KeyError, TypeError, ValueError) as exc:
        render_error(f"Could not load ideas from {path}: {exc}")
        raise typer.Exit(code=1) from exc

    result = apply_ideas_query(records, validation.value)
    if as_json:
        _print_json(result.to_dict())
    else:
        render_ideas_table(result)


@llm_app.command("config")
def llm_config(
    mock: bool = typer.Option(False, "--mock", help="Describe the mock gateway client."),
    as_json: bool = typer.Option(False, "--json"),
) -> None:
    """Show the resolved gateway config with the API key redacted."""
    try:
        client = _build_client(mock)
    except GatewayError as error:
        raise _fail(error) from error
    described = client.describe_config()
    asyncio.run(client.aclose())

    if as_json:
        _print_json(described)
        return
    rows = [
        (key, json.dumps(value, sort_keys=True) if isinstance(value, dict) else str(value))
        for key, value in described.items()
    ]
    render_summary_table(rows, title="Gateway config")


@llm_app.command("dry-run")
def llm_dry_run(
    prompt: str = typer.Option("Suggest a gift for a friend who loves hiking.", "--prompt"),
    system: Optional[str] = typer.Option(None, "--system"),
    model: Optional[str] = typer.Option(None, "--model"),
    structured: bool = typer.Option(False, "--structured", help="Attach the gift suggestion schema."),
) -> None:
    """Print the request body that would be sent, without network access."""
    if os.getenv("OPENROUTER_API_KEY"):
        try:
            config = load_gateway_config()
        except GatewayError as error:
            raise _fail(error) from error
    else:
        config = GatewayConfig(api_key="dry-run")

    messages = [ChatMessage(role="user", content=prompt)]
    if system:
        messages.insert(0, ChatMessage(role="system", content=system))
    if structured:
        options: ChatOptions = ChatStructuredOptions(
            messages=messages,
            model=model,
            response_format=SUGGESTIONS_RESPONSE_FORMAT,
        )
    else:
        options = ChatOptions(messages=messages, model=model)

    try:
        body = build_request_body(options, config)
    except GatewayError as error:
        raise _fail(error) from error
    _print_json(body)


@llm_app.command("chat")
def llm_chat(
    prompt: str = typer.Argument(..., help="User message."),
    system: Optional[str] = typer.Option(None, "--system"),
    model: Optional[str] = typer.Option(None, "--model"),
    mock: bool = typer.Option(False, "--mock", help="Use the offline mock gateway."),
) -> None:
    """Send a single chat message and print the reply."""
    messages = [ChatMessage(role="user", content=prompt)]
    if system:
        messages.insert(0, ChatMessage(role="system", content=system))

    async def _run() -> Any:
        client = _build_client(mock)
        try:
            return await client.chat(ChatOptions(messages=list(messages), model=model))
        finally:
            await client.aclose()

    try:
        with status_spinner("Waiting for the gateway"):
            response = asyncio.run(_run())
    except GatewayError as error:
        raise _fail(error) from error

    typer.echo(response.content)
    render_info(f"{response.model} · {response.usage.total_tokens} tokens")


def main() -> None:
    app()


if __name__ == "__main__":
    main()
