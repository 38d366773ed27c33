from __future__ import annotations

import json
import os
from pathlib import Path
import subprocess
import sys


def _run_cli(*args: str, cwd: Path) -> subprocess.CompletedProcess[str]:
    env = os.environ.copy()
    env["PYTHONDONTWRITEBYTECODE"] = "1"
    for key in ("OPENROUTER_API_KEY", "OPENROUTER_BASE_URL", "GIFTIDEAS_DEFAULT_MODEL", "GIFTIDEAS_LOG_LEVEL"):
        env.pop(key, None)
    return subprocess.run(
        [sys.executable, "-m", "giftideas.cli", *args],
        capture_output=True,
        text=True,
        env=env,
        cwd=cwd,
    )


def test_dry_run_prints_structured_body(tmp_path: Path) -> None:
    result = _run_cli("llm", "dry-run", "--structured", "--model", "x/model", "--prompt", "Gift for a runner", cwd=tmp_path)
    assert result.returncode == 0, result.stderr
    body = json.loads(result.stdout)
    assert body["model"] == "x/model"
    assert body["messages"] == [{"role": "user", "content": "Gift for a runner"}]
    assert body["response_format"]["json_schema"]["name"] == "gift_idea_suggestions"
    assert body["temperature"] == 0.7


def test_generate_with_mock_gateway(tmp_path: Path) -> None:
    output = tmp_path / "out" / "ideas.json"
    result = _run_cli("ideas", "generate", "--mock", "--json", "--age", "30", "-n", "4", "-o", str(output), cwd=tmp_path)
    assert result.returncode == 0, result.stderr
    printed = json.loads(result.stdout)
    assert len(printed["suggestions"]) == 4
    assert printed["metadata"]["model"] == "openai/gpt-4o-mini"
    assert json.loads(output.read_text(encoding="utf-8")) == printed


def test_generate_rejects_invalid_hints(tmp_path: Path) -> None:
    result = _run_cli("ideas", "generate", "--mock", "--age", "0", cwd=tmp_path)
    assert result.returncode == 1
    assert result.stdout == ""


def test_list_filters_exported_records(tmp_path: Path) -> None:
    export = tmp_path / "ideas.jsonl"
    rows = [
        {"id": 1, "name": "Kite", "content": "Kite", "source": "ai", "created_at": "2026-01-01", "updated_at": "2026-01-01"},
        {"id": 2, "name": "Mug", "content": "Mug", "source": "manual", "created_at": "2026-01-02", "updated_at": "2026-01-02"},
        {"id": 3, "name": "Lamp", "content": "Lamp", "source": "ai", "created_at": "2026-01-03", "updated_at": "2026-01-03"},
    ]
    export.write_text("\n".join(json.dumps(row) for row in rows) + "\n", encoding="utf-8")

    result = _run_cli("ideas", "list", "--path", str(export), "--source", "ai", "--json", cwd=tmp_path)
    assert result.returncode == 0, result.stderr
    payload = json.loads(result.stdout)
    assert [item["id"] for item in payload["data"]] == [3, 1]
    assert payload["pagination"]["total"] == 2


def test_list_rejects_bad_source(tmp_path: Path) -> None:
    export = tmp_path / "ideas.jsonl"
    export.write_text("", encoding="utf-8")
    result = _run_cli("ideas", "list", "--path", str(export), "--source", "robot", cwd=tmp_path)
    assert result.returncode == 1


def test_chat_without_api_key_fails(tmp_path: Path) -> None:
    result = _run_cli("llm", "chat", "hi", cwd=tmp_path)
    assert result.returncode == 1
    assert "not configured" in result.stderr


def test_config_redacts_mock_key(tmp_path: Path) -> None:
    result = _run_cli("llm", "config", "--mock", "--json", cwd=tmp_path)
    assert result.returncode == 0, result.stderr
    described = json.loads(result.stdout)
    assert described["api_key"] == "***REDACTED***"
    assert "mock-key" not in result.stdout
