"""Tests for the console-script entry points of the three hooks."""

import sys
import os
import io
import json

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "..", "plugin"))

import httpx

from memos_memory.hooks import healthcheck, inject, precompact
from memos_memory.models import HookOutput

ENV_KEYS = (
    "MEMOS_API_URL",
    "MEMOS_USER_ID",
    "MEMOS_CUBE_ID",
    "MEMOS_CUBE_FIELD",
    "MEMOS_RERANKER",
    "INTERNAL_SERVICE_SECRET",
    "LOG_LEVEL",
    "OTEL_EXPORTER_OTLP_ENDPOINT",
)

GOOD_CONFIG = (
    "MEMOS_API_URL=http://memos.test:8080\n"
    "MEMOS_USER_ID=alice\n"
    "MEMOS_CUBE_ID=work\n"
)


def _environment(monkeypatch, tmp_path, config=GOOD_CONFIG, stdin=""):
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    path = tmp_path / "config.env"
    if isinstance(config, bytes):
        path.write_bytes(config)
    else:
        path.write_text(config, encoding="utf-8")
    monkeypatch.setenv("MEMOS_CONFIG_PATH", str(path))
    monkeypatch.setattr(sys, "stdin", io.StringIO(stdin))


def _session_start(message):
    return HookOutput.context("SessionStart", message).to_json() + "\n"


# ── memos-inject ─────────────────────────────────────────────────────

def test_inject_main_casual_prompt_prints_nothing(monkeypatch, tmp_path, capsys):
    _environment(monkeypatch, tmp_path, stdin=json.dumps({"prompt": "ok"}))
    assert inject.main() == 0
    assert capsys.readouterr().out == ""


def test_inject_main_prints_context(monkeypatch, tmp_path, capsys):
    _environment(
        monkeypatch, tmp_path,
        stdin=json.dumps({"prompt": "What did we decide about caching?", "session_id": "s1"}),
    )
    seen = []

    def handler(request):
        seen.append(str(request.url))
        body = {
            "code": 200,
            "data": {"text_mem": [{"cube_id": "work", "memories": [{"memory": "Session cache lives in Redis"}]}]},
        }
        return httpx.Response(200, json=body)

    original_run = inject.run

    async def run_against_fake(raw, config):
        return await original_run(raw, config, transport=httpx.MockTransport(handler))

    monkeypatch.setattr(inject, "run", run_against_fake)

    assert inject.main() == 0
    out = capsys.readouterr().out
    assert out.endswith("\n") and out.count("\n") == 1
    payload = json.loads(out)["hookSpecificOutput"]
    assert payload["hookEventName"] == "UserPromptSubmit"
    assert "Session cache lives in Redis" in payload["additionalContext"]
    assert seen == ["http://memos.test:8080/product/search"]


def test_inject_main_undecodable_config(monkeypatch, tmp_path, capsys):
    _environment(monkeypatch, tmp_path, config=b"MEMOS_USER_ID=\xff\xfe\n", stdin=json.dumps({"prompt": "ok"}))
    assert inject.main() == 0
    assert capsys.readouterr().out == ""


def test_inject_main_swallows_failures(monkeypatch, tmp_path, capsys):
    _environment(monkeypatch, tmp_path, stdin=json.dumps({"prompt": "What did we decide?"}))

    async def broken_run(raw, config):
        raise RuntimeError("boom")

    monkeypatch.setattr(inject, "run", broken_run)
    assert inject.main() == 0
    assert capsys.readouterr().out == ""


def test_inject_main_survives_config_failure(monkeypatch, tmp_path, capsys):
    _environment(monkeypatch, tmp_path, stdin=json.dumps({"prompt": "What did we decide?"}))

    def broken_config():
        raise RuntimeError("unreadable")

    monkeypatch.setattr(inject, "load_config", broken_config)
    assert inject.main() == 0
    assert capsys.readouterr().out == ""


# ── memos-healthcheck ────────────────────────────────────────────────

def test_healthcheck_main_connected(monkeypatch, tmp_path, capsys):
    _environment(monkeypatch, tmp_path)

    async def connected(config):
        return healthcheck.connected_message(config)

    monkeypatch.setattr(healthcheck, "check_health", connected)
    assert healthcheck.main() == 0
    assert capsys.readouterr().out == _session_start(
        "MemOS memory connected (http://memos.test:8080, user: alice, cube: work)"
    )


def test_healthcheck_main_undecodable_config_uses_defaults(monkeypatch, tmp_path, capsys):
    _environment(monkeypatch, tmp_path, config=b"MEMOS_USER_ID=\xff\xfe\n")

    async def connected(config):
        return healthcheck.connected_message(config)

    monkeypatch.setattr(healthcheck, "check_health", connected)
    assert healthcheck.main() == 0
    assert capsys.readouterr().out == _session_start(
        "MemOS memory connected (http://127.0.0.1:8080, user: default, cube: memos)"
    )


def test_healthcheck_main_reports_unreachable_on_failure(monkeypatch, tmp_path, capsys):
    _environment(monkeypatch, tmp_path)

    async def broken(config):
        raise RuntimeError("boom")

    monkeypatch.setattr(healthcheck, "check_health", broken)
    assert healthcheck.main() == 0
    out = capsys.readouterr().out
    assert out == _session_start(
        "WARNING: MemOS is NOT reachable at http://memos.test:8080. "
        "Memory injection and persistence are disabled this session. "
        "Run setup.sh in the plugin directory to configure."
    )


def test_healthcheck_main_survives_config_failure(monkeypatch, tmp_path, capsys):
    _environment(monkeypatch, tmp_path)

    def broken_config():
        raise RuntimeError("unreadable")

    monkeypatch.setattr(healthcheck, "load_config", broken_config)
    assert healthcheck.main() == 0
    out = capsys.readouterr().out
    assert out.startswith('{"hookSpecificOutput":')
    assert "NOT reachable at http://127.0.0.1:8080" in out


# ── memos-precompact ─────────────────────────────────────────────────

def test_precompact_main_prints_continue(monkeypatch, tmp_path, capsys):
    _environment(monkeypatch, tmp_path, stdin="{}")
    assert precompact.main() == 0
    assert capsys.readouterr().out == '{"continue": true}\n'


def test_precompact_main_undecodable_config(monkeypatch, tmp_path, capsys):
    _environment(monkeypatch, tmp_path, config=b"MEMOS_USER_ID=\xff\xfe\n", stdin="{}")
    assert precompact.main() == 0
    assert capsys.readouterr().out == '{"continue": true}\n'


def test_precompact_main_swallows_failures(monkeypatch, tmp_path, capsys):
    _environment(monkeypatch, tmp_path, stdin="{}")

    async def broken_run(raw, config):
        raise RuntimeError("boom")

    monkeypatch.setattr(precompact, "run", broken_run)
    assert precompact.main() == 0
    assert capsys.readouterr().out == '{"continue": true}\n'
