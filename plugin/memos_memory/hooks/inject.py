"""UserPromptSubmit hook: inject relevant MemOS memories.

Stdin:  ``{"prompt", "session_id", "hook_event_name"}``
Stdout: ``{"hookSpecificOutput": {"hookEventName", "additionalContext"}}``
        or nothing at all.

The process always exits 0; a failure only means no context is injected.
"""

from __future__ import annotations

import asyncio
import logging
import sys
from datetime import datetime
from typing import List, Optional

import httpx
from pydantic import ValidationError

from memos_memory.adapter.memos_client import MemosClient
from memos_memory.config import MemosConfig, load_config
from memos_memory.models import HookEvent, HookOutput
from memos_memory.observability.tracing import (
    configure_logging,
    get_metrics,
    get_tracer,
    init_otel,
    shutdown_otel,
)
from memos_memory.pipeline import build_memory_context

logger = logging.getLogger(__name__)

HOOK_EVENT_NAME = "UserPromptSubmit"


def parse_event(raw: str) -> Optional[HookEvent]:
    try:
        return HookEvent.model_validate_json(raw)
    except ValidationError:
        logger.warning("memos.inject received malformed hook input; skipping")
        return None


async def run(
    raw: str,
    config: MemosConfig,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
    now: Optional[datetime] = None,
) -> Optional[str]:
    """Return the JSON line to print for the hook input *raw*, or ``None``."""
    event = parse_event(raw)
    if event is None:
        return None

    with get_tracer().start_as_current_span("memos.inject") as span:
        if event.session_id:
            span.set_attribute("memos.session_id", event.session_id)
        async with MemosClient(config, transport=transport) as client:
            context = await build_memory_context(event.prompt, client, now=now)
        span.set_attribute("memos.injected", context is not None)
    if context is None:
        return None
    return HookOutput.context(event.hook_event_name or HOOK_EVENT_NAME, context).to_json()


def main(argv: Optional[List[str]] = None) -> int:
    provider = None
    output = None
    try:
        config = load_config()
        configure_logging(config.log_level)
        provider = init_otel(config.otel_endpoint)
        output = asyncio.run(run(sys.stdin.read(), config))
    except Exception:
        # Never block the prompt.
        logger.exception("memos.inject failed; injecting nothing")
        output = None
    finally:
        shutdown_otel(provider)

    if output:
        print(output)
    logger.debug("memos.inject metrics %s", get_metrics())
    return 0


if __name__ == "__main__":
    sys.exit(main())
