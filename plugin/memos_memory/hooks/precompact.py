"""PreCompact hook: flush the session transcript into MemOS.

Stdin:  ``{"session_id", "transcript_path", "hook_event_name"}``
Stdout: ``{"continue": true}``, unconditionally, so compaction is never
blocked.
"""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from typing import List, Optional

import httpx
from pydantic import ValidationError

from memos_memory.adapter.memos_client import MemosClient
from memos_memory.compaction import flush_transcript
from memos_memory.config import MemosConfig, load_config
from memos_memory.models import HookEvent
from memos_memory.observability.tracing import configure_logging, log_with_context
from memos_memory.transcript import read_transcript

logger = logging.getLogger(__name__)

CONTINUE = json.dumps({"continue": True})


async def run(
    raw: str,
    config: MemosConfig,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> int:
    """Flush the transcript named in hook input *raw*; returns entries saved."""
    try:
        event = HookEvent.model_validate_json(raw)
    except ValidationError:
        logger.warning("memos.precompact received malformed hook input; skipping")
        return 0
    if not event.transcript_path:
        return 0

    try:
        messages = read_transcript(event.transcript_path)
    except OSError as exc:
        logger.warning("memos.precompact cannot read transcript: %s", exc)
        return 0

    async with MemosClient(config, transport=transport) as client:
        saved = await flush_transcript(client, messages)

    log_with_context(
        logging.INFO,
        "memos.precompact flushed",
        session_id=event.session_id or "",
        hook="PreCompact",
        saved=saved,
        messages=len(messages),
    )
    return saved


def main(argv: Optional[List[str]] = None) -> int:
    try:
        config = load_config()
        configure_logging(config.log_level)
        asyncio.run(run(sys.stdin.read(), config))
    except Exception:
        # Never block compaction.
        logger.exception("memos.precompact failed")

    print(CONTINUE)
    return 0


if __name__ == "__main__":
    sys.exit(main())
