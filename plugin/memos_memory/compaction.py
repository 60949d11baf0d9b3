"""Compaction flush: summarise a transcript and persist the facts to MemOS.

Runs before the host compacts its context so that decisions and preferences
discussed in the session outlive the compaction.  Every step is best effort;
a failing ``add`` does not stop the remaining entries.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Sequence

from pydantic import ValidationError

from memos_memory.adapter.memos_client import MemosClient
from memos_memory.config import MemosConfig
from memos_memory.errors import MemosRequestError
from memos_memory.models import SummaryEntry
from memos_memory.utils.json_extract import extract_json_array

logger = logging.getLogger(__name__)

# ── Tunables ─────────────────────────────────────────────────────────

MIN_MESSAGES = 2
TRANSCRIPT_MAX_CHARS = 4000
SUMMARY_MAX_TOKENS = 2000
MAX_ENTRIES = 15
MIN_ENTRY_CHARS = 10
SUMMARY_TAG = "compaction_summary"
SOURCE = "claude_code_precompact"

SUMMARY_PROMPT = """Extract the key facts, decisions, and important context from this conversation. Return a JSON array of objects with "content" (the fact/decision) and "tags" (array of relevant tags).

Focus on:
- User preferences and profile facts
- Technical decisions made
- Project context and progress
- Action items and tasks

Conversation:
{transcript}

Return ONLY a JSON array like: [{{"content": "fact here", "tags": ["tag1"]}}, ...]"""


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def build_summary_request(messages: Sequence[str], config: MemosConfig) -> Dict[str, Any]:
    transcript = "\n\n".join(messages)
    return {
        "user_id": config.user_id,
        **config.cube_selector(),
        "query": SUMMARY_PROMPT.format(transcript=transcript[:TRANSCRIPT_MAX_CHARS]),
        "top_k": 1,
        "add_message_on_answer": False,
        "max_tokens": SUMMARY_MAX_TOKENS,
        "temperature": 0,
    }


def parse_entries(response_text: str) -> List[SummaryEntry]:
    """Parse summary entries, dropping anything that is not a usable fact."""
    parsed = extract_json_array(response_text, greedy=True)
    if not isinstance(parsed, list):
        return []

    entries: List[SummaryEntry] = []
    for raw in parsed[:MAX_ENTRIES]:
        if not isinstance(raw, dict):
            continue
        try:
            entry = SummaryEntry.model_validate(raw)
        except ValidationError:
            continue
        if len(entry.content) >= MIN_ENTRY_CHARS:
            entries.append(entry)
    return entries


def build_add_request(
    content: str,
    tags: List[str],
    info: Dict[str, Any],
    config: MemosConfig,
) -> Dict[str, Any]:
    return {
        "user_id": config.user_id,
        **config.cube_selector(),
        "memory_content": content,
        "tags": tags,
        "info": info,
    }


async def summarize(client: MemosClient, messages: Sequence[str]) -> List[SummaryEntry]:
    config = client.config
    try:
        data = await client.complete(
            build_summary_request(messages, config), config.summary_timeout
        )
    except MemosRequestError as exc:
        logger.warning("memos.summarize failed: %s", exc)
        return []

    inner = data.get("data")
    response_text = inner.get("response") if isinstance(inner, dict) else None
    return parse_entries(response_text if isinstance(response_text, str) else "")


async def save_entries(client: MemosClient, entries: Sequence[SummaryEntry]) -> int:
    """Persist up to :data:`MAX_ENTRIES` entries; return how many were saved."""
    config = client.config
    saved = 0
    for entry in entries[:MAX_ENTRIES]:
        body = build_add_request(
            entry.content,
            entry.tags or [SUMMARY_TAG],
            {"_type": SUMMARY_TAG, "source": SOURCE, "ts": _now_iso()},
            config,
        )
        try:
            await client.add(body)
        except MemosRequestError as exc:
            logger.warning("memos.add failed for one entry: %s", exc)
            continue
        saved += 1
    return saved


async def flush_transcript(client: MemosClient, messages: Sequence[str]) -> int:
    """Summarise *messages* and store the result; returns the entries saved."""
    if len(messages) < MIN_MESSAGES:
        return 0

    entries = await summarize(client, messages)
    if not entries:
        return 0

    saved = await save_entries(client, entries)
    if saved:
        body = build_add_request(
            f"Claude Code compaction flush: {saved} entries saved from {len(messages)} messages",
            [SUMMARY_TAG],
            {
                "_type": SUMMARY_TAG,
                "entries_saved": saved,
                "message_count": len(messages),
                "ts": _now_iso(),
            },
            client.config,
        )
        try:
            await client.add(body)
        except MemosRequestError as exc:
            logger.warning("memos.add failed for flush summary: %s", exc)

    logger.info("memos.flush messages=%d entries=%d saved=%d", len(messages), len(entries), saved)
    return saved
