"""Read the tail of a Claude Code JSONL transcript as ``role: text`` lines."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List

logger = logging.getLogger(__name__)

TAIL_LINES = 50
MIN_MESSAGE_CHARS = 10
MESSAGE_MAX_CHARS = 500
ROLES = ("user", "assistant")


def entry_text(entry: Dict[str, Any]) -> str:
    content = entry.get("content")
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        return "".join(
            block.get("text") or "" for block in content if isinstance(block, dict)
        )
    message = entry.get("message")
    return message if isinstance(message, str) else ""


def extract_messages(lines: List[str]) -> List[str]:
    """Turn raw JSONL lines into ``role: text`` messages, skipping noise."""
    messages: List[str] = []
    for line in lines[-TAIL_LINES:]:
        try:
            entry = json.loads(line)
        except ValueError:
            continue
        if not isinstance(entry, dict):
            continue
        role = entry.get("role") or entry.get("type")
        text = entry_text(entry)
        if role in ROLES and len(text) > MIN_MESSAGE_CHARS:
            messages.append(f"{role}: {text[:MESSAGE_MAX_CHARS]}")
    return messages


def read_transcript(path: Path | str) -> List[str]:
    """Load *path* and return its recent user/assistant messages."""
    raw = Path(path).read_text(encoding="utf-8")
    lines = [line for line in raw.strip().split("\n") if line]
    messages = extract_messages(lines)
    logger.debug("memos.transcript lines=%d messages=%d", len(lines), len(messages))
    return messages
