"""Render candidate memories into bounded text blocks.

Each category has its own rules:

- **text**: up to :data:`TEXT_K` items sharing a :data:`TEXT_BUDGET_CHARS`
  budget; each item gets ``min(TEXT_ITEM_MAX_CHARS, budget // n)`` characters
  and a recency tag.
- **skill**: up to :data:`SKILL_K` items; name and description as stored,
  then an optional procedure capped at :data:`FIELD_MAX_CHARS`.
- **preference**: up to :data:`PREF_K` items capped at :data:`FIELD_MAX_CHARS`.

A block is a heading line followed by ``- `` bullet lines, or ``None`` when
nothing survives.
"""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional, Sequence

from memos_memory.formatting.recency import format_recency
from memos_memory.models import MemoryItem
from memos_memory.retrieval.category_retriever import PREF_K, SKILL_K

# ── Tunables ─────────────────────────────────────────────────────────

TEXT_K = 6
TEXT_BUDGET_CHARS = 3000
TEXT_ITEM_MAX_CHARS = 500
FIELD_MAX_CHARS = 300
ELLIPSIS = "..."

# Lines no longer than their own label markup carry no content.
TEXT_MIN_LINE_CHARS = 4
PREF_MIN_LINE_CHARS = 16

TEXT_HEADING = "Relevant memories from MemDB:"
SKILL_HEADING = "Relevant skills from MemDB:"
PREF_HEADING = "User preferences from MemDB:"


def truncate(text: str, limit: int) -> str:
    """Cut *text* to *limit* characters, marking the cut with an ellipsis."""
    if len(text) <= limit:
        return text
    return text[:limit] + ELLIPSIS


def per_item_budget(count: int, adaptive: bool = True) -> int:
    if not adaptive:
        return TEXT_ITEM_MAX_CHARS
    return min(TEXT_ITEM_MAX_CHARS, TEXT_BUDGET_CHARS // max(count, 1))


def _block(heading: str, lines: List[str]) -> Optional[str]:
    if not lines:
        return None
    return heading + "\n" + "\n".join(lines)


def format_text_block(
    memories: Sequence[MemoryItem],
    *,
    adaptive_budget: bool = True,
    now: Optional[datetime] = None,
) -> Optional[str]:
    items = list(memories[:TEXT_K])
    limit = per_item_budget(len(items), adaptive_budget)

    lines = []
    for memory in items:
        recency = format_recency(memory.timestamp, now=now)
        prefix = f"{recency} " if recency else ""
        line = f"- {prefix}{truncate(memory.text, limit)}"
        if len(line) > TEXT_MIN_LINE_CHARS:
            lines.append(line)
    return _block(TEXT_HEADING, lines)


def format_skill_block(memories: Sequence[MemoryItem]) -> Optional[str]:
    lines = []
    for memory in memories[:SKILL_K]:
        line = f"- [Skill: {memory.name}] {memory.description}"
        if memory.procedure:
            line += f"\n  Procedure: {truncate(memory.procedure, FIELD_MAX_CHARS)}"
        lines.append(line)
    return _block(SKILL_HEADING, lines)


def format_preference_block(memories: Sequence[MemoryItem]) -> Optional[str]:
    lines = []
    for memory in memories[:PREF_K]:
        line = f"- [Preference] {truncate(memory.text, FIELD_MAX_CHARS)}"
        if len(line) > PREF_MIN_LINE_CHARS:
            lines.append(line)
    return _block(PREF_HEADING, lines)
