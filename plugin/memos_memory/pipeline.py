"""Prompt-time memory injection pipeline.

    gate → search (over-fetch) → relevance filter (text only) → format → assemble

Any stage may end the run with ``None``, meaning "inject nothing".  The
pipeline never raises for remote failures; those are absorbed by the
retrieval and relevance stages.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from memos_memory.adapter.memos_client import MemosClient
from memos_memory.formatting.budget_formatter import (
    format_preference_block,
    format_skill_block,
    format_text_block,
)
from memos_memory.gate import should_query
from memos_memory.injection import assemble_context
from memos_memory.observability.tracing import record_metric
from memos_memory.retrieval.category_retriever import retrieve_candidates
from memos_memory.retrieval.relevance_filter import QUERY_MAX_CHARS, filter_relevant

logger = logging.getLogger(__name__)


async def build_memory_context(
    prompt: str,
    client: MemosClient,
    *,
    now: Optional[datetime] = None,
) -> Optional[str]:
    """Return the ``<user_memory_context>`` payload for *prompt*, or ``None``."""
    if not should_query(prompt):
        record_metric("gate_skip_count")
        logger.debug("memos.gate skipped prompt len=%d", len(prompt or ""))
        return None

    caps = client.config.capabilities
    candidates = await retrieve_candidates(client, prompt)
    if candidates.is_empty():
        return None

    text_memories = candidates.text
    if caps.rerank_enabled and text_memories:
        text_memories = await filter_relevant(client, prompt[:QUERY_MAX_CHARS], text_memories)

    context = assemble_context(
        [
            format_text_block(text_memories, adaptive_budget=caps.adaptive_budget, now=now),
            format_skill_block(candidates.skill),
            format_preference_block(candidates.preference),
        ]
    )
    if context is not None:
        record_metric("injection_count")
    return context
