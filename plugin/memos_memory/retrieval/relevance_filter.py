"""Optional LLM relevance pass over text-memory candidates.

When ``MEMOS_RERANKER`` is true and at least :data:`MIN_CANDIDATES` text
memories came back, the candidates are sent to the store's completion
endpoint as numbered snippets and the model is asked which indices are on
topic.

Outcomes:

- a parsed JSON array → keep those positions, in original order
  (``[]`` legitimately drops every text memory);
- anything else (HTTP error, timeout, no array, not a list) → the original
  candidates, unfiltered.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Sequence

from memos_memory.adapter.memos_client import MemosClient
from memos_memory.config import MemosConfig
from memos_memory.errors import MemosRequestError
from memos_memory.models import MemoryItem
from memos_memory.observability.tracing import get_tracer, record_metric
from memos_memory.utils.json_extract import extract_json_array

logger = logging.getLogger(__name__)

# ── Tunables ─────────────────────────────────────────────────────────

MIN_CANDIDATES = 3
SNIPPET_MAX_CHARS = 300
QUERY_MAX_CHARS = 300
JUDGE_MAX_TOKENS = 50

JUDGE_PROMPT = """You are a relevance judge. Given a user query and memory snippets from a personal knowledge base, return ONLY the indices of memories that are relevant to the query.

RELEVANT = directly relates to the query topic, contains useful info
NOT RELEVANT = different topic, only shares a keyword, generic/unrelated

Query: "{query}"

Memories:
{snippets}

Return a JSON array of relevant indices. Example: [0, 2, 5]
If none are relevant, return: []"""


def build_snippets(memories: Sequence[MemoryItem]) -> List[str]:
    snippets = []
    for index, memory in enumerate(memories):
        text = memory.text
        if len(text) > SNIPPET_MAX_CHARS:
            text = text[:SNIPPET_MAX_CHARS] + "…"
        snippets.append(f"[{index}] {text}")
    return snippets


def build_judge_request(
    query: str,
    memories: Sequence[MemoryItem],
    config: MemosConfig,
) -> Dict[str, Any]:
    prompt = JUDGE_PROMPT.format(
        query=query[:QUERY_MAX_CHARS],
        snippets="\n".join(build_snippets(memories)),
    )
    return {
        "user_id": config.user_id,
        **config.cube_selector(),
        "query": prompt,
        "top_k": 1,
        "include_preference": False,
        "add_message_on_answer": False,
        "max_tokens": JUDGE_MAX_TOKENS,
        "temperature": 0,
    }


def _coerce_index(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return None
    return None


def apply_verdict(memories: Sequence[MemoryItem], verdict: Sequence[Any]) -> List[MemoryItem]:
    """Keep the positions named in *verdict*, preserving candidate order.

    Non-integer, out-of-range and repeated indices are ignored.
    """
    keep = set()
    for value in verdict:
        index = _coerce_index(value)
        if index is not None and 0 <= index < len(memories):
            keep.add(index)
    return [memory for index, memory in enumerate(memories) if index in keep]


def parse_verdict(response_text: str) -> Optional[List[Any]]:
    """Extract the judge's index array; ``None`` means "could not tell"."""
    verdict = extract_json_array(response_text)
    if not isinstance(verdict, list):
        return None
    return verdict


async def filter_relevant(
    client: MemosClient,
    query: str,
    memories: List[MemoryItem],
) -> List[MemoryItem]:
    """Return the subset of *memories* judged relevant to *query*.

    Falls back to *memories* unchanged whenever the judgment is unusable.
    """
    if len(memories) < MIN_CANDIDATES:
        return memories

    config = client.config
    body = build_judge_request(query, memories, config)
    record_metric("rerank_count")

    with get_tracer().start_as_current_span("memos.rerank") as span:
        span.set_attribute("memos.candidate_count", len(memories))
        try:
            data = await client.complete(body, config.rerank_timeout)
        except MemosRequestError as exc:
            span.set_attribute("memos.fallback", True)
            record_metric("rerank_fallback_count")
            logger.warning("memos.rerank failed; keeping %d candidates: %s", len(memories), exc)
            return memories

        inner = data.get("data")
        response_text = inner.get("response") if isinstance(inner, dict) else None
        verdict = parse_verdict(response_text if isinstance(response_text, str) else "")
        if verdict is None:
            span.set_attribute("memos.fallback", True)
            record_metric("rerank_fallback_count")
            logger.warning("memos.rerank returned no index array; keeping %d candidates", len(memories))
            return memories

        kept = apply_verdict(memories, verdict)
        span.set_attribute("memos.kept_count", len(kept))
    if not kept:
        record_metric("rerank_empty_count")
    logger.info("memos.rerank candidates=%d kept=%d", len(memories), len(kept))
    return kept
