"""Category retriever: one over-fetching search, split into three buckets.

The store answers with up to three buckets (``text_mem``, ``skill_mem``,
``pref_mem``), each a list of cube groupings holding a ``memories`` list.
Buckets are flattened in response order.  Skill and preference candidates
are capped here; text candidates stay unbounded until after relevance
filtering.

Retrieval failure is never an error for the caller: it yields an empty
:class:`CandidateSet` and the hook prints nothing.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Dict, List, Mapping

from memos_memory.adapter.memos_client import MemosClient
from memos_memory.config import MemosConfig
from memos_memory.errors import MemosRequestError
from memos_memory.models import CandidateSet, Category, MemoryItem, as_dict_list
from memos_memory.observability.tracing import get_tracer, record_metric

logger = logging.getLogger(__name__)

# ── Tunables ─────────────────────────────────────────────────────────

QUERY_MAX_CHARS = 500
FETCH_K_RERANKED = 12  # over-fetch only when a relevance pass will prune
FETCH_K_DEFAULT = 8
SKILL_MEM_TOP_K = 3
SKILL_K = 2
PREF_K = 2
DEDUP_MODE = "mmr"


def fetch_k(config: MemosConfig) -> int:
    return FETCH_K_RERANKED if config.capabilities.rerank_enabled else FETCH_K_DEFAULT


def build_search_request(prompt: str, config: MemosConfig) -> Dict[str, Any]:
    caps = config.capabilities
    body: Dict[str, Any] = {
        "query": prompt[:QUERY_MAX_CHARS],
        "user_id": config.user_id,
        **config.cube_selector(),
        "top_k": fetch_k(config),
        "include_skill_memory": caps.include_skill,
        "include_preference": caps.include_preference,
        "dedup": DEDUP_MODE,
        "internet_search": config.internet_search,
    }
    if caps.include_skill:
        body["skill_mem_top_k"] = SKILL_MEM_TOP_K
    return body


def _flatten(bucket: Any, category: Category) -> List[MemoryItem]:
    items: List[MemoryItem] = []
    for group in as_dict_list(bucket):
        for payload in as_dict_list(group.get("memories")):
            items.append(MemoryItem.from_payload(payload, category))
    return items


def parse_search_response(data: Mapping[str, Any], config: MemosConfig) -> CandidateSet:
    """Split a search response into per-category candidates.

    Unexpected shapes degrade to empty buckets rather than raising.
    """
    caps = config.capabilities
    inner = data.get("data")
    if not isinstance(inner, dict):
        inner = {}

    text_bucket = inner.get("text_mem") or data.get("text_mem") or []
    candidates = CandidateSet(text=_flatten(text_bucket, Category.TEXT))
    if caps.include_skill:
        candidates.skill = _flatten(inner.get("skill_mem"), Category.SKILL)[:SKILL_K]
    if caps.include_preference:
        candidates.preference = _flatten(inner.get("pref_mem"), Category.PREFERENCE)[:PREF_K]
    return candidates


async def retrieve_candidates(client: MemosClient, prompt: str) -> CandidateSet:
    """Search the store for *prompt*; empty on any failure."""
    config = client.config
    body = build_search_request(prompt, config)
    start = time.monotonic()
    record_metric("retrieval_count")

    with get_tracer().start_as_current_span("memos.search") as span:
        span.set_attribute("memos.top_k", body["top_k"])
        try:
            data = await client.search(body)
        except MemosRequestError as exc:
            span.set_attribute("memos.failed", True)
            record_metric("retrieval_failure_count")
            logger.warning("memos.search failed; injecting nothing: %s", exc)
            return CandidateSet()

        candidates = parse_search_response(data, config)
        span.set_attribute("memos.text_count", len(candidates.text))
        span.set_attribute("memos.skill_count", len(candidates.skill))
        span.set_attribute("memos.preference_count", len(candidates.preference))
    elapsed_ms = (time.monotonic() - start) * 1000
    record_metric("retrieval_latency_ms_total", elapsed_ms)
    logger.info(
        "memos.search top_k=%d text=%d skill=%d pref=%d elapsed_ms=%.1f",
        body["top_k"], len(candidates.text), len(candidates.skill),
        len(candidates.preference), elapsed_ms,
    )
    return candidates
