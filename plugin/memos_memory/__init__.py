"""MemOS long-term memory hooks.

Prompt path (read-only): gate the prompt, over-fetch text, skill and
    preference memories from MemOS, optionally let an LLM prune off-topic
    text memories, then render everything under fixed character budgets
    into one ``<user_memory_context>`` block.
Session hooks: a start-of-session health probe and a pre-compaction flush
    that summarises the transcript and writes the facts back to MemOS.
"""

from memos_memory.config import Capabilities, MemosConfig, load_config
from memos_memory.models import CandidateSet, Category, MemoryItem
from memos_memory.pipeline import build_memory_context

__all__ = [
    "Capabilities",
    "CandidateSet",
    "Category",
    "MemoryItem",
    "MemosConfig",
    "build_memory_context",
    "load_config",
]
