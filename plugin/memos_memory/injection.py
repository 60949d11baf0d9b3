"""Injection assembler: wrap category blocks into one context payload."""

from __future__ import annotations

from typing import Iterable, Optional

CONTEXT_OPEN = "<user_memory_context>"
CONTEXT_CLOSE = "</user_memory_context>"
BLOCK_SEPARATOR = "\n\n"


def assemble_context(blocks: Iterable[Optional[str]]) -> Optional[str]:
    """Join the non-empty *blocks* in the order given; ``None`` if there are none."""
    sections = [block for block in blocks if block]
    if not sections:
        return None
    return f"{CONTEXT_OPEN}\n{BLOCK_SEPARATOR.join(sections)}\n{CONTEXT_CLOSE}"
