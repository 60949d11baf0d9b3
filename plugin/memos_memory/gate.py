"""Query gate: decides whether a prompt is worth a memory lookup.

Every accepted prompt costs at least one round trip to the store, so short
prompts and casual chatter (greetings, thanks, yes/no, bare slash commands)
are dropped before any network call.
"""

from __future__ import annotations

import re

MIN_PROMPT_LENGTH = 5

CASUAL_PROMPT = re.compile(
    r"(hi|hello|hey|ok|yes|no|thanks"
    r"|спасибо|привет|ок|да|нет|ладно|понял|хорошо"
    r"|/\w+)\s*[.!?]*",
    re.IGNORECASE,
)


def is_casual(prompt: str) -> bool:
    return CASUAL_PROMPT.fullmatch(prompt.strip()) is not None


def should_query(prompt: str) -> bool:
    """Return ``True`` when *prompt* should trigger a memory search."""
    stripped = (prompt or "").strip()
    if len(stripped) < MIN_PROMPT_LENGTH:
        return False
    return not is_casual(stripped)
