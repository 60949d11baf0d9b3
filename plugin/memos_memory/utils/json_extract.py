"""Pull a JSON array literal out of free-form model output.

Completion endpoints answer in prose; the structured part is whatever sits
between the first ``[`` and a closing ``]``.  Parsing is tolerant: if the
literal does not load as-is, one repair pass (trailing commas, curly double
quotes) is attempted before giving up.
"""

from __future__ import annotations

import json
import re
from typing import Any, Optional

_LAZY_ARRAY = re.compile(r"\[[\s\S]*?\]")
_GREEDY_ARRAY = re.compile(r"\[[\s\S]*\]")
_TRAILING_COMMA = re.compile(r",\s*([}\]])")
_CURLY_QUOTES = re.compile("[“”]")


def repair_json(text: str) -> str:
    """Drop trailing commas and straighten curly double quotes."""
    return _CURLY_QUOTES.sub('"', _TRAILING_COMMA.sub(r"\1", text))


def extract_json_array(text: str, *, greedy: bool = False) -> Optional[Any]:
    """Return the parsed array literal embedded in *text*, or ``None``.

    Parameters
    ----------
    text:
        Raw completion text.
    greedy:
        ``False`` matches the shortest ``[...]`` (flat index lists);
        ``True`` spans to the last ``]`` (arrays of objects).

    The result is whatever ``json.loads`` produced; callers check the type.
    """
    if not text:
        return None
    pattern = _GREEDY_ARRAY if greedy else _LAZY_ARRAY
    match = pattern.search(text)
    if match is None:
        return None

    literal = match.group(0)
    try:
        return json.loads(literal)
    except ValueError:
        pass
    try:
        return json.loads(repair_json(literal))
    except ValueError:
        return None
