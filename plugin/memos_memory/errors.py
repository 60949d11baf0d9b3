"""Exceptions raised by the MemOS hooks."""

from __future__ import annotations

from typing import Optional


class MemosError(Exception):
    """Base class for MemOS hook errors."""


class MemosRequestError(MemosError):
    """A call to the memory store failed, timed out or returned garbage."""

    def __init__(self, message: str, *, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code
