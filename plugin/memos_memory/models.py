"""Data models for the MemOS hooks."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field

TEXT_FIELDS = ("memory", "content", "memory_content")


class Category(str, enum.Enum):
    """Response bucket a memory arrived in."""

    TEXT = "text"
    SKILL = "skill"
    PREFERENCE = "preference"


@dataclass(frozen=True)
class MemoryItem:
    """A single memory returned by the store, tagged with its category."""

    text: str
    category: Category
    metadata: Mapping[str, Any] = field(default_factory=dict)
    raw: Mapping[str, Any] = field(default_factory=dict)

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any], category: Category) -> "MemoryItem":
        text = ""
        for key in TEXT_FIELDS:
            value = payload.get(key)
            if value and isinstance(value, str):
                text = value
                break
        metadata = payload.get("metadata")
        if not isinstance(metadata, Mapping) or not metadata:
            metadata = payload
        return cls(text=text, category=category, metadata=metadata, raw=payload)

    def _meta_str(self, *keys: str) -> str:
        for key in keys:
            value = self.metadata.get(key)
            if value and isinstance(value, str):
                return value
        return ""

    @property
    def timestamp(self) -> Any:
        """``updated_at`` when present, otherwise ``created_at``."""
        return self.metadata.get("updated_at") or self.metadata.get("created_at")

    @property
    def name(self) -> str:
        return self._meta_str("name", "key") or "unnamed"

    @property
    def description(self) -> str:
        return self._meta_str("description") or self.text

    @property
    def procedure(self) -> str:
        return self._meta_str("procedure")


@dataclass
class CandidateSet:
    """Per-category candidates, in the order the store returned them."""

    text: List[MemoryItem] = field(default_factory=list)
    skill: List[MemoryItem] = field(default_factory=list)
    preference: List[MemoryItem] = field(default_factory=list)

    def is_empty(self) -> bool:
        return not (self.text or self.skill or self.preference)


# ── Hook protocol ────────────────────────────────────────────────────

class HookEvent(BaseModel):
    """JSON object a hook receives on stdin."""

    model_config = ConfigDict(extra="ignore")

    prompt: str = ""
    session_id: Optional[str] = None
    hook_event_name: Optional[str] = None
    transcript_path: Optional[str] = None


class HookSpecificOutput(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    hook_event_name: str = Field(alias="hookEventName")
    additional_context: str = Field(alias="additionalContext")


class HookOutput(BaseModel):
    """JSON object a context-injecting hook prints on stdout."""

    model_config = ConfigDict(populate_by_name=True)

    hook_specific_output: HookSpecificOutput = Field(alias="hookSpecificOutput")

    @classmethod
    def context(cls, event_name: str, text: str) -> "HookOutput":
        return cls(
            hook_specific_output=HookSpecificOutput(
                hook_event_name=event_name, additional_context=text
            )
        )

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)


class SummaryEntry(BaseModel):
    """One fact extracted from a transcript by the summarisation call."""

    model_config = ConfigDict(extra="ignore")

    content: str = ""
    tags: Optional[List[str]] = None


def as_dict_list(value: Any) -> List[Dict[str, Any]]:
    """Return the mapping elements of *value* when it is a list, else ``[]``."""
    if not isinstance(value, list):
        return []
    return [entry for entry in value if isinstance(entry, dict)]
