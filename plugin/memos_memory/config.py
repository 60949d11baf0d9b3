"""Centralised configuration for the MemOS hooks.

Values come from three layers, highest precedence first:

1. the process environment,
2. ``~/.config/claude-code-memos/config.env`` (``KEY=VALUE`` lines),
3. hardcoded defaults.

The result is a frozen :class:`MemosConfig` built once at process start and
passed to every component.  Capability flags select which parts of the
injection pipeline run.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Optional

from dotenv import dotenv_values

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path.home() / ".config" / "claude-code-memos" / "config.env"

DEFAULT_API_URL = "http://127.0.0.1:8080"
DEFAULT_USER_ID = "default"
DEFAULT_CUBE_ID = "memos"
CUBE_FIELDS = ("readable_cube_ids", "mem_cube_id")


def _bool_value(raw: Optional[str], default: bool = False) -> bool:
    if raw is None:
        return default
    return raw.strip().lower() in ("true", "1", "yes")


def _float_value(raw: Optional[str], default: float) -> float:
    try:
        return float(raw) if raw is not None else default
    except (TypeError, ValueError):
        return default


def read_config_file(path: Path | str) -> dict[str, str]:
    """Parse a ``KEY=VALUE`` config file.

    A missing, unreadable or undecodable file yields ``{}``; env values and
    defaults still apply.
    """
    try:
        values = dotenv_values(path, encoding="utf-8")
    except (OSError, ValueError) as exc:
        logger.warning("memos.config ignoring unreadable config file %s: %s", path, exc)
        return {}
    return {key: value for key, value in values.items() if value is not None}


def merge_sources(
    environ: Mapping[str, str],
    file_values: Mapping[str, str],
) -> dict[str, str]:
    """Overlay *environ* on *file_values*.

    Empty environment values do not shadow the file, matching how an unset
    variable behaves.
    """
    merged = dict(file_values)
    for key, value in environ.items():
        if value:
            merged[key] = value
    return merged


@dataclass(frozen=True)
class Capabilities:
    """Feature flags that parameterise the injection pipeline."""

    include_skill: bool = True
    include_preference: bool = True
    rerank_enabled: bool = False
    adaptive_budget: bool = True


@dataclass(frozen=True)
class MemosConfig:
    api_url: str = DEFAULT_API_URL
    user_id: str = DEFAULT_USER_ID
    cube_id: str = DEFAULT_CUBE_ID
    cube_field: str = "readable_cube_ids"
    secret: str = ""
    internet_search: bool = True
    capabilities: Capabilities = field(default_factory=Capabilities)

    # ── Timeouts (seconds) ───────────────────────────────────────────
    search_timeout: float = 8.0
    rerank_timeout: float = 10.0
    health_timeout: float = 3.0
    summary_timeout: float = 60.0
    add_timeout: float = 15.0

    # ── Observability ────────────────────────────────────────────────
    log_level: str = "warning"
    otel_endpoint: str = ""

    def cube_selector(self) -> dict[str, object]:
        """Request fragment naming the target memory cube."""
        if self.cube_field == "mem_cube_id":
            return {"mem_cube_id": self.cube_id}
        return {"readable_cube_ids": [self.cube_id]}

    def headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.secret:
            headers["X-Internal-Service"] = self.secret
        return headers

    @classmethod
    def from_mapping(cls, values: Mapping[str, str]) -> "MemosConfig":
        """Build a config from an already-merged key/value mapping."""
        cube_field = values.get("MEMOS_CUBE_FIELD", "readable_cube_ids")
        if cube_field not in CUBE_FIELDS:
            cube_field = "readable_cube_ids"

        capabilities = Capabilities(
            include_skill=_bool_value(values.get("MEMOS_INCLUDE_SKILL"), True),
            include_preference=_bool_value(values.get("MEMOS_INCLUDE_PREFERENCE"), True),
            rerank_enabled=_bool_value(values.get("MEMOS_RERANKER"), False),
            adaptive_budget=_bool_value(values.get("MEMOS_ADAPTIVE_BUDGET"), True),
        )

        return cls(
            api_url=(values.get("MEMOS_API_URL") or DEFAULT_API_URL).rstrip("/"),
            user_id=values.get("MEMOS_USER_ID") or DEFAULT_USER_ID,
            cube_id=values.get("MEMOS_CUBE_ID") or DEFAULT_CUBE_ID,
            cube_field=cube_field,
            secret=values.get("INTERNAL_SERVICE_SECRET", ""),
            internet_search=_bool_value(values.get("MEMOS_INTERNET_SEARCH"), True),
            capabilities=capabilities,
            search_timeout=_float_value(values.get("MEMOS_SEARCH_TIMEOUT"), 8.0),
            rerank_timeout=_float_value(values.get("MEMOS_RERANK_TIMEOUT"), 10.0),
            health_timeout=_float_value(values.get("MEMOS_HEALTH_TIMEOUT"), 3.0),
            summary_timeout=_float_value(values.get("MEMOS_SUMMARY_TIMEOUT"), 60.0),
            add_timeout=_float_value(values.get("MEMOS_ADD_TIMEOUT"), 15.0),
            log_level=values.get("LOG_LEVEL", "warning"),
            otel_endpoint=values.get("OTEL_EXPORTER_OTLP_ENDPOINT", ""),
        )


def load_config(
    environ: Optional[Mapping[str, str]] = None,
    config_path: Path | str | None = None,
) -> MemosConfig:
    """Resolve configuration from environment, config file and defaults.

    Parameters
    ----------
    environ:
        Environment mapping.  Defaults to ``os.environ``.
    config_path:
        Config file location.  Defaults to ``MEMOS_CONFIG_PATH`` from
        *environ*, then :data:`DEFAULT_CONFIG_PATH`.
    """
    if environ is None:
        environ = os.environ
    if config_path is None:
        config_path = environ.get("MEMOS_CONFIG_PATH") or DEFAULT_CONFIG_PATH

    merged = merge_sources(environ, read_config_file(config_path))
    return MemosConfig.from_mapping(merged)
