"""Observability setup for the MemOS hooks.

Hooks speak their protocol on stdout, so every log record goes to stderr.

Spans are created through the OpenTelemetry API and are no-ops until
:func:`init_otel` installs an SDK provider (the ``otel`` extra).  A hook is a
short-lived process, so whoever calls :func:`init_otel` must hand the
returned provider to :func:`shutdown_otel` before exiting or the batch of
spans is lost.

Counters live for one hook invocation and are dumped at debug level on exit.
"""

from __future__ import annotations

import logging
import sys
from collections import Counter
from typing import Any, Optional

from opentelemetry import trace

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
SERVICE_NAME = "memos-memory-hooks"
TRACER_NAME = "memos_memory"

# ── Counters ─────────────────────────────────────────────────────────

METRIC_NAMES = (
    "gate_skip_count",
    "retrieval_count",
    "retrieval_failure_count",
    "retrieval_latency_ms_total",
    "rerank_count",
    "rerank_fallback_count",
    "rerank_empty_count",
    "injection_count",
)

_counters: Counter[str] = Counter()


def record_metric(name: str, value: float = 1.0) -> None:
    _counters[name] += value


def get_metrics() -> dict[str, float]:
    """Every known counter (zero if untouched) plus any ad-hoc ones."""
    snapshot: dict[str, float] = dict.fromkeys(METRIC_NAMES, 0)
    snapshot.update(_counters)
    return snapshot


def reset_metrics() -> None:
    _counters.clear()


# ── Logging ──────────────────────────────────────────────────────────

def configure_logging(level: str = "warning") -> None:
    """Route the package's log records to stderr at *level*."""
    numeric = logging.getLevelName(level.upper())
    if not isinstance(numeric, int):
        numeric = logging.WARNING
    logging.basicConfig(stream=sys.stderr, level=numeric, format=LOG_FORMAT)
    logging.getLogger("memos_memory").setLevel(numeric)
    # httpx logs every request at INFO.
    logging.getLogger("httpx").setLevel(max(numeric, logging.WARNING))


def log_with_context(level: int, message: str, *, hook: str, session_id: str = "", **fields: Any) -> None:
    """Log *message* followed by ``key=value`` pairs identifying the hook run."""
    pairs = " ".join(f"{key}={value}" for key, value in {"hook": hook, "session_id": session_id, **fields}.items())
    logger.log(level, "%s %s", message, pairs)


# ── Tracing ──────────────────────────────────────────────────────────

def get_tracer() -> trace.Tracer:
    return trace.get_tracer(TRACER_NAME)


def init_otel(endpoint: str) -> Optional[Any]:
    """Install an OTLP-exporting tracer provider; returns it, or ``None``.

    Without an *endpoint*, or without the SDK installed, spans stay no-ops.
    """
    if not endpoint:
        return None

    try:
        from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import (
            OTLPSpanExporter,
        )
        from opentelemetry.sdk.resources import Resource
        from opentelemetry.sdk.trace import TracerProvider
        from opentelemetry.sdk.trace.export import BatchSpanProcessor
    except ImportError:
        logger.warning("OpenTelemetry SDK not installed; tracing disabled.")
        return None

    try:
        provider = TracerProvider(resource=Resource.create({"service.name": SERVICE_NAME}))
        provider.add_span_processor(BatchSpanProcessor(OTLPSpanExporter(endpoint=endpoint)))
        trace.set_tracer_provider(provider)
    except Exception:
        logger.exception("OpenTelemetry initialisation failed")
        return None
    logger.info("OpenTelemetry tracing initialised (endpoint=%s)", endpoint)
    return provider


def shutdown_otel(provider: Optional[Any]) -> None:
    """Flush and close *provider* so queued spans are exported."""
    if provider is None:
        return
    try:
        provider.shutdown()
    except Exception:
        logger.exception("OpenTelemetry shutdown failed")
