"""SessionStart hook: report whether MemOS is reachable.

Takes no stdin.  Always prints one SessionStart payload so the session knows
whether memory injection and persistence will work.
"""

from __future__ import annotations

import asyncio
import logging
import sys
from typing import List, Optional

import httpx

from memos_memory.adapter.memos_client import MemosClient
from memos_memory.config import MemosConfig, load_config
from memos_memory.errors import MemosRequestError
from memos_memory.models import HookOutput
from memos_memory.observability.tracing import configure_logging

logger = logging.getLogger(__name__)

HOOK_EVENT_NAME = "SessionStart"

_DISABLED = (
    "Memory injection and persistence are disabled this session. "
    "Run setup.sh in the plugin directory to configure."
)


def connected_message(config: MemosConfig) -> str:
    return (
        f"MemOS memory connected ({config.api_url}, "
        f"user: {config.user_id}, cube: {config.cube_id})"
    )


def http_error_message(config: MemosConfig, status: int) -> str:
    return f"WARNING: MemOS returned HTTP {status} at {config.api_url}. {_DISABLED}"


def unreachable_message(config: MemosConfig) -> str:
    return f"WARNING: MemOS is NOT reachable at {config.api_url}. {_DISABLED}"


async def check_health(
    config: MemosConfig,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> str:
    """Probe the gateway and describe the result."""
    async with MemosClient(config, transport=transport) as client:
        try:
            status = await client.health()
        except MemosRequestError as exc:
            logger.warning("memos.health unreachable: %s", exc)
            return unreachable_message(config)

    if 200 <= status < 300:
        return connected_message(config)
    logger.warning("memos.health status=%d", status)
    return http_error_message(config, status)


def main(argv: Optional[List[str]] = None) -> int:
    config = MemosConfig()
    try:
        config = load_config()
        configure_logging(config.log_level)
        message = asyncio.run(check_health(config))
    except Exception:
        logger.exception("memos.health failed")
        message = unreachable_message(config)

    print(HookOutput.context(HOOK_EVENT_NAME, message).to_json())
    return 0


if __name__ == "__main__":
    sys.exit(main())
