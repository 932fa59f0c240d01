from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, Optional, Protocol
from urllib.parse import urlparse

logger = logging.getLogger(__name__)

# genesis hashes of the public clusters, used to label reports
MAINNET_GENESIS_HASH = "5eykt4UsFv8P8NJdTREpY1vzqKqZKvdpKuc147dw2N9d"
DEVNET_GENESIS_HASH = "EtWTRABZaYq6iMfeYKouRu166VRyQvEKedC3BH4MK3nQ"

EventHandler = Callable[[Any, Any], None]


class LedgerClient(Protocol):
    """
    The narrow slice of a ledger SDK the meter consumes.

    subscribe_event calls handler(event, context) for each emitted event
    (context is e.g. the slot it was observed in) and returns a handle.
    unsubscribe must be idempotent.
    """

    @property
    def endpoint(self) -> str: ...

    async def get_balance(self, account: str) -> int: ...

    def subscribe_event(self, event_name: str, handler: EventHandler) -> Any: ...

    async def unsubscribe(self, handle: Any) -> None: ...

    async def resolve_network_label(self) -> Optional[str]: ...


def cluster_from_genesis_hash(genesis_hash: Optional[str]) -> Optional[str]:
    if genesis_hash == MAINNET_GENESIS_HASH:
        return "mainnet-beta"
    if genesis_hash == DEVNET_GENESIS_HASH:
        return "devnet"
    return None


def endpoint_host(endpoint: str) -> str:
    host = urlparse(endpoint).hostname
    return host or endpoint


async def resolve_label(resolver: Callable[[], Awaitable[Optional[str]]]) -> Optional[str]:
    """Best-effort: any failure degrades to unresolved (None)."""
    try:
        return await resolver()
    except Exception as e:
        logger.warning("network label unresolved: %s", e)
        return None
