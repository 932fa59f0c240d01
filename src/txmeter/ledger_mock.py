from __future__ import annotations

import itertools
from collections import defaultdict
from typing import Any, Dict, List, Optional, Tuple

from .ledger import EventHandler, cluster_from_genesis_hash


class InMemoryLedger:
    """
    Scriptable ledger collaborator.

    Engineering notes:
    - balances are plain ints per account; transfer() mimics a fee-paying tx.
    - emit() delivers synchronously to current subscribers, in subscribe order.
    - unsubscribe() is idempotent; calls are counted for leak checks.
    """

    def __init__(
        self,
        balances: Optional[Dict[str, int]] = None,
        endpoint: str = "http://127.0.0.1:8899",
        genesis_hash: Optional[str] = None,
    ):
        self.balances: Dict[str, int] = dict(balances or {})
        self._endpoint = endpoint
        self.genesis_hash = genesis_hash
        self.fail_genesis = False
        self.label_requests = 0

        self._ids = itertools.count(1)
        self._subs: Dict[int, Tuple[str, EventHandler]] = {}
        self.unsubscribe_calls: Dict[int, int] = defaultdict(int)
        self.balance_reads = 0
        self.signatures: List[str] = []

    @property
    def endpoint(self) -> str:
        return self._endpoint

    async def get_balance(self, account: str) -> int:
        self.balance_reads += 1
        return self.balances.get(account, 0)

    def subscribe_event(self, event_name: str, handler: EventHandler) -> int:
        handle = next(self._ids)
        self._subs[handle] = (event_name, handler)
        return handle

    async def unsubscribe(self, handle: int) -> None:
        self.unsubscribe_calls[handle] += 1
        self._subs.pop(handle, None)

    async def resolve_network_label(self) -> Optional[str]:
        self.label_requests += 1
        if self.fail_genesis:
            raise ConnectionError(f"cannot reach {self._endpoint}")
        return cluster_from_genesis_hash(self.genesis_hash)

    # ---- scripting helpers ----
    def listener_count(self, event_name: Optional[str] = None) -> int:
        return sum(1 for name, _ in self._subs.values() if event_name is None or name == event_name)

    def emit(self, event_name: str, event: Any, context: Any = None) -> int:
        """Deliver an event; returns how many handlers saw it."""
        handlers = [h for name, h in list(self._subs.values()) if name == event_name]
        for handler in handlers:
            handler(event, context)
        return len(handlers)

    def transfer(self, account: str, amount: int, fee: int = 5000) -> str:
        self.balances[account] = self.balances.get(account, 0) - amount - fee
        signature = f"sig{len(self.signatures) + 1:04d}"
        self.signatures.append(signature)
        return signature
