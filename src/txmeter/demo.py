from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Tuple

from .config import MeterConfig
from .ledger_mock import InMemoryLedger
from .recorder import Recorder
from .session import MeterSession

DEMO_ACCOUNT = "payer"
DEMO_EVENT = "RequestSeededEvent"


async def run_demo(cfg: MeterConfig, event_delay_s: float = 0.05) -> Tuple[MeterSession, Path]:
    """
    Scripted session against InMemoryLedger:
      1) init    : one fee-paying tx with a rent breakdown
      2) request : tx whose completion is an event emitted later
    """
    ledger = InMemoryLedger(balances={DEMO_ACCOUNT: 5_000_000_000})
    meter = MeterSession(ledger, "demo", DEMO_ACCOUNT, cfg)

    async def init(rec: Recorder) -> str:
        sig = ledger.transfer(DEMO_ACCOUNT, 2_039_280)
        rec.add_receipt({
            "name": "init",
            "tx": sig,
            "rent": [{"account": "StateAccount", "cost": 0.00203928, "description": "program state"}],
        })
        rec.add_log(f"[TX] init: {sig}")
        return sig

    await meter.run("init", init)

    async def request(rec: Recorder) -> None:
        sig = ledger.transfer(DEMO_ACCOUNT, 1_000_000)
        rec.add_receipt({"name": "request", "tx": sig, "sbFee": 0.000002})
        asyncio.get_running_loop().call_later(
            event_delay_s, ledger.emit, DEMO_EVENT, {"request": sig, "seed": 42}, 1
        )

    await meter.run_and_await_event("request", DEMO_EVENT, lambda e: e.get("seed") is not None, request)

    await meter.finalize()
    return meter, meter.last_report_path
