from __future__ import annotations

import json
import logging
import time
from pathlib import Path
from typing import Any, Awaitable, Callable, List, Optional, TypeVar

import typer

from .config import DisplayConfig, MeterConfig
from .events import EventAwaitRunner, EventFilter, EventMatch
from .exporter import ReportExporter
from .ledger import LedgerClient, resolve_label
from .logger import EventLogger, NullEventLogger
from .recorder import Recorder
from .run_manager import session_dir
from .runner import StageRun
from .schemas import StageRecord
from .store import Clock, OpenStagePolicy, StageStore, StageView, auto_close_open_stage, epoch_millis
from .units import UnitConverter

logger = logging.getLogger(__name__)

T = TypeVar("T")


class MeterSession:
    """
    One metering run against a ledger.

    Drives named stages, measuring per stage the wall-clock time and the
    balance delta of `account`, and collects receipts/logs added by each
    stage's work. finalize() writes the whole history as a report.

    Stages run strictly one after another; issuing run() calls concurrently
    on one session is the caller's mistake and is not guarded.
    """

    def __init__(
        self,
        ledger: LedgerClient,
        name: str,
        account: str,
        cfg: Optional[MeterConfig] = None,
        clock: Clock = epoch_millis,
        on_open_stage: OpenStagePolicy = auto_close_open_stage,
    ):
        if not name:
            raise ValueError("Meter name must be provided")
        self.cfg = cfg or MeterConfig()
        self.ledger = ledger
        self.name = name
        self.account = account
        self.init_time = int(round(time.time()))

        self.store = StageStore(
            self._read_balance,
            UnitConverter(self.cfg.display(), self.cfg.scale_factor),
            clock=clock,
            on_open_stage=on_open_stage,
        )

        if self.cfg.event_log:
            self.events = EventLogger(log_path=session_dir(self.cfg, name) / "events.jsonl", session=name)
        else:
            self.events = NullEventLogger()

        self.runner = EventAwaitRunner(self.store, ledger, self.cfg.event_timeout_s, self.events)
        self.exporter = ReportExporter(self.cfg, name, self.init_time)

        self._cluster: Optional[str] = None
        self._cluster_resolved = False
        self.last_report_path: Optional[Path] = None

    @property
    def config(self) -> DisplayConfig:
        return self.cfg.display()

    @property
    def balance_unit_label(self) -> str:
        return self.config.balance.units

    @property
    def stage_names(self) -> List[str]:
        return self.store.stage_names

    async def _read_balance(self) -> int:
        return await self.ledger.get_balance(self.account)

    # ---- stages ----
    async def run(self, name: str, work: Callable[[Recorder], Awaitable[T]]) -> StageRun[T]:
        return await self.runner.run(name, work)

    async def run_and_await_event(
        self,
        name: str,
        event_name: str,
        event_filter: EventFilter,
        work: Callable[[Recorder], Awaitable[Any]],
        timeout: Optional[float] = None,
    ) -> StageRun[EventMatch]:
        return await self.runner.run_and_await_event(name, event_name, event_filter, work, timeout)

    def get_stage(self, name: str) -> StageRecord:
        return self.store.get_stage(name)

    def all_stages(self) -> StageView:
        return self.store.all_stages()

    # ---- report ----
    async def cluster(self) -> Optional[str]:
        if not self._cluster_resolved:
            self._cluster = await resolve_label(self.ledger.resolve_network_label)
            self._cluster_resolved = True
        return self._cluster

    async def finalize(self) -> List[StageRecord]:
        closed = await self.store.close_open_stage()
        if closed is not None:
            self.events.log(closed.name, "end", {
                "auto_closed": True,
                "by": "finalize",
                "time_ms": closed.time.delta,
                "balance_delta": closed.balance.delta,
            })

        cluster = await self.cluster()
        report = self.exporter.build(self.all_stages(), cluster, self.ledger.endpoint)
        run_path, _ = self.exporter.write(report, self.ledger.endpoint)
        self.last_report_path = run_path
        self.events.log("session", "finalize", {"stages": len(report.stages), "path": str(run_path)})
        return report.stages

    def render(self) -> str:
        return json.dumps(
            [s.model_dump(mode="json", by_alias=True, exclude_none=True) for s in self.all_stages()],
            indent=2,
        )

    def print(self) -> None:
        typer.echo(self.render())
