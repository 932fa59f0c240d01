from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Generic, TypeVar, Union

from .logger import EventLogger, NullEventLogger
from .recorder import Recorder
from .schemas import StageRecord
from .store import StageStore

logger = logging.getLogger(__name__)

T = TypeVar("T")

Work = Callable[[Recorder], Awaitable[T]]


@dataclass
class StageRun(Generic[T]):
    """What run() hands back: the work's result plus the closed stage (display units)."""
    data: T
    receipt: StageRecord


class StageRunner:
    """
    Drives begin -> work(recorder) -> end for one stage at a time.

    If work raises, the stage is left open and the error propagates; the next
    begin applies the store's open-stage policy to it.
    Calls must not overlap on one runner.
    """

    def __init__(self, store: StageStore, event_logger: Union[EventLogger, NullEventLogger, None] = None):
        self.store = store
        self.events = event_logger or NullEventLogger()

    async def run(self, name: str, work: Work[T]) -> StageRun[T]:
        previous = self.store.open_stage
        record = await self.store.begin_stage(name)
        if previous is not None:
            self.events.log(previous.name, "end", {"auto_closed": True, "by": name})

        self.events.log(name, "begin", {"balance": record.balance.start})

        try:
            data = await work(Recorder(self.store, record, self.events))
        except Exception as e:
            self.events.log(name, "fail", {"error": repr(e)})
            raise

        await self.store.end_stage()
        self.events.log(name, "end", {
            "time_ms": record.time.delta,
            "balance_delta": record.balance.delta,
            "receipts": len(record.receipts),
        })
        logger.info("stage %s done in %sms", name, record.time.delta)

        return StageRun(data=data, receipt=self.store.converter.stage(record))
