from __future__ import annotations

import logging
import time
from typing import Awaitable, Callable, Dict, Iterator, List, Optional

from .errors import StageNameError, StageNotFoundError, StageStateError
from .schemas import Magnitude, Measurement, StageRecord
from .units import UnitConverter

logger = logging.getLogger(__name__)

BalanceReader = Callable[[], Awaitable[Magnitude]]
Clock = Callable[[], int]
OpenStagePolicy = Callable[["StageStore"], Awaitable[None]]


def epoch_millis() -> int:
    return int(time.time() * 1000)


async def auto_close_open_stage(store: "StageStore") -> None:
    """
    Default policy: a stage left open is closed right now, so its end/delta
    reflect the moment the next stage begins, not its own logical completion.
    """
    logger.debug("auto-closing stage %s", store.open_stage.name if store.open_stage else None)
    await store.end_stage()


async def reject_open_stage(store: "StageStore") -> None:
    open_stage = store.open_stage
    raise StageStateError(
        f"Stage {open_stage.name if open_stage else '?'} is still open; end it before starting another"
    )


class StageStore:
    """
    Ordered stage history with at most one open stage.

    Re-running a name appends a new record; lookups by name return the latest one.
    Callers must serialize begin/end; concurrent use of one store is not guarded.
    """

    def __init__(
        self,
        read_balance: BalanceReader,
        converter: UnitConverter,
        clock: Clock = epoch_millis,
        on_open_stage: OpenStagePolicy = auto_close_open_stage,
    ):
        self._read_balance = read_balance
        self.converter = converter
        self._clock = clock
        self._on_open_stage = on_open_stage

        self._records: List[StageRecord] = []
        self._latest: Dict[str, int] = {}
        self._open_index: Optional[int] = None

    @property
    def open_stage(self) -> Optional[StageRecord]:
        if self._open_index is None:
            return None
        return self._records[self._open_index]

    @property
    def is_stage_active(self) -> bool:
        return self._open_index is not None

    @property
    def stage_names(self) -> List[str]:
        return [r.name for r in self._records]

    def is_open(self, record: StageRecord) -> bool:
        return self.open_stage is record

    async def begin_stage(self, name: str) -> StageRecord:
        if not name:
            raise StageNameError("Stage name must be provided")

        if self.is_stage_active:
            await self._on_open_stage(self)

        started = self._clock()
        balance = await self._read_balance()

        record = StageRecord(
            name=name,
            time=Measurement(start=started),
            balance=Measurement(start=balance),
        )
        self._records.append(record)
        self._latest[name] = len(self._records) - 1
        self._open_index = len(self._records) - 1
        return record

    async def end_stage(self) -> StageRecord:
        record = self.open_stage
        if record is None:
            raise StageStateError("No stage is open")

        record.time.end = self._clock()
        record.time.delta = record.time.end - record.time.start

        record.balance.end = await self._read_balance()
        record.balance.delta = record.balance.end - record.balance.start

        self._open_index = None
        return record

    async def close_open_stage(self) -> Optional[StageRecord]:
        if not self.is_stage_active:
            return None
        return await self.end_stage()

    def raw_stage(self, name: str) -> StageRecord:
        idx = self._latest.get(name)
        if idx is None:
            raise StageNotFoundError(name)
        return self._records[idx]

    def get_stage(self, name: str) -> StageRecord:
        return self.converter.stage(self.raw_stage(name))

    def all_stages(self) -> "StageView":
        return StageView(self)

    def __len__(self) -> int:
        return len(self._records)


class StageView:
    """Lazy, restartable view over every record in execution order, converted."""

    def __init__(self, store: StageStore):
        self._store = store

    def __iter__(self) -> Iterator[StageRecord]:
        for record in self._store._records:
            yield self._store.converter.stage(record)

    def __len__(self) -> int:
        return len(self._store)
