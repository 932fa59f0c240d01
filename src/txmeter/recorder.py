from __future__ import annotations

from typing import Any, Mapping, Union

from .errors import RecorderClosedError
from .logger import EventLogger, NullEventLogger
from .schemas import Receipt, StageRecord
from .store import StageStore

ReceiptLike = Union[Receipt, Mapping[str, Any]]


class Recorder:
    """
    Append-only handle on the active stage, handed to a stage's work.

    Only receipts and log lines can be added. Once the bound stage closes,
    every append raises RecorderClosedError.
    """

    def __init__(self, store: StageStore, record: StageRecord, logger: Union[EventLogger, NullEventLogger]):
        self._store = store
        self._record = record
        self._logger = logger

    @property
    def stage(self) -> str:
        return self._record.name

    @property
    def active(self) -> bool:
        return self._store.is_open(self._record)

    def _check_open(self) -> None:
        if not self.active:
            raise RecorderClosedError(self._record.name)

    def add_receipt(self, *receipts: ReceiptLike) -> None:
        self._check_open()
        parsed = [r if isinstance(r, Receipt) else Receipt.model_validate(r) for r in receipts]
        self._record.receipts.extend(parsed)
        for r in parsed:
            self._logger.log(self._record.name, "receipt", {"name": r.name, "tx": r.tx})

    def add_log(self, *lines: str) -> None:
        self._check_open()
        self._record.logs.extend(str(line) for line in lines)
        self._logger.log(self._record.name, "log", {"lines": len(lines)})
