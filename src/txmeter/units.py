from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .config import DisplayConfig
from .schemas import Magnitude, Measurement, StageRecord


@dataclass(frozen=True)
class UnitConverter:
    """
    Maps raw magnitudes into display units at read time.

    Raw storage: balances in base units, time in milliseconds.
    None passes through (open stages have no end/delta yet).
    """
    display: DisplayConfig
    scale_factor: int = 1_000_000_000

    def balance(self, raw: Optional[Magnitude]) -> Optional[Magnitude]:
        if raw is None:
            return None
        if self.display.balance.units == "scaled":
            return raw / self.scale_factor
        return raw

    def time(self, raw_ms: Optional[Magnitude]) -> Optional[Magnitude]:
        if raw_ms is None:
            return None
        if self.display.time.units == "milliseconds":
            return raw_ms
        return raw_ms / 1000

    def stage(self, record: StageRecord) -> StageRecord:
        """Converted deep copy; the stored record is left untouched."""
        return record.model_copy(
            update={
                "balance": Measurement(
                    start=self.balance(record.balance.start),
                    end=self.balance(record.balance.end),
                    delta=self.balance(record.balance.delta),
                ),
                "time": Measurement(
                    start=self.time(record.time.start),
                    end=self.time(record.time.end),
                    delta=self.time(record.time.delta),
                ),
            },
            deep=True,
        )
