from __future__ import annotations

import os
from typing import Literal

from pydantic import BaseModel, Field


BalanceUnits = Literal["raw", "scaled"]
TimeUnits = Literal["seconds", "milliseconds"]


def _env_flag(name: str, default: str = "0") -> bool:
    return os.getenv(name, default).strip().lower() in {"1", "true", "yes", "on"}


class BalanceDisplay(BaseModel):
    units: BalanceUnits = "raw"


class TimeDisplay(BaseModel):
    units: TimeUnits = "seconds"


class DisplayConfig(BaseModel):
    """Units applied when stages are read back; storage is always raw."""
    balance: BalanceDisplay = Field(default_factory=BalanceDisplay)
    time: TimeDisplay = Field(default_factory=TimeDisplay)


class MeterConfig(BaseModel):
    """
    Global configuration for a metering session.

    Notes:
    - Keep config serializable (JSON); the display part is embedded in every report.
    - scale_factor is the number of raw balance units per display unit.
    """
    output_dir: str = Field(default_factory=lambda: os.getenv("TXMETER_OUTPUT_DIR", ".txmeter"))

    # display
    scaled_balance: bool = Field(default_factory=lambda: _env_flag("TXMETER_SCALED_BALANCE"))
    use_milliseconds: bool = Field(default_factory=lambda: _env_flag("TXMETER_MILLISECONDS"))
    scale_factor: int = Field(
        default_factory=lambda: int(os.getenv("TXMETER_SCALE_FACTOR", "1000000000")), gt=0
    )

    # event await
    event_timeout_s: float = Field(
        default_factory=lambda: float(os.getenv("TXMETER_EVENT_TIMEOUT", "45")), gt=0
    )

    event_log: bool = Field(default_factory=lambda: _env_flag("TXMETER_EVENT_LOG", "1"))

    def display(self) -> DisplayConfig:
        return DisplayConfig(
            balance=BalanceDisplay(units="scaled" if self.scaled_balance else "raw"),
            time=TimeDisplay(units="milliseconds" if self.use_milliseconds else "seconds"),
        )


DEFAULT_CONFIG = MeterConfig()
