from __future__ import annotations

from typing import List, Optional, Union
from pydantic import BaseModel, ConfigDict, Field

from .receipt import Receipt

Magnitude = Union[int, float]


class Measurement(BaseModel):
    start: Magnitude
    end: Optional[Magnitude] = None
    delta: Optional[Magnitude] = None


class StageRecord(BaseModel):
    """
    One measured phase.

    balance: raw balance magnitudes of the metered account
    time: epoch milliseconds for start/end, milliseconds for delta
    end/delta stay None while the stage is open.
    """
    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(alias="stage", min_length=1)
    balance: Measurement
    time: Measurement
    receipts: List[Receipt] = Field(default_factory=list)
    logs: List[str] = Field(default_factory=list)
