from __future__ import annotations

from .receipt import RentEntry, Receipt
from .stage import Magnitude, Measurement, StageRecord
from .report import MeterReport


__all__ = [
    "RentEntry",
    "Receipt",
    "Magnitude",
    "Measurement",
    "StageRecord",
    "MeterReport",
]
