"""
txmeter package.

Staged measurement for multi-step ledger operations:
- per named stage: wall-clock duration, balance delta of one account,
  receipts and free-form logs
- stages whose completion is an external event (bounded wait, scoped subscription)
- one JSON report per run, plus a "latest" copy per session and network
"""

from .config import DEFAULT_CONFIG, DisplayConfig, MeterConfig
from .errors import (
    EventTimeoutError,
    MeterError,
    RecorderClosedError,
    StageNameError,
    StageNotFoundError,
    StageStateError,
)
from .events import EventAwaitRunner, EventSubscription
from .ledger import LedgerClient, cluster_from_genesis_hash
from .ledger_mock import InMemoryLedger
from .recorder import Recorder
from .runner import StageRun, StageRunner
from .schemas import Measurement, MeterReport, Receipt, RentEntry, StageRecord
from .session import MeterSession
from .store import StageStore, auto_close_open_stage, reject_open_stage
from .units import UnitConverter

__all__ = [
    "DEFAULT_CONFIG",
    "DisplayConfig",
    "MeterConfig",
    "EventTimeoutError",
    "MeterError",
    "RecorderClosedError",
    "StageNameError",
    "StageNotFoundError",
    "StageStateError",
    "EventAwaitRunner",
    "EventSubscription",
    "LedgerClient",
    "cluster_from_genesis_hash",
    "InMemoryLedger",
    "Recorder",
    "StageRun",
    "StageRunner",
    "Measurement",
    "MeterReport",
    "Receipt",
    "RentEntry",
    "StageRecord",
    "MeterSession",
    "StageStore",
    "auto_close_open_stage",
    "reject_open_stage",
    "UnitConverter",
]
