from __future__ import annotations

from pathlib import Path

import pytest

from txmeter import InMemoryLedger, MeterConfig, MeterSession

ACCOUNT = "payer"


class StepClock:
    """Millisecond clock that advances by a fixed step on every read."""

    def __init__(self, start: int = 1000, step: int = 500):
        self.now = start
        self.step = step
        self.reads = []

    def __call__(self) -> int:
        value = self.now
        self.reads.append(value)
        self.now += self.step
        return value


@pytest.fixture
def cfg(tmp_path: Path) -> MeterConfig:
    return MeterConfig(
        output_dir=str(tmp_path / "reports"),
        scaled_balance=False,
        use_milliseconds=True,
        event_timeout_s=45,
        event_log=True,
    )


@pytest.fixture
def ledger() -> InMemoryLedger:
    return InMemoryLedger(balances={ACCOUNT: 5_000_000_000})


@pytest.fixture
def clock() -> StepClock:
    return StepClock()


@pytest.fixture
def meter(ledger: InMemoryLedger, cfg: MeterConfig, clock: StepClock) -> MeterSession:
    return MeterSession(ledger, "unit-test", ACCOUNT, cfg, clock=clock)
