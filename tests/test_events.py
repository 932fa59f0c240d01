import asyncio
import time

import pytest

from txmeter import EventSubscription, EventTimeoutError, MeterConfig, MeterSession

from conftest import ACCOUNT

EVENT = "RequestSeededEvent"


def _is_seeded(event):
    return event.get("seed") is not None


def test_resolves_with_first_matching_event(meter, ledger):
    async def work(rec):
        ledger.emit(EVENT, {"seed": None, "n": 1}, 10)
        ledger.emit("OtherEvent", {"seed": 99, "n": 2}, 11)
        ledger.emit(EVENT, {"seed": 7, "n": 3}, 12)
        ledger.emit(EVENT, {"seed": 8, "n": 4}, 13)
        rec.add_receipt({"name": "request", "tx": "sig"})

    result = asyncio.run(meter.run_and_await_event("request", EVENT, _is_seeded, work))

    event, context = result.data
    assert event == {"seed": 7, "n": 3}
    assert context == 12
    assert [r.name for r in result.receipt.receipts] == ["request"]
    assert result.receipt.time.end is not None


def test_subscription_removed_exactly_once(meter, ledger):
    async def work(rec):
        asyncio.get_running_loop().call_later(0.01, ledger.emit, EVENT, {"seed": 1}, 1)

    asyncio.run(meter.run_and_await_event("request", EVENT, _is_seeded, work))

    assert ledger.listener_count(EVENT) == 0
    assert list(ledger.unsubscribe_calls.values()) == [1]
    # more matching events after resolution reach nobody
    assert ledger.emit(EVENT, {"seed": 2}, 2) == 0
    assert list(ledger.unsubscribe_calls.values()) == [1]


def test_subscribed_before_work_runs(meter, ledger):
    seen = {}

    async def work(rec):
        seen["listeners"] = ledger.listener_count(EVENT)
        ledger.emit(EVENT, {"seed": 3})

    asyncio.run(meter.run_and_await_event("request", EVENT, _is_seeded, work))
    assert seen["listeners"] == 1


def test_timeout_cleans_up_subscription(meter, ledger):
    timeout = 0.05

    async def work(rec):
        ledger.emit(EVENT, {"seed": None})

    started = time.monotonic()
    with pytest.raises(EventTimeoutError) as exc:
        asyncio.run(meter.run_and_await_event("request", EVENT, lambda e: False, work, timeout=timeout))
    elapsed = time.monotonic() - started

    assert elapsed >= timeout - 0.005
    assert exc.value.event_name == EVENT
    assert exc.value.timeout == timeout
    assert ledger.listener_count() == 0
    assert list(ledger.unsubscribe_calls.values()) == [1]
    # a late event has no observable effect
    assert ledger.emit(EVENT, {"seed": 5}) == 0
    assert meter.store.open_stage.name == "request"


def test_default_timeout_comes_from_config(ledger, tmp_path):
    cfg = MeterConfig(output_dir=str(tmp_path), event_timeout_s=0.02, event_log=False)
    meter = MeterSession(ledger, "short", ACCOUNT, cfg)

    async def work(rec):
        return None

    with pytest.raises(EventTimeoutError) as exc:
        asyncio.run(meter.run_and_await_event("request", EVENT, _is_seeded, work))
    assert exc.value.timeout == 0.02


def test_work_error_propagates_and_unsubscribes(meter, ledger):
    async def work(rec):
        raise ValueError("bad request")

    with pytest.raises(ValueError, match="bad request"):
        asyncio.run(meter.run_and_await_event("request", EVENT, _is_seeded, work, timeout=5))
    assert ledger.listener_count() == 0
    assert list(ledger.unsubscribe_calls.values()) == [1]


def test_filter_error_propagates_and_unsubscribes(meter, ledger):
    def bad_filter(event):
        raise KeyError("request")

    async def work(rec):
        ledger.emit(EVENT, {})

    with pytest.raises(KeyError):
        asyncio.run(meter.run_and_await_event("request", EVENT, bad_filter, work, timeout=5))
    assert ledger.listener_count() == 0
    assert list(ledger.unsubscribe_calls.values()) == [1]


def test_event_ends_stage_while_work_still_running(meter, ledger):
    progress = []

    async def work(rec):
        rec.add_receipt({"name": "request", "tx": "sig"})
        ledger.emit(EVENT, {"seed": 1})
        try:
            await asyncio.sleep(0.5)
        except asyncio.CancelledError:
            progress.append("cancelled")
            raise
        progress.append("finished")
        rec.add_log("never recorded")

    started = time.monotonic()
    result = asyncio.run(meter.run_and_await_event("request", EVENT, _is_seeded, work, timeout=0.1))
    elapsed = time.monotonic() - started

    assert elapsed < 0.1
    assert result.data[0] == {"seed": 1}
    assert [r.tx for r in result.receipt.receipts] == ["sig"]
    assert result.receipt.logs == []
    assert progress == ["cancelled"]
    assert meter.store.open_stage is None
    assert ledger.listener_count() == 0


def test_event_delivered_after_work_returns(meter, ledger):
    async def work(rec):
        asyncio.get_running_loop().call_later(0.02, ledger.emit, EVENT, {"seed": 9}, 3)
        rec.add_receipt({"name": "request", "tx": "sig"})

    result = asyncio.run(meter.run_and_await_event("request", EVENT, _is_seeded, work, timeout=5))
    assert result.data == ({"seed": 9}, 3)
    assert [r.tx for r in result.receipt.receipts] == ["sig"]


def test_event_stages_count_with_plain_runs(meter, ledger):
    async def plain(rec):
        return None

    async def emit(rec):
        ledger.emit(EVENT, {"seed": 1})

    async def go():
        await meter.run("a", plain)
        await meter.run_and_await_event("b", EVENT, _is_seeded, emit)
        await meter.run_and_await_event("b", EVENT, _is_seeded, emit)

    asyncio.run(go())
    assert [s.name for s in meter.all_stages()] == ["a", "b", "b"]


def test_scoped_subscription_close_is_idempotent(ledger):
    async def go():
        async with EventSubscription(ledger, EVENT, _is_seeded) as sub:
            assert sub.subscribed
            await sub.close()
            await sub.close()
        assert not sub.subscribed

    asyncio.run(go())
    assert list(ledger.unsubscribe_calls.values()) == [1]
