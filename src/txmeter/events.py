from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional, Tuple, Union

from .errors import EventTimeoutError
from .ledger import LedgerClient
from .logger import EventLogger, NullEventLogger
from .recorder import Recorder
from .runner import StageRun, StageRunner
from .store import StageStore

logger = logging.getLogger(__name__)

EventFilter = Callable[[Any], bool]
EventMatch = Tuple[Any, Any]

DEFAULT_EVENT_TIMEOUT_S = 45.0


class EventSubscription:
    """
    Scoped event subscription.

    Subscribes on enter and unsubscribes exactly once on exit, whatever the
    exit path. The first event passing the filter settles the match; later
    events are ignored.
    """

    def __init__(self, ledger: LedgerClient, event_name: str, event_filter: EventFilter):
        self.ledger = ledger
        self.event_name = event_name
        self._filter = event_filter
        self._handle: Any = None
        self._subscribed = False
        self._matched: Optional["asyncio.Future[EventMatch]"] = None

    @property
    def subscribed(self) -> bool:
        return self._subscribed

    async def __aenter__(self) -> "EventSubscription":
        self._matched = asyncio.get_running_loop().create_future()
        self._handle = self.ledger.subscribe_event(self.event_name, self._on_event)
        self._subscribed = True
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        matched = self._matched
        if matched is not None:
            if not matched.done():
                matched.cancel()
            elif not matched.cancelled():
                # mark a filter error as retrieved even if nobody awaited it
                matched.exception()
        await self.close()

    async def close(self) -> None:
        if not self._subscribed:
            return
        self._subscribed = False
        handle, self._handle = self._handle, None
        await self.ledger.unsubscribe(handle)

    def _on_event(self, event: Any, context: Any = None) -> None:
        matched = self._matched
        if matched is None or matched.done():
            return
        try:
            ok = self._filter(event)
        except Exception as e:
            matched.set_exception(e)
            return
        if ok:
            matched.set_result((event, context))

    async def wait(self, work: Awaitable[Any], timeout: float) -> EventMatch:
        """
        Run work alongside the event wait; only the event races the deadline.

        Resolves with (event, context) as soon as a matching event arrives,
        whether or not work has returned. An error from work (before the match)
        or from the filter propagates as is; the deadline raises
        EventTimeoutError. Work still running at either outcome is cancelled.
        """
        if self._matched is None:
            raise RuntimeError("EventSubscription.wait() used outside 'async with'")

        matched = self._matched
        work_task = asyncio.ensure_future(work)
        timer = asyncio.ensure_future(asyncio.sleep(timeout))
        pending = {work_task, matched, timer}
        try:
            while True:
                done, pending = await asyncio.wait(pending, return_when=asyncio.FIRST_COMPLETED)
                if matched in done:
                    return matched.result()
                if work_task in done:
                    work_task.result()
                if timer in done:
                    raise EventTimeoutError(self.event_name, timeout)
        finally:
            if work_task.done() and not work_task.cancelled():
                # an error from work after the match is dropped with the work
                work_task.exception()
            leftovers = [t for t in (work_task, timer) if not t.done()]
            for t in leftovers:
                t.cancel()
            if leftovers:
                await asyncio.gather(*leftovers, return_exceptions=True)


class EventAwaitRunner(StageRunner):
    """StageRunner whose stages can end on an external event instead of work's return."""

    def __init__(
        self,
        store: StageStore,
        ledger: LedgerClient,
        default_timeout: float = DEFAULT_EVENT_TIMEOUT_S,
        event_logger: Union[EventLogger, NullEventLogger, None] = None,
    ):
        super().__init__(store, event_logger)
        self.ledger = ledger
        self.default_timeout = default_timeout

    async def run_and_await_event(
        self,
        name: str,
        event_name: str,
        event_filter: EventFilter,
        work: Callable[[Recorder], Awaitable[Any]],
        timeout: Optional[float] = None,
    ) -> StageRun[EventMatch]:
        limit = self.default_timeout if timeout is None else timeout

        async def _await_event(recorder: Recorder) -> EventMatch:
            async with EventSubscription(self.ledger, event_name, event_filter) as sub:
                self.events.log(name, "await_event", {"event": event_name, "timeout_s": limit})
                try:
                    event, context = await sub.wait(work(recorder), limit)
                except EventTimeoutError:
                    logger.warning("stage %s: no %s event within %ss", name, event_name, limit)
                    self.events.log(name, "timeout", {"event": event_name, "timeout_s": limit})
                    raise
            self.events.log(name, "event_matched", {"event": event_name, "context": context})
            return event, context

        return await self.run(name, _await_event)
