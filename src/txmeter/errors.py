from __future__ import annotations


class MeterError(RuntimeError):
    """Base class for every error raised by the meter itself."""


class StageNameError(MeterError, ValueError):
    """A stage was started without a name."""


class StageNotFoundError(MeterError, KeyError):
    def __init__(self, name: str):
        super().__init__(f"Stage {name} does not exist")
        self.name = name

    def __str__(self) -> str:
        return self.args[0]


class StageStateError(MeterError):
    """
    Stage bookkeeping was driven out of order (ending with no open stage,
    or opening one while another is open under the strict policy).
    Callers must guard against this; it is never retried.
    """


class RecorderClosedError(StageStateError):
    def __init__(self, stage: str):
        super().__init__(f"Recorder for stage {stage} used after the stage closed")
        self.stage = stage


class EventTimeoutError(MeterError):
    def __init__(self, event_name: str, timeout: float):
        super().__init__(f"Timed out after {timeout:g}s waiting for event {event_name}")
        self.event_name = event_name
        self.timeout = timeout
