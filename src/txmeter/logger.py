from __future__ import annotations

import json
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional


@dataclass
class EventLogger:
    """
    Stage lifecycle log for one meter session (JSON Lines, append-only).

    Every line: ts (UTC), session, stage, event, meta.
    Events: begin, end, receipt, log, await_event, event_matched, timeout, fail, finalize.
    """
    log_path: Path
    session: str = ""

    def log(self, stage: str, event: str, meta: Optional[Dict[str, Any]] = None) -> None:
        record = {
            "ts": time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime()),
            "session": self.session,
            "stage": stage,
            "event": event,
            "meta": meta or {},
        }
        self.log_path.parent.mkdir(parents=True, exist_ok=True)
        with self.log_path.open("a", encoding="utf-8") as f:
            # meta may carry ledger objects (events, slots); fall back to str()
            f.write(json.dumps(record, ensure_ascii=False, default=str) + "\n")


class NullEventLogger:
    def log(self, stage: str, event: str, meta: Optional[Dict[str, Any]] = None) -> None:
        return None
