from __future__ import annotations

import json
import re
import time
from pathlib import Path
from typing import Dict, List

from .config import MeterConfig
from .schemas import MeterReport

LATEST = "latest"


def _slugify(text: str, max_len: int = 64) -> str:
    text = text.strip().lower()
    text = re.sub(r"[^a-z0-9\-_. ]+", "", text)
    text = re.sub(r"\s+", "-", text)
    return text[:max_len] if len(text) > max_len else text


def session_dir(cfg: MeterConfig, session_name: str) -> Path:
    return Path(cfg.output_dir) / _slugify(session_name)


def report_dir(cfg: MeterConfig, session_name: str, label: str) -> Path:
    """
    Reports are grouped per session and per network.

    Convention:
    <output_dir>/<session>/<cluster or endpoint host>/
    """
    path = session_dir(cfg, session_name) / _slugify(label)
    path.mkdir(parents=True, exist_ok=True)
    return path


def human_timestamp(epoch_s: int) -> str:
    return time.strftime("%Y-%m-%d %H:%M:%S UTC", time.gmtime(epoch_s))


def write_text(path: Path, text: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")


def list_runs(cfg: MeterConfig, session_name: str) -> Dict[str, List[str]]:
    """label -> run ids (epoch seconds, oldest first); 'latest' is not a run id."""
    root = session_dir(cfg, session_name)
    runs: Dict[str, List[str]] = {}
    if not root.is_dir():
        return runs
    for label_dir in sorted(p for p in root.iterdir() if p.is_dir()):
        ids = [p.stem for p in label_dir.glob("*.json") if p.stem != LATEST]
        runs[label_dir.name] = sorted(ids, key=lambda s: (len(s), s))
    return runs


def load_report(path: Path) -> MeterReport:
    with path.open("r", encoding="utf-8") as f:
        return MeterReport.model_validate(json.load(f))
