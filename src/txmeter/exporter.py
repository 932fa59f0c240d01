from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, Optional, Tuple

from .config import MeterConfig
from .ledger import endpoint_host
from .run_manager import LATEST, human_timestamp, report_dir, write_text
from .schemas import MeterReport, StageRecord

logger = logging.getLogger(__name__)


class ReportExporter:
    """Renders a session's stages into a MeterReport and persists it twice (per run + latest)."""

    def __init__(self, cfg: MeterConfig, session_name: str, init_time: int):
        self.cfg = cfg
        self.session_name = session_name
        self.init_time = init_time

    def build(self, stages: Iterable[StageRecord], cluster: Optional[str], endpoint: str) -> MeterReport:
        cluster = cluster or None
        return MeterReport(
            timestamp=human_timestamp(self.init_time),
            cluster=cluster,
            rpc_url=None if cluster else endpoint,
            config=self.cfg.display(),
            stages=list(stages),
        )

    def write(self, report: MeterReport, endpoint: str) -> Tuple[Path, Path]:
        label = report.cluster or endpoint_host(endpoint)
        out_dir = report_dir(self.cfg, self.session_name, label)

        text = report.to_json()
        run_path = out_dir / f"{self.init_time}.json"
        write_text(run_path, text)
        logger.info("Receipt file saved to %s", run_path)

        latest_path = out_dir / f"{LATEST}.json"
        write_text(latest_path, text)
        return run_path, latest_path
