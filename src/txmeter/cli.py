from __future__ import annotations

# ---- Environment bootstrap (MUST be first) ----
from dotenv import load_dotenv

# Load .env once at process start
load_dotenv()

# ---- CLI imports ----
import asyncio
from typing import Optional

import typer

from .config import MeterConfig
from .demo import run_demo
from .run_manager import LATEST, list_runs, load_report, session_dir
from .schemas import MeterReport


app = typer.Typer(add_completion=False, help="txmeter: staged cost/latency meter")


def _fmt(value) -> str:
    if value is None:
        return "-"
    if isinstance(value, float):
        return f"{value:.6f}".rstrip("0").rstrip(".")
    return str(value)


def _render_table(report: MeterReport) -> str:
    lines = []
    where = report.cluster or report.rpc_url
    lines.append(f"{report.timestamp}  [{where}]")
    lines.append(
        f"balance units: {report.config.balance.units}  time units: {report.config.time.units}"
    )
    lines.append(f"{'stage':<24} {'time':>12} {'balance':>16} {'receipts':>8} {'logs':>5}")
    for s in report.stages:
        lines.append(
            f"{s.name:<24} {_fmt(s.time.delta):>12} {_fmt(s.balance.delta):>16} "
            f"{len(s.receipts):>8} {len(s.logs):>5}"
        )
    return "\n".join(lines)


@app.command()
def runs(name: str = typer.Argument(..., help="Meter session name")):
    """List stored reports for a session, per network label."""
    cfg = MeterConfig()
    found = list_runs(cfg, name)
    if not found:
        typer.echo(f"[WARN] no reports under {session_dir(cfg, name)}")
        raise typer.Exit(code=1)
    for label, ids in found.items():
        typer.echo(f"{label}: {', '.join(ids) if ids else '(latest only)'}")


@app.command()
def show(
    name: str = typer.Argument(..., help="Meter session name"),
    label: Optional[str] = typer.Option(None, help="Cluster or endpoint host; defaults to the only one"),
    run: str = typer.Option(LATEST, help="Run id (epoch seconds) or 'latest'"),
):
    """Render one stored report as a stage table."""
    cfg = MeterConfig()
    found = list_runs(cfg, name)
    if label is None:
        if len(found) != 1:
            typer.echo(f"[ERR] pick a --label, available: {', '.join(found) or 'none'}")
            raise typer.Exit(code=1)
        label = next(iter(found))

    path = session_dir(cfg, name) / label / f"{run}.json"
    if not path.exists():
        typer.echo(f"[ERR] report not found: {path}")
        raise typer.Exit(code=1)
    typer.echo(_render_table(load_report(path)))


@app.command()
def demo(
    scaled: bool = typer.Option(True, help="Show balances in scaled units"),
):
    """Meter a scripted session against the in-memory ledger and save its report."""
    cfg = MeterConfig(scaled_balance=scaled)
    meter, path = asyncio.run(run_demo(cfg))
    meter.print()
    typer.echo(f"[OK] report at: {path}")


if __name__ == "__main__":
    app()
