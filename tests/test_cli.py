import json

from typer.testing import CliRunner

from txmeter.cli import app

runner = CliRunner()


def test_demo_then_runs_and_show(monkeypatch, tmp_path):
    monkeypatch.setenv("TXMETER_OUTPUT_DIR", str(tmp_path))
    monkeypatch.setenv("TXMETER_EVENT_LOG", "0")

    result = runner.invoke(app, ["demo"])
    assert result.exit_code == 0, result.output
    assert "[OK] report at:" in result.output

    latest = tmp_path / "demo" / "127.0.0.1" / "latest.json"
    doc = json.loads(latest.read_text(encoding="utf-8"))
    assert [s["stage"] for s in doc["stages"]] == ["init", "request"]
    assert doc["config"]["balance"]["units"] == "scaled"
    assert doc["stages"][1]["receipts"][0]["sbFee"] == 0.000002

    listed = runner.invoke(app, ["runs", "demo"])
    assert listed.exit_code == 0
    assert listed.output.startswith("127.0.0.1: ")

    shown = runner.invoke(app, ["show", "demo"])
    assert shown.exit_code == 0, shown.output
    assert "init" in shown.output and "request" in shown.output
    assert "http://127.0.0.1:8899" in shown.output


def test_runs_without_reports(monkeypatch, tmp_path):
    monkeypatch.setenv("TXMETER_OUTPUT_DIR", str(tmp_path))
    result = runner.invoke(app, ["runs", "nothing-here"])
    assert result.exit_code == 1
    assert "[WARN]" in result.output


def test_show_missing_run(monkeypatch, tmp_path):
    monkeypatch.setenv("TXMETER_OUTPUT_DIR", str(tmp_path))
    (tmp_path / "flip" / "devnet").mkdir(parents=True)
    result = runner.invoke(app, ["show", "flip", "--run", "123"])
    assert result.exit_code == 1
    assert "report not found" in result.output
