"""Tests for CLI commands using Typer's CliRunner."""

from __future__ import annotations

import yaml
from typer.testing import CliRunner

from chartbridge.core.codec import decode_render_command
from chartbridge.core.config import CommandNaming
from chartbridge.main import app

runner = CliRunner()

CHARTS = {
    "charts": [
        {
            "id": "revenue_chart",
            "type": "line",
            "title": "Monthly revenue",
            "encode": {"x": "date", "y": "revenue"},
            "rows": [{"date": "Jan", "revenue": 8500}, {"date": "Feb", "revenue": 9000}],
        },
        {
            "id": "channel_chart",
            "encode": {"x": "date", "y": "revenue"},
            "stackField": "channel",
            "rows": [
                {"date": "Jan", "channel": "Online", "revenue": 5000},
                {"date": "Jan", "channel": "Offline", "revenue": 3500},
                {"date": "Feb", "channel": "Online", "revenue": 6200},
            ],
        },
    ]
}


def write_charts(spec_file, data=CHARTS):
    return spec_file(yaml.safe_dump(data, sort_keys=False))


def test_encode_prints_one_script_per_chart(spec_file):
    result = runner.invoke(app, ["encode", str(write_charts(spec_file))])
    assert result.exit_code == 0, result.output
    scripts = [line for line in result.stdout.splitlines() if line.startswith("renderChart(")]
    assert len(scripts) == 2
    decoded = decode_render_command(scripts[1])
    assert decoded.chart_id == "channel_chart"
    assert decoded.config["series"] == ["Online", "Offline"]


def test_encode_writes_out_file(spec_file, tmp_path):
    out = tmp_path / "scripts.js"
    result = runner.invoke(app, ["encode", str(write_charts(spec_file)), "--out", str(out)])
    assert result.exit_code == 0, result.output
    assert "Wrote 2 script(s)" in result.stdout
    assert len(out.read_text(encoding="utf-8").splitlines()) == 2


def test_encode_uses_config_naming(spec_file, tmp_path):
    cfg = tmp_path / "bridge.yaml"
    cfg.write_text("naming:\n  render_function: drawChart\n", encoding="utf-8")
    result = runner.invoke(app, ["encode", str(write_charts(spec_file)), "--config", str(cfg)])
    assert result.exit_code == 0, result.output
    line = next(ln for ln in result.stdout.splitlines() if ln.startswith("drawChart("))
    naming = CommandNaming(render_function="drawChart")
    assert decode_render_command(line, naming=naming).chart_id == "revenue_chart"


def test_encode_fails_on_unencodable_chart(spec_file):
    data = {
        "charts": [
            CHARTS["charts"][0],
            {"id": "grouped", "encode": {"x": "date"}, "stackField": "channel", "rows": []},
        ]
    }
    result = runner.invoke(app, ["encode", str(write_charts(spec_file, data))])
    assert result.exit_code == 1
    assert "renderChart('revenue_chart'" in result.stdout


def test_encode_missing_file(tmp_path):
    result = runner.invoke(app, ["encode", str(tmp_path / "absent.yaml")])
    assert result.exit_code == 1


def test_encode_bad_config(spec_file, tmp_path):
    result = runner.invoke(
        app, ["encode", str(write_charts(spec_file)), "--config", str(tmp_path / "none.yaml")]
    )
    assert result.exit_code == 1


def test_check_clean_file(spec_file):
    result = runner.invoke(app, ["check", str(write_charts(spec_file))])
    assert result.exit_code == 0, result.output
    assert "[ok] revenue_chart" in result.stdout
    assert "[ok] channel_chart" in result.stdout
    assert "0 error(s)" in result.stdout


def test_check_reports_errors(spec_file):
    data = {
        "charts": [
            CHARTS["charts"][0],
            {"id": "bad", "encode": {}, "rows": [{"date": "Jan"}]},
        ]
    }
    result = runner.invoke(app, ["check", str(write_charts(spec_file, data))])
    assert result.exit_code == 1
    assert "[FAIL] bad" in result.stdout
    assert "error:" in result.stdout


def test_pivot_table(spec_file):
    result = runner.invoke(app, ["pivot", str(write_charts(spec_file)), "channel_chart"])
    assert result.exit_code == 0, result.output
    lines = result.stdout.splitlines()
    lines = lines[next(i for i, ln in enumerate(lines) if ln.startswith("date")) :]
    assert lines[0].split() == ["date", "Online", "Offline"]
    assert lines[1].split() == ["Jan", "5000", "3500"]
    assert lines[2].split() == ["Feb", "6200", "0"]


def test_pivot_unknown_chart(spec_file):
    result = runner.invoke(app, ["pivot", str(write_charts(spec_file)), "nope"])
    assert result.exit_code == 1


def test_pivot_ungrouped_chart(spec_file):
    result = runner.invoke(app, ["pivot", str(write_charts(spec_file)), "revenue_chart"])
    assert result.exit_code == 1


def test_types_lists_builtins():
    result = runner.invoke(app, ["types"])
    assert result.exit_code == 0, result.output
    for name in ("line", "bar", "pie", "scatter"):
        assert name in result.stdout
    assert "built-in" in result.stdout
