from __future__ import annotations

import json
import math
import random

import pytest

from chartbridge.core.codec import (
    build_clear_command,
    build_remove_command,
    build_render_command,
    decode_render_command,
    encode_rows,
    escape_for_js,
    parse_script,
    unescape_from_js,
)
from chartbridge.core.config import CommandNaming
from chartbridge.core.errors import ChartSerializationError, ProtocolError
from chartbridge.core.spec import ChartSpec

ENCODE = {"x": "date", "y": "revenue"}
# characters that break naive single-quoted embedding
NASTY = ["'", '"', "\\", "\n", "\r", "\t", "\u2028", "\u2029", "é", "中", "😀", "</script>", "\\'"]


def test_escape_single_quote():
    assert escape_for_js("it's") == "it\\'s"


def test_escape_backslash_before_quote():
    # a literal backslash-quote must not collapse into an escaped quote
    assert escape_for_js("\\'") == "\\\\\\'"


def test_escape_newlines():
    assert escape_for_js("a\nb\rc") == "a\\nb\\rc"


def test_escaped_text_has_no_raw_line_breaks():
    escaped = escape_for_js("line1\nline2\r\n")
    assert "\n" not in escaped and "\r" not in escaped


def test_unescape_rejects_dangling_backslash():
    with pytest.raises(ProtocolError, match=r"\[400\]"):
        unescape_from_js("abc\\")


def test_unescape_rejects_unknown_escape():
    with pytest.raises(ProtocolError, match=r"\[401\]"):
        unescape_from_js("a\\tb")


@pytest.mark.parametrize("seed", range(25))
def test_escape_roundtrip_fuzz(seed):
    rng = random.Random(seed)
    alphabet = NASTY + list("abcXYZ019 ,:{}[]")
    text = "".join(rng.choice(alphabet) for _ in range(rng.randint(0, 60)))
    assert unescape_from_js(escape_for_js(text)) == text


def test_render_script_shape(revenue_spec):
    command = build_render_command(revenue_spec)
    assert command.script.startswith("renderChart('revenue_chart','")
    assert command.script.endswith("');")
    assert command.chart_id == "revenue_chart"
    assert json.loads(command.rows_text) == list(revenue_spec.rows)


def test_config_block(revenue_spec):
    command = build_render_command(revenue_spec)
    assert json.loads(command.config_text) == {
        "type": "bar",
        "title": "Monthly revenue",
        "encode": ENCODE,
    }


def test_optional_config_keys():
    spec = ChartSpec.create(
        "c1",
        [{"date": "Jan", "revenue": 1}],
        encode=ENCODE,
        dimensions=["date", "revenue"],
        options={"color": ["#5470c6"]},
    )
    config = json.loads(build_render_command(spec).config_text)
    assert config["dimensions"] == ["date", "revenue"]
    assert config["options"] == {"color": ["#5470c6"]}
    assert "stackField" not in config


def test_row_field_order_preserved():
    spec = ChartSpec.create("c1", [{"revenue": 1, "date": "Jan", "zeta": True}], encode=ENCODE)
    text = build_render_command(spec).rows_text
    assert text == '[{"revenue":1,"date":"Jan","zeta":true}]'


def test_zero_rows_encode_as_empty_array():
    spec = ChartSpec.create("empty", [], encode=ENCODE)
    command = build_render_command(spec)
    assert command.rows_text == "[]"
    assert decode_render_command(command.script).rows == []


def test_grouped_spec_sends_pivoted_rows(stacked_spec):
    command = build_render_command(stacked_spec)
    decoded = decode_render_command(command.script)
    assert decoded.config["stackField"] == "channel"
    assert decoded.config["categories"] == ["Jan", "Feb", "Mar"]
    assert decoded.config["series"] == ["Online", "Offline"]
    assert len(decoded.rows) == 6
    assert {"date": "Mar", "channel": "Offline", "revenue": 0} in decoded.rows


def test_grouped_spec_reports_skipped_rows():
    spec = ChartSpec.create(
        "g",
        [{"date": "Jan", "channel": "Online", "revenue": 1}, {"date": "Feb", "revenue": 2}],
        encode=ENCODE,
        group_field="channel",
    )
    command = build_render_command(spec)
    assert [s.index for s in command.skipped] == [1]


def test_script_is_ascii_and_single_line():
    spec = ChartSpec.create(
        "intl",
        [{"date": "janv.", "label": "Café 中文 😀 \u2028 sep", "revenue": 1}],
        encode=ENCODE,
        title="Ventes d'été\nligne 2",
    )
    script = build_render_command(spec).script
    assert script.isascii()
    assert "\n" not in script and "\r" not in script


def test_nasty_payload_roundtrip():
    rows = [{"date": c, "note": f"x{c}y", "revenue": i} for i, c in enumerate(NASTY)]
    spec = ChartSpec.create("it's \\ a\nchart", rows, encode=ENCODE, title="'\"\\\n\r")
    decoded = decode_render_command(build_render_command(spec).script)
    assert decoded.chart_id == "it's \\ a\nchart"
    assert decoded.rows == rows
    assert decoded.config["title"] == "'\"\\\n\r"


@pytest.mark.parametrize("seed", range(15))
def test_render_command_roundtrip_fuzz(seed):
    rng = random.Random(seed)

    def text():
        return "".join(rng.choice(NASTY + list("ab ")) for _ in range(rng.randint(0, 8)))

    def value():
        return rng.choice(
            [text(), rng.randint(-(10**6), 10**6), rng.uniform(-1e6, 1e6), True, False, None]
        )

    rows = [
        {f"f{j}{text()}": value() for j in range(rng.randint(0, 5))}
        for _ in range(rng.randint(0, 10))
    ]
    spec = ChartSpec.create(f"chart-{text()}-{seed}", rows, encode={"x": "f0"}, title=text())
    decoded = decode_render_command(build_render_command(spec).script)
    assert decoded.chart_id == spec.id
    assert decoded.rows == rows
    assert decoded.config["title"] == spec.title


@pytest.mark.parametrize("bad", [math.nan, math.inf, -math.inf])
def test_non_finite_numbers_rejected(bad):
    spec = ChartSpec.create("c1", [{"date": "Jan", "revenue": bad}], encode=ENCODE)
    with pytest.raises(ChartSerializationError, match=r"\[200\]"):
        build_render_command(spec)


def test_non_scalar_value_rejected():
    with pytest.raises(ChartSerializationError, match=r"\[201\]"):
        encode_rows([{"date": "Jan", "revenue": object()}], chart_id="c1")


def test_nested_value_rejected():
    spec = ChartSpec.create("c1", [{"date": "Jan", "revenue": [1, 2]}], encode=ENCODE)
    with pytest.raises(ChartSerializationError, match="unsupported value type list"):
        build_render_command(spec)


def test_remove_command_escapes_id():
    assert build_remove_command("it's") == "removeChart('it\\'s');"
    name, args = parse_script(build_remove_command("a\\b\n"))
    assert name == "removeChart"
    assert args == ("a\\b\n",)


def test_clear_command():
    assert build_clear_command() == "clearAllCharts();"


def test_custom_naming(revenue_spec):
    naming = CommandNaming(
        render_function="drawChart", remove_function="dropChart", clear_function="dropAll"
    )
    script = build_render_command(revenue_spec, naming=naming).script
    assert script.startswith("drawChart('revenue_chart',")
    assert decode_render_command(script, naming=naming).chart_id == "revenue_chart"
    assert build_remove_command("x", naming=naming) == "dropChart('x');"
    assert build_clear_command(naming=naming) == "dropAll();"


def test_naming_must_be_identifiers():
    with pytest.raises(ValueError):
        CommandNaming(render_function="render chart")


@pytest.mark.parametrize(
    "script",
    ["renderChart('a'", "renderChart(a);", "renderChart('a' 'b');", "1render();", "renderChart('a);"],
)
def test_parse_script_rejects_malformed(script):
    with pytest.raises(ProtocolError, match=r"\[403\]"):
        parse_script(script)


def test_decode_rejects_wrong_function(revenue_spec):
    with pytest.raises(ProtocolError, match=r"\[404\]"):
        decode_render_command(build_remove_command("revenue_chart"))
