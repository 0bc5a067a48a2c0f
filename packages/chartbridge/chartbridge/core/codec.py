"""chartbridge: Serialization codec
---------------------------------
Encode a ``ChartSpec`` into one self-contained script invocation for the
rendering surface, and decode such invocations back.

Behavior
--------
- Rows are sent as a JSON array of objects (field order preserved); the
  configuration block is a JSON object ``{type, title, encode, dimensions?,
  stackField?, categories?, series?, options?}``.
- Each JSON payload is embedded as a single-quoted script argument, escaped by
  ``escape_for_js``: backslash first, then single quote, newline and carriage
  return. ``unescape_from_js`` is its exact inverse.
- Grouped specs are pivoted first; the dense pivoted rows are sent instead of
  the raw ones and the config gains the category and series order.

Notes
-----
- JSON output is ASCII-only, so line/paragraph separators and other non-ASCII
  characters travel as ``\\uXXXX`` escapes inside the JSON text.
- Values JSON cannot represent raise ``ChartSerializationError`` for that chart
  only; callers drop the chart and keep going.
"""

from __future__ import annotations

import json
import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from .config import CommandNaming
from .errors import ChartSerializationError, ProtocolError
from .pivot import MISSING_VALUE, PivotResult, SkippedRow, pivot
from .spec import ChartSpec, thaw

__all__ = [
    "RenderCommand",
    "DecodedRender",
    "escape_for_js",
    "unescape_from_js",
    "encode_rows",
    "decode_rows",
    "encode_config",
    "build_render_command",
    "build_remove_command",
    "build_clear_command",
    "parse_script",
    "decode_render_command",
]

_SCALAR_TYPES = (str, int, float, bool, type(None))
_UNESCAPES = {"\\": "\\", "'": "'", "n": "\n", "r": "\r"}
_CALL = re.compile(r"^([A-Za-z_$][A-Za-z0-9_$]*)\((.*)\);$", re.DOTALL)


@dataclass(frozen=True, slots=True)
class RenderCommand:
    """One encoded render invocation.

    Attributes
    ----------
    chart_id : str
        Id of the chart the script renders.
    script : str
        Complete script text handed to the transport.
    rows_text : str
        Unescaped JSON rows payload.
    config_text : str
        Unescaped JSON config payload.
    skipped : tuple of SkippedRow
        Rows the pivot dropped (grouped charts only).
    """

    chart_id: str
    script: str
    rows_text: str
    config_text: str
    skipped: tuple[SkippedRow, ...] = ()


@dataclass(frozen=True, slots=True)
class DecodedRender:
    """Arguments recovered from a render script."""

    chart_id: str
    rows: list[dict[str, Any]]
    config: dict[str, Any]


# =============================================================================
# Escaping
# =============================================================================


def escape_for_js(text: str) -> str:
    """Escape text for embedding inside a single-quoted script argument.

    Backslashes are escaped first so escapes inserted by the later steps are
    not doubled.

    Examples
    --------
    >>> escape_for_js("it's\\n")
    "it\\\\'s\\\\n"
    """
    return (
        text.replace("\\", "\\\\")
        .replace("'", "\\'")
        .replace("\n", "\\n")
        .replace("\r", "\\r")
    )


def unescape_from_js(text: str) -> str:
    """Inverse of ``escape_for_js``.

    Raises
    ------
    ProtocolError
        - [400] Text ends in a lone backslash.
        - [401] Escape sequence ``escape_for_js`` never produces.
    """
    out: list[str] = []
    i, n = 0, len(text)
    while i < n:
        ch = text[i]
        if ch != "\\":
            out.append(ch)
            i += 1
            continue
        if i + 1 >= n:
            raise ProtocolError("[400] Dangling backslash at end of escaped text")
        nxt = text[i + 1]
        if nxt not in _UNESCAPES:
            raise ProtocolError(f"[401] Unknown escape sequence '\\{nxt}' at offset {i}")
        out.append(_UNESCAPES[nxt])
        i += 2
    return "".join(out)


# =============================================================================
# JSON payloads
# =============================================================================


def _dumps(payload: Any, what: str) -> str:
    try:
        return json.dumps(payload, allow_nan=False, separators=(",", ":"))
    except (TypeError, ValueError) as e:
        raise ChartSerializationError(f"[200] Cannot encode {what}: {e}") from e


def encode_rows(rows: Iterable[Mapping[str, Any]], *, chart_id: str = "") -> str:
    """Encode rows as a JSON array of objects.

    Raises
    ------
    ChartSerializationError
        - [200] JSON encoding failed (e.g. NaN or infinity).
        - [201] A row holds a non-scalar value or a non-string field name.
    """
    payload = []
    for index, row in enumerate(rows):
        for name, value in row.items():
            if not isinstance(name, str):
                raise ChartSerializationError(
                    f"[201] Chart {chart_id!r} row {index}: field name {name!r} is not a string"
                )
            if not isinstance(value, _SCALAR_TYPES):
                raise ChartSerializationError(
                    f"[201] Chart {chart_id!r} row {index}: field {name!r} has "
                    f"unsupported value type {type(value).__name__}"
                )
        payload.append(dict(row))
    return _dumps(payload, f"rows of chart {chart_id!r}")


def decode_rows(text: str) -> list[dict[str, Any]]:
    """Decode a JSON rows payload produced by ``encode_rows``."""
    rows = json.loads(text)
    if not isinstance(rows, list):
        raise ProtocolError(f"[402] Rows payload is not a JSON array: {type(rows).__name__}")
    return rows


def encode_config(spec: ChartSpec, pivoted: PivotResult | None = None) -> str:
    """Encode the configuration block of ``spec`` as a JSON object."""
    cfg: dict[str, Any] = {
        "type": spec.chart_type,
        "title": spec.title,
        "encode": dict(spec.encode),
    }
    if spec.dimensions:
        cfg["dimensions"] = list(spec.dimensions)
    if spec.group_field:
        cfg["stackField"] = spec.group_field
    if pivoted is not None:
        cfg["categories"] = list(pivoted.categories)
        cfg["series"] = [s.name for s in pivoted.series]
    if spec.options is not None:
        cfg["options"] = thaw(spec.options)
    return _dumps(cfg, f"config of chart {spec.id!r}")


# =============================================================================
# Commands
# =============================================================================


def build_render_command(
    spec: ChartSpec,
    *,
    naming: CommandNaming | None = None,
    missing_value: Any = MISSING_VALUE,
) -> RenderCommand:
    """Encode ``spec`` into a render script.

    Parameters
    ----------
    spec : ChartSpec
        Chart to encode; pivoted first when ``group_field`` is set.
    naming : CommandNaming, optional
        Surface function names; defaults to ``renderChart`` & co.
    missing_value : Any, default 0
        Pivot sentinel for absent (group, category) pairs.

    Returns
    -------
    RenderCommand
        Script plus the raw payloads and pivot skip report.

    Raises
    ------
    ChartDataError
        Grouped spec that cannot be pivoted ([110]-[112]).
    ChartSerializationError
        Rows or config not representable as JSON ([200], [201]).
    """
    naming = naming or CommandNaming()
    pivoted = pivot(spec, missing_value=missing_value) if spec.group_field else None
    rows = pivoted.to_rows() if pivoted is not None else spec.rows
    rows_text = encode_rows(rows, chart_id=spec.id)
    config_text = encode_config(spec, pivoted)
    script = (
        f"{naming.render_function}("
        f"'{escape_for_js(spec.id)}',"
        f"'{escape_for_js(rows_text)}',"
        f"'{escape_for_js(config_text)}'"
        ");"
    )
    return RenderCommand(
        chart_id=spec.id,
        script=script,
        rows_text=rows_text,
        config_text=config_text,
        skipped=pivoted.skipped if pivoted is not None else (),
    )


def build_remove_command(chart_id: str, *, naming: CommandNaming | None = None) -> str:
    naming = naming or CommandNaming()
    return f"{naming.remove_function}('{escape_for_js(chart_id)}');"


def build_clear_command(*, naming: CommandNaming | None = None) -> str:
    naming = naming or CommandNaming()
    return f"{naming.clear_function}();"


# =============================================================================
# Decoding
# =============================================================================


def parse_script(script: str) -> tuple[str, tuple[str, ...]]:
    """Split a command script into its function name and unescaped arguments.

    Raises
    ------
    ProtocolError
        - [403] The script is not ``name('arg', ...);``.
    """
    match = _CALL.match(script)
    if match is None:
        raise ProtocolError(f"[403] Not a command script: {script[:60]!r}")
    name, body = match.group(1), match.group(2)
    args: list[str] = []
    i, n = 0, len(body)
    while i < n:
        if body[i] != "'":
            raise ProtocolError(f"[403] Expected quoted argument at offset {i} in {name}()")
        j = i + 1
        while j < n and body[j] != "'":
            # an escape always consumes the following character
            j += 2 if body[j] == "\\" else 1
        if j >= n:
            raise ProtocolError(f"[403] Unterminated argument in {name}()")
        args.append(unescape_from_js(body[i + 1 : j]))
        i = j + 1
        if i < n:
            if body[i] != ",":
                raise ProtocolError(f"[403] Expected ',' at offset {i} in {name}()")
            i += 1
    return name, tuple(args)


def decode_render_command(
    script: str, *, naming: CommandNaming | None = None
) -> DecodedRender:
    """Recover the chart id, rows and config from a render script."""
    naming = naming or CommandNaming()
    name, args = parse_script(script)
    if name != naming.render_function or len(args) != 3:
        raise ProtocolError(
            f"[404] Expected {naming.render_function}(id, rows, config), got {name}() "
            f"with {len(args)} argument(s)"
        )
    chart_id, rows_text, config_text = args
    config = json.loads(config_text)
    if not isinstance(config, dict):
        raise ProtocolError("[402] Config payload is not a JSON object")
    return DecodedRender(chart_id=chart_id, rows=decode_rows(rows_text), config=config)
