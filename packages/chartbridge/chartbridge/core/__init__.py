"""chartbridge: Core Subpackage
----------------------------
Chart contract and cross-boundary protocol: spec model, pivot transform,
codec, readiness gate, boundary channel, dispatchers, registry, errors and
configuration.

Public API
----------
- ChartSpec: Immutable chart description
- pivot: Grouped rows -> aligned series
- build_render_command: ChartSpec -> render script
- ReadinessGate: Exactly-once first render
- BoundaryChannel: Outbound commands and inbound surface signals
"""

from .channel import BatchReport, BoundaryChannel, RecordingTransport, SurfaceTransport
from .codec import build_render_command, decode_render_command, escape_for_js, unescape_from_js
from .gate import GateState, ReadinessGate
from .pivot import MISSING_VALUE, PivotResult, pivot
from .spec import ChartSpec

__all__ = [
    "ChartSpec",
    "pivot",
    "PivotResult",
    "MISSING_VALUE",
    "build_render_command",
    "decode_render_command",
    "escape_for_js",
    "unescape_from_js",
    "ReadinessGate",
    "GateState",
    "BoundaryChannel",
    "BatchReport",
    "RecordingTransport",
    "SurfaceTransport",
]
