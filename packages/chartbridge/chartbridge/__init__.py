"""
chartbridge - Host to chart-surface bridge
==========================================
Describe charts as plain data on the host side and hand them to an embedded
charting surface (a web view running a chart library) through fire-and-forget
script calls.

Notes
-----
The host never draws anything. It builds ``ChartSpec`` values, the pipeline
waits until both the surface and the data are ready, renders the whole batch
exactly once, and afterwards forwards upserts, removals and clears. Grouped
charts are pivoted into aligned series before they cross the boundary.
"""

from .core.channel import BatchReport, BoundaryChannel, RecordingTransport, SurfaceTransport
from .core.config import BridgeConfig
from .core.config_loader import load_bridge_config
from .core.dispatch import InlineDispatcher, QueueDispatcher
from .core.errors import (
    ChartBridgeError,
    ChartConfigError,
    ChartDataError,
    ChartSerializationError,
    ProtocolError,
    SurfaceError,
    configure_logging,
    get_logger,
)
from .core.gate import GateState, ReadinessGate
from .core.pivot import PivotResult, pivot
from .core.registry import register_chart_type, registry
from .core.spec import ChartSpec
from .io.spec_files import FileProducer, load_specs_from_file
from .pipeline import ChartPipeline, ChartProducer, Observable, RenderState
from .presets import PresetProducer, preset

# Public version string
__version__ = "0.1.0"

__all__ = [
    "ChartSpec",
    "pivot",
    "PivotResult",
    "ChartPipeline",
    "ChartProducer",
    "RenderState",
    "Observable",
    "ReadinessGate",
    "GateState",
    "BoundaryChannel",
    "BatchReport",
    "SurfaceTransport",
    "RecordingTransport",
    "QueueDispatcher",
    "InlineDispatcher",
    "BridgeConfig",
    "load_bridge_config",
    "registry",
    "register_chart_type",
    "preset",
    "PresetProducer",
    "FileProducer",
    "load_specs_from_file",
    "ChartBridgeError",
    "ChartDataError",
    "ChartSerializationError",
    "SurfaceError",
    "ProtocolError",
    "ChartConfigError",
    "configure_logging",
    "get_logger",
    "__version__",
]
