"""chartbridge: Chart pipeline
----------------------------
Host-facing entry point wiring a data producer, the readiness gate and the
boundary channel together. The host UI shell only forwards signals and
observes ``render_state`` / ``messages``; it owns no chart logic.

Flow
----
1. ``load(producer)`` (or ``on_data_ready(specs)``) stores the batch and marks
   data ready.
2. The surface reports readiness through ``pipeline.inbound.surface_ready()``
   (any thread) or the host calls ``mark_surface_ready()`` (control context).
3. When both have happened the gate fires once and the whole batch is sent.
4. Afterwards ``upsert``/``remove``/``clear`` act on the surface immediately.

Public API
----------
``ChartPipeline`` : The pipeline
``RenderState`` : idle / loading / success / error
``Observable`` : Minimal observable value for shell bindings
``ChartProducer`` : Protocol for ``build_all()``
"""

from __future__ import annotations

import warnings
from collections.abc import Callable, Iterable, Sequence
from enum import Enum
from typing import Generic, Protocol, TypeVar

from .core.channel import BatchReport, BoundaryChannel, SurfaceTransport
from .core.config import BridgeConfig
from .core.dispatch import Dispatcher, InlineDispatcher
from .core.errors import ChartBridgeWarning, ChartDataError, get_logger
from .core.gate import ReadinessGate
from .core.spec import ChartSpec

__all__ = ["RenderState", "Observable", "ChartProducer", "ChartPipeline"]

logger = get_logger()

T = TypeVar("T")


class RenderState(Enum):
    IDLE = "idle"
    LOADING = "loading"
    SUCCESS = "success"
    ERROR = "error"


class Observable(Generic[T]):
    """A value that notifies observers on every ``set``.

    New observers receive the current value immediately when there is one.
    """

    def __init__(self, value: T | None = None) -> None:
        self._value = value
        self._observers: list[Callable[[T], None]] = []

    @property
    def value(self) -> T | None:
        return self._value

    def observe(self, observer: Callable[[T], None]) -> Callable[[], None]:
        """Subscribe ``observer``; returns a callable that unsubscribes it."""
        self._observers.append(observer)
        if self._value is not None:
            observer(self._value)

        def _unsubscribe() -> None:
            if observer in self._observers:
                self._observers.remove(observer)

        return _unsubscribe

    def set(self, value: T) -> None:
        self._value = value
        for observer in list(self._observers):
            observer(value)


class ChartProducer(Protocol):
    """Data-producing collaborator."""

    def build_all(self) -> Sequence[ChartSpec]:
        """Return the chart batch or raise ``ChartDataError``."""
        ...


class ChartPipeline:
    """Render a chart batch exactly once both surface and data are ready.

    Parameters
    ----------
    transport : SurfaceTransport
        Delivers scripts to the rendering surface.
    dispatcher : Dispatcher, optional
        The host control context; inline by default.
    config : BridgeConfig, optional
        Naming and pivot settings; package defaults when omitted.

    Examples
    --------
    >>> transport = RecordingTransport()
    >>> pipeline = ChartPipeline(transport)
    >>> pipeline.on_data_ready([spec])
    >>> pipeline.inbound.surface_ready("echarts_factory")
    >>> pipeline.render_state.value
    <RenderState.SUCCESS: 'success'>
    """

    def __init__(
        self,
        transport: SurfaceTransport,
        *,
        dispatcher: Dispatcher | None = None,
        config: BridgeConfig | None = None,
    ) -> None:
        self.config = config or BridgeConfig()
        self.dispatcher = dispatcher or InlineDispatcher()
        self.render_state: Observable[RenderState] = Observable(RenderState.IDLE)
        self.messages: Observable[str] = Observable()
        self.last_report: BatchReport | None = None
        self._pending: dict[str, ChartSpec] = {}
        self.channel = BoundaryChannel(
            transport,
            dispatcher=self.dispatcher,
            listener=self,
            naming=self.config.naming,
            missing_value=self.config.pivot.missing_value,
        )
        self.gate = ReadinessGate(self._render_all, dispatcher=self.dispatcher)

    @property
    def inbound(self):
        """Signals for the rendering surface to call (any thread)."""
        return self.channel.inbound

    @property
    def rendered(self) -> bool:
        return self.gate.rendered

    @property
    def pending_ids(self) -> list[str]:
        return list(self._pending)

    # ------------------------------------------------------------ shell API
    def mark_surface_ready(self, page_name: str | None = None) -> None:
        """Host-side readiness signal, e.g. page load finished."""
        self.channel.mark_ready(page_name or self.config.surface.ready_page)

    def load(self, producer: ChartProducer) -> None:
        """Build the batch from ``producer`` and mark data ready."""
        self.dispatcher.assert_control_context()
        self.render_state.set(RenderState.LOADING)
        try:
            specs = producer.build_all()
        except ChartDataError as e:
            self.on_data_error(f"Chart data failed to load: {e}")
            return
        self.on_data_ready(specs)

    def on_data_ready(self, specs: Iterable[ChartSpec]) -> None:
        """Accept a chart batch; renders now if the first render already happened."""
        self.dispatcher.assert_control_context()
        batch = self._dedupe(specs)
        if not batch:
            self.on_data_error("[122] Producer returned no charts")
            return
        if self.gate.rendered:
            self._publish(self.channel.render_batch(batch.values()))
            return
        self._pending = batch
        if self.render_state.value is not RenderState.LOADING:
            self.render_state.set(RenderState.LOADING)
        self.gate.mark_data_ready()

    def on_data_error(self, message: str) -> None:
        self.dispatcher.assert_control_context()
        logger.error(message)
        self.render_state.set(RenderState.ERROR)
        self.messages.set(message)

    def upsert(self, spec: ChartSpec) -> bool:
        """Add or replace one chart; True if a render command was sent.

        Before the first render the chart joins (or replaces its id in) the
        pending batch instead.
        """
        self.dispatcher.assert_control_context()
        if not self.gate.rendered:
            self._pending[spec.id] = spec
            return False
        try:
            command = self.channel.render_one(spec)
        except ChartDataError as e:
            logger.warning(f"Chart {spec.id!r} not rendered: {e}")
            self.messages.set(f"Chart {spec.id!r} not rendered: {e}")
            return False
        if command is None:
            return False
        if command.skipped:
            message = f"Chart {spec.id!r}: {len(command.skipped)} row(s) skipped for missing fields"
            logger.warning(message)
            self.messages.set(message)
        return True

    def remove(self, chart_id: str) -> bool:
        """Remove one chart; unknown ids are ignored."""
        self.dispatcher.assert_control_context()
        if not self.gate.rendered:
            return self._pending.pop(chart_id, None) is not None
        return self.channel.remove(chart_id)

    def clear(self) -> None:
        self.dispatcher.assert_control_context()
        self._pending.clear()
        if self.gate.rendered:
            self.channel.clear_all()

    # ------------------------------------------------------- surface listener
    def on_surface_ready(self) -> None:
        self.gate.mark_surface_ready()

    def on_surface_error(self, message: str) -> None:
        error = self.gate.fail(message)
        self.messages.set(str(error))

    # -------------------------------------------------------------- internals
    @staticmethod
    def _dedupe(specs: Iterable[ChartSpec]) -> dict[str, ChartSpec]:
        batch: dict[str, ChartSpec] = {}
        for spec in specs:
            if spec.id in batch:
                msg = f"[123] Chart id {spec.id!r} repeated in batch; last definition wins"
                warnings.warn(msg, ChartBridgeWarning, stacklevel=3)
                logger.warning(msg)
            batch[spec.id] = spec
        return batch

    def _render_all(self) -> None:
        batch = list(self._pending.values())
        self._pending = {}
        self._publish(self.channel.render_batch(batch))

    def _publish(self, report: BatchReport) -> None:
        self.last_report = report
        for warning in report.warnings():
            self.messages.set(warning)
        if report.failures and report.sent == 0:
            summary = "; ".join(f"{f.chart_id}: {f.message}" for f in report.failures)
            logger.error(f"No chart could be rendered: {summary}")
            self.render_state.set(RenderState.ERROR)
            self.messages.set(f"[130] No chart could be rendered: {summary}")
            return
        logger.info(f"{report.sent} chart(s) sent to the rendering surface")
        self.render_state.set(RenderState.SUCCESS)
