"""chartbridge: Boundary channel
------------------------------
Fire-and-forget command surface into the rendering surface, plus the inbound
signals the surface sends back.

Behavior
--------
- Outbound: ``render_one``, ``render_batch``, ``remove`` and ``clear_all``
  encode commands with the codec and hand the script to a ``SurfaceTransport``.
  Nothing is returned from the surface; all of them are silent no-ops until
  the surface is ready.
- Re-sending a chart id already on the surface is an update of the same
  instance; removing an id that was never rendered sends nothing.
- Inbound: ``channel.inbound.surface_ready()`` / ``surface_error(message)`` may
  be called from any thread. Both are posted to the dispatcher and only then
  change channel state or reach the ``SurfaceListener``.

Public API
----------
``SurfaceTransport`` : Protocol for ``invoke(script)``
``SurfaceListener`` : Protocol receiving marshaled surface signals
``BoundaryChannel`` : The channel itself
``BatchReport`` / ``ChartFailure`` : Per-batch outcome
``RecordingTransport`` : Transport that keeps every script it is given
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable

from .codec import (
    RenderCommand,
    build_clear_command,
    build_remove_command,
    build_render_command,
)
from .config import CommandNaming
from .dispatch import Dispatcher, InlineDispatcher
from .errors import ChartDataError, get_logger
from .pivot import MISSING_VALUE
from .spec import ChartSpec

__all__ = [
    "SurfaceTransport",
    "SurfaceListener",
    "ChartFailure",
    "BatchReport",
    "BoundaryChannel",
    "RecordingTransport",
]

logger = get_logger()


@runtime_checkable
class SurfaceTransport(Protocol):
    """Asynchronous, one-way call into the rendering surface."""

    def invoke(self, script: str) -> None:
        """Send ``script``; must not block on the surface."""
        ...


class SurfaceListener(Protocol):
    """Receives surface signals after they reach the control context."""

    def on_surface_ready(self) -> None: ...

    def on_surface_error(self, message: str) -> None: ...


@dataclass(frozen=True, slots=True)
class ChartFailure:
    """A chart dropped from a batch because it could not be encoded."""

    chart_id: str
    message: str


@dataclass(slots=True)
class BatchReport:
    """Outcome of ``render_batch``.

    Attributes
    ----------
    added : list of str
        Ids sent for the first time, in batch order.
    updated : list of str
        Ids re-sent to an existing on-surface chart.
    failures : list of ChartFailure
        Charts dropped for data or serialization errors.
    skipped_rows : dict of str to int
        Per-chart count of rows the pivot skipped.
    """

    added: list[str] = field(default_factory=list)
    updated: list[str] = field(default_factory=list)
    failures: list[ChartFailure] = field(default_factory=list)
    skipped_rows: dict[str, int] = field(default_factory=dict)

    @property
    def sent(self) -> int:
        return len(self.added) + len(self.updated)

    @property
    def ok(self) -> bool:
        return not self.failures and not self.skipped_rows

    def warnings(self) -> list[str]:
        messages = [f"Chart {f.chart_id!r} not rendered: {f.message}" for f in self.failures]
        messages.extend(
            f"Chart {chart_id!r}: {count} row(s) skipped for missing fields"
            for chart_id, count in self.skipped_rows.items()
        )
        return messages


class RecordingTransport:
    """Transport that records scripts instead of delivering them."""

    def __init__(self) -> None:
        self.scripts: list[str] = []

    def invoke(self, script: str) -> None:
        self.scripts.append(script)


class _Inbound:
    """Entry points the rendering surface calls; safe from any thread."""

    def __init__(self, channel: BoundaryChannel) -> None:
        self._channel = channel

    def surface_ready(self, page_name: str | None = None) -> None:
        self._channel._dispatcher.post(lambda: self._channel._on_ready(page_name))

    def surface_error(self, message: str) -> None:
        self._channel._dispatcher.post(lambda: self._channel._on_error(str(message)))


class BoundaryChannel:
    """Outbound command channel and inbound signal handler.

    Parameters
    ----------
    transport : SurfaceTransport
        Delivers scripts to the rendering surface.
    dispatcher : Dispatcher, optional
        Control-context dispatcher for inbound signals; inline by default.
    listener : SurfaceListener, optional
        Receives ready/error signals once marshaled.
    naming : CommandNaming, optional
        Surface function names.
    missing_value : Any, default 0
        Pivot sentinel for grouped charts.
    """

    def __init__(
        self,
        transport: SurfaceTransport,
        *,
        dispatcher: Dispatcher | None = None,
        listener: SurfaceListener | None = None,
        naming: CommandNaming | None = None,
        missing_value: Any = MISSING_VALUE,
    ) -> None:
        self._transport = transport
        self._dispatcher = dispatcher or InlineDispatcher()
        self._listener = listener
        self._naming = naming or CommandNaming()
        self._missing_value = missing_value
        self._surface_ready = False
        self._chart_ids: set[str] = set()
        self.inbound = _Inbound(self)

    @property
    def is_surface_ready(self) -> bool:
        return self._surface_ready

    @property
    def chart_ids(self) -> frozenset[str]:
        """Ids currently on the surface, as far as this channel has sent."""
        return frozenset(self._chart_ids)

    def mark_ready(self, page_name: str | None = None) -> None:
        """Mark the surface ready from the control context itself."""
        self._dispatcher.assert_control_context()
        self._on_ready(page_name)

    # ----------------------------------------------------------------- outbound
    def render_one(self, spec: ChartSpec) -> RenderCommand | None:
        """Encode and send one chart; None when the surface is not ready.

        Raises
        ------
        ChartDataError
            The chart could not be pivoted or serialized; nothing was sent.
        """
        if not self._surface_ready:
            logger.debug(f"Surface not ready; dropping render of {spec.id!r}")
            return None
        command = build_render_command(
            spec, naming=self._naming, missing_value=self._missing_value
        )
        verb = "Updating" if spec.id in self._chart_ids else "Rendering"
        logger.debug(f"{verb} chart {spec.id!r} ({spec.chart_type}, {len(spec.rows)} rows)")
        self._transport.invoke(command.script)
        self._chart_ids.add(spec.id)
        return command

    def render_batch(self, specs: Iterable[ChartSpec]) -> BatchReport:
        """Render charts one by one in order; failures do not stop the batch."""
        report = BatchReport()
        if not self._surface_ready:
            logger.debug("Surface not ready; dropping render batch")
            return report
        for spec in specs:
            existed = spec.id in self._chart_ids
            try:
                command = self.render_one(spec)
            except ChartDataError as e:
                logger.warning(f"Chart {spec.id!r} dropped from batch: {e}")
                report.failures.append(ChartFailure(chart_id=spec.id, message=str(e)))
                continue
            if command is None:
                continue
            (report.updated if existed else report.added).append(spec.id)
            if command.skipped:
                report.skipped_rows[spec.id] = len(command.skipped)
        logger.info(
            f"Render batch: {len(report.added)} added, {len(report.updated)} updated, "
            f"{len(report.failures)} failed"
        )
        return report

    def remove(self, chart_id: str) -> bool:
        """Remove a chart; True if a remove command was sent."""
        if not self._surface_ready or chart_id not in self._chart_ids:
            return False
        self._transport.invoke(build_remove_command(chart_id, naming=self._naming))
        self._chart_ids.discard(chart_id)
        logger.debug(f"Removed chart {chart_id!r}")
        return True

    def clear_all(self) -> bool:
        """Remove every chart; True if the clear command was sent."""
        if not self._surface_ready:
            return False
        self._transport.invoke(build_clear_command(naming=self._naming))
        self._chart_ids.clear()
        logger.debug("Cleared all charts")
        return True

    # ------------------------------------------------------------------ inbound
    def _on_ready(self, page_name: str | None) -> None:
        if self._surface_ready:
            return
        self._surface_ready = True
        logger.info(f"Rendering surface ready{f' ({page_name})' if page_name else ''}")
        if self._listener is not None:
            self._listener.on_surface_ready()

    def _on_error(self, message: str) -> None:
        logger.warning(f"Rendering surface error: {message}")
        if self._listener is not None:
            self._listener.on_surface_error(message)
