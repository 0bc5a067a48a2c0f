"""chartbridge: Readiness gate
----------------------------
Two-signal state machine that fires the first full render exactly once, after
both the rendering surface and the chart data are ready, in either order.

States: ``UNREADY -> SURFACE_ONLY | DATA_ONLY -> RENDERED``. Transitions are a
lookup table; the only place ``render_all`` is invoked is the single edge into
``RENDERED``.
"""

from __future__ import annotations

from collections.abc import Callable
from enum import Enum

from .dispatch import Dispatcher, InlineDispatcher
from .errors import SurfaceError, get_logger

__all__ = ["GateState", "GateEvent", "next_state", "ReadinessGate"]

logger = get_logger()


class GateState(Enum):
    UNREADY = "unready"
    SURFACE_ONLY = "surface_only"
    DATA_ONLY = "data_only"
    RENDERED = "rendered"


class GateEvent(Enum):
    SURFACE_READY = "surface_ready"
    DATA_READY = "data_ready"


_TRANSITIONS: dict[tuple[GateState, GateEvent], GateState] = {
    (GateState.UNREADY, GateEvent.SURFACE_READY): GateState.SURFACE_ONLY,
    (GateState.UNREADY, GateEvent.DATA_READY): GateState.DATA_ONLY,
    (GateState.SURFACE_ONLY, GateEvent.SURFACE_READY): GateState.SURFACE_ONLY,
    (GateState.SURFACE_ONLY, GateEvent.DATA_READY): GateState.RENDERED,
    (GateState.DATA_ONLY, GateEvent.DATA_READY): GateState.DATA_ONLY,
    (GateState.DATA_ONLY, GateEvent.SURFACE_READY): GateState.RENDERED,
    (GateState.RENDERED, GateEvent.SURFACE_READY): GateState.RENDERED,
    (GateState.RENDERED, GateEvent.DATA_READY): GateState.RENDERED,
}


def next_state(state: GateState, event: GateEvent) -> GateState:
    """Pure transition function of the gate."""
    return _TRANSITIONS[(state, event)]


class ReadinessGate:
    """Fire ``render_all`` once both readiness signals have arrived.

    Parameters
    ----------
    render_all : Callable[[], None]
        One-shot callback for the first full render.
    dispatcher : Dispatcher, optional
        Used to assert that every transition happens on the control context.

    Notes
    -----
    If ``render_all`` raises, the gate still counts as rendered and the error
    propagates to whoever delivered the triggering signal.

    Examples
    --------
    >>> calls = []
    >>> gate = ReadinessGate(lambda: calls.append(1))
    >>> gate.mark_data_ready(), gate.mark_surface_ready(), gate.mark_data_ready()
    (False, True, False)
    >>> calls
    [1]
    """

    def __init__(
        self,
        render_all: Callable[[], None],
        *,
        dispatcher: Dispatcher | None = None,
    ) -> None:
        self._render_all = render_all
        self._dispatcher = dispatcher or InlineDispatcher()
        self._state = GateState.UNREADY
        self.last_error: SurfaceError | None = None

    @property
    def state(self) -> GateState:
        return self._state

    @property
    def surface_ready(self) -> bool:
        return self._state in (GateState.SURFACE_ONLY, GateState.RENDERED)

    @property
    def data_ready(self) -> bool:
        return self._state in (GateState.DATA_ONLY, GateState.RENDERED)

    @property
    def rendered(self) -> bool:
        return self._state is GateState.RENDERED

    def mark_surface_ready(self) -> bool:
        """Record surface readiness; True if this call fired the render."""
        return self._advance(GateEvent.SURFACE_READY)

    def mark_data_ready(self) -> bool:
        """Record data readiness; True if this call fired the render."""
        return self._advance(GateEvent.DATA_READY)

    def fail(self, message: str) -> SurfaceError:
        """Record a surface failure without changing state.

        Returns the ``SurfaceError`` for the caller to report; the gate never
        becomes rendered because of an error.
        """
        self._dispatcher.assert_control_context()
        error = SurfaceError(f"[300] Rendering surface reported: {message}")
        self.last_error = error
        logger.warning(f"{error} (gate state: {self._state.value})")
        return error

    def _advance(self, event: GateEvent) -> bool:
        self._dispatcher.assert_control_context()
        previous = self._state
        self._state = next_state(previous, event)
        if self._state is previous:
            return False
        logger.debug(f"Readiness gate: {previous.value} -> {self._state.value} on {event.value}")
        if self._state is GateState.RENDERED:
            self._render_all()
            return True
        return False
