"""chartbridge: Chart presets
---------------------------
Registry-backed chart producer. Each preset is a zero-argument builder that
returns a ``ChartSpec``; ``PresetProducer.build_all`` builds every registered
preset in registration order, which is the order charts appear on the surface.

Adding a chart means registering one more builder::

    @preset("revenue_bar")
    def revenue_bar() -> ChartSpec:
        return ChartSpec.create("revenue_chart", fetch_rows(), encode={"x": "date", "y": "revenue"})

Custom chart types drawn by the rendering surface's own presets (for example
``bar-normalized``) need no host-side code beyond ``register_chart_type``.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import Any

from .core.errors import ChartDataError, get_logger
from .core.registry import RegistryCenter, registry
from .core.spec import ChartSpec

__all__ = ["PRESET_NAMESPACE", "preset", "PresetProducer"]

PRESET_NAMESPACE = "preset"

logger = get_logger()

PresetBuilder = Callable[[], ChartSpec]


def preset(
    name: str, *, center: RegistryCenter | None = None, **meta: Any
) -> Callable[[PresetBuilder], PresetBuilder]:
    """Register a preset builder under ``preset:<name>``."""
    return (center or registry).decorator(PRESET_NAMESPACE, name, **meta)


class PresetProducer:
    """Data producer that builds registered presets.

    Parameters
    ----------
    center : RegistryCenter, optional
        Registry to read presets from; the global registry by default.
    names : sequence of str, optional
        Restrict to these presets, in this order.
    """

    def __init__(
        self,
        center: RegistryCenter | None = None,
        names: Sequence[str] | None = None,
    ) -> None:
        self._center = center or registry
        self._names = list(names) if names is not None else None

    def build_all(self) -> list[ChartSpec]:
        """Build every selected preset.

        Raises
        ------
        ChartDataError
            - [120] A builder failed or returned something other than a ChartSpec.
        """
        names = self._names
        if names is None:
            names = list(self._center.list(PRESET_NAMESPACE))
        specs: list[ChartSpec] = []
        for name in names:
            builder = self._center.get(f"{PRESET_NAMESPACE}:{name}")
            try:
                spec = builder()
            except ChartDataError as e:
                raise ChartDataError(f"[120] Preset {name!r} failed: {e}") from e
            if not isinstance(spec, ChartSpec):
                raise ChartDataError(
                    f"[120] Preset {name!r} returned {type(spec).__name__}, expected ChartSpec"
                )
            specs.append(spec)
        logger.debug(f"Built {len(specs)} preset chart(s)")
        return specs
