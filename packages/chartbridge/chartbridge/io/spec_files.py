"""
chartbridge: Spec files
-----------------------
Read chart definitions from YAML or JSON files.

Accepted layouts::

    charts:                  # or a bare top-level list
      - id: revenue_chart
        type: bar
        title: Monthly revenue
        encode: {x: date, y: revenue}
        stackField: channel  # optional; groupField / group_field also accepted
        rows:
          - {date: Jan, channel: Online, revenue: 5000}

Each chart is validated on its own; a broken chart is reported in
``SpecFileResult.errors`` and does not hide the others.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from ..core.errors import ChartConfigError, ChartDataError, get_logger
from ..core.spec import ChartSpec
from ..core.utils import load_yaml_data

__all__ = ["SpecFileResult", "load_specs_from_file", "FileProducer"]

logger = get_logger()


@dataclass(slots=True)
class SpecFileResult:
    """Charts loaded from one file plus per-chart errors."""

    path: Path
    specs: list[ChartSpec] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    def get(self, chart_id: str) -> ChartSpec | None:
        return next((s for s in self.specs if s.id == chart_id), None)


def _chart_entries(data: Any, path: Path) -> list[Any]:
    if isinstance(data, list):
        return data
    if isinstance(data, dict) and isinstance(data.get("charts"), list):
        return data["charts"]
    raise ChartConfigError(
        f"[510] {path} must hold a list of charts or a mapping with a 'charts' list"
    )


def load_specs_from_file(path: str | Path) -> SpecFileResult:
    """Load every chart in ``path``.

    Raises
    ------
    ChartConfigError
        - [500]/[501] File missing or unparsable.
        - [510] File does not contain a chart list.
    """
    path = Path(path)
    result = SpecFileResult(path=path)
    for index, entry in enumerate(_chart_entries(load_yaml_data(path), path)):
        try:
            result.specs.append(ChartSpec.from_mapping(entry))
        except ChartDataError as e:
            message = f"{path.name} chart #{index}: {e}"
            logger.warning(message)
            result.errors.append(message)
    logger.info(f"Loaded {len(result.specs)} chart(s) from {path} ({len(result.errors)} invalid)")
    return result


class FileProducer:
    """Chart producer backed by a spec file.

    ``build_all`` raises ``ChartDataError`` when the file cannot be read or
    contains no valid chart; individual invalid charts are logged and skipped.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self.errors: list[str] = []

    def build_all(self) -> list[ChartSpec]:
        try:
            result = load_specs_from_file(self.path)
        except ChartConfigError as e:
            raise ChartDataError(f"[121] Cannot read charts from {self.path}: {e}") from e
        self.errors = list(result.errors)
        if not result.specs:
            raise ChartDataError(f"[122] No valid charts in {self.path}")
        return result.specs
