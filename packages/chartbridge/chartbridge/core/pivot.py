"""chartbridge: Pivot transform
-----------------------------
Turn flat, grouped rows into dense, aligned per-group series.

Behavior
--------
- One in-order scan over ``spec.rows``. Category values (field of the ``x``
  role) and group values (``spec.group_field``) are collected in first-seen
  order; the metric (field of the ``y`` role) is stored per
  ``(group, category)`` with last-write-wins.
- Every output series carries one value per category, in category order;
  combinations no row supplied resolve to ``MISSING_VALUE`` (0) so stacked
  renderings add up.
- Rows lacking the category, group or metric field are skipped and reported
  in ``PivotResult.skipped``; they never abort the transform.

Notes
-----
- First-seen ordering is kept on purpose: labels such as month names arrive in
  a meaningful order that sorting would destroy.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from .errors import ChartDataError, get_logger
from .spec import ChartSpec

__all__ = [
    "CATEGORY_ROLE",
    "VALUE_ROLE",
    "MISSING_VALUE",
    "SkippedRow",
    "PivotSeries",
    "PivotResult",
    "pivot",
]

CATEGORY_ROLE = "x"
VALUE_ROLE = "y"
MISSING_VALUE = 0

logger = get_logger()


@dataclass(frozen=True, slots=True)
class SkippedRow:
    """A row left out of the pivot because a required field is absent."""

    index: int
    missing_fields: tuple[str, ...]


@dataclass(frozen=True, slots=True)
class PivotSeries:
    """One group's values aligned to the shared category axis."""

    name: Any
    points: tuple[tuple[Any, Any], ...]

    @property
    def values(self) -> tuple[Any, ...]:
        return tuple(value for _, value in self.points)


@dataclass(frozen=True, slots=True)
class PivotResult:
    """Output of ``pivot``.

    Attributes
    ----------
    category_field : str
        Field feeding the category axis.
    group_field : str
        Field whose values name the series.
    value_field : str
        Field holding the metric.
    categories : tuple
        Distinct category values in first-seen order.
    series : tuple of PivotSeries
        One series per distinct group value, in first-seen order.
    skipped : tuple of SkippedRow
        Rows dropped for missing fields (data-quality errors).
    """

    category_field: str
    group_field: str
    value_field: str
    categories: tuple[Any, ...]
    series: tuple[PivotSeries, ...]
    skipped: tuple[SkippedRow, ...] = ()

    def to_rows(self) -> list[dict[str, Any]]:
        """Dense long-format rows, group-major then category order.

        Field names are the spec's own, so the chart's encode mapping and
        grouping field stay valid for the pivoted rows.
        """
        return [
            {
                self.category_field: category,
                self.group_field: series.name,
                self.value_field: value,
            }
            for series in self.series
            for category, value in series.points
        ]

    def warnings(self) -> list[str]:
        return [
            f"row {s.index} skipped: missing {', '.join(s.missing_fields)}"
            for s in self.skipped
        ]


def pivot(spec: ChartSpec, *, missing_value: Any = MISSING_VALUE) -> PivotResult:
    """Pivot a grouped spec's rows into aligned series.

    Parameters
    ----------
    spec : ChartSpec
        Spec with ``group_field`` set and ``x``/``y`` roles in ``encode``.
    missing_value : Any, default 0
        Value used for (group, category) combinations with no row.

    Returns
    -------
    PivotResult
        Categories, dense series and skipped-row report.

    Raises
    ------
    ChartDataError
        - [110] The encode mapping lacks the ``x`` or ``y`` role.
        - [111] The spec has no grouping field.
        - [112] A category or group value is not hashable.

    Examples
    --------
    >>> rows = [
    ...     {"date": "Jan", "channel": "Online", "revenue": 5000},
    ...     {"date": "Feb", "channel": "Online", "revenue": 6200},
    ...     {"date": "Jan", "channel": "Offline", "revenue": 3500},
    ... ]
    >>> spec = ChartSpec.create("s", rows, encode={"x": "date", "y": "revenue"},
    ...                         group_field="channel")
    >>> [s.values for s in pivot(spec).series]
    [(5000, 6200), (3500, 0)]
    """
    if spec.group_field is None:
        raise ChartDataError(f"[111] Chart {spec.id!r} has no grouping field to pivot on")
    missing_roles = [r for r in (CATEGORY_ROLE, VALUE_ROLE) if r not in spec.encode]
    if missing_roles:
        raise ChartDataError(
            f"[110] Chart {spec.id!r} is grouped but encode lacks role(s) {missing_roles}"
        )

    category_field = spec.encode[CATEGORY_ROLE]
    value_field = spec.encode[VALUE_ROLE]
    group_field = spec.group_field
    required = (category_field, group_field, value_field)

    # keyed by (type, value): 1, 1.0 and True compare equal but are distinct on the wire
    categories: dict[tuple[type, Any], Any] = {}
    groups: dict[tuple[type, Any], Any] = {}
    cells: dict[tuple[tuple[type, Any], tuple[type, Any]], Any] = {}
    skipped: list[SkippedRow] = []

    for index, row in enumerate(spec.rows):
        absent = tuple(name for name in required if name not in row)
        if absent:
            skipped.append(SkippedRow(index=index, missing_fields=absent))
            continue
        category, group = row[category_field], row[group_field]
        category_key, group_key = (type(category), category), (type(group), group)
        try:
            categories.setdefault(category_key, category)
            groups.setdefault(group_key, group)
        except TypeError as e:
            raise ChartDataError(
                f"[112] Chart {spec.id!r} row {index}: category/group value is not hashable: {e}"
            ) from e
        cells[(group_key, category_key)] = row[value_field]

    if skipped:
        logger.warning(
            f"Chart {spec.id!r}: {len(skipped)} row(s) skipped during pivot "
            f"(missing {', '.join(sorted({f for s in skipped for f in s.missing_fields}))})"
        )

    # no group value at all: degenerate to a single, empty series
    group_items = list(groups.items()) or [((str, value_field), value_field)]
    series = tuple(
        PivotSeries(
            name=group,
            points=tuple(
                (category, cells.get((group_key, category_key), missing_value))
                for category_key, category in categories.items()
            ),
        )
        for group_key, group in group_items
    )
    return PivotResult(
        category_field=category_field,
        group_field=group_field,
        value_field=value_field,
        categories=tuple(categories.values()),
        series=series,
        skipped=tuple(skipped),
    )
