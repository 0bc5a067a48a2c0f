"""chartbridge: Chart specification model
---------------------------------------
Immutable Pydantic model describing one chart: identity, data rows, the
role-to-field encode mapping, optional grouping field, optional explicit
dimensions and opaque style overrides.

Behavior
--------
- Construction goes through ``ChartSpec.create`` / ``ChartSpec.from_mapping``,
  which normalize validation failures to ``ChartDataError`` ([100]).
- Instances are frozen. An update is a new value with the same id, produced by
  ``ChartSpec.evolve``.
- Rows are copied on construction; the caller's lists and dicts can be reused
  freely afterwards.
- Rows, ``encode`` and ``options`` are stored as read-only mappings (nested
  option lists become tuples). ``thaw`` gives back plain dicts and lists.

Notes
-----
- Field presence (encode fields, grouping field, dimensions) is not validated
  at construction. Use ``chartbridge.core.checks.check_spec`` to lint a spec.
- The chart type is an opaque identifier and is never inspected here.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from types import MappingProxyType
from typing import Any

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
)

from .errors import ChartDataError

__all__ = [
    "DataRow",
    "EncodeMapping",
    "ChartSpec",
    "freeze",
    "thaw",
]

DataRow = Mapping[str, Any]
EncodeMapping = Mapping[str, str]

# wire/file spellings accepted by ``evolve`` in addition to field names
_FIELD_ALIASES = {
    "type": "chart_type",
    "groupField": "group_field",
    "stackField": "group_field",
}


def freeze(value: Any) -> Any:
    """Read-only deep copy: mappings become ``MappingProxyType``, lists tuples."""
    if isinstance(value, Mapping):
        return MappingProxyType({k: freeze(v) for k, v in value.items()})
    if isinstance(value, (list, tuple)):
        return tuple(freeze(v) for v in value)
    return value


def thaw(value: Any) -> Any:
    """Inverse of ``freeze``: plain dicts and lists, ready for JSON."""
    if isinstance(value, Mapping):
        return {k: thaw(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [thaw(v) for v in value]
    return value


class ChartSpec(BaseModel):
    """
    Declarative description of one chart.

    Parameters
    ----------
    id : str
        Non-empty identifier, unique within a render batch. Later updates and
        removals address the on-surface chart by this id.
    title : str, default ""
        Chart title.
    chart_type : str, default "bar"
        Built-in or custom chart type identifier (wire name ``type``).
    rows : tuple of Mapping
        Ordered, read-only data rows, each mapping field name to a scalar value.
    dimensions : tuple of str, optional
        Explicit dimension list, forwarded verbatim.
    encode : Mapping of str to str
        Visual role to field name mapping, e.g. ``{"x": "date", "y": "revenue"}``.
    group_field : str, optional
        Field whose distinct values become separate series (wire name
        ``stackField``).
    options : Mapping, optional
        Free-form style/behavior overrides passed through untouched (stored
        frozen; see ``thaw``).

    Examples
    --------
    >>> spec = ChartSpec.create(
    ...     "revenue_chart",
    ...     [{"date": "Jan", "revenue": 8500}],
    ...     encode={"x": "date", "y": "revenue"},
    ... )
    >>> spec.chart_type
    'bar'
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    id: str = Field(..., description="Chart identity on the rendering surface")
    title: str = Field(default="", description="Chart title")
    chart_type: str = Field(
        default="bar",
        min_length=1,
        validation_alias=AliasChoices("chart_type", "type"),
        serialization_alias="type",
        description="Opaque chart type identifier",
    )
    rows: tuple[Mapping[str, Any], ...] = Field(..., description="Ordered data rows")
    dimensions: tuple[str, ...] | None = Field(
        default=None, description="Optional explicit dimension names"
    )
    encode: Mapping[str, str] = Field(..., description="Role to field mapping")
    group_field: str | None = Field(
        default=None,
        validation_alias=AliasChoices("group_field", "groupField", "stackField"),
        serialization_alias="stackField",
        description="Optional grouping field; triggers the pivot transform",
    )
    options: Mapping[str, Any] | None = Field(
        default=None, description="Opaque style/behavior overrides"
    )

    @field_validator("id")
    @classmethod
    def _check_id(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("chart id must be a non-empty string")
        return v

    @field_validator("rows", mode="before")
    @classmethod
    def _copy_rows(cls, v: Any) -> Any:
        if v is None:
            raise ValueError("rows cannot be None")
        if isinstance(v, (str, bytes, Mapping)) or not isinstance(v, Iterable):
            raise ValueError("rows must be a sequence of mappings")
        copied = []
        for index, row in enumerate(v):
            if not isinstance(row, Mapping):
                raise ValueError(f"row {index} is not a mapping")
            copied.append(dict(row))
        return tuple(copied)

    @field_validator("rows")
    @classmethod
    def _freeze_rows(cls, v: tuple[Mapping[str, Any], ...]) -> tuple[Mapping[str, Any], ...]:
        return tuple(MappingProxyType(dict(row)) for row in v)

    @field_validator("encode", "options")
    @classmethod
    def _freeze_mapping(cls, v: Mapping[str, Any] | None) -> Mapping[str, Any] | None:
        return None if v is None else freeze(v)

    @field_validator("group_field")
    @classmethod
    def _blank_group_is_none(cls, v: str | None) -> str | None:
        # an empty grouping field means "not grouped"
        if v is not None and not v.strip():
            return None
        return v

    # ------------------------------------------------------------------ factories
    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> ChartSpec:
        """Validate a raw mapping into a ``ChartSpec``.

        Accepts both Python field names (``chart_type``, ``group_field``) and
        wire spellings (``type``, ``stackField``/``groupField``).

        Raises
        ------
        ChartDataError
            - [100] The mapping does not describe a valid chart.
        """
        if not isinstance(raw, Mapping):
            raise ChartDataError(
                f"[100] Invalid chart spec: expected a mapping, got {type(raw).__name__}"
            )
        try:
            return cls.model_validate(dict(raw))
        except ValidationError as e:
            raise ChartDataError(
                f"[100] Invalid chart spec {raw.get('id')!r}: {e}"
            ) from e

    @classmethod
    def create(
        cls,
        id: str,
        rows: Iterable[DataRow] | None,
        *,
        encode: EncodeMapping | None,
        chart_type: str = "bar",
        title: str = "",
        dimensions: Iterable[str] | None = None,
        group_field: str | None = None,
        options: Mapping[str, Any] | None = None,
    ) -> ChartSpec:
        """Build a validated ``ChartSpec``.

        Raises
        ------
        ChartDataError
            - [100] Empty id, ``rows`` or ``encode`` is None, or any field has
              the wrong type.
        """
        return cls.from_mapping(
            {
                "id": id,
                "title": title,
                "chart_type": chart_type,
                "rows": rows,
                "dimensions": None if dimensions is None else tuple(dimensions),
                "encode": None if encode is None else dict(encode),
                "group_field": group_field,
                "options": None if options is None else dict(options),
            }
        )

    # ------------------------------------------------------------------ updates
    def evolve(self, **changes: Any) -> ChartSpec:
        """Return a new validated spec with ``changes`` applied and the same id.

        Raises
        ------
        ChartDataError
            - [101] ``changes`` tries to change the chart id.
            - [100] The resulting spec is invalid.
        """
        if "id" in changes and changes["id"] != self.id:
            raise ChartDataError(
                f"[101] evolve() cannot change chart id {self.id!r}; build a new spec instead"
            )
        data = {name: thaw(getattr(self, name)) for name in type(self).model_fields}
        for key, value in changes.items():
            data[_FIELD_ALIASES.get(key, key)] = value
        return type(self).from_mapping(data)

    # ------------------------------------------------------------------ helpers
    @property
    def is_grouped(self) -> bool:
        return self.group_field is not None

    def field_names(self) -> tuple[str, ...]:
        """Distinct field names across all rows, in first-seen order."""
        seen: dict[str, None] = {}
        for row in self.rows:
            for name in row:
                seen.setdefault(name, None)
        return tuple(seen)
