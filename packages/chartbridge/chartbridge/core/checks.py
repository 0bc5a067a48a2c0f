"""Lint checks for chart specs.

``ChartSpec`` construction only rejects structurally broken input. Field
references (encode roles, grouping field, dimensions) are checked here, so a
producer can find charts that would render with silently missing data.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable
from dataclasses import dataclass

from .codec import encode_config, encode_rows
from .errors import ChartSerializationError
from .pivot import CATEGORY_ROLE, VALUE_ROLE
from .spec import ChartSpec

__all__ = ["CheckResult", "check_spec", "check_batch"]

_MAX_LISTED_ROWS = 10


@dataclass(frozen=True, slots=True)
class CheckResult:
    """Result of checking a chart spec."""

    chart_id: str
    errors: tuple[str, ...] = ()
    warnings: tuple[str, ...] = ()

    @property
    def ok(self) -> bool:
        return not self.errors


def _row_list(indices: list[int]) -> str:
    shown = ", ".join(str(i) for i in indices[:_MAX_LISTED_ROWS])
    more = len(indices) - _MAX_LISTED_ROWS
    return f"{shown}, ... (+{more})" if more > 0 else shown


def check_spec(spec: ChartSpec) -> CheckResult:
    """Check field references and encodability of one spec.

    Parameters
    ----------
    spec : ChartSpec
        Chart to check.

    Returns
    -------
    CheckResult
        Errors (chart will not render correctly) and warnings (chart renders,
        possibly with missing data).
    """
    errors: list[str] = []
    warnings: list[str] = []
    prefix = f"Chart[{spec.id}]"

    if not spec.encode:
        errors.append(f"{prefix}.encode must map at least one role to a field.")
    if not spec.rows:
        warnings.append(f"{prefix} has no rows and renders as an empty chart.")

    for role, field_name in spec.encode.items():
        missing = [i for i, row in enumerate(spec.rows) if field_name not in row]
        if missing:
            warnings.append(
                f"{prefix}.encode[{role!r}] field {field_name!r} is missing in rows {_row_list(missing)}."
            )

    if spec.group_field is not None:
        absent_roles = [r for r in (CATEGORY_ROLE, VALUE_ROLE) if r not in spec.encode]
        if absent_roles:
            errors.append(
                f"{prefix} sets group_field={spec.group_field!r} but encode lacks role(s) {absent_roles}."
            )
        missing = [i for i, row in enumerate(spec.rows) if spec.group_field not in row]
        if missing:
            warnings.append(
                f"{prefix}.group_field {spec.group_field!r} is missing in rows {_row_list(missing)}."
            )

    if spec.dimensions:
        known = set(spec.field_names())
        unknown = [d for d in spec.dimensions if d not in known]
        if unknown and spec.rows:
            warnings.append(f"{prefix}.dimensions not present in any row: {unknown}.")

    try:
        encode_rows(spec.rows, chart_id=spec.id)
        encode_config(spec)
    except ChartSerializationError as e:
        errors.append(f"{prefix} cannot be serialized: {e}")

    return CheckResult(chart_id=spec.id, errors=tuple(errors), warnings=tuple(warnings))


def check_batch(specs: Iterable[ChartSpec]) -> list[CheckResult]:
    """Check every spec and flag ids that occur more than once in the batch."""
    specs = list(specs)
    counts = Counter(spec.id for spec in specs)
    results = []
    for spec in specs:
        result = check_spec(spec)
        if counts[spec.id] > 1:
            result = CheckResult(
                chart_id=result.chart_id,
                errors=result.errors
                + (f"Chart[{spec.id}] id occurs {counts[spec.id]} times in the batch.",),
                warnings=result.warnings,
            )
        results.append(result)
    return results
