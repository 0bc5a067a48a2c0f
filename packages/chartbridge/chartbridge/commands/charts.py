"""chartbridge: Chart CLI Commands
---------------------------------------------------------
Commands operating on chart spec files.

Public API
----------
``encode`` : Print (or write) one render script per chart
``check`` : Lint every chart; exit code 1 on errors
``pivot_table`` : Print the pivoted series of a grouped chart
``types`` : List registered chart types
"""

from pathlib import Path

import typer

from chartbridge.core.checks import check_batch
from chartbridge.core.codec import build_render_command
from chartbridge.core.config import BridgeConfig
from chartbridge.core.config_loader import load_bridge_config
from chartbridge.core.errors import (
    ChartBridgeError,
    ChartDataError,
    configure_logging,
    get_logger,
)
from chartbridge.core.pivot import pivot
from chartbridge.core.registry import registry
from chartbridge.io.spec_files import SpecFileResult, load_specs_from_file


def _prepare(
    verbose: bool, log_file: str | None, log_json: bool, config: str | None
) -> BridgeConfig:
    """Load configuration, then configure logging from flags over config."""
    try:
        cfg = load_bridge_config(config_path=config, force_reload=True)
    except ChartBridgeError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1) from e
    configure_logging(
        verbose=verbose or cfg.logging.verbose,
        log_file=log_file or cfg.logging.log_file,
        as_json=log_json or cfg.logging.as_json,
    )
    return cfg


def _load(file: Path) -> SpecFileResult:
    log = get_logger()
    try:
        result = load_specs_from_file(file)
    except ChartBridgeError as e:
        log.error(str(e))
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1) from e
    for message in result.errors:
        typer.echo(f"Invalid chart: {message}", err=True)
    return result


def encode(
    file: Path = typer.Argument(..., help="Chart spec file (YAML or JSON)"),
    out: Path | None = typer.Option(None, "--out", "-o", help="Write scripts to this file"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging"),
    log_file: str | None = typer.Option(None, help="Write logs to file path"),
    log_json: bool = typer.Option(False, help="Log in JSON format"),
    config: str | None = typer.Option(None, "--config", help="Bridge config file"),
):
    """Encode every chart in FILE into the script sent to the rendering surface.

    One script per line. Charts that fail to load or encode are reported on
    stderr and make the command exit with code 1; the others are still written.

    Examples
    --------
        chartbridge encode charts.yaml
        chartbridge encode charts.yaml --out scripts.js
    """
    cfg = _prepare(verbose, log_file, log_json, config)
    log = get_logger()
    result = _load(file)

    scripts: list[str] = []
    failed = len(result.errors)
    for spec in result.specs:
        try:
            command = build_render_command(
                spec, naming=cfg.naming, missing_value=cfg.pivot.missing_value
            )
        except ChartDataError as e:
            failed += 1
            log.error(f"Chart {spec.id!r} cannot be encoded: {e}")
            typer.echo(f"Chart {spec.id!r} cannot be encoded: {e}", err=True)
            continue
        for skipped in command.skipped:
            log.warning(
                f"Chart {spec.id!r}: row {skipped.index} skipped "
                f"(missing {', '.join(skipped.missing_fields)})"
            )
        scripts.append(command.script)

    if out is not None:
        out.write_text("".join(f"{s}\n" for s in scripts), encoding="utf-8")
        typer.echo(f"Wrote {len(scripts)} script(s) to {out}")
    else:
        for script in scripts:
            typer.echo(script)

    if failed:
        raise typer.Exit(code=1)


def check(
    file: Path = typer.Argument(..., help="Chart spec file (YAML or JSON)"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging"),
    log_file: str | None = typer.Option(None, help="Write logs to file path"),
    log_json: bool = typer.Option(False, help="Log in JSON format"),
    config: str | None = typer.Option(None, "--config", help="Bridge config file"),
):
    """Check field references and encodability of every chart in FILE.

    Exits with code 1 when any chart has errors or fails to load.
    """
    _prepare(verbose, log_file, log_json, config)
    result = _load(file)

    n_errors = len(result.errors)
    for res in check_batch(result.specs):
        status = "ok" if res.ok else "FAIL"
        typer.echo(f"[{status}] {res.chart_id}")
        for message in res.errors:
            typer.echo(f"  error: {message}")
        for message in res.warnings:
            typer.echo(f"  warning: {message}")
        n_errors += len(res.errors)

    typer.echo(f"\nChecked {len(result.specs)} chart(s): {n_errors} error(s)")
    if n_errors:
        raise typer.Exit(code=1)


def pivot_table(
    file: Path = typer.Argument(..., help="Chart spec file (YAML or JSON)"),
    chart_id: str = typer.Argument(..., help="Id of a grouped chart in FILE"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging"),
    log_file: str | None = typer.Option(None, help="Write logs to file path"),
    log_json: bool = typer.Option(False, help="Log in JSON format"),
    config: str | None = typer.Option(None, "--config", help="Bridge config file"),
):
    """Print the pivoted series of grouped chart CHART_ID as a table.

    Rows are categories, columns are series; cells no row supplied show the
    configured missing value.
    """
    cfg = _prepare(verbose, log_file, log_json, config)
    result = _load(file)

    spec = result.get(chart_id)
    if spec is None:
        typer.echo(f"Chart {chart_id!r} not found in {file}", err=True)
        raise typer.Exit(code=1)
    try:
        table = pivot(spec, missing_value=cfg.pivot.missing_value)
    except ChartDataError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1) from e

    header = [table.category_field] + [str(s.name) for s in table.series]
    lines = [header]
    for i, category in enumerate(table.categories):
        lines.append([str(category)] + [str(s.points[i][1]) for s in table.series])
    widths = [max(len(line[c]) for line in lines) for c in range(len(header))]
    for line in lines:
        typer.echo("  ".join(cell.ljust(w) for cell, w in zip(line, widths)).rstrip())
    for warning in table.warnings():
        typer.echo(f"warning: {warning}", err=True)


def types(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging"),
):
    """List registered chart types."""
    configure_logging(verbose=verbose)
    entries = registry.list("chart_type")
    if not entries:
        typer.echo("No chart types registered.")
        return
    typer.echo("\nChart types:")
    for name, meta in entries.items():
        kind = "built-in" if meta.get("builtin") else "custom"
        desc = meta.get("description") or ""
        typer.echo(f"  {name:<20} {kind:<9} {desc}".rstrip())
    typer.echo(f"\nTotal: {len(entries)} type(s)")
