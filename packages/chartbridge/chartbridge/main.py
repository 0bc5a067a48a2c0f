"""chartbridge: CLI Entry Point
---------------------------------------------------------
Main Typer application for the ``chartbridge`` console script. Commands work
on chart spec files (YAML or JSON) and print what the host would send to the
rendering surface.

Public API
----------
``app`` : The main Typer application instance.
"""

from __future__ import annotations

import typer

from .commands import charts as charts_cmd

app = typer.Typer(help="chartbridge CLI")


@app.callback()
def main():
    """chartbridge command line interface."""
    pass


# Register commands
app.command("encode")(charts_cmd.encode)
app.command("check")(charts_cmd.check)
app.command("pivot")(charts_cmd.pivot_table)
app.command("types")(charts_cmd.types)
