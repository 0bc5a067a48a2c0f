"""chartbridge: Configuration Models
---------------------------------
Pydantic models for bridge-level configuration (``bridge.yaml``): the script
function names the rendering surface exposes, the surface readiness page, pivot
defaults and logging defaults.

Public API
----------
``BridgeConfig`` : Root configuration model
``CommandNaming`` : Names of the surface functions invoked by render/remove/clear
``SurfaceConfig`` : Page name the rendering surface reports when ready
``PivotConfig`` : Pivot transform defaults
``LoggingConfig`` : Defaults for ``configure_logging``

Notes
-----
- Loaded with an override chain by ``config_loader.load_bridge_config``.
"""

import re

from pydantic import BaseModel, Field, field_validator

__all__ = [
    "BridgeConfig",
    "CommandNaming",
    "SurfaceConfig",
    "PivotConfig",
    "LoggingConfig",
]

_JS_IDENTIFIER = re.compile(r"^[A-Za-z_$][A-Za-z0-9_$]*$")


class CommandNaming(BaseModel):
    """Function names exposed by the rendering surface's script."""

    render_function: str = Field(
        default="renderChart",
        description="Called as render(id, rowsText, configText).",
    )
    remove_function: str = Field(
        default="removeChart", description="Called as remove(id)."
    )
    clear_function: str = Field(
        default="clearAllCharts", description="Called with no arguments."
    )

    @field_validator("render_function", "remove_function", "clear_function")
    @classmethod
    def validate_identifier(cls, v: str) -> str:
        """Function names are spliced into scripts unescaped; keep them plain."""
        if not _JS_IDENTIFIER.match(v):
            raise ValueError(f"not a valid script identifier: {v!r}")
        return v


class SurfaceConfig(BaseModel):
    """Rendering surface readiness."""

    ready_page: str = Field(
        default="echarts_factory",
        description="Page name the surface reports when it becomes ready.",
    )


class PivotConfig(BaseModel):
    """Pivot transform defaults."""

    missing_value: float | int | None = Field(
        default=0,
        description="Value for (group, category) pairs no row supplied. "
        "0 keeps stacked totals correct.",
    )


class LoggingConfig(BaseModel):
    """Defaults applied by the CLI when no flags override them."""

    verbose: bool = False
    as_json: bool = False
    log_file: str | None = None


class BridgeConfig(BaseModel):
    """Root chartbridge configuration.

    Attributes
    ----------
    naming : CommandNaming
        Script function names on the rendering surface.
    surface : SurfaceConfig
        Readiness page name.
    pivot : PivotConfig
        Pivot defaults (missing-value sentinel).
    logging : LoggingConfig
        Logging defaults.
    """

    naming: CommandNaming = Field(default_factory=CommandNaming)
    surface: SurfaceConfig = Field(default_factory=SurfaceConfig)
    pivot: PivotConfig = Field(default_factory=PivotConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
