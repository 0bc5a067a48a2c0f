"""chartbridge: Error Taxonomy and Logging
--------------------------------------

Error hierarchy and the shared logger for the chartbridge package.

Error Hierarchy
---------------
- ChartBridgeError: Base exception for all chartbridge errors
- ChartDataError: Malformed chart definitions or producer output (100-199)
- ChartSerializationError: Values not representable on the wire (200-299)
- SurfaceError: Failures reported by the rendering surface (300-399)
- ProtocolError: Broken escaping or marshaling invariants (400-499)
- ChartConfigError: Configuration loading and validation errors (500-599)
- RegistryError: Registry conflicts and unknown keys (600-699)

Data, serialization and surface errors are recoverable at the host level: they
are reported per chart and never stop the rest of a batch. Protocol errors are
programming defects and are only raised, never recovered from.

Warning Hierarchy
-----------------
- ChartBridgeWarning: Base warning for all chartbridge warnings

Logging
-------
The shared logger is named "chartbridge" and can be configured for console
and file output with optional JSON formatting. Python warnings are captured
into logging with adjustable levels.
"""

import logging
import os

__all__ = [
    "ChartBridgeError",
    "ChartDataError",
    "ChartSerializationError",
    "SurfaceError",
    "ProtocolError",
    "ChartConfigError",
    "RegistryError",
    "ChartBridgeWarning",
    "get_logger",
    "configure_logging",
]


# =============================================================================
# Exception Hierarchy
# =============================================================================


class ChartBridgeError(Exception):
    """Base exception for all chartbridge errors.

    Examples
    --------
    >>> try:
    ...     ChartSpec.create("", rows=[], encode={})
    ... except ChartBridgeError as e:
    ...     print(f"chart error: {e}")

    """

    pass


class ChartDataError(ChartBridgeError):
    """Chart data errors (Code 100-199).

    Raised when a chart definition or the producer's output is malformed.
    Examples: empty chart id, missing rows, missing encode mapping, a grouped
    chart without category/value roles.
    """

    pass


class ChartSerializationError(ChartDataError):
    """Serialization errors (Code 200-299).

    Raised when rows, encode mapping or options cannot be represented in the
    structured text format sent to the rendering surface.
    Examples: NaN or infinite numbers, arbitrary objects as values.
    """

    pass


class SurfaceError(ChartBridgeError):
    """Rendering surface errors (Code 300-399).

    Raised or reported when the rendering surface signals a failure, e.g. an
    unknown chart type or a script error while drawing.
    """

    pass


class ProtocolError(ChartBridgeError):
    """Protocol errors (Code 400-499).

    Raised when the escaping or marshaling discipline is violated, e.g. a
    malformed command script or readiness state touched outside the control
    context.
    """

    pass


class ChartConfigError(ChartBridgeError):
    """Configuration-related errors (Code 500-599).

    Raised when configuration files cannot be read or fail validation.
    """

    pass


class RegistryError(ChartBridgeError):
    """Registry errors (Code 600-699).

    Raised on duplicate registrations and unknown registry keys.
    """

    pass


# =============================================================================
# Warning Hierarchy
# =============================================================================


class ChartBridgeWarning(Warning):
    """Base warning for all chartbridge warnings.

    Emitted for caller mistakes that are recovered from, such as a chart id
    repeated within one batch ([123]).
    """

    pass


# =============================================================================
# Logger Configuration
# =============================================================================

_logger: logging.Logger | None = None

_PLAIN_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
_JSON_FORMAT = '{"time":"%(asctime)s","level":"%(levelname)s","logger":"%(name)s","msg":"%(message)s"}'


def get_logger() -> logging.Logger:
    """Get the shared chartbridge logger instance.

    Returns
    -------
    logging.Logger
        The singleton logger named "chartbridge", configured at INFO level by
        default with a console handler. Handlers are created lazily on first
        use.

    Examples
    --------
    >>> logger = get_logger()
    >>> logger.name
    'chartbridge'

    """
    global _logger
    if _logger is None:
        _logger = logging.getLogger("chartbridge")
        _logger.setLevel(logging.INFO)
        if not _logger.handlers:
            h = logging.StreamHandler()
            h.setFormatter(logging.Formatter(_PLAIN_FORMAT))
            _logger.addHandler(h)
    return _logger


def configure_logging(
    verbose: bool = False,
    log_file: str | None = None,
    as_json: bool = False,
    suppress_warnings: bool = False,
) -> None:
    """Configure the shared logger outputs and warning capture.

    Parameters
    ----------
    verbose : bool, default False
        When True, set logger level to DEBUG; otherwise INFO.
    log_file : str or None, default None
        Optional file path to append logs. A path that cannot be opened is
        reported on the console handler and otherwise ignored.
    as_json : bool, default False
        Emit logs in a compact JSON line format when True; otherwise plain text.
    suppress_warnings : bool, default False
        Route Python warnings into logging and raise their level to ERROR when
        True; otherwise capture warnings at WARNING level.

    Examples
    --------
    >>> configure_logging(verbose=True, as_json=False)  # doctest: +SKIP
    >>> logger = get_logger()
    >>> logger.level in (logging.INFO, logging.DEBUG)
    True

    """
    logger = get_logger()
    for h in list(logger.handlers):
        logger.removeHandler(h)
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)

    fmt = logging.Formatter(_JSON_FORMAT if as_json else _PLAIN_FORMAT)
    ch = logging.StreamHandler()
    ch.setFormatter(fmt)
    logger.addHandler(ch)

    if log_file:
        try:
            fh = logging.FileHandler(os.fspath(log_file), encoding="utf-8")
        except OSError as e:
            logger.warning(f"[590] Cannot open log file {log_file}: {e}")
        else:
            fh.setFormatter(fmt)
            logger.addHandler(fh)

    logging.captureWarnings(True)
    logging.getLogger("py.warnings").setLevel(
        logging.ERROR if suppress_warnings else logging.WARNING
    )
