"""Pytest configuration and fixtures."""

import sys
from pathlib import Path

import pytest

# Add package paths to sys.path
root_dir = Path(__file__).parent.parent
packages_dir = root_dir / "packages"
sys.path.insert(0, str(packages_dir / "chartbridge"))
sys.path.insert(0, str(Path(__file__).parent / "plugins"))

from chartbridge.core.config_loader import CONFIG_ENV_VAR, reset_config_cache  # noqa: E402
from chartbridge.core.errors import get_logger  # noqa: E402
from chartbridge.core.spec import ChartSpec  # noqa: E402
from chartbridge.core.registry import RegistryCenter  # noqa: E402

from fake_surface import FakeSurface  # noqa: E402


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Keep the user's home config and CHARTBRIDGE_CONFIG out of every test."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv(CONFIG_ENV_VAR, "")
    reset_config_cache()
    yield home
    reset_config_cache()


@pytest.fixture(autouse=True)
def restore_logger():
    """CLI commands rebuild logger handlers; put the originals back."""
    logger = get_logger()
    handlers, level = list(logger.handlers), logger.level
    yield logger
    for h in list(logger.handlers):
        logger.removeHandler(h)
    for h in handlers:
        logger.addHandler(h)
    logger.setLevel(level)


@pytest.fixture
def channel_rows():
    """Revenue rows grouped by sales channel, Offline missing in Mar."""
    return [
        {"date": "Jan", "channel": "Online", "revenue": 5000},
        {"date": "Jan", "channel": "Offline", "revenue": 3500},
        {"date": "Feb", "channel": "Online", "revenue": 6200},
        {"date": "Feb", "channel": "Offline", "revenue": 2800},
        {"date": "Mar", "channel": "Online", "revenue": 7100},
    ]


@pytest.fixture
def revenue_spec():
    return ChartSpec.create(
        "revenue_chart",
        [
            {"date": "Jan", "revenue": 8500},
            {"date": "Feb", "revenue": 9000},
            {"date": "Mar", "revenue": 7100},
        ],
        encode={"x": "date", "y": "revenue"},
        title="Monthly revenue",
    )


@pytest.fixture
def stacked_spec(channel_rows):
    return ChartSpec.create(
        "channel_chart",
        channel_rows,
        encode={"x": "date", "y": "revenue"},
        chart_type="bar",
        title="Revenue by channel",
        group_field="channel",
    )


@pytest.fixture
def share_spec():
    return ChartSpec.create(
        "share_chart",
        [{"name": "Online", "value": 18300}, {"name": "Offline", "value": 6300}],
        encode={"itemName": "name", "value": "value"},
        chart_type="pie",
        title="Channel share",
    )


@pytest.fixture
def surface():
    """A fake rendering surface that decodes every script it receives."""
    return FakeSurface()


@pytest.fixture
def fresh_registry():
    """An empty registry, so tests never leak presets into the global one."""
    return RegistryCenter()


@pytest.fixture
def spec_file(tmp_path):
    """Write a chart spec file and return its path."""

    def _write(text: str, name: str = "charts.yaml") -> Path:
        path = tmp_path / name
        path.write_text(text, encoding="utf-8")
        return path

    return _write

