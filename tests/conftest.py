"""Pytest configuration and fixtures."""

import sys
from pathlib import Path

import pytest

from shipyard.orchestrator.cli import make_params


FAKES = Path(__file__).parent / "fakes"

TOOL_KEYS = [
    "css",
    "site_css",
    "fonts",
    "lint",
    "docs",
    "pre_test",
    "test_integration",
    "test_unit",
    "test_unit_ui",
    "coverage",
    "serve",
]


def fake(name, *args):
    """argv running one of the fake tools under tests/fakes."""
    return [sys.executable, str(FAKES / f"{name}.py"), *[str(a) for a in args]]


def read_record(path):
    if not Path(path).exists():
        return []
    return [tuple(line.split()) for line in Path(path).read_text().splitlines() if line]


@pytest.fixture
def workspace(tmp_path):
    """A minimal app checkout: sources, tests, package.json, node_modules."""
    (tmp_path / "src" / "lib").mkdir(parents=True)
    (tmp_path / "src" / "lib" / "index.js").write_text("module.exports = 1;\n")
    (tmp_path / "src" / "ui").mkdir()
    (tmp_path / "tests").mkdir()
    (tmp_path / "package.json").write_text('{"name": "app"}\n')
    (tmp_path / "node_modules").mkdir()
    return tmp_path


@pytest.fixture
def record(workspace):
    return workspace / "record.log"


@pytest.fixture
def params(workspace, record):
    """Params whose external tools are all fakes that log to `record`."""
    p = make_params(None, workspace, "development")
    p["project"].update({"name": "app", "version": "1.2.3"})
    commands = {key: fake("record", record, key) for key in TOOL_KEYS}
    commands["compile"] = fake("compile", workspace / "src", workspace / "build")
    commands["packager"] = fake("packager")
    commands["coverage_upload"] = fake("stdin_echo", workspace / "uploaded.info")
    p["commands"].update(commands)
    return p


@pytest.fixture
def icons(workspace):
    """Windows icon only; the macOS .icns is deliberately missing."""
    icon_dir = workspace / "resources" / "icon"
    icon_dir.mkdir(parents=True)
    (icon_dir / "logo_icon.ico").write_bytes(b"ico")
    return icon_dir


@pytest.fixture
def fake_tool():
    return fake


@pytest.fixture
def recorded(record):
    """Callable returning [(label, NODE_ENV), ...] written so far."""
    return lambda: read_record(record)
