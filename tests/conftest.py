"""Shared test fixtures for sloc-guard tests."""

import os
from pathlib import Path

import pytest


def pytest_addoption(parser):
    """Add --run-slow option for slow tests."""
    parser.addoption(
        "--run-slow",
        action="store_true",
        default=False,
        help="run slow tests",
    )


def pytest_configure(config):
    """Configure slow marker."""
    config.addinivalue_line("markers", "slow: mark test as slow to run")


def pytest_collection_modifyitems(config, items):
    """Skip slow tests unless --run-slow is given."""
    if config.getoption("--run-slow"):
        return
    skip_slow = pytest.mark.skip(reason="need --run-slow option to run")
    for item in items:
        if "slow" in item.keywords:
            item.add_marker(skip_slow)


@pytest.fixture(autouse=True)
def isolated_environment(tmp_path_factory, monkeypatch):
    """Keep the user's config and SLOC_GUARD_* variables out of every test."""
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path_factory.mktemp("xdg")))
    for name in list(os.environ):
        if name.startswith("SLOC_GUARD_"):
            monkeypatch.delenv(name)


@pytest.fixture
def write_tree():
    """Create files under a root from a {relative_path: content} mapping."""

    def _write(root: Path, files: dict) -> Path:
        for rel, content in files.items():
            target = root / rel
            if rel.endswith("/"):
                target.mkdir(parents=True, exist_ok=True)
                continue
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(content)
        return root

    return _write


@pytest.fixture
def project(tmp_path, write_tree):
    """A tmp project root with a ``.git`` marker so state lands inside it."""
    (tmp_path / ".git").mkdir()
    return tmp_path

