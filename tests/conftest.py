"""Shared fixtures for all test modules."""

from textwrap import dedent

import pytest

from exhaustive_deps.config import Config
from exhaustive_deps.logging.logger import LintLogger


@pytest.fixture
def tmp_config(tmp_path):
    """Config pointing to a temp directory: fresh log dir per test."""
    config = Config(base_dir=tmp_path / ".exhaustive-deps")
    config.ensure_dirs()
    return config


@pytest.fixture
def event_logger(tmp_config):
    """LintLogger writing to temp dir."""
    return LintLogger(tmp_config.log_dir)


@pytest.fixture
def write_js(tmp_path):
    """Write a dedented JS file under tmp_path and return its path."""

    def _write(name: str, source: str):
        path = tmp_path / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(dedent(source), encoding="utf-8")
        return path

    return _write
