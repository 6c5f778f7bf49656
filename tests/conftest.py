"""Test configuration for pytest."""
from __future__ import annotations

import os
from collections.abc import Generator
from pathlib import Path
from typing import Any

import pytest

from ripgrep_sync.console import DEFAULT_VERBOSITY, configure


@pytest.fixture(autouse=True)
def change_to_tmp(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Generator[None, Any, None]:
    """Change to temporary directory for each test."""
    original_dir = os.getcwd()
    monkeypatch.chdir(tmp_path)
    yield
    os.chdir(original_dir)


@pytest.fixture(autouse=True)
def reset_verbosity() -> Generator[None, Any, None]:
    """Restore the shared logger's verbosity after each test."""
    yield
    configure(DEFAULT_VERBOSITY)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Keep the developer's environment and user config out of the tests."""
    for name in list(os.environ):
        if name.startswith("RIPGREP_SYNC_"):
            monkeypatch.delenv(name)
    monkeypatch.setattr("ripgrep_sync.config.USER_CONFIG_FILE", tmp_path / "no-user-config.yaml")
