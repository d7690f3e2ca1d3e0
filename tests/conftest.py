"""Shared fixtures.

Backend credentials and endpoint overrides are read from the
environment, so every test starts from a clean slate and from a config
file path that does not exist.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from fallback_router.config import DEFAULT_BACKENDS


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    for spec in DEFAULT_BACKENDS:
        for env_var in spec.env_vars:
            monkeypatch.delenv(env_var, raising=False)
        monkeypatch.delenv(f"{spec.backend_id.upper()}_BASE_URL", raising=False)
    monkeypatch.setattr(
        "fallback_router.config.CONFIG_PATH",
        tmp_path / ".fallback-router" / "config.toml",
    )
