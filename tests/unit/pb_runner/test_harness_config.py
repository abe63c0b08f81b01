"""Tests for the harness configuration model."""

from __future__ import annotations

from pathlib import Path

import pytest

from pb_common.errors import ConfigurationError
from pb_runner.models.config import DEFAULT_LAUNCHER, HarnessConfig
from pb_runner.models.results import ObjectiveSense


pytestmark = pytest.mark.unit_runner


def test_defaults() -> None:
    cfg = HarnessConfig()
    assert cfg.timeout_seconds == 300
    assert cfg.workers == 1
    assert cfg.launcher == DEFAULT_LAUNCHER
    assert cfg.payload_mode == "stdin"
    assert cfg.objective_sense is ObjectiveSense.MINIMIZE


def test_save_and_load_round_trip(tmp_path: Path) -> None:
    path = tmp_path / "pb.json"
    cfg = HarnessConfig(timeout_seconds=12.5, workers=3, objective_sense="maximize")
    cfg.save(path)
    loaded = HarnessConfig.load(path)
    assert loaded == cfg
    assert loaded.objective_sense is ObjectiveSense.MAXIMIZE


def test_invalid_file_raises_configuration_error(tmp_path: Path) -> None:
    path = tmp_path / "pb.json"
    path.write_text('{"workers": 0}')
    with pytest.raises(ConfigurationError):
        HarnessConfig.load(path)
    with pytest.raises(ConfigurationError, match="Cannot read"):
        HarnessConfig.load(tmp_path / "missing.json")


def test_env_overrides(monkeypatch) -> None:
    monkeypatch.setenv("PB_TIMEOUT", "2.5")
    monkeypatch.setenv("PB_WORKERS", "4")
    cfg = HarnessConfig().with_env_overrides()
    assert cfg.timeout_seconds == 2.5
    assert cfg.workers == 4


def test_unparseable_env_is_ignored(monkeypatch) -> None:
    monkeypatch.setenv("PB_TIMEOUT", "soon")
    monkeypatch.delenv("PB_WORKERS", raising=False)
    assert HarnessConfig().with_env_overrides().timeout_seconds == 300


def test_overrides_skip_none_and_validate() -> None:
    cfg = HarnessConfig().with_overrides(timeout_seconds=None, workers=2)
    assert cfg.workers == 2
    assert cfg.timeout_seconds == 300
    with pytest.raises(ConfigurationError):
        cfg.with_overrides(timeout_seconds=-1)
    with pytest.raises(ConfigurationError):
        cfg.with_overrides(launcher=[])
