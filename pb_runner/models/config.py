"""Harness configuration (canonical runner/CLI definition)."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Literal

from pydantic import BaseModel, Field, ValidationError, field_validator

from pb_common.config.env import env_float, env_int
from pb_common.errors import ConfigurationError
from pb_runner.models.results import ObjectiveSense

DEFAULT_TIMEOUT_SECONDS = 300.0
DEFAULT_LAUNCHER = ["java", "-jar", "{artifact}"]


class HarnessConfig(BaseModel):
    """Main configuration for a benchmark batch."""

    timeout_seconds: float = Field(
        default=DEFAULT_TIMEOUT_SECONDS,
        gt=0,
        description="Wall-clock budget for a single solver run in seconds",
    )
    workers: int = Field(
        default=1,
        ge=1,
        description="Concurrent solver runs; keep 1 unless the solver is known to be safe",
    )
    kill_grace_seconds: float = Field(
        default=5.0,
        ge=0,
        description="Time between SIGTERM and SIGKILL when stopping a solver",
    )
    launcher: List[str] = Field(
        default_factory=lambda: list(DEFAULT_LAUNCHER),
        description="Command template; {artifact} and {case} are substituted",
    )
    payload_mode: Literal["stdin", "argument"] = Field(
        default="stdin",
        description="Hand the case to the solver on stdin or as the last argument",
    )
    objective_sense: ObjectiveSense = Field(
        default=ObjectiveSense.MINIMIZE,
        description="Whether lower or higher objective values are better",
    )
    case_pattern: str = Field(default="*", description="Glob selecting case files in a directory")
    baseline_name: str = Field(
        default="baseline.csv",
        description="Baseline table file name looked up inside a case directory",
    )

    @field_validator("launcher")
    @classmethod
    def _validate_launcher(cls, value: List[str]) -> List[str]:
        if not value or not value[0].strip():
            raise ValueError("launcher must name a program")
        return value

    def save(self, filepath: Path) -> None:
        filepath.write_text(self.model_dump_json(indent=2))

    @classmethod
    def load(cls, filepath: Path) -> "HarnessConfig":
        try:
            return cls.model_validate_json(filepath.read_text())
        except OSError as exc:
            raise ConfigurationError(
                f"Cannot read config {filepath}", context={"path": filepath}, cause=exc
            ) from exc
        except ValidationError as exc:
            raise ConfigurationError(
                f"Invalid config {filepath}: {exc}", context={"path": filepath}, cause=exc
            ) from exc

    def with_env_overrides(self) -> "HarnessConfig":
        """Apply PB_TIMEOUT / PB_WORKERS when set and parseable."""
        updates: Dict[str, Any] = {}
        timeout = env_float("PB_TIMEOUT")
        if timeout is not None:
            updates["timeout_seconds"] = timeout
        workers = env_int("PB_WORKERS")
        if workers is not None:
            updates["workers"] = workers
        return self.with_overrides(**updates)

    def with_overrides(self, **overrides: Any) -> "HarnessConfig":
        """Return a validated copy with non-None overrides applied."""
        data = self.model_dump()
        data.update({key: value for key, value in overrides.items() if value is not None})
        try:
            return HarnessConfig.model_validate(data)
        except ValidationError as exc:
            raise ConfigurationError(f"Invalid configuration: {exc}", cause=exc) from exc
