# ABOUTME: Holds the grading rubric thresholds and validates them at construction time.
# ABOUTME: Loads rubric overrides from the ``rubric`` section of the study YAML config.

from __future__ import annotations

from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Mapping, Optional, Union

import yaml

R_SQUARED_FULL_MARKS = 0.7


@dataclass(frozen=True)
class RubricConfig:
    """Thresholds used by the five grading criteria."""

    total_tasks: int = 18
    min_seconds_per_task: float = 3
    max_seconds_per_task: float = 600
    target_exponent: float = -0.3
    min_r_squared: float = 0.15

    def __post_init__(self) -> None:
        if self.total_tasks <= 0:
            raise ValueError(f"total_tasks must be positive, got {self.total_tasks}.")
        if self.min_seconds_per_task < 0:
            raise ValueError(f"min_seconds_per_task must be non-negative, got {self.min_seconds_per_task}.")
        if self.min_seconds_per_task >= self.max_seconds_per_task:
            raise ValueError(
                "min_seconds_per_task must be below max_seconds_per_task "
                f"({self.min_seconds_per_task} >= {self.max_seconds_per_task})."
            )
        if self.target_exponent >= 0:
            raise ValueError(f"target_exponent must be negative, got {self.target_exponent}.")
        if not 0 <= self.min_r_squared < R_SQUARED_FULL_MARKS:
            raise ValueError(
                f"min_r_squared must lie in [0, {R_SQUARED_FULL_MARKS}), got {self.min_r_squared}."
            )


DEFAULT_RUBRIC = RubricConfig()


def resolve_rubric(config: Union[RubricConfig, Mapping[str, Any], None] = None) -> RubricConfig:
    """Accept a full config, a mapping of overrides, or nothing."""

    if config is None:
        return DEFAULT_RUBRIC
    if isinstance(config, RubricConfig):
        return config
    known = {f.name for f in fields(RubricConfig)}
    unknown = sorted(set(config) - known)
    if unknown:
        raise ValueError(f"Unknown rubric option(s): {', '.join(unknown)}.")
    return replace(DEFAULT_RUBRIC, **dict(config))


def load_rubric_config(config_path: Optional[Path]) -> RubricConfig:
    if config_path is None:
        return DEFAULT_RUBRIC
    with open(config_path) as f:
        cfg = yaml.safe_load(f) or {}
    return resolve_rubric(cfg.get("rubric") or {})
