# ABOUTME: Declares the round structure of a study session (round id, title, task count).
# ABOUTME: Loads round definitions from the shared YAML config or falls back to defaults.

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Mapping, Optional, Tuple

import yaml


@dataclass(frozen=True)
class RoundDefinition:
    """Externally configured round with the number of tasks it expects."""

    round: int
    title: str
    task_count: int

    def __post_init__(self) -> None:
        if self.round <= 0:
            raise ValueError(f"Round id must be positive, got {self.round}.")
        if self.task_count <= 0:
            raise ValueError(f"Round {self.round} must expect at least one task, got {self.task_count}.")


DEFAULT_ROUNDS: Tuple[RoundDefinition, ...] = (
    RoundDefinition(1, "The Patient", 3),
    RoundDefinition(2, "The History", 3),
    RoundDefinition(3, "The Pattern", 4),
    RoundDefinition(4, "The Root Cause", 4),
    RoundDefinition(5, "The Recommendation", 4),
)


def build_round_definitions(entries: Iterable[Mapping]) -> Tuple[RoundDefinition, ...]:
    definitions = []
    seen = set()
    for entry in entries:
        definition = RoundDefinition(
            round=int(entry["round"]),
            title=str(entry.get("title") or f"Round {entry['round']}"),
            task_count=int(entry["task_count"]),
        )
        if definition.round in seen:
            raise ValueError(f"Round {definition.round} is defined more than once.")
        seen.add(definition.round)
        definitions.append(definition)
    return tuple(definitions)


def load_round_definitions(config_path: Optional[Path]) -> Tuple[RoundDefinition, ...]:
    """Read the ``rounds`` section of a study config; defaults when absent."""

    if config_path is None:
        return DEFAULT_ROUNDS
    with open(config_path) as f:
        cfg = yaml.safe_load(f) or {}
    entries = cfg.get("rounds")
    if not entries:
        return DEFAULT_ROUNDS
    return build_round_definitions(entries)


def expected_task_total(rounds: Iterable[RoundDefinition]) -> int:
    return sum(definition.task_count for definition in rounds)
