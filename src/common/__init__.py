# ABOUTME: Makes the shared common package importable across analysis, grading, and verification.
# ABOUTME: Re-exports schema types, round definitions, and attempt-store helpers for convenience.

from .attempt_store import attempts_from_records, attempts_to_frame, load_attempts, parse_task_id
from .rounds import DEFAULT_ROUNDS, RoundDefinition, load_round_definitions
from .schemas import Attempt, QueryResult

__all__ = [
    "Attempt",
    "DEFAULT_ROUNDS",
    "QueryResult",
    "RoundDefinition",
    "attempts_from_records",
    "attempts_to_frame",
    "load_attempts",
    "load_round_definitions",
    "parse_task_id",
]
