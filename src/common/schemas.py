# ABOUTME: Defines canonical data structures shared by analysis, grading, and verification.
# ABOUTME: Centralizes attempt and query-result schema definitions.

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional, Tuple


@dataclass(frozen=True)
class Attempt:
    """One submission event appended by the attempt store."""

    student_id: str
    task_id: str
    round: int
    task_index: int
    sequence_index: int
    attempt_number: int
    elapsed_seconds: float
    submitted_artifact: str
    completed_at: datetime
    is_correct: bool
    expertise_level: Optional[int] = None


@dataclass(frozen=True)
class QueryResult:
    """Tabular output of the execution engine for a single statement."""

    columns: Tuple[str, ...] = ()
    rows: Tuple[Tuple[Any, ...], ...] = field(default_factory=tuple)
    error: Optional[str] = None

    @property
    def is_error(self) -> bool:
        return self.error is not None
