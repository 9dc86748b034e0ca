# ABOUTME: Assembles the report handed to exporters: observations, analysis, and grading.
# ABOUTME: Produces plain dictionaries so any serializer (JSON, YAML, CSV) can consume them.

from __future__ import annotations

from dataclasses import asdict
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence

from src.analysis.statistics import AnalysisResult, analyze_session, get_successful_attempts
from src.common.numeric import round2
from src.common.rounds import DEFAULT_ROUNDS, RoundDefinition
from src.common.schemas import Attempt

from .config import RubricConfig
from .engine import GradingResult, grade_session

SCHEMA_VERSION = "2.0.0"
REPORT_DESCRIPTION = "SQL Time Study: learning-curve analysis and rubric grading"

EXPERTISE_LABELS = {
    0: "No experience",
    1: "Basic (SELECT/WHERE)",
    2: "Intermediate (JOINs, GROUP BY)",
    3: "Advanced (subqueries, CTEs)",
}


def prepare_final_observations(attempts: Sequence[Attempt]) -> List[Dict[str, Any]]:
    """One row per solved task, ordered by sequence index, with its total attempt count."""

    attempt_counts: Dict[str, int] = {}
    for attempt in attempts:
        attempt_counts[attempt.task_id] = attempt_counts.get(attempt.task_id, 0) + 1

    return [
        {
            "student_id": a.student_id,
            "expertise_level": a.expertise_level,
            "round": a.round,
            "task_index": a.task_index,
            "task_id": a.task_id,
            "sequence_index": a.sequence_index,
            "time_sec": round2(a.elapsed_seconds),
            "total_attempts": attempt_counts.get(a.task_id, 1),
            "submitted_artifact": a.submitted_artifact,
            "completed_at": a.completed_at.isoformat(),
        }
        for a in get_successful_attempts(attempts)
    ]


def build_report(
    attempts: Sequence[Attempt],
    rounds: Sequence[RoundDefinition] = DEFAULT_ROUNDS,
    rubric: Optional[RubricConfig] = None,
    generated_at: Optional[datetime] = None,
) -> Dict[str, Any]:
    analysis = analyze_session(attempts, rounds)
    grading = grade_session(analysis, rubric)
    return report_payload(attempts, analysis, grading, generated_at)


def report_payload(
    attempts: Sequence[Attempt],
    analysis: AnalysisResult,
    grading: GradingResult,
    generated_at: Optional[datetime] = None,
) -> Dict[str, Any]:
    generated_at = generated_at or datetime.now(timezone.utc)
    student_id = attempts[0].student_id if attempts else "unknown"
    expertise = next((a.expertise_level for a in attempts if a.expertise_level is not None), None)

    return {
        "metadata": {
            "schema_version": SCHEMA_VERSION,
            "generated_at": generated_at.isoformat(),
            "description": REPORT_DESCRIPTION,
        },
        "student": {
            "student_id": student_id,
            "expertise_level": expertise,
            "expertise_label": EXPERTISE_LABELS.get(expertise, "Unknown"),
        },
        "observations": prepare_final_observations(attempts),
        "analysis": asdict(analysis),
        "grading": asdict(grading),
    }
