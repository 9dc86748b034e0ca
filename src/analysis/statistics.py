# ABOUTME: Aggregates a raw attempt log into round summaries, task difficulties, and session stats.
# ABOUTME: Fans out to the learning-curve fit and the SQL complexity classifier.

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Sequence, Tuple

import pandas as pd

from src.common.attempt_store import attempts_to_frame
from src.common.numeric import clamp, round2, round4, round_score
from src.common.rounds import DEFAULT_ROUNDS, RoundDefinition, expected_task_total
from src.common.schemas import Attempt

from .complexity import ArtifactComplexity, classify_complexity
from .regression import RegressionFit, fit_learning_curve

TIME_WEIGHT = 0.40
ATTEMPT_WEIGHT = 0.35
COMPLEXITY_WEIGHT = 0.25
IMPROVEMENT_WINDOW = 3


@dataclass(frozen=True)
class RoundSummary:
    round: int
    title: str
    tasks_completed: int
    total_tasks: int
    total_time_sec: float
    avg_time_sec: float
    median_time_sec: float
    min_time_sec: float
    max_time_sec: float
    total_attempts: int
    avg_attempts: float
    first_try_success_rate: float


@dataclass(frozen=True)
class TaskDifficulty:
    task_id: str
    round: int
    task_index: int
    sequence_index: int
    time_sec: float
    attempts: int
    difficulty_score: int  # 0-100, higher is harder
    first_try_success: bool
    complexity: ArtifactComplexity


@dataclass(frozen=True)
class OverallStats:
    total_time_sec: float
    total_tasks: int
    completed_tasks: int
    total_attempts: int
    avg_time_sec: float
    median_time_sec: float
    avg_attempts: float
    first_try_success_rate: float
    improvement_ratio: float  # mean of last 3 / mean of first 3; <1 is improvement
    time_std_dev: float


@dataclass(frozen=True)
class AnalysisResult:
    learning_curve: RegressionFit
    round_summaries: Tuple[RoundSummary, ...]
    task_difficulties: Tuple[TaskDifficulty, ...]
    overall_stats: OverallStats


def analyze_session(
    attempts: Sequence[Attempt],
    rounds: Sequence[RoundDefinition] = DEFAULT_ROUNDS,
) -> AnalysisResult:
    """
    Run the full analysis over one student's attempt log.

    The log is never mutated; repeated calls on the same log give equal results.
    """

    successful = get_successful_attempts(attempts)
    return AnalysisResult(
        learning_curve=fit_learning_curve([(a.sequence_index, a.elapsed_seconds) for a in successful]),
        round_summaries=compute_round_summaries(successful, attempts, rounds),
        task_difficulties=compute_task_difficulties(successful, attempts),
        overall_stats=compute_overall_stats(successful, attempts, expected_task_total(rounds)),
    )


def get_successful_attempts(attempts: Sequence[Attempt]) -> List[Attempt]:
    """Last correct attempt per task, ordered by sequence index."""

    latest: Dict[str, Attempt] = {}
    for attempt in attempts:
        if attempt.is_correct:
            latest[attempt.task_id] = attempt
    return sorted(latest.values(), key=lambda a: a.sequence_index)


def compute_round_summaries(
    successful: Sequence[Attempt],
    attempts: Sequence[Attempt],
    rounds: Sequence[RoundDefinition] = DEFAULT_ROUNDS,
) -> Tuple[RoundSummary, ...]:
    successful_df = attempts_to_frame(successful)
    all_df = attempts_to_frame(attempts)

    summaries = []
    for definition in rounds:
        round_successful = successful_df[successful_df["round"] == definition.round]
        round_all = all_df[all_df["round"] == definition.round]
        times = round_successful["elapsed_seconds"]
        completed = len(round_successful)

        summaries.append(
            RoundSummary(
                round=definition.round,
                title=definition.title,
                tasks_completed=completed,
                total_tasks=definition.task_count,
                total_time_sec=round2(float(times.sum())),
                avg_time_sec=round2(float(times.mean()) if completed else 0.0),
                median_time_sec=round2(float(times.median()) if completed else 0.0),
                min_time_sec=round2(float(times.min()) if completed else 0.0),
                max_time_sec=round2(float(times.max()) if completed else 0.0),
                total_attempts=len(round_all),
                avg_attempts=round2(len(round_all) / completed if completed else 0.0),
                first_try_success_rate=round2(_first_try_success_rate(round_all)),
            )
        )
    return tuple(summaries)


def compute_task_difficulties(
    successful: Sequence[Attempt],
    attempts: Sequence[Attempt],
) -> Tuple[TaskDifficulty, ...]:
    if not successful:
        return ()

    all_df = attempts_to_frame(attempts)
    attempt_counts = all_df.groupby("task_id", sort=False).size()
    first_correct = _first_attempts(all_df).set_index("task_id")["is_correct"]

    # Normalization is against this session's own maxima.
    max_time = max(max(a.elapsed_seconds for a in successful), 1.0)
    max_attempts = max(int(attempt_counts.max()) if not attempt_counts.empty else 1, 1)

    difficulties = []
    for attempt in successful:
        count = int(attempt_counts.get(attempt.task_id, 1))
        complexity = classify_complexity(attempt.submitted_artifact)

        time_norm = attempt.elapsed_seconds / max_time
        attempt_norm = (count - 1) / max(max_attempts - 1, 1)
        complexity_norm = (complexity.tier - 1) / 4
        score = round_score(
            100 * (TIME_WEIGHT * time_norm + ATTEMPT_WEIGHT * attempt_norm + COMPLEXITY_WEIGHT * complexity_norm)
        )

        difficulties.append(
            TaskDifficulty(
                task_id=attempt.task_id,
                round=attempt.round,
                task_index=attempt.task_index,
                sequence_index=attempt.sequence_index,
                time_sec=round2(attempt.elapsed_seconds),
                attempts=count,
                difficulty_score=int(clamp(score)),
                first_try_success=bool(first_correct.get(attempt.task_id, False)),
                complexity=complexity,
            )
        )
    return tuple(difficulties)


def compute_overall_stats(
    successful: Sequence[Attempt],
    attempts: Sequence[Attempt],
    total_tasks: int = expected_task_total(DEFAULT_ROUNDS),
) -> OverallStats:
    all_df = attempts_to_frame(attempts)
    times = pd.Series([a.elapsed_seconds for a in successful], dtype="float64")
    completed = len(times)

    improvement_ratio = 1.0
    if completed >= 2 * IMPROVEMENT_WINDOW:
        first_mean = float(times.iloc[:IMPROVEMENT_WINDOW].mean())
        last_mean = float(times.iloc[-IMPROVEMENT_WINDOW:].mean())
        improvement_ratio = last_mean / first_mean if first_mean > 0 else 1.0

    return OverallStats(
        total_time_sec=round2(float(times.sum())),
        total_tasks=total_tasks,
        completed_tasks=completed,
        total_attempts=len(all_df),
        avg_time_sec=round2(float(times.mean()) if completed else 0.0),
        median_time_sec=round2(float(times.median()) if completed else 0.0),
        avg_attempts=round2(len(all_df) / completed if completed else 0.0),
        first_try_success_rate=round2(_first_try_success_rate(all_df)),
        improvement_ratio=round4(improvement_ratio),
        time_std_dev=round2(float(times.std(ddof=1)) if completed > 1 else 0.0),
    )


def _first_attempts(frame: pd.DataFrame) -> pd.DataFrame:
    """Chronologically first attempt per task, in log order."""

    return frame.drop_duplicates(subset=["task_id"], keep="first")


def _first_try_success_rate(frame: pd.DataFrame) -> float:
    firsts = _first_attempts(frame)
    if firsts.empty:
        return 0.0
    return float(firsts["is_correct"].astype(bool).mean())
