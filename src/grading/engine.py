# ABOUTME: Scores an analyzed session against a five-criterion weighted rubric.
# ABOUTME: Raises severity-tagged flags for instructor review and writes a short summary.

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List, Mapping, Tuple, Union

from src.analysis.statistics import AnalysisResult
from src.common.numeric import clamp, round2, round_score

from .config import R_SQUARED_FULL_MARKS, RubricConfig, resolve_rubric

SEVERITY_ORDER = {"info": 0, "warning": 1, "critical": 2}

COMPLETION_WEIGHT = 0.20
LEARNING_CURVE_WEIGHT = 0.25
EFFICIENCY_WEIGHT = 0.20
IMPROVEMENT_WEIGHT = 0.15
TIME_PERFORMANCE_WEIGHT = 0.20

MIN_LEARNING_CURVE_POINTS = 3
HIGH_RETRY_AVG_ATTEMPTS = 2.5
FAST_TASK_FLAG_COUNT = 3
MIN_AVG_SECONDS = 5
AVG_TIME_SCORE_CAP = 20

LETTER_CUTOFFS = (
    (93, "A"),
    (90, "A-"),
    (87, "B+"),
    (83, "B"),
    (80, "B-"),
    (77, "C+"),
    (73, "C"),
    (70, "C-"),
    (67, "D+"),
    (63, "D"),
    (60, "D-"),
)


@dataclass(frozen=True)
class CriterionResult:
    name: str
    description: str
    weight: float
    raw_score: int
    weighted_score: float
    rationale: str


@dataclass(frozen=True)
class GradingFlag:
    severity: str  # info | warning | critical
    code: str
    message: str


@dataclass(frozen=True)
class GradingResult:
    total_score: int
    letter_grade: str
    criteria: Tuple[CriterionResult, ...]
    flags: Tuple[GradingFlag, ...]
    summary: str

    def flags_at_least(self, severity: str) -> Tuple[GradingFlag, ...]:
        """Flags at or above ``severity`` (info < warning < critical)."""

        threshold = SEVERITY_ORDER[severity]
        return tuple(flag for flag in self.flags if SEVERITY_ORDER[flag.severity] >= threshold)


def grade_session(
    analysis: AnalysisResult,
    config: Union[RubricConfig, Mapping[str, Any], None] = None,
) -> GradingResult:
    """
    Grade an analyzed session.

    ``config`` may be a RubricConfig or a mapping of overrides applied on top
    of the defaults. Invalid configurations raise ValueError.
    """

    cfg = resolve_rubric(config)
    flags: List[GradingFlag] = []

    criteria = (
        score_completion(analysis, cfg, flags),
        score_learning_curve(analysis, cfg, flags),
        score_efficiency(analysis, cfg, flags),
        score_improvement(analysis, cfg, flags),
        score_time_performance(analysis, cfg, flags),
    )
    total_score = int(clamp(round_score(sum(c.weighted_score for c in criteria))))

    return GradingResult(
        total_score=total_score,
        letter_grade=to_letter_grade(total_score),
        criteria=criteria,
        flags=tuple(flags),
        summary=build_summary(total_score, criteria, flags),
    )


def score_completion(analysis: AnalysisResult, cfg: RubricConfig, flags: List[GradingFlag]) -> CriterionResult:
    completed = analysis.overall_stats.completed_tasks
    total = cfg.total_tasks
    raw_score = int(clamp(round_score(100 * completed / total)))

    if completed < total:
        flags.append(
            GradingFlag(
                severity="critical" if completed < total * 0.5 else "warning",
                code="INCOMPLETE",
                message=f"Only {completed}/{total} tasks completed.",
            )
        )

    if completed >= total:
        rationale = "All tasks completed."
    else:
        rationale = f"{completed}/{total} tasks completed ({round_score(100 * completed / total)}%)."

    return _criterion(
        "Completion",
        f"Did the student complete all {total} SQL tasks?",
        COMPLETION_WEIGHT,
        raw_score,
        rationale,
    )


def score_learning_curve(analysis: AnalysisResult, cfg: RubricConfig, flags: List[GradingFlag]) -> CriterionResult:
    name = "Learning Curve"
    description = "Evidence of learning (negative exponent, reasonable fit)"
    lc = analysis.learning_curve

    if lc.sample_size < MIN_LEARNING_CURVE_POINTS:
        flags.append(
            GradingFlag(
                severity="warning",
                code="INSUFFICIENT_DATA_FOR_LC",
                message="Not enough data points to fit a learning curve.",
            )
        )
        return _criterion(name, description, LEARNING_CURVE_WEIGHT, 0, "Insufficient data for learning curve analysis.")

    if lc.exponent >= 0:
        exponent_score = 0
        flags.append(
            GradingFlag(
                severity="warning",
                code="POSITIVE_EXPONENT",
                message=f"Learning exponent is positive ({lc.exponent}), indicating no improvement over time.",
            )
        )
    elif lc.exponent <= cfg.target_exponent:
        exponent_score = 100
    else:
        # Both negative: the ratio grows toward 1 as the exponent nears the target.
        exponent_score = round_score(100 * lc.exponent / cfg.target_exponent)

    if lc.r_squared < cfg.min_r_squared:
        r_squared_score = 0
        if lc.exponent < 0:
            flags.append(
                GradingFlag(
                    severity="info",
                    code="WEAK_FIT",
                    message=f"R² is low ({lc.r_squared}), meaning the learning curve model doesn't explain much variance.",
                )
            )
    elif lc.r_squared >= R_SQUARED_FULL_MARKS:
        r_squared_score = 100
    else:
        r_squared_score = round_score(
            100 * (lc.r_squared - cfg.min_r_squared) / (R_SQUARED_FULL_MARKS - cfg.min_r_squared)
        )

    raw_score = int(clamp(round_score(0.6 * exponent_score + 0.4 * r_squared_score)))
    rationale = f"Exponent: {lc.exponent} (rate: {lc.learning_rate * 100:.1f}%), R²: {lc.r_squared}."
    return _criterion(name, description, LEARNING_CURVE_WEIGHT, raw_score, rationale)


def score_efficiency(analysis: AnalysisResult, cfg: RubricConfig, flags: List[GradingFlag]) -> CriterionResult:
    stats = analysis.overall_stats
    first_try_score = round_score(100 * stats.first_try_success_rate)

    avg_attempts = stats.avg_attempts
    if avg_attempts <= 1.0:
        attempt_score = 100
    elif avg_attempts >= 3.0:
        attempt_score = 0
    else:
        attempt_score = round_score((3.0 - avg_attempts) / 2.0 * 100)

    raw_score = int(clamp(round_score(0.5 * first_try_score + 0.5 * attempt_score)))

    if avg_attempts > HIGH_RETRY_AVG_ATTEMPTS:
        flags.append(
            GradingFlag(
                severity="info",
                code="HIGH_RETRY_RATE",
                message=f"Average {avg_attempts:.1f} attempts per task. Student may need SQL fundamentals review.",
            )
        )

    rationale = f"First-try rate: {stats.first_try_success_rate * 100:.0f}%, avg attempts: {avg_attempts:.1f}."
    return _criterion(
        "Efficiency",
        "Low attempt counts, high first-try success rate",
        EFFICIENCY_WEIGHT,
        raw_score,
        rationale,
    )


def score_improvement(analysis: AnalysisResult, cfg: RubricConfig, flags: List[GradingFlag]) -> CriterionResult:
    ratio = analysis.overall_stats.improvement_ratio

    if ratio <= 0.5:
        raw_score = 100
    elif ratio >= 1.5:
        raw_score = 0
    elif ratio <= 1.0:
        raw_score = round_score(100 - (ratio - 0.5) * 100)
    else:
        raw_score = round_score(50 - (ratio - 1.0) * 100)
    raw_score = int(clamp(raw_score))

    if ratio < 1:
        trend = "Student improved."
    elif ratio == 1:
        trend = "No change."
    else:
        trend = "Student got slower."

    return _criterion(
        "Improvement Trend",
        "Performance improvement from first 3 to last 3 tasks",
        IMPROVEMENT_WEIGHT,
        raw_score,
        f"Improvement ratio: {ratio:.2f} (last 3 / first 3 avg time). {trend}",
    )


def score_time_performance(analysis: AnalysisResult, cfg: RubricConfig, flags: List[GradingFlag]) -> CriterionResult:
    avg_time = analysis.overall_stats.avg_time_sec
    tasks = analysis.task_difficulties

    fast_count = sum(1 for t in tasks if t.time_sec < cfg.min_seconds_per_task)
    slow_count = sum(1 for t in tasks if t.time_sec > cfg.max_seconds_per_task)

    if fast_count > FAST_TASK_FLAG_COUNT:
        flags.append(
            GradingFlag(
                severity="critical",
                code="SUSPICIOUSLY_FAST",
                message=(
                    f"{fast_count} tasks completed in under {cfg.min_seconds_per_task}s each. "
                    "Possible copy-paste or pre-knowledge."
                ),
            )
        )
    if slow_count > 0:
        flags.append(
            GradingFlag(
                severity="info",
                code="VERY_SLOW_TASKS",
                message=f"{slow_count} task(s) took over {cfg.max_seconds_per_task / 60:g} minutes.",
            )
        )

    raw_score = 100
    raw_score -= min(50, 10 * fast_count)
    raw_score -= min(20, 5 * slow_count)

    # Deductions apply first; the cap then wins whenever it is stricter.
    if avg_time < MIN_AVG_SECONDS:
        raw_score = min(raw_score, AVG_TIME_SCORE_CAP)
        flags.append(
            GradingFlag(
                severity="critical",
                code="AVG_TIME_TOO_LOW",
                message=f"Average time per task is {avg_time:.1f}s. This is unrealistically fast.",
            )
        )

    return _criterion(
        "Time Performance",
        "Reasonable task completion times (not too fast, not excessively slow)",
        TIME_PERFORMANCE_WEIGHT,
        int(clamp(raw_score)),
        f"Avg time: {avg_time:.1f}s. {fast_count} fast, {slow_count} slow tasks.",
    )


def to_letter_grade(score: float) -> str:
    for cutoff, letter in LETTER_CUTOFFS:
        if score >= cutoff:
            return letter
    return "F"


def build_summary(total_score: int, criteria: Tuple[CriterionResult, ...], flags: List[GradingFlag]) -> str:
    # Ties resolve to the later criterion.
    best = max(reversed(criteria), key=lambda c: c.raw_score)
    worst = min(reversed(criteria), key=lambda c: c.raw_score)
    critical = [flag for flag in flags if flag.severity == "critical"]

    summary = f"Score: {total_score}/100 ({to_letter_grade(total_score)})."
    summary += f" Strongest area: {best.name} ({best.raw_score}/100)."
    summary += f" Area for growth: {worst.name} ({worst.raw_score}/100)."
    if critical:
        summary += " REVIEW NEEDED: " + " ".join(flag.message for flag in critical)
    return summary


def _criterion(name: str, description: str, weight: float, raw_score: int, rationale: str) -> CriterionResult:
    return CriterionResult(
        name=name,
        description=description,
        weight=weight,
        raw_score=raw_score,
        weighted_score=round2(raw_score * weight),
        rationale=rationale,
    )
