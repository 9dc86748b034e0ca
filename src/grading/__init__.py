# ABOUTME: Groups the rubric grading engine, its configuration, and the report builder.
# ABOUTME: Re-exports grading entrypoints for scripts and tests.

from .config import DEFAULT_RUBRIC, RubricConfig, load_rubric_config, resolve_rubric
from .engine import CriterionResult, GradingFlag, GradingResult, grade_session, to_letter_grade
from .report import build_report, prepare_final_observations

__all__ = [
    "DEFAULT_RUBRIC",
    "CriterionResult",
    "GradingFlag",
    "GradingResult",
    "RubricConfig",
    "build_report",
    "grade_session",
    "load_rubric_config",
    "prepare_final_observations",
    "resolve_rubric",
    "to_letter_grade",
]
