# ABOUTME: Groups the statistical core: learning-curve fit, complexity tiers, session stats.
# ABOUTME: Re-exports the analysis entrypoint and its result types.

from .complexity import ArtifactComplexity, classify_complexity
from .regression import RegressionFit, fit_learning_curve, ols
from .statistics import (
    AnalysisResult,
    OverallStats,
    RoundSummary,
    TaskDifficulty,
    analyze_session,
    get_successful_attempts,
)

__all__ = [
    "AnalysisResult",
    "ArtifactComplexity",
    "OverallStats",
    "RegressionFit",
    "RoundSummary",
    "TaskDifficulty",
    "analyze_session",
    "classify_complexity",
    "fit_learning_curve",
    "get_successful_attempts",
    "ols",
]
