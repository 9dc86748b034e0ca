# ABOUTME: Groups result verification: SQL execution and result-set comparison.
# ABOUTME: Re-exports the verifier entrypoints used at submission time.

from .comparison import (
    CellKind,
    VerificationResult,
    classify_cell,
    compare_results,
    normalize_value,
    verify_submission,
)
from .execution import ExecutionEngine, SqliteExecutionEngine, build_dataset

__all__ = [
    "CellKind",
    "ExecutionEngine",
    "SqliteExecutionEngine",
    "VerificationResult",
    "build_dataset",
    "classify_cell",
    "compare_results",
    "normalize_value",
    "verify_submission",
]
