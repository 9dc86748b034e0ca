# ABOUTME: Decides whether a submitted query result matches the reference result set.
# ABOUTME: Normalizes column names and cell values, then compares rows with or without order.

from __future__ import annotations

import numbers
from dataclasses import dataclass
from decimal import Context, Decimal
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence

from src.common.numeric import round_decimal
from src.common.schemas import QueryResult

from .execution import Dataset, ExecutionEngine, SqliteExecutionEngine

NULL_TOKEN = "NULL"
VALUE_PLACES = 2
SUCCESS_MESSAGE = "Correct!"


class CellKind(Enum):
    NULL = "null"
    NUMBER = "number"
    TEXT = "text"
    BOOLEAN = "boolean"


@dataclass(frozen=True)
class VerificationResult:
    is_match: bool
    message: str
    submitted: QueryResult
    reference: QueryResult


def classify_cell(value: Any) -> CellKind:
    if value is None:
        return CellKind.NULL
    # bool is an Integral subclass, so it is checked before numbers.
    if isinstance(value, bool):
        return CellKind.BOOLEAN
    if isinstance(value, numbers.Real):
        return CellKind.NUMBER
    return CellKind.TEXT


def normalize_value(value: Any) -> str:
    """
    Canonical string form of a result cell.

    Numbers are rounded to two decimals half away from zero and trailing
    zeros are dropped, so 18, 18.0 and 18.004 all become "18".
    """

    kind = classify_cell(value)
    if kind is CellKind.NULL:
        return NULL_TOKEN
    if kind is CellKind.BOOLEAN:
        return "true" if value else "false"
    if kind is CellKind.NUMBER:
        if value != value or value in (float("inf"), float("-inf")):
            return str(float(value))
        rounded = round_decimal(value, VALUE_PLACES)
        if rounded == 0:
            rounded = Decimal(0)
        # Wide enough to keep every coefficient digit.
        context = Context(prec=max(28, len(rounded.as_tuple().digits)))
        return format(rounded.normalize(context), "f")
    if isinstance(value, bytes):
        return value.hex()
    return str(value)


def normalize_column_name(name: str) -> str:
    return str(name).strip().lower()


def normalize_row(row: Sequence[Any]) -> List[str]:
    return [normalize_value(value) for value in row]


def compare_results(
    submitted: QueryResult,
    reference: QueryResult,
    order_matters: bool = False,
) -> VerificationResult:
    """Compare a submitted result set against the reference one."""

    def fail(message: str) -> VerificationResult:
        return VerificationResult(is_match=False, message=message, submitted=submitted, reference=reference)

    if submitted.error:
        return fail(f"Query error: {submitted.error}")

    if reference.error:
        return fail(f"Reference query failed: {reference.error}")

    if len(submitted.columns) != len(reference.columns):
        return fail(f"Column count mismatch: got {len(submitted.columns)}, expected {len(reference.columns)}")

    if len(submitted.rows) != len(reference.rows):
        return fail(f"Row count mismatch: got {len(submitted.rows)}, expected {len(reference.rows)}")

    submitted_names = sorted(normalize_column_name(col) for col in submitted.columns)
    reference_names = sorted(normalize_column_name(col) for col in reference.columns)
    if submitted_names != reference_names:
        return fail(f"Column names don't match. Got: {', '.join(submitted.columns)}")

    column_index: Dict[str, int] = {}
    for idx, col in enumerate(submitted.columns):
        column_index[normalize_column_name(col)] = idx
    mapping = [column_index.get(normalize_column_name(col), -1) for col in reference.columns]

    reordered = [[row[idx] if idx >= 0 else None for idx in mapping] for row in submitted.rows]
    submitted_rows = [normalize_row(row) for row in reordered]
    reference_rows = [normalize_row(row) for row in reference.rows]

    if order_matters:
        for position, (got, expected) in enumerate(zip(submitted_rows, reference_rows), start=1):
            if got != expected:
                return fail(f"Row {position} doesn't match. Check your ORDER BY clause.")
    elif sorted(submitted_rows) != sorted(reference_rows):
        return fail("Results don't match. Check your query logic.")

    return VerificationResult(is_match=True, message=SUCCESS_MESSAGE, submitted=submitted, reference=reference)


def verify_submission(
    submitted_sql: str,
    reference_sql: str,
    dataset: Dataset,
    engine: Optional[ExecutionEngine] = None,
    order_matters: bool = False,
) -> VerificationResult:
    """Execute both queries against the same dataset and compare the results."""

    engine = engine or SqliteExecutionEngine()
    submitted = engine.execute(submitted_sql, dataset)
    reference = engine.execute(reference_sql, dataset)
    return compare_results(submitted, reference, order_matters)
