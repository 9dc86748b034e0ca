# ABOUTME: Adapts persisted attempt logs (JSON, CSV, parquet) into canonical Attempt records.
# ABOUTME: Provides the DataFrame view of an attempt log used by the statistics aggregator.

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Sequence, Tuple

import pandas as pd

from .schemas import Attempt

ATTEMPT_COLUMNS = [
    "student_id",
    "task_id",
    "round",
    "task_index",
    "sequence_index",
    "attempt_number",
    "elapsed_seconds",
    "submitted_artifact",
    "completed_at",
    "is_correct",
]

# Keys written by the browser session log before the snake_case export.
CAMEL_CASE_KEYS = {
    "studentId": "student_id",
    "taskId": "task_id",
    "queryNum": "task_index",
    "taskIndex": "task_index",
    "querySequence": "sequence_index",
    "sequenceIndex": "sequence_index",
    "attemptNum": "attempt_number",
    "attemptNumber": "attempt_number",
    "timeSec": "elapsed_seconds",
    "elapsedSeconds": "elapsed_seconds",
    "submittedQuery": "submitted_artifact",
    "submittedArtifact": "submitted_artifact",
    "completedAt": "completed_at",
    "isCorrect": "is_correct",
    "sqlExpertise": "expertise_level",
    "expertiseLevel": "expertise_level",
}

REQUIRED_KEYS = ("student_id", "task_id", "sequence_index", "elapsed_seconds", "is_correct")


def parse_task_id(task_id: str) -> Tuple[int, int]:
    """Split ``"<round>.<task_index>"`` into its two integers."""

    parts = str(task_id).strip().split(".")
    if len(parts) != 2:
        raise ValueError(f"Task id '{task_id}' is not of the form '<round>.<task_index>'.")
    try:
        return int(parts[0]), int(parts[1])
    except ValueError as exc:
        raise ValueError(f"Task id '{task_id}' is not of the form '<round>.<task_index>'.") from exc


def attempts_from_records(records: Iterable[Mapping[str, Any]]) -> List[Attempt]:
    attempts = []
    for position, raw in enumerate(records):
        record = _normalize_keys(raw)
        missing = [key for key in REQUIRED_KEYS if _is_missing(record.get(key))]
        if missing:
            raise ValueError(f"Attempt record {position} is missing {', '.join(missing)}.")

        task_id = str(record["task_id"])
        round_id, task_index = parse_task_id(task_id)
        if not _is_missing(record.get("round")):
            round_id = int(record["round"])
        if not _is_missing(record.get("task_index")):
            task_index = int(record["task_index"])

        expertise = record.get("expertise_level")
        attempts.append(
            Attempt(
                student_id=str(record["student_id"]),
                task_id=task_id,
                round=round_id,
                task_index=task_index,
                sequence_index=int(record["sequence_index"]),
                attempt_number=1 if _is_missing(record.get("attempt_number")) else int(record["attempt_number"]),
                elapsed_seconds=float(record["elapsed_seconds"]),
                submitted_artifact="" if _is_missing(record.get("submitted_artifact")) else str(record["submitted_artifact"]),
                completed_at=_to_datetime(record.get("completed_at")),
                is_correct=_to_bool(record["is_correct"]),
                expertise_level=None if _is_missing(expertise) else int(expertise),
            )
        )
    return attempts


def load_attempts(path: Path) -> List[Attempt]:
    """
    Read an attempt log from disk, keeping the file's row order.

    JSON files may hold a list of records or an object with an ``attempts`` list
    (the shape of the original session export).
    """

    suffix = path.suffix.lower()
    if suffix == ".json":
        payload = json.loads(path.read_text(encoding="utf-8"))
        records = payload.get("attempts", []) if isinstance(payload, dict) else payload
        return attempts_from_records(records)
    if suffix == ".csv":
        df = pd.read_csv(path, dtype={"task_id": "string", "taskId": "string", "student_id": "string"})
    elif suffix in (".parquet", ".pq"):
        df = pd.read_parquet(path)
    else:
        raise ValueError(f"Unsupported attempt log format '{path.suffix}'. Expected .json, .csv, or .parquet.")
    return attempts_from_records(df.to_dict(orient="records"))


def attempts_to_frame(attempts: Sequence[Attempt]) -> pd.DataFrame:
    rows = [
        {
            "student_id": attempt.student_id,
            "task_id": attempt.task_id,
            "round": attempt.round,
            "task_index": attempt.task_index,
            "sequence_index": attempt.sequence_index,
            "attempt_number": attempt.attempt_number,
            "elapsed_seconds": float(attempt.elapsed_seconds),
            "submitted_artifact": attempt.submitted_artifact,
            "completed_at": attempt.completed_at,
            "is_correct": bool(attempt.is_correct),
        }
        for attempt in attempts
    ]
    if not rows:
        return pd.DataFrame(
            {
                "student_id": pd.Series(dtype="object"),
                "task_id": pd.Series(dtype="object"),
                "round": pd.Series(dtype="int64"),
                "task_index": pd.Series(dtype="int64"),
                "sequence_index": pd.Series(dtype="int64"),
                "attempt_number": pd.Series(dtype="int64"),
                "elapsed_seconds": pd.Series(dtype="float64"),
                "submitted_artifact": pd.Series(dtype="object"),
                "completed_at": pd.Series(dtype="object"),
                "is_correct": pd.Series(dtype="bool"),
            },
            columns=ATTEMPT_COLUMNS,
        )
    return pd.DataFrame(rows, columns=ATTEMPT_COLUMNS)


def student_ids(attempts: Iterable[Attempt]) -> List[str]:
    seen: Dict[str, None] = {}
    for attempt in attempts:
        seen.setdefault(attempt.student_id, None)
    return list(seen)


def filter_student(attempts: Iterable[Attempt], student_id: str) -> List[Attempt]:
    return [attempt for attempt in attempts if attempt.student_id == student_id]


def _normalize_keys(record: Mapping[str, Any]) -> Dict[str, Any]:
    normalized: Dict[str, Any] = {}
    for key, value in record.items():
        normalized[CAMEL_CASE_KEYS.get(key, key)] = value
    return normalized


def _is_missing(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, float) and pd.isna(value):
        return True
    return value is pd.NA or value is pd.NaT


def _to_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in {"true", "1", "yes", "y"}
    return bool(value)


def _to_datetime(value: Any) -> datetime:
    if _is_missing(value):
        return datetime.fromtimestamp(0, tz=timezone.utc)
    if isinstance(value, datetime):
        return value
    return pd.Timestamp(value).to_pydatetime()
