# ABOUTME: Builds seeded attempt logs shared by the analysis, grading, and report tests.
# ABOUTME: Session times follow a power-law learning curve with Gaussian noise.
from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import List

import numpy as np
import pytest

from src.common.schemas import Attempt

TASK_STRUCTURE = [
    (1, [1, 2, 3]),
    (2, [1, 2, 3]),
    (3, [1, 2, 3, 4]),
    (4, [1, 2, 3, 4]),
    (5, [1, 2, 3, 4]),
]

REFERENCE_QUERIES = {
    "1.1": "SELECT * FROM patients WHERE last_name = 'Martinez';",
    "1.2": "SELECT * FROM patients WHERE unit = 'Cardiac B' AND discharge_date IS NULL;",
    "1.3": "SELECT * FROM medications WHERE patient_id = 247 ORDER BY scheduled_time;",
    "2.1": "SELECT e.*, p.name FROM encounters e JOIN providers p ON e.provider_id = p.provider_id WHERE e.patient_id = 247;",
    "2.2": "SELECT m.*, n.name FROM medications m JOIN nurses n ON m.nurse_id = n.nurse_id WHERE m.patient_id = 247;",
    "2.3": "SELECT d.*, e.encounter_date FROM diagnoses d JOIN encounters e ON d.encounter_id = e.encounter_id;",
    "3.1": "SELECT AVG(delay_minutes) AS avg_delay FROM medications;",
    "3.2": "SELECT COUNT(*) AS late FROM medications WHERE delay_minutes > 30;",
    "3.3": "SELECT p.unit, AVG(m.delay_minutes) FROM medications m JOIN patients p ON m.patient_id = p.patient_id GROUP BY p.unit;",
    "3.4": "SELECT SUM(CASE WHEN delay_minutes > 15 THEN 1 ELSE 0 END) AS delayed FROM medications;",
    "4.1": "SELECT n.shift, AVG(m.delay_minutes) FROM medications m JOIN nurses n ON m.nurse_id = n.nurse_id JOIN patients p ON m.patient_id = p.patient_id GROUP BY n.shift;",
    "4.2": "SELECT n.name, AVG(m.delay_minutes) AS d FROM medications m JOIN nurses n ON m.nurse_id = n.nurse_id GROUP BY n.name ORDER BY d DESC;",
    "4.3": "SELECT years_experience, COUNT(*) FROM nurses GROUP BY years_experience;",
    "4.4": "SELECT strftime('%H', scheduled_time) AS hour, AVG(delay_minutes) FROM medications GROUP BY hour;",
    "5.1": "SELECT n.name FROM medications m JOIN nurses n ON m.nurse_id = n.nurse_id GROUP BY n.name HAVING AVG(m.delay_minutes) > (SELECT AVG(delay_minutes) FROM medications);",
    "5.2": "SELECT p.unit, SUM(m.delay_minutes) FROM medications m JOIN patients p ON m.patient_id = p.patient_id GROUP BY p.unit;",
    "5.3": "SELECT unit FROM patients WHERE patient_id IN (SELECT patient_id FROM medications GROUP BY patient_id);",
    "5.4": "SELECT (SELECT COUNT(*) FROM medications) - (SELECT COUNT(*) FROM medications WHERE delay_minutes > 15) AS on_time;",
}

BASE_TIME = datetime(2026, 2, 1, 10, 0, tzinfo=timezone.utc)


def make_attempt(
    task_id: str,
    sequence_index: int,
    elapsed_seconds: float,
    is_correct: bool = True,
    attempt_number: int = 1,
    submitted_artifact: str = "SELECT * FROM patients;",
    student_id: str = "t42x999",
    offset_seconds: float = 0.0,
) -> Attempt:
    round_id, task_index = (int(part) for part in task_id.split("."))
    return Attempt(
        student_id=student_id,
        task_id=task_id,
        round=round_id,
        task_index=task_index,
        sequence_index=sequence_index,
        attempt_number=attempt_number,
        elapsed_seconds=elapsed_seconds,
        submitted_artifact=submitted_artifact,
        completed_at=BASE_TIME + timedelta(seconds=offset_seconds),
        is_correct=is_correct,
        expertise_level=2,
    )


def _power_law_session(seed: int, first_time: float, exponent: float, sigma: float, with_retries: bool) -> List[Attempt]:
    rng = np.random.default_rng(seed)
    attempts: List[Attempt] = []
    sequence_index = 0
    elapsed_total = 0.0

    for round_id, task_indices in TASK_STRUCTURE:
        for task_index in task_indices:
            sequence_index += 1
            task_id = f"{round_id}.{task_index}"
            time_sec = round(max(5.0, first_time * sequence_index ** exponent + rng.normal(0.0, sigma)), 2)

            attempt_number = 1
            if with_retries and task_index == 1:
                for _ in range(2 if round_id <= 3 else 1):
                    wrong_time = round(10 + rng.random() * 20, 2)
                    elapsed_total += wrong_time
                    attempts.append(
                        make_attempt(
                            task_id,
                            sequence_index,
                            wrong_time,
                            is_correct=False,
                            attempt_number=attempt_number,
                            submitted_artifact="SELECT * FROM patients LIMIT 1;",
                            student_id="r99z123",
                            offset_seconds=elapsed_total,
                        )
                    )
                    attempt_number += 1

            elapsed_total += time_sec
            attempts.append(
                make_attempt(
                    task_id,
                    sequence_index,
                    time_sec,
                    attempt_number=attempt_number,
                    submitted_artifact=REFERENCE_QUERIES[task_id],
                    student_id="r99z123" if with_retries else "t42x999",
                    offset_seconds=elapsed_total,
                )
            )
    return attempts


@pytest.fixture
def clean_attempts() -> List[Attempt]:
    """18 tasks, all first try, T_n = 120 * n^-0.322 with sigma=5s noise."""
    return _power_law_session(seed=42, first_time=120.0, exponent=-0.322, sigma=5.0, with_retries=False)


@pytest.fixture
def retry_attempts() -> List[Attempt]:
    """First task of each round needs 1-2 wrong attempts before succeeding."""
    return _power_law_session(seed=99, first_time=150.0, exponent=-0.25, sigma=8.0, with_retries=True)


@pytest.fixture
def partial_attempts(clean_attempts) -> List[Attempt]:
    """First 9 of 18 tasks."""
    return clean_attempts[:9]


@pytest.fixture
def attempt_factory():
    return make_attempt
