# ABOUTME: Fits the power-law learning curve T_n = T_1 * n^b by log-log least squares.
# ABOUTME: Exposes the OLS helper and the RegressionFit result consumed by the grader.

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Sequence, Tuple

import numpy as np

from src.common.numeric import round2, round4

EPSILON = 1e-12
MIN_ELAPSED_SECONDS = 0.01


@dataclass(frozen=True)
class RegressionFit:
    """
    Result of fitting ``ln(time) = intercept + exponent * ln(sequence)``.

    ``residuals`` are in log space; ``predicted_times`` are in seconds.
    """

    exponent: float
    learning_rate: float
    intercept: float
    predicted_first_task_time: float
    r_squared: float
    sample_size: int
    residuals: Tuple[float, ...]
    predicted_times: Tuple[float, ...]


EMPTY_FIT = RegressionFit(
    exponent=0.0,
    learning_rate=1.0,
    intercept=0.0,
    predicted_first_task_time=0.0,
    r_squared=0.0,
    sample_size=0,
    residuals=(),
    predicted_times=(),
)


def ols(xs: Sequence[float], ys: Sequence[float]) -> Tuple[float, float, float]:
    """
    Ordinary least squares for ``y = intercept + slope * x``.

    Returns ``(slope, intercept, r_squared)``. When every x is identical the
    slope is 0 and the intercept is the mean of y. Constant y gives R² = 0.
    """

    x = np.asarray(xs, dtype=float)
    y = np.asarray(ys, dtype=float)
    n = len(x)
    if n == 0:
        return 0.0, 0.0, 0.0

    sum_x = float(x.sum())
    sum_y = float(y.sum())
    sum_xy = float((x * y).sum())
    sum_x2 = float((x * x).sum())

    denom = n * sum_x2 - sum_x * sum_x
    if abs(denom) < EPSILON:
        return 0.0, sum_y / n, 0.0

    slope = (n * sum_xy - sum_x * sum_y) / denom
    intercept = (sum_y - slope * sum_x) / n

    y_hat = intercept + slope * x
    ss_tot = float(((y - sum_y / n) ** 2).sum())
    ss_res = float(((y - y_hat) ** 2).sum())
    r_squared = 0.0 if ss_tot < EPSILON else 1.0 - ss_res / ss_tot

    return slope, intercept, r_squared


def fit_learning_curve(observations: Sequence[Tuple[int, float]]) -> RegressionFit:
    """
    Fit the learning curve over ``(sequence_index, elapsed_seconds)`` pairs.

    Pairs must be ordered by sequence index, one per successful attempt.
    """

    n = len(observations)
    if n == 0:
        return EMPTY_FIT

    xs = [math.log(sequence_index) for sequence_index, _ in observations]
    ys = [math.log(max(elapsed, MIN_ELAPSED_SECONDS)) for _, elapsed in observations]

    slope, intercept, r_squared = ols(xs, ys)

    residuals = []
    predicted_times = []
    for x, y in zip(xs, ys):
        y_hat = intercept + slope * x
        residuals.append(round4(y - y_hat))
        predicted_times.append(round2(math.exp(y_hat)))

    # Clamp guards against tiny negative values from floating-point error.
    r_squared = min(1.0, max(0.0, r_squared))

    return RegressionFit(
        exponent=round4(slope),
        learning_rate=round4(2.0 ** slope),
        intercept=round4(intercept),
        predicted_first_task_time=round2(math.exp(intercept)),
        r_squared=round4(r_squared),
        sample_size=n,
        residuals=tuple(residuals),
        predicted_times=tuple(predicted_times),
    )
