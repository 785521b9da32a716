#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
Regression Metrics Implementation

This module implements the regression metrics used to score assessment folds:
- RMSE (root mean squared error)
- R^2 (squared Pearson correlation between truth and prediction)
- MAE (mean absolute error)
- MAPE (mean absolute percentage error, as a fraction)
- Regression report

Every metric takes ground truth first and predictions second, like the
scikit-learn convention.
"""

import logging
from typing import Callable, Dict, List, Optional, Sequence

import numpy as np

from ..errors import DivideByZeroError, InvalidConfigurationError

logger = logging.getLogger(__name__)


def _check_pair(y_true, y_pred):
    y_true = np.asarray(y_true, dtype=float).ravel()
    y_pred = np.asarray(y_pred, dtype=float).ravel()

    if len(y_true) != len(y_pred):
        raise ValueError("y_true and y_pred must have the same length")
    if len(y_true) == 0:
        raise ValueError("metrics need at least one observation")
    return y_true, y_pred


def rmse(y_true: np.ndarray, y_pred: np.ndarray) -> float:
    """Root mean squared error."""
    y_true, y_pred = _check_pair(y_true, y_pred)
    return float(np.sqrt(np.mean((y_true - y_pred) ** 2)))


def rsq(y_true: np.ndarray, y_pred: np.ndarray) -> float:
    """
    Squared Pearson correlation between truth and prediction.

    The correlation is undefined when either vector is constant; that case
    scores 0.0 and logs a warning.
    """
    y_true, y_pred = _check_pair(y_true, y_pred)

    dt = y_true - y_true.mean()
    dp = y_pred - y_pred.mean()
    denom = np.sqrt(np.sum(dt**2) * np.sum(dp**2))
    if denom == 0:
        logger.warning("rsq: constant truth or prediction, correlation undefined; scoring 0.0")
        return 0.0

    r = float(np.sum(dt * dp) / denom)
    return r * r


def mae(y_true: np.ndarray, y_pred: np.ndarray) -> float:
    """Mean absolute error."""
    y_true, y_pred = _check_pair(y_true, y_pred)
    return float(np.mean(np.abs(y_true - y_pred)))


def mape(y_true: np.ndarray, y_pred: np.ndarray) -> float:
    """
    Mean absolute percentage error, mean(|y - y_hat| / |y|).

    Raises:
        DivideByZeroError: if any true value is exactly 0
    """
    y_true, y_pred = _check_pair(y_true, y_pred)

    zeros = np.flatnonzero(y_true == 0)
    if len(zeros):
        raise DivideByZeroError(
            f"mape is undefined: {len(zeros)} true value(s) equal 0 (first at row {zeros[0]})"
        )
    return float(np.mean(np.abs(y_true - y_pred) / np.abs(y_true)))


# name -> function, and whether larger is better
METRICS: Dict[str, Callable[[np.ndarray, np.ndarray], float]] = {
    "rmse": rmse,
    "rsq": rsq,
    "mae": mae,
    "mape": mape,
}
HIGHER_IS_BETTER = {"rsq"}

DEFAULT_METRIC_SET = ("rmse", "rsq", "mae", "mape")


def resolve_metric_set(metric_set: Optional[Sequence[str]]) -> List[str]:
    """
    Validate a metric set and return it as a list of names.

    Raises:
        InvalidConfigurationError: for an empty set or unknown names
    """
    if metric_set is None:
        return list(DEFAULT_METRIC_SET)
    names = list(metric_set)
    if not names:
        raise InvalidConfigurationError("metric set must not be empty")
    unknown = [m for m in names if m not in METRICS]
    if unknown:
        raise InvalidConfigurationError(
            f"unknown metric(s) {unknown}; choose from {sorted(METRICS)}"
        )
    # keep first occurrence order
    return list(dict.fromkeys(names))


def is_higher_better(metric: str) -> bool:
    return metric in HIGHER_IS_BETTER


def compute_all_metrics(
    y_true: np.ndarray, y_pred: np.ndarray, metric_set: Optional[Sequence[str]] = None
) -> Dict[str, float]:
    """
    Compute every metric in ``metric_set`` (all four by default).

    Returns:
        Dictionary mapping metric name to value
    """
    return {name: METRICS[name](y_true, y_pred) for name in resolve_metric_set(metric_set)}


def regression_report(
    y_true: np.ndarray,
    y_pred: np.ndarray,
    metric_set: Optional[Sequence[str]] = None,
    digits: int = 4,
) -> str:
    """Formatted one-metric-per-line report."""
    values = compute_all_metrics(y_true, y_pred, metric_set)
    width = max(len(name) for name in values)
    n = len(np.asarray(y_true).ravel())

    report = f"{'metric':>{width}} {'estimate':>12}\n"
    for name, v in values.items():
        report += f"{name:>{width}} {v:>12.{digits}f}\n"
    report += f"{'n':>{width}} {n:>12}\n"
    return report
