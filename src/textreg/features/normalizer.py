# normalizer.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

import numpy as np
from scipy.sparse import issparse

from ..errors import EmptyInputError, InvalidConfigurationError


@dataclass(frozen=True)
class NormalizationStats:
    """Per-column mean and (population) standard deviation of a training matrix."""

    mean: Tuple[float, ...]
    std: Tuple[float, ...]

    @property
    def n_columns(self) -> int:
        return len(self.mean)


def _dense(matrix) -> np.ndarray:
    if issparse(matrix):
        matrix = matrix.toarray()
    return np.asarray(matrix, dtype=float)


def fit_normalizer(matrix) -> NormalizationStats:
    """Learn centering/scaling statistics. Call on a training partition only."""
    X = _dense(matrix)
    if X.ndim != 2 or X.shape[0] == 0:
        raise EmptyInputError("cannot fit normalization statistics on zero rows")
    return NormalizationStats(
        mean=tuple(X.mean(axis=0).tolist()),
        std=tuple(X.std(axis=0).tolist()),
    )


def apply_normalizer(matrix, stats: NormalizationStats) -> np.ndarray:
    """
    (x - mean) / std per column with frozen stats.

    Constant columns (std == 0) come out as zeros.
    """
    X = _dense(matrix)
    if X.ndim != 2 or X.shape[1] != stats.n_columns:
        raise InvalidConfigurationError(
            f"matrix has {X.shape[-1] if X.ndim else 0} columns, stats were fit on {stats.n_columns}"
        )

    mean = np.asarray(stats.mean, dtype=float)
    std = np.asarray(stats.std, dtype=float)
    constant = std == 0
    safe = np.where(constant, 1.0, std)

    out = (X - mean) / safe
    out[:, constant] = 0.0
    return out
