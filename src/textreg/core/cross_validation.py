#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
Resampling: fold plans and the per-fold fit/predict/score loop.

A fold plan is plain data (a list of ``Fold``). The evaluator walks

    CONFIGURED -> SPLIT -> (FIT -> PREDICT -> SCORE per fold) -> AGGREGATED

fitting the feature pipeline on each fold's analysis rows only. A fold whose
pipeline or model fails is logged, recorded in ``excluded_folds`` and left
out of the aggregate; the run only fails when every fold failed.
"""

from __future__ import annotations

import enum
import logging
import math
import random
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from ..errors import AllFoldsFailedError, DivideByZeroError, InvalidConfigurationError
from .corpus import Document, subset, targets
from .metrics import METRICS, resolve_metric_set

logger = logging.getLogger(__name__)

OVERALL = "overall"


# ---------------- Fold plans ----------------


@dataclass(frozen=True)
class Fold:
    fold_id: str
    analysis: Tuple[int, ...]
    assessment: Tuple[int, ...]


def quantile_strata(y: Sequence[float], n_bins: int = 4) -> List[int]:
    """Bin a continuous target into ``n_bins`` quantile groups (0..n_bins-1)."""
    y = np.asarray(y, dtype=float)
    if n_bins < 1:
        raise InvalidConfigurationError(f"n_bins must be >= 1, got {n_bins}")
    if len(y) == 0 or n_bins == 1:
        return [0] * len(y)
    edges = np.quantile(y, np.linspace(0.0, 1.0, n_bins + 1))
    return np.searchsorted(edges[1:-1], y, side="right").astype(int).tolist()


def _shuffled_order(n: int, seed: int, strata: Optional[Sequence[Any]]) -> List[int]:
    rng = random.Random(seed)
    if strata is None:
        order = list(range(n))
        rng.shuffle(order)
        return order

    if len(strata) != n:
        raise InvalidConfigurationError(f"strata has {len(strata)} labels for {n} rows")
    buckets: Dict[Any, List[int]] = {}
    for i, s in enumerate(strata):
        buckets.setdefault(s, []).append(i)
    order = []
    for key in sorted(buckets, key=str):
        b = buckets[key]
        rng.shuffle(b)
        order.extend(b)
    return order


def vfold_plan(n: int, k: int = 10, seed: int = 42, strata: Optional[Sequence[Any]] = None) -> List[Fold]:
    """
    K-fold plan over ``n`` rows.

    Rows are shuffled with ``random.Random(seed)`` (within strata, when given)
    and dealt round-robin, so fold sizes differ by at most one and each
    stratum is spread evenly. Every row lands in exactly one assessment set.
    """
    if k is None or int(k) < 2:
        raise InvalidConfigurationError(f"k-fold needs k >= 2, got {k}")
    if n < k:
        raise InvalidConfigurationError(f"cannot make {k} folds from {n} rows")

    order = _shuffled_order(n, seed, strata)
    assess: List[List[int]] = [[] for _ in range(k)]
    for pos, idx in enumerate(order):
        assess[pos % k].append(idx)

    folds = []
    for j in range(k):
        test_idx = sorted(assess[j])
        held = set(test_idx)
        train_idx = [i for i in range(n) if i not in held]
        folds.append(Fold(f"Fold{j + 1}", tuple(train_idx), tuple(test_idx)))
    return folds


def train_test_plan(
    n: int, test_size: float = 0.25, seed: int = 42, strata: Optional[Sequence[Any]] = None
) -> List[Fold]:
    """A single analysis/assessment split (the K=1 case)."""
    if not 0.0 < test_size < 1.0:
        raise InvalidConfigurationError(f"test_size must be in (0, 1), got {test_size}")

    rng = random.Random(seed)
    n_test = max(1, int(math.floor(n * test_size + 0.5)))
    if strata is None:
        order = list(range(n))
        rng.shuffle(order)
        test_idx = order[:n_test]
    else:
        if len(strata) != n:
            raise InvalidConfigurationError(f"strata has {len(strata)} labels for {n} rows")
        buckets: Dict[Any, List[int]] = {}
        for i, s in enumerate(strata):
            buckets.setdefault(s, []).append(i)
        keys = sorted(buckets, key=str)

        # largest remainder: per-stratum shares always sum to n_test
        quotas = {key: len(buckets[key]) * n_test / n for key in keys}
        take = {key: int(math.floor(q)) for key, q in quotas.items()}
        by_remainder = sorted(keys, key=lambda key: take[key] - quotas[key])
        for key in by_remainder[: n_test - sum(take.values())]:
            take[key] += 1

        test_idx = []
        for key in keys:
            b = buckets[key]
            rng.shuffle(b)
            test_idx.extend(b[: take[key]])

    if not 0 < len(test_idx) < n:
        raise InvalidConfigurationError(
            f"test_size={test_size} leaves {len(test_idx)} of {n} rows for assessment"
        )
    held = set(test_idx)
    train_idx = [i for i in range(n) if i not in held]
    return [Fold("Split1", tuple(train_idx), tuple(sorted(test_idx)))]


def validate_plan(fold_plan: Sequence[Fold], n: int) -> None:
    if len(fold_plan) == 0:
        raise InvalidConfigurationError("fold plan is empty")
    for fold in fold_plan:
        a, b = set(fold.analysis), set(fold.assessment)
        if not a or not b:
            raise InvalidConfigurationError(f"{fold.fold_id}: analysis and assessment must be non-empty")
        if a & b:
            raise InvalidConfigurationError(f"{fold.fold_id}: analysis and assessment overlap")
        if min(a | b) < 0 or max(a | b) >= n:
            raise InvalidConfigurationError(f"{fold.fold_id}: index out of range for {n} rows")


# ---------------- Results ----------------


class EvaluationState(str, enum.Enum):
    CONFIGURED = "CONFIGURED"
    SPLIT = "SPLIT"
    FIT = "FIT"
    PREDICT = "PREDICT"
    SCORE = "SCORE"
    AGGREGATED = "AGGREGATED"
    CANCELLED = "CANCELLED"


@dataclass(frozen=True)
class MetricResult:
    metric: str
    fold_id: str
    estimate: float
    std_err: Optional[float] = None
    n: Optional[int] = None


@dataclass
class FoldOutcome:
    fold_id: str
    status: str  # "ok" | "failed" | "cancelled"
    metrics: Dict[str, float] = field(default_factory=dict)
    error: Optional[str] = None
    n_assessment: int = 0
    predictions: Optional[pd.DataFrame] = None
    # last phase the fold reached
    phase: EvaluationState = EvaluationState.SPLIT


@dataclass
class EvaluationResult:
    per_fold: List[MetricResult]
    overall: List[MetricResult]
    excluded_folds: Dict[str, str]
    folds: List[Fold]
    state: EvaluationState = EvaluationState.AGGREGATED
    cancelled: bool = False
    predictions: Optional[pd.DataFrame] = None
    fold_phases: Dict[str, EvaluationState] = field(default_factory=dict)

    def estimate(self, metric: str) -> float:
        for m in self.overall:
            if m.metric == metric:
                return m.estimate
        raise KeyError(f"no overall estimate for {metric!r}")

    def std_err(self, metric: str) -> Optional[float]:
        for m in self.overall:
            if m.metric == metric:
                return m.std_err
        raise KeyError(f"no overall estimate for {metric!r}")

    @property
    def completed_folds(self) -> List[str]:
        return list(dict.fromkeys(m.fold_id for m in self.per_fold))

    def to_dict(self) -> Dict[str, Dict[str, float]]:
        """metric -> fold id (or "overall") -> estimate."""
        out: Dict[str, Dict[str, float]] = {}
        for m in list(self.per_fold) + list(self.overall):
            out.setdefault(m.metric, {})[m.fold_id] = m.estimate
        return out

    def to_frame(self) -> pd.DataFrame:
        rows = [
            {"metric": m.metric, "fold_id": m.fold_id, "estimate": m.estimate, "std_err": m.std_err, "n": m.n}
            for m in list(self.per_fold) + list(self.overall)
        ]
        return pd.DataFrame(rows, columns=["metric", "fold_id", "estimate", "std_err", "n"])

    def summary(self) -> Dict[str, Any]:
        return {
            "overall": {m.metric: {"mean": m.estimate, "std_err": m.std_err, "n": m.n} for m in self.overall},
            "per_fold": self.to_dict(),
            "excluded_folds": dict(self.excluded_folds),
            "cancelled": self.cancelled,
            "state": self.state.value,
        }


def aggregate(per_fold: Sequence[MetricResult], metric_set: Sequence[str]) -> List[MetricResult]:
    """
    Mean and standard error per metric across the folds that produced it.

    std_err = sample standard deviation (ddof=1) / sqrt(K); NaN for K == 1.
    """
    overall = []
    for metric in metric_set:
        values = np.asarray([m.estimate for m in per_fold if m.metric == metric], dtype=float)
        k = len(values)
        if k == 0:
            continue
        se = float(np.std(values, ddof=1) / math.sqrt(k)) if k > 1 else float("nan")
        overall.append(MetricResult(metric, OVERALL, float(values.mean()), std_err=se, n=k))
    return overall


# ---------------- Evaluator ----------------


class ResamplingEvaluator:
    """
    Drive fit/predict/score over a fold plan.

    Args:
        metric_set: Metric names (see core.metrics.METRICS)
        n_jobs: Worker threads for folds; 1 runs them in order
        cancel_event: Checked before every fold; once set, remaining folds
            are skipped and the completed ones are returned
        save_predictions: Keep assessment-row predictions in the result
    """

    def __init__(
        self,
        metric_set: Optional[Sequence[str]] = None,
        n_jobs: int = 1,
        cancel_event: Optional[threading.Event] = None,
        save_predictions: bool = False,
    ):
        self.metric_set = resolve_metric_set(metric_set)
        if n_jobs is None or int(n_jobs) < 1:
            raise InvalidConfigurationError(f"n_jobs must be >= 1, got {n_jobs}")
        self.n_jobs = int(n_jobs)
        self.cancel_event = cancel_event
        self.save_predictions = save_predictions
        self.state = EvaluationState.CONFIGURED

    def _cancelled(self) -> bool:
        return self.cancel_event is not None and self.cancel_event.is_set()

    def _run_fold(
        self,
        fold: Fold,
        corpus: Sequence[Document],
        y: np.ndarray,
        pipeline_factory: Callable[[], Any],
        fit_predict,
    ) -> FoldOutcome:
        if self._cancelled():
            return FoldOutcome(fold.fold_id, "cancelled")

        analysis = subset(corpus, fold.analysis)
        assessment = subset(corpus, fold.assessment)
        y_analysis = y[list(fold.analysis)]
        y_assessment = y[list(fold.assessment)]

        phase = EvaluationState.FIT
        try:
            fitted = pipeline_factory().fit(analysis)
            X_analysis = fitted.transform(analysis)
            X_assessment = fitted.transform(assessment)
            handle = fit_predict.fit(X_analysis, y_analysis)

            phase = EvaluationState.PREDICT
            y_hat = np.asarray(fit_predict.predict(handle, X_assessment), dtype=float).ravel()
            if len(y_hat) != len(y_assessment):
                raise ValueError(f"predict returned {len(y_hat)} values for {len(y_assessment)} rows")
        except InvalidConfigurationError:
            raise
        except Exception as e:
            reason = f"{type(e).__name__}: {e}"
            logger.warning("%s excluded: %s", fold.fold_id, reason)
            return FoldOutcome(fold.fold_id, "failed", error=reason, n_assessment=len(assessment), phase=phase)

        phase = EvaluationState.SCORE
        scores = {m: METRICS[m](y_assessment, y_hat) for m in self.metric_set}
        logger.info(
            "%s: %s",
            fold.fold_id,
            ", ".join(f"{m}={v:.4f}" for m, v in scores.items()),
        )

        preds = None
        if self.save_predictions:
            preds = pd.DataFrame(
                {
                    "fold_id": fold.fold_id,
                    "row": list(fold.assessment),
                    "id": [d.id for d in assessment],
                    "truth": y_assessment,
                    "pred": y_hat,
                }
            )
        return FoldOutcome(
            fold.fold_id, "ok", metrics=scores, n_assessment=len(assessment), predictions=preds, phase=phase
        )

    def evaluate(
        self,
        corpus: Sequence[Document],
        fold_plan: Sequence[Fold],
        pipeline_factory: Callable[[], Any],
        fit_predict,
    ) -> EvaluationResult:
        """
        Evaluate one feature pipeline + model over every fold of a plan.

        Args:
            corpus: Documents, indexed by the fold plan
            fold_plan: Folds from vfold_plan / train_test_plan
            pipeline_factory: Zero-argument callable returning an unfitted
                feature pipeline (``.fit(docs) -> fitted``, ``fitted.transform``)
            fit_predict: FitPredict capability

        Returns:
            EvaluationResult with per-fold and overall metrics

        Raises:
            InvalidConfigurationError: bad plan (before any fold runs)
            DivideByZeroError: mape requested and a target is exactly 0
            AllFoldsFailedError: no fold could be scored
        """
        self.state = EvaluationState.CONFIGURED
        corpus = tuple(corpus)
        validate_plan(fold_plan, len(corpus))
        y = targets(corpus)

        if "mape" in self.metric_set and np.any(y == 0):
            raise DivideByZeroError("mape requested but the corpus has targets equal to 0")

        self.state = EvaluationState.SPLIT
        if self.n_jobs == 1:
            outcomes = []
            for fold in fold_plan:
                if self._cancelled():
                    logger.info("evaluation cancelled before %s", fold.fold_id)
                    break
                outcomes.append(self._run_fold(fold, corpus, y, pipeline_factory, fit_predict))
        else:
            with ThreadPoolExecutor(max_workers=min(self.n_jobs, len(fold_plan))) as ex:
                futures = [
                    ex.submit(self._run_fold, fold, corpus, y, pipeline_factory, fit_predict)
                    for fold in fold_plan
                ]
                outcomes = [f.result() for f in futures]

        # per-fold phases live on FoldOutcome; only this thread moves self.state
        self.state = EvaluationState.SCORE
        return self._aggregate(outcomes, list(fold_plan))

    def _aggregate(self, outcomes: List[FoldOutcome], folds: List[Fold]) -> EvaluationResult:
        ok = [o for o in outcomes if o.status == "ok"]
        failed = {o.fold_id: o.error for o in outcomes if o.status == "failed"}
        cancelled = self._cancelled() and len(ok) + len(failed) < len(folds)

        if failed and not ok and not cancelled:
            raise AllFoldsFailedError(f"all {len(failed)} folds failed", failures=failed)

        per_fold = [
            MetricResult(m, o.fold_id, v, n=o.n_assessment) for o in ok for m, v in o.metrics.items()
        ]
        overall = aggregate(per_fold, self.metric_set)

        preds = None
        frames = [o.predictions for o in ok if o.predictions is not None]
        if frames:
            preds = pd.concat(frames, ignore_index=True)

        if failed:
            logger.warning("excluded %d of %d folds: %s", len(failed), len(folds), sorted(failed))

        self.state = EvaluationState.CANCELLED if cancelled else EvaluationState.AGGREGATED
        return EvaluationResult(
            per_fold=per_fold,
            overall=overall,
            excluded_folds=failed,
            folds=folds,
            state=self.state,
            cancelled=cancelled,
            predictions=preds,
            fold_phases={o.fold_id: o.phase for o in outcomes},
        )


def evaluate(
    corpus: Sequence[Document],
    fold_plan: Sequence[Fold],
    pipeline_factory: Callable[[], Any],
    fit_predict,
    metric_set: Optional[Sequence[str]] = None,
    n_jobs: int = 1,
    cancel_event: Optional[threading.Event] = None,
) -> EvaluationResult:
    evaluator = ResamplingEvaluator(metric_set=metric_set, n_jobs=n_jobs, cancel_event=cancel_event)
    return evaluator.evaluate(corpus, fold_plan, pipeline_factory, fit_predict)
