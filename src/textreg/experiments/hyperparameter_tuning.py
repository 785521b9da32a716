#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
Hyperparameter Grid Search

This module runs one resampled evaluation per configuration of an explicit
grid and picks a final configuration.

Features:
- Grid as data: a list of flat config dicts (feature keys + model keys)
- Exhaustive evaluation, no pruning or early stopping
- Optional thread pool across configurations
- Selection of the simplest config within a percent loss of the best
- Results tracking, comparison table and JSON export
"""

import itertools
import json
import logging
import math
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Sequence, Union

import numpy as np
import pandas as pd

from ..core.corpus import Document
from ..core.cross_validation import EvaluationResult, Fold, ResamplingEvaluator, validate_plan
from ..core.metrics import is_higher_better, resolve_metric_set
from ..errors import AllFoldsFailedError, InvalidConfigurationError
from ..features.pipeline import create_pipeline_factory, split_config
from ..models.models_registry import complexity_of

logger = logging.getLogger(__name__)


def grid_dict_product(grid: Dict[str, List[Any]]) -> List[Dict[str, Any]]:
    """Expand {key: [values]} into the list of every combination."""
    keys = list(grid.keys())
    return [dict(zip(keys, values)) for values in itertools.product(*[grid[k] for k in keys])]


@dataclass
class GridResult:
    config: Dict[str, Any]
    metrics: Dict[str, float] = field(default_factory=dict)
    std_errs: Dict[str, Optional[float]] = field(default_factory=dict)
    evaluation: Optional[EvaluationResult] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None and bool(self.metrics)

    @property
    def partial(self) -> bool:
        return self.evaluation is not None and self.evaluation.cancelled

    def to_dict(self) -> Dict[str, Any]:
        return {
            "config": self.config,
            "metrics": self.metrics,
            "std_errs": self.std_errs,
            "excluded_folds": dict(self.evaluation.excluded_folds) if self.evaluation else {},
            "partial": self.partial,
            "error": self.error,
        }


def resolve_fit_predict(fit_predict, model_params: Dict[str, Any]):
    # a ready FitPredict is used as-is; anything else is a factory(params)
    if hasattr(fit_predict, "fit") and hasattr(fit_predict, "predict"):
        return fit_predict
    return fit_predict(model_params)


class GridRunner:
    """
    Exhaustive grid search over resampled evaluations.

    Each configuration gets its own pipeline factory and fit/predict
    capability, so configurations share nothing and may run in parallel.
    """

    def __init__(
        self,
        metric_set: Optional[Sequence[str]] = None,
        n_jobs: int = 1,
        fold_jobs: int = 1,
        cancel_event: Optional[threading.Event] = None,
        pipeline_factory: Optional[Callable[[Dict[str, Any]], Any]] = None,
        save_predictions: bool = False,
    ):
        """
        Initialize grid runner.

        Args:
            metric_set: Metrics scored on every fold
            n_jobs: Worker threads across configurations
            fold_jobs: Worker threads across folds inside one configuration
            cancel_event: Checked before every configuration and fold
            pipeline_factory: params -> unfitted feature pipeline
                (defaults to the tf-idf/hashing FeaturePipeline)
            save_predictions: Keep fold predictions in each evaluation
        """
        self.metric_set = resolve_metric_set(metric_set)
        if n_jobs is None or int(n_jobs) < 1:
            raise InvalidConfigurationError(f"n_jobs must be >= 1, got {n_jobs}")
        self.n_jobs = int(n_jobs)
        self.fold_jobs = fold_jobs
        self.cancel_event = cancel_event
        self.pipeline_factory = pipeline_factory or create_pipeline_factory()
        self.save_predictions = save_predictions

        # Store results
        self.results: List[GridResult] = []
        self.cancelled = False

    def _cancelled(self) -> bool:
        return self.cancel_event is not None and self.cancel_event.is_set()

    def _run_config(self, index: int, total: int, config, corpus, fold_plan, fit_predict) -> Optional[GridResult]:
        if self._cancelled():
            return None

        feat_params, model_params = split_config(config)
        evaluator = ResamplingEvaluator(
            metric_set=self.metric_set,
            n_jobs=self.fold_jobs,
            cancel_event=self.cancel_event,
            save_predictions=self.save_predictions,
        )
        logger.info("[%d/%d] config=%s", index, total, config)
        try:
            evaluation = evaluator.evaluate(
                corpus,
                fold_plan,
                lambda: self.pipeline_factory(feat_params),
                resolve_fit_predict(fit_predict, model_params),
            )
        except AllFoldsFailedError as e:
            logger.error("[%d/%d] every fold failed for %s", index, total, config)
            return GridResult(config=dict(config), error=f"{type(e).__name__}: {e}")

        result = GridResult(
            config=dict(config),
            metrics={m.metric: m.estimate for m in evaluation.overall},
            std_errs={m.metric: m.std_err for m in evaluation.overall},
            evaluation=evaluation,
        )
        logger.info(
            "[%d/%d] %s",
            index,
            total,
            ", ".join(f"{k}={v:.4f}" for k, v in result.metrics.items()),
        )
        return result

    def run(
        self,
        corpus: Sequence[Document],
        fold_plan: Sequence[Fold],
        config_grid: Union[Sequence[Dict[str, Any]], Dict[str, List[Any]]],
        fit_predict,
    ) -> List[GridResult]:
        """
        Evaluate every configuration of the grid.

        Args:
            corpus: Training documents
            fold_plan: Folds over ``corpus``
            config_grid: List of config dicts, or a dict of value lists that
                is expanded with grid_dict_product
            fit_predict: FitPredict, or factory(model params) -> FitPredict

        Returns:
            One GridResult per configuration that was started, in grid order
        """
        configs = grid_dict_product(config_grid) if isinstance(config_grid, dict) else list(config_grid)
        if not configs:
            raise InvalidConfigurationError("config grid is empty")
        corpus = tuple(corpus)
        validate_plan(fold_plan, len(corpus))
        # building each pipeline checks its feature config before any fold runs
        for config in configs:
            self.pipeline_factory(split_config(config)[0])

        total = len(configs)
        if self.n_jobs == 1:
            raw = []
            for i, config in enumerate(configs, 1):
                if self._cancelled():
                    logger.info("grid search cancelled after %d of %d configs", i - 1, total)
                    break
                raw.append(self._run_config(i, total, config, corpus, fold_plan, fit_predict))
        else:
            with ThreadPoolExecutor(max_workers=min(self.n_jobs, total)) as ex:
                futures = [
                    ex.submit(self._run_config, i, total, config, corpus, fold_plan, fit_predict)
                    for i, config in enumerate(configs, 1)
                ]
                raw = [f.result() for f in futures]

        self.results = [r for r in raw if r is not None]
        self.cancelled = self._cancelled() and (
            len(self.results) < total or any(r.partial for r in self.results)
        )

        if not self.cancelled and not any(r.ok for r in self.results):
            raise AllFoldsFailedError(
                f"no configuration out of {total} produced metrics",
                failures={str(r.config): r.error for r in self.results},
            )
        return self.results

    def results_frame(self, results: Optional[List[GridResult]] = None) -> pd.DataFrame:
        """
        One row per configuration: config keys, mean and std_err per metric.

        Returns:
            DataFrame in grid order
        """
        rows = []
        for r in results if results is not None else self.results:
            row = dict(r.config)
            for m in self.metric_set:
                row[f"mean_{m}"] = r.metrics.get(m, np.nan)
                se = r.std_errs.get(m)
                row[f"std_err_{m}"] = np.nan if se is None else se
            row["n_excluded"] = len(r.evaluation.excluded_folds) if r.evaluation else np.nan
            row["error"] = r.error
            rows.append(row)
        return pd.DataFrame(rows)

    def save_results(self, filepath: str):
        """
        Save grid results to a JSON file.

        Args:
            filepath: Path to save results
        """
        payload = {
            "metric_set": self.metric_set,
            "cancelled": self.cancelled,
            "results": [r.to_dict() for r in self.results],
        }
        Path(filepath).parent.mkdir(parents=True, exist_ok=True)
        with open(filepath, "w", encoding="utf-8") as f:
            json.dump(payload, f, indent=2, default=str)

        logger.info("grid results saved to %s", filepath)


def run_grid(
    corpus: Sequence[Document],
    fold_plan: Sequence[Fold],
    config_grid,
    fit_predict,
    metric_set: Optional[Sequence[str]] = None,
    n_jobs: int = 1,
    cancel_event: Optional[threading.Event] = None,
) -> List[GridResult]:
    runner = GridRunner(metric_set=metric_set, n_jobs=n_jobs, cancel_event=cancel_event)
    return runner.run(corpus, fold_plan, config_grid, fit_predict)


def percent_loss(value: float, best: float) -> float:
    if best == 0:
        return 0.0 if value == best else math.inf
    return abs(best - value) / abs(best) * 100.0


def within_tolerance(value: float, best: float, tolerance_pct: float, metric: str) -> bool:
    # compared against the bound itself; the percent ratio drifts in the last ulp
    slack = abs(best) * tolerance_pct / 100.0
    if is_higher_better(metric):
        bound = best - slack
        return value >= bound or math.isclose(value, bound)
    bound = best + slack
    return value <= bound or math.isclose(value, bound)


def select_by_percent_loss(
    results: Sequence[GridResult],
    target_metric: str,
    tolerance_pct: float,
    complexity: Union[str, Callable[[Dict[str, Any]], float], None] = None,
) -> Dict[str, Any]:
    """
    Pick the simplest configuration whose target metric is within
    ``tolerance_pct`` percent of the best one.

    Args:
        results: Output of GridRunner.run
        target_metric: Metric to rank by (lower is better except for rsq)
        tolerance_pct: Accepted percent loss relative to the best value
        complexity: Config key or function; smaller means simpler
            (defaults to the number of feature columns)

    Returns:
        The selected config dict
    """
    if tolerance_pct is None or tolerance_pct < 0:
        raise InvalidConfigurationError(f"tolerance_pct must be >= 0, got {tolerance_pct}")
    if complexity is None:
        complexity = complexity_of
    elif isinstance(complexity, str):
        key = complexity
        complexity = lambda config: config[key]  # noqa: E731

    scored = [
        r for r in results if r.ok and not r.partial and not math.isnan(r.metrics.get(target_metric, math.nan))
    ]
    if not scored:
        raise InvalidConfigurationError(f"no complete result has a value for {target_metric!r}")

    values = [r.metrics[target_metric] for r in scored]
    best = max(values) if is_higher_better(target_metric) else min(values)

    qualifying = [r for r in scored if within_tolerance(r.metrics[target_metric], best, tolerance_pct, target_metric)]
    # min() keeps the first of equal complexities, i.e. grid order
    chosen = min(qualifying, key=lambda r: complexity(r.config))
    logger.info(
        "best %s=%.4f; %d config(s) within %.2f%%; selected %s",
        target_metric,
        best,
        len(qualifying),
        tolerance_pct,
        chosen.config,
    )
    return dict(chosen.config)


def select_best(results: Sequence[GridResult], target_metric: str) -> Dict[str, Any]:
    """Numerically best configuration (select_by_percent_loss with zero tolerance)."""
    return select_by_percent_loss(results, target_metric, 0.0, complexity=lambda config: 0)
