#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
Main Experimental Pipeline for Text Regression

The pipeline coordinates:
1. Data loading and the initial train/test split
2. K-fold grid search over feature and model settings (training split only)
3. Selection of the simplest configuration within a percent loss of the best
4. Final fit on the whole training split and evaluation on the test split
5. Results collection (JSON + summary tables)
"""

import logging
import threading
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from ..core.corpus import Corpus, targets
from ..core.cross_validation import quantile_strata, vfold_plan
from ..core.metrics import DEFAULT_METRIC_SET
from ..models.models_registry import complexity_of, get_factory_and_grid
from ..prepare_dataset import load_corpus
from .hyperparameter_tuning import (
    GridRunner,
    select_by_percent_loss,
)
from .reporting import export_summary_table, format_summary, save_json
from .test_evaluation import TestEvaluator

logger = logging.getLogger(__name__)


class ExperimentalPipeline:
    """
    Main experimental pipeline for text regression.

    This class orchestrates the complete workflow from data loading to the
    held-out test evaluation of the selected configuration.
    """

    def __init__(
        self,
        csv_path: str,
        results_dir: str = "results",
        model: str = "svm",
        fast: bool = False,
        folds: int = 10,
        test_size: float = 0.25,
        random_state: int = 42,
        metric_set: Sequence[str] = DEFAULT_METRIC_SET,
        target_metric: str = "mae",
        tolerance_pct: float = 2.0,
        n_jobs: int = 1,
        fold_jobs: int = 1,
        grid: Optional[List[Dict[str, Any]]] = None,
        text_col: str = "text",
        target_col: str = "target",
        id_col: Optional[str] = None,
        cancel_event: Optional[threading.Event] = None,
    ):
        """
        Initialize experimental pipeline.

        Args:
            csv_path: Clean CSV with text and target columns
            results_dir: Directory to save results
            model: Registry name of the regression backend ("svm", "rf", "null")
            fast: Use the small grids
            folds: Number of cross-validation folds on the training split
            test_size: Fraction held out for the final test
            random_state: Random seed for reproducibility
            metric_set: Metrics scored per fold
            target_metric: Metric used for configuration selection
            tolerance_pct: Accepted percent loss for the simpler configuration
            n_jobs: Worker threads across grid configurations
            fold_jobs: Worker threads across folds
            grid: Explicit list of configurations (overrides the registry grid)
            cancel_event: Set to stop the grid search early
        """
        self.csv_path = Path(csv_path)
        self.results_dir = Path(results_dir)
        self.model = model
        self.fast = fast
        self.folds = folds
        self.test_size = test_size
        self.random_state = random_state
        self.metric_set = list(metric_set)
        self.target_metric = target_metric
        self.tolerance_pct = tolerance_pct
        self.n_jobs = n_jobs
        self.fold_jobs = fold_jobs
        self.text_col = text_col
        self.target_col = target_col
        self.id_col = id_col
        self.cancel_event = cancel_event

        self.factory, registry_grid = get_factory_and_grid(model, fast=fast)
        self.grid = grid if grid is not None else registry_grid

        self.train_data: Optional[Corpus] = None
        self.test_data: Optional[Corpus] = None
        self.evaluator: Optional[TestEvaluator] = None
        self.runner: Optional[GridRunner] = None
        self.results: Dict[str, Any] = {}

    def load_and_split_data(self):
        """Load the corpus and hold out the test split."""
        print("=" * 60)
        print("STEP 1: Loading and Splitting Data")
        print("=" * 60)

        corpus = load_corpus(self.csv_path, self.text_col, self.target_col, self.id_col)
        self.evaluator = TestEvaluator(
            test_size=self.test_size, random_state=self.random_state, metric_set=self.metric_set
        )
        self.train_data, self.test_data = self.evaluator.split_data(corpus)

        y = targets(corpus)
        print(f"[data] rows={len(corpus)}, target range=[{y.min():.2f}, {y.max():.2f}]")
        print(f"[data] train={len(self.train_data)}, test={len(self.test_data)}")
        self.results["data"] = {
            "csv": str(self.csv_path),
            "rows": len(corpus),
            "train_size": len(self.train_data),
            "test_size": len(self.test_data),
        }

    def run_grid_search(self):
        """Resampled evaluation of every grid configuration on the training split."""
        print("\n" + "=" * 60)
        print("STEP 2: Grid Search")
        print("=" * 60)

        if self.train_data is None:
            raise ValueError("Must call load_and_split_data() first")
        y = targets(self.train_data)
        plan = vfold_plan(len(self.train_data), k=self.folds, seed=self.random_state, strata=quantile_strata(y))
        print(f"Configurations: {len(self.grid)}, folds: {len(plan)}")

        self.runner = GridRunner(
            metric_set=self.metric_set,
            n_jobs=self.n_jobs,
            fold_jobs=self.fold_jobs,
            cancel_event=self.cancel_event,
        )
        grid_results = self.runner.run(self.train_data, plan, self.grid, self.factory)
        frame = self.runner.results_frame()

        self.results["grid_search"] = {
            "model": self.model,
            "folds": len(plan),
            "cancelled": self.runner.cancelled,
            "results": [r.to_dict() for r in grid_results],
        }
        print(format_summary(frame, [f"mean_{m}" for m in self.metric_set]))
        return grid_results

    def select_configuration(self) -> Dict[str, Any]:
        """Simplest configuration within tolerance_pct of the best target metric."""
        print("\n" + "=" * 60)
        print("STEP 3: Selecting Configuration")
        print("=" * 60)

        selected = select_by_percent_loss(
            self.runner.results, self.target_metric, self.tolerance_pct, complexity=complexity_of
        )
        self.results["selection"] = {
            "target_metric": self.target_metric,
            "tolerance_pct": self.tolerance_pct,
            "selected": selected,
        }
        print(f"Selected ({self.target_metric}, {self.tolerance_pct}% loss): {selected}")
        return selected

    def run_test_evaluation(self, config: Dict[str, Any]) -> Dict[str, Any]:
        """Final fit on the training split, metrics on the test split."""
        print("\n" + "=" * 60)
        print("STEP 4: Test Set Evaluation")
        print("=" * 60)

        res = self.evaluator.evaluate_config(config, self.factory)
        self.results["test_evaluation"] = res
        for m in self.metric_set:
            print(
                f"  {m:5} test={res['test_metrics'][m]:.4f}  "
                f"train={res['train_metrics'][m]:.4f}  gap={res['overfitting_gap'][m]:.4f}"
            )
        return res

    def save_results(self) -> Path:
        """Save all results to files."""
        print("\n" + "=" * 60)
        print("STEP 5: Saving Results")
        print("=" * 60)

        stamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        results_path = save_json(self.results, self.results_dir / f"experiment_results_{stamp}.json")
        print(f"Results saved to: {results_path}")

        if self.runner is not None and self.runner.results:
            export_summary_table(self.runner.results_frame(), self.results_dir, name="grid_summary")
            print(f"[tables] Saved grid_summary.(csv|md) into {self.results_dir}")
        return results_path

    def run_complete_pipeline(self) -> Dict[str, Any]:
        """Run the complete experimental pipeline."""
        self.load_and_split_data()
        self.run_grid_search()

        if self.runner.cancelled:
            print("\n[info] Grid search was cancelled; skipping selection and test evaluation.")
        else:
            selected = self.select_configuration()
            self.run_test_evaluation(selected)

        self.save_results()
        return self.results
