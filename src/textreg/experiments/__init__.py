# Experimental components for text regression

from .experimental_pipeline import ExperimentalPipeline
from .hyperparameter_tuning import (
    GridResult,
    GridRunner,
    grid_dict_product,
    percent_loss,
    run_grid,
    select_best,
    select_by_percent_loss,
)
from .test_evaluation import TestEvaluator, initial_split

__all__ = [
    "ExperimentalPipeline",
    "GridResult",
    "GridRunner",
    "grid_dict_product",
    "percent_loss",
    "run_grid",
    "select_best",
    "select_by_percent_loss",
    "TestEvaluator",
    "initial_split",
]
