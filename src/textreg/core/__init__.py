# Core components: corpus, metrics, resampling

from .corpus import Corpus, Document, corpus_from_frame, corpus_to_frame, make_corpus, subset, targets, texts
from .cross_validation import (
    EvaluationResult,
    EvaluationState,
    Fold,
    MetricResult,
    ResamplingEvaluator,
    aggregate,
    evaluate,
    quantile_strata,
    train_test_plan,
    validate_plan,
    vfold_plan,
)
from .metrics import (
    METRICS,
    compute_all_metrics,
    is_higher_better,
    mae,
    mape,
    regression_report,
    resolve_metric_set,
    rmse,
    rsq,
)

__all__ = [
    "Corpus",
    "Document",
    "corpus_from_frame",
    "corpus_to_frame",
    "make_corpus",
    "subset",
    "targets",
    "texts",
    "EvaluationResult",
    "EvaluationState",
    "Fold",
    "MetricResult",
    "ResamplingEvaluator",
    "aggregate",
    "evaluate",
    "quantile_strata",
    "train_test_plan",
    "validate_plan",
    "vfold_plan",
    "METRICS",
    "compute_all_metrics",
    "is_higher_better",
    "mae",
    "mape",
    "regression_report",
    "resolve_metric_set",
    "rmse",
    "rsq",
]
