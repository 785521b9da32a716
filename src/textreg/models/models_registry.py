# models_registry.py
from typing import Any, Callable, Dict, List, Tuple

from .base import EstimatorFitPredict
from .random_forest import create_null_factory, create_rf_factory
from .svm_regression import create_svm_factory

FitPredictFactory = Callable[[Dict[str, Any]], EstimatorFitPredict]


def _fit_predict_factory(estimator_factory) -> FitPredictFactory:
    def factory(params: Dict[str, Any]) -> EstimatorFitPredict:
        return EstimatorFitPredict(estimator_factory, params)

    return factory


def get_factory_and_grid(model: str, fast: bool = True) -> Tuple[FitPredictFactory, List[Dict[str, Any]]]:
    """
    Returns (factory, param_grid). factory: model params (dict) -> FitPredict
    param_grid: List[dict] mixing feature keys (max_tokens, method, ...) and
    model keys; the feature keys are read by the feature pipeline.
    """
    model = model.lower()

    if model in {"svm_hashing", "svr_hashing"}:
        factory = _fit_predict_factory(create_svm_factory())
        buckets = (2**6, 2**8) if fast else (2**8, 2**10, 2**12)
        grid = [{"method": "hashing", "num_buckets": b, "signed": True, "C": 1.0} for b in buckets]
        return factory, grid

    if model in {"svm", "svr", "linear_svr"}:
        factory = _fit_predict_factory(create_svm_factory())
        if fast:
            grid = [
                {"method": "tfidf", "max_tokens": mt, "C": 1.0, "epsilon": 0.0}
                for mt in (500, 1000, 2000)
            ]
        else:
            grid = [
                {"method": "tfidf", "max_tokens": mt, "C": c, "epsilon": 0.0, "max_iter": 10000}
                for mt in (1000, 2000, 3000, 4000, 5000, 6000)
                for c in (0.1, 1.0)
            ]
        return factory, grid

    if model in {"rf", "random_forest", "ranger"}:
        factory = _fit_predict_factory(create_rf_factory())
        if fast:
            grid = [
                {"method": "tfidf", "max_tokens": mt, "n_estimators": 100}
                for mt in (500, 1000)
            ]
        else:
            grid = [
                {"method": "tfidf", "max_tokens": mt, "n_estimators": 500, "min_samples_leaf": leaf}
                for mt in (1000, 2000, 4000)
                for leaf in (1, 5)
            ]
        return factory, grid

    if model in {"null", "dummy", "baseline"}:
        factory = _fit_predict_factory(create_null_factory())
        grid = [{"method": "tfidf", "max_tokens": 100}]
        return factory, grid

    raise ValueError(f"Unknown model: {model}")


def complexity_of(config: Dict[str, Any]) -> float:
    """Number of feature columns a config produces; fewer is simpler."""
    if config.get("method", "tfidf") == "hashing":
        return float(config.get("num_buckets", 2**10))
    return float(config.get("max_tokens", 1000))
