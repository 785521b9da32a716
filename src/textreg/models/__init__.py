# Regression backends behind the fit/predict capability

from .base import EstimatorFitPredict, FitPredict
from .models_registry import complexity_of, get_factory_and_grid
from .random_forest import build_random_forest, create_null_factory, create_rf_factory
from .svm_regression import build_linear_svr, create_svm_factory

__all__ = [
    "FitPredict",
    "EstimatorFitPredict",
    "get_factory_and_grid",
    "complexity_of",
    "build_linear_svr",
    "create_svm_factory",
    "build_random_forest",
    "create_rf_factory",
    "create_null_factory",
]
