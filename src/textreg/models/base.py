# base.py
from typing import Any, Callable, Dict, Optional, Protocol

import numpy as np


class FitPredict(Protocol):
    """Opaque model capability: fit returns a handle, predict uses it."""

    def fit(self, features: np.ndarray, targets: np.ndarray) -> Any:
        ...

    def predict(self, handle: Any, features: np.ndarray) -> np.ndarray:
        ...


class EstimatorFitPredict:
    """
    Wrap a scikit-learn style estimator factory as a FitPredict.

    Every ``fit`` call builds a fresh estimator, so one instance can be shared
    by folds running in parallel.
    """

    def __init__(self, estimator_factory: Callable[[Dict[str, Any]], Any], params: Optional[Dict[str, Any]] = None):
        self.estimator_factory = estimator_factory
        self.params = dict(params or {})

    def fit(self, features, targets):
        est = self.estimator_factory(self.params)
        est.fit(features, np.asarray(targets, dtype=float))
        return est

    def predict(self, handle, features) -> np.ndarray:
        return np.asarray(handle.predict(features), dtype=float)

    def __repr__(self) -> str:
        return f"EstimatorFitPredict({getattr(self.estimator_factory, '__name__', 'factory')}, {self.params})"
