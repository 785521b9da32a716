# random_forest.py
from typing import Any, Dict

from sklearn.dummy import DummyRegressor
from sklearn.ensemble import RandomForestRegressor


def build_random_forest(params: Dict[str, Any]) -> RandomForestRegressor:
    # n_jobs stays 1: folds are already spread over workers by the evaluator
    return RandomForestRegressor(
        n_estimators=params.get("n_estimators", 500),
        max_features=params.get("max_features", 1.0),
        min_samples_leaf=params.get("min_samples_leaf", 1),
        n_jobs=params.get("n_jobs", 1),
        random_state=params.get("random_state", 42),
    )


def create_rf_factory():
    def factory(params: Dict[str, Any]):
        return build_random_forest(params)

    return factory


def create_null_factory():
    """Predicts the training mean; the floor any real model must beat."""

    def factory(params: Dict[str, Any]):
        return DummyRegressor(strategy="mean")

    return factory
