# svm_regression.py
from typing import Any, Dict

from sklearn.svm import LinearSVR


def build_linear_svr(params: Dict[str, Any]) -> LinearSVR:
    """Linear support-vector regression.

    params:
      - C: inverse regularization strength
      - epsilon: width of the insensitive tube
      - loss: "epsilon_insensitive" (L1) or "squared_epsilon_insensitive" (L2)
      - max_iter, random_state
    """
    return LinearSVR(
        C=params.get("C", 1.0),
        epsilon=params.get("epsilon", 0.0),
        loss=params.get("loss", "squared_epsilon_insensitive"),
        max_iter=params.get("max_iter", 5000),
        random_state=params.get("random_state", 42),
    )


def create_svm_factory():
    def factory(params: Dict[str, Any]):
        return build_linear_svr(params)

    return factory
