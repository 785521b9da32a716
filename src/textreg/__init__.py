"""
textreg: a text-regression experimentation core.

Raw documents with a continuous target go through a feature pipeline
(tokenizer -> tf-idf vocabulary or feature hashing -> normalizer) and are
scored with resampled fit/predict cycles through any regression backend.

Key modules:
- core.cross_validation: fold plans and the resampling evaluator
- core.metrics: RMSE, R^2, MAE, MAPE
- features: tokenizer, vocabulary/tf-idf, hashing vectorizer, normalizer
- models: fit/predict adapters and scikit-learn backends (SVR, random forest)
- experiments: grid search, percent-loss selection, test-set evaluation
"""

from .errors import (
    AllFoldsFailedError,
    DivideByZeroError,
    EmptyInputError,
    InvalidConfigurationError,
    TextRegError,
)

__version__ = "0.1.0"

__all__ = [
    "AllFoldsFailedError",
    "DivideByZeroError",
    "EmptyInputError",
    "InvalidConfigurationError",
    "TextRegError",
]
