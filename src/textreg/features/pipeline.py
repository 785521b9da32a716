#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
Feature pipeline: tokenizer -> (vocabulary + tf-idf | hashing) -> normalizer.

``FeaturePipeline.fit`` reads only the documents it is given and returns a
``FittedPipeline`` holding the frozen artifacts (vocabulary, idf table,
normalization stats). ``FittedPipeline.transform`` never refits anything, so
the same fitted object can transform analysis, assessment and test data.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Optional, Sequence, Tuple

import numpy as np

from ..core.corpus import Document
from ..errors import InvalidConfigurationError
from .hashing import HashingVectorizer
from .normalizer import NormalizationStats, apply_normalizer, fit_normalizer
from .tokenizer import Tokenizer, TokenizerOptions
from .vocabulary import IdfTable, Vocabulary, build_vocabulary, compute_idf, tfidf_matrix

logger = logging.getLogger(__name__)

METHODS = ("tfidf", "hashing")

# grid keys consumed by FeatureConfig.from_params
FEATURE_KEYS = (
    "method",
    "max_tokens",
    "num_buckets",
    "signed",
    "sublinear_tf",
    "normalize",
    "ngram_range",
    "stop_words",
    "lowercase",
)


@dataclass(frozen=True)
class FeatureConfig:
    method: str = "tfidf"
    max_tokens: int = 1000
    num_buckets: int = 2**10
    signed: bool = True
    sublinear_tf: bool = False
    normalize: bool = True
    tokenizer: TokenizerOptions = field(default_factory=TokenizerOptions)

    def __post_init__(self):
        if self.method not in METHODS:
            raise InvalidConfigurationError(f"unknown feature method {self.method!r}; use one of {METHODS}")
        if self.method == "tfidf" and int(self.max_tokens) < 1:
            raise InvalidConfigurationError(f"max_tokens must be >= 1, got {self.max_tokens}")
        if self.method == "hashing" and int(self.num_buckets) <= 0:
            raise InvalidConfigurationError(f"num_buckets must be positive, got {self.num_buckets}")

    @classmethod
    def from_params(cls, params: Dict[str, Any], base: Optional["FeatureConfig"] = None) -> "FeatureConfig":
        """Build a config from the feature keys of a flat grid dict."""
        base = base or cls()
        tok_kwargs = {}
        for key in ("ngram_range", "stop_words", "lowercase"):
            if key in params:
                value = params[key]
                tok_kwargs[key] = tuple(value) if key == "ngram_range" else value
        tokenizer = replace(base.tokenizer, **tok_kwargs) if tok_kwargs else base.tokenizer

        kwargs = {
            k: params[k]
            for k in ("method", "max_tokens", "num_buckets", "signed", "sublinear_tf", "normalize")
            if k in params
        }
        return replace(base, tokenizer=tokenizer, **kwargs)

    @property
    def n_columns(self) -> int:
        return int(self.num_buckets) if self.method == "hashing" else int(self.max_tokens)


@dataclass(frozen=True)
class FittedPipeline:
    config: FeatureConfig
    vocabulary: Optional[Vocabulary] = None
    idf_table: Optional[IdfTable] = None
    stats: Optional[NormalizationStats] = None

    def _raw(self, docs: Sequence[Document]):
        tokenizer = Tokenizer(self.config.tokenizer)
        tokenized = tokenizer.tokenize_all([d.text for d in docs])
        if self.config.method == "hashing":
            hv = HashingVectorizer(self.config.num_buckets, signed=self.config.signed)
            return hv.transform(tokenized)
        return tfidf_matrix(tokenized, self.vocabulary, self.idf_table, self.config.sublinear_tf)

    def transform(self, docs: Sequence[Document]) -> np.ndarray:
        """Dense feature matrix for ``docs`` using the frozen artifacts."""
        X = self._raw(docs)
        if self.stats is not None:
            return apply_normalizer(X, self.stats)
        return X.toarray() if hasattr(X, "toarray") else np.asarray(X, dtype=float)

    @property
    def n_columns(self) -> int:
        if self.config.method == "hashing":
            return int(self.config.num_buckets)
        return len(self.vocabulary)


class FeaturePipeline:
    """Unfitted feature pipeline for one FeatureConfig."""

    def __init__(self, config: Optional[FeatureConfig] = None):
        self.config = config or FeatureConfig()

    def fit(self, docs: Sequence[Document]) -> FittedPipeline:
        tokenizer = Tokenizer(self.config.tokenizer)
        tokenized = tokenizer.tokenize_all([d.text for d in docs])

        if self.config.method == "hashing":
            hv = HashingVectorizer(self.config.num_buckets, signed=self.config.signed)
            X = hv.transform(tokenized)
            vocab, idf = None, None
        else:
            vocab = build_vocabulary(tokenized, self.config.max_tokens)
            idf = compute_idf(tokenized, vocab)
            X = tfidf_matrix(tokenized, vocab, idf, self.config.sublinear_tf)
            logger.debug("fit vocabulary of %d tokens on %d documents", len(vocab), len(docs))

        stats = fit_normalizer(X) if self.config.normalize else None
        return FittedPipeline(config=self.config, vocabulary=vocab, idf_table=idf, stats=stats)

    def fit_transform(self, docs: Sequence[Document]) -> Tuple[FittedPipeline, np.ndarray]:
        fitted = self.fit(docs)
        return fitted, fitted.transform(docs)


def create_pipeline_factory(base: Optional[FeatureConfig] = None):
    """factory(params) -> FeaturePipeline, reading the feature keys of ``params``."""

    def factory(params: Dict[str, Any]) -> FeaturePipeline:
        return FeaturePipeline(FeatureConfig.from_params(params or {}, base=base))

    return factory


def split_config(params: Dict[str, Any]) -> Tuple[Dict[str, Any], Dict[str, Any]]:
    """Split a flat grid dict into (feature params, model params)."""
    feat = {k: v for k, v in params.items() if k in FEATURE_KEYS}
    model = {k: v for k, v in params.items() if k not in FEATURE_KEYS}
    return feat, model
