#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
Vocabulary and TF-IDF weighting

- Document frequencies over a tokenized training set
- Bounded top-K vocabulary (descending df, ties in lexicographic order)
- Smoothed idf table, idf(t) = ln((1 + N) / (1 + df(t))) + 1
- Sparse tf-idf rows and matrices

Vocabulary and IdfTable are frozen once built: they are fit on a training
partition and reused unchanged for every later transform.
"""

from __future__ import annotations

import math
from collections import Counter
from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping, Sequence, Tuple

import numpy as np
from scipy.sparse import csr_matrix

from ..errors import EmptyInputError, InvalidConfigurationError


@dataclass(frozen=True)
class Vocabulary:
    """Retained tokens in rank order; ``index`` maps token -> column."""

    tokens: Tuple[str, ...]

    def __post_init__(self):
        object.__setattr__(
            self, "_index", MappingProxyType({t: i for i, t in enumerate(self.tokens)})
        )

    @property
    def index(self) -> Mapping[str, int]:
        return self._index

    def __len__(self) -> int:
        return len(self.tokens)

    def __contains__(self, token) -> bool:
        return token in self._index

    def get(self, token: str, default=None):
        return self._index.get(token, default)

    def to_dict(self) -> Dict[str, int]:
        return dict(self._index)


@dataclass(frozen=True)
class IdfTable:
    """idf per vocabulary column, plus the df/N it was computed from."""

    idf: Tuple[float, ...]
    document_frequency: Tuple[int, ...]
    n_documents: int

    def as_array(self) -> np.ndarray:
        return np.asarray(self.idf, dtype=float)


def document_frequencies(tokenized_docs: Iterable[Sequence[str]]) -> Counter:
    """Number of documents each distinct token appears in."""
    df: Counter = Counter()
    for toks in tokenized_docs:
        df.update(set(toks))
    return df


def build_vocabulary(tokenized_docs: Sequence[Sequence[str]], max_tokens: int) -> Vocabulary:
    """
    Keep the ``max_tokens`` tokens with the highest document frequency.

    Args:
        tokenized_docs: Tokens of the training documents only
        max_tokens: Upper bound on vocabulary size (>= 1); larger than the
            number of distinct tokens simply keeps them all

    Returns:
        Vocabulary with columns assigned in rank order
    """
    if max_tokens is None or int(max_tokens) < 1:
        raise InvalidConfigurationError(f"max_tokens must be >= 1, got {max_tokens}")
    if len(tokenized_docs) == 0:
        raise EmptyInputError("cannot build a vocabulary from zero documents")

    df = document_frequencies(tokenized_docs)
    ranked = sorted(df.items(), key=lambda kv: (-kv[1], kv[0]))
    return Vocabulary(tokens=tuple(t for t, _ in ranked[: int(max_tokens)]))


def compute_idf(tokenized_docs: Sequence[Sequence[str]], vocabulary: Vocabulary) -> IdfTable:
    """Smoothed idf for every vocabulary column, from the training documents."""
    n = len(tokenized_docs)
    if n == 0:
        raise EmptyInputError("cannot compute idf from zero documents")

    df = document_frequencies(tokenized_docs)
    counts = tuple(int(df.get(t, 0)) for t in vocabulary.tokens)
    idf = tuple(math.log((1 + n) / (1 + c)) + 1.0 for c in counts)
    return IdfTable(idf=idf, document_frequency=counts, n_documents=n)


def weight(
    document_tokens: Sequence[str],
    vocabulary: Vocabulary,
    idf_table: IdfTable,
    sublinear_tf: bool = False,
) -> Dict[int, float]:
    """
    tf-idf weights of one document as a sparse row {column: value}.

    Tokens outside the vocabulary are dropped.
    """
    tf: Counter = Counter()
    for t in document_tokens:
        j = vocabulary.get(t)
        if j is not None:
            tf[j] += 1

    row: Dict[int, float] = {}
    for j, c in tf.items():
        f = 1.0 + math.log(c) if sublinear_tf else float(c)
        row[j] = f * idf_table.idf[j]
    return row


def tfidf_matrix(
    tokenized_docs: Sequence[Sequence[str]],
    vocabulary: Vocabulary,
    idf_table: IdfTable,
    sublinear_tf: bool = False,
) -> csr_matrix:
    """Stack weighted rows into a CSR matrix of shape (n_docs, len(vocabulary))."""
    data: List[float] = []
    indices: List[int] = []
    indptr = [0]
    for toks in tokenized_docs:
        row = weight(toks, vocabulary, idf_table, sublinear_tf=sublinear_tf)
        for j in sorted(row):
            indices.append(j)
            data.append(row[j])
        indptr.append(len(indices))

    return csr_matrix(
        (np.asarray(data, dtype=float), np.asarray(indices, dtype=np.int64), np.asarray(indptr)),
        shape=(len(tokenized_docs), len(vocabulary)),
    )
