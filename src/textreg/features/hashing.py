#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
Feature hashing (the hashing trick) for tokenized documents.

Each token goes to ``murmurhash3_32(token, seed_bucket) % num_buckets``. With
``signed=True`` a second, independently seeded hash picks the sign (+1 when
even, -1 when odd), so colliding unrelated tokens tend to cancel instead of
piling up. Nothing is fit and no vocabulary is kept: the token -> bucket
mapping is not invertible.
"""

from __future__ import annotations

from typing import Callable, Optional, Sequence

import numpy as np
from sklearn.utils import murmurhash3_32

from ..errors import EmptyInputError, InvalidConfigurationError

HashFn = Callable[[str], int]


def _murmur(seed: int) -> HashFn:
    def h(token: str) -> int:
        return int(murmurhash3_32(token, seed=seed, positive=True))

    return h


class HashingVectorizer:
    """
    params:
      - num_buckets: output width (> 0)
      - signed: use the sign hash
      - seed_bucket, seed_sign: MurmurHash3 seeds; must differ for the two
        hashes to be independent
      - hash_fn, sign_hash_fn: override the hash functions (tests)
    """

    def __init__(
        self,
        num_buckets: int = 2**10,
        signed: bool = True,
        seed_bucket: int = 0,
        seed_sign: int = 1,
        hash_fn: Optional[HashFn] = None,
        sign_hash_fn: Optional[HashFn] = None,
    ):
        if num_buckets is None or int(num_buckets) <= 0:
            raise InvalidConfigurationError(f"num_buckets must be positive, got {num_buckets}")
        if signed and hash_fn is None and sign_hash_fn is None and seed_bucket == seed_sign:
            raise InvalidConfigurationError("seed_bucket and seed_sign must differ for signed hashing")

        self.num_buckets = int(num_buckets)
        self.signed = bool(signed)
        self._hash = hash_fn or _murmur(seed_bucket)
        self._sign_hash = sign_hash_fn or _murmur(seed_sign)

    def bucket(self, token: str) -> int:
        return self._hash(token) % self.num_buckets

    def sign(self, token: str) -> int:
        if not self.signed:
            return 1
        return 1 if self._sign_hash(token) % 2 == 0 else -1

    def vectorize(self, tokens: Sequence[str]) -> np.ndarray:
        """Dense vector of length ``num_buckets``; empty input gives zeros."""
        vec = np.zeros(self.num_buckets, dtype=float)
        for t in tokens:
            vec[self.bucket(t)] += self.sign(t)
        return vec

    def transform(self, tokenized_docs: Sequence[Sequence[str]]) -> np.ndarray:
        if len(tokenized_docs) == 0:
            raise EmptyInputError("cannot hash zero documents")
        return np.vstack([self.vectorize(toks) for toks in tokenized_docs])
