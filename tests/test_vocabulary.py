import math

import numpy as np
import pytest
from scipy.sparse import issparse

from textreg.errors import EmptyInputError, InvalidConfigurationError
from textreg.features.vocabulary import (
    Vocabulary,
    build_vocabulary,
    compute_idf,
    document_frequencies,
    tfidf_matrix,
    weight,
)

DOCS = [["b", "a", "a"], ["a", "c"], ["a", "b"]]


class TestBuildVocabulary:
    def test_document_frequency_counts_documents_not_tokens(self):
        df = document_frequencies(DOCS)
        assert df == {"a": 3, "b": 2, "c": 1}

    def test_ranked_by_document_frequency(self):
        vocab = build_vocabulary(DOCS, max_tokens=2)
        assert vocab.tokens == ("a", "b")
        assert vocab.index == {"a": 0, "b": 1}

    def test_ties_broken_lexicographically(self):
        vocab = build_vocabulary([["z", "y"], ["x"]], max_tokens=2)
        assert vocab.tokens == ("x", "y")

    def test_max_tokens_above_distinct_keeps_all(self):
        vocab = build_vocabulary(DOCS, max_tokens=100)
        assert len(vocab) == 3
        assert "c" in vocab

    def test_size_never_exceeds_max_tokens(self):
        docs = [[f"t{i}", f"t{i + 1}"] for i in range(50)]
        assert len(build_vocabulary(docs, max_tokens=7)) == 7

    def test_deterministic(self):
        assert build_vocabulary(DOCS, 2) == build_vocabulary(list(reversed(DOCS)), 2)

    def test_zero_documents(self):
        with pytest.raises(EmptyInputError):
            build_vocabulary([], max_tokens=10)

    def test_bad_max_tokens(self):
        with pytest.raises(InvalidConfigurationError):
            build_vocabulary(DOCS, max_tokens=0)

    def test_index_is_read_only(self):
        vocab = build_vocabulary(DOCS, 2)
        with pytest.raises(TypeError):
            vocab.index["d"] = 5


class TestIdfAndWeights:
    def test_smoothed_idf(self):
        vocab = build_vocabulary(DOCS, 3)
        idf = compute_idf(DOCS, vocab)
        assert idf.n_documents == 3
        assert idf.document_frequency == (3, 2, 1)
        np.testing.assert_allclose(
            idf.as_array(),
            [1.0, math.log(4 / 3) + 1, math.log(4 / 2) + 1],
        )

    def test_weight_drops_out_of_vocabulary_tokens(self):
        vocab = build_vocabulary(DOCS, 2)
        idf = compute_idf(DOCS, vocab)
        row = weight(["a", "a", "q", "c"], vocab, idf)
        assert row == {0: pytest.approx(2.0)}

    def test_weight_multiplies_tf_by_idf(self):
        vocab = build_vocabulary(DOCS, 3)
        idf = compute_idf(DOCS, vocab)
        row = weight(["b", "c", "c"], vocab, idf)
        assert row[1] == pytest.approx(idf.idf[1])
        assert row[2] == pytest.approx(2 * idf.idf[2])

    def test_sublinear_tf(self):
        vocab = Vocabulary(("a",))
        idf = compute_idf([["a"], ["b"]], vocab)
        row = weight(["a", "a"], vocab, idf, sublinear_tf=True)
        assert row[0] == pytest.approx((1 + math.log(2)) * idf.idf[0])

    def test_matrix_shape_and_values(self):
        vocab = build_vocabulary(DOCS, 3)
        idf = compute_idf(DOCS, vocab)
        X = tfidf_matrix(DOCS + [[]], vocab, idf)
        assert issparse(X)
        assert X.shape == (4, 3)
        dense = X.toarray()
        assert dense[0, 0] == pytest.approx(2.0)
        assert not dense[3].any()
