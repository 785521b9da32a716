import numpy as np
import pytest
from scipy.sparse import csr_matrix

from textreg.errors import EmptyInputError, InvalidConfigurationError
from textreg.features.normalizer import apply_normalizer, fit_normalizer


class TestNormalizer:
    def test_population_statistics(self):
        stats = fit_normalizer(np.array([[1.0, 2.0], [3.0, 2.0]]))
        assert stats.mean == (2.0, 2.0)
        assert stats.std == (1.0, 0.0)
        assert stats.n_columns == 2

    def test_standardizes_training_matrix(self):
        X = np.random.default_rng(1).normal(5, 3, size=(40, 4))
        Z = apply_normalizer(X, fit_normalizer(X))
        np.testing.assert_allclose(Z.mean(axis=0), 0.0, atol=1e-12)
        np.testing.assert_allclose(Z.std(axis=0), 1.0)

    def test_constant_column_maps_to_zero(self):
        X = np.array([[1.0, 7.0], [3.0, 7.0]])
        Z = apply_normalizer(X, fit_normalizer(X))
        np.testing.assert_array_equal(Z, [[-1.0, 0.0], [1.0, 0.0]])
        # also for unseen values in that column
        np.testing.assert_array_equal(apply_normalizer(np.array([[5.0, 9.0]]), fit_normalizer(X)), [[3.0, 0.0]])

    def test_stats_are_frozen(self):
        stats = fit_normalizer(np.array([[0.0], [2.0]]))
        np.testing.assert_array_equal(apply_normalizer(np.array([[100.0]]), stats), [[99.0]])
        assert stats.mean == (1.0,)

    def test_sparse_input(self):
        X = csr_matrix(np.array([[0.0, 1.0], [2.0, 0.0]]))
        Z = apply_normalizer(X, fit_normalizer(X))
        np.testing.assert_array_equal(Z, [[-1.0, 1.0], [1.0, -1.0]])

    def test_zero_rows(self):
        with pytest.raises(EmptyInputError):
            fit_normalizer(np.zeros((0, 3)))

    def test_column_mismatch(self):
        stats = fit_normalizer(np.ones((3, 2)))
        with pytest.raises(InvalidConfigurationError):
            apply_normalizer(np.ones((3, 5)), stats)
