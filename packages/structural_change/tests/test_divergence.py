"""Tests for the divergence functions."""
import logging

import numpy as np
import pytest

from structural_change.divergence import (
    CorrelationDivergence,
    EuclideanDivergence,
    JensenShannonDivergence,
    MahalanobisDivergence,
    get_divergence,
    resolve_divergence,
)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def positive_pair():
    """Two strictly positive 12-bin vectors (chroma-like)."""
    np.random.seed(42)
    return np.abs(np.random.randn(12)) + 0.1, np.abs(np.random.randn(12)) + 0.1


# ---------------------------------------------------------------------------
# Correlation
# ---------------------------------------------------------------------------

class TestCorrelation:

    def test_constant_vector_gives_zero(self):
        div = CorrelationDivergence()
        assert div([1.0, 1.0, 1.0], [1.0, 2.0, 3.0]) == 0.0
        assert div([1.0, 2.0, 3.0], [5.0, 5.0, 5.0]) == 0.0

    def test_single_element_is_constant(self):
        assert CorrelationDivergence()([1.0], [2.0]) == 0.0

    def test_identical_trend_gives_zero(self):
        a = np.array([1.0, 3.0, 2.0, 5.0])
        assert CorrelationDivergence()(a, 2 * a + 1) == pytest.approx(0.0, abs=1e-6)

    def test_opposite_trend_gives_one(self):
        a = np.array([1.0, 3.0, 2.0, 5.0])
        assert CorrelationDivergence()(a, -a) == pytest.approx(1.0, abs=1e-6)

    def test_range(self, positive_pair):
        a, b = positive_pair
        value = CorrelationDivergence()(a, b)
        assert 0.0 <= value <= 1.0

    def test_underflowing_variance_gives_zero(self):
        # not constant, but the centred squares underflow to 0 in float32
        value = CorrelationDivergence()([0.0, 1e-30], [0.0, 1e-30])
        assert value == 0.0


# ---------------------------------------------------------------------------
# Jensen-Shannon
# ---------------------------------------------------------------------------

class TestJensenShannon:

    def test_identical_gives_zero(self, positive_pair):
        a, _ = positive_pair
        assert JensenShannonDivergence()(a, a) == pytest.approx(0.0, abs=1e-6)

    def test_scale_invariant(self, positive_pair):
        a, b = positive_pair
        div = JensenShannonDivergence()
        assert div(a, b) == pytest.approx(div(10 * a, 0.5 * b), rel=1e-4)

    def test_symmetric(self, positive_pair):
        a, b = positive_pair
        div = JensenShannonDivergence()
        assert div(a, b) == pytest.approx(div(b, a), rel=1e-6)

    def test_disjoint_support_gives_ln2(self):
        value = JensenShannonDivergence()([1.0, 0.0], [0.0, 1.0])
        assert value == pytest.approx(np.log(2), rel=1e-5)

    def test_bounded(self, positive_pair):
        a, b = positive_pair
        value = JensenShannonDivergence()(a, b)
        assert 0.0 <= value <= np.log(2) + 1e-6

    def test_negative_value_gives_zero_and_logs(self, caplog):
        with caplog.at_level(logging.ERROR, logger='structural_change.divergence'):
            value = JensenShannonDivergence()([-1.0, 2.0, 3.0], [1.0, 2.0, 3.0])
        assert value == 0.0
        assert any('non-negative' in r.message for r in caplog.records)

    def test_all_zero_gives_zero(self):
        assert JensenShannonDivergence()([0.0, 0.0], [1.0, 2.0]) == 0.0

    def test_does_not_modify_inputs(self):
        a = np.array([1.0, 2.0, 3.0], dtype=np.float32)
        b = np.array([3.0, 2.0, 1.0], dtype=np.float32)
        JensenShannonDivergence()(a, b)
        np.testing.assert_array_equal(a, [1.0, 2.0, 3.0])
        np.testing.assert_array_equal(b, [3.0, 2.0, 1.0])


# ---------------------------------------------------------------------------
# Mahalanobis / Euclidean
# ---------------------------------------------------------------------------

class TestDistances:

    def test_euclidean(self):
        assert EuclideanDivergence()([0.0, 0.0], [3.0, 4.0]) == pytest.approx(5.0)

    def test_mahalanobis_identity_matches_euclidean(self, positive_pair):
        a, b = positive_pair
        maha = MahalanobisDivergence(np.eye(12))
        assert maha(a, b) == pytest.approx(EuclideanDivergence()(a, b), rel=1e-5)

    def test_mahalanobis_weighted(self):
        maha = MahalanobisDivergence(np.diag([4.0, 1.0]))
        assert maha([1.0, 0.0], [0.0, 0.0]) == pytest.approx(2.0)

    def test_mahalanobis_truncates_to_matrix_size(self):
        maha = MahalanobisDivergence(np.eye(2))
        a = [0.0, 0.0, 100.0]
        b = [3.0, 4.0, -100.0]
        assert maha(a, b) == pytest.approx(5.0)

    def test_mahalanobis_matrix_is_a_private_copy(self):
        inv_cov = np.eye(2)
        maha = MahalanobisDivergence(inv_cov)
        inv_cov[0, 0] = 100.0
        assert maha([1.0, 0.0], [0.0, 0.0]) == pytest.approx(1.0)
        assert not maha.inv_cov.flags.writeable

    def test_mahalanobis_rejects_non_square(self):
        with pytest.raises(ValueError):
            MahalanobisDivergence(np.ones((2, 3)))


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

class TestRegistry:

    def test_names(self):
        assert isinstance(get_divergence('correlation'), CorrelationDivergence)
        assert isinstance(get_divergence('js'), JensenShannonDivergence)
        assert isinstance(get_divergence('euclidean'), EuclideanDivergence)
        assert isinstance(get_divergence('mahalanobis', inv_cov=np.eye(3)), MahalanobisDivergence)

    def test_unknown_name(self):
        with pytest.raises(ValueError, match='unknown divergence'):
            get_divergence('cosine')

    def test_resolve_default_is_jensen_shannon(self):
        assert isinstance(resolve_divergence(None), JensenShannonDivergence)

    def test_resolve_passes_callables_through(self):
        fn = lambda a, b: 1.0
        assert resolve_divergence(fn) is fn

    def test_resolve_rejects_non_callable(self):
        with pytest.raises(TypeError):
            resolve_divergence(3)
