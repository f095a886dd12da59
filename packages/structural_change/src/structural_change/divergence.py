"""
Divergence functions between the left and right window means.

Each divergence is a small callable object: divergence(a, b) -> float.
They compare two equal-length float32 vectors and never modify the
caller's arrays.

    CorrelationDivergence    0.5 - 0.5 * pearson(a, b), in [0, 1]
    JensenShannonDivergence  JS divergence of a and b as distributions (default)
    MahalanobisDivergence    sqrt((a-b)' VI (a-b)) for a fixed inverse covariance VI
    EuclideanDivergence      ||a - b||

Invalid input (constant vectors for correlation, negative or all-zero
vectors for Jensen-Shannon) gives 0.0 instead of an exception, so one
bad comparison never breaks a whole structural change matrix.

Any other callable with the same signature can be passed to the engine.
"""

import logging
from typing import Callable, Dict, Optional, Union

import numpy as np
from scipy.spatial import distance

from structural_change.config import CONFIG

logger = logging.getLogger(__name__)

DivergenceFn = Callable[[np.ndarray, np.ndarray], float]


def _as_vector(values) -> np.ndarray:
    return np.asarray(values, dtype=np.float32).ravel()


def _is_constant(v: np.ndarray) -> bool:
    """True when no two adjacent elements differ."""
    return not bool(np.any(v[1:] != v[:-1]))


def _is_distribution(v: np.ndarray) -> bool:
    """Unnormalized distribution: all >= 0 and at least one > 0."""
    return bool(np.all(v >= 0) and np.any(v > 0))


class CorrelationDivergence:
    """
    Divergence from the Pearson correlation r of two vectors.

    Returns 0.5 - 0.5 * r: identical trends give 0, opposite trends give 1.
    If either vector is constant, r is undefined and 0.0 is returned.
    """

    name = 'correlation'

    def __call__(self, a, b) -> float:
        a = _as_vector(a)
        b = _as_vector(b)

        if _is_constant(a) or _is_constant(b):
            logger.debug("correlation undefined for constant vector, divergence set to 0.0")
            return 0.0

        a_shifted = a - a.mean(dtype=np.float32)
        b_shifted = b - b.mean(dtype=np.float32)

        above = np.dot(a_shifted, b_shifted)
        below = np.sqrt(np.dot(a_shifted, a_shifted)) * np.sqrt(np.dot(b_shifted, b_shifted))
        if below == 0:
            logger.debug("correlation undefined for zero-variance vector, divergence set to 0.0")
            return 0.0

        return float(np.float32(0.5 - 0.5 * above / below))


class JensenShannonDivergence:
    """
    Jensen-Shannon divergence between two unnormalized distributions.

    Both vectors are scaled to sum to 1 (on local copies), then

        JS = 0.5 * (sum a*ln(a/m) + sum b*ln(b/m)),  m = (a + b) / 2

    where zero entries contribute nothing. Bounded by ln 2.
    """

    name = 'jensen_shannon'

    def __call__(self, a, b) -> float:
        a = np.array(a, dtype=np.float32).ravel()
        b = np.array(b, dtype=np.float32).ravel()

        if not (_is_distribution(a) and _is_distribution(b)):
            logger.error(
                "Jensen-Shannon divergence needs non-negative values with at least "
                "one positive entry; divergence set to 0.0"
            )
            return 0.0

        a /= a.sum(dtype=np.float32)
        b /= b.sum(dtype=np.float32)
        m = np.float32(0.5) * (a + b)

        pos_a = a > 0
        pos_b = b > 0
        js = (np.sum(a[pos_a] * np.log(a[pos_a] / m[pos_a]))
              + np.sum(b[pos_b] * np.log(b[pos_b] / m[pos_b])))

        return float(np.float32(0.5 * js))


class MahalanobisDivergence:
    """
    Mahalanobis distance for a fixed inverse covariance matrix.

    The matrix is copied once at construction and shared read-only by
    every call. Vectors longer than the matrix are compared on their
    first len(inv_cov) dimensions only.

    Args:
        inv_cov: Square inverse covariance matrix (D x D).
    """

    name = 'mahalanobis'

    def __init__(self, inv_cov):
        inv_cov = np.array(inv_cov, dtype=np.float32)
        if inv_cov.ndim != 2 or inv_cov.shape[0] != inv_cov.shape[1]:
            raise ValueError(
                f"inverse covariance must be a square matrix, got shape {inv_cov.shape}"
            )
        inv_cov.setflags(write=False)
        self.inv_cov = inv_cov

    def __call__(self, a, b) -> float:
        a = _as_vector(a)
        b = _as_vector(b)
        n = min(len(a), len(b), self.inv_cov.shape[0])
        return float(np.float32(distance.mahalanobis(a[:n], b[:n], self.inv_cov[:n, :n])))


class EuclideanDivergence:
    """Euclidean distance."""

    name = 'euclidean'

    def __call__(self, a, b) -> float:
        return float(np.float32(distance.euclidean(_as_vector(a), _as_vector(b))))


DIVERGENCES: Dict[str, type] = {
    'correlation': CorrelationDivergence,
    'jensen_shannon': JensenShannonDivergence,
    'js': JensenShannonDivergence,
    'mahalanobis': MahalanobisDivergence,
    'euclidean': EuclideanDivergence,
}


def get_divergence(name: str, **kwargs) -> DivergenceFn:
    """
    Instantiate a divergence by name.

    Usage:
        get_divergence('euclidean')
        get_divergence('mahalanobis', inv_cov=np.eye(12))
    """
    try:
        cls = DIVERGENCES[name]
    except KeyError:
        raise ValueError(
            f"unknown divergence '{name}', expected one of {sorted(DIVERGENCES)}"
        ) from None
    return cls(**kwargs)


def resolve_divergence(divergence: Optional[Union[str, DivergenceFn]] = None) -> DivergenceFn:
    """None → configured default, str → registry lookup, callable → as is."""
    if divergence is None:
        return get_divergence(CONFIG['divergence']['default'])
    if isinstance(divergence, str):
        return get_divergence(divergence)
    if not callable(divergence):
        raise TypeError(f"divergence must be a name or a callable, got {type(divergence).__name__}")
    return divergence
