"""
Distance metrics for the vquant library.

Every metric exposes a single-pair ``distance`` and a batched ``pairwise``
that delegates to scikit-learn's ``pairwise_distances`` so distance matrices
can be computed by its worker pool.
"""

from enum import Enum
from typing import Any, Optional, Union

import numpy as np
from sklearn.metrics import pairwise_distances

from .exceptions import DimensionMismatchError, InvalidHyperparameterError
from .utils.validation import as_vector_array


class DistanceMetric(str, Enum):
    """Available dissimilarity measures between same-length vectors."""

    EUCLIDEAN = "euclidean"
    SQUARED_EUCLIDEAN = "sqeuclidean"
    MANHATTAN = "manhattan"
    COSINE = "cosine"
    CHEBYSHEV = "chebyshev"
    MINKOWSKI = "minkowski"

    @property
    def _sklearn_name(self) -> str:
        return "cityblock" if self is DistanceMetric.MANHATTAN else self.value

    def distance(self, a: Any, b: Any, p: Optional[float] = None) -> float:
        """
        Compute the distance between two vectors.

        Args:
            a: First vector
            b: Second vector
            p: Norm order for MINKOWSKI (default 2.0), ignored otherwise

        Returns:
            Non-negative distance value

        Raises:
            DimensionMismatchError: If the vectors differ in dimension
        """
        a = as_vector_array(a)
        b = as_vector_array(b)
        if a.shape[0] != b.shape[0]:
            raise DimensionMismatchError(a.shape[0], b.shape[0])
        return float(self.pairwise(a[np.newaxis, :], b[np.newaxis, :], p=p)[0, 0])

    def pairwise(
        self,
        X: np.ndarray,
        Y: np.ndarray,
        n_jobs: Optional[int] = None,
        p: Optional[float] = None,
    ) -> np.ndarray:
        """
        Compute the distance matrix between the rows of X and the rows of Y.

        Args:
            X: Array of shape (n, d)
            Y: Array of shape (m, d)
            n_jobs: Number of parallel workers (None means a single worker)
            p: Norm order for MINKOWSKI (default 2.0), ignored otherwise

        Returns:
            Array of shape (n, m)
        """
        if X.shape[1] != Y.shape[1]:
            raise DimensionMismatchError(Y.shape[1], X.shape[1])

        if self is DistanceMetric.EUCLIDEAN:
            # Exact difference-based form; the dot-product expansion used by
            # sklearn's default euclidean kernel is not exactly zero on equal rows.
            distances = np.sqrt(
                pairwise_distances(X, Y, metric="sqeuclidean", n_jobs=n_jobs)
            )
        elif self is DistanceMetric.MINKOWSKI:
            distances = pairwise_distances(
                X, Y, metric="minkowski", n_jobs=n_jobs, p=validate_minkowski_p(p)
            )
        else:
            distances = pairwise_distances(X, Y, metric=self._sklearn_name, n_jobs=n_jobs)

        if self is DistanceMetric.COSINE:
            distances = self._fix_zero_norms(X, Y, distances)

        return np.maximum(distances, 0.0)

    @staticmethod
    def _fix_zero_norms(X: np.ndarray, Y: np.ndarray, distances: np.ndarray) -> np.ndarray:
        """Cosine distance is 1.0 whenever either side is the zero vector."""
        zero_x = ~np.any(X, axis=1)
        zero_y = ~np.any(Y, axis=1)
        if np.any(zero_x) or np.any(zero_y):
            distances = np.array(distances, copy=True)
            distances[zero_x, :] = 1.0
            distances[:, zero_y] = 1.0
        return distances


_ALIASES = {
    "euclidean": DistanceMetric.EUCLIDEAN,
    "l2": DistanceMetric.EUCLIDEAN,
    "sqeuclidean": DistanceMetric.SQUARED_EUCLIDEAN,
    "squared_euclidean": DistanceMetric.SQUARED_EUCLIDEAN,
    "manhattan": DistanceMetric.MANHATTAN,
    "l1": DistanceMetric.MANHATTAN,
    "cityblock": DistanceMetric.MANHATTAN,
    "cosine": DistanceMetric.COSINE,
    "chebyshev": DistanceMetric.CHEBYSHEV,
    "minkowski": DistanceMetric.MINKOWSKI,
}

DEFAULT_MINKOWSKI_P = 2.0


def validate_minkowski_p(p: Any) -> float:
    """
    Check the Minkowski norm order.

    Args:
        p: Positive number, or None for the default of 2.0

    Returns:
        p as a float

    Raises:
        InvalidHyperparameterError: If p is not a positive finite number
    """
    if p is None:
        return DEFAULT_MINKOWSKI_P
    if isinstance(p, bool) or not isinstance(p, (int, float, np.integer, np.floating)):
        raise InvalidHyperparameterError(f"Minkowski p must be a number, got {type(p).__name__}")
    if not np.isfinite(p) or p <= 0:
        raise InvalidHyperparameterError(f"Minkowski p must be positive, got {p}")
    return float(p)


def get_metric(metric: Union[str, DistanceMetric, None]) -> DistanceMetric:
    """
    Resolve a metric name or instance.

    Args:
        metric: Metric name, alias or DistanceMetric (None means euclidean)

    Returns:
        DistanceMetric instance

    Raises:
        InvalidHyperparameterError: If the name is unknown
    """
    if metric is None:
        return DistanceMetric.EUCLIDEAN
    if isinstance(metric, DistanceMetric):
        return metric
    if isinstance(metric, str) and metric.lower() in _ALIASES:
        return _ALIASES[metric.lower()]
    raise InvalidHyperparameterError(
        f"Invalid metric '{metric}'. Valid metrics: {sorted(_ALIASES)}"
    )
