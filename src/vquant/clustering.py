"""
Lloyd's-algorithm k-means engine shared by the codebook-based quantizers.

The engine is parameterized by a ``DistanceMetric`` and is fully
deterministic for a given seed: k-means++ seeding draws from a
``numpy.random.Generator``, assignment ties go to the lowest centroid index
and empty clusters are reseeded by a fixed rule.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple, Union

import numpy as np

from .distances import DistanceMetric, get_metric, validate_minkowski_p
from .exceptions import InsufficientDataError, InvalidHyperparameterError
from .utils.helpers import ensure_finite
from .utils.logging import get_logger
from .utils.validation import as_vectors_array, validate_positive_int

logger = get_logger(__name__)


@dataclass(frozen=True)
class KMeansResult:
    """Outcome of a k-means run."""

    centroids: np.ndarray  # (k, d)
    labels: np.ndarray  # (n,)
    inertia: float  # total distance of every vector to its centroid
    n_iter: int
    converged: bool


class ClusteringEngine:
    """
    K-means clustering with k-means++ initialization.

    Config keys:
        max_iters: Maximum number of update steps (default 100)
        tol: Minimum relative decrease of the total assignment distance (default 1e-4)
        metric: Distance metric name or DistanceMetric (default euclidean)
        p: Norm order when the metric is minkowski (default 2.0)
        seed: Default random seed (default 42)
        n_jobs: Workers used for distance computation (default None)
    """

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        """Initialize the engine with configuration."""
        config = dict(config or {})
        self.config = config
        self.max_iters = validate_positive_int("max_iters", config.get("max_iters", 100))
        self.tol = float(config.get("tol", 1e-4))
        if self.tol < 0:
            raise InvalidHyperparameterError(f"tol must be non-negative, got {self.tol}")
        self.metric: DistanceMetric = get_metric(config.get("metric"))
        self.p: Optional[float] = (
            validate_minkowski_p(config.get("p"))
            if self.metric is DistanceMetric.MINKOWSKI
            else None
        )
        self.seed = config.get("seed", 42)
        self.n_jobs = config.get("n_jobs")

    def fit(self, vectors: Any, k: int, seed: Optional[int] = None) -> KMeansResult:
        """
        Partition ``vectors`` into ``k`` clusters.

        Args:
            vectors: Training vectors of shape (n_vectors, dim)
            k: Number of clusters
            seed: Random seed overriding the configured one

        Returns:
            KMeansResult with centroids and the final assignment

        Raises:
            InvalidHyperparameterError: If k is not a positive integer
            InsufficientDataError: If there are fewer vectors than clusters
            NumericalDegeneracyError: If the iteration produces non-finite values
        """
        X = as_vectors_array(vectors)
        k = validate_positive_int("k", k)
        n_vectors = X.shape[0]
        if n_vectors < k:
            raise InsufficientDataError(
                f"Cannot form {k} clusters from {n_vectors} training vectors"
            )

        rng = np.random.default_rng(self.seed if seed is None else seed)
        centroids = self._init_centroids(X, k, rng)
        labels, distances = self._assign(X, centroids)
        inertia = float(distances.sum())
        converged = inertia == 0.0
        n_iter = 0

        while not converged and n_iter < self.max_iters:
            centroids = self._update(X, labels, distances, k)
            labels, distances = self._assign(X, centroids)
            n_iter += 1

            new_inertia = float(ensure_finite(distances, "k-means distances").sum())
            improvement = (inertia - new_inertia) / inertia if inertia > 0 else 0.0
            logger.debug(
                f"k-means iteration {n_iter}: total distance {new_inertia:.6g} "
                f"(relative improvement {improvement:.3g})"
            )
            inertia = new_inertia
            if new_inertia == 0.0 or improvement < self.tol:
                converged = True

        return KMeansResult(
            centroids=centroids,
            labels=labels,
            inertia=inertia,
            n_iter=n_iter,
            converged=converged,
        )

    def _init_centroids(self, X: np.ndarray, k: int, rng: np.random.Generator) -> np.ndarray:
        """k-means++ seeding: sample proportionally to the squared distance to the chosen set."""
        n_vectors = X.shape[0]
        chosen = [int(rng.integers(n_vectors))]
        closest = self._distances_to(X, X[chosen]) ** 2

        for _ in range(1, k):
            total = float(closest.sum())
            if total > 0 and np.isfinite(total):
                index = int(rng.choice(n_vectors, p=closest / total))
            else:
                # Every point coincides with a chosen centroid
                index = int(rng.integers(n_vectors))
            chosen.append(index)
            new_distances = self._distances_to(X, X[[index]]) ** 2
            closest = np.minimum(closest, new_distances)

        return X[chosen].copy()

    def _distances_to(self, X: np.ndarray, point: np.ndarray) -> np.ndarray:
        return self.metric.pairwise(X, point, n_jobs=self.n_jobs, p=self.p)[:, 0]

    def _assign(self, X: np.ndarray, centroids: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
        """Nearest-centroid assignment; ``argmin`` keeps the lowest index on ties."""
        distance_matrix = self.metric.pairwise(X, centroids, n_jobs=self.n_jobs, p=self.p)
        labels = np.argmin(distance_matrix, axis=1)
        distances = distance_matrix[np.arange(X.shape[0]), labels]
        return labels, distances

    def _update(
        self, X: np.ndarray, labels: np.ndarray, distances: np.ndarray, k: int
    ) -> np.ndarray:
        """Recompute centroids as cluster means, reseeding empty clusters first."""
        labels = labels.copy()
        distances = distances.copy()
        counts = np.bincount(labels, minlength=k)

        for empty in np.flatnonzero(counts == 0):
            largest = int(np.argmax(counts))
            members = np.flatnonzero(labels == largest)
            farthest = int(members[np.argmax(distances[members])])
            logger.debug(
                f"Reseeding empty cluster {empty} with vector {farthest} "
                f"taken from cluster {largest}"
            )
            labels[farthest] = empty
            distances[farthest] = 0.0
            counts[largest] -= 1
            counts[empty] += 1

        sums = np.zeros((k, X.shape[1]), dtype=np.float64)
        np.add.at(sums, labels, X)
        centroids = sums / counts[:, np.newaxis]
        return ensure_finite(centroids, "k-means centroids")


def kmeans(
    vectors: Any,
    k: int,
    metric: Union[str, DistanceMetric, None] = None,
    seed: int = 42,
    max_iters: int = 100,
    tol: float = 1e-4,
    n_jobs: Optional[int] = None,
    p: Optional[float] = None,
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Run k-means and return ``(centroids, labels)``.

    Args:
        vectors: Training vectors of shape (n_vectors, dim)
        k: Number of clusters
        metric: Distance metric (default euclidean)
        seed: Random seed
        max_iters: Maximum number of update steps
        tol: Convergence tolerance on the relative improvement
        n_jobs: Workers used for distance computation
        p: Norm order when the metric is minkowski

    Returns:
        Tuple of centroids (k, dim) and labels (n_vectors,)
    """
    engine = ClusteringEngine(
        {
            "metric": metric,
            "p": p,
            "seed": seed,
            "max_iters": max_iters,
            "tol": tol,
            "n_jobs": n_jobs,
        }
    )
    result = engine.fit(vectors, k)
    return result.centroids, result.labels
