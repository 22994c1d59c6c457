"""
Tests for the k-means clustering engine.
"""

import numpy as np
import pytest

from vquant.clustering import ClusteringEngine, kmeans
from vquant.exceptions import InsufficientDataError, InvalidHyperparameterError


class TestClusteringEngine:
    """Test k-means clustering."""

    def test_fit_shapes(self, sample_vectors):
        result = ClusteringEngine().fit(sample_vectors, 8)
        assert result.centroids.shape == (8, 16)
        assert result.labels.shape == (200,)
        assert result.labels.min() >= 0
        assert result.labels.max() < 8
        assert result.inertia >= 0
        assert result.n_iter <= 100

    def test_deterministic(self, sample_vectors):
        engine = ClusteringEngine({"seed": 3})
        first = engine.fit(sample_vectors, 5)
        second = engine.fit(sample_vectors, 5)
        np.testing.assert_array_equal(first.centroids, second.centroids)
        np.testing.assert_array_equal(first.labels, second.labels)

        third = ClusteringEngine({"seed": 3}).fit(sample_vectors.copy(), 5)
        np.testing.assert_array_equal(first.centroids, third.centroids)

    def test_seed_argument_overrides_config(self, sample_vectors):
        engine = ClusteringEngine({"seed": 1})
        np.testing.assert_array_equal(
            engine.fit(sample_vectors, 4, seed=9).centroids,
            ClusteringEngine({"seed": 9}).fit(sample_vectors, 4).centroids,
        )

    def test_separated_clusters(self, two_clusters):
        vectors, truth = two_clusters
        result = ClusteringEngine().fit(vectors, 2)
        # Each true cluster maps onto a single label
        assert len(set(result.labels[truth == 0])) == 1
        assert len(set(result.labels[truth == 1])) == 1
        assert result.labels[0] != result.labels[-1]

    def test_identical_vectors(self):
        vectors = np.ones((10, 3))
        result = ClusteringEngine().fit(vectors, 3)
        assert result.inertia == 0.0
        assert result.converged
        np.testing.assert_array_equal(result.centroids, np.ones((3, 3)))

    def test_labels_are_nearest_centroids(self, sample_vectors):
        result = ClusteringEngine({"metric": "manhattan"}).fit(sample_vectors, 6)
        distances = np.abs(
            sample_vectors[:, np.newaxis, :] - result.centroids[np.newaxis, :, :]
        ).sum(axis=2)
        np.testing.assert_array_equal(result.labels, np.argmin(distances, axis=1))

    def test_too_few_vectors(self, small_vectors):
        with pytest.raises(InsufficientDataError):
            ClusteringEngine().fit(small_vectors, 21)

    def test_invalid_k(self, small_vectors):
        with pytest.raises(InvalidHyperparameterError):
            ClusteringEngine().fit(small_vectors, 0)

    def test_minkowski_metric(self, sample_vectors):
        result = ClusteringEngine({"metric": "minkowski", "p": 3}).fit(sample_vectors, 5)
        distances = (
            np.abs(sample_vectors[:, np.newaxis, :] - result.centroids[np.newaxis, :, :]) ** 3
        ).sum(axis=2) ** (1 / 3)
        np.testing.assert_array_equal(result.labels, np.argmin(distances, axis=1))
        assert result.inertia == pytest.approx(distances.min(axis=1).sum())

        centroids, labels = kmeans(sample_vectors, 5, metric="minkowski", p=3)
        np.testing.assert_array_equal(centroids, result.centroids)
        np.testing.assert_array_equal(labels, result.labels)

    def test_invalid_config(self):
        with pytest.raises(InvalidHyperparameterError):
            ClusteringEngine({"max_iters": 0})
        with pytest.raises(InvalidHyperparameterError):
            ClusteringEngine({"tol": -1.0})
        with pytest.raises(InvalidHyperparameterError):
            ClusteringEngine({"metric": "unknown"})
        with pytest.raises(InvalidHyperparameterError):
            ClusteringEngine({"metric": "minkowski", "p": 0})

    def test_empty_cluster_reseeded_from_largest(self):
        engine = ClusteringEngine()
        X = np.array([[0.0], [1.0], [10.0]])
        labels = np.array([0, 0, 0])
        distances = np.abs(X[:, 0] - X[:, 0].mean())
        centroids = engine._update(X, labels, distances, 2)
        # The farthest member of cluster 0 moves into the empty cluster
        np.testing.assert_allclose(centroids, [[0.5], [10.0]])

    def test_kmeans_helper(self, sample_vectors):
        centroids, labels = kmeans(sample_vectors, 4, metric="euclidean", seed=5)
        result = ClusteringEngine({"seed": 5}).fit(sample_vectors, 4)
        np.testing.assert_array_equal(centroids, result.centroids)
        np.testing.assert_array_equal(labels, result.labels)

