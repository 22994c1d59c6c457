"""
Tests for the Vector type and distance metrics.
"""

import math

import numpy as np
import pytest

from vquant.distances import DistanceMetric, get_metric
from vquant.exceptions import (
    DimensionMismatchError,
    InsufficientDataError,
    InvalidHyperparameterError,
    ValidationError,
)
from vquant.vector import Vector, mean_vector


class TestVector:
    """Test the immutable vector type."""

    def test_construction(self):
        v = Vector([1, 2, 3])
        assert v.dim == 3
        assert len(v) == 3
        assert v.data.dtype == np.float64
        assert list(v) == [1.0, 2.0, 3.0]

    def test_empty_rejected(self):
        with pytest.raises(ValidationError):
            Vector([])

    def test_non_1d_rejected(self):
        with pytest.raises(ValidationError):
            Vector([[1.0, 2.0], [3.0, 4.0]])

    def test_immutable(self):
        source = np.array([1.0, 2.0])
        v = Vector(source)
        source[0] = 100.0
        assert v[0] == 1.0
        with pytest.raises(ValueError):
            v.data[0] = 5.0

    def test_arithmetic(self):
        a = Vector([1.0, 2.0])
        b = Vector([3.0, 5.0])
        assert a + b == Vector([4.0, 7.0])
        assert b - a == Vector([2.0, 3.0])
        assert a * 2 == Vector([2.0, 4.0])
        assert 2 * a == Vector([2.0, 4.0])
        assert -a == Vector([-1.0, -2.0])
        # Operands are untouched
        assert a == Vector([1.0, 2.0])

    def test_dimension_mismatch(self):
        with pytest.raises(DimensionMismatchError):
            Vector([1.0, 2.0]) + Vector([1.0, 2.0, 3.0])
        with pytest.raises(DimensionMismatchError):
            Vector([1.0]).dot([1.0, 2.0])

    def test_dot_norm_distance(self):
        a = Vector([3.0, 4.0])
        assert a.dot([1.0, 1.0]) == 7.0
        assert a.norm() == 5.0
        assert a.distance2([0.0, 0.0]) == 25.0

    def test_numpy_interop(self):
        v = Vector([1.0, 2.0])
        array = np.asarray(v)
        assert array.shape == (2,)
        array[0] = 9.0
        assert v[0] == 1.0
        assert v.to_numpy().flags.writeable

    def test_hash_and_equality(self):
        assert hash(Vector([1.0, 2.0])) == hash(Vector([1.0, 2.0]))
        assert Vector([1.0, 2.0]) != Vector([2.0, 1.0])

    def test_mean_vector(self):
        mean = mean_vector([[0.0, 2.0], Vector([2.0, 4.0])])
        assert mean == Vector([1.0, 3.0])

    def test_mean_vector_empty(self):
        with pytest.raises(InsufficientDataError):
            mean_vector([])


class TestDistanceMetric:
    """Test distance metric implementations."""

    def test_euclidean(self):
        assert DistanceMetric.EUCLIDEAN.distance([0.0, 0.0], [3.0, 4.0]) == pytest.approx(5.0)
        assert DistanceMetric.EUCLIDEAN.distance([1.5, -2.0], [1.5, -2.0]) == 0.0

    def test_squared_euclidean(self):
        assert DistanceMetric.SQUARED_EUCLIDEAN.distance([0, 0], [3, 4]) == pytest.approx(25.0)

    def test_manhattan(self):
        assert DistanceMetric.MANHATTAN.distance([0.0, 0.0], [3.0, -4.0]) == pytest.approx(7.0)

    def test_chebyshev(self):
        assert DistanceMetric.CHEBYSHEV.distance([0.0, 0.0], [3.0, -4.0]) == pytest.approx(4.0)

    def test_minkowski(self):
        a, b = [0.0, 0.0], [3.0, -4.0]
        assert DistanceMetric.MINKOWSKI.distance(a, b, p=1) == pytest.approx(7.0)
        assert DistanceMetric.MINKOWSKI.distance(a, b) == pytest.approx(5.0)
        assert DistanceMetric.MINKOWSKI.distance(a, b, p=3) == pytest.approx(91.0 ** (1 / 3))
        assert get_metric("minkowski") is DistanceMetric.MINKOWSKI

    def test_minkowski_invalid_p(self):
        for p in (0, -1.5, float("inf"), "2", True):
            with pytest.raises(InvalidHyperparameterError):
                DistanceMetric.MINKOWSKI.distance([0.0], [1.0], p=p)

    def test_cosine(self):
        assert DistanceMetric.COSINE.distance([1.0, 0.0], [0.0, 1.0]) == pytest.approx(1.0)
        assert DistanceMetric.COSINE.distance([1.0, 1.0], [2.0, 2.0]) == pytest.approx(0.0, abs=1e-12)

    def test_cosine_zero_vector(self):
        assert DistanceMetric.COSINE.distance([0.0, 0.0], [1.0, 2.0]) == 1.0
        assert DistanceMetric.COSINE.distance([1.0, 2.0], [0.0, 0.0]) == 1.0

    def test_non_negative(self, sample_vectors):
        for metric in DistanceMetric:
            distances = metric.pairwise(sample_vectors[:10], sample_vectors[10:20])
            assert distances.shape == (10, 10)
            assert np.all(distances >= 0)

    def test_pairwise_matches_single(self, small_vectors):
        matrix = DistanceMetric.MANHATTAN.pairwise(small_vectors, small_vectors[:3], n_jobs=2)
        expected = DistanceMetric.MANHATTAN.distance(small_vectors[5], small_vectors[2])
        assert math.isclose(matrix[5, 2], expected)

    def test_dimension_mismatch(self):
        with pytest.raises(DimensionMismatchError):
            DistanceMetric.EUCLIDEAN.distance([1.0, 2.0], [1.0, 2.0, 3.0])

    def test_get_metric(self):
        assert get_metric(None) is DistanceMetric.EUCLIDEAN
        assert get_metric("l2") is DistanceMetric.EUCLIDEAN
        assert get_metric("L1") is DistanceMetric.MANHATTAN
        assert get_metric("cityblock") is DistanceMetric.MANHATTAN
        assert get_metric(DistanceMetric.COSINE) is DistanceMetric.COSINE

    def test_get_metric_unknown(self):
        with pytest.raises(InvalidHyperparameterError):
            get_metric("hamming")
