"""
Pytest configuration and fixtures for vquant tests.
"""

import pytest
import numpy as np

from vquant.quantization import BinaryQuantizer, ScalarQuantizer, ProductQuantizer


@pytest.fixture
def sample_vectors():
    """Generate sample vectors for testing."""
    rng = np.random.default_rng(42)
    return rng.standard_normal((200, 16))


@pytest.fixture
def small_vectors():
    """Generate small sample vectors for testing."""
    rng = np.random.default_rng(456)
    return rng.standard_normal((20, 8))


@pytest.fixture
def query_vector():
    """Generate a query vector for testing."""
    rng = np.random.default_rng(123)
    return rng.standard_normal(16)


@pytest.fixture
def correlated_vectors():
    """Generate vectors with strongly correlated dimensions."""
    rng = np.random.default_rng(7)
    latent = rng.standard_normal((300, 8))
    mixing = rng.standard_normal((8, 8))
    return latent @ mixing


@pytest.fixture
def two_clusters():
    """1000 vectors of dimension 8 drawn from two well-separated Gaussians."""
    rng = np.random.default_rng(2024)
    first = rng.normal(loc=5.0, scale=1.0, size=(500, 8))
    second = rng.normal(loc=-5.0, scale=1.0, size=(500, 8))
    vectors = np.vstack([first, second])
    labels = np.array([0] * 500 + [1] * 500)
    return vectors, labels


@pytest.fixture
def binary_quantizer():
    """Create a binary quantizer."""
    return BinaryQuantizer({"threshold": "mean"})


@pytest.fixture
def scalar_quantizer():
    """Create a scalar quantizer."""
    return ScalarQuantizer({"min": -1.0, "max": 1.0, "levels": 256})


@pytest.fixture
def product_quantizer():
    """Create a product quantizer."""
    return ProductQuantizer({"m": 4, "k": 16, "max_iters": 30})
