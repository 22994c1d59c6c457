"""
Helper functions for the vquant library.
"""

import time
from functools import wraps
from typing import Any

import numpy as np

from ..exceptions import DimensionMismatchError, NumericalDegeneracyError
from .logging import get_logger

logger = get_logger(__name__)


def mean_squared_error(original: np.ndarray, reconstructed: np.ndarray) -> float:
    """
    Mean squared error between two equally shaped arrays.

    Args:
        original: Original vectors
        reconstructed: Approximate reconstructions

    Returns:
        Mean of the squared component differences
    """
    original = np.asarray(original, dtype=np.float64)
    reconstructed = np.asarray(reconstructed, dtype=np.float64)
    if original.shape != reconstructed.shape:
        raise DimensionMismatchError(original.shape[-1], reconstructed.shape[-1])
    return float(np.mean((original - reconstructed) ** 2))


def reconstruction_error(quantizer: Any, vectors: np.ndarray) -> float:
    """
    Mean squared reconstruction error of a trained quantizer on a batch.

    Args:
        quantizer: Trained quantizer
        vectors: Vectors of shape (n_vectors, dim)

    Returns:
        Mean squared error of ``dequantize_batch(quantize_batch(vectors))``
    """
    vectors = np.asarray(vectors, dtype=np.float64)
    reconstructed = quantizer.dequantize_batch(quantizer.quantize_batch(vectors))
    return mean_squared_error(vectors, reconstructed)


def ensure_finite(array: np.ndarray, what: str) -> np.ndarray:
    """Raise NumericalDegeneracyError if ``array`` holds NaN or infinite values."""
    if not np.all(np.isfinite(array)):
        raise NumericalDegeneracyError(f"{what} contains NaN or infinite values")
    return array


def freeze(array: np.ndarray) -> np.ndarray:
    """Mark a trained parameter array read-only and return it."""
    array.flags.writeable = False
    return array


def code_dtype(n_codes: int) -> np.dtype:
    """Smallest unsigned dtype able to hold indices in ``[0, n_codes)``."""
    if n_codes - 1 <= np.iinfo(np.uint8).max:
        return np.dtype(np.uint8)
    if n_codes - 1 <= np.iinfo(np.uint16).max:
        return np.dtype(np.uint16)
    return np.dtype(np.uint32)


def timing_decorator(func):
    """Decorator to log function execution time at DEBUG level."""
    @wraps(func)
    def wrapper(*args, **kwargs):
        start_time = time.time()
        result = func(*args, **kwargs)
        logger.debug(f"{func.__qualname__} took {time.time() - start_time:.4f} seconds")
        return result
    return wrapper
