"""
Validation utilities for the vquant library.
"""

from typing import Any, Dict, List, Optional

import numpy as np

from ..exceptions import (
    DimensionMismatchError,
    InsufficientDataError,
    InvalidHyperparameterError,
    ValidationError,
)


def as_vector_array(vector: Any, dim: Optional[int] = None) -> np.ndarray:
    """
    Convert a single vector to a 1D float64 array and validate it.

    Args:
        vector: Vector, numpy array or sequence of numbers
        dim: Expected dimension

    Returns:
        1D float64 array

    Raises:
        ValidationError: If the input is not a non-empty finite 1D vector
        DimensionMismatchError: If the dimension differs from ``dim``
    """
    try:
        array = np.asarray(vector, dtype=np.float64)
    except (TypeError, ValueError) as e:
        raise ValidationError(f"Vector must be numeric: {str(e)}") from e

    if array.ndim != 1:
        raise ValidationError("Vector must be 1D")

    if array.shape[0] == 0:
        raise ValidationError("Vector cannot be empty")

    if not np.all(np.isfinite(array)):
        raise ValidationError("Vector contains NaN or infinite values")

    if dim is not None and array.shape[0] != dim:
        raise DimensionMismatchError(dim, array.shape[0])

    return array


def as_vectors_array(vectors: Any, dim: Optional[int] = None) -> np.ndarray:
    """
    Convert a batch of vectors to a 2D float64 array and validate it.

    Args:
        vectors: 2D array, or a sequence of Vectors / arrays / lists
        dim: Expected dimension

    Returns:
        2D float64 array of shape (n_vectors, dim)

    Raises:
        InsufficientDataError: If the batch is empty
        ValidationError: If the batch is ragged, not 2D or not finite
        DimensionMismatchError: If the dimension differs from ``dim``
    """
    if isinstance(vectors, np.ndarray):
        array = vectors.astype(np.float64, copy=False)
    else:
        rows = [np.asarray(row, dtype=np.float64) for row in vectors]
        if len(rows) == 0:
            raise InsufficientDataError("Vector batch cannot be empty")
        if any(row.ndim != 1 for row in rows):
            raise ValidationError("Every vector in a batch must be 1D")
        first = rows[0].shape[0]
        for row in rows:
            if row.shape[0] != first:
                raise DimensionMismatchError(first, row.shape[0], "vectors in batch")
        array = np.stack(rows)

    if array.ndim != 2:
        raise ValidationError("Vectors must be 2D array")

    if array.shape[0] == 0:
        raise InsufficientDataError("Vector batch cannot be empty")

    if array.shape[1] == 0:
        raise ValidationError("Vector dimension cannot be zero")

    if not np.all(np.isfinite(array)):
        raise ValidationError("Vectors contain NaN or infinite values")

    if dim is not None and array.shape[1] != dim:
        raise DimensionMismatchError(dim, array.shape[1])

    return array


def validate_config(
    config: Dict[str, Any],
    required_keys: Optional[List[str]] = None,
    allowed_keys: Optional[List[str]] = None,
    value_types: Optional[Dict[str, Any]] = None,
    value_ranges: Optional[Dict[str, tuple]] = None,
) -> bool:
    """
    Validate a quantizer configuration dictionary.

    Args:
        config: Configuration dictionary to validate
        required_keys: List of required keys
        allowed_keys: List of allowed keys (if None, all keys allowed)
        value_types: Dictionary mapping keys to expected types
        value_ranges: Dictionary mapping keys to inclusive (min, max) ranges

    Returns:
        True if valid

    Raises:
        InvalidHyperparameterError: If config is invalid
    """
    if not isinstance(config, dict):
        raise InvalidHyperparameterError("Config must be a dictionary")

    if required_keys:
        missing_keys = [key for key in required_keys if key not in config]
        if missing_keys:
            raise InvalidHyperparameterError(f"Missing required keys: {missing_keys}")

    if allowed_keys is not None:
        invalid_keys = [key for key in config.keys() if key not in allowed_keys]
        if invalid_keys:
            raise InvalidHyperparameterError(f"Invalid keys: {invalid_keys}")

    if value_types:
        for key, expected_type in value_types.items():
            if key in config and not isinstance(config[key], expected_type):
                raise InvalidHyperparameterError(
                    f"Key '{key}' must be of type {expected_type}, got {type(config[key])}"
                )

    if value_ranges:
        for key, (min_val, max_val) in value_ranges.items():
            if key in config:
                value = config[key]
                if isinstance(value, (int, float)) and not isinstance(value, bool):
                    if value < min_val or value > max_val:
                        raise InvalidHyperparameterError(
                            f"Key '{key}' value {value} is outside range [{min_val}, {max_val}]"
                        )

    return True


def validate_positive_int(name: str, value: Any) -> int:
    """Check that ``value`` is a positive integer and return it as ``int``."""
    return validate_int_range(name, value, 1)


def validate_int_range(name: str, value: Any, low: int, high: Optional[int] = None) -> int:
    """Check that ``value`` is an integer in ``[low, high]`` and return it as ``int``."""
    if isinstance(value, bool) or not isinstance(value, (int, np.integer)):
        raise InvalidHyperparameterError(f"{name} must be an integer, got {type(value).__name__}")
    if value < low:
        if low == 1:
            raise InvalidHyperparameterError(f"{name} must be positive, got {value}")
        raise InvalidHyperparameterError(f"{name} must be at least {low}, got {value}")
    if high is not None and value > high:
        raise InvalidHyperparameterError(f"{name} must be at most {high}, got {value}")
    return int(value)


def validate_codes(codes: Any, length: int, upper: int) -> np.ndarray:
    """
    Validate a single integer encoding.

    Args:
        codes: Encoding to validate
        length: Expected number of entries
        upper: Exclusive upper bound for every entry

    Returns:
        1D int64 array

    Raises:
        ValidationError: If an entry is out of range or not integral
        DimensionMismatchError: If the encoding has the wrong length
    """
    array = np.asarray(codes)
    if array.ndim != 1:
        raise ValidationError("Encoding must be 1D")
    if array.shape[0] != length:
        raise DimensionMismatchError(length, array.shape[0], "encoding length")
    if array.size and not np.issubdtype(array.dtype, np.integer):
        raise ValidationError(f"Encoding must hold integers, got {array.dtype}")
    array = array.astype(np.int64)
    if np.any(array < 0) or np.any(array >= upper):
        raise ValidationError(f"Encoding entries must lie in [0, {upper})")
    return array
