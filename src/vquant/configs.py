"""
Pre-configured quantizer settings for the vquant library.

This module provides ready-to-use quantizer configurations for common
trade-offs between compression and reconstruction quality.
"""

import copy
from typing import Any, Dict, List, Optional

from .exceptions import ConfigurationError


QUANTIZER_CONFIGS = {
    # Binary quantization (1 bit per dimension)
    "binary_mean": {
        "type": "binary",
        "config": {
            "threshold": "mean",
            "reconstruction": "centroids"
        },
        "description": "Per-dimension mean threshold, 32x compression"
    },
    "binary_zero": {
        "type": "binary",
        "config": {
            "threshold": "zero",
            "reconstruction": "levels",
            "low": -1.0,
            "high": 1.0
        },
        "description": "Sign bits for centered or normalized embeddings"
    },

    # Scalar quantization (fixed range)
    "scalar_8bit": {
        "type": "scalar",
        "config": {
            "min": -1.0,
            "max": 1.0,
            "levels": 256
        },
        "description": "256 levels over [-1, 1], 4x compression"
    },
    "scalar_4bit": {
        "type": "scalar",
        "config": {
            "min": -1.0,
            "max": 1.0,
            "levels": 16
        },
        "description": "16 levels over [-1, 1] for coarse storage"
    },

    # Product quantization
    "product_balanced": {
        "type": "product",
        "config": {
            "m": 8,
            "k": 256,
            "max_iters": 100,
            "tol": 1e-4,
            "metric": "euclidean",
            "seed": 42
        },
        "description": "8 subspaces of 256 centroids, one byte per subspace"
    },
    "product_compact": {
        "type": "product",
        "config": {
            "m": 4,
            "k": 16,
            "max_iters": 50,
            "tol": 1e-4,
            "metric": "euclidean",
            "seed": 42
        },
        "description": "4 subspaces of 16 centroids for small training sets"
    },

    # Optimized product quantization
    "opq_balanced": {
        "type": "optimized_product",
        "config": {
            "m": 8,
            "k": 256,
            "n_rounds": 10,
            "rotation_tol": 1e-4,
            "max_iters": 50,
            "metric": "euclidean",
            "seed": 42
        },
        "description": "Learned rotation followed by 8x256 product quantization"
    },

    # Tree-structured quantization
    "tsvq_depth8": {
        "type": "tree",
        "config": {
            "max_depth": 8,
            "min_leaf_size": 2,
            "max_iters": 50,
            "metric": "euclidean",
            "seed": 42
        },
        "description": "Binary tree with up to 256 leaves and logarithmic encoding"
    },

    # Residual quantization
    "rvq_3stage": {
        "type": "residual",
        "config": {
            "n_stages": 3,
            "k": 256,
            "max_iters": 50,
            "metric": "euclidean",
            "seed": 42,
            "epsilon": 0.0
        },
        "description": "Three full-dimension k-means stages on successive residuals"
    }
}


def get_quantizer_config(name: str) -> Dict[str, Any]:
    """
    Get a quantizer preset.

    Args:
        name: Preset name

    Returns:
        Copy of the preset with ``type``, ``config`` and ``description``
    """
    if name not in QUANTIZER_CONFIGS:
        raise ConfigurationError(
            f"Unknown quantizer config: {name}. Available: {list(QUANTIZER_CONFIGS.keys())}"
        )
    return copy.deepcopy(QUANTIZER_CONFIGS[name])


def list_quantizer_configs(quantizer_type: Optional[str] = None) -> List[str]:
    """
    List available presets.

    Args:
        quantizer_type: Only list presets of this quantizer type (optional)

    Returns:
        Preset names
    """
    return [
        name
        for name, preset in QUANTIZER_CONFIGS.items()
        if quantizer_type is None or preset["type"] == quantizer_type
    ]


def get_recommended_config(
    num_vectors: int,
    dimension: int,
    use_case: str = "balanced"
) -> Dict[str, Any]:
    """
    Get a recommended preset based on dataset characteristics.

    Args:
        num_vectors: Number of training vectors
        dimension: Vector dimension
        use_case: 'memory', 'accuracy' or 'balanced'

    Returns:
        Preset dictionary, with ``m`` adjusted to divide ``dimension``
    """
    if use_case not in ("memory", "accuracy", "balanced"):
        raise ConfigurationError(f"Unknown use case: {use_case}")

    if use_case == "memory":
        return get_quantizer_config("binary_mean")

    # Codebook training needs at least k vectors per subspace
    if num_vectors < 256:
        preset = get_quantizer_config("product_compact")
        if num_vectors < preset["config"]["k"]:
            return get_quantizer_config("scalar_8bit")
    elif use_case == "accuracy":
        preset = get_quantizer_config("opq_balanced")
    else:
        preset = get_quantizer_config("product_balanced")

    m = preset["config"]["m"]
    while m > 1 and dimension % m != 0:
        m -= 1
    preset["config"]["m"] = m
    return preset
