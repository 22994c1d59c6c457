"""
vquant - Vector quantization algorithms for Python.

This package provides binary, scalar, product, optimized product,
tree-structured and residual vector quantizers, a metric-parameterized
k-means engine, and presets for building quantizers by name.
"""

__version__ = "0.1.0"

from .clustering import ClusteringEngine, KMeansResult, kmeans
from .configs import QUANTIZER_CONFIGS, get_quantizer_config, list_quantizer_configs
from .distances import DistanceMetric, get_metric
from .exceptions import (
    VQError, ValidationError, DimensionMismatchError, ConfigurationError,
    InvalidHyperparameterError, InvalidPartitionError, InsufficientDataError,
    QuantizationError, NumericalDegeneracyError
)
from .quantization import (
    Quantizer,
    BinaryQuantizer,
    ScalarQuantizer,
    ProductQuantizer,
    OptimizedProductQuantizer,
    TreeStructuredQuantizer,
    TSVQNode,
    ResidualQuantizer,
)
from .vector import Vector, mean_vector

# Import factory functions for easy usage
from .factory import create_quantizer, create_from_template

__all__ = [
    "Vector",
    "mean_vector",
    "DistanceMetric",
    "get_metric",
    "ClusteringEngine",
    "KMeansResult",
    "kmeans",
    "Quantizer",
    "BinaryQuantizer",
    "ScalarQuantizer",
    "ProductQuantizer",
    "OptimizedProductQuantizer",
    "TreeStructuredQuantizer",
    "TSVQNode",
    "ResidualQuantizer",
    "VQError",
    "ValidationError",
    "DimensionMismatchError",
    "ConfigurationError",
    "InvalidHyperparameterError",
    "InvalidPartitionError",
    "InsufficientDataError",
    "QuantizationError",
    "NumericalDegeneracyError",
    # Presets and factory functions
    "QUANTIZER_CONFIGS",
    "get_quantizer_config",
    "list_quantizer_configs",
    "create_quantizer",
    "create_from_template",
]
