"""
Quantization implementations for the vquant library.

This module provides binary, scalar, product, optimized product,
tree-structured and residual vector quantizers behind one interface.
"""

from .base import Quantizer
from .binary import BinaryQuantizer
from .optimized import OptimizedProductQuantizer, procrustes_rotation
from .product import ProductQuantizer
from .residual import ResidualQuantizer
from .scalar import ScalarQuantizer
from .tree import TreeStructuredQuantizer, TSVQNode

__all__ = [
    "Quantizer",
    "BinaryQuantizer",
    "ScalarQuantizer",
    "ProductQuantizer",
    "OptimizedProductQuantizer",
    "procrustes_rotation",
    "TreeStructuredQuantizer",
    "TSVQNode",
    "ResidualQuantizer",
]
