"""
Factory functions for creating vquant quantizers by name.

This module maps quantizer type names (and their short aliases) to the
quantizer classes, and builds quantizers from the presets in ``configs``.
"""

from typing import Any, Dict, Optional

from .configs import get_quantizer_config
from .exceptions import ConfigurationError
from .quantization import (
    BinaryQuantizer,
    OptimizedProductQuantizer,
    ProductQuantizer,
    Quantizer,
    ResidualQuantizer,
    ScalarQuantizer,
    TreeStructuredQuantizer,
)


QUANTIZER_TYPES = {
    "binary": BinaryQuantizer,
    "scalar": ScalarQuantizer,
    "product": ProductQuantizer,
    "optimized_product": OptimizedProductQuantizer,
    "tree": TreeStructuredQuantizer,
    "residual": ResidualQuantizer,
}

ALIASES = {
    "bq": "binary",
    "sq": "scalar",
    "pq": "product",
    "opq": "optimized_product",
    "tsvq": "tree",
    "rvq": "residual",
}


def resolve_quantizer_type(quantizer_type: str) -> str:
    """Return the canonical name for a quantizer type or alias."""
    if not isinstance(quantizer_type, str):
        raise ConfigurationError(f"Quantizer type must be a string, got {quantizer_type!r}")
    name = quantizer_type.strip().lower()
    name = ALIASES.get(name, name)
    if name not in QUANTIZER_TYPES:
        available = sorted(list(QUANTIZER_TYPES.keys()) + list(ALIASES.keys()))
        raise ConfigurationError(f"Unknown quantizer type: {quantizer_type}. Available: {available}")
    return name


def create_quantizer(quantizer_type: str, config: Optional[Dict[str, Any]] = None) -> Quantizer:
    """
    Create an untrained quantizer.

    Args:
        quantizer_type: Type name ('binary', 'scalar', 'product',
            'optimized_product', 'tree', 'residual') or alias
            ('bq', 'sq', 'pq', 'opq', 'tsvq', 'rvq')
        config: Quantizer configuration

    Returns:
        Quantizer instance, ready for ``fit``
    """
    return QUANTIZER_TYPES[resolve_quantizer_type(quantizer_type)](config or {})


def create_from_template(template_name: str, **overrides) -> Quantizer:
    """
    Create a quantizer from a pre-configured preset.

    Args:
        template_name: Name of the preset in ``QUANTIZER_CONFIGS``
        **overrides: Config values replacing the preset's

    Returns:
        Quantizer instance, ready for ``fit``
    """
    preset = get_quantizer_config(template_name)
    config = preset["config"]
    config.update(overrides)
    return create_quantizer(preset["type"], config)
