"""
Scalar quantization implementation for the vquant library.
"""

from typing import Any, Dict, Optional

import numpy as np

from ..exceptions import InvalidHyperparameterError, QuantizationError, ValidationError
from ..utils.logging import log_training
from ..utils.validation import as_vectors_array, validate_codes
from .base import Quantizer


class ScalarQuantizer(Quantizer):
    """
    Scalar quantization implementation.

    Every component is clamped to a fixed ``[min, max]`` range and mapped to
    one of ``levels`` uniformly spaced values. The range is configured, not
    learned, and is the same for every dimension. One level index occupies
    one byte, so at most 256 levels are allowed.

    Config keys:
        min: Lower end of the range (default 0.0)
        max: Upper end of the range (default 1.0)
        levels: Number of quantization levels, 2 to 256 (default 256)
    """

    quantizer_type = "scalar"
    MAX_LEVELS = 256

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        """Initialize scalar quantizer."""
        super().__init__(config)
        self.min = float(self.config.get("min", 0.0))
        self.max = float(self.config.get("max", 1.0))
        self.levels = self.config.get("levels", 256)

        if isinstance(self.levels, bool) or not isinstance(self.levels, (int, np.integer)):
            raise InvalidHyperparameterError("levels must be an integer")
        if self.max <= self.min:
            raise InvalidHyperparameterError("max must be greater than min")
        if self.levels < 2:
            raise InvalidHyperparameterError("levels must be at least 2")
        if self.levels > self.MAX_LEVELS:
            raise InvalidHyperparameterError(f"levels must be no more than {self.MAX_LEVELS}")

        self.levels = int(self.levels)
        self.step = (self.max - self.min) / (self.levels - 1)

    def fit(self, vectors: Any = None) -> "ScalarQuantizer":
        """
        Finalize the quantizer.

        The range is fixed by configuration, so training data is optional.
        When given, its dimension is recorded and enforced afterwards.

        Args:
            vectors: Optional vectors of shape (n_vectors, dim)

        Returns:
            self
        """
        if self._trained:
            raise QuantizationError("Quantizer already trained; trained models are immutable")

        if vectors is not None:
            X = as_vectors_array(vectors)
            self.dim = int(X.shape[1])
            log_training(self.quantizer_type, int(X.shape[0]), self.dim, levels=self.levels)

        self._trained = True
        return self

    def _fit(self, X: np.ndarray) -> None:
        # The range is configured rather than learned
        pass

    def _levels_for(self, values: np.ndarray) -> np.ndarray:
        clamped = np.clip(values, self.min, self.max)
        # Round half away from zero; the offset is never negative
        indices = np.floor((clamped - self.min) / self.step + 0.5)
        return np.clip(indices, 0, self.levels - 1).astype(np.uint8)

    def _quantize(self, x: np.ndarray) -> np.ndarray:
        return self._levels_for(x)

    def _quantize_batch(self, X: np.ndarray) -> np.ndarray:
        return self._levels_for(X)

    def _dequantize(self, code: Any) -> np.ndarray:
        code = np.asarray(code)
        length = self.dim if self.dim is not None else (code.shape[0] if code.ndim == 1 else -1)
        if length == 0:
            raise ValidationError("Encoding cannot be empty")
        levels = validate_codes(code, length, self.levels)
        return self.min + levels.astype(np.float64) * self.step

    def _code_bits(self) -> float:
        return 8.0 * self.dim if self.dim else 8.0

    def get_stats(self) -> Dict[str, Any]:
        """Get scalar quantizer statistics."""
        stats = super().get_stats()
        stats.update(
            {
                "min": self.min,
                "max": self.max,
                "levels": self.levels,
                "step": self.step,
            }
        )
        if self._trained and self.dim is None:
            # Without a recorded dimension the ratio is per component
            stats["compression_ratio"] = 32.0 / 8.0
        return stats
