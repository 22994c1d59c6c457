"""
Binary quantization implementation for the vquant library.
"""

from typing import Any, Dict, Optional

import numpy as np

from ..exceptions import DimensionMismatchError, InvalidHyperparameterError, ValidationError
from ..utils.helpers import freeze
from .base import Quantizer


class BinaryQuantizer(Quantizer):
    """
    Binary quantization implementation.

    Each dimension is reduced to a single bit: 1 when the component is at or
    above that dimension's threshold, 0 otherwise. Bits are packed eight to a
    byte, so a D-dimensional vector is stored in ceil(D / 8) bytes.

    Config keys:
        threshold: "mean" (default), "median", "zero" or a fixed number
        reconstruction: "centroids" (default) reconstructs each bit as the mean
            of the training values on that side of the threshold, "margin"
            reconstructs threshold +/- margin,
            "levels" reconstructs the fixed ``low`` / ``high`` values
        margin: Offset from the threshold used by "margin", and by "centroids"
            for a side no training value fell on (default 1.0)
        low, high: Values used by "levels" (default -1.0 / 1.0)
    """

    quantizer_type = "binary"
    THRESHOLD_STRATEGIES = ("mean", "median", "zero")
    RECONSTRUCTION_MODES = ("centroids", "margin", "levels")

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        """Initialize binary quantizer."""
        super().__init__(config)
        self.threshold_strategy = self.config.get("threshold", "mean")
        self.reconstruction = self.config.get("reconstruction", "centroids")
        self.margin = float(self.config.get("margin", 1.0))
        self.low = float(self.config.get("low", -1.0))
        self.high = float(self.config.get("high", 1.0))
        self.thresholds: Optional[np.ndarray] = None
        self.low_values: Optional[np.ndarray] = None
        self.high_values: Optional[np.ndarray] = None

        is_number = isinstance(self.threshold_strategy, (int, float)) and not isinstance(
            self.threshold_strategy, bool
        )
        if not is_number and self.threshold_strategy not in self.THRESHOLD_STRATEGIES:
            raise InvalidHyperparameterError(
                f"threshold must be a number or one of {self.THRESHOLD_STRATEGIES}, "
                f"got {self.threshold_strategy!r}"
            )
        if self.reconstruction not in self.RECONSTRUCTION_MODES:
            raise InvalidHyperparameterError(
                f"reconstruction must be one of {self.RECONSTRUCTION_MODES}, "
                f"got {self.reconstruction!r}"
            )
        if self.margin <= 0:
            raise InvalidHyperparameterError("margin must be positive")
        if self.low >= self.high:
            raise InvalidHyperparameterError("low level must be less than high level")

    def _fit(self, X: np.ndarray) -> None:
        dim = X.shape[1]
        if self.threshold_strategy == "mean":
            thresholds = X.mean(axis=0)
        elif self.threshold_strategy == "median":
            thresholds = np.median(X, axis=0)
        elif self.threshold_strategy == "zero":
            thresholds = np.zeros(dim)
        else:
            thresholds = np.full(dim, float(self.threshold_strategy))
        thresholds = np.asarray(thresholds, dtype=np.float64)
        self.thresholds = freeze(thresholds)

        if self.reconstruction == "centroids":
            above = X >= thresholds
            high_counts = above.sum(axis=0)
            low_counts = X.shape[0] - high_counts
            high_sums = np.where(above, X, 0.0).sum(axis=0)
            low_sums = np.where(above, 0.0, X).sum(axis=0)
            # A side with no training values falls back to threshold +/- margin
            self.high_values = freeze(
                np.where(
                    high_counts > 0,
                    high_sums / np.maximum(high_counts, 1),
                    thresholds + self.margin,
                )
            )
            self.low_values = freeze(
                np.where(
                    low_counts > 0,
                    low_sums / np.maximum(low_counts, 1),
                    thresholds - self.margin,
                )
            )

    def _quantize(self, x: np.ndarray) -> np.ndarray:
        return np.packbits(x >= self.thresholds)

    def _quantize_batch(self, X: np.ndarray) -> np.ndarray:
        return np.packbits(X >= self.thresholds, axis=1)

    @property
    def code_length(self) -> int:
        """Number of bytes in one encoding."""
        assert self.dim is not None
        return (self.dim + 7) // 8

    def unpack(self, code: Any) -> np.ndarray:
        """
        Unpack an encoding into one boolean per dimension.

        Args:
            code: Packed encoding of ``code_length`` bytes

        Returns:
            Boolean array of length ``dim``
        """
        self._check_trained()
        code = np.asarray(code)
        if code.ndim != 1:
            raise ValidationError("Binary encoding must be 1D")
        if code.shape[0] != self.code_length:
            raise DimensionMismatchError(self.code_length, code.shape[0], "encoding bytes")
        if code.dtype != np.uint8:
            if not np.issubdtype(code.dtype, np.integer) or np.any((code < 0) | (code > 255)):
                raise ValidationError("Binary encoding must hold bytes")
            code = code.astype(np.uint8)
        return np.unpackbits(code, count=self.dim).astype(bool)

    def _dequantize(self, code: Any) -> np.ndarray:
        bits = self.unpack(code)
        if self.reconstruction == "centroids":
            return np.where(bits, self.high_values, self.low_values)
        if self.reconstruction == "margin":
            return np.where(bits, self.thresholds + self.margin, self.thresholds - self.margin)
        return np.where(bits, self.high, self.low)

    def _code_bits(self) -> float:
        return float(self.dim)

    def _extra_stats(self) -> Dict[str, Any]:
        return {
            "threshold_strategy": (
                self.threshold_strategy
                if isinstance(self.threshold_strategy, str)
                else float(self.threshold_strategy)
            ),
            "reconstruction": self.reconstruction,
            "code_bytes": self.code_length,
        }
