"""
Base quantization interface for the vquant library.
"""

from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional

import numpy as np

from ..distances import DistanceMetric, get_metric, validate_minkowski_p
from ..exceptions import QuantizationError, ValidationError, VQError
from ..utils.batch_manager import BatchManager
from ..utils.logging import get_logger, log_training
from ..utils.validation import as_vector_array, as_vectors_array
from ..vector import Vector

logger = get_logger(__name__)


class Quantizer(ABC):
    """
    Abstract base class for vector quantizers.

    A quantizer is configured with a plain dictionary, trained once with
    ``fit`` and immutable afterwards. Subclasses implement ``_fit``,
    ``_quantize``, ``_dequantize`` and ``_code_bits``; the public methods
    add validation, batching and error wrapping.
    """

    quantizer_type = "base"

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        """Initialize the quantizer with configuration."""
        self.config: Dict[str, Any] = dict(config or {})
        self.metric: DistanceMetric = get_metric(self.config.get("metric"))
        self.p: Optional[float] = (
            validate_minkowski_p(self.config.get("p"))
            if self.metric is DistanceMetric.MINKOWSKI
            else None
        )
        self.n_jobs: Optional[int] = self.config.get("n_jobs")
        self.dim: Optional[int] = None
        self._trained = False

    @property
    def is_trained(self) -> bool:
        return self._trained

    @contextmanager
    def _wrap_errors(self, action: str) -> Iterator[None]:
        """Let library errors through and wrap anything unexpected in QuantizationError."""
        try:
            yield
        except VQError:
            raise
        except Exception as e:
            raise QuantizationError(
                f"Failed to {action} with {self.quantizer_type} quantizer: {str(e)}"
            ) from e

    def _check_trained(self) -> None:
        if not self._trained:
            raise QuantizationError("Quantizer not trained")

    def fit(self, vectors: Any) -> "Quantizer":
        """
        Train the quantizer on a batch of vectors.

        Args:
            vectors: Training vectors of shape (n_vectors, dim)

        Returns:
            self, now trained and immutable
        """
        if self._trained:
            raise QuantizationError("Quantizer already trained; trained models are immutable")

        X = as_vectors_array(vectors)
        with self._wrap_errors("train"):
            self._fit(X)

        self.dim = int(X.shape[1])
        self._trained = True
        log_training(self.quantizer_type, int(X.shape[0]), self.dim)
        return self

    @abstractmethod
    def _fit(self, X: np.ndarray) -> None:
        """Learn the model parameters from a validated (n, dim) float64 array."""
        pass

    @abstractmethod
    def _quantize(self, x: np.ndarray) -> Any:
        """Encode a validated 1D float64 vector."""
        pass

    @abstractmethod
    def _dequantize(self, code: Any) -> np.ndarray:
        """Reconstruct a 1D float64 vector from one encoding."""
        pass

    @abstractmethod
    def _code_bits(self) -> float:
        """Number of bits one encoding occupies."""
        pass

    def quantize(self, vector: Any) -> Any:
        """
        Encode a single vector.

        Args:
            vector: Vector of the trained dimension

        Returns:
            Encoding of the vector
        """
        self._check_trained()
        x = as_vector_array(vector, self.dim)
        with self._wrap_errors("quantize"):
            return self._quantize(x)

    def dequantize(self, encoding: Any) -> Vector:
        """
        Reconstruct an approximate vector from an encoding.

        Args:
            encoding: Encoding produced by ``quantize``

        Returns:
            Reconstructed vector
        """
        self._check_trained()
        with self._wrap_errors("dequantize"):
            return Vector(self._dequantize(encoding))

    def quantize_batch(self, vectors: Any) -> Any:
        """
        Encode a batch of vectors, preserving input order.

        Args:
            vectors: Vectors of shape (n_vectors, dim)

        Returns:
            Encodings in input order
        """
        self._check_trained()
        X = as_vectors_array(vectors, self.dim)
        with self._wrap_errors("quantize"):
            return self._quantize_batch(X)

    def _quantize_batch(self, X: np.ndarray) -> Any:
        manager = BatchManager(self.n_jobs)
        codes = manager.map_batches(lambda rows: [self._quantize(row) for row in rows], X)
        return self._collect_codes(codes)

    def _collect_codes(self, codes: List[Any]) -> Any:
        return np.stack(codes)

    def dequantize_batch(self, codes: Any) -> np.ndarray:
        """
        Reconstruct a batch of encodings, preserving input order.

        Args:
            codes: Encodings as returned by ``quantize_batch``

        Returns:
            Reconstructed vectors of shape (n_vectors, dim)
        """
        self._check_trained()
        codes = list(codes)
        if len(codes) == 0:
            raise ValidationError("Encoding batch cannot be empty")
        with self._wrap_errors("dequantize"):
            return self._dequantize_batch(codes)

    def _dequantize_batch(self, codes: List[Any]) -> np.ndarray:
        manager = BatchManager(self.n_jobs)
        rows = manager.map_batches(lambda chunk: [self._dequantize(c) for c in chunk], codes)
        return np.stack(rows)

    def compute_distance(self, query: Any, encoding: Any) -> float:
        """
        Distance between a raw query and the reconstruction of an encoding.

        Args:
            query: Query vector
            encoding: Encoding of a database vector

        Returns:
            Distance under the quantizer's metric
        """
        self._check_trained()
        q = as_vector_array(query, self.dim)
        reconstructed = self.dequantize(encoding)
        return self.metric.distance(q, reconstructed.data, p=self.p)

    def get_stats(self) -> Dict[str, Any]:
        """Get quantizer statistics."""
        stats: Dict[str, Any] = {
            "quantizer_type": self.quantizer_type,
            "metric": self.metric.value,
            "trained": self._trained,
        }
        if self.p is not None:
            stats["p"] = self.p

        if self._trained:
            code_bits = float(self._code_bits())
            stats.update(
                {
                    "dimensions": self.dim,
                    "code_bits": code_bits,
                    # Original vectors are counted as float32 values
                    "compression_ratio": (
                        32.0 * self.dim / code_bits if self.dim and code_bits > 0 else None
                    ),
                }
            )
            stats.update(self._extra_stats())

        return stats

    def _extra_stats(self) -> Dict[str, Any]:
        return {}

    def __repr__(self) -> str:
        state = "trained" if self._trained else "untrained"
        return f"{type(self).__name__}(dim={self.dim}, {state})"
