"""
Product quantization implementation for the vquant library.
"""

import math
from typing import Any, Dict, List, Optional

import numpy as np

from ..clustering import ClusteringEngine
from ..exceptions import InvalidHyperparameterError, InvalidPartitionError
from ..utils.batch_manager import BatchManager
from ..utils.helpers import code_dtype, freeze, timing_decorator
from ..utils.logging import get_logger
from ..utils.validation import validate_codes, validate_positive_int
from .base import Quantizer

logger = get_logger(__name__)


class ProductQuantizer(Quantizer):
    """
    Product quantization implementation.

    Product quantization divides vectors into ``m`` contiguous subvectors of
    equal size and learns a k-means codebook of ``k`` centroids for each of
    them. A vector is encoded as the index of the nearest centroid in every
    subspace, which takes one byte per subspace when ``k <= 256``.

    Config keys:
        m: Number of subspaces (default 8)
        k: Centroids per subspace (default 256)
        max_iters, tol: k-means stopping rules (default 100, 1e-4)
        metric: Distance used for clustering and encoding (default euclidean)
        seed: Base seed; subspace ``i`` is clustered with ``seed + i`` (default 42)
        n_jobs: Workers for per-subspace training and encoding (default None)
    """

    quantizer_type = "product"
    MAX_K = 65536

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        """Initialize product quantizer."""
        super().__init__(config)
        self.m = validate_positive_int("m", self.config.get("m", 8))
        self.k = validate_positive_int("k", self.config.get("k", 256))
        if self.k > self.MAX_K:
            raise InvalidHyperparameterError(f"k must be no more than {self.MAX_K}")
        self.seed = int(self.config.get("seed", 42))

        # Subspaces run on the worker pool, so each k-means stays single-threaded
        self.engine = ClusteringEngine(
            {
                "max_iters": self.config.get("max_iters", 100),
                "tol": self.config.get("tol", 1e-4),
                "metric": self.metric,
                "p": self.p,
                "seed": self.seed,
            }
        )

        self.subvector_dim: Optional[int] = None
        self.codebooks: Optional[np.ndarray] = None  # Shape: (m, k, subvector_dim)
        self.inertia: List[float] = []

    def _subspace(self, i: int) -> slice:
        assert self.subvector_dim is not None
        return slice(i * self.subvector_dim, (i + 1) * self.subvector_dim)

    @timing_decorator
    def _fit(self, X: np.ndarray) -> None:
        dim = X.shape[1]
        if dim < self.m or dim % self.m != 0:
            raise InvalidPartitionError(
                f"Vector dimension {dim} must be divisible by m={self.m}"
            )
        self.subvector_dim = dim // self.m

        def train_subspace(i: int):
            return self.engine.fit(X[:, self._subspace(i)], self.k, seed=self.seed + i)

        results = BatchManager(self.n_jobs).map(train_subspace, range(self.m))

        self.codebooks = freeze(np.stack([result.centroids for result in results]))
        self.inertia = [result.inertia for result in results]
        logger.debug(
            f"Trained {self.m} codebooks of {self.k} centroids "
            f"(iterations: {[result.n_iter for result in results]})"
        )

    def _nearest(self, i: int, subvectors: np.ndarray) -> np.ndarray:
        distances = self.metric.pairwise(subvectors, self.codebooks[i], p=self.p)
        return np.argmin(distances, axis=1)

    def _quantize(self, x: np.ndarray) -> np.ndarray:
        codes = np.empty(self.m, dtype=code_dtype(self.k))
        for i in range(self.m):
            codes[i] = self._nearest(i, x[np.newaxis, self._subspace(i)])[0]
        return codes

    def _quantize_batch(self, X: np.ndarray) -> np.ndarray:
        columns = BatchManager(self.n_jobs).map(
            lambda i: self._nearest(i, X[:, self._subspace(i)]), range(self.m)
        )
        return np.column_stack(columns).astype(code_dtype(self.k))

    def _dequantize(self, code: Any) -> np.ndarray:
        indices = validate_codes(code, self.m, self.k)
        return np.concatenate([self.codebooks[i][indices[i]] for i in range(self.m)])

    def _dequantize_batch(self, codes: List[Any]) -> np.ndarray:
        indices = np.stack([validate_codes(code, self.m, self.k) for code in codes])
        reconstructed = np.empty((indices.shape[0], self.dim), dtype=np.float64)
        for i in range(self.m):
            reconstructed[:, self._subspace(i)] = self.codebooks[i][indices[:, i]]
        return reconstructed

    def reconstruct(self, vectors: Any) -> np.ndarray:
        """Encode and decode a batch of vectors in one call."""
        return self.dequantize_batch(self.quantize_batch(vectors))

    def _code_bits(self) -> float:
        return float(self.m * max(1, math.ceil(math.log2(self.k))))

    def _extra_stats(self) -> Dict[str, Any]:
        return {
            "m": self.m,
            "k": self.k,
            "subvector_dimensions": self.subvector_dim,
            "codebooks_shape": self.codebooks.shape if self.codebooks is not None else None,
            "inertia": list(self.inertia),
        }
