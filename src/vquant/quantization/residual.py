"""
Residual vector quantization (RVQ) implementation for the vquant library.
"""

from typing import Any, Dict, List, Optional, Sequence, Tuple

import numpy as np

from ..exceptions import (
    DimensionMismatchError,
    InvalidHyperparameterError,
    NumericalDegeneracyError,
    ValidationError,
)
from ..utils.logging import get_logger
from ..utils.validation import validate_positive_int
from ..vector import Vector
from .base import Quantizer

logger = get_logger(__name__)


class ResidualQuantizer(Quantizer):
    """
    Residual vector quantization implementation.

    A chain of quantizers where stage ``i`` is trained on what stages
    ``0..i-1`` failed to reconstruct. An encoding is the tuple of the stage
    encodings and its reconstruction is the sum of the stage reconstructions.

    Config keys:
        stages: List of ``{"type": <quantizer type>, "config": {...}}``
        n_stages, k: Shorthand for ``n_stages`` full-dimension k-means stages
            with ``k`` centroids each (``max_iters``, ``metric``, ``seed`` are
            passed through; stage ``i`` uses ``seed + i``)
        epsilon: Stop adding stages once the mean residual norm is below
            this value (default 0.0, never stop early)
    """

    quantizer_type = "residual"

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        """Initialize residual quantizer."""
        super().__init__(config)
        self.epsilon = float(self.config.get("epsilon", 0.0))
        if self.epsilon < 0:
            raise InvalidHyperparameterError("epsilon must be non-negative")

        self.stage_definitions = self._stage_definitions()
        # Building the stages up front surfaces config errors before training
        self.stages: List[Quantizer] = [
            self._build_stage(definition) for definition in self.stage_definitions
        ]
        self.residual_norms: List[float] = []

    def _stage_definitions(self) -> List[Dict[str, Any]]:
        if "stages" in self.config:
            definitions = self.config["stages"]
            if not isinstance(definitions, (list, tuple)):
                raise InvalidHyperparameterError("stages must be a list of stage definitions")
        elif "n_stages" in self.config:
            n_stages = validate_positive_int("n_stages", self.config["n_stages"])
            seed = int(self.config.get("seed", 42))
            definitions = [
                {
                    "type": "product",
                    "config": {
                        "m": 1,
                        "k": self.config.get("k", 256),
                        "max_iters": self.config.get("max_iters", 100),
                        "metric": self.metric,
                        "p": self.p,
                        "seed": seed + stage,
                        "n_jobs": self.n_jobs,
                    },
                }
                for stage in range(n_stages)
            ]
        else:
            raise InvalidHyperparameterError("Residual quantizer needs 'stages' or 'n_stages'")

        if len(definitions) == 0:
            raise InvalidHyperparameterError("Residual quantizer needs at least one stage")
        return list(definitions)

    @staticmethod
    def _build_stage(definition: Any) -> Quantizer:
        from ..factory import create_quantizer

        if not isinstance(definition, dict) or "type" not in definition:
            raise InvalidHyperparameterError(
                f"Stage definition must be a dict with a 'type' key, got {definition!r}"
            )
        return create_quantizer(definition["type"], definition.get("config", {}))

    @property
    def n_stages(self) -> int:
        return len(self.stages)

    def _fit(self, X: np.ndarray) -> None:
        residuals = X
        trained: List[Quantizer] = []
        norms: List[float] = []

        # A failed fit leaves self.stages and residual_norms untouched
        stages = [self._build_stage(definition) for definition in self.stage_definitions]
        error = float(np.mean(X**2))
        for index, stage in enumerate(stages):
            try:
                stage.fit(residuals)
                residuals = residuals - stage.dequantize_batch(stage.quantize_batch(residuals))
                error = self._check_error(index, error, float(np.mean(residuals**2)))
            except Exception as e:
                logger.error(f"RVQ stage {index} ({stage.quantizer_type}) failed: {str(e)}")
                raise

            trained.append(stage)
            norm = float(np.mean(np.linalg.norm(residuals, axis=1)))
            norms.append(norm)
            logger.debug(f"RVQ stage {index}: mean residual norm {norm:.6g}")

            if norm < self.epsilon:
                logger.debug(f"RVQ stopped after {len(trained)} stages (epsilon {self.epsilon})")
                break

        self.stages = trained
        self.residual_norms = norms

    @staticmethod
    def _check_error(index: int, before: float, after: float) -> float:
        """Reject a stage that makes the training reconstruction worse."""
        if after > before * (1.0 + 1e-9) + 1e-12:
            raise NumericalDegeneracyError(
                f"Stage {index} raised the training reconstruction error "
                f"from {before:.6g} to {after:.6g}"
            )
        return after

    def _quantize(self, x: np.ndarray) -> Tuple[Any, ...]:
        residual = x
        codes = []
        for stage in self.stages:
            code = stage.quantize(residual)
            codes.append(code)
            residual = residual - stage.dequantize(code).data
        return tuple(codes)

    def _quantize_batch(self, X: np.ndarray) -> List[Tuple[Any, ...]]:
        residuals = X
        stage_codes = []
        for stage in self.stages:
            codes = stage.quantize_batch(residuals)
            stage_codes.append(list(codes))
            residuals = residuals - stage.dequantize_batch(codes)
        return list(zip(*stage_codes))

    def _stage_count(self, n_stages: Optional[int]) -> int:
        if n_stages is None:
            return len(self.stages)
        n_stages = validate_positive_int("n_stages", n_stages)
        if n_stages > len(self.stages):
            raise ValidationError(
                f"n_stages={n_stages} exceeds the {len(self.stages)} trained stages"
            )
        return n_stages

    def _split(self, code: Any) -> Sequence[Any]:
        if not isinstance(code, (tuple, list)):
            raise ValidationError("RVQ encoding must be a tuple of stage encodings")
        if len(code) != len(self.stages):
            raise DimensionMismatchError(len(self.stages), len(code), "RVQ stage encodings")
        return code

    def _reconstruct(self, code: Any, n_stages: int) -> np.ndarray:
        parts = self._split(code)
        total = np.zeros(self.dim, dtype=np.float64)
        for stage, part in zip(self.stages[:n_stages], parts):
            total = total + stage.dequantize(part).data
        return total

    def _dequantize(self, code: Any) -> np.ndarray:
        return self._reconstruct(code, len(self.stages))

    def dequantize(self, encoding: Any, n_stages: Optional[int] = None) -> Vector:
        """
        Reconstruct a vector from its stage encodings.

        Args:
            encoding: Tuple of stage encodings from ``quantize``
            n_stages: Sum only the first ``n_stages`` stages (default all)

        Returns:
            Reconstructed vector
        """
        self._check_trained()
        count = self._stage_count(n_stages)
        with self._wrap_errors("dequantize"):
            return Vector(self._reconstruct(encoding, count))

    def _dequantize_batch(self, codes: List[Any]) -> np.ndarray:
        per_stage = list(zip(*[self._split(code) for code in codes]))
        total = np.zeros((len(codes), self.dim), dtype=np.float64)
        for stage, stage_codes in zip(self.stages, per_stage):
            total += stage.dequantize_batch(list(stage_codes))
        return total

    def _code_bits(self) -> float:
        return float(sum(stage._code_bits() for stage in self.stages))

    def _extra_stats(self) -> Dict[str, Any]:
        return {
            "n_stages": len(self.stages),
            "stage_types": [stage.quantizer_type for stage in self.stages],
            "residual_norms": list(self.residual_norms),
            "epsilon": self.epsilon,
        }
