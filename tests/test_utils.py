"""
Tests for utility modules.
"""

import logging
import threading

import numpy as np
import pytest

from vquant.exceptions import (
    DimensionMismatchError,
    InsufficientDataError,
    InvalidHyperparameterError,
    NumericalDegeneracyError,
    ValidationError,
)
from vquant.quantization import ScalarQuantizer
from vquant.utils import (
    BatchManager,
    as_vector_array,
    as_vectors_array,
    get_logger,
    mean_squared_error,
    reconstruction_error,
    resolve_workers,
    setup_logging,
    validate_config,
)
from vquant.utils.helpers import code_dtype, ensure_finite, freeze
from vquant.utils.logging import debug_enabled, default_level
from vquant.utils.validation import validate_codes, validate_int_range


class TestBatchManager:
    """Test the order-preserving worker pool."""

    def test_map_preserves_order(self):
        manager = BatchManager(max_workers=4)
        assert manager.map(lambda x: x * x, range(50)) == [x * x for x in range(50)]
        stats = manager.get_stats()
        assert stats["processed_items"] == 50
        assert stats["max_workers"] == 4
        assert stats["duration"] >= 0

    def test_single_worker_runs_inline(self):
        seen = set()

        def record(_):
            seen.add(threading.get_ident())

        BatchManager(max_workers=1).map(record, range(5))
        assert seen == {threading.get_ident()}

    def test_map_batches(self):
        manager = BatchManager(max_workers=2, batch_size=3)
        result = manager.map_batches(lambda chunk: [x + 1 for x in chunk], list(range(10)))
        assert result == list(range(1, 11))

    def test_worker_exception_propagates(self):
        def fail(x):
            if x == 3:
                raise RuntimeError("bad item")
            return x

        with pytest.raises(RuntimeError, match="bad item"):
            BatchManager(max_workers=4).map(fail, range(8))

    def test_resolve_workers(self):
        assert resolve_workers(None) == 1
        assert resolve_workers(3) == 3
        assert resolve_workers(-1) >= 1
        with pytest.raises(InvalidHyperparameterError):
            resolve_workers(0)
        with pytest.raises(InvalidHyperparameterError):
            BatchManager(batch_size=0)


class TestValidation:
    """Test input validation helpers."""

    def test_as_vector_array(self):
        array = as_vector_array([1, 2, 3], dim=3)
        assert array.dtype == np.float64
        with pytest.raises(DimensionMismatchError):
            as_vector_array([1, 2, 3], dim=2)
        with pytest.raises(ValidationError):
            as_vector_array([np.inf])
        with pytest.raises(ValidationError):
            as_vector_array(["a"])

    def test_as_vectors_array(self):
        assert as_vectors_array([[1, 2], [3, 4]]).shape == (2, 2)
        with pytest.raises(DimensionMismatchError):
            as_vectors_array([[1, 2], [3]])
        with pytest.raises(InsufficientDataError):
            as_vectors_array(np.zeros((0, 4)))
        with pytest.raises(ValidationError):
            as_vectors_array(np.zeros(4))
        with pytest.raises(DimensionMismatchError):
            as_vectors_array(np.zeros((2, 4)), dim=3)

    def test_validate_config(self):
        assert validate_config({"k": 4}, required_keys=["k"], value_ranges={"k": (1, 8)})
        with pytest.raises(InvalidHyperparameterError):
            validate_config({}, required_keys=["k"])
        with pytest.raises(InvalidHyperparameterError):
            validate_config({"k": 4, "x": 1}, allowed_keys=["k"])
        with pytest.raises(InvalidHyperparameterError):
            validate_config({"k": "4"}, value_types={"k": int})
        with pytest.raises(InvalidHyperparameterError):
            validate_config({"k": 9}, value_ranges={"k": (1, 8)})

    def test_validate_int_range(self):
        assert validate_int_range("depth", 0, 0, 4) == 0
        assert validate_int_range("depth", np.int32(4), 0, 4) == 4
        with pytest.raises(InvalidHyperparameterError):
            validate_int_range("depth", 5, 0, 4)
        with pytest.raises(InvalidHyperparameterError):
            validate_int_range("depth", -1, 0)
        with pytest.raises(InvalidHyperparameterError):
            validate_int_range("depth", 1.0, 0)

    def test_validate_codes(self):
        np.testing.assert_array_equal(validate_codes([1, 2], 2, 4), [1, 2])
        with pytest.raises(DimensionMismatchError):
            validate_codes([1, 2], 3, 4)
        with pytest.raises(ValidationError):
            validate_codes([1, 4], 2, 4)
        with pytest.raises(ValidationError):
            validate_codes([[1, 2]], 2, 4)


class TestHelpers:
    """Test numeric helpers."""

    def test_mean_squared_error(self):
        assert mean_squared_error(np.zeros((2, 2)), np.ones((2, 2))) == 1.0
        with pytest.raises(DimensionMismatchError):
            mean_squared_error(np.zeros((2, 2)), np.zeros((2, 3)))

    def test_reconstruction_error(self):
        quantizer = ScalarQuantizer({"min": 0.0, "max": 1.0, "levels": 2}).fit()
        vectors = np.array([[0.0, 1.0], [0.2, 0.9]])
        assert reconstruction_error(quantizer, vectors) == pytest.approx((0.04 + 0.01) / 4)

    def test_ensure_finite(self):
        array = np.ones(3)
        assert ensure_finite(array, "ones") is array
        with pytest.raises(NumericalDegeneracyError):
            ensure_finite(np.array([1.0, np.nan]), "values")

    def test_freeze(self):
        array = freeze(np.zeros(3))
        with pytest.raises(ValueError):
            array[0] = 1.0

    def test_code_dtype(self):
        assert code_dtype(256) == np.uint8
        assert code_dtype(257) == np.uint16
        assert code_dtype(65536) == np.uint16
        assert code_dtype(65537) == np.uint32


class TestLogging:
    """Test logging configuration."""

    def test_debug_env_var(self, monkeypatch):
        monkeypatch.delenv("VQUANT_DEBUG", raising=False)
        assert not debug_enabled()
        assert default_level() == "WARNING"

        monkeypatch.setenv("VQUANT_DEBUG", "1")
        assert debug_enabled()
        assert default_level() == "DEBUG"

        for value in ("0", "false", "No", "off", ""):
            monkeypatch.setenv("VQUANT_DEBUG", value)
            assert not debug_enabled()

    def test_get_logger(self):
        logger = get_logger("vquant.tests.example", level="INFO")
        assert logger.level == logging.INFO
        assert len(logger.handlers) == 1
        # A second call reuses the configured logger
        assert get_logger("vquant.tests.example") is logger
        assert len(logger.handlers) == 1

    def test_setup_logging_to_file(self, tmp_path):
        root = logging.getLogger()
        saved_handlers = root.handlers[:]
        saved_level = root.level
        log_file = tmp_path / "logs" / "vquant.log"
        try:
            setup_logging({"level": "INFO", "log_to_file": True, "log_file": str(log_file)})
            assert root.level == logging.INFO
            assert len(root.handlers) == 2
            logging.getLogger("vquant.tests.file").info("hello")
            for handler in root.handlers:
                handler.flush()
            assert "hello" in log_file.read_text()
        finally:
            for handler in root.handlers:
                handler.close()
            root.handlers[:] = saved_handlers
            root.setLevel(saved_level)
