"""
Utility modules for the vquant library.

This module provides validation, logging, the batch worker pool and
small numeric helpers shared by the quantizers.
"""

from .batch_manager import BatchManager, resolve_workers
from .helpers import mean_squared_error, reconstruction_error, timing_decorator
from .logging import get_logger, log_training, setup_logging
from .validation import as_vector_array, as_vectors_array, validate_config

__all__ = [
    # Validation
    "as_vector_array",
    "as_vectors_array",
    "validate_config",
    # Logging
    "get_logger",
    "setup_logging",
    "log_training",
    # Helpers
    "mean_squared_error",
    "reconstruction_error",
    "timing_decorator",
    # Batch management
    "BatchManager",
    "resolve_workers",
]
