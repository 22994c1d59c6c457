"""
Custom exceptions for the vquant vector quantization library.
"""


class VQError(Exception):
    """Base exception class for all vquant-related errors."""
    pass


class ValidationError(VQError):
    """Exception raised for invalid input vectors or encodings."""
    pass


class DimensionMismatchError(ValidationError):
    """Exception raised when two operands disagree on their dimension."""

    def __init__(self, expected: int, found: int, context: str = ""):
        self.expected = expected
        self.found = found
        message = f"Dimension mismatch: expected {expected}, got {found}"
        if context:
            message = f"{message} ({context})"
        super().__init__(message)


class ConfigurationError(VQError):
    """Exception raised for configuration errors."""
    pass


class InvalidHyperparameterError(ConfigurationError):
    """Exception raised for out-of-range or inconsistent hyperparameters."""
    pass


class InvalidPartitionError(ConfigurationError):
    """Exception raised when a dimension cannot be split into equal subspaces."""
    pass


class InsufficientDataError(VQError):
    """Exception raised when there are too few training vectors for a fit."""
    pass


class QuantizationError(VQError):
    """Exception raised for quantization-related errors."""
    pass


class NumericalDegeneracyError(QuantizationError):
    """Exception raised when an optimization produces non-finite or ill-conditioned results."""
    pass
