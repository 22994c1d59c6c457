"""
Logging utilities for the vquant library.
"""

import logging
import os
import sys
from pathlib import Path
from typing import Any, Dict, Optional

DEBUG_ENV_VAR = "VQUANT_DEBUG"

_FALSE_VALUES = {"", "0", "false", "no", "off"}


def debug_enabled() -> bool:
    """Return True when the VQUANT_DEBUG environment variable asks for debug output."""
    value = os.environ.get(DEBUG_ENV_VAR)
    if value is None:
        return False
    return value.strip().lower() not in _FALSE_VALUES


def default_level() -> str:
    """Default level name for library loggers."""
    return "DEBUG" if debug_enabled() else "WARNING"


def get_logger(name: str, level: Optional[str] = None) -> logging.Logger:
    """
    Get a logger instance for the given name.

    Args:
        name: Logger name (typically __name__)
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
            Defaults to DEBUG when VQUANT_DEBUG is set, WARNING otherwise.

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)

    # Don't add handlers if they already exist
    if logger.handlers:
        return logger

    if level is None:
        level = default_level()
    numeric_level = getattr(logging, level.upper(), logging.WARNING)
    logger.setLevel(numeric_level)

    formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(numeric_level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    return logger


def setup_logging(config: Optional[Dict[str, Any]] = None) -> None:
    """
    Setup logging configuration for the entire application.

    Args:
        config: Logging configuration dictionary
    """
    if config is None:
        config = {}

    default_config = {
        "level": default_level(),
        "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        "date_format": "%Y-%m-%d %H:%M:%S",
        "log_to_file": False,
        "log_file": "vquant.log",
        "max_file_size": 10 * 1024 * 1024,  # 10MB
        "backup_count": 5,
    }

    config = {**default_config, **config}

    level = getattr(logging, config["level"].upper(), logging.INFO)

    formatter = logging.Formatter(config["format"], datefmt=config["date_format"])

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if config["log_to_file"]:
        log_file = Path(config["log_file"])
        log_file.parent.mkdir(parents=True, exist_ok=True)

        from logging.handlers import RotatingFileHandler

        file_handler = RotatingFileHandler(
            log_file,
            maxBytes=config["max_file_size"],
            backupCount=config["backup_count"],
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)


def log_training(quantizer_type: str, vector_count: int, vector_dim: int, **kwargs) -> None:
    """
    Log a completed training run.

    Args:
        quantizer_type: Name of the quantizer that was trained
        vector_count: Number of training vectors
        vector_dim: Dimension of the training vectors
        **kwargs: Additional training metrics
    """
    logger = get_logger("vquant.training")

    metrics = {
        "quantizer_type": quantizer_type,
        "vector_count": vector_count,
        "vector_dim": vector_dim,
        **kwargs,
    }

    logger.info(f"Training finished: {metrics}")
