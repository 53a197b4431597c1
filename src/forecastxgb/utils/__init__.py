"""Utility functions for configuration, logging, and error handling."""

from forecastxgb.utils.error_handling import (
    ForecastXGBError,
    InvalidConfigurationError,
    InsufficientDataError,
    MissingRegressorError,
    TrainingError,
    PredictionError,
    RecoveryContext,
)
from forecastxgb.utils.logging_config import setup_logging, get_logger

__all__ = [
    "ForecastXGBError",
    "InvalidConfigurationError",
    "InsufficientDataError",
    "MissingRegressorError",
    "TrainingError",
    "PredictionError",
    "RecoveryContext",
    "setup_logging",
    "get_logger",
]
