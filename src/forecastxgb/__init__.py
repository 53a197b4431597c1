"""Autoregressive gradient boosting for time series forecasting."""

from forecastxgb.data.structs import RegressorSet, TimeSeries
from forecastxgb.models.config import CVConfig, XGBARConfig
from forecastxgb.models.xgbar import Forecast, FittedXGBAR, XGBARForecaster, xgbar
from forecastxgb.utils.error_handling import (
    ForecastXGBError,
    InsufficientDataError,
    InvalidConfigurationError,
    MissingRegressorError,
    PredictionError,
    TrainingError,
)

__version__ = "0.1.0"

__all__ = [
    "TimeSeries",
    "RegressorSet",
    "CVConfig",
    "XGBARConfig",
    "Forecast",
    "FittedXGBAR",
    "XGBARForecaster",
    "xgbar",
    "ForecastXGBError",
    "InsufficientDataError",
    "InvalidConfigurationError",
    "MissingRegressorError",
    "PredictionError",
    "TrainingError",
]
