"""Point forecast accuracy measures."""

from dataclasses import dataclass
from typing import Any, Dict, Optional
import logging

import numpy as np
from sklearn.metrics import (
    mean_squared_error,
    mean_absolute_error,
    r2_score,
)

logger = logging.getLogger(__name__)


@dataclass
class MetricsResult:
    """Container for evaluation metrics."""
    metrics: Dict[str, float]
    metric_type: str
    metadata: Dict[str, Any]

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "metrics": self.metrics,
            "metric_type": self.metric_type,
            "metadata": self.metadata,
        }


def naive_scale(insample: np.ndarray, frequency: int = 1) -> float:
    """
    In-sample MAE of the seasonal naive forecast.

    Uses lag ``frequency``, falling back to lag 1 for non-seasonal or
    too-short series. NaN when the scale cannot be computed.
    """
    insample = np.asarray(insample, dtype=float)
    lag = frequency if frequency > 1 and len(insample) > frequency else 1
    if len(insample) <= lag:
        return float("nan")
    return float(np.mean(np.abs(insample[lag:] - insample[:-lag])))


class MetricsCalculator:
    """Calculate accuracy metrics for fitted values and forecasts."""

    def calculate_regression_metrics(
        self,
        y_true: np.ndarray,
        y_pred: np.ndarray,
    ) -> Dict[str, float]:
        """
        Calculate regression metrics.

        Args:
            y_true: True values
            y_pred: Predicted values

        Returns:
            Dictionary of metric names to values
        """
        y_true = np.asarray(y_true, dtype=float)
        y_pred = np.asarray(y_pred, dtype=float)

        metrics: Dict[str, float] = {}

        metrics["mse"] = float(mean_squared_error(y_true, y_pred))
        metrics["rmse"] = float(np.sqrt(metrics["mse"]))
        metrics["mae"] = float(mean_absolute_error(y_true, y_pred))
        metrics["r2"] = float(r2_score(y_true, y_pred)) if len(y_true) > 1 else np.nan

        # Avoid division by zero
        mask = y_true != 0
        if mask.any():
            mape = np.mean(np.abs((y_true[mask] - y_pred[mask]) / y_true[mask])) * 100
            metrics["mape"] = float(mape)
        else:
            metrics["mape"] = np.nan

        return metrics

    def calculate_forecast_accuracy(
        self,
        actual: np.ndarray,
        forecast: np.ndarray,
        insample: Optional[np.ndarray] = None,
        frequency: int = 1,
    ) -> Dict[str, float]:
        """
        Out-of-sample accuracy of a point forecast.

        Args:
            actual: Observed test values
            forecast: Point forecasts, same length as actual
            insample: Training series, needed for MASE
            frequency: Seasonal period used by the MASE scale

        Returns:
            Dictionary with me, rmse, mae, mpe, mape and mase
        """
        actual = np.asarray(actual, dtype=float)
        forecast = np.asarray(forecast, dtype=float)
        if actual.shape != forecast.shape:
            raise ValueError(
                f"actual and forecast lengths differ: {actual.shape} vs {forecast.shape}"
            )
        if actual.size == 0:
            raise ValueError("Cannot score an empty forecast")

        error = actual - forecast
        metrics: Dict[str, float] = {
            "me": float(np.mean(error)),
            "rmse": float(np.sqrt(np.mean(error ** 2))),
            "mae": float(np.mean(np.abs(error))),
        }

        mask = actual != 0
        if mask.any():
            pe = error[mask] / actual[mask] * 100
            metrics["mpe"] = float(np.mean(pe))
            metrics["mape"] = float(np.mean(np.abs(pe)))
        else:
            metrics["mpe"] = np.nan
            metrics["mape"] = np.nan

        scale = naive_scale(insample, frequency) if insample is not None else float("nan")
        if np.isfinite(scale) and scale > 0:
            metrics["mase"] = metrics["mae"] / scale
        else:
            if insample is not None:
                logger.warning("MASE undefined: in-sample naive errors are all zero")
            metrics["mase"] = np.nan

        return metrics

    def get_all_metrics(
        self,
        y_true: np.ndarray,
        y_pred: np.ndarray,
        task_type: str = "forecast",
        insample: Optional[np.ndarray] = None,
        frequency: int = 1,
    ) -> MetricsResult:
        """
        Calculate all relevant metrics for a given task type.

        Args:
            y_true: True values
            y_pred: Predicted values
            task_type: 'forecast' or 'regression'
            insample: Training series (forecast only)
            frequency: Seasonal period (forecast only)
        """
        if task_type == "forecast":
            metrics = self.calculate_forecast_accuracy(y_true, y_pred, insample, frequency)
        elif task_type == "regression":
            metrics = self.calculate_regression_metrics(y_true, y_pred)
        else:
            raise ValueError(f"Unknown task type: {task_type}")

        return MetricsResult(
            metrics=metrics,
            metric_type=task_type,
            metadata={"n_samples": len(y_true)},
        )
