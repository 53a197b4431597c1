"""Plots for forecasts and benchmark results."""

from typing import Any, Optional
import logging

import matplotlib.pyplot as plt
import numpy as np
import seaborn as sns

from forecastxgb.evaluation.benchmark import BenchmarkResults
from forecastxgb.models.xgbar import Forecast

logger = logging.getLogger(__name__)


def plot_forecast(
    forecast: Forecast,
    actual: Optional[np.ndarray] = None,
    show_fitted: bool = False,
    ax=None,
) -> Any:
    """
    Plot the history, the point forecasts and optionally the held-out values.

    Args:
        forecast: Result of ``FittedXGBAR.forecast``
        actual: Observed values over the forecast horizon
        show_fitted: Overlay the one-step in-sample fit
        ax: Matplotlib axes (optional)

    Returns:
        Matplotlib axes object
    """
    if ax is None:
        fig, ax = plt.subplots(figsize=(12, 4))

    x = forecast.x
    ax.plot(x.positions(), x.values, color="black", label=x.name)
    if show_fitted:
        ax.plot(x.positions(), forecast.fitted, color="tab:orange", alpha=0.7, label="Fitted")
    ax.plot(forecast.mean.positions(), forecast.mean.values, color="tab:blue",
            linewidth=2, label="Forecast")
    if actual is not None:
        actual = np.asarray(actual, dtype=float)[: forecast.h]
        ax.plot(forecast.mean.positions()[: len(actual)], actual, color="black",
                linestyle="--", label="Actual")

    ax.set_title(f"Forecasts from {forecast.method}")
    ax.set_xlabel("Period")
    ax.legend(loc="best")
    ax.grid(True, alpha=0.3)
    return ax


def plot_benchmark_results(
    results: BenchmarkResults,
    metric: str = "mase",
    ax=None,
) -> Any:
    """
    Boxplot of per-series accuracy by method, ordered by mean score.

    Args:
        results: Output of ``BenchmarkRunner.run``
        metric: 'mase' or 'mape'
        ax: Matplotlib axes (optional)

    Returns:
        Matplotlib axes object
    """
    table = results.table(metric)
    if table.empty:
        raise ValueError("No completed series to plot")

    long = table.melt(var_name="method", value_name=metric).dropna()
    order = table.mean().sort_values().index.tolist()

    if ax is None:
        fig, ax = plt.subplots(figsize=(12, 5))

    sns.boxplot(data=long, x="method", y=metric, order=order, ax=ax, showfliers=False)
    sns.pointplot(data=long, x="method", y=metric, order=order, ax=ax,
                  color="tab:red", errorbar=None, linestyle="none", markers="D")
    ax.set_yscale("log")
    ax.set_title(f"{metric.upper()} by method ({results.n_completed} series)")
    ax.set_xlabel("Method")
    ax.set_ylabel(f"{metric.upper()} (log scale)")
    ax.grid(True, axis="y", linestyle=":")
    return ax
