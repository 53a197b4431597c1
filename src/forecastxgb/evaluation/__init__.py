"""Accuracy metrics, the competition benchmark and plotting."""

from forecastxgb.evaluation.metrics import MetricsCalculator, MetricsResult, naive_scale
from forecastxgb.evaluation.benchmark import (
    DEFAULT_METHODS,
    BenchmarkResults,
    BenchmarkRunner,
    FailureMarker,
    SeriesOutcome,
    ensemble_names,
    evaluate_series,
)
from forecastxgb.evaluation.plots import plot_benchmark_results, plot_forecast

__all__ = [
    "MetricsCalculator",
    "MetricsResult",
    "naive_scale",
    "DEFAULT_METHODS",
    "BenchmarkResults",
    "BenchmarkRunner",
    "FailureMarker",
    "SeriesOutcome",
    "ensemble_names",
    "evaluate_series",
    "plot_benchmark_results",
    "plot_forecast",
]
