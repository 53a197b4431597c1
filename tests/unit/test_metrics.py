"""Tests for forecast accuracy measures."""

import numpy as np
import pytest

from forecastxgb.evaluation.metrics import MetricsCalculator, naive_scale


@pytest.fixture
def calc():
    return MetricsCalculator()


def test_forecast_accuracy_values(calc):
    actual = np.array([10.0, 20.0])
    forecast = np.array([12.0, 18.0])
    insample = np.array([1.0, 2.0, 4.0, 7.0])
    acc = calc.calculate_forecast_accuracy(actual, forecast, insample, frequency=1)
    assert acc["me"] == pytest.approx(0.0)
    assert acc["mae"] == pytest.approx(2.0)
    assert acc["rmse"] == pytest.approx(2.0)
    assert acc["mape"] == pytest.approx(15.0)
    assert acc["mpe"] == pytest.approx(-5.0)
    # naive in-sample MAE is (1 + 2 + 3) / 3
    assert acc["mase"] == pytest.approx(1.0)


def test_seasonal_naive_scale():
    insample = np.tile([1.0, 5.0, 3.0, 7.0], 3) + np.repeat([0.0, 1.0, 2.0], 4)
    assert naive_scale(insample, 4) == pytest.approx(1.0)


def test_scale_falls_back_to_lag_one_for_short_series():
    assert naive_scale(np.array([1.0, 3.0, 6.0]), 12) == pytest.approx(2.5)


def test_mase_undefined_for_constant_history(calc):
    acc = calc.calculate_forecast_accuracy([1.0], [2.0], insample=np.ones(5))
    assert np.isnan(acc["mase"])


def test_mape_ignores_zero_actuals(calc):
    acc = calc.calculate_forecast_accuracy([0.0, 10.0], [1.0, 11.0])
    assert acc["mape"] == pytest.approx(10.0)


def test_length_mismatch(calc):
    with pytest.raises(ValueError):
        calc.calculate_forecast_accuracy([1.0, 2.0], [1.0])


def test_regression_metrics(calc):
    metrics = calc.calculate_regression_metrics([1.0, 2.0, 3.0], [1.0, 2.0, 4.0])
    assert metrics["mae"] == pytest.approx(1 / 3)
    assert metrics["mse"] == pytest.approx(1 / 3)


def test_get_all_metrics(calc):
    result = calc.get_all_metrics([1.0, 2.0], [1.0, 2.0], task_type="forecast",
                                  insample=np.arange(5.0))
    assert result.metric_type == "forecast"
    assert result.metrics["mase"] == 0.0
    assert result.to_dict()["metadata"]["n_samples"] == 2
    with pytest.raises(ValueError):
        calc.get_all_metrics([1.0], [1.0], task_type="classification")
