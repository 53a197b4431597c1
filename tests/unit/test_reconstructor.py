"""Tests for the iterative forecast loop."""

import numpy as np
import pandas as pd
import pytest

from forecastxgb.data.structs import RegressorSet
from forecastxgb.features.lags import LagMatrixBuilder
from forecastxgb.features.seasonal import SeasonalMethod, SeasonalState
from forecastxgb.features.transforms import PowerTransform
from forecastxgb.features.trend import TrendState
from forecastxgb.models.reconstructor import ForecastReconstructor
from forecastxgb.utils.error_handling import (
    InvalidConfigurationError,
    MissingRegressorError,
)

from tests.conftest import LastLagModel


class SumModel(LastLagModel):
    """Predicts the sum of every feature in the row."""

    def predict(self, X):
        return X.sum(axis=1).to_numpy(dtype=float)


def test_last_lag_forecast_is_flat():
    reconstructor = ForecastReconstructor(LagMatrixBuilder(1), LastLagModel())
    np.testing.assert_array_equal(
        reconstructor.forecast(np.array([1.0, 2.0, 3.0, 4.0, 5.0]), 3), [5.0, 5.0, 5.0]
    )


def test_state_machine_steps():
    reconstructor = ForecastReconstructor(LagMatrixBuilder(2), SumModel())
    state = reconstructor.initial_state(np.array([1.0, 1.0]), 3)
    assert state.step == 1 and not state.is_terminal
    state = reconstructor.advance(state)
    assert state.forecasts.tolist() == [2.0]
    state = reconstructor.advance(reconstructor.advance(state))
    assert state.is_terminal
    # Fibonacci
    assert state.forecasts.tolist() == [2.0, 3.0, 5.0]
    assert reconstructor.advance(state) is state


def test_predictions_feed_later_lags():
    path = ForecastReconstructor(LagMatrixBuilder(2), SumModel()).run(np.array([1.0, 2.0]), 4)
    np.testing.assert_array_equal(path, [3.0, 5.0, 8.0, 13.0])


def test_reconstruct_inverts_in_reverse_order():
    seasonal = SeasonalState(SeasonalMethod.DECOMPOSE, 2, indices=(0.5, 2.0))
    reconstructor = ForecastReconstructor(
        LagMatrixBuilder(1),
        LastLagModel(),
        transform=PowerTransform(0.0),
        seasonal=seasonal,
        trend=TrendState(order=1, seed=(1.0,)),
        start=0,
    )
    path = np.array([1.0, 1.0])
    # trend: [2, 3]; positions 4 and 5 get indices 0.5 and 2.0; then expm1
    expected = np.expm1(np.array([2.0 * 0.5, 3.0 * 2.0]))
    np.testing.assert_allclose(reconstructor.reconstruct(path, n_observed=4), expected)


def test_future_regressors_appended_per_step():
    builder = LagMatrixBuilder(1, regressor_names=["x"])
    reconstructor = ForecastReconstructor(builder, SumModel())
    history = np.array([0.0, 0.0])
    past = RegressorSet(pd.DataFrame({"x": [0.0, 1.0]}))
    future = RegressorSet(pd.DataFrame({"x": [10.0, 20.0, 30.0]}))
    # y_t = y_{t-1} + x_{t-1}
    path = reconstructor.run(history, 3, past, future)
    np.testing.assert_array_equal(path, [1.0, 11.0, 31.0])


def test_missing_future_regressors():
    builder = LagMatrixBuilder(1, regressor_names=["x"])
    reconstructor = ForecastReconstructor(builder, SumModel())
    past = RegressorSet(pd.DataFrame({"x": [0.0, 1.0]}))
    with pytest.raises(MissingRegressorError):
        reconstructor.run(np.zeros(2), 5, past, RegressorSet(pd.DataFrame({"x": [1.0, 2.0, 3.0]})))
    with pytest.raises(MissingRegressorError):
        reconstructor.run(np.zeros(2), 2, past, None)


def test_regressors_for_model_without_them():
    reconstructor = ForecastReconstructor(LagMatrixBuilder(1), LastLagModel())
    with pytest.raises(InvalidConfigurationError):
        reconstructor.run(np.zeros(3), 1, None, RegressorSet(np.ones(1)))


@pytest.mark.parametrize("h", [0, -2, 1.5])
def test_invalid_horizon(h):
    reconstructor = ForecastReconstructor(LagMatrixBuilder(1), LastLagModel())
    with pytest.raises(InvalidConfigurationError):
        reconstructor.initial_state(np.zeros(3), h)
