"""Pytest configuration and shared fixtures."""

import pytest
import pandas as pd
import numpy as np

from forecastxgb.data.structs import TimeSeries
from forecastxgb.models.base_model import BaseModel
from forecastxgb.models.config import CVConfig, XGBARConfig


class LastLagModel(BaseModel):
    """Predicts the first lag of the response, whatever it was trained on."""

    def __init__(self, column: str = "y_lag1", **kwargs):
        super().__init__(**kwargs)
        self.column = column
        self.fit_calls = 0

    @property
    def model_type(self) -> str:
        return "last_lag"

    def fit(self, X, y, cv_config=None, **kwargs):
        self.feature_names = X.columns.tolist()
        self.fit_calls += 1
        self.is_fitted = True
        return self

    def predict(self, X):
        return X[self.column].to_numpy(dtype=float)


@pytest.fixture
def last_lag_factory():
    """Model factory returning LastLagModel instances."""
    return lambda cfg: LastLagModel()


@pytest.fixture
def monthly_sine():
    """Four years of a monthly sine wave."""
    t = np.arange(48)
    return TimeSeries(10 * np.sin(2 * np.pi * t / 12), frequency=12)


@pytest.fixture
def seasonal_positive():
    """Trend-free multiplicative seasonal series, strictly positive."""
    pattern = np.array([0.8, 0.9, 1.0, 1.1, 1.2, 1.0, 0.9, 1.0, 1.1, 1.0, 1.05, 0.95])
    return TimeSeries(100 * np.tile(pattern, 4), frequency=12)


@pytest.fixture
def trending_series():
    """Noisy linear trend."""
    rng = np.random.default_rng(42)
    return TimeSeries(5.0 + 0.8 * np.arange(60) + rng.normal(0, 0.5, 60), frequency=1)


@pytest.fixture
def regressor_frame():
    """Two regressor columns for 40 observations."""
    rng = np.random.default_rng(0)
    return pd.DataFrame({
        "price": rng.uniform(1, 2, 40),
        "promo": (rng.uniform(0, 1, 40) > 0.7).astype(float),
    })


@pytest.fixture
def fast_config():
    """Cheap configuration for tests that fit real boosters."""
    return XGBARConfig(cv=CVConfig(nrounds=10, nrounds_method="manual"))
