"""Tests for lagged design-matrix construction."""

import logging

import numpy as np
import pandas as pd
import pytest
from hypothesis import given, settings, strategies as st

from forecastxgb.data.structs import RegressorSet
from forecastxgb.features.lags import LagMatrixBuilder, default_maxlag, select_maxlag
from forecastxgb.features.seasonal import SeasonalMethod, SeasonalState
from forecastxgb.utils.error_handling import InvalidConfigurationError


def test_simple_series_rows():
    """[1..10] with two lags gives 8 rows."""
    X, y = LagMatrixBuilder(2).build(np.arange(1.0, 11.0))
    assert X.shape == (8, 2)
    assert list(X.columns) == ["y_lag1", "y_lag2"]
    assert y.iloc[0] == 3.0
    assert X.iloc[0].tolist() == [2.0, 1.0]
    assert y.iloc[7] == 10.0
    assert X.iloc[7].tolist() == [9.0, 8.0]


def test_monthly_dummies_layout(monthly_sine):
    """48 monthly values, 12 lags and dummies: 36 rows, 12 + 11 columns."""
    builder = LagMatrixBuilder(12, seasonal=SeasonalState(SeasonalMethod.DUMMIES, 12))
    X, y = builder.build(monthly_sine.values)
    assert X.shape == (36, 23)
    assert len(y) == 36
    assert list(X.columns) == builder.feature_names
    # row 0 targets period 12, which is the reference season
    assert X.filter(like="season").iloc[0].sum() == 0


@settings(max_examples=50, deadline=None)
@given(
    n=st.integers(min_value=3, max_value=60),
    lag_frac=st.floats(min_value=0.0, max_value=0.99),
    n_reg=st.integers(min_value=0, max_value=3),
)
def test_shape_property(n, lag_frac, n_reg):
    L = max(1, min(n - 1, int(lag_frac * n)))
    rng = np.random.default_rng(n)
    regs = None
    names = []
    if n_reg:
        names = [f"r{j}" for j in range(n_reg)]
        regs = RegressorSet(pd.DataFrame(rng.normal(size=(n, n_reg)), columns=names))
    X, y = LagMatrixBuilder(L, regressor_names=names).build(rng.normal(size=n), regs)
    assert X.shape == (n - L, L * (1 + n_reg))
    assert len(y) == n - L


def test_build_is_deterministic(monthly_sine):
    builder = LagMatrixBuilder(5, seasonal=SeasonalState(SeasonalMethod.FOURIER, 12, K=2))
    X1, y1 = builder.build(monthly_sine.values)
    X2, y2 = builder.build(monthly_sine.values)
    pd.testing.assert_frame_equal(X1, X2, check_exact=True)
    pd.testing.assert_series_equal(y1, y2, check_exact=True)


def test_regressor_columns_follow_response(regressor_frame):
    regs = RegressorSet(regressor_frame)
    builder = LagMatrixBuilder(2, regressor_names=regs.names)
    X, _ = builder.build(np.arange(40.0), regs)
    assert list(X.columns) == [
        "y_lag1", "y_lag2", "price_lag1", "price_lag2", "promo_lag1", "promo_lag2"
    ]
    assert X["price_lag1"].iloc[0] == regressor_frame["price"].iloc[1]


def test_build_one_matches_last_row_of_extended_build():
    series = np.arange(1.0, 11.0)
    builder = LagMatrixBuilder(3)
    row = builder.build_one(series)
    X, _ = builder.build(np.append(series, 0.0))
    pd.testing.assert_frame_equal(row, X.iloc[[-1]].reset_index(drop=True))


def test_build_one_seasonal_position():
    builder = LagMatrixBuilder(2, seasonal=SeasonalState(SeasonalMethod.DUMMIES, 4))
    row = builder.build_one(np.arange(6.0), start=0)
    # next index 6 is season 3 of 4
    assert row["season3"].iloc[0] == 1.0


def test_maxlag_not_below_length():
    with pytest.raises(InvalidConfigurationError):
        LagMatrixBuilder(10).build(np.arange(10.0))


def test_regressor_mismatch(regressor_frame):
    builder = LagMatrixBuilder(2, regressor_names=["price"])
    with pytest.raises(InvalidConfigurationError):
        builder.build(np.arange(40.0), RegressorSet(regressor_frame))


def test_default_maxlag():
    assert default_maxlag(1) == 8
    assert default_maxlag(4) == 8
    assert default_maxlag(12) == 24


def test_select_maxlag_explicit():
    assert select_maxlag(20, 1, 5) == 5
    with pytest.raises(InvalidConfigurationError):
        select_maxlag(20, 1, 20)
    with pytest.raises(InvalidConfigurationError):
        select_maxlag(20, 1, 0)


def test_select_maxlag_reduces_default_with_warning(caplog):
    with caplog.at_level(logging.WARNING, logger="forecastxgb.features.lags"):
        maxlag = select_maxlag(30, 12)
    # 30 observations keep 12 + 3 training rows
    assert maxlag == 15
    assert "reducing maxlag" in caplog.text


def test_select_maxlag_too_short():
    with pytest.raises(InvalidConfigurationError):
        select_maxlag(10, 12)
