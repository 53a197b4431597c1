"""Tests for the modulus power transform."""

import logging

import numpy as np
import pytest
from hypothesis import given, settings, strategies as st
from hypothesis.extra.numpy import arrays

from forecastxgb.features.transforms import (
    PowerTransform,
    estimate_lambda,
    inverse_modulus_transform,
    modulus_transform,
)
from forecastxgb.utils.error_handling import InvalidConfigurationError

finite_series = arrays(
    dtype=float,
    shape=st.integers(min_value=1, max_value=50),
    elements=st.floats(min_value=-1e4, max_value=1e4, allow_nan=False, allow_infinity=False),
)


@settings(max_examples=100, deadline=None)
@given(values=finite_series, lam=st.floats(min_value=0.05, max_value=3.0))
def test_transform_round_trip(values, lam):
    """Inverting the transform recovers the series."""
    restored = inverse_modulus_transform(modulus_transform(values, lam), lam)
    np.testing.assert_allclose(restored, values, rtol=1e-6, atol=1e-6)


# Negative exponents squeeze large magnitudes towards the bound -1/lam, so keep
# the magnitudes where the squeezed values still resolve in double precision.
moderate_series = arrays(
    dtype=float,
    shape=st.integers(min_value=1, max_value=50),
    elements=st.floats(min_value=-1e3, max_value=1e3, allow_nan=False, allow_infinity=False),
)


@settings(max_examples=100, deadline=None)
@given(values=moderate_series, lam=st.floats(min_value=-2.0, max_value=-0.05))
def test_negative_lambda_round_trip(values, lam):
    transform = PowerTransform(lam)
    np.testing.assert_allclose(transform.invert(transform.apply(values)), values, rtol=1e-6, atol=1e-6)


@pytest.mark.parametrize("lam", [-2.0, -0.5, 3.0])
def test_round_trip_outside_unit_interval(lam):
    values = np.array([-500.0, -3.0, 0.0, 0.2, 7.0, 1e3])
    restored = inverse_modulus_transform(modulus_transform(values, lam), lam)
    np.testing.assert_allclose(restored, values, rtol=1e-6, atol=1e-6)


def test_negative_lambda_out_of_range_is_nan_with_warning(caplog):
    transform = PowerTransform(-0.5)
    # |z| must stay below 2 for lam = -0.5
    z = np.array([1.0, 2.0, -2.5])
    with caplog.at_level(logging.WARNING, logger="forecastxgb.features.transforms"):
        restored = transform.invert(z)
    assert restored[0] == pytest.approx(3.0)
    assert np.isnan(restored[1:]).all()
    assert "outside the range" in caplog.text


@settings(max_examples=50, deadline=None)
@given(values=finite_series)
def test_log_branch_round_trip(values):
    restored = inverse_modulus_transform(modulus_transform(values, 0.0), 0.0)
    np.testing.assert_allclose(restored, values, rtol=1e-6, atol=1e-6)


def test_lambda_one_is_identity():
    values = np.array([-3.0, 0.0, 2.5, 100.0])
    np.testing.assert_array_equal(modulus_transform(values, 1.0), values)
    assert PowerTransform(1.0).is_identity


def test_transform_preserves_sign_and_zero():
    values = np.array([-10.0, 0.0, 10.0])
    z = modulus_transform(values, 0.5)
    assert z[0] < 0 and z[1] == 0 and z[2] > 0
    assert z[0] == pytest.approx(-z[2])


def test_fit_auto_estimates_lambda():
    rng = np.random.default_rng(1)
    values = np.exp(rng.normal(3, 1, 200))
    transform = PowerTransform.fit(values, "auto")
    assert transform.lam == pytest.approx(estimate_lambda(values))
    assert transform.lam < 1


def test_constant_series_keeps_identity():
    assert estimate_lambda(np.full(10, 4.0)) == 1.0


@pytest.mark.parametrize("lam", ["box-cox", float("nan"), float("inf")])
def test_invalid_lambda_rejected(lam):
    with pytest.raises(InvalidConfigurationError):
        PowerTransform.fit(np.arange(10.0), lam)
