"""Differencing for trend removal and its inverse."""

from dataclasses import dataclass
from typing import Optional, Tuple
import logging
import warnings

import numpy as np
from statsmodels.tools.sm_exceptions import InterpolationWarning
from statsmodels.tsa.stattools import kpss

from forecastxgb.utils.error_handling import (
    InsufficientDataError,
    InvalidConfigurationError,
)

logger = logging.getLogger(__name__)

MAX_ORDER = 2


def _check_order(order: int) -> None:
    if order not in (0, 1, 2):
        raise InvalidConfigurationError(f"Differencing order must be 0, 1 or 2, got {order}")


def difference(values: np.ndarray, order: int) -> np.ndarray:
    """Apply first differences ``order`` times."""
    _check_order(order)
    values = np.asarray(values, dtype=float)
    if len(values) <= order:
        raise InsufficientDataError(
            f"Cannot difference {len(values)} observations {order} time(s)"
        )
    if order == 0:
        return values.copy()
    return np.diff(values, n=order)


def trailing_seed(values: np.ndarray, order: int) -> Tuple[float, ...]:
    """
    Values needed to integrate a continuation of ``values``.

    Returns:
        () for order 0, (last,) for order 1, (last, last first-difference) for order 2
    """
    _check_order(order)
    values = np.asarray(values, dtype=float)
    if len(values) < order:
        raise InsufficientDataError(
            f"Need at least {order} observations to seed integration, got {len(values)}"
        )
    if order == 0:
        return ()
    if order == 1:
        return (float(values[-1]),)
    return (float(values[-1]), float(values[-1] - values[-2]))


def integrate(diffed: np.ndarray, order: int, seed: Tuple[float, ...]) -> np.ndarray:
    """
    Invert :func:`difference` for a continuation of a seeded series.

    Args:
        diffed: Differenced values following the seed point
        order: Differencing order that produced them
        seed: Output of :func:`trailing_seed` on the preceding levels

    Returns:
        Levels, one per element of ``diffed``
    """
    _check_order(order)
    diffed = np.asarray(diffed, dtype=float)
    if len(seed) != order:
        raise InvalidConfigurationError(
            f"Order {order} integration needs {order} seed value(s), got {len(seed)}"
        )
    if order == 0:
        return diffed.copy()
    if order == 1:
        return seed[0] + np.cumsum(diffed)
    first_diffs = seed[1] + np.cumsum(diffed)
    return seed[0] + np.cumsum(first_diffs)


def one_step_levels(levels: np.ndarray, predictions: np.ndarray, order: int, first_index: int) -> np.ndarray:
    """
    Turn one-step predictions of differences into level predictions.

    Each prediction is anchored on the actual observations before it, which is
    what in-sample fitted values need.

    Args:
        levels: Undifferenced series
        predictions: Predicted differences for indices first_index..len(levels)-1
        order: Differencing order
        first_index: Index in ``levels`` of the first prediction
    """
    _check_order(order)
    levels = np.asarray(levels, dtype=float)
    predictions = np.asarray(predictions, dtype=float)
    idx = np.arange(first_index, first_index + len(predictions))
    if order == 0:
        return predictions.copy()
    if order == 1:
        return levels[idx - 1] + predictions
    return 2.0 * levels[idx - 1] - levels[idx - 2] + predictions


def ndiffs(values: np.ndarray, alpha: float = 0.05, max_d: int = MAX_ORDER) -> int:
    """
    Number of differences needed for level stationarity, by repeated KPSS tests.
    """
    x = np.asarray(values, dtype=float)
    d = 0
    while d < max_d:
        if len(x) < 8 or np.ptp(x) == 0:
            break
        with warnings.catch_warnings():
            warnings.simplefilter("ignore", InterpolationWarning)
            # result tuple layout changes in statsmodels 0.16
            warnings.simplefilter("ignore", FutureWarning)
            pvalue = kpss(x, regression="c", nlags="auto")[1]
        if pvalue >= alpha:
            break
        d += 1
        x = np.diff(x)
    return d


@dataclass(frozen=True)
class TrendState:
    """Fitted trend stage: differencing order and integration seed."""
    order: int = 0
    seed: Tuple[float, ...] = ()

    def integrate(self, diffed: np.ndarray) -> np.ndarray:
        return integrate(diffed, self.order, self.seed)


def fit_trend(
    values: np.ndarray,
    method: str = "none",
    order: Optional[int] = None,
) -> Tuple[np.ndarray, TrendState]:
    """
    Resolve and apply the trend stage.

    Args:
        values: Series after transform and seasonal removal
        method: "none" or "differencing"
        order: Fixed differencing order; estimated with KPSS when None

    Returns:
        (differenced values, TrendState)
    """
    if method not in ("none", "differencing"):
        raise InvalidConfigurationError(
            f"Unknown trend method {method!r}; expected 'none' or 'differencing'"
        )
    if method == "none":
        order = 0
    elif order is None:
        order = ndiffs(values)
        logger.info(f"KPSS tests selected {order} difference(s)")

    diffed = difference(values, order)
    return diffed, TrendState(order=order, seed=trailing_seed(values, order))
