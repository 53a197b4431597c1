"""Seasonal encoding and removal strategies.

Three interchangeable strategies are supported:

- ``dummies``: (frequency - 1) indicator columns, one per non-reference season.
- ``fourier``: sine/cosine pairs at K harmonics of the seasonal frequency.
- ``decompose``: classical multiplicative decomposition; the series is divided
  by its seasonal index and the index is multiplied back into forecasts.

Dummy and Fourier columns are functions of the absolute period only, so they
are known for any future period and nothing has to be undone after
forecasting.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple
import logging

import numpy as np
import pandas as pd
from statsmodels.tsa.seasonal import seasonal_decompose

from forecastxgb.utils.error_handling import (
    InsufficientDataError,
    InvalidConfigurationError,
)

logger = logging.getLogger(__name__)


class SeasonalMethod(str, Enum):
    """Seasonal strategy selector."""
    DUMMIES = "dummies"
    DECOMPOSE = "decompose"
    FOURIER = "fourier"
    NONE = "none"


def default_fourier_k(frequency: int) -> int:
    """Default number of Fourier harmonics for a frequency."""
    return max(1, min(int(round(frequency / 4 - 1)), 10))


def seasonal_dummies(positions: np.ndarray, frequency: int) -> pd.DataFrame:
    """
    Indicator columns for every season except the reference (position 0).

    Args:
        positions: Absolute period counters of the rows
        frequency: Observations per cycle

    Returns:
        DataFrame with columns season2..season<frequency>
    """
    cycle = np.asarray(positions) % frequency
    data = {
        f"season{k + 1}": (cycle == k).astype(float)
        for k in range(1, frequency)
    }
    return pd.DataFrame(data)


def fourier_terms(positions: np.ndarray, frequency: int, K: int) -> pd.DataFrame:
    """
    Sine/cosine regressors at harmonics 1..K of the seasonal frequency.

    The sine column of harmonic frequency/2 is identically zero and is left out.
    """
    t = np.asarray(positions, dtype=float)
    data = {}
    for k in range(1, K + 1):
        angle = 2.0 * np.pi * k * t / frequency
        if 2 * k != frequency:
            data[f"fourier_sin{k}"] = np.sin(angle)
        data[f"fourier_cos{k}"] = np.cos(angle)
    return pd.DataFrame(data)


def decompose_indices(values: np.ndarray, frequency: int, start: int = 0) -> Tuple[float, ...]:
    """
    Multiplicative seasonal index per position-in-cycle.

    Uses classical decomposition: a centred 2xfrequency moving average as the
    trend, the detrended ratios averaged per position and normalised to mean 1.

    Returns:
        Tuple of length ``frequency``; element p is the index for cycle position p
    """
    values = np.asarray(values, dtype=float)
    if len(values) < 2 * frequency:
        raise InsufficientDataError(
            f"Seasonal decomposition needs at least 2 full cycles "
            f"({2 * frequency} observations), got {len(values)}"
        )
    if np.any(values <= 0):
        raise InvalidConfigurationError(
            "Multiplicative decomposition requires strictly positive values"
        )

    result = seasonal_decompose(values, model="multiplicative", period=frequency)
    seasonal = np.asarray(result.seasonal, dtype=float)

    indices = np.empty(frequency)
    for j in range(frequency):
        indices[(start + j) % frequency] = seasonal[j]
    return tuple(float(v) for v in indices)


@dataclass(frozen=True)
class SeasonalState:
    """
    Fitted seasonal stage.

    Attributes:
        method: Active strategy
        frequency: Observations per cycle
        K: Fourier harmonics (fourier only)
        indices: Seasonal index keyed by cycle position (decompose only)
    """
    method: SeasonalMethod = SeasonalMethod.NONE
    frequency: int = 1
    K: Optional[int] = None
    indices: Optional[Tuple[float, ...]] = None

    @property
    def n_features(self) -> int:
        if self.method == SeasonalMethod.DUMMIES:
            return self.frequency - 1
        if self.method == SeasonalMethod.FOURIER:
            return 2 * self.K - (1 if 2 * self.K == self.frequency else 0)
        return 0

    def features(self, positions: np.ndarray) -> Optional[pd.DataFrame]:
        """Seasonal design columns for the given absolute periods, if any."""
        if self.method == SeasonalMethod.DUMMIES:
            return seasonal_dummies(positions, self.frequency)
        if self.method == SeasonalMethod.FOURIER:
            return fourier_terms(positions, self.frequency, self.K)
        return None

    def _index_at(self, positions: np.ndarray) -> np.ndarray:
        return np.asarray(self.indices)[np.asarray(positions) % self.frequency]

    def remove(self, values: np.ndarray, positions: np.ndarray) -> np.ndarray:
        """Deseasonalise; identity unless the strategy is decompose."""
        values = np.asarray(values, dtype=float)
        if self.method != SeasonalMethod.DECOMPOSE:
            return values.copy()
        return values / self._index_at(positions)

    def reinject(self, values: np.ndarray, positions: np.ndarray) -> np.ndarray:
        """Undo :meth:`remove` at the given absolute periods."""
        values = np.asarray(values, dtype=float)
        if self.method != SeasonalMethod.DECOMPOSE:
            return values.copy()
        return values * self._index_at(positions)


def fit_seasonal(
    values: np.ndarray,
    frequency: int,
    method: str = "dummies",
    K: Optional[int] = None,
    start: int = 0,
) -> SeasonalState:
    """
    Resolve the seasonal strategy for a series.

    Args:
        values: Series values (after the power transform)
        frequency: Observations per cycle
        method: One of dummies, decompose, fourier, none
        K: Fourier harmonics; defaults to :func:`default_fourier_k`
        start: Absolute period counter of the first value

    Returns:
        SeasonalState ready to encode or remove seasonality
    """
    try:
        method = SeasonalMethod(method)
    except ValueError:
        raise InvalidConfigurationError(
            f"Unknown seasonal method {method!r}; "
            f"expected one of {[m.value for m in SeasonalMethod]}"
        )

    if method != SeasonalMethod.NONE and frequency == 1:
        logger.info(f"Frequency is 1; seasonal method '{method.value}' replaced by 'none'")
        method = SeasonalMethod.NONE

    if method == SeasonalMethod.NONE:
        return SeasonalState(SeasonalMethod.NONE, frequency)

    if method == SeasonalMethod.DUMMIES:
        return SeasonalState(method, frequency)

    if method == SeasonalMethod.FOURIER:
        if K is None:
            K = default_fourier_k(frequency)
        if K < 1 or 2 * K > frequency:
            raise InvalidConfigurationError(
                f"K must satisfy 1 <= K <= frequency/2, got K={K} for frequency {frequency}"
            )
        return SeasonalState(method, frequency, K=int(K))

    indices = decompose_indices(values, frequency, start)
    logger.debug(f"Seasonal indices: {np.round(indices, 4).tolist()}")
    return SeasonalState(method, frequency, indices=indices)
