"""Lagged design-matrix construction for autoregressive boosting.

Row ``i`` of the design matrix (``i = maxlag .. n-1``) has the target
``series[i]`` and the features ``series[i-1] .. series[i-maxlag]``, followed
by the same lags of each regressor column, followed by any seasonal columns
evaluated at period ``i``. The first ``maxlag`` observations only serve as lag
history, so the matrix has exactly ``n - maxlag`` rows.
"""

from typing import List, Optional, Tuple
import logging

import numpy as np
import pandas as pd

from forecastxgb.data.structs import RegressorSet
from forecastxgb.features.seasonal import SeasonalState
from forecastxgb.utils.error_handling import InvalidConfigurationError

logger = logging.getLogger(__name__)


def default_maxlag(frequency: int) -> int:
    """Default number of lags: two seasonal cycles, and never fewer than 8."""
    return max(8, 2 * frequency)


def select_maxlag(
    n_obs: int,
    frequency: int,
    maxlag: Optional[int] = None,
    min_train_rows: int = 1,
) -> int:
    """
    Resolve the number of lags for a series of ``n_obs`` usable observations.

    An explicit maxlag is validated and returned unchanged. The default is
    reduced, with a warning, when it would leave too few training rows.

    Raises:
        InvalidConfigurationError: maxlag < 1, maxlag >= n_obs, or the series
            is too short for any lag at all
    """
    if maxlag is not None:
        if int(maxlag) != maxlag or maxlag < 1:
            raise InvalidConfigurationError(f"maxlag must be a positive integer, got {maxlag}")
        if maxlag >= n_obs:
            raise InvalidConfigurationError(
                f"maxlag ({maxlag}) must be smaller than the series length ({n_obs})"
            )
        return int(maxlag)

    maxlag = default_maxlag(frequency)
    min_rows = max(min_train_rows, frequency + int(round(frequency / 4)))
    cap = n_obs - min_rows
    if cap < 1:
        raise InvalidConfigurationError(
            f"Series of length {n_obs} is too short to keep {min_rows} training rows "
            f"with frequency {frequency}"
        )
    if maxlag > cap:
        logger.warning(
            f"Series is too short for maxlag={maxlag}; reducing maxlag to {cap} instead"
        )
        maxlag = cap
    return maxlag


class LagMatrixBuilder:
    """Builds lagged feature matrices with a fixed, deterministic column layout."""

    def __init__(
        self,
        maxlag: int,
        response_name: str = "y",
        regressor_names: Optional[List[str]] = None,
        seasonal: Optional[SeasonalState] = None,
    ):
        """
        Initialize LagMatrixBuilder.

        Args:
            maxlag: Number of lags of the response and of each regressor
            response_name: Prefix for response lag columns
            regressor_names: Regressor columns expected on every call
            seasonal: Seasonal stage contributing unlagged columns
        """
        if int(maxlag) != maxlag or maxlag < 1:
            raise InvalidConfigurationError(f"maxlag must be a positive integer, got {maxlag}")
        self.maxlag = int(maxlag)
        self.response_name = response_name
        self.regressor_names = list(regressor_names or [])
        self.seasonal = seasonal

    @property
    def lags(self) -> range:
        return range(1, self.maxlag + 1)

    @property
    def feature_names(self) -> List[str]:
        names = [f"{self.response_name}_lag{k}" for k in self.lags]
        for col in self.regressor_names:
            names.extend(f"{col}_lag{k}" for k in self.lags)
        if self.seasonal is not None:
            sample = self.seasonal.features(np.arange(1))
            if sample is not None:
                names.extend(sample.columns)
        return names

    def _check_regressors(self, regressors: Optional[RegressorSet], n_required: int) -> None:
        if not self.regressor_names:
            if regressors is not None and regressors.names:
                raise InvalidConfigurationError(
                    "Regressors supplied to a builder configured without regressors"
                )
            return
        if regressors is None:
            raise InvalidConfigurationError(
                f"Builder expects regressors {self.regressor_names}"
            )
        if regressors.names != self.regressor_names:
            raise InvalidConfigurationError(
                f"Regressor columns {regressors.names} do not match {self.regressor_names}"
            )
        if regressors.n_rows < n_required:
            raise InvalidConfigurationError(
                f"Regressors have {regressors.n_rows} rows, need {n_required}"
            )

    def build(
        self,
        series: np.ndarray,
        regressors: Optional[RegressorSet] = None,
        start: int = 0,
    ) -> Tuple[pd.DataFrame, pd.Series]:
        """
        Build the full design matrix and target vector.

        Args:
            series: Response values (already transformed/differenced)
            regressors: Regressor columns aligned row-for-row with ``series``
            start: Absolute period counter of ``series[0]``

        Returns:
            (features with n - maxlag rows, target Series)
        """
        values = np.asarray(series, dtype=float)
        n = len(values)
        L = self.maxlag
        if L >= n:
            raise InvalidConfigurationError(
                f"maxlag ({L}) must be smaller than the series length ({n})"
            )
        regressors = RegressorSet.coerce(regressors)
        self._check_regressors(regressors, n)
        if regressors is not None and regressors.n_rows != n:
            raise InvalidConfigurationError(
                f"Regressors have {regressors.n_rows} rows but the series has {n}"
            )

        columns = {}
        for k in self.lags:
            columns[f"{self.response_name}_lag{k}"] = values[L - k:n - k]
        if regressors is not None:
            reg_values = regressors.values
            for j, col in enumerate(self.regressor_names):
                for k in self.lags:
                    columns[f"{col}_lag{k}"] = reg_values[L - k:n - k, j]
        X = pd.DataFrame(columns)

        if self.seasonal is not None:
            seasonal = self.seasonal.features(start + np.arange(L, n))
            if seasonal is not None:
                X = pd.concat([X, seasonal], axis=1)

        y = pd.Series(values[L:], name=self.response_name)
        logger.debug(f"Built design matrix with {X.shape[0]} rows and {X.shape[1]} columns")
        return X, y

    def build_one(
        self,
        history: np.ndarray,
        regressors: Optional[RegressorSet] = None,
        at_index: Optional[int] = None,
        start: int = 0,
    ) -> pd.DataFrame:
        """
        Build the single feature row for position ``at_index``.

        Args:
            history: Response values, possibly extended by earlier forecasts
            regressors: Regressor history covering rows up to ``at_index - 1``
            at_index: Row to build; defaults to ``len(history)`` (the next step)
            start: Absolute period counter of ``history[0]``

        Returns:
            One-row DataFrame with :attr:`feature_names` columns
        """
        values = np.asarray(history, dtype=float)
        i = len(values) if at_index is None else int(at_index)
        L = self.maxlag
        if i < L or i > len(values):
            raise InvalidConfigurationError(
                f"Cannot build lags for index {i} from {len(values)} observations "
                f"with maxlag {L}"
            )
        regressors = RegressorSet.coerce(regressors)
        self._check_regressors(regressors, i)

        row = {}
        for k in self.lags:
            row[f"{self.response_name}_lag{k}"] = [values[i - k]]
        if regressors is not None:
            reg_values = regressors.values
            for j, col in enumerate(self.regressor_names):
                for k in self.lags:
                    row[f"{col}_lag{k}"] = [reg_values[i - k, j]]
        X = pd.DataFrame(row)

        if self.seasonal is not None:
            seasonal = self.seasonal.features(np.array([start + i]))
            if seasonal is not None:
                X = pd.concat([X, seasonal], axis=1)
        return X
