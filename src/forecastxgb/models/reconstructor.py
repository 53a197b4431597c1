"""Iterative one-step-ahead forecasting and inversion of the forward stages.

The forecast is produced by a small state machine. A state holds the working
history (observed values plus the synthetic forecasts made so far), the
regressor history, and the next step number. Each transition builds one lag
row from the current history, asks the model for a single prediction, and
appends it. Once ``step > h`` the synthetic tail is integrated (trend),
re-seasonalised (decompose only), and inverted through the power transform,
in that order.
"""

from dataclasses import dataclass, replace
from typing import Optional
import logging

import numpy as np

from forecastxgb.data.structs import RegressorSet
from forecastxgb.features.lags import LagMatrixBuilder
from forecastxgb.features.seasonal import SeasonalState
from forecastxgb.features.transforms import PowerTransform
from forecastxgb.features.trend import TrendState
from forecastxgb.models.base_model import BaseModel
from forecastxgb.utils.error_handling import (
    InvalidConfigurationError,
    MissingRegressorError,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReconstructionState:
    """
    One point of the forecast loop.

    Attributes:
        history: Working-scale values, observed then forecast
        n_observed: Number of observed values at the head of ``history``
        regressors: Regressor history aligned with ``history`` (lagged inputs)
        future: Caller-supplied regressor rows for the horizon
        step: Next step to produce (1-based)
        horizon: Total steps
    """
    history: np.ndarray
    n_observed: int
    step: int
    horizon: int
    regressors: Optional[RegressorSet] = None
    future: Optional[RegressorSet] = None

    @property
    def is_terminal(self) -> bool:
        return self.step > self.horizon

    @property
    def forecasts(self) -> np.ndarray:
        return self.history[self.n_observed:]


class ForecastReconstructor:
    """Drives the forecast loop for a fitted pipeline."""

    def __init__(
        self,
        builder: LagMatrixBuilder,
        model: BaseModel,
        transform: Optional[PowerTransform] = None,
        seasonal: Optional[SeasonalState] = None,
        trend: Optional[TrendState] = None,
        start: int = 0,
    ):
        """
        Args:
            builder: Lag builder used at training time
            model: Fitted model adapter
            transform: Fitted power transform (identity when None)
            seasonal: Fitted seasonal stage (no-op when None)
            trend: Fitted trend stage (no-op when None)
            start: Absolute period counter of the first working observation
        """
        self.builder = builder
        self.model = model
        self.transform = transform or PowerTransform()
        self.seasonal = seasonal or SeasonalState()
        self.trend = trend or TrendState()
        self.start = start

    def initial_state(
        self,
        history: np.ndarray,
        h: int,
        regressors: Optional[RegressorSet] = None,
        future_regressors: Optional[RegressorSet] = None,
    ) -> ReconstructionState:
        """
        Validate inputs and create the state before step 1.

        Raises:
            InvalidConfigurationError: h < 1 or regressors inconsistent with training
            MissingRegressorError: fewer than h future regressor rows
        """
        if int(h) != h or h < 1:
            raise InvalidConfigurationError(f"Forecast horizon must be a positive integer, got {h}")
        history = np.asarray(history, dtype=float)

        regressors = RegressorSet.coerce(regressors)
        future_regressors = RegressorSet.coerce(future_regressors)
        if self.builder.regressor_names:
            if future_regressors is None:
                raise MissingRegressorError(
                    f"Model uses regressors {self.builder.regressor_names}; "
                    f"future values for {h} step(s) are required"
                )
            if future_regressors.names != self.builder.regressor_names:
                raise InvalidConfigurationError(
                    f"Future regressor columns {future_regressors.names} do not match "
                    f"{self.builder.regressor_names}"
                )
            if future_regressors.n_rows < h:
                raise MissingRegressorError(
                    f"Forecast horizon {h} exceeds the {future_regressors.n_rows} "
                    f"future regressor row(s) supplied"
                )
            if regressors is None or regressors.n_rows != len(history):
                raise InvalidConfigurationError(
                    "Regressor history must cover every observed value"
                )
        elif future_regressors is not None:
            raise InvalidConfigurationError("Model was fitted without regressors")

        return ReconstructionState(
            history=history,
            n_observed=len(history),
            step=1,
            horizon=int(h),
            regressors=regressors,
            future=future_regressors,
        )

    def advance(self, state: ReconstructionState) -> ReconstructionState:
        """Produce the prediction for ``state.step`` and move to the next step."""
        if state.is_terminal:
            return state

        features = self.builder.build_one(state.history, state.regressors, start=self.start)
        prediction = float(np.asarray(self.model.predict(features)).reshape(-1)[0])

        regressors = state.regressors
        if state.future is not None:
            regressors = regressors.concat(state.future.slice(state.step - 1, state.step))

        logger.debug(f"Step {state.step}/{state.horizon}: {prediction:.6g}")
        return replace(
            state,
            history=np.append(state.history, prediction),
            regressors=regressors,
            step=state.step + 1,
        )

    def run(
        self,
        history: np.ndarray,
        h: int,
        regressors: Optional[RegressorSet] = None,
        future_regressors: Optional[RegressorSet] = None,
    ) -> np.ndarray:
        """Run the loop to completion; returns the working-scale forecast path."""
        state = self.initial_state(history, h, regressors, future_regressors)
        while not state.is_terminal:
            state = self.advance(state)
        return state.forecasts.copy()

    def reconstruct(self, path: np.ndarray, n_observed: int) -> np.ndarray:
        """
        Map a working-scale forecast path back to the original scale.

        Args:
            path: Forecasts on the differenced, deseasonalised, transformed scale
            n_observed: Number of working observations preceding the path
        """
        levels = self.trend.integrate(path)
        positions = self.start + n_observed + np.arange(len(path))
        levels = self.seasonal.reinject(levels, positions)
        return self.transform.invert(levels)

    def forecast(
        self,
        history: np.ndarray,
        h: int,
        regressors: Optional[RegressorSet] = None,
        future_regressors: Optional[RegressorSet] = None,
    ) -> np.ndarray:
        """Run the loop and return forecasts on the original scale."""
        path = self.run(history, h, regressors, future_regressors)
        return self.reconstruct(path, len(history))
