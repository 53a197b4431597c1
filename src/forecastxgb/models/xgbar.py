"""Autoregressive gradient boosting for univariate and multivariate series.

The forward pipeline is

    raw series -> power transform -> seasonal removal -> differencing
               -> lagged design matrix -> model fit

and forecasting runs the fitted model one step at a time through
:class:`~forecastxgb.models.reconstructor.ForecastReconstructor`, which undoes
the stages in reverse order.
"""

from dataclasses import dataclass, replace
from typing import Any, Callable, Dict, Optional, Union
import logging

import numpy as np
import pandas as pd

from forecastxgb.data.structs import RegressorSet, TimeSeries
from forecastxgb.features.lags import LagMatrixBuilder, select_maxlag
from forecastxgb.features.seasonal import SeasonalState, fit_seasonal
from forecastxgb.features.transforms import PowerTransform
from forecastxgb.features.trend import TrendState, fit_trend, one_step_levels
from forecastxgb.models.base_model import BaseModel
from forecastxgb.models.config import CVConfig, XGBARConfig
from forecastxgb.models.reconstructor import ForecastReconstructor
from forecastxgb.models.xgboost_model import XGBoostModel
from forecastxgb.utils.error_handling import (
    InsufficientDataError,
    InvalidConfigurationError,
)

logger = logging.getLogger(__name__)

SeriesLike = Union[TimeSeries, pd.Series, np.ndarray, list]
RegressorLike = Union[RegressorSet, pd.DataFrame, pd.Series, np.ndarray, None]


@dataclass
class Forecast:
    """
    Point forecasts together with the series and in-sample fit they came from.

    Attributes:
        mean: Point forecasts, continuing the period counter of ``x``
        x: Original series
        fitted: One-step in-sample fitted values (NaN where no lag history)
        residuals: x - fitted
        method: Short description of the fitted model
    """
    mean: TimeSeries
    x: TimeSeries
    fitted: np.ndarray
    residuals: np.ndarray
    method: str

    @property
    def h(self) -> int:
        return len(self.mean)

    @property
    def point_forecasts(self) -> np.ndarray:
        return self.mean.values

    def to_frame(self) -> pd.DataFrame:
        """Forecasts indexed by absolute period."""
        return pd.DataFrame({"forecast": self.mean.values}, index=self.mean.positions())


class FittedXGBAR:
    """
    A fitted pipeline: every stage state plus the fitted model.

    All stage states are immutable and reused read-only by every forecast call.
    """

    def __init__(
        self,
        y: TimeSeries,
        xreg: Optional[RegressorSet],
        config: XGBARConfig,
        model: BaseModel,
        builder: LagMatrixBuilder,
        transform: PowerTransform,
        seasonal: SeasonalState,
        trend: TrendState,
        working: np.ndarray,
        fitted: np.ndarray,
    ):
        self.y = y
        self.xreg = xreg
        self.config = config
        self.model = model
        self.builder = builder
        self.transform = transform
        self.seasonal = seasonal
        self.trend = trend
        self.working = working
        self.working.setflags(write=False)
        self.fitted = fitted
        self.residuals = y.values - fitted

    @property
    def maxlag(self) -> int:
        return self.builder.maxlag

    @property
    def method(self) -> str:
        return f"xgbar({self.maxlag}, {self.trend.order}, '{self.seasonal.method.value}')"

    @property
    def working_regressors(self) -> Optional[RegressorSet]:
        if self.xreg is None:
            return None
        return self.xreg.slice(self.trend.order)

    def reconstructor(self) -> ForecastReconstructor:
        return ForecastReconstructor(
            builder=self.builder,
            model=self.model,
            transform=self.transform,
            seasonal=self.seasonal,
            trend=self.trend,
            start=self.y.start + self.trend.order,
        )

    def forecast(self, h: Optional[int] = None, xreg: RegressorLike = None) -> Forecast:
        """
        Forecast ``h`` steps ahead.

        Args:
            h: Horizon; defaults to the number of regressor rows, else two
               cycles for seasonal data, else 10
            xreg: Future regressor values, one row per step

        Raises:
            MissingRegressorError: regressors were used in fitting and fewer than
                h future rows are supplied
        """
        xreg = RegressorSet.coerce(xreg)
        if h is None:
            if xreg is not None:
                h = xreg.n_rows
            elif self.y.frequency > 1:
                h = 2 * self.y.frequency
            else:
                h = 10

        values = self.reconstructor().forecast(
            self.working, h, self.working_regressors, xreg
        )
        logger.info(f"Forecast {h} step(s) with {self.method}")
        return Forecast(
            mean=self.y.continuation(values),
            x=self.y,
            fitted=self.fitted.copy(),
            residuals=self.residuals.copy(),
            method=self.method,
        )

    def importance(self) -> pd.DataFrame:
        """Feature importances, most important first."""
        scores = self.model.get_feature_importance()
        frame = pd.DataFrame(
            {"feature": list(scores.keys()), "importance": list(scores.values())}
        )
        return frame.sort_values("importance", ascending=False, ignore_index=True)

    def summary(self, top: int = 10) -> Dict[str, Any]:
        """Configuration, resolved stage settings, in-sample accuracy and top features."""
        mask = ~np.isnan(self.fitted)
        resid = self.residuals[mask]
        importance = self.importance().head(top)
        return {
            "method": self.method,
            "n_obs": len(self.y),
            "frequency": self.y.frequency,
            "maxlag": self.maxlag,
            "diffs": self.trend.order,
            "lambda": self.transform.lam,
            "seas_method": self.seasonal.method.value,
            "regressors": self.builder.regressor_names,
            "nrounds": getattr(self.model, "nrounds", None),
            "n_features": len(self.builder.feature_names),
            "rmse": float(np.sqrt(np.mean(resid ** 2))) if len(resid) else float("nan"),
            "mae": float(np.mean(np.abs(resid))) if len(resid) else float("nan"),
            "importance": dict(zip(importance["feature"], importance["importance"])),
        }

    def __repr__(self) -> str:
        return f"FittedXGBAR({self.method}, n_obs={len(self.y)})"


class XGBARForecaster:
    """Fits the autoregressive boosting pipeline to a series."""

    def __init__(
        self,
        config: Optional[XGBARConfig] = None,
        model_factory: Optional[Callable[[XGBARConfig], BaseModel]] = None,
    ):
        """
        Args:
            config: Pipeline configuration
            model_factory: Builds a fresh model adapter from the configuration;
                defaults to :class:`XGBoostModel` with ``config.hyperparameters``
        """
        self.config = (config or XGBARConfig()).validate()
        self.model_factory = model_factory or (
            lambda cfg: XGBoostModel(hyperparameters=cfg.hyperparameters)
        )

    @staticmethod
    def _as_series(y: SeriesLike, frequency: Optional[int]) -> TimeSeries:
        if isinstance(y, TimeSeries):
            if frequency is not None and frequency != y.frequency:
                return TimeSeries(y.values, frequency=frequency, start=y.start, name=y.name)
            return y
        if isinstance(y, pd.Series):
            return TimeSeries.from_pandas(y, frequency=frequency or 1)
        return TimeSeries(np.asarray(y, dtype=float), frequency=frequency or 1)

    def fit(self, y: SeriesLike, xreg: RegressorLike = None) -> FittedXGBAR:
        """
        Fit the pipeline.

        Args:
            y: Response series
            xreg: Regressor columns aligned row-for-row with ``y``

        Returns:
            FittedXGBAR

        Raises:
            InvalidConfigurationError: configuration incompatible with the data
            InsufficientDataError: too little history for differencing/decomposition
            TrainingError: the model adapter failed
        """
        config = self.config
        y = self._as_series(y, config.frequency)
        f = y.frequency
        xreg = RegressorSet.coerce(xreg)
        if xreg is not None:
            if xreg.n_rows != len(y):
                raise InvalidConfigurationError(
                    f"Regressors have {xreg.n_rows} rows but the series has {len(y)}"
                )
            if y.name in xreg.names:
                raise InvalidConfigurationError(
                    f"Regressor name '{y.name}' clashes with the response name"
                )
        if config.maxlag is not None and config.maxlag >= len(y):
            raise InvalidConfigurationError(
                f"maxlag ({config.maxlag}) must be smaller than the series length ({len(y)})"
            )

        transform = PowerTransform.fit(y.values, config.lam)
        transformed = transform.apply(y.values)

        seasonal = fit_seasonal(transformed, f, config.seas_method, config.K, start=y.start)
        deseasonalised = seasonal.remove(transformed, y.positions())

        working, trend = fit_trend(deseasonalised, config.trend_method, config.diffs)
        n_work = len(working)
        if config.maxlag is not None and config.maxlag >= n_work:
            raise InsufficientDataError(
                f"{trend.order} difference(s) leave {n_work} observations, "
                f"too few for maxlag={config.maxlag}"
            )
        maxlag = select_maxlag(n_work, f, config.maxlag, config.min_train_rows)

        xreg_work = xreg.slice(trend.order) if xreg is not None else None
        builder = LagMatrixBuilder(
            maxlag,
            response_name=y.name,
            regressor_names=xreg.names if xreg is not None else None,
            seasonal=seasonal,
        )
        X, target = builder.build(working, xreg_work, start=y.start + trend.order)

        model = self.model_factory(config)
        model.fit(X, target, cv_config=config.cv)

        first = trend.order + maxlag
        preds = np.asarray(model.predict(X), dtype=float)
        levels = one_step_levels(deseasonalised, preds, trend.order, first)
        levels = seasonal.reinject(levels, y.start + first + np.arange(len(preds)))
        fitted = np.full(len(y), np.nan)
        fitted[first:] = transform.invert(levels)

        resolved = replace(config, maxlag=maxlag, lam=transform.lam, frequency=f,
                           diffs=trend.order, K=seasonal.K)
        result = FittedXGBAR(
            y=y,
            xreg=xreg,
            config=resolved,
            model=model,
            builder=builder,
            transform=transform,
            seasonal=seasonal,
            trend=trend,
            working=working,
            fitted=fitted,
        )
        logger.info(
            f"Fitted {result.method} on {len(y)} observations "
            f"({X.shape[0]} rows x {X.shape[1]} features)"
        )
        return result


def xgbar(
    y: SeriesLike,
    xreg: RegressorLike = None,
    maxlag: Optional[int] = None,
    nrounds: int = 100,
    nrounds_method: str = "cv",
    nfold: Optional[int] = None,
    lam: Union[float, str] = 1.0,
    seas_method: str = "dummies",
    K: Optional[int] = None,
    trend_method: str = "none",
    frequency: Optional[int] = None,
    seed: int = 0,
    model_factory: Optional[Callable[[XGBARConfig], BaseModel]] = None,
    **hyperparameters,
) -> FittedXGBAR:
    """
    Fit an autoregressive xgboost model to a series in one call.

    Extra keyword arguments are passed to the booster (max_depth, learning_rate, ...).

    Example:
        >>> model = xgbar(TimeSeries(values, frequency=12))
        >>> fc = model.forecast(24)
    """
    config = XGBARConfig(
        maxlag=maxlag,
        seas_method=seas_method,
        trend_method=trend_method,
        lam=lam,
        K=K,
        frequency=frequency,
        cv=CVConfig(nrounds=nrounds, nrounds_method=nrounds_method, nfold=nfold, seed=seed),
        hyperparameters=hyperparameters,
    )
    return XGBARForecaster(config, model_factory=model_factory).fit(y, xreg)
