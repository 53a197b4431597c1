"""Competition benchmark: xgbar against ARIMA, Theta and NNAR and their ensembles.

Each series is an independent unit of work. Units run sequentially or on a
``concurrent.futures`` pool; a unit that raises is recorded as a
:class:`FailureMarker` and never aborts its siblings.
"""

from collections import Counter
from concurrent.futures import (
    Future,
    ProcessPoolExecutor,
    ThreadPoolExecutor,
    as_completed,
)
from dataclasses import dataclass, field
from itertools import combinations
from typing import Callable, Dict, Iterable, List, Optional
import logging
import threading
import warnings

import numpy as np
import pandas as pd
from statsmodels.tsa.ar_model import ar_select_order
from statsmodels.tsa.forecasting.theta import ThetaModel
from statsmodels.tsa.statespace.sarimax import SARIMAX

from forecastxgb.data.loaders import CompetitionSeries
from forecastxgb.evaluation.metrics import MetricsCalculator
from forecastxgb.models.config import XGBARConfig
from forecastxgb.models.nnar_model import NNARModel
from forecastxgb.models.xgbar import XGBARForecaster
from forecastxgb.utils.error_handling import RecoveryContext

logger = logging.getLogger(__name__)

ForecastMethod = Callable[[CompetitionSeries], np.ndarray]


def _naive(series: CompetitionSeries) -> np.ndarray:
    return np.repeat(series.x.values[-1], series.h)


def forecast_xgbar(series: CompetitionSeries) -> np.ndarray:
    """xgbar with default settings."""
    fitted = XGBARForecaster().fit(series.x)
    return fitted.forecast(series.h).point_forecasts


def forecast_arima(series: CompetitionSeries) -> np.ndarray:
    """
    Best of a small SARIMAX grid by AIC.

    Falls back to the naive forecast when no candidate converges.
    """
    y = series.x.values
    f = series.x.frequency
    candidates = [((1, 0, 1), (0, 0, 0, 0)), ((1, 1, 1), (0, 0, 0, 0)), ((0, 1, 1), (0, 0, 0, 0))]
    if f > 1 and len(y) >= 2 * f + 2:
        candidates += [((1, 0, 1), (1, 0, 1, f)), ((0, 1, 1), (0, 1, 1, f))]

    best, best_aic = None, np.inf
    for order, seas in candidates:
        try:
            with warnings.catch_warnings():
                warnings.simplefilter("ignore")
                result = SARIMAX(
                    y, order=order, seasonal_order=seas,
                    enforce_stationarity=False, enforce_invertibility=False,
                ).fit(disp=False, maxiter=200)
        except (ValueError, np.linalg.LinAlgError) as e:
            logger.debug(f"SARIMAX{order}x{seas} failed on {series.name}: {e}")
            continue
        if np.isfinite(result.aic) and result.aic < best_aic:
            best_aic, best = result.aic, result

    if best is None:
        logger.warning(f"No ARIMA candidate fitted {series.name}; using naive forecast")
        return _naive(series)
    return np.asarray(best.forecast(steps=series.h), dtype=float)


def forecast_theta(series: CompetitionSeries) -> np.ndarray:
    """Theta method, deseasonalised for seasonal series with enough history."""
    y = series.x.values
    f = series.x.frequency
    deseasonalize = f > 1 and len(y) >= 2 * f and bool(np.all(y > 0))
    try:
        result = ThetaModel(y, period=max(f, 1), deseasonalize=deseasonalize).fit()
    except ValueError as e:
        logger.warning(f"Theta failed on {series.name} ({e}); using naive forecast")
        return _naive(series)
    return np.asarray(result.forecast(series.h), dtype=float)


def forecast_nnar(series: CompetitionSeries) -> np.ndarray:
    """
    Neural network autoregression.

    The number of lags is the AIC-selected AR order, raised to one full cycle
    for seasonal data, fitted through the same lag builder as xgbar.
    """
    y = series.x.values
    f = series.x.frequency
    with warnings.catch_warnings():
        warnings.simplefilter("ignore")
        selected = ar_select_order(y, maxlag=max(1, min(10, len(y) // 3)), ic="aic")
    p = max(selected.ar_lags) if selected.ar_lags else 1
    maxlag = max(1, min(max(p, f), len(y) // 2))

    config = XGBARConfig(maxlag=maxlag, seas_method="none")
    forecaster = XGBARForecaster(config, model_factory=lambda cfg: NNARModel())
    return forecaster.fit(series.x).forecast(series.h).point_forecasts


DEFAULT_METHODS: Dict[str, ForecastMethod] = {
    "a": forecast_arima,
    "f": forecast_theta,
    "n": forecast_nnar,
    "x": forecast_xgbar,
}


def ensemble_names(letters: Iterable[str]) -> List[str]:
    """Every non-empty combination of method letters, each named by its sorted letters."""
    letters = sorted(letters)
    names = []
    for size in range(1, len(letters) + 1):
        names.extend("".join(combo) for combo in combinations(letters, size))
    return names


@dataclass
class SeriesOutcome:
    """Forecasts and accuracy of every method on one series."""
    name: str
    h: int
    forecasts: Dict[str, np.ndarray]
    mase: Dict[str, float]
    mape: Dict[str, float]


@dataclass
class FailureMarker:
    """A unit of work that raised instead of producing an outcome."""
    name: str
    context: RecoveryContext

    @property
    def message(self) -> str:
        return f"{self.context.exception_type}: {self.context.exception_message}"


def evaluate_series(
    series: CompetitionSeries,
    methods: Dict[str, ForecastMethod],
    combine: bool = True,
) -> SeriesOutcome:
    """Run every method on one series and score it, including the ensembles."""
    base = {}
    for letter in sorted(methods):
        values = np.asarray(methods[letter](series), dtype=float)
        if values.shape != (series.h,):
            raise ValueError(
                f"Method '{letter}' returned {values.shape} values for horizon {series.h}"
            )
        base[letter] = values

    names = ensemble_names(base) if combine else sorted(base)
    forecasts = {name: np.mean([base[letter] for letter in name], axis=0) for name in names}

    calc = MetricsCalculator()
    actual = series.xx[: series.h]
    mase, mape = {}, {}
    for name, fc in forecasts.items():
        acc = calc.calculate_forecast_accuracy(
            actual, fc, insample=series.x.values, frequency=series.x.frequency
        )
        mase[name] = acc["mase"]
        mape[name] = acc["mape"]
    return SeriesOutcome(name=series.name, h=series.h, forecasts=forecasts, mase=mase, mape=mape)


@dataclass
class BenchmarkResults:
    """Collected outcomes of a benchmark run."""
    outcomes: Dict[str, SeriesOutcome] = field(default_factory=dict)
    failures: List[FailureMarker] = field(default_factory=list)
    cancelled: List[str] = field(default_factory=list)

    @property
    def n_completed(self) -> int:
        return len(self.outcomes)

    @property
    def is_complete(self) -> bool:
        return not self.failures and not self.cancelled

    def table(self, metric: str = "mase") -> pd.DataFrame:
        """Series x method table of one metric ('mase' or 'mape')."""
        if metric not in ("mase", "mape"):
            raise ValueError(f"Unknown metric: {metric}")
        rows = {name: getattr(outcome, metric) for name, outcome in self.outcomes.items()}
        frame = pd.DataFrame.from_dict(rows, orient="index")
        frame.index.name = "series"
        return frame

    @property
    def mase(self) -> pd.DataFrame:
        return self.table("mase")

    @property
    def mape(self) -> pd.DataFrame:
        return self.table("mape")

    def summary(self) -> pd.DataFrame:
        """Mean MASE and MAPE per method, best MASE first."""
        if not self.outcomes:
            return pd.DataFrame(columns=["mase", "mape"])
        frame = pd.DataFrame({"mase": self.mase.mean(), "mape": self.mape.mean()})
        frame.index.name = "method"
        return frame.sort_values("mase")


class BenchmarkRunner:
    """
    Evaluates a collection of competition series independently.

    Example:
        >>> runner = BenchmarkRunner(n_jobs=4)
        >>> results = runner.run(series)
        >>> results.summary()
    """

    def __init__(
        self,
        methods: Optional[Dict[str, ForecastMethod]] = None,
        n_jobs: int = 1,
        backend: str = "thread",
        combine: bool = True,
        on_result: Optional[Callable[[str, object], None]] = None,
    ):
        """
        Args:
            methods: Letter -> forecast function; defaults to a, f, n and x
            n_jobs: Worker count; 1 runs in the calling thread
            backend: 'thread' or 'process'
            combine: Also score every ensemble of the methods
            on_result: Called with (series name, outcome or FailureMarker) as
                each unit finishes
        """
        if backend not in ("thread", "process"):
            raise ValueError(f"backend must be 'thread' or 'process', got {backend!r}")
        if n_jobs < 1:
            raise ValueError(f"n_jobs must be positive, got {n_jobs}")
        self.methods = dict(methods or DEFAULT_METHODS)
        self.n_jobs = n_jobs
        self.backend = backend
        self.combine = combine
        self.on_result = on_result
        self._cancel_event = threading.Event()
        self._lock = threading.Lock()
        self._futures: Dict[Future, str] = {}

    @property
    def is_cancelled(self) -> bool:
        return self._cancel_event.is_set()

    def cancel(self) -> None:
        """Stop scheduling and cancel units that have not started."""
        self._cancel_event.set()
        with self._lock:
            pending = [f for f in self._futures if f.cancel()]
        logger.info(f"Benchmark cancelled; {len(pending)} pending unit(s) dropped")

    def _record(self, results: BenchmarkResults, name: str, outcome=None, exc=None) -> None:
        if exc is not None:
            marker = FailureMarker(name=name, context=RecoveryContext.from_exception(name, exc))
            results.failures.append(marker)
            logger.error(f"Series {name} failed: {marker.message}")
            item = marker
        else:
            results.outcomes[name] = outcome
            item = outcome
        if self.on_result is not None:
            self.on_result(name, item)

    def run(self, series: Iterable[CompetitionSeries]) -> BenchmarkResults:
        """Evaluate every series; returns whatever completed before any cancellation."""
        series = list(series)
        counts = Counter(item.name for item in series)
        duplicates = sorted(name for name, count in counts.items() if count > 1)
        if duplicates:
            raise ValueError(f"Series names must be unique; duplicated: {duplicates}")
        self._cancel_event.clear()
        results = BenchmarkResults()
        logger.info(
            f"Benchmarking {len(series)} series with methods {sorted(self.methods)} "
            f"(n_jobs={self.n_jobs}, backend={self.backend})"
        )

        if self.n_jobs == 1:
            for item in series:
                if self.is_cancelled:
                    results.cancelled.append(item.name)
                    continue
                try:
                    outcome = evaluate_series(item, self.methods, self.combine)
                except Exception as e:
                    self._record(results, item.name, exc=e)
                else:
                    self._record(results, item.name, outcome=outcome)
        else:
            executor_cls = ThreadPoolExecutor if self.backend == "thread" else ProcessPoolExecutor
            with executor_cls(max_workers=self.n_jobs) as executor:
                with self._lock:
                    self._futures = {}
                    for item in series:
                        if self.is_cancelled:
                            results.cancelled.append(item.name)
                            continue
                        future = executor.submit(evaluate_series, item, self.methods, self.combine)
                        self._futures[future] = item.name
                    futures = dict(self._futures)
                if self.is_cancelled:
                    for future in futures:
                        future.cancel()

                for future in as_completed(futures):
                    name = futures[future]
                    if future.cancelled():
                        results.cancelled.append(name)
                        continue
                    exc = future.exception()
                    if exc is not None:
                        self._record(results, name, exc=exc)
                    else:
                        self._record(results, name, outcome=future.result())
            with self._lock:
                self._futures = {}

        order = {item.name: i for i, item in enumerate(series)}
        results.outcomes = dict(sorted(results.outcomes.items(), key=lambda kv: order[kv[0]]))
        results.cancelled.sort(key=order.get)
        logger.info(
            f"Benchmark finished: {results.n_completed} completed, "
            f"{len(results.failures)} failed, {len(results.cancelled)} cancelled"
        )
        return results
