"""Core data structures for the forecasting pipeline."""

from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Union

import numpy as np
import pandas as pd

from forecastxgb.utils.error_handling import InvalidConfigurationError


def _readonly(values) -> np.ndarray:
    arr = np.array(values, dtype=float, copy=True).reshape(-1)
    arr.setflags(write=False)
    return arr


@dataclass(frozen=True, eq=False)
class TimeSeries:
    """
    Immutable univariate series with a sampling frequency.

    Attributes:
        values: Observations, stored as a read-only float array
        frequency: Observations per seasonal cycle (12 for monthly data)
        start: Absolute period counter of the first observation
        name: Name used as the source prefix of lag feature names
    """
    values: np.ndarray
    frequency: int = 1
    start: int = 0
    name: str = "y"

    def __post_init__(self):
        """Validate and freeze the observations."""
        object.__setattr__(self, "values", _readonly(self.values))
        if int(self.frequency) != self.frequency or self.frequency < 1:
            raise InvalidConfigurationError(
                f"frequency must be a positive integer, got {self.frequency}"
            )
        object.__setattr__(self, "frequency", int(self.frequency))
        object.__setattr__(self, "start", int(self.start))
        if not np.all(np.isfinite(self.values)):
            raise InvalidConfigurationError("Series contains non-finite values")

    def __len__(self) -> int:
        return len(self.values)

    def positions(self) -> np.ndarray:
        """Absolute period counters of each observation."""
        return np.arange(self.start, self.start + len(self.values))

    def cycle_positions(self) -> np.ndarray:
        """Position-in-cycle (0..frequency-1) of each observation."""
        return self.positions() % self.frequency

    def end(self) -> int:
        """Absolute period counter one past the last observation."""
        return self.start + len(self.values)

    def extend(self, values: Sequence[float]) -> "TimeSeries":
        """Return a new series continuing this one's period counter."""
        return TimeSeries(
            values=np.concatenate([self.values, np.asarray(values, dtype=float)]),
            frequency=self.frequency,
            start=self.start,
            name=self.name,
        )

    def continuation(self, values: Sequence[float]) -> "TimeSeries":
        """Return a series that starts right after this one ends."""
        return TimeSeries(
            values=values, frequency=self.frequency, start=self.end(), name=self.name
        )

    def to_pandas(self) -> pd.Series:
        return pd.Series(self.values, index=self.positions(), name=self.name)

    @classmethod
    def from_pandas(
        cls,
        series: pd.Series,
        frequency: int = 1,
        start: int = 0,
    ) -> "TimeSeries":
        """Build from a pandas Series, ignoring its index."""
        name = str(series.name) if series.name is not None else "y"
        return cls(values=series.to_numpy(dtype=float), frequency=frequency,
                   start=start, name=name)


@dataclass(frozen=True, eq=False)
class RegressorSet:
    """
    Named external regressor columns aligned row-for-row with a response.

    Attributes:
        frame: Numeric DataFrame; column names become lag feature prefixes
    """
    frame: pd.DataFrame
    _names: List[str] = field(default_factory=list, repr=False, compare=False)

    def __post_init__(self):
        """Validate column names and dtypes."""
        frame = self.frame
        if isinstance(frame, np.ndarray):
            matrix = frame.reshape(len(frame), -1)
            frame = pd.DataFrame(
                matrix, columns=[f"xreg{i + 1}" for i in range(matrix.shape[1])]
            )
        elif isinstance(frame, pd.Series):
            frame = frame.to_frame(name=frame.name if frame.name is not None else "xreg1")
        elif not isinstance(frame, pd.DataFrame):
            raise InvalidConfigurationError("Regressors must be a DataFrame, Series or array")

        names = list(frame.columns)
        if any(not isinstance(n, str) for n in names):
            raise InvalidConfigurationError(f"Regressor column names must be strings: {names}")
        if len(set(names)) != len(names):
            raise InvalidConfigurationError(f"Regressor column names must be unique: {names}")
        non_numeric = [c for c in names if not pd.api.types.is_numeric_dtype(frame[c])]
        if non_numeric:
            raise InvalidConfigurationError(f"Regressor columns must be numeric: {non_numeric}")

        frame = frame.astype(float).reset_index(drop=True)
        if not np.all(np.isfinite(frame.to_numpy())):
            raise InvalidConfigurationError("Regressors contain non-finite values")
        object.__setattr__(self, "frame", frame)
        object.__setattr__(self, "_names", names)

    @property
    def names(self) -> List[str]:
        return list(self._names)

    @property
    def n_rows(self) -> int:
        return len(self.frame)

    @property
    def values(self) -> np.ndarray:
        return self.frame.to_numpy(dtype=float)

    def slice(self, start: int, stop: Optional[int] = None) -> "RegressorSet":
        return RegressorSet(self.frame.iloc[start:stop])

    def concat(self, other: "RegressorSet") -> "RegressorSet":
        """Append rows of another set with identical columns."""
        if other.names != self.names:
            raise InvalidConfigurationError(
                f"Regressor columns {other.names} do not match {self.names}"
            )
        return RegressorSet(pd.concat([self.frame, other.frame], ignore_index=True))

    @classmethod
    def coerce(
        cls, data: Union["RegressorSet", pd.DataFrame, pd.Series, np.ndarray, None]
    ) -> Optional["RegressorSet"]:
        """Wrap raw regressor input, passing None and RegressorSet through."""
        if data is None or isinstance(data, RegressorSet):
            return data
        return cls(data)
