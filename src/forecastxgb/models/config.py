"""Configuration objects for the xgbar pipeline."""

from dataclasses import asdict, dataclass, field, fields
from typing import Any, Dict, Optional, Union

from forecastxgb.utils.error_handling import InvalidConfigurationError

SEASONAL_METHODS = ("dummies", "decompose", "fourier", "none")
TREND_METHODS = ("none", "differencing")
NROUNDS_METHODS = ("cv", "v", "manual")


@dataclass(frozen=True)
class CVConfig:
    """
    How the model adapter selects the number of boosting rounds.

    Attributes:
        nrounds: Maximum (cv, v) or exact (manual) number of rounds
        nrounds_method: 'cv' (k-fold), 'v' (last 20% holdout) or 'manual'
        nfold: Folds for 'cv'; 10 for more than 30 rows, else 5
        early_stopping_rounds: Stop cv/v search after this many rounds without gain
        seed: Random seed for fold assignment and the booster
    """
    nrounds: int = 100
    nrounds_method: str = "cv"
    nfold: Optional[int] = None
    early_stopping_rounds: Optional[int] = None
    seed: int = 0

    def validate(self) -> "CVConfig":
        if self.nrounds_method not in NROUNDS_METHODS:
            raise InvalidConfigurationError(
                f"nrounds_method must be one of {NROUNDS_METHODS}, got {self.nrounds_method!r}"
            )
        if self.nrounds < 1:
            raise InvalidConfigurationError(f"nrounds must be positive, got {self.nrounds}")
        if self.nfold is not None and self.nfold < 2:
            raise InvalidConfigurationError(f"nfold must be at least 2, got {self.nfold}")
        return self

    def resolve_nfold(self, n_rows: int) -> int:
        nfold = self.nfold if self.nfold is not None else (10 if n_rows > 30 else 5)
        return max(2, min(nfold, n_rows))


@dataclass(frozen=True)
class XGBARConfig:
    """
    Full configuration surface of the pipeline.

    Attributes:
        maxlag: Lags of the response and regressors; None selects max(8, 2f)
        seas_method: 'dummies', 'decompose', 'fourier' or 'none'
        trend_method: 'none' or 'differencing'
        lam: Modulus power transform exponent, or 'auto'
        K: Fourier harmonics; None selects a frequency-based default
        frequency: Overrides the series frequency when set
        diffs: Fixed differencing order; None estimates it with KPSS tests
        min_train_rows: Rows to keep when shrinking the default maxlag
        cv: Boosting-round selection settings
        hyperparameters: Extra booster parameters (max_depth, learning_rate, ...)
    """
    maxlag: Optional[int] = None
    seas_method: str = "dummies"
    trend_method: str = "none"
    lam: Union[float, str] = 1.0
    K: Optional[int] = None
    frequency: Optional[int] = None
    diffs: Optional[int] = None
    min_train_rows: int = 1
    cv: CVConfig = field(default_factory=CVConfig)
    hyperparameters: Dict[str, Any] = field(default_factory=dict)

    def validate(self) -> "XGBARConfig":
        """Check value ranges; returns self for chaining."""
        if self.maxlag is not None and (int(self.maxlag) != self.maxlag or self.maxlag < 1):
            raise InvalidConfigurationError(f"maxlag must be an integer >= 1, got {self.maxlag}")
        if self.seas_method not in SEASONAL_METHODS:
            raise InvalidConfigurationError(
                f"seas_method must be one of {SEASONAL_METHODS}, got {self.seas_method!r}"
            )
        if self.trend_method not in TREND_METHODS:
            raise InvalidConfigurationError(
                f"trend_method must be one of {TREND_METHODS}, got {self.trend_method!r}"
            )
        if isinstance(self.lam, str) and self.lam != "auto":
            raise InvalidConfigurationError(f"lam must be a number or 'auto', got {self.lam!r}")
        if self.K is not None and self.K < 1:
            raise InvalidConfigurationError(f"K must be >= 1, got {self.K}")
        if self.frequency is not None and self.frequency < 1:
            raise InvalidConfigurationError(f"frequency must be >= 1, got {self.frequency}")
        if self.diffs is not None and self.diffs not in (0, 1, 2):
            raise InvalidConfigurationError(f"diffs must be 0, 1 or 2, got {self.diffs}")
        if self.min_train_rows < 1:
            raise InvalidConfigurationError(
                f"min_train_rows must be >= 1, got {self.min_train_rows}"
            )
        self.cv.validate()
        return self

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a plain dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "XGBARConfig":
        """
        Create from a dictionary, accepting 'lambda' as an alias of 'lam'.

        Unknown keys raise InvalidConfigurationError.
        """
        data = dict(data)
        if "lambda" in data:
            data["lam"] = data.pop("lambda")
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise InvalidConfigurationError(f"Unknown configuration keys: {sorted(unknown)}")
        cv = data.pop("cv", None) or {}
        if isinstance(cv, dict):
            try:
                cv = CVConfig(**cv)
            except TypeError as e:
                raise InvalidConfigurationError(f"Invalid cv configuration: {e}") from e
        return cls(cv=cv, **data).validate()
