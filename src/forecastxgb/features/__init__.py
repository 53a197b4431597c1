"""Feature stages for autoregressive boosting.

This package provides the forward stages of the forecasting pipeline and
their inverses:
- Modulus power transform for variance stabilisation
- Seasonal dummies, Fourier terms or multiplicative decomposition
- Differencing for trend removal
- Lagged design-matrix construction
"""

from forecastxgb.features.transforms import PowerTransform
from forecastxgb.features.seasonal import SeasonalMethod, SeasonalState, fit_seasonal
from forecastxgb.features.trend import TrendState, fit_trend
from forecastxgb.features.lags import LagMatrixBuilder, default_maxlag, select_maxlag

__all__ = [
    "PowerTransform",
    "SeasonalMethod",
    "SeasonalState",
    "fit_seasonal",
    "TrendState",
    "fit_trend",
    "LagMatrixBuilder",
    "default_maxlag",
    "select_maxlag",
]
