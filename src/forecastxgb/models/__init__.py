"""Model adapters and the autoregressive forecasting pipeline."""

from forecastxgb.models.base_model import BaseModel, ModelArtifact
from forecastxgb.models.config import CVConfig, XGBARConfig
from forecastxgb.models.xgboost_model import XGBoostModel
from forecastxgb.models.nnar_model import NNARModel
from forecastxgb.models.reconstructor import ForecastReconstructor, ReconstructionState
from forecastxgb.models.xgbar import Forecast, FittedXGBAR, XGBARForecaster, xgbar

__all__ = [
    "BaseModel",
    "ModelArtifact",
    "CVConfig",
    "XGBARConfig",
    "XGBoostModel",
    "NNARModel",
    "ForecastReconstructor",
    "ReconstructionState",
    "Forecast",
    "FittedXGBAR",
    "XGBARForecaster",
    "xgbar",
]
