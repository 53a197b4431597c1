"""Neural network autoregression adapter: an averaged ensemble of small MLPs."""

from typing import Any, Dict, List, Optional
import time
import warnings

import numpy as np
import pandas as pd
from sklearn.compose import TransformedTargetRegressor
from sklearn.exceptions import ConvergenceWarning
from sklearn.neural_network import MLPRegressor
from sklearn.pipeline import make_pipeline
from sklearn.preprocessing import StandardScaler

from forecastxgb.models.base_model import BaseModel, logger
from forecastxgb.models.config import CVConfig
from forecastxgb.utils.error_handling import PredictionError, TrainingError


class NNARModel(BaseModel):
    """
    Single-hidden-layer networks fitted from different random starts and
    averaged, on standardised lagged inputs.

    Hyperparameters:
        repeats: Number of networks averaged (default 20)
        hidden_size: Hidden units; defaults to half the inputs plus one
        max_iter: L-BFGS iterations per network
        alpha: L2 weight decay
    """

    def __init__(
        self,
        model_id: Optional[str] = None,
        hyperparameters: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(model_id, hyperparameters)
        self.hyperparameters.setdefault("repeats", 20)
        self.hyperparameters.setdefault("hidden_size", None)
        self.hyperparameters.setdefault("max_iter", 500)
        self.hyperparameters.setdefault("alpha", 1e-4)
        self.model_object: List[TransformedTargetRegressor] = []

    @property
    def model_type(self) -> str:
        return "nnar"

    def fit(
        self,
        X: pd.DataFrame,
        y: pd.Series,
        cv_config: Optional[CVConfig] = None,
        **kwargs
    ) -> "NNARModel":
        """Fit ``repeats`` networks; cv_config only supplies the seed."""
        self._validate_input(X)
        self.feature_names = X.columns.tolist()
        seed = (cv_config or CVConfig()).seed
        hidden = self.hyperparameters["hidden_size"] or int(round((X.shape[1] + 1) / 2))
        start_time = time.time()

        networks = []
        try:
            with warnings.catch_warnings():
                warnings.simplefilter("ignore", ConvergenceWarning)
                for i in range(self.hyperparameters["repeats"]):
                    net = TransformedTargetRegressor(
                        regressor=make_pipeline(
                            StandardScaler(),
                            MLPRegressor(
                                hidden_layer_sizes=(hidden,),
                                solver="lbfgs",
                                alpha=self.hyperparameters["alpha"],
                                max_iter=self.hyperparameters["max_iter"],
                                random_state=seed + i,
                            ),
                        ),
                        transformer=StandardScaler(),
                    )
                    net.fit(X.to_numpy(dtype=float), y.to_numpy(dtype=float))
                    networks.append(net)
        except ValueError as e:
            raise TrainingError(f"NNAR training failed: {e}") from e

        self.model_object = networks
        self.is_fitted = True
        self.training_time = time.time() - start_time
        logger.debug(
            f"Fitted {len(networks)} networks with {hidden} hidden units "
            f"on {X.shape[1]} inputs"
        )
        return self

    def predict(self, X: pd.DataFrame) -> np.ndarray:
        """Average of the ensemble's predictions."""
        if not self.is_fitted:
            raise PredictionError("Model not fitted")
        self._validate_input(X)
        try:
            values = X[self.feature_names].to_numpy(dtype=float)
            preds = np.column_stack([net.predict(values) for net in self.model_object])
        except (KeyError, ValueError) as e:
            raise PredictionError(f"NNAR prediction failed: {e}") from e
        return preds.mean(axis=1)
