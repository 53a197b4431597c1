"""
XGBoost model adapter with cross-validated round selection, optional Optuna
hyperparameter search, and SHAP explainability.
"""

from typing import Dict, Any, Optional
import time
import numpy as np
import pandas as pd
import xgboost as xgb
import optuna
import shap
from sklearn.model_selection import TimeSeriesSplit
from sklearn.metrics import mean_squared_error, mean_absolute_error

from forecastxgb.models.base_model import BaseModel, logger
from forecastxgb.models.config import CVConfig
from forecastxgb.utils.error_handling import PredictionError, TrainingError


class XGBoostModel(BaseModel):
    """
    XGBoost regressor whose number of boosting rounds is chosen by
    cross-validation, a holdout, or set manually.
    """

    def __init__(
        self,
        model_id: Optional[str] = None,
        hyperparameters: Optional[Dict[str, Any]] = None,
        objective: str = "reg:squarederror"
    ):
        """
        Initialize XGBoost model.

        Args:
            model_id: Unique identifier
            hyperparameters: Booster parameters (can be updated via optimization)
            objective: XGBoost regression objective; an "objective" entry in
                hyperparameters takes precedence, as does "random_state" (or
                "seed") over the round-selection seed
        """
        super().__init__(model_id, hyperparameters)
        self.objective = self.hyperparameters.pop("objective", objective)
        seed = self.hyperparameters.pop("seed", None)
        self.seed: Optional[int] = self.hyperparameters.pop("random_state", seed)
        self.model_object: Optional[xgb.XGBRegressor] = None
        self.nrounds: Optional[int] = None
        self._explainer: Optional[shap.TreeExplainer] = None

        if "max_depth" not in self.hyperparameters:
            self.hyperparameters["max_depth"] = 6
        if "learning_rate" not in self.hyperparameters:
            self.hyperparameters["learning_rate"] = 0.3

    @property
    def model_type(self) -> str:
        return "xgboost"

    def _seed(self, cv_config: CVConfig) -> int:
        return cv_config.seed if self.seed is None else self.seed

    def _booster_params(self, seed: int) -> Dict[str, Any]:
        params = {k: v for k, v in self.hyperparameters.items() if k != "n_estimators"}
        params["objective"] = self.objective
        params["seed"] = seed
        return params

    def fit(
        self,
        X: pd.DataFrame,
        y: pd.Series,
        cv_config: Optional[CVConfig] = None,
        optimize: bool = False,
        optimization_params: Optional[Dict[str, Any]] = None,
        **kwargs
    ) -> "XGBoostModel":
        """
        Select the number of rounds, then fit on all rows.

        Args:
            X: Feature DataFrame
            y: Target Series
            cv_config: Round selection settings (defaults to 10/5-fold cv over 100 rounds)
            optimize: Whether to run hyperparameter optimization before round selection
            optimization_params: Parameters for Optuna (n_trials, n_splits)
            **kwargs: Additional args passed to XGBRegressor.fit
        """
        cv_config = (cv_config or CVConfig()).validate()
        start_time = time.time()

        try:
            self._validate_input(X)
            self.feature_names = X.columns.tolist()

            if optimize:
                logger.info("Starting hyperparameter optimization...")
                best_params = self.optimize_hyperparameters(
                    X, y,
                    params=optimization_params or {}
                )
                logger.info(f"Optimization complete. Best params: {best_params}")
                self.hyperparameters.update(best_params)

            self.nrounds = self.select_nrounds(X, y, cv_config)
            self.hyperparameters["n_estimators"] = self.nrounds

            self.model_object = xgb.XGBRegressor(
                objective=self.objective,
                random_state=self._seed(cv_config),
                **self.hyperparameters
            )
            self.model_object.fit(X, y, verbose=False, **kwargs)
        except (xgb.core.XGBoostError, ValueError, TypeError) as e:
            raise TrainingError(f"XGBoost training failed: {e}") from e

        self.is_fitted = True
        self._explainer = None
        self.training_time = time.time() - start_time

        fitted = self.model_object.predict(X)
        self.training_metrics = {
            "rmse": float(np.sqrt(mean_squared_error(y, fitted))),
            "mae": float(mean_absolute_error(y, fitted)),
            "nrounds": float(self.nrounds),
        }
        logger.info(
            f"Fitted xgboost with {self.nrounds} rounds on {len(X)} rows "
            f"({self.training_time:.2f}s)"
        )
        return self

    def select_nrounds(self, X: pd.DataFrame, y: pd.Series, cv_config: CVConfig) -> int:
        """
        Choose the number of boosting rounds.

        Args:
            X, y: Training data
            cv_config: Selection settings

        Returns:
            Round count with the lowest out-of-sample RMSE (or cv_config.nrounds
            for the manual method)
        """
        method = cv_config.nrounds_method
        if method == "manual":
            return cv_config.nrounds
        if len(X) < 4:
            logger.warning(
                f"Only {len(X)} training rows; using {cv_config.nrounds} rounds without validation"
            )
            return cv_config.nrounds

        if method == "cv":
            nfold = cv_config.resolve_nfold(len(X))
            history = xgb.cv(
                self._booster_params(self._seed(cv_config)),
                xgb.DMatrix(X, label=y),
                num_boost_round=cv_config.nrounds,
                nfold=nfold,
                metrics="rmse",
                seed=self._seed(cv_config),
                early_stopping_rounds=cv_config.early_stopping_rounds,
            )
            scores = history["test-rmse-mean"].to_numpy()
            logger.debug(f"{nfold}-fold cv over {len(scores)} rounds, best rmse {scores.min():.4f}")
        else:
            split = max(1, min(len(X) - 1, int(len(X) * 0.8)))
            model = xgb.XGBRegressor(
                objective=self.objective,
                random_state=self._seed(cv_config),
                eval_metric="rmse",
                early_stopping_rounds=cv_config.early_stopping_rounds,
                **{**self.hyperparameters, "n_estimators": cv_config.nrounds}
            )
            model.fit(
                X.iloc[:split], y.iloc[:split],
                eval_set=[(X.iloc[split:], y.iloc[split:])],
                verbose=False,
            )
            scores = np.asarray(model.evals_result()["validation_0"]["rmse"])

        return int(np.argmin(scores)) + 1

    def predict(self, X: pd.DataFrame) -> np.ndarray:
        """Generate predictions."""
        if not self.is_fitted:
            raise PredictionError("Model not fitted")
        try:
            self._validate_input(X)
            X = X[self.feature_names]  # Ensure alignment
            return self.model_object.predict(X)
        except (xgb.core.XGBoostError, KeyError, ValueError, TypeError) as e:
            raise PredictionError(f"XGBoost prediction failed: {e}") from e

    def get_feature_importance(self, importance_type: str = "gain") -> Dict[str, float]:
        """
        Get feature importance.

        Args:
            importance_type: 'weight', 'gain', 'cover', 'total_gain', 'total_cover'
        """
        if not self.is_fitted:
            return {}

        booster = self.model_object.get_booster()
        scores = booster.get_score(importance_type=importance_type)

        # Features never used in a split have 0 importance
        return {feat: float(scores.get(feat, 0.0)) for feat in self.feature_names}

    def get_shap_values(self, X: pd.DataFrame) -> np.ndarray:
        """Calculate SHAP values for X."""
        if not self.is_fitted:
            raise PredictionError("Model not fitted")
        if self._explainer is None:
            self._explainer = shap.TreeExplainer(self.model_object)

        X = X[self.feature_names]
        return self._explainer.shap_values(X)

    def optimize_hyperparameters(
        self,
        X: pd.DataFrame,
        y: pd.Series,
        params: Dict[str, Any]
    ) -> Dict[str, Any]:
        """
        Run Optuna optimization with time-ordered cross-validation.

        Args:
            X, y: Training data
            params: Optimization config
                - n_trials: Number of trials (default: 20)
                - n_splits: CV splits (default: 3)

        Returns:
            Best hyperparameters
        """
        n_trials = params.get("n_trials", 20)
        n_splits = params.get("n_splits", 3)

        def objective(trial):
            param = {
                "max_depth": trial.suggest_int("max_depth", 2, 10),
                "learning_rate": trial.suggest_float("learning_rate", 1e-3, 0.3, log=True),
                "n_estimators": trial.suggest_int("n_estimators", 20, 300),
                "subsample": trial.suggest_float("subsample", 0.5, 1.0),
                "colsample_bytree": trial.suggest_float("colsample_bytree", 0.5, 1.0),
                "min_child_weight": trial.suggest_int("min_child_weight", 1, 10),
                "objective": self.objective
            }

            tscv = TimeSeriesSplit(n_splits=n_splits)
            scores = []

            for train_idx, val_idx in tscv.split(X):
                X_train, X_val = X.iloc[train_idx], X.iloc[val_idx]
                y_train, y_val = y.iloc[train_idx], y.iloc[val_idx]

                model = xgb.XGBRegressor(**param, n_jobs=1)  # Single job per trial to avoid oversubscription
                model.fit(X_train, y_train, verbose=False)
                preds = model.predict(X_val)
                scores.append(np.sqrt(mean_squared_error(y_val, preds)))

            return np.mean(scores)

        study = optuna.create_study(direction="minimize")
        study.optimize(objective, n_trials=n_trials)
        best = dict(study.best_params)
        # Round count is chosen afterwards by select_nrounds
        best.pop("n_estimators", None)
        return best
