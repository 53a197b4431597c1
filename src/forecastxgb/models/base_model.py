"""Base model interface for the learners driven by the forecasting pipeline."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional
import json
import logging
import pickle

import numpy as np
import pandas as pd

from forecastxgb.models.config import CVConfig

logger = logging.getLogger(__name__)


@dataclass
class ModelArtifact:
    """Container for model artifacts and metadata."""
    model_id: str
    model_type: str
    model_object: Any
    hyperparameters: Dict[str, Any]
    training_metrics: Dict[str, float] = field(default_factory=dict)
    feature_importance: Dict[str, float] = field(default_factory=dict)
    feature_names: List[str] = field(default_factory=list)
    training_time: float = 0.0
    created_at: datetime = field(default_factory=datetime.now)
    metadata: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Convert artifact metadata to dictionary (excludes model object)."""
        return {
            "model_id": self.model_id,
            "model_type": self.model_type,
            "hyperparameters": self.hyperparameters,
            "training_metrics": self.training_metrics,
            "feature_importance": self.feature_importance,
            "feature_names": self.feature_names,
            "training_time": self.training_time,
            "created_at": self.created_at.isoformat(),
            "metadata": self.metadata,
        }


class BaseModel(ABC):
    """
    Abstract model adapter.

    The pipeline only relies on ``fit(X, y, cv_config)`` and ``predict(X)``;
    how rounds or other hyperparameters are chosen is up to the subclass.
    """

    def __init__(
        self,
        model_id: Optional[str] = None,
        hyperparameters: Optional[Dict[str, Any]] = None,
    ):
        """
        Initialize base model.

        Args:
            model_id: Unique identifier for the model
            hyperparameters: Model hyperparameters
        """
        self.model_id = model_id or self._generate_model_id()
        self.hyperparameters = dict(hyperparameters or {})
        self.model_object: Any = None
        self.is_fitted: bool = False
        self.feature_names: List[str] = []
        self.training_metrics: Dict[str, float] = {}
        self.training_time: float = 0.0
        self._created_at: datetime = datetime.now()

    @property
    @abstractmethod
    def model_type(self) -> str:
        """Return the model type identifier."""
        pass

    @abstractmethod
    def fit(
        self,
        X: pd.DataFrame,
        y: pd.Series,
        cv_config: Optional[CVConfig] = None,
        **kwargs
    ) -> "BaseModel":
        """
        Fit the model to a design matrix.

        Args:
            X: Feature DataFrame
            y: Target Series
            cv_config: Round/hyperparameter selection settings
            **kwargs: Additional fitting parameters

        Returns:
            Self for method chaining

        Raises:
            TrainingError: If the underlying learner fails
        """
        pass

    @abstractmethod
    def predict(self, X: pd.DataFrame) -> np.ndarray:
        """
        Generate predictions for input data.

        Raises:
            PredictionError: If the model is unfitted or the learner fails
        """
        pass

    def get_feature_importance(self) -> Dict[str, float]:
        """Feature importance scores; empty when the learner has none."""
        return {}

    def save_model(self, path: str) -> None:
        """
        Save model to disk.

        Args:
            path: Directory path to save model artifacts
        """
        if not self.is_fitted:
            raise ValueError("Cannot save unfitted model")

        save_dir = Path(path)
        save_dir.mkdir(parents=True, exist_ok=True)

        with open(save_dir / "model.pkl", "wb") as f:
            pickle.dump(self.model_object, f)

        with open(save_dir / "metadata.json", "w") as f:
            json.dump(self.get_artifact().to_dict(), f, indent=2, default=str)

        logger.info(f"Model saved to {save_dir}")

    def load_model(self, path: str) -> "BaseModel":
        """
        Load model from disk.

        Args:
            path: Directory path containing model artifacts

        Returns:
            Self with loaded model
        """
        load_dir = Path(path)

        with open(load_dir / "model.pkl", "rb") as f:
            self.model_object = pickle.load(f)

        with open(load_dir / "metadata.json", "r") as f:
            metadata = json.load(f)

        self.model_id = metadata["model_id"]
        self.hyperparameters = metadata["hyperparameters"]
        self.training_metrics = metadata["training_metrics"]
        self.feature_names = metadata["feature_names"]
        self.training_time = metadata["training_time"]
        self._created_at = datetime.fromisoformat(metadata["created_at"])
        self.is_fitted = True

        logger.info(f"Model loaded from {load_dir}")
        return self

    def get_artifact(self) -> ModelArtifact:
        """Get model artifact containing all metadata."""
        return ModelArtifact(
            model_id=self.model_id,
            model_type=self.model_type,
            model_object=self.model_object,
            hyperparameters=self.hyperparameters,
            training_metrics=self.training_metrics,
            feature_importance=self.get_feature_importance() if self.is_fitted else {},
            feature_names=self.feature_names,
            training_time=self.training_time,
            created_at=self._created_at,
        )

    def _generate_model_id(self) -> str:
        """Generate a unique model ID."""
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        return f"{self.model_type}_{timestamp}"

    def _validate_input(self, X: pd.DataFrame) -> None:
        """Validate input DataFrame."""
        if not isinstance(X, pd.DataFrame):
            raise TypeError("X must be a pandas DataFrame")
        if X.empty:
            raise ValueError("X cannot be empty")
        if X.isnull().any().any():
            logger.warning("Input contains NaN values")

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"model_id='{self.model_id}', "
            f"is_fitted={self.is_fitted})"
        )
