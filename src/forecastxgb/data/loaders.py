"""Data loading utilities for single series and forecasting-competition collections."""

from typing import Dict, Optional, Any, List
from dataclasses import dataclass, field
import pandas as pd
import numpy as np
import logging
from pathlib import Path

from .structs import TimeSeries

logger = logging.getLogger(__name__)

COMPETITION_SCHEMA = {
    "series_id": "object",
    "frequency": "int64",
    "horizon": "int64",
    "split": "object",
    "value": "float64",
}


@dataclass
class ValidationResult:
    """Result of schema validation."""
    is_valid: bool
    errors: List[str]
    warnings: List[str]
    schema_violations: Dict[str, str]

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "is_valid": self.is_valid,
            "errors": self.errors,
            "warnings": self.warnings,
            "schema_violations": self.schema_violations,
        }


@dataclass
class CompetitionSeries:
    """
    One series of a forecasting competition.

    Attributes:
        name: Series identifier
        x: Training history
        xx: Held-out test values
        h: Forecast horizon
        metadata: Free-form tags (period type, source)
    """
    name: str
    x: TimeSeries
    xx: np.ndarray
    h: int
    metadata: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        self.xx = np.asarray(self.xx, dtype=float)
        if self.h < 1:
            raise ValueError(f"Horizon must be positive for {self.name}, got {self.h}")
        if len(self.xx) < self.h:
            raise ValueError(
                f"Series {self.name} has {len(self.xx)} test values for horizon {self.h}"
            )


class DataLoader:
    """Handles loading series from CSV files with schema validation."""

    def load_series_csv(
        self,
        path: str,
        column: str,
        frequency: int = 1,
        start: int = 0,
    ) -> TimeSeries:
        """
        Load one column of a CSV file as a TimeSeries.

        Args:
            path: Path to the CSV file
            column: Column holding the observations
            frequency: Observations per seasonal cycle
            start: Absolute period counter of the first row

        Raises:
            FileNotFoundError: If the file doesn't exist
            ValueError: If the column is missing
        """
        file_path = Path(path)
        if not file_path.exists():
            raise FileNotFoundError(f"CSV file not found: {path}")

        df = pd.read_csv(file_path)
        if column not in df.columns:
            raise ValueError(f"Column '{column}' not found in {path}")

        series = df[column].dropna()
        logger.info(f"Loaded {len(series)} observations of '{column}' from {path}")
        return TimeSeries(series.to_numpy(dtype=float), frequency=frequency,
                          start=start, name=column)

    def load_competition_csv(
        self,
        path: str,
        max_series: Optional[int] = None,
    ) -> List[CompetitionSeries]:
        """
        Load a long-format competition file.

        Each row holds one observation; rows of a series appear in time order,
        training rows (split == "train") before test rows (split == "test").
        An optional "period" column is kept as metadata.

        Args:
            path: Path to the CSV file
            max_series: Load at most this many series

        Returns:
            List of CompetitionSeries in file order
        """
        file_path = Path(path)
        if not file_path.exists():
            raise FileNotFoundError(f"CSV file not found: {path}")

        df = pd.read_csv(file_path, dtype={"series_id": str})
        result = self.validate_schema(df, COMPETITION_SCHEMA)
        if not result.is_valid:
            raise ValueError(f"Schema validation failed: {'; '.join(result.errors)}")

        collection: List[CompetitionSeries] = []
        for series_id, group in df.groupby("series_id", sort=False):
            if max_series is not None and len(collection) >= max_series:
                break
            train = group.loc[group["split"] == "train", "value"].to_numpy(dtype=float)
            test = group.loc[group["split"] == "test", "value"].to_numpy(dtype=float)
            metadata = {}
            if "period" in group.columns:
                metadata["period"] = str(group["period"].iloc[0])
            collection.append(CompetitionSeries(
                name=str(series_id),
                x=TimeSeries(train, frequency=int(group["frequency"].iloc[0]), name="y"),
                xx=test,
                h=int(group["horizon"].iloc[0]),
                metadata=metadata,
            ))

        logger.info(f"Loaded {len(collection)} competition series from {path}")
        return collection

    def validate_schema(
        self,
        df: pd.DataFrame,
        schema: Dict[str, str]
    ) -> ValidationResult:
        """
        Validate DataFrame against expected schema.

        Args:
            df: DataFrame to validate
            schema: Expected schema as {column_name: dtype_string}

        Returns:
            ValidationResult with validation details
        """
        errors: List[str] = []
        warnings: List[str] = []
        schema_violations: Dict[str, str] = {}

        for col in schema.keys():
            if col not in df.columns:
                errors.append(f"Missing required column: {col}")
                schema_violations[col] = "missing"

        extra_cols = set(df.columns) - set(schema.keys())
        if extra_cols:
            warnings.append(f"Extra columns found: {extra_cols}")

        for col, expected_dtype in schema.items():
            if col in df.columns:
                actual_dtype = str(df[col].dtype)
                if not self._dtype_compatible(actual_dtype, expected_dtype):
                    errors.append(
                        f"Column '{col}' has dtype '{actual_dtype}', "
                        f"expected '{expected_dtype}'"
                    )
                    schema_violations[col] = (
                        f"dtype_mismatch: {actual_dtype} != {expected_dtype}"
                    )

        return ValidationResult(
            is_valid=len(errors) == 0,
            errors=errors,
            warnings=warnings,
            schema_violations=schema_violations,
        )

    def _dtype_compatible(self, actual: str, expected: str) -> bool:
        """Check if actual dtype is compatible with expected dtype."""
        actual_norm = actual.lower().replace(" ", "")
        expected_norm = expected.lower().replace(" ", "")

        if actual_norm == expected_norm:
            return True

        # Integers are acceptable wherever floats are expected
        float_types = {"float64", "float32", "float", "float16"}
        int_types = {"int64", "int32", "int", "int16", "int8"}
        if expected_norm in float_types and actual_norm in float_types | int_types:
            return True
        if actual_norm in int_types and expected_norm in int_types:
            return True

        string_types = {"object", "string", "str"}
        if actual_norm in string_types and expected_norm in string_types:
            return True

        return False
