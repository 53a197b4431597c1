"""Series containers and data loading utilities."""

from .structs import TimeSeries, RegressorSet
from .loaders import DataLoader, ValidationResult, CompetitionSeries

__all__ = [
    "TimeSeries",
    "RegressorSet",
    "DataLoader",
    "ValidationResult",
    "CompetitionSeries",
]
