"""Error taxonomy and failure capture utilities."""

import time
import traceback
from dataclasses import dataclass, field
from typing import Any, Dict


class ForecastXGBError(Exception):
    """Base class for all errors raised by the forecasting pipeline."""


class InvalidConfigurationError(ForecastXGBError, ValueError):
    """maxlag, frequency, K or regressor layout incompatible with the data."""


class InsufficientDataError(ForecastXGBError, ValueError):
    """Not enough history for differencing or seasonal decomposition."""


class MissingRegressorError(ForecastXGBError, ValueError):
    """Forecast horizon exceeds the supplied future regressor rows."""


class TrainingError(ForecastXGBError, RuntimeError):
    """Model adapter failed to fit."""


class PredictionError(ForecastXGBError, RuntimeError):
    """Model adapter failed to predict."""


@dataclass
class RecoveryContext:
    """Captures context of a failed unit of work for later inspection."""
    run_id: str
    timestamp: float = field(default_factory=time.time)
    exception_type: str = ""
    exception_message: str = ""
    stack_trace: str = ""
    local_variables: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_exception(cls, run_id: str, exc: BaseException) -> "RecoveryContext":
        """
        Create context from an exception.
        Captures locals from the frame where the exception was raised.
        """
        stack_trace = "".join(traceback.format_tb(exc.__traceback__))

        locals_repr = {}
        if exc.__traceback__:
            ptr = exc.__traceback__
            while ptr.tb_next:
                ptr = ptr.tb_next
            frame = ptr.tb_frame

            for k, v in frame.f_locals.items():
                try:
                    val_str = str(v)
                    if len(val_str) > 500:
                        val_str = val_str[:500] + "..."
                    locals_repr[k] = val_str
                except Exception:
                    locals_repr[k] = "<unprintable>"

        return cls(
            run_id=run_id,
            exception_type=type(exc).__name__,
            exception_message=str(exc),
            stack_trace=stack_trace,
            local_variables=locals_repr,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "run_id": self.run_id,
            "timestamp": self.timestamp,
            "exception_type": self.exception_type,
            "exception_message": self.exception_message,
            "stack_trace": self.stack_trace,
            "local_variables": self.local_variables,
        }
