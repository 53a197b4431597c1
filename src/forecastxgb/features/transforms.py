"""Variance-stabilising modulus power transform.

The transform is the John-Draper modulus generalisation of Box-Cox, which is
defined for zero and negative observations as well as positive ones:

    z = sign(y) * ((|y| + 1) ** lam - 1) / lam      (lam != 0)
    z = sign(y) * log(|y| + 1)                      (lam == 0)

With lam == 1 the transform is the identity.
"""

from dataclasses import dataclass
from typing import Union
import logging

import numpy as np
from scipy import stats

from forecastxgb.utils.error_handling import InvalidConfigurationError

logger = logging.getLogger(__name__)


def modulus_transform(y: np.ndarray, lam: float) -> np.ndarray:
    """Apply the modulus power transform elementwise."""
    y = np.asarray(y, dtype=float)
    if lam == 1:
        return y.copy()
    if lam == 0:
        return np.sign(y) * np.log1p(np.abs(y))
    return np.sign(y) * (np.power(np.abs(y) + 1.0, lam) - 1.0) / lam


def inverse_modulus_transform(z: np.ndarray, lam: float) -> np.ndarray:
    """Invert :func:`modulus_transform`."""
    z = np.asarray(z, dtype=float)
    if lam == 1:
        return z.copy()
    if lam == 0:
        return np.sign(z) * np.expm1(np.abs(z))
    return np.sign(z) * (np.power(np.abs(z) * lam + 1.0, 1.0 / lam) - 1.0)


def estimate_lambda(y: np.ndarray) -> float:
    """Estimate lambda by maximum likelihood on the shifted magnitudes."""
    y = np.abs(np.asarray(y, dtype=float)) + 1.0
    if np.ptp(y) == 0:
        return 1.0
    lam = float(stats.boxcox_normmax(y, method="mle"))
    logger.debug(f"Estimated transform lambda {lam:.4f}")
    return lam


@dataclass(frozen=True)
class PowerTransform:
    """Fitted transform stage; holds only the exponent."""
    lam: float = 1.0

    @property
    def is_identity(self) -> bool:
        return self.lam == 1

    def apply(self, values: np.ndarray) -> np.ndarray:
        return modulus_transform(values, self.lam)

    def invert(self, values: np.ndarray) -> np.ndarray:
        """
        Map transformed values back to the original scale.

        For lam < 0 the transform is bounded by |z| < -1/lam; values at or
        beyond that bound have no preimage and come back as NaN with a warning.
        """
        values = np.asarray(values, dtype=float)
        if self.lam >= 0:
            return inverse_modulus_transform(values, self.lam)

        outside = np.abs(values) >= -1.0 / self.lam
        if not outside.any():
            return inverse_modulus_transform(values, self.lam)
        logger.warning(
            f"{int(outside.sum())} value(s) outside the range of the lambda={self.lam:g} "
            f"transform (|z| >= {-1.0 / self.lam:g}); returning NaN for them"
        )
        with np.errstate(invalid="ignore", divide="ignore"):
            restored = inverse_modulus_transform(values, self.lam)
        restored[outside] = np.nan
        return restored

    @classmethod
    def fit(cls, values: np.ndarray, lam: Union[float, str] = 1.0) -> "PowerTransform":
        """
        Resolve the exponent for a series.

        Args:
            values: Raw observations (only used when lam == "auto")
            lam: Exponent, or "auto" to estimate it

        Returns:
            PowerTransform with a concrete exponent
        """
        if isinstance(lam, str):
            if lam != "auto":
                raise InvalidConfigurationError(f"lambda must be a number or 'auto', got {lam!r}")
            return cls(estimate_lambda(values))
        if not np.isfinite(lam):
            raise InvalidConfigurationError(f"lambda must be finite, got {lam}")
        return cls(float(lam))
