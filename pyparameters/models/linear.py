"""
Reference model handle for fitted linear-type models.

LinearModel wraps the quantities a fitting routine already produced
(coefficients, model matrix, residuals, working weights) and exposes
them through the ModelHandle protocol. Nothing here fits a model.
"""

from __future__ import annotations

from typing import Any, Sequence

import numpy as np
import pandas as pd
from numpy.typing import ArrayLike, NDArray

from pyparameters.core.capabilities import (
    CAPABILITY_ESTIMATING_FUNCTIONS,
    CAPABILITY_NATIVE_ROBUST,
)
from pyparameters.core.defaults import COMPONENT_ALL
from pyparameters.core.exceptions import ValidationError, DimensionError
from pyparameters.core.families import ModelFamily
from pyparameters.core.validation import check_array, check_consistent_length
from pyparameters.models._common import CoefficientBlock


class LinearModel(CoefficientBlock):
    """Fitted linear, GLM or GEE-type model.

    Args:
        coefficients: Estimated coefficients (k,).
        X: Model matrix (n, k), columns in coefficient order.
        residuals: Working residuals (n,).
        names: Coefficient names. Default 'b0', 'b1', ...
        weights: Working weights (n,), or None for unit weights.
        components: Optional component tag per coefficient
            (e.g. 'conditional', 'zero_inflated').
        statistic: Name of the test statistic, 't-statistic' or
            'z-statistic'.
        df_residual: Residual degrees of freedom. Default n - k.
        robust_vcov: Sandwich covariance computed by the fitting routine
            itself (k, k). Required for GEE-type models.
        family: Dispatch tag. Default ModelFamily.LINEAR.

    Example:
        >>> beta, *_ = np.linalg.lstsq(X, y, rcond=None)
        >>> model = LinearModel(beta, X, y - X @ beta,
        ...                     names=['(Intercept)', 'x'])
        >>> standard_error_robust(model, vcov_type='HC1')
    """

    def __init__(
        self,
        coefficients: ArrayLike,
        X: ArrayLike,
        residuals: ArrayLike,
        *,
        names: Sequence[str] | None = None,
        weights: ArrayLike | None = None,
        components: Sequence[str] | None = None,
        statistic: str = 't-statistic',
        df_residual: float | None = None,
        robust_vcov: ArrayLike | None = None,
        family: ModelFamily = ModelFamily.LINEAR,
    ):
        beta = check_array(coefficients, 'coefficients').ravel()
        X_arr = check_array(X, 'X')
        resid = check_array(residuals, 'residuals').ravel()

        if X_arr.ndim != 2:
            raise DimensionError(
                f"X: expected 2D array, got {X_arr.ndim}D with shape {X_arr.shape}"
            )
        n, k = X_arr.shape
        if k != len(beta):
            raise DimensionError(
                f"X has {k} columns but {len(beta)} coefficients were given"
            )
        check_consistent_length(X_arr, resid, names=('X', 'residuals'))

        if weights is not None:
            w = check_array(weights, 'weights').ravel()
            check_consistent_length(X_arr, w, names=('X', 'weights'))
            if np.any(w < 0):
                raise ValidationError("weights: must be non-negative")
        else:
            w = None

        if robust_vcov is not None:
            V = check_array(robust_vcov, 'robust_vcov')
            if V.shape != (k, k):
                raise DimensionError(
                    f"robust_vcov: expected shape {(k, k)}, got {V.shape}"
                )
        else:
            V = None

        super().__init__(
            beta, names, components, statistic,
            float(n - k) if df_residual is None else df_residual,
            family,
        )
        self._X = X_arr
        self._resid = resid
        self._weights = w
        self._robust_vcov = V

    @property
    def n_obs(self) -> int:
        return self._X.shape[0]

    def supports(self, capability: str) -> bool:
        if capability == CAPABILITY_ESTIMATING_FUNCTIONS:
            return True
        if capability == CAPABILITY_NATIVE_ROBUST:
            return self._robust_vcov is not None
        return False

    def vcov(self, component: str = COMPONENT_ALL, robust: bool = False) -> pd.DataFrame:
        """Covariance of the coefficients of one component.

        Classical: σ² (X'WX)⁻¹ with σ² = Σ wᵢeᵢ² / df.
        Robust: the matrix supplied by the fitting routine.
        """
        if robust:
            if self._robust_vcov is None:
                raise ValidationError(
                    "model has no native robust covariance; pass robust_vcov "
                    "or use a sandwich estimator"
                )
            return self._labeled(self._robust_vcov, component)

        k = len(self._beta)
        df = self._df_residual
        if df is None or df <= 0:
            return self._labeled(np.full((k, k), np.nan), component)

        Xw = self._X
        e = self._resid
        if self._weights is not None:
            sw = np.sqrt(self._weights)
            Xw = Xw * sw[:, np.newaxis]
            e = e * sw
        sigma_sq = float(e @ e) / df
        return self._labeled(sigma_sq * np.linalg.pinv(Xw.T @ Xw), component)

    # --- Estimating functions ---

    def model_matrix(self) -> pd.DataFrame:
        return pd.DataFrame(self._X, columns=list(self._names))

    def residuals(self) -> NDArray[np.floating[Any]]:
        return self._resid

    def weights(self) -> NDArray[np.floating[Any]] | None:
        return self._weights

    def __repr__(self) -> str:
        return (
            f"LinearModel({self._family.value}, n={self.n_obs}, "
            f"k={len(self._beta)}, statistic={self._statistic!r})"
        )
