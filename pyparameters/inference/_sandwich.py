"""
General robust covariance estimators.

Heteroskedasticity-consistent (HC0-HC4), one-way clustered and kernel HAC
sandwich estimators for models exposing estimating functions (model
matrix, working residuals, optional working weights).

With weights, the model matrix and residuals are scaled by sqrt(w), so
the scores X̃ᵢẽᵢ equal wᵢxᵢeᵢ and the bread is (X'WX)⁻¹.

All estimators share the signature

    estimator(model, type=None, **kwargs) -> labeled covariance DataFrame

and are looked up by name through ESTIMATORS.

References:
    White (1980), MacKinnon & White (1985), Cribari-Neto (2004) for HC
    types; Andrews (1991) and Newey & West (1987) for kernel HAC.
"""

from __future__ import annotations

from typing import Any

import numpy as np
import pandas as pd
from numpy.typing import ArrayLike, NDArray

from pyparameters.core.capabilities import CAPABILITY_ESTIMATING_FUNCTIONS
from pyparameters.core.defaults import (
    DEFAULT_CL_TYPE,
    DEFAULT_HAC_KERNEL,
    DEFAULT_HC_TYPE,
)
from pyparameters.core.exceptions import DimensionError, ValidationError
from pyparameters.core.protocols import supports
from pyparameters.core.validation import check_choice

HC_TYPES = ('const', 'HC0', 'HC1', 'HC2', 'HC3', 'HC4')
CL_TYPES = ('HC0', 'HC1')
HAC_KERNELS = (
    'Bartlett',
    'Parzen',
    'Quadratic Spectral',
    'Truncated',
    'Tukey-Hanning',
)


# =============================================================================
# Shared pieces
# =============================================================================


def estimating_parts(model: Any) -> tuple[NDArray, NDArray, list[str]]:
    """Weighted model matrix, weighted residuals and coefficient names."""
    if not supports(model, CAPABILITY_ESTIMATING_FUNCTIONS):
        raise ValidationError(
            f"{type(model).__name__} does not expose estimating functions; "
            f"sandwich estimators need model_matrix(), residuals() and weights()"
        )
    mm = model.model_matrix()
    X = np.asarray(mm, dtype=np.float64)
    e = np.asarray(model.residuals(), dtype=np.float64).ravel()
    if X.shape[0] != len(e):
        raise DimensionError(
            f"model matrix has {X.shape[0]} rows but {len(e)} residuals"
        )
    w = model.weights()
    if w is not None:
        sw = np.sqrt(np.asarray(w, dtype=np.float64).ravel())
        X = X * sw[:, np.newaxis]
        e = e * sw
    return X, e, [str(c) for c in mm.columns]


def bread(X: NDArray) -> NDArray:
    """(X'X)⁻¹ via pseudo-inverse, tolerating rank deficiency."""
    return np.linalg.pinv(X.T @ X)


def cluster_codes(cluster: ArrayLike | None, n: int) -> tuple[NDArray, int]:
    """Integer cluster codes (0..G-1) and the number of clusters G."""
    if cluster is None:
        raise ValidationError("cluster: a clustering variable is required")
    values = np.asarray(cluster).ravel()
    if len(values) != n:
        raise DimensionError(
            f"cluster: expected {n} entries (one per observation), got {len(values)}"
        )
    codes, uniques = pd.factorize(values)
    if np.any(codes < 0):
        raise ValidationError("cluster: contains missing values")
    n_clusters = len(uniques)
    if n_clusters < 2:
        raise ValidationError(
            f"cluster: at least 2 clusters are required, got {n_clusters}"
        )
    return codes, n_clusters


def labeled(V: NDArray, names: list[str]) -> pd.DataFrame:
    return pd.DataFrame(V, index=names, columns=names)


def _sandwich(B: NDArray, meat: NDArray) -> NDArray:
    V = B @ meat @ B
    # Symmetrize against round-off
    return (V + V.T) / 2


# =============================================================================
# Heteroskedasticity-consistent
# =============================================================================


def vcov_hc(model: Any, type: str | None = None, **kwargs: Any) -> pd.DataFrame:
    """
    Heteroskedasticity-consistent covariance.

    Args:
        model: Handle with estimating functions
        type: 'const', 'HC0', 'HC1', 'HC2', 'HC3' (default) or 'HC4'

    Returns:
        Labeled covariance DataFrame
    """
    hc_type = check_choice(type or DEFAULT_HC_TYPE, HC_TYPES, 'type')
    X, e, names = estimating_parts(model)
    n, k = X.shape
    B = bread(X)

    if hc_type == 'const':
        if n <= k:
            raise ValidationError(f"type='const' needs n > k, got n={n}, k={k}")
        sigma_sq = float(e @ e) / (n - k)
        return labeled(sigma_sq * B, names)

    omega = e ** 2
    if hc_type == 'HC1':
        if n <= k:
            raise ValidationError(f"type='HC1' needs n > k, got n={n}, k={k}")
        omega = omega * n / (n - k)
    elif hc_type in ('HC2', 'HC3', 'HC4'):
        # Leverage: diagonal of X (X'X)⁻¹ X'
        h = np.einsum('ij,jk,ik->i', X, B, X)
        one_minus_h = np.clip(1.0 - h, np.finfo(float).eps, None)
        if hc_type == 'HC2':
            omega = omega / one_minus_h
        elif hc_type == 'HC3':
            omega = omega / one_minus_h ** 2
        else:
            delta = np.minimum(4.0, n * h / k)
            omega = omega / one_minus_h ** delta

    meat = (X * omega[:, np.newaxis]).T @ X
    return labeled(_sandwich(B, meat), names)


# =============================================================================
# One-way clustered
# =============================================================================


def vcov_cl(
    model: Any,
    type: str | None = None,
    cluster: ArrayLike | None = None,
    **kwargs: Any,
) -> pd.DataFrame:
    """
    One-way cluster-robust covariance (Liang-Zeger).

    Args:
        model: Handle with estimating functions
        type: 'HC0' (no adjustment) or 'HC1' (default), which scales by
            G/(G-1) * (n-1)/(n-k)
        cluster: Cluster identifier per observation

    Returns:
        Labeled covariance DataFrame
    """
    cl_type = check_choice(type or DEFAULT_CL_TYPE, CL_TYPES, 'type')
    X, e, names = estimating_parts(model)
    n, k = X.shape
    codes, G = cluster_codes(cluster, n)

    scores = X * e[:, np.newaxis]
    U = np.zeros((G, k))
    np.add.at(U, codes, scores)
    meat = U.T @ U

    if cl_type == 'HC1':
        if n <= k:
            raise ValidationError(f"type='HC1' needs n > k, got n={n}, k={k}")
        meat = meat * (G / (G - 1)) * ((n - 1) / (n - k))

    return labeled(_sandwich(bread(X), meat), names)


# =============================================================================
# Kernel HAC
# =============================================================================


def kernel_weights(lags: NDArray, bw: float, kernel: str) -> NDArray:
    """Kernel weight for each lag at bandwidth bw."""
    x = np.abs(lags) / bw
    if kernel == 'Truncated':
        return (x <= 1).astype(np.float64)
    if kernel == 'Bartlett':
        return np.where(x <= 1, 1.0 - x, 0.0)
    if kernel == 'Parzen':
        return np.where(
            x <= 0.5,
            1.0 - 6.0 * x ** 2 + 6.0 * x ** 3,
            np.where(x <= 1, 2.0 * (1.0 - x) ** 3, 0.0),
        )
    if kernel == 'Tukey-Hanning':
        return np.where(x <= 1, (1.0 + np.cos(np.pi * x)) / 2.0, 0.0)
    if kernel == 'Quadratic Spectral':
        z = 6.0 * np.pi * x / 5.0
        with np.errstate(divide='ignore', invalid='ignore'):
            w = 25.0 / (12.0 * np.pi ** 2 * x ** 2) * (np.sin(z) / z - np.cos(z))
        return np.where(x == 0, 1.0, w)
    raise ValidationError(f"kernel must be one of {HAC_KERNELS}, got {kernel!r}")


def kern_hac(
    model: Any,
    type: str | None = None,
    bw: float | None = None,
    kernel: str = DEFAULT_HAC_KERNEL,
    adjust: bool = True,
    **kwargs: Any,
) -> pd.DataFrame:
    """
    Kernel heteroskedasticity and autocorrelation consistent covariance.

    Observations are assumed to be in time order.

    Args:
        model: Handle with estimating functions
        type: Kernel name; overrides `kernel` when given
        bw: Bandwidth (required, must be positive)
        kernel: 'Bartlett', 'Parzen', 'Quadratic Spectral' (default),
            'Truncated' or 'Tukey-Hanning'
        adjust: Apply the n/(n-k) finite-sample adjustment

    Returns:
        Labeled covariance DataFrame
    """
    kernel = check_choice(type or kernel, HAC_KERNELS, 'kernel')
    if bw is None:
        raise ValidationError(
            "bw: an explicit bandwidth is required (automatic selection is "
            "not supported)"
        )
    if not bw > 0:
        raise ValidationError(f"bw: must be positive, got {bw}")

    X, e, names = estimating_parts(model)
    n, k = X.shape
    scores = X * e[:, np.newaxis]

    lags = np.arange(n)
    weights = kernel_weights(lags, float(bw), kernel)
    meat = scores.T @ scores
    for j in lags[1:]:
        if weights[j] == 0:
            continue
        gamma = scores[j:].T @ scores[:-j]
        meat = meat + weights[j] * (gamma + gamma.T)

    if adjust:
        if n <= k:
            raise ValidationError(f"adjust=True needs n > k, got n={n}, k={k}")
        meat = meat * n / (n - k)

    return labeled(_sandwich(bread(X), meat), names)


def newey_west(
    model: Any,
    type: str | None = None,
    lag: int | None = None,
    adjust: bool = False,
    **kwargs: Any,
) -> pd.DataFrame:
    """
    Newey-West covariance: Bartlett kernel with bandwidth lag + 1.

    Args:
        model: Handle with estimating functions
        type: Ignored (the kernel is always Bartlett)
        lag: Maximum lag (required, non-negative)
        adjust: Apply the n/(n-k) finite-sample adjustment

    Returns:
        Labeled covariance DataFrame
    """
    if lag is None:
        raise ValidationError(
            "lag: an explicit lag is required (automatic selection is not supported)"
        )
    if lag < 0:
        raise ValidationError(f"lag: must be non-negative, got {lag}")
    return kern_hac(model, bw=lag + 1, kernel='Bartlett', adjust=adjust)


ESTIMATORS = {
    'vcovHC': vcov_hc,
    'vcovCL': vcov_cl,
    'vcovHAC': kern_hac,
    'kernHAC': kern_hac,
    'NeweyWest': newey_west,
}
