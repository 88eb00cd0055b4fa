"""
Cluster-robust covariance with small-sample corrections.

    V = B (Σ_g X_g' A_g e_g e_g' A_g X_g) B,    B = (X'X)⁻¹

CR0, CR1, CR1p and CR1S use A_g = I and scale the result. CR2 uses the
Bell-McCaffrey adjustment A_g = (I - H_gg)^(-1/2) and CR3 the jackknife
approximation A_g = (I - H_gg)⁻¹, where H_gg = X_g B X_g' is the
cluster block of the hat matrix.
"""

from __future__ import annotations

from typing import Any

import numpy as np
import pandas as pd
from numpy.typing import ArrayLike, NDArray
from scipy import linalg

from pyparameters.core.defaults import (
    CLUSTER_ROBUST_ESTIMATOR,
    CLUSTER_ROBUST_TYPES,
    DEFAULT_CLUSTER_ROBUST_TYPE,
)
from pyparameters.core.exceptions import ValidationError
from pyparameters.core.validation import check_choice
from pyparameters.inference._sandwich import (
    bread,
    cluster_codes,
    estimating_parts,
    labeled,
)

_EIG_TOL = 1e-12


def _matrix_power_sym(M: NDArray, power: float) -> NDArray:
    """M^power for a symmetric PSD matrix; null directions map to zero."""
    vals, vecs = linalg.eigh(M)
    keep = vals > _EIG_TOL
    scaled = np.zeros_like(vals)
    scaled[keep] = vals[keep] ** power
    return (vecs * scaled) @ vecs.T


def vcov_cr(
    model: Any,
    type: str | None = None,
    cluster: ArrayLike | None = None,
    **kwargs: Any,
) -> pd.DataFrame:
    """
    Cluster-robust covariance.

    Args:
        model: Handle with estimating functions
        type: 'CR0' (default), 'CR1', 'CR1p', 'CR1S', 'CR2' or 'CR3'
        cluster: Cluster identifier per observation

    Returns:
        Labeled covariance DataFrame
    """
    cr_type = check_choice(
        type or DEFAULT_CLUSTER_ROBUST_TYPE, sorted(CLUSTER_ROBUST_TYPES), 'type'
    )
    X, e, names = estimating_parts(model)
    N, p = X.shape
    codes, G = cluster_codes(cluster, N)
    B = bread(X)

    meat = np.zeros((p, p))
    for g in range(G):
        rows = codes == g
        X_g = X[rows]
        e_g = e[rows]
        if cr_type in ('CR2', 'CR3'):
            H_gg = X_g @ B @ X_g.T
            I_minus_H = np.eye(len(e_g)) - H_gg
            A_g = _matrix_power_sym(I_minus_H, -0.5 if cr_type == 'CR2' else -1.0)
            e_g = A_g @ e_g
        u_g = X_g.T @ e_g
        meat += np.outer(u_g, u_g)

    if cr_type == 'CR1':
        meat *= G / (G - 1)
    elif cr_type == 'CR1p':
        if G <= p:
            raise ValidationError(f"type='CR1p' needs more clusters than parameters, got G={G}, p={p}")
        meat *= G / (G - p)
    elif cr_type == 'CR1S':
        if N <= p:
            raise ValidationError(f"type='CR1S' needs N > p, got N={N}, p={p}")
        meat *= G * (N - 1) / ((G - 1) * (N - p))

    V = B @ meat @ B
    return labeled((V + V.T) / 2, names)


ESTIMATORS = {
    CLUSTER_ROBUST_ESTIMATOR: vcov_cr,
}
