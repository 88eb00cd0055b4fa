"""
Robust inference assembler.

Turns a labeled covariance matrix and the model's coefficient table into
rows of {Parameter, Estimate, SE, Statistic, p, (Component)}.

When an estimator returns variances for more parameters than the
requested component holds (e.g. conditional and zero-inflated blocks
together), the matrix is reduced to the component's parameters, in the
model's order, before anything is computed. Otherwise the matrix is
reordered by label to the coefficient table.
"""

from __future__ import annotations

from typing import Any

import numpy as np
import pandas as pd
from numpy.typing import NDArray
from scipy import stats

from pyparameters.core.defaults import COMPONENT_ALL, COMPONENT_CONDITIONAL
from pyparameters.core.exceptions import DimensionMismatchError
from pyparameters.core.schema import ROBUST_COLUMNS
from pyparameters.core.validation import check_square_labeled
from pyparameters.inference.dof import degrees_of_freedom


def align_vcov(
    model: Any,
    vcov: pd.DataFrame,
    params: pd.DataFrame,
    component: str | None,
) -> pd.DataFrame:
    """
    Reorder (and reduce) a covariance matrix to the coefficient table.

    Rows are matched by label, never by position. A matrix covering more
    parameters than a single component is reduced to that component's
    parameters; a label repeated in the table takes the matrix rows
    carrying it in order of occurrence.

    Raises:
        DimensionMismatchError: If a parameter has no row in the matrix, or
            the sizes still disagree after reduction
    """
    check_square_labeled(vcov, 'vcov')
    n_params = len(params)

    if component is not None and component != COMPONENT_ALL and len(vcov) > n_params:
        wanted = list(model.find_parameters().get(component, []))
    else:
        wanted = list(params['Parameter'])

    labels = list(vcov.index)
    if labels != wanted:
        positions: dict[Any, list[int]] = {}
        for i, label in enumerate(labels):
            positions.setdefault(label, []).append(i)
        keep = []
        for name in wanted:
            slots = positions.get(name)
            if not slots:
                raise DimensionMismatchError(
                    f"Parameter {name!r} of component {component!r} has no row "
                    f"in the covariance matrix",
                    n_vcov=len(vcov),
                    n_params=n_params,
                )
            keep.append(slots.pop(0))
        vcov = vcov.iloc[keep, keep]

    if len(vcov) != n_params:
        raise DimensionMismatchError(
            f"Covariance matrix has {len(vcov)} rows but the coefficient table "
            f"for component {component!r} has {n_params}",
            n_vcov=len(vcov),
            n_params=n_params,
        )
    return vcov


def two_sided_p(statistic: NDArray, df: float | None) -> NDArray:
    """Two-sided tail probability under N(0, 1) (df None) or Student t."""
    t_abs = np.abs(np.asarray(statistic, dtype=np.float64))
    if df is None:
        return 2.0 * stats.norm.sf(t_abs)
    return 2.0 * stats.t.sf(t_abs, df)


def coefficient_inference(
    model: Any,
    vcov: pd.DataFrame,
    component: str | None = COMPONENT_CONDITIONAL,
    method: str | None = None,
) -> pd.DataFrame:
    """
    Standard errors, test statistics and p-values from a covariance matrix.

    Args:
        model: Model handle
        vcov: Labeled covariance matrix (may cover more parameters than the
            requested component)
        component: Component selector, or 'all'
        method: Df rule name (None means 'any')

    Returns:
        DataFrame with Parameter, Estimate, SE, Statistic, p and, when the
        coefficient table carries one, Component

    Raises:
        DimensionMismatchError: If the matrix cannot be aligned with the
            coefficient table
    """
    params = model.get_parameters(
        component=COMPONENT_ALL if component is None else component
    )
    vcov = align_vcov(model, vcov, params, component)

    estimate = params['Estimate'].to_numpy(dtype=np.float64)
    se = np.sqrt(np.diag(vcov.to_numpy(dtype=np.float64)))
    with np.errstate(divide='ignore', invalid='ignore'):
        statistic = estimate / se
    df = degrees_of_freedom(model, method=method)

    out = pd.DataFrame({
        'Parameter': params['Parameter'].to_numpy(),
        'Estimate': estimate,
        'SE': se,
        'Statistic': statistic,
        'p': two_sided_p(statistic, df),
    }, columns=list(ROBUST_COLUMNS))

    if 'Component' in params.columns and len(params) == len(out):
        out['Component'] = params['Component'].to_numpy()
    return out
