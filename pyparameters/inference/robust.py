"""
Robust standard errors, p-values and confidence intervals.

The covariance matrix comes from a named estimator (see _resolver for the
naming rules). GEE and MIXMOD models report their own sandwich matrix
and skip the resolver.
"""

from __future__ import annotations

from typing import Any, Iterable, Mapping

import pandas as pd

from pyparameters.core._utils import n_unique
from pyparameters.core.defaults import (
    COMPONENT_CONDITIONAL,
    DEFAULT_CI,
    DEFAULT_VCOV_ESTIMATION,
    NATIVE_ROBUST_FAMILIES,
)
from pyparameters.core.validation import check_component
from pyparameters.inference._assembler import coefficient_inference
from pyparameters.inference._resolver import robust_vcov
from pyparameters.inference.generic import ci_generic, p_value, standard_error


def _robust_table(
    model: Any,
    vcov_estimation: str,
    vcov_type: str | None,
    vcov_args: Mapping[str, Any] | None,
    component: str,
    method: str | None,
) -> pd.DataFrame:
    component = check_component(component)
    V = robust_vcov(
        model,
        vcov_estimation=vcov_estimation,
        vcov_type=vcov_type,
        vcov_args=vcov_args,
    )
    return coefficient_inference(model, V, component=component, method=method)


def _columns(table: pd.DataFrame, column: str) -> list[str]:
    if 'Component' in table.columns and n_unique(table['Component']) > 1:
        return ['Parameter', column, 'Component']
    return ['Parameter', column]


def standard_error_robust(
    model: Any,
    vcov_estimation: str = DEFAULT_VCOV_ESTIMATION,
    vcov_type: str | None = None,
    vcov_args: Mapping[str, Any] | None = None,
    component: str = COMPONENT_CONDITIONAL,
) -> pd.DataFrame:
    """
    Robust standard errors of the fixed effects.

    Args:
        model: Model handle
        vcov_estimation: Estimator name: 'HC' (default), 'CL', 'CR',
            'HAC', 'kernHAC', 'NeweyWest' or a fully qualified name
        vcov_type: Estimator sub-type, e.g. 'HC1' or 'CR2'. A
            cluster-robust sub-type selects 'vcovCR'.
        vcov_args: Extra estimator arguments, e.g. {'cluster': ids}
        component: Component selector ('zi' is an alias of
            'zero_inflated')

    Returns:
        DataFrame with Parameter, SE and, when more than one component is
        present, Component

    Raises:
        MissingDependencyError: If the estimator facility is unavailable
        DimensionMismatchError: If the matrix cannot be aligned with the
            coefficient table

    Example:
        >>> standard_error_robust(model, vcov_type='CR2',
        ...                       vcov_args={'cluster': school})
    """
    if model.family in NATIVE_ROBUST_FAMILIES:
        return standard_error(model, component=component, robust=True)

    table = _robust_table(model, vcov_estimation, vcov_type, vcov_args, component, None)
    return table[_columns(table, 'SE')]


def p_value_robust(
    model: Any,
    vcov_estimation: str = DEFAULT_VCOV_ESTIMATION,
    vcov_type: str | None = None,
    vcov_args: Mapping[str, Any] | None = None,
    component: str = COMPONENT_CONDITIONAL,
    method: str | None = None,
) -> pd.DataFrame:
    """
    Robust two-sided p-values of the fixed effects.

    Same arguments as standard_error_robust(), plus the df rule name
    `method` (default 'any').

    Returns:
        DataFrame with Parameter, p and, when more than one component is
        present, Component
    """
    if model.family in NATIVE_ROBUST_FAMILIES:
        return p_value(model, component=component, robust=True, method=method)

    table = _robust_table(model, vcov_estimation, vcov_type, vcov_args, component, method)
    return table[_columns(table, 'p')]


def ci_robust(
    model: Any,
    ci: float | Iterable[float] = DEFAULT_CI,
    method: str | None = None,
    vcov_estimation: str = DEFAULT_VCOV_ESTIMATION,
    vcov_type: str | None = None,
    vcov_args: Mapping[str, Any] | None = None,
    component: str = COMPONENT_CONDITIONAL,
) -> pd.DataFrame:
    """
    Wald confidence intervals from a robust covariance matrix.

    Returns:
        DataFrame with Parameter, CI, CI_low, CI_high and, when more than
        one component is present, Component
    """
    out = ci_generic(
        model,
        ci=ci,
        method=method,
        component=component,
        robust=True,
        vcov_estimation=vcov_estimation,
        vcov_type=vcov_type,
        vcov_args=vcov_args,
    )
    if 'Component' in out.columns and n_unique(out['Component']) == 1:
        out = out.drop(columns='Component')
    return out
