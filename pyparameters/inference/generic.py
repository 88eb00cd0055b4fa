"""
Standard (Wald) inference routines.

standard_error, p_value and ci_generic read the model's own covariance
matrix, or, with robust=True, a sandwich matrix. Families that compute
sandwich variances while fitting (GEE, MIXMOD) report their own robust
matrix; every other family goes through the covariance resolver.
"""

from __future__ import annotations

from typing import Any, Iterable, Mapping

import numpy as np
import pandas as pd
from scipy import stats

from pyparameters.core.defaults import (
    COMPONENT_CONDITIONAL,
    DEFAULT_CI,
    DEFAULT_VCOV_ESTIMATION,
    NATIVE_ROBUST_FAMILIES,
)
from pyparameters.core.exceptions import ValidationError
from pyparameters.core.schema import CI_COLUMNS
from pyparameters.core.validation import (
    check_ci_levels,
    check_component,
    is_valid_probability,
)
from pyparameters.inference._assembler import coefficient_inference
from pyparameters.inference._resolver import robust_vcov
from pyparameters.inference.dof import degrees_of_freedom


def covariance(
    model: Any,
    component: str = COMPONENT_CONDITIONAL,
    robust: bool = False,
    vcov_estimation: str = DEFAULT_VCOV_ESTIMATION,
    vcov_type: str | None = None,
    vcov_args: Mapping[str, Any] | None = None,
) -> pd.DataFrame:
    """Covariance matrix used for Wald inference on a model."""
    if not robust or model.family in NATIVE_ROBUST_FAMILIES:
        return model.vcov(component=component, robust=robust)
    return robust_vcov(
        model,
        vcov_estimation=vcov_estimation,
        vcov_type=vcov_type,
        vcov_args=vcov_args,
    )


def _inference_table(
    model: Any,
    component: str,
    robust: bool,
    method: str | None,
    vcov_estimation: str,
    vcov_type: str | None,
    vcov_args: Mapping[str, Any] | None,
) -> pd.DataFrame:
    component = check_component(component)
    V = covariance(model, component, robust, vcov_estimation, vcov_type, vcov_args)
    return coefficient_inference(model, V, component=component, method=method)


def _select(table: pd.DataFrame, column: str) -> pd.DataFrame:
    cols = ['Parameter', column]
    if 'Component' in table.columns:
        cols.append('Component')
    return table[cols]


def standard_error(
    model: Any,
    component: str = COMPONENT_CONDITIONAL,
    robust: bool = False,
    vcov_estimation: str = DEFAULT_VCOV_ESTIMATION,
    vcov_type: str | None = None,
    vcov_args: Mapping[str, Any] | None = None,
) -> pd.DataFrame:
    """
    Standard errors of the fixed effects.

    Args:
        model: Model handle
        component: Component selector ('conditional', 'zero_inflated'/'zi',
            'dispersion' or 'all')
        robust: Use a sandwich covariance instead of the classical one
        vcov_estimation: Estimator name for robust=True
        vcov_type: Estimator sub-type for robust=True
        vcov_args: Extra estimator arguments for robust=True

    Returns:
        DataFrame with Parameter, SE and, if the model tags components,
        Component
    """
    table = _inference_table(
        model, component, robust, None, vcov_estimation, vcov_type, vcov_args
    )
    return _select(table, 'SE')


def p_value(
    model: Any,
    component: str = COMPONENT_CONDITIONAL,
    robust: bool = False,
    method: str | None = None,
    vcov_estimation: str = DEFAULT_VCOV_ESTIMATION,
    vcov_type: str | None = None,
    vcov_args: Mapping[str, Any] | None = None,
) -> pd.DataFrame:
    """
    Two-sided Wald p-values of the fixed effects.

    Same arguments as standard_error(), plus the df rule name `method`.

    Returns:
        DataFrame with Parameter, p and, if the model tags components,
        Component
    """
    table = _inference_table(
        model, component, robust, method, vcov_estimation, vcov_type, vcov_args
    )
    return _select(table, 'p')


def ci_generic(
    model: Any,
    ci: float | Iterable[float] = DEFAULT_CI,
    method: str | None = None,
    component: str = COMPONENT_CONDITIONAL,
    robust: bool = False,
    vcov_estimation: str = DEFAULT_VCOV_ESTIMATION,
    vcov_type: str | None = None,
    vcov_args: Mapping[str, Any] | None = None,
) -> pd.DataFrame:
    """
    Wald confidence intervals: Estimate ∓ q · SE.

    q is the Student t quantile at the df rule's value, or the standard
    normal quantile when the rule gives none. Several levels produce one
    block of rows per level, stacked in the order given.

    Returns:
        DataFrame with Parameter, CI, CI_low, CI_high and, if the model
        tags components, Component

    Raises:
        ValidationError: If no level is given or a level is not in (0, 1)
    """
    levels = check_ci_levels(ci)
    if not levels:
        raise ValidationError("ci: at least one confidence level is required")
    bad = [level for level in levels if not is_valid_probability(level)]
    if bad:
        raise ValidationError(f"ci: levels must lie strictly between 0 and 1, got {bad}")

    table = _inference_table(
        model, component, robust, method, vcov_estimation, vcov_type, vcov_args
    )
    df = degrees_of_freedom(model, method=method)
    estimate = table['Estimate'].to_numpy()
    se = table['SE'].to_numpy()

    blocks = []
    for level in levels:
        alpha = (1.0 + level) / 2.0
        q = stats.norm.ppf(alpha) if df is None else stats.t.ppf(alpha, df)
        block = pd.DataFrame({
            'Parameter': table['Parameter'].to_numpy(),
            'CI': np.full(len(table), level),
            'CI_low': estimate - q * se,
            'CI_high': estimate + q * se,
        }, columns=list(CI_COLUMNS))
        if 'Component' in table.columns:
            block['Component'] = table['Component'].to_numpy()
        blocks.append(block)

    return pd.concat(blocks, ignore_index=True)
