"""
Fixed-effects inference: classical and robust (sandwich) covariance.

Public API:
    standard_error_robust() — robust standard errors
    p_value_robust()        — robust two-sided p-values
    ci_robust()             — robust Wald confidence intervals
    standard_error()        — classical or native-robust standard errors
    p_value()               — classical or native-robust p-values
    ci_generic()            — Wald confidence intervals
    degrees_of_freedom()    — df rule lookup
    register_df_rule()      — add a df rule
    register_facility()     — add a covariance estimator facility
"""

from pyparameters.inference.robust import (
    standard_error_robust,
    p_value_robust,
    ci_robust,
)
from pyparameters.inference.generic import standard_error, p_value, ci_generic
from pyparameters.inference.dof import degrees_of_freedom, register_df_rule
from pyparameters.inference._facilities import register_facility
from pyparameters.inference._resolver import VcovRequest, resolve_request, robust_vcov

__all__ = [
    "standard_error_robust",
    "p_value_robust",
    "ci_robust",
    "standard_error",
    "p_value",
    "ci_generic",
    "degrees_of_freedom",
    "register_df_rule",
    "register_facility",
    "VcovRequest",
    "resolve_request",
    "robust_vcov",
]
