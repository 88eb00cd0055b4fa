"""
Capability string constants for model handles.

This module is the SINGLE SOURCE OF TRUTH for capability strings.
Import from here, never use raw strings.

Usage:
    from pyparameters.core.capabilities import (
        CAPABILITY_VARIANCE_COMPONENTS,
    )

    if model.supports(CAPABILITY_VARIANCE_COMPONENTS):
        tau00 = model.get_variance('intercept', model_component='conditional')
"""

# model_matrix(), residuals() and weights() for sandwich estimators
CAPABILITY_ESTIMATING_FUNCTIONS = 'estimating_functions'

# get_variance(), get_sigma(), find_random() and model_info()
CAPABILITY_VARIANCE_COMPONENTS = 'variance_components'

# confint() for variance parameters (profile, bootstrap or Wald)
CAPABILITY_VARIANCE_INTERVALS = 'variance_intervals'

# vcov(robust=True) returns a sandwich matrix computed by the model itself
CAPABILITY_NATIVE_ROBUST = 'native_robust'

# All capabilities as a frozenset for validation
ALL_CAPABILITIES = frozenset({
    CAPABILITY_ESTIMATING_FUNCTIONS,
    CAPABILITY_VARIANCE_COMPONENTS,
    CAPABILITY_VARIANCE_INTERVALS,
    CAPABILITY_NATIVE_ROBUST,
})

__all__ = [
    'CAPABILITY_ESTIMATING_FUNCTIONS',
    'CAPABILITY_VARIANCE_COMPONENTS',
    'CAPABILITY_VARIANCE_INTERVALS',
    'CAPABILITY_NATIVE_ROBUST',
    'ALL_CAPABILITIES',
]
