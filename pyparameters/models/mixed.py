"""
Reference model handle for fitted mixed models.

MixedModel carries a fixed-effects block plus the variance components of
the random effects, the residual SD and, optionally, a provider of
model-native confidence intervals for the variance parameters.

get_variance() layouts:
    'intercept'  Series indexed by grouping factor, values σ²_group
    'slope'      Series indexed by '<group>.<term>', values σ²_term
    'rho01'      one-column DataFrame of intercept-slope correlations;
                 with a single correlated grouping factor the column is
                 named after that factor and rows are indexed by slope
                 term, otherwise the column is 'rho01' and rows are
                 indexed by '<group>.<term>'
"""

from __future__ import annotations

from typing import Any, Callable, Sequence

import numpy as np
import pandas as pd
from numpy.typing import ArrayLike

from pyparameters.core.capabilities import (
    CAPABILITY_NATIVE_ROBUST,
    CAPABILITY_VARIANCE_COMPONENTS,
    CAPABILITY_VARIANCE_INTERVALS,
)
from pyparameters.core.defaults import (
    COMPONENT_ALL,
    COMPONENT_CONDITIONAL,
    COMPONENT_ZERO_INFLATED,
)
from pyparameters.core.exceptions import (
    DimensionError,
    EstimationError,
    ValidationError,
)
from pyparameters.core.families import ModelFamily
from pyparameters.core.validation import check_array
from pyparameters.models._common import CoefficientBlock, VarCompSummary

IntervalProvider = Callable[[str, str, float], pd.DataFrame]

VARIANCE_KINDS = ('intercept', 'slope', 'rho01')


class MixedModel(CoefficientBlock):
    """Fitted linear or generalized linear mixed model.

    Args:
        coefficients: Fixed-effect estimates (k,).
        vcov: Covariance of the fixed effects (k, k).
        names: Fixed-effect names.
        var_components: Variance components, one per random term.
        residual_std: Residual standard deviation σ, or None when the
            family has no residual scale.
        components: Optional component tag per fixed effect.
        statistic: 't-statistic' (LMM) or 'z-statistic' (GLMM).
        df_residual: Residual degrees of freedom, or None.
        robust_vcov: Sandwich covariance of the fixed effects computed by
            the fitting routine (k, k).
        zero_inflated: Whether the model has a zero-inflation sub-model.
        interval_provider: Callable (parm, method, level) -> DataFrame of
            native variance-parameter intervals. parm is 'theta_' for the
            random-effect SDs and correlations or 'sigma' for the
            residual SD.
        family: Dispatch tag. Default ModelFamily.LMER.
    """

    def __init__(
        self,
        coefficients: ArrayLike,
        vcov: ArrayLike,
        *,
        names: Sequence[str] | None = None,
        var_components: Sequence[VarCompSummary] = (),
        residual_std: float | None = None,
        components: Sequence[str] | None = None,
        statistic: str = 't-statistic',
        df_residual: float | None = None,
        robust_vcov: ArrayLike | None = None,
        zero_inflated: bool = False,
        interval_provider: IntervalProvider | None = None,
        family: ModelFamily = ModelFamily.LMER,
    ):
        beta = check_array(coefficients, 'coefficients').ravel()
        k = len(beta)
        V = check_array(vcov, 'vcov')
        if V.shape != (k, k):
            raise DimensionError(f"vcov: expected shape {(k, k)}, got {V.shape}")
        if robust_vcov is not None:
            V_robust = check_array(robust_vcov, 'robust_vcov')
            if V_robust.shape != (k, k):
                raise DimensionError(
                    f"robust_vcov: expected shape {(k, k)}, got {V_robust.shape}"
                )
        else:
            V_robust = None

        super().__init__(beta, names, components, statistic, df_residual, family)
        self._vcov = V
        self._robust_vcov = V_robust
        self._var_components = tuple(var_components)
        self._residual_std = residual_std
        self._zero_inflated = zero_inflated
        self._interval_provider = interval_provider

    @property
    def var_components(self) -> tuple[VarCompSummary, ...]:
        return self._var_components

    def supports(self, capability: str) -> bool:
        if capability == CAPABILITY_VARIANCE_COMPONENTS:
            return True
        if capability == CAPABILITY_VARIANCE_INTERVALS:
            return self._interval_provider is not None
        if capability == CAPABILITY_NATIVE_ROBUST:
            return self._robust_vcov is not None
        return False

    def vcov(self, component: str = COMPONENT_ALL, robust: bool = False) -> pd.DataFrame:
        if robust:
            if self._robust_vcov is None:
                raise ValidationError("model has no native robust covariance")
            return self._labeled(self._robust_vcov, component)
        return self._labeled(self._vcov, component)

    # --- Variance components ---

    def get_variance(
        self,
        kind: str,
        model_component: str = COMPONENT_CONDITIONAL,
    ) -> pd.Series | pd.DataFrame:
        """Raw variance contributions of one kind for one sub-model."""
        if kind not in VARIANCE_KINDS:
            raise ValidationError(f"kind must be one of {VARIANCE_KINDS}, got {kind!r}")

        vcs = [vc for vc in self._var_components if vc.component == model_component]

        if kind == 'intercept':
            rows = {vc.group: vc.variance for vc in vcs if vc.is_intercept}
            return pd.Series(rows, dtype=np.float64)

        if kind == 'slope':
            rows = {
                f'{vc.group}.{vc.name}': vc.variance
                for vc in vcs if not vc.is_intercept
            }
            return pd.Series(rows, dtype=np.float64)

        correlated = [vc for vc in vcs if not vc.is_intercept and vc.corr is not None]
        groups = list(dict.fromkeys(vc.group for vc in correlated))
        if len(groups) == 1:
            return pd.DataFrame(
                {groups[0]: [vc.corr for vc in correlated]},
                index=[vc.name for vc in correlated],
                dtype=np.float64,
            )
        return pd.DataFrame(
            {'rho01': [vc.corr for vc in correlated]},
            index=[f'{vc.group}.{vc.name}' for vc in correlated],
            dtype=np.float64,
        )

    def get_sigma(self) -> float:
        if self._residual_std is None:
            raise EstimationError("model has no residual standard deviation", step='sigma')
        return float(self._residual_std)

    def find_random(self, flatten: bool = False) -> dict[str, list[str]] | list[str]:
        """Grouping factors per sub-model."""
        cond = _unique(vc.group for vc in self._var_components
                       if vc.component == COMPONENT_CONDITIONAL)
        zi = _unique(vc.group for vc in self._var_components
                     if vc.component == COMPONENT_ZERO_INFLATED)
        if flatten:
            return _unique(cond + zi)
        result = {'random': cond}
        if zi:
            result['zero_inflated_random'] = zi
        return result

    def model_info(self) -> dict[str, Any]:
        return {
            'family': self._family.value,
            'is_zero_inflated': self._zero_inflated,
            'is_mixed': True,
        }

    def confint(self, parm: str, method: str, level: float) -> pd.DataFrame:
        """Native intervals for variance parameters ('theta_' or 'sigma')."""
        if self._interval_provider is None:
            raise EstimationError(
                "model provides no variance-parameter intervals", step='confint'
            )
        return pd.DataFrame(self._interval_provider(parm, method, level))

    def __repr__(self) -> str:
        return (
            f"MixedModel({self._family.value}, "
            f"fixed={len(self._beta)}, "
            f"random={len(self._var_components)} var components)"
        )


def _unique(values) -> list[str]:
    return list(dict.fromkeys(values))
