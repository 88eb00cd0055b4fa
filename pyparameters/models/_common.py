"""
Common data types for model handles.

VarCompSummary is a pure data container. CoefficientBlock holds the
fixed-effects part every handle shares (names, estimates, component tags)
and answers the coefficient-table queries of the ModelHandle protocol.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

import numpy as np
import pandas as pd
from numpy.typing import NDArray

from pyparameters.core.defaults import (
    COMPONENT_ALL,
    COMPONENT_CONDITIONAL,
    INTERCEPT_TERMS,
)
from pyparameters.core.exceptions import DimensionError
from pyparameters.core.families import ModelFamily


@dataclass(frozen=True)
class VarCompSummary:
    """Variance component summary for one random effect term.

    Attributes:
        group: Grouping factor name (e.g. 'subject').
        name: Term name within the group (e.g. '(Intercept)', 'time').
        variance: Estimated variance σ²_b for this component.
        std_dev: Standard deviation (sqrt of variance).
        corr: Correlation with the group's random intercept,
              or None for the intercept itself (or if not estimated).
        component: Sub-model the term belongs to, 'conditional' or
              'zero_inflated'.
    """
    group: str
    name: str
    variance: float
    std_dev: float
    corr: float | None = None
    component: str = COMPONENT_CONDITIONAL

    @property
    def is_intercept(self) -> bool:
        return self.name in INTERCEPT_TERMS


class CoefficientBlock:
    """Fixed-effects coefficients with optional per-coefficient components."""

    def __init__(
        self,
        coefficients: NDArray,
        names: Sequence[str] | None,
        components: Sequence[str] | None,
        statistic: str,
        df_residual: float | None,
        family: ModelFamily,
    ):
        k = len(coefficients)
        if names is None:
            names = [f'b{i}' for i in range(k)]
        names = tuple(str(s) for s in names)
        if len(names) != k:
            raise DimensionError(f"names: expected {k} entries, got {len(names)}")
        if components is not None:
            components = tuple(components)
            if len(components) != k:
                raise DimensionError(
                    f"components: expected {k} entries, got {len(components)}"
                )

        self._beta = coefficients
        self._names = names
        self._components = components
        self._statistic = statistic
        self._df_residual = df_residual
        self._family = ModelFamily(family)

    @property
    def family(self) -> ModelFamily:
        return self._family

    @property
    def df_residual(self) -> float | None:
        return self._df_residual

    def find_statistic(self) -> str:
        return self._statistic

    def get_parameters(self, component: str = COMPONENT_ALL) -> pd.DataFrame:
        idx = self._component_index(component)
        out = pd.DataFrame({
            'Parameter': [self._names[i] for i in idx],
            'Estimate': self._beta[idx],
        })
        if self._components is not None:
            out['Component'] = [self._components[i] for i in idx]
        return out

    def find_parameters(self) -> dict[str, list[str]]:
        if self._components is None:
            return {COMPONENT_CONDITIONAL: list(self._names)}
        result: dict[str, list[str]] = {}
        for name, comp in zip(self._names, self._components):
            result.setdefault(comp, []).append(name)
        return result

    def _component_index(self, component: str) -> list[int]:
        k = len(self._beta)
        if component == COMPONENT_ALL:
            return list(range(k))
        if self._components is None:
            return list(range(k)) if component == COMPONENT_CONDITIONAL else []
        return [i for i in range(k) if self._components[i] == component]

    def _labeled(self, V: NDArray, component: str) -> pd.DataFrame:
        idx = self._component_index(component)
        labels = [self._names[i] for i in idx]
        return pd.DataFrame(V[np.ix_(idx, idx)], index=labels, columns=labels)
