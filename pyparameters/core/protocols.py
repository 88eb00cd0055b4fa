"""
Core protocols for pyparameters.

These define the structural interface a fitted model must satisfy to be
used by the inference pipelines. We use Protocol (structural typing)
rather than ABC (nominal typing) so wrappers around any fitting library
can participate without inheriting from anything here.

Design Principles:
    - Minimal contract: prescribe only what every pipeline needs
    - Capability-driven: use supports() for optional features
    - Read-only: no pipeline ever mutates a model handle
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

import pandas as pd

from pyparameters.core.families import ModelFamily


@runtime_checkable
class ModelHandle(Protocol):
    """
    Minimal protocol for a fitted statistical model.

    Optional capabilities (see pyparameters.core.capabilities) add methods:

        'estimating_functions':
            model_matrix() -> DataFrame (n, k), columns = coefficient names
            residuals() -> ndarray (n,)
            weights() -> ndarray (n,) or None

        'variance_components':
            get_variance(kind, model_component) -> Series or DataFrame,
                kind in {'intercept', 'slope', 'rho01'}
            get_sigma() -> float
            find_random(flatten=False) -> dict[str, list[str]] or list[str]
            model_info() -> dict[str, Any]

        'variance_intervals':
            confint(parm, method, level) -> DataFrame indexed by the
                model's native variance-parameter identifiers, first two
                columns are the lower and upper bounds

        'native_robust':
            vcov(component, robust=True) returns the model's own
            sandwich-type covariance matrix
    """

    @property
    def family(self) -> ModelFamily:
        """Family tag used for dispatch."""
        ...

    @property
    def df_residual(self) -> float | None:
        """Residual degrees of freedom, or None if not defined."""
        ...

    def supports(self, capability: str) -> bool:
        """
        Check if this model supports a given capability.

        Note:
            Unknown capabilities MUST return False, never raise.
        """
        ...

    def get_parameters(self, component: str = 'all') -> pd.DataFrame:
        """Coefficient table with columns Parameter, Estimate and,
        for multi-component models, Component."""
        ...

    def find_parameters(self) -> dict[str, list[str]]:
        """Parameter names per component, in coefficient order."""
        ...

    def find_statistic(self) -> str:
        """Name of the test statistic, e.g. 't-statistic'."""
        ...

    def vcov(self, component: str = 'all', robust: bool = False) -> pd.DataFrame:
        """Labeled covariance matrix of the coefficients."""
        ...


def supports(model: Any, capability: str) -> bool:
    """Capability check that tolerates objects without supports()."""
    check = getattr(model, 'supports', None)
    if check is None:
        return False
    return bool(check(capability))
