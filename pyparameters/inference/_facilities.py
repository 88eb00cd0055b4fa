"""
Registry of covariance estimator facilities.

A facility is an importable module exposing an ESTIMATORS mapping from
estimator name (e.g. 'vcovHC') to a callable

    estimator(model, type=None, **kwargs) -> labeled covariance DataFrame

Facilities are imported lazily, on first request. A facility that cannot
be imported is reported as MissingDependencyError, distinct from errors
raised while an estimator computes.
"""

from __future__ import annotations

import importlib
from dataclasses import dataclass
from types import ModuleType
from typing import Any, Callable

from pyparameters.core.defaults import FACILITY_CLUSTER, FACILITY_SANDWICH
from pyparameters.core.exceptions import MissingDependencyError, ValidationError

Estimator = Callable[..., Any]


@dataclass(frozen=True)
class Facility:
    """Registered estimator facility.

    Attributes:
        name: Facility name used by the resolver.
        module: Dotted import path of the module providing ESTIMATORS.
        reason: What the facility is needed for (used in error messages).
    """
    name: str
    module: str
    reason: str


_FACILITIES: dict[str, Facility] = {
    FACILITY_SANDWICH: Facility(
        FACILITY_SANDWICH,
        'pyparameters.inference._sandwich',
        'to get robust standard errors',
    ),
    FACILITY_CLUSTER: Facility(
        FACILITY_CLUSTER,
        'pyparameters.inference._cluster',
        'to get cluster-robust standard errors',
    ),
}


def register_facility(name: str, module: str, reason: str) -> None:
    """Register (or replace) a facility under a name."""
    _FACILITIES[name] = Facility(name, module, reason)


def load_facility(name: str) -> ModuleType:
    """
    Import a facility module.

    Raises:
        MissingDependencyError: If the facility is not registered or its
            module cannot be imported
    """
    facility = _FACILITIES.get(name)
    if facility is None:
        raise MissingDependencyError(
            f"No covariance estimator facility named {name!r} is registered. "
            f"Available: {sorted(_FACILITIES)}",
            facility=name,
        )
    try:
        return importlib.import_module(facility.module)
    except ImportError as e:
        raise MissingDependencyError(
            f"Facility {name!r} ({facility.module}) is required "
            f"{facility.reason}, but could not be imported: {e}",
            facility=name,
            reason=facility.reason,
        ) from e


def get_estimator(facility: str, name: str) -> Estimator:
    """
    Look up an estimator by name in a facility.

    Raises:
        MissingDependencyError: If the facility is unavailable
        ValidationError: If the facility has no estimator of that name
    """
    module = load_facility(facility)
    estimators = getattr(module, 'ESTIMATORS', {})
    estimator = estimators.get(name)
    if estimator is None:
        raise ValidationError(
            f"Unknown covariance estimator {name!r} in facility {facility!r}. "
            f"Available: {sorted(estimators)}"
        )
    return estimator
