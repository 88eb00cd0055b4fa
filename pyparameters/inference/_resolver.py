"""
Covariance resolver.

Maps a requested estimator name and sub-type to a concrete estimator in
one of the registered facilities and returns its labeled matrix.

Resolution rules, applied in order:
    1. Names not starting with 'vcov', 'kernHAC' or 'NeweyWest' get the
       'vcov' prefix ('HC' -> 'vcovHC', 'CL' -> 'vcovCL').
    2. A cluster-robust sub-type (CR0, CR1, CR1p, CR1S, CR2, CR3) forces
       'vcovCR' whatever name was passed.
    3. 'vcovCR' without a sub-type uses CR0.
    4. 'vcovCR' is served by the 'cluster' facility, everything else by
       'sandwich'.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Mapping

import pandas as pd

from pyparameters.core.defaults import (
    CLUSTER_ROBUST_ESTIMATOR,
    CLUSTER_ROBUST_TYPES,
    DEFAULT_CLUSTER_ROBUST_TYPE,
    DEFAULT_VCOV_ESTIMATION,
    FACILITY_CLUSTER,
    FACILITY_SANDWICH,
    VCOV_PREFIX,
    VCOV_PREFIXES,
)
from pyparameters.core.exceptions import ValidationError
from pyparameters.inference._facilities import get_estimator

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VcovRequest:
    """Fully resolved covariance request.

    Attributes:
        fun: Estimator name within the facility (e.g. 'vcovHC').
        type: Sub-type passed to the estimator, or None for its default.
        facility: Facility providing the estimator.
    """
    fun: str
    type: str | None
    facility: str


def qualify_estimator_name(vcov_estimation: str) -> str:
    """Prepend the 'vcov' prefix unless the name is already qualified."""
    if not isinstance(vcov_estimation, str) or not vcov_estimation:
        raise ValidationError(
            f"vcov_estimation: expected a non-empty string, got {vcov_estimation!r}"
        )
    if vcov_estimation.startswith(VCOV_PREFIXES):
        return vcov_estimation
    return VCOV_PREFIX + vcov_estimation


def resolve_request(
    vcov_estimation: str = DEFAULT_VCOV_ESTIMATION,
    vcov_type: str | None = None,
) -> VcovRequest:
    """Apply the naming and default rules to a covariance request."""
    fun = qualify_estimator_name(vcov_estimation)

    if vcov_type is not None and vcov_type in CLUSTER_ROBUST_TYPES:
        fun = CLUSTER_ROBUST_ESTIMATOR

    if fun == CLUSTER_ROBUST_ESTIMATOR:
        if vcov_type is None:
            vcov_type = DEFAULT_CLUSTER_ROBUST_TYPE
        facility = FACILITY_CLUSTER
    else:
        facility = FACILITY_SANDWICH

    return VcovRequest(fun=fun, type=vcov_type, facility=facility)


def robust_vcov(
    model: Any,
    vcov_estimation: str = DEFAULT_VCOV_ESTIMATION,
    vcov_type: str | None = None,
    vcov_args: Mapping[str, Any] | None = None,
) -> pd.DataFrame:
    """
    Labeled robust covariance matrix for a model.

    Args:
        model: Model handle
        vcov_estimation: Estimator name, with or without the 'vcov' prefix
        vcov_type: Estimator sub-type (e.g. 'HC1', 'CR2')
        vcov_args: Extra keyword arguments for the estimator
            (e.g. {'cluster': ids}), passed through unchanged

    Returns:
        Square DataFrame indexed and labeled by coefficient name

    Raises:
        MissingDependencyError: If the estimator's facility is unavailable
        ValidationError: If the estimator or its arguments are invalid
    """
    request = resolve_request(vcov_estimation, vcov_type)
    estimator = get_estimator(request.facility, request.fun)
    logger.debug(
        "robust covariance via %s.%s (type=%s)",
        request.facility, request.fun, request.type,
    )
    return estimator(model, type=request.type, **dict(vcov_args or {}))
