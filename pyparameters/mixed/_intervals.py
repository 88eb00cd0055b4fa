"""
Random-effect CI merger.

Fills CI_low/CI_high of a random-effects table from the model's own
variance-parameter intervals:

    LMER   profile or bootstrap intervals, only on explicit request;
           assigned positionally to SD, correlation and residual rows
    TMB    Wald intervals of the variance parameters and the residual
           scale, matched to rows by parsed label and grouping factor

Every other family keeps NaN bounds. A failure leaves the table as it
was.
"""

from __future__ import annotations

import logging
from typing import Any

import numpy as np
import pandas as pd
from numpy.typing import NDArray

from pyparameters.core.defaults import RANDOM_CI_METHODS
from pyparameters.core.exceptions import EstimationError, ValidationError
from pyparameters.core.families import ModelFamily
from pyparameters.mixed._labels import (
    NativeParameter,
    parse_label,
    parse_lmer_identifier,
    parse_tmb_identifier,
)

logger = logging.getLogger(__name__)

WALD = 'wald'


def _bounds(var_ci: pd.DataFrame) -> tuple[NDArray, NDArray]:
    """Lower and upper bounds; columns beyond the second are ignored."""
    if var_ci.shape[1] < 2:
        raise EstimationError(
            f"expected at least 2 interval columns, got {var_ci.shape[1]}",
            step='confint',
        )
    return (
        var_ci.iloc[:, 0].to_numpy(dtype=np.float64),
        var_ci.iloc[:, 1].to_numpy(dtype=np.float64),
    )


def _assign(out: pd.DataFrame, rows: NDArray, low: NDArray, high: NDArray) -> None:
    if rows.sum() != len(low):
        raise EstimationError(
            f"{len(low)} native intervals for {rows.sum()} rows", step='confint'
        )
    out.loc[rows, 'CI_low'] = low
    out.loc[rows, 'CI_high'] = high


def _lmer_ci(
    model: Any,
    out: pd.DataFrame,
    ci_method: str | None,
    ci: float,
    corr_mask: NDArray,
    sigma_mask: NDArray,
) -> pd.DataFrame:
    if ci_method not in RANDOM_CI_METHODS:
        return out

    var_ci = model.confint('theta_', ci_method, ci)
    low, high = _bounds(var_ci)
    parsed = [parse_lmer_identifier(str(name)) for name in var_ci.index]
    native_corr = np.array([p.label.is_correlation for p in parsed], dtype=bool)
    native_sigma = np.array([p.label.is_residual for p in parsed], dtype=bool)

    out = out.copy()
    sd_rows = ~native_corr & ~native_sigma
    _assign(out, ~corr_mask & ~sigma_mask, low[sd_rows], high[sd_rows])
    if sigma_mask.any() and native_sigma.any():
        _assign(out, sigma_mask, low[native_sigma], high[native_sigma])
    if corr_mask.any() and native_corr.any():
        _assign(out, corr_mask, low[native_corr], high[native_corr])
    return out


def _row_key(parameter: str, group: Any) -> tuple | None:
    try:
        label = parse_label(parameter)
    except ValidationError:
        return None
    return (label.kind, label.term, str(group))


def _native_key(native: NativeParameter) -> tuple:
    return (native.label.kind, native.label.term, str(native.group))


def _tmb_ci(
    model: Any,
    out: pd.DataFrame,
    ci: float,
    component: str | None,
) -> pd.DataFrame:
    blocks = [model.confint('theta_', WALD, ci)]
    try:
        blocks.append(model.confint('sigma', WALD, ci))
    except Exception as e:
        # families without a residual scale
        logger.debug("no Wald interval for sigma: %s", e)
    var_ci = pd.concat(blocks)
    low, high = _bounds(var_ci)

    group_factors = model.find_random(flatten=True)
    lookup: dict[tuple, tuple[float, float]] = {}
    for name, lo, hi in zip(var_ci.index, low, high):
        try:
            native = parse_tmb_identifier(str(name), group_factors)
        except ValidationError as e:
            logger.debug("skipping native interval %r: %s", name, e)
            continue
        if component is not None and native.component != component:
            continue
        lookup.setdefault(_native_key(native), (lo, hi))

    keys = [_row_key(p, g) for p, g in zip(out['Parameter'], out['Group'])]
    matched = [lookup.get(k, (np.nan, np.nan)) for k in keys]
    out = out.copy()
    out['CI_low'] = [lo for lo, _ in matched]
    out['CI_high'] = [hi for _, hi in matched]
    return out


def random_sd_ci(
    model: Any,
    out: pd.DataFrame,
    ci_method: str | None,
    ci: float,
    corr_mask: NDArray,
    sigma_mask: NDArray,
    component: str | None = None,
) -> pd.DataFrame:
    """
    Merge native variance-parameter intervals into a random-effects table.

    Args:
        model: Model handle
        out: Random-effects rows with CI_low/CI_high columns
        ci_method: 'profile' or 'boot' for LMER models; TMB models always
            use Wald intervals
        ci: A single valid confidence level
        corr_mask: Rows of `out` holding correlations
        sigma_mask: Rows of `out` holding the residual SD
        component: Sub-model of `out` ('conditional' or 'zero_inflated')

    Returns:
        `out` with CI bounds filled where available; `out` unchanged on
        failure or for families without native intervals
    """
    family = getattr(model, 'family', None)
    corr_mask = np.asarray(corr_mask, dtype=bool)
    sigma_mask = np.asarray(sigma_mask, dtype=bool)
    try:
        if family == ModelFamily.LMER:
            return _lmer_ci(model, out, ci_method, ci, corr_mask, sigma_mask)
        if family == ModelFamily.TMB:
            return _tmb_ci(model, out, ci, component)
    except Exception as e:
        logger.debug(
            "variance-parameter intervals unavailable for %s: %s: %s",
            family, type(e).__name__, e,
        )
    return out
