"""
Random-variance extractor.

Builds the random-effects table of one sub-model: SDs of random
intercepts and slopes, intercept-slope correlations and, for the
conditional sub-model, the residual SD. Each raw contribution is fetched
and labeled independently; a step that fails only removes its own rows.
The whole extraction yields None when nothing could be extracted or the
contributions cannot be combined.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Iterable, TypeVar

import numpy as np
import pandas as pd

from pyparameters.core._utils import compact_list
from pyparameters.core.defaults import COMPONENT_CONDITIONAL, DEFAULT_CI
from pyparameters.core.exceptions import AssemblyError, ValidationError
from pyparameters.core.schema import (
    ci_columns,
    normalize_columns,
    random_effects_columns,
    single_valid_level,
    statistic_column,
)
from pyparameters.mixed._intervals import random_sd_ci
from pyparameters.mixed._labels import (
    INTERCEPT,
    KIND_COR,
    KIND_RESIDUAL,
    KIND_SD,
    RESIDUAL_GROUP,
    ParameterLabel,
    is_correlation_label,
    is_residual_label,
    parse_label,
)

logger = logging.getLogger(__name__)

T = TypeVar('T')


def _attempt(step: str, fn: Callable[[], T]) -> T | None:
    """Run one extraction step; a failure is logged and gives None."""
    try:
        return fn()
    except Exception as e:
        logger.debug("random-effects step %r failed: %s: %s", step, type(e).__name__, e)
        return None


def _rows(values: Iterable[float], parameters: list[str], groups: list[str]) -> pd.DataFrame:
    return pd.DataFrame({
        'Parameter': parameters,
        'Coefficient': np.asarray(list(values), dtype=np.float64),
        'Group': groups,
    })


def _as_series(values: pd.Series | pd.DataFrame) -> pd.Series:
    if isinstance(values, pd.DataFrame):
        return values.iloc[:, 0]
    return values


def _split_prefix(raw: str, group: str) -> str | None:
    """Remainder of raw after '<group>.', '' if raw is the group, else None."""
    if raw == group:
        return ''
    if raw.startswith(group + '.'):
        return raw[len(group) + 1:]
    return None


def _longest_first(groups: Iterable[str]) -> list[str]:
    """Unique grouping factors, longest name first ('site.year' before 'site')."""
    return sorted(dict.fromkeys(groups), key=len, reverse=True)


# =============================================================================
# Labeling
# =============================================================================


def label_intercepts(ran_intercept: pd.Series | pd.DataFrame) -> pd.DataFrame:
    ran_intercept = _as_series(ran_intercept)
    groups = [str(g) for g in ran_intercept.index]
    label = ParameterLabel(KIND_SD, INTERCEPT).format()
    return _rows(ran_intercept.to_numpy(), [label] * len(groups), groups)


def label_slopes(
    ran_slope: pd.Series | pd.DataFrame,
    groups: list[str] | None,
) -> pd.DataFrame:
    ran_slope = _as_series(ran_slope)
    raw = [str(r) for r in ran_slope.index]
    if not groups:
        groups = [r.split('.', 1)[0] for r in raw]

    parameters = [None] * len(raw)
    row_groups = list(raw)
    for g in _longest_first(groups):
        for i, r in enumerate(raw):
            if parameters[i] is not None:
                continue
            remainder = _split_prefix(r, g)
            if remainder is None:
                continue
            parameters[i] = ParameterLabel(KIND_SD, remainder or g).format()
            row_groups[i] = g

    # slopes whose label names no known grouping factor
    for i, r in enumerate(raw):
        if parameters[i] is None:
            parameters[i] = ParameterLabel(KIND_SD, r).format()

    return _rows(ran_slope.to_numpy(), parameters, row_groups)


def label_correlations(
    ran_corr: pd.Series | pd.DataFrame,
    intercept_groups: list[str],
    groups: list[str] | None,
    slopes: pd.DataFrame | None,
) -> pd.DataFrame:
    if isinstance(ran_corr, pd.Series):
        ran_corr = ran_corr.to_frame()
    values = ran_corr.iloc[:, 0].to_numpy()
    raw = [str(r) for r in ran_corr.index]

    # single grouping factor: rows are indexed by slope term
    if len(intercept_groups) == 1 and str(ran_corr.columns[0]) == intercept_groups[0]:
        g = intercept_groups[0]
        parameters = [ParameterLabel(KIND_COR, r).format() for r in raw]
        return _rows(values, parameters, [g] * len(raw))

    slope_terms: dict[str, list[str]] = {}
    if slopes is not None:
        for parameter, g in zip(slopes['Parameter'], slopes['Group']):
            slope_terms.setdefault(g, []).append(parse_label(parameter).term)

    parameters = [None] * len(raw)
    row_groups = list(raw)
    for g in _longest_first(groups or []):
        matched = [i for i, r in enumerate(raw)
                   if parameters[i] is None and _split_prefix(r, g) is not None]
        terms = slope_terms.get(g, [])
        for position, i in enumerate(matched):
            remainder = _split_prefix(raw[i], g)
            if remainder and remainder in terms:
                label = ParameterLabel(KIND_COR, remainder, g)
            elif terms:
                label = ParameterLabel(KIND_COR, terms[position % len(terms)], g)
            else:
                label = ParameterLabel(KIND_COR, g)
            parameters[i] = label.format()
            row_groups[i] = g

    for i, r in enumerate(raw):
        if parameters[i] is None:
            parameters[i] = ParameterLabel(KIND_COR, r).format()

    return _rows(values, parameters, row_groups)


def label_sigma(sigma: float) -> pd.DataFrame | None:
    sigma = float(sigma)
    if not np.isfinite(sigma):
        return None
    return _rows([sigma], [ParameterLabel(KIND_RESIDUAL).format()], [RESIDUAL_GROUP])


# =============================================================================
# Assembly
# =============================================================================


def combine(parts: list[pd.DataFrame | None]) -> pd.DataFrame:
    """
    Row-bind the available contributions.

    Raises:
        AssemblyError: If no contribution is available or they cannot be
            concatenated
    """
    parts = compact_list(parts)
    if not parts:
        raise AssemblyError("no random-effect contribution could be extracted")
    try:
        out = pd.concat(parts, ignore_index=True)
    except Exception as e:
        raise AssemblyError(f"cannot combine random-effect contributions: {e}") from e
    return out[['Parameter', 'Coefficient', 'Group']]


def extract_random_variances_helper(
    model: Any,
    ci: float | Iterable[float] | None = DEFAULT_CI,
    effects: str = 'random',
    component: str = COMPONENT_CONDITIONAL,
    ci_method: str | None = None,
) -> pd.DataFrame | None:
    """
    Random-effects table for one sub-model.

    Args:
        model: Handle with the 'variance_components' capability
        ci: Confidence level(s). Intervals are merged in only for a
            single valid level; otherwise the CI columns stay NaN.
        effects: 'random' drops the statistic, df_error and p columns;
            'all' keeps them (as NaN) for stacking with fixed effects
        component: 'conditional' or 'zero_inflated' (canonical name)
        ci_method: Interval method passed to the CI merger

    Returns:
        DataFrame with columns Parameter, Level, Coefficient, SE, CI
        bounds, [statistic, df_error, p,] Effects, Group; or None
    """
    ran_intercept = _attempt(
        'intercept', lambda: model.get_variance('intercept', model_component=component)
    )
    ran_slope = _attempt(
        'slope', lambda: model.get_variance('slope', model_component=component)
    )
    ran_corr = _attempt(
        'rho01', lambda: model.get_variance('rho01', model_component=component)
    )
    # the residual belongs to the conditional sub-model only
    ran_sigma = None
    if component == COMPONENT_CONDITIONAL:
        ran_sigma = _attempt('sigma', lambda: model.get_sigma())

    intercepts = None
    if ran_intercept is not None and len(ran_intercept) > 0:
        intercepts = _attempt('intercept labels', lambda: label_intercepts(ran_intercept))
    intercept_groups = list(intercepts['Group']) if intercepts is not None else []
    groups = list(intercept_groups) or None

    slopes = None
    if ran_slope is not None and len(ran_slope) > 0:
        slopes = _attempt('slope labels', lambda: label_slopes(ran_slope, groups))
        if groups is None and slopes is not None:
            groups = list(slopes['Group'])

    correlations = None
    if ran_corr is not None and len(ran_corr) > 0:
        correlations = _attempt(
            'rho01 labels',
            lambda: label_correlations(ran_corr, intercept_groups, groups, slopes),
        )

    sigma = None
    if ran_sigma is not None:
        sigma = _attempt('sigma labels', lambda: label_sigma(ran_sigma))

    try:
        out = combine([intercepts, slopes, correlations, sigma])
    except AssemblyError as e:
        logger.debug("random-effects extraction for %r gave no result: %s", component, e)
        return None

    # variances to SDs, except correlations and the residual SD
    corr_mask = out['Parameter'].map(is_correlation_label).to_numpy(dtype=bool)
    sigma_mask = out['Parameter'].map(is_residual_label).to_numpy(dtype=bool)
    variance_mask = ~corr_mask & ~sigma_mask
    if variance_mask.any():
        coefficient = out['Coefficient'].to_numpy(dtype=np.float64, copy=True)
        coefficient[variance_mask] = np.sqrt(coefficient[variance_mask])
        out['Coefficient'] = coefficient

    statistic = _attempt('statistic', lambda: model.find_statistic()) or 'Statistic'
    stat_col = statistic_column(statistic)
    try:
        ci_cols = ci_columns(ci)
        level = single_valid_level(ci)
    except ValidationError as e:
        # unusable levels leave the interval columns empty
        logger.debug("no usable confidence level: %s", e)
        ci_cols, level = ci_columns(None), None

    for col in (stat_col, 'SE', 'df_error', 'p', 'Level', *ci_cols):
        out[col] = np.nan
    out['Effects'] = 'random'

    if level is not None:
        out = random_sd_ci(model, out, ci_method, level, corr_mask, sigma_mask, component)

    return normalize_columns(
        out, random_effects_columns(stat_col, ci_cols, effects), keep_extra=False
    )
