"""
Random-effects variance table, dispatched on model family.

Public API:
    random_variances() — SDs, correlations and residual SD of the random
                         effects as one table
"""

from __future__ import annotations

import logging
import warnings
from typing import Any, Callable, Iterable

import pandas as pd

from pyparameters.core.defaults import (
    COMPONENT_ALL,
    COMPONENT_CONDITIONAL,
    COMPONENT_ZERO_INFLATED,
    DEFAULT_CI,
    EFFECTS_CHOICES,
    MULTI_COMPONENT_FAMILIES,
)
from pyparameters.core.families import ModelFamily
from pyparameters.core.validation import check_choice, check_component
from pyparameters.mixed._extract import extract_random_variances_helper

logger = logging.getLogger(__name__)

_FALLBACK_MESSAGE = (
    "Something went wrong when calculating random effects parameters. "
    "Only showing model's fixed effects now. You may use effects=\"fixed\" "
    "to skip random effects altogether."
)

Handler = Callable[..., 'pd.DataFrame | None']


def _single_component(
    model: Any,
    ci: Any,
    effects: str,
    component: str,
    ci_method: str | None,
) -> pd.DataFrame | None:
    # one sub-model only: 'all' and 'conditional' are the same thing
    if component == COMPONENT_ALL:
        component = COMPONENT_CONDITIONAL
    return extract_random_variances_helper(
        model, ci=ci, effects=effects, component=component, ci_method=ci_method,
    )


def _has_zero_inflated_random(model: Any) -> bool:
    try:
        return bool(
            model.model_info().get('is_zero_inflated')
            and model.find_random().get('zero_inflated_random')
        )
    except Exception as e:
        logger.debug("cannot query zero-inflated random effects: %s", e)
        return False


def _multi_component(
    model: Any,
    ci: Any,
    effects: str,
    component: str,
    ci_method: str | None,
) -> pd.DataFrame | None:
    out = extract_random_variances_helper(
        model, ci=ci, effects=effects,
        component=COMPONENT_CONDITIONAL, ci_method=ci_method,
    )
    if out is None:
        return None
    out['Component'] = COMPONENT_CONDITIONAL

    if _has_zero_inflated_random(model):
        zi = extract_random_variances_helper(
            model, ci=ci, effects=effects,
            component=COMPONENT_ZERO_INFLATED, ci_method=ci_method,
        )
        if zi is not None:
            zi['Component'] = COMPONENT_ZERO_INFLATED
            out = pd.concat([out, zi], ignore_index=True)

    if component != COMPONENT_ALL:
        out = out[out['Component'] == component].reset_index(drop=True)
    return out


_HANDLERS: dict[ModelFamily, Handler] = {
    family: _multi_component for family in MULTI_COMPONENT_FAMILIES
}


def random_variances(
    model: Any,
    ci: float | Iterable[float] | None = DEFAULT_CI,
    effects: str = 'random',
    component: str | None = None,
    ci_method: str | None = None,
    verbose: bool = False,
) -> pd.DataFrame | None:
    """
    Random-effect SDs, correlations and residual SD of a mixed model.

    Variances are reported on the SD scale. Labels follow the shapes
    'SD (Intercept)', 'SD (<term>)', 'Cor (Intercept~<term>)',
    'Cor (Intercept~<term>: <group>)' and 'SD (Observations)'.

    Args:
        model: Handle with the 'variance_components' capability
        ci: Confidence level, several levels (level-suffixed CI columns,
            left empty) or None
        effects: 'random' (point estimates only) or 'all' (also the
            statistic, df_error and p columns, for stacking with fixed
            effects)
        component: 'all', 'conditional', 'zero_inflated' (alias 'zi') or
            'dispersion'. Default 'all' for families with a zero-inflation
            sub-model, 'conditional' otherwise.
        ci_method: 'profile' or 'boot' to request native intervals from
            LMER models
        verbose: Warn when nothing could be extracted

    Returns:
        DataFrame of random-effect parameters, or None when no variance
        component could be extracted (report fixed effects only)

    Raises:
        ValidationError: If effects or component is not a known choice

    Examples:
        >>> random_variances(model)
        >>> random_variances(model, ci_method='profile', effects='all')
    """
    check_choice(effects, EFFECTS_CHOICES, 'effects')
    family = getattr(model, 'family', ModelFamily.GENERIC)
    handler = _HANDLERS.get(family, _single_component)

    if component is None:
        component = COMPONENT_ALL if handler is _multi_component else COMPONENT_CONDITIONAL
    component = check_component(component)

    out = handler(model, ci, effects, component, ci_method)

    if out is None and verbose:
        warnings.warn(_FALLBACK_MESSAGE, UserWarning, stacklevel=2)
    return out
