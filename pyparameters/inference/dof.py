"""
Degrees-of-freedom rules for p-value calibration.

A rule maps (model, method) to a denominator df, or None when the
reference distribution should be the standard normal. Rules are looked up
by name; register_df_rule() adds new ones.
"""

from __future__ import annotations

import math
from typing import Any, Callable

from pyparameters.core.defaults import DEFAULT_DF_METHOD
from pyparameters.core.exceptions import ValidationError

DfRule = Callable[[Any], 'float | None']


def _residual_df(model: Any) -> float | None:
    df = getattr(model, 'df_residual', None)
    if df is None:
        return None
    df = float(df)
    if not math.isfinite(df) or df <= 0:
        return None
    return df


def _t_based_df(model: Any) -> float | None:
    """Residual df for t-statistic models, None for z-statistic models."""
    statistic = model.find_statistic()
    if not statistic.startswith('t'):
        return None
    return _residual_df(model)


def _normal_df(model: Any) -> float | None:
    return None


_DF_RULES: dict[str, DfRule] = {
    'any': _t_based_df,
    'wald': _t_based_df,
    'residual': _residual_df,
    'normal': _normal_df,
}


def register_df_rule(name: str, rule: DfRule) -> None:
    """Register a df rule under a method name (replaces an existing one)."""
    _DF_RULES[name] = rule


def degrees_of_freedom(model: Any, method: str | None = DEFAULT_DF_METHOD) -> float | None:
    """
    Denominator degrees of freedom for a model.

    Args:
        model: Model handle
        method: Rule name: 'any' (default), 'wald', 'residual', 'normal'
            or any registered name. None means 'any'.

    Returns:
        Degrees of freedom, or None to use the normal distribution

    Raises:
        ValidationError: If method is not a registered rule
    """
    if method is None:
        method = DEFAULT_DF_METHOD
    rule = _DF_RULES.get(method)
    if rule is None:
        raise ValidationError(
            f"method must be one of {tuple(_DF_RULES)}, got {method!r}"
        )
    return rule(model)
