"""
Output schema shared by every inference table.

Fixed-effects (robust) and random-effects tables use the same column names
so reporting code can stack them without branching on which pipeline
produced a row.
"""

from __future__ import annotations

from typing import Iterable

import numpy as np
import pandas as pd

from pyparameters.core.validation import check_ci_levels, is_valid_probability

ROBUST_COLUMNS = ('Parameter', 'Estimate', 'SE', 'Statistic', 'p')
CI_COLUMNS = ('Parameter', 'CI', 'CI_low', 'CI_high')

RANDOM_LEADING_COLUMNS = ('Parameter', 'Level', 'Coefficient', 'SE')
RANDOM_INFERENCE_COLUMNS = ('df_error', 'p')
RANDOM_TRAILING_COLUMNS = ('Effects', 'Group')


def statistic_column(statistic_name: str) -> str:
    """Column name for a test statistic, e.g. 't-statistic' -> 't'."""
    return statistic_name.replace('-statistic', '')


def ci_columns(ci: float | Iterable[float] | None) -> tuple[str, ...]:
    """CI bound column names for the requested level(s).

    A single level (valid or not) and no level at all both give the plain
    CI_low/CI_high pair. Several levels give one level-suffixed pair each,
    e.g. CI_low_0.9, CI_high_0.9.
    """
    levels = check_ci_levels(ci)
    if len(levels) <= 1:
        return ('CI_low', 'CI_high')
    cols: list[str] = []
    for level in levels:
        cols.extend((f'CI_low_{level:g}', f'CI_high_{level:g}'))
    return tuple(cols)


def single_valid_level(ci: float | Iterable[float] | None) -> float | None:
    """The requested level if exactly one valid level was given, else None."""
    levels = check_ci_levels(ci)
    if len(levels) == 1 and is_valid_probability(levels[0]):
        return levels[0]
    return None


def random_effects_columns(
    stat_column: str,
    ci_cols: Iterable[str],
    effects: str,
) -> tuple[str, ...]:
    """Fixed column order of a random-effects table.

    Random-only reports (effects == 'random') omit the statistic, df_error
    and p columns.
    """
    cols = list(RANDOM_LEADING_COLUMNS) + list(ci_cols)
    if effects != 'random':
        cols.append(stat_column)
        cols.extend(RANDOM_INFERENCE_COLUMNS)
    cols.extend(RANDOM_TRAILING_COLUMNS)
    return tuple(cols)


def normalize_columns(
    frame: pd.DataFrame,
    columns: Iterable[str],
    keep_extra: bool = True,
) -> pd.DataFrame:
    """Return a copy exposing exactly `columns` in order.

    Missing columns are added and filled with NaN. Columns not in the
    fixed set (e.g. Component) are appended after it when keep_extra is
    True, dropped otherwise.
    """
    columns = list(columns)
    out = frame.copy()
    for col in columns:
        if col not in out.columns:
            out[col] = np.nan
    extra = [c for c in out.columns if c not in columns] if keep_extra else []
    out = out[columns + extra]
    return out.reset_index(drop=True)
