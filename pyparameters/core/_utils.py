"""Small pure helpers shared across pipelines."""

from __future__ import annotations

from typing import Any, Iterable

import pandas as pd


def compact_list(items: Iterable[Any]) -> list[Any]:
    """Drop None entries and empty tables, keeping order."""
    out = []
    for item in items:
        if item is None:
            continue
        if isinstance(item, (pd.DataFrame, pd.Series)) and item.empty:
            continue
        out.append(item)
    return out


def n_unique(values: Iterable[Any]) -> int:
    """Number of distinct non-missing values."""
    return int(pd.Series(list(values), dtype=object).dropna().nunique())
