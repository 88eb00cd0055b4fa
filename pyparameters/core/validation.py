"""
Input validation utilities for pyparameters.

These validators follow the "fail fast, fail loud" principle. They raise
immediately with clear error messages rather than silently correcting
or making assumptions about user intent.

Design principles:
    - No silent type coercion (except np.asarray on array-likes)
    - Clear, actionable error messages with actual values
    - Each function validates ONE thing
    - Parameter names included in all error messages
"""

from __future__ import annotations

import math
from typing import Any, Iterable

import numpy as np
import pandas as pd
from numpy.typing import ArrayLike, NDArray

from pyparameters.core.defaults import COMPONENT_ALIASES, COMPONENT_CHOICES
from pyparameters.core.exceptions import ValidationError, DimensionError


def check_choice(value: Any, choices: Iterable[Any], name: str) -> Any:
    """
    Verify value is one of the allowed choices.

    Args:
        value: Value to check
        choices: Allowed values
        name: Parameter name for error messages

    Returns:
        The value, unchanged

    Raises:
        ValidationError: If value is not among choices
    """
    choices = tuple(choices)
    if value not in choices:
        raise ValidationError(
            f"{name} must be one of {choices}, got {value!r}"
        )
    return value


def check_component(component: str, allow_all: bool = True) -> str:
    """
    Validate a model component selector and normalize its alias.

    'zi' is accepted as shorthand for 'zero_inflated'. Normalization happens
    here, at the pipeline boundary, so downstream code only ever sees
    canonical names.

    Args:
        component: Component selector
        allow_all: Whether 'all' is an acceptable value

    Returns:
        Canonical component name

    Raises:
        ValidationError: If component is unknown
    """
    choices = COMPONENT_CHOICES if allow_all else tuple(
        c for c in COMPONENT_CHOICES if c != 'all'
    )
    check_choice(component, choices, 'component')
    return COMPONENT_ALIASES.get(component, component)


def is_valid_probability(value: Any) -> bool:
    """True if value is a finite number strictly between 0 and 1."""
    try:
        x = float(value)
    except (TypeError, ValueError):
        return False
    return math.isfinite(x) and 0.0 < x < 1.0


def check_ci_levels(ci: float | Iterable[float] | None) -> tuple[float, ...]:
    """
    Convert requested confidence level(s) to a tuple.

    No validity check is made on the levels themselves; callers decide
    whether invalid levels are an error or produce empty intervals.

    Args:
        ci: None, a single level, or a sequence of levels

    Returns:
        Tuple of levels (empty for None)

    Raises:
        ValidationError: If ci contains non-numeric entries
    """
    if ci is None:
        return ()
    if np.isscalar(ci):
        values = [ci]
    else:
        values = list(ci)
    try:
        return tuple(float(v) for v in values)
    except (TypeError, ValueError) as e:
        raise ValidationError(f"ci: expected numeric level(s), got {ci!r}") from e


def check_array(array: ArrayLike, name: str) -> NDArray[np.floating[Any]]:
    """
    Validate and convert input to a floating point numpy array.

    Args:
        array: Input to validate
        name: Parameter name for error messages

    Returns:
        numpy.ndarray with floating dtype

    Raises:
        ValidationError: If input cannot be converted to numeric array
    """
    try:
        result = np.asarray(array)
    except (ValueError, TypeError) as e:
        raise ValidationError(f"{name}: cannot convert to array: {e}") from e

    if result.dtype == object or not np.issubdtype(result.dtype, np.number):
        raise ValidationError(
            f"{name}: non-numeric dtype {result.dtype}, expected numeric data"
        )

    if not np.issubdtype(result.dtype, np.floating):
        result = result.astype(np.float64)

    return result


def check_consistent_length(
    *arrays: ArrayLike,
    names: tuple[str, ...]
) -> None:
    """
    Verify all arrays have the same length (first dimension).

    Args:
        *arrays: Arrays to check
        names: Parameter names for error messages (must match number of arrays)

    Raises:
        ValueError: If number of names doesn't match number of arrays
        DimensionError: If arrays have inconsistent lengths
    """
    if len(arrays) != len(names):
        raise ValueError(
            f"Number of arrays ({len(arrays)}) must match number of names ({len(names)})"
        )

    lengths = [len(arr) for arr in arrays]
    if len(set(lengths)) > 1:
        details = ", ".join(f"{name}={length}" for name, length in zip(names, lengths))
        raise DimensionError(f"Inconsistent lengths: {details}")


def check_square_labeled(matrix: pd.DataFrame, name: str) -> None:
    """
    Verify a covariance matrix is square and symmetrically labeled.

    Args:
        matrix: Labeled matrix
        name: Parameter name for error messages

    Raises:
        DimensionError: If the matrix is not square or row and column
            labels differ
    """
    n_rows, n_cols = matrix.shape
    if n_rows != n_cols:
        raise DimensionError(
            f"{name}: expected square matrix, got shape {matrix.shape}"
        )
    if list(matrix.index) != list(matrix.columns):
        raise DimensionError(
            f"{name}: row labels {list(matrix.index)} differ from "
            f"column labels {list(matrix.columns)}"
        )
