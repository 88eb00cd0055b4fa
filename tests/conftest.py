"""
pytest configuration and shared fixtures.
"""

import pytest
import numpy as np

from pyparameters.models import LinearModel


@pytest.fixture
def rng():
    """Seeded random number generator for reproducible tests."""
    return np.random.default_rng(42)


@pytest.fixture
def simple_regression_data(rng):
    """Heteroskedastic regression dataset with an intercept column."""
    n = 60
    x1 = rng.standard_normal(n)
    x2 = rng.uniform(0, 2, n)
    X = np.column_stack([np.ones(n), x1, x2])
    beta_true = np.array([1.0, -2.0, 0.5])
    y = X @ beta_true + rng.standard_normal(n) * (0.5 + x2)
    return X, y, beta_true


@pytest.fixture
def ols_model(simple_regression_data):
    """OLS fit of simple_regression_data as a LinearModel."""
    X, y, _ = simple_regression_data
    beta, *_ = np.linalg.lstsq(X, y, rcond=None)
    return LinearModel(beta, X, y - X @ beta, names=['(Intercept)', 'x1', 'x2'])
