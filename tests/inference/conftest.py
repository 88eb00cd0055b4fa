"""
Shared fixtures for robust inference tests.
"""

import numpy as np
import pytest

from pyparameters.core.families import ModelFamily
from pyparameters.models import LinearModel


@pytest.fixture
def clustered_model(rng):
    """OLS fit with 12 clusters of 8 observations and cluster-level shocks."""
    n_clusters, size = 12, 8
    n = n_clusters * size
    cluster = np.repeat([f'school{g}' for g in range(n_clusters)], size)
    shock = np.repeat(rng.standard_normal(n_clusters), size)
    x = rng.standard_normal(n) + shock
    X = np.column_stack([np.ones(n), x])
    y = 2.0 + 0.5 * x + shock + rng.standard_normal(n)
    beta, *_ = np.linalg.lstsq(X, y, rcond=None)
    model = LinearModel(beta, X, y - X @ beta, names=['(Intercept)', 'x'])
    return model, cluster


@pytest.fixture
def two_part_model(rng):
    """Five coefficients: three conditional, two zero-inflated."""
    n = 80
    X = np.column_stack([np.ones(n), rng.standard_normal((n, 4))])
    y = X @ np.array([1.0, 0.5, -0.5, 0.2, 0.0]) + rng.standard_normal(n)
    beta, *_ = np.linalg.lstsq(X, y, rcond=None)
    return LinearModel(
        beta, X, y - X @ beta,
        names=['(Intercept)', 'x1', 'x2', 'zi_(Intercept)', 'zi_z1'],
        components=['conditional'] * 3 + ['zero_inflated'] * 2,
        statistic='z-statistic',
    )


@pytest.fixture
def gee_model(simple_regression_data):
    """GEE-type model carrying its own sandwich covariance."""
    X, y, _ = simple_regression_data
    beta, *_ = np.linalg.lstsq(X, y, rcond=None)
    return LinearModel(
        beta, X, y - X @ beta,
        names=['(Intercept)', 'x1', 'x2'],
        statistic='z-statistic',
        robust_vcov=np.diag([0.04, 0.09, 0.25]),
        family=ModelFamily.GEE,
    )
