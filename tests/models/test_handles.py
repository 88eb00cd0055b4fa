"""
Tests for the reference model handles.

Validates:
    - LinearModel: coefficient table, classical covariance, capabilities
    - MixedModel: variance layouts, residual SD, random grouping factors
    - Both satisfy the ModelHandle protocol
"""

import numpy as np
import pandas as pd
import pytest
from numpy.testing import assert_allclose

from pyparameters.core.capabilities import (
    ALL_CAPABILITIES,
    CAPABILITY_ESTIMATING_FUNCTIONS,
    CAPABILITY_NATIVE_ROBUST,
    CAPABILITY_VARIANCE_COMPONENTS,
    CAPABILITY_VARIANCE_INTERVALS,
)
from pyparameters.core.exceptions import DimensionError, EstimationError, ValidationError
from pyparameters.core.families import ModelFamily
from pyparameters.core.protocols import ModelHandle
from pyparameters.models import LinearModel, MixedModel, VarCompSummary


# ═══════════════════════════════════════════════════════════════════════
# LinearModel
# ═══════════════════════════════════════════════════════════════════════


class TestLinearModel:

    def test_is_model_handle(self, ols_model):
        assert isinstance(ols_model, ModelHandle)

    def test_default_df_residual(self, ols_model):
        assert ols_model.df_residual == 57.0

    def test_classical_vcov_matches_formula(self, simple_regression_data, ols_model):
        X, y, _ = simple_regression_data
        e = ols_model.residuals()
        sigma_sq = (e @ e) / (len(y) - 3)
        expected = sigma_sq * np.linalg.inv(X.T @ X)
        V = ols_model.vcov()
        assert list(V.index) == ['(Intercept)', 'x1', 'x2']
        assert list(V.columns) == list(V.index)
        assert_allclose(V.to_numpy(), expected, rtol=1e-8, atol=1e-12)

    def test_get_parameters_without_components(self, ols_model):
        params = ols_model.get_parameters()
        assert list(params.columns) == ['Parameter', 'Estimate']
        assert list(params['Parameter']) == ['(Intercept)', 'x1', 'x2']

    def test_find_parameters_defaults_to_conditional(self, ols_model):
        assert ols_model.find_parameters() == {
            'conditional': ['(Intercept)', 'x1', 'x2'],
        }

    def test_capabilities(self, ols_model):
        assert ols_model.supports(CAPABILITY_ESTIMATING_FUNCTIONS)
        assert not ols_model.supports(CAPABILITY_NATIVE_ROBUST)
        assert not ols_model.supports(CAPABILITY_VARIANCE_COMPONENTS)
        assert not ols_model.supports('unknown capability')

    def test_robust_vcov_without_native_matrix_raises(self, ols_model):
        with pytest.raises(ValidationError, match="native robust"):
            ols_model.vcov(robust=True)

    def test_native_robust_matrix(self, simple_regression_data):
        X, y, _ = simple_regression_data
        beta, *_ = np.linalg.lstsq(X, y, rcond=None)
        M = np.diag([1.0, 2.0, 3.0])
        model = LinearModel(beta, X, y - X @ beta, robust_vcov=M,
                            family=ModelFamily.GEE)
        assert model.supports(CAPABILITY_NATIVE_ROBUST)
        assert model.family is ModelFamily.GEE
        assert_allclose(model.vcov(robust=True).to_numpy(), M)

    def test_component_filtering(self, rng):
        X = rng.standard_normal((20, 4))
        model = LinearModel(
            np.arange(4.0), X, rng.standard_normal(20),
            names=['a', 'b', 'a', 'c'],
            components=['conditional', 'conditional', 'zero_inflated', 'zero_inflated'],
        )
        zi = model.get_parameters('zero_inflated')
        assert list(zi['Parameter']) == ['a', 'c']
        assert_allclose(zi['Estimate'], [2.0, 3.0])
        assert list(zi['Component']) == ['zero_inflated', 'zero_inflated']
        assert model.vcov('zero_inflated').shape == (2, 2)
        assert model.find_parameters() == {
            'conditional': ['a', 'b'],
            'zero_inflated': ['a', 'c'],
        }

    def test_weighted_vcov(self, simple_regression_data):
        X, y, _ = simple_regression_data
        w = np.linspace(0.5, 2.0, len(y))
        sw = np.sqrt(w)
        beta, *_ = np.linalg.lstsq(X * sw[:, None], y * sw, rcond=None)
        e = y - X @ beta
        model = LinearModel(beta, X, e, weights=w)
        sigma_sq = np.sum(w * e ** 2) / (len(y) - 3)
        expected = sigma_sq * np.linalg.inv(X.T @ (X * w[:, None]))
        assert_allclose(model.vcov().to_numpy(), expected, rtol=1e-8, atol=1e-12)

    def test_column_count_mismatch_raises(self, rng):
        with pytest.raises(DimensionError, match="columns"):
            LinearModel(np.zeros(2), rng.standard_normal((10, 3)), np.zeros(10))

    def test_residual_length_mismatch_raises(self, rng):
        with pytest.raises(DimensionError):
            LinearModel(np.zeros(3), rng.standard_normal((10, 3)), np.zeros(9))

    def test_negative_weights_raise(self, rng):
        with pytest.raises(ValidationError, match="non-negative"):
            LinearModel(np.zeros(1), np.ones((3, 1)), np.zeros(3),
                        weights=[1.0, -1.0, 1.0])


# ═══════════════════════════════════════════════════════════════════════
# MixedModel
# ═══════════════════════════════════════════════════════════════════════


@pytest.fixture
def slope_model():
    return MixedModel(
        [250.0, 10.0], np.diag([40.0, 2.0]),
        names=['(Intercept)', 'Days'],
        var_components=[
            VarCompSummary('Subject', '(Intercept)', 625.0, 25.0),
            VarCompSummary('Subject', 'Days', 36.0, 6.0, corr=0.07),
        ],
        residual_std=25.0,
        df_residual=178.0,
    )


class TestMixedModel:

    def test_is_model_handle(self, slope_model):
        assert isinstance(slope_model, ModelHandle)

    def test_capabilities(self, slope_model):
        assert slope_model.supports(CAPABILITY_VARIANCE_COMPONENTS)
        assert not slope_model.supports(CAPABILITY_VARIANCE_INTERVALS)
        assert not slope_model.supports(CAPABILITY_ESTIMATING_FUNCTIONS)

    def test_intercept_variances(self, slope_model):
        v = slope_model.get_variance('intercept')
        assert isinstance(v, pd.Series)
        assert v.to_dict() == {'Subject': 625.0}

    def test_slope_variances(self, slope_model):
        assert slope_model.get_variance('slope').to_dict() == {'Subject.Days': 36.0}

    def test_single_group_correlation_layout(self, slope_model):
        rho = slope_model.get_variance('rho01')
        assert list(rho.columns) == ['Subject']
        assert list(rho.index) == ['Days']
        assert rho.iloc[0, 0] == pytest.approx(0.07)

    def test_multi_group_correlation_layout(self):
        model = MixedModel(
            [1.0], [[1.0]], names=['(Intercept)'],
            var_components=[
                VarCompSummary('Subject', '(Intercept)', 4.0, 2.0),
                VarCompSummary('Subject', 'Days', 1.0, 1.0, corr=0.1),
                VarCompSummary('Site', '(Intercept)', 9.0, 3.0),
                VarCompSummary('Site', 'Days', 0.25, 0.5, corr=-0.2),
            ],
        )
        rho = model.get_variance('rho01')
        assert list(rho.columns) == ['rho01']
        assert list(rho.index) == ['Subject.Days', 'Site.Days']
        assert_allclose(rho['rho01'], [0.1, -0.2])

    def test_zero_inflated_components_separated(self):
        model = MixedModel(
            [1.0], [[1.0]], names=['(Intercept)'],
            var_components=[
                VarCompSummary('Subject', '(Intercept)', 4.0, 2.0),
                VarCompSummary('Subject', '(Intercept)', 1.0, 1.0,
                               component='zero_inflated'),
            ],
            zero_inflated=True,
            family=ModelFamily.TMB,
        )
        assert model.get_variance('intercept', 'zero_inflated').to_dict() == {'Subject': 1.0}
        assert model.find_random() == {
            'random': ['Subject'],
            'zero_inflated_random': ['Subject'],
        }
        assert model.find_random(flatten=True) == ['Subject']
        assert model.model_info()['is_zero_inflated'] is True

    def test_unknown_variance_kind_raises(self, slope_model):
        with pytest.raises(ValidationError, match="kind"):
            slope_model.get_variance('tau11')

    def test_sigma(self, slope_model):
        assert slope_model.get_sigma() == 25.0

    def test_missing_sigma_raises_estimation_error(self):
        model = MixedModel([1.0], [[1.0]], names=['(Intercept)'])
        with pytest.raises(EstimationError) as exc_info:
            model.get_sigma()
        assert exc_info.value.step == 'sigma'

    def test_confint_without_provider_raises(self, slope_model):
        with pytest.raises(EstimationError, match="intervals"):
            slope_model.confint('theta_', 'profile', 0.95)

    def test_vcov_shape_checked(self):
        with pytest.raises(DimensionError, match="vcov"):
            MixedModel([1.0, 2.0], np.eye(3), names=['a', 'b'])


class TestCapabilities:

    @pytest.mark.parametrize("capability", sorted(ALL_CAPABILITIES))
    def test_every_capability_answers_bool(self, ols_model, slope_model, capability):
        assert isinstance(ols_model.supports(capability), bool)
        assert isinstance(slope_model.supports(capability), bool)
