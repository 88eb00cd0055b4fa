"""
Tests for merging native variance-parameter intervals.
"""

import numpy as np
import pandas as pd
from numpy.testing import assert_allclose

from pyparameters.core.families import ModelFamily
from pyparameters.mixed import extract_random_variances_helper, random_sd_ci
from pyparameters.models import MixedModel, VarCompSummary


# ═══════════════════════════════════════════════════════════════════════
# LMER: profile / bootstrap
# ═══════════════════════════════════════════════════════════════════════


class TestLmerIntervals:

    def test_profile_intervals_assigned_by_row_kind(self, lmer_model, profile_provider):
        out = extract_random_variances_helper(lmer_model, ci_method='profile')
        assert list(out['Parameter']) == [
            'SD (Intercept)', 'SD (Days)', 'Cor (Intercept~Days)', 'SD (Observations)',
        ]
        assert_allclose(out['CI_low'], [20.0, 4.0, -0.5, 22.0])
        assert_allclose(out['CI_high'], [30.0, 8.0, 0.6, 28.0])
        assert profile_provider.calls == [('theta_', 'profile', 0.95)]

    def test_level_and_method_forwarded(self, lmer_model, profile_provider):
        extract_random_variances_helper(lmer_model, ci=0.8, ci_method='boot')
        assert profile_provider.calls == [('theta_', 'boot', 0.8)]

    def test_no_method_keeps_empty_bounds(self, lmer_model, profile_provider):
        out = extract_random_variances_helper(lmer_model)
        assert out[['CI_low', 'CI_high']].isna().all().all()
        assert profile_provider.calls == []

    def test_wald_is_not_a_random_effects_method(self, lmer_model):
        out = extract_random_variances_helper(lmer_model, ci_method='wald')
        assert out[['CI_low', 'CI_high']].isna().all().all()

    def test_provider_failure_leaves_table_unchanged(self, slope_model):
        def failing(parm, method, level):
            raise RuntimeError("profiling did not converge")

        model = MixedModel(
            [250.0, 10.0], np.eye(2), names=['(Intercept)', 'Days'],
            var_components=slope_model.var_components,
            residual_std=25.0,
            interval_provider=failing,
        )
        out = extract_random_variances_helper(model, ci_method='profile')
        assert_allclose(out['Coefficient'], [25.0, 6.0, 0.07, 25.0])
        assert out[['CI_low', 'CI_high']].isna().all().all()

    def test_count_mismatch_leaves_table_unchanged(self, slope_model):
        def too_few(parm, method, level):
            return pd.DataFrame([[20.0, 30.0]], index=['sd_(Intercept)|Subject'])

        model = MixedModel(
            [250.0, 10.0], np.eye(2), names=['(Intercept)', 'Days'],
            var_components=slope_model.var_components,
            residual_std=25.0,
            interval_provider=too_few,
        )
        out = extract_random_variances_helper(model, ci_method='profile')
        assert out[['CI_low', 'CI_high']].isna().all().all()


# ═══════════════════════════════════════════════════════════════════════
# TMB: Wald intervals matched by label
# ═══════════════════════════════════════════════════════════════════════


class TestTmbIntervals:

    def test_conditional_rows(self, tmb_model, tmb_provider):
        out = extract_random_variances_helper(tmb_model, component='conditional')
        assert list(out['Parameter']) == [
            'SD (Intercept)', 'SD (Days)', 'Cor (Intercept~Days)', 'SD (Observations)',
        ]
        assert_allclose(out['CI_low'], [1.5, 0.6, -0.2, 1.2])
        assert_allclose(out['CI_high'], [2.6, 1.6, 0.7, 1.9])
        assert ('theta_', 'wald', 0.95) in tmb_provider.calls

    def test_zero_inflated_rows(self, tmb_model):
        out = extract_random_variances_helper(tmb_model, component='zero_inflated')
        assert_allclose(out['CI_low'], [0.1])
        assert_allclose(out['CI_high'], [1.2])

    def test_missing_sigma_interval_is_tolerated(self):
        theta = pd.DataFrame(
            [[1.5, 2.6]], index=['Subject.cond.Std.Dev.(Intercept)'],
        )
        model = MixedModel(
            [0.5], [[0.04]], names=['(Intercept)'],
            var_components=[VarCompSummary('Subject', '(Intercept)', 4.0, 2.0)],
            statistic='z-statistic',
            interval_provider=lambda parm, method, level: {'theta_': theta}[parm],
            family=ModelFamily.TMB,
        )
        out = extract_random_variances_helper(model)
        assert_allclose(out['CI_low'], [1.5])
        assert_allclose(out['CI_high'], [2.6])

    def test_unmatched_rows_stay_empty(self):
        theta = pd.DataFrame(
            [[0.1, 0.9], [5.0, 6.0]],
            index=['Subject.cond.Std.Dev.(Intercept)', 'Batch.cond.Std.Dev.(Intercept)'],
        )
        model = MixedModel(
            [0.5], [[0.04]], names=['(Intercept)'],
            var_components=[
                VarCompSummary('Subject', '(Intercept)', 4.0, 2.0),
                VarCompSummary('Site', '(Intercept)', 1.0, 1.0),
            ],
            statistic='z-statistic',
            interval_provider=lambda parm, method, level: {'theta_': theta}[parm],
            family=ModelFamily.TMB,
        )
        out = extract_random_variances_helper(model)
        assert list(out['Group']) == ['Subject', 'Site']
        assert_allclose(out['CI_low'], [0.1, np.nan])


# ═══════════════════════════════════════════════════════════════════════
# Other families
# ═══════════════════════════════════════════════════════════════════════


class TestOtherFamilies:

    def test_generic_family_returns_input(self):
        out = pd.DataFrame({
            'Parameter': ['SD (Intercept)'],
            'CI_low': [np.nan],
            'CI_high': [np.nan],
        })

        class Handle:
            family = ModelFamily.GENERIC

        merged = random_sd_ci(Handle(), out, 'profile', 0.95, [False], [False])
        assert merged is out
