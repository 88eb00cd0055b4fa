"""
Shared fixtures for random-effects tests.

Model handles are built directly from known variance components
(sleepstudy-like magnitudes: intercept SD 25, slope SD 6, residual SD 25),
so expected tables can be written down by hand.
"""

import pandas as pd
import pytest

from pyparameters.core.exceptions import EstimationError
from pyparameters.core.families import ModelFamily
from pyparameters.models import MixedModel, VarCompSummary

INTERVAL_COLUMNS = ['2.5 %', '97.5 %']


class FailingModel:
    """Mixed-model handle whose every variance query fails."""

    family = ModelFamily.LMER

    def get_variance(self, kind, model_component='conditional'):
        raise EstimationError("variance components unavailable", step=kind)

    def get_sigma(self):
        raise EstimationError("residual SD unavailable", step='sigma')

    def find_statistic(self):
        return 't-statistic'


class RecordingProvider:
    """Interval provider returning fixed frames and recording its calls."""

    def __init__(self, frames):
        self.frames = frames
        self.calls = []

    def __call__(self, parm, method, level):
        self.calls.append((parm, method, level))
        frame = self.frames.get(parm)
        if frame is None:
            raise RuntimeError(f"no intervals for {parm!r}")
        return frame


@pytest.fixture
def intercept_model():
    """(1 | Subject) with residual SD."""
    return MixedModel(
        [250.0], [[16.0]], names=['(Intercept)'],
        var_components=[VarCompSummary('Subject', '(Intercept)', 625.0, 25.0)],
        residual_std=25.0,
        df_residual=178.0,
    )


def _slope_components():
    return [
        VarCompSummary('Subject', '(Intercept)', 625.0, 25.0),
        VarCompSummary('Subject', 'Days', 36.0, 6.0, corr=0.07),
    ]


@pytest.fixture
def slope_model():
    """(1 + Days | Subject) with residual SD."""
    return MixedModel(
        [250.0, 10.0], [[40.0, 0.0], [0.0, 2.0]], names=['(Intercept)', 'Days'],
        var_components=_slope_components(),
        residual_std=25.0,
        df_residual=178.0,
    )


@pytest.fixture
def two_group_model():
    """(1 + Days | Subject) + (1 + Days | Site), no residual scale."""
    return MixedModel(
        [1.0], [[1.0]], names=['(Intercept)'],
        var_components=[
            VarCompSummary('Subject', '(Intercept)', 4.0, 2.0),
            VarCompSummary('Subject', 'Days', 1.0, 1.0, corr=0.1),
            VarCompSummary('Site', '(Intercept)', 9.0, 3.0),
            VarCompSummary('Site', 'Days', 0.25, 0.5, corr=-0.2),
        ],
        statistic='z-statistic',
    )


@pytest.fixture
def profile_provider():
    """Profile intervals in lme4 order: SD, correlation, SD, sigma."""
    theta = pd.DataFrame(
        [[20.0, 30.0], [-0.5, 0.6], [4.0, 8.0], [22.0, 28.0]],
        index=['sd_(Intercept)|Subject', 'cor_Days.(Intercept)|Subject',
               'sd_Days|Subject', 'sigma'],
        columns=INTERVAL_COLUMNS,
    )
    return RecordingProvider({'theta_': theta})


@pytest.fixture
def lmer_model(profile_provider):
    """slope_model with native profile intervals."""
    return MixedModel(
        [250.0, 10.0], [[40.0, 0.0], [0.0, 2.0]], names=['(Intercept)', 'Days'],
        var_components=_slope_components(),
        residual_std=25.0,
        df_residual=178.0,
        interval_provider=profile_provider,
    )


@pytest.fixture
def tmb_provider():
    """Wald intervals with an extra estimate column."""
    columns = INTERVAL_COLUMNS + ['Estimate']
    theta = pd.DataFrame(
        [[1.5, 2.6, 2.0], [0.6, 1.6, 1.0], [-0.2, 0.7, 0.3], [0.1, 1.2, 0.5]],
        index=['Subject.cond.Std.Dev.(Intercept)', 'Subject.cond.Std.Dev.Days',
               'Subject.cond.Cor.Days.(Intercept)', 'Subject.zi.Std.Dev.(Intercept)'],
        columns=columns,
    )
    sigma = pd.DataFrame([[1.2, 1.9, 1.5]], index=['sigma'], columns=columns)
    return RecordingProvider({'theta_': theta, 'sigma': sigma})


@pytest.fixture
def tmb_model(tmb_provider):
    """Zero-inflated model: (1 + Days | Subject) conditional, (1 | Subject) zi."""
    return MixedModel(
        [0.5, 0.1, -1.0], [[0.04, 0.0, 0.0], [0.0, 0.01, 0.0], [0.0, 0.0, 0.09]],
        names=['(Intercept)', 'Days', 'zi_(Intercept)'],
        components=['conditional', 'conditional', 'zero_inflated'],
        var_components=[
            VarCompSummary('Subject', '(Intercept)', 4.0, 2.0),
            VarCompSummary('Subject', 'Days', 1.0, 1.0, corr=0.3),
            VarCompSummary('Subject', '(Intercept)', 0.25, 0.5, component='zero_inflated'),
        ],
        residual_std=1.5,
        statistic='z-statistic',
        zero_inflated=True,
        interval_provider=tmb_provider,
        family=ModelFamily.TMB,
    )


@pytest.fixture
def failing_model():
    return FailingModel()
