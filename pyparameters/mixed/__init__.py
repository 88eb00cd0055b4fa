"""
Random-effects variance components of mixed models.

Public API:
    random_variances()               — random-effects table, family dispatched
    extract_random_variances_helper() — table for one sub-model
    random_sd_ci()                   — merge native variance-parameter intervals
    ParameterLabel                   — parsed 'SD (...)' / 'Cor (...)' label
    parse_label()                    — inverse of ParameterLabel.format()
"""

from pyparameters.mixed.solvers import random_variances
from pyparameters.mixed._extract import extract_random_variances_helper
from pyparameters.mixed._intervals import random_sd_ci
from pyparameters.mixed._labels import ParameterLabel, parse_label

__all__ = [
    "random_variances",
    "extract_random_variances_helper",
    "random_sd_ci",
    "ParameterLabel",
    "parse_label",
]
