"""
Reference model handles.

Public API:
    LinearModel     — fitted linear/GLM/GEE-type model
    MixedModel      — fitted mixed model with variance components
    VarCompSummary  — one random-effect variance component
"""

from pyparameters.models._common import VarCompSummary
from pyparameters.models.linear import LinearModel
from pyparameters.models.mixed import MixedModel

__all__ = [
    "LinearModel",
    "MixedModel",
    "VarCompSummary",
]
