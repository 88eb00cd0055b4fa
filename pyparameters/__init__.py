"""
PyParameters: robust inference and random-effects variance tables for
fitted regression models.

Submodules:
    inference: Robust (sandwich) standard errors, p-values and intervals
    mixed: Random-effect SDs, correlations and residual SD
    models: Reference model handles
    core: Protocols, exceptions, defaults and shared schema
"""

__version__ = "0.1.0"

from pyparameters import core
from pyparameters import inference
from pyparameters import mixed
from pyparameters import models

from pyparameters.inference import (
    standard_error_robust,
    p_value_robust,
    ci_robust,
)
from pyparameters.mixed import random_variances

__all__ = [
    "__version__",
    "core",
    "inference",
    "mixed",
    "models",
    "standard_error_robust",
    "p_value_robust",
    "ci_robust",
    "random_variances",
]
