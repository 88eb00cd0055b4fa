"""
Core infrastructure for pyparameters.

This module provides shared abstractions and utilities used by the
inference (robust covariance) and mixed (random-effects) subpackages.

Key components:
    protocols: ModelHandle protocol
    families: ModelFamily dispatch tags
    capabilities: Capability strings for optional model features
    defaults: Estimator, component and family defaults
    exceptions: Exception hierarchy
    validation: Input validators
    schema: Shared output column layout
"""

from pyparameters.core.protocols import ModelHandle
from pyparameters.core.families import ModelFamily
from pyparameters.core.exceptions import (
    PyParametersError,
    ValidationError,
    DimensionError,
    MissingDependencyError,
    EstimationError,
    AssemblyError,
    DimensionMismatchError,
)

__all__ = [
    # Protocols
    "ModelHandle",
    "ModelFamily",
    # Exceptions
    "PyParametersError",
    "ValidationError",
    "DimensionError",
    "MissingDependencyError",
    "EstimationError",
    "AssemblyError",
    "DimensionMismatchError",
]
