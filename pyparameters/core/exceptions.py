"""
Exception hierarchy for pyparameters.

All exceptions inherit from PyParametersError to allow catching any
library-specific error. Pipeline stages raise the most specific class
below; the random-effects pipeline recovers EstimationError and
AssemblyError locally, everything else propagates to the caller.

Design principles:
    - Exceptions carry diagnostic information as attributes
    - Error messages are actionable with actual vs expected values
    - Never catch and re-raise with less information
"""


class PyParametersError(Exception):
    """Base exception for all pyparameters errors."""
    pass


class ValidationError(PyParametersError):
    """
    Input validation failed.

    Raised when user-provided arguments (component names, confidence
    levels, estimator names, cluster variables) fail validation checks.
    """
    pass


class DimensionError(ValidationError):
    """
    Array or table dimensions are incorrect or inconsistent.

    Raised when a user-provided matrix is not square, is not labeled
    symmetrically, or when arrays have inconsistent lengths.
    """
    pass


class MissingDependencyError(PyParametersError):
    """
    A required covariance estimator facility is unavailable.

    Never recovered: the caller asked for an estimator that cannot be
    reached, so the whole call stops.

    Attributes:
        facility: Name of the facility that could not be loaded
        reason: What the facility was needed for
    """

    def __init__(
        self,
        message: str,
        facility: str | None = None,
        reason: str | None = None,
    ):
        super().__init__(message)
        self.facility = facility
        self.reason = reason


class EstimationError(PyParametersError):
    """
    An individual extraction step failed.

    Raised for unsupported model shapes or internal numeric failures while
    pulling one variance, slope, correlation or interval contribution.

    Attributes:
        step: Name of the extraction step (e.g. 'intercept', 'rho01', 'sigma')
    """

    def __init__(self, message: str, step: str | None = None):
        super().__init__(message)
        self.step = step


class AssemblyError(PyParametersError):
    """
    Partial contributions could not be combined into one table.

    The random-effects pipeline turns this into an absent (None) result
    so the caller can fall back to a fixed-effects-only report.
    """
    pass


class DimensionMismatchError(AssemblyError):
    """
    Covariance matrix and coefficient table disagree in size.

    Raised when the matrix cannot be reduced to the coefficients of the
    requested component, so rows would otherwise be misaligned.

    Attributes:
        n_vcov: Number of rows of the covariance matrix
        n_params: Number of rows of the coefficient table
    """

    def __init__(
        self,
        message: str,
        n_vcov: int | None = None,
        n_params: int | None = None,
    ):
        super().__init__(message)
        self.n_vcov = n_vcov
        self.n_params = n_params
