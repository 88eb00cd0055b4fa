"""
Defaults and naming rules shared by the inference pipelines.

Used by the covariance resolver, the assemblers and the random-effects
extractor. Changing a value here changes it everywhere.
"""

from pyparameters.core.families import ModelFamily

# Covariance estimation
DEFAULT_VCOV_ESTIMATION = 'HC'
DEFAULT_HC_TYPE = 'HC3'
DEFAULT_CL_TYPE = 'HC1'
DEFAULT_HAC_KERNEL = 'Quadratic Spectral'

# Estimator names starting with one of these are already fully qualified
VCOV_PREFIXES = ('vcov', 'kernHAC', 'NeweyWest')
VCOV_PREFIX = 'vcov'

CLUSTER_ROBUST_ESTIMATOR = 'vcovCR'
CLUSTER_ROBUST_TYPES = frozenset({'CR0', 'CR1', 'CR1p', 'CR1S', 'CR2', 'CR3'})
DEFAULT_CLUSTER_ROBUST_TYPE = 'CR0'

# Facility names
FACILITY_SANDWICH = 'sandwich'
FACILITY_CLUSTER = 'cluster'

# Degrees of freedom
DEFAULT_DF_METHOD = 'any'

# Model components
COMPONENT_ALL = 'all'
COMPONENT_CONDITIONAL = 'conditional'
COMPONENT_ZERO_INFLATED = 'zero_inflated'
COMPONENT_DISPERSION = 'dispersion'
COMPONENT_CHOICES = (
    COMPONENT_ALL,
    COMPONENT_CONDITIONAL,
    COMPONENT_ZERO_INFLATED,
    'zi',
    COMPONENT_DISPERSION,
)
COMPONENT_ALIASES = {'zi': COMPONENT_ZERO_INFLATED}

# Random-effects reporting
EFFECTS_CHOICES = ('random', 'all')
DEFAULT_CI = 0.95
RANDOM_CI_METHODS = ('profile', 'boot')

# Families that compute sandwich-type variances internally
NATIVE_ROBUST_FAMILIES = frozenset({ModelFamily.GEE, ModelFamily.MIXMOD})

# Families that report conditional and zero-inflated sub-models
MULTI_COMPONENT_FAMILIES = frozenset({ModelFamily.TMB, ModelFamily.MIXMOD})

# Term names of a random intercept
INTERCEPT_TERMS = ('(Intercept)', '1')
