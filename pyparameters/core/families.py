"""
Model family tags.

Every model handle declares one ModelFamily. Pipelines dispatch on the tag
with one handler per family and a conservative fallback for GENERIC.
"""

from enum import Enum


class ModelFamily(str, Enum):
    """Tagged union over the supported fitted-model representations.

    Members:
        LINEAR: Linear or generalized linear model with estimating functions.
        GEE: Generalized estimating equations; sandwich variance built in.
        LMER: Mixed model with profile/bootstrap variance-parameter intervals.
        TMB: Mixed model with Wald variance-parameter intervals and
            optional zero-inflated sub-model.
        MIXMOD: Mixed model with optional zero-inflated sub-model and
            sandwich variance built in.
        GENERIC: Anything else; handled best-effort.
    """
    LINEAR = 'linear'
    GEE = 'gee'
    LMER = 'lmer'
    TMB = 'tmb'
    MIXMOD = 'mixmod'
    GENERIC = 'generic'
