"""
Label grammar for random-effect parameters.

Displayed labels take one of four shapes:

    SD (<term>)                     SD of a random intercept or slope
    SD (Observations)               residual SD
    Cor (Intercept~<term>)          intercept-slope correlation
    Cor (Intercept~<term>: <group>) same, qualified by grouping factor

ParameterLabel.format() and parse_label() are inverses of each other on
every label they accept. Model-native identifiers of variance-parameter
intervals are parsed into the same form by parse_lmer_identifier() and
parse_tmb_identifier().
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Sequence

from pyparameters.core.defaults import (
    COMPONENT_CONDITIONAL,
    COMPONENT_ZERO_INFLATED,
    INTERCEPT_TERMS,
)
from pyparameters.core.exceptions import ValidationError

KIND_SD = 'sd'
KIND_COR = 'cor'
KIND_RESIDUAL = 'residual'
LABEL_KINDS = (KIND_SD, KIND_COR, KIND_RESIDUAL)

INTERCEPT = 'Intercept'
RESIDUAL_TERM = 'Observations'
RESIDUAL_GROUP = 'Residual'

_SD_RE = re.compile(r'^SD \((?P<term>.+)\)$')
_COR_RE = re.compile(r'^Cor \(Intercept~(?P<term>.+?)(?:: (?P<group>[^:]+))?\)$')

_LMER_SD_RE = re.compile(r'^sd_(?P<term>.+)\|(?P<group>.+)$')
_LMER_COR_RE = re.compile(r'^cor_(?P<terms>.+)\|(?P<group>.+)$')

_TMB_SUBMODELS = {'cond.': COMPONENT_CONDITIONAL, 'zi.': COMPONENT_ZERO_INFLATED}


def display_term(term: str) -> str:
    """'(Intercept)' and '1' display as 'Intercept'."""
    return INTERCEPT if term in INTERCEPT_TERMS else term


@dataclass(frozen=True)
class ParameterLabel:
    """Parsed random-effect parameter label.

    Attributes:
        kind: 'sd', 'cor' or 'residual'.
        term: Random term; the slope term for correlations. Empty for the
            residual.
        group: Grouping factor qualifying a correlation, or None.
    """
    kind: str
    term: str = ''
    group: str | None = None

    def __post_init__(self):
        if self.kind not in LABEL_KINDS:
            raise ValidationError(f"kind must be one of {LABEL_KINDS}, got {self.kind!r}")
        if self.kind == KIND_RESIDUAL:
            if self.term or self.group is not None:
                raise ValidationError("residual labels take no term or group")
            return
        if not self.term:
            raise ValidationError(f"{self.kind} labels need a term")
        if self.kind == KIND_SD:
            if self.group is not None:
                raise ValidationError("SD labels take no group")
            if self.term == RESIDUAL_TERM:
                raise ValidationError(
                    f"term {RESIDUAL_TERM!r} is reserved for the residual label"
                )
            return
        if ': ' in self.term:
            raise ValidationError(f"correlation term must not contain ': ', got {self.term!r}")
        if self.group is not None and (not self.group or ':' in self.group):
            raise ValidationError(f"invalid correlation group {self.group!r}")

    @property
    def is_correlation(self) -> bool:
        return self.kind == KIND_COR

    @property
    def is_residual(self) -> bool:
        return self.kind == KIND_RESIDUAL

    def format(self) -> str:
        if self.kind == KIND_RESIDUAL:
            return f'SD ({RESIDUAL_TERM})'
        if self.kind == KIND_SD:
            return f'SD ({self.term})'
        if self.group is None:
            return f'Cor (Intercept~{self.term})'
        return f'Cor (Intercept~{self.term}: {self.group})'

    def __str__(self) -> str:
        return self.format()


def parse_label(text: str) -> ParameterLabel:
    """
    Parse a displayed label.

    Raises:
        ValidationError: If text is not one of the recognized shapes
    """
    m = _COR_RE.match(text)
    if m:
        return ParameterLabel(KIND_COR, m.group('term'), m.group('group'))
    m = _SD_RE.match(text)
    if m:
        term = m.group('term')
        if term == RESIDUAL_TERM:
            return ParameterLabel(KIND_RESIDUAL)
        return ParameterLabel(KIND_SD, term)
    raise ValidationError(f"Unrecognized random-effect label: {text!r}")


def is_correlation_label(text: str) -> bool:
    return _COR_RE.match(text) is not None


def is_residual_label(text: str) -> bool:
    return text == f'SD ({RESIDUAL_TERM})'


@dataclass(frozen=True)
class NativeParameter:
    """A model-native interval identifier, parsed.

    Attributes:
        label: Label in the shared grammar.
        group: Grouping factor ('Residual' for the residual), or None if
            the identifier does not name one.
        component: Sub-model, 'conditional' or 'zero_inflated'.
    """
    label: ParameterLabel
    group: str | None
    component: str = COMPONENT_CONDITIONAL


def _residual() -> NativeParameter:
    return NativeParameter(ParameterLabel(KIND_RESIDUAL), RESIDUAL_GROUP)


def parse_lmer_identifier(name: str) -> NativeParameter:
    """
    Parse an lme4-style identifier.

    Shapes: 'sd_<term>|<group>', 'cor_<slope>.<term>|<group>', 'sigma'.
    """
    if name == 'sigma':
        return _residual()
    m = _LMER_SD_RE.match(name)
    if m:
        return NativeParameter(
            ParameterLabel(KIND_SD, display_term(m.group('term'))),
            m.group('group'),
        )
    m = _LMER_COR_RE.match(name)
    if m and '.' in m.group('terms'):
        slope, _ = m.group('terms').rsplit('.', 1)
        return NativeParameter(ParameterLabel(KIND_COR, slope), m.group('group'))
    raise ValidationError(f"Unrecognized variance-parameter identifier: {name!r}")


def parse_tmb_identifier(name: str, group_factors: Sequence[str] = ()) -> NativeParameter:
    """
    Parse a glmmTMB-style identifier.

    Shapes, after an optional '<group>.' prefix and a 'cond.' or 'zi.'
    sub-model marker: 'Std.Dev.<term>', 'Cor.<slope>.<term>', 'sigma'.
    '.Intercept.' is read as '(Intercept)'. Correlations without a group
    prefix are attributed to the first grouping factor.
    """
    if name == 'sigma':
        return _residual()

    rest = name
    group = None
    # longest first, so 'site.year' wins over 'site'
    for g in sorted(group_factors, key=len, reverse=True):
        prefix = g + '.'
        if rest.startswith(prefix) and rest[len(prefix):].startswith(tuple(_TMB_SUBMODELS)):
            group = g
            rest = rest[len(prefix):]
            break

    component = COMPONENT_CONDITIONAL
    for marker, comp in _TMB_SUBMODELS.items():
        if rest.startswith(marker):
            component = comp
            rest = rest[len(marker):]
            break

    rest = rest.replace('.Intercept.', '(Intercept)')
    if group is None and group_factors:
        group = group_factors[0]

    if rest.startswith('Std.Dev.') and len(rest) > len('Std.Dev.'):
        term = display_term(rest[len('Std.Dev.'):])
        return NativeParameter(ParameterLabel(KIND_SD, term), group, component)

    if rest.startswith('Cor.') and '.' in rest[len('Cor.'):]:
        slope, _ = rest[len('Cor.'):].rsplit('.', 1)
        return NativeParameter(ParameterLabel(KIND_COR, slope, group), group, component)

    if rest == 'sigma':
        return NativeParameter(ParameterLabel(KIND_RESIDUAL), RESIDUAL_GROUP, component)

    raise ValidationError(f"Unrecognized variance-parameter identifier: {name!r}")
