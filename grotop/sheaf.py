"""The sheaf condition for a finite presheaf and a sieve.

For a sieve S on X, a *matching family* for P is a choice x_f ∈ P(dom f) for
every f ∈ S such that

    P(g)(x_f) = x_{f ∘ g}      for every g into dom f.

An *amalgamation* is x ∈ P(X) with P(f)(x) = x_f for all f ∈ S.  P is a
sheaf for S when every matching family has exactly one amalgamation.

Equivalently (and this is what the sieve-restriction relation tests), the
restriction map

    ρ_S : P(X) ≅ Hom(yX, P) → Hom(S, P) = MatchingFamilies(S),   x ↦ (P(f)(x))_{f ∈ S}

is a bijection.  ``is_sheaf_for`` and ``is_iso_restriction_map`` compute the
two sides independently so the equivalence can be checked rather than assumed.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass

from .category import Morphism
from .config import get_settings
from .errors import AmalgamationError, EnumerationLimitExceeded
from .presheaf import Presheaf, Section
from .result import Err, Ok, Result
from .sieve import Sieve

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MatchingFamily:
    """Values indexed by the arrows of a sieve, in ``Sieve.ordered_arrows`` order."""

    arrows: tuple[Morphism, ...]
    values: tuple[Section, ...]

    @classmethod
    def from_mapping(cls, sieve: Sieve, values: Mapping[Morphism, Section]) -> MatchingFamily:
        arrows = sieve.ordered_arrows()
        return cls(arrows, tuple(values[f] for f in arrows))

    def __getitem__(self, f: Morphism) -> Section:
        return self.values[self.arrows.index(f)]

    def as_dict(self) -> dict[Morphism, Section]:
        return dict(zip(self.arrows, self.values, strict=True))


def is_matching(p: Presheaf, sieve: Sieve, values: Mapping[Morphism, Section]) -> bool:
    cat = sieve.category
    for f in sieve.arrows:
        if f not in values or values[f] not in p.sections[f.dom]:
            return False
        for g in cat.arrows_into(f.dom):
            if p.restrict(g, values[f]) != values[cat.compose(f, g)]:
                return False
    return True


def matching_families(p: Presheaf, sieve: Sieve, limit: int | None = None) -> tuple[MatchingFamily, ...]:
    """Every matching family for ``p`` on ``sieve``.

    Arrows are assigned in order; each new value is checked against every
    already-assigned arrow it is related to by precomposition.
    """
    budget = get_settings().max_enumeration if limit is None else limit
    cat = sieve.category
    arrows = sieve.ordered_arrows()
    found: list[MatchingFamily] = []
    visited = 0
    chosen: dict[Morphism, Section] = {}

    def compatible(f: Morphism) -> bool:
        x = chosen[f]
        for g in cat.arrows_into(f.dom):
            fg = cat.compose(f, g)
            if fg in chosen and p.restrict(g, x) != chosen[fg]:
                return False
        for k, y in chosen.items():
            for g in cat.hom(f.dom, k.dom):
                if cat.compose(k, g) == f and p.restrict(g, y) != x:
                    return False
        return True

    def extend(i: int) -> None:
        nonlocal visited
        visited += 1
        if visited > budget:
            raise EnumerationLimitExceeded(f"matching families on {sieve}", budget)
        if i == len(arrows):
            found.append(MatchingFamily(arrows, tuple(chosen[f] for f in arrows)))
            return
        f = arrows[i]
        for x in sorted(p.sections[f.dom], key=repr):
            chosen[f] = x
            if compatible(f):
                extend(i + 1)
            del chosen[f]

    extend(0)
    return tuple(found)


def restriction_map(p: Presheaf, sieve: Sieve) -> dict[Section, MatchingFamily]:
    """ρ_S : x ↦ (P(f)(x))_{f ∈ S}."""
    arrows = sieve.ordered_arrows()
    return {
        x: MatchingFamily(arrows, tuple(p.restrict(f, x) for f in arrows))
        for x in p.sections[sieve.target]
    }


def is_iso_restriction_map(p: Presheaf, sieve: Sieve, limit: int | None = None) -> bool:
    """ρ_S is injective and hits every matching family."""
    rho = restriction_map(p, sieve)
    image = set(rho.values())
    if len(image) != len(rho):
        return False
    return image == set(matching_families(p, sieve, limit))


def amalgamations(p: Presheaf, sieve: Sieve, family: MatchingFamily) -> tuple[Section, ...]:
    """Every x ∈ P(X) restricting to ``family``."""
    return tuple(x for x, fam in restriction_map(p, sieve).items() if fam == family)


def is_sheaf_for(p: Presheaf, sieve: Sieve, limit: int | None = None) -> bool:
    """Every matching family has exactly one amalgamation."""
    for family in matching_families(p, sieve, limit):
        if len(amalgamations(p, sieve, family)) != 1:
            return False
    return True


def amalgamate(p: Presheaf, sieve: Sieve, family: MatchingFamily) -> Result[Section, AmalgamationError]:
    found = amalgamations(p, sieve, family)
    if len(found) == 1:
        return Ok(found[0])
    return Err(AmalgamationError(f"{len(found)} amalgamations of a family on {sieve} for '{p}'"))


# ---------------------------------------------------------------------------
# Two-level gluing
# ---------------------------------------------------------------------------


def glue_through_refinement(
    p: Presheaf,
    outer: Sieve,
    inner: Sieve,
    family: MatchingFamily,
) -> Result[Section, AmalgamationError]:
    """Amalgamate a matching family for ``inner`` by way of ``outer``.

    For each f : Y → X in ``outer`` the family restricts to a matching
    family g ↦ x_{f ∘ g} on f*(inner), which is amalgamated to y_f ∈ P(Y).
    The y_f form a matching family for ``outer``, amalgamated to x ∈ P(X).
    Finally x is checked to restrict to x_h for every h in ``inner``.

    Succeeds when P is a sheaf for ``outer`` and all its pullbacks, and for
    f*(inner) for every f in ``outer``.
    """
    cat = outer.category
    if outer.target != inner.target:
        return Err(AmalgamationError(f"{outer} and {inner} live on different objects"))
    given = family.as_dict()

    lifted: dict[Morphism, Section] = {}
    for f in outer.ordered_arrows():
        local = inner.pullback(f)
        local_family = MatchingFamily.from_mapping(
            local, {g: given[cat.compose(f, g)] for g in local.arrows}
        )
        match amalgamate(p, local, local_family):
            case Ok(y):
                lifted[f] = y
            case Err(e):
                return Err(AmalgamationError(f"Cannot lift through '{f}': {e}"))

    if not is_matching(p, outer, lifted):
        return Err(AmalgamationError(f"Local amalgamations do not match on {outer}"))
    match amalgamate(p, outer, MatchingFamily.from_mapping(outer, lifted)):
        case Ok(x):
            pass
        case Err(e):
            return Err(AmalgamationError(f"Cannot glue local amalgamations: {e}"))

    for h in inner.ordered_arrows():
        if p.restrict(h, x) != given[h]:
            logger.warning("Glued section %r does not restrict to the given value along '%s'", x, h)
            return Err(AmalgamationError(f"Glued section does not restrict correctly along '{h}'"))
    return Ok(x)
