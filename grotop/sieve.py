"""Sieves on objects of a finite category.

A sieve S on X is a set of arrows into X closed under precomposition:
    f ∈ S, g : Z → dom(f)   ⇒   f ∘ g ∈ S

Sieves on X form a complete lattice under inclusion (union and intersection
of sieves are sieves).  Pullback along f : Y → X,

    f*(S) = { g : Z → Y | f ∘ g ∈ S },

produces a new sieve on Y and satisfies (f ∘ g)*(S) = g*(f*(S)).

``SievePair`` tags a sieve with the object it lives on; it is the element
type of the left domain of the sieve-restriction relation.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field

from .category import FiniteCategory, Morphism, Obj
from .config import get_settings
from .errors import EnumerationLimitExceeded, SieveError

logger = logging.getLogger(__name__)


def _require_object(category: FiniteCategory, target: Obj) -> None:
    if target not in category.objects:
        raise SieveError(f"{target!r} is not an object of '{category.name}'")


@dataclass(frozen=True)
class Sieve:
    category: FiniteCategory = field(compare=False, repr=False)
    target: Obj
    arrows: frozenset[Morphism]

    def __post_init__(self) -> None:
        object.__setattr__(self, "arrows", frozenset(self.arrows))
        _require_object(self.category, self.target)
        into = set(self.category.arrows_into(self.target))
        for f in self.arrows:
            if f not in into:
                raise SieveError(f"'{f}' is not an arrow into {self.target!r}")
        for f in self.arrows:
            for g in self.category.arrows_into(f.dom):
                if self.category.compose(f, g) not in self.arrows:
                    raise SieveError(
                        f"Arrows into {self.target!r} are not closed under precomposition: "
                        f"'{f}' ∘ '{g}' is missing"
                    )

    # -- construction ------------------------------------------------------

    @classmethod
    def maximal(cls, category: FiniteCategory, target: Obj) -> Sieve:
        """The sieve of all arrows into ``target``."""
        _require_object(category, target)
        return cls(category, target, frozenset(category.arrows_into(target)))

    @classmethod
    def empty(cls, category: FiniteCategory, target: Obj) -> Sieve:
        return cls(category, target, frozenset())

    @classmethod
    def generated_by(cls, category: FiniteCategory, target: Obj, arrows: Iterable[Morphism]) -> Sieve:
        """The least sieve containing ``arrows``: every f ∘ g."""
        _require_object(category, target)
        gens = tuple(arrows)
        closed = {category.compose(f, g) for f in gens for g in category.arrows_into(f.dom)}
        return cls(category, target, frozenset(closed))

    @classmethod
    def principal(cls, category: FiniteCategory, f: Morphism) -> Sieve:
        return cls.generated_by(category, f.cod, (f,))

    # -- operations --------------------------------------------------------

    def pullback(self, f: Morphism) -> Sieve:
        """f*(S) for f : Y → target."""
        if f.cod != self.target:
            raise SieveError(f"Cannot pull back a sieve on {self.target!r} along '{f}' : {f.dom!r} → {f.cod!r}")
        cat = self.category
        return Sieve(
            cat,
            f.dom,
            frozenset(g for g in cat.arrows_into(f.dom) if cat.compose(f, g) in self.arrows),
        )

    def meet(self, other: Sieve) -> Sieve:
        self._same_target(other)
        return Sieve(self.category, self.target, self.arrows & other.arrows)

    def join(self, other: Sieve) -> Sieve:
        self._same_target(other)
        return Sieve(self.category, self.target, self.arrows | other.arrows)

    def _same_target(self, other: Sieve) -> None:
        if other.target != self.target:
            raise SieveError(f"Sieves on {self.target!r} and {other.target!r} cannot be combined")

    def issubset(self, other: Sieve) -> bool:
        return self.target == other.target and self.arrows <= other.arrows

    @property
    def is_maximal(self) -> bool:
        return self.category.identity(self.target) in self.arrows

    def ordered_arrows(self) -> tuple[Morphism, ...]:
        return tuple(sorted(self.arrows))

    def __contains__(self, f: object) -> bool:
        return f in self.arrows

    def __iter__(self) -> Iterator[Morphism]:
        return iter(self.ordered_arrows())

    def __len__(self) -> int:
        return len(self.arrows)

    def __str__(self) -> str:
        if self.is_maximal:
            return f"max({self.target})"
        inner = ", ".join(f.name for f in self.ordered_arrows())
        return f"{{{inner}}} on {self.target}"


@dataclass(frozen=True)
class SievePair:
    """A sieve together with the object that owns it."""

    obj: Obj
    sieve: Sieve

    def __post_init__(self) -> None:
        if self.sieve.target != self.obj:
            raise SieveError(f"Sieve on {self.sieve.target!r} cannot be paired with {self.obj!r}")

    def pullback(self, f: Morphism) -> SievePair:
        return SievePair(f.dom, self.sieve.pullback(f))

    def pullbacks(self) -> Iterator[tuple[Morphism, SievePair]]:
        """(f, f*(S)) for every arrow f into the owning object."""
        for f in self.sieve.category.arrows_into(self.obj):
            yield f, self.pullback(f)

    def __str__(self) -> str:
        return f"({self.obj}, {self.sieve})"


def sort_key(pair: SievePair) -> tuple[str, int, tuple[str, ...]]:
    return (str(pair.obj), len(pair.sieve), tuple(f.name for f in pair.sieve.ordered_arrows()))


# ---------------------------------------------------------------------------
# Enumeration
# ---------------------------------------------------------------------------


def all_sieves(category: FiniteCategory, target: Obj, limit: int | None = None) -> tuple[Sieve, ...]:
    """Every sieve on ``target``.

    Each sieve is the union of the principal sieves of its arrows, so the
    family is generated by closing {∅} under union with each principal sieve.
    """
    budget = get_settings().max_enumeration if limit is None else limit
    closed: set[frozenset[Morphism]] = {frozenset()}
    for f in category.arrows_into(target):
        down = Sieve.principal(category, f).arrows
        closed |= {s | down for s in closed}
        if len(closed) > budget:
            raise EnumerationLimitExceeded(f"sieves on {target!r}", budget)
    sieves = [Sieve(category, target, arrows) for arrows in closed]
    sieves.sort(key=lambda s: (len(s), tuple(f.name for f in s.ordered_arrows())))
    return tuple(sieves)


def all_pairs(category: FiniteCategory, limit: int | None = None) -> tuple[SievePair, ...]:
    """Every (object, sieve) pair of the category."""
    pairs = tuple(SievePair(x, s) for x in category.objects for s in all_sieves(category, x, limit))
    logger.debug("'%s' has %d (object, sieve) pairs", category.name, len(pairs))
    return pairs
