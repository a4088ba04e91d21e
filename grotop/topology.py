"""Grothendieck topologies on finite categories.

A Grothendieck topology J assigns to every object X a set J(X) of covering
sieves such that

  maximality          max(X) ∈ J(X)
  stability           S ∈ J(X), f : Y → X          ⇒  f*(S) ∈ J(Y)
  local character     S ∈ J(X), R a sieve on X,
                      f*(R) ∈ J(dom f) for all f ∈ S  ⇒  R ∈ J(X)

``verify_topology`` checks all three on an arbitrary set of (object, sieve)
pairs and reports the first counterexample for each.

References:
  - Mac Lane & Moerdijk (1992), Sheaves in Geometry and Logic, §III.2
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

from .category import FiniteCategory, Obj
from .errors import CategoryError
from .presheaf import Presheaf
from .result import Verdict, Verified, Violated, all_verified
from .sheaf import is_sheaf_for
from .sieve import Sieve, SievePair, all_sieves, sort_key

logger = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class GrothendieckTopology:
    category: FiniteCategory = field(repr=False)
    covering: Mapping[Obj, frozenset[Sieve]]
    name: str = "J"

    def __post_init__(self) -> None:
        stray = [x for x in self.covering if x not in self.category.objects]
        if stray:
            raise CategoryError(f"Topology '{self.name}' covers {stray!r}, which are not objects of '{self.category.name}'")
        object.__setattr__(
            self,
            "covering",
            MappingProxyType({x: frozenset(self.covering.get(x, ())) for x in self.category.objects}),
        )

    # -- construction ------------------------------------------------------

    @classmethod
    def from_pairs(cls, category: FiniteCategory, pairs: Iterable[SievePair], name: str = "J") -> GrothendieckTopology:
        covering = _by_object(category, pairs)
        return cls(category, {x: frozenset(s) for x, s in covering.items()}, name)

    @classmethod
    def trivial(cls, category: FiniteCategory) -> GrothendieckTopology:
        """Only maximal sieves cover; every presheaf is a sheaf."""
        return cls(category, {x: frozenset({Sieve.maximal(category, x)}) for x in category.objects}, "trivial")

    @classmethod
    def degenerate(cls, category: FiniteCategory) -> GrothendieckTopology:
        """Every sieve covers, the empty one included; only terminal presheaves are sheaves."""
        return cls(category, {x: frozenset(all_sieves(category, x)) for x in category.objects}, "degenerate")

    @classmethod
    def generated_by(cls, category: FiniteCategory, pairs: Iterable[SievePair], name: str = "J") -> GrothendieckTopology:
        """The least topology containing ``pairs``.

        Closes under the three axioms until nothing changes; each round adds
        maximal sieves, pullbacks, and sieves covered by local character.
        """
        current: set[SievePair] = set(pairs)
        current |= {SievePair(x, Sieve.maximal(category, x)) for x in category.objects}
        candidates = {x: all_sieves(category, x) for x in category.objects}
        rounds = 0
        while True:
            rounds += 1
            added: set[SievePair] = set()
            for pair in current:
                for _, pulled in pair.pullbacks():
                    if pulled not in current:
                        added.add(pulled)
            for pair in current:
                for r in candidates[pair.obj]:
                    candidate = SievePair(pair.obj, r)
                    if candidate in current or candidate in added:
                        continue
                    if all(SievePair(f.dom, r.pullback(f)) in current for f in pair.sieve.arrows):
                        added.add(candidate)
            if not added:
                break
            current |= added
        logger.debug("Generated topology '%s' in %d rounds (%d pairs)", name, rounds, len(current))
        return cls.from_pairs(category, current, name)

    # -- queries -----------------------------------------------------------

    def covers(self, sieve: Sieve) -> bool:
        return sieve in self.covering.get(sieve.target, ())

    def pairs(self) -> frozenset[SievePair]:
        return frozenset(SievePair(x, s) for x, sieves in self.covering.items() for s in sieves)

    def is_sheaf(self, p: Presheaf) -> bool:
        return all(is_sheaf_for(p, s) for sieves in self.covering.values() for s in sieves)

    def sheaves(self, universe: Iterable[Presheaf]) -> tuple[Presheaf, ...]:
        return tuple(p for p in universe if self.is_sheaf(p))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, GrothendieckTopology):
            return NotImplemented
        return self.category is other.category and self.covering == other.covering

    def __hash__(self) -> int:
        return hash((id(self.category), frozenset(self.covering.items())))

    def __str__(self) -> str:
        parts = []
        for x in self.category.objects:
            sieves = sorted((SievePair(x, s) for s in self.covering[x]), key=sort_key)
            parts.append(f"{x}: " + "; ".join(str(p.sieve) for p in sieves))
        return f"{self.name} = [" + " | ".join(parts) + "]"


# ---------------------------------------------------------------------------
# Axioms
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class AxiomReport:
    maximality: Verdict
    stability: Verdict
    local_character: Verdict

    @property
    def verdicts(self) -> tuple[Verdict, ...]:
        return (self.maximality, self.stability, self.local_character)

    @property
    def is_topology(self) -> bool:
        return all_verified(self.verdicts)


def _by_object(category: FiniteCategory, pairs: Iterable[SievePair]) -> dict[Obj, set[Sieve]]:
    covering: dict[Obj, set[Sieve]] = {x: set() for x in category.objects}
    for pair in pairs:
        if pair.obj not in covering:
            raise CategoryError(f"{pair.sieve} is on {pair.obj!r}, which is not an object of '{category.name}'")
        covering[pair.obj].add(pair.sieve)
    return covering


def check_maximality(category: FiniteCategory, pairs: Iterable[SievePair]) -> Verdict:
    covering = _by_object(category, pairs)
    for x in category.objects:
        if Sieve.maximal(category, x) not in covering[x]:
            return Violated("maximality", f"the maximal sieve on {x!r} does not cover", x)
    return Verified("maximality")


def check_stability(category: FiniteCategory, pairs: Iterable[SievePair]) -> Verdict:
    pairs = sorted(set(pairs), key=sort_key)
    covering = _by_object(category, pairs)
    for pair in pairs:
        for f, pulled in pair.pullbacks():
            if pulled.sieve not in covering[pulled.obj]:
                return Violated(
                    "stability",
                    f"{pair} covers but its pullback along '{f}' does not",
                    (pair, f),
                )
    return Verified("stability")


def check_local_character(category: FiniteCategory, pairs: Iterable[SievePair]) -> Verdict:
    pairs = sorted(set(pairs), key=sort_key)
    covering = _by_object(category, pairs)
    for pair in pairs:
        for r in all_sieves(category, pair.obj):
            if r in covering[pair.obj]:
                continue
            if all(r.pullback(f) in covering[f.dom] for f in pair.sieve.arrows):
                return Violated(
                    "local_character",
                    f"{r} is locally covered along {pair} but does not cover",
                    (pair, r),
                )
    return Verified("local_character")


def verify_topology(category: FiniteCategory, pairs: Iterable[SievePair]) -> AxiomReport:
    pairs = frozenset(pairs)
    report = AxiomReport(
        maximality=check_maximality(category, pairs),
        stability=check_stability(category, pairs),
        local_character=check_local_character(category, pairs),
    )
    for v in report.verdicts:
        if isinstance(v, Violated):
            logger.warning("Covering axiom '%s' fails: %s", v.obligation, v.reason)
    return report
