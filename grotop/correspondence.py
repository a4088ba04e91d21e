"""Grothendieck topologies  ≃  left fixed points  ≃  right fixed points  ≃  subtopoi.

Over a finite category C and a finite presheaf universe U, the
sieve-restriction relation R ⊆ Pairs(C) × U induces a Galois connection.

  forward   every topology J gives a left fixed point:
            right_dual(left_dual(pairs(J))) = pairs(J),
            i.e. J is exactly the set of sieves all of whose pullbacks every
            J-sheaf in U is a sheaf for.
  reverse   every left fixed point satisfies the three covering axioms.
  dual      right fixed points are the sheaf families Sh_J(C) ∩ U; they are
            the sub-universe selectors the topologies correspond to.

The reverse direction holds for every universe.  The forward direction is a
statement about all presheaves; over a finite U it holds exactly when U
contains enough J-sheaves to separate J from every larger set of sieves.  A
failure is reported with the offending pair rather than hidden.

Three parts of the full equivalence are not established here and are kept
as open obligations on the correspondence value; see ``OPEN_OBLIGATIONS``.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass

from .category import FiniteCategory
from .errors import GrotopError, NotAFixedPoint, RelationError
from .galois import GaloisEquivalence, Relation, check_inverse_on_fixed_points
from .presheaf import Presheaf
from .restriction import local_character_lemma, maximal_sieve_lemma, pullback_stability_lemma, sieve_restriction_relation
from .result import Err, Ok, Result, Undecided, Verdict, Verified, Violated
from .sieve import SievePair, all_sieves, sort_key
from .topology import GrothendieckTopology, verify_topology

logger = logging.getLogger(__name__)


OPEN_OBLIGATIONS: tuple[Undecided, ...] = (
    Undecided(
        "selector_coercion_injective",
        "two selectors with the same selected presheaves are not shown to carry the same reflective data",
    ),
    Undecided(
        "gluing_naturality",
        "naturality of the two-level gluing is checked per family on finite data, not established in general",
    ),
    Undecided(
        "reflector_data",
        "the left-exact reflector (sheafification) of a right fixed point is not constructed",
    ),
)


# ---------------------------------------------------------------------------
# Sub-universe selectors
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class SubUniverseSelector:
    """A predicate on the presheaf universe: the presheaves it selects."""

    universe: tuple[Presheaf, ...]
    selected: frozenset[Presheaf]
    name: str = "E"

    def __post_init__(self) -> None:
        stray = self.selected - frozenset(self.universe)
        if stray:
            raise GrotopError(f"Selector '{self.name}' selects {len(stray)} presheaf(s) outside its universe")

    def selects(self, p: Presheaf) -> bool:
        return p in self.selected

    def __str__(self) -> str:
        inner = ", ".join(sorted(str(p) for p in self.selected))
        return f"{self.name} = {{{inner}}}"


# ---------------------------------------------------------------------------
# Forward and reverse directions
# ---------------------------------------------------------------------------


def topology_is_fixed_point(topology: GrothendieckTopology, relation: Relation[SievePair, Presheaf]) -> Verdict:
    """The pairs of a topology form a left fixed point of the relation."""
    name = "topology_is_left_fixed_point"
    pairs = relation.left_subset(topology.pairs())
    closure = relation.left_closure(pairs)
    extra = sorted(closure - pairs, key=sort_key)
    if extra:
        logger.warning(
            "'%s' is not closed over %d presheaves: %d pair(s) added, first %s",
            topology.name, len(relation.right), len(extra), extra[0],
        )
        return Violated(
            name,
            f"every {topology.name}-sheaf in the universe is also a sheaf for {extra[0]}, which does not cover",
            extra[0],
        )
    return Verified(name)


def check_reverse_lemmas(
    category: FiniteCategory,
    pairs: Iterable[SievePair],
    relation: Relation[SievePair, Presheaf],
) -> list[Verdict]:
    """Derive each covering axiom of a left fixed point from the relation lemmas.

    For every presheaf in left_dual(pairs):
      - the maximal sieve lemma at every object,
      - the stability lemma at every pair and arrow,
      - the local character lemma at every pair and every sieve R that is
        locally in ``pairs``.
    """
    pair_set = relation.left_subset(pairs)
    sheaves = sorted(relation.left_dual(pair_set), key=str)
    verdicts: list[Verdict] = []
    for p in sheaves:
        for x in category.objects:
            verdicts.append(maximal_sieve_lemma(category, x, p))
        for pair in sorted(pair_set, key=sort_key):
            for f, _ in pair.pullbacks():
                verdicts.append(pullback_stability_lemma(pair, f, p))
            for r in all_sieves(category, pair.obj):
                if all(SievePair(f.dom, r.pullback(f)) in pair_set for f in pair.sieve.arrows):
                    verdicts.append(local_character_lemma(pair, r, p))
    return verdicts


def topology_from_fixed_point(
    category: FiniteCategory,
    pairs: Iterable[SievePair],
    relation: Relation[SievePair, Presheaf],
    name: str = "J",
) -> Result[GrothendieckTopology, GrotopError]:
    """Turn a left fixed point into a topology on ``category``, checking all three axioms."""
    try:
        pair_set = relation.left_subset(pairs)
    except RelationError as e:
        return Err(e)
    if not relation.is_left_fixed_point(pair_set):
        return Err(NotAFixedPoint(f"{len(pair_set)} pairs do not form a left fixed point of '{relation.name}'"))
    report = verify_topology(category, pair_set)
    if not report.is_topology:
        failed = [v for v in report.verdicts if isinstance(v, Violated)]
        return Err(GrotopError(f"Left fixed point violates {[v.obligation for v in failed]}"))
    return Ok(GrothendieckTopology.from_pairs(category, pair_set, name))


def selector_from_fixed_point(
    presheaves: Iterable[Presheaf],
    relation: Relation[SievePair, Presheaf],
    name: str = "E",
) -> Result[SubUniverseSelector, GrotopError]:
    try:
        selected = relation.right_subset(presheaves)
    except RelationError as e:
        return Err(e)
    if not relation.is_right_fixed_point(selected):
        return Err(NotAFixedPoint(f"{len(selected)} presheaves do not form a right fixed point of '{relation.name}'"))
    return Ok(SubUniverseSelector(relation.right, selected, name))


def canonical_topology(category: FiniteCategory, universe: Iterable[Presheaf]) -> GrothendieckTopology:
    """The largest topology for which every presheaf of ``universe`` is a sheaf.

    right_dual(universe) is always a left fixed point, so the axioms hold
    whatever the universe.
    """
    rel = sieve_restriction_relation(category, universe)
    match topology_from_fixed_point(category, rel.right_dual(rel.right), rel, "canonical"):
        case Ok(top):
            return top
        case Err(e):
            raise e


def _pairs_key(pairs: frozenset[SievePair]) -> tuple:
    return (len(pairs), sorted(sort_key(p) for p in pairs))


def _presheaves_key(presheaves: frozenset[Presheaf]) -> tuple:
    return (len(presheaves), sorted(str(p) for p in presheaves))


# ---------------------------------------------------------------------------
# The equivalence
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class TopologySubtoposCorrespondence:
    """Topologies on a finite category ≃ selectors on a presheaf universe."""

    category: FiniteCategory
    relation: Relation[SievePair, Presheaf]

    @property
    def equivalence(self) -> GaloisEquivalence[SievePair, Presheaf]:
        return GaloisEquivalence(self.relation)

    def to_selector(self, topology: GrothendieckTopology) -> Result[SubUniverseSelector, GrotopError]:
        """J ↦ the J-sheaves of the universe."""
        if topology.category is not self.category:
            return Err(RelationError(f"'{topology.name}' lives on '{topology.category.name}', not '{self.category.name}'"))
        try:
            sheaves = self.equivalence.to_right(topology.pairs())
        except GrotopError as e:
            return Err(e)
        return Ok(SubUniverseSelector(self.relation.right, sheaves, f"Sh({topology.name})"))

    def to_topology(self, selector: SubUniverseSelector) -> Result[GrothendieckTopology, GrotopError]:
        """E ↦ the sieves every selected presheaf is a sheaf for, on all pullbacks."""
        try:
            pairs = self.equivalence.to_left(selector.selected)
        except GrotopError as e:
            return Err(e)
        return topology_from_fixed_point(self.category, pairs, self.relation, f"J({selector.name})")

    def topologies(self, limit: int | None = None) -> tuple[GrothendieckTopology, ...]:
        """Every topology that is a left fixed point, fewest covering sieves first."""
        result: list[GrothendieckTopology] = []
        fixed = sorted(self.relation.left_fixed_points(limit), key=_pairs_key)
        for i, pairs in enumerate(fixed):
            match topology_from_fixed_point(self.category, pairs, self.relation, f"J{i}"):
                case Ok(top):
                    result.append(top)
                case Err(e):
                    raise e
        return tuple(result)

    def selectors(self, limit: int | None = None) -> tuple[SubUniverseSelector, ...]:
        fixed = sorted(self.relation.right_fixed_points(limit), key=_presheaves_key)
        return tuple(SubUniverseSelector(self.relation.right, s, f"E{i}") for i, s in enumerate(fixed))

    def open_obligations(self) -> tuple[Undecided, ...]:
        return OPEN_OBLIGATIONS

    def verify(self, limit: int | None = None) -> list[Verdict]:
        """Check the bijection and that every left fixed point is a topology."""
        verdicts: list[Verdict] = [check_inverse_on_fixed_points(self.equivalence, limit)]
        for pairs in sorted(self.relation.left_fixed_points(limit), key=_pairs_key):
            report = verify_topology(self.category, pairs)
            verdicts.extend(report.verdicts)
        verdicts.extend(self.open_obligations())
        return verdicts


def correspondence(category: FiniteCategory, universe: Iterable[Presheaf]) -> TopologySubtoposCorrespondence:
    """Build the correspondence for ``category`` over ``universe``."""
    return TopologySubtoposCorrespondence(category, sieve_restriction_relation(category, universe))
