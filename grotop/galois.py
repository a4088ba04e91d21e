"""Galois connections induced by a binary relation.

A relation R ⊆ A × B induces two antitone maps between the subset lattices:

    left_dual(J)  = { b ∈ B | ∀ a ∈ J, R(a, b) }     J ⊆ A
    right_dual(I) = { a ∈ A | ∀ b ∈ I, R(a, b) }     I ⊆ B

They satisfy  I ⊆ left_dual(J)  ⇔  J ⊆ right_dual(I),  so the composites

    left_closure  = right_dual ∘ left_dual     (on subsets of A)
    right_closure = left_dual ∘ right_dual     (on subsets of B)

are closure operators (monotone, inflationary, idempotent).  The dual maps
restrict to mutually inverse, order-reversing bijections between the fixed
points of the two closures.

Nothing here knows about categories.  Domains are finite tuples and the
relation is an arbitrary predicate, evaluated lazily and memoized.

References:
  - Birkhoff (1940), Lattice Theory, §V.7 "polarities"
  - Ganter & Wille (1999), Formal Concept Analysis, Ch. 1
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from typing import Generic, TypeVar

from .config import get_settings
from .errors import EnumerationLimitExceeded, NotAFixedPoint, RelationError
from .result import Verdict, Verified, Violated

logger = logging.getLogger(__name__)

A = TypeVar("A")
B = TypeVar("B")


# ---------------------------------------------------------------------------
# The relation and its dual maps
# ---------------------------------------------------------------------------


@dataclass(frozen=True, eq=False)
class Relation(Generic[A, B]):
    """A relation between two finite domains.

    ``holds`` is only ever called on (a, b) with a ∈ left and b ∈ right, and
    each pair is evaluated at most once.
    """

    left: tuple[A, ...]
    right: tuple[B, ...]
    holds: Callable[[A, B], bool]
    name: str = "R"
    _memo: dict[tuple[A, B], bool] = field(default_factory=dict, init=False, repr=False)
    _left_set: frozenset[A] = field(init=False, repr=False)
    _right_set: frozenset[B] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        try:
            left_set = frozenset(self.left)
            right_set = frozenset(self.right)
        except TypeError as e:
            raise RelationError(f"Relation '{self.name}' has unhashable elements: {e}") from e
        if len(left_set) != len(self.left):
            raise RelationError(f"Relation '{self.name}' has duplicate elements on the left")
        if len(right_set) != len(self.right):
            raise RelationError(f"Relation '{self.name}' has duplicate elements on the right")
        object.__setattr__(self, "_left_set", left_set)
        object.__setattr__(self, "_right_set", right_set)

    @classmethod
    def from_pairs(
        cls,
        left: Iterable[A],
        right: Iterable[B],
        pairs: Iterable[tuple[A, B]],
        name: str = "R",
    ) -> Relation[A, B]:
        """Build a relation from an explicit set of related pairs."""
        table = frozenset(pairs)
        return cls(tuple(left), tuple(right), lambda a, b: (a, b) in table, name)

    # -- membership --------------------------------------------------------

    def related(self, a: A, b: B) -> bool:
        key = (a, b)
        cached = self._memo.get(key)
        if cached is None:
            cached = bool(self.holds(a, b))
            self._memo[key] = cached
        return cached

    def left_subset(self, subset: Iterable[A]) -> frozenset[A]:
        """Coerce to a frozenset, rejecting elements outside the left domain."""
        s = frozenset(subset)
        stray = s - self._left_set
        if stray:
            raise RelationError(
                f"{len(stray)} element(s) are not in the left domain of '{self.name}'"
            )
        return s

    def right_subset(self, subset: Iterable[B]) -> frozenset[B]:
        """Coerce to a frozenset, rejecting elements outside the right domain."""
        s = frozenset(subset)
        stray = s - self._right_set
        if stray:
            raise RelationError(
                f"{len(stray)} element(s) are not in the right domain of '{self.name}'"
            )
        return s

    # -- dual maps ---------------------------------------------------------

    def left_dual(self, subset: Iterable[A]) -> frozenset[B]:
        """Everything on the right related to every element of ``subset``."""
        j = self.left_subset(subset)
        return frozenset(b for b in self.right if all(self.related(a, b) for a in j))

    def right_dual(self, subset: Iterable[B]) -> frozenset[A]:
        """Everything on the left related to every element of ``subset``."""
        i = self.right_subset(subset)
        return frozenset(a for a in self.left if all(self.related(a, b) for b in i))

    def left_closure(self, subset: Iterable[A]) -> frozenset[A]:
        return self.right_dual(self.left_dual(subset))

    def right_closure(self, subset: Iterable[B]) -> frozenset[B]:
        return self.left_dual(self.right_dual(subset))

    def row(self, a: A) -> frozenset[B]:
        return self.left_dual((a,))

    def column(self, b: B) -> frozenset[A]:
        return self.right_dual((b,))

    def is_galois_connection(self, left_subset: Iterable[A], right_subset: Iterable[B]) -> bool:
        """I ⊆ left_dual(J)  ⇔  J ⊆ right_dual(I)."""
        j = self.left_subset(left_subset)
        i = self.right_subset(right_subset)
        return (i <= self.left_dual(j)) == (j <= self.right_dual(i))

    # -- fixed points ------------------------------------------------------

    def is_left_fixed_point(self, subset: Iterable[A]) -> bool:
        j = self.left_subset(subset)
        return self.left_closure(j) == j

    def is_right_fixed_point(self, subset: Iterable[B]) -> bool:
        i = self.right_subset(subset)
        return self.right_closure(i) == i

    def left_fixed_points(self, limit: int | None = None) -> frozenset[frozenset[A]]:
        """All left fixed points.

        Each is right_dual(I) for some I, i.e. an intersection of columns, so
        they are generated by closing {A} under intersection with each column.
        """
        return _intersection_closure(
            self._left_set, (self.column(b) for b in self.right), f"left fixed points of '{self.name}'", limit
        )

    def right_fixed_points(self, limit: int | None = None) -> frozenset[frozenset[B]]:
        """All right fixed points; intersections of rows."""
        return _intersection_closure(
            self._right_set, (self.row(a) for a in self.left), f"right fixed points of '{self.name}'", limit
        )


def _intersection_closure(
    top: frozenset, generators: Iterable[frozenset], what: str, limit: int | None
) -> frozenset[frozenset]:
    budget = get_settings().max_enumeration if limit is None else limit
    closed: set[frozenset] = {top}
    for g in generators:
        closed |= {c & g for c in closed}
        if len(closed) > budget:
            raise EnumerationLimitExceeded(what, budget)
    logger.debug("Found %d %s", len(closed), what)
    return frozenset(closed)


# ---------------------------------------------------------------------------
# Fixed-point equivalence
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class GaloisEquivalence(Generic[A, B]):
    """The inverse bijection between left and right fixed points.

    ``to_right`` is left_dual restricted to left fixed points and ``to_left``
    is right_dual restricted to right fixed points.  Both are order-reversing.
    """

    relation: Relation[A, B]

    def to_right(self, subset: Iterable[A]) -> frozenset[B]:
        j = self.relation.left_subset(subset)
        if not self.relation.is_left_fixed_point(j):
            raise NotAFixedPoint(f"Subset of size {len(j)} is not a left fixed point of '{self.relation.name}'")
        return self.relation.left_dual(j)

    def to_left(self, subset: Iterable[B]) -> frozenset[A]:
        i = self.relation.right_subset(subset)
        if not self.relation.is_right_fixed_point(i):
            raise NotAFixedPoint(f"Subset of size {len(i)} is not a right fixed point of '{self.relation.name}'")
        return self.relation.right_dual(i)

    def pairs(self, limit: int | None = None) -> frozenset[tuple[frozenset[A], frozenset[B]]]:
        """Every (left fixed point, right fixed point) pair matched by the bijection."""
        return frozenset((j, self.relation.left_dual(j)) for j in self.relation.left_fixed_points(limit))


# ---------------------------------------------------------------------------
# Lemmas, checked on given subsets
# ---------------------------------------------------------------------------


def check_antitone(rel: Relation[A, B], smaller: Iterable[A], larger: Iterable[A]) -> Verdict:
    """J ⊆ J'  ⇒  left_dual(J') ⊆ left_dual(J)."""
    name = "left_dual_antitone"
    j, j2 = rel.left_subset(smaller), rel.left_subset(larger)
    if not j <= j2:
        return Verified(name)  # vacuous
    extra = rel.left_dual(j2) - rel.left_dual(j)
    if extra:
        return Violated(name, "left_dual of the larger subset is not contained in that of the smaller", extra)
    return Verified(name)


def check_right_antitone(rel: Relation[A, B], smaller: Iterable[B], larger: Iterable[B]) -> Verdict:
    """I ⊆ I'  ⇒  right_dual(I') ⊆ right_dual(I)."""
    name = "right_dual_antitone"
    i, i2 = rel.right_subset(smaller), rel.right_subset(larger)
    if not i <= i2:
        return Verified(name)
    extra = rel.right_dual(i2) - rel.right_dual(i)
    if extra:
        return Violated(name, "right_dual of the larger subset is not contained in that of the smaller", extra)
    return Verified(name)


def check_left_closure_laws(rel: Relation[A, B], subset: Iterable[A]) -> list[Verdict]:
    """Inflationary, idempotent, and left_dual(J) is a right fixed point."""
    j = rel.left_subset(subset)
    closed = rel.left_closure(j)
    verdicts: list[Verdict] = []

    missing = j - closed
    verdicts.append(
        Violated("left_closure_inflationary", "closure lost elements", missing)
        if missing
        else Verified("left_closure_inflationary")
    )
    verdicts.append(
        Verified("left_closure_idempotent")
        if rel.left_closure(closed) == closed
        else Violated("left_closure_idempotent", "closing twice changed the result", closed)
    )
    image = rel.left_dual(j)
    verdicts.append(
        Verified("left_dual_is_right_fixed_point")
        if rel.is_right_fixed_point(image)
        else Violated("left_dual_is_right_fixed_point", "left_dual(J) is not right-closed", image)
    )
    return verdicts


def check_right_closure_laws(rel: Relation[A, B], subset: Iterable[B]) -> list[Verdict]:
    i = rel.right_subset(subset)
    closed = rel.right_closure(i)
    verdicts: list[Verdict] = []

    missing = i - closed
    verdicts.append(
        Violated("right_closure_inflationary", "closure lost elements", missing)
        if missing
        else Verified("right_closure_inflationary")
    )
    verdicts.append(
        Verified("right_closure_idempotent")
        if rel.right_closure(closed) == closed
        else Violated("right_closure_idempotent", "closing twice changed the result", closed)
    )
    image = rel.right_dual(i)
    verdicts.append(
        Verified("right_dual_is_left_fixed_point")
        if rel.is_left_fixed_point(image)
        else Violated("right_dual_is_left_fixed_point", "right_dual(I) is not left-closed", image)
    )
    return verdicts


def check_closure_below_fixed_point(
    rel: Relation[A, B], subset: Iterable[A], fixed: Iterable[A]
) -> Verdict:
    """J ⊆ J' with J' a left fixed point  ⇒  left_closure(J) ⊆ J'."""
    name = "left_closure_below_fixed_point"
    j, j2 = rel.left_subset(subset), rel.left_subset(fixed)
    if not rel.is_left_fixed_point(j2):
        raise NotAFixedPoint(f"Upper bound is not a left fixed point of '{rel.name}'")
    if not j <= j2:
        return Verified(name)
    escaped = rel.left_closure(j) - j2
    if escaped:
        return Violated(name, "closure escapes the enclosing fixed point", escaped)
    return Verified(name)


def check_right_closure_below_fixed_point(
    rel: Relation[A, B], subset: Iterable[B], fixed: Iterable[B]
) -> Verdict:
    name = "right_closure_below_fixed_point"
    i, i2 = rel.right_subset(subset), rel.right_subset(fixed)
    if not rel.is_right_fixed_point(i2):
        raise NotAFixedPoint(f"Upper bound is not a right fixed point of '{rel.name}'")
    if not i <= i2:
        return Verified(name)
    escaped = rel.right_closure(i) - i2
    if escaped:
        return Violated(name, "closure escapes the enclosing fixed point", escaped)
    return Verified(name)


def check_inverse_on_fixed_points(eqv: GaloisEquivalence[A, B], limit: int | None = None) -> Verdict:
    """to_left ∘ to_right = id on left fixed points, and the other way round."""
    name = "fixed_point_bijection"
    rel = eqv.relation
    for j in rel.left_fixed_points(limit):
        if eqv.to_left(eqv.to_right(j)) != j:
            return Violated(name, "to_left(to_right(J)) != J", j)
    for i in rel.right_fixed_points(limit):
        if eqv.to_right(eqv.to_left(i)) != i:
            return Violated(name, "to_right(to_left(I)) != I", i)
    return Verified(name)
