"""Small finite sites: a category, a presheaf universe, and a chosen topology.

Each factory returns a fresh ``Site``.  The universes are chosen so that the
site's topology is a left fixed point of the sieve-restriction relation:
they contain enough sheaves to tell every non-covering sieve apart.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from .category import FiniteCategory, category_from_table, poset_category
from .presheaf import Presheaf, constant_presheaf, enumerate_presheaves, make_presheaf
from .result import Err, Ok
from .sieve import Sieve, SievePair, all_sieves
from .topology import GrothendieckTopology


@dataclass(frozen=True)
class Site:
    name: str
    description: str
    category: FiniteCategory
    universe: tuple[Presheaf, ...]
    topology: GrothendieckTopology


# ---------------------------------------------------------------------------
# Opens of the discrete space {a, b}
# ---------------------------------------------------------------------------

_OPENS: dict[str, frozenset[str]] = {
    "∅": frozenset(),
    "a": frozenset({"a"}),
    "b": frozenset({"b"}),
    "ab": frozenset({"a", "b"}),
}


def opens_of_discrete_pair() -> FiniteCategory:
    return poset_category("O({a,b})", tuple(_OPENS), lambda u, v: _OPENS[u] <= _OPENS[v])


def open_cover_topology(category: FiniteCategory) -> GrothendieckTopology:
    """S covers U iff the opens in S have union U."""
    covering = {}
    for u in category.objects:
        covering[u] = frozenset(
            s for s in all_sieves(category, u)
            if frozenset().union(*(_OPENS[f.dom] for f in s.arrows)) == _OPENS[u]
        )
    return GrothendieckTopology(category, covering, "open-cover")


def point_sheaf(category: FiniteCategory, point: str) -> Presheaf:
    """Functions into {0, 1} at ``point``, and a single section elsewhere.

    P(U) = {0, 1} if point ∈ U else {0}; restricting away from the point
    forgets the value.
    """
    sections = {u: ({0, 1} if point in _OPENS[u] else {0}) for u in category.objects}
    restrictions = {}
    for m in category.non_identity_morphisms:
        if point in _OPENS[m.dom]:
            restrictions[m.name] = {0: 0, 1: 1}
        else:
            restrictions[m.name] = {x: 0 for x in sections[m.cod]}
    return make_presheaf(category, sections, restrictions, name=f"δ_{point}")


def functions_sheaf(category: FiniteCategory) -> Presheaf:
    """P(U) = maps U → {0, 1}, restriction by restricting the map."""
    def maps(u: str) -> set[tuple[tuple[str, int], ...]]:
        pts = sorted(_OPENS[u])
        result = {()}
        for pt in pts:
            result = {m + ((pt, v),) for m in result for v in (0, 1)}
        return result

    sections = {u: maps(u) for u in category.objects}
    restrictions = {
        m.name: {s: tuple(kv for kv in s if kv[0] in _OPENS[m.dom]) for s in sections[m.cod]}
        for m in category.non_identity_morphisms
    }
    return make_presheaf(category, sections, restrictions, name="2^U")


def discrete_pair_site() -> Site:
    cat = opens_of_discrete_pair()
    universe = (
        point_sheaf(cat, "a"),
        point_sheaf(cat, "b"),
        functions_sheaf(cat),
        constant_presheaf(cat, (0, 1), name="Δ2"),
    )
    return Site(
        "discrete-pair",
        "Opens of the two-point discrete space with the open-cover topology",
        cat,
        universe,
        open_cover_topology(cat),
    )


# ---------------------------------------------------------------------------
# The chain 0 ≤ 1 ≤ 2
# ---------------------------------------------------------------------------


def chain_category(length: int = 3) -> FiniteCategory:
    return poset_category(f"[{length - 1}]", range(length), lambda a, b: a <= b)


def kink_presheaf(category: FiniteCategory) -> Presheaf:
    """P(0) = P(2) = {0}, P(1) = {0, 1}.

    A sheaf for ↓0 on 2, but not for its pullback ↓0 on 1.
    """
    return make_presheaf(
        category,
        {0: {0}, 1: {0, 1}, 2: {0}},
        {"0≤1": {0: 0, 1: 0}, "1≤2": {0: 0}, "0≤2": {0: 0}},
        name="kink",
    )


def chain_site() -> Site:
    cat = chain_category(3)
    arrows = {m.name: m for m in cat.morphisms}
    generators = (
        SievePair(1, Sieve.principal(cat, arrows["0≤1"])),
        SievePair(2, Sieve.principal(cat, arrows["1≤2"])),
    )
    topology = GrothendieckTopology.generated_by(cat, generators, name="nonempty")
    return Site(
        "chain",
        "The chain 0 ≤ 1 ≤ 2; ↓0 covers 1 and ↓1 covers 2, so ↓0 covers 2 by local character",
        cat,
        (constant_presheaf(cat, (0, 1), name="Δ2"), kink_presheaf(cat)),
        topology,
    )


# ---------------------------------------------------------------------------
# Small non-poset categories, with every presheaf of size ≤ 2
# ---------------------------------------------------------------------------


def walking_arrow() -> FiniteCategory:
    match category_from_table("→", ("0", "1"), [("u", "0", "1")], {}):
        case Ok(cat):
            return cat
        case Err(e):
            raise e


def idempotent_monoid() -> FiniteCategory:
    match category_from_table("{1, e}", ("*",), [("e", "*", "*")], {("e", "e"): "e"}):
        case Ok(cat):
            return cat
        case Err(e):
            raise e


def walking_arrow_site() -> Site:
    cat = walking_arrow()
    return Site(
        "walking-arrow",
        "0 → 1 with every presheaf of size ≤ 2 and the trivial topology",
        cat,
        enumerate_presheaves(cat, max_size=2),
        GrothendieckTopology.trivial(cat),
    )


def idempotent_site() -> Site:
    cat = idempotent_monoid()
    return Site(
        "idempotent",
        "One object with an idempotent e, every presheaf of size ≤ 2, trivial topology",
        cat,
        enumerate_presheaves(cat, max_size=2),
        GrothendieckTopology.trivial(cat),
    )


ALL_SITES: dict[str, Callable[[], Site]] = {
    "discrete-pair": discrete_pair_site,
    "chain": chain_site,
    "walking-arrow": walking_arrow_site,
    "idempotent": idempotent_site,
}
