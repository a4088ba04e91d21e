"""Finite presheaves  P : C^op → FinSet.

A presheaf assigns a finite set P(X) to every object and, to every arrow
f : Y → X, a restriction map P(f) : P(X) → P(Y), such that

    P(id_X) = id_{P(X)}          P(g ∘ f) = P(f) ∘ P(g)

Restriction tables are stored for *every* arrow, identities included.
"""

from __future__ import annotations

import itertools
import logging
from collections.abc import Hashable, Iterable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

from .category import FiniteCategory, Morphism, Obj
from .config import get_settings
from .errors import EnumerationLimitExceeded, PresheafError
from .result import Err, Ok, Result

logger = logging.getLogger(__name__)

Section = Hashable


@dataclass(frozen=True, eq=False)
class Presheaf:
    category: FiniteCategory = field(repr=False)
    sections: Mapping[Obj, frozenset[Section]]
    restrictions: Mapping[Morphism, Mapping[Section, Section]] = field(repr=False)
    name: str = "P"

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "sections", MappingProxyType({k: frozenset(v) for k, v in self.sections.items()})
        )
        object.__setattr__(
            self,
            "restrictions",
            MappingProxyType({m: MappingProxyType(dict(t)) for m, t in self.restrictions.items()}),
        )

    def restrict(self, f: Morphism, x: Section) -> Section:
        """P(f)(x) for x ∈ P(cod f)."""
        return self.restrictions[f][x]

    def size(self, obj: Obj) -> int:
        return len(self.sections[obj])

    def __str__(self) -> str:
        return self.name


# ---------------------------------------------------------------------------
# Builders
# ---------------------------------------------------------------------------


def presheaf_from_tables(
    category: FiniteCategory,
    sections: Mapping[Obj, Iterable[Section]],
    restrictions: Mapping[str, Mapping[Section, Section]],
    name: str = "P",
) -> Result[Presheaf, PresheafError]:
    """Build and check a presheaf.

    ``restrictions`` is keyed by morphism name; identity tables may be
    omitted and are filled in.
    """
    from .check import check_presheaf

    by_name = {m.name: m for m in category.morphisms}
    unknown = sorted(set(restrictions) - set(by_name))
    if unknown:
        return Err(PresheafError(f"'{name}' restricts along unknown arrow(s) {unknown}"))
    secs = {obj: frozenset(v) for obj, v in sections.items()}
    tables: dict[Morphism, Mapping[Section, Section]] = {
        by_name[n]: dict(t) for n, t in restrictions.items()
    }
    for obj in category.objects:
        ident = category.identity(obj)
        if ident not in tables:
            tables[ident] = {x: x for x in secs.get(obj, frozenset())}

    p = Presheaf(category, secs, tables, name)
    result = check_presheaf(p)
    if not result.is_well_formed:
        msgs = "; ".join(f"[{d.check}] {d.subject}: {d.message}" for d in result.errors)
        return Err(PresheafError(f"'{name}' is not a presheaf: {msgs}"))
    return Ok(p)


def make_presheaf(
    category: FiniteCategory,
    sections: Mapping[Obj, Iterable[Section]],
    restrictions: Mapping[str, Mapping[Section, Section]],
    name: str = "P",
) -> Presheaf:
    """Like ``presheaf_from_tables`` but raises PresheafError."""
    match presheaf_from_tables(category, sections, restrictions, name):
        case Ok(p):
            return p
        case Err(e):
            raise e


def constant_presheaf(category: FiniteCategory, values: Iterable[Section], name: str = "Δ") -> Presheaf:
    """P(X) = values for every X, every restriction the identity."""
    vals = frozenset(values)
    return Presheaf(
        category,
        {x: vals for x in category.objects},
        {m: {v: v for v in vals} for m in category.morphisms},
        name,
    )


def terminal_presheaf(category: FiniteCategory) -> Presheaf:
    return constant_presheaf(category, (0,), name="1")


# ---------------------------------------------------------------------------
# Enumeration
# ---------------------------------------------------------------------------


def enumerate_presheaves(
    category: FiniteCategory,
    max_size: int | None = None,
    limit: int | None = None,
) -> tuple[Presheaf, ...]:
    """Every presheaf with P(X) = {0, …, n_X − 1} and n_X ≤ max_size.

    Isomorphic copies are not identified.  Restriction maps are chosen one
    arrow at a time and functoriality is checked as soon as both factors and
    the composite are assigned.  Raises EnumerationLimitExceeded when more
    than ``limit`` partial assignments would be visited.
    """
    settings = get_settings()
    bound = settings.max_section_size if max_size is None else max_size
    budget = settings.max_enumeration if limit is None else limit
    arrows = category.non_identity_morphisms
    visited = 0
    found: list[Presheaf] = []

    def consistent(tables: dict[Morphism, tuple[int, ...]], just_set: Morphism) -> bool:
        def apply(m: Morphism, x: int) -> int:
            if category.is_identity(m):
                return x
            return tables[m][x]

        def assigned(m: Morphism) -> bool:
            return category.is_identity(m) or m in tables

        for (g, f), gf in category.composition.items():
            if just_set not in (g, f, gf):
                continue
            if not (assigned(g) and assigned(f) and assigned(gf)):
                continue
            for x in range(sizes[g.cod]):
                if apply(gf, x) != apply(f, apply(g, x)):
                    return False
        return True

    def extend(i: int, tables: dict[Morphism, tuple[int, ...]]) -> None:
        nonlocal visited
        visited += 1
        if visited > budget:
            raise EnumerationLimitExceeded(f"presheaves on '{category.name}'", budget)
        if i == len(arrows):
            found.append(_materialize(category, sizes, tables, f"P{len(found)}"))
            return
        m = arrows[i]
        for images in itertools.product(range(sizes[m.dom]), repeat=sizes[m.cod]):
            tables[m] = images
            if consistent(tables, m):
                extend(i + 1, tables)
            del tables[m]

    for combo in itertools.product(range(bound + 1), repeat=len(category.objects)):
        sizes = dict(zip(category.objects, combo, strict=True))
        extend(0, {})

    logger.info(
        "Enumerated %d presheaves on '%s' with sections of size ≤ %d",
        len(found), category.name, bound,
    )
    return tuple(found)


def _materialize(
    category: FiniteCategory,
    sizes: Mapping[Obj, int],
    tables: Mapping[Morphism, tuple[int, ...]],
    name: str,
) -> Presheaf:
    restrictions: dict[Morphism, dict[Section, Section]] = {}
    for m in category.morphisms:
        if category.is_identity(m):
            restrictions[m] = {x: x for x in range(sizes[m.dom])}
        else:
            restrictions[m] = dict(enumerate(tables[m]))
    return Presheaf(category, {x: range(n) for x, n in sizes.items()}, restrictions, name)
