"""Finite categories given by explicit composition tables.

A category C = (Ob, Mor, ∘, id) is stored as
  objects:     a tuple of hashable names
  morphisms:   every arrow, identities included, each a ``Morphism``
  composition: (g, f) ↦ g ∘ f for every composable pair (f.cod == g.dom)

Objects are plain hashables; everywhere an object is *used* we refer to
it by that value.  Morphism names are unique within a category.

The dataclass itself does not validate; use ``category_from_table`` or
``poset_category``, which run the checks in ``grotop.check``.
"""

from __future__ import annotations

from collections.abc import Callable, Hashable, Iterable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

from .errors import CategoryError
from .result import Err, Ok, Result

Obj = Hashable


@dataclass(frozen=True, order=True)
class Morphism:
    """An arrow  name : dom → cod."""

    name: str
    dom: Obj
    cod: Obj

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True, eq=False)
class FiniteCategory:
    name: str
    objects: tuple[Obj, ...]
    morphisms: tuple[Morphism, ...]
    identities: Mapping[Obj, Morphism]
    composition: Mapping[tuple[Morphism, Morphism], Morphism]
    _into: Mapping[Obj, tuple[Morphism, ...]] = field(init=False, repr=False)
    _from: Mapping[Obj, tuple[Morphism, ...]] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "identities", MappingProxyType(dict(self.identities)))
        object.__setattr__(self, "composition", MappingProxyType(dict(self.composition)))
        into: dict[Obj, list[Morphism]] = {x: [] for x in self.objects}
        out: dict[Obj, list[Morphism]] = {x: [] for x in self.objects}
        for m in sorted(self.morphisms):
            if m.cod in into:
                into[m.cod].append(m)
            if m.dom in out:
                out[m.dom].append(m)
        object.__setattr__(self, "_into", MappingProxyType({k: tuple(v) for k, v in into.items()}))
        object.__setattr__(self, "_from", MappingProxyType({k: tuple(v) for k, v in out.items()}))

    def identity(self, obj: Obj) -> Morphism:
        return self.identities[obj]

    def compose(self, g: Morphism, f: Morphism) -> Morphism:
        """g ∘ f  (first f, then g)."""
        if f.cod != g.dom:
            raise CategoryError(f"Cannot compose '{g}' after '{f}': {f.cod!r} != {g.dom!r}")
        try:
            return self.composition[(g, f)]
        except KeyError:
            raise CategoryError(f"Composite '{g} ∘ {f}' missing from '{self.name}'") from None

    def arrows_into(self, obj: Obj) -> tuple[Morphism, ...]:
        return self._into[obj]

    def arrows_from(self, obj: Obj) -> tuple[Morphism, ...]:
        return self._from[obj]

    def hom(self, dom: Obj, cod: Obj) -> tuple[Morphism, ...]:
        return tuple(m for m in self._into[cod] if m.dom == dom)

    def is_identity(self, m: Morphism) -> bool:
        return self.identities.get(m.dom) == m

    @property
    def non_identity_morphisms(self) -> tuple[Morphism, ...]:
        return tuple(m for m in self.morphisms if not self.is_identity(m))


# ---------------------------------------------------------------------------
# Builders
# ---------------------------------------------------------------------------


def identity_name(obj: Obj) -> str:
    return f"id_{obj}"


def category_from_table(
    name: str,
    objects: Iterable[Obj],
    arrows: Iterable[tuple[str, Obj, Obj]],
    composites: Mapping[tuple[str, str], str],
) -> Result[FiniteCategory, CategoryError]:
    """Build a category from its non-identity arrows.

    ``arrows`` lists (name, dom, cod); identities ``id_X`` are added.
    ``composites`` maps (g_name, f_name) to the name of g ∘ f for every
    composable pair of non-identity arrows.  Composites with identities are
    filled in.  The result is checked for well-formedness.
    """
    from .check import check_category

    objs = tuple(objects)
    ids = {x: Morphism(identity_name(x), x, x) for x in objs}
    declared = [Morphism(n, d, c) for n, d, c in arrows]
    by_name: dict[str, Morphism] = {m.name: m for m in ids.values()}
    for m in declared:
        if m.name in by_name:
            return Err(CategoryError(f"Morphism name '{m.name}' is declared twice"))
        by_name[m.name] = m

    table: dict[tuple[Morphism, Morphism], Morphism] = {}
    for m in by_name.values():
        if m.dom in ids:
            table[(m, ids[m.dom])] = m
        if m.cod in ids:
            table[(ids[m.cod], m)] = m
    for (g_name, f_name), h_name in composites.items():
        missing = [n for n in (g_name, f_name, h_name) if n not in by_name]
        if missing:
            return Err(CategoryError(f"Composite {g_name} ∘ {f_name} = {h_name} names unknown arrow(s) {missing}"))
        table[(by_name[g_name], by_name[f_name])] = by_name[h_name]

    cat = FiniteCategory(
        name=name,
        objects=objs,
        morphisms=tuple(sorted(by_name.values())),
        identities=ids,
        composition=table,
    )
    result = check_category(cat)
    if not result.is_well_formed:
        msgs = "; ".join(f"[{d.check}] {d.message}" for d in result.errors)
        return Err(CategoryError(f"'{name}' is not a category: {msgs}"))
    return Ok(cat)


def poset_category(
    name: str,
    elements: Iterable[Obj],
    leq: Callable[[Obj, Obj], bool],
) -> FiniteCategory:
    """The category with one arrow  a → b  whenever a ≤ b.

    Raises CategoryError if ``leq`` is not a partial order.
    """
    elems = tuple(elements)
    for a in elems:
        if not leq(a, a):
            raise CategoryError(f"'{name}': ≤ is not reflexive at {a!r}")
        for b in elems:
            if a != b and leq(a, b) and leq(b, a):
                raise CategoryError(f"'{name}': ≤ is not antisymmetric at {a!r}, {b!r}")

    def arrow_name(a: Obj, b: Obj) -> str:
        return identity_name(a) if a == b else f"{a}≤{b}"

    arrows = [(arrow_name(a, b), a, b) for a in elems for b in elems if a != b and leq(a, b)]
    composites: dict[tuple[str, str], str] = {}
    for _, a, b in arrows:
        for _, b2, c in arrows:
            if b2 != b:
                continue
            if not leq(a, c):
                raise CategoryError(f"'{name}': ≤ is not transitive at {a!r} ≤ {b!r} ≤ {c!r}")
            composites[(arrow_name(b, c), arrow_name(a, b))] = arrow_name(a, c)

    match category_from_table(name, elems, arrows, composites):
        case Ok(cat):
            return cat
        case Err(e):
            raise e
