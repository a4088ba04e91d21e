from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .category import FiniteCategory
    from .presheaf import Presheaf


class Severity(Enum):
    ERROR = "error"
    WARNING = "warning"


@dataclass(frozen=True)
class Diagnostic:
    check: str
    severity: Severity
    subject: str | None
    message: str


@dataclass(frozen=True)
class CheckResult:
    name: str
    diagnostics: tuple[Diagnostic, ...]

    @property
    def errors(self) -> tuple[Diagnostic, ...]:
        return tuple(d for d in self.diagnostics if d.severity == Severity.ERROR)

    @property
    def warnings(self) -> tuple[Diagnostic, ...]:
        return tuple(d for d in self.diagnostics if d.severity == Severity.WARNING)

    @property
    def is_well_formed(self) -> bool:
        return len(self.errors) == 0


@dataclass
class CheckContext:
    subject: str | None = None
    diagnostics: list[Diagnostic] = field(default_factory=list)

    def error(self, check: str, message: str) -> None:
        self.diagnostics.append(Diagnostic(check, Severity.ERROR, self.subject, message))

    def warning(self, check: str, message: str) -> None:
        self.diagnostics.append(Diagnostic(check, Severity.WARNING, self.subject, message))

    def result(self, name: str) -> CheckResult:
        def sort_key(d: Diagnostic) -> tuple[int, str, str]:
            severity_order = 0 if d.severity == Severity.ERROR else 1
            return (severity_order, d.check, d.subject or "")

        return CheckResult(name, tuple(sorted(self.diagnostics, key=sort_key)))


# ---------------------------------------------------------------------------
# Categories
# ---------------------------------------------------------------------------


def check_category(cat: FiniteCategory) -> CheckResult:
    ctx = CheckContext()
    objects = set(cat.objects)

    # object_names_unique
    for obj, c in Counter(cat.objects).items():
        if c > 1:
            ctx.error("object_names_unique", f"Object {obj!r} is listed {c} times")

    # morphism_names_unique
    for name, c in Counter(m.name for m in cat.morphisms).items():
        if c > 1:
            ctx.error("morphism_names_unique", f"Morphism name '{name}' is used {c} times")

    # endpoint_resolved
    morphisms = set(cat.morphisms)
    for m in cat.morphisms:
        ctx.subject = m.name
        if m.dom not in objects:
            ctx.error("endpoint_resolved", f"Domain {m.dom!r} is not an object")
        if m.cod not in objects:
            ctx.error("endpoint_resolved", f"Codomain {m.cod!r} is not an object")

    # identity_declared
    for obj in cat.objects:
        ctx.subject = str(obj)
        ident = cat.identities.get(obj)
        if ident is None:
            ctx.error("identity_declared", f"No identity on {obj!r}")
        elif ident.dom != obj or ident.cod != obj or ident not in morphisms:
            ctx.error("identity_declared", f"Identity '{ident}' is not an endomorphism of {obj!r} in the category")

    # composition_composable & composition_typed
    for (g, f), h in cat.composition.items():
        ctx.subject = f"{g} ∘ {f}"
        if f.cod != g.dom:
            ctx.error("composition_composable", f"'{g}' cannot follow '{f}'")
            continue
        if h not in morphisms:
            ctx.error("composition_typed", f"Composite '{h}' is not a morphism of the category")
        elif h.dom != f.dom or h.cod != g.cod:
            ctx.error(
                "composition_typed",
                f"Composite '{h}' : {h.dom!r} → {h.cod!r}, expected {f.dom!r} → {g.cod!r}",
            )

    # composition_total
    for f in cat.morphisms:
        for g in cat.morphisms:
            if f.cod == g.dom and (g, f) not in cat.composition:
                ctx.subject = f"{g} ∘ {f}"
                ctx.error("composition_total", f"No composite for '{g}' after '{f}'")

    if ctx.diagnostics:
        ctx.subject = None
        return ctx.result(cat.name)

    # identity_law
    for m in cat.morphisms:
        ctx.subject = m.name
        if cat.composition[(m, cat.identities[m.dom])] != m:
            ctx.error("identity_law", f"'{m}' ∘ id != '{m}'")
        if cat.composition[(cat.identities[m.cod], m)] != m:
            ctx.error("identity_law", f"id ∘ '{m}' != '{m}'")

    # associativity
    for (g, f), gf in cat.composition.items():
        for h in cat.arrows_from(g.cod):
            ctx.subject = f"{h} ∘ {g} ∘ {f}"
            hg = cat.composition[(h, g)]
            if cat.composition[(h, gf)] != cat.composition[(hg, f)]:
                ctx.error("associativity", "(h ∘ g) ∘ f != h ∘ (g ∘ f)")

    # isolated_object
    ctx.subject = None
    for obj in cat.objects:
        if len(cat.arrows_into(obj)) == 1 and len(cat.arrows_from(obj)) == 1:
            ctx.warning("isolated_object", f"Object {obj!r} has only its identity")

    return ctx.result(cat.name)


# ---------------------------------------------------------------------------
# Presheaves
# ---------------------------------------------------------------------------


def check_presheaf(p: Presheaf) -> CheckResult:
    """Check that section sets and restriction tables form a functor C^op → Set."""
    ctx = CheckContext()
    cat = p.category

    # sections_total
    for obj in cat.objects:
        if obj not in p.sections:
            ctx.subject = str(obj)
            ctx.error("sections_total", f"No section set over {obj!r}")

    # restriction_total & restriction_typed
    for m in cat.morphisms:
        ctx.subject = m.name
        table = p.restrictions.get(m)
        if table is None:
            ctx.error("restriction_total", f"No restriction map along '{m}'")
            continue
        source = p.sections.get(m.cod, frozenset())
        target = p.sections.get(m.dom, frozenset())
        if set(table.keys()) != set(source):
            ctx.error("restriction_typed", f"P({m}) is not defined on exactly P({m.cod!r})")
        stray = [v for v in table.values() if v not in target]
        if stray:
            ctx.error("restriction_typed", f"P({m}) lands outside P({m.dom!r}): {stray!r}")

    if ctx.diagnostics:
        ctx.subject = None
        return ctx.result(p.name)

    # functor_identity
    for obj in cat.objects:
        ctx.subject = str(obj)
        table = p.restrictions[cat.identity(obj)]
        if any(table[x] != x for x in p.sections[obj]):
            ctx.error("functor_identity", f"P(id_{obj}) is not the identity")

    # functor_composition:  P(g ∘ f) = P(f) ∘ P(g)
    for (g, f), gf in cat.composition.items():
        ctx.subject = f"{g} ∘ {f}"
        pg, pf, pgf = p.restrictions[g], p.restrictions[f], p.restrictions[gf]
        for x in p.sections[g.cod]:
            if pgf[x] != pf[pg[x]]:
                ctx.error("functor_composition", f"P({gf}) != P({f}) ∘ P({g}) at {x!r}")
                break

    return ctx.result(p.name)
