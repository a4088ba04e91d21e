"""Run every check of the correspondence on a site and collect the verdicts."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from .check import CheckResult, check_category, check_presheaf
from .correspondence import check_reverse_lemmas, correspondence, topology_is_fixed_point
from .errors import EnumerationLimitExceeded
from .restriction import check_iso_iff_sheaf
from .result import Undecided, Verdict, Verified, Violated
from .sites import Site

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SiteReport:
    site_name: str
    description: str
    object_count: int
    morphism_count: int
    pair_count: int
    universe_size: int
    topology: str
    sheaf_names: tuple[str, ...]
    topologies: tuple[str, ...]
    structure: tuple[CheckResult, ...]
    verdicts: tuple[Verdict, ...]

    @property
    def verified_count(self) -> int:
        return sum(1 for v in self.verdicts if isinstance(v, Verified))

    @property
    def violated(self) -> tuple[Violated, ...]:
        return tuple(v for v in self.verdicts if isinstance(v, Violated))

    @property
    def undecided(self) -> tuple[Undecided, ...]:
        return tuple(v for v in self.verdicts if isinstance(v, Undecided))

    @property
    def well_formed(self) -> bool:
        return all(r.is_well_formed for r in self.structure)

    @property
    def passed(self) -> bool:
        return self.well_formed and not self.violated


def _dedupe(verdicts: list[Verdict]) -> list[Verdict]:
    """Keep every violation and undecided verdict, and one Verified per obligation."""
    seen: set[str] = set()
    result: list[Verdict] = []
    for v in verdicts:
        if isinstance(v, Verified):
            if v.obligation in seen:
                continue
            seen.add(v.obligation)
        result.append(v)
    return result


def audit_site(site: Site, *, lemmas: bool = True, limit: int | None = None) -> SiteReport:
    """Check structure, the forward direction, the reverse direction and the bijection.

    lemmas:
        If True, also derive every covering axiom of every left fixed point
        from the relation lemmas (slower; the axioms are checked directly
        either way).
    """
    structure = (check_category(site.category),) + tuple(check_presheaf(p) for p in site.universe)
    corr = correspondence(site.category, site.universe)
    rel = corr.relation
    verdicts: list[Verdict] = []
    sheaf_names: tuple[str, ...] = ()
    topologies: tuple[str, ...] = ()

    try:
        for pair in rel.left:
            for p in rel.right:
                verdicts.append(check_iso_iff_sheaf(pair, p))

        verdicts.append(topology_is_fixed_point(site.topology, rel))
        sheaf_names = tuple(sorted(str(p) for p in rel.left_dual(site.topology.pairs())))

        tops = corr.topologies(limit)
        topologies = tuple(str(t) for t in tops)
        for top in tops:
            if lemmas:
                verdicts.extend(check_reverse_lemmas(site.category, top.pairs(), rel))
        verdicts.extend(corr.verify(limit))
    except EnumerationLimitExceeded as e:
        logger.warning("Audit of '%s' stopped: %s", site.name, e)
        verdicts.append(Undecided("enumeration_budget", str(e)))

    verdicts = _dedupe(verdicts)
    logger.info(
        "Audited '%s': %d verified, %d violated, %d undecided",
        site.name,
        sum(1 for v in verdicts if isinstance(v, Verified)),
        sum(1 for v in verdicts if isinstance(v, Violated)),
        sum(1 for v in verdicts if isinstance(v, Undecided)),
    )
    return SiteReport(
        site_name=site.name,
        description=site.description,
        object_count=len(site.category.objects),
        morphism_count=len(site.category.morphisms),
        pair_count=len(rel.left),
        universe_size=len(rel.right),
        topology=str(site.topology),
        sheaf_names=sheaf_names,
        topologies=topologies,
        structure=structure,
        verdicts=tuple(verdicts),
    )
