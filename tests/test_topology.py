import logging

import pytest

from grotop.category import FiniteCategory
from grotop.errors import CategoryError
from grotop.presheaf import constant_presheaf, terminal_presheaf
from grotop.result import Verified, Violated
from grotop.sieve import Sieve, SievePair, all_pairs
from grotop.sites import chain_category, chain_site, discrete_pair_site, kink_presheaf, walking_arrow
from grotop.topology import (
    GrothendieckTopology,
    check_local_character,
    check_maximality,
    check_stability,
    verify_topology,
)


@pytest.fixture(scope="module")
def chain() -> FiniteCategory:
    return chain_category(3)


def down(cat: FiniteCategory, name: str) -> Sieve:
    return Sieve.principal(cat, next(m for m in cat.morphisms if m.name == name))


def maximal_pairs(cat: FiniteCategory) -> set[SievePair]:
    return {SievePair(x, Sieve.maximal(cat, x)) for x in cat.objects}


class TestConstruction:
    def test_generated_by_gives_nonempty_sieves(self, chain: FiniteCategory) -> None:
        top = GrothendieckTopology.generated_by(
            chain,
            [SievePair(1, down(chain, "0≤1")), SievePair(2, down(chain, "1≤2"))],
        )
        nonempty = {pair for pair in all_pairs(chain) if len(pair.sieve) > 0}
        assert top.pairs() == nonempty
        assert top == GrothendieckTopology.from_pairs(chain, nonempty)

    def test_generated_by_nothing_is_trivial(self, chain: FiniteCategory) -> None:
        assert GrothendieckTopology.generated_by(chain, []) == GrothendieckTopology.trivial(chain)

    def test_trivial_and_degenerate_are_topologies(self, chain: FiniteCategory) -> None:
        for top in (GrothendieckTopology.trivial(chain), GrothendieckTopology.degenerate(chain)):
            report = verify_topology(chain, top.pairs())
            assert report.is_topology, report.verdicts

    def test_open_cover_topology(self) -> None:
        site = discrete_pair_site()
        assert verify_topology(site.category, site.topology.pairs()).is_topology
        assert len(site.topology.pairs()) == 6
        assert site.topology.covers(Sieve.empty(site.category, "∅"))
        assert not site.topology.covers(Sieve.empty(site.category, "a"))

    def test_from_pairs_rejects_foreign_objects(self, chain: FiniteCategory) -> None:
        arrow = walking_arrow()
        with pytest.raises(CategoryError, match=r"not an object of '\[2\]'"):
            GrothendieckTopology.from_pairs(chain, [SievePair("1", Sieve.maximal(arrow, "1"))])

    def test_covering_keys_must_be_objects(self, chain: FiniteCategory) -> None:
        with pytest.raises(CategoryError, match=r"covers \[7\]"):
            GrothendieckTopology(chain, {7: frozenset()})

    def test_covers_foreign_sieve(self, chain: FiniteCategory) -> None:
        arrow = walking_arrow()
        assert not GrothendieckTopology.trivial(chain).covers(Sieve.maximal(arrow, "1"))

    def test_str(self, chain: FiniteCategory) -> None:
        assert str(GrothendieckTopology.trivial(chain)) == "trivial = [0: max(0) | 1: max(1) | 2: max(2)]"


class TestSheaves:
    def test_sheaves_of_nonempty_topology(self) -> None:
        site = chain_site()
        assert [p.name for p in site.topology.sheaves(site.universe)] == ["Δ2"]

    def test_every_presheaf_is_a_trivial_sheaf(self, chain: FiniteCategory) -> None:
        trivial = GrothendieckTopology.trivial(chain)
        assert trivial.is_sheaf(kink_presheaf(chain))
        assert trivial.is_sheaf(constant_presheaf(chain, (0, 1)))

    def test_only_terminal_presheaves_are_degenerate_sheaves(self, chain: FiniteCategory) -> None:
        degenerate = GrothendieckTopology.degenerate(chain)
        assert degenerate.is_sheaf(terminal_presheaf(chain))
        assert not degenerate.is_sheaf(constant_presheaf(chain, (0, 1)))
        assert not degenerate.is_sheaf(kink_presheaf(chain))


class TestAxioms:
    def test_missing_maximal_sieve(self, chain: FiniteCategory) -> None:
        pairs = maximal_pairs(chain) - {SievePair(1, Sieve.maximal(chain, 1))}
        verdict = check_maximality(chain, pairs)
        assert isinstance(verdict, Violated)
        assert verdict.witness == 1

    def test_unstable(self, chain: FiniteCategory) -> None:
        pairs = maximal_pairs(chain) | {SievePair(2, down(chain, "0≤2"))}
        verdict = check_stability(chain, pairs)
        assert isinstance(verdict, Violated)
        pair, f = verdict.witness
        assert f.name == "1≤2"

    def test_not_local(self, chain: FiniteCategory) -> None:
        pairs = maximal_pairs(chain) | {
            SievePair(2, down(chain, "1≤2")),
            SievePair(1, down(chain, "0≤1")),
        }
        assert isinstance(check_stability(chain, pairs), Verified)
        verdict = check_local_character(chain, pairs)
        assert isinstance(verdict, Violated)
        _, r = verdict.witness
        assert r == down(chain, "0≤2")

    def test_violations_are_logged(self, chain: FiniteCategory, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.WARNING, logger="grotop.topology"):
            report = verify_topology(chain, set())
        assert not report.is_topology
        assert "Covering axiom 'maximality' fails" in caplog.text
