import pytest

from grotop.errors import RelationError
from grotop.presheaf import constant_presheaf
from grotop.restriction import (
    check_iso_iff_sheaf,
    holds,
    local_character_lemma,
    maximal_sieve_lemma,
    pullback_profile,
    pullback_stability_lemma,
    sieve_restriction_relation,
)
from grotop.result import Verified, Violated
from grotop.sieve import Sieve, SievePair, all_pairs, all_sieves
from grotop.sites import Site, chain_category, chain_site, discrete_pair_site


@pytest.fixture(scope="module")
def chain() -> Site:
    return chain_site()


@pytest.fixture(scope="module")
def discrete() -> Site:
    return discrete_pair_site()


def universe_by_name(site: Site) -> dict:
    return {p.name: p for p in site.universe}


def down(site: Site, name: str) -> Sieve:
    f = next(m for m in site.category.morphisms if m.name == name)
    return Sieve.principal(site.category, f)


class TestRelation:
    def test_kink_fails_only_along_one_pullback(self, chain: Site) -> None:
        kink = universe_by_name(chain)["kink"]
        profile = pullback_profile(SievePair(2, down(chain, "0≤2")), kink)
        assert {f.name: ok for f, ok in profile.items()} == {
            "0≤2": True,
            "1≤2": False,
            "id_2": True,
        }
        assert not holds(SievePair(2, down(chain, "0≤2")), kink)

    def test_constant_presheaf_relates_to_nonempty_sieves(self, chain: Site) -> None:
        const2 = universe_by_name(chain)["Δ2"]
        for pair in all_pairs(chain.category):
            assert holds(pair, const2) == (len(pair.sieve) > 0)

    def test_relation_domains(self, chain: Site) -> None:
        rel = sieve_restriction_relation(chain.category, chain.universe)
        assert rel.name == "restriction([2])"
        assert len(rel.left) == 2 + 3 + 4
        assert rel.right == chain.universe

    def test_presheaf_on_another_category(self, chain: Site) -> None:
        other = constant_presheaf(chain_category(2), (0,))
        with pytest.raises(RelationError, match="lives on"):
            sieve_restriction_relation(chain.category, [other])


class TestLemmas:
    def test_iso_iff_sheaf(self, discrete: Site) -> None:
        for pair in all_pairs(discrete.category):
            for p in discrete.universe:
                assert check_iso_iff_sheaf(pair, p) == Verified("iso_restriction_map_iff_sheaf")

    def test_maximal_sieve(self, discrete: Site) -> None:
        for x in discrete.category.objects:
            for p in discrete.universe:
                assert isinstance(maximal_sieve_lemma(discrete.category, x, p), Verified)

    def test_pullback_stability(self, discrete: Site) -> None:
        for pair in all_pairs(discrete.category):
            for f, _ in pair.pullbacks():
                for p in discrete.universe:
                    assert isinstance(pullback_stability_lemma(pair, f, p), Verified)

    def test_local_character_with_explicit_gluing(self, chain: Site) -> None:
        const2 = universe_by_name(chain)["Δ2"]
        outer = SievePair(2, down(chain, "1≤2"))
        # ↓0 pulls back to ↓0 on 1 and to max(0), both related to Δ2
        assert isinstance(local_character_lemma(outer, down(chain, "0≤2"), const2), Verified)

    def test_local_character_on_every_sieve(self, chain: Site) -> None:
        cat = chain.category
        for p in chain.universe:
            for outer in all_pairs(cat):
                for inner in all_sieves(cat, outer.obj):
                    assert isinstance(local_character_lemma(outer, inner, p), Verified)

    def test_local_character_rejects_sieve_on_other_object(self, chain: Site) -> None:
        const2 = universe_by_name(chain)["Δ2"]
        verdict = local_character_lemma(SievePair(2, down(chain, "1≤2")), Sieve.maximal(chain.category, 1), const2)
        assert isinstance(verdict, Violated)
