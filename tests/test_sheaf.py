"""Tests for grotop/sheaf.py: matching families, amalgamation and the restriction map."""

import pytest

from grotop.category import FiniteCategory
from grotop.presheaf import Presheaf, constant_presheaf
from grotop.result import Err, Ok
from grotop.sheaf import (
    MatchingFamily,
    amalgamate,
    amalgamations,
    glue_through_refinement,
    is_iso_restriction_map,
    is_matching,
    is_sheaf_for,
    matching_families,
    restriction_map,
)
from grotop.sieve import Sieve, all_sieves
from grotop.sites import chain_category, discrete_pair_site, kink_presheaf


@pytest.fixture(scope="module")
def chain() -> FiniteCategory:
    return chain_category(3)


@pytest.fixture(scope="module")
def arrows(chain: FiniteCategory) -> dict:
    return {m.name: m for m in chain.morphisms}


@pytest.fixture(scope="module")
def const2(chain: FiniteCategory) -> Presheaf:
    return constant_presheaf(chain, (0, 1), name="Δ2")


@pytest.fixture(scope="module")
def kink(chain: FiniteCategory) -> Presheaf:
    return kink_presheaf(chain)


def down(chain: FiniteCategory, arrows: dict, name: str) -> Sieve:
    return Sieve.principal(chain, arrows[name])


class TestMatchingFamilies:
    def test_empty_sieve_has_one_family(self, chain: FiniteCategory, const2: Presheaf) -> None:
        families = matching_families(const2, Sieve.empty(chain, 2))
        assert families == (MatchingFamily((), ()),)

    def test_families_on_down_one(self, chain: FiniteCategory, arrows: dict, const2: Presheaf) -> None:
        s = down(chain, arrows, "1≤2")
        families = matching_families(const2, s)
        # x_{1≤2} determines x_{0≤2}
        assert len(families) == 2
        for fam in families:
            assert fam[arrows["0≤2"]] == fam[arrows["1≤2"]]
            assert is_matching(const2, s, fam.as_dict())

    def test_non_matching_values(self, chain: FiniteCategory, arrows: dict, const2: Presheaf) -> None:
        s = down(chain, arrows, "1≤2")
        assert not is_matching(const2, s, {arrows["0≤2"]: 0, arrows["1≤2"]: 1})
        assert not is_matching(const2, s, {arrows["0≤2"]: 0})

    def test_family_from_mapping_orders_arrows(self, chain: FiniteCategory, arrows: dict) -> None:
        s = down(chain, arrows, "1≤2")
        fam = MatchingFamily.from_mapping(s, {arrows["1≤2"]: 1, arrows["0≤2"]: 0})
        assert fam.arrows == s.ordered_arrows()
        assert fam.as_dict() == {arrows["0≤2"]: 0, arrows["1≤2"]: 1}


class TestSheafCondition:
    def test_constant_presheaf_on_nonempty_sieves(self, chain: FiniteCategory, const2: Presheaf) -> None:
        for x in chain.objects:
            for s in all_sieves(chain, x):
                assert is_sheaf_for(const2, s) == (len(s) > 0)

    def test_kink_is_not_a_sheaf_for_down_zero_on_one(
        self, chain: FiniteCategory, arrows: dict, kink: Presheaf
    ) -> None:
        assert is_sheaf_for(kink, down(chain, arrows, "0≤2"))
        assert not is_sheaf_for(kink, down(chain, arrows, "0≤1"))

    def test_iso_iff_sheaf_on_every_sieve(self) -> None:
        site = discrete_pair_site()
        for p in site.universe:
            for x in site.category.objects:
                for s in all_sieves(site.category, x):
                    assert is_iso_restriction_map(p, s) == is_sheaf_for(p, s), (str(p), str(s))

    def test_restriction_map_on_maximal_sieve(self, chain: FiniteCategory, kink: Presheaf) -> None:
        rho = restriction_map(kink, Sieve.maximal(chain, 1))
        assert len(set(rho.values())) == kink.size(1)
        assert is_iso_restriction_map(kink, Sieve.maximal(chain, 1))


class TestAmalgamation:
    def test_unique_amalgamation(self, chain: FiniteCategory, arrows: dict, const2: Presheaf) -> None:
        s = down(chain, arrows, "1≤2")
        fam = MatchingFamily.from_mapping(s, {arrows["0≤2"]: 1, arrows["1≤2"]: 1})
        assert amalgamate(const2, s, fam) == Ok(1)

    def test_empty_family_has_two_amalgamations(self, chain: FiniteCategory, const2: Presheaf) -> None:
        s = Sieve.empty(chain, 2)
        fam = MatchingFamily((), ())
        assert set(amalgamations(const2, s, fam)) == {0, 1}
        result = amalgamate(const2, s, fam)
        assert isinstance(result, Err)
        assert "2 amalgamations" in str(result.error)


class TestGlueThroughRefinement:
    def test_glues_through_down_one(self, chain: FiniteCategory, arrows: dict, const2: Presheaf) -> None:
        outer = down(chain, arrows, "1≤2")
        inner = down(chain, arrows, "0≤2")
        fam = MatchingFamily.from_mapping(inner, {arrows["0≤2"]: 1})
        assert glue_through_refinement(const2, outer, inner, fam) == Ok(1)

    def test_fails_where_a_local_sheaf_condition_fails(
        self, chain: FiniteCategory, arrows: dict, kink: Presheaf
    ) -> None:
        outer = down(chain, arrows, "1≤2")
        inner = down(chain, arrows, "0≤2")
        fam = MatchingFamily.from_mapping(inner, {arrows["0≤2"]: 0})
        result = glue_through_refinement(kink, outer, inner, fam)
        assert isinstance(result, Err)
        assert "Cannot lift through '1≤2'" in str(result.error)

    def test_sieves_on_different_objects(self, chain: FiniteCategory, arrows: dict, const2: Presheaf) -> None:
        outer = Sieve.maximal(chain, 1)
        inner = down(chain, arrows, "0≤2")
        fam = MatchingFamily.from_mapping(inner, {arrows["0≤2"]: 0})
        assert isinstance(glue_through_refinement(const2, outer, inner, fam), Err)
