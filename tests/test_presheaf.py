import logging

import pytest

from grotop.check import check_presheaf
from grotop.errors import EnumerationLimitExceeded, PresheafError
from grotop.presheaf import (
    constant_presheaf,
    enumerate_presheaves,
    make_presheaf,
    presheaf_from_tables,
    terminal_presheaf,
)
from grotop.result import Err, Ok
from grotop.sites import chain_category, idempotent_monoid, kink_presheaf, walking_arrow


def error_message(result) -> str:
    assert isinstance(result, Err)
    return str(result.error)


class TestBuilders:
    def test_identity_tables_are_filled(self) -> None:
        cat = walking_arrow()
        result = presheaf_from_tables(cat, {"0": {"x"}, "1": {"p", "q"}}, {"u": {"p": "x", "q": "x"}}, name="Q")
        match result:
            case Ok(p):
                assert p.restrict(cat.identity("1"), "q") == "q"
                assert p.size("1") == 2
                assert str(p) == "Q"
            case Err(e):
                pytest.fail(str(e))

    def test_missing_restriction(self) -> None:
        cat = walking_arrow()
        message = error_message(presheaf_from_tables(cat, {"0": {0}, "1": {0}}, {}))
        assert "restriction_total" in message

    def test_restriction_lands_outside(self) -> None:
        cat = walking_arrow()
        message = error_message(presheaf_from_tables(cat, {"0": {0}, "1": {0}}, {"u": {0: 7}}))
        assert "restriction_typed" in message

    def test_restriction_not_total_on_sections(self) -> None:
        cat = walking_arrow()
        message = error_message(presheaf_from_tables(cat, {"0": {0}, "1": {0, 1}}, {"u": {0: 0}}))
        assert "restriction_typed" in message

    def test_missing_sections(self) -> None:
        cat = walking_arrow()
        message = error_message(presheaf_from_tables(cat, {"0": {0}}, {"u": {}}))
        assert "sections_total" in message

    def test_unknown_arrow(self) -> None:
        cat = walking_arrow()
        message = error_message(presheaf_from_tables(cat, {"0": {0}, "1": {0}}, {"v": {0: 0}}))
        assert "unknown arrow" in message

    def test_not_functorial(self) -> None:
        cat = idempotent_monoid()
        message = error_message(presheaf_from_tables(cat, {"*": {0, 1}}, {"e": {0: 1, 1: 0}}))
        assert "functor_composition" in message

    def test_identity_not_identity(self) -> None:
        cat = idempotent_monoid()
        message = error_message(
            presheaf_from_tables(cat, {"*": {0, 1}}, {"id_*": {0: 0, 1: 0}, "e": {0: 0, 1: 0}})
        )
        assert "functor_identity" in message

    def test_make_presheaf_raises(self) -> None:
        with pytest.raises(PresheafError, match="is not a presheaf"):
            make_presheaf(walking_arrow(), {"0": {0}, "1": {0}}, {})

    def test_constant_and_terminal_are_well_formed(self) -> None:
        cat = chain_category(3)
        for p in (constant_presheaf(cat, (0, 1)), terminal_presheaf(cat), kink_presheaf(cat)):
            assert check_presheaf(p).is_well_formed

    def test_presheaves_hash_by_identity(self) -> None:
        cat = chain_category(3)
        p = constant_presheaf(cat, (0, 1))
        q = constant_presheaf(cat, (0, 1))
        assert p != q
        assert len({p, q}) == 2


class TestEnumeration:
    def test_idempotent_monoid(self) -> None:
        # sizes 0 and 1 give one presheaf each; on two elements P(e) is
        # the identity or one of the two constants
        found = enumerate_presheaves(idempotent_monoid(), max_size=2)
        assert len(found) == 5
        assert [p.name for p in found] == ["P0", "P1", "P2", "P3", "P4"]

    def test_walking_arrow(self) -> None:
        # Σ over n0, n1 ≤ 2 of n0 ** n1
        assert len(enumerate_presheaves(walking_arrow(), max_size=2)) == 11

    def test_every_enumerated_presheaf_is_well_formed(self) -> None:
        for p in enumerate_presheaves(chain_category(3), max_size=1):
            assert check_presheaf(p).is_well_formed

    def test_budget(self) -> None:
        with pytest.raises(EnumerationLimitExceeded):
            enumerate_presheaves(walking_arrow(), max_size=2, limit=5)

    def test_logs_count(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.INFO, logger="grotop.presheaf"):
            enumerate_presheaves(idempotent_monoid(), max_size=1)
        assert "Enumerated 2 presheaves" in caplog.text
