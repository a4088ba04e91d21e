import json

import pytest

from grotop.cli import main
from grotop.config import set_settings


@pytest.fixture(autouse=True)
def reset_settings():
    set_settings(None)
    yield
    set_settings(None)


class TestCli:
    def test_no_command_prints_help(self, capsys: pytest.CaptureFixture[str]) -> None:
        assert main([]) == 1
        assert "usage: grotop" in capsys.readouterr().out

    def test_sites(self, capsys: pytest.CaptureFixture[str]) -> None:
        assert main(["sites"]) == 0
        out = capsys.readouterr().out
        for name in ("discrete-pair", "chain", "walking-arrow", "idempotent"):
            assert name in out

    def test_check_text(self, capsys: pytest.CaptureFixture[str]) -> None:
        assert main(["check", "chain"]) == 0
        assert "chain — " in capsys.readouterr().out

    def test_check_json(self, capsys: pytest.CaptureFixture[str]) -> None:
        assert main(["check", "chain", "idempotent", "--json", "--no-lemmas"]) == 0
        data = json.loads(capsys.readouterr().out)
        assert [d["site"] for d in data] == ["chain", "idempotent"]
        assert all(d["passed"] for d in data)

    def test_check_markdown(self, capsys: pytest.CaptureFixture[str]) -> None:
        assert main(["check", "chain", "--markdown"]) == 0
        assert "**Result:** passed" in capsys.readouterr().out

    def test_unknown_site(self, capsys: pytest.CaptureFixture[str]) -> None:
        assert main(["check", "nowhere"]) == 2
        assert "Unknown site: nowhere" in capsys.readouterr().err

    def test_enumeration_budget_too_small(self, capsys: pytest.CaptureFixture[str]) -> None:
        assert main(["--max-enumeration", "1", "check", "chain"]) == 2
        assert "exceeds the budget of 1" in capsys.readouterr().err

    def test_json_and_markdown_are_exclusive(self) -> None:
        with pytest.raises(SystemExit):
            main(["check", "chain", "--json", "--markdown"])
