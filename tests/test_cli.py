"""
tests/test_cli.py — Admin CLI Tests
====================================
Each test points the CLI at a throwaway SQLite file so state carries across
invocations the way it does in real use.
"""

from __future__ import annotations

import pytest

from scaleplus.__main__ import main


@pytest.fixture
def cli(tmp_path):
    config = tmp_path / "config.yaml"
    config.write_text("program_name: CLI Test\nseed_demo_data: true\n", encoding="utf-8")
    db_url = f"sqlite:///{tmp_path / 'cli.db'}"

    def _run(*argv: str) -> int:
        return main(["--config", str(config), "--database-url", db_url, *argv])

    return _run


class TestCommands:
    def test_lists(self, cli, capsys):
        assert cli("tiers") == 0
        assert cli("users") == 0
        assert cli("rewards") == 0
        out = capsys.readouterr().out
        assert "platinum" in out
        assert "Alice Wonderland" in out
        assert "Free Coffee" in out

    def test_grant_then_history(self, cli, capsys):
        assert cli("grant", "user2", "100", "Anniversary") == 0
        assert "Granted 110 pts to user2 → 1310 pts (silver)" in capsys.readouterr().out

        assert cli("history", "user2") == 0
        assert "+110" in capsys.readouterr().out

    def test_redeem_then_insufficient_exit_code(self, cli, capsys):
        assert cli("redeem", "user1", "reward2") == 0
        assert "Redeemed: Free Coffee for user1 → 0 pts left" in capsys.readouterr().out

        assert cli("redeem", "user1", "reward2") == 1
        assert "INSUFFICIENT_POINTS" in capsys.readouterr().err

    def test_set_points(self, cli, capsys):
        assert cli("set-points", "user1", "1500") == 0
        assert "Set user1 to 1500 pts (gold)" in capsys.readouterr().out

    def test_register_duplicate(self, cli, capsys):
        assert cli("register", "Eve", "eve@example.com", "--phone", "555-0123") == 0
        assert cli("register", "Eve 2", "EVE@example.com") == 1
        assert "DUPLICATE_EMAIL" in capsys.readouterr().err

    def test_unknown_user(self, cli, capsys):
        assert cli("history", "ghost") == 1
        assert "USER_NOT_FOUND" in capsys.readouterr().err
