"""
Kaiju Clash - Simulation CLI Tests
"""

import json

import pytest

from kaiju.__main__ import build_parser, main
from kaiju.config.settings import get_settings


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


class TestParser:
    def test_defaults(self):
        args = build_parser().parse_args([])
        assert args.players == 4
        assert args.scenario is None
        assert not args.explain

    def test_rejects_unknown_scenario(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["--scenario", "nope"])


class TestMain:
    def test_plays_to_a_winner(self, capsys):
        assert main(["--players", "3", "--seed", "5", "--speed", "fast"]) == 0
        out = capsys.readouterr().out
        assert out.startswith("Winner: p")
        assert out.count(" VP ") == 3

    def test_explain_prints_tree(self, capsys):
        main(["--players", "2", "--seed", "1", "--explain"])
        out = capsys.readouterr().out
        tree = json.loads(out[:out.index("Winner:")])
        assert tree[0]["round"] == 1

    def test_log_and_scenario(self, capsys):
        assert main(["--players", "2", "--seed", "2", "--scenario", "almost_win", "--log"]) == 0
        out = capsys.readouterr().out
        assert "GAME_STARTED" in out
        assert "GAME_WON" in out

    def test_bad_player_count(self, capsys):
        assert main(["--players", "9"]) == 1
        assert "Error" in capsys.readouterr().out
