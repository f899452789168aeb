"""Tests for the headless session runner and CLI."""

import json
import sys

import pytest

from src.environment import BalanceBuilder, GameConfig, ManualScheduler
from src.main import main, pick_move, run_session
from src.match_engine import would_create_match

from conftest import SWAP_ROWS


def new_session(**config):
    scheduler = ManualScheduler()
    bench = BalanceBuilder.create(config=GameConfig(seed=11, **config), scheduler=scheduler)
    bench.submit_entry("Demo Player", "0000000000")
    bench.start_game()
    return bench, scheduler


class TestPickMove:
    """Test the greedy autoplayer."""

    def test_picks_a_legal_swap(self, make_grid):
        grid = make_grid(SWAP_ROWS)
        move = pick_move(grid)
        assert move is not None
        assert would_create_match(grid, *move)


class TestRunSession:
    """Test full sessions on the virtual clock."""

    def test_plays_to_result(self):
        bench, scheduler = new_session()
        run_session(bench, scheduler)

        state = bench.state
        assert state.phase == "RESULT"
        assert "FINISHED" in bench.controller.phase_history
        assert 0 <= bench.final_score <= 100

    def test_idle_player_times_out(self):
        bench, scheduler = new_session(game_duration=10)
        run_session(bench, scheduler, max_moves=0)

        assert bench.state.phase == "RESULT"
        assert bench.state.moves == 0
        assert bench.final_score == 0
        assert bench.controller.phase_history == [
            "ENTRY", "HOW_TO_PLAY", "TUTORIAL", "PLAYING", "FINISHED", "RESULT",
        ]

    def test_exit_immediately(self):
        bench, scheduler = new_session()
        run_session(bench, scheduler, exit_after=0)

        assert bench.controller.phase_history[-2:] == ["EXITED", "RESULT"]
        summaries = [l.summary for l in bench.controller.lead_service.submissions]
        assert summaries == ["Balance Builder Lead", "Balance Builder - Early Exit - Score: 0/100"]


class TestMain:
    """Test the command line entry point."""

    def test_main_writes_result_and_leads(self, tmp_path, monkeypatch, capsys):
        output = tmp_path / "result.json"
        leads = tmp_path / "leads.jsonl"
        monkeypatch.setattr(sys, "argv", [
            "main", "--seed", "5", "--output", str(output), "--leads", str(leads), "--exit-after", "2",
        ])

        assert main() == 0

        with open(output) as f:
            result = json.load(f)
        assert result["seed"] == 5
        assert result["phase"] == "RESULT"

        lines = leads.read_text().splitlines()
        assert len(lines) == 2
        assert json.loads(lines[0])["summary"] == "Balance Builder Lead"
        assert "=== Session Summary ===" in capsys.readouterr().out

    def test_main_with_config_file(self, tmp_path, monkeypatch):
        config = tmp_path / "config.yaml"
        config.write_text("seed: 3\ngame_duration: 5\n")
        tutorial = tmp_path / "tutorial.json"
        output = tmp_path / "result.json"
        monkeypatch.setattr(sys, "argv", [
            "main", str(config), "--output", str(output), "--tutorial-file", str(tutorial), "--max-moves", "0",
        ])

        assert main() == 0
        assert json.loads(tutorial.read_text()) == {"tutorial_completed": True}
        assert json.loads(output.read_text())["moves"] == 0

    def test_main_bad_config(self, tmp_path, monkeypatch):
        monkeypatch.setattr(sys, "argv", ["main", str(tmp_path / "missing.yaml")])
        with pytest.raises(SystemExit) as exc:
            main()
        assert exc.value.code == 1
