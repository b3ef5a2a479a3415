"""
Tests for the terminal CLI.
"""
import pytest
import sys
import os

import yaml

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from bracket.game import GameStateMachine
from main import load_items, main, play


def _scripted(answers):
    answers = iter(answers)
    return lambda prompt: next(answers)


class TestLoadItems:
    """Tests for reading item files."""

    def test_list_of_titles(self, tmp_path):
        """Test a plain YAML list."""
        path = tmp_path / 'items.yaml'
        path.write_text(yaml.dump(['Cats', 'Dogs', 'Birds']))
        assert load_items(str(path)) == ['Cats', 'Dogs', 'Birds']

    def test_items_key(self, tmp_path):
        """Test a mapping with an items list."""
        path = tmp_path / 'items.yaml'
        path.write_text(yaml.dump({'items': [{'id': 'c', 'title': 'Cats'}]}))
        assert load_items(str(path)) == [{'id': 'c', 'title': 'Cats'}]

    def test_not_a_list(self, tmp_path):
        """Test other shapes are rejected."""
        path = tmp_path / 'items.yaml'
        path.write_text('just a string')
        with pytest.raises(ValueError):
            load_items(str(path))


class TestPlay:
    """Tests for the prompt loop."""

    def test_play_to_the_end(self):
        """Test picks, an undo and the printed winner."""
        machine = GameStateMachine.new(['A', 'B', 'C', 'D'], 4)
        output = []
        winner = play(machine, read=_scripted(['2', 'u', '1', '2', '1']), write=output.append)
        # A beats B (after undoing B), D beats C, A wins the final
        assert winner.id == 'A'
        assert any('Winner: A' in line for line in output)
        assert any('Semifinal' in line for line in output)

    def test_quit(self):
        """Test quitting leaves the game unfinished."""
        machine = GameStateMachine.new(['A', 'B'], 2)
        assert play(machine, read=_scripted(['q']), write=lambda line: None) is None
        assert machine.is_completed is False

    def test_nothing_to_undo_and_unknown(self):
        """Test feedback for an empty undo and an unknown command."""
        machine = GameStateMachine.new(['A', 'B'], 2)
        output = []
        play(machine, read=_scripted(['u', 'x', 'r', '1']), write=output.append)
        assert 'Nothing to undo.' in output
        assert 'Unknown command: x' in output
        assert 'Restarted.' in output
        assert machine.tournament.winner.id == 'A'


class TestMain:
    """Tests for the command line entry point."""

    def test_missing_file(self, tmp_path, capsys):
        """Test a missing file is reported."""
        assert main([str(tmp_path / 'none.yaml')]) == 1
        assert 'could not load items' in capsys.readouterr().err

    def test_invalid_size(self, tmp_path, capsys):
        """Test a bad bracket size is reported."""
        path = tmp_path / 'items.yaml'
        path.write_text(yaml.dump(['A', 'B', 'C']))
        assert main([str(path), '--size', '6']) == 1
        assert 'must be one of' in capsys.readouterr().err

    def test_oversized_size(self, tmp_path, capsys):
        """Test sizes above the largest selectable bracket are refused."""
        path = tmp_path / 'items.yaml'
        path.write_text(yaml.dump(['A', 'B']))
        assert main([str(path), '--size', str(2 ** 20)]) == 1
        assert 'must be one of' in capsys.readouterr().err

    def test_runs_with_default_size(self, tmp_path, monkeypatch, capsys):
        """Test a full run picking the first item each time."""
        path = tmp_path / 'items.yaml'
        path.write_text(yaml.dump(['A', 'B', 'C']))
        monkeypatch.setattr('builtins.input', lambda prompt: '1')
        assert main([str(path), '--language', 'ko']) == 0
        out = capsys.readouterr().out
        assert 'Winner: A' in out
        assert '준결승' in out
