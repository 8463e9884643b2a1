"""
Tests for the command line entry point.
"""

import json

from opmaze.main import main


def test_default_run(capsys):
    assert main(['--seed', '3']) == 0
    out = capsys.readouterr().out
    assert "MAZE 7x7" in out
    assert "start=(0, 0)" in out
    assert "ACTIVATION PUZZLE" not in out


def test_solve(capsys):
    assert main(['--seed', '3', '--solve', '--puzzle-seed', '1']) == 0
    out = capsys.readouterr().out
    assert "ACTIVATION PUZZLE" in out
    assert "Next targets:" in out


def test_crop(capsys):
    assert main(['--crop', '0', '0', '4', '4', '--not-fully-connected', '-s', '0.5']) == 0
    assert "MAZE 5x5" in capsys.readouterr().out


def test_config_file(tmp_path, capsys):
    path = tmp_path / "settings.json"
    path.write_text(json.dumps({'rows': 8, 'cols': 9}))
    assert main(['--config', str(path)]) == 0
    assert "MAZE 8x9" in capsys.readouterr().out


def test_invalid_grid_fails():
    assert main(['--rows', '3']) == 1
