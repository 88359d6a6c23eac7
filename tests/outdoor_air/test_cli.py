"""Tests for CLI argument handling."""

import pytest
import typer

from src.outdoor_air import cli


@pytest.mark.fail_loud
def test_unknown_activity_exits_cleanly(monkeypatch, capsys):
    """A typo in --activity prints a message and exits 2 before any lookup."""

    def _no_config(**overrides):
        raise AssertionError("config should not load for an invalid activity")

    monkeypatch.setattr(cli, "load_config", _no_config)

    with pytest.raises(typer.Exit) as exc_info:
        cli.spots(activity="skydiving")

    assert exc_info.value.exit_code == 2
    out = capsys.readouterr().out
    assert "Invalid activity" in out
    assert "skydiving" in out
