"""Tests for the command-line entry point."""

import sys

import pytest

from impulsesense import cli
from impulsesense.config import loader


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Run every command from an empty directory with a fresh global config."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(loader, "_config", None)


def run_cli(monkeypatch, *argv: str) -> int:
    monkeypatch.setattr(sys, "argv", ["impulsesense", *argv])
    return cli.main()


class TestCli:
    def test_no_command_prints_help(self, monkeypatch, capsys):
        assert run_cli(monkeypatch) == 0
        assert "simulate" in capsys.readouterr().out

    def test_levels(self, monkeypatch, capsys):
        assert run_cli(monkeypatch, "levels") == 0
        out = capsys.readouterr().out
        assert "Safe Mode" in out or "L5" in out

    def test_config_ok(self, monkeypatch, capsys):
        assert run_cli(monkeypatch, "config") == 0
        assert "OK" in capsys.readouterr().out

    def test_config_errors(self, tmp_path, monkeypatch):
        path = tmp_path / "broken_config.py"
        path.write_text("TICK_INTERVAL = -1\n")

        assert run_cli(monkeypatch, "--config", str(path), "config") == 1

    def test_simulate_scenario(self, tmp_path, monkeypatch, capsys):
        path = tmp_path / "spree.yaml"
        path.write_text(
            "name: spree\n"
            "seed: 3\n"
            "steps:\n"
            "  - view: {id: 1, title: Air Max 90, brand: Nike}\n"
            "  - add_to_cart\n"
            "  - add_to_cart\n"
            "  - tick: 3\n"
        )

        assert run_cli(monkeypatch, "simulate", str(path)) == 0
        assert "Steps: 4" in capsys.readouterr().out

    def test_simulate_missing_file(self, tmp_path, monkeypatch):
        assert run_cli(monkeypatch, "simulate", str(tmp_path / "nope.yaml")) == 1

    def test_simulate_random_walk(self, monkeypatch, capsys):
        assert run_cli(monkeypatch, "simulate", "--ticks", "30", "--seed", "5") == 0
        assert "random-30" in capsys.readouterr().out
