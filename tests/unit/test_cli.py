"""Unit tests for CLI argument parsing."""
from __future__ import annotations

import pytest

from treasury_yield.cli import build_parser


class TestBuildParser:
    @pytest.mark.parametrize("command", ["run", "check", "report"])
    def test_scenario_commands(self, command: str) -> None:
        parser = build_parser()
        args = parser.parse_args([command, "scenario.yaml"])
        assert args.command == command
        assert args.scenario == "scenario.yaml"

    def test_scenario_is_required(self) -> None:
        parser = build_parser()
        with pytest.raises(SystemExit):
            parser.parse_args(["run"])

    def test_config_flag(self) -> None:
        parser = build_parser()
        args = parser.parse_args(["--config", "/tmp/c.yaml", "run", "s.yaml"])
        assert args.config == "/tmp/c.yaml"

    def test_log_level_flag(self) -> None:
        parser = build_parser()
        args = parser.parse_args(["--log-level", "DEBUG", "check", "s.yaml"])
        assert args.log_level == "DEBUG"

    def test_log_level_rejects_unknown(self) -> None:
        parser = build_parser()
        with pytest.raises(SystemExit):
            parser.parse_args(["--log-level", "LOUD", "run", "s.yaml"])

    def test_no_command(self) -> None:
        parser = build_parser()
        args = parser.parse_args([])
        assert args.command is None
