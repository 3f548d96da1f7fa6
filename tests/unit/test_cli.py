"""Unit tests for CLI argument parsing."""
from __future__ import annotations

from synthdollar.cli import build_parser


class TestBuildParser:
    def test_prices_command(self) -> None:
        parser = build_parser()
        args = parser.parse_args(["prices"])
        assert args.command == "prices"

    def test_simulate_command(self) -> None:
        parser = build_parser()
        args = parser.parse_args(["simulate", "scenarios/price_crash.yaml"])
        assert args.command == "simulate"
        assert args.scenario == "scenarios/price_crash.yaml"
        assert args.strict is False

    def test_simulate_strict(self) -> None:
        parser = build_parser()
        args = parser.parse_args(["simulate", "s.yaml", "--strict"])
        assert args.strict is True

    def test_config_flag(self) -> None:
        parser = build_parser()
        args = parser.parse_args(["--config", "/tmp/c.yaml", "prices"])
        assert args.config == "/tmp/c.yaml"

    def test_log_level_flag(self) -> None:
        parser = build_parser()
        args = parser.parse_args(["--log-level", "DEBUG", "prices"])
        assert args.log_level == "DEBUG"

    def test_no_command(self) -> None:
        parser = build_parser()
        args = parser.parse_args([])
        assert args.command is None
