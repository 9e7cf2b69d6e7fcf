"""End-to-end tests: config file -> simulated engine -> scenario replay -> CLI."""
from __future__ import annotations

import sys
import textwrap
from decimal import Decimal
from pathlib import Path

import pytest

from treasury_yield import cli
from treasury_yield.config import load_config
from treasury_yield.errors import CloseToLiquidation, InsufficientBalance
from treasury_yield.models import CooldownPhase
from treasury_yield.simulation import build_simulation, load_scenario, run_scenario
from treasury_yield.venues import EulerPool

SCENARIO = textwrap.dedent("""\
    steps:
      - {op: push, asset: USDC, amount: 1000}
      - {op: accrue_interest, asset: USDC, amount: 10}
      - {op: fold, asset: USDC, amount: 2000}
      - {op: accrue_rewards, asset: USDC, amount: 40}
      - {op: claim}
      - {op: advance, seconds: 864000}
      - {op: claim}
      - {op: unfold, asset: USDC, amount: 2000}
      - {op: set_liquidity, asset: USDC, amount: 300}
      - {op: pull, asset: USDC, amount: 1010}
""")


@pytest.fixture()
def scenario_path(tmp_path: Path) -> Path:
    path = tmp_path / "scenario.yaml"
    path.write_text(SCENARIO)
    return path


class TestBuildSimulation:
    def test_assets_registered_and_funded(self, sample_yaml_path: Path) -> None:
        sim = build_simulation(load_config(sample_yaml_path))
        assert sim.engine.assets() == ["USDC", "DAI"]
        assert sim.treasury.balance_of("USDC") == Decimal(10000)
        assert sim.caller == "governor"

    def test_euler_venue(self, sample_yaml_path: Path) -> None:
        text = sample_yaml_path.read_text().replace("kind: variable_rate", "kind: euler")
        sample_yaml_path.write_text(text)
        sim = build_simulation(load_config(sample_yaml_path))
        assert isinstance(sim.venue, EulerPool)


class TestRunScenario:
    def test_full_cycle(self, sample_yaml_path: Path, scenario_path: Path) -> None:
        sim = build_simulation(load_config(sample_yaml_path))

        report = run_scenario(sim, load_scenario(scenario_path))

        assert report.failures == []
        outcomes = {o.op: o.result for o in report.outcomes}
        assert outcomes["fold"] == Decimal(2000)
        assert outcomes["unfold"].delevered == Decimal(2000)
        assert outcomes["pull"] == Decimal(300)

        position = sim.engine.registry.position("USDC")
        assert position.net_gain == Decimal(10)
        assert position.borrow_balance == 0
        assert position.last_balance == Decimal(710)
        assert sim.wallet.balance_of("AAVE") == Decimal(40)
        assert sim.engine.cooldown_phase() is CooldownPhase.IDLE

    def test_failure_aborts_by_default(self, sample_yaml_path: Path) -> None:
        sim = build_simulation(load_config(sample_yaml_path))
        with pytest.raises(InsufficientBalance):
            run_scenario(sim, [{"op": "push", "asset": "USDC", "amount": 50000}])

    def test_allowed_failure_recorded(self, sample_yaml_path: Path) -> None:
        sim = build_simulation(load_config(sample_yaml_path))
        steps = [
            {"op": "push", "asset": "USDC", "amount": 1000},
            {"op": "set_liquidation_warning_threshold", "value": "0.5"},
            {"op": "fold", "asset": "USDC", "amount": 3000, "allow_failure": True},
            {"op": "push", "asset": "USDC", "amount": 0},
        ]

        report = run_scenario(sim, steps)

        assert [o.op for o in report.failures] == ["fold"]
        assert len(report.outcomes) == 4
        assert sim.venue.valuation_of_borrowed("USDC") == 0

    def test_safety_violation_propagates(self, sample_yaml_path: Path) -> None:
        sim = build_simulation(load_config(sample_yaml_path))
        steps = [
            {"op": "push", "asset": "USDC", "amount": 1000},
            {"op": "set_liquidation_warning_threshold", "value": "0.5"},
            {"op": "fold", "asset": "USDC", "amount": 3000},
        ]
        with pytest.raises(CloseToLiquidation):
            run_scenario(sim, steps)

    def test_lowered_liquidation_threshold_blocks_pull(self, sample_yaml_path: Path) -> None:
        sim = build_simulation(load_config(sample_yaml_path))
        steps = [
            {"op": "push", "asset": "USDC", "amount": 1000},
            {"op": "fold", "asset": "USDC", "amount": 1000},
            {"op": "set_liquidation_threshold", "asset": "USDC", "value": "0.5"},
            {"op": "pull", "asset": "USDC", "amount": 500},
        ]

        report = run_scenario(sim, steps)

        assert report.outcomes[-1].result == 0
        assert sim.venue.liquidation_threshold("USDC") == Decimal("0.5")
        assert sim.treasury.balance_of("USDC") == Decimal(9000)
        assert sim.engine.registry.position("USDC").last_balance == Decimal(1000)

    def test_malformed_amount_is_not_an_allowed_failure(self, sample_yaml_path: Path) -> None:
        sim = build_simulation(load_config(sample_yaml_path))
        steps = [{"op": "push", "asset": "USDC", "amount": "lots", "allow_failure": True}]

        with pytest.raises(ValueError, match="not a number"):
            run_scenario(sim, steps)
        assert sim.treasury.balance_of("USDC") == Decimal(10000)


class TestLoadScenario:
    def test_plain_list(self, tmp_path: Path) -> None:
        path = tmp_path / "s.yaml"
        path.write_text("- {op: advance, seconds: 10}\n")
        assert load_scenario(path) == [{"op": "advance", "seconds": 10}]

    def test_unknown_op(self, tmp_path: Path) -> None:
        path = tmp_path / "s.yaml"
        path.write_text("- {op: liquidate, asset: USDC}\n")
        with pytest.raises(ValueError, match="unknown op"):
            load_scenario(path)

    @pytest.mark.parametrize(
        "text",
        [
            "- {op: push, asset: USDC, amount: lots}\n",
            "- {op: advance, seconds: soon}\n",
            "- {op: push_many, assets: [USDC, DAI], amounts: [1, two]}\n",
        ],
    )
    def test_non_numeric_field(self, tmp_path: Path, text: str) -> None:
        path = tmp_path / "s.yaml"
        path.write_text(text)
        with pytest.raises(ValueError, match="not a number"):
            load_scenario(path)

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            load_scenario(tmp_path / "missing.yaml")


class TestMain:
    def test_run_prints_report(
        self,
        sample_yaml_path: Path,
        scenario_path: Path,
        monkeypatch: pytest.MonkeyPatch,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        monkeypatch.setattr(
            sys,
            "argv",
            ["treasury-yield", "--config", str(sample_yaml_path), "run", str(scenario_path)],
        )

        cli.main()

        out = capsys.readouterr().out
        assert "Treasury Report" in out
        assert "USDC" in out

    def test_no_command_exits(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(sys, "argv", ["treasury-yield"])
        with pytest.raises(SystemExit):
            cli.main()
