"""Builds an engine over simulated venues and replays YAML scenarios.

A scenario is a list of steps, each a mapping with an ``op`` key::

    steps:
      - {op: push, asset: USDC, amount: 1000}
      - {op: accrue_interest, asset: USDC, amount: 12.5}
      - {op: fold, asset: USDC, amount: 2000}
      - {op: advance, seconds: 864000}
      - {op: pull, asset: USDC, amount: 5000, allow_failure: true}
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any, Callable

import yaml

from .clock import ManualClock
from .config import AppConfig, VenueConfig
from .errors import TreasuryError
from .models import LeverageParameters
from .services import StaticCallerPolicy, TreasuryEngine
from .venues import EulerPool, SimulatedFlashLender, SimulatedStakedToken, VariableRatePool
from .wallet import Wallet

logger = logging.getLogger(__name__)

DEFAULT_CALLER = "operator"

# Registry of venue factories keyed by venue kind.
_VENUE_FACTORIES: dict[str, Callable[[Wallet, VenueConfig, str], VariableRatePool]] = {
    "variable_rate": lambda wallet, cfg, reward_token: VariableRatePool(
        wallet, cfg.markets, cfg.name, cfg.cross_collateralized, reward_token
    ),
    "euler": lambda wallet, cfg, reward_token: EulerPool(
        wallet, cfg.markets, cfg.name, cfg.cross_collateralized, reward_token, cfg.precision
    ),
}


@dataclass
class Simulation:
    engine: TreasuryEngine
    venue: VariableRatePool
    flash_lender: SimulatedFlashLender
    staking: SimulatedStakedToken
    wallet: Wallet
    treasury: Wallet
    clock: ManualClock
    caller: str = DEFAULT_CALLER


@dataclass(frozen=True)
class StepOutcome:
    index: int
    op: str
    result: Any = None
    error: str | None = None


@dataclass
class ScenarioReport:
    outcomes: list[StepOutcome] = field(default_factory=list)

    @property
    def failures(self) -> list[StepOutcome]:
        return [o for o in self.outcomes if o.error is not None]


def build_simulation(config: AppConfig, clock: ManualClock | None = None) -> Simulation:
    """Wire an engine, its wallets and simulated venues from configuration."""
    clock = clock or ManualClock()
    factory = _VENUE_FACTORIES.get(config.venue.kind)
    if factory is None:
        raise ValueError(f"No venue factory for kind '{config.venue.kind}'")

    wallet = Wallet(config.engine.engine_holder)
    treasury = Wallet(
        config.engine.treasury_holder,
        {name: asset.treasury_funding for name, asset in config.assets.items()},
    )
    venue = factory(wallet, config.venue, config.cooldown.staked_token)
    flash_lender = SimulatedFlashLender(
        wallet, config.flash_lender.liquidity, config.flash_lender.fee_rate
    )
    staking = SimulatedStakedToken(
        wallet,
        clock,
        staked_token=config.cooldown.staked_token,
        reward_asset=config.cooldown.reward_asset,
        cooldown_seconds=config.cooldown.cooldown_seconds,
        unstake_window=config.cooldown.unstake_window,
    )

    approved = config.engine.approved_callers
    caller = approved[0] if approved else DEFAULT_CALLER
    engine = TreasuryEngine(
        venue,
        flash_lender,
        staking,
        StaticCallerPolicy((*approved, caller)),
        wallet=wallet,
        treasury=treasury,
        clock=clock,
        liquidation_warning_threshold=config.engine.liquidation_warning_threshold,
        liquidation_check=config.engine.liquidation_check,
        cooldown_seconds=config.cooldown.cooldown_seconds,
        unstake_window=config.cooldown.unstake_window,
        retrigger_during_cooldown=config.cooldown.retrigger_during_cooldown,
    )
    for name, asset in config.assets.items():
        engine.register_asset(
            caller,
            name,
            LeverageParameters(
                collateral_factor=asset.collateral_factor,
                reference_price=asset.reference_price,
            ),
        )

    logger.info(
        "Simulation ready: %s venue '%s', %d asset(s)",
        config.venue.kind, config.venue.name, len(config.assets),
    )
    return Simulation(engine, venue, flash_lender, staking, wallet, treasury, clock, caller)


# ---------------------------------------------------------------------------
# Scenario steps
# ---------------------------------------------------------------------------

_NUMERIC_KEYS = ("amount", "value", "seconds")


def _number(value: Any, where: str) -> Decimal:
    try:
        return Decimal(str(value))
    except InvalidOperation:
        raise ValueError(f"{where}: not a number: {value!r}") from None


def _dec(step: dict[str, Any], key: str = "amount") -> Decimal:
    if key not in step:
        raise ValueError(f"Step '{step.get('op')}' needs '{key}'")
    return _number(step[key], f"Step '{step.get('op')}' {key}")


def _batch_args(step: dict[str, Any]) -> tuple[list[str], list[Decimal]]:
    where = f"Step '{step.get('op')}' amounts"
    return list(step.get("assets", [])), [_number(a, where) for a in step.get("amounts", [])]


_STEPS: dict[str, Callable[[Simulation, dict[str, Any]], Any]] = {
    "push": lambda sim, s: sim.engine.push(sim.caller, s["asset"], _dec(s)),
    "pull": lambda sim, s: sim.engine.pull(sim.caller, s["asset"], _dec(s)),
    "fold": lambda sim, s: sim.engine.fold(sim.caller, s["asset"], _dec(s)),
    "unfold": lambda sim, s: sim.engine.unfold(sim.caller, s["asset"], _dec(s)),
    "push_many": lambda sim, s: sim.engine.push_many(sim.caller, *_batch_args(s)),
    "pull_many": lambda sim, s: sim.engine.pull_many(sim.caller, *_batch_args(s)),
    "fold_many": lambda sim, s: sim.engine.fold_many(sim.caller, *_batch_args(s)),
    "unfold_many": lambda sim, s: sim.engine.unfold_many(sim.caller, *_batch_args(s)),
    "claim": lambda sim, s: sim.engine.claim(sim.caller, s.get("assets")),
    "start_cooldown": lambda sim, s: sim.engine.start_cooldown(sim.caller),
    "toggle_liquidation_check": lambda sim, s: sim.engine.toggle_liquidation_check(sim.caller),
    "set_liquidation_warning_threshold": lambda sim, s: (
        sim.engine.set_liquidation_warning_threshold(sim.caller, _dec(s, "value"))
    ),
    "fund": lambda sim, s: sim.treasury.credit(s["asset"], _dec(s)),
    "accrue_interest": lambda sim, s: sim.venue.accrue_interest(s["asset"], _dec(s)),
    "accrue_debt_interest": lambda sim, s: sim.venue.accrue_debt_interest(s["asset"], _dec(s)),
    "accrue_rewards": lambda sim, s: sim.venue.accrue_rewards(s["asset"], _dec(s)),
    "set_liquidity": lambda sim, s: sim.venue.set_liquidity(s["asset"], _dec(s)),
    "set_liquidation_threshold": lambda sim, s: (
        sim.venue.set_liquidation_threshold(s["asset"], _dec(s, "value"))
    ),
    "advance": lambda sim, s: sim.clock.advance(float(_dec(s, "seconds"))),
}


def load_scenario(path: str | Path) -> list[dict[str, Any]]:
    """Read a scenario file: a YAML list of steps, or a mapping with ``steps``.

    Unknown ops and non-numeric amounts are rejected here, before any step runs.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Scenario file not found: {path}")
    with open(path) as f:
        raw = yaml.safe_load(f) or []

    steps = raw.get("steps", []) if isinstance(raw, dict) else raw
    if not isinstance(steps, list):
        raise ValueError(f"Scenario {path} must be a list of steps")
    for i, step in enumerate(steps):
        if not isinstance(step, dict) or step.get("op") not in _STEPS:
            raise ValueError(f"Scenario step {i}: unknown op in {step!r}")
        for key in _NUMERIC_KEYS:
            if key in step:
                _number(step[key], f"Scenario step {i} {key}")
        for amount in step.get("amounts", []):
            _number(amount, f"Scenario step {i} amounts")
    return steps


def run_scenario(sim: Simulation, steps: list[dict[str, Any]]) -> ScenarioReport:
    """Replay ``steps`` in order.

    A failing step aborts the scenario unless it sets ``allow_failure``, in
    which case the error is recorded and the next step runs. A malformed
    step raises ``ValueError`` either way.
    """
    report = ScenarioReport()
    for index, step in enumerate(steps):
        op = step["op"]
        try:
            result = _STEPS[op](sim, step)
        except TreasuryError as e:
            if not step.get("allow_failure", False):
                raise
            logger.warning("Step %d (%s) failed: %s", index, op, e)
            report.outcomes.append(StepOutcome(index, op, error=str(e)))
            continue
        logger.info("Step %d (%s) done", index, op)
        report.outcomes.append(StepOutcome(index, op, result=result))
    return report
