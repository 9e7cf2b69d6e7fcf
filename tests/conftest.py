"""Shared test fixtures and sample data."""
from __future__ import annotations

import textwrap
from decimal import Decimal
from pathlib import Path
from typing import Any, Callable

import pytest

from treasury_yield.clock import ManualClock
from treasury_yield.config import (
    AppConfig,
    AssetConfig,
    CooldownConfig,
    EngineConfig,
    FlashLenderConfig,
    MarketConfig,
    MonitorConfig,
    NotificationsConfig,
    TelegramConfig,
    ThresholdsConfig,
    VenueConfig,
)
from treasury_yield.models import LeverageParameters
from treasury_yield.services import StaticCallerPolicy, TreasuryEngine
from treasury_yield.venues import SimulatedFlashLender, SimulatedStakedToken, VariableRatePool
from treasury_yield.wallet import Wallet

GOVERNOR = "governor"
START_TIME = 1_700_000_000.0


# ---------------------------------------------------------------------------
# Engine fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def clock() -> ManualClock:
    return ManualClock(START_TIME)


@pytest.fixture()
def wallet() -> Wallet:
    return Wallet("engine")


@pytest.fixture()
def treasury() -> Wallet:
    return Wallet("treasury", {"USDC": Decimal(10000), "DAI": Decimal(10000)})


@pytest.fixture()
def markets() -> dict[str, MarketConfig]:
    return {
        "USDC": MarketConfig(liquidity=Decimal(1_000_000), liquidation_threshold=Decimal("0.86")),
        "DAI": MarketConfig(liquidity=Decimal(1_000_000), liquidation_threshold=Decimal("0.86")),
    }


@pytest.fixture()
def venue(wallet: Wallet, markets: dict[str, MarketConfig]) -> VariableRatePool:
    return VariableRatePool(wallet, markets)


@pytest.fixture()
def flash_lender(wallet: Wallet) -> SimulatedFlashLender:
    return SimulatedFlashLender(
        wallet, {"USDC": Decimal(10_000_000), "DAI": Decimal(10_000_000)}
    )


@pytest.fixture()
def staking(wallet: Wallet, clock: ManualClock) -> SimulatedStakedToken:
    return SimulatedStakedToken(wallet, clock)


@pytest.fixture()
def build_engine(
    flash_lender: SimulatedFlashLender,
    staking: SimulatedStakedToken,
    wallet: Wallet,
    treasury: Wallet,
    clock: ManualClock,
) -> Callable[..., TreasuryEngine]:
    """Engine over ``venue`` with USDC and DAI registered at a 0.75 collateral factor."""

    def _build(venue: VariableRatePool, **kwargs: Any) -> TreasuryEngine:
        engine = TreasuryEngine(
            venue,
            flash_lender,
            staking,
            StaticCallerPolicy([GOVERNOR]),
            wallet=wallet,
            treasury=treasury,
            clock=clock,
            **kwargs,
        )
        for asset in ("USDC", "DAI"):
            engine.register_asset(
                GOVERNOR, asset, LeverageParameters(collateral_factor=Decimal("0.75"))
            )
        return engine

    return _build


@pytest.fixture()
def engine(
    venue: VariableRatePool, build_engine: Callable[..., TreasuryEngine]
) -> TreasuryEngine:
    return build_engine(venue)


# ---------------------------------------------------------------------------
# Config fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def sample_thresholds() -> ThresholdsConfig:
    return ThresholdsConfig(ltv_warning=70.0, ltv_critical=80.0)


@pytest.fixture()
def sample_app_config(sample_thresholds: ThresholdsConfig) -> AppConfig:
    return AppConfig(
        engine=EngineConfig(approved_callers=(GOVERNOR,)),
        cooldown=CooldownConfig(),
        venue=VenueConfig(
            kind="variable_rate",
            name="aave",
            markets={
                "USDC": MarketConfig(
                    liquidity=Decimal(1_000_000), liquidation_threshold=Decimal("0.86")
                ),
            },
        ),
        flash_lender=FlashLenderConfig(liquidity={"USDC": Decimal(10_000_000)}),
        assets={
            "USDC": AssetConfig(
                collateral_factor=Decimal("0.75"), treasury_funding=Decimal(10000)
            ),
        },
        monitor=MonitorConfig(thresholds=sample_thresholds),
        notifications=NotificationsConfig(
            telegram=TelegramConfig(
                enabled=True,
                alert_bot_token="fake-alert-token",
                log_bot_token="fake-log-token",
                chat_id="12345",
            ),
        ),
    )


# ---------------------------------------------------------------------------
# Config YAML fixture
# ---------------------------------------------------------------------------

SAMPLE_YAML = textwrap.dedent("""\
    engine:
      liquidation_warning_threshold: 0.8
      approved_callers: [governor]
    cooldown:
      cooldown_seconds: 864000
      unstake_window: 172800
    venue:
      kind: variable_rate
      name: aave
      markets:
        USDC:
          liquidity: 1000000
          liquidation_threshold: 0.86
        DAI:
          liquidity: 1000000
          liquidation_threshold: 0.86
    flash_lender:
      fee_rate: 0
      liquidity:
        USDC: 10000000
        DAI: 10000000
    assets:
      USDC:
        collateral_factor: 0.75
        treasury_funding: 10000
      DAI:
        collateral_factor: 0.75
        treasury_funding: 10000
    monitor:
      thresholds:
        ltv_warning: 70.0
        ltv_critical: 80.0
    notifications:
      telegram:
        enabled: false
        alert_bot_token: "tok1"
        log_bot_token: "tok2"
        chat_id: "999"
""")


@pytest.fixture()
def sample_yaml_path(tmp_path: Path) -> Path:
    cfg_file = tmp_path / "config.yaml"
    cfg_file.write_text(SAMPLE_YAML)
    return cfg_file
