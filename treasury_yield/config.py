"""Configuration loader — reads config.yaml, interpolates env vars, validates."""
from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field
from decimal import Decimal
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

logger = logging.getLogger(__name__)

VENUE_KINDS = ("variable_rate", "euler")

# ---------------------------------------------------------------------------
# Frozen config dataclasses
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class EngineConfig:
    liquidation_warning_threshold: Decimal = Decimal("0.8")
    liquidation_check: bool = False
    approved_callers: tuple[str, ...] = ()
    engine_holder: str = "engine"
    treasury_holder: str = "treasury"


@dataclass(frozen=True)
class CooldownConfig:
    cooldown_seconds: int = 864000
    unstake_window: int = 172800
    retrigger_during_cooldown: bool = False
    staked_token: str = "stkAAVE"
    reward_asset: str = "AAVE"


@dataclass(frozen=True)
class MarketConfig:
    liquidity: Decimal = Decimal(0)
    liquidation_threshold: Decimal = Decimal("0.86")


@dataclass(frozen=True)
class VenueConfig:
    kind: str = "variable_rate"
    name: str = "aave"
    cross_collateralized: bool = False
    precision: int = 6
    markets: dict[str, MarketConfig] = field(default_factory=dict)


@dataclass(frozen=True)
class FlashLenderConfig:
    fee_rate: Decimal = Decimal(0)
    liquidity: dict[str, Decimal] = field(default_factory=dict)


@dataclass(frozen=True)
class AssetConfig:
    collateral_factor: Decimal = Decimal("0.75")
    reference_price: Decimal = Decimal(1)
    treasury_funding: Decimal = Decimal(0)


@dataclass(frozen=True)
class ThresholdsConfig:
    ltv_warning: float = 70.0
    ltv_critical: float = 80.0


@dataclass(frozen=True)
class MonitorConfig:
    thresholds: ThresholdsConfig = field(default_factory=ThresholdsConfig)


@dataclass(frozen=True)
class TelegramConfig:
    enabled: bool = False
    alert_bot_token: str = ""
    log_bot_token: str = ""
    chat_id: str = ""


@dataclass(frozen=True)
class NotificationsConfig:
    telegram: TelegramConfig = field(default_factory=TelegramConfig)


@dataclass(frozen=True)
class AppConfig:
    engine: EngineConfig = field(default_factory=EngineConfig)
    cooldown: CooldownConfig = field(default_factory=CooldownConfig)
    venue: VenueConfig = field(default_factory=VenueConfig)
    flash_lender: FlashLenderConfig = field(default_factory=FlashLenderConfig)
    assets: dict[str, AssetConfig] = field(default_factory=dict)
    monitor: MonitorConfig = field(default_factory=MonitorConfig)
    notifications: NotificationsConfig = field(default_factory=NotificationsConfig)


# ---------------------------------------------------------------------------
# Env interpolation
# ---------------------------------------------------------------------------

_ENV_VAR_RE = re.compile(r"\$\{([^}]+)}")


def _interpolate_env(value: Any) -> Any:
    """Recursively replace ${VAR} references with environment variable values."""
    if isinstance(value, str):
        return _ENV_VAR_RE.sub(lambda m: os.environ.get(m.group(1), ""), value)
    if isinstance(value, dict):
        return {k: _interpolate_env(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_interpolate_env(item) for item in value]
    return value


def _dec(value: Any, default: Decimal | int | str = 0) -> Decimal:
    """Parse a YAML scalar as a Decimal without going through binary floats."""
    if value is None:
        return Decimal(default)
    return Decimal(str(value))


def _flag(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes", "on")
    return bool(value)


# ---------------------------------------------------------------------------
# YAML → dataclass builders
# ---------------------------------------------------------------------------


def _build_engine(raw: dict[str, Any]) -> EngineConfig:
    return EngineConfig(
        liquidation_warning_threshold=_dec(
            raw.get("liquidation_warning_threshold"), "0.8"
        ),
        liquidation_check=_flag(raw.get("liquidation_check", False)),
        approved_callers=tuple(raw.get("approved_callers", [])),
        engine_holder=raw.get("engine_holder", "engine"),
        treasury_holder=raw.get("treasury_holder", "treasury"),
    )


def _build_cooldown(raw: dict[str, Any]) -> CooldownConfig:
    return CooldownConfig(
        cooldown_seconds=int(raw.get("cooldown_seconds", 864000)),
        unstake_window=int(raw.get("unstake_window", 172800)),
        retrigger_during_cooldown=_flag(raw.get("retrigger_during_cooldown", False)),
        staked_token=raw.get("staked_token", "stkAAVE"),
        reward_asset=raw.get("reward_asset", "AAVE"),
    )


def _build_venue(raw: dict[str, Any]) -> VenueConfig:
    markets: dict[str, MarketConfig] = {}
    for asset, cfg in raw.get("markets", {}).items():
        cfg = cfg or {}
        markets[asset] = MarketConfig(
            liquidity=_dec(cfg.get("liquidity"), 0),
            liquidation_threshold=_dec(cfg.get("liquidation_threshold"), "0.86"),
        )
    return VenueConfig(
        kind=raw.get("kind", "variable_rate"),
        name=raw.get("name", "aave"),
        cross_collateralized=_flag(raw.get("cross_collateralized", False)),
        precision=int(raw.get("precision", 6)),
        markets=markets,
    )


def _build_flash_lender(raw: dict[str, Any]) -> FlashLenderConfig:
    return FlashLenderConfig(
        fee_rate=_dec(raw.get("fee_rate"), 0),
        liquidity={
            asset: _dec(amount) for asset, amount in raw.get("liquidity", {}).items()
        },
    )


def _build_assets(raw: dict[str, Any]) -> dict[str, AssetConfig]:
    assets: dict[str, AssetConfig] = {}
    for name, cfg in raw.items():
        cfg = cfg or {}
        assets[name] = AssetConfig(
            collateral_factor=_dec(cfg.get("collateral_factor"), "0.75"),
            reference_price=_dec(cfg.get("reference_price"), 1),
            treasury_funding=_dec(cfg.get("treasury_funding"), 0),
        )
    return assets


def _build_monitor(raw: dict[str, Any]) -> MonitorConfig:
    thresholds = raw.get("thresholds", {})
    return MonitorConfig(
        thresholds=ThresholdsConfig(
            ltv_warning=float(thresholds.get("ltv_warning", 70.0)),
            ltv_critical=float(thresholds.get("ltv_critical", 80.0)),
        ),
    )


def _build_notifications(raw: dict[str, Any]) -> NotificationsConfig:
    tg = raw.get("telegram", {})
    return NotificationsConfig(
        telegram=TelegramConfig(
            enabled=_flag(tg.get("enabled", False)),
            alert_bot_token=tg.get("alert_bot_token", ""),
            log_bot_token=tg.get("log_bot_token", ""),
            chat_id=str(tg.get("chat_id", "")),
        ),
    )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_config(config_path: str | Path | None = None) -> AppConfig:
    """Load and validate application configuration from YAML + .env.

    Args:
        config_path: Path to config.yaml. Defaults to ``config.yaml`` in the
            project root (one level up from the package).
    """
    load_dotenv()

    if config_path is None:
        config_path = Path(__file__).resolve().parent.parent / "config.yaml"
    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path) as f:
        raw = yaml.safe_load(f) or {}

    raw = _interpolate_env(raw)

    cfg = AppConfig(
        engine=_build_engine(raw.get("engine", {})),
        cooldown=_build_cooldown(raw.get("cooldown", {})),
        venue=_build_venue(raw.get("venue", {})),
        flash_lender=_build_flash_lender(raw.get("flash_lender", {})),
        assets=_build_assets(raw.get("assets", {})),
        monitor=_build_monitor(raw.get("monitor", {})),
        notifications=_build_notifications(raw.get("notifications", {})),
    )

    validate(cfg)
    logger.info("Configuration loaded from %s", config_path)
    return cfg


def validate(cfg: AppConfig) -> None:
    """Raise on invalid configuration."""
    if not cfg.assets:
        raise ValueError("At least one asset must be configured")

    threshold = cfg.engine.liquidation_warning_threshold
    if not Decimal(0) < threshold < Decimal(1):
        raise ValueError(
            f"liquidation_warning_threshold must be in (0, 1), got {threshold}"
        )

    if cfg.venue.kind not in VENUE_KINDS:
        raise ValueError(f"Unknown venue kind '{cfg.venue.kind}'")

    if cfg.cooldown.cooldown_seconds <= 0 or cfg.cooldown.unstake_window <= 0:
        raise ValueError("Cooldown period and unstake window must be positive")

    for name, market in cfg.venue.markets.items():
        if not Decimal(0) < market.liquidation_threshold < Decimal(1):
            raise ValueError(
                f"Market '{name}' liquidation_threshold must be in (0, 1), "
                f"got {market.liquidation_threshold}"
            )

    for name, asset in cfg.assets.items():
        market = cfg.venue.markets.get(name)
        if market is None:
            raise ValueError(f"Asset '{name}' has no market on venue '{cfg.venue.name}'")
        if not Decimal(0) < asset.collateral_factor < market.liquidation_threshold:
            raise ValueError(
                f"Asset '{name}' collateral_factor {asset.collateral_factor} must be "
                f"positive and below the venue liquidation threshold "
                f"{market.liquidation_threshold}"
            )
        if asset.reference_price <= 0:
            raise ValueError(f"Asset '{name}' reference_price must be positive")
