"""Data models. Everything is frozen except the per-asset ledger record."""
from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum

ZERO = Decimal(0)


class CooldownPhase(str, Enum):
    IDLE = "idle"
    COOLING_DOWN = "cooling_down"
    REDEEM_WINDOW_OPEN = "redeem_window_open"
    EXPIRED = "expired"


class LeverageState(str, Enum):
    UNLEVERED = "unlevered"
    LEVERED = "levered"


@dataclass
class AssetPosition:
    """Ledger record for one managed asset.

    ``last_balance``, ``net_gain`` and ``net_debt`` are written by the
    accounting ledger only; ``borrow_balance`` by the leverage engine only.
    """

    asset: str
    last_balance: Decimal = ZERO
    net_gain: Decimal = ZERO
    net_debt: Decimal = ZERO
    borrow_balance: Decimal = ZERO

    @property
    def leverage_state(self) -> LeverageState:
        if self.borrow_balance > 0:
            return LeverageState.LEVERED
        return LeverageState.UNLEVERED


@dataclass(frozen=True)
class LeverageParameters:
    """Per-asset leverage policy."""

    collateral_factor: Decimal
    reference_price: Decimal = Decimal(1)


@dataclass(frozen=True)
class UnfoldResult:
    asset: str
    requested: Decimal
    delevered: Decimal

    @property
    def shortfall(self) -> Decimal:
        return self.requested - self.delevered


@dataclass(frozen=True)
class ClaimResult:
    phase: CooldownPhase
    harvested: Decimal
    redeemed: Decimal
    cooldown_start: float | None


@dataclass(frozen=True)
class PositionSnapshot:
    """Read-only view of one asset, used for reporting."""

    asset: str
    idle: Decimal
    supplied: Decimal
    borrowed: Decimal
    total_value: Decimal
    last_balance: Decimal
    net_gain: Decimal
    net_debt: Decimal
    ltv: Decimal
    liquidation_threshold: Decimal
    leverage_state: LeverageState

    @property
    def unrealized_pl(self) -> Decimal:
        return self.net_gain - self.net_debt
