"""In-memory variable-rate lending pool (Aave-like)."""
from __future__ import annotations

import copy
import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from ..config import MarketConfig
from ..errors import VenueError
from ..models import ZERO
from ..wallet import Wallet

logger = logging.getLogger(__name__)


@dataclass
class _Market:
    cash: Decimal
    liquidation_threshold: Decimal
    supplied: Decimal = ZERO
    debt: Decimal = ZERO
    pending_rewards: Decimal = ZERO
    # Shares-to-asset exchange rate, stays 1 on unit-accounted venues.
    rate: Decimal = Decimal(1)


class VariableRatePool:
    """Lending pool holding the engine's collateral and debt per asset.

    ``cash`` is the pool's spot liquidity: withdrawals and borrows are capped
    by it even when the engine's supplied balance is larger.
    """

    def __init__(
        self,
        wallet: Wallet,
        markets: dict[str, MarketConfig],
        name: str = "aave",
        cross_collateralized: bool = False,
        reward_token: str = "stkAAVE",
    ) -> None:
        self._wallet = wallet
        self._name = name
        self._cross_collateralized = cross_collateralized
        self._reward_token = reward_token
        self._markets: dict[str, _Market] = {
            asset: _Market(
                cash=Decimal(cfg.liquidity),
                liquidation_threshold=Decimal(cfg.liquidation_threshold),
            )
            for asset, cfg in markets.items()
        }
        self._reachable = True

    @property
    def venue_name(self) -> str:
        return self._name

    @property
    def cross_collateralized(self) -> bool:
        return self._cross_collateralized

    def _market(self, asset: str) -> _Market:
        market = self._markets.get(asset)
        if market is None:
            raise VenueError(f"{self._name}: no market for '{asset}'")
        return market

    # ------------------------------------------------------------------
    # Supply-side bookkeeping (overridden by share-based venues)
    # ------------------------------------------------------------------

    def _supplied_value(self, market: _Market) -> Decimal:
        return market.supplied

    def _add_supply(self, market: _Market, amount: Decimal) -> None:
        market.supplied += amount

    def _remove_supply(self, market: _Market, amount: Decimal) -> None:
        market.supplied -= amount

    # ------------------------------------------------------------------
    # Venue adapter operations
    # ------------------------------------------------------------------

    def supply(self, asset: str, amount: Decimal) -> None:
        market = self._market(asset)
        self._wallet.debit(asset, amount)
        market.cash += amount
        self._add_supply(market, amount)
        logger.debug("%s: supplied %s %s", self._name, amount, asset)

    def withdraw(self, asset: str, amount: Decimal) -> Decimal:
        market = self._market(asset)
        actual = min(amount, self.max_withdrawable(asset))
        if actual <= 0:
            return ZERO
        self._remove_supply(market, actual)
        market.cash -= actual
        self._wallet.credit(asset, actual)
        if actual < amount:
            logger.info(
                "%s: withdrew %s of %s %s requested", self._name, actual, amount, asset
            )
        return actual

    def borrow(self, asset: str, amount: Decimal) -> None:
        market = self._market(asset)
        if amount > market.cash:
            raise VenueError(
                f"{self._name}: {amount} {asset} requested, {market.cash} available"
            )
        limit = market.liquidation_threshold * self._supplied_value(market)
        if market.debt + amount > limit:
            raise VenueError(
                f"{self._name}: borrowing {amount} {asset} exceeds collateral limit {limit}"
            )
        market.debt += amount
        market.cash -= amount
        self._wallet.credit(asset, amount)

    def repay(self, asset: str, amount: Decimal) -> None:
        market = self._market(asset)
        repaid = min(amount, market.debt)
        self._wallet.debit(asset, repaid)
        market.debt -= repaid
        market.cash += repaid

    def valuation_of_supplied(self, asset: str) -> Decimal:
        self._ensure_reachable()
        return self._supplied_value(self._market(asset))

    def valuation_of_borrowed(self, asset: str) -> Decimal:
        self._ensure_reachable()
        return self._market(asset).debt

    def max_withdrawable(self, asset: str) -> Decimal:
        market = self._market(asset)
        supplied = self._supplied_value(market)
        locked = market.debt / market.liquidation_threshold if market.debt else ZERO
        return max(min(supplied - locked, market.cash), ZERO)

    def liquidation_threshold(self, asset: str) -> Decimal:
        return self._market(asset).liquidation_threshold

    def claim_rewards(self, assets: list[str]) -> Decimal:
        total = ZERO
        for asset in assets:
            market = self._market(asset)
            total += market.pending_rewards
            market.pending_rewards = ZERO
        if total:
            self._wallet.credit(self._reward_token, total)
            logger.info("%s: harvested %s %s", self._name, total, self._reward_token)
        return total

    # ------------------------------------------------------------------
    # Market simulation hooks
    # ------------------------------------------------------------------

    def accrue_interest(self, asset: str, amount: Decimal) -> None:
        """Grow the engine's supplied balance as if interest had accrued."""
        self._add_supply(self._market(asset), amount)

    def accrue_debt_interest(self, asset: str, amount: Decimal) -> None:
        self._market(asset).debt += amount

    def accrue_rewards(self, asset: str, amount: Decimal) -> None:
        self._market(asset).pending_rewards += amount

    def set_liquidity(self, asset: str, cash: Decimal) -> None:
        self._market(asset).cash = cash

    def set_liquidation_threshold(self, asset: str, threshold: Decimal) -> None:
        self._market(asset).liquidation_threshold = threshold

    def set_reachable(self, reachable: bool) -> None:
        self._reachable = reachable

    def _ensure_reachable(self) -> None:
        if not self._reachable:
            raise VenueError(f"{self._name}: venue unreachable")

    # ------------------------------------------------------------------
    # Checkpointing
    # ------------------------------------------------------------------

    def snapshot(self) -> Any:
        return copy.deepcopy(self._markets)

    def restore(self, state: Any) -> None:
        self._markets = state
