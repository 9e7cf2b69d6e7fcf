"""In-memory share-based lending pool (Euler-like).

Deposits are converted into pool shares at the current exchange rate and
every conversion rounds in the pool's favour at ``precision`` decimals, so
the engine's supplied valuation can sit a few units below what was
deposited.
"""
from __future__ import annotations

import logging
from decimal import ROUND_DOWN, ROUND_UP, Decimal

from ..config import MarketConfig
from ..models import ZERO
from ..wallet import Wallet
from .variable_rate import VariableRatePool, _Market

logger = logging.getLogger(__name__)


class EulerPool(VariableRatePool):
    """Share-accounted pool; ``supplied`` on each market holds shares."""

    def __init__(
        self,
        wallet: Wallet,
        markets: dict[str, MarketConfig],
        name: str = "euler",
        cross_collateralized: bool = False,
        reward_token: str = "stkAAVE",
        precision: int = 6,
    ) -> None:
        super().__init__(wallet, markets, name, cross_collateralized, reward_token)
        self._quantum = Decimal(1).scaleb(-precision)

    def _supplied_value(self, market: _Market) -> Decimal:
        return (market.supplied * market.rate).quantize(self._quantum, rounding=ROUND_DOWN)

    def _add_supply(self, market: _Market, amount: Decimal) -> None:
        market.supplied += (amount / market.rate).quantize(self._quantum, rounding=ROUND_DOWN)

    def _remove_supply(self, market: _Market, amount: Decimal) -> None:
        shares = (amount / market.rate).quantize(self._quantum, rounding=ROUND_UP)
        market.supplied = max(market.supplied - shares, ZERO)

    def accrue_interest(self, asset: str, amount: Decimal) -> None:
        """Raise the exchange rate so the engine's position grows by ``amount``."""
        market = self._market(asset)
        if market.supplied <= 0:
            return
        market.rate = (market.supplied * market.rate + amount) / market.supplied
        logger.debug("%s: %s exchange rate now %s", self._name, asset, market.rate)
