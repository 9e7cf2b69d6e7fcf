"""In-memory flash lender."""
from __future__ import annotations

import logging
from decimal import Decimal
from typing import Callable

from ..errors import FlashLoanNotRepaid, VenueError
from ..models import ZERO
from ..wallet import Wallet

logger = logging.getLogger(__name__)


class SimulatedFlashLender:
    """Lends from a fixed per-asset reserve for the duration of one callback."""

    def __init__(
        self,
        wallet: Wallet,
        liquidity: dict[str, Decimal],
        fee_rate: Decimal = ZERO,
    ) -> None:
        self._wallet = wallet
        self._reserves = {asset: Decimal(amount) for asset, amount in liquidity.items()}
        self.fee_rate = Decimal(fee_rate)

    def max_available(self, asset: str) -> Decimal:
        return self._reserves.get(asset, ZERO)

    def flash_fee(self, asset: str, amount: Decimal) -> Decimal:
        return amount * self.fee_rate

    def borrow_and_call(
        self, asset: str, amount: Decimal, callback: Callable[[], None]
    ) -> None:
        available = self.max_available(asset)
        if amount > available:
            raise VenueError(f"Flash loan of {amount} {asset} exceeds reserve {available}")

        owed = amount + self.flash_fee(asset, amount)
        self._reserves[asset] = available - amount
        self._wallet.credit(asset, amount)

        callback()

        held = self._wallet.balance_of(asset)
        if held < owed:
            raise FlashLoanNotRepaid(asset, owed, held)
        self._wallet.debit(asset, owed)
        self._reserves[asset] += owed
        logger.debug("Flash loan of %s %s repaid", amount, asset)

    def snapshot(self) -> dict[str, Decimal]:
        return dict(self._reserves)

    def restore(self, state: dict[str, Decimal]) -> None:
        self._reserves = state
