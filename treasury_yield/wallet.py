"""Idle token balances held by a single holder."""
from __future__ import annotations

import logging
from collections import defaultdict
from decimal import Decimal

from .errors import InsufficientBalance
from .models import ZERO

logger = logging.getLogger(__name__)


class Wallet:
    """Balances per asset for one holder (the engine or its treasury)."""

    def __init__(self, holder: str, balances: dict[str, Decimal] | None = None) -> None:
        self.holder = holder
        self._balances: defaultdict[str, Decimal] = defaultdict(lambda: ZERO)
        for asset, amount in (balances or {}).items():
            self._balances[asset] = Decimal(amount)

    def balance_of(self, asset: str) -> Decimal:
        return self._balances.get(asset, ZERO)

    def credit(self, asset: str, amount: Decimal) -> None:
        if amount < 0:
            raise ValueError(f"Cannot credit a negative amount: {amount}")
        self._balances[asset] += amount

    def debit(self, asset: str, amount: Decimal) -> None:
        if amount < 0:
            raise ValueError(f"Cannot debit a negative amount: {amount}")
        available = self.balance_of(asset)
        if amount > available:
            raise InsufficientBalance(self.holder, asset, amount, available)
        self._balances[asset] = available - amount

    def transfer(self, to: Wallet, asset: str, amount: Decimal) -> None:
        self.debit(asset, amount)
        to.credit(asset, amount)
        logger.debug("%s -> %s: %s %s", self.holder, to.holder, amount, asset)

    def snapshot(self) -> dict[str, Decimal]:
        return dict(self._balances)

    def restore(self, state: dict[str, Decimal]) -> None:
        self._balances = defaultdict(lambda: ZERO, state)
