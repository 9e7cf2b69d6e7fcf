"""Capital-flow coordinator: moves treasury capital into and out of the venue."""
from __future__ import annotations

import logging
from decimal import Decimal

from ..errors import InsufficientBalance
from ..interfaces.venue import VenueAdapter
from ..models import ZERO
from ..wallet import Wallet
from .leverage import LeveragedPositionEngine
from .ledger import AccountingLedger
from .registry import AssetRegistry

logger = logging.getLogger(__name__)


class CapitalFlowCoordinator:
    def __init__(
        self,
        registry: AssetRegistry,
        ledger: AccountingLedger,
        leverage: LeveragedPositionEngine,
        venue: VenueAdapter,
        wallet: Wallet,
        treasury: Wallet,
    ) -> None:
        self._registry = registry
        self._ledger = ledger
        self._leverage = leverage
        self._venue = venue
        self._wallet = wallet
        self._treasury = treasury

    def push(self, asset: str, amount: Decimal) -> None:
        """Invest ``amount`` of treasury capital. A zero push only reconciles."""
        self._registry.position(asset)
        available = self._treasury.balance_of(asset)
        if amount > available:
            raise InsufficientBalance(self._treasury.holder, asset, amount, available)

        self._ledger.reconcile(asset, pending_inflow=amount)
        if amount > 0:
            self._treasury.transfer(self._wallet, asset, amount)
            self._venue.supply(asset, amount)
            logger.info("%s: pushed %s into %s", asset, amount, self._venue.venue_name)

    def pull(self, asset: str, amount: Decimal) -> Decimal:
        """Send up to ``amount`` back to the treasury; returns what was sent.

        Idle engine balance is used first, then the venue is asked for what
        it can release right now. Whatever it cannot release stays invested.
        """
        self._registry.position(asset)
        self._ledger.reconcile(asset)

        from_idle = min(amount, self._wallet.balance_of(asset))
        withdrawn = ZERO
        remaining = amount - from_idle
        if remaining > 0:
            target = min(remaining, self._venue.max_withdrawable(asset))
            if target > 0:
                withdrawn = self._venue.withdraw(asset, target)

        if self._leverage.liquidation_check and self._ledger.venue_balances(asset)[1] > 0:
            self._leverage.check_safety(asset)

        sent = from_idle + withdrawn
        if sent > 0:
            self._wallet.transfer(self._treasury, asset, sent)
        self._ledger.record_outflow(asset, sent)

        if sent < amount:
            logger.info(
                "%s: pulled %s of %s requested, venue liquidity exhausted",
                asset, sent, amount,
            )
        else:
            logger.info("%s: pulled %s", asset, sent)
        return sent
