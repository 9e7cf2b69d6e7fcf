"""Accounting ledger — nets value changes into gain / debt per asset.

Every mutating operation calls :meth:`AccountingLedger.reconcile` before it
moves capital, so interest accrued since the last touch is booked before the
operation's own flows land. The record obeys, after every reconcile::

    net_gain * net_debt == 0
    net_gain - net_debt == sum of deltas booked since registration
"""
from __future__ import annotations

import logging
from decimal import Decimal

from ..errors import ValuationUnavailable, VenueError
from ..interfaces.venue import VenueAdapter
from ..models import ZERO, AssetPosition
from ..wallet import Wallet
from .registry import AssetRegistry

logger = logging.getLogger(__name__)


class AccountingLedger:
    def __init__(self, registry: AssetRegistry, wallet: Wallet, venue: VenueAdapter) -> None:
        self._registry = registry
        self._wallet = wallet
        self._venue = venue

    # ------------------------------------------------------------------
    # Valuation
    # ------------------------------------------------------------------

    def venue_balances(self, asset: str) -> tuple[Decimal, Decimal]:
        """``(supplied, borrowed)`` on the venue, in native units.

        Every engine read of venue valuations goes through here so a failed
        read surfaces as :class:`ValuationUnavailable`.
        """
        try:
            supplied = self._venue.valuation_of_supplied(asset)
            borrowed = self._venue.valuation_of_borrowed(asset)
        except VenueError as e:
            raise ValuationUnavailable(asset, str(e)) from e
        return supplied, borrowed

    def net_venue_value(self, asset: str) -> Decimal:
        """Supplied minus borrowed on the venue, in native units."""
        supplied, borrowed = self.venue_balances(asset)
        return supplied - borrowed

    def total_managed_value(self, asset: str) -> Decimal:
        """Idle engine balance plus net venue position."""
        self._registry.position(asset)
        return self._wallet.balance_of(asset) + self.net_venue_value(asset)

    def unrealized_pl(self, asset: str) -> Decimal:
        position = self._registry.position(asset)
        return position.net_gain - position.net_debt

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def reconcile(self, asset: str, pending_inflow: Decimal = ZERO) -> Decimal:
        """Book the value change since the previous reconcile.

        ``pending_inflow`` is capital about to arrive in the same operation;
        it lands in ``last_balance`` without counting as gain. Returns the
        delta that was booked.
        """
        position = self._registry.position(asset)
        current = self.total_managed_value(asset)
        delta = current - position.last_balance
        if delta:
            _apply(position, delta)
            logger.debug(
                "%s: booked %s (gain=%s debt=%s)",
                asset, delta, position.net_gain, position.net_debt,
            )
        position.last_balance = current + pending_inflow
        return delta

    def record_outflow(self, asset: str, amount: Decimal) -> None:
        """Lower ``last_balance`` by capital that left the engine.

        Counterpart of ``pending_inflow``: a withdrawal is neither gain nor
        debt, so only the baseline moves.
        """
        position = self._registry.position(asset)
        position.last_balance -= amount
        logger.debug("%s: %s left the engine, baseline %s", asset, amount, position.last_balance)


def _apply(position: AssetPosition, delta: Decimal) -> None:
    net = position.net_gain - position.net_debt + delta
    position.net_gain = max(net, ZERO)
    position.net_debt = max(-net, ZERO)
