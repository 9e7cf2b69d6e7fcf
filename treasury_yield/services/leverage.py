"""Leveraged position engine: flash-loan fold / unfold and the safety gate."""
from __future__ import annotations

import logging
from decimal import Decimal

from ..errors import CloseToLiquidation, InsufficientCollateral, InvalidParameterValue, NonZeroFlashFee
from ..interfaces.flash_lender import FlashLender
from ..interfaces.venue import VenueAdapter
from ..models import ZERO, UnfoldResult
from .ledger import AccountingLedger
from .registry import AssetRegistry

logger = logging.getLogger(__name__)

INFINITE_LTV = Decimal("Infinity")


class LeveragedPositionEngine:
    """Builds and unwinds recursive supply/borrow positions in one step.

    A fold flash-borrows ``F``, supplies it, borrows ``F`` against the new
    collateral and repays the flash loan. An unfold runs the same loop in
    reverse. Both leave ``borrow_balance`` equal to the venue's recorded
    debt and reconcile the ledger afterwards.
    """

    def __init__(
        self,
        registry: AssetRegistry,
        ledger: AccountingLedger,
        venue: VenueAdapter,
        flash_lender: FlashLender,
        liquidation_warning_threshold: Decimal = Decimal("0.8"),
        liquidation_check: bool = False,
    ) -> None:
        self._registry = registry
        self._ledger = ledger
        self._venue = venue
        self._lender = flash_lender
        self._threshold = ZERO
        self.liquidation_warning_threshold = liquidation_warning_threshold
        # Gates the post-withdrawal check on pulls; folds are always checked.
        self.liquidation_check = liquidation_check

    @property
    def liquidation_warning_threshold(self) -> Decimal:
        return self._threshold

    @liquidation_warning_threshold.setter
    def liquidation_warning_threshold(self, value: Decimal) -> None:
        value = Decimal(value)
        if not ZERO < value < 1:
            raise InvalidParameterValue(
                f"liquidation_warning_threshold must be in (0, 1), got {value}"
            )
        self._threshold = value

    # ------------------------------------------------------------------
    # Loan-to-value
    # ------------------------------------------------------------------

    def loan_to_value(self, asset: str) -> Decimal:
        self._registry.position(asset)
        supplied, borrowed = self._ledger.venue_balances(asset)
        return loan_to_value_ratio(borrowed, supplied)

    def account_loan_to_value(self) -> Decimal:
        """LTV across every registered asset, weighted by reference price."""
        supplied = borrowed = ZERO
        for asset in self._registry.assets():
            price = self._registry.params(asset).reference_price
            asset_supplied, asset_borrowed = self._ledger.venue_balances(asset)
            supplied += asset_supplied * price
            borrowed += asset_borrowed * price
        return loan_to_value_ratio(borrowed, supplied)

    def check_safety(self, asset: str) -> None:
        """Raise :class:`CloseToLiquidation` when LTV is above the threshold."""
        ltv = self.loan_to_value(asset)
        if ltv > self._threshold:
            raise CloseToLiquidation(asset, ltv, self._threshold)
        if self._venue.cross_collateralized:
            account_ltv = self.account_loan_to_value()
            if account_ltv > self._threshold:
                raise CloseToLiquidation("account", account_ltv, self._threshold)

    def fold_capacity(self, asset: str) -> Decimal:
        """Largest flash amount keeping ``(B + F) / (S + F)`` at the collateral factor."""
        cf = self._registry.params(asset).collateral_factor
        supplied, borrowed = self._ledger.venue_balances(asset)
        return max((cf * supplied - borrowed) / (1 - cf), ZERO)

    # ------------------------------------------------------------------
    # Fold / unfold
    # ------------------------------------------------------------------

    def fold(self, asset: str, requested: Decimal) -> Decimal:
        """Lever ``asset`` by up to ``requested``; returns the amount folded.

        The flash amount is bounded by the lender's liquidity and by the
        collateral factor, so a partial fold is not an error.
        """
        position = self._registry.position(asset)
        flash = min(requested, self._lender.max_available(asset), self.fold_capacity(asset))
        if flash <= 0:
            logger.info("%s: nothing to fold (requested %s)", asset, requested)
            return ZERO

        fee = self._lender.flash_fee(asset, flash)
        if fee != 0:
            raise NonZeroFlashFee(asset, fee)

        def lever() -> None:
            self._venue.supply(asset, flash)
            self._venue.borrow(asset, flash)

        self._lender.borrow_and_call(asset, flash, lever)
        position.borrow_balance = self._ledger.venue_balances(asset)[1]

        self.check_safety(asset)
        self._ledger.reconcile(asset)

        if flash < requested:
            logger.info("%s: folded %s of %s requested", asset, flash, requested)
        else:
            logger.info("%s: folded %s", asset, flash)
        return flash

    def unfold(self, asset: str, requested: Decimal) -> UnfoldResult:
        """Repay up to ``requested`` of debt using released collateral.

        When the venue releases less collateral than was repaid, the gap is
        re-borrowed to close the flash loan and reported as a shortfall.
        Releasing nothing at all aborts with :class:`InsufficientCollateral`.
        """
        position = self._registry.position(asset)
        amount = min(requested, self._ledger.venue_balances(asset)[1])
        if amount <= 0:
            logger.info("%s: no debt to unfold", asset)
            return UnfoldResult(asset=asset, requested=ZERO, delevered=ZERO)

        fee = self._lender.flash_fee(asset, amount)
        if fee != 0:
            raise NonZeroFlashFee(asset, fee)

        released: list[Decimal] = []

        def delever() -> None:
            self._venue.repay(asset, amount)
            withdrawn = self._venue.withdraw(asset, amount)
            if withdrawn <= 0:
                raise InsufficientCollateral(asset, amount, withdrawn)
            if withdrawn < amount:
                self._venue.borrow(asset, amount - withdrawn)
            released.append(withdrawn)

        self._lender.borrow_and_call(asset, amount, delever)
        position.borrow_balance = self._ledger.venue_balances(asset)[1]
        self._ledger.reconcile(asset)

        result = UnfoldResult(asset=asset, requested=amount, delevered=released[0])
        if result.shortfall > 0:
            logger.warning(
                "%s: partial unfold, %s of %s delevered", asset, result.delevered, amount
            )
        else:
            logger.info("%s: unfolded %s", asset, amount)
        return result


def loan_to_value_ratio(borrowed: Decimal, supplied: Decimal) -> Decimal:
    if supplied <= 0:
        return ZERO if borrowed <= 0 else INFINITE_LTV
    return borrowed / supplied
