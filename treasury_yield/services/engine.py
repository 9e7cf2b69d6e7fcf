"""Treasury engine — the caller-facing facade.

Every mutating entry point checks the caller against the approval policy
and runs inside one atomic scope covering all stateful collaborators, so a
failure at any step leaves the engine exactly as it was.
"""
from __future__ import annotations

import logging
from decimal import Decimal, InvalidOperation
from typing import Any, Callable, Sequence

from ..clock import Clock, system_clock
from ..errors import (
    IncompatibleLengths,
    InvalidParameterValue,
    NonNullBalances,
    NotApproved,
)
from ..interfaces.caller_policy import CallerPolicy
from ..interfaces.flash_lender import FlashLender
from ..interfaces.staking import StakingModule
from ..interfaces.venue import VenueAdapter
from ..models import ClaimResult, CooldownPhase, LeverageParameters, PositionSnapshot, UnfoldResult
from ..wallet import Wallet
from .atomic import AtomicScope
from .capital_flow import CapitalFlowCoordinator
from .cooldown import RewardCooldownTimer
from .ledger import AccountingLedger
from .leverage import LeveragedPositionEngine, loan_to_value_ratio
from .registry import AssetRegistry

logger = logging.getLogger(__name__)

Amount = Decimal | int | str


class TreasuryEngine:
    def __init__(
        self,
        venue: VenueAdapter,
        flash_lender: FlashLender,
        staking: StakingModule,
        caller_policy: CallerPolicy,
        wallet: Wallet,
        treasury: Wallet,
        clock: Clock = system_clock,
        liquidation_warning_threshold: Decimal = Decimal("0.8"),
        liquidation_check: bool = False,
        cooldown_seconds: int = 864000,
        unstake_window: int = 172800,
        retrigger_during_cooldown: bool = False,
    ) -> None:
        self._venue = venue
        self._policy = caller_policy
        self._wallet = wallet
        self._treasury = treasury

        self.registry = AssetRegistry()
        self.ledger = AccountingLedger(self.registry, wallet, venue)
        self.leverage = LeveragedPositionEngine(
            self.registry,
            self.ledger,
            venue,
            flash_lender,
            liquidation_warning_threshold=liquidation_warning_threshold,
            liquidation_check=liquidation_check,
        )
        self.flows = CapitalFlowCoordinator(
            self.registry, self.ledger, self.leverage, venue, wallet, treasury
        )
        self.timer = RewardCooldownTimer(
            self.registry,
            venue,
            staking,
            wallet,
            clock,
            cooldown_seconds=cooldown_seconds,
            unstake_window=unstake_window,
            retrigger_during_cooldown=retrigger_during_cooldown,
        )
        self._atomic = AtomicScope(
            [self.registry, self.timer, wallet, treasury, venue, flash_lender, staking]
        )

    def _authorize(self, caller: str) -> None:
        if not self._policy.is_caller_approved(caller):
            logger.warning("Rejected call from unapproved caller '%s'", caller)
            raise NotApproved(caller)

    # ------------------------------------------------------------------
    # Asset lifecycle
    # ------------------------------------------------------------------

    def register_asset(
        self, caller: str, asset: str, params: LeverageParameters
    ) -> None:
        self._authorize(caller)
        # Fold capacity divides by 1 - collateral_factor.
        limit = min(self._venue.liquidation_threshold(asset), Decimal(1))
        if not 0 < params.collateral_factor < limit:
            raise InvalidParameterValue(
                f"collateral_factor {params.collateral_factor} for '{asset}' must be "
                f"positive and below both 1 and the venue liquidation threshold"
            )
        if params.reference_price <= 0:
            raise InvalidParameterValue(f"reference_price for '{asset}' must be positive")
        with self._atomic("register_asset"):
            self.registry.register(asset, params)

    def deregister_asset(self, caller: str, asset: str) -> None:
        self._authorize(caller)
        position = self.registry.position(asset)
        supplied, borrowed = self.ledger.venue_balances(asset)
        if supplied != 0 or borrowed != 0 or position.borrow_balance != 0:
            raise NonNullBalances(asset, supplied, borrowed)
        with self._atomic("deregister_asset"):
            self.registry.remove(asset)

    # ------------------------------------------------------------------
    # Capital flows
    # ------------------------------------------------------------------

    def push(self, caller: str, asset: str, amount: Amount) -> None:
        self._authorize(caller)
        with self._atomic("push"):
            self.flows.push(asset, _amount(amount))

    def pull(self, caller: str, asset: str, amount: Amount) -> Decimal:
        self._authorize(caller)
        with self._atomic("pull"):
            return self.flows.pull(asset, _amount(amount))

    def push_many(self, caller: str, assets: Sequence[str], amounts: Sequence[Amount]) -> None:
        self._authorize(caller)
        self._batch("push_many", assets, amounts, self.flows.push)

    def pull_many(
        self, caller: str, assets: Sequence[str], amounts: Sequence[Amount]
    ) -> list[Decimal]:
        self._authorize(caller)
        return self._batch("pull_many", assets, amounts, self.flows.pull)

    # ------------------------------------------------------------------
    # Leverage
    # ------------------------------------------------------------------

    def fold(self, caller: str, asset: str, amount: Amount) -> Decimal:
        self._authorize(caller)
        with self._atomic("fold"):
            return self.leverage.fold(asset, _amount(amount))

    def unfold(self, caller: str, asset: str, amount: Amount) -> UnfoldResult:
        self._authorize(caller)
        with self._atomic("unfold"):
            return self.leverage.unfold(asset, _amount(amount))

    def fold_many(
        self, caller: str, assets: Sequence[str], amounts: Sequence[Amount]
    ) -> list[Decimal]:
        self._authorize(caller)
        return self._batch("fold_many", assets, amounts, self.leverage.fold)

    def unfold_many(
        self, caller: str, assets: Sequence[str], amounts: Sequence[Amount]
    ) -> list[UnfoldResult]:
        self._authorize(caller)
        return self._batch("unfold_many", assets, amounts, self.leverage.unfold)

    def toggle_liquidation_check(self, caller: str) -> bool:
        self._authorize(caller)
        self.leverage.liquidation_check = not self.leverage.liquidation_check
        logger.info("Liquidation check on pulls: %s", self.leverage.liquidation_check)
        return self.leverage.liquidation_check

    def set_liquidation_warning_threshold(self, caller: str, threshold: Amount) -> None:
        self._authorize(caller)
        self.leverage.liquidation_warning_threshold = _decimal(threshold)
        logger.info("Liquidation warning threshold set to %s", threshold)

    # ------------------------------------------------------------------
    # Rewards
    # ------------------------------------------------------------------

    def claim(self, caller: str, assets: Sequence[str] | None = None) -> ClaimResult:
        self._authorize(caller)
        with self._atomic("claim"):
            return self.timer.claim(list(assets) if assets is not None else None)

    def start_cooldown(self, caller: str) -> float:
        self._authorize(caller)
        with self._atomic("start_cooldown"):
            return self.timer.start_cooldown()

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------

    def assets(self) -> list[str]:
        return self.registry.assets()

    def total_managed_value(self, asset: str) -> Decimal:
        return self.ledger.total_managed_value(asset)

    def unrealized_pl(self, asset: str) -> Decimal:
        return self.ledger.unrealized_pl(asset)

    def loan_to_value(self, asset: str) -> Decimal:
        return self.leverage.loan_to_value(asset)

    def cooldown_phase(self) -> CooldownPhase:
        return self.timer.phase()

    def snapshot(self, asset: str) -> PositionSnapshot:
        position = self.registry.position(asset)
        idle = self._wallet.balance_of(asset)
        supplied, borrowed = self.ledger.venue_balances(asset)
        return PositionSnapshot(
            asset=asset,
            idle=idle,
            supplied=supplied,
            borrowed=borrowed,
            total_value=idle + supplied - borrowed,
            last_balance=position.last_balance,
            net_gain=position.net_gain,
            net_debt=position.net_debt,
            ltv=loan_to_value_ratio(borrowed, supplied),
            liquidation_threshold=self._venue.liquidation_threshold(asset),
            leverage_state=position.leverage_state,
        )

    def _batch(
        self,
        operation: str,
        assets: Sequence[str],
        amounts: Sequence[Amount],
        step: Callable[[str, Decimal], Any],
    ) -> list[Any]:
        if len(assets) != len(amounts):
            raise IncompatibleLengths(len(assets), len(amounts))
        with self._atomic(operation):
            return [step(asset, _amount(amount)) for asset, amount in zip(assets, amounts)]


def _decimal(value: Amount) -> Decimal:
    if isinstance(value, Decimal):
        return value
    try:
        return Decimal(str(value))
    except InvalidOperation:
        raise InvalidParameterValue(f"Not a number: {value!r}") from None


def _amount(value: Amount) -> Decimal:
    amount = _decimal(value)
    if not amount.is_finite() or amount < 0:
        raise InvalidParameterValue(f"Amount must be a non-negative number, got {value}")
    return amount
