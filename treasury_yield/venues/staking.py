"""In-memory staked reward token with a cooldown and an unstake window."""
from __future__ import annotations

import logging
from decimal import Decimal

from ..clock import Clock
from ..errors import VenueError
from ..wallet import Wallet

logger = logging.getLogger(__name__)


class SimulatedStakedToken:
    """Staked token redeemable 1:1 into its reward asset inside the window."""

    def __init__(
        self,
        wallet: Wallet,
        clock: Clock,
        staked_token: str = "stkAAVE",
        reward_asset: str = "AAVE",
        cooldown_seconds: int = 864000,
        unstake_window: int = 172800,
    ) -> None:
        self._wallet = wallet
        self._clock = clock
        self._staked_token = staked_token
        self._reward_asset = reward_asset
        self.cooldown_seconds = cooldown_seconds
        self.unstake_window = unstake_window
        self.cooldown_start: float | None = None

    @property
    def staked_token(self) -> str:
        return self._staked_token

    @property
    def reward_asset(self) -> str:
        return self._reward_asset

    def cooldown(self) -> None:
        if self._wallet.balance_of(self._staked_token) <= 0:
            raise VenueError("INVALID_BALANCE_ON_COOLDOWN")
        self.cooldown_start = self._clock()

    def redeem(self, amount: Decimal) -> Decimal:
        if self.cooldown_start is None:
            raise VenueError("UNSTAKE_WINDOW_FINISHED")
        now = self._clock()
        unlocked_at = self.cooldown_start + self.cooldown_seconds
        if now < unlocked_at:
            raise VenueError("INSUFFICIENT_COOLDOWN")
        if now > unlocked_at + self.unstake_window:
            raise VenueError("UNSTAKE_WINDOW_FINISHED")

        amount = min(amount, self._wallet.balance_of(self._staked_token))
        self._wallet.debit(self._staked_token, amount)
        self._wallet.credit(self._reward_asset, amount)
        if self._wallet.balance_of(self._staked_token) == 0:
            self.cooldown_start = None
        logger.info("Redeemed %s %s into %s", amount, self._staked_token, self._reward_asset)
        return amount

    def snapshot(self) -> float | None:
        return self.cooldown_start

    def restore(self, state: float | None) -> None:
        self.cooldown_start = state
