"""Reward cooldown timer.

Harvested rewards arrive as a staked token that can only be redeemed inside
an unstake window opening ``cooldown_seconds`` after a cooldown is started
and lasting ``unstake_window`` seconds. A window that passes unused is not
an error: the next claim simply restarts the cooldown.
"""
from __future__ import annotations

import logging
from decimal import Decimal

from ..clock import Clock
from ..errors import NothingToCooldown
from ..interfaces.staking import StakingModule
from ..interfaces.venue import VenueAdapter
from ..models import ZERO, ClaimResult, CooldownPhase
from ..wallet import Wallet
from .registry import AssetRegistry

logger = logging.getLogger(__name__)


class RewardCooldownTimer:
    def __init__(
        self,
        registry: AssetRegistry,
        venue: VenueAdapter,
        staking: StakingModule,
        wallet: Wallet,
        clock: Clock,
        cooldown_seconds: int = 864000,
        unstake_window: int = 172800,
        retrigger_during_cooldown: bool = False,
    ) -> None:
        self._registry = registry
        self._venue = venue
        self._staking = staking
        self._wallet = wallet
        self._clock = clock
        self.cooldown_seconds = cooldown_seconds
        self.unstake_window = unstake_window
        self.retrigger_during_cooldown = retrigger_during_cooldown
        self.cooldown_start: float | None = None

    def staked_balance(self) -> Decimal:
        return self._wallet.balance_of(self._staking.staked_token)

    def phase(self, now: float | None = None) -> CooldownPhase:
        if now is None:
            now = self._clock()
        if self.cooldown_start is None or self.staked_balance() <= 0:
            return CooldownPhase.IDLE
        unlocked_at = self.cooldown_start + self.cooldown_seconds
        if now < unlocked_at:
            return CooldownPhase.COOLING_DOWN
        if now <= unlocked_at + self.unstake_window:
            return CooldownPhase.REDEEM_WINDOW_OPEN
        return CooldownPhase.EXPIRED

    def start_cooldown(self) -> float:
        if self.staked_balance() <= 0:
            raise NothingToCooldown(self._staking.staked_token)
        return self._trigger(self._clock())

    def claim(self, assets: list[str] | None = None) -> ClaimResult:
        """Harvest venue rewards for ``assets`` and advance the cooldown cycle.

        Defaults to every registered asset.
        """
        if assets is None:
            assets = self._registry.assets()
        for asset in assets:
            self._registry.position(asset)

        now = self._clock()
        phase = self.phase(now)
        redeemed = ZERO

        if phase is CooldownPhase.REDEEM_WINDOW_OPEN:
            redeemed = self._staking.redeem(self.staked_balance())
            self.cooldown_start = None
            harvested = self._venue.claim_rewards(assets)
            if self.staked_balance() > 0:
                self._trigger(now)
        elif phase is CooldownPhase.COOLING_DOWN:
            harvested = self._venue.claim_rewards(assets)
            if self.retrigger_during_cooldown:
                self._trigger(now)
        else:
            if phase is CooldownPhase.EXPIRED:
                logger.info("Unstake window missed, restarting cooldown")
            harvested = self._venue.claim_rewards(assets)
            if self.staked_balance() > 0:
                self._trigger(now)

        return ClaimResult(
            phase=phase,
            harvested=harvested,
            redeemed=redeemed,
            cooldown_start=self.cooldown_start,
        )

    def _trigger(self, now: float) -> float:
        self._staking.cooldown()
        self.cooldown_start = now
        logger.info(
            "Cooldown started on %s %s", self.staked_balance(), self._staking.staked_token
        )
        return now

    def snapshot(self) -> float | None:
        return self.cooldown_start

    def restore(self, state: float | None) -> None:
        self.cooldown_start = state
