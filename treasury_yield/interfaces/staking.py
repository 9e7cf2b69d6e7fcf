"""Staking module protocol — cooldown-gated redemption of the reward token."""
from decimal import Decimal
from typing import Protocol


class StakingModule(Protocol):
    """Abstract interface for a staked reward token."""

    @property
    def staked_token(self) -> str: ...

    @property
    def reward_asset(self) -> str: ...

    def cooldown(self) -> None: ...

    def redeem(self, amount: Decimal) -> Decimal: ...
