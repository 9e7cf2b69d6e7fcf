"""Venue adapter protocol — one lending venue behind a single capability set."""
from decimal import Decimal
from typing import Protocol


class VenueAdapter(Protocol):
    """Abstract interface for supplying to and borrowing from a lending venue.

    Amounts are in units of the asset. ``withdraw`` returns what the venue
    actually released, which may be less than asked for.
    """

    @property
    def venue_name(self) -> str: ...

    @property
    def cross_collateralized(self) -> bool: ...

    def supply(self, asset: str, amount: Decimal) -> None: ...

    def withdraw(self, asset: str, amount: Decimal) -> Decimal: ...

    def borrow(self, asset: str, amount: Decimal) -> None: ...

    def repay(self, asset: str, amount: Decimal) -> None: ...

    def valuation_of_supplied(self, asset: str) -> Decimal: ...

    def valuation_of_borrowed(self, asset: str) -> Decimal: ...

    def max_withdrawable(self, asset: str) -> Decimal: ...

    def liquidation_threshold(self, asset: str) -> Decimal: ...

    def claim_rewards(self, assets: list[str]) -> Decimal: ...
