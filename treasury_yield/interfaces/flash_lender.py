"""Flash lender protocol — single-call, same-asset liquidity."""
from decimal import Decimal
from typing import Callable, Protocol


class FlashLender(Protocol):
    """Lends ``amount`` for the duration of ``callback`` only.

    The lender reclaims ``amount + fee`` once the callback returns and raises
    if it cannot, which aborts the enclosing operation.
    """

    def max_available(self, asset: str) -> Decimal: ...

    def flash_fee(self, asset: str, amount: Decimal) -> Decimal: ...

    def borrow_and_call(
        self, asset: str, amount: Decimal, callback: Callable[[], None]
    ) -> None: ...
