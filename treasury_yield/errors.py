"""Exception hierarchy for the treasury engine."""
from __future__ import annotations

from decimal import Decimal


class TreasuryError(Exception):
    """Base class for every error raised by the engine."""


# ---------------------------------------------------------------------------
# Authorization
# ---------------------------------------------------------------------------


class AuthorizationError(TreasuryError):
    pass


class NotApproved(AuthorizationError):
    def __init__(self, caller: str) -> None:
        super().__init__(f"Caller '{caller}' is not approved")
        self.caller = caller


# ---------------------------------------------------------------------------
# Configuration (caller bugs)
# ---------------------------------------------------------------------------


class ConfigurationError(TreasuryError):
    pass


class UnknownAsset(ConfigurationError):
    def __init__(self, asset: str) -> None:
        super().__init__(f"Asset '{asset}' is not registered")
        self.asset = asset


class AssetAlreadyRegistered(ConfigurationError):
    def __init__(self, asset: str) -> None:
        super().__init__(f"Asset '{asset}' is already registered")
        self.asset = asset


class IncompatibleLengths(ConfigurationError):
    def __init__(self, *lengths: int) -> None:
        super().__init__(f"Batch arguments have incompatible lengths: {lengths}")


class NonNullBalances(ConfigurationError):
    def __init__(self, asset: str, supplied: Decimal, borrowed: Decimal) -> None:
        super().__init__(
            f"Asset '{asset}' still has exposure "
            f"(supplied={supplied}, borrowed={borrowed})"
        )
        self.asset = asset


class InvalidParameterValue(ConfigurationError):
    pass


class NothingToCooldown(ConfigurationError):
    def __init__(self, token: str) -> None:
        super().__init__(f"No '{token}' balance to put on cooldown")


# ---------------------------------------------------------------------------
# Liquidity shortfalls
# ---------------------------------------------------------------------------


class LiquidityShortfall(TreasuryError):
    pass


class InsufficientBalance(LiquidityShortfall):
    def __init__(self, holder: str, asset: str, needed: Decimal, available: Decimal) -> None:
        super().__init__(
            f"'{holder}' holds {available} {asset}, needs {needed}"
        )
        self.holder = holder
        self.asset = asset
        self.needed = needed
        self.available = available


class InsufficientCollateral(LiquidityShortfall):
    def __init__(self, asset: str, requested: Decimal, withdrawn: Decimal) -> None:
        super().__init__(
            f"Venue released {withdrawn} of {requested} {asset} collateral"
        )
        self.asset = asset
        self.requested = requested
        self.withdrawn = withdrawn


# ---------------------------------------------------------------------------
# Safety violations (operation discarded, retry with other parameters)
# ---------------------------------------------------------------------------


class SafetyViolation(TreasuryError):
    pass


class CloseToLiquidation(SafetyViolation):
    def __init__(self, scope: str, ltv: Decimal, threshold: Decimal) -> None:
        super().__init__(
            f"Loan-to-value of {scope} would be {ltv:.6f}, above {threshold}"
        )
        self.scope = scope
        self.ltv = ltv
        self.threshold = threshold


class NonZeroFlashFee(SafetyViolation):
    def __init__(self, asset: str, fee: Decimal) -> None:
        super().__init__(f"Flash lender charges {fee} {asset}")
        self.asset = asset
        self.fee = fee


class FlashLoanNotRepaid(SafetyViolation):
    def __init__(self, asset: str, owed: Decimal, available: Decimal) -> None:
        super().__init__(f"Flash loan of {owed} {asset} not repaid ({available} held)")


# ---------------------------------------------------------------------------
# External reads and venue rejections
# ---------------------------------------------------------------------------


class ValuationUnavailable(TreasuryError):
    def __init__(self, asset: str, reason: str) -> None:
        super().__init__(f"Cannot value '{asset}': {reason}")
        self.asset = asset


class VenueError(TreasuryError):
    """The venue (or flash lender / staking module) rejected an operation."""
