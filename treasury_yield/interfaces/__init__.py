"""Protocol interfaces for the treasury engine."""
from .caller_policy import CallerPolicy
from .checkpoint import Checkpointable
from .flash_lender import FlashLender
from .notifier import Notifier
from .staking import StakingModule
from .venue import VenueAdapter

__all__ = [
    "CallerPolicy",
    "Checkpointable",
    "FlashLender",
    "Notifier",
    "StakingModule",
    "VenueAdapter",
]
