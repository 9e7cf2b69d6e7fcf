from .access import StaticCallerPolicy
from .atomic import AtomicScope
from .capital_flow import CapitalFlowCoordinator
from .cooldown import RewardCooldownTimer
from .engine import TreasuryEngine
from .ledger import AccountingLedger
from .leverage import LeveragedPositionEngine
from .monitor import Monitor
from .registry import AssetRegistry
