"""Simulated venues, flash lender and staking module."""
from .euler import EulerPool
from .flash import SimulatedFlashLender
from .staking import SimulatedStakedToken
from .variable_rate import VariableRatePool

__all__ = ["EulerPool", "SimulatedFlashLender", "SimulatedStakedToken", "VariableRatePool"]
