"""Caller policy protocol — approval of callers by the allocation layer."""
from typing import Protocol


class CallerPolicy(Protocol):
    def is_caller_approved(self, caller: str) -> bool: ...
