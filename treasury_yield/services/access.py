"""Caller approval backed by a fixed allow-list."""
from __future__ import annotations

from typing import Iterable


class StaticCallerPolicy:
    def __init__(self, approved: Iterable[str] = ()) -> None:
        self._approved = set(approved)

    def is_caller_approved(self, caller: str) -> bool:
        return caller in self._approved
