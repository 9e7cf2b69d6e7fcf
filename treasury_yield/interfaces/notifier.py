"""Notifier protocol — where treasury health alerts and reports go."""
from typing import Protocol


class Notifier(Protocol):
    """Abstract channel with a loud alert path and a quiet log path."""

    async def send_alert(self, message: str, subject: str = "") -> bool: ...

    async def send_log(self, message: str, silent: bool = True) -> bool: ...
