"""Checkpoint protocol — state that an atomic scope can roll back."""
from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class Checkpointable(Protocol):
    def snapshot(self) -> Any: ...

    def restore(self, state: Any) -> None: ...
