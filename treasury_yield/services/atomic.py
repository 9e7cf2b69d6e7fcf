"""All-or-nothing execution of engine operations."""
from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterable, Iterator

from ..interfaces.checkpoint import Checkpointable

logger = logging.getLogger(__name__)


class AtomicScope:
    """Snapshots every participant on entry and restores them all on error.

    Scopes nest; only the outermost one snapshots and restores. Participants
    that cannot checkpoint themselves are skipped.
    """

    def __init__(self, participants: Iterable[object]) -> None:
        self._participants: list[Checkpointable] = [
            p for p in participants if isinstance(p, Checkpointable)
        ]
        self._depth = 0

    @contextmanager
    def __call__(self, operation: str) -> Iterator[None]:
        if self._depth:
            self._depth += 1
            try:
                yield
            finally:
                self._depth -= 1
            return

        states = [(p, p.snapshot()) for p in self._participants]
        self._depth = 1
        try:
            yield
        except Exception as e:
            for participant, state in reversed(states):
                participant.restore(state)
            logger.warning("%s aborted, state rolled back: %s", operation, e)
            raise
        finally:
            self._depth = 0
