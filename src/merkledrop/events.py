"""
merkledrop/events.py

Claim notifications.

Events emitted inside a batch are held until the outermost batch
exits cleanly; a batch that raises drops its events, the same way a
reverted transaction drops its logs.
"""

import logging
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Callable, Iterator, List

from eth_utils import to_checksum_address

logger = logging.getLogger("merkledrop.events")


@dataclass(frozen=True)
class Claimed:
    """An account received its allocation."""
    account: bytes
    amount: int
    timestamp: float = field(default_factory=time.time, compare=False)

    def to_dict(self) -> dict:
        return {
            'type': 'claimed',
            'account': to_checksum_address(self.account),
            'amount': self.amount,
            'timestamp': self.timestamp,
        }


EventCallback = Callable[[Claimed], None]


class EventBus:
    """Delivers committed events to subscribers and keeps a history."""

    def __init__(self):
        self.history: List[Claimed] = []
        self._subscribers: List[EventCallback] = []
        self._pending: List[List[Claimed]] = []

    def subscribe(self, callback: EventCallback) -> None:
        if callback not in self._subscribers:
            self._subscribers.append(callback)

    def unsubscribe(self, callback: EventCallback) -> None:
        if callback in self._subscribers:
            self._subscribers.remove(callback)

    def emit(self, event: Claimed) -> None:
        if self._pending:
            self._pending[-1].append(event)
        else:
            self._deliver([event])

    @contextmanager
    def batch(self) -> Iterator["EventBus"]:
        pending: List[Claimed] = []
        self._pending.append(pending)
        try:
            yield self
        except BaseException:
            self._pending.pop()
            raise
        self._pending.pop()
        if self._pending:
            self._pending[-1].extend(pending)
        else:
            self._deliver(pending)

    def _deliver(self, events: List[Claimed]) -> None:
        for event in events:
            self.history.append(event)
            for callback in list(self._subscribers):
                try:
                    callback(event)
                except Exception as e:
                    logger.warning(f"Event subscriber failed: {e}")
