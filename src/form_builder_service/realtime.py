"""
In-process publish/subscribe for collaborative editing.

Each subscriber owns a bounded buffer; when it is full the oldest event is dropped. `publish` is
safe to call from worker threads (sync route handlers) as well as from the event loop.
"""

from __future__ import annotations

import asyncio
import collections
import logging
import threading
from typing import Any, AsyncIterator, Deque, Dict, Optional, Set

logger = logging.getLogger(__name__)

DEFAULT_BUFFER = 100


def form_channel(form_id: str) -> str:
    return f"form-{form_id}"


class Subscription:
    def __init__(self, broker: "Broker", channel: str, *, maxlen: int) -> None:
        self.broker = broker
        self.channel = channel
        self.loop = asyncio.get_running_loop()
        self.buffer: Deque[Dict[str, Any]] = collections.deque(maxlen=maxlen)
        self.ready = asyncio.Event()

    def push(self, event: Dict[str, Any]) -> None:
        self.buffer.append(event)
        try:
            self.loop.call_soon_threadsafe(self.ready.set)
        except RuntimeError:
            # loop already closed; the subscriber is gone
            pass

    async def next_event(self, timeout: Optional[float] = None) -> Optional[Dict[str, Any]]:
        """Next buffered event, or None when `timeout` elapses first."""
        while not self.buffer:
            self.ready.clear()
            try:
                await asyncio.wait_for(self.ready.wait(), timeout=timeout)
            except asyncio.TimeoutError:
                return None
        return self.buffer.popleft()

    def close(self) -> None:
        self.broker.unsubscribe(self)


class Broker:
    def __init__(self, *, buffer_size: int = DEFAULT_BUFFER) -> None:
        self.buffer_size = max(1, int(buffer_size))
        self._subs: Dict[str, Set[Subscription]] = {}
        self._lock = threading.Lock()

    def subscribe(self, channel: str) -> Subscription:
        sub = Subscription(self, channel, maxlen=self.buffer_size)
        with self._lock:
            self._subs.setdefault(channel, set()).add(sub)
        return sub

    def unsubscribe(self, sub: Subscription) -> None:
        with self._lock:
            subs = self._subs.get(sub.channel)
            if not subs:
                return
            subs.discard(sub)
            if not subs:
                self._subs.pop(sub.channel, None)

    def publish(self, channel: str, event: str, data: Any) -> int:
        """Deliver to every current subscriber; returns how many received it."""
        with self._lock:
            subs = list(self._subs.get(channel) or ())
        message = {"event": event, "data": data}
        for sub in subs:
            sub.push(message)
        logger.debug("published %s on %s to %d subscriber(s)", event, channel, len(subs))
        return len(subs)

    def subscriber_count(self, channel: str) -> int:
        with self._lock:
            return len(self._subs.get(channel) or ())

    async def stream(self, channel: str, *, heartbeat_sec: float = 15.0) -> AsyncIterator[Optional[Dict[str, Any]]]:
        """
        Yield events until the consumer stops iterating.

        Yields None on heartbeat timeouts so SSE writers can emit keep-alive comments.
        """
        sub = self.subscribe(channel)
        try:
            while True:
                yield await sub.next_event(timeout=heartbeat_sec)
        finally:
            sub.close()


_broker: Optional[Broker] = None


def get_broker() -> Broker:
    global _broker
    if _broker is None:
        _broker = Broker()
    return _broker
