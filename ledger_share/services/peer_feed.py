"""
Live feed of the shared-peer list.

Subscribers get the current list as soon as they subscribe, then a
new list after every peer mutation. Publishing may happen from a
worker thread (sync endpoints run in a thread pool), so each
subscriber's queue is fed through its own event loop.
"""

import asyncio
import logging
import threading
from typing import AsyncIterator, Callable, List

from ledger_share.schemas.sharing import SharedPeerResponse

logger = logging.getLogger(__name__)

PeerList = List[SharedPeerResponse]


class PeerFeed:

    def __init__(self):
        self._lock = threading.Lock()
        self._subscribers: set[tuple[asyncio.AbstractEventLoop, asyncio.Queue]] = set()

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscribers)

    def publish(self, peers: PeerList) -> None:
        with self._lock:
            subscribers = list(self._subscribers)
        for loop, queue in subscribers:
            try:
                loop.call_soon_threadsafe(queue.put_nowait, list(peers))
            except RuntimeError:
                # Loop already closed; the subscriber is gone
                with self._lock:
                    self._subscribers.discard((loop, queue))

    async def subscribe(
        self, load_current: Callable[[], PeerList]
    ) -> AsyncIterator[PeerList]:
        """Yield the current peer list, then every published update."""
        entry = (asyncio.get_running_loop(), asyncio.Queue())
        with self._lock:
            self._subscribers.add(entry)
        logger.debug("Peer feed subscriber added")
        try:
            yield load_current()
            while True:
                yield await entry[1].get()
        finally:
            with self._lock:
                self._subscribers.discard(entry)
            logger.debug("Peer feed subscriber removed")
