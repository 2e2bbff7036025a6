"""Progress notifications for listening clients (the /events stream).

Each listener owns a bounded queue registered under a client key for the
lifetime of an ``async with broker.subscribe(client_id)`` block. Messages
published for one client never reach another client's listeners.
Publishing never blocks: a listener whose queue is full misses the message.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

logger = logging.getLogger(__name__)

MAX_PENDING_MESSAGES = 100


class ProgressBroker:
    def __init__(self, max_pending: int = MAX_PENDING_MESSAGES) -> None:
        self._max_pending = max_pending
        self._listeners: dict[str, set[asyncio.Queue[str]]] = {}

    @property
    def listener_count(self) -> int:
        return sum(len(queues) for queues in self._listeners.values())

    @asynccontextmanager
    async def subscribe(self, client_id: str) -> AsyncIterator[asyncio.Queue[str]]:
        queue: asyncio.Queue[str] = asyncio.Queue(maxsize=self._max_pending)
        self._listeners.setdefault(client_id, set()).add(queue)
        logger.debug("Progress listener added for %s (%d active)", client_id, self.listener_count)
        try:
            yield queue
        finally:
            queues = self._listeners.get(client_id)
            if queues is not None:
                queues.discard(queue)
                if not queues:
                    del self._listeners[client_id]
            logger.debug("Progress listener released for %s (%d active)", client_id, self.listener_count)

    def publish(self, client_id: str, message: str) -> None:
        for queue in list(self._listeners.get(client_id, ())):
            try:
                queue.put_nowait(message)
            except asyncio.QueueFull:
                logger.debug("Dropping progress message for a slow listener of %s", client_id)
