"""In-memory implementation of the queue transport."""

import asyncio
import itertools
from collections import defaultdict
from collections.abc import AsyncIterator

from video_segments.commons.infrastructure.queue.base import (
    HealthStatus,
    QueueBase,
    QueueMessage,
)


_CLOSED = object()


class InMemoryQueueMessage(QueueMessage):
    """Message delivered by :class:`InMemoryQueue`."""

    def __init__(
        self,
        queue: "InMemoryQueue",
        topic: str,
        message_id: str,
        body: str,
        attempts: int,
    ) -> None:
        super().__init__(message_id, body, attempts)
        self._queue = queue
        self._topic = topic

    async def _finish(self) -> None:
        self._queue.finished.append(self)

    async def _requeue(self) -> None:
        self._queue.requeued.append(self)
        if self._queue.redeliver:
            self._queue._put(self._topic, self.body, self.attempts + 1, self.id)


class InMemoryQueue(QueueBase):
    """Process-local queue for tests and local runs.

    Records every published body per topic and every settled message.
    """

    def __init__(self, *, redeliver: bool = True, stop_when_empty: bool = False):
        """Initialize the in-memory queue.

        Args:
            redeliver: Put requeued messages back on their topic.
            stop_when_empty: End subscriptions once the topic is drained.
        """
        self.redeliver = redeliver
        self.stop_when_empty = stop_when_empty
        self.published: dict[str, list[str]] = defaultdict(list)
        self.finished: list[QueueMessage] = []
        self.requeued: list[QueueMessage] = []
        self._topics: dict[str, asyncio.Queue[object]] = defaultdict(asyncio.Queue)
        self._ids = itertools.count(1)

    def _put(
        self,
        topic: str,
        body: str,
        attempts: int = 1,
        message_id: str | None = None,
    ) -> None:
        message_id = message_id or str(next(self._ids))
        self._topics[topic].put_nowait((message_id, body, attempts))

    async def subscribe(  # type: ignore[override]
        self,
        topic: str,
    ) -> AsyncIterator[QueueMessage]:
        """Deliver messages from a topic one at a time."""
        queue = self._topics[topic]
        while True:
            if self.stop_when_empty and queue.empty():
                return
            item = await queue.get()
            if item is _CLOSED:
                return
            message_id, body, attempts = item  # type: ignore[misc]
            yield InMemoryQueueMessage(self, topic, message_id, body, attempts)

    async def publish(self, topic: str, body: str) -> None:
        """Publish a message body to a topic."""
        self.published[topic].append(body)
        self._put(topic, body)

    async def health_check(self) -> HealthStatus:
        """Check transport health."""
        return HealthStatus(healthy=True, latency_ms=0.0, message="In-memory queue")

    async def close(self) -> None:
        """Stop deliveries on every topic."""
        for queue in self._topics.values():
            queue.put_nowait(_CLOSED)
