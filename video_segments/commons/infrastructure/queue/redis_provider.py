"""Redis implementation of the queue transport."""

import hashlib
import os
import socket
import time
from collections.abc import AsyncIterator

import redis.asyncio as redis

from video_segments.commons.infrastructure.queue.base import (
    HealthStatus,
    QueueBase,
    QueueMessage,
)
from video_segments.commons.telemetry import get_logger


def default_consumer_name() -> str:
    """Name unique among live workers: ``<hostname>:<pid>``."""
    return f"{socket.gethostname()}:{os.getpid()}"


def _processing_key(topic: str, consumer: str) -> str:
    return f"{topic}:processing:{consumer}"


def _attempts_key(topic: str) -> str:
    return f"{topic}:attempts"


class RedisQueueMessage(QueueMessage):
    """Message held in its consumer's processing list until settled."""

    def __init__(
        self,
        client: redis.Redis,
        topic: str,
        processing_key: str,
        body: str,
        attempts: int,
    ) -> None:
        message_id = hashlib.sha1(body.encode("utf-8")).hexdigest()[:16]
        super().__init__(message_id, body, attempts)
        self._client = client
        self._topic = topic
        self._processing_key = processing_key

    async def _finish(self) -> None:
        async with self._client.pipeline(transaction=True) as pipe:
            pipe.lrem(self._processing_key, 1, self.body)
            pipe.hdel(_attempts_key(self._topic), self.body)
            await pipe.execute()

    async def _requeue(self) -> None:
        async with self._client.pipeline(transaction=True) as pipe:
            pipe.lrem(self._processing_key, 1, self.body)
            pipe.rpush(self._topic, self.body)
            await pipe.execute()


class RedisQueue(QueueBase):
    """Reliable queue on Redis lists.

    A delivered message is atomically moved from ``<topic>`` to
    ``<topic>:processing:<consumer>`` and stays there until it is finished
    or requeued. Each consumer owns its processing list, so workers never
    touch each other's in-flight messages. When a subscription starts, the
    messages a previous run of the same consumer left behind are moved back
    to the topic; a stable consumer name is needed for that to survive a
    restart.
    """

    def __init__(
        self,
        url: str = "redis://localhost:6379/0",
        block_timeout_seconds: float = 5.0,
        consumer_name: str | None = None,
        client: redis.Redis | None = None,
    ) -> None:
        """Initialize the Redis queue.

        Args:
            url: Redis connection URL.
            block_timeout_seconds: How long one blocking pop waits before
                checking whether the queue was closed.
            consumer_name: Name of this worker's processing list, unique
                among live workers. Defaults to ``<hostname>:<pid>``.
            client: Pre-built client, mainly for tests.
        """
        self._client = client or redis.from_url(url, decode_responses=True)
        self._url = url
        self._block_timeout = block_timeout_seconds
        self.consumer_name = consumer_name or default_consumer_name()
        self._closed = False
        self._logger = get_logger(__name__)

    async def subscribe(  # type: ignore[override]
        self,
        topic: str,
    ) -> AsyncIterator[QueueMessage]:
        """Deliver messages from a topic one at a time."""
        processing_key = _processing_key(topic, self.consumer_name)
        recovered = await self._recover(topic, processing_key)
        if recovered:
            self._logger.warning(
                "Recovered unfinished messages",
                extra={
                    "topic": topic,
                    "consumer": self.consumer_name,
                    "count": recovered,
                },
            )

        while not self._closed:
            body = await self._client.blmove(
                topic,
                processing_key,
                self._block_timeout,
                "LEFT",
                "RIGHT",
            )
            if body is None:
                continue
            attempts = await self._client.hincrby(_attempts_key(topic), body, 1)
            yield RedisQueueMessage(
                self._client, topic, processing_key, body, int(attempts)
            )

    async def publish(self, topic: str, body: str) -> None:
        """Publish a message body to a topic."""
        await self._client.rpush(topic, body)

    async def _recover(self, topic: str, processing_key: str) -> int:
        count = 0
        while await self._client.lmove(processing_key, topic, "RIGHT", "LEFT"):
            count += 1
        return count

    async def health_check(self) -> HealthStatus:
        """Check transport health."""
        start = time.perf_counter()
        try:
            await self._client.ping()
            return HealthStatus(
                healthy=True,
                latency_ms=(time.perf_counter() - start) * 1000,
                message="Redis is healthy",
                details={"url": self._url},
            )
        except redis.RedisError as e:
            return HealthStatus(
                healthy=False,
                latency_ms=(time.perf_counter() - start) * 1000,
                message=f"Redis health check failed: {e}",
                details={"url": self._url, "error": str(e)},
            )

    async def close(self) -> None:
        """Stop deliveries and release the connection."""
        self._closed = True
        await self._client.aclose()
