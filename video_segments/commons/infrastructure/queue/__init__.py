"""Queue transport abstractions and implementations."""

from video_segments.commons.infrastructure.queue.base import (
    HealthStatus,
    QueueBase,
    QueueMessage,
)
from video_segments.commons.infrastructure.queue.memory_provider import (
    InMemoryQueue,
    InMemoryQueueMessage,
)
from video_segments.commons.infrastructure.queue.redis_provider import (
    RedisQueue,
    RedisQueueMessage,
)

__all__ = [
    # Base classes
    "HealthStatus",
    "QueueBase",
    "QueueMessage",
    # Implementations
    "RedisQueue",
    "RedisQueueMessage",
    "InMemoryQueue",
    "InMemoryQueueMessage",
]
