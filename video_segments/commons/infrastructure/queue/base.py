"""Abstract base classes for the message queue transport."""

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator
from dataclasses import dataclass


@dataclass
class HealthStatus:
    """Health check result."""

    healthy: bool
    latency_ms: float
    message: str | None = None
    details: dict[str, str] | None = None


class QueueMessage(ABC):
    """A delivered message awaiting an acknowledgement decision.

    A message is settled at most once: either finished (acknowledged and
    removed from the transport) or requeued (handed back for redelivery).
    """

    def __init__(self, message_id: str, body: str, attempts: int = 1) -> None:
        self.id = message_id
        self.body = body
        self.attempts = attempts
        self.finished = False
        self.requeued = False

    @property
    def settled(self) -> bool:
        return self.finished or self.requeued

    async def finish(self) -> None:
        """Acknowledge the message so it is never delivered again."""
        if self.settled:
            return
        await self._finish()
        self.finished = True

    async def requeue(self) -> None:
        """Hand the message back to the transport for redelivery."""
        if self.settled:
            return
        await self._requeue()
        self.requeued = True

    @abstractmethod
    async def _finish(self) -> None: ...

    @abstractmethod
    async def _requeue(self) -> None: ...


class QueueBase(ABC):
    """Abstract base class for queue transports.

    Implementations should handle:
    - Redis lists (reliable queue pattern)
    - In-memory queues for tests and local runs
    """

    @abstractmethod
    def subscribe(self, topic: str) -> AsyncIterator[QueueMessage]:
        """Deliver messages from a topic one at a time.

        Args:
            topic: Topic (queue) name.

        Yields:
            Delivered messages, until the transport is closed.
        """
        ...

    @abstractmethod
    async def publish(self, topic: str, body: str) -> None:
        """Publish a message body to a topic.

        Args:
            topic: Topic (queue) name.
            body: Serialized message.
        """

    @abstractmethod
    async def health_check(self) -> HealthStatus:
        """Check transport health."""

    @abstractmethod
    async def close(self) -> None:
        """Stop deliveries and release the connection."""
