"""Unit tests for the in-memory and Redis queue transports."""

import hashlib
import os

import pytest
import redis.asyncio as redis

from video_segments.commons.infrastructure.queue import (
    InMemoryQueue,
    RedisQueue,
    RedisQueueMessage,
)
from video_segments.commons.infrastructure.queue.redis_provider import (
    default_consumer_name,
)


class FakeRedis:
    """Just enough of redis.asyncio.Redis for the reliable queue."""

    def __init__(self):
        self.lists: dict[str, list[str]] = {}
        self.hashes: dict[str, dict[str, int]] = {}
        self.closed = False
        self.ping_error: Exception | None = None

    def _pop(self, key, where):
        items = self.lists.get(key) or []
        if not items:
            return None
        return items.pop(0) if where == "LEFT" else items.pop()

    def _push(self, key, value, where):
        items = self.lists.setdefault(key, [])
        if where == "LEFT":
            items.insert(0, value)
        else:
            items.append(value)

    async def lmove(self, src, dst, wherefrom, whereto):
        value = self._pop(src, wherefrom)
        if value is not None:
            self._push(dst, value, whereto)
        return value

    async def blmove(self, src, dst, timeout, wherefrom, whereto):
        return await self.lmove(src, dst, wherefrom, whereto)

    async def hincrby(self, name, key, amount):
        values = self.hashes.setdefault(name, {})
        values[key] = values.get(key, 0) + amount
        return values[key]

    async def hdel(self, name, key):
        return self.hashes.get(name, {}).pop(key, None) is not None

    async def rpush(self, key, value):
        self._push(key, value, "RIGHT")
        return len(self.lists[key])

    async def lrem(self, key, count, value):
        items = self.lists.get(key, [])
        if value in items:
            items.remove(value)
            return 1
        return 0

    async def ping(self):
        if self.ping_error:
            raise self.ping_error
        return True

    async def aclose(self):
        self.closed = True

    def pipeline(self, transaction=True):
        return FakePipeline(self)


class FakePipeline:
    def __init__(self, client):
        self._client = client
        self._commands = []

    async def __aenter__(self):
        return self

    async def __aexit__(self, *args):
        return None

    def lrem(self, *args):
        self._commands.append(("lrem", args))

    def hdel(self, *args):
        self._commands.append(("hdel", args))

    def rpush(self, *args):
        self._commands.append(("rpush", args))

    async def execute(self):
        return [
            await getattr(self._client, name)(*args) for name, args in self._commands
        ]


async def collect(queue, topic):
    return [message async for message in queue.subscribe(topic)]


class TestInMemoryQueue:
    """Tests for InMemoryQueue."""

    async def test_publish_and_subscribe(self):
        queue = InMemoryQueue(stop_when_empty=True)
        await queue.publish("video-creates", '{"id": "v1"}')
        await queue.publish("video-creates", '{"id": "v2"}')

        messages = await collect(queue, "video-creates")

        assert [m.body for m in messages] == ['{"id": "v1"}', '{"id": "v2"}']
        assert all(m.attempts == 1 for m in messages)
        assert queue.published["video-creates"] == ['{"id": "v1"}', '{"id": "v2"}']

    async def test_finish_is_idempotent(self):
        queue = InMemoryQueue(stop_when_empty=True)
        await queue.publish("t", "body")
        (message,) = await collect(queue, "t")

        await message.finish()
        await message.finish()
        await message.requeue()

        assert queue.finished == [message]
        assert queue.requeued == []
        assert message.settled

    async def test_requeue_redelivers(self):
        queue = InMemoryQueue(stop_when_empty=True)
        await queue.publish("t", "body")

        delivered = []
        async for message in queue.subscribe("t"):
            delivered.append(message)
            if message.attempts == 1:
                await message.requeue()
            else:
                await message.finish()

        assert [m.attempts for m in delivered] == [1, 2]
        assert delivered[0].id == delivered[1].id
        assert queue.requeued == [delivered[0]]
        assert queue.finished == [delivered[1]]

    async def test_requeue_without_redelivery(self):
        queue = InMemoryQueue(redeliver=False, stop_when_empty=True)
        await queue.publish("t", "body")

        async for message in queue.subscribe("t"):
            await message.requeue()

        assert len(queue.requeued) == 1

    async def test_close_ends_subscription(self):
        queue = InMemoryQueue()
        await queue.publish("t", "body")
        await queue.close()

        messages = await collect(queue, "t")

        assert [m.body for m in messages] == ["body"]

    async def test_health_check(self):
        assert (await InMemoryQueue().health_check()).healthy is True


class TestRedisQueue:
    """Tests for RedisQueue."""

    @pytest.fixture
    def client(self):
        return FakeRedis()

    @pytest.fixture
    def queue(self, client):
        return RedisQueue(client=client, consumer_name="w1")

    async def test_publish_appends_to_topic(self, queue, client):
        await queue.publish("video-segment-creates", '{"segment_idx": 1}')
        assert client.lists["video-segment-creates"] == ['{"segment_idx": 1}']

    async def test_delivery_moves_to_own_processing_list(self, queue, client):
        await queue.publish("video-creates", "job-1")
        subscription = queue.subscribe("video-creates")

        message = await subscription.__anext__()
        await subscription.aclose()

        assert isinstance(message, RedisQueueMessage)
        assert message.body == "job-1"
        assert message.attempts == 1
        assert message.id == hashlib.sha1(b"job-1").hexdigest()[:16]
        assert client.lists["video-creates"] == []
        assert client.lists["video-creates:processing:w1"] == ["job-1"]

    async def test_finish_removes_message(self, queue, client):
        await queue.publish("video-creates", "job-1")
        subscription = queue.subscribe("video-creates")
        message = await subscription.__anext__()
        await subscription.aclose()

        await message.finish()

        assert client.lists["video-creates:processing:w1"] == []
        assert client.lists["video-creates"] == []
        assert "job-1" not in client.hashes["video-creates:attempts"]

    async def test_requeue_returns_message_to_topic(self, queue, client):
        await queue.publish("video-creates", "job-1")
        subscription = queue.subscribe("video-creates")
        first = await subscription.__anext__()

        await first.requeue()
        second = await subscription.__anext__()
        await subscription.aclose()

        assert second.body == "job-1"
        assert second.attempts == 2
        assert client.lists["video-creates:processing:w1"] == ["job-1"]

    async def test_restart_recovers_own_stranded_messages(self, client):
        client.lists["video-creates:processing:w1"] = ["stranded"]
        client.lists["video-creates"] = ["fresh"]
        restarted = RedisQueue(client=client, consumer_name="w1")
        subscription = restarted.subscribe("video-creates")

        first = await subscription.__anext__()
        await subscription.aclose()

        assert first.body == "stranded"

    async def test_second_worker_leaves_in_flight_messages_alone(self, client):
        first_worker = RedisQueue(client=client, consumer_name="w1")
        second_worker = RedisQueue(client=client, consumer_name="w2")
        await first_worker.publish("video-creates", '{"id": "v1"}')
        await first_worker.publish("video-creates", '{"id": "v2"}')

        first_subscription = first_worker.subscribe("video-creates")
        in_flight = await first_subscription.__anext__()
        second_subscription = second_worker.subscribe("video-creates")
        other = await second_subscription.__anext__()
        await first_subscription.aclose()
        await second_subscription.aclose()

        assert in_flight.body == '{"id": "v1"}'
        assert other.body == '{"id": "v2"}'
        assert client.lists["video-creates:processing:w1"] == ['{"id": "v1"}']
        assert client.lists["video-creates:processing:w2"] == ['{"id": "v2"}']

        await in_flight.finish()

        assert client.lists["video-creates:processing:w1"] == []
        assert client.lists["video-creates:processing:w2"] == ['{"id": "v2"}']

    def test_default_consumer_name(self, client):
        queue = RedisQueue(client=client)
        assert queue.consumer_name == default_consumer_name()
        assert queue.consumer_name.endswith(f":{os.getpid()}")

    async def test_health_check(self, queue, client):
        assert (await queue.health_check()).healthy is True

        client.ping_error = redis.ConnectionError("refused")
        status = await queue.health_check()

        assert status.healthy is False
        assert "refused" in status.message

    async def test_close(self, queue, client):
        await queue.close()
        assert client.closed is True
