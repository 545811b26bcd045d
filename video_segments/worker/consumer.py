"""Queue consumer driving the segmentation pipeline."""

from enum import Enum

from video_segments.application.services.segmentation import (
    PipelineObserver,
    SegmentationPipeline,
)
from video_segments.commons.infrastructure.queue.base import QueueBase, QueueMessage
from video_segments.commons.settings.models import Settings
from video_segments.commons.telemetry import (
    clear_correlation_id,
    get_logger,
    set_correlation_id,
)
from video_segments.domain.exceptions import PipelineError
from video_segments.domain.models import Job, Segment, SegmentCreatedEvent

logger = get_logger(__name__)


class MessageOutcome(str, Enum):
    """Final state of a handled message."""

    ACKED = "acked"  # Finished, removed from the transport
    LEFT_PENDING = "left_pending"  # Handed back for redelivery


class SegmentEventPublisher(PipelineObserver):
    """Publishes a segment-created event for every uploaded segment.

    Publishing is best effort: a failed publish is logged and does not
    affect the outcome of the job.
    """

    def __init__(self, queue: QueueBase, topic: str, video_id: str) -> None:
        self._queue = queue
        self._topic = topic
        self._video_id = video_id
        self.published = 0
        self.failed = 0

    async def on_segment(self, segment: Segment) -> None:
        event = SegmentCreatedEvent.from_segment(self._video_id, segment)
        try:
            await self._queue.publish(self._topic, event.to_message())
        except Exception:
            self.failed += 1
            logger.error(
                "Publishing segment event failed",
                exc_info=True,
                extra={"segment_idx": segment.index, "segment_uri": segment.uri},
            )
        else:
            self.published += 1


class JobConsumer:
    """Consumes video jobs one at a time and settles each message.

    Success finishes the message. A transient failure requeues it for
    redelivery. A fatal failure is requeued too, unless
    ``worker.fatal_error_policy`` is ``"ack"``, which finishes it.
    """

    def __init__(
        self,
        queue: QueueBase,
        pipeline: SegmentationPipeline,
        settings: Settings,
    ) -> None:
        """Initialize the consumer.

        Args:
            queue: Queue transport for jobs and segment events.
            pipeline: Segmentation pipeline run for every job.
            settings: Application settings.
        """
        self._queue = queue
        self._pipeline = pipeline
        self._video_topic = settings.queue.video_topic
        self._segment_topic = settings.queue.segment_topic
        self._fatal_error_policy = settings.worker.fatal_error_policy

    async def run(self) -> None:
        """Consume messages until the subscription ends."""
        logger.info("Listening for messages", extra={"topic": self._video_topic})
        async for message in self._queue.subscribe(self._video_topic):
            try:
                await self.handle(message)
            except Exception:
                logger.exception(
                    "Unexpected error while handling message",
                    extra={"message_id": message.id},
                )
                await self._requeue_quietly(message)
            finally:
                clear_correlation_id()

    async def handle(self, message: QueueMessage) -> MessageOutcome:
        """Process one message and settle it.

        Args:
            message: The delivered message.

        Returns:
            Whether the message was acknowledged or left for redelivery.
        """
        set_correlation_id(message.id)
        try:
            job = Job.from_message(message.body)
        except PipelineError as e:
            return await self._settle_failure(message, e)

        set_correlation_id(job.id)
        logger.info(
            "New video",
            extra={
                "video_id": job.id,
                "uri": job.source_uri,
                "attempt": message.attempts,
            },
        )

        publisher = SegmentEventPublisher(self._queue, self._segment_topic, job.id)
        try:
            result = await self._pipeline.run(job, publisher)
        except PipelineError as e:
            return await self._settle_failure(message, e)

        await message.finish()
        logger.info(
            "Video processing completed successfully",
            extra={
                "uri": job.source_uri,
                "segments": len(result),
                "events_published": publisher.published,
                "events_failed": publisher.failed,
            },
        )
        return MessageOutcome.ACKED

    async def _settle_failure(
        self,
        message: QueueMessage,
        error: PipelineError,
    ) -> MessageOutcome:
        if error.fatal:
            logger.error(
                "Video processing failed permanently",
                exc_info=error,
                extra={"stage": error.stage, "policy": self._fatal_error_policy},
            )
            if self._fatal_error_policy == "ack":
                await message.finish()
                return MessageOutcome.ACKED
        else:
            logger.warning(
                "Video processing failed, leaving message for redelivery",
                extra={"stage": error.stage, "error": str(error)},
            )

        await message.requeue()
        return MessageOutcome.LEFT_PENDING

    async def _requeue_quietly(self, message: QueueMessage) -> None:
        try:
            await message.requeue()
        except Exception:
            logger.exception(
                "Failed to hand message back to the transport",
                extra={"message_id": message.id},
            )
