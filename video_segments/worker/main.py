"""Command-line entry point for the video segments worker.

Usage:
    video-segments-worker [--config-dir DIR] [--environment ENV]
                          [--log-format json|text] [--log-level LEVEL]

The destination bucket is required, either as
VIDEO_SEGMENTS__STORAGE__BUCKET or S3_BUCKET.
"""

import argparse
import asyncio
import contextlib
import signal
import sys
from pathlib import Path

from video_segments.commons.settings import Settings, get_settings
from video_segments.commons.telemetry import (
    configure_logging,
    get_logger,
    log_exceptions,
)
from video_segments.infrastructure.factory import InfrastructureFactory
from video_segments.worker.consumer import JobConsumer

logger = get_logger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="video-segments-worker",
        description="Extract frames from queued videos and upload them as segments.",
    )
    parser.add_argument(
        "--config-dir",
        type=Path,
        default=None,
        help="Directory containing appsettings*.json (default: ./config)",
    )
    parser.add_argument(
        "--environment",
        choices=["dev", "staging", "prod"],
        default=None,
        help="Configuration environment to load",
    )
    parser.add_argument(
        "--log-format",
        choices=["json", "text"],
        default=None,
        help="Override the configured log format",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="Override the configured log level",
    )
    return parser.parse_args(argv)


async def check_connections(factory: InfrastructureFactory) -> list[str]:
    """Check that the queue answers and the destination bucket exists.

    Returns:
        One message per failed check; empty when the worker can start.
    """
    problems = []

    status = await factory.get_queue().health_check()
    if not status.healthy:
        problems.append(status.message or "Queue is unreachable")

    bucket = factory.settings.storage.bucket
    try:
        if not await factory.get_blob_storage().bucket_exists(bucket):
            problems.append(f"Bucket '{bucket}' does not exist")
    except Exception as e:
        problems.append(f"Checking bucket '{bucket}' failed: {e}")

    return problems


@log_exceptions(message="Worker stopped unexpectedly")
async def serve(settings: Settings) -> bool:
    """Run the consumer until SIGINT/SIGTERM, then close every connection.

    Returns:
        False when a startup check fails, True after a requested shutdown.
    """
    factory = InfrastructureFactory(settings)
    try:
        problems = await check_connections(factory)
        if problems:
            for problem in problems:
                logger.error("Startup check failed", extra={"problem": problem})
            return False

        consumer = JobConsumer(factory.get_queue(), factory.get_pipeline(), settings)
        consume = asyncio.create_task(consumer.run())
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            with contextlib.suppress(NotImplementedError):
                loop.add_signal_handler(sig, consume.cancel)

        try:
            await consume
        except asyncio.CancelledError:
            logger.info("Shutdown requested, stopping consumer")
    finally:
        await factory.close_all()
    return True


def main(argv: list[str] | None = None) -> int:
    """Entry point of the ``video-segments-worker`` console script."""
    args = parse_args(argv)
    settings = get_settings(config_dir=args.config_dir, environment=args.environment)

    if not settings.storage.bucket:
        print(
            "S3 bucket required: set VIDEO_SEGMENTS__STORAGE__BUCKET "
            "or S3_BUCKET environment variable.",
            file=sys.stderr,
        )
        return 1

    configure_logging(
        level=args.log_level or settings.telemetry.log_level,
        format_type=args.log_format or settings.telemetry.log_format,
    )
    logger.info(
        "Starting worker",
        extra={
            "app": settings.app.name,
            "environment": settings.app.environment,
            "bucket": settings.storage.bucket,
            "batch_size": settings.processing.batch_size,
        },
    )

    return 0 if asyncio.run(serve(settings)) else 1


if __name__ == "__main__":
    sys.exit(main())
