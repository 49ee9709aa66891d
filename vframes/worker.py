"""
Worker entry point: wires providers, the frame sequencer and the queue consumer
together and receives segment jobs until SIGINT/SIGTERM.
"""

import argparse
import asyncio
import signal
import sys
from dataclasses import dataclass
from typing import List, Optional
from dotenv import load_dotenv
from loguru import logger
from pydantic import ValidationError

from .config.settings import WorkerConfig
from .custom_logger import log_manager
from .exceptions import ConfigurationException
from .pipeline import FramePublisher, FrameSequencer, LeaseAwareConsumer, SegmentDownloader
from .providers import ProviderFactory, QueueProvider, StorageProvider, EventPublisherProvider, DecoderProvider
from .providers.custom_providers import InMemoryQueueProvider
from .utils.error_handler import log_exceptions


@dataclass
class Worker:
    config: WorkerConfig
    queue: QueueProvider
    storage: StorageProvider
    decoder: DecoderProvider
    events: EventPublisherProvider
    consumer: LeaseAwareConsumer

    async def close(self):
        for provider in (self.queue, self.events, self.storage):
            try:
                await provider.close()
            except Exception as e:
                logger.error(f"Error closing {type(provider).__name__}: {e}")


def build_worker(config: WorkerConfig) -> Worker:
    """Create every provider once for the lifetime of the process."""
    storage = ProviderFactory.create_storage_provider(config=config)
    decoder = ProviderFactory.create_decoder_provider(config=config)
    queue = ProviderFactory.create_queue_provider(config=config)
    events = ProviderFactory.create_publisher_provider(config=config)

    sequencer = FrameSequencer(
        storage=storage,
        decoder=decoder,
        downloader=SegmentDownloader(
            timeout=config.pipeline.download_timeout,
            chunk_size=config.pipeline.download_chunk_size,
        ),
        batch_size=config.pipeline.upload_batch_size,
        scratch_root=config.pipeline.scratch_dir,
    )
    consumer = LeaseAwareConsumer(
        sequencer=sequencer,
        publisher=FramePublisher(events, topic=config.publisher.frames_topic),
        bucket=config.storage.bucket,
        required_fps=config.pipeline.required_fps,
        lease_margin_seconds=config.queue.lease_margin_seconds,
    )
    return Worker(config=config, queue=queue, storage=storage, decoder=decoder, events=events, consumer=consumer)


@log_exceptions(custom_message="Worker stopped on error")
async def run_worker(worker: Worker, stop_event: Optional[asyncio.Event] = None):
    """Receive segment jobs until ``stop_event`` is set or a signal arrives, then close providers."""
    stop_event = stop_event or asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop_event.set)
        except (NotImplementedError, RuntimeError):
            # signal handlers are unavailable on Windows and outside the main thread
            pass

    receiving = asyncio.create_task(worker.queue.receive(worker.consumer.handle_message))
    stopping = asyncio.create_task(stop_event.wait())
    logger.info("Listening for segment messages...")
    try:
        done, _ = await asyncio.wait({receiving, stopping}, return_when=asyncio.FIRST_COMPLETED)
        if receiving in done:
            receiving.result()
        else:
            logger.info("Shutdown requested")
    finally:
        for task in (receiving, stopping):
            task.cancel()
        await asyncio.gather(receiving, stopping, return_exceptions=True)
        await worker.close()
        logger.info("Worker stopped")


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="vframes-worker",
        description="Extract frames from video segments received from a queue.",
    )
    parser.add_argument("--env-file", help="Load environment variables from this file")
    parser.add_argument("--log-level", help="Override LOG_LEVEL (DEBUG, INFO, WARNING, ...)")
    parser.add_argument(
        "--job",
        action="append",
        default=[],
        help="Segment job JSON to enqueue; only with QUEUE_PROVIDER=memory (repeatable)",
    )
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    if args.env_file:
        load_dotenv(args.env_file, override=True)

    try:
        config = WorkerConfig()
        log_manager.configure(config.logging, level_override=args.log_level)
        worker = build_worker(config)
        if args.job:
            if not isinstance(worker.queue, InMemoryQueueProvider):
                raise ConfigurationException("--job requires QUEUE_PROVIDER=memory")
            for job in args.job:
                worker.queue.put(job)
    except (ValidationError, ConfigurationException) as e:
        log_manager.enable_console()
        logger.error(f"Invalid worker configuration: {e}")
        return 1

    logger.info(
        f"Starting {config.app_name} ({config.environment}): bucket={config.storage.bucket}, "
        f"required_fps={config.pipeline.required_fps}, batch_size={config.pipeline.upload_batch_size}"
    )
    try:
        asyncio.run(run_worker(worker))
    except Exception:
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
