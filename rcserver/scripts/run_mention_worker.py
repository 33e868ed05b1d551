#!/usr/bin/env python3
"""Run the mention queue worker against the database.

With no ids, the unprocessed backlog (recently published items whose
processed flag is not set) is queued and drained. With ``--poll-seconds``
the backlog is re-queued on that interval until the process is interrupted.

Usage:
    # Drain the podcast backlog once
    python -m rcserver.scripts.run_mention_worker

    # Keep queueing the video backlog every five minutes
    python -m rcserver.scripts.run_mention_worker --video --poll-seconds 300

    # Queue specific episodes
    python -m rcserver.scripts.run_mention_worker EPISODE_ID [EPISODE_ID ...]
"""

import argparse
import asyncio
import sys
from typing import Awaitable, Callable, Sequence

from sqlmodel import Session

from rcmentions.config import load_settings
from rcmentions.content import ContentType
from rcmentions.errors import MentionDetectionError
from rcmentions.logging import setup_logging
from rcmentions.orchestrator import MentionOrchestrator
from rcmentions.queue import MentionQueueWorker
from rcserver.storage.sql import SQLStorage
from rcserver.storage_factory import create_tables, get_engine

logger = setup_logging()


def parse_arguments(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Parses command-line arguments for the worker script."""
    parser = argparse.ArgumentParser(
        description="Queue episodes or videos for athlete mention detection and run the worker",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Window and batch size default to the [batch] settings in rcmentions.toml;
concurrency and rate limiting to the [queue] settings.
""",
    )
    parser.add_argument("ids", nargs="*", help="Content ids to queue instead of the backlog")
    parser.add_argument("--video", action="store_true", help="Queue videos instead of podcast episodes")
    parser.add_argument("--max-age-hours", type=float, help="Only queue items published this recently")
    parser.add_argument("--limit", type=int, help="Most items queued per round")
    parser.add_argument("--concurrency", type=int, help="Number of worker tasks")
    parser.add_argument("--poll-seconds", type=float, help="Re-queue the backlog on this interval")
    args = parser.parse_args(argv)
    for name in ("limit", "concurrency"):
        value = getattr(args, name)
        if value is not None and value < 1:
            parser.error(f"--{name} must be at least 1")
    if args.poll_seconds is not None and args.ids:
        parser.error("--poll-seconds only applies to the backlog")
    if args.poll_seconds is not None and args.poll_seconds <= 0:
        parser.error("--poll-seconds must be positive")
    return args


async def run_worker(
    worker: MentionQueueWorker,
    content_type: ContentType,
    ids: Sequence[str] = (),
    max_age_hours: float | None = None,
    limit: int | None = None,
    poll_seconds: float | None = None,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> dict[str, int]:
    """Queue the given ids or the backlog, drain the queue, and report.

    Returns the worker's status counters after the last round.
    """
    await worker.start()
    try:
        while True:
            if ids:
                job_ids = [await worker.enqueue(content_id, content_type) for content_id in ids]
            else:
                job_ids = await worker.enqueue_unprocessed(content_type, max_age_hours, limit)
            print(f"\nQueued {len(job_ids)} {content_type.value} items")
            await worker.join()

            for failure in worker.clear_failed():
                print(f"Failed {failure.job.content_type.value} {failure.job.content_id}: {failure.error}")
            status = worker.status()
            print(f"- Completed: {status['completed']}")
            print(f"- Failed: {status['failed']}")

            if poll_seconds is None:
                return status
            await sleep(poll_seconds)
    finally:
        await worker.stop()


async def main(argv: Sequence[str] | None = None) -> int:
    """Runs the worker script. Returns the process exit code."""
    args = parse_arguments(argv)
    content_type = ContentType.VIDEO if args.video else ContentType.PODCAST
    settings = load_settings()
    queue_config = settings.queue
    if args.concurrency is not None:
        queue_config = queue_config.model_copy(update={"concurrency": args.concurrency})

    engine, _ = get_engine()
    create_tables(engine)
    with Session(engine) as session:
        storage = SQLStorage(session)
        orchestrator = MentionOrchestrator(
            roster=storage,
            content_store=storage,
            mention_storage=storage,
            settings=settings,
        )
        worker = MentionQueueWorker(orchestrator, config=queue_config)
        try:
            status = await run_worker(
                worker,
                content_type,
                ids=args.ids,
                max_age_hours=args.max_age_hours,
                limit=args.limit,
                poll_seconds=args.poll_seconds,
            )
        except MentionDetectionError as e:
            logger.error(f"Worker aborted: {e}")
            return 1
    return 1 if status["failed"] else 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
