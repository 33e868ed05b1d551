#!/usr/bin/env python3
"""Reprocess athlete mentions for specific items or a whole podcast/channel.

Every targeted item has its mentions deleted and re-detected against one
name index built at startup. Items are handled one at a time.

Usage:
    # Specific episodes
    python -m rcserver.scripts.reprocess_mentions EPISODE_ID [EPISODE_ID ...]

    # Every episode of one podcast, exact matching only
    python -m rcserver.scripts.reprocess_mentions --podcast-id PODCAST_ID --exact-only

    # Every video
    python -m rcserver.scripts.reprocess_mentions --video
"""

import argparse
import asyncio
import sys
from typing import AsyncIterator, Sequence

from pydantic import BaseModel
from sqlmodel import Session

from rcmentions.config import load_settings
from rcmentions.content import ContentType
from rcmentions.errors import MentionDetectionError
from rcmentions.logging import setup_logging
from rcmentions.orchestrator import MentionOrchestrator
from rcserver.storage.sql import SQLStorage
from rcserver.storage_factory import create_tables, get_engine

logger = setup_logging()


class ReprocessSummary(BaseModel):
    processed: int = 0
    errors: int = 0
    title_matches: int = 0
    content_matches: int = 0


def parse_arguments(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Parses command-line arguments for the reprocessing script."""
    parser = argparse.ArgumentParser(
        description="Delete and re-detect athlete mentions for episodes or videos",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
With no ids, every item is reprocessed, optionally filtered by --podcast-id
(for videos, the channel id).
""",
    )
    parser.add_argument("ids", nargs="*", help="Content ids to reprocess")
    parser.add_argument("--podcast-id", dest="parent_id", help="Only items of this podcast (or channel with --video)")
    parser.add_argument("--video", action="store_true", help="Treat ids as videos instead of podcast episodes")
    parser.add_argument("--exact-only", action="store_true", help="Skip the fuzzy matching pass")
    parser.add_argument("--page-size", type=int, default=100, help="Items fetched per page (default: 100)")
    args = parser.parse_args(argv)
    if args.page_size < 1:
        parser.error("--page-size must be at least 1")
    return args


async def _paged_ids(
    orchestrator: MentionOrchestrator,
    content_type: ContentType,
    parent_id: str | None,
    page_size: int,
) -> AsyncIterator[tuple[str, str | None]]:
    offset = 0
    while True:
        page = await orchestrator.content_store.list_content_ids(
            content_type, parent_id=parent_id, limit=page_size, offset=offset
        )
        if not page:
            return
        print(f"\nProcessing batch of {len(page)} items ({offset + 1} to {offset + len(page)})")
        for item in page:
            yield item.content_id, item.title
        offset += len(page)


async def _given_ids(ids: Sequence[str]) -> AsyncIterator[tuple[str, str | None]]:
    for content_id in ids:
        yield content_id, None


async def reprocess(
    orchestrator: MentionOrchestrator,
    content_type: ContentType,
    ids: Sequence[str] = (),
    parent_id: str | None = None,
    exact_only: bool = False,
    page_size: int = 100,
) -> ReprocessSummary:
    """Reprocess the targeted items and print a line per item plus a summary.

    Raises:
        UpstreamFetchError: If the roster cannot be read to build the index.
    """
    index = await orchestrator.build_index()
    matcher = orchestrator.matcher.with_fuzzy(not exact_only)
    print(f"Starting athlete mention reprocessing ({len(index)} athletes indexed)...")

    targets = _given_ids(ids) if ids else _paged_ids(orchestrator, content_type, parent_id, page_size)
    summary = ReprocessSummary()
    async for content_id, title in targets:
        label = f"{content_id} ({title})" if title else content_id
        try:
            result = await orchestrator.process_content(content_id, content_type, index=index, matcher=matcher)
        except MentionDetectionError as e:
            print(f"Error reprocessing {content_type.value} {label}: {e}")
            summary.errors += 1
            continue
        print(
            f"Reprocessed {content_type.value} {label}: "
            f"{result.title_matches} title matches, {result.content_matches} content matches"
        )
        summary.processed += 1
        summary.title_matches += result.title_matches
        summary.content_matches += result.content_matches

    print("\nReprocessing complete!")
    print(f"- Items processed: {summary.processed}")
    print(f"- Errors encountered: {summary.errors}")
    print(f"- Title matches: {summary.title_matches}")
    print(f"- Content matches: {summary.content_matches}")
    return summary


async def main(argv: Sequence[str] | None = None) -> int:
    """Runs the reprocessing script. Returns the process exit code."""
    args = parse_arguments(argv)
    content_type = ContentType.VIDEO if args.video else ContentType.PODCAST

    engine, _ = get_engine()
    create_tables(engine)
    with Session(engine) as session:
        storage = SQLStorage(session)
        orchestrator = MentionOrchestrator(
            roster=storage,
            content_store=storage,
            mention_storage=storage,
            settings=load_settings(),
        )
        try:
            await reprocess(
                orchestrator,
                content_type,
                ids=args.ids,
                parent_id=args.parent_id,
                exact_only=args.exact_only,
                page_size=args.page_size,
            )
        except MentionDetectionError as e:
            logger.error(f"Reprocessing aborted: {e}")
            return 1
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
