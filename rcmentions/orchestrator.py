"""Per-item and batch orchestration of athlete mention detection.

`MentionOrchestrator` ties the name index, the matcher and the three storage
collaborators together:

**Single item** (`process_content`):
    1. Fetch the item's title and body text (missing items raise
       `ContentNotFoundError`, which propagates)
    2. Delete every existing mention for the item
    3. Match the title and insert one ``title`` mention per athlete
    4. Match the body, if any, and insert one ``description`` mention per athlete
    5. Mark the item processed

A failed insert is logged and skipped; the remaining inserts still run and
the match counts still reflect what was detected.

**Batch** (`process_content_batch`):
    Selects recently published, unprocessed items newest first and runs the
    single-item path over each, sequentially, recording per-item failures
    without stopping the batch. One name index is built for the whole batch.

Example usage:
    ```python
    orchestrator = MentionOrchestrator(
        roster=roster,
        content_store=content_store,
        mention_storage=mention_storage,
    )
    result = await orchestrator.process_content_batch(ContentType.PODCAST, limit=10, max_age_hours=24)
    print(result.success_rate)
    ```
"""

from datetime import datetime
from typing import Callable

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from rcmentions.clock import DetectionClock
from rcmentions.config import DetectionSettings
from rcmentions.content import ContentType, ProcessingStats
from rcmentions.errors import MentionDetectionError
from rcmentions.logging import setup_logging
from rcmentions.matcher import AthleteMatcher
from rcmentions.mention import AthleteMention, DetectedAthlete, MentionSource
from rcmentions.name_index import AthleteNameIndex, NameIndexProvider
from rcmentions.storage.interfaces import (
    AthleteRosterInterface,
    ContentStoreInterface,
    MentionStorageInterface,
)

logger = setup_logging()

_RESULT_CONFIG = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)


class ContentResult(BaseModel):
    """Outcome of processing one content item.

    Attributes:
        title_matches: Athletes detected in the title.
        content_matches: Athletes detected in the body text.
        mentions_written: Mentions actually persisted.
        insert_errors: Mentions that failed to persist and were skipped.
    """

    model_config = _RESULT_CONFIG

    content_id: str
    content_type: ContentType
    title_matches: int = 0
    content_matches: int = 0
    mentions_written: int = 0
    insert_errors: int = 0


class BatchError(BaseModel):
    """A content item that failed during a batch run."""

    model_config = _RESULT_CONFIG

    content_id: str = Field(alias="id")
    error: str


class MatchCounts(BaseModel):
    model_config = _RESULT_CONFIG

    total: int = 0
    title: int = 0
    content: int = 0


class BatchResult(BaseModel):
    """Summary of one batch run.

    ``processed`` counts every item the batch attempted, including failed
    ones, so ``processed - errors`` is the number of items that succeeded.
    ``remaining`` is the unprocessed backlog in the window before the run.
    """

    model_config = _RESULT_CONFIG

    content_type: ContentType
    processed: int = 0
    errors: int = 0
    total: int = 0
    remaining: int = 0
    error_details: tuple[BatchError, ...] = ()
    athlete_matches: MatchCounts = Field(default_factory=MatchCounts)
    success_rate: str = "0.0%"


def success_rate(processed: int, errors: int) -> str:
    """Percentage of attempted items that succeeded, with one decimal place."""
    if processed == 0:
        return "0.0%"
    return f"{(processed - errors) / processed * 100:.1f}%"


class MentionOrchestrator(BaseModel):
    """Drives mention detection for single items and batches.

    Attributes:
        roster: Athlete roster collaborator, read when building name indexes.
        content_store: Reads content text, selects batches, sets the processed flag.
        mention_storage: Deletes and inserts persisted mentions.
        settings: Matcher, batch and index settings.
        matcher: Matcher used for every item; built from ``settings.matcher`` when omitted.
        index_provider: Supplies name indexes; built from ``settings.index`` when omitted.
        clock: Returns the reference time for a run.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    roster: AthleteRosterInterface
    content_store: ContentStoreInterface
    mention_storage: MentionStorageInterface
    settings: DetectionSettings = Field(default_factory=DetectionSettings)
    matcher: AthleteMatcher = Field(default_factory=lambda data: AthleteMatcher(data["settings"].matcher))
    index_provider: NameIndexProvider = Field(
        default_factory=lambda data: NameIndexProvider(data["roster"], ttl_seconds=data["settings"].index.ttl_seconds)
    )
    clock: Callable[[], DetectionClock] = DetectionClock.utcnow

    async def build_index(self) -> AthleteNameIndex:
        return await self.index_provider.get()

    async def process_content(
        self,
        content_id: str,
        content_type: ContentType,
        index: AthleteNameIndex | None = None,
        matcher: AthleteMatcher | None = None,
    ) -> ContentResult:
        """Detect athletes in one content item and replace its persisted mentions.

        Args:
            content_id: Identifier of the episode or video.
            content_type: Which kind of content the identifier refers to.
            index: Name index to match against. A fresh one is requested from
                the index provider when omitted.
            matcher: Overrides the orchestrator's matcher for this call.

        Returns:
            Detection counts for the title and body, plus persistence counts.

        Raises:
            ContentNotFoundError: If the item does not exist.
            UpstreamFetchError: If the content store or roster is unreachable.
        """
        matcher = matcher or self.matcher
        logger.info(f"Processing {content_type.value} {content_id}")

        content = await self.content_store.get_content_text(content_id, content_type)
        if index is None:
            index = await self.build_index()

        body = content.body
        limit = self.settings.batch.video_description_limit
        if body and content_type == ContentType.VIDEO and limit is not None:
            body = body[:limit]

        deleted = await self.mention_storage.delete_mentions(content_id, content_type)
        if deleted:
            logger.debug(f"Removed {deleted} existing mentions for {content_type.value} {content_id}")

        created_at = self.clock().now
        title_found = matcher.detect(content.title, index)
        body_found = matcher.detect(body, index) if body else []

        written = 0
        failed = 0
        for source, found in ((MentionSource.TITLE, title_found), (MentionSource.DESCRIPTION, body_found)):
            for detected in found:
                if await self._insert(detected, content_id, content_type, source, created_at):
                    written += 1
                else:
                    failed += 1

        await self.content_store.mark_processed(content_id, content_type)

        result = ContentResult(
            content_id=content_id,
            content_type=content_type,
            title_matches=len(title_found),
            content_matches=len(body_found),
            mentions_written=written,
            insert_errors=failed,
        )
        logger.info(
            f"Found {result.title_matches} title matches and {result.content_matches} content matches "
            f"for {content_type.value} {content_id}"
        )
        return result

    async def _insert(
        self,
        detected: DetectedAthlete,
        content_id: str,
        content_type: ContentType,
        source: MentionSource,
        created_at: datetime,
    ) -> bool:
        mention = AthleteMention(
            athlete_id=detected.athlete_id,
            content_id=content_id,
            content_type=content_type,
            source=source,
            confidence=detected.confidence,
            context=detected.context,
            created_at=created_at,
        )
        try:
            await self.mention_storage.insert_mention(mention)
        except MentionDetectionError as e:
            logger.error({"message": f"Failed to insert mention: {e}", "mention": mention.model_dump(mode="json")})
            return False
        return True

    async def process_episode_athletes(self, episode_id: str, index: AthleteNameIndex | None = None) -> ContentResult:
        return await self.process_content(episode_id, ContentType.PODCAST, index=index)

    async def process_video_athletes(self, video_id: str, index: AthleteNameIndex | None = None) -> ContentResult:
        return await self.process_content(video_id, ContentType.VIDEO, index=index)

    async def process_content_batch(
        self,
        content_type: ContentType = ContentType.PODCAST,
        limit: int | None = None,
        max_age_hours: float | None = None,
    ) -> BatchResult:
        """Process a window of recently published, unprocessed items.

        Items are handled one at a time. An item that raises is recorded in
        ``error_details`` and the batch moves on to the next item.

        Args:
            content_type: Which content to select.
            limit: Maximum items to process; defaults to ``settings.batch.limit``.
            max_age_hours: Publication window; defaults to ``settings.batch.max_age_hours``.

        Returns:
            Aggregated counts, per-item errors and the success rate.
        """
        limit = limit if limit is not None else self.settings.batch.limit
        max_age_hours = max_age_hours if max_age_hours is not None else self.settings.batch.max_age_hours
        now = self.clock().now

        candidates = await self.content_store.select_unprocessed(content_type, max_age_hours, limit, now)
        remaining = await self.content_store.count_unprocessed(content_type, max_age_hours, now)
        logger.info(
            f"Selected {len(candidates)} {content_type.value} items "
            f"({remaining} unprocessed in the last {max_age_hours}h)"
        )

        index = await self.build_index() if candidates else None
        errors: list[BatchError] = []
        title_total = 0
        content_total = 0

        for candidate in candidates:
            try:
                result = await self.process_content(candidate.content_id, content_type, index=index)
            except Exception as e:
                logger.error(f"Error processing {content_type.value} {candidate.content_id}: {e}")
                errors.append(BatchError(content_id=candidate.content_id, error=str(e)))
                continue
            title_total += result.title_matches
            content_total += result.content_matches

        processed = len(candidates)
        batch = BatchResult(
            content_type=content_type,
            processed=processed,
            errors=len(errors),
            total=processed,
            remaining=remaining,
            error_details=tuple(errors),
            athlete_matches=MatchCounts(
                total=title_total + content_total,
                title=title_total,
                content=content_total,
            ),
            success_rate=success_rate(processed, len(errors)),
        )
        logger.info(batch)
        return batch

    async def get_processing_stats(self, content_type: ContentType = ContentType.PODCAST) -> ProcessingStats:
        """Backlog counters for one content type, including persisted mention count."""
        stats = await self.content_store.processing_stats(content_type)
        total_mentions = await self.mention_storage.count(content_type)
        return stats.model_copy(update={"total_mentions": total_mentions})
