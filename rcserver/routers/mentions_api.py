"""
Athlete mention API router.

Exposes the batch detection run, single-item (re)processing and backlog
statistics. Responses use camelCase keys.
"""

from fastapi import APIRouter, Depends, HTTPException, Query

from rcmentions.content import ContentType, ProcessingStats
from rcmentions.errors import ContentNotFoundError, UpstreamFetchError
from rcmentions.orchestrator import BatchResult, ContentResult, MentionOrchestrator

from ..storage_factory import get_orchestrator

router = APIRouter(prefix="/api/v1/athlete-mentions", tags=["Athlete Mentions"])


@router.api_route(
    "/batch",
    methods=["GET", "POST"],
    response_model=BatchResult,
    summary="Run a detection batch",
    description="""
Select up to `batchSize` recently published items of `contentType` whose
mentions have not been processed yet, and detect athletes in each.

Failures of individual items are reported in `errorDetails` and do not
fail the request.
""",
)
async def process_batch(
    content_type: ContentType = Query(ContentType.PODCAST, alias="contentType"),
    max_age_hours: float = Query(24, alias="maxAgeHours", gt=0, description="Publication window in hours"),
    batch_size: int = Query(10, alias="batchSize", ge=1, le=500, description="Maximum items to process"),
    orchestrator: MentionOrchestrator = Depends(get_orchestrator),
) -> BatchResult:
    try:
        return await orchestrator.process_content_batch(content_type, limit=batch_size, max_age_hours=max_age_hours)
    except UpstreamFetchError as e:
        raise HTTPException(status_code=503, detail=str(e)) from e


@router.get(
    "/stats",
    response_model=ProcessingStats,
    summary="Processing backlog for one content type",
)
async def processing_stats(
    content_type: ContentType = Query(ContentType.PODCAST, alias="contentType"),
    orchestrator: MentionOrchestrator = Depends(get_orchestrator),
) -> ProcessingStats:
    try:
        return await orchestrator.get_processing_stats(content_type)
    except UpstreamFetchError as e:
        raise HTTPException(status_code=503, detail=str(e)) from e


@router.post(
    "/{content_type}/{content_id}",
    response_model=ContentResult,
    summary="Detect athletes in one item",
    description="Replaces every stored mention for the item and marks it processed.",
)
async def process_item(
    content_type: ContentType,
    content_id: str,
    orchestrator: MentionOrchestrator = Depends(get_orchestrator),
) -> ContentResult:
    try:
        return await orchestrator.process_content(content_id, content_type)
    except ContentNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    except UpstreamFetchError as e:
        raise HTTPException(status_code=503, detail=str(e)) from e
