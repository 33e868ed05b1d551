"""Exception hierarchy for athlete mention detection.

Single-item processing raises these; batch and queue callers decide what
to isolate and what to retry:

- `ContentNotFoundError` is final. Retrying cannot make a missing item appear.
- `UpstreamFetchError` means a collaborator was unreachable and is retryable.
- `PersistenceError` is raised by mention storage for a single insert and is
  isolated per mention by the orchestrator.
"""


class MentionDetectionError(Exception):
    """Base class for all detection engine errors."""


class ContentNotFoundError(MentionDetectionError, LookupError):
    """The requested content item does not exist in the content store."""

    def __init__(self, content_id: str, content_type: str) -> None:
        self.content_id = content_id
        self.content_type = content_type
        super().__init__(f"Content not found: {content_id} (type: {content_type})")


class UpstreamFetchError(MentionDetectionError):
    """The content store or athlete roster could not be reached."""

    retryable = True


class PersistenceError(MentionDetectionError):
    """A mention could not be written (for example a unique-constraint violation)."""
