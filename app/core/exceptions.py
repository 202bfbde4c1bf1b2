"""
VLRBUDDY - Error Taxonomy
Exceptions raised by the upstream client, mirror store, ingestion and read paths.
"""

from typing import Any, Optional


class VLRBuddyError(Exception):
    """Base class for all backend errors."""


class ConfigError(VLRBuddyError):
    """Missing or invalid configuration (credential, database URI)."""


class UpstreamError(VLRBuddyError):
    """Upstream request failed after all retries."""

    def __init__(self, message: str, status: Optional[int] = None, body: Any = None):
        super().__init__(message)
        self.status = status
        self.body = body

    def __str__(self) -> str:
        base = super().__str__()
        if self.status is not None:
            return f"{base} (status {self.status})"
        return base


class StoreError(VLRBuddyError):
    """Mirror store unreachable or a write failed."""


class NotFoundError(VLRBuddyError):
    """A lookup by id returned no record."""

    def __init__(self, collection: str, record_id: Any):
        super().__init__(f"{collection} {record_id} not found")
        self.collection = collection
        self.record_id = record_id


class ValidationError(VLRBuddyError):
    """Data did not have the expected shape."""


class IngestionError(VLRBuddyError):
    """An ingestion cycle failed as a whole."""

    def __init__(self, message: str, report: Any = None):
        super().__init__(message)
        self.report = report


class CatalogUnavailableError(VLRBuddyError):
    """Both the mirror and the upstream fallback failed for a read."""

    def __init__(self, description: str, mirror_error: Exception, upstream_error: Exception):
        super().__init__(
            f"Failed to fetch {description}: mirror: {mirror_error}; upstream: {upstream_error}"
        )
        self.mirror_error = mirror_error
        self.upstream_error = upstream_error
