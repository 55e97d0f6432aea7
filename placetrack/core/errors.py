"""Error kinds raised by the tracking core.

The four business kinds are recoverable by the caller; the transport layer
decides how to surface them. ``StoreError`` wraps infrastructure failures
and is not a ``TrackingError``.
"""

from typing import Any, Dict, List, Optional


class TrackingError(Exception):
    """Base class for business-rule failures."""

    kind = "tracking_error"

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class NotFound(TrackingError):
    """A referenced entity or fact does not exist."""

    kind = "not_found"

    def __init__(self, entity: str, entity_id: Any):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} with id {entity_id} not found")


class Conflict(TrackingError):
    """A uniqueness invariant would be violated."""

    kind = "conflict"


class InvalidState(TrackingError):
    """The parent entity does not satisfy its gating predicate."""

    kind = "invalid_state"


class ValidationFailed(TrackingError):
    """Malformed input rejected before reaching the core."""

    kind = "validation_failed"

    def __init__(self, message: str = "Validation failed", details: Optional[List[Dict[str, Any]]] = None):
        self.details = details or []
        super().__init__(message)


class StoreError(Exception):
    """The persistent store failed (connection loss, timeout, ...)."""

    kind = "store_unavailable"

    def __init__(self, message: str, original: Optional[BaseException] = None):
        self.message = message
        self.original = original
        super().__init__(message)
