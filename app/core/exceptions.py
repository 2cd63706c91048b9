# app/core/exceptions.py
"""
Scheduling errors.

Every rejection raised by the scheduling services carries a stable ``kind`` so
the portal can render role-appropriate messaging. None of them are transient,
so nothing here is retried automatically.
"""
from typing import Any, Dict, Optional
import logging

from fastapi import Request, status
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)

HTTP_422_UNPROCESSABLE: int = getattr(status, "HTTP_422_UNPROCESSABLE_CONTENT", 422)


class SchedulingError(Exception):
    """Base class for all scheduling rejections."""

    kind = "scheduling_error"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind,
            "message": self.message,
            "details": self.details,
        }


class ValidationError(SchedulingError):
    """Malformed input: bad day of week, inverted range, unknown timezone..."""

    kind = "validation_error"
    status_code = status.HTTP_400_BAD_REQUEST


class AuthorizationError(SchedulingError):
    """The acting user has no rights over the resource."""

    kind = "authorization_error"
    status_code = status.HTTP_403_FORBIDDEN


class NotFoundError(SchedulingError):
    kind = "not_found"
    status_code = status.HTTP_404_NOT_FOUND


class ConflictError(SchedulingError):
    """Overlap with an existing scheduled session detected at commit time."""

    kind = "conflict"
    status_code = status.HTTP_409_CONFLICT


class PolicyError(SchedulingError):
    """A business rule rejects the request (cancellation window, quota...)."""

    kind = "policy_violation"
    status_code = HTTP_422_UNPROCESSABLE


class InvalidStateError(SchedulingError):
    """Transition attempted from a terminal session status."""

    kind = "invalid_state"
    status_code = status.HTTP_409_CONFLICT


async def scheduling_error_handler(request: Request, exc: SchedulingError) -> JSONResponse:
    """Render scheduling errors as ``{"error": {...}}`` with the matching status"""
    correlation_id = getattr(request.state, "correlation_id", "-")
    logger.info(f"{request.method} {request.url.path} rejected: {exc.kind}: {exc.message}",
                extra={"correlation_id": correlation_id})
    return JSONResponse(status_code=exc.status_code, content={"error": exc.to_dict()})
