"""
Planner exceptions and the HTTP handler that renders them.

Data-quality problems in individual farmer orders are never raised; they are
logged and skipped where they occur. Everything here is either a programming
error, a recoverable storage conflict, or a lookup failure.
"""

from typing import Any, Dict

from fastapi import Request, status
from fastapi.responses import JSONResponse


class PlannerError(Exception):
    """Base planner exception."""

    def __init__(
        self,
        message: str,
        error_code: str,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        details: Dict[str, Any] | None = None,
    ):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.details = details or {}
        super().__init__(message)


class PlanningPreconditionError(PlannerError, AssertionError):
    """Raised when the packer is called with input that breaks its contract."""

    def __init__(self, message: str, details: Dict[str, Any] | None = None):
        super().__init__(
            message=message,
            error_code="ERR_PLAN_PRECONDITION",
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            details=details,
        )


class DuplicatePlanError(PlannerError):
    """Raised by storage when trips for a (center, date, shift) key already exist."""

    def __init__(self, logistic_center_id: str, pickup_date: str, shift: str):
        super().__init__(
            message=f"Trips already planned for {logistic_center_id}/{pickup_date}/{shift}",
            error_code="ERR_PLAN_DUPLICATE",
            status_code=status.HTTP_409_CONFLICT,
            details={
                "logistic_center_id": logistic_center_id,
                "pickup_date": pickup_date,
                "shift": shift,
            },
        )


class InvalidTransitionError(PlannerError, ValueError):
    """Raised for an illegal stop status change or an unknown stage key."""

    def __init__(self, message: str, details: Dict[str, Any] | None = None):
        super().__init__(
            message=message,
            error_code="ERR_INVALID_TRANSITION",
            status_code=status.HTTP_409_CONFLICT,
            details=details,
        )


class ResourceNotFoundError(PlannerError):
    """Raised when a required configuration record is not found."""

    def __init__(self, resource: str, resource_id: Any = None):
        message = f"{resource} not found"
        if resource_id:
            message = f"{resource} '{resource_id}' not found"
        super().__init__(
            message=message,
            error_code="ERR_NOT_FOUND",
            status_code=status.HTTP_404_NOT_FOUND,
            details={"resource": resource, "id": resource_id},
        )


async def planner_exception_handler(request: Request, exc: PlannerError) -> JSONResponse:
    """Handler for planner exceptions."""
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error_code": exc.error_code,
            "message": exc.message,
            "details": exc.details,
        },
    )
