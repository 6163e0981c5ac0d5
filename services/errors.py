# Service-level errors for Ziyara
# Raised from services and rendered by FastAPI like any HTTPException

from fastapi import HTTPException, status


class ServiceError(HTTPException):
    """Base class for errors raised by marketplace services."""

    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, detail: str):
        super().__init__(status_code=self.status_code, detail=detail)


class ValidationError(ServiceError):
    """Input rejected at the boundary; no state was changed."""
    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundError(ServiceError):
    status_code = status.HTTP_404_NOT_FOUND


class PermissionDeniedError(ServiceError):
    status_code = status.HTTP_403_FORBIDDEN


class ConflictError(ServiceError):
    """The row was not in the expected state when the write happened."""
    status_code = status.HTTP_409_CONFLICT


class ScorerError(ServiceError):
    """The matching provider failed; campaign state is left untouched."""
    status_code = status.HTTP_502_BAD_GATEWAY
