"""Domain error kinds raised by the service layer.

Every kind is an ``HTTPException`` so services can raise it directly, the
same way they raise plain HTTP errors. ``main`` renders them into the
``{"success": false, "error": <kind>, "message": ...}`` envelope.
"""
from typing import Any, Optional

from fastapi import HTTPException, status


class DomainError(HTTPException):
    """Base class: ``kind`` is the machine-readable error name."""

    kind = "DomainError"
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str, context: Optional[dict[str, Any]] = None):
        super().__init__(status_code=self.status_code, detail=message)
        self.message = message
        self.context = context or {}

    def __str__(self) -> str:
        return f"{self.kind}: {self.message}"


class NotFound(DomainError):
    kind = "NotFound"
    status_code = status.HTTP_404_NOT_FOUND


class Forbidden(DomainError):
    kind = "Forbidden"
    status_code = status.HTTP_403_FORBIDDEN


class SelfPurchase(Forbidden):
    kind = "SelfPurchase"


class InvalidService(DomainError):
    kind = "InvalidService"
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY


class InvalidTransition(DomainError):
    kind = "InvalidTransition"
    status_code = status.HTTP_409_CONFLICT


class InvalidState(DomainError):
    kind = "InvalidState"
    status_code = status.HTTP_409_CONFLICT


class RevisionLimitExceeded(DomainError):
    kind = "RevisionLimitExceeded"
    status_code = status.HTTP_409_CONFLICT


class InsufficientFunds(DomainError):
    kind = "InsufficientFunds"
    status_code = status.HTTP_402_PAYMENT_REQUIRED


class HoldNotFound(DomainError):
    """No open escrow hold where one must exist — double settlement or corruption."""

    kind = "HoldNotFound"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


class Conflict(DomainError):
    kind = "Conflict"
    status_code = status.HTTP_409_CONFLICT


class InvalidArgument(DomainError):
    kind = "InvalidArgument"
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
