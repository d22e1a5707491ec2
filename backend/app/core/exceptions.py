"""
Application exceptions

Services raise these; app.api.error_handlers turns them into the
standard error envelope.
"""
from typing import Any, Dict, List, Optional, Union

from fastapi import status


class AppError(Exception):
    """
    Base exception for business errors.

    All custom exceptions should inherit from this class.
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        status_code: int = status.HTTP_400_BAD_REQUEST,
        errors: Optional[List[Dict[str, Any]]] = None,
    ):
        self.message = message
        self.status_code = status_code
        self.errors = errors
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to the error envelope."""
        body: Dict[str, Any] = {"success": False, "message": self.message}
        if self.errors:
            body["errors"] = self.errors
        return body


class ValidationError(AppError):
    """Raised when request data breaks a business rule."""

    def __init__(self, message: str = "Validation error", errors: Optional[List[Dict[str, Any]]] = None):
        super().__init__(message, status.HTTP_400_BAD_REQUEST, errors)


class ConflictError(AppError):
    """Raised on duplicates (codes, slugs, SKUs, emails)."""

    def __init__(self, message: str = "Resource already exists"):
        super().__init__(message, status.HTTP_400_BAD_REQUEST)


class NotFoundError(AppError):
    """Raised when a requested resource is not found."""

    def __init__(self, resource_type: str, resource_id: Union[str, int, None] = None, message: Optional[str] = None):
        if message is None:
            message = f"{resource_type} not found"
            if resource_id is not None:
                message = f"{resource_type} with id '{resource_id}' not found"
        self.resource_type = resource_type
        self.resource_id = resource_id
        super().__init__(message, status.HTTP_404_NOT_FOUND)


class AuthenticationError(AppError):
    def __init__(self, message: str = "Authentication failed"):
        super().__init__(message, status.HTTP_401_UNAUTHORIZED)


class PermissionDeniedError(AppError):
    def __init__(self, message: str = "Access denied"):
        super().__init__(message, status.HTTP_403_FORBIDDEN)
