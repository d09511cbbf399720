"""Unified error codes and custom exceptions.

Error codes follow the backend error body ``{code, message, details?}``:
  validation_error     400 / 422
  unauthorized         401
  forbidden            403
  not_found            404
  conflict             409 (Idempotency-Key reused with a different payload)
  network_error        timeout / connection failure after retries
  internal_server_error 5xx after retries
  unknown_error        anything uncategorized
"""

from typing import Any


class AppError(Exception):
    """Base application error."""

    def __init__(
        self,
        code: str,
        message: str,
        http_status: int = 500,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.code = code
        self.message = message
        self.http_status = http_status
        self.details = details
        super().__init__(message)

    @staticmethod
    def from_exception(exc: BaseException) -> "AppError":
        """Return ``exc`` unchanged if it is already an AppError, else wrap it."""
        if isinstance(exc, AppError):
            return exc
        return UnknownError(str(exc) or type(exc).__name__)

    def user_message(self) -> str:
        return _USER_MESSAGES.get(self.code, self.message)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(code={self.code!r}, http_status={self.http_status}, message={self.message!r})"


# --- Client-side / validation ---

class ValidationError(AppError):
    def __init__(
        self, message: str = "Invalid data", details: dict[str, Any] | None = None
    ) -> None:
        super().__init__("validation_error", message, 422, details)


class IdempotencyKeyReassignedError(AppError):
    """A key already bound to one order id was offered a different one."""

    def __init__(self, key: str, existing_order_id: str, new_order_id: str) -> None:
        super().__init__(
            "idempotency_key_reassigned",
            f"Idempotency key {key} is bound to order {existing_order_id}, "
            f"refusing to rebind it to {new_order_id}",
            500,
        )
        self.key = key


class StorageError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__("storage_error", f"Storage unavailable: {detail}", 500)


# --- HTTP status mapped ---

class UnauthorizedError(AppError):
    def __init__(self, message: str = "Authentication required") -> None:
        super().__init__("unauthorized", message, 401)


class ForbiddenError(AppError):
    def __init__(self, message: str = "Access denied") -> None:
        super().__init__("forbidden", message, 403)


class NotFoundError(AppError):
    def __init__(self, message: str = "Resource not found") -> None:
        super().__init__("not_found", message, 404)


class IdempotencyConflictError(AppError):
    def __init__(
        self,
        message: str = "Idempotency key reused with a different payload",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__("conflict", message, 409, details)


# --- Transport ---

class NetworkError(AppError):
    def __init__(self, message: str = "Connection failed") -> None:
        super().__init__("network_error", message, 0)


class ServerError(AppError):
    def __init__(self, message: str = "Internal server error", http_status: int = 500) -> None:
        super().__init__("internal_server_error", message, http_status)


class UnknownError(AppError):
    def __init__(self, message: str = "Unknown error", http_status: int = 500) -> None:
        super().__init__("unknown_error", message, http_status)


_USER_MESSAGES = {
    "validation_error": "Some of the information is invalid.",
    "unauthorized": "Please sign in to continue.",
    "forbidden": "You do not have permission for this action.",
    "not_found": "We could not find what you were looking for.",
    "conflict": "This order was already submitted with different details.",
    "network_error": "Connection problem. Check your internet and try again.",
    "internal_server_error": "The server had a problem. Please try again.",
}


def error_from_response(status: int, body: Any) -> AppError:
    """Map an HTTP error status and ``{code, message, details?}`` body to an AppError."""
    message: str | None = None
    details: dict[str, Any] | None = None
    if isinstance(body, dict):
        raw_message = body.get("message")
        message = str(raw_message) if raw_message else None
        raw_details = body.get("details")
        details = raw_details if isinstance(raw_details, dict) else None

    if status == 401:
        return UnauthorizedError(message or "Authentication required")
    if status == 403:
        return ForbiddenError(message or "Access denied")
    if status == 404:
        return NotFoundError(message or "Resource not found")
    if status == 409:
        return IdempotencyConflictError(
            message or "Idempotency key reused with a different payload", details
        )
    if status in (400, 422):
        return ValidationError(message or "Invalid data", details)
    if 500 <= status < 600:
        return ServerError(message or "Internal server error", status)
    return UnknownError(message or f"Unexpected response status {status}", status)
