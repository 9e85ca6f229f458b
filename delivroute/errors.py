"""Application errors and their conversion into HTTP error responses."""

from __future__ import annotations

import logging
from http import HTTPStatus
from typing import Any, Iterable, Mapping

from delivroute.validation import ValidationError

logger = logging.getLogger(__name__)


class AppError(Exception):
    """Base of all application errors; knows how to render itself as a response."""

    status: HTTPStatus = HTTPStatus.INTERNAL_SERVER_ERROR
    title: str = "Internal Server Error"
    code: str = "INTERNAL_ERROR"
    label: str = "Internal server error"

    def __init__(self, detail: str = "") -> None:
        self.detail = detail
        super().__init__(detail)

    def __str__(self) -> str:
        return f"{self.label}: {self.detail}"

    def _public_message(self) -> str:
        return self.detail

    def _details(self) -> dict[str, Any] | None:
        return None

    def to_response(self) -> tuple[HTTPStatus, dict[str, Any]]:
        """Return the HTTP status and the JSON body describing this error."""
        logger.error("%s", self)
        body: dict[str, Any] = {"error": self.title, "message": self._public_message()}
        details = self._details()
        if details is not None:
            body["details"] = details
        body["code"] = self.code
        return self.status, body


class DatabaseError(AppError):
    """A failure while talking to the database."""

    title = "Database Error"
    label = "Database error"

    def __init__(self, cause: str | BaseException) -> None:
        self.cause = cause
        if isinstance(cause, BaseException):
            self.code = "DB_ERROR"
            self._details_key = "sql_error"
        else:
            self.code = "DATABASE_ERROR"
            self._details_key = "database_error"
        super().__init__(str(cause))

    def _public_message(self) -> str:
        return "An error occurred while accessing the database"

    def _details(self) -> dict[str, Any]:
        return {self._details_key: self.detail}


class ValidationFailed(AppError):
    """Invalid input, either as a plain message or as errors grouped by field."""

    status = HTTPStatus.BAD_REQUEST
    title = "Validation Error"
    code = "VALIDATION_ERROR"
    label = "Validation error"

    def __init__(self, errors: str | Mapping[str, Iterable[ValidationError]]) -> None:
        if isinstance(errors, str):
            self.field_errors: dict[str, list[ValidationError]] = {}
            self._structured = False
            detail = errors
        else:
            self.field_errors = {field: list(errs) for field, errs in errors.items()}
            self._structured = True
            detail = "; ".join(
                f"{field}: {', '.join(str(err) for err in errs)}"
                for field, errs in self.field_errors.items()
            )
        super().__init__(detail)

    def _public_message(self) -> str:
        if self._structured:
            return "The provided data is invalid"
        return self.detail

    def _details(self) -> dict[str, Any] | None:
        if not self._structured:
            return None
        return {
            field: [err.to_dict() for err in errs]
            for field, errs in self.field_errors.items()
        }


class Unauthorized(AppError):
    status = HTTPStatus.UNAUTHORIZED
    title = "Unauthorized"
    code = "UNAUTHORIZED"
    label = "Unauthorized"


class Forbidden(AppError):
    status = HTTPStatus.FORBIDDEN
    title = "Forbidden"
    code = "FORBIDDEN"
    label = "Forbidden"


class NotFound(AppError):
    status = HTTPStatus.NOT_FOUND
    title = "Not Found"
    code = "NOT_FOUND"
    label = "Not found"


class Conflict(AppError):
    status = HTTPStatus.CONFLICT
    title = "Conflict"
    code = "CONFLICT"
    label = "Conflict"


class BadRequest(AppError):
    status = HTTPStatus.BAD_REQUEST
    title = "Bad Request"
    code = "BAD_REQUEST"
    label = "Bad request"


class InternalError(AppError):
    """An unexpected failure; its text is reported only in the details."""

    def _public_message(self) -> str:
        return "An unexpected error occurred"

    def _details(self) -> dict[str, Any]:
        return {"internal_error": self.detail}


class RateLimitExceeded(AppError):
    status = HTTPStatus.TOO_MANY_REQUESTS
    title = "Rate Limit Exceeded"
    code = "RATE_LIMIT_EXCEEDED"
    label = "Rate limit exceeded"

    def __init__(self) -> None:
        super().__init__("")

    def __str__(self) -> str:
        return self.label

    def _public_message(self) -> str:
        return "Too many requests. Please try again later"


class ServiceUnavailable(AppError):
    status = HTTPStatus.SERVICE_UNAVAILABLE
    title = "Service Unavailable"
    code = "SERVICE_UNAVAILABLE"
    label = "Service unavailable"


class JwtError(AppError):
    status = HTTPStatus.UNAUTHORIZED
    title = "JWT Error"
    code = "JWT_ERROR"
    label = "JWT error"


class HashError(AppError):
    title = "Hash Error"
    code = "HASH_ERROR"
    label = "Hash error"

    def _public_message(self) -> str:
        return "An error occurred while processing credentials"

    def _details(self) -> dict[str, Any]:
        return {"hash_error": self.detail}


class ExternalApiError(AppError):
    status = HTTPStatus.BAD_GATEWAY
    title = "External API Error"
    code = "EXTERNAL_API_ERROR"
    label = "External API error"

    def _public_message(self) -> str:
        return "An error occurred while communicating with external service"

    def _details(self) -> dict[str, Any]:
        return {"external_api_error": self.detail}


class NotImplementedFeature(AppError):
    status = HTTPStatus.NOT_IMPLEMENTED
    title = "Not Implemented"
    code = "NOT_IMPLEMENTED"
    label = "Not implemented"


def validation_error(field: str, message: str) -> ValidationFailed:
    """Build a field-level validation failure."""
    error = ValidationError("custom", {"field": field, "message": message})
    return ValidationFailed({field: [error]})


def not_found_error(resource: str, id: str) -> NotFound:
    return NotFound(f"{resource} with id '{id}' not found")


def conflict_error(resource: str, field: str, value: str) -> Conflict:
    return Conflict(f"{resource} with {field} '{value}' already exists")


def forbidden_error(operation: str, reason: str) -> Forbidden:
    return Forbidden(f"Cannot {operation}: {reason}")


def bad_request_error(message: str) -> BadRequest:
    return BadRequest(message)


def internal_error(message: str) -> InternalError:
    return InternalError(message)