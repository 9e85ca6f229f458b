import json
from http import HTTPStatus

import pytest

from delivroute.errors import (
    AppError,
    BadRequest,
    Conflict,
    DatabaseError,
    ExternalApiError,
    Forbidden,
    HashError,
    InternalError,
    JwtError,
    NotFound,
    NotImplementedFeature,
    RateLimitExceeded,
    ServiceUnavailable,
    Unauthorized,
    ValidationFailed,
    bad_request_error,
    conflict_error,
    forbidden_error,
    internal_error,
    not_found_error,
    validation_error,
)


@pytest.mark.parametrize(
    "cls, status, title, code, label",
    [
        (Unauthorized, HTTPStatus.UNAUTHORIZED, "Unauthorized", "UNAUTHORIZED", "Unauthorized"),
        (Forbidden, HTTPStatus.FORBIDDEN, "Forbidden", "FORBIDDEN", "Forbidden"),
        (NotFound, HTTPStatus.NOT_FOUND, "Not Found", "NOT_FOUND", "Not found"),
        (Conflict, HTTPStatus.CONFLICT, "Conflict", "CONFLICT", "Conflict"),
        (BadRequest, HTTPStatus.BAD_REQUEST, "Bad Request", "BAD_REQUEST", "Bad request"),
        (
            ServiceUnavailable,
            HTTPStatus.SERVICE_UNAVAILABLE,
            "Service Unavailable",
            "SERVICE_UNAVAILABLE",
            "Service unavailable",
        ),
        (JwtError, HTTPStatus.UNAUTHORIZED, "JWT Error", "JWT_ERROR", "JWT error"),
        (
            NotImplementedFeature,
            HTTPStatus.NOT_IMPLEMENTED,
            "Not Implemented",
            "NOT_IMPLEMENTED",
            "Not implemented",
        ),
    ],
)
def test_message_passing_errors(cls, status, title, code, label):
    err = cls("something went wrong")
    got_status, body = err.to_response()
    assert got_status == status
    assert body == {"error": title, "message": "something went wrong", "code": code}
    assert str(err) == f"{label}: something went wrong"


def test_internal_error_hides_message():
    status, body = internal_error("boom").to_response()
    assert status == HTTPStatus.INTERNAL_SERVER_ERROR
    assert body["message"] == "An unexpected error occurred"
    assert body["details"] == {"internal_error": "boom"}
    assert body["code"] == "INTERNAL_ERROR"


def test_rate_limit_exceeded():
    err = RateLimitExceeded()
    status, body = err.to_response()
    assert str(err) == "Rate limit exceeded"
    assert status == HTTPStatus.TOO_MANY_REQUESTS
    assert body["message"] == "Too many requests. Please try again later"
    assert "details" not in body


def test_database_error_from_message():
    status, body = DatabaseError("connection lost").to_response()
    assert status == HTTPStatus.INTERNAL_SERVER_ERROR
    assert body["code"] == "DATABASE_ERROR"
    assert body["details"] == {"database_error": "connection lost"}
    assert body["message"] == "An error occurred while accessing the database"


def test_database_error_from_exception():
    cause = RuntimeError("driver failure")
    err = DatabaseError(cause)
    _, body = err.to_response()
    assert err.cause is cause
    assert body["code"] == "DB_ERROR"
    assert body["details"] == {"sql_error": "driver failure"}


def test_hash_and_external_api_errors():
    _, hash_body = HashError("salt").to_response()
    assert hash_body["message"] == "An error occurred while processing credentials"
    assert hash_body["details"] == {"hash_error": "salt"}
    status, api_body = ExternalApiError("timeout").to_response()
    assert status == HTTPStatus.BAD_GATEWAY
    assert api_body["details"] == {"external_api_error": "timeout"}
    assert api_body["code"] == "EXTERNAL_API_ERROR"


def test_validation_failed_from_string():
    status, body = ValidationFailed("bad input").to_response()
    assert status == HTTPStatus.BAD_REQUEST
    assert body["message"] == "bad input"
    assert "details" not in body
    assert body["code"] == "VALIDATION_ERROR"


def test_validation_error_helper():
    err = validation_error("email", "must be valid")
    status, body = err.to_response()
    assert status == HTTPStatus.BAD_REQUEST
    assert body["message"] == "The provided data is invalid"
    entry = body["details"]["email"][0]
    assert entry["code"] == "custom"
    assert entry["params"] == {"field": "email", "message": "must be valid"}
    assert str(err).startswith("Validation error: email")


def test_not_found_helper():
    err = not_found_error("Route", "abc")
    assert isinstance(err, NotFound)
    assert err.detail == "Route with id 'abc' not found"


def test_conflict_helper():
    err = conflict_error("User", "email", "someone@example.com")
    assert isinstance(err, Conflict)
    assert "User" in err.detail and "email" in err.detail
    assert "'someone@example.com'" in err.detail


def test_forbidden_helper():
    err = forbidden_error("delete", "not owner")
    assert isinstance(err, Forbidden)
    assert err.detail.startswith("Cannot delete")
    assert err.detail.endswith("not owner")


def test_bad_request_helper():
    err = bad_request_error("missing field")
    assert isinstance(err, BadRequest)
    assert err.to_response()[1]["message"] == "missing field"


def test_all_errors_catchable_and_serialisable():
    errors = [
        not_found_error("Package", "1"),
        internal_error("x"),
        RateLimitExceeded(),
        validation_error("name", "empty"),
        DatabaseError(ValueError("v")),
    ]
    for err in errors:
        with pytest.raises(AppError):
            raise err
        _, body = err.to_response()
        assert json.loads(json.dumps(body)) == body
        assert body["code"] == err.code