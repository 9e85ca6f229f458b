"""Field validators that raise ValidationError on bad input."""

from __future__ import annotations

import re
import uuid
from datetime import date, datetime, time, timedelta, timezone
from typing import Any, Iterable

_DIGITS = frozenset("0123456789")
_PLATE_SEPARATORS = str.maketrans("", "", " -_")
_RFC3339 = re.compile(
    r"(\d{4})-(\d{2})-(\d{2})[Tt ](\d{2}):(\d{2}):(\d{2})"
    r"(?:\.(\d+))?([Zz]|[+-]\d{2}:\d{2})"
)


class ValidationError(ValueError):
    """A failed check, identified by a code and carrying its parameters."""

    def __init__(
        self,
        code: str,
        params: dict[str, Any] | None = None,
        message: str | None = None,
    ) -> None:
        self.code = code
        self.params = dict(params or {})
        self.message = message
        super().__init__(code)

    def __str__(self) -> str:
        if self.message:
            return self.message
        return f"Validation error: {self.code} [{self.params}]"

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-ready description of the error."""
        return {"code": self.code, "message": self.message, "params": dict(self.params)}


def _utf8_len(value: str) -> int:
    return len(value.encode("utf-8"))


def validate_uuid(value: str) -> uuid.UUID:
    """Parse a UUID string."""
    try:
        return uuid.UUID(value)
    except (ValueError, TypeError, AttributeError):
        raise ValidationError("uuid", {"value": value}) from None


def validate_date(value: str) -> date:
    """Parse a YYYY-MM-DD date."""
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except (ValueError, TypeError):
        raise ValidationError("date", {"value": value, "format": "YYYY-MM-DD"}) from None


def validate_time(value: str) -> time:
    """Parse an HH:MM:SS time."""
    try:
        return datetime.strptime(value, "%H:%M:%S").time()
    except (ValueError, TypeError):
        raise ValidationError("time", {"value": value, "format": "HH:MM:SS"}) from None


def validate_datetime(value: str) -> datetime:
    """Parse an RFC 3339 timestamp and return it in UTC."""
    error = ValidationError("datetime", {"value": value, "format": "RFC3339"})
    match = _RFC3339.fullmatch(value) if isinstance(value, str) else None
    if match is None:
        raise error
    year, month, day, hour, minute, second = (int(match[i]) for i in range(1, 7))
    micro = int((match[7] or "")[:6].ljust(6, "0"))
    offset = match[8]
    try:
        if offset in ("Z", "z"):
            tz = timezone.utc
        else:
            sign = -1 if offset[0] == "-" else 1
            delta = timedelta(hours=int(offset[1:3]), minutes=int(offset[4:6]))
            tz = timezone(sign * delta)
        parsed = datetime(year, month, day, hour, minute, second, micro, tzinfo=tz)
    except ValueError:
        raise error from None
    return parsed.astimezone(timezone.utc)


def validate_not_empty(value: str) -> None:
    """Reject strings that are empty or only whitespace."""
    if not value.strip():
        raise ValidationError("not_empty", {"value": value})


def validate_length(value: str, min_len: int, max_len: int) -> None:
    """Require the character count to lie within [min_len, max_len]."""
    length = len(value)
    if length < min_len or length > max_len:
        raise ValidationError("length", {"min": min_len, "max": max_len, "actual": length})


def validate_range(value: Any, minimum: Any, maximum: Any) -> None:
    """Require minimum <= value <= maximum."""
    if value < minimum or value > maximum:
        raise ValidationError("range", {"min": minimum, "max": maximum, "actual": value})


def validate_email(value: str) -> None:
    """Basic e-mail check: needs both '@' and '.'."""
    if "@" not in value or "." not in value:
        raise ValidationError("email", {"value": value})


def validate_phone(value: str) -> None:
    """Require between 10 and 15 ASCII digits, ignoring other characters."""
    digits = sum(1 for ch in value if ch in _DIGITS)
    if digits < 10 or digits > 15:
        raise ValidationError("phone", {"value": value})


def validate_enum(value: Any, allowed_values: Iterable[Any]) -> None:
    """Require value to be one of allowed_values."""
    allowed = list(allowed_values)
    if value not in allowed:
        raise ValidationError("enum", {"value": value, "allowed_values": repr(allowed)})


def validate_coordinates(lat: float, lng: float) -> None:
    """Check latitude and longitude ranges."""
    if lat < -90.0 or lat > 90.0:
        raise ValidationError("latitude", {"value": lat, "range": "-90.0 to 90.0"})
    if lng < -180.0 or lng > 180.0:
        raise ValidationError("longitude", {"value": lng, "range": "-180.0 to 180.0"})


def validate_positive(value: Any) -> None:
    """Require value > 0."""
    if value <= 0:
        raise ValidationError("positive", {"value": value})


def validate_non_negative(value: Any) -> None:
    """Require value >= 0."""
    if value < 0:
        raise ValidationError("non_negative", {"value": value})


def validate_license_plate(value: str) -> None:
    """Require 5 to 10 characters once spaces, dashes and underscores are removed."""
    length = _utf8_len(value.translate(_PLATE_SEPARATORS))
    if length < 5 or length > 10:
        raise ValidationError("license_plate", {"value": value})


def validate_tournee_number(value: str) -> None:
    """Require a 'T' followed by at least one more character."""
    if not value.startswith("T") or _utf8_len(value) < 2:
        raise ValidationError(
            "tournee_number", {"value": value, "format": "T followed by numbers"}
        )


def validate_tracking_number(value: str) -> None:
    """Require a tracking number of 5 to 100 bytes."""
    length = _utf8_len(value)
    if length < 5 or length > 100:
        raise ValidationError(
            "tracking_number", {"value": value, "length": "5-100 characters"}
        )