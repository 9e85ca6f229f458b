"""Forward geocoding of postal addresses through the Mapbox geocoding API."""

from __future__ import annotations

import json
import logging
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import asdict, dataclass
from http import HTTPStatus
from typing import Any, Iterable, Mapping
from urllib.parse import quote

import requests

logger = logging.getLogger(__name__)

DEFAULT_API_BASE = "https://api.mapbox.com"
USER_AGENT = "DeliveryRouting/1.0"
BATCH_SIZE = 10


class GeocodingError(Exception):
    """The geocoding request could not be made or its answer not understood."""


@dataclass
class GeocodingResponse:
    """Outcome of geocoding one address."""

    success: bool
    latitude: float | None = None
    longitude: float | None = None
    formatted_address: str | None = None
    message: str | None = None
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def _status_text(code: int) -> str:
    try:
        return f"{code} {HTTPStatus(code).phrase}"
    except ValueError:
        return f"{code} <unknown status code>"


def _field(mapping: Mapping[str, Any], key: str, kind: type | tuple[type, ...], where: str) -> Any:
    if key not in mapping:
        raise GeocodingError(f"Failed to parse geocoding response: missing field `{key}` in {where}")
    value = mapping[key]
    if not isinstance(value, kind) or isinstance(value, bool):
        raise GeocodingError(f"Failed to parse geocoding response: invalid `{key}` in {where}")
    return value


def _optional_str(mapping: Mapping[str, Any], key: str) -> str | None:
    value = mapping.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise GeocodingError(f"Failed to parse geocoding response: invalid `{key}` in properties")
    return value


def _coordinates(values: list[Any]) -> list[float]:
    coords = []
    for value in values:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise GeocodingError("Failed to parse geocoding response: invalid coordinate")
        coords.append(float(value))
    return coords


def parse_geocoding_payload(payload: str | bytes | Mapping[str, Any]) -> GeocodingResponse:
    """Turn a Mapbox forward-geocoding document into a GeocodingResponse.

    Only the first feature is used. Raises GeocodingError on a malformed document.
    """
    if isinstance(payload, (str, bytes)):
        try:
            payload = json.loads(payload)
        except ValueError as exc:
            raise GeocodingError(f"Failed to parse geocoding response: {exc}") from exc
    if not isinstance(payload, Mapping):
        raise GeocodingError("Failed to parse geocoding response: expected an object")

    _field(payload, "type", str, "response")
    features = []
    for raw in _field(payload, "features", list, "response"):
        if not isinstance(raw, Mapping):
            raise GeocodingError("Failed to parse geocoding response: invalid feature")
        _field(raw, "type", str, "feature")
        geometry = _field(raw, "geometry", Mapping, "feature")
        _field(geometry, "type", str, "geometry")
        coords = _coordinates(_field(geometry, "coordinates", list, "geometry"))
        properties = _field(raw, "properties", Mapping, "feature")
        formatted = (
            _optional_str(properties, "full_address")
            or _optional_str(properties, "place_name")
            or _optional_str(properties, "name")
        )
        features.append((coords, formatted))

    if features:
        coords, formatted = features[0]
        if len(coords) >= 2:
            longitude, latitude = coords[0], coords[1]
            return GeocodingResponse(
                success=True,
                latitude=latitude,
                longitude=longitude,
                formatted_address=formatted,
                message="Geocoding successful",
            )

    return GeocodingResponse(
        success=False, message="No coordinates found for this address"
    )


class GeocodingService:
    """Client for Mapbox forward geocoding, restricted to France."""

    batch_pause = 0.1

    def __init__(
        self,
        mapbox_token: str,
        api_base: str = DEFAULT_API_BASE,
        timeout: float = 10.0,
    ) -> None:
        self.mapbox_token = mapbox_token
        self.api_base = api_base.rstrip("/")
        self.timeout = timeout
        self._session = requests.Session()

    def _url(self, address: str) -> str:
        return (
            f"{self.api_base}/search/geocode/v6/forward"
            f"?q={quote(address, safe='')}"
            f"&access_token={self.mapbox_token}&country=fr&limit=1"
        )

    def geocode_address(self, address: str) -> GeocodingResponse:
        """Geocode one address.

        An HTTP error status yields an unsuccessful response; a failed request
        or an unreadable answer raises GeocodingError.
        """
        logger.info("Geocoding address: %s", address)
        try:
            response = self._session.get(
                self._url(address),
                headers={"User-Agent": USER_AGENT},
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            raise GeocodingError(f"Geocoding request failed: {exc}") from exc

        status = response.status_code
        if not 200 <= status < 300:
            logger.error("Geocoding failed with status %s: %s", status, response.text)
            return GeocodingResponse(
                success=False, error=f"Geocoding failed: {_status_text(status)}"
            )

        result = parse_geocoding_payload(response.text)
        if result.success:
            logger.info(
                "Geocoding successful: %s -> (%s, %s)",
                address, result.latitude, result.longitude,
            )
        else:
            logger.warning("No coordinates found for address: %s", address)
        return result

    def _geocode_safely(self, address: str) -> GeocodingResponse:
        try:
            return self.geocode_address(address)
        except GeocodingError as exc:
            logger.error("Batch geocoding error: %s", exc)
            return GeocodingResponse(success=False, error=str(exc))

    def batch_geocode(self, addresses: Iterable[str]) -> list[GeocodingResponse]:
        """Geocode many addresses, ten at a time in parallel, keeping their order."""
        pending = list(addresses)
        logger.info("Batch geocoding %d addresses", len(pending))
        results: list[GeocodingResponse] = []
        with ThreadPoolExecutor(max_workers=BATCH_SIZE) as pool:
            for start in range(0, len(pending), BATCH_SIZE):
                chunk = pending[start:start + BATCH_SIZE]
                results.extend(pool.map(self._geocode_safely, chunk))
                time.sleep(self.batch_pause)
        logger.info("Batch geocoding completed: %d results", len(results))
        return results