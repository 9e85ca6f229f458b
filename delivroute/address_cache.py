"""Address lookup that tries memory, then the store, then geocoding."""

from __future__ import annotations

import enum
import logging
import re
from dataclasses import dataclass
from typing import Protocol

from delivroute.address_store import AddressStore, CachedAddress
from delivroute.geocoding import GeocodingError, GeocodingResponse

logger = logging.getLogger(__name__)

_STREET = re.compile(r"(\d+)\s+(.+)")
_POSTCODE_CITY = re.compile(r"(\d{5})\s+([^,]+)")


class _Geocoder(Protocol):
    def geocode_address(self, address: str) -> GeocodingResponse: ...


class AddressSource(enum.Enum):
    """Where a looked-up address came from."""

    DATABASE = "Database"
    MAPBOX = "Mapbox"
    NOT_FOUND = "NotFound"


@dataclass
class AddressCacheResult:
    """Outcome of a lookup."""

    found: bool
    address: CachedAddress | None
    source: AddressSource

    @classmethod
    def not_found(cls) -> AddressCacheResult:
        return cls(found=False, address=None, source=AddressSource.NOT_FOUND)


def extract_street_components(address: str) -> tuple[str | None, str]:
    """Split "123 Rue de la Paix" into ("123", "Rue de la Paix").

    Without a leading number the whole address is the street name.
    """
    match = _STREET.fullmatch(address)
    if match is None:
        return None, address
    return match[1], match[2]


def extract_postcode_city(address: str) -> tuple[str, str]:
    """Find a five-digit postcode and the city after it; empty strings if absent."""
    match = _POSTCODE_CITY.search(address)
    if match is None:
        return "", ""
    return match[1], match[2]


class AddressCacheService:
    """Resolves addresses from memory or the store, geocoding and saving new ones."""

    def __init__(self, store: AddressStore, geocoder: _Geocoder) -> None:
        self.store = store
        self.geocoder = geocoder
        self._memory: dict[str, CachedAddress] = {}

    def find_or_geocode_address(self, address: str, company_id: str) -> AddressCacheResult:
        """Look an address up, geocoding and storing it if it is not yet known."""
        logger.info("Looking up address %r for company %r", address, company_id)

        cached = self._memory.get(address)
        if cached is not None:
            return AddressCacheResult(True, cached, AddressSource.DATABASE)

        stored = self._find_in_store(address, company_id)
        if stored is not None:
            self._memory[address] = stored
            return AddressCacheResult(True, stored, AddressSource.DATABASE)

        logger.info("Address not cached, geocoding: %s", address)
        try:
            response = self.geocoder.geocode_address(address)
        except GeocodingError as exc:
            logger.error("Geocoding error: %s", exc)
            return AddressCacheResult.not_found()
        if not response.success:
            return AddressCacheResult.not_found()

        saved = self._save(address, response, company_id)
        if saved is None:
            return AddressCacheResult.not_found()
        self._memory[address] = saved
        return AddressCacheResult(True, saved, AddressSource.MAPBOX)

    def _find_in_store(self, address: str, company_id: str) -> CachedAddress | None:
        exact = self.store.find_exact(address, company_id)
        if exact is not None:
            return exact
        number, street = extract_street_components(address)
        if number is None or not street:
            return None
        return self.store.find_by_street(street, number, company_id)

    def _save(
        self, original: str, response: GeocodingResponse, company_id: str
    ) -> CachedAddress | None:
        latitude = response.latitude if response.latitude is not None else 0.0
        longitude = response.longitude if response.longitude is not None else 0.0
        label = response.formatted_address if response.formatted_address is not None else original
        number, street = extract_street_components(label)
        postcode, city = extract_postcode_city(label)
        return self.store.save(
            company_id, label, street, number, postcode, city, latitude, longitude
        )

    def clear_memory_cache(self) -> None:
        """Forget every address held in memory."""
        self._memory.clear()
        logger.info("Memory cache cleared")

    def cache_stats(self) -> tuple[int, int]:
        """Return (addresses in memory, addresses counted in the store: always 0)."""
        return len(self._memory), 0