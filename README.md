# delivroute

Building blocks for a parcel delivery backend.

| Module | What it offers |
| --- | --- |
| `delivroute.validation` | Field checks that raise `ValidationError` |
| `delivroute.errors` | `AppError` and its subclasses, each rendered as an HTTP status and JSON body |
| `delivroute.geocoding` | `GeocodingService`, a client for Mapbox v6 forward geocoding (France only) |
| `delivroute.companies` | `ColisPriveCompaniesService` and `fetch_all_companies` for the carrier's company list |
| `delivroute.address_store` | `AddressStore`, a SQLite table of known addresses |
| `delivroute.address_cache` | `AddressCacheService`, which checks memory, then the store, then the geocoder |

## Installation

```
pip install .
```

To install the test dependencies as well:

```
pip install ".[test]"
```

## Validation

Every check raises `ValidationError`, a `ValueError` subclass. The error has a
`code` such as `"phone"` or `"range"` and a `params` dict. The parsing checks
(`validate_uuid`, `validate_date`, `validate_time`, `validate_datetime`) return
the parsed value. `validate_datetime` accepts RFC 3339 and returns the time in UTC.

```python
from delivroute.validation import ValidationError, validate_date, validate_phone

day = validate_date("2024-01-15")   # datetime.date(2024, 1, 15)

try:
    validate_phone("123")
except ValidationError as exc:
    print(exc.code, exc.params)     # phone {'value': '123'}
```

The other checks are:

- `validate_not_empty`
- `validate_length`
- `validate_range`
- `validate_email`
- `validate_enum`
- `validate_coordinates`
- `validate_positive`
- `validate_non_negative`
- `validate_license_plate`
- `validate_tournee_number`
- `validate_tracking_number`

## Errors as HTTP responses

`AppError.to_response()` returns a `(HTTPStatus, body)` pair. It also logs the
error. The subclasses are:

- `DatabaseError`
- `ValidationFailed`
- `Unauthorized`
- `Forbidden`
- `NotFound`
- `Conflict`
- `BadRequest`
- `InternalError`
- `RateLimitExceeded`
- `ServiceUnavailable`
- `JwtError`
- `HashError`
- `ExternalApiError`
- `NotImplementedFeature`

Some errors replace the public message with a generic one and put their text
under `details`: internal, hash, external API and database errors.

```python
from delivroute.errors import not_found_error

err = not_found_error("Package", "42")
status, body = err.to_response()
# status == 404
# body == {"error": "Not Found",
#          "message": "Package with id '42' not found",
#          "code": "NOT_FOUND"}
```

The helpers are:

- `validation_error`
- `not_found_error`
- `conflict_error`
- `forbidden_error`
- `bad_request_error`
- `internal_error`

## Geocoding

The outcome of `GeocodingService.geocode_address` depends on how the request goes:

- If the service answers with an HTTP error status, the method returns a
  `GeocodingResponse` with `success=False` and an `error` text.
- If the request itself fails, or the answer cannot be read, it raises
  `GeocodingError`.

`batch_geocode` works through the addresses ten at a time, in parallel, and
pauses briefly between chunks. It keeps the input order, and reports failures as
unsuccessful responses. `parse_geocoding_payload` turns a Mapbox document into a
`GeocodingResponse` without making a request.

## Carrier companies

`fetch_all_companies()` returns a list of `ColisPriveCompany(libelle, code)`. It
reads the referential base URL from `COLIS_PRIVE_REFERENTIEL_URL`, or uses the
public service if that variable is unset. Any failure is raised as
`ExternalApiError`. `parse_companies` reads an already fetched document.

## Address cache

```python
from delivroute.address_cache import AddressCacheService
from delivroute.address_store import AddressStore
from delivroute.geocoding import GeocodingService

with AddressStore("addresses.db") as store:
    cache = AddressCacheService(store, GeocodingService("token"))
    result = cache.find_or_geocode_address("15 Rue de la Paix, 75001 Paris", "company-1")
    if result.found:
        print(result.source, result.address.latitude, result.address.longitude)
```

A lookup tries each source in turn:

1. The in-memory cache.
2. An exact, case-insensitive label match in the store.
3. A match on street name and number in the store.
4. The geocoder, as a last resort. A successful result is saved to the store and
   comes back with `AddressSource.MAPBOX`.

Hits from memory or the store report `AddressSource.DATABASE`. Misses and
geocoding errors give `AddressSource.NOT_FOUND`.

Two more methods manage the in-memory cache:

- `clear_memory_cache()` empties it.
- `cache_stats()` returns `(addresses in memory, 0)`.

The address parsing helpers can be used on their own:

```python
from delivroute.address_cache import extract_postcode_city, extract_street_components

extract_street_components("123 Rue de la Paix")           # ("123", "Rue de la Paix")
extract_postcode_city("123 Rue de la Paix, 75018 Paris")  # ("75018", "Paris")
```

## What it does not do

delivroute is a library only. It has:

- no web server or HTTP routes. Errors produce a status and a body, but nothing
  serves them.
- no command-line program.
- no route optimisation.
- no user authentication.

Addresses are stored in SQLite. There is no other database.

## Running the tests

```
pytest
```