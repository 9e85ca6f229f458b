"""Validation, HTTP error mapping, geocoding, carrier companies and address caching for delivery routing."""

__version__ = "0.1.0"
__all__ = [
    "validation",
    "errors",
    "geocoding",
    "companies",
    "address_store",
    "address_cache",
]