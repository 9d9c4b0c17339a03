"""
Lookups: the two user intents, built on ApiClient and mapping.

- postal: postal code validation, normalization and address lookup
- weather: city -> coordinates -> forecast -> WeatherSnapshot

Lookups return a LookupFailure for expected negative outcomes and let
TransportError propagate for everything else.
"""

from lookups.postal import (
    PostalLookup,
    build_postal_query,
    normalize_postal_code,
    validate_postal_code,
)
from lookups.weather import WeatherLookup

__all__ = [
    "PostalLookup",
    "WeatherLookup",
    "build_postal_query",
    "normalize_postal_code",
    "validate_postal_code",
]
