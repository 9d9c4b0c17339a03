"""
Postal code (CEP) lookup.

A CEP is valid only when typed as exactly eight ASCII digits; separators
such as "01001-000" are rejected, not repaired.
"""

import re

from pydantic import ValidationError

from api_client import ApiClient, TransportError
from mapping import PostalAddress, is_postal_not_found, parse_postal_address
from state import LookupFailure, PostalQuery

POSTAL_CODE_PATTERN = re.compile(r"[0-9]{8}")
NON_DIGITS = re.compile(r"[^0-9]")

POSTAL_NOT_FOUND = "CEP não encontrado. Verifique o número e tente novamente."


def validate_postal_code(raw: str) -> bool:
    return POSTAL_CODE_PATTERN.fullmatch(raw) is not None


def normalize_postal_code(raw: str) -> str:
    """Strip every non-digit character."""
    return NON_DIGITS.sub("", raw)


def build_postal_query(raw: str) -> PostalQuery:
    return PostalQuery(
        raw_input=raw,
        normalized_digits=normalize_postal_code(raw),
        is_valid=validate_postal_code(raw),
    )


class PostalLookup:
    """Resolves a normalized postal code to an address."""

    def __init__(self, api: ApiClient, sink):
        self.api = api
        self.sink = sink

    def lookup(self, digits: str) -> PostalAddress | LookupFailure:
        """
        Look up an address.

        Returns:
            PostalAddress with the provider fields, or LookupFailure when the
            provider does not know the code.

        Raises:
            TransportError: If the provider could not be reached or answered
                with something that is not an address.
        """
        payload = self.api.consult_postal_code(digits)

        if is_postal_not_found(payload):
            self.sink.error(f"Postal code not found: {digits}")
            return LookupFailure(error=POSTAL_NOT_FOUND)

        try:
            address = parse_postal_address(payload)
        except ValidationError as err:
            self.sink.error(f"Unexpected postal payload for {digits}: {err}")
            raise TransportError("Failed to fetch postal data") from err

        self.sink.access(f"Postal code lookup succeeded: {digits}")
        return address
