"""
ApiClient: thin wrapper over the three read-only providers.

- ViaCEP postal lookup
- Open-Meteo geocoding
- Open-Meteo forecast

The client only moves JSON. Turning payloads into domain results is the job
of mapping.py and the lookups package. Every transport failure is recorded
once in the error stream and re-raised as TransportError; there is no retry.
"""

from typing import Any

import httpx

from config import ApiConfig


class TransportError(Exception):
    """A provider call failed before producing a usable response."""


class ApiClient:
    """
    HTTP client for the postal, geocoding and forecast providers.

    Usage:
        client = ApiClient(config.api, sink)
        payload = client.consult_postal_code("01001000")
        client.close()

    Args:
        config: Provider endpoints and fixed request parameters.
        sink: Log sink receiving access and error events.
        http: Optional preconfigured httpx.Client (tests pass one backed by
            httpx.MockTransport).
    """

    def __init__(self, config: ApiConfig, sink, http: httpx.Client | None = None):
        self.config = config
        self.sink = sink
        self._http = http or httpx.Client(timeout=config.timeout)

    def __enter__(self) -> "ApiClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def close(self) -> None:
        self._http.close()

    def consult_postal_code(self, digits: str) -> dict[str, Any]:
        """
        Fetch the raw ViaCEP payload for an 8-digit postal code.

        A code the provider does not know still succeeds here; the payload
        then carries the provider's "erro" flag.

        Raises:
            TransportError: If the request fails or the body is not JSON.
        """
        self.sink.access(f"Starting postal code lookup: {digits}")
        url = f"{self.config.postal_base_url}/{digits}/json/"

        try:
            return self._get_json(url)
        except (httpx.HTTPError, ValueError) as err:
            self.sink.error(f"Postal code lookup failed for {digits}: {err}")
            raise TransportError("Failed to fetch postal data") from err

    def search_city(self, city: str) -> dict[str, Any]:
        """
        Fetch the raw geocoding payload for a city name.

        Raises:
            TransportError: If the request fails or the body is not JSON.
        """
        self.sink.access(f"Fetching coordinates for city: {city}")
        params = {
            "name": city,
            "count": self.config.geocoding_count,
            "language": self.config.geocoding_language,
            "format": "json",
        }

        try:
            return self._get_json(self.config.geocoding_url, params=params)
        except (httpx.HTTPError, ValueError) as err:
            self.sink.error(f"Failed to fetch coordinates for {city}: {err}")
            raise TransportError(f"Failed to fetch coordinates for: {city}") from err

    def fetch_forecast(self, latitude: float, longitude: float) -> dict[str, Any]:
        """
        Fetch the raw forecast payload for a coordinate pair.

        Open-Meteo reports bad requests as a 4xx with {"error": true,
        "reason": ...}; that body is returned as-is so the caller can treat
        it as a domain error.

        Raises:
            TransportError: If the request fails or the body is not JSON.
        """
        self.sink.access(f"Fetching weather data for lat: {latitude}, long: {longitude}")
        params = {
            "latitude": latitude,
            "longitude": longitude,
            "current": "temperature_2m,weather_code",
            "daily": "temperature_2m_max,temperature_2m_min,weather_code",
            "timezone": self.config.forecast_timezone,
            "forecast_days": self.config.forecast_days,
        }

        try:
            payload = self._get_json(self.config.forecast_url, params=params, accept_error_body=True)
        except (httpx.HTTPError, ValueError) as err:
            self.sink.error(f"Failed to fetch weather data: {err}")
            raise TransportError("Failed to fetch weather data") from err

        if not payload.get("error"):
            self.sink.access(f"Weather data fetched for lat: {latitude}, long: {longitude}")
        return payload

    def _get_json(
        self,
        url: str,
        params: dict[str, Any] | None = None,
        accept_error_body: bool = False,
    ) -> dict[str, Any]:
        """GET `url` and decode a JSON object body."""
        response = self._http.get(url, params=params)

        if accept_error_body and response.is_client_error:
            body = response.json()
            if isinstance(body, dict) and body.get("error"):
                return body

        response.raise_for_status()
        payload = response.json()
        if not isinstance(payload, dict):
            raise ValueError(f"Expected a JSON object from {url}")
        return payload
