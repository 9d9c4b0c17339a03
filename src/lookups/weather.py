"""
Weather lookup: city name -> WeatherSnapshot.

Steps run in a fixed order and the first LookupFailure short-circuits:

1. get_coordinates  (geocoding)
2. get_forecast     (forecast)
3. build_snapshot   (day/night + condition description)
"""

from datetime import datetime

from pydantic import ValidationError

from api_client import ApiClient, TransportError
from mapping import ForecastResponse, build_snapshot, forecast_error_reason, parse_coordinates, parse_forecast
from state import GeoCoordinates, LookupFailure, WeatherSnapshot

CITY_NOT_FOUND = "Cidade não encontrada. Verifique o nome e tente novamente."
FORECAST_UNAVAILABLE = "Não foi possível obter a previsão do tempo para esta cidade. Tente novamente."


class WeatherLookup:
    """Resolves a city name to its current weather."""

    def __init__(self, api: ApiClient, sink):
        self.api = api
        self.sink = sink

    def get_coordinates(self, city: str) -> GeoCoordinates | LookupFailure:
        payload = self.api.search_city(city)

        try:
            coordinates = parse_coordinates(payload)
        except ValidationError as err:
            self.sink.error(f"Unexpected geocoding payload for {city}: {err}")
            raise TransportError(f"Failed to fetch coordinates for: {city}") from err

        if coordinates is None:
            self.sink.error(f"City not found: {city}")
            return LookupFailure(error=CITY_NOT_FOUND)
        return coordinates

    def get_forecast(self, coordinates: GeoCoordinates) -> ForecastResponse | LookupFailure:
        payload = self.api.fetch_forecast(coordinates.latitude, coordinates.longitude)

        reason = forecast_error_reason(payload)
        if reason is not None:
            self.sink.error(f"Forecast provider error: {reason}")
            return LookupFailure(error=FORECAST_UNAVAILABLE)

        try:
            return parse_forecast(payload)
        except ValidationError as err:
            self.sink.error(f"Unexpected forecast payload: {err}")
            raise TransportError("Failed to fetch weather data") from err

    def get_weather(self, city: str, now: datetime | None = None) -> WeatherSnapshot | LookupFailure:
        """
        Run the full lookup for `city`.

        Args:
            city: City name as typed by the user.
            now: Reference time for the day/night decision (default: now, UTC).

        Returns:
            WeatherSnapshot, or the LookupFailure of the first step that
            found nothing.

        Raises:
            TransportError: If either provider call fails.
        """
        coordinates = self.get_coordinates(city)
        if isinstance(coordinates, LookupFailure):
            return coordinates

        forecast = self.get_forecast(coordinates)
        if isinstance(forecast, LookupFailure):
            return forecast

        return build_snapshot(city, coordinates, forecast, now)
