"""
Mapping: pure functions from provider payloads to domain results.

Contains:
- Pydantic models for the ViaCEP, geocoding and forecast payloads
- The WMO weather-code table and day/night inference
- Snapshot assembly and the display lines for addresses and snapshots

Nothing in this module performs I/O.
"""

from datetime import datetime, timezone
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from state import GeoCoordinates, WeatherSnapshot


NOT_INFORMED = "Não informado"

DAY_GLYPH = "☀️"
NIGHT_GLYPH = "🌙"

# Night is before 06:00 or after 18:00 local time; 18:xx itself is still day.
DAWN_HOUR = 6
DUSK_HOUR = 18


# =============================================================================
# Provider payload models
# =============================================================================

class PostalAddress(BaseModel):
    """Address fields returned by ViaCEP, kept verbatim."""
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    cep: str | None = None
    street: str | None = Field(default=None, alias="logradouro")
    complement: str | None = Field(default=None, alias="complemento")
    unit: str | None = Field(default=None, alias="unidade")
    neighborhood: str | None = Field(default=None, alias="bairro")
    city: str | None = Field(default=None, alias="localidade")
    state_name: str | None = Field(default=None, alias="estado")
    state_code: str | None = Field(default=None, alias="uf")
    region: str | None = Field(default=None, alias="regiao")
    national_id: str | None = Field(default=None, alias="ibge")
    tax_id: str | None = Field(default=None, alias="gia")
    area_code: str | None = Field(default=None, alias="ddd")
    fiscal_id: str | None = Field(default=None, alias="siafi")


class GeocodingResult(BaseModel):
    model_config = ConfigDict(extra="ignore")

    latitude: float
    longitude: float
    name: str | None = None


class GeocodingResponse(BaseModel):
    """Open-Meteo omits `results` entirely when nothing matches."""
    model_config = ConfigDict(extra="ignore")

    results: list[GeocodingResult] = Field(default_factory=list)


class CurrentWeather(BaseModel):
    model_config = ConfigDict(extra="ignore")

    temperature_2m: float
    weather_code: int


class DailyWeather(BaseModel):
    model_config = ConfigDict(extra="ignore")

    temperature_2m_max: list[float] = Field(min_length=1)
    temperature_2m_min: list[float] = Field(min_length=1)


class ForecastResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    current: CurrentWeather
    daily: DailyWeather
    utc_offset_seconds: int = Field(
        default=0,
        validation_alias=AliasChoices("utc_offset_seconds", "timezone_offset_seconds"),
    )


# =============================================================================
# Weather code table
# =============================================================================

# Codes whose description carries a sun or moon glyph
DAY_NIGHT_CONDITIONS: dict[int, str] = {
    0: "Céu limpo, sem nuvens",
    1: "Predominantemente claro",
}

WEATHER_CONDITIONS: dict[int, str] = {
    2: "Parcialmente nublado ☁️",
    3: "Bastante nublado ☁️",
    45: "Neblina 🌫️",
    48: "Neblina com geada 🌫️❄️",
    51: "Garoa leve 🌧️",
    53: "Garoa moderada 🌧️",
    55: "Garoa intensa 🌧️",
    56: 'Garoa "congelante" leve 🌧️',
    57: 'Garoa "congelante" intensa 🌧️',
    61: "Chuva leve 🌧️",
    63: "Chuva moderada 🌧️",
    65: "Chuva intensa 🌧️",
    66: 'Chuva "congelante" leve 🌧️',
    67: 'Chuva "congelante" intensa 🌧️',
    71: "Neve caindo levemente ❄️",
    73: "Neve caindo moderadamente ❄️",
    75: "Neve caindo de forma intensa ❄️",
    77: "Pequenos flocos de neve caindo ❄️",
    80: "Pancadas de chuva leves 🌧️",
    81: "Pancadas de chuva moderadas 🌧️",
    82: "Pancadas de chuva violentas 🌧️",
    85: "Pancadas de neve leves ❄️",
    86: "Pancadas de neve intensas ❄️",
    95: "Tempestade com trovões 🌩️",
    96: "Tempestade com trovões e granizo leve 🌩️",
    99: "Tempestade com trovões e granizo intenso 🌩️",
}

UNKNOWN_CONDITION = "Condição desconhecida ❌"


def weather_condition(code: int, is_night: bool) -> str:
    """Describe a WMO weather code; only codes 0 and 1 depend on `is_night`."""
    if code in DAY_NIGHT_CONDITIONS:
        glyph = NIGHT_GLYPH if is_night else DAY_GLYPH
        return f"{DAY_NIGHT_CONDITIONS[code]} {glyph}"
    return WEATHER_CONDITIONS.get(code, UNKNOWN_CONDITION)


def local_hour(utc_offset_seconds: int, now: datetime | None = None) -> float:
    """
    Hour of day at the forecast location.

    Only the UTC hour of `now` is used; minutes are ignored. Naive datetimes
    are taken to be UTC already.
    """
    if now is None:
        now = datetime.now(timezone.utc)
    elif now.tzinfo is not None:
        now = now.astimezone(timezone.utc)
    return (now.hour + utc_offset_seconds / 3600) % 24


def is_night(utc_offset_seconds: int, now: datetime | None = None) -> bool:
    hour = local_hour(utc_offset_seconds, now)
    return hour < DAWN_HOUR or hour > DUSK_HOUR


# =============================================================================
# Payload -> domain
# =============================================================================

def is_postal_not_found(payload: dict[str, Any]) -> bool:
    """ViaCEP answers unknown codes with 200 and an "erro" flag."""
    return bool(payload.get("erro"))


def parse_postal_address(payload: dict[str, Any]) -> PostalAddress:
    return PostalAddress.model_validate(payload)


def parse_coordinates(payload: dict[str, Any]) -> GeoCoordinates | None:
    """First geocoding hit, or None when the provider found nothing."""
    response = GeocodingResponse.model_validate(payload)
    if not response.results:
        return None
    first = response.results[0]
    return GeoCoordinates(latitude=first.latitude, longitude=first.longitude)


def forecast_error_reason(payload: dict[str, Any]) -> str | None:
    """The reason from the provider's own error body, or None for a forecast."""
    if not payload.get("error"):
        return None
    return str(payload.get("reason") or "unspecified provider error")


def parse_forecast(payload: dict[str, Any]) -> ForecastResponse:
    return ForecastResponse.model_validate(payload)


def build_snapshot(
    city: str,
    coordinates: GeoCoordinates,
    forecast: ForecastResponse,
    now: datetime | None = None,
) -> WeatherSnapshot:
    """Assemble the snapshot; max/min come from the day-0 daily entries."""
    night = is_night(forecast.utc_offset_seconds, now)
    return WeatherSnapshot(
        city=city,
        latitude=coordinates.latitude,
        longitude=coordinates.longitude,
        current_temperature=forecast.current.temperature_2m,
        max_temperature=forecast.daily.temperature_2m_max[0],
        min_temperature=forecast.daily.temperature_2m_min[0],
        condition=weather_condition(forecast.current.weather_code, night),
        is_night=night,
    )


# =============================================================================
# Display lines
# =============================================================================

ADDRESS_LABELS: list[tuple[str, str]] = [
    ("cep", "CEP"),
    ("street", "Logradouro"),
    ("complement", "Complemento"),
    ("unit", "Unidade"),
    ("neighborhood", "Bairro"),
    ("city", "Cidade"),
    ("state_name", "Estado"),
    ("state_code", "UF"),
    ("region", "Região"),
    ("national_id", "IBGE"),
    ("tax_id", "GIA"),
    ("area_code", "DDD"),
    ("fiscal_id", "SIAFI"),
]


def format_address(address: PostalAddress) -> list[str]:
    """One "Label: value" line per field, with a placeholder for blanks."""
    lines = []
    for attribute, label in ADDRESS_LABELS:
        value = getattr(address, attribute)
        lines.append(f"{label}: {value if value else NOT_INFORMED}")
    return lines


def format_snapshot(snapshot: WeatherSnapshot) -> list[str]:
    return [
        f"Cidade: {snapshot.city}",
        f"Coordenadas: {snapshot.latitude}, {snapshot.longitude}",
        f"Condição: {snapshot.condition}",
        f"Temperatura atual: {snapshot.current_temperature}°C",
        f"Máxima: {snapshot.max_temperature}°C",
        f"Mínima: {snapshot.min_temperature}°C",
    ]
