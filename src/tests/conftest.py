"""
Shared test fixtures and utilities for ConsultaBot tests.

This module provides:
- A scripted console that replays canned input lines
- Canned provider payloads (ViaCEP, Open-Meteo geocoding and forecast)
- FakeProviders: an httpx.MockTransport handler that records every request
- Fixtures wiring these into ApiClient and ConversationController
"""

import copy
import os
import sys
from datetime import datetime, timezone

import httpx
import pytest

# Add src to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from api_client import ApiClient
from config import ApiConfig
from controller import ConversationController
from logging_utils import MemoryLogSink


# =============================================================================
# Canned Provider Payloads
# =============================================================================

VIACEP_SE = {
    "cep": "01001-000",
    "logradouro": "Praça da Sé",
    "complemento": "lado ímpar",
    "unidade": "",
    "bairro": "Sé",
    "localidade": "São Paulo",
    "uf": "SP",
    "estado": "São Paulo",
    "regiao": "Sudeste",
    "ibge": "3550308",
    "gia": "1004",
    "ddd": "11",
    "siafi": "7107",
}

VIACEP_NOT_FOUND = {"erro": "true"}

GEOCODING_CURITIBA = {
    "results": [
        {
            "id": 6322752,
            "name": "Curitiba",
            "latitude": -25.4284,
            "longitude": -49.2733,
            "country": "Brasil",
            "admin1": "Paraná",
        }
    ],
    "generationtime_ms": 0.61,
}

# Open-Meteo leaves out "results" when nothing matches
GEOCODING_EMPTY = {"generationtime_ms": 0.42}

FORECAST_CURITIBA = {
    "latitude": -25.375,
    "longitude": -49.25,
    "generationtime_ms": 0.05,
    "utc_offset_seconds": -10800,
    "timezone": "America/Sao_Paulo",
    "timezone_abbreviation": "GMT-3",
    "elevation": 923.0,
    "current": {
        "time": "2024-05-01T12:00",
        "interval": 900,
        "temperature_2m": 22.5,
        "weather_code": 0,
    },
    "daily": {
        "time": ["2024-05-01"],
        "temperature_2m_max": [28.3],
        "temperature_2m_min": [16.7],
        "weather_code": [3],
    },
}

FORECAST_ERROR = {"error": True, "reason": "Latitude must be in range of -90 to 90°. Given: 91.0."}

POSTAL_HOST = "viacep.com.br"
GEOCODING_HOST = "geocoding-api.open-meteo.com"
FORECAST_HOST = "api.open-meteo.com"

# 15:00 UTC is 12:00 in Curitiba (UTC-3): daytime
NOON_IN_CURITIBA = datetime(2024, 5, 1, 15, 0, tzinfo=timezone.utc)


# =============================================================================
# Test Doubles
# =============================================================================

class ScriptedConsole:
    """
    Interactive channel that replays `inputs` and records everything shown.

    Raises EOFError once the script runs out, like input() on a closed stdin.
    """

    def __init__(self, inputs: list[str] | None = None):
        self.inputs = list(inputs or [])
        self.prompts: list[str] = []
        self.lines: list[str] = []
        self.loadings: list[str] = []
        self.clears = 0

    def prompt(self, text: str) -> str:
        self.prompts.append(text)
        if not self.inputs:
            raise EOFError("script exhausted")
        return self.inputs.pop(0)

    def show(self, line: str = "") -> None:
        self.lines.append(line)

    def clear(self) -> None:
        self.clears += 1

    def loading(self, message: str) -> None:
        self.loadings.append(message)

    @property
    def output(self) -> str:
        return "\n".join(self.lines)


class FakeProviders:
    """
    MockTransport handler standing in for ViaCEP and Open-Meteo.

    Usage:
        providers = FakeProviders()
        providers.postal["01001000"] = (200, VIACEP_SE)
        client = ApiClient(ApiConfig(), sink, http=providers.client())
    """

    def __init__(self):
        self.requests: list[httpx.Request] = []
        self.postal: dict[str, tuple[int, dict]] = {"01001000": (200, copy.deepcopy(VIACEP_SE))}
        self.geocoding: dict[str, dict] = {"Curitiba": copy.deepcopy(GEOCODING_CURITIBA)}
        self.forecast: tuple[int, dict] = (200, copy.deepcopy(FORECAST_CURITIBA))
        self.failing_hosts: set[str] = set()

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        host = request.url.host

        if host in self.failing_hosts:
            raise httpx.ConnectError("Network Error", request=request)

        if host == POSTAL_HOST:
            digits = request.url.path.split("/")[2]
            status, body = self.postal.get(digits, (200, VIACEP_NOT_FOUND))
            return httpx.Response(status, json=body)

        if host == GEOCODING_HOST:
            name = request.url.params["name"]
            return httpx.Response(200, json=self.geocoding.get(name, GEOCODING_EMPTY))

        if host == FORECAST_HOST:
            status, body = self.forecast
            return httpx.Response(status, json=body)

        return httpx.Response(404, text="unknown host")

    def client(self) -> httpx.Client:
        return httpx.Client(transport=httpx.MockTransport(self.handler))

    def hosts(self) -> list[str]:
        """Hosts contacted so far, in order."""
        return [request.url.host for request in self.requests]


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def sink():
    return MemoryLogSink()


@pytest.fixture
def providers():
    return FakeProviders()


@pytest.fixture
def api(providers, sink):
    client = ApiClient(ApiConfig(), sink, http=providers.client())
    yield client
    client.close()


@pytest.fixture
def make_controller(api, sink):
    """Factory: controller driven by a scripted list of input lines."""

    def _make(inputs: list[str], clock=None) -> tuple[ConversationController, ScriptedConsole]:
        console = ScriptedConsole(inputs)
        controller = ConversationController(
            console,
            api,
            sink,
            clock=clock or (lambda: NOON_IN_CURITIBA),
        )
        return controller, console

    return _make
