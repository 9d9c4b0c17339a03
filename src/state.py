"""
Conversation state and the value objects passed between lookups and handlers.

Design:
- ConversationState is the closed set of states the dispatch loop knows about
- Value objects are frozen dataclasses, built once and never mutated
- Expected negative outcomes travel as LookupFailure values, not exceptions
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Callable


class ConversationState(Enum):
    """States of the chatbot conversation."""
    GREETING = "GREETING"
    MAIN_MENU = "MAIN_MENU"
    POSTAL_LOOKUP = "POSTAL_LOOKUP"
    WEATHER_LOOKUP = "WEATHER_LOOKUP"
    EXIT = "EXIT"


# A handler takes no input and requests at most one transition.
Handler = Callable[[], None]


@dataclass(frozen=True)
class TransitionRecord:
    """One entry of the state machine's transition history."""
    from_state: ConversationState
    to_state: ConversationState
    timestamp: datetime


@dataclass(frozen=True)
class PostalQuery:
    """
    A postal code (CEP) as typed by the user.

    is_valid is checked against the raw input, while normalized_digits is
    always derived, so a rejected query can still be shown back to the user.
    """
    raw_input: str
    normalized_digits: str
    is_valid: bool


@dataclass(frozen=True)
class GeoCoordinates:
    latitude: float
    longitude: float


@dataclass(frozen=True)
class LookupFailure:
    """Domain error value for lookups that completed but found nothing usable."""
    error: str


@dataclass(frozen=True)
class WeatherSnapshot:
    """Current weather for a city, derived once per successful lookup."""
    city: str
    latitude: float
    longitude: float
    current_temperature: float
    max_temperature: float
    min_temperature: float
    condition: str
    is_night: bool
