"""
Tests for state_machine.py module.

Tests:
- get_current_state before and after transitions
- register_handler / get_handler
- transition history
- UnknownStateError
"""

import os
import sys
from unittest.mock import Mock

import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from logging_utils import LogKind, MemoryLogSink
from state import ConversationState
from state_machine import ConversationStateMachine, UnknownStateError


@pytest.fixture
def machine():
    return ConversationStateMachine(MemoryLogSink())


# =============================================================================
# Test get_current_state
# =============================================================================

class TestGetCurrentState:

    def test_none_before_any_transition(self, machine):
        assert machine.get_current_state() is None

    def test_returns_state_after_transition(self, machine):
        machine.transition(ConversationState.MAIN_MENU)
        assert machine.get_current_state() == ConversationState.MAIN_MENU


# =============================================================================
# Test register_handler / get_handler
# =============================================================================

class TestHandlers:

    def test_register_and_get(self, machine):
        handler = Mock()
        machine.register_handler(ConversationState.GREETING, handler)
        assert machine.get_handler(ConversationState.GREETING) is handler

    def test_handlers_for_different_states(self, machine):
        greet, menu = Mock(), Mock()
        machine.register_handler(ConversationState.GREETING, greet)
        machine.register_handler(ConversationState.MAIN_MENU, menu)

        assert machine.get_handler(ConversationState.GREETING) is greet
        assert machine.get_handler(ConversationState.MAIN_MENU) is menu

    def test_later_registration_overwrites(self, machine):
        first, second = Mock(), Mock()
        machine.register_handler(ConversationState.EXIT, first)
        machine.register_handler(ConversationState.EXIT, second)
        assert machine.get_handler(ConversationState.EXIT) is second

    def test_unregistered_state_returns_none(self, machine):
        assert machine.get_handler(ConversationState.WEATHER_LOOKUP) is None

    def test_registration_is_logged(self):
        sink = MemoryLogSink()
        machine = ConversationStateMachine(sink)
        machine.register_handler(ConversationState.GREETING, Mock())
        assert sink.messages(LogKind.ACCESS) == ["Handler registered: GREETING"]

    def test_get_handler_does_not_call_handler(self, machine):
        handler = Mock()
        machine.register_handler(ConversationState.GREETING, handler)
        machine.get_handler(ConversationState.GREETING)
        handler.assert_not_called()


# =============================================================================
# Test transition
# =============================================================================

class TestTransition:

    def test_first_transition_has_no_history(self, machine):
        result = machine.transition(ConversationState.GREETING)

        assert result == ConversationState.GREETING
        assert machine.history == ()

    def test_later_transition_appends_one_record(self, machine):
        machine.transition(ConversationState.GREETING)
        result = machine.transition(ConversationState.MAIN_MENU)

        assert result == ConversationState.MAIN_MENU
        assert len(machine.history) == 1
        record = machine.history[0]
        assert record.from_state == ConversationState.GREETING
        assert record.to_state == ConversationState.MAIN_MENU
        assert record.timestamp.tzinfo is not None

    def test_self_transition_is_recorded(self, machine):
        machine.transition(ConversationState.MAIN_MENU)
        machine.transition(ConversationState.MAIN_MENU)

        assert len(machine.history) == 1
        assert machine.history[0].from_state == machine.history[0].to_state

    def test_history_is_chronological(self, machine):
        path = [
            ConversationState.GREETING,
            ConversationState.MAIN_MENU,
            ConversationState.WEATHER_LOOKUP,
            ConversationState.WEATHER_LOOKUP,
            ConversationState.MAIN_MENU,
            ConversationState.EXIT,
        ]
        for state in path:
            machine.transition(state)

        history = machine.history
        assert [(r.from_state, r.to_state) for r in history] == list(zip(path, path[1:]))
        timestamps = [r.timestamp for r in history]
        assert timestamps == sorted(timestamps)

    def test_history_view_cannot_mutate_machine(self, machine):
        machine.transition(ConversationState.GREETING)
        machine.transition(ConversationState.MAIN_MENU)

        view = machine.history
        assert isinstance(view, tuple)
        assert len(machine.history) == 1

    def test_transitions_are_logged(self):
        sink = MemoryLogSink()
        machine = ConversationStateMachine(sink)
        machine.transition(ConversationState.GREETING)
        machine.transition(ConversationState.MAIN_MENU)

        assert sink.messages(LogKind.ACCESS) == ["Transitioning from GREETING to MAIN_MENU"]


class TestUnknownStateError:

    def test_message_names_state(self):
        error = UnknownStateError(ConversationState.EXIT)
        assert str(error) == "State not found: EXIT"
        assert error.state == ConversationState.EXIT

    def test_accepts_missing_state(self):
        assert str(UnknownStateError(None)) == "State not found: None"


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
