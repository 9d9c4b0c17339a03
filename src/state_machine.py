"""
ConversationStateMachine: current state, handler registry, transition history.

The machine does not decide anything. Handlers ask it to transition and the
controller's dispatch loop asks it which handler runs next.
"""

from datetime import datetime, timezone

from state import ConversationState, Handler, TransitionRecord


class UnknownStateError(Exception):
    """Dispatch reached a state that has no registered handler."""

    def __init__(self, state: ConversationState | None):
        super().__init__(f"State not found: {state.name if state is not None else None}")
        self.state = state


class ConversationStateMachine:
    """
    Holds the conversation's current state.

    Usage:
        machine = ConversationStateMachine(sink)
        machine.register_handler(ConversationState.GREETING, greet)
        machine.transition(ConversationState.GREETING)   # no history yet
        machine.transition(ConversationState.MAIN_MENU)  # one record
    """

    def __init__(self, sink):
        self.sink = sink
        self._current: ConversationState | None = None
        self._handlers: dict[ConversationState, Handler] = {}
        self._history: list[TransitionRecord] = []

    @property
    def history(self) -> tuple[TransitionRecord, ...]:
        """Transition records, oldest first."""
        return tuple(self._history)

    def get_current_state(self) -> ConversationState | None:
        return self._current

    def register_handler(self, state: ConversationState, handler: Handler) -> None:
        """Register `handler` for `state`, replacing any earlier one."""
        self._handlers[state] = handler
        self.sink.access(f"Handler registered: {state.name}")

    def get_handler(self, state: ConversationState) -> Handler | None:
        return self._handlers.get(state)

    def transition(self, new_state: ConversationState) -> ConversationState:
        """
        Move to `new_state`.

        The very first transition only sets the current state; every later
        one also appends a TransitionRecord.

        Returns:
            The new current state.
        """
        if self._current is not None:
            self._history.append(
                TransitionRecord(
                    from_state=self._current,
                    to_state=new_state,
                    timestamp=datetime.now(timezone.utc),
                )
            )
            self.sink.access(f"Transitioning from {self._current.name} to {new_state.name}")

        self._current = new_state
        return self._current
