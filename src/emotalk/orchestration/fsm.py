"""Finite State Machine (FSM) for the conversation loop."""
import inspect
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Tuple

from ..logging_config import setup_logger

logger = setup_logger("emotalk.fsm")


class State(Enum):
    """Conversation states."""
    CONNECTING = "connecting"
    CONFIGURING = "configuring"
    AWAITING_INPUT = "awaiting_input"
    TURN_IN_FLIGHT = "turn_in_flight"
    DECODING = "decoding"
    TERMINAL = "terminal"


class Event(Enum):
    """Conversation events."""
    CONNECTED = "connected"
    TURN_SUBMITTED = "turn_submitted"
    TURN_FAILED = "turn_failed"
    RESPONSE_DONE = "response_done"
    REPLY_RENDERED = "reply_rendered"
    TRANSPORT_LOST = "transport_lost"
    SHUTDOWN = "shutdown"


@dataclass
class FSMTransition:
    """FSM transition definition."""
    from_state: State
    event: Event
    to_state: State


class FiniteStateMachine:
    """Table-driven state machine with optional state entry handlers."""

    def __init__(self, initial_state: State = State.CONNECTING):
        self.current_state = initial_state
        self._transitions: list[FSMTransition] = []
        self._state_handlers: dict[State, Callable] = {}

    def add_transition(
        self,
        from_state: State,
        event: Event,
        to_state: State
    ) -> None:
        """Add a state transition."""
        transition = FSMTransition(
            from_state=from_state,
            event=event,
            to_state=to_state
        )
        self._transitions.append(transition)

    def add_state_handler(self, state: State, handler: Callable) -> None:
        """Add a handler for entering a state."""
        self._state_handlers[state] = handler

    def get_transitions(self) -> List[Tuple[State, Event, State]]:
        """All (from_state, event, to_state) triples in the table."""
        return [(t.from_state, t.event, t.to_state) for t in self._transitions]

    def can_transition(self, event: Event) -> bool:
        """Check if there's a valid transition for this event."""
        for transition in self._transitions:
            if (
                transition.from_state == self.current_state
                and transition.event == event
            ):
                return True
        return False

    @property
    def is_terminal(self) -> bool:
        return self.current_state == State.TERMINAL

    async def transition(self, event: Event) -> bool:
        """Process an event and transition state."""
        for transition in self._transitions:
            if (
                transition.from_state == self.current_state
                and transition.event == event
            ):
                old_state = self.current_state
                new_state = transition.to_state

                self.current_state = new_state
                logger.info(f"FSM: {old_state.value} -> {new_state.value} via {event.value}")

                if new_state in self._state_handlers:
                    handler = self._state_handlers[new_state]
                    if inspect.iscoroutinefunction(handler):
                        await handler()
                    else:
                        handler()

                return True

        logger.warning(f"No valid transition: {event.value} from {self.current_state.value}")
        return False


def create_default_fsm() -> FiniteStateMachine:
    """Create the conversation FSM."""
    fsm = FiniteStateMachine(initial_state=State.CONNECTING)

    # CONNECTING -> CONFIGURING: socket confirmed open
    fsm.add_transition(
        State.CONNECTING,
        Event.CONNECTED,
        State.CONFIGURING
    )

    # CONFIGURING -> TURN_IN_FLIGHT: greeting turn sent
    fsm.add_transition(
        State.CONFIGURING,
        Event.TURN_SUBMITTED,
        State.TURN_IN_FLIGHT
    )

    # AWAITING_INPUT -> TURN_IN_FLIGHT: human turn sent
    fsm.add_transition(
        State.AWAITING_INPUT,
        Event.TURN_SUBMITTED,
        State.TURN_IN_FLIGHT
    )

    # TURN_IN_FLIGHT -> TURN_IN_FLIGHT: failure notice, keep waiting for response.done
    fsm.add_transition(
        State.TURN_IN_FLIGHT,
        Event.TURN_FAILED,
        State.TURN_IN_FLIGHT
    )

    # TURN_IN_FLIGHT -> DECODING: response.done received
    fsm.add_transition(
        State.TURN_IN_FLIGHT,
        Event.RESPONSE_DONE,
        State.DECODING
    )

    # DECODING -> AWAITING_INPUT: segments handed to the renderer
    fsm.add_transition(
        State.DECODING,
        Event.REPLY_RENDERED,
        State.AWAITING_INPUT
    )

    # Any state -> TERMINAL: transport failure or shutdown
    for state in State:
        if state == State.TERMINAL:
            continue
        fsm.add_transition(state, Event.TRANSPORT_LOST, State.TERMINAL)
        fsm.add_transition(state, Event.SHUTDOWN, State.TERMINAL)

    return fsm
