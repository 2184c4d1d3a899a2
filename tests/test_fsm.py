"""Tests for orchestration.fsm."""
import pytest

from emotalk.orchestration.fsm import (
    Event,
    State,
    create_default_fsm,
)


class TestFiniteStateMachine:
    """Test FiniteStateMachine."""

    @pytest.fixture
    def fsm(self):
        """Create an FSM instance."""
        return create_default_fsm()

    @pytest.mark.asyncio
    async def test_initial_state(self, fsm):
        """Test initial state."""
        assert fsm.current_state == State.CONNECTING

    @pytest.mark.asyncio
    async def test_transition_connecting_to_configuring(self, fsm):
        """Test CONNECTING -> CONFIGURING transition."""
        result = await fsm.transition(Event.CONNECTED)

        assert result is True
        assert fsm.current_state == State.CONFIGURING

    @pytest.mark.asyncio
    async def test_invalid_transition(self, fsm):
        """Test invalid transition."""
        # CONNECTING -> RESPONSE_DONE is not valid
        result = await fsm.transition(Event.RESPONSE_DONE)

        assert result is False
        assert fsm.current_state == State.CONNECTING

    @pytest.mark.asyncio
    async def test_state_handler(self, fsm):
        """Test state handler is called."""
        handler_called = False

        async def on_configuring():
            nonlocal handler_called
            handler_called = True

        fsm.add_state_handler(State.CONFIGURING, on_configuring)
        await fsm.transition(Event.CONNECTED)

        assert handler_called is True


class TestConversationFlow:
    """Test the conversation transition table."""

    @pytest.mark.asyncio
    async def test_full_turn_cycle(self):
        """Test a greeting turn followed by a human turn."""
        fsm = create_default_fsm()

        await fsm.transition(Event.CONNECTED)
        assert fsm.current_state == State.CONFIGURING

        await fsm.transition(Event.TURN_SUBMITTED)
        assert fsm.current_state == State.TURN_IN_FLIGHT

        await fsm.transition(Event.RESPONSE_DONE)
        assert fsm.current_state == State.DECODING

        await fsm.transition(Event.REPLY_RENDERED)
        assert fsm.current_state == State.AWAITING_INPUT

        await fsm.transition(Event.TURN_SUBMITTED)
        assert fsm.current_state == State.TURN_IN_FLIGHT

    @pytest.mark.asyncio
    async def test_turn_failure_keeps_turn_in_flight(self):
        """Test a failure notice does not leave TURN_IN_FLIGHT."""
        fsm = create_default_fsm()
        await fsm.transition(Event.CONNECTED)
        await fsm.transition(Event.TURN_SUBMITTED)

        assert await fsm.transition(Event.TURN_FAILED) is True
        assert fsm.current_state == State.TURN_IN_FLIGHT

    @pytest.mark.asyncio
    async def test_no_turn_submitted_while_in_flight(self):
        """Test a second turn cannot be submitted before response.done."""
        fsm = create_default_fsm()
        await fsm.transition(Event.CONNECTED)
        await fsm.transition(Event.TURN_SUBMITTED)

        assert fsm.can_transition(Event.TURN_SUBMITTED) is False

    @pytest.mark.asyncio
    @pytest.mark.parametrize("state", [s for s in State if s != State.TERMINAL])
    async def test_transport_lost_from_any_state(self, state):
        """Test every non-terminal state reaches TERMINAL on transport loss."""
        fsm = create_default_fsm()
        fsm.current_state = state

        assert await fsm.transition(Event.TRANSPORT_LOST) is True
        assert fsm.is_terminal

    def test_terminal_has_no_exits(self):
        """Test TERMINAL is absorbing."""
        fsm = create_default_fsm()
        outgoing = [t for t in fsm.get_transitions() if t[0] == State.TERMINAL]

        assert outgoing == []

    def test_every_state_is_reachable(self):
        """Test the table reaches every state from CONNECTING."""
        fsm = create_default_fsm()
        reachable = {State.CONNECTING}
        frontier = [State.CONNECTING]
        while frontier:
            current = frontier.pop()
            for from_state, _, to_state in fsm.get_transitions():
                if from_state == current and to_state not in reachable:
                    reachable.add(to_state)
                    frontier.append(to_state)

        assert reachable == set(State)
