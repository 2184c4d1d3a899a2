"""Orchestration layer modules (FSM, session and turn model)."""
from .fsm import Event, FiniteStateMachine, State, create_default_fsm
from .session import Session, Turn, TurnStatus

__all__ = [
    "FiniteStateMachine",
    "State",
    "Event",
    "create_default_fsm",
    "Session",
    "Turn",
    "TurnStatus",
]
