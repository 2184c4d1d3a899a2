"""Transport layer modules (realtime WebSocket)."""
from .realtime import BaseTransport, MockTransport, RealtimeTransport, SessionState, create_transport

__all__ = [
    "BaseTransport",
    "RealtimeTransport",
    "MockTransport",
    "SessionState",
    "create_transport",
]
