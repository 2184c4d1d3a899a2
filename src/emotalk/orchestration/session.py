"""Session and turn bookkeeping."""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from ..cognition.decoder import ReplySegment
from ..messages import SessionConfig
from ..retrieval.client import RetrievedPassage
from ..transport.realtime import BaseTransport, SessionState


class TurnStatus(Enum):
    """Lifecycle of a turn."""
    PENDING = "pending"
    DONE = "done"
    FAILED = "failed"


@dataclass
class Turn:
    """One user utterance and the model reply to it."""
    turn_id: int
    text: str
    context: Optional[RetrievedPassage] = None
    envelopes: List[Dict[str, Any]] = field(default_factory=list)
    events_seen: int = 0
    failures: List[Dict[str, Any]] = field(default_factory=list)
    status: TurnStatus = TurnStatus.PENDING
    segments: List[ReplySegment] = field(default_factory=list)

    @property
    def is_pending(self) -> bool:
        return self.status is TurnStatus.PENDING

    def record_event(self) -> None:
        self.events_seen += 1

    def record_failure(self, details: Optional[Dict[str, Any]]) -> None:
        self.failures.append(details or {})

    def finish(self, status: TurnStatus, segments: Optional[List[ReplySegment]] = None) -> None:
        self.status = status
        if segments:
            self.segments = list(segments)


@dataclass
class Session:
    """The single long-lived connection and its negotiated configuration."""
    transport: BaseTransport
    configuration: Optional[SessionConfig] = None
    _last_turn_id: int = 0

    @property
    def state(self) -> SessionState:
        return self.transport.state

    def next_turn_id(self) -> int:
        """Monotonic local turn id, starting at 1."""
        self._last_turn_id += 1
        return self._last_turn_id
