"""Message protocol definitions for the realtime WebSocket API.

Outbound client events are strict Pydantic v2 models so every envelope the
orchestrator sends is validated before it hits the wire. Inbound server
events are modelled loosely (unknown fields allowed): the service emits many
event kinds and the orchestrator only inspects a handful of fields.
"""
from enum import Enum
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class ClientEventType(str, Enum):
    """Event types sent by the client."""

    SESSION_UPDATE = "session.update"
    CONVERSATION_ITEM_CREATE = "conversation.item.create"
    RESPONSE_CREATE = "response.create"


class ServerEventType(str, Enum):
    """Server event types the orchestrator reacts to."""

    ERROR = "error"
    SESSION_CREATED = "session.created"
    SESSION_UPDATED = "session.updated"
    RESPONSE_DONE = "response.done"


class ResponseStatus(str, Enum):
    """Terminal statuses carried by a response object."""

    COMPLETED = "completed"
    CANCELLED = "cancelled"
    FAILED = "failed"
    INCOMPLETE = "incomplete"
    IN_PROGRESS = "in_progress"


MaxTokens = Union[int, Literal["inf"]]


class BaseClientEvent(BaseModel):
    """Base class for all outbound envelopes.

    Attributes:
        type: Event type discriminator
        event_id: Optional client-generated id echoed back in errors
    """

    model_config = ConfigDict(
        use_enum_values=True,
        extra="forbid",
        populate_by_name=True,
    )

    type: ClientEventType
    event_id: Optional[str] = Field(default=None, description="Client event id")

    def to_dict(self) -> Dict[str, Any]:
        """Serialize event to dictionary."""
        return self.model_dump(by_alias=True, exclude_none=True)

    def to_json(self) -> str:
        """Serialize event to JSON string."""
        return self.model_dump_json(by_alias=True, exclude_none=True)


# =============================================================================
# Client -> Server
# =============================================================================


class InputText(BaseModel):
    """A text content part of a user message."""

    model_config = ConfigDict(extra="forbid")

    type: Literal["input_text"] = "input_text"
    text: str


class ConversationItem(BaseModel):
    """A conversation message item."""

    model_config = ConfigDict(extra="forbid")

    type: Literal["message"] = "message"
    role: Literal["user", "assistant", "system"] = "user"
    content: List[InputText] = Field(..., min_length=1)


class ConversationItemCreate(BaseClientEvent):
    """Append a message to the server-side conversation.

    Example:
        {
            "type": "conversation.item.create",
            "item": {
                "type": "message",
                "role": "user",
                "content": [{"type": "input_text", "text": "Hello"}]
            }
        }
    """

    type: Literal[ClientEventType.CONVERSATION_ITEM_CREATE] = ClientEventType.CONVERSATION_ITEM_CREATE
    item: ConversationItem

    @classmethod
    def user_text(cls, text: str) -> "ConversationItemCreate":
        """Build a user message carrying a single input_text part."""
        return cls(item=ConversationItem(role="user", content=[InputText(text=text)]))


class SessionConfig(BaseModel):
    """Negotiated session configuration."""

    model_config = ConfigDict(extra="forbid")

    modalities: List[str] = Field(default_factory=lambda: ["text"])
    instructions: Optional[str] = None
    temperature: Optional[float] = None
    max_response_output_tokens: Optional[MaxTokens] = None


class SessionUpdate(BaseClientEvent):
    """One-time session configuration.

    Example:
        {"type": "session.update", "session": {"modalities": ["text"], "instructions": "..."}}
    """

    type: Literal[ClientEventType.SESSION_UPDATE] = ClientEventType.SESSION_UPDATE
    session: SessionConfig


class ResponseConfig(BaseModel):
    """Per-response overrides carried by response.create."""

    model_config = ConfigDict(extra="forbid")

    modalities: List[str] = Field(default_factory=lambda: ["text"])
    instructions: Optional[str] = None
    temperature: Optional[float] = None
    max_output_tokens: Optional[MaxTokens] = None


class ResponseCreate(BaseClientEvent):
    """Ask the service to generate a response for the conversation so far.

    Example:
        {"type": "response.create", "response": {"modalities": ["text"]}}
    """

    type: Literal[ClientEventType.RESPONSE_CREATE] = ClientEventType.RESPONSE_CREATE
    response: ResponseConfig = Field(default_factory=ResponseConfig)


# =============================================================================
# Server -> Client
# =============================================================================


class ResponsePayload(BaseModel):
    """The response object carried by response.* events."""

    model_config = ConfigDict(extra="allow")

    id: Optional[str] = None
    status: Optional[str] = None
    status_details: Optional[Dict[str, Any]] = None
    output: List[Dict[str, Any]] = Field(default_factory=list)
    usage: Optional[Dict[str, Any]] = None


class ServerEvent(BaseModel):
    """Any inbound event. Only the fields the orchestrator reads are typed."""

    model_config = ConfigDict(extra="allow")

    type: str = ""
    event_id: Optional[str] = None
    response: Optional[ResponsePayload] = None
    error: Optional[Dict[str, Any]] = None

    @property
    def is_response_done(self) -> bool:
        return self.type == ServerEventType.RESPONSE_DONE.value

    @property
    def is_failed(self) -> bool:
        """True when the event carries a response with status "failed"."""
        return self.response is not None and self.response.status == ResponseStatus.FAILED.value

    @property
    def is_error(self) -> bool:
        return self.type == ServerEventType.ERROR.value

    @property
    def is_session_event(self) -> bool:
        """True for the session.created / session.updated acknowledgements."""
        return self.type in (
            ServerEventType.SESSION_CREATED.value,
            ServerEventType.SESSION_UPDATED.value,
        )

    def output_text(self) -> str:
        """Concatenate the text parts of ``response.output[0].content``.

        Returns an empty string when the response has no output.
        """
        if self.response is None or not self.response.output:
            return ""

        content = self.response.output[0].get("content") or []
        if isinstance(content, str):
            return content

        parts = []
        for part in content:
            if not isinstance(part, dict):
                continue
            text = part.get("text")
            if text is None:
                text = part.get("transcript")
            if text:
                parts.append(text)
        return "".join(parts)

    def usage(self) -> Dict[str, Any]:
        """Token usage reported with the response, if any."""
        if self.response is None or not self.response.usage:
            return {}
        return self.response.usage


def parse_server_event(data: Dict[str, Any]) -> ServerEvent:
    """Validate an inbound JSON document.

    Args:
        data: Decoded JSON document received from the service

    Returns:
        ServerEvent wrapping the document

    Raises:
        ValueError: If the document is not an object or fails validation
    """
    if not isinstance(data, dict):
        raise ValueError(f"Server event must be a JSON object, got {type(data).__name__}")

    try:
        return ServerEvent.model_validate(data)
    except Exception as e:
        raise ValueError(f"Failed to validate server event of type '{data.get('type')}': {e}") from e


def get_all_schemas() -> Dict[str, Dict[str, Any]]:
    """Get JSON Schemas for all outbound envelope types."""
    return {
        ClientEventType.SESSION_UPDATE.value: SessionUpdate.model_json_schema(),
        ClientEventType.CONVERSATION_ITEM_CREATE.value: ConversationItemCreate.model_json_schema(),
        ClientEventType.RESPONSE_CREATE.value: ResponseCreate.model_json_schema(),
    }
