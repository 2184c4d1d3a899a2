"""Realtime WebSocket transport for emotalk."""
import asyncio
import json
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, AsyncIterator, Dict, List, Optional, Sequence, Union

import aiohttp

from ..exceptions import TransportError
from ..logging_config import setup_logger
from ..messages import BaseClientEvent

logger = setup_logger("emotalk.transport")

Envelope = Union[BaseClientEvent, Dict[str, Any]]


class SessionState(Enum):
    """Connection states of a transport session."""
    CONNECTING = "connecting"
    OPEN = "open"
    CLOSED = "closed"
    FAILED = "failed"


def _to_document(envelope: Envelope) -> Dict[str, Any]:
    if isinstance(envelope, BaseClientEvent):
        return envelope.to_dict()
    return envelope


class BaseTransport(ABC):
    """Base class for transport implementations.

    A transport owns one duplex connection. Inbound documents are delivered
    in arrival order; there is no replay and no reconnect.
    """

    def __init__(self) -> None:
        self._state = SessionState.CLOSED
        self._send_lock = asyncio.Lock()

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def is_open(self) -> bool:
        return self._state is SessionState.OPEN

    @abstractmethod
    async def connect(self) -> None:
        """Open the connection. Raises TransportError on failure."""
        pass

    @abstractmethod
    async def close(self) -> None:
        """Close the connection."""
        pass

    @abstractmethod
    async def _send_document(self, document: Dict[str, Any]) -> None:
        """Write one JSON document to the wire."""
        pass

    @abstractmethod
    async def receive(self) -> Dict[str, Any]:
        """Wait for the next inbound JSON document.

        Raises:
            TransportError: If the connection closed or failed
        """
        pass

    def _ensure_open(self) -> None:
        if self._state is not SessionState.OPEN:
            raise TransportError(f"Not connected (state: {self._state.value})")

    async def send(self, envelope: Envelope) -> None:
        """Send a single envelope. Fails fast unless the session is open."""
        await self.send_batch([envelope])

    async def send_batch(self, envelopes: Sequence[Envelope]) -> None:
        """Send several envelopes back to back under the send lock.

        The open check happens once, before anything is written, so a batch
        is either attempted in full or not at all.
        """
        self._ensure_open()
        documents = [_to_document(e) for e in envelopes]
        async with self._send_lock:
            for document in documents:
                await self._send_document(document)
                logger.debug(f"Sent {document.get('type')}")

    async def events(self) -> AsyncIterator[Dict[str, Any]]:
        """Iterate over inbound documents until the connection ends."""
        while True:
            try:
                yield await self.receive()
            except TransportError:
                if self._state is SessionState.CLOSED:
                    return
                raise


class RealtimeTransport(BaseTransport):
    """aiohttp WebSocket client for the realtime API."""

    def __init__(
        self,
        url: str,
        api_key: str,
        beta_header: str = "realtime=v1",
        connect_timeout_s: float = 10.0,
    ):
        super().__init__()
        self.url = url
        self.api_key = api_key
        self.beta_header = beta_header
        self.connect_timeout_s = connect_timeout_s
        self._session: Optional[aiohttp.ClientSession] = None
        self._ws: Optional[aiohttp.ClientWebSocketResponse] = None

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "OpenAI-Beta": self.beta_header,
        }

    async def connect(self) -> None:
        """Connect to the realtime endpoint."""
        self._state = SessionState.CONNECTING
        self._session = aiohttp.ClientSession()
        try:
            self._ws = await asyncio.wait_for(
                self._session.ws_connect(self.url, headers=self._headers()),
                timeout=self.connect_timeout_s,
            )
        except asyncio.TimeoutError as e:
            await self._abort()
            raise TransportError(
                f"WebSocket handshake timed out after {self.connect_timeout_s}s"
            ) from e
        except aiohttp.WSServerHandshakeError as e:
            await self._abort()
            raise TransportError(f"WebSocket handshake rejected: {e.status} {e.message}") from e
        except aiohttp.ClientError as e:
            await self._abort()
            raise TransportError(f"WebSocket connection failed: {e}") from e

        self._state = SessionState.OPEN
        logger.info(f"Connected to {self.url}")

    async def _abort(self) -> None:
        self._state = SessionState.FAILED
        if self._session and not self._session.closed:
            await self._session.close()

    async def close(self) -> None:
        """Close the WebSocket and the HTTP session."""
        if self._state is not SessionState.FAILED:
            self._state = SessionState.CLOSED
        if self._ws is not None and not self._ws.closed:
            await self._ws.close()
        if self._session is not None and not self._session.closed:
            await self._session.close()
        logger.info("Realtime transport closed")

    async def _send_document(self, document: Dict[str, Any]) -> None:
        try:
            await self._ws.send_json(document)
        except (aiohttp.ClientError, ConnectionResetError) as e:
            self._state = SessionState.FAILED
            raise TransportError(f"Send failed: {e}") from e

    async def receive(self) -> Dict[str, Any]:
        """Receive the next JSON document from the socket."""
        while True:
            if self._ws is None or self._state is not SessionState.OPEN:
                raise TransportError(f"Not connected (state: {self._state.value})")

            msg = await self._ws.receive()

            if msg.type == aiohttp.WSMsgType.TEXT:
                try:
                    return json.loads(msg.data)
                except json.JSONDecodeError:
                    logger.warning(f"Dropping non-JSON frame: {msg.data[:80]!r}")
                    continue

            if msg.type in (
                aiohttp.WSMsgType.CLOSE,
                aiohttp.WSMsgType.CLOSING,
                aiohttp.WSMsgType.CLOSED,
            ):
                self._state = SessionState.CLOSED
                raise TransportError(f"Connection closed by server (code: {self._ws.close_code})")

            if msg.type == aiohttp.WSMsgType.ERROR:
                self._state = SessionState.FAILED
                raise TransportError(f"WebSocket error: {self._ws.exception()}")

            logger.debug(f"Ignoring {msg.type.name} frame")


class MockTransport(BaseTransport):
    """In-memory transport for testing."""

    def __init__(self, fail_connect: bool = False):
        super().__init__()
        self.fail_connect = fail_connect
        self.sent: List[Dict[str, Any]] = []
        self._inbound: asyncio.Queue = asyncio.Queue()

    async def connect(self) -> None:
        """Connect (mock)."""
        self._state = SessionState.CONNECTING
        if self.fail_connect:
            self._state = SessionState.FAILED
            raise TransportError("Mock connection refused")
        self._state = SessionState.OPEN
        logger.info("Mock transport connected")

    async def close(self) -> None:
        """Close (mock). Wakes up a pending receive()."""
        if self._state is not SessionState.FAILED:
            self._state = SessionState.CLOSED
        self._inbound.put_nowait(None)
        logger.info("Mock transport closed")

    async def fail(self, reason: str = "mock failure") -> None:
        """Simulate a transport-level error."""
        self._state = SessionState.FAILED
        self._inbound.put_nowait(TransportError(reason))

    async def _send_document(self, document: Dict[str, Any]) -> None:
        self.sent.append(document)

    async def receive(self) -> Dict[str, Any]:
        """Receive an injected event (mock)."""
        if self._state is not SessionState.OPEN and self._inbound.empty():
            raise TransportError(f"Not connected (state: {self._state.value})")
        item = await self._inbound.get()
        if item is None:
            raise TransportError("Connection closed")
        if isinstance(item, TransportError):
            raise item
        return item

    def inject_event(self, event: Dict[str, Any]) -> None:
        """Queue an inbound event for testing."""
        self._inbound.put_nowait(event)

    def sent_types(self) -> List[str]:
        return [d.get("type") for d in self.sent]


def create_transport(
    transport_type: str = "realtime",
    **kwargs
) -> BaseTransport:
    """Factory function to create transport."""
    if transport_type == "realtime":
        return RealtimeTransport(**kwargs)
    elif transport_type == "mock":
        return MockTransport(**kwargs)
    else:
        raise TransportError(f"Unknown transport type: {transport_type}")
