"""Turn Orchestrator - drives the realtime session one turn at a time."""
import inspect
from typing import Any, Awaitable, Callable, Dict, List, Optional

from ..cognition.decoder import ReplyDecoder, ReplySegment
from ..cognition.prompts import PromptComposer
from ..config import Config, OrchestrationConfig, get_config
from ..exceptions import ConfigError, OrchestrationError, TransportError
from ..logging_config import setup_logger
from ..messages import ResponseStatus, ServerEvent, parse_server_event
from ..orchestration.fsm import Event, State, create_default_fsm
from ..orchestration.session import Session, Turn, TurnStatus
from ..retrieval.client import BaseRetriever, create_retriever
from ..transport.realtime import BaseTransport, create_transport

logger = setup_logger("emotalk.orchestrator")

InputProvider = Callable[[str], Awaitable[Optional[str]]]
"""Async callable taking a prompt and returning user text, or None on EOF."""

Renderer = Callable[[List[ReplySegment]], Any]
"""Receives the decoded segments of each reply. May be sync or async."""

_FAILED_STATUSES = {ResponseStatus.FAILED.value, ResponseStatus.CANCELLED.value}


class TurnOrchestrator:
    """Main orchestrator for a realtime conversation session.

    Coordinates:
    - Transport (one duplex connection, owned for the whole run)
    - Retriever (optional context lookup per human turn)
    - PromptComposer (session configuration and turn envelopes)
    - ReplyDecoder (raw reply text to segments)

    Exactly one turn is in flight at a time. After each reply is rendered
    the orchestrator blocks on the input provider before sending the next
    turn, so the human paces the conversation.
    """

    def __init__(
        self,
        transport: BaseTransport,
        composer: Optional[PromptComposer] = None,
        decoder: Optional[ReplyDecoder] = None,
        retriever: Optional[BaseRetriever] = None,
        input_provider: Optional[InputProvider] = None,
        renderer: Optional[Renderer] = None,
        config: Optional[OrchestrationConfig] = None
    ):
        self.transport = transport
        self.composer = composer or PromptComposer()
        self.decoder = decoder or ReplyDecoder()
        self.retriever = retriever
        self.input_provider = input_provider
        self.renderer = renderer
        self.config = config or OrchestrationConfig()

        self.session = Session(transport=transport)
        self.fsm = create_default_fsm()
        self.fsm.add_state_handler(State.TERMINAL, self._on_terminal)

        self._turn: Optional[Turn] = None
        self._running = False
        self._closed = False

    @property
    def state(self) -> State:
        """Get current FSM state."""
        return self.fsm.current_state

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def current_turn(self) -> Optional[Turn]:
        return self._turn

    async def start(self) -> None:
        """Connect and configure the session."""
        logger.info("Starting TurnOrchestrator")
        try:
            await self.transport.connect()
        except TransportError:
            await self._enter_terminal(Event.TRANSPORT_LOST)
            raise

        await self.fsm.transition(Event.CONNECTED)

        self.session.configuration = self.composer.session_config()
        update = self.composer.build_session_update()
        if update is not None:
            await self.transport.send(update)
            logger.info("Session configuration sent")
        else:
            logger.info("Session configuration skipped, instructions travel with each turn")

        self._running = True

    async def submit_turn(self, text: str, use_retrieval: bool = True) -> Turn:
        """Compose and send a turn as a content + trigger pair.

        Raises:
            OrchestrationError: If a turn is already in flight
            TransportError: If the pair could not be sent
        """
        if self._turn is not None and self._turn.is_pending:
            raise OrchestrationError(
                f"Turn {self._turn.turn_id} is still in flight, refusing to send another"
            )
        if not self.fsm.can_transition(Event.TURN_SUBMITTED):
            raise OrchestrationError(f"Cannot submit a turn in state {self.state.value}")

        passage = None
        if use_retrieval and self.retriever is not None:
            passage = await self.retriever.query(text)

        envelopes = self.composer.build_turn(text, passage)
        turn = Turn(
            turn_id=self.session.next_turn_id(),
            text=text,
            context=passage,
            envelopes=[e.to_dict() for e in envelopes],
        )
        self._turn = turn

        try:
            await self.transport.send_batch(envelopes)
        except TransportError:
            turn.finish(TurnStatus.FAILED)
            raise

        await self.fsm.transition(Event.TURN_SUBMITTED)
        logger.info(
            f"Turn {turn.turn_id} sent: '{text[:50]}'"
            + (f" (context from {passage.source})" if passage else "")
        )
        return turn

    async def handle_event(self, data: Dict[str, Any]) -> Optional[List[ReplySegment]]:
        """React to one inbound document.

        Returns the decoded segments when the event completed a turn.
        """
        try:
            event = parse_server_event(data)
        except ValueError as e:
            logger.warning(f"Ignoring malformed server event: {e}")
            return None

        turn = self._turn
        if turn is not None and turn.is_pending:
            turn.record_event()

        if event.is_error:
            logger.error(f"Server error: {event.error}")

        if event.is_failed:
            details = event.response.status_details if event.response else None
            logger.warning(f"Something went wrong... keep messaging ({details})")
            if turn is not None and turn.is_pending:
                turn.record_failure(details)
                await self.fsm.transition(Event.TURN_FAILED)

        if event.is_response_done:
            return await self._complete_turn(event)

        if event.is_session_event:
            logger.info(f"Session acknowledged: {event.type}")
            return None

        logger.debug(f"Event: {event.type}")
        return None

    async def _complete_turn(self, event: ServerEvent) -> Optional[List[ReplySegment]]:
        turn = self._turn
        if turn is None or not turn.is_pending or self.state != State.TURN_IN_FLIGHT:
            logger.warning("Received response.done with no turn in flight, ignoring")
            return None

        await self.fsm.transition(Event.RESPONSE_DONE)
        self._log_usage(turn, event)

        raw = event.output_text()
        logger.info(f"Received message: {raw[:200]}")
        segments = self.decoder.decode(raw)

        status = event.response.status if event.response else None
        turn.finish(
            TurnStatus.FAILED if status in _FAILED_STATUSES else TurnStatus.DONE,
            segments,
        )

        await self._render(segments)
        await self.fsm.transition(Event.REPLY_RENDERED)
        self._turn = None
        return segments

    def _log_usage(self, turn: Turn, event: ServerEvent) -> None:
        usage = event.usage()
        if not usage:
            return
        logger.info(
            f"Turn {turn.turn_id} usage: input={usage.get('input_tokens')} "
            f"output={usage.get('output_tokens')} total={usage.get('total_tokens')}"
        )

    async def _render(self, segments: List[ReplySegment]) -> None:
        if self.renderer is None:
            for segment in segments:
                logger.info(f"[{segment.facial_expression} | {segment.animation}] {segment.text}")
            return

        result = self.renderer(segments)
        if inspect.isawaitable(result):
            await result

    async def _read_input(self) -> Optional[str]:
        """Next non-blank user message, or None to end the session."""
        if self.input_provider is None:
            return None

        while True:
            text = await self.input_provider(self.config.input_prompt)
            if text is None:
                return None
            text = text.strip()
            if not text:
                continue
            if text.lower() in self.config.exit_commands:
                return None
            return text

    async def run(self) -> None:
        """Run the conversation until shutdown or transport failure."""
        try:
            await self.start()
            await self.submit_turn(self.config.greeting, use_retrieval=False)

            while self._running:
                data = await self.transport.receive()
                await self.handle_event(data)

                if self.state == State.AWAITING_INPUT:
                    text = await self._read_input()
                    if text is None:
                        await self.shutdown()
                        break
                    await self.submit_turn(text)

        except TransportError as e:
            logger.error(f"Transport failure: {e}")
            await self._enter_terminal(Event.TRANSPORT_LOST)
            raise
        finally:
            await self.shutdown()

    async def _enter_terminal(self, event: Event) -> None:
        if not self.fsm.is_terminal:
            await self.fsm.transition(event)

    def _on_terminal(self) -> None:
        self._running = False
        if self._turn is not None and self._turn.is_pending:
            logger.warning(f"Turn {self._turn.turn_id} abandoned at shutdown")
            self._turn.finish(TurnStatus.FAILED)

    async def shutdown(self) -> None:
        """Close the session. Safe to call more than once."""
        await self._enter_terminal(Event.SHUTDOWN)
        if self._closed:
            return
        self._closed = True

        await self.transport.close()
        if self.retriever is not None:
            await self.retriever.close()
        logger.info("TurnOrchestrator stopped")

    def is_turn_in_flight(self) -> bool:
        return self._turn is not None and self._turn.is_pending


def create_orchestrator(
    config: Optional[Config] = None,
    transport: Optional[BaseTransport] = None,
    retriever: Optional[BaseRetriever] = None,
    input_provider: Optional[InputProvider] = None,
    renderer: Optional[Renderer] = None
) -> TurnOrchestrator:
    """Factory function wiring an orchestrator from configuration.

    The orchestrator is returned unstarted; call ``run()`` to drive it.
    """
    cfg = config or get_config()

    if transport is None:
        if not cfg.api.openai_api_key:
            raise ConfigError("OPEN_AI_KEY is not set")
        transport = create_transport(
            "realtime",
            url=cfg.realtime.endpoint,
            api_key=cfg.api.openai_api_key,
            beta_header=cfg.realtime.beta_header,
            connect_timeout_s=cfg.realtime.connect_timeout_s,
        )

    if retriever is None:
        retriever = create_retriever(cfg.retrieval)

    return TurnOrchestrator(
        transport=transport,
        composer=PromptComposer(cfg.prompt),
        decoder=ReplyDecoder(max_words=cfg.prompt.max_words_per_segment),
        retriever=retriever,
        input_provider=input_provider,
        renderer=renderer,
        config=cfg.orchestration,
    )
