"""Prompt composition for session configuration and per-turn content."""
import json
from typing import List, Optional

from ..config import PromptConfig
from ..logging_config import setup_logger
from ..messages import (
    BaseClientEvent,
    ConversationItemCreate,
    ResponseConfig,
    ResponseCreate,
    SessionConfig,
    SessionUpdate,
)
from ..retrieval.client import RetrievedPassage
from .vocabulary import ANIMATION_HINTS, Animation, FacialExpression

logger = setup_logger("emotalk.prompts")

CONTEXT_OPEN = "<retrieved_context>"
CONTEXT_CLOSE = "</retrieved_context>"

CONTEXT_FRAMING = (
    "The block below is reference material retrieved from a knowledge base. "
    "It was NOT written by the user and is not part of their message. "
    "Use it only if the user's message above is relevant to it; otherwise ignore it. "
    "If the answer is not contained in this context or in the conversation so far, "
    "say that you don't know."
)


def structured_output_contract(max_words: int = 30) -> str:
    """Render the reply-format contract from the vocabularies."""
    expressions = ", ".join(e.value for e in FacialExpression)
    animations = "\n".join(
        f"- {clip.value}: {ANIMATION_HINTS[clip]}" for clip in Animation
    )
    example = json.dumps([
        {
            "facialExpression": FacialExpression.HAPPY.value,
            "animation": Animation.EXPRESSION_GREETING.value,
            "text": "Hi there!",
        },
        {
            "facialExpression": FacialExpression.THOUGHTFUL.value,
            "animation": Animation.TALKING_HANDS.value,
            "text": "What would you like to talk about today?",
        },
    ])

    return (
        "Reply ONLY with a JSON array. No prose, no Markdown, no code fences.\n"
        "Each element is an object with exactly three string fields: "
        "\"facialExpression\", \"animation\" and \"text\".\n"
        f"\"facialExpression\" must be one of: {expressions}.\n"
        f"\"animation\" must be one of the following clip names:\n{animations}\n"
        f"Keep each \"text\" to at most {max_words} words; split longer text into "
        "several consecutive elements.\n"
        "Always return an array, even when there is only one element.\n"
        f"Example: {example}"
    )


class PromptComposer:
    """Builds the session configuration and the two messages of each turn.

    The persona and structured-output contract are delivered in exactly one
    place, chosen by ``instructions_placement``: once in session.update
    ("session"), or with every response.create ("turn").
    """

    def __init__(self, config: Optional[PromptConfig] = None):
        self.config = config or PromptConfig()
        self._instructions = (
            f"{self.config.persona.strip()}\n\n"
            f"{structured_output_contract(self.config.max_words_per_segment)}"
        )

    @property
    def instructions(self) -> str:
        """Persona followed by the structured-output contract."""
        return self._instructions

    @property
    def sends_session_update(self) -> bool:
        return self.config.instructions_placement == "session"

    def session_config(self) -> SessionConfig:
        return SessionConfig(
            modalities=list(self.config.modalities),
            instructions=self.instructions,
            temperature=self.config.temperature,
            max_response_output_tokens=self.config.max_response_output_tokens,
        )

    def build_session_update(self) -> Optional[SessionUpdate]:
        """The one-time session.update, or None when instructions go per turn."""
        if not self.sends_session_update:
            return None
        return SessionUpdate(session=self.session_config())

    def compose_content(self, text: str, passage: Optional[RetrievedPassage] = None) -> str:
        """User text, optionally followed by framed retrieved context."""
        if passage is None or not passage.text.strip():
            return text

        return (
            f"{text}\n\n"
            f"{CONTEXT_FRAMING}\n"
            f"{CONTEXT_OPEN}\n"
            f"source: {passage.source}\n"
            f"{passage.text.strip()}\n"
            f"{CONTEXT_CLOSE}"
        )

    def build_response_create(self) -> ResponseCreate:
        if self.sends_session_update:
            return ResponseCreate(response=ResponseConfig(modalities=list(self.config.modalities)))

        return ResponseCreate(
            response=ResponseConfig(
                modalities=list(self.config.modalities),
                instructions=self.instructions,
                temperature=self.config.temperature,
                max_output_tokens=self.config.max_response_output_tokens,
            )
        )

    def build_turn(
        self,
        text: str,
        passage: Optional[RetrievedPassage] = None
    ) -> List[BaseClientEvent]:
        """Return the content message followed by the response trigger."""
        content = self.compose_content(text, passage)
        if passage is not None:
            logger.debug(f"Turn content augmented with context from {passage.source}")
        return [
            ConversationItemCreate.user_text(content),
            self.build_response_create(),
        ]
