"""emotalk - realtime conversational agent with structured, renderable replies.

Architecture:
- transport: realtime WebSocket session
- retrieval: vector store lookups for turn context
- cognition: vocabularies, prompt composition, reply decoding
- orchestration: FSM, session and turn model
- core: Turn Orchestrator
"""
from .config import Config, get_config
from .core import TurnOrchestrator, create_orchestrator
from .exceptions import (
    ConfigError,
    DecodeError,
    EmotalkError,
    OrchestrationError,
    RetrievalError,
    TransportError,
)
from .logging_config import logger, setup_logger

__version__ = "1.0.0"

__all__ = [
    # Config
    "Config",
    "get_config",
    # Logging
    "logger",
    "setup_logger",
    # Core
    "TurnOrchestrator",
    "create_orchestrator",
    # Exceptions
    "EmotalkError",
    "ConfigError",
    "TransportError",
    "RetrievalError",
    "DecodeError",
    "OrchestrationError",
]
