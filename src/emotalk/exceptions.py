"""Custom exceptions for emotalk."""


class EmotalkError(Exception):
    """Base exception for emotalk."""
    pass


class ConfigError(EmotalkError):
    """Configuration errors (missing credentials, bad values)."""
    pass


class TransportError(EmotalkError):
    """Transport layer errors (handshake, auth, closed or failed socket)."""
    pass


class RetrievalError(EmotalkError):
    """Vector store query errors."""
    pass


class DecodeError(EmotalkError):
    """Structured reply could not be decoded."""
    pass


class OrchestrationError(EmotalkError):
    """Orchestration layer errors."""
    pass
