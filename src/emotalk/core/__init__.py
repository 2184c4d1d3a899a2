"""Core module (Turn Orchestrator)."""
from .orchestrator import InputProvider, Renderer, TurnOrchestrator, create_orchestrator

__all__ = [
    "InputProvider",
    "Renderer",
    "TurnOrchestrator",
    "create_orchestrator",
]
