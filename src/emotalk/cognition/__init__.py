"""Cognition layer modules (vocabulary, prompt composition, reply decoding)."""
from .decoder import ReplyDecoder, ReplySegment
from .prompts import PromptComposer, structured_output_contract
from .vocabulary import ANIMATION_HINTS, Animation, FacialExpression

__all__ = [
    "ReplyDecoder",
    "ReplySegment",
    "PromptComposer",
    "structured_output_contract",
    "ANIMATION_HINTS",
    "Animation",
    "FacialExpression",
]
