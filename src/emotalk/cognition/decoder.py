"""Decoding of structured model replies into renderable segments."""
import ast
import json
import re
from typing import Any, List

from pydantic import BaseModel, ConfigDict, Field

from ..exceptions import DecodeError
from ..logging_config import setup_logger
from .vocabulary import (
    NEUTRAL_ANIMATION,
    NEUTRAL_EXPRESSION,
    is_known_animation,
    is_known_expression,
)

logger = setup_logger("emotalk.decoder")

REQUIRED_FIELDS = ("facialExpression", "animation", "text")

_FENCE_RE = re.compile(r"^```[a-zA-Z]*\s*\n?(.*?)\n?```$", re.DOTALL)


class ReplySegment(BaseModel):
    """One unit of a decoded reply, in playback order."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    facial_expression: str = Field(alias="facialExpression")
    animation: str
    text: str

    def to_dict(self) -> dict:
        return self.model_dump(by_alias=True)


def _strip_fences(raw: str) -> str:
    text = raw.strip()
    match = _FENCE_RE.match(text)
    if match:
        return match.group(1).strip()
    return text


def _load_array(raw: str) -> Any:
    """Parse JSON, then a Python-literal fallback for single-quoted output."""
    candidates = [_strip_fences(raw)]
    start, end = candidates[0].find("["), candidates[0].rfind("]")
    if 0 <= start < end and (start, end) != (0, len(candidates[0]) - 1):
        candidates.append(candidates[0][start:end + 1])

    for candidate in candidates:
        # ValueError also covers integer literals past the digit limit
        try:
            return json.loads(candidate)
        except (ValueError, RecursionError):
            pass
        try:
            return ast.literal_eval(candidate)
        except (ValueError, SyntaxError, MemoryError, RecursionError):
            pass

    raise DecodeError("Reply is not a JSON array")


class ReplyDecoder:
    """Turns raw reply text into a non-empty list of ReplySegment.

    Lenient about formatting (code fences, surrounding prose, single quotes),
    strict about shape: anything but a non-empty array of complete objects
    yields a single neutral fallback segment carrying the raw text.
    """

    def __init__(self, strict_vocabulary: bool = False, max_words: int = 30):
        self.strict_vocabulary = strict_vocabulary
        self.max_words = max_words

    def fallback(self, raw: str) -> List[ReplySegment]:
        return [
            ReplySegment(
                facial_expression=NEUTRAL_EXPRESSION.value,
                animation=NEUTRAL_ANIMATION.value,
                text=raw,
            )
        ]

    def _validate(self, item: Any, index: int) -> ReplySegment:
        if not isinstance(item, dict):
            raise DecodeError(f"Segment {index} is not an object")

        for field in REQUIRED_FIELDS:
            value = item.get(field)
            if not isinstance(value, str) or not value.strip():
                raise DecodeError(f"Segment {index} is missing '{field}'")

        segment = ReplySegment(
            facial_expression=item["facialExpression"].strip(),
            animation=item["animation"].strip(),
            text=item["text"].strip(),
        )

        if not is_known_expression(segment.facial_expression):
            if self.strict_vocabulary:
                raise DecodeError(f"Unknown facial expression '{segment.facial_expression}'")
            logger.debug(f"Passing through unknown facial expression '{segment.facial_expression}'")
        if not is_known_animation(segment.animation):
            if self.strict_vocabulary:
                raise DecodeError(f"Unknown animation '{segment.animation}'")
            logger.debug(f"Passing through unknown animation '{segment.animation}'")

        words = len(segment.text.split())
        if words > self.max_words:
            logger.debug(f"Segment {index} has {words} words (limit {self.max_words})")

        return segment

    def parse(self, raw: str) -> List[ReplySegment]:
        """Strict parse. Raises DecodeError on any shape violation."""
        data = _load_array(raw)
        if not isinstance(data, list):
            raise DecodeError(f"Reply is a {type(data).__name__}, expected an array")
        if not data:
            raise DecodeError("Reply array is empty")
        return [self._validate(item, i) for i, item in enumerate(data)]

    def decode(self, raw: str) -> List[ReplySegment]:
        """Total decode: never raises, never returns an empty list."""
        raw = raw or ""
        try:
            segments = self.parse(raw)
        except DecodeError as e:
            logger.warning(f"Malformed reply, using fallback segment: {e}")
            return self.fallback(raw)

        logger.debug(f"Decoded {len(segments)} segment(s)")
        return segments
