"""Tests for cognition.decoder."""
import json

import pytest

from emotalk.cognition.decoder import ReplyDecoder, ReplySegment
from emotalk.cognition.vocabulary import NEUTRAL_ANIMATION, NEUTRAL_EXPRESSION
from emotalk.exceptions import DecodeError


@pytest.fixture
def decoder():
    return ReplyDecoder()


class TestReplyDecoder:
    """Test ReplyDecoder.decode."""

    def test_single_segment(self, decoder):
        """Test the exact three field values survive decoding."""
        raw = '[{"animation":"M_Standing_Expressions_001","facialExpression":"Happy","text":"Hi there!"}]'

        segments = decoder.decode(raw)

        assert len(segments) == 1
        assert segments[0].facial_expression == "Happy"
        assert segments[0].animation == "M_Standing_Expressions_001"
        assert segments[0].text == "Hi there!"

    def test_order_preserved(self, decoder):
        raw = json.dumps([
            {"facialExpression": "Happy", "animation": "M_Talking_Variations_001", "text": "One."},
            {"facialExpression": "Sad", "animation": "M_Standing_Idle_001", "text": "Two."},
            {"facialExpression": "Amused", "animation": "M_Dances_001", "text": "Three."},
        ])

        segments = decoder.decode(raw)

        assert [s.text for s in segments] == ["One.", "Two.", "Three."]

    def test_not_json_falls_back(self, decoder):
        """Test non-JSON text becomes one neutral segment with the raw text."""
        segments = decoder.decode("not json")

        assert len(segments) == 1
        assert segments[0].text == "not json"
        assert segments[0].facial_expression == NEUTRAL_EXPRESSION.value
        assert segments[0].animation == NEUTRAL_ANIMATION.value

    @pytest.mark.parametrize("raw", [
        "",
        "[]",
        "{}",
        '{"facialExpression": "Happy", "animation": "M_Dances_001", "text": "hi"}',
        '"just a string"',
        "[1, 2, 3]",
        '[{"facialExpression": "Happy", "text": "missing animation"}]',
        '[{"facialExpression": "", "animation": "M_Dances_001", "text": "blank"}]',
        '[{"facialExpression": "Happy", "animation": "M_Dances_001", "text": 42}]',
        "[{broken",
        "[" * 100000,
        "1" * 5000,
        '[{"facialExpression": "Happy", "animation": "M_Dances_001", "text": ' + "9" * 5000 + "}]",
    ], ids=lambda raw: raw[:40])
    def test_decode_is_total(self, decoder, raw):
        """Test every input yields a non-empty list."""
        segments = decoder.decode(raw)

        assert len(segments) == 1
        assert segments[0].text == raw

    def test_one_bad_element_rejects_whole_reply(self, decoder):
        raw = json.dumps([
            {"facialExpression": "Happy", "animation": "M_Dances_001", "text": "ok"},
            {"facialExpression": "Happy", "animation": "M_Dances_001"},
        ])

        segments = decoder.decode(raw)

        assert len(segments) == 1
        assert segments[0].text == raw

    def test_none_input(self, decoder):
        segments = decoder.decode(None)

        assert len(segments) == 1
        assert segments[0].text == ""

    def test_code_fence_stripped(self, decoder):
        raw = '```json\n[{"facialExpression": "Happy", "animation": "M_Dances_001", "text": "hey"}]\n```'

        segments = decoder.decode(raw)

        assert segments[0].text == "hey"

    def test_surrounding_prose_ignored(self, decoder):
        raw = 'Sure! [{"facialExpression": "Shy", "animation": "M_Standing_Idle_001", "text": "ok"}] Hope that helps.'

        segments = decoder.decode(raw)

        assert len(segments) == 1
        assert segments[0].facial_expression == "Shy"

    def test_single_quotes_tolerated(self, decoder):
        raw = "[{'facialExpression': 'Sad', 'animation': 'M_Standing_Idle_001', 'text': 'Oh no.'}]"

        segments = decoder.decode(raw)

        assert segments[0].facial_expression == "Sad"
        assert segments[0].text == "Oh no."

    def test_unknown_vocabulary_passed_through(self, decoder):
        raw = '[{"facialExpression": "Smug", "animation": "Backflip", "text": "Watch this"}]'

        segments = decoder.decode(raw)

        assert segments[0].facial_expression == "Smug"
        assert segments[0].animation == "Backflip"

    def test_strict_vocabulary_falls_back(self):
        decoder = ReplyDecoder(strict_vocabulary=True)
        raw = '[{"facialExpression": "Smug", "animation": "M_Dances_001", "text": "Watch this"}]'

        segments = decoder.decode(raw)

        assert segments[0].text == raw
        assert segments[0].facial_expression == NEUTRAL_EXPRESSION.value

    def test_long_segment_kept(self, decoder):
        text = " ".join(["word"] * 45)
        raw = json.dumps([{"facialExpression": "Happy", "animation": "M_Dances_001", "text": text}])

        segments = decoder.decode(raw)

        assert segments[0].text == text

    def test_parsed_segments_have_all_fields(self, decoder):
        raw = json.dumps([
            {"facialExpression": " Happy ", "animation": "M_Dances_001", "text": " padded "},
        ])

        for segment in decoder.decode(raw):
            assert segment.facial_expression == "Happy"
            assert segment.animation
            assert segment.text == "padded"


class TestReplyDecoderParse:
    """Test the strict parse used by decode."""

    def test_parse_raises_on_object(self, decoder):
        with pytest.raises(DecodeError, match="expected an array"):
            decoder.parse('{"text": "hi"}')

    def test_parse_raises_on_empty_array(self, decoder):
        with pytest.raises(DecodeError, match="empty"):
            decoder.parse("[]")


class TestReplySegment:
    """Test ReplySegment serialization."""

    def test_to_dict_uses_wire_names(self):
        segment = ReplySegment(facialExpression="Happy", animation="M_Dances_001", text="hi")

        assert segment.to_dict() == {
            "facialExpression": "Happy",
            "animation": "M_Dances_001",
            "text": "hi",
        }
