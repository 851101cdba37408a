"""Tests for extracting the verdict object from model replies."""

import pytest
from transcript_agent.common.llm_utils import parse_llm_json

VERDICT = {"shouldRespond": True, "confidence": 0.8, "reason": "Direct question"}


class TestParseLlmJson:
    def test_bare_verdict(self):
        raw = '{"shouldRespond": true, "confidence": 0.8, "reason": "Direct question"}'
        assert parse_llm_json(raw) == VERDICT

    def test_fenced_verdict_with_language_tag(self):
        raw = 'Here you go:\n```json\n{"shouldRespond": false, "confidence": 0.3, "reason": "Trailing off"}\n```'
        result = parse_llm_json(raw)
        assert result["shouldRespond"] is False
        assert result["reason"] == "Trailing off"

    def test_fenced_block_preferred_over_prose_braces(self):
        raw = 'The {speaker} paused.\n```\n{"shouldRespond": true, "confidence": 0.7, "reason": "Done"}\n```'
        assert parse_llm_json(raw)["reason"] == "Done"

    def test_verdict_surrounded_by_prose(self):
        raw = 'Verdict: {"shouldRespond": true, "confidence": 0.8, "reason": "Direct question"} Hope that helps.'
        assert parse_llm_json(raw) == VERDICT

    def test_first_of_two_objects_wins(self):
        raw = '{"shouldRespond": true, "confidence": 0.9, "reason": "a"}\n{"shouldRespond": false, "confidence": 0.1, "reason": "b"}'
        assert parse_llm_json(raw)["reason"] == "a"

    def test_nested_braces_inside_reason(self):
        raw = '{"shouldRespond": true, "confidence": 0.6, "reason": "asked about {x}"}'
        assert parse_llm_json(raw)["reason"] == "asked about {x}"

    def test_prose_only_reply(self):
        assert parse_llm_json("The user is probably done talking.") == {}

    def test_empty_reply(self):
        assert parse_llm_json("") == {}
        assert parse_llm_json("  \n ") == {}

    @pytest.mark.parametrize("raw", ["[1, 2, 3]", '"respond"', "0.8", "true"])
    def test_non_object_reply(self, raw):
        assert parse_llm_json(raw) == {}

    def test_truncated_verdict(self):
        assert parse_llm_json('{"shouldRespond": tru') == {}
