import json

import pytest

from querynest.llm.response_parsing import (
    RAW_FALLBACK_LIMIT,
    extract_function_call,
    extract_text,
    parse_generation,
)
from tests.mocks import function_call_response, text_response


class TestExtractText:
    def test_top_level_text(self):
        assert extract_text({"text": "hello"}) == ("hello", "top_level_text")

    def test_candidate_parts_are_joined(self):
        raw = {
            "candidates": [
                {"content": {"parts": [{"text": "Hello, "}, {"text": "world"}]}}
            ]
        }
        assert extract_text(raw) == ("Hello, world", "candidate_parts")

    def test_response_text(self):
        assert extract_text({"response": {"text": "hi"}}) == ("hi", "response_text")

    def test_output_content(self):
        raw = {"output": [{"content": [{"text": "from output"}]}]}
        assert extract_text(raw) == ("from output", "output_content")

    def test_first_matching_strategy_wins(self):
        raw = {"text": "top", **text_response("candidate")}
        assert extract_text(raw) == ("top", "top_level_text")

    def test_blank_strategy_falls_through(self):
        raw = {"text": "  ", **text_response("candidate")}
        assert extract_text(raw) == ("candidate", "candidate_parts")

    def test_raw_fallback(self):
        raw = {"candidates": [{"finishReason": "SAFETY"}]}
        text, source = extract_text(raw)
        assert source == "raw_fallback"
        assert json.loads(text) == raw

    def test_raw_fallback_is_truncated(self):
        raw = {"unexpected": "x" * 5000}
        text, source = extract_text(raw)
        assert source == "raw_fallback"
        assert len(text) == RAW_FALLBACK_LIMIT

    @pytest.mark.parametrize(
        "raw",
        [
            {"candidates": "oops"},
            {"candidates": [None]},
            {"candidates": [{"content": {"parts": "nope"}}]},
            {"output": [{"content": "nope"}]},
        ],
    )
    def test_malformed_shapes_do_not_raise(self, raw):
        _, source = extract_text(raw)
        assert source == "raw_fallback"


class TestExtractFunctionCall:
    def test_call_in_parts_keeps_candidate_content(self):
        raw = function_call_response("search_documents", {"query": "tax"})

        call = extract_function_call(raw)

        assert call.name == "search_documents"
        assert call.args == {"query": "tax"}
        assert call.candidate_content == raw["candidates"][0]["content"]

    def test_missing_role_defaults_to_model(self):
        raw = {
            "candidates": [
                {"content": {"parts": [{"functionCall": {"name": "f", "args": {}}}]}}
            ]
        }

        call = extract_function_call(raw)

        assert call.candidate_content["role"] == "model"
        assert "role" not in raw["candidates"][0]["content"]

    def test_top_level_function_calls(self):
        raw = {"functionCalls": [{"name": "search_documents", "args": {"query": "q"}}]}

        call = extract_function_call(raw)

        assert call.name == "search_documents"
        assert call.candidate_content == {
            "role": "model",
            "parts": [
                {"functionCall": {"name": "search_documents", "args": {"query": "q"}}}
            ],
        }

    def test_call_on_candidate(self):
        raw = {"candidates": [{"functionCall": {"name": "f", "args": {"a": 1}}}]}

        call = extract_function_call(raw)

        assert call.name == "f"
        assert call.args == {"a": 1}

    def test_snake_case_key(self):
        raw = {
            "candidates": [
                {"content": {"parts": [{"function_call": {"name": "f", "args": {}}}]}}
            ]
        }
        assert extract_function_call(raw).name == "f"

    def test_json_string_args_are_decoded(self):
        raw = {"functionCalls": [{"name": "f", "args": '{"query": "q"}'}]}
        assert extract_function_call(raw).args == {"query": "q"}

    @pytest.mark.parametrize("args", ["not json", "[1, 2]", 5, None])
    def test_unusable_args_become_empty(self, args):
        raw = {"functionCalls": [{"name": "f", "args": args}]}
        assert extract_function_call(raw).args == {}

    def test_nameless_call_is_ignored(self):
        raw = {"functionCalls": [{"args": {"query": "q"}}]}
        assert extract_function_call(raw) is None

    def test_plain_text_has_no_call(self):
        assert extract_function_call(text_response("hi")) is None


class TestParseGeneration:
    def test_text_response(self):
        result = parse_generation(text_response("Hello"))

        assert result.text == "Hello"
        assert result.text_source == "candidate_parts"
        assert result.has_function_call is False

    def test_function_call_only(self):
        result = parse_generation(function_call_response("search_documents", {"query": "q"}))

        assert result.has_function_call is True
        assert result.text_source == "raw_fallback"

    def test_text_alongside_call(self):
        raw = {
            "candidates": [
                {
                    "content": {
                        "role": "model",
                        "parts": [
                            {"text": "Let me look."},
                            {"functionCall": {"name": "search_documents", "args": {}}},
                        ],
                    }
                }
            ]
        }

        result = parse_generation(raw)

        assert result.text == "Let me look."
        assert result.function_call.name == "search_documents"

    def test_to_dict(self):
        result = parse_generation(function_call_response("f", {"x": 1}))
        assert result.to_dict()["function_call"] == {"name": "f", "args": {"x": 1}}
