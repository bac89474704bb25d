"""Unit tests for the inference layer: response parsing and the Ollama client.

No Ollama server is needed: ``requests`` is patched in the client module.
"""

import json
from unittest.mock import MagicMock, patch

import pytest
import requests

from cinepippin.errors import InferenceError, MalformedResponseError
from cinepippin.inference.ollama import OllamaClient
from cinepippin.inference.parsing import (
    FLAT_COUPLET_GRAMMAR,
    parse_bool_couplets,
    parse_json_array,
    parse_ranking,
    parse_string_couplets,
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _stream(*objects) -> MagicMock:
    """Mock for ``requests.post`` whose response streams *objects* as JSON lines."""
    response = MagicMock()
    response.iter_lines.return_value = [json.dumps(o) for o in objects]
    post = MagicMock()
    post.return_value.__enter__.return_value = response
    return post


# ---------------------------------------------------------------------------
# parse_json_array / couplets
# ---------------------------------------------------------------------------

class TestParseJsonArray:
    def test_plain_json(self):
        assert parse_json_array('[["a", "b"], ["c", "d"]]', "stage") == [["a", "b"], ["c", "d"]]

    def test_surrounding_prose_and_fences(self):
        raw = 'Sure! Here they are:\n```json\n[["a", "b"]]\n```\nEnjoy.'
        assert parse_json_array(raw, "stage") == [["a", "b"]]

    def test_flat_couplets_repaired(self):
        """A list of pairs missing its outer brackets is wrapped and parsed."""
        raw = 'Answer: ["Pun", "bananas"], ["Rhyme", "walrus"]'
        assert parse_json_array(raw, "stage") == [["Pun", "bananas"], ["Rhyme", "walrus"]]

    def test_single_quotes_normalized(self):
        raw = "[['Pun', 'bananas'], ['Rhyme', \"it's\"]]"
        assert parse_json_array(raw, "stage") == [["Pun", "bananas"], ["Rhyme", "it's"]]

    def test_no_array(self):
        with pytest.raises(MalformedResponseError) as exc_info:
            parse_json_array("I cannot help with that.", "T1 word generation")
        assert exc_info.value.stage == "T1 word generation"

    def test_garbage_array(self):
        with pytest.raises(MalformedResponseError):
            parse_json_array("[this is not, json]", "stage")

    def test_grammar(self):
        assert FLAT_COUPLET_GRAMMAR.matches('["a", true], ["b", false]')
        assert not FLAT_COUPLET_GRAMMAR.matches('["a", "b"]')


class TestCouplets:
    def test_string_couplets_trimmed_and_truncated(self):
        raw = '[[" Pun ", " bananas "], ["Rhyme", "walrus"], ["Extra", "x"]]'
        assert parse_string_couplets(raw, "stage", 2) == [("Pun", "bananas"), ("Rhyme", "walrus")]

    def test_too_few_couplets(self):
        with pytest.raises(MalformedResponseError):
            parse_string_couplets('[["Pun", "bananas"]]', "stage", 2)

    def test_wrong_shape(self):
        with pytest.raises(MalformedResponseError):
            parse_string_couplets('[["Pun"], ["Rhyme"]]', "stage", 2)

    def test_bool_couplets(self):
        raw = '[["Is it funny?", true], ["Is it long?", false]]'
        assert parse_bool_couplets(raw, "stage", 2) == [("Is it funny?", True), ("Is it long?", False)]

    @pytest.mark.parametrize("answer", ['"true"', "1", '"yes"'])
    def test_bool_must_be_literal(self, answer):
        """Strings and numbers are not accepted as booleans."""
        with pytest.raises(MalformedResponseError):
            parse_bool_couplets(f'[["Q?", {answer}], ["R?", false]]', "stage", 2)


# ---------------------------------------------------------------------------
# parse_ranking
# ---------------------------------------------------------------------------

class TestParseRanking:
    def test_full_ranking(self):
        assert parse_ranking("3, 1, 5", 5) == [2, 0, 4]

    def test_padding_in_display_order(self):
        """A single pick is padded with the remaining options in order."""
        assert parse_ranking("The best is 2.", 5) == [1, 0, 2]

    def test_out_of_range_and_repeats_ignored(self):
        assert parse_ranking("10, 2, 2, 4", 5) == [1, 3, 0]

    def test_fewer_options_than_top(self):
        assert parse_ranking("2", 2) == [1, 0]

    def test_no_valid_number(self):
        with pytest.raises(MalformedResponseError):
            parse_ranking("7 and 9", 5)


# ---------------------------------------------------------------------------
# OllamaClient
# ---------------------------------------------------------------------------

class TestOllamaClient:
    def test_stream_concatenated(self):
        post = _stream(
            {"response": "  Hello", "done": False},
            {"response": " world", "done": False},
            {"response": "!  ", "done": True},
            {"response": "ignored", "done": False},
        )
        with patch("cinepippin.inference.ollama.requests.post", post):
            text = OllamaClient(model="m").complete("Say hi", system="Be brief", temperature=0.2)

        assert text == "Hello world!"
        kwargs = post.call_args.kwargs
        assert post.call_args.args[0] == "http://localhost:11434/api/generate"
        assert kwargs["json"]["model"] == "m"
        assert kwargs["json"]["system"] == "Be brief"
        assert kwargs["json"]["options"] == {"temperature": 0.2}
        assert kwargs["stream"] is True

    def test_no_system_prompt_omitted(self):
        post = _stream({"response": "x", "done": True})
        with patch("cinepippin.inference.ollama.requests.post", post):
            OllamaClient().complete("p")
        assert "system" not in post.call_args.kwargs["json"]

    def test_connection_error(self):
        post = MagicMock(side_effect=requests.ConnectionError("connection refused"))
        with patch("cinepippin.inference.ollama.requests.post", post):
            with pytest.raises(InferenceError) as exc_info:
                OllamaClient().complete("p")
        assert "connection refused" in exc_info.value.detail

    def test_http_error(self):
        post = _stream()
        post.return_value.__enter__.return_value.raise_for_status.side_effect = requests.HTTPError("500 Server Error")
        with patch("cinepippin.inference.ollama.requests.post", post):
            with pytest.raises(InferenceError):
                OllamaClient().complete("p")

    def test_error_line(self):
        post = _stream({"error": "model 'nope' not found"})
        with patch("cinepippin.inference.ollama.requests.post", post):
            with pytest.raises(InferenceError, match="not found"):
                OllamaClient().complete("p")

    @pytest.mark.parametrize("line", [None, 5, ["response"]])
    def test_non_object_line(self, line):
        """Stream lines that are valid JSON but not objects are retryable failures."""
        post = _stream(line)
        with patch("cinepippin.inference.ollama.requests.post", post):
            with pytest.raises(InferenceError, match="unexpected stream line"):
                OllamaClient().complete("p")

    def test_wait_until_ready(self):
        get = MagicMock()
        get.return_value.status_code = 200
        with patch("cinepippin.inference.ollama.requests.get", get):
            OllamaClient(base_url="http://host:1234/").wait_until_ready(timeout_s=5)
        assert get.call_args.args[0] == "http://host:1234/api/tags"

    def test_wait_until_ready_times_out(self):
        with patch("cinepippin.inference.ollama.requests.get", side_effect=requests.ConnectionError()):
            with pytest.raises(InferenceError):
                OllamaClient().wait_until_ready(timeout_s=0)
