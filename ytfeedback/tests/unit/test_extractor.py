"""Unit tests for model-response extraction."""

import json

import pytest

from ytfeedback.core.models.evaluation import ExtractedResponse
from ytfeedback.ingestion.extractor import ResponseExtractor, extract_response


class TestResponseExtractor:
    """Test the three-step JSON extraction."""

    def setup_method(self):
        """Set up test fixtures."""
        self.extractor = ResponseExtractor()

    @pytest.mark.parametrize(
        "text",
        [
            '{"a": 1, "b": [1, 2, {"c": null}]}',
            "[1, 2, 3]",
            '"just a string"',
            "42",
            "null",
            "true",
            '  {"padded": "whitespace"}  \n',
        ],
    )
    def test_valid_json_parses_directly(self, text):
        """Any valid JSON text parses to the same value json.loads gives."""
        result = self.extractor.extract(text)

        assert result.raw == text
        assert result.parsed == json.loads(text)

    def test_fenced_json_recovered(self):
        """JSON inside a markdown fence with surrounding prose is recovered."""
        obj = {"Accuracy Level": [{"Accuracy Level": "80%"}], "nested": {"k": [1, 2]}}
        text = "blah blah ```json\n" + json.dumps(obj) + "\n``` blah"

        result = self.extractor.extract(text)

        assert result.parsed == obj
        assert result.raw == text

    def test_stray_braces_defeat_brace_scan(self):
        """Unrelated braces outside the JSON leave nothing parseable."""
        text = 'Use {curly} style: {"score": 5} and done }'

        result = self.extractor.extract(text)

        assert result.parsed is None
        assert result.raw == text

    def test_empty_input(self):
        result = self.extractor.extract("")

        assert result == ExtractedResponse(raw="", parsed=None)

    def test_none_input(self):
        result = self.extractor.extract(None)

        assert result.raw == ""
        assert result.parsed is None

    def test_bytes_are_decoded(self):
        result = self.extractor.extract('{"level": "Expert ✓"}'.encode("utf-8"))

        assert result.parsed == {"level": "Expert ✓"}
        assert result.raw == '{"level": "Expert ✓"}'

    @pytest.mark.parametrize(
        "text",
        [
            "{",
            "}{",
            "{not json}",
            '{"truncated": [1, 2',
            "plain prose with no braces",
            "\x00\x01\x02 binary \xff garbage",
            "[" * 5000 + "]" * 5000,
            "{" * 5000 + "}" * 5000,
        ],
    )
    def test_malformed_input_never_raises(self, text):
        result = self.extractor.extract(text)

        assert isinstance(result, ExtractedResponse)
        assert result.raw == text

    def test_binary_garbage_bytes(self):
        result = self.extractor.extract(b"\xff\xfe\x00\x81{garbage")

        assert result.parsed is None
        assert isinstance(result.raw, str)

    def test_pre_parsed_value_is_used(self):
        """A value already decoded by the HTTP layer wins over the text."""
        result = self.extractor.extract("not json", parsed={"already": "parsed"})

        assert result.parsed == {"already": "parsed"}
        assert result.raw == "not json"

    def test_pre_parsed_none_falls_back_to_text(self):
        result = self.extractor.extract('{"x": 1}', parsed=None)

        assert result.parsed == {"x": 1}

    def test_module_shortcut(self):
        assert extract_response('{"ok": true}').parsed == {"ok": True}

    def test_payload_mirrors_raw_as_text(self):
        payload = self.extractor.extract('{"ok": true}').to_payload()

        assert payload == {"raw": '{"ok": true}', "text": '{"ok": true}', "parsed": {"ok": True}}
