"""
Unit tests for content-type aware body decoding.
"""

import json
import os
import sys
from urllib.parse import urlencode

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from body_parser import ContentType, parse_request_body
from receiver_errors import BodyParseError

FORM = "application/x-www-form-urlencoded"


class TestContentTypeMatching:
    def test_recognized_types(self):
        assert ContentType.from_header(FORM) is ContentType.FORM
        assert ContentType.from_header("application/json") is ContentType.JSON

    def test_parameters_and_case_ignored(self):
        assert ContentType.from_header("Application/JSON; charset=utf-8") is ContentType.JSON

    def test_missing_or_unknown(self):
        assert ContentType.from_header(None) is ContentType.UNRECOGNIZED
        assert ContentType.from_header("text/plain") is ContentType.UNRECOGNIZED


class TestFormBodies:
    def test_payload_field_is_parsed_as_json(self):
        payload = {"type": "block_actions", "actions": [{"action_id": "approve"}]}
        raw = urlencode({"payload": json.dumps(payload)})

        assert parse_request_body(raw, FORM) == payload

    def test_slash_command_returns_form_mapping(self):
        raw = "command=%2Fhello&text=&team_id=T123"

        body = parse_request_body(raw, FORM)

        assert body == {"command": "/hello", "text": "", "team_id": "T123"}

    def test_repeated_keys_kept_as_list(self):
        assert parse_request_body("a=1&a=2", FORM) == {"a": ["1", "2"]}

    def test_invalid_payload_json_raises(self):
        with pytest.raises(BodyParseError):
            parse_request_body("payload=%7Bnot-json", FORM)


class TestJsonBodies:
    def test_json_body(self):
        assert parse_request_body('{"type": "event_callback"}', "application/json") == {"type": "event_callback"}

    def test_malformed_json_raises(self):
        with pytest.raises(BodyParseError) as exc_info:
            parse_request_body("{oops", "application/json")
        assert exc_info.value.content_type == "application/json"


class TestUnrecognizedContentType:
    def test_falls_back_to_json_with_warning(self, capsys):
        body = parse_request_body('{"ok": true}', "text/plain")

        assert body == {"ok": True}
        assert "unexpected_content_type" in capsys.readouterr().out

    def test_missing_content_type_parses_json(self):
        assert parse_request_body("[1, 2]", None) == [1, 2]

    def test_fallback_failure_is_logged_and_raised(self, capsys):
        with pytest.raises(BodyParseError):
            parse_request_body("command=/hello", None)

        out = capsys.readouterr().out
        assert "unexpected_content_type" in out
        assert "body_parse_failed" in out
