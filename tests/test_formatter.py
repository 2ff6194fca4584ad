"""Tests for response formatting."""

import click
import pytest

from reqsh.errors import ValidationError
from reqsh.formatter import check_format, format_response
from tests.conftest import make_response

JSON_HEADERS = {"Content-Type": ["application/json; charset=utf-8"]}


class TestFormatResponse:
    def test_status_and_pretty_json(self):
        out = format_response(make_response(body='{"a":1,"b":[1,2]}', headers=JSON_HEADERS))
        lines = out.split("\n")
        assert lines[0] == "200 OK"
        assert lines[1] == ""
        assert '"a": 1' in out
        assert '  "b": [' in out

    def test_text_body_untouched(self):
        out = format_response(make_response(body="hello", headers={"Content-Type": ["text/plain"]}))
        assert out == "200 OK\n\nhello"

    def test_json_body_without_json_content_type_untouched(self):
        out = format_response(make_response(body='{"a":1}'))
        assert out.endswith('{"a":1}')

    def test_invalid_json_returned_as_is(self):
        out = format_response(make_response(body="{not json", headers=JSON_HEADERS))
        assert out.endswith("{not json")

    def test_pretty_print_disabled(self):
        out = format_response(make_response(body='{"a":1}', headers=JSON_HEADERS), pretty=False)
        assert out.endswith('{"a":1}')

    def test_format_raw(self):
        out = format_response(make_response(body='{"a":1}', headers=JSON_HEADERS), fmt="raw")
        assert out.endswith('{"a":1}')

    def test_format_json_forces_pretty(self):
        out = format_response(make_response(body='{"a":1}'), fmt="json")
        assert out.endswith('{\n  "a": 1\n}')

    def test_empty_body(self):
        assert format_response(make_response(status_code=204, status="204 No Content")) == "204 No Content"

    def test_non_utf8_body(self):
        out = format_response(make_response(body=b"\xff\xfeok"))
        assert out.endswith("ok")

    def test_info_block(self):
        resp = make_response(
            body="hi",
            headers={"Set-Cookie": ["a=1", "b=2"], "Content-Type": ["text/plain"]},
            elapsed_ms=12.7,
        )
        out = format_response(resp, show_info=True)
        assert "Headers:" in out
        assert "  Set-Cookie: a=1" in out
        assert "  Set-Cookie: b=2" in out
        assert "Timing: 12ms" in out
        assert "Size: 2 bytes" in out

    def test_no_info_by_default(self):
        out = format_response(make_response(body="hi", headers={"X": ["1"]}))
        assert "Headers:" not in out
        assert "Timing:" not in out

    @pytest.mark.parametrize(
        ("code", "color"),
        [(200, "green"), (301, "blue"), (404, "yellow"), (503, "red")],
    )
    def test_tty_colors(self, code, color):
        resp = make_response(status_code=code, status=f"{code} X")
        assert format_response(resp, is_tty=True) == click.style(f"{code} X", fg=color)

    def test_no_color_without_tty(self):
        assert "\x1b[" not in format_response(make_response(status_code=500, status="500 X"))


class TestCheckFormat:
    @pytest.mark.parametrize("fmt", ["", "json", "raw"])
    def test_valid(self, fmt):
        check_format(fmt)

    def test_invalid(self):
        with pytest.raises(ValidationError, match="unknown output format: xml"):
            check_format("xml")
