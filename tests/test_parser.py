"""Tests for command-line parsing."""

import pytest

from reqsh.errors import ParseError, ValidationError
from reqsh.parser import (
    AuthCommand,
    ParsedRequest,
    RecallOptions,
    SimpleCommand,
    parse_args,
    parse_header,
)

# ── Dispatch ────────────────────────────────────────────────────────────


class TestDispatch:
    def test_no_args(self):
        with pytest.raises(ParseError, match="no command"):
            parse_args([])

    @pytest.mark.parametrize("arg", ["--version", "-v", "--VERSION"])
    def test_version(self, arg):
        assert parse_args([arg]) == SimpleCommand("version")

    @pytest.mark.parametrize("arg", ["--help", "-h"])
    def test_help(self, arg):
        assert parse_args([arg]) == SimpleCommand("help")

    def test_list(self):
        assert parse_args(["LIST"]) == SimpleCommand("list")

    def test_list_rejects_extra(self):
        with pytest.raises(ParseError, match="unexpected argument: x"):
            parse_args(["list", "x"])

    def test_delete(self):
        assert parse_args(["delete", "my-call"]) == SimpleCommand("delete", name="my-call")

    def test_delete_requires_name(self):
        with pytest.raises(ParseError, match="delete requires a call name"):
            parse_args(["delete"])


# ── Requests ────────────────────────────────────────────────────────────


class TestParseRequest:
    def test_minimal(self):
        req = parse_args(["get", "https://x/y"])
        assert isinstance(req, ParsedRequest)
        assert req.method == "GET"
        assert req.url == "https://x/y"
        assert req.headers == {}
        assert req.query_params == {}
        assert req.path_params == {}
        assert req.body == ""

    @pytest.mark.parametrize(
        "method",
        ["get", "POST", "Put", "delete", "patch", "head", "options", "trace", "connect"],
    )
    def test_all_methods(self, method):
        assert parse_args([method, "http://x"]).method == method.upper()

    def test_invalid_method(self):
        with pytest.raises(ValidationError, match="invalid HTTP method: FETCH"):
            parse_args(["fetch", "http://x"])

    def test_method_without_url(self):
        with pytest.raises(ParseError, match="method and URL required"):
            parse_args(["get"])

    def test_headers_body_save(self):
        req = parse_args(["post", "url", "-H", "A:B", "-H", "C:D", "-d", '{"k":1}', "--save", "n"])
        assert req.headers == {"A": "B", "C": "D"}
        assert req.body == '{"k":1}'
        assert req.save == "n"

    def test_inline_header_and_body(self):
        req = parse_args(["post", "url", "-HX-Token:abc", '-d{"a":1}'])
        assert req.headers == {"X-Token": "abc"}
        assert req.body == '{"a":1}'

    def test_header_whitespace_trimmed(self):
        req = parse_args(["get", "url", "-H", "Authorization:  Bearer xyz "])
        assert req.headers == {"Authorization": "Bearer xyz"}

    def test_header_equals_fallback(self):
        req = parse_args(["get", "url", "-H", "Accept=text/plain"])
        assert req.headers == {"Accept": "text/plain"}

    def test_header_colon_preferred_over_equals(self):
        req = parse_args(["get", "url", "-H", "X-Q: a=b"])
        assert req.headers == {"X-Q": "a=b"}

    def test_header_last_write_wins(self):
        req = parse_args(["get", "url", "-H", "A:1", "-H", "A:2"])
        assert req.headers == {"A": "2"}

    def test_invalid_header(self):
        with pytest.raises(ParseError, match="invalid header format"):
            parse_args(["get", "url", "-H", "nonsense"])

    @pytest.mark.parametrize("flag", ["-H", "-d", "--save", "--env", "--format", "--auth"])
    def test_flag_missing_value(self, flag):
        with pytest.raises(ParseError, match=f"{flag} requires a value"):
            parse_args(["get", "url", flag])

    def test_bool_flags(self):
        req = parse_args(["get", "url", "--dry", "--info", "--no-interactive"])
        assert req.dry
        assert req.info
        assert req.no_interactive

    def test_value_flags_following(self):
        req = parse_args(["get", "url", "--env", "dev", "--format", "raw", "--auth", "gh"])
        assert (req.env, req.format, req.auth) == ("dev", "raw", "gh")

    def test_value_flags_inline(self):
        req = parse_args(["get", "url", "--env=dev", "--format=json", "--auth=gh", "--save=s"])
        assert (req.env, req.format, req.auth, req.save) == ("dev", "json", "gh", "s")

    def test_query_param(self):
        req = parse_args(["get", "url", "limit==10"])
        assert req.query_params == {"limit": "10"}
        assert req.path_params == {}

    def test_query_param_split_on_first(self):
        req = parse_args(["get", "url", "q==a==b"])
        assert req.query_params == {"q": "a==b"}

    def test_path_param(self):
        req = parse_args(["get", "url", "id=5"])
        assert req.path_params == {"id": "5"}
        assert req.query_params == {}

    def test_path_param_value_with_equals(self):
        req = parse_args(["get", "url", "filter=a=b"])
        assert req.path_params == {"filter": "a=b"}

    def test_unknown_flag(self):
        with pytest.raises(ParseError, match="unexpected argument: --bogus"):
            parse_args(["get", "url", "--bogus"])

    def test_dash_prefixed_assignment_rejected(self):
        with pytest.raises(ParseError, match="unexpected argument"):
            parse_args(["get", "url", "-x=1"])

    def test_bare_word_rejected(self):
        with pytest.raises(ParseError, match="unexpected argument: stray"):
            parse_args(["get", "url", "stray"])


# ── Recall ──────────────────────────────────────────────────────────────


class TestParseRecall:
    def test_name_only(self):
        opts = parse_args(["recall", "get-user"])
        assert opts == RecallOptions(name="get-user")

    def test_requires_name(self):
        with pytest.raises(ParseError, match="recall requires a call name"):
            parse_args(["recall"])

    def test_overrides_headers_env(self):
        opts = parse_args(["recall", "c", "-H", "A:1", "-HB:2", "--env", "prod", "id=42", "--no-interactive"])
        assert opts.headers == {"A": "1", "B": "2"}
        assert opts.env == "prod"
        assert opts.parameter_override == {"id": "42"}
        assert opts.no_interactive

    def test_inline_env(self):
        assert parse_args(["recall", "c", "--env=dev"]).env == "dev"

    def test_unexpected(self):
        with pytest.raises(ParseError, match="unexpected argument"):
            parse_args(["recall", "c", "--dry"])


# ── Auth ────────────────────────────────────────────────────────────────


class TestParseAuth:
    def test_default_list(self):
        assert parse_args(["auth"]) == AuthCommand("list")

    def test_list(self):
        assert parse_args(["auth", "list"]) == AuthCommand("list")

    def test_add_key_value(self):
        cmd = parse_args(["auth", "add", "bearer", "my-api", "token=abc123"])
        assert cmd == AuthCommand("add", type="bearer", name="my-api", flags={"token": "abc123"})

    def test_add_dash_flags(self):
        cmd = parse_args(["auth", "add", "basic", "u1", "--username", "john", "-p", "secret", "--x=y"])
        assert cmd.flags == {"username": "john", "p": "secret", "x": "y"}

    def test_add_requires_type_and_name(self):
        with pytest.raises(ParseError, match="requires type and name"):
            parse_args(["auth", "add", "bearer"])

    def test_add_flag_missing_value(self):
        with pytest.raises(ParseError, match="--token requires a value"):
            parse_args(["auth", "add", "bearer", "n", "--token"])

    def test_add_bare_word(self):
        with pytest.raises(ParseError, match="unexpected argument"):
            parse_args(["auth", "add", "bearer", "n", "abc"])

    @pytest.mark.parametrize("sub", ["remove", "delete"])
    def test_remove_aliases(self, sub):
        assert parse_args(["auth", sub, "gh"]) == AuthCommand("remove", name="gh")

    def test_remove_requires_name(self):
        with pytest.raises(ParseError, match="requires a preset name"):
            parse_args(["auth", "remove"])

    def test_unknown_subcommand(self):
        with pytest.raises(ParseError, match="unknown auth subcommand"):
            parse_args(["auth", "rotate"])


class TestParseHeader:
    def test_colon(self):
        assert parse_header("A: b") == ("A", "b")

    def test_empty_name(self):
        with pytest.raises(ParseError):
            parse_header(":value")
