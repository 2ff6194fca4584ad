"""reqsh parser - turn a raw argument vector into a command.

``parse_args`` returns exactly one of:

    ParsedRequest   <method> <url> ...
    RecallOptions   recall <name> ...
    AuthCommand     auth [list | add ... | remove <name>]
    SimpleCommand   list | delete <name> | --version | --help

Malformed input raises ParseError before anything touches the network.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Union

from reqsh.errors import ParseError
from reqsh.models import HttpMethod

VALUE_FLAGS = ("--save", "--env", "--format", "--auth")


@dataclass
class ParsedRequest:
    method: str
    url: str
    headers: dict[str, str] = field(default_factory=dict)
    query_params: dict[str, str] = field(default_factory=dict)
    path_params: dict[str, str] = field(default_factory=dict)
    body: str = ""
    save: str = ""
    dry: bool = False
    info: bool = False
    no_interactive: bool = False
    env: str = ""
    format: str = ""
    auth: str = ""


@dataclass
class RecallOptions:
    name: str
    parameter_override: dict[str, str] = field(default_factory=dict)
    headers: dict[str, str] = field(default_factory=dict)
    env: str = ""
    no_interactive: bool = False


@dataclass
class AuthCommand:
    subcommand: str  # "list", "add" or "remove"
    type: str = ""
    name: str = ""
    flags: dict[str, str] = field(default_factory=dict)


@dataclass
class SimpleCommand:
    kind: str  # "version", "help", "list" or "delete"
    name: str = ""


Command = Union[ParsedRequest, RecallOptions, AuthCommand, SimpleCommand]


def parse_args(args: list[str]) -> Command:
    """Dispatch on the first argument (case-insensitive)."""
    if not args:
        raise ParseError("no command provided")

    cmd = args[0].lower()
    if cmd == "recall":
        return _parse_recall(args)
    if cmd == "list":
        _reject_extra(args, 1)
        return SimpleCommand("list")
    if cmd == "delete":
        if len(args) < 2:
            raise ParseError("delete requires a call name")
        _reject_extra(args, 2)
        return SimpleCommand("delete", name=args[1])
    if cmd == "auth":
        return _parse_auth(args)
    if cmd in ("--version", "-v"):
        return SimpleCommand("version")
    if cmd in ("--help", "-h"):
        return SimpleCommand("help")
    return _parse_request(args)


# ── Shared token helpers ────────────────────────────────────────────────


def _reject_extra(args: list[str], expected: int) -> None:
    if len(args) > expected:
        raise ParseError(f"unexpected argument: {args[expected]}")


def _take_value(args: list[str], i: int, flag: str, inline_prefix: str) -> tuple[str, int]:
    """Value of a flag given inline (``-Hx:y``, ``--env=dev``) or as the next arg.

    Returns (value, index of the last consumed token).
    """
    arg = args[i]
    if arg != flag:
        return arg[len(inline_prefix) :], i
    if i + 1 >= len(args):
        raise ParseError(f"{flag} requires a value")
    return args[i + 1], i + 1


def parse_header(raw: str) -> tuple[str, str]:
    """Split 'Key: Value' (or 'Key=Value' when there is no colon)."""
    sep = ":" if ":" in raw else "=" if "=" in raw else None
    if sep is None:
        raise ParseError(f"invalid header format: {raw} (use key:value or key=value)")
    key, value = raw.split(sep, 1)
    key = key.strip()
    if not key:
        raise ParseError(f"invalid header format: {raw} (empty header name)")
    return key, value.strip()


def _long_flag(arg: str) -> str | None:
    """Name of a value-taking long flag, given bare or as ``--flag=value``."""
    for flag in VALUE_FLAGS:
        if arg == flag or arg.startswith(flag + "="):
            return flag
    return None


# ── Sub-parsers ─────────────────────────────────────────────────────────


def _parse_request(args: list[str]) -> ParsedRequest:
    if len(args) < 2:
        raise ParseError("method and URL required")

    method = HttpMethod.parse(args[0]).value
    req = ParsedRequest(method=method, url=args[1])

    i = 2
    while i < len(args):
        arg = args[i]
        flag = _long_flag(arg)

        if flag:
            value, i = _take_value(args, i, flag, flag + "=")
            setattr(req, flag[2:], value)
        elif arg == "--dry":
            req.dry = True
        elif arg == "--info":
            req.info = True
        elif arg == "--no-interactive":
            req.no_interactive = True
        elif arg.startswith("-H"):
            raw, i = _take_value(args, i, "-H", "-H")
            key, value = parse_header(raw)
            req.headers[key] = value
        elif arg.startswith("-d"):
            req.body, i = _take_value(args, i, "-d", "-d")
        elif "==" in arg:
            key, value = arg.split("==", 1)
            req.query_params[key] = value
        elif "=" in arg and not arg.startswith("-"):
            key, value = arg.split("=", 1)
            req.path_params[key] = value
        else:
            raise ParseError(f"unexpected argument: {arg}")
        i += 1

    return req


def _parse_recall(args: list[str]) -> RecallOptions:
    if len(args) < 2:
        raise ParseError("recall requires a call name")

    opts = RecallOptions(name=args[1])

    i = 2
    while i < len(args):
        arg = args[i]

        if arg.startswith("-H"):
            raw, i = _take_value(args, i, "-H", "-H")
            key, value = parse_header(raw)
            opts.headers[key] = value
        elif arg == "--env" or arg.startswith("--env="):
            opts.env, i = _take_value(args, i, "--env", "--env=")
        elif arg == "--no-interactive":
            opts.no_interactive = True
        elif "=" in arg and not arg.startswith("-"):
            key, value = arg.split("=", 1)
            opts.parameter_override[key] = value
        else:
            raise ParseError(f"unexpected argument: {arg}")
        i += 1

    return opts


def _parse_auth(args: list[str]) -> AuthCommand:
    if len(args) < 2:
        return AuthCommand("list")

    sub = args[1].lower()
    if sub == "list":
        _reject_extra(args, 2)
        return AuthCommand("list")

    if sub in ("remove", "delete"):
        if len(args) < 3:
            raise ParseError(f"auth {sub} requires a preset name")
        _reject_extra(args, 3)
        return AuthCommand("remove", name=args[2])

    if sub == "add":
        if len(args) < 4:
            raise ParseError("auth add requires type and name")
        return AuthCommand("add", type=args[2], name=args[3], flags=_parse_auth_flags(args[4:]))

    raise ParseError(f"unknown auth subcommand: {args[1]}")


def _parse_auth_flags(tokens: list[str]) -> dict[str, str]:
    """Collect ``key=value``, ``--key=value`` and ``--key value`` into one map."""
    flags: dict[str, str] = {}
    i = 0
    while i < len(tokens):
        tok = tokens[i]
        if "=" in tok:
            key, value = tok.split("=", 1)
            key = key.lstrip("-")
        elif tok.startswith("-") and tok.lstrip("-"):
            if i + 1 >= len(tokens):
                raise ParseError(f"{tok} requires a value")
            key, value = tok.lstrip("-"), tokens[i + 1]
            i += 1
        else:
            raise ParseError(f"unexpected argument: {tok}")
        if not key:
            raise ParseError(f"invalid auth flag: {tok}")
        flags[key] = value
        i += 1
    return flags
