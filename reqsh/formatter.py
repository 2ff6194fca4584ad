"""reqsh formatter - render a Response for the terminal."""

from __future__ import annotations

import json

import click

from reqsh.errors import ValidationError
from reqsh.models import Response

FORMATS = ("json", "raw")


def check_format(fmt: str) -> None:
    """Reject unknown --format values before any request is sent."""
    if fmt and fmt not in FORMATS:
        raise ValidationError(f"unknown output format: {fmt} (use {' or '.join(FORMATS)})")


def colorize_status(status: str, status_code: int, is_tty: bool) -> str:
    if not is_tty:
        return status
    if status_code < 300:
        color = "green"
    elif status_code < 400:
        color = "blue"
    elif status_code < 500:
        color = "yellow"
    else:
        color = "red"
    return click.style(status, fg=color)


def pretty_json(text: str) -> str:
    """Re-indent JSON text. Anything that is not JSON comes back unchanged."""
    try:
        obj = json.loads(text)
    except ValueError:
        return text
    return json.dumps(obj, indent=2, ensure_ascii=False)


def format_body(resp: Response, fmt: str = "", pretty: bool = True) -> str:
    text = resp.body.decode("utf-8", errors="replace")
    if fmt == "raw":
        return text
    if fmt == "json":
        return pretty_json(text)
    content_type = resp.header("Content-Type") or ""
    if pretty and "application/json" in content_type.lower():
        return pretty_json(text)
    return text


def format_response(
    resp: Response,
    show_info: bool = False,
    fmt: str = "",
    is_tty: bool = False,
    pretty: bool = True,
) -> str:
    """Status line, then headers/timing/size with ``show_info``, then the body."""
    lines: list[str] = [colorize_status(resp.status, resp.status_code, is_tty)]

    if show_info:
        lines.append("")
        lines.append("Headers:")
        for key, values in resp.headers.items():
            for value in values:
                lines.append(f"  {key}: {value}")
        lines.append("")
        lines.append(f"Timing: {int(resp.elapsed_ms)}ms")
        lines.append(f"Size: {resp.size} bytes")

    if resp.body:
        lines.append("")
        lines.append(format_body(resp, fmt=fmt, pretty=pretty))

    return "\n".join(lines)
