"""Shared fixtures for reqsh tests."""

import threading
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer

import pytest
from click.testing import CliRunner

from reqsh.models import Response


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture(autouse=True)
def isolate_global_config(tmp_path, monkeypatch):
    """Point the global config lookup at an empty temp directory."""
    xdg = tmp_path / "xdg"
    xdg.mkdir()
    monkeypatch.setenv("XDG_CONFIG_HOME", str(xdg))
    return xdg


@pytest.fixture
def workspace_dir(tmp_path, monkeypatch):
    """A fresh workspace root (marked with .git) used as the CWD."""
    root = tmp_path / "project"
    root.mkdir()
    (root / ".git").mkdir()
    monkeypatch.chdir(root)
    return root


def make_response(
    status_code=200,
    body=b"",
    headers=None,
    elapsed_ms=42.0,
    status=None,
):
    """Factory for Response objects."""
    if isinstance(body, str):
        body = body.encode()
    return Response(
        status_code=status_code,
        status=status or f"{status_code} OK",
        headers=headers or {},
        body=body,
        elapsed_ms=elapsed_ms,
    )


# ── Local HTTP server ───────────────────────────────────────────────────


class _RecordingHandler(BaseHTTPRequestHandler):
    """Records every request and answers with ``server.reply``."""

    def log_message(self, format, *args):
        pass

    def _handle(self):
        length = int(self.headers.get("Content-Length") or 0)
        body = self.rfile.read(length) if length else b""
        self.server.received.append(
            {
                "method": self.command,
                "path": self.path,
                "headers": dict(self.headers),
                "body": body,
            },
        )

        status, headers, payload = self.server.reply
        self.send_response(status)
        for key, value in headers:
            self.send_header(key, value)
        if status not in (204, 304):
            self.send_header("Content-Length", str(len(payload)))
        self.end_headers()
        if payload and self.command != "HEAD":
            self.wfile.write(payload)

    do_GET = do_POST = do_PUT = do_DELETE = do_PATCH = do_HEAD = do_OPTIONS = _handle


@pytest.fixture
def http_server(monkeypatch):
    """A throwaway HTTP server on 127.0.0.1.

    Set ``http_server.reply = (status, [(name, value), ...], payload)`` to
    change the answer; inspect ``http_server.received`` for what arrived.
    """
    for var in ("HTTP_PROXY", "HTTPS_PROXY", "ALL_PROXY", "http_proxy", "https_proxy", "all_proxy"):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setenv("NO_PROXY", "127.0.0.1,localhost")

    server = ThreadingHTTPServer(("127.0.0.1", 0), _RecordingHandler)
    server.received = []
    server.reply = (200, [("Content-Type", "application/json")], b'{"ok": true}')
    server.url = f"http://127.0.0.1:{server.server_address[1]}"

    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    yield server
    server.shutdown()
    server.server_close()
