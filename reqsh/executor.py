"""reqsh executor - request building and HTTP execution."""

from __future__ import annotations

import logging
import time

import requests
from requests.exceptions import InvalidHeader, InvalidURL, MissingSchema

from reqsh.errors import TransportError, ValidationError
from reqsh.models import DEFAULT_TIMEOUT, Request, Response

logger = logging.getLogger(__name__)


def build_request(req: Request) -> requests.PreparedRequest:
    """Turn a Request into a transport-ready PreparedRequest.

    - query params are appended to any query already in the URL (no dedup)
    - an empty body string means no body at all (``prepared.body is None``)
    - headers are set first, then the auth preset runs and may override them
    """
    params = list(req.query_params.items()) or None
    data = req.body.encode("utf-8") if req.body else None

    try:
        return requests.Request(
            method=str(req.method).upper(),
            url=req.url,
            headers=dict(req.headers),
            params=params,
            data=data,
            auth=req.auth,
        ).prepare()
    except (MissingSchema, InvalidURL) as e:
        raise ValidationError(f"invalid URL '{req.url}': {e}") from e
    except InvalidHeader as e:
        raise ValidationError(f"invalid header: {e}") from e


def _collect_headers(resp: requests.Response) -> dict[str, list[str]]:
    """Response headers with repeated names kept as separate values."""
    raw_headers = getattr(resp.raw, "headers", None)
    if raw_headers is not None and hasattr(raw_headers, "getlist"):
        return {key: list(raw_headers.getlist(key)) for key in raw_headers}
    return {key: [value] for key, value in resp.headers.items()}


class Executor:
    """Executes Requests over a shared requests.Session.

    ``execute`` keeps no per-call state on the executor, so one instance can
    serve several threads at once.
    """

    def __init__(
        self,
        timeout: float = DEFAULT_TIMEOUT,
        session: requests.Session | None = None,
    ):
        self.timeout = timeout
        self.session = session or requests.Session()

    def close(self) -> None:
        self.session.close()

    def execute(self, req: Request) -> Response:
        """Build, send and fully read one request.

        Raises ValidationError if the request cannot be built and
        TransportError on any network failure, timeout included.
        """
        prepared = build_request(req)
        timeout = req.timeout or self.timeout
        settings = self.session.merge_environment_settings(
            prepared.url,
            {},
            None,
            None,
            None,
        )

        logger.debug("%s %s (timeout %ss)", prepared.method, prepared.url, timeout)
        start = time.monotonic()
        try:
            resp = self.session.send(
                prepared,
                timeout=timeout,
                allow_redirects=True,
                **settings,
            )
            body = resp.content
        except requests.exceptions.Timeout as e:
            raise TransportError(f"request timed out after {timeout}s") from e
        except requests.exceptions.ConnectionError as e:
            raise TransportError(f"connection error: {e}") from e
        except requests.exceptions.RequestException as e:
            raise TransportError(f"request failed: {e}") from e
        elapsed_ms = (time.monotonic() - start) * 1000

        logger.debug("%s %s -> %d in %.1fms", prepared.method, prepared.url, resp.status_code, elapsed_ms)
        return Response(
            status_code=resp.status_code,
            status=f"{resp.status_code} {resp.reason or ''}".strip(),
            headers=_collect_headers(resp),
            body=body or b"",
            elapsed_ms=elapsed_ms,
        )
