"""reqsh storage - saved calls, one YAML file per call."""

from __future__ import annotations

import datetime
import logging
from dataclasses import dataclass, field
from pathlib import Path

import yaml

from reqsh.errors import StorageError

logger = logging.getLogger(__name__)

CALLS_DIR = Path(".reqsh") / "calls"


def _now_rfc3339() -> str:
    return datetime.datetime.now(datetime.timezone.utc).astimezone().isoformat(timespec="seconds")


def _timestamp(value) -> str:
    """Unquoted timestamps in hand-edited files load as datetime objects."""
    if isinstance(value, (datetime.datetime, datetime.date)):
        return value.isoformat()
    return str(value or "")


@dataclass
class SavedCall:
    """A named request description. ``created_at`` is set once, at construction."""

    name: str
    method: str
    url: str
    headers: dict[str, str] = field(default_factory=dict)
    query_params: dict[str, str] = field(default_factory=dict)
    body: str = ""
    description: str = ""
    created_at: str = field(default_factory=_now_rfc3339)

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "method": self.method,
            "url": self.url,
            "headers": dict(self.headers),
            "queryParams": dict(self.query_params),
            "body": self.body,
            "description": self.description,
            "createdAt": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: dict) -> SavedCall:
        return cls(
            name=str(data.get("name") or ""),
            method=str(data.get("method") or "GET"),
            url=str(data.get("url") or ""),
            headers={str(k): str(v) for k, v in (data.get("headers") or {}).items()},
            query_params={str(k): str(v) for k, v in (data.get("queryParams") or {}).items()},
            body=str(data.get("body") or ""),
            description=str(data.get("description") or ""),
            created_at=_timestamp(data.get("createdAt")),
        )


class CallStore:
    """Saved calls under ``<workspace>/.reqsh/calls/<name>.yaml``."""

    def __init__(self, workspace_root: str | Path):
        self.calls_dir = Path(workspace_root) / CALLS_DIR

    def path_for(self, name: str) -> Path:
        if not name or "/" in name or "\\" in name or name in (".", ".."):
            raise StorageError("resolve call", name, "invalid call name")
        return self.calls_dir / f"{name}.yaml"

    def save(self, call: SavedCall) -> Path:
        """Write the call, fully replacing any call with the same name."""
        path = self.path_for(call.name)
        try:
            self.calls_dir.mkdir(parents=True, exist_ok=True)
            with open(path, "w") as f:
                yaml.safe_dump(call.to_dict(), f, sort_keys=False, allow_unicode=True)
        except OSError as e:
            raise StorageError("save call", call.name, str(e)) from e
        logger.debug("saved call %s to %s", call.name, path)
        return path

    def load(self, name: str) -> SavedCall:
        path = self.path_for(name)
        if not path.is_file():
            raise StorageError("load call", name, "call not found")
        try:
            with open(path) as f:
                data = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            raise StorageError("load call", name, str(e)) from e
        if not isinstance(data, dict):
            raise StorageError("load call", name, "record is not a mapping")

        call = SavedCall.from_dict(data)
        if not call.name:
            call.name = name
        return call

    def list(self) -> list[SavedCall]:
        """All readable calls sorted by file name. Unreadable files are skipped."""
        if not self.calls_dir.is_dir():
            return []

        calls: list[SavedCall] = []
        for f in sorted(self.calls_dir.iterdir()):
            if f.suffix != ".yaml" or not f.is_file():
                continue
            try:
                calls.append(self.load(f.stem))
            except StorageError as e:
                logger.warning("skipping saved call %s: %s", f.name, e)
        return calls

    def delete(self, name: str) -> None:
        path = self.path_for(name)
        try:
            path.unlink()
        except FileNotFoundError:
            raise StorageError("delete call", name, "call not found") from None
        except OSError as e:
            raise StorageError("delete call", name, str(e)) from e
        logger.debug("deleted call %s", name)

    def exists(self, name: str) -> bool:
        try:
            return self.path_for(name).is_file()
        except StorageError:
            return False
