"""reqsh auth - authentication presets and their per-workspace store.

A preset is one of three variants:

    basic:   Authorization: Basic base64(username:password)
    bearer:  Authorization: Bearer <token>
    custom:  <header>: <prefix><value>, plus optional raw "Key: Value" lines

Presets are ``requests`` auth objects, so the transport applies them after
the request's own headers have been set.
"""

from __future__ import annotations

import base64
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import ClassVar

import yaml
from requests.auth import AuthBase

from reqsh.errors import AuthLookupError, StorageError, ValidationError

logger = logging.getLogger(__name__)

AUTH_FILE = Path(".reqsh") / "auth.yaml"


@dataclass
class AuthPreset(AuthBase):
    """Base for all preset variants."""

    type: ClassVar[str] = ""

    name: str

    def __call__(self, r):
        self.apply(r)
        return r

    def validate(self) -> None:
        """Raise ValidationError if a required field is empty."""

    def apply(self, r) -> None:
        """Set auth headers on ``r`` (anything with a ``headers`` mapping)."""
        raise NotImplementedError

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "type": self.type,
            "username": "",
            "password": "",
            "token": "",
            "header": "",
            "prefix": "",
            "value": "",
            "headers": [],
        }


@dataclass
class BasicAuth(AuthPreset):
    type: ClassVar[str] = "basic"

    username: str = ""
    password: str = ""

    def validate(self) -> None:
        if not self.username:
            raise ValidationError("basic auth requires username")

    def apply(self, r) -> None:
        self.validate()
        credentials = base64.b64encode(
            f"{self.username}:{self.password or ''}".encode(),
        ).decode()
        r.headers["Authorization"] = f"Basic {credentials}"

    def to_dict(self) -> dict:
        return {**super().to_dict(), "username": self.username, "password": self.password}


@dataclass
class BearerAuth(AuthPreset):
    type: ClassVar[str] = "bearer"

    token: str = ""

    def validate(self) -> None:
        if not self.token:
            raise ValidationError("bearer auth requires token")

    def apply(self, r) -> None:
        self.validate()
        r.headers["Authorization"] = f"Bearer {self.token}"

    def to_dict(self) -> dict:
        return {**super().to_dict(), "token": self.token}


@dataclass
class CustomAuth(AuthPreset):
    type: ClassVar[str] = "custom"

    header: str = ""
    value: str = ""
    prefix: str = ""
    headers: list[str] = field(default_factory=list)

    def validate(self) -> None:
        if not self.header:
            raise ValidationError("custom auth requires header name")

    def apply(self, r) -> None:
        self.validate()
        r.headers[self.header] = f"{self.prefix or ''}{self.value or ''}"

        # Extra lines are appended, not replaced. Lines without a colon are skipped.
        for line in self.headers:
            if ":" not in line:
                continue
            key, val = line.split(":", 1)
            key, val = key.strip(), val.strip()
            existing = r.headers.get(key)
            r.headers[key] = f"{existing}, {val}" if existing else val

    def to_dict(self) -> dict:
        return {
            **super().to_dict(),
            "header": self.header,
            "prefix": self.prefix,
            "value": self.value,
            "headers": list(self.headers),
        }


PRESET_TYPES: dict[str, type[AuthPreset]] = {
    BasicAuth.type: BasicAuth,
    BearerAuth.type: BearerAuth,
    CustomAuth.type: CustomAuth,
}


def preset_from_dict(data: dict) -> AuthPreset:
    """Build the right preset variant from a persisted record.

    The ``type`` field is matched case-insensitively.
    """
    type_name = str(data.get("type") or "")
    cls = PRESET_TYPES.get(type_name.lower())
    if cls is None:
        raise ValidationError(f"unknown auth type: {type_name}")

    name = str(data.get("name") or "")
    if cls is BasicAuth:
        return BasicAuth(
            name=name,
            username=str(data.get("username") or ""),
            password=str(data.get("password") or ""),
        )
    if cls is BearerAuth:
        return BearerAuth(name=name, token=str(data.get("token") or ""))
    return CustomAuth(
        name=name,
        header=str(data.get("header") or ""),
        value=str(data.get("value") or ""),
        prefix=str(data.get("prefix") or ""),
        headers=[str(h) for h in data.get("headers") or []],
    )


def _flag(flags: dict[str, str], *names: str) -> str:
    for n in names:
        if n in flags:
            return flags[n]
    return ""


def preset_from_flags(type_name: str, name: str, flags: dict[str, str]) -> AuthPreset:
    """Build a preset from ``auth add`` CLI input.

    Long and short flag names are both accepted (``username``/``u``,
    ``token``/``t``, ``header``/``h``, ``value``/``v``...). Custom presets take
    extra raw header lines as a comma-separated ``headers`` flag.
    """
    if not name:
        raise ValidationError("preset name cannot be empty")

    cls = PRESET_TYPES.get(type_name.lower())
    if cls is None:
        raise ValidationError(f"unknown auth type: {type_name}")

    if cls is BasicAuth:
        preset: AuthPreset = BasicAuth(
            name=name,
            username=_flag(flags, "username", "u"),
            password=_flag(flags, "password", "p"),
        )
    elif cls is BearerAuth:
        preset = BearerAuth(name=name, token=_flag(flags, "token", "t"))
    else:
        extra = _flag(flags, "headers")
        preset = CustomAuth(
            name=name,
            header=_flag(flags, "header", "h"),
            value=_flag(flags, "value", "v"),
            prefix=_flag(flags, "prefix"),
            headers=[h.strip() for h in extra.split(",") if h.strip()],
        )
        if preset.header and not preset.value:
            raise ValidationError("custom auth requires value")

    preset.validate()
    return preset


class AuthManager:
    """All presets of one workspace, held in memory.

    Every mutation rewrites the whole file. If the write fails the in-memory
    set keeps the mutation.
    """

    def __init__(self, workspace_root: str | Path):
        self.path = Path(workspace_root) / AUTH_FILE
        self.presets: dict[str, AuthPreset] = {}

    def load(self) -> None:
        """Read presets from disk. A missing file means no presets."""
        if not self.path.exists():
            logger.debug("no auth file at %s", self.path)
            return
        try:
            with open(self.path) as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise StorageError("load auth presets", str(self.path), str(e)) from e

        presets = (data.get("presets") or {}) if isinstance(data, dict) else data
        if not isinstance(presets, dict):
            raise StorageError("load auth presets", str(self.path), "presets is not a mapping")

        loaded: dict[str, AuthPreset] = {}
        for key, record in presets.items():
            if not isinstance(record, dict):
                raise StorageError("load auth preset", str(key), "record is not a mapping")
            record = {**record, "name": str(key)}
            try:
                loaded[str(key)] = preset_from_dict(record)
            except ValidationError as e:
                raise StorageError("load auth preset", str(key), str(e)) from e
        self.presets = loaded
        logger.debug("loaded %d auth presets from %s", len(loaded), self.path)

    def save(self) -> None:
        data = {"presets": {name: p.to_dict() for name, p in self.presets.items()}}
        try:
            self.path.parent.mkdir(mode=0o700, parents=True, exist_ok=True)
            fd = os.open(self.path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
            with os.fdopen(fd, "w") as f:
                yaml.safe_dump(data, f, sort_keys=False)
            os.chmod(self.path, 0o600)
        except OSError as e:
            raise StorageError("save auth presets", str(self.path), str(e)) from e
        logger.debug("wrote %d auth presets to %s", len(self.presets), self.path)

    def get(self, name: str) -> AuthPreset:
        try:
            return self.presets[name]
        except KeyError:
            raise AuthLookupError(name) from None

    def add(self, preset: AuthPreset) -> None:
        """Add or replace a preset, then flush."""
        if not preset.name:
            raise ValidationError("preset name cannot be empty")
        self.presets[preset.name] = preset
        self.save()

    def remove(self, name: str) -> None:
        if name not in self.presets:
            raise AuthLookupError(name)
        del self.presets[name]
        self.save()

    def list(self) -> list[AuthPreset]:
        return [self.presets[n] for n in sorted(self.presets)]
