"""reqsh config - workspace discovery, workspace/global config, env files."""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path

import yaml
from dotenv import dotenv_values

from reqsh.errors import StorageError, ValidationError
from reqsh.models import DEFAULT_TIMEOUT

logger = logging.getLogger(__name__)

WORKSPACE_CONFIG = ".reqsh.yaml"
WORKSPACE_ENV = ".env"
WORKSPACE_MARKERS = (WORKSPACE_CONFIG, ".git")


@dataclass(frozen=True)
class WorkspaceConfig:
    name: str = ""
    base_url: str = ""
    default_headers: dict[str, str] = field(default_factory=dict)
    environments: dict[str, dict[str, str]] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict) -> WorkspaceConfig:
        envs = data.get("environments") or {}
        return cls(
            name=str(data.get("name") or ""),
            base_url=str(data.get("baseUrl") or ""),
            default_headers={str(k): str(v) for k, v in (data.get("defaultHeaders") or {}).items()},
            environments={
                str(env_name): {str(k): str(v) for k, v in (block or {}).items()}
                for env_name, block in envs.items()
            },
        )


@dataclass(frozen=True)
class GlobalConfig:
    default_environment: str = ""
    pretty_print: bool = True
    timeout: str = ""
    user_agent: str = ""

    @classmethod
    def from_dict(cls, data: dict) -> GlobalConfig:
        pretty = data.get("prettyPrint")
        return cls(
            default_environment=str(data.get("defaultEnvironment") or ""),
            pretty_print=True if pretty is None else bool(pretty),
            timeout=str(data.get("timeout") or ""),
            user_agent=str(data.get("userAgent") or ""),
        )

    def timeout_seconds(self) -> float:
        """Configured timeout, or the default when unset or unparseable."""
        if not self.timeout:
            return DEFAULT_TIMEOUT
        try:
            return parse_duration(self.timeout)
        except ValueError:
            logger.warning("invalid timeout %r in global config, using %ss", self.timeout, DEFAULT_TIMEOUT)
            return DEFAULT_TIMEOUT


@dataclass(frozen=True)
class Workspace:
    """The directory scope of one invocation. Built once, never mutated."""

    root: Path
    config: WorkspaceConfig | None = None
    env: dict[str, str] = field(default_factory=dict)

    def environment(self, name: str = "", required: bool = True) -> dict[str, str]:
        """Template env vars: the .env file overlaid with a named environment block.

        An unknown ``name`` raises ValidationError when ``required``, else it
        is ignored.
        """
        env = dict(self.env)
        if not name:
            return env
        envs = self.config.environments if self.config else {}
        if name not in envs:
            if required:
                raise ValidationError(f"unknown environment: {name}")
            logger.debug("default environment %s not defined in workspace", name)
            return env
        env.update(envs[name])
        return env


# ── Durations ───────────────────────────────────────────────────────────

_DURATION_UNITS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}
_DURATION_PART_RE = re.compile(r"(\d+(?:\.\d+)?)(ns|us|µs|ms|s|m|h)")


def parse_duration(value: str) -> float:
    """Parse '30s', '500ms', '1m30s', '2h' (or a bare number of seconds).

    Returns seconds. Raises ValueError for anything else.
    """
    text = value.strip()
    if not text:
        raise ValueError("empty duration")
    try:
        return float(text)
    except ValueError:
        pass

    total = 0.0
    pos = 0
    for m in _DURATION_PART_RE.finditer(text):
        if m.start() != pos:
            break
        total += float(m.group(1)) * _DURATION_UNITS[m.group(2)]
        pos = m.end()
    if pos != len(text):
        raise ValueError(f"invalid duration: {value}")
    return total


# ── Loading ─────────────────────────────────────────────────────────────


def global_config_path() -> Path:
    """$XDG_CONFIG_HOME/reqsh/config.yaml, falling back to ~/.config."""
    config_home = os.environ.get("XDG_CONFIG_HOME")
    base = Path(config_home) if config_home else Path.home() / ".config"
    return base / "reqsh" / "config.yaml"


def _read_yaml(path: Path, what: str) -> dict:
    try:
        with open(path) as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise StorageError(f"load {what}", str(path), str(e)) from e
    if not isinstance(data, dict):
        raise StorageError(f"load {what}", str(path), "top level is not a mapping")
    return data


def load_global_config(path: Path | None = None) -> GlobalConfig:
    """Load the global config. A missing file gives the defaults."""
    path = path or global_config_path()
    if not path.exists():
        return GlobalConfig()
    return GlobalConfig.from_dict(_read_yaml(path, "global config"))


def load_workspace_config(path: str | Path) -> WorkspaceConfig:
    return WorkspaceConfig.from_dict(_read_yaml(Path(path), "workspace config"))


def load_env_file(path: str | Path) -> dict[str, str]:
    """Read KEY=VALUE lines. Blank lines and # comments are ignored."""
    values = dotenv_values(str(path))
    return {k: v for k, v in values.items() if v is not None}


def find_workspace_root(start: Path) -> Path:
    """Nearest ancestor of ``start`` (inclusive) holding .reqsh.yaml or .git.

    Falls back to ``start`` itself.
    """
    start = start.resolve()
    for candidate in (start, *start.parents):
        for marker in WORKSPACE_MARKERS:
            if (candidate / marker).exists():
                return candidate
    return start


def detect_workspace(start: str | Path | None = None) -> Workspace:
    root = find_workspace_root(Path(start) if start else Path.cwd())
    logger.debug("workspace root: %s", root)

    config = None
    config_path = root / WORKSPACE_CONFIG
    if config_path.is_file():
        config = load_workspace_config(config_path)

    env: dict[str, str] = {}
    env_path = root / WORKSPACE_ENV
    if env_path.is_file():
        env = load_env_file(env_path)

    return Workspace(root=root, config=config, env=env)
