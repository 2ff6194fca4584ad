"""reqsh template - {path} and ${ENV} placeholder resolution.

Two placeholder kinds share one scanner:

    ${NAME}   environment variable (workspace .env / config environments)
    {name}    path variable (CLI key=value tokens or interactive prompt)

A ``${...}`` span is always an env reference and is never also read as a
path variable. Substituted values are inserted verbatim and are not scanned
again, so a value containing braces cannot introduce new placeholders.
"""

from __future__ import annotations

import re

from reqsh.errors import EnvVarNotFoundError, MissingVariablesError

# group 1 -> ${ENV}, group 2 -> {path}
_PLACEHOLDER_RE = re.compile(r"\$\{([^}]+)\}|\{([^}]+)\}")


def _unique(names: list[str]) -> list[str]:
    seen: set[str] = set()
    out: list[str] = []
    for name in names:
        if name not in seen:
            seen.add(name)
            out.append(name)
    return out


def extract_env_vars(text: str) -> list[str]:
    """Return distinct ${NAME} references in first-occurrence order."""
    return _unique([m.group(1) for m in _PLACEHOLDER_RE.finditer(text) if m.group(1)])


def extract_path_vars(text: str) -> list[str]:
    """Return distinct {name} references in first-occurrence order.

    Anything inside a ``${...}`` span is skipped.
    """
    return _unique([m.group(2) for m in _PLACEHOLDER_RE.finditer(text) if m.group(2)])


def substitute_env_vars(text: str, env: dict[str, str]) -> str:
    """Replace known ${NAME} references, leaving unknown ones untouched.

    Used for headers and bodies, where a literal ``${...}`` may be payload.
    """
    if not text:
        return text

    def _replace(m: re.Match) -> str:
        name = m.group(1)
        if name is None:
            return m.group(0)
        return env.get(name, m.group(0))

    return _PLACEHOLDER_RE.sub(_replace, text)


class Template:
    """A string with ${ENV} and {path} placeholders.

    The variable mappings can be assigned after construction::

        tmpl = Template("${API}/users/{id}")
        tmpl.env_vars = {"API": "https://api.example.com"}
        tmpl.path_vars = {"id": "42"}
        tmpl.resolve()  # "https://api.example.com/users/42"
    """

    def __init__(
        self,
        text: str,
        path_vars: dict[str, str] | None = None,
        env_vars: dict[str, str] | None = None,
    ):
        self.text = text
        self.path_vars: dict[str, str] = dict(path_vars or {})
        self.env_vars: dict[str, str] = dict(env_vars or {})

    def __repr__(self) -> str:
        return f"Template({self.text!r})"

    def extract_path_vars(self) -> list[str]:
        return extract_path_vars(self.text)

    def extract_env_vars(self) -> list[str]:
        return extract_env_vars(self.text)

    def missing_path_vars(self) -> list[str]:
        return [n for n in self.extract_path_vars() if n not in self.path_vars]

    def resolve(self) -> str:
        """Substitute every placeholder and return the result.

        Env vars are checked first and fail on the first missing name
        (EnvVarNotFoundError). Path vars are checked as a batch and the
        error lists every missing name (MissingVariablesError).
        """
        for name in self.extract_env_vars():
            if name not in self.env_vars:
                raise EnvVarNotFoundError(name)

        missing = self.missing_path_vars()
        if missing:
            raise MissingVariablesError(missing)

        def _replace(m: re.Match) -> str:
            if m.group(1) is not None:
                return self.env_vars[m.group(1)]
            return self.path_vars[m.group(2)]

        return _PLACEHOLDER_RE.sub(_replace, self.text)
