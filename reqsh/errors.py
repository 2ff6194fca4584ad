"""reqsh errors.

Every failure surfaced by the library derives from ReqshError. Only the CLI
layer catches these, prints them and exits non-zero.
"""


class ReqshError(Exception):
    """Base class for all reqsh errors."""


class ParseError(ReqshError):
    """Malformed command-line input."""


class ValidationError(ReqshError):
    """Input that parsed but cannot be used (bad method, missing auth field...)."""


class MissingVariablesError(ValidationError):
    """One or more {path} variables have no value."""

    def __init__(self, names: list[str]):
        self.names = list(names)
        super().__init__(f"missing template variables: {', '.join(self.names)}")


class EnvVarNotFoundError(ValidationError):
    """A ${VAR} reference has no value in the environment mapping."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"environment variable not found: {name}")


class TransportError(ReqshError):
    """Network failure while executing a request, including timeouts."""


class StorageError(ReqshError):
    """Failure reading or writing a persisted record."""

    def __init__(self, operation: str, key: str, reason: str):
        self.operation = operation
        self.key = key
        self.reason = reason
        super().__init__(f"{operation} '{key}' failed: {reason}")


class AuthLookupError(ReqshError):
    """A named auth preset does not exist."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"auth preset not found: {name}")
