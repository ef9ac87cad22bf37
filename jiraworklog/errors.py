"""Exceptions raised by jiraworklog.

Every error the command line reports derives from :class:`JiraWorklogError`.
"""
from __future__ import annotations

from typing import Iterable, Optional


class JiraWorklogError(Exception):
    """Base class for all expected failures."""


# ------------------------------------------------------------------ config --
class ConfigError(JiraWorklogError):
    pass


class ConfigNotFoundError(ConfigError):
    def __init__(self, searched: Iterable[object]) -> None:
        self.searched = [str(path) for path in searched]
        locations = ", ".join(self.searched) or "<none>"
        super().__init__(
            f"No config file found (looked in: {locations}). Run `jwl config` to create one"
        )


class MalformedConfigError(ConfigError):
    pass


class ConfigExistsError(ConfigError):
    def __init__(self, path: object) -> None:
        self.path = str(path)
        super().__init__(f"A config file already exists at {self.path}, refusing to overwrite it")


# ----------------------------------------------------------------- resolve --
class ResolveError(JiraWorklogError):
    pass


class AmbiguousContextError(ResolveError):
    def __init__(self, names: Iterable[str]) -> None:
        self.names = list(names)
        super().__init__(
            "When using multiple contexts, a context name should be passed "
            f"(available: {', '.join(self.names)})"
        )


class ContextNotFoundError(ResolveError):
    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Context `{name}` was not found")


class ContextNameMismatchError(ResolveError):
    def __init__(self, requested: str, actual: Optional[str]) -> None:
        self.requested = requested
        self.actual = actual
        if actual:
            detail = f"the configured context is named `{actual}`"
        else:
            detail = "the configured context has no name"
        super().__init__(f"Context `{requested}` was requested but {detail}")


# ------------------------------------------------------------------- parse --
class ParseError(JiraWorklogError, ValueError):
    pass


class DurationParseError(ParseError):
    pass


class TimestampParseError(ParseError):
    pass


# --------------------------------------------------------------------- api --
class ApiError(JiraWorklogError):
    """A failed call to the Jira REST API.

    ``status`` is ``None`` when no HTTP response was received at all.
    """

    def __init__(self, message: str, status: Optional[int] = None, messages: Iterable[str] = ()) -> None:
        self.status = status
        self.messages = list(messages)
        text = message
        if self.messages:
            text = f"{message}: {'; '.join(self.messages)}"
        if status is not None:
            text = f"{text} (HTTP {status})"
        super().__init__(text)


class ApiTimeoutError(ApiError):
    pass
