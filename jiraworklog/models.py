"""Application domain models."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional, Union
from urllib.parse import urlparse

from .errors import MalformedConfigError
from .utils import format_duration, parse_jira_timestamp


@dataclass(frozen=True)
class BasicApiToken:
    """Basic authentication with a username and an API token."""

    username: str
    api_token: str

    def serialize(self) -> dict:
        return {"username": self.username, "api_token": self.api_token}


@dataclass(frozen=True)
class AccessToken:
    """Bearer authentication with a personal access token."""

    access_token: str

    def serialize(self) -> dict:
        return {"access_token": self.access_token}


Authorization = Union[BasicApiToken, AccessToken]

_BASIC_FIELDS = ("username", "api_token")
_TOKEN_FIELDS = ("access_token",)


def _require_text(payload: dict, key: str, where: str) -> str:
    value = payload.get(key)
    if not isinstance(value, str) or not value.strip():
        raise MalformedConfigError(f"{where}: `{key}` must be a non-empty string")
    return value.strip()


def deserialize_authorization(payload: Any, where: str = "authorization") -> Authorization:
    """Build the authorization variant described by ``payload``.

    Exactly one of the two shapes must be present: ``username`` and
    ``api_token`` together, or ``access_token`` alone.
    """
    if not isinstance(payload, dict):
        raise MalformedConfigError(f"{where} must be a mapping")
    has_basic = any(key in payload for key in _BASIC_FIELDS)
    has_token = any(key in payload for key in _TOKEN_FIELDS)
    if has_basic and has_token:
        raise MalformedConfigError(
            f"{where} is ambiguous: use either username/api_token or access_token, not both"
        )
    if has_basic:
        return BasicApiToken(
            username=_require_text(payload, "username", where),
            api_token=_require_text(payload, "api_token", where),
        )
    if has_token:
        return AccessToken(access_token=_require_text(payload, "access_token", where))
    raise MalformedConfigError(
        f"{where} is missing: provide username/api_token or access_token"
    )


def validate_domain(value: Any, where: str = "jira_domain") -> str:
    if not isinstance(value, str) or not value.strip():
        raise MalformedConfigError(f"{where} must be a non-empty URL")
    parsed = urlparse(value.strip())
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise MalformedConfigError(f"{where} `{value}` is not an absolute http(s) URL")
    return value.strip().rstrip("/")


@dataclass(frozen=True)
class Context:
    """A Jira instance and the credentials used to reach it."""

    jira_domain: str
    authorization: Authorization
    name: Optional[str] = None

    @property
    def label(self) -> str:
        return self.name or self.jira_domain

    def serialize(self) -> dict:
        payload: dict = {}
        if self.name:
            payload["name"] = self.name
        payload["jira_domain"] = self.jira_domain
        payload["authorization"] = self.authorization.serialize()
        return payload

    @classmethod
    def deserialize(cls, payload: Any, where: str = "context") -> "Context":
        if not isinstance(payload, dict):
            raise MalformedConfigError(f"{where} must be a mapping")
        name = payload.get("name")
        if name is not None:
            if not isinstance(name, str) or not name.strip():
                raise MalformedConfigError(f"{where}: `name` must be a non-empty string")
            name = name.strip()
        return cls(
            name=name,
            jira_domain=validate_domain(payload.get("jira_domain"), f"{where}: jira_domain"),
            authorization=deserialize_authorization(
                payload.get("authorization"), f"{where}: authorization"
            ),
        )


@dataclass(frozen=True)
class Config:
    """All configured contexts, always held as a non-empty tuple.

    ``single`` records that the file held one mapping instead of a list.
    """

    contexts: tuple[Context, ...]
    single: bool = False

    def names(self) -> list[str]:
        return [context.name for context in self.contexts if context.name]

    def serialize(self) -> Union[dict, list]:
        if self.single:
            return self.contexts[0].serialize()
        return [context.serialize() for context in self.contexts]

    @classmethod
    def deserialize(cls, payload: Any) -> "Config":
        if isinstance(payload, dict):
            return cls(contexts=(Context.deserialize(payload),), single=True)
        if not isinstance(payload, list):
            raise MalformedConfigError(
                "config must be a context mapping or a list of context mappings"
            )
        if not payload:
            raise MalformedConfigError("config list does not contain any context")
        contexts = tuple(
            Context.deserialize(item, f"context #{index + 1}")
            for index, item in enumerate(payload)
        )
        if len(contexts) > 1:
            seen: set[str] = set()
            for index, context in enumerate(contexts):
                if not context.name:
                    raise MalformedConfigError(
                        f"context #{index + 1}: `name` is required when several contexts are configured"
                    )
                if context.name in seen:
                    raise MalformedConfigError(f"context name `{context.name}` is used more than once")
                seen.add(context.name)
        return cls(contexts=contexts, single=False)


@dataclass(frozen=True)
class WorkLogEntry:
    """A work log about to be created."""

    issue_key: str
    time_spent: int
    started: datetime
    comment: Optional[str] = None


@dataclass(frozen=True)
class WorkLog:
    """A work log as reported by Jira."""

    id: str
    author: str
    time_spent: str
    time_spent_seconds: int
    started: Optional[datetime]
    comment: Optional[str] = None

    @classmethod
    def deserialize(cls, payload: dict) -> "WorkLog":
        author = payload.get("author") or {}
        seconds = int(payload.get("timeSpentSeconds") or 0)
        started = payload.get("started")
        comment = payload.get("comment")
        return cls(
            id=str(payload.get("id", "")),
            author=author.get("displayName") or author.get("name") or "unknown",
            time_spent=payload.get("timeSpent") or format_duration(seconds),
            time_spent_seconds=seconds,
            started=parse_jira_timestamp(started) if started else None,
            comment=comment if isinstance(comment, str) and comment else None,
        )
