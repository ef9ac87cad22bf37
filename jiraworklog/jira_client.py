"""A lightweight client for Jira's issue work log REST resource."""
from __future__ import annotations

from datetime import datetime
import logging
from typing import Any, Optional

import requests

from .auth import build_auth, describe
from .errors import ApiError, ApiTimeoutError
from .models import Authorization, Context, WorkLog, WorkLogEntry
from .utils import epoch_millis, make_timestamp

LOGGER = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 20.0
DEFAULT_PAGE_SIZE = 100

STATUS_FALLBACKS = {
    401: "This user is not authorized for this action",
    403: "This user is not authorized for this action",
}


def error_messages(response: requests.Response) -> list[str]:
    """Collect the messages of a Jira error body (``errorMessages`` and ``errors``)."""
    try:
        data = response.json()
    except ValueError:
        return []
    if not isinstance(data, dict):
        return []
    messages = [str(message) for message in data.get("errorMessages") or [] if message]
    errors = data.get("errors") or {}
    if isinstance(errors, dict):
        messages.extend(f"{field}: {message}" for field, message in errors.items() if message)
    return messages


class JiraClient:
    """Small helper around the work log endpoints of Jira's REST API v2."""

    def __init__(
        self,
        base_url: str,
        authorization: Authorization,
        timeout: float = DEFAULT_TIMEOUT,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._session = session or requests.Session()
        self._session.headers.update({"Accept": "application/json"})
        self._session.auth = build_auth(authorization)
        LOGGER.debug("Jira client for %s using %s", self.base_url, describe(authorization))

    @classmethod
    def for_context(cls, context: Context, timeout: float = DEFAULT_TIMEOUT) -> "JiraClient":
        return cls(context.jira_domain, context.authorization, timeout=timeout)

    def close(self) -> None:
        self._session.close()

    def __enter__(self) -> "JiraClient":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    @staticmethod
    def worklog_path(issue_key: str) -> str:
        return f"/rest/api/2/issue/{issue_key}/worklog"

    def _request(self, method: str, path: str, issue_key: str = "", **kwargs) -> Any:
        url = f"{self.base_url}{path}"
        LOGGER.debug("Jira request %s %s", method, url)
        try:
            response = self._session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.Timeout as exc:
            raise ApiTimeoutError(
                f"Request to {url} timed out after {self.timeout:g} seconds"
            ) from exc
        except (requests.exceptions.InvalidURL, requests.exceptions.MissingSchema) as exc:
            raise ApiError(f"A invalid base url was used `{self.base_url}`") from exc
        except requests.RequestException as exc:
            raise ApiError(f"Request to {url} failed: {exc}") from exc

        if response.status_code >= 400:
            LOGGER.debug("Jira API call failed: %s %s", response.status_code, response.text)
            messages = error_messages(response)
            if not messages:
                if response.status_code == 404 and issue_key:
                    messages = [f"The issue `{issue_key}` was not found, or the user was unauthorized"]
                elif response.status_code in STATUS_FALLBACKS:
                    messages = [STATUS_FALLBACKS[response.status_code]]
                elif response.reason:
                    messages = [response.reason]
            raise ApiError(f"{method} {path} failed", status=response.status_code, messages=messages)

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise ApiError(
                f"Failed to deserialize the response of {method} {path}", status=response.status_code
            ) from exc

    def create_work_log(self, entry: WorkLogEntry) -> str:
        payload: dict[str, Any] = {
            "timeSpentSeconds": entry.time_spent,
            "started": make_timestamp(entry.started),
        }
        if entry.comment:
            payload["comment"] = entry.comment
        path = self.worklog_path(entry.issue_key)
        data = self._request("POST", path, issue_key=entry.issue_key, json=payload)
        worklog_id = data.get("id") if isinstance(data, dict) else None
        if not worklog_id:
            raise ApiError(f"POST {path} returned no worklog id")
        LOGGER.info("Created worklog %s on %s", worklog_id, entry.issue_key)
        return str(worklog_id)

    def list_work_logs(
        self,
        issue_key: str,
        started_after: Optional[datetime] = None,
        started_before: Optional[datetime] = None,
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> list[WorkLog]:
        """Return every work log of ``issue_key`` in the order Jira reports them.

        Pages are fetched one after another until ``startAt`` plus the size of
        the current page reaches ``total``.
        """
        path = self.worklog_path(issue_key)
        params: dict[str, Any] = {"maxResults": page_size}
        if started_after is not None:
            params["startedAfter"] = epoch_millis(started_after)
        if started_before is not None:
            params["startedBefore"] = epoch_millis(started_before)

        worklogs: list[WorkLog] = []
        start_at = 0
        while True:
            params["startAt"] = start_at
            data = self._request("GET", path, issue_key=issue_key, params=dict(params)) or {}
            page = data.get("worklogs") or []
            worklogs.extend(WorkLog.deserialize(item) for item in page)
            page_start = int(data.get("startAt", start_at))
            total = int(data.get("total", len(worklogs)))
            if not page or page_start + len(page) >= total:
                break
            start_at = page_start + len(page)
        LOGGER.debug("Fetched %d worklogs for %s", len(worklogs), issue_key)
        return worklogs


def create_work_log(context: Context, entry: WorkLogEntry, timeout: float = DEFAULT_TIMEOUT) -> str:
    with JiraClient.for_context(context, timeout=timeout) as client:
        return client.create_work_log(entry)


def list_work_logs(
    context: Context,
    issue_key: str,
    started_after: Optional[datetime] = None,
    started_before: Optional[datetime] = None,
    timeout: float = DEFAULT_TIMEOUT,
) -> list[WorkLog]:
    with JiraClient.for_context(context, timeout=timeout) as client:
        return client.list_work_logs(issue_key, started_after, started_before)
