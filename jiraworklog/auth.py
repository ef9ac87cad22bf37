"""Turn configured credentials into ``requests`` authentication."""
from __future__ import annotations

import requests
from requests.auth import AuthBase, HTTPBasicAuth

from .models import AccessToken, Authorization, BasicApiToken


class BearerAuth(AuthBase):
    """Attach a personal access token as ``Authorization: Bearer``."""

    def __init__(self, access_token: str) -> None:
        self.access_token = access_token

    def __eq__(self, other: object) -> bool:
        return isinstance(other, BearerAuth) and other.access_token == self.access_token

    def __ne__(self, other: object) -> bool:
        return not self == other

    def __call__(self, request: requests.PreparedRequest) -> requests.PreparedRequest:
        request.headers["Authorization"] = f"Bearer {self.access_token}"
        return request


def build_auth(authorization: Authorization) -> AuthBase:
    """Return the session authentication for ``authorization``."""
    if isinstance(authorization, BasicApiToken):
        return HTTPBasicAuth(authorization.username, authorization.api_token)
    if isinstance(authorization, AccessToken):
        return BearerAuth(authorization.access_token)
    raise TypeError(f"Unsupported authorization type: {type(authorization).__name__}")


def build_headers(authorization: Authorization) -> dict[str, str]:
    """Return the ``Authorization`` header ``build_auth`` would send."""
    request = requests.PreparedRequest()
    request.prepare_headers({})
    build_auth(authorization)(request)
    return {"Authorization": request.headers["Authorization"]}


def describe(authorization: Authorization) -> str:
    """Short, secret free description used in log messages."""
    if isinstance(authorization, BasicApiToken):
        return f"api token for {authorization.username}"
    if isinstance(authorization, AccessToken):
        return "access token"
    raise TypeError(f"Unsupported authorization type: {type(authorization).__name__}")
