"""Hosting REST API controller (internal use only)."""

from __future__ import annotations

import logging
from typing import Any, Optional

import httpx

from branchmgr.auth import AuthInfo, TokenClient
from branchmgr.errors import (
    HttpErrorInfo,
    RemoteUnavailableError,
    map_http_error,
)

from .endpoints import ref_path, refs_path, repo_path

logger = logging.getLogger(__name__)


class RemoteController:
    """
    REST controller for ref queries and ref deletes (internal only).

    Notes:
        - No retries: a transient failure around a destructive call is
          surfaced, never repeated.
        - The underlying httpx client is NOT exposed.
    """

    def __init__(
        self,
        auth_info: AuthInfo,
        *,
        api_url: str,
        timeout: float = 30.0,
    ) -> None:
        client = TokenClient(auth_info)
        self._client = client.build_http_client(api_url, timeout=timeout)

    @classmethod
    def from_client(cls, client: httpx.Client) -> "RemoteController":
        """Create controller from a pre-built httpx client (useful for tests)."""
        obj = cls.__new__(cls)
        obj._client = client
        return obj

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "RemoteController":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    # ----------------------------
    # Public API
    # ----------------------------
    def get_default_branch(self, repository: str) -> str:
        """
        Return the repository's current default branch.

        Raises:
            RemoteUnavailableError: on any non-2xx answer or transport failure.
            AuthError: on HTTP 401.
        """
        response = self._send("GET", repo_path(repository), repository=repository)
        if not response.is_success:
            raise _map_response(response, repository=repository)

        data = _json_body(response, repository=repository)
        default_branch = data.get("default_branch")
        if not isinstance(default_branch, str) or not default_branch:
            raise RemoteUnavailableError(
                "Repository metadata has no default_branch",
                details={"repository": repository},
            )
        return default_branch

    def get_ref(self, repository: str, branch: str) -> Optional[dict[str, Any]]:
        """
        Look up `heads/<branch>`.

        Returns:
            The ref object on 2xx, or None on 404.

        Raises:
            RemoteUnavailableError: on any other answer or transport failure.
            AuthError: on HTTP 401.
        """
        response = self._send(
            "GET",
            ref_path(repository, branch),
            repository=repository,
            branch=branch,
        )
        if response.status_code == 404:
            return None
        if not response.is_success:
            raise _map_response(response, repository=repository, branch=branch)
        return _json_body(response, repository=repository, branch=branch)

    def delete_ref(self, repository: str, branch: str) -> int:
        """
        Delete `heads/<branch>` and return the HTTP status code.

        Status interpretation is left to the caller.

        Raises:
            RemoteUnavailableError: on transport failure (no status available).
        """
        response = self._send(
            "DELETE",
            refs_path(repository, branch),
            repository=repository,
            branch=branch,
        )
        return response.status_code

    # ----------------------------
    # Internals
    # ----------------------------
    def _send(self, method: str, path: str, **context: str) -> httpx.Response:
        logger.debug("%s %s", method, path)
        try:
            response = self._client.request(method, path)
        except httpx.HTTPError as exc:
            raise RemoteUnavailableError(
                f"Remote request failed: {method} {path}",
                details=dict(context),
                cause=exc,
            ) from exc
        logger.debug("%s %s -> %s", method, path, response.status_code)
        return response


def _map_response(response: httpx.Response, **context: str) -> Exception:
    info = _response_to_info(response)
    details = dict(info.details or {})
    details.update(context)
    return map_http_error(
        HttpErrorInfo(
            status_code=info.status_code,
            reason=info.reason,
            message=info.message,
            details=details,
        )
    )


def _json_body(response: httpx.Response, **context: str) -> dict[str, Any]:
    try:
        data = response.json()
    except ValueError as exc:
        raise RemoteUnavailableError(
            "Remote returned a non-JSON body",
            details={"status_code": response.status_code, **context},
            cause=exc,
        ) from exc
    if not isinstance(data, dict):
        raise RemoteUnavailableError(
            "Remote returned an unexpected body",
            details={"status_code": response.status_code, **context},
        )
    return data


def _response_to_info(response: httpx.Response) -> HttpErrorInfo:
    message = None
    details: dict[str, Any] = {}

    try:
        payload = response.json()
    except ValueError:
        payload = None

    if isinstance(payload, dict):
        if isinstance(payload.get("message"), str):
            message = payload["message"]
        if isinstance(payload.get("documentation_url"), str):
            details["documentation_url"] = payload["documentation_url"]

    return HttpErrorInfo(
        status_code=response.status_code,
        reason=response.reason_phrase or None,
        message=message,
        details=details or None,
    )
