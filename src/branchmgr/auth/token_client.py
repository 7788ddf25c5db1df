"""Token-authenticated transports for the REST API and git."""

from __future__ import annotations

import base64

import httpx

from branchmgr.errors import AuthError

from .auth_info import AuthInfo

GITHUB_ACCEPT = "application/vnd.github+json"
GITHUB_API_VERSION = "2022-11-28"


class TokenClient:
    """Build authenticated REST clients and git transport arguments."""

    def __init__(self, auth_info: AuthInfo) -> None:
        if auth_info.kind != "token":
            raise AuthError("TokenClient requires AuthInfo(kind='token')")
        self._auth_info = auth_info

    def get_token(self) -> str:
        """
        Return the token.

        Raises:
            AuthError: if the token cannot be resolved.
        """
        try:
            return self._auth_info.resolve_token()
        except KeyError as exc:
            raise AuthError(
                "Access token environment variable is not set",
                details={"token_env": self._auth_info.token_env},
                cause=exc,
            ) from exc

    def build_http_client(self, base_url: str, *, timeout: float = 30.0) -> httpx.Client:
        """Build an httpx client for the hosting REST API."""
        token = self.get_token()
        return httpx.Client(
            base_url=base_url,
            timeout=timeout,
            headers={
                "Accept": GITHUB_ACCEPT,
                "Authorization": f"Bearer {token}",
                "X-GitHub-Api-Version": GITHUB_API_VERSION,
            },
        )

    def git_auth_args(self) -> list[str]:
        """
        Return `git -c` arguments that authenticate HTTPS transport.

        The header is passed per invocation so the token is never written to
        the mirror's config file.
        """
        token = self.get_token()
        basic = base64.b64encode(f"x-access-token:{token}".encode("utf-8")).decode("ascii")
        return ["-c", f"http.extraHeader=Authorization: Basic {basic}"]
