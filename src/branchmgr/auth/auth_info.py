"""Authentication information for branchmgr (token only, v1)."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any


@dataclass(slots=True, frozen=True)
class AuthInfo:
    """
    Authentication information.

    v1 supports personal-access / app installation tokens only:
        kind = "token"
        data must include one of:
            - token: the token value
            - token_env: name of an environment variable holding the token
    """

    kind: str
    data: dict[str, Any]

    def __post_init__(self) -> None:
        if self.kind != "token":
            raise ValueError("AuthInfo.kind must be 'token' in v1")

        if not isinstance(self.data, dict):
            raise TypeError("AuthInfo.data must be a dict")

        token = self.data.get("token")
        token_env = self.data.get("token_env")
        if token is None and token_env is None:
            raise ValueError("AuthInfo.data must include 'token' or 'token_env'")

        for key, value in (("token", token), ("token_env", token_env)):
            if value is not None and (not isinstance(value, str) or not value.strip()):
                raise ValueError(f"AuthInfo.data['{key}'] must be a non-empty string")

    @property
    def token_env(self) -> str | None:
        value = self.data.get("token_env")
        return str(value) if value is not None else None

    def resolve_token(self) -> str:
        """
        Return the token value.

        Raises:
            KeyError: if token_env is used and the variable is unset or empty.
        """
        token = self.data.get("token")
        if token is not None:
            return str(token)
        name = str(self.data["token_env"])
        value = os.environ.get(name, "").strip()
        if not value:
            raise KeyError(name)
        return value

    def __repr__(self) -> str:
        safe = {k: ("***" if k == "token" else v) for k, v in self.data.items()}
        return f"AuthInfo(kind={self.kind!r}, data={safe!r})"
