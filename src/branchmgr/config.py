"""Governance configuration: loaded once per run, immutable thereafter."""

from __future__ import annotations

import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Iterable, Mapping, Optional

from branchmgr.errors import InvalidInputError

DEFAULT_PROTECTED_NAMES: frozenset[str] = frozenset(
    {
        "main",
        "master",
        "develop",
        "dev",
        "prod",
        "production",
        "uat",
        "qa",
        "stage",
        "staging",
    }
)

DEFAULT_PROTECTED_PREFIXES: frozenset[str] = frozenset(
    {"release/", "hotfix/", "support/"}
)

DEFAULT_API_URL = "https://api.github.com"
DEFAULT_GIT_URL = "https://github.com"

ENV_PREFIX = "BRANCHMGR_"


@dataclass(frozen=True)
class GovernanceConfig:
    """
    Process-wide governance settings passed explicitly to each component.

    Names, prefixes and approvers are stored lower-cased; comparisons against
    them are case-insensitive. Approver identities are hosting-service logins,
    which the remote treats as case-insensitive, so `Alice` and `alice` are the
    same approver.
    """

    protected_names: frozenset[str] = DEFAULT_PROTECTED_NAMES
    protected_prefixes: frozenset[str] = DEFAULT_PROTECTED_PREFIXES
    approvers: frozenset[str] = field(default_factory=frozenset)

    default_owner: Optional[str] = None
    api_url: str = DEFAULT_API_URL
    git_url: str = DEFAULT_GIT_URL
    mirror_root: Path = Path("mirrors")
    report_dir: Path = Path("reports")
    timeout_sec: float = 30.0

    def __post_init__(self) -> None:
        object.__setattr__(self, "protected_names", _lowered(self.protected_names))
        object.__setattr__(self, "protected_prefixes", _lowered(self.protected_prefixes))
        object.__setattr__(self, "approvers", _lowered(self.approvers))
        object.__setattr__(self, "mirror_root", Path(self.mirror_root))
        object.__setattr__(self, "report_dir", Path(self.report_dir))
        object.__setattr__(self, "api_url", self.api_url.rstrip("/"))
        object.__setattr__(self, "git_url", self.git_url.rstrip("/"))

        if self.timeout_sec <= 0:
            raise InvalidInputError(
                "timeout_sec must be positive",
                details={"timeout_sec": self.timeout_sec},
            )

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "GovernanceConfig":
        """
        Build config from BRANCHMGR_* environment variables.

        Unset variables keep their defaults. List values are comma-separated.
        """
        env = os.environ if environ is None else environ
        kwargs: dict[str, object] = {}

        names = _env_list(env, "PROTECTED_NAMES")
        if names is not None:
            kwargs["protected_names"] = frozenset(names)
        prefixes = _env_list(env, "PROTECTED_PREFIXES")
        if prefixes is not None:
            kwargs["protected_prefixes"] = frozenset(prefixes)
        approvers = _env_list(env, "APPROVERS")
        if approvers is not None:
            kwargs["approvers"] = frozenset(approvers)

        for key, attr in (
            ("OWNER", "default_owner"),
            ("API_URL", "api_url"),
            ("GIT_URL", "git_url"),
            ("MIRROR_ROOT", "mirror_root"),
            ("REPORT_DIR", "report_dir"),
        ):
            value = env.get(ENV_PREFIX + key, "").strip()
            if value:
                kwargs[attr] = value

        timeout = env.get(ENV_PREFIX + "TIMEOUT", "").strip()
        if timeout:
            try:
                kwargs["timeout_sec"] = float(timeout)
            except ValueError as exc:
                raise InvalidInputError(
                    "BRANCHMGR_TIMEOUT must be a number",
                    details={"value": timeout},
                    cause=exc,
                ) from exc

        return cls(**kwargs)  # type: ignore[arg-type]

    def with_overrides(self, **changes: object) -> "GovernanceConfig":
        """Return a copy with the given fields replaced."""
        return replace(self, **changes)  # type: ignore[arg-type]

    def qualify(self, repository: str) -> str:
        """
        Return `owner/repo` for a repository identifier.

        Identifiers that already carry an owner are returned unchanged.
        """
        repo = repository.strip().strip("/")
        if "/" in repo:
            return repo
        if not self.default_owner:
            raise InvalidInputError(
                "Repository has no owner and no default owner is configured",
                details={"repository": repository},
            )
        return f"{self.default_owner}/{repo}"

    def is_approver(self, identity: str) -> bool:
        return bool(identity) and identity.strip().lower() in self.approvers


def _lowered(values: Iterable[str]) -> frozenset[str]:
    return frozenset(v.strip().lower() for v in values if v and v.strip())


def _env_list(env: Mapping[str, str], key: str) -> Optional[list[str]]:
    raw = env.get(ENV_PREFIX + key)
    if raw is None:
        return None
    return [item.strip() for item in raw.split(",") if item.strip()]
