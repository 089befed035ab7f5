"""Package origin checks against the source policy."""
from __future__ import annotations

from typing import Optional
from urllib.parse import urlsplit

from dependency_policy.models.finding import Finding, RuleCategory, severity_for
from dependency_policy.models.graph import Package, SourceKind
from dependency_policy.models.policy import Action, SourcePolicy

_KIND_PREFIXES = ("registry+", "sparse+", "git+")

_ORG_HOSTS = {
    "github": "github.com",
    "gitlab": "gitlab.com",
    "bitbucket": "bitbucket.org",
}


def normalize_source_url(url: str) -> str:
    """Normalize a registry or repository URL for comparison.

    Drops any kind prefix, query string, fragment, trailing slash and
    ``.git`` suffix, and lowercases the scheme and host.

    Args:
        url: URL as written in the graph or the policy.

    Returns:
        Comparable URL string.
    """
    url = url.strip()
    for prefix in _KIND_PREFIXES:
        if url.startswith(prefix):
            url = url[len(prefix):]
            break
    parts = urlsplit(url)
    path = parts.path.rstrip("/")
    if path.endswith(".git"):
        path = path[: -len(".git")]
    if not parts.scheme and not parts.netloc:
        return path
    return f"{parts.scheme.lower()}://{parts.netloc.lower()}{path}"


class SourceChecker:
    """Validates where each package comes from."""

    def __init__(self, policy: SourcePolicy) -> None:
        """Initialize the checker.

        Args:
            policy: The ``sources`` section of the policy.
        """
        self._policy = policy
        self._registries = frozenset(normalize_source_url(u) for u in policy.allow_registry)
        self._git = frozenset(normalize_source_url(u) for u in policy.allow_git)
        self._orgs: list[tuple[str, str]] = [
            (_ORG_HOSTS[provider], org.lower())
            for provider in ("github", "gitlab", "bitbucket")
            for org in getattr(policy.allow_org, provider)
        ]

    def check(self, package: Package) -> Optional[Finding]:
        """Check a package's origin.

        Args:
            package: Package to check.

        Returns:
            A Finding if the origin is not allowed and the matching action is
            deny or warn, None otherwise. Local packages always pass.
        """
        kind = package.source_kind
        url = package.source_url
        if kind == SourceKind.LOCAL or url is None:
            return None

        normalized = normalize_source_url(url)
        if kind == SourceKind.REGISTRY:
            if normalized in self._registries:
                return None
            return self._finding(
                package,
                self._policy.unknown_registry,
                "unknown-registry",
                f"Registry '{url}' is not in sources.allow-registry",
                "Add the registry to sources.allow-registry or switch to an allowed registry",
            )

        if normalized in self._git or self._in_allowed_org(normalized):
            return None
        return self._finding(
            package,
            self._policy.unknown_git,
            "unknown-git",
            f"Git source '{url}' is not in sources.allow-git",
            "Add the repository to sources.allow-git or depend on a registry release",
        )

    def _in_allowed_org(self, normalized: str) -> bool:
        parts = urlsplit(normalized)
        segments = [s for s in parts.path.split("/") if s]
        if not segments:
            return False
        owner = segments[0].lower()
        return any(parts.netloc == host and owner == org for host, org in self._orgs)

    @staticmethod
    def _finding(
        package: Package, action: Action, code: str, message: str, hint: str
    ) -> Optional[Finding]:
        severity = severity_for(action)
        if severity is None:
            return None
        return Finding(
            category=RuleCategory.SOURCE,
            severity=severity,
            package=package.ref,
            code=code,
            message=message,
            hint=hint,
        )
