"""Semantic versions, version requirements and range containment.

Package versions follow SemVer 2.0 (``1.0.0-alpha.1+build.5``); PEP 440
spellings such as ``1.0.0rc1`` are read through ``packaging`` and mapped
onto the same ordering. Build metadata never affects ordering.

Requirements are comma-separated comparators, all of which must hold:

- ``*`` (or no requirement at all) matches every version
- ``<``, ``<=``, ``>``, ``>=``, ``=``/``==``, ``!=`` followed by a version
- ``^1.2.3`` caret ranges (``>=1.2.3, <2.0.0``; ``^0.2.3`` is ``<0.3.0``)
- ``~1.2.3`` tilde ranges (``>=1.2.3, <1.3.0``)
- ``1.2.*`` wildcards
- a bare version means exactly that version

Pre-releases are always considered, except that ``<2.0.0`` does not admit
pre-releases of 2.0.0 itself.
"""
from __future__ import annotations

import re
from functools import lru_cache, total_ordering
from typing import NamedTuple, Optional, Union

from packaging.version import InvalidVersion, Version

WILDCARD = "*"

_OPERATORS = ("==", "!=", ">=", "<=", ">", "<", "=")

_IDENTIFIERS = r"[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*"
_SEMVER_RE = re.compile(
    r"^v?(?P<core>\d+(?:\.\d+){0,2})"
    rf"(?:-(?P<pre>{_IDENTIFIERS}))?"
    rf"(?:\+(?P<build>{_IDENTIFIERS}))?$"
)
_WILDCARD_RE = re.compile(r"^v?(?P<prefix>\d+(?:\.\d+)?)\.\*$")


def _identifier_key(identifier: str) -> tuple[int, int, str]:
    # Numeric identifiers sort numerically and below alphanumeric ones
    if identifier.isdigit():
        return (0, int(identifier), "")
    return (1, 0, identifier)


@total_ordering
class SemanticVersion:
    """A parsed package version ordered by SemVer precedence.

    Attributes:
        core: Numeric components as written (one to three of them).
        pre: Pre-release identifiers, empty for a release.
        build: Build metadata, ignored for ordering and equality.
    """

    __slots__ = ("core", "pre", "build", "_key")

    def __init__(
        self,
        core: tuple[int, ...],
        pre: tuple[str, ...] = (),
        build: Optional[str] = None,
    ) -> None:
        self.core = core
        self.pre = pre
        self.build = build
        pre_key = (0, tuple(_identifier_key(part) for part in pre)) if pre else (1, ())
        self._key = (self.release, pre_key)

    @property
    def release(self) -> tuple[int, int, int]:
        """Major, minor and patch with missing components as zero."""
        padded = self.core + (0,) * (3 - len(self.core))
        return padded[0], padded[1], padded[2]

    @property
    def is_prerelease(self) -> bool:
        return bool(self.pre)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SemanticVersion):
            return NotImplemented
        return self._key == other._key

    def __lt__(self, other: SemanticVersion) -> bool:
        if not isinstance(other, SemanticVersion):
            return NotImplemented
        return self._key < other._key

    def __hash__(self) -> int:
        return hash(self._key)

    def __str__(self) -> str:
        text = ".".join(str(part) for part in self.core)
        if self.pre:
            text += "-" + ".".join(self.pre)
        if self.build:
            text += "+" + self.build
        return text

    def __repr__(self) -> str:
        return f"SemanticVersion({str(self)!r})"


def _from_pep440(version: Version) -> SemanticVersion:
    pre: list[str] = []
    if version.pre is not None:
        pre.extend([version.pre[0], str(version.pre[1])])
    if version.dev is not None:
        pre.extend(["dev", str(version.dev)])
    build_parts = []
    if version.post is not None:
        build_parts.append(f"post{version.post}")
    if version.local is not None:
        build_parts.append(version.local)
    return SemanticVersion(
        core=tuple(version.release[:3]),
        pre=tuple(pre),
        build=".".join(build_parts) or None,
    )


@lru_cache(maxsize=None)
def _parse(text: str) -> SemanticVersion:
    match = _SEMVER_RE.match(text)
    if match is not None:
        return SemanticVersion(
            core=tuple(int(part) for part in match.group("core").split(".")),
            pre=tuple(match.group("pre").split(".")) if match.group("pre") else (),
            build=match.group("build"),
        )
    try:
        return _from_pep440(Version(text))
    except InvalidVersion as e:
        raise ValueError(f"Invalid version '{text}'") from e


def parse_version(text: Union[str, Version, SemanticVersion]) -> SemanticVersion:
    """Parse a package version.

    Args:
        text: Version string such as "1.2.3", "1.0.0-x.7.z.92" or
            "1.0.0rc1", or an already parsed version.

    Returns:
        Parsed SemanticVersion.

    Raises:
        ValueError: If the string is not a valid version.
    """
    if isinstance(text, SemanticVersion):
        return text
    if isinstance(text, Version):
        return _from_pep440(text)
    return _parse(text.strip())


class Bound(NamedTuple):
    """One end of a version interval."""

    version: SemanticVersion
    inclusive: bool


# Lowest pre-release of a version, below every other pre-release
def _floor(release: tuple[int, ...]) -> SemanticVersion:
    return SemanticVersion(core=tuple(release), pre=("0",))


def _caret_upper_bound(version: SemanticVersion) -> tuple[int, ...]:
    core = list(version.core)
    for index, part in enumerate(core):
        if part != 0 or index == len(core) - 1:
            return tuple(core[:index] + [part + 1])
    return (1,)


def _tilde_upper_bound(version: SemanticVersion) -> tuple[int, ...]:
    core = version.core
    if len(core) >= 2:
        return (core[0], core[1] + 1)
    return (core[0] + 1,)


class Comparator(NamedTuple):
    """A single operator applied to a version.

    Wildcard comparators (``1.2.*``) only support ``==`` and ``!=`` and
    match on the release prefix.
    """

    operator: str
    version: SemanticVersion
    prefix: Optional[tuple[int, ...]] = None

    def matches(self, version: SemanticVersion) -> bool:
        if self.prefix is not None:
            inside = version.release[: len(self.prefix)] == self.prefix
            return inside if self.operator == "==" else not inside
        bound = self.version
        if self.operator == "==":
            return version == bound
        if self.operator == "!=":
            return version != bound
        if self.operator == ">":
            return version > bound
        if self.operator == ">=":
            return version >= bound
        if self.operator == "<=":
            return version <= bound
        # "<" keeps pre-releases of a released upper bound out of range
        if version.is_prerelease and not bound.is_prerelease:
            if version.release == bound.release:
                return False
        return version < bound

    def bounds(self) -> tuple[Optional[Bound], Optional[Bound]]:
        """Lower and upper bound of the versions this comparator admits.

        Exclusions (``!=``) are not bounds and yield (None, None).
        """
        if self.operator == "!=":
            return None, None
        if self.prefix is not None:
            upper = self.prefix[:-1] + (self.prefix[-1] + 1,)
            return Bound(_floor(self.prefix), True), Bound(_floor(upper), False)
        if self.operator == "==":
            return Bound(self.version, True), Bound(self.version, True)
        if self.operator in (">", ">="):
            return Bound(self.version, self.operator == ">="), None
        return None, Bound(self.version, self.operator == "<=")


def _translate(comparator: str) -> list[Comparator]:
    """Translate a single requirement term into comparators."""
    if comparator == WILDCARD:
        return []

    if comparator.startswith("^"):
        lower = parse_version(comparator[1:])
        return [
            Comparator(">=", lower),
            Comparator("<", SemanticVersion(_caret_upper_bound(lower))),
        ]

    if comparator.startswith("~"):
        lower = parse_version(comparator[1:])
        return [
            Comparator(">=", lower),
            Comparator("<", SemanticVersion(_tilde_upper_bound(lower))),
        ]

    for operator in _OPERATORS:
        if comparator.startswith(operator):
            version_text = comparator[len(operator):].strip()
            if operator == "=":
                operator = "=="
            break
    else:
        operator = "=="
        version_text = comparator

    if not version_text:
        raise ValueError(f"Missing version in requirement '{comparator}'")

    if "*" in version_text:
        match = _WILDCARD_RE.match(version_text)
        if match is None or operator not in ("==", "!="):
            raise ValueError(f"Invalid wildcard in requirement '{comparator}'")
        prefix = tuple(int(part) for part in match.group("prefix").split("."))
        return [Comparator(operator, SemanticVersion(prefix), prefix)]

    return [Comparator(operator, parse_version(version_text))]


@lru_cache(maxsize=None)
def _build_comparators(requirement: str) -> tuple[Comparator, ...]:
    comparators: list[Comparator] = []
    for term in requirement.split(","):
        term = term.strip()
        if not term:
            raise ValueError(f"Empty comparator in requirement '{requirement}'")
        try:
            comparators.extend(_translate(term))
        except ValueError as e:
            raise ValueError(f"Invalid version requirement '{requirement}': {e}") from e
    return tuple(comparators)


def _tighter_lower(current: Optional[Bound], candidate: Optional[Bound]) -> Optional[Bound]:
    if candidate is None:
        return current
    if current is None or candidate.version > current.version:
        return candidate
    if candidate.version == current.version and not candidate.inclusive:
        return candidate
    return current


def _tighter_upper(current: Optional[Bound], candidate: Optional[Bound]) -> Optional[Bound]:
    if candidate is None:
        return current
    if current is None or candidate.version < current.version:
        return candidate
    if candidate.version == current.version and not candidate.inclusive:
        return candidate
    return current


class VersionRange:
    """A parsed version requirement.

    Instances are immutable and safe to share between threads.
    """

    __slots__ = ("requirement", "_comparators")

    def __init__(self, requirement: str | None = None) -> None:
        """Parse a requirement.

        Args:
            requirement: Requirement text; None or "" means any version.

        Raises:
            ValueError: If the requirement cannot be parsed.
        """
        text = (requirement or "").strip() or WILDCARD
        self.requirement = text
        self._comparators = _build_comparators(text)

    @property
    def is_wildcard(self) -> bool:
        """True if the range places no constraint on the version."""
        return len(self._comparators) == 0

    def contains(self, version: Union[str, Version, SemanticVersion]) -> bool:
        """Check whether a version falls inside this range.

        Args:
            version: Version string or parsed version.

        Returns:
            True if every comparator accepts the version.

        Raises:
            ValueError: If a version string cannot be parsed.
        """
        parsed = parse_version(version)
        return all(comparator.matches(parsed) for comparator in self._comparators)

    def overlaps(self, other: VersionRange) -> bool:
        """Check whether some version could satisfy both ranges.

        The comparators of both ranges are intersected into one interval.
        Exclusions only matter when the interval is a single version.
        """
        lower: Optional[Bound] = None
        upper: Optional[Bound] = None
        comparators = self._comparators + other._comparators
        for comparator in comparators:
            low, high = comparator.bounds()
            lower = _tighter_lower(lower, low)
            upper = _tighter_upper(upper, high)

        if lower is None or upper is None:
            return True
        if lower.version > upper.version:
            return False
        if lower.version == upper.version:
            if not (lower.inclusive and upper.inclusive):
                return False
            return all(comparator.matches(lower.version) for comparator in comparators)
        return True

    def __contains__(self, version: object) -> bool:
        if not isinstance(version, (str, Version, SemanticVersion)):
            return False
        return self.contains(version)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, VersionRange):
            return NotImplemented
        return self.requirement == other.requirement

    def __hash__(self) -> int:
        return hash(self.requirement)

    def __str__(self) -> str:
        return self.requirement

    def __repr__(self) -> str:
        return f"VersionRange({self.requirement!r})"


def validate_requirement(requirement: str | None) -> str | None:
    """Validate requirement text, returning it unchanged.

    Used by model validators so malformed ranges fail at load time.

    Raises:
        ValueError: If the requirement cannot be parsed.
    """
    if requirement is not None:
        VersionRange(requirement)
    return requirement
