"""Policy document models for dependency-policy.

The document uses kebab-case keys (``allow-osi-fsf-free``) as found in
``deny.toml``; the Python attributes are the snake_case equivalents and
either spelling is accepted on input.
"""
from __future__ import annotations

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator

from dependency_policy.constants import CRATES_IO_INDEX
from dependency_policy.exceptions import ConfigurationError
from dependency_policy.versions import VersionRange, validate_requirement


def _kebab(name: str) -> str:
    return name.replace("_", "-")


_MODEL_CONFIG: Any = {
    "extra": "forbid",
    "frozen": True,
    "alias_generator": _kebab,
    "populate_by_name": True,
}


class Action(str, Enum):
    """What to do when a rule matches."""

    DENY = "deny"
    WARN = "warn"
    ALLOW = "allow"

    @property
    def rank(self) -> int:
        """Strictness rank: allow < warn < deny."""
        return _ACTION_RANKS[self]


_ACTION_RANKS = {Action.ALLOW: 0, Action.WARN: 1, Action.DENY: 2}


class OsiFsfPolicy(str, Enum):
    """Which OSI/FSF approvals implicitly allow a license."""

    BOTH = "both"
    EITHER = "either"
    OSI_ONLY = "osi-only"
    FSF_ONLY = "fsf-only"
    NEITHER = "neither"


class HighlightStrategy(str, Enum):
    """Which duplicate versions to report."""

    ALL = "all"
    LOWEST_VERSION = "lowest-version"
    SIMPLEST_PATH = "simplest-path"


class Target(BaseModel):
    """A target platform triple."""

    model_config = _MODEL_CONFIG

    triple: str = Field(min_length=1, description="Target triple")


class PackageSpec(BaseModel):
    """A package name with an optional version requirement."""

    model_config = _MODEL_CONFIG

    name: str = Field(min_length=1, description="Package name")
    version: Optional[str] = Field(
        default=None,
        description="Version requirement; absent matches every version",
    )

    @field_validator("version")
    @classmethod
    def _check_version(cls, value: Optional[str]) -> Optional[str]:
        return validate_requirement(value)

    @property
    def version_range(self) -> VersionRange:
        """Parsed version requirement."""
        return VersionRange(self.version)

    def matches(self, name: str, version: str) -> bool:
        """Check if a package name and version fall under this spec."""
        return self.name == name and self.version_range.contains(version)

    def overlaps(self, other: PackageSpec) -> bool:
        """True if both specs name the same package and some version fits both ranges."""
        if self.name != other.name:
            return False
        return self.version_range.overlaps(other.version_range)

    def display(self) -> str:
        """Format as ``name`` or ``name@requirement``."""
        if self.version is None:
            return self.name
        return f"{self.name}@{self.version}"


class BannedPackage(PackageSpec):
    """An entry of the explicit ban list."""

    reason: Optional[str] = Field(default=None, description="Why it is banned")


class AdvisoryPolicy(BaseModel):
    """Actions for matched security advisories."""

    model_config = _MODEL_CONFIG

    vulnerability: Action = Field(default=Action.DENY)
    unmaintained: Action = Field(default=Action.WARN)
    notice: Action = Field(default=Action.WARN)
    ignore: list[str] = Field(
        default_factory=list,
        description="Advisory ids exempted regardless of action",
    )


class PrivatePolicy(BaseModel):
    """Handling of private (unpublished) packages."""

    model_config = _MODEL_CONFIG

    ignore: bool = Field(default=False, description="Skip license checks")


class LicenseException(BaseModel):
    """Additional licenses allowed for a single package."""

    model_config = _MODEL_CONFIG

    name: str = Field(min_length=1)
    version: Optional[str] = Field(default=None)
    allow: list[str] = Field(default_factory=list)

    @field_validator("version")
    @classmethod
    def _check_version(cls, value: Optional[str]) -> Optional[str]:
        return validate_requirement(value)

    def applies_to(self, name: str, version: str) -> bool:
        """Check if this exception covers the given package."""
        return self.name == name and VersionRange(self.version).contains(version)


class LicensePolicy(BaseModel):
    """License acceptance rules."""

    model_config = _MODEL_CONFIG

    unlicensed: Action = Field(default=Action.DENY)
    copyleft: Action = Field(default=Action.WARN)
    allow_osi_fsf_free: OsiFsfPolicy = Field(default=OsiFsfPolicy.NEITHER)
    confidence_threshold: float = Field(default=0.8, ge=0.0, le=1.0)
    default: Action = Field(default=Action.DENY)
    private: PrivatePolicy = Field(default_factory=PrivatePolicy)
    allow: list[str] = Field(default_factory=list)
    deny: list[str] = Field(default_factory=list)
    exceptions: list[LicenseException] = Field(default_factory=list)


class BanPolicy(BaseModel):
    """Duplicate and banned package rules."""

    model_config = _MODEL_CONFIG

    multiple_versions: Action = Field(default=Action.WARN)
    highlight: HighlightStrategy = Field(default=HighlightStrategy.ALL)
    skip: list[PackageSpec] = Field(default_factory=list)
    deny: list[BannedPackage] = Field(default_factory=list)
    allow: list[PackageSpec] = Field(default_factory=list)


class AllowedOrgs(BaseModel):
    """Version-control organizations whose repositories are all allowed."""

    model_config = _MODEL_CONFIG

    github: list[str] = Field(default_factory=list)
    gitlab: list[str] = Field(default_factory=list)
    bitbucket: list[str] = Field(default_factory=list)


class SourcePolicy(BaseModel):
    """Permitted package origins."""

    model_config = _MODEL_CONFIG

    unknown_registry: Action = Field(default=Action.WARN)
    unknown_git: Action = Field(default=Action.WARN)
    allow_registry: list[str] = Field(default_factory=lambda: [CRATES_IO_INDEX])
    allow_git: list[str] = Field(default_factory=list)
    allow_org: AllowedOrgs = Field(default_factory=AllowedOrgs)


class PolicyConfig(BaseModel):
    """The complete policy document.

    Every section is optional; missing sections take their defaults.
    """

    model_config = _MODEL_CONFIG

    targets: list[Target] = Field(default_factory=list)
    advisories: AdvisoryPolicy = Field(default_factory=AdvisoryPolicy)
    licenses: LicensePolicy = Field(default_factory=LicensePolicy)
    bans: BanPolicy = Field(default_factory=BanPolicy)
    sources: SourcePolicy = Field(default_factory=SourcePolicy)

    @field_validator("targets", mode="before")
    @classmethod
    def _accept_bare_triples(cls, value: Any) -> Any:
        if isinstance(value, list):
            return [{"triple": item} if isinstance(item, str) else item for item in value]
        return value

    @property
    def target_triples(self) -> set[str]:
        """Configured target triples (empty means every platform)."""
        return {target.triple for target in self.targets}

    def check_consistency(self) -> None:
        """Reject contradictory rules.

        Raises:
            ConfigurationError: If a license is both allowed and denied, or a
                package is both allowed and banned.
        """
        # Lazy import to avoid circular dependency
        from dependency_policy.analysis.classification import normalize_license_id

        allowed = {normalize_license_id(lic) for lic in self.licenses.allow}
        denied = {normalize_license_id(lic) for lic in self.licenses.deny}
        conflicting = sorted(allowed & denied)
        if conflicting:
            raise ConfigurationError(
                "Licenses are both allowed and denied: " + ", ".join(conflicting)
            )

        for banned in self.bans.deny:
            for permitted in self.bans.allow:
                if banned.overlaps(permitted):
                    raise ConfigurationError(
                        f"Package '{banned.display()}' is both banned and "
                        f"allowed ('{permitted.display()}')"
                    )
