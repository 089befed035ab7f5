"""Advisory models for dependency-policy.

The advisory index is supplied by an external fetcher; these models only
describe its records and answer "which advisories affect this package".
"""
from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, PrivateAttr, field_validator

from dependency_policy.versions import VersionRange, validate_requirement


class AdvisoryCategory(str, Enum):
    """Kind of issue an advisory describes."""

    VULNERABILITY = "vulnerability"
    UNMAINTAINED = "unmaintained"
    NOTICE = "notice"


class Advisory(BaseModel):
    """A known issue affecting a range of versions of one package."""

    model_config = {"extra": "forbid", "frozen": True}

    id: str = Field(min_length=1, description="Advisory identifier, e.g. RUSTSEC-2020-0001")
    package: str = Field(min_length=1, description="Affected package name")
    category: AdvisoryCategory = Field(default=AdvisoryCategory.VULNERABILITY)
    title: str = Field(default="", description="Short description")
    affected: str = Field(default="*", description="Affected version requirement")
    patched: list[str] = Field(
        default_factory=list,
        description="Requirements of versions that are not affected",
    )
    url: Optional[str] = Field(default=None, description="More information")
    aliases: list[str] = Field(default_factory=list, description="e.g. CVE ids")

    @field_validator("affected")
    @classmethod
    def _check_affected(cls, value: str) -> str:
        validate_requirement(value)
        return value

    @field_validator("patched")
    @classmethod
    def _check_patched(cls, value: list[str]) -> list[str]:
        for requirement in value:
            validate_requirement(requirement)
        return value

    def affects(self, name: str, version: str) -> bool:
        """Check if the advisory applies to a package version.

        A version is affected when it is inside the affected range and not
        inside any patched range.
        """
        if name != self.package:
            return False
        if not VersionRange(self.affected).contains(version):
            return False
        return not any(VersionRange(req).contains(version) for req in self.patched)


class AdvisoryIndex(BaseModel):
    """All advisories known to the external advisory database."""

    model_config = {"extra": "forbid"}

    advisories: list[Advisory] = Field(default_factory=list)

    _by_package: dict[str, list[Advisory]] = PrivateAttr(default_factory=dict)

    def model_post_init(self, __context: object) -> None:
        """Index advisories by package name."""
        for advisory in self.advisories:
            self._by_package.setdefault(advisory.package, []).append(advisory)

    def for_package(self, name: str) -> list[Advisory]:
        """Get every advisory recorded for a package name."""
        return list(self._by_package.get(name, []))

    def matching(self, name: str, version: str) -> list[Advisory]:
        """Get the advisories affecting a specific package version, in index order."""
        return [adv for adv in self.for_package(name) if adv.affects(name, version)]
