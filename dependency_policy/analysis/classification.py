"""License identifier normalization and classification.

Uses the license-expression library for SPDX normalization (``GPL-3.0`` and
``gpl-3.0`` both become ``GPL-3.0-only``) and static tables for copyleft,
OSI-approved and FSF-free licenses.
"""
from __future__ import annotations

from enum import Enum
from functools import lru_cache

from license_expression import ExpressionError, get_spdx_licensing

# SPDX licensing shared by normalization and expression parsing
spdx_licensing = get_spdx_licensing()


class LicenseCategory(Enum):
    """Categories of licenses by restriction level."""

    PERMISSIVE = "permissive"
    COPYLEFT = "copyleft"
    WEAK_COPYLEFT = "weak_copyleft"
    UNKNOWN = "unknown"


# Strong copyleft licenses
COPYLEFT_LICENSES: frozenset[str] = frozenset(
    {
        "GPL-1.0-only",
        "GPL-1.0-or-later",
        "GPL-2.0-only",
        "GPL-2.0-or-later",
        "GPL-3.0-only",
        "GPL-3.0-or-later",
        "AGPL-1.0-only",
        "AGPL-1.0-or-later",
        "AGPL-3.0-only",
        "AGPL-3.0-or-later",
        "SSPL-1.0",
        "OSL-3.0",
        "EUPL-1.1",
        "EUPL-1.2",
        "CC-BY-SA-4.0",
    }
)

# Weak copyleft licenses, also governed by the copyleft action
WEAK_COPYLEFT_LICENSES: frozenset[str] = frozenset(
    {
        "LGPL-2.0-only",
        "LGPL-2.0-or-later",
        "LGPL-2.1-only",
        "LGPL-2.1-or-later",
        "LGPL-3.0-only",
        "LGPL-3.0-or-later",
        "MPL-1.1",
        "MPL-2.0",
        "EPL-1.0",
        "EPL-2.0",
        "CDDL-1.0",
        "CDDL-1.1",
    }
)

# Permissive licenses (for categorization)
PERMISSIVE_LICENSES: frozenset[str] = frozenset(
    {
        "MIT",
        "MIT-0",
        "Apache-2.0",
        "BSD-2-Clause",
        "BSD-3-Clause",
        "BSL-1.0",
        "ISC",
        "Unlicense",
        "CC0-1.0",
        "0BSD",
        "Zlib",
        "Unicode-DFS-2016",
        "Unicode-3.0",
    }
)

# Licenses approved by the Open Source Initiative
OSI_APPROVED_LICENSES: frozenset[str] = frozenset(
    {
        "0BSD",
        "AGPL-3.0-only",
        "AGPL-3.0-or-later",
        "Apache-2.0",
        "BSD-2-Clause",
        "BSD-3-Clause",
        "BSL-1.0",
        "CDDL-1.0",
        "EPL-1.0",
        "EPL-2.0",
        "EUPL-1.1",
        "EUPL-1.2",
        "GPL-2.0-only",
        "GPL-2.0-or-later",
        "GPL-3.0-only",
        "GPL-3.0-or-later",
        "ISC",
        "LGPL-2.0-only",
        "LGPL-2.0-or-later",
        "LGPL-2.1-only",
        "LGPL-2.1-or-later",
        "LGPL-3.0-only",
        "LGPL-3.0-or-later",
        "MIT",
        "MIT-0",
        "MPL-1.1",
        "MPL-2.0",
        "OSL-3.0",
        "Unicode-DFS-2016",
        "Unicode-3.0",
        "Unlicense",
        "Zlib",
    }
)

# Licenses the Free Software Foundation considers free
FSF_FREE_LICENSES: frozenset[str] = frozenset(
    {
        "AGPL-3.0-only",
        "AGPL-3.0-or-later",
        "Apache-2.0",
        "BSD-3-Clause",
        "BSL-1.0",
        "CC0-1.0",
        "CDDL-1.0",
        "EPL-1.0",
        "EPL-2.0",
        "EUPL-1.1",
        "EUPL-1.2",
        "GPL-2.0-only",
        "GPL-2.0-or-later",
        "GPL-3.0-only",
        "GPL-3.0-or-later",
        "ISC",
        "LGPL-2.1-only",
        "LGPL-2.1-or-later",
        "LGPL-3.0-only",
        "LGPL-3.0-or-later",
        "MIT",
        "MPL-1.1",
        "MPL-2.0",
        "OSL-3.0",
        "Unlicense",
        "Zlib",
    }
)


@lru_cache(maxsize=None)
def normalize_license_id(license_id: str) -> str:
    """Normalize a license identifier using the SPDX licensing table.

    Args:
        license_id: License identifier as written in metadata or policy.

    Returns:
        Canonical SPDX key, or the stripped input if the identifier is not
        a known SPDX license.
    """
    license_id = license_id.strip()
    if not license_id:
        return license_id
    try:
        parsed = spdx_licensing.parse(license_id, validate=True)
    except ExpressionError:
        return license_id
    # Compound expressions are handled by the expression parser
    if parsed is not None and hasattr(parsed, "key"):
        return str(parsed.key)
    return license_id


@lru_cache(maxsize=None)
def is_known_license(license_id: str) -> bool:
    """Check if an identifier is a valid SPDX license."""
    try:
        spdx_licensing.parse(license_id, validate=True)
        return True
    except ExpressionError:
        return False


def is_copyleft(license_id: str) -> bool:
    """Check if a normalized license is strong or weak copyleft."""
    return license_id in COPYLEFT_LICENSES or license_id in WEAK_COPYLEFT_LICENSES


def is_osi_approved(license_id: str) -> bool:
    """Check if a normalized license is OSI approved."""
    return license_id in OSI_APPROVED_LICENSES


def is_fsf_free(license_id: str) -> bool:
    """Check if a normalized license is FSF free."""
    return license_id in FSF_FREE_LICENSES


def get_license_category(license_id: str) -> LicenseCategory:
    """Categorize a normalized license by its restriction level.

    Args:
        license_id: Normalized SPDX license identifier.

    Returns:
        LicenseCategory indicating the type of license.
    """
    if license_id in PERMISSIVE_LICENSES:
        return LicenseCategory.PERMISSIVE
    # Check weak copyleft BEFORE strong copyleft (LGPL contains GPL)
    if license_id in WEAK_COPYLEFT_LICENSES:
        return LicenseCategory.WEAK_COPYLEFT
    if license_id in COPYLEFT_LICENSES:
        return LicenseCategory.COPYLEFT
    return LicenseCategory.UNKNOWN
