"""Policy checks for dependency-policy."""
from dependency_policy.analysis.advisories import AdvisoryChecker
from dependency_policy.analysis.bans import BanChecker
from dependency_policy.analysis.classification import (
    LicenseCategory,
    get_license_category,
    normalize_license_id,
)
from dependency_policy.analysis.expression import (
    LicenseExpressionError,
    parse_expression,
)
from dependency_policy.analysis.licenses import LicenseResolver, LicenseVerdict
from dependency_policy.analysis.sources import SourceChecker, normalize_source_url

__all__ = [
    "AdvisoryChecker",
    "BanChecker",
    "LicenseCategory",
    "LicenseExpressionError",
    "LicenseResolver",
    "LicenseVerdict",
    "SourceChecker",
    "get_license_category",
    "normalize_license_id",
    "normalize_source_url",
    "parse_expression",
]
