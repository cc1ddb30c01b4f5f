from __future__ import annotations

from datetime import datetime
from typing import Optional

from docgov.core.clock import whole_days_until
from docgov.schemas.compliance_schema import ComplianceIssue

LINK_WARNING_DAYS = 7
DEFAULT_MAX_VERSIONS = 50


def check_link_expiry(expiry: Optional[datetime], now: Optional[datetime] = None) -> Optional[ComplianceIssue]:
    """
    Secure share links:
    - past expiry -> high
    - expiring within LINK_WARNING_DAYS (inclusive, today counts as 0) -> medium
    """
    if expiry is None:
        return None

    days = whole_days_until(expiry, now)

    if days < 0:
        return ComplianceIssue(
            type="link_expired",
            severity="high",
            message=f"Secure link has expired (expired {abs(days)} days ago)",
            details={
                "expiryDate": expiry.isoformat(),
                "daysExpired": abs(days),
            },
        )

    if days <= LINK_WARNING_DAYS:
        return ComplianceIssue(
            type="link_expired",
            severity="medium",
            message=f"Secure link will expire in {days} days",
            details={
                "expiryDate": expiry.isoformat(),
                "daysUntilExpiry": days,
            },
        )

    return None


def check_version_count(count: int, max_versions: int = DEFAULT_MAX_VERSIONS) -> Optional[ComplianceIssue]:
    if count <= max_versions:
        return None

    return ComplianceIssue(
        type="version_limit_exceeded",
        severity="medium",
        message=f"Document has {count} versions, exceeding the recommended limit of {max_versions}",
        details={"versionCount": count, "maxVersions": max_versions},
    )
