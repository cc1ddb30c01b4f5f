from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from docgov.compliance.policy import CompliancePolicy
from docgov.core.clock import whole_days_until
from docgov.core.utils import bytes_to_mb, file_extension
from docgov.schemas.compliance_schema import ComplianceIssue
from docgov.schemas.document_schema import DocumentMetadata

RETENTION_WARNING_DAYS = 30


def check_file_size(size_bytes: int, policy: CompliancePolicy) -> Optional[ComplianceIssue]:
    max_bytes = policy.max_file_size_bytes
    if size_bytes <= max_bytes:
        return None

    return ComplianceIssue(
        type="file_too_large",
        severity="critical" if size_bytes > max_bytes * 2 else "high",
        message=(
            f"File size ({bytes_to_mb(size_bytes):.2f}MB) exceeds maximum allowed "
            f"({policy.max_file_size_mb:g}MB)"
        ),
        details={"actualSize": size_bytes, "maxSize": max_bytes},
    )


def check_file_type(filename: str, policy: CompliancePolicy) -> Optional[ComplianceIssue]:
    ext = file_extension(filename)

    if ext is None:
        return ComplianceIssue(
            type="disallowed_file_type",
            severity="high",
            message=f"File '{filename}' has no extension; files without a type are not allowed",
            details={"filename": filename},
        )

    if ext not in policy.allowed_file_extensions:
        allowed = policy.sorted_extensions()
        return ComplianceIssue(
            type="disallowed_file_type",
            severity="critical",
            message=f'File type ".{ext}" is not allowed. Allowed types: {", ".join(allowed)}',
            details={"fileType": ext, "allowedTypes": allowed},
        )

    return None


def check_metadata(metadata: Optional[DocumentMetadata]) -> List[ComplianceIssue]:
    issues: List[ComplianceIssue] = []

    if metadata is None:
        issues.append(
            ComplianceIssue(
                type="missing_metadata",
                severity="medium",
                message="Document has no metadata",
            )
        )
        return issues

    if not (metadata.category or "").strip():
        issues.append(
            ComplianceIssue(
                type="missing_metadata",
                severity="low",
                message="Document is missing category",
                details={"missingField": "category"},
            )
        )

    if not (metadata.confidentiality or "").strip():
        issues.append(
            ComplianceIssue(
                type="missing_metadata",
                severity="medium",
                message="Document is missing confidentiality classification",
                details={"missingField": "confidentiality"},
            )
        )

    return issues


def check_retention(retention_date: datetime, now: Optional[datetime] = None) -> Optional[ComplianceIssue]:
    days = whole_days_until(retention_date, now)

    if days < 0:
        return ComplianceIssue(
            type="expired_document",
            severity="critical",
            message=f"Document has expired (expired {abs(days)} days ago)",
            details={
                "retentionDate": retention_date.isoformat(),
                "daysExpired": abs(days),
            },
        )

    if days <= RETENTION_WARNING_DAYS:
        return ComplianceIssue(
            type="retention_policy_violation",
            severity="high",
            message=f"Document will expire in {days} days",
            details={
                "retentionDate": retention_date.isoformat(),
                "daysUntilExpiry": days,
            },
        )

    return None
