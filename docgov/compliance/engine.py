from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional, Union

from pydantic import ValidationError

from docgov.app.errors import InvalidInputError
from docgov.compliance.checks import has_critical
from docgov.compliance.document_rules import (
    check_file_size,
    check_file_type,
    check_metadata,
    check_retention,
)
from docgov.compliance.lifecycle_rules import check_link_expiry, check_version_count
from docgov.compliance.policy import CompliancePolicy
from docgov.core.clock import utc_now
from docgov.schemas.compliance_schema import ComplianceIssue, ComplianceResult
from docgov.schemas.document_schema import DocumentMetadata

MetadataInput = Union[DocumentMetadata, Mapping[str, Any], None]

# Deduction tables are per check (type check: 50/30/15, size: 40/25/10).
SIZE_DEDUCTIONS: Dict[str, int] = {"critical": 40, "high": 25}
SIZE_DEFAULT_DEDUCTION = 10
TYPE_DEDUCTIONS: Dict[str, int] = {"critical": 50, "high": 30}
TYPE_DEFAULT_DEDUCTION = 15
METADATA_DEDUCTIONS: Dict[str, int] = {"high": 10}
METADATA_DEFAULT_DEDUCTION = 5
RETENTION_DEDUCTIONS: Dict[str, int] = {"critical": 30}
RETENTION_DEFAULT_DEDUCTION = 20

MAX_SCORE = 100


def _deduction(issue: ComplianceIssue, table: Dict[str, int], default: int) -> int:
    return table.get(issue.severity, default)


def _require_non_negative_int(value: Any, name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidInputError(f"{name} must be an integer, got {type(value).__name__}")
    if value < 0:
        raise InvalidInputError(f"{name} must be non-negative, got {value}")
    return value


def _require_datetime(value: Any, name: str) -> Optional[datetime]:
    if value is None:
        return None
    if not isinstance(value, datetime):
        raise InvalidInputError(f"{name} must be a datetime, got {type(value).__name__}")
    return value


def coerce_metadata(metadata: MetadataInput) -> Optional[DocumentMetadata]:
    if metadata is None or isinstance(metadata, DocumentMetadata):
        return metadata
    try:
        return DocumentMetadata.model_validate(dict(metadata))
    except (TypeError, ValueError, ValidationError) as e:
        raise InvalidInputError(f"Invalid document metadata: {e}") from e


class ComplianceEngine:
    """
    Deterministic document compliance evaluator.

    Holds nothing but the immutable policy, so one instance can be shared
    across threads. Date-relative checks take `now`; when omitted the current
    UTC time is read once per call.
    """

    def __init__(self, policy: CompliancePolicy):
        self.policy = policy

    def check_document(
        self,
        filename: str,
        size_bytes: int,
        metadata: MetadataInput = None,
        *,
        now: Optional[datetime] = None,
    ) -> ComplianceResult:
        """
        Runs, in order: size, type, metadata, retention.
        score = max(0, 100 - deductions); passed = no critical issue.
        """
        if not isinstance(filename, str) or not filename.strip():
            raise InvalidInputError("filename must be a non-empty string")
        _require_non_negative_int(size_bytes, "size_bytes")
        ref_now = _require_datetime(now, "now") or utc_now()
        meta = coerce_metadata(metadata)

        issues: List[ComplianceIssue] = []
        score = MAX_SCORE

        # 1) Size
        size_issue = check_file_size(size_bytes, self.policy)
        if size_issue:
            issues.append(size_issue)
            score -= _deduction(size_issue, SIZE_DEDUCTIONS, SIZE_DEFAULT_DEDUCTION)

        # 2) Type
        type_issue = check_file_type(filename, self.policy)
        if type_issue:
            issues.append(type_issue)
            score -= _deduction(type_issue, TYPE_DEDUCTIONS, TYPE_DEFAULT_DEDUCTION)

        # 3) Metadata completeness
        for issue in check_metadata(meta):
            issues.append(issue)
            score -= _deduction(issue, METADATA_DEDUCTIONS, METADATA_DEFAULT_DEDUCTION)

        # 4) Retention
        if meta is not None and meta.retention_date is not None:
            retention_issue = check_retention(meta.retention_date, ref_now)
            if retention_issue:
                issues.append(retention_issue)
                score -= _deduction(retention_issue, RETENTION_DEDUCTIONS, RETENTION_DEFAULT_DEDUCTION)

        return ComplianceResult(
            passed=not has_critical(issues),
            issues=issues,
            score=max(0, score),
        )

    def check_link_expiry(
        self,
        expiry: Optional[datetime] = None,
        *,
        now: Optional[datetime] = None,
    ) -> Optional[ComplianceIssue]:
        """Not part of check_document's score; callers append the issue themselves."""
        expiry = _require_datetime(expiry, "expiry")
        ref_now = _require_datetime(now, "now") or utc_now()
        return check_link_expiry(expiry, ref_now)

    def check_version_count(self, count: int, max_versions: Optional[int] = None) -> Optional[ComplianceIssue]:
        _require_non_negative_int(count, "count")
        limit = self.policy.max_versions if max_versions is None else max_versions
        _require_non_negative_int(limit, "max_versions")
        return check_version_count(count, limit)

