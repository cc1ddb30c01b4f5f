from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, List, Optional

from pydantic import ValidationError
from pymongo.errors import PyMongoError

from docgov.app.errors import DatabaseError, InvalidInputError, IssueNotFoundError
from docgov.compliance.engine import ComplianceEngine, MetadataInput
from docgov.core.clock import utc_now
from docgov.db.repositories import DocumentRepo, IssueRepo, VersionRepo
from docgov.schemas.compliance_schema import ComplianceIssue, ComplianceResult
from docgov.schemas.document_schema import DocumentRecord

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PeriodicCheckSummary:
    checked: int
    issues_found: int
    skipped: int = 0


class ComplianceService:
    def __init__(
        self,
        engine: ComplianceEngine,
        document_repo: DocumentRepo,
        issue_repo: IssueRepo,
        version_repo: VersionRepo,
    ):
        self.engine = engine
        self.document_repo = document_repo
        self.issue_repo = issue_repo
        self.version_repo = version_repo

    # ---------- Checks ----------
    def check_document(
        self,
        filename: str,
        size_bytes: int,
        metadata: MetadataInput = None,
        *,
        now: Optional[datetime] = None,
    ) -> ComplianceResult:
        return self.engine.check_document(filename, size_bytes, metadata, now=now)

    def check_link_expiry(
        self,
        expiry: Optional[datetime] = None,
        *,
        now: Optional[datetime] = None,
    ) -> Optional[ComplianceIssue]:
        return self.engine.check_link_expiry(expiry, now=now)

    def check_version_count(self, document_id: str, max_versions: Optional[int] = None) -> Optional[ComplianceIssue]:
        try:
            count = self.version_repo.get_version_count(document_id)
        except PyMongoError as e:
            raise DatabaseError(f"Failed to count versions for document {document_id}: {e}") from e
        return self.engine.check_version_count(count, max_versions)

    # ---------- Issues ----------
    def create_issues(self, document_id: str, issues: Iterable[ComplianceIssue]) -> List[str]:
        ids: List[str] = []
        try:
            for issue in issues:
                ids.append(
                    self.issue_repo.create_issue(
                        document_id,
                        type=issue.type,
                        severity=issue.severity,
                        message=issue.message,
                        details=issue.details,
                    )
                )
        except PyMongoError as e:
            raise DatabaseError(f"Failed to store compliance issues for document {document_id}: {e}") from e
        return ids

    def _set_issue_status(self, issue_id: str, status: str, **fields) -> None:
        try:
            found = self.issue_repo.update_status(issue_id, status, **fields)
        except PyMongoError as e:
            raise DatabaseError(f"Failed to update compliance issue {issue_id}: {e}") from e
        if not found:
            raise IssueNotFoundError(f"Compliance issue not found: {issue_id}")

    def resolve_issue(self, issue_id: str, resolved_by: Optional[str] = None) -> None:
        self._set_issue_status(issue_id, "resolved", resolved_at=utc_now(), resolved_by=resolved_by)

    def acknowledge_issue(self, issue_id: str) -> None:
        self._set_issue_status(issue_id, "acknowledged")

    def object_compliance_score(self, object_type: str, object_id: str) -> int:
        try:
            stats = self.document_repo.get_stats(object_type, object_id)
        except PyMongoError as e:
            raise DatabaseError(f"Failed to load document stats for {object_type} {object_id}: {e}") from e
        return int(stats["average_compliance_score"])

    # ---------- Periodic re-evaluation ----------
    def evaluate_synced_document(self, document: DocumentRecord, now: datetime) -> ComplianceResult:
        """
        check_document plus link-expiry and version-count issues.
        The score is check_document's own; the two extra checks only add issues.
        """
        result = self.engine.check_document(
            document.original_filename,
            document.size,
            document.metadata,
            now=now,
        )

        link_issue = self.engine.check_link_expiry(document.secure_link_expiry, now=now)
        if link_issue:
            result.issues.append(link_issue)

        version_issue = self.check_version_count(document.id, self.engine.policy.max_versions)
        if version_issue:
            result.issues.append(version_issue)

        return result

    def run_periodic_check(self, *, now: Optional[datetime] = None) -> PeriodicCheckSummary:
        """
        Re-check every synced document and persist only issue types that are
        not already open for it. Not transactional: a store failure aborts the
        batch, documents handled before the failure keep their updates, and a
        re-run picks up the rest. A stored document that cannot be evaluated is
        logged and skipped.
        """
        ref_now = now or utc_now()
        checked = 0
        skipped = 0
        issues_found = 0

        try:
            rows = self.document_repo.find_by_status("synced")
        except PyMongoError as e:
            raise DatabaseError(f"Failed to load synced documents: {e}") from e

        for row in rows:
            try:
                document = DocumentRecord.model_validate(row)
                result = self.evaluate_synced_document(document, ref_now)
            except (ValidationError, InvalidInputError) as e:
                skipped += 1
                logger.warning(
                    "skipping document that cannot be evaluated",
                    extra={"ctx": {"document_id": row.get("_id"), "error": str(e)}},
                )
                continue

            try:
                open_types = {i["type"] for i in self.issue_repo.find_open_by_document(document.id)}
                new_issues = [i for i in result.issues if i.type not in open_types]
                if new_issues:
                    self.create_issues(document.id, new_issues)
                    issues_found += len(new_issues)

                self.document_repo.update_compliance_score(document.id, result.score)
            except PyMongoError as e:
                raise DatabaseError(f"Failed to update compliance for document {document.id}: {e}") from e

            checked += 1
            logger.debug(
                "compliance re-check",
                extra={"ctx": {"document_id": document.id, "score": result.score, "new_issues": len(new_issues)}},
            )

        logger.info(
            "periodic compliance check finished",
            extra={"ctx": {
                "checked": checked,
                "skipped": skipped,
                "issues_found": issues_found,
                "policy": self.engine.policy.name,
            }},
        )
        return PeriodicCheckSummary(checked=checked, issues_found=issues_found, skipped=skipped)
