from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from pymongo.errors import PyMongoError

from docgov.app.errors import DatabaseError, DocumentNotFoundError
from docgov.compliance.checks import highest_severity
from docgov.compliance.engine import MetadataInput, coerce_metadata
from docgov.core.clock import as_utc, utc_now
from docgov.core.hashing import sha256_of_bytes
from docgov.core.ids import new_document_id
from docgov.db.repositories import DocumentRepo, IssueRepo, VersionRepo
from docgov.schemas.compliance_schema import ComplianceIssue
from docgov.schemas.document_schema import (
    DocumentRecord,
    DocumentVersion,
    IssueRecord,
)
from docgov.services.compliance_service import ComplianceService

logger = logging.getLogger(__name__)

LINK_LIFETIME_DAYS = 30
BLOCKED_MESSAGE = "Document blocked due to critical compliance issues"


@dataclass
class IntakeResult:
    success: bool
    document_id: str
    compliance_score: int
    issues: List[ComplianceIssue] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def blocked(self) -> bool:
        return not self.success


@dataclass
class DocumentDetails:
    document: DocumentRecord
    versions: List[DocumentVersion]
    issues: List[IssueRecord]


def default_link_expiry(now: Optional[datetime] = None) -> datetime:
    return (now or utc_now()) + timedelta(days=LINK_LIFETIME_DAYS)


class DocumentGovernanceService:
    """
    Store-side half of the CRM -> drive workflow.

    The HTTP clients that download CRM attachments, upload to the drive and
    create share links live outside this package; they call in here before the
    upload (register_document), after it (mark_synced) and when a link is
    re-issued (refresh_link).
    """

    def __init__(
        self,
        compliance: ComplianceService,
        document_repo: DocumentRepo,
        version_repo: VersionRepo,
        issue_repo: IssueRepo,
    ):
        self.compliance = compliance
        self.document_repo = document_repo
        self.version_repo = version_repo
        self.issue_repo = issue_repo

    def _require_document(self, document_id: str) -> Dict[str, Any]:
        doc = self.document_repo.get_document(document_id)
        if not doc:
            raise DocumentNotFoundError(f"Document not found: {document_id}")
        return doc

    # ---------- Intake ----------
    def register_document(
        self,
        *,
        object_type: str,
        object_id: str,
        filename: str,
        size_bytes: int,
        mime_type: str = "application/octet-stream",
        metadata: MetadataInput = None,
        crm_file_id: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> IntakeResult:
        """
        Compliance runs before anything is uploaded. A critical issue blocks
        the upload: the record is parked in "error" and every issue is stored.
        """
        result = self.compliance.check_document(filename, size_bytes, metadata, now=now)
        meta = coerce_metadata(metadata)
        document_id = new_document_id()

        try:
            self.document_repo.create_document(
                document_id,
                crm_object_type=object_type,
                crm_object_id=object_id,
                crm_file_id=crm_file_id,
                original_filename=filename,
                mime_type=mime_type,
                size=size_bytes,
                metadata=meta.model_dump() if meta is not None else None,
            )

            if not result.passed:
                self.document_repo.update_document(
                    document_id,
                    status="error",
                    compliance_score=result.score,
                )
                self.compliance.create_issues(document_id, result.issues)
                logger.warning(
                    "document blocked by compliance",
                    extra={"ctx": {"document_id": document_id, "score": result.score, "filename": filename}},
                )
                return IntakeResult(
                    success=False,
                    document_id=document_id,
                    compliance_score=result.score,
                    issues=list(result.issues),
                    error=BLOCKED_MESSAGE,
                )

            if result.issues:
                self.compliance.create_issues(document_id, result.issues)
            self.document_repo.update_document(
                document_id,
                status="uploading",
                compliance_score=result.score,
            )
        except PyMongoError as e:
            raise DatabaseError(f"Failed to register document {filename!r}: {e}") from e

        logger.info(
            "document registered",
            extra={"ctx": {
                "document_id": document_id,
                "score": result.score,
                "worst_severity": highest_severity(result.issues),
            }},
        )
        return IntakeResult(
            success=True,
            document_id=document_id,
            compliance_score=result.score,
            issues=list(result.issues),
        )

    def mark_synced(
        self,
        document_id: str,
        *,
        drive_item_id: str,
        web_url: str,
        secure_link: Optional[str],
        link_expiry: Optional[datetime],
        content: bytes,
        changed_by: Optional[str] = None,
        change_notes: Optional[str] = None,
    ) -> str:
        """Record a finished drive upload and append the next version. Returns the version id."""
        try:
            doc = self._require_document(document_id)
            latest = self.version_repo.get_latest_version(document_id)
            version_number = int(latest["version_number"]) + 1 if latest else 1

            version_id = self.version_repo.add_version(
                document_id,
                version_number=version_number,
                filename=doc["original_filename"],
                size=len(content),
                checksum=sha256_of_bytes(content),
                changed_by=changed_by,
                change_notes=change_notes,
            )
            self.document_repo.update_document(
                document_id,
                drive_item_id=drive_item_id,
                drive_web_url=web_url,
                secure_link=secure_link,
                secure_link_expiry=as_utc(link_expiry) if link_expiry else None,
                current_version_id=version_id,
                size=len(content),
                status="synced",
            )
        except PyMongoError as e:
            raise DatabaseError(f"Failed to record drive sync for document {document_id}: {e}") from e
        return version_id

    def refresh_link(self, document_id: str, secure_link: str, link_expiry: datetime) -> Optional[str]:
        """
        Store a re-issued share link. Returns the id of the link_expired issue
        that got resolved, if there was one open.
        """
        try:
            doc = self.document_repo.get_document(document_id)
            if not doc or not doc.get("drive_item_id"):
                raise DocumentNotFoundError(f"Document not found or not synced to the drive: {document_id}")

            self.document_repo.update_document(
                document_id,
                secure_link=secure_link,
                secure_link_expiry=as_utc(link_expiry),
            )
            open_issues = self.issue_repo.find_open_by_document(document_id)
        except PyMongoError as e:
            raise DatabaseError(f"Failed to refresh share link for document {document_id}: {e}") from e

        for issue in open_issues:
            if issue["type"] == "link_expired":
                self.compliance.resolve_issue(issue["_id"])
                return issue["_id"]
        return None

    # ---------- Read side ----------
    def get_object_summary(self, object_type: str, object_id: str, recent_issue_limit: int = 5) -> Dict[str, Any]:
        """Data behind the CRM card for one deal/contact."""
        try:
            documents = self.document_repo.find_by_object(object_type, object_id)
            stats = self.document_repo.get_stats(object_type, object_id)
            doc_ids = [d["_id"] for d in documents]

            recent = self.issue_repo.find_open_by_documents(doc_ids, limit=recent_issue_limit) if doc_ids else []
            issue_count = self.issue_repo.count_open_by_documents(doc_ids) if doc_ids else 0
            version_counts = {d: self.version_repo.get_version_count(d) for d in doc_ids}
        except PyMongoError as e:
            raise DatabaseError(f"Failed to load summary for {object_type} {object_id}: {e}") from e

        filenames = {d["_id"]: d["original_filename"] for d in documents}
        return {
            "object_type": object_type,
            "object_id": object_id,
            "compliance_score": stats["average_compliance_score"],
            "documents": [
                {
                    "id": d["_id"],
                    "filename": d["original_filename"],
                    "status": d["status"],
                    "compliance_score": d.get("compliance_score", 100),
                    "drive_web_url": d.get("drive_web_url"),
                    "last_modified": d.get("updated_at"),
                    "version_count": version_counts[d["_id"]],
                }
                for d in documents
            ],
            "recent_issues": [
                {
                    "id": i["_id"],
                    "document_filename": filenames.get(i["document_id"]),
                    "type": i["type"],
                    "severity": i["severity"],
                    "message": i["message"],
                    "created_at": i.get("created_at"),
                }
                for i in recent
            ],
            "stats": {
                "total_documents": stats["total_documents"],
                "total_size": stats["total_size"],
                "average_compliance_score": stats["average_compliance_score"],
                "issue_count": issue_count,
                "last_activity": stats["last_activity"],
            },
        }

    def get_document_details(self, document_id: str) -> Optional[DocumentDetails]:
        try:
            doc = self.document_repo.get_document(document_id)
            if not doc:
                return None
            versions = self.version_repo.list_versions(document_id)
            issues = self.issue_repo.find_by_document(document_id)
        except PyMongoError as e:
            raise DatabaseError(f"Failed to load document {document_id}: {e}") from e

        return DocumentDetails(
            document=DocumentRecord.model_validate(doc),
            versions=[DocumentVersion.model_validate(v) for v in versions],
            issues=[IssueRecord.model_validate(i) for i in issues],
        )

    def delete_document(self, document_id: str) -> None:
        try:
            self._require_document(document_id)
            self.issue_repo.delete_for_document(document_id)
            self.version_repo.delete_for_document(document_id)
            self.document_repo.delete_document(document_id)
        except PyMongoError as e:
            raise DatabaseError(f"Failed to delete document {document_id}: {e}") from e
        logger.info("document deleted", extra={"ctx": {"document_id": document_id}})
