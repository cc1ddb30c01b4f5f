"""Shared fixtures: a fixed clock, the default policy, and in-memory stores."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

import pytest
from pymongo.errors import PyMongoError

from docgov.compliance.engine import ComplianceEngine
from docgov.compliance.policy import DEFAULT_POLICY, CompliancePolicy
from docgov.services.compliance_service import ComplianceService
from docgov.services.governance_service import DocumentGovernanceService

NOW = datetime(2026, 3, 1, 12, 0, 0, tzinfo=timezone.utc)
MB = 1024 * 1024


# ---------------------------------------------------------------------------
# In-memory stand-ins for the Mongo repositories (same method names)
# ---------------------------------------------------------------------------


class MemoryDocumentRepo:
    def __init__(self) -> None:
        self.docs: Dict[str, Dict[str, Any]] = {}
        self.score_updates: List[tuple] = []
        self.fail_score_update_for: Optional[str] = None

    def create_document(self, document_id: str, **fields: Any) -> str:
        doc = {
            "_id": document_id,
            "crm_file_id": None,
            "mime_type": "application/octet-stream",
            "drive_item_id": None,
            "drive_web_url": None,
            "secure_link": None,
            "secure_link_expiry": None,
            "current_version_id": None,
            "status": "pending_upload",
            "compliance_score": 100,
            "metadata": None,
            "created_at": NOW,
            "updated_at": NOW,
        }
        doc.update(fields)
        self.docs[document_id] = doc
        return document_id

    def get_document(self, document_id: str) -> Optional[Dict[str, Any]]:
        return self.docs.get(document_id)

    def update_document(self, document_id: str, **fields: Any) -> None:
        if document_id in self.docs:
            self.docs[document_id].update(fields)

    def update_compliance_score(self, document_id: str, score: int) -> None:
        if document_id == self.fail_score_update_for:
            raise PyMongoError("write failed")
        self.score_updates.append((document_id, score))
        self.update_document(document_id, compliance_score=score)

    def find_by_status(self, status: str) -> List[Dict[str, Any]]:
        return [d for d in self.docs.values() if d["status"] == status]

    def find_by_object(self, object_type: str, object_id: str) -> List[Dict[str, Any]]:
        return [
            d for d in self.docs.values()
            if d["crm_object_type"] == object_type and d["crm_object_id"] == object_id
        ]

    def get_stats(self, object_type: str, object_id: str) -> Dict[str, Any]:
        docs = self.find_by_object(object_type, object_id)
        if not docs:
            return {"total_documents": 0, "total_size": 0, "average_compliance_score": 100, "last_activity": None}
        return {
            "total_documents": len(docs),
            "total_size": sum(d["size"] for d in docs),
            "average_compliance_score": int(round(sum(d["compliance_score"] for d in docs) / len(docs))),
            "last_activity": max(d["updated_at"] for d in docs),
        }

    def delete_document(self, document_id: str) -> bool:
        return self.docs.pop(document_id, None) is not None


class MemoryVersionRepo:
    def __init__(self) -> None:
        self.versions: List[Dict[str, Any]] = []
        self.counts: Dict[str, int] = {}

    def add_version(self, document_id: str, **fields: Any) -> str:
        version_id = f"ver_{len(self.versions) + 1}"
        self.versions.append({"_id": version_id, "document_id": document_id, "created_at": NOW, **fields})
        return version_id

    def get_version_count(self, document_id: str) -> int:
        if document_id in self.counts:
            return self.counts[document_id]
        return sum(1 for v in self.versions if v["document_id"] == document_id)

    def get_latest_version(self, document_id: str) -> Optional[Dict[str, Any]]:
        mine = self.list_versions(document_id)
        return mine[-1] if mine else None

    def list_versions(self, document_id: str) -> List[Dict[str, Any]]:
        mine = [v for v in self.versions if v["document_id"] == document_id]
        return sorted(mine, key=lambda v: v["version_number"])

    def delete_for_document(self, document_id: str) -> int:
        before = len(self.versions)
        self.versions = [v for v in self.versions if v["document_id"] != document_id]
        return before - len(self.versions)


class MemoryIssueRepo:
    def __init__(self) -> None:
        self.issues: Dict[str, Dict[str, Any]] = {}
        self._seq = 0

    def create_issue(self, document_id: str, *, type: str, severity: str, message: str, details=None) -> str:
        self._seq += 1
        issue_id = f"iss_{self._seq}"
        self.issues[issue_id] = {
            "_id": issue_id,
            "document_id": document_id,
            "type": type,
            "severity": severity,
            "message": message,
            "details": details,
            "status": "open",
            "resolved_at": None,
            "resolved_by": None,
            "created_at": NOW,
        }
        return issue_id

    def get_issue(self, issue_id: str) -> Optional[Dict[str, Any]]:
        return self.issues.get(issue_id)

    def find_by_document(self, document_id: str) -> List[Dict[str, Any]]:
        return [i for i in self.issues.values() if i["document_id"] == document_id]

    def find_open_by_document(self, document_id: str) -> List[Dict[str, Any]]:
        return [i for i in self.find_by_document(document_id) if i["status"] == "open"]

    def find_open_by_documents(self, document_ids: Iterable[str], limit: int = 5) -> List[Dict[str, Any]]:
        ids = set(document_ids)
        return [i for i in self.issues.values() if i["document_id"] in ids and i["status"] == "open"][:limit]

    def count_open_by_documents(self, document_ids: Iterable[str]) -> int:
        ids = set(document_ids)
        return sum(1 for i in self.issues.values() if i["document_id"] in ids and i["status"] == "open")

    def update_status(self, issue_id: str, status: str, *, resolved_at=None, resolved_by=None) -> bool:
        issue = self.issues.get(issue_id)
        if issue is None:
            return False
        issue["status"] = status
        if resolved_at is not None:
            issue["resolved_at"] = resolved_at
        if resolved_by is not None:
            issue["resolved_by"] = resolved_by
        return True

    def delete_for_document(self, document_id: str) -> int:
        doomed = [k for k, i in self.issues.items() if i["document_id"] == document_id]
        for k in doomed:
            del self.issues[k]
        return len(doomed)

    def open_types(self, document_id: str) -> List[str]:
        return sorted(i["type"] for i in self.find_open_by_document(document_id))


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def policy() -> CompliancePolicy:
    return DEFAULT_POLICY


@pytest.fixture
def engine(policy: CompliancePolicy) -> ComplianceEngine:
    return ComplianceEngine(policy)


@pytest.fixture
def document_repo() -> MemoryDocumentRepo:
    return MemoryDocumentRepo()


@pytest.fixture
def version_repo() -> MemoryVersionRepo:
    return MemoryVersionRepo()


@pytest.fixture
def issue_repo() -> MemoryIssueRepo:
    return MemoryIssueRepo()


@pytest.fixture
def compliance_service(engine, document_repo, issue_repo, version_repo) -> ComplianceService:
    return ComplianceService(engine, document_repo, issue_repo, version_repo)


@pytest.fixture
def governance_service(compliance_service, document_repo, version_repo, issue_repo) -> DocumentGovernanceService:
    return DocumentGovernanceService(compliance_service, document_repo, version_repo, issue_repo)


def add_synced_document(
    repo: MemoryDocumentRepo,
    document_id: str,
    *,
    filename: str = "contract.pdf",
    size: int = MB,
    metadata: Optional[Dict[str, Any]] = None,
    secure_link_expiry: Optional[datetime] = None,
    compliance_score: int = 100,
) -> str:
    return repo.create_document(
        document_id,
        crm_object_type="deal",
        crm_object_id="deal-1",
        original_filename=filename,
        size=size,
        metadata=metadata,
        status="synced",
        drive_item_id=f"drive-{document_id}",
        secure_link=f"https://drive.example/{document_id}",
        secure_link_expiry=secure_link_expiry,
        compliance_score=compliance_score,
    )
