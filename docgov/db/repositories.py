from __future__ import annotations
from typing import Any, Dict, Iterable, Optional, List
from datetime import datetime, timezone
from pymongo.collection import Collection

from docgov.core.ids import new_issue_id, new_version_id

def _utcnow() -> datetime:
    return datetime.now(timezone.utc)

class DocumentRepo:
    def __init__(self, documents: Collection):
        self.documents = documents

    def create_document(
        self,
        document_id: str,
        *,
        crm_object_type: str,
        crm_object_id: str,
        original_filename: str,
        mime_type: str,
        size: int,
        crm_file_id: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
        status: str = "pending_upload",
    ) -> str:
        now = _utcnow()
        doc = {
            "_id": document_id,
            "crm_object_type": crm_object_type,
            "crm_object_id": crm_object_id,
            "crm_file_id": crm_file_id,
            "original_filename": original_filename,
            "mime_type": mime_type,
            "size": size,
            "drive_item_id": None,
            "drive_web_url": None,
            "secure_link": None,
            "secure_link_expiry": None,
            "current_version_id": None,
            "status": status,
            "compliance_score": 100,
            "metadata": metadata,
            "created_at": now,
            "updated_at": now,
        }
        self.documents.insert_one(doc)
        return document_id

    def get_document(self, document_id: str) -> Optional[Dict[str, Any]]:
        return self.documents.find_one({"_id": document_id})

    def update_document(self, document_id: str, **fields: Any) -> None:
        update: Dict[str, Any] = {"updated_at": _utcnow()}
        update.update(fields)
        self.documents.update_one({"_id": document_id}, {"$set": update})

    def update_compliance_score(self, document_id: str, score: int) -> None:
        self.update_document(document_id, compliance_score=score)

    def find_by_status(self, status: str) -> List[Dict[str, Any]]:
        return list(self.documents.find({"status": status}))

    def find_by_object(self, object_type: str, object_id: str) -> List[Dict[str, Any]]:
        cur = self.documents.find(
            {"crm_object_type": object_type, "crm_object_id": object_id}
        ).sort("created_at", -1)
        return list(cur)

    def get_stats(self, object_type: str, object_id: str) -> Dict[str, Any]:
        """
        Aggregate figures for one CRM object. Average score defaults to 100
        when the object has no documents yet.
        """
        pipeline = [
            {"$match": {"crm_object_type": object_type, "crm_object_id": object_id}},
            {"$group": {
                "_id": None,
                "total_documents": {"$sum": 1},
                "total_size": {"$sum": "$size"},
                "avg_score": {"$avg": "$compliance_score"},
                "last_activity": {"$max": "$updated_at"},
            }},
        ]
        rows = list(self.documents.aggregate(pipeline))
        if not rows:
            return {
                "total_documents": 0,
                "total_size": 0,
                "average_compliance_score": 100,
                "last_activity": None,
            }
        row = rows[0]
        avg = row.get("avg_score")
        return {
            "total_documents": int(row.get("total_documents", 0)),
            "total_size": int(row.get("total_size", 0) or 0),
            "average_compliance_score": 100 if avg is None else int(round(avg)),
            "last_activity": row.get("last_activity"),
        }

    def delete_document(self, document_id: str) -> bool:
        res = self.documents.delete_one({"_id": document_id})
        return res.deleted_count > 0

class VersionRepo:
    def __init__(self, versions: Collection):
        self.versions = versions

    def add_version(
        self,
        document_id: str,
        *,
        version_number: int,
        filename: str,
        size: int,
        checksum: str,
        changed_by: Optional[str] = None,
        change_notes: Optional[str] = None,
    ) -> str:
        version_id = new_version_id()
        self.versions.insert_one({
            "_id": version_id,
            "document_id": document_id,
            "version_number": version_number,
            "filename": filename,
            "size": size,
            "checksum": checksum,
            "changed_by": changed_by,
            "change_notes": change_notes,
            "created_at": _utcnow(),
        })
        return version_id

    def get_version_count(self, document_id: str) -> int:
        return self.versions.count_documents({"document_id": document_id})

    def get_latest_version(self, document_id: str) -> Optional[Dict[str, Any]]:
        return self.versions.find_one({"document_id": document_id}, sort=[("version_number", -1)])

    def list_versions(self, document_id: str) -> List[Dict[str, Any]]:
        return list(self.versions.find({"document_id": document_id}).sort("version_number", 1))

    def delete_for_document(self, document_id: str) -> int:
        return self.versions.delete_many({"document_id": document_id}).deleted_count

class IssueRepo:
    def __init__(self, issues: Collection):
        self.issues = issues

    def create_issue(
        self,
        document_id: str,
        *,
        type: str,
        severity: str,
        message: str,
        details: Optional[Dict[str, Any]] = None,
    ) -> str:
        issue_id = new_issue_id()
        self.issues.insert_one({
            "_id": issue_id,
            "document_id": document_id,
            "type": type,
            "severity": severity,
            "message": message,
            "details": details,
            "status": "open",
            "resolved_at": None,
            "resolved_by": None,
            "created_at": _utcnow(),
        })
        return issue_id

    def get_issue(self, issue_id: str) -> Optional[Dict[str, Any]]:
        return self.issues.find_one({"_id": issue_id})

    def find_by_document(self, document_id: str) -> List[Dict[str, Any]]:
        return list(self.issues.find({"document_id": document_id}).sort("created_at", -1))

    def find_open_by_document(self, document_id: str) -> List[Dict[str, Any]]:
        return list(self.issues.find({"document_id": document_id, "status": "open"}))

    def find_open_by_documents(self, document_ids: Iterable[str], limit: int = 5) -> List[Dict[str, Any]]:
        cur = self.issues.find(
            {"document_id": {"$in": list(document_ids)}, "status": "open"}
        ).sort("created_at", -1).limit(limit)
        return list(cur)

    def count_open_by_documents(self, document_ids: Iterable[str]) -> int:
        return self.issues.count_documents({"document_id": {"$in": list(document_ids)}, "status": "open"})

    def update_status(
        self,
        issue_id: str,
        status: str,
        *,
        resolved_at: Optional[datetime] = None,
        resolved_by: Optional[str] = None,
    ) -> bool:
        update: Dict[str, Any] = {"status": status}
        if resolved_at is not None:
            update["resolved_at"] = resolved_at
        if resolved_by is not None:
            update["resolved_by"] = resolved_by
        res = self.issues.update_one({"_id": issue_id}, {"$set": update})
        return res.matched_count > 0

    def delete_for_document(self, document_id: str) -> int:
        return self.issues.delete_many({"document_id": document_id}).deleted_count
