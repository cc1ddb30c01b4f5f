"""Tests for the pymongo-backed repositories and connection helpers (collections mocked)."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest
from pymongo.errors import PyMongoError

from docgov.app.errors import DatabaseError
from docgov.db.mongo import connect_mongo, ensure_indexes
from docgov.db.repositories import DocumentRepo, IssueRepo, VersionRepo


class TestDocumentRepo:
    def test_create_document(self):
        coll = MagicMock()
        repo = DocumentRepo(coll)

        doc_id = repo.create_document(
            "doc_1",
            crm_object_type="deal",
            crm_object_id="42",
            original_filename="a.pdf",
            mime_type="application/pdf",
            size=10,
        )

        assert doc_id == "doc_1"
        inserted = coll.insert_one.call_args[0][0]
        assert inserted["_id"] == "doc_1"
        assert inserted["status"] == "pending_upload"
        assert inserted["compliance_score"] == 100
        assert inserted["created_at"] == inserted["updated_at"]

    def test_update_compliance_score(self):
        coll = MagicMock()
        DocumentRepo(coll).update_compliance_score("doc_1", 80)

        query, update = coll.update_one.call_args[0]
        assert query == {"_id": "doc_1"}
        assert update["$set"]["compliance_score"] == 80
        assert "updated_at" in update["$set"]

    def test_find_by_status(self):
        coll = MagicMock()
        coll.find.return_value = iter([{"_id": "a"}])
        assert DocumentRepo(coll).find_by_status("synced") == [{"_id": "a"}]
        coll.find.assert_called_once_with({"status": "synced"})

    def test_stats_without_documents(self):
        coll = MagicMock()
        coll.aggregate.return_value = iter([])
        stats = DocumentRepo(coll).get_stats("deal", "42")
        assert stats == {
            "total_documents": 0,
            "total_size": 0,
            "average_compliance_score": 100,
            "last_activity": None,
        }

    def test_stats_rounds_average(self):
        coll = MagicMock()
        coll.aggregate.return_value = iter([
            {"_id": None, "total_documents": 3, "total_size": 300, "avg_score": 71.6, "last_activity": None}
        ])
        stats = DocumentRepo(coll).get_stats("deal", "42")
        assert stats["average_compliance_score"] == 72
        assert stats["total_documents"] == 3

    def test_delete_document(self):
        coll = MagicMock()
        coll.delete_one.return_value.deleted_count = 1
        assert DocumentRepo(coll).delete_document("doc_1") is True


class TestIssueRepo:
    def test_create_issue_assigns_id_and_status(self):
        coll = MagicMock()
        issue_id = IssueRepo(coll).create_issue(
            "doc_1", type="link_expired", severity="high", message="expired"
        )

        inserted = coll.insert_one.call_args[0][0]
        assert issue_id.startswith("iss_")
        assert inserted["_id"] == issue_id
        assert inserted["status"] == "open"
        assert inserted["created_at"] is not None

    def test_find_open_by_document_filters_status(self):
        coll = MagicMock()
        coll.find.return_value = iter([])
        IssueRepo(coll).find_open_by_document("doc_1")
        coll.find.assert_called_once_with({"document_id": "doc_1", "status": "open"})

    def test_update_status_reports_match(self):
        coll = MagicMock()
        coll.update_one.return_value.matched_count = 0
        assert IssueRepo(coll).update_status("iss_x", "resolved") is False

        coll.update_one.return_value.matched_count = 1
        assert IssueRepo(coll).update_status("iss_x", "acknowledged") is True
        _, update = coll.update_one.call_args[0]
        assert update == {"$set": {"status": "acknowledged"}}


class TestVersionRepo:
    def test_version_count(self):
        coll = MagicMock()
        coll.count_documents.return_value = 7
        assert VersionRepo(coll).get_version_count("doc_1") == 7
        coll.count_documents.assert_called_once_with({"document_id": "doc_1"})

    def test_add_version(self):
        coll = MagicMock()
        version_id = VersionRepo(coll).add_version(
            "doc_1", version_number=2, filename="a.pdf", size=3, checksum="abc"
        )
        inserted = coll.insert_one.call_args[0][0]
        assert version_id.startswith("ver_")
        assert inserted["version_number"] == 2


class TestMongoHelpers:
    def test_connect_mongo_handles(self):
        with patch("docgov.db.mongo.MongoClient") as client_cls:
            handles = connect_mongo("mongodb://localhost", "governance")

        db = client_cls.return_value.__getitem__.return_value
        assert handles["db"] is db
        assert set(handles) == {"db", "documents", "versions", "issues"}

    def test_ensure_indexes(self):
        handles = {"db": MagicMock(), "documents": MagicMock(), "versions": MagicMock(), "issues": MagicMock()}
        ensure_indexes(handles)
        assert handles["versions"].create_index.call_args.kwargs == {"unique": True}

    def test_ensure_indexes_failure(self):
        handles = {"db": MagicMock(), "documents": MagicMock(), "versions": MagicMock(), "issues": MagicMock()}
        handles["documents"].create_index.side_effect = PyMongoError("down")
        with pytest.raises(DatabaseError):
            ensure_indexes(handles)
