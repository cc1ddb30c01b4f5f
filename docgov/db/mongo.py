from __future__ import annotations
from pymongo import MongoClient
from pymongo.database import Database
from pymongo.collection import Collection
from pymongo.errors import PyMongoError
from typing import TypedDict

from docgov.app.errors import DatabaseError

class MongoHandles(TypedDict):
    db: Database
    documents: Collection
    versions: Collection
    issues: Collection

def connect_mongo(mongo_uri: str, db_name: str) -> MongoHandles:
    client = MongoClient(
        mongo_uri,
        tz_aware=True,
        serverSelectionTimeoutMS=30000,
        connectTimeoutMS=20000,
        socketTimeoutMS=20000,
    )
    db = client[db_name]
    return {
        "db": db,
        "documents": db["documents"],
        "versions": db["document_versions"],
        "issues": db["compliance_issues"],
    }

def ensure_indexes(handles: MongoHandles) -> None:
    documents = handles["documents"]
    versions = handles["versions"]
    issues = handles["issues"]

    try:
        documents.create_index([("status", 1)])
        documents.create_index([("crm_object_type", 1), ("crm_object_id", 1), ("created_at", -1)])

        versions.create_index([("document_id", 1), ("version_number", 1)], unique=True)

        issues.create_index([("document_id", 1), ("status", 1)])
        issues.create_index([("status", 1), ("created_at", -1)])
    except PyMongoError as e:
        raise DatabaseError(f"Failed to create indexes: {e}") from e
