from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Optional
from dotenv import load_dotenv

load_dotenv()  # Load .env file

from docgov.app.settings import Settings, load_settings, require_mongo_uri
from docgov.app.logging import setup_logging
from docgov.compliance.engine import ComplianceEngine
from docgov.compliance.policy import policy_from_settings
from docgov.db.mongo import connect_mongo, ensure_indexes
from docgov.db.repositories import DocumentRepo, IssueRepo, VersionRepo
from docgov.services.compliance_service import ComplianceService


def build_compliance_service(s: Settings) -> ComplianceService:
    handles = connect_mongo(require_mongo_uri(s), s.mongo_db)
    ensure_indexes(handles)

    engine = ComplianceEngine(policy_from_settings(s))
    return ComplianceService(
        engine,
        DocumentRepo(handles["documents"]),
        IssueRepo(handles["issues"]),
        VersionRepo(handles["versions"]),
    )


def run_periodic_check() -> Dict[str, int]:
    """
    Scheduled entrypoint (every COMPLIANCE_CHECK_INTERVAL_HOURS):
    - load settings, configure logging
    - connect Mongo
    - re-check all synced documents
    - return {checked, issues_found, skipped}
    """
    s = load_settings()
    setup_logging(s.log_level)

    summary = build_compliance_service(s).run_periodic_check()
    return {"checked": summary.checked, "issues_found": summary.issues_found, "skipped": summary.skipped}


def check_file(path: str, metadata: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """
    Score a local file against the configured policy. No database access, so
    MONGO_URI is not needed.
    """
    s = load_settings()
    setup_logging(s.log_level)

    p = Path(path)
    engine = ComplianceEngine(policy_from_settings(s))
    return engine.check_document(p.name, p.stat().st_size, metadata).to_payload()
