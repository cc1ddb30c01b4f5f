from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional
from pydantic import BaseModel, Field

Severity = Literal["low", "medium", "high", "critical"]

IssueType = Literal[
    "file_too_large",
    "disallowed_file_type",
    "missing_metadata",
    "expired_document",
    "retention_policy_violation",
    "link_expired",
    "version_limit_exceeded",
]

class ComplianceIssue(BaseModel):
    type: IssueType
    severity: Severity
    message: str
    details: Optional[Dict[str, Any]] = None

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "type": self.type,
            "severity": self.severity,
            "message": self.message,
        }
        if self.details is not None:
            payload["details"] = self.details
        return payload

class ComplianceResult(BaseModel):
    passed: bool = True
    issues: List[ComplianceIssue] = Field(default_factory=list)
    score: int = Field(default=100, ge=0, le=100)

    def to_payload(self) -> Dict[str, Any]:
        """Caller-facing shape: {passed, score, issues: [{type, severity, message, details?}]}"""
        return {
            "passed": self.passed,
            "score": self.score,
            "issues": [i.to_payload() for i in self.issues],
        }
