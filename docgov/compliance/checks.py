from __future__ import annotations

from typing import Dict, Iterable

from docgov.schemas.compliance_schema import ComplianceIssue, Severity


SEVERITY_RANK: Dict[str, int] = {
    "low": 0,
    "medium": 1,
    "high": 2,
    "critical": 3,
}


def has_critical(issues: Iterable[ComplianceIssue]) -> bool:
    return any(i.severity == "critical" for i in issues)


def highest_severity(issues: Iterable[ComplianceIssue]) -> Severity | None:
    """
    None: no issues
    otherwise the most severe issue's severity (low < medium < high < critical)
    """
    worst = None
    for i in issues:
        if worst is None or SEVERITY_RANK[i.severity] > SEVERITY_RANK[worst]:
            worst = i.severity
    return worst
