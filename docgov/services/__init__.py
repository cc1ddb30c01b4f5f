from __future__ import annotations

"""
Service layer:
- compliance issues, scoring and periodic re-evaluation
- document intake / sync / link refresh bookkeeping
"""

from docgov.services import compliance_service, governance_service

__all__ = [
    "compliance_service",
    "governance_service",
]
