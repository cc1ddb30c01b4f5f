from __future__ import annotations

from docgov.compliance import checks, document_rules, engine, lifecycle_rules, policy

__all__ = [
    "checks",
    "document_rules",
    "engine",
    "lifecycle_rules",
    "policy",
]
