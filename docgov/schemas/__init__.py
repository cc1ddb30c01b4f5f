from __future__ import annotations

"""
Pydantic value shapes exchanged with the compliance engine and its callers.
"""

from docgov.schemas import compliance_schema, document_schema

__all__ = [
    "compliance_schema",
    "document_schema",
]
