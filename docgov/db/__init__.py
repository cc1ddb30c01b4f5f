from __future__ import annotations

"""
Database layer:
- Mongo connection
- Repositories (documents, versions, compliance issues)
"""

from docgov.db import mongo, repositories

__all__ = [
    "mongo", 
    "repositories",
]
