from __future__ import annotations
import secrets

def _tok(nbytes: int = 12) -> str:
    return secrets.token_urlsafe(nbytes)

def new_document_id() -> str:
    return f"doc_{_tok()}"

def new_version_id() -> str:
    return f"ver_{_tok()}"

def new_issue_id() -> str:
    return f"iss_{_tok()}"
