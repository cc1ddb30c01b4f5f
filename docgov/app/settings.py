from __future__ import annotations
import os
from dataclasses import dataclass
from typing import Optional, Tuple

from docgov.app.errors import ConfigError

DEFAULT_ALLOWED_FILE_TYPES = "pdf,doc,docx,xls,xlsx,ppt,pptx,txt,csv"

def _get_int(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError as e:
        raise ConfigError(f"Env var {name} must be an integer, got {raw!r}") from e
    if value <= 0:
        raise ConfigError(f"Env var {name} must be positive, got {value}")
    return value

def _get_list(name: str, default: str) -> Tuple[str, ...]:
    raw = os.getenv(name) or default
    return tuple(p.strip().lower().lstrip(".") for p in raw.split(",") if p.strip())

@dataclass(frozen=True)
class Settings:
    # Mongo (only required by entrypoints that connect)
    mongo_uri: Optional[str]
    mongo_db: str

    # Compliance policy
    max_file_size_mb: int
    allowed_file_types: Tuple[str, ...]
    document_retention_days: int
    max_document_versions: int
    compliance_check_interval_hours: int

    # Logging
    log_level: str

def require_mongo_uri(s: Settings) -> str:
    if not s.mongo_uri:
        raise ConfigError("Missing required env var: MONGO_URI")
    return s.mongo_uri

def load_settings() -> Settings:
    return Settings(
        mongo_uri=os.getenv("MONGO_URI") or None,
        mongo_db=os.getenv("MONGO_DB", "document_governance"),
        max_file_size_mb=_get_int("MAX_FILE_SIZE_MB", 50),
        allowed_file_types=_get_list("ALLOWED_FILE_TYPES", DEFAULT_ALLOWED_FILE_TYPES),
        document_retention_days=_get_int("DOCUMENT_RETENTION_DAYS", 365),
        max_document_versions=_get_int("MAX_DOCUMENT_VERSIONS", 50),
        compliance_check_interval_hours=_get_int("COMPLIANCE_CHECK_INTERVAL_HOURS", 24),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
    )
