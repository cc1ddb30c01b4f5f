# docgov/compliance/policy.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List

from docgov.app.errors import ConfigError
from docgov.app.settings import Settings

BYTES_PER_MB = 1024 * 1024


@dataclass(frozen=True)
class CompliancePolicy:
    """
    Process-wide compliance policy.
    Built once at startup and handed to whoever needs it; never mutated.
    """
    max_file_size_bytes: int
    allowed_file_extensions: frozenset
    default_retention_days: int = 365
    max_versions: int = 50
    name: str = "document_governance_default"
    version: str = "1.0"

    def __post_init__(self) -> None:
        if self.max_file_size_bytes <= 0:
            raise ConfigError("max_file_size_bytes must be positive")
        if self.default_retention_days <= 0:
            raise ConfigError("default_retention_days must be positive")
        if self.max_versions <= 0:
            raise ConfigError("max_versions must be positive")
        exts = frozenset(e.strip().lower().lstrip(".") for e in self.allowed_file_extensions)
        exts = frozenset(e for e in exts if e)
        if not exts:
            raise ConfigError("allowed_file_extensions must not be empty")
        object.__setattr__(self, "allowed_file_extensions", exts)

    @property
    def max_file_size_mb(self) -> float:
        return self.max_file_size_bytes / BYTES_PER_MB

    def sorted_extensions(self) -> List[str]:
        return sorted(self.allowed_file_extensions)


def make_policy(
    *,
    max_file_size_mb: int,
    allowed_file_types: Iterable[str],
    default_retention_days: int = 365,
    max_versions: int = 50,
) -> CompliancePolicy:
    return CompliancePolicy(
        max_file_size_bytes=max_file_size_mb * BYTES_PER_MB,
        allowed_file_extensions=frozenset(allowed_file_types),
        default_retention_days=default_retention_days,
        max_versions=max_versions,
    )


def policy_from_settings(settings: Settings) -> CompliancePolicy:
    return make_policy(
        max_file_size_mb=settings.max_file_size_mb,
        allowed_file_types=settings.allowed_file_types,
        default_retention_days=settings.document_retention_days,
        max_versions=settings.max_document_versions,
    )


DEFAULT_POLICY = make_policy(
    max_file_size_mb=50,
    allowed_file_types=["pdf", "doc", "docx", "xls", "xlsx", "ppt", "pptx", "txt", "csv"],
)
