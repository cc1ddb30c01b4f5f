from __future__ import annotations
from typing import Optional


def file_extension(filename: str) -> Optional[str]:
    """
    Lower-cased substring after the last '.', or None when there is none.
    "report.PDF" -> "pdf", "README" -> None, "archive." -> None
    """
    _, dot, ext = filename.rpartition(".")
    if not dot or not ext:
        return None
    return ext.lower()


def bytes_to_mb(size_bytes: int) -> float:
    return size_bytes / (1024 * 1024)
