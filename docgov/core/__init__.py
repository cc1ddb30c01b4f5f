from __future__ import annotations

"""
This module provides core functionality for the application.

It includes utilities for clock operations, hashing, ID generation, and general utilities.
"""

from docgov.core import clock, hashing, ids, utils

__all__ = [
    "clock",
    "hashing",
    "ids",
    "utils"
]
