class AppError(Exception):
    """Base application error"""


class ConfigError(AppError):
    """Missing or invalid configuration"""


class DatabaseError(AppError):
    """MongoDB connection or query failure"""


class InvalidInputError(AppError):
    """Malformed input handed to the compliance engine (negative size, bad date, ...)"""


class DocumentNotFoundError(AppError):
    """Document ID not found in database"""


class IssueNotFoundError(AppError):
    """Compliance issue ID not found in database"""
