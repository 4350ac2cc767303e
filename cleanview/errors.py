"""
Exception hierarchy for CleanView
"""

from pathlib import Path
from typing import Optional


class CleanViewError(Exception):
    """Base class for all CleanView errors"""


class CollectionReadError(CleanViewError):
    """An ignore file or directory could not be read during collection"""

    def __init__(self, path: Path, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Cannot read {path}: {reason}")


class ExternalStoreError(CleanViewError):
    """Reading or writing the settings document or the state store failed"""

    def __init__(self, message: str, path: Optional[Path] = None):
        self.path = path
        super().__init__(message)


class NotInitializedError(CleanViewError):
    """An operation was invoked before a workspace root was established"""

    def __init__(self, message: str = "No workspace root established"):
        super().__init__(message)


class ConfigurationError(CleanViewError, ValueError):
    """A configuration value is out of range or has the wrong type"""
