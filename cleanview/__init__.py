"""
CleanView: hide gitignored files from the project view

Translates nested .gitignore rules into `files.exclude` globs and merges
them into the workspace settings without disturbing entries placed there
by the user or other tools.
"""

__version__ = "0.1.0"

from .controller import VisibilityController
from .commands import CleanViewCommands, format_status
from .config import CleanViewConfig
from .errors import (
    CleanViewError, CollectionReadError, ConfigurationError, ExternalStoreError, NotInitializedError,
)
from .settings_store import SettingsStore, JsonSettingsStore, MemorySettingsStore
from .state_store import StateStore, JsonStateStore, MemoryStateStore

__all__ = [
    '__version__',
    'VisibilityController',
    'CleanViewCommands',
    'format_status',
    'CleanViewConfig',
    'CleanViewError',
    'CollectionReadError',
    'ConfigurationError',
    'ExternalStoreError',
    'NotInitializedError',
    'SettingsStore',
    'JsonSettingsStore',
    'MemorySettingsStore',
    'StateStore',
    'JsonStateStore',
    'MemoryStateStore',
]
