"""
Adapters for the settings document that holds the exclusion map

The exclusion map is owned by the host; CleanView only reads it, merges
into it and writes it back. Every other key in the document is
preserved untouched.
"""

import copy
import json
import logging
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, Optional

from .errors import ExternalStoreError
from .ignore.constants import EXCLUDE_SETTING

logger = logging.getLogger("settings-store")

DEFAULT_SETTINGS_FILE = Path(".vscode") / "settings.json"

_MISSING = object()


class SettingsStore(ABC):
    """
    Contract for a project-scoped settings document.
    """

    @abstractmethod
    async def get(self, key: str, default: Any = None) -> Any:
        """Return the value stored under a dotted key, or default"""

    @abstractmethod
    async def update(self, key: str, value: Any) -> None:
        """Store a value under a dotted key; None removes the key"""

    async def get_exclusions(self) -> Dict[str, bool]:
        """Read the current exclusion map"""
        value = await self.get(EXCLUDE_SETTING, {})
        if value is None:
            return {}
        if not isinstance(value, dict):
            raise ExternalStoreError(
                f"'{EXCLUDE_SETTING}' must be an object, got {type(value).__name__}"
            )
        return dict(value)

    async def update_exclusions(self, exclusions: Dict[str, bool]) -> None:
        """Replace the exclusion map"""
        await self.update(EXCLUDE_SETTING, dict(exclusions))


def _lookup(document: Dict[str, Any], key: str) -> Any:
    # Flat dotted keys win; fall back to the nested form
    if key in document:
        return document[key]
    node: Any = document
    for part in key.split('.'):
        if not isinstance(node, dict) or part not in node:
            return _MISSING
        node = node[part]
    return node


def _assign(document: Dict[str, Any], key: str, value: Any):
    if key not in document:
        # Write into an existing nested section rather than shadowing it
        parts = key.split('.')
        node: Any = document
        for part in parts[:-1]:
            if not isinstance(node, dict) or part not in node:
                node = None
                break
            node = node[part]
        if isinstance(node, dict) and parts[-1] in node:
            if value is None:
                del node[parts[-1]]
            else:
                node[parts[-1]] = value
            return

    if value is None:
        document.pop(key, None)
    else:
        document[key] = value


class JsonSettingsStore(SettingsStore):
    """
    Settings document stored as a JSON file, e.g. <root>/.vscode/settings.json
    """

    def __init__(self, settings_path: Path):
        """
        Initialize the store

        Args:
            settings_path: Path to the JSON settings file (need not exist)
        """
        self.settings_path = Path(settings_path)

    @classmethod
    def for_workspace(cls, root_path: Path, settings_file: Optional[Path] = None) -> "JsonSettingsStore":
        settings_file = Path(settings_file) if settings_file else DEFAULT_SETTINGS_FILE
        if not settings_file.is_absolute():
            settings_file = Path(root_path) / settings_file
        return cls(settings_file)

    def read_document(self) -> Dict[str, Any]:
        """
        Load the whole settings document

        Returns:
            Parsed document, empty when the file does not exist

        Raises:
            ExternalStoreError: If the file is unreadable or not a JSON object
        """
        if not self.settings_path.exists():
            return {}
        try:
            with open(self.settings_path, 'r', encoding='utf-8') as f:
                text = f.read()
        except OSError as e:
            raise ExternalStoreError(f"Cannot read settings: {e}", self.settings_path) from e

        if not text.strip():
            return {}
        try:
            document = json.loads(text)
        except json.JSONDecodeError as e:
            raise ExternalStoreError(
                f"Settings file is not valid JSON: {self.settings_path}: {e} "
                "(comments and trailing commas are not supported)",
                self.settings_path
            ) from e
        if not isinstance(document, dict):
            raise ExternalStoreError(
                f"Settings file must contain a JSON object: {self.settings_path}",
                self.settings_path
            )
        return document

    def write_document(self, document: Dict[str, Any]):
        """Atomically replace the settings file"""
        try:
            self.settings_path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=".settings-", suffix=".json", dir=str(self.settings_path.parent)
            )
            try:
                with os.fdopen(fd, 'w', encoding='utf-8') as f:
                    json.dump(document, f, indent=4)
                    f.write('\n')
                os.replace(tmp_name, self.settings_path)
            except BaseException:
                if os.path.exists(tmp_name):
                    os.unlink(tmp_name)
                raise
        except OSError as e:
            raise ExternalStoreError(f"Cannot write settings: {e}", self.settings_path) from e

        logger.debug(f"Wrote settings document: {self.settings_path}")

    async def get(self, key: str, default: Any = None) -> Any:
        value = _lookup(self.read_document(), key)
        return default if value is _MISSING else value

    async def update(self, key: str, value: Any) -> None:
        document = self.read_document()
        _assign(document, key, value)
        self.write_document(document)


class MemorySettingsStore(SettingsStore):
    """In-process settings document"""

    def __init__(self, document: Optional[Dict[str, Any]] = None):
        self.document: Dict[str, Any] = copy.deepcopy(document) if document else {}

    async def get(self, key: str, default: Any = None) -> Any:
        value = _lookup(self.document, key)
        return default if value is _MISSING else copy.deepcopy(value)

    async def update(self, key: str, value: Any) -> None:
        _assign(self.document, key, copy.deepcopy(value))
