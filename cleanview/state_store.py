"""
Workspace-scoped key-value state that survives process restarts.

CleanView keeps exactly one durable record here: which exclusion keys it
added to the settings document, and whether it believes they are applied.
"""

import copy
import hashlib
import json
import logging
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, Optional

from .errors import ExternalStoreError

logger = logging.getLogger("state-store")


def get_state_dir() -> Path:
    """
    Get the state directory from environment.

    Returns:
        CLEANVIEW_STATE_DIR if set, otherwise ~/.cleanview/state
    """
    state_dir = os.environ.get('CLEANVIEW_STATE_DIR')
    if state_dir:
        return Path(state_dir)
    return Path.home() / '.cleanview' / 'state'


def generate_workspace_id(workspace_path: str) -> str:
    """
    Generate a consistent ID for a workspace root.

    Args:
        workspace_path: Path to workspace

    Returns:
        Workspace ID string like "cleanview_8375a7fda539e891"
    """
    abs_path = str(Path(workspace_path).resolve())
    workspace_hash = hashlib.sha256(abs_path.encode()).hexdigest()[:16]
    return f"cleanview_{workspace_hash}"


class StateStore(ABC):
    """
    Contract for a scoped key-value store.
    """

    @abstractmethod
    async def get(self, key: str, default: Any = None) -> Any:
        """Return the stored value, or default when absent"""

    @abstractmethod
    async def update(self, key: str, value: Any) -> None:
        """Store a value; None clears the entry"""


class JsonStateStore(StateStore):
    """State kept in one JSON file per workspace"""

    def __init__(self, state_path: Path):
        self.state_path = Path(state_path)

    @classmethod
    def for_workspace(cls, root_path: Path, state_dir: Optional[Path] = None) -> "JsonStateStore":
        state_dir = Path(state_dir) if state_dir else get_state_dir()
        return cls(state_dir / f"{generate_workspace_id(str(root_path))}.json")

    def _load(self) -> Dict[str, Any]:
        if not self.state_path.exists():
            return {}
        try:
            with open(self.state_path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise ExternalStoreError(f"Cannot read state: {e}", self.state_path) from e
        if not isinstance(data, dict):
            raise ExternalStoreError(f"Corrupt state file: {self.state_path}", self.state_path)
        return data

    def _save(self, data: Dict[str, Any]):
        try:
            self.state_path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=".state-", suffix=".json", dir=str(self.state_path.parent)
            )
            try:
                with os.fdopen(fd, 'w', encoding='utf-8') as f:
                    json.dump(data, f, indent=2)
                os.replace(tmp_name, self.state_path)
            except BaseException:
                if os.path.exists(tmp_name):
                    os.unlink(tmp_name)
                raise
        except OSError as e:
            raise ExternalStoreError(f"Cannot write state: {e}", self.state_path) from e

    async def get(self, key: str, default: Any = None) -> Any:
        return self._load().get(key, default)

    async def update(self, key: str, value: Any) -> None:
        data = self._load()
        if value is None:
            data.pop(key, None)
        else:
            data[key] = value
        self._save(data)
        logger.debug(f"Updated state key {key} in {self.state_path}")


class MemoryStateStore(StateStore):
    """In-process state, lost when the process exits"""

    def __init__(self, data: Optional[Dict[str, Any]] = None):
        self.data: Dict[str, Any] = copy.deepcopy(data) if data else {}

    async def get(self, key: str, default: Any = None) -> Any:
        return copy.deepcopy(self.data.get(key, default))

    async def update(self, key: str, value: Any) -> None:
        if value is None:
            self.data.pop(key, None)
        else:
            self.data[key] = copy.deepcopy(value)
