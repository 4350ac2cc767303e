"""
Visibility controller: applies and reverts gitignore-derived exclusions

The controller is the single entry point used by the outer shell. It
collects rules, translates them, merges them into the settings document
and keeps a durable record of exactly which keys it added, so a later
"show" removes those keys and nothing else.
"""

import asyncio
import functools
import logging
from pathlib import Path
from typing import Any, Awaitable, Dict, List, Optional, Union

from .config import CleanViewConfig
from .errors import ExternalStoreError, NotInitializedError
from .ignore import IgnoreTreeCollector, Rule, build_exclusion_map
from .ignore.constants import OWNED_KEYS_STATE_KEY, ACTIVE_STATE_KEY
from .settings_store import SettingsStore
from .state_store import StateStore
from .utils import get_logger, log_with_context

logger = get_logger(__name__)

CONFIG_KEYS = (
    'cleanview.includeNestedGitignore',
    'cleanview.customPatterns',
    'cleanview.autoHide',
    'cleanview.showStatusBar',
)


class VisibilityController:
    """
    Owns the Inactive/Active state machine for one workspace root.

    Operations are serialized per instance; callers must not share one
    workspace root between several controllers.
    """

    def __init__(self,
                 root_path: Optional[Union[str, Path]],
                 settings_store: SettingsStore,
                 state_store: StateStore,
                 config: Optional[CleanViewConfig] = None,
                 collector: Optional[IgnoreTreeCollector] = None):
        """
        Initialize the controller

        Args:
            root_path: Workspace root; None leaves the controller uninitialized
            settings_store: Settings document holding the exclusion map
            state_store: Durable key-value store for the undo record
            config: Fixed configuration; when omitted it is re-read from
                the settings document before every hide
            collector: Collector to use instead of a new one for root_path
        """
        self.root_path = Path(root_path).resolve() if root_path is not None else None
        self.settings_store = settings_store
        self.state_store = state_store
        self._fixed_config = config
        self.config = config or CleanViewConfig()

        if collector is not None:
            self._collector: Optional[IgnoreTreeCollector] = collector
        elif self.root_path is not None:
            self._collector = IgnoreTreeCollector(self.root_path)
        else:
            self._collector = None

        self._active = False
        self._lock = asyncio.Lock()

    async def initialize(self) -> bool:
        """
        Restore the activation state persisted by a previous process

        Returns:
            Whether the controller is active after restoring
        """
        self._require_root()
        async with self._lock:
            owned = await self._read_owned_keys()
            active_flag = await self._call_store(
                "read activation state", self.state_store.get(ACTIVE_STATE_KEY, False)
            )
            self._active = bool(active_flag) or bool(owned)
            if self._active:
                logger.info(f"Restored active state with {len(owned)} owned exclusion keys")
            return self._active

    async def hide(self):
        """Merge gitignore-derived exclusions into the settings document"""
        self._require_root()
        async with self._lock:
            await self._hide()

    async def show(self):
        """Remove the exclusions this controller added"""
        self._require_root()
        async with self._lock:
            await self._show()

    async def refresh(self):
        """Rebuild the exclusions from scratch; no-op while inactive"""
        self._require_root()
        async with self._lock:
            if not self._active:
                return
            await self._show()
            await self._hide()

    async def refresh_patterns(self):
        """Entry point for ignore-file change notifications"""
        await self.refresh()

    async def toggle(self) -> bool:
        """
        Flip between hiding and showing gitignored files

        Returns:
            True if gitignored files are hidden afterwards
        """
        self._require_root()
        async with self._lock:
            if self._active:
                await self._show()
            else:
                await self._hide()
            return self._active

    async def disable(self):
        """Permanent opt-out; same as show()"""
        await self.show()

    def is_hiding_gitignored(self) -> bool:
        return self._active

    def get_gitignore_patterns(self) -> List[Rule]:
        if self._collector is None:
            return []
        return self._collector.get_patterns()

    def status(self) -> Dict[str, Any]:
        return {
            'active': self._active,
            'pattern_count': len(self.get_gitignore_patterns()),
        }

    def matches(self, path: Union[str, Path]) -> bool:
        """Check a path against the last collected rules"""
        self._require_root()
        return self._collector.matches(path)

    async def collect(self) -> List[Rule]:
        """Collect rules without touching the settings document"""
        self._require_root()
        config = await self._load_config()
        return await self._collect(config)

    def get_diagnostics(self) -> List[str]:
        self._require_root()
        return self._collector.get_diagnostics()

    async def _hide(self):
        if self._active:
            logger.debug("Already hiding gitignored files")
            return

        config = await self._load_config()
        rules = await self._collect(config)
        exclusions = build_exclusion_map(rules)

        current = await self._call_store("read exclusions", self.settings_store.get_exclusions())
        merged = {**current, **exclusions}

        await self._call_store("write exclusions", self.settings_store.update_exclusions(merged))
        # Only record ownership once the merged map is written
        await self._call_store(
            "record owned keys", self.state_store.update(OWNED_KEYS_STATE_KEY, list(exclusions))
        )
        await self._call_store(
            "record activation state", self.state_store.update(ACTIVE_STATE_KEY, True)
        )
        self._active = True

        log_with_context(
            logger, logging.INFO,
            f"Hiding gitignored files: {len(exclusions)} exclusions from {len(rules)} rules",
            root=str(self.root_path), exclusions=len(exclusions), rules=len(rules),
        )

    async def _show(self):
        if not self._active:
            logger.debug("Gitignored files already visible")
            return

        owned = await self._read_owned_keys()
        if not owned:
            await self._call_store(
                "clear activation state", self.state_store.update(ACTIVE_STATE_KEY, None)
            )
            self._active = False
            return

        owned_set = set(owned)
        current = await self._call_store("read exclusions", self.settings_store.get_exclusions())
        filtered = {key: value for key, value in current.items() if key not in owned_set}

        await self._call_store("write exclusions", self.settings_store.update_exclusions(filtered))
        await self._call_store(
            "clear owned keys", self.state_store.update(OWNED_KEYS_STATE_KEY, None)
        )
        await self._call_store(
            "clear activation state", self.state_store.update(ACTIVE_STATE_KEY, None)
        )
        self._active = False

        logger.info(f"Showing gitignored files: removed {len(current) - len(filtered)} exclusions")

    async def _collect(self, config: CleanViewConfig) -> List[Rule]:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(
            None,
            functools.partial(
                self._collector.collect,
                config.include_nested_gitignore,
                list(config.custom_patterns),
            )
        )

    async def _load_config(self) -> CleanViewConfig:
        if self._fixed_config is not None:
            return self._fixed_config

        document = {}
        for key in CONFIG_KEYS:
            value = await self._call_store("read configuration", self.settings_store.get(key))
            if value is not None:
                document[key] = value
        self.config = CleanViewConfig.from_settings(document)
        return self.config

    async def _read_owned_keys(self) -> List[str]:
        owned = await self._call_store(
            "read owned keys", self.state_store.get(OWNED_KEYS_STATE_KEY, [])
        )
        if not owned:
            return []
        if not isinstance(owned, list):
            raise ExternalStoreError(
                f"Persisted owned keys must be a list, got {type(owned).__name__}"
            )
        return [str(key) for key in owned]

    async def _call_store(self, action: str, operation: Awaitable[Any]) -> Any:
        try:
            return await operation
        except ExternalStoreError as e:
            logger.error(f"Failed to {action}: {e}")
            raise
        except Exception as e:
            logger.error(f"Failed to {action}: {e}", exc_info=True)
            raise ExternalStoreError(f"Failed to {action}: {e}") from e

    def _require_root(self):
        if self.root_path is None or self._collector is None:
            raise NotInitializedError("no workspace folder found")
