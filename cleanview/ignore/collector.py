"""
Collects ignore rules from a workspace tree and answers point-in-time
"does this path match" queries
"""

import threading
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union

import pathspec

from ..errors import CollectionReadError
from ..utils import get_logger
from .constants import IGNORE_FILENAME, CUSTOM_SOURCE
from .file_loader import IgnoreFileLoader, IgnoreFileInfo, validate_pattern
from .pattern_store import PatternStore, Rule

logger = get_logger(__name__)


class IgnoreTreeCollector:
    """
    Walks a workspace root, parses every ignore file and feeds a PatternStore

    All collected rule lines are also compiled into a single pathspec
    matcher so callers can ask whether a given path is ignored.
    """

    def __init__(self, root_path: Union[str, Path], ignore_filename: str = IGNORE_FILENAME):
        """
        Initialize the collector

        Args:
            root_path: Root directory to collect from
            ignore_filename: Name of ignore files to look for
        """
        self.root_path = Path(root_path).resolve()
        self.ignore_filename = ignore_filename

        self._file_loader = IgnoreFileLoader(ignore_filename)
        self._store = PatternStore()
        self._file_infos: Dict[Path, IgnoreFileInfo] = {}
        self._spec: Optional[pathspec.PathSpec] = None
        self._skipped_files: List[Path] = []

        self._lock = threading.RLock()

    def collect(self, include_nested: bool = True,
                custom_patterns: Sequence[str] = ()) -> List[Rule]:
        """
        Rebuild the rule set from disk

        Args:
            include_nested: Collect ignore files below the root as well
            custom_patterns: Extra rules appended after all file rules

        Returns:
            Rules in discovery order
        """
        with self._lock:
            self._store.clear()
            self._file_infos.clear()
            self._skipped_files = []
            oracle_lines: List[str] = []

            ignore_files = self._file_loader.find_ignore_files(self.root_path, include_nested)
            logger.debug(f"Found {len(ignore_files)} ignore files under {self.root_path}")

            for file_path in ignore_files:
                try:
                    info = self._file_loader.load_file(file_path, self.root_path)
                except CollectionReadError as e:
                    logger.warning(f"Skipping ignore file: {e}")
                    self._skipped_files.append(file_path)
                    continue

                self._file_infos[file_path] = info
                for pattern in info.patterns:
                    logger.trace(f"Rule {pattern!r} from {info.source}")
                    self._store.add(pattern, info.source)
                oracle_lines.extend(info.valid_patterns)

                for error in info.errors:
                    logger.warning(f"{file_path}:{error.line}: {error.message}")
                for warning in info.warnings:
                    logger.debug(f"{file_path}:{warning.line}: {warning.message}")

            for pattern in custom_patterns:
                pattern = pattern.strip()
                if not pattern:
                    continue
                self._store.add(pattern, CUSTOM_SOURCE)
                is_valid, error = validate_pattern(pattern)
                if is_valid:
                    oracle_lines.append(pattern)
                else:
                    logger.warning(f"Custom pattern '{pattern}' cannot be matched: {error}")

            self._spec = pathspec.PathSpec.from_lines('gitwildmatch', oracle_lines)

            logger.info(
                f"Collected {len(self._store)} rules from "
                f"{len(self._file_infos)} ignore files"
            )
            return self._store.get_rules()

    def matches(self, path: Union[str, Path]) -> bool:
        """
        Check whether a path is ignored by the collected rules

        Args:
            path: Path relative to the root, or absolute inside the root

        Returns:
            True if the path is ignored; always False before collection
            or for paths outside the root
        """
        path = Path(path)
        if path.is_absolute():
            try:
                path = path.relative_to(self.root_path)
            except ValueError:
                return False

        rel_path = path.as_posix()
        # Directory-only rules need the trailing separator to match
        if (self.root_path / path).is_dir() and not rel_path.endswith('/'):
            rel_path += '/'

        with self._lock:
            if self._spec is None:
                return False
            return self._spec.match_file(rel_path)

    def get_patterns(self) -> List[Rule]:
        """Rules from the last collection, empty before the first one"""
        with self._lock:
            return self._store.get_rules()

    def get_ignore_files(self) -> List[Path]:
        with self._lock:
            return list(self._file_infos)

    def get_file_info(self, file_path: Path) -> Optional[IgnoreFileInfo]:
        with self._lock:
            return self._file_infos.get(file_path)

    def get_stats(self) -> Dict[str, Any]:
        """
        Get collection statistics

        Returns:
            Dictionary with counts of files, rules and problems
        """
        with self._lock:
            return {
                'root_path': str(self.root_path),
                'ignore_filename': self.ignore_filename,
                'ignore_files': len(self._file_infos),
                'skipped_files': len(self._skipped_files),
                'total_rules': len(self._store),
                'custom_rules': len(self._store.rules_from(CUSTOM_SOURCE)),
                'files_with_errors': sum(1 for info in self._file_infos.values() if not info.is_valid),
                'files_with_warnings': sum(1 for info in self._file_infos.values() if info.has_warnings),
                'compiled': self._spec is not None,
            }

    def get_diagnostics(self) -> List[str]:
        """Validation errors and warnings from the last collection, one line each"""
        with self._lock:
            lines = []
            for info in self._file_infos.values():
                for error in info.errors:
                    lines.append(f"{info.source}:{error.line}: error: {error.message}")
                for warning in info.warnings:
                    lines.append(f"{info.source}:{warning.line}: warning: {warning.message}")
            return lines
