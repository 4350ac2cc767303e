"""
File loader for parsing and validating .gitignore files
"""

import os
from pathlib import Path
from typing import List, Optional, Dict, Tuple
from dataclasses import dataclass, field

import pathspec

from ..errors import CollectionReadError
from ..utils import get_logger
from .constants import (
    IGNORE_FILENAME, HIDDEN_PREFIX, SKIPPED_DIRECTORIES,
    MAX_IGNORE_FILE_SIZE, MAX_PATTERNS_PER_FILE,
)

logger = get_logger(__name__)


@dataclass
class ValidationError:
    """Represents a validation error in an ignore file"""
    line: int
    pattern: str
    message: str


@dataclass
class ValidationWarning:
    """Represents a validation warning in an ignore file"""
    line: int
    pattern: str
    message: str


@dataclass
class IgnoreFileInfo:
    """Information about a loaded ignore file"""
    path: Path
    source: str
    patterns: List[str]
    valid_patterns: List[str]
    errors: List[ValidationError] = field(default_factory=list)
    warnings: List[ValidationWarning] = field(default_factory=list)
    stats: Dict[str, int] = field(default_factory=dict)

    @property
    def is_valid(self) -> bool:
        """Check if file has no errors"""
        return len(self.errors) == 0

    @property
    def has_warnings(self) -> bool:
        """Check if file has warnings"""
        return len(self.warnings) > 0


def parse_ignore_lines(text: str) -> List[Tuple[int, str]]:
    """
    Split ignore file content into (line number, pattern) pairs

    Blank lines and comment lines are dropped; every other line is
    stripped and passed through untouched.
    """
    result = []
    for line_num, line in enumerate(text.splitlines(), 1):
        stripped = line.strip()
        if not stripped or stripped.startswith('#'):
            continue
        result.append((line_num, stripped))
    return result


def validate_pattern(pattern: str) -> Tuple[bool, Optional[str]]:
    """
    Validate a single pattern against the gitwildmatch grammar

    Args:
        pattern: Pattern to validate

    Returns:
        Tuple of (is_valid, error_message)
    """
    try:
        pathspec.PathSpec.from_lines('gitwildmatch', [pattern])
        return True, None
    except ValueError as e:
        return False, str(e)


class IgnoreFileLoader:
    """
    Handles discovering, loading, parsing, and validating ignore files
    """

    def __init__(self, ignore_filename: str = IGNORE_FILENAME):
        """
        Initialize loader

        Args:
            ignore_filename: Name of ignore files to look for
        """
        self.ignore_filename = ignore_filename

    def load_file(self, file_path: Path, root_path: Path) -> IgnoreFileInfo:
        """
        Load and validate an ignore file

        Args:
            file_path: Path to the ignore file
            root_path: Workspace root, used to compute the rule source

        Returns:
            IgnoreFileInfo with patterns and validation results

        Raises:
            CollectionReadError: If the file cannot be read
        """
        try:
            source = file_path.relative_to(root_path).as_posix()
        except ValueError:
            source = file_path.as_posix()

        info = IgnoreFileInfo(
            path=file_path,
            source=source,
            patterns=[],
            valid_patterns=[],
            stats={
                'total_lines': 0,
                'empty_lines': 0,
                'comment_lines': 0,
                'pattern_lines': 0,
            }
        )

        try:
            file_size = file_path.stat().st_size
        except OSError as e:
            raise CollectionReadError(file_path, f"cannot stat file: {e}") from e

        if file_size > MAX_IGNORE_FILE_SIZE:
            raise CollectionReadError(
                file_path,
                f"file too large: {file_size} bytes (max: {MAX_IGNORE_FILE_SIZE})"
            )

        try:
            text = file_path.read_text(encoding='utf-8')
        except (OSError, UnicodeDecodeError) as e:
            raise CollectionReadError(file_path, str(e)) from e

        lines = text.splitlines()
        info.stats['total_lines'] = len(lines)
        for line in lines:
            stripped = line.strip()
            if not stripped:
                info.stats['empty_lines'] += 1
            elif stripped.startswith('#'):
                info.stats['comment_lines'] += 1

        for line_num, pattern in parse_ignore_lines(text):
            info.stats['pattern_lines'] += 1
            info.patterns.append(pattern)

            is_valid, validation_msg = validate_pattern(pattern)
            if is_valid:
                info.valid_patterns.append(pattern)
            else:
                info.errors.append(ValidationError(
                    line=line_num,
                    pattern=pattern,
                    message=validation_msg or "Invalid pattern"
                ))

            for warning_msg in self._check_pattern_warnings(pattern):
                info.warnings.append(ValidationWarning(
                    line=line_num,
                    pattern=pattern,
                    message=warning_msg
                ))

        if len(info.valid_patterns) > MAX_PATTERNS_PER_FILE:
            info.errors.append(ValidationError(
                line=0,
                pattern="",
                message=f"Too many patterns: {len(info.valid_patterns)} (max: {MAX_PATTERNS_PER_FILE})"
            ))
            info.valid_patterns = info.valid_patterns[:MAX_PATTERNS_PER_FILE]

        return info

    def find_ignore_files(self, root_path: Path, include_nested: bool = True) -> List[Path]:
        """
        Find ignore files under a root path

        The root ignore file comes first, followed by nested files in
        depth-first order. Hidden directories and dependency caches are
        not descended into. Unreadable directories are logged and skipped.

        Args:
            root_path: Root directory to search from
            include_nested: Also search subdirectories

        Returns:
            List of paths to ignore files
        """
        ignore_files = []

        root_ignore = root_path / self.ignore_filename
        if root_ignore.is_file():
            ignore_files.append(root_ignore)

        if not include_nested:
            return ignore_files

        def on_error(error: OSError):
            logger.warning(f"Skipping unreadable directory {error.filename}: {error.strerror}")

        for dirpath, dirnames, filenames in os.walk(root_path, onerror=on_error):
            # Prune in place so os.walk never descends into skipped directories
            dirnames[:] = sorted(
                name for name in dirnames
                if not name.startswith(HIDDEN_PREFIX) and name not in SKIPPED_DIRECTORIES
            )

            dirpath = Path(dirpath)
            if dirpath == root_path:
                continue

            if self.ignore_filename in filenames:
                logger.trace(f"Found nested ignore file in {dirpath}")
                ignore_files.append(dirpath / self.ignore_filename)

        return ignore_files

    def _check_pattern_warnings(self, pattern: str) -> List[str]:
        """
        Check pattern for potential issues that aren't errors

        Args:
            pattern: Pattern to check

        Returns:
            List of warning messages
        """
        warnings = []

        if '\\' in pattern and not pattern.startswith('\\'):
            warnings.append(
                "Pattern contains backslash. Use forward slashes for paths."
            )

        if pattern.startswith('!'):
            warnings.append(
                "Negation patterns cannot be expressed as exclusions and will not be hidden"
            )

        if pattern in ['*', '**', '**/*', '/*']:
            warnings.append(
                "Very broad pattern - will hide most of the workspace"
            )

        return warnings
