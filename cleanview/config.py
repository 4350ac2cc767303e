"""
Configuration for CleanView.

Values come from the `cleanview.*` keys of the settings document and can
be overridden with environment variables. Settings of the wrong type are
logged and replaced by their defaults; values that cannot be used at all
raise ConfigurationError.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from .errors import ConfigurationError
from .utils import get_logger

logger = get_logger("cleanview-config")

_TRUE_VALUES = ('true', '1', 'yes', 'on')
_FALSE_VALUES = ('false', '0', 'no', 'off')

DEFAULT_DEBOUNCE_SECONDS = 0.5


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    value = value.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    logger.warning(f"Ignoring invalid boolean for {name}: {value!r}")
    return default


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        logger.warning(f"Ignoring invalid number for {name}: {value!r}")
        return default


def _setting_bool(document: Dict[str, Any], key: str, default: bool) -> bool:
    value = document.get(key, default)
    if isinstance(value, bool):
        return value
    logger.warning(f"{key} must be true or false, got {value!r}; using {default}")
    return default


def _setting_patterns(document: Dict[str, Any], key: str) -> List[str]:
    value = document.get(key)
    if value is None:
        return []
    if not isinstance(value, list):
        logger.warning(f"{key} is not a list, ignoring it")
        return []

    patterns = []
    for entry in value:
        if isinstance(entry, str):
            patterns.append(entry)
        else:
            logger.warning(f"Skipping non-string entry in {key}: {entry!r}")
    return patterns


@dataclass
class CleanViewConfig:
    """Settings that drive collection and the command surface"""
    include_nested_gitignore: bool = True
    custom_patterns: List[str] = field(default_factory=list)
    auto_hide: bool = True
    show_status_bar: bool = True
    settings_file: Optional[Path] = None
    debounce_seconds: float = DEFAULT_DEBOUNCE_SECONDS

    def __post_init__(self):
        """Validate configuration values"""
        if isinstance(self.custom_patterns, str):
            raise ConfigurationError("custom_patterns must be a list of strings, not a string")
        for pattern in self.custom_patterns:
            if not isinstance(pattern, str):
                raise ConfigurationError(f"custom_patterns entries must be strings, got {pattern!r}")
        self.custom_patterns = list(self.custom_patterns)
        if self.debounce_seconds < 0:
            raise ConfigurationError(
                f"debounce_seconds must be non-negative, got {self.debounce_seconds}"
            )

    @classmethod
    def from_settings(cls, document: Optional[Dict[str, Any]] = None,
                      settings_file: Optional[Path] = None) -> "CleanViewConfig":
        """
        Build configuration from a settings document plus environment overrides

        Args:
            document: Parsed settings document (may be empty)
            settings_file: Settings file the document was read from

        Returns:
            CleanViewConfig instance

        Raises:
            ConfigurationError: If a value passes type checks but is out of range
        """
        document = document or {}

        include_nested = _setting_bool(document, 'cleanview.includeNestedGitignore', True)
        auto_hide = _setting_bool(document, 'cleanview.autoHide', True)
        show_status_bar = _setting_bool(document, 'cleanview.showStatusBar', True)
        custom_patterns = _setting_patterns(document, 'cleanview.customPatterns')

        include_nested = _env_bool('CLEANVIEW_INCLUDE_NESTED', include_nested)
        auto_hide = _env_bool('CLEANVIEW_AUTO_HIDE', auto_hide)

        env_patterns = os.getenv('CLEANVIEW_CUSTOM_PATTERNS')
        if env_patterns is not None:
            custom_patterns = [p.strip() for p in env_patterns.split(',') if p.strip()]
            logger.info(f"Using {len(custom_patterns)} custom patterns from environment")

        debounce = _env_float('CLEANVIEW_DEBOUNCE_SECONDS', DEFAULT_DEBOUNCE_SECONDS)

        return cls(
            include_nested_gitignore=include_nested,
            custom_patterns=custom_patterns,
            auto_hide=auto_hide,
            show_status_bar=show_status_bar,
            settings_file=settings_file,
            debounce_seconds=debounce,
        )
