"""
Ignore file processing for CleanView

Collects .gitignore rules from a workspace tree (root and nested files,
plus custom rules) and translates them into exclusion-map globs.
"""

from .constants import IGNORE_FILENAME, CUSTOM_SOURCE
from .pattern_store import PatternStore, Rule
from .file_loader import IgnoreFileLoader, IgnoreFileInfo
from .collector import IgnoreTreeCollector
from .translator import translate_rule, build_exclusion_map

__all__ = [
    'IGNORE_FILENAME',
    'CUSTOM_SOURCE',
    'PatternStore',
    'Rule',
    'IgnoreFileLoader',
    'IgnoreFileInfo',
    'IgnoreTreeCollector',
    'translate_rule',
    'build_exclusion_map',
]
