"""
Central configuration for ignore file processing
"""

# Name of the ignore files collected from the workspace tree
IGNORE_FILENAME = ".gitignore"

# Source recorded for rules supplied through configuration instead of a file
CUSTOM_SOURCE = "custom configuration"

# Directory names starting with this marker are never descended into
HIDDEN_PREFIX = "."

# Dependency caches skipped during nested discovery
SKIPPED_DIRECTORIES = frozenset({
    "node_modules",
})

# Settings key holding the exclusion map in the settings document
EXCLUDE_SETTING = "files.exclude"

# State store keys for the persisted undo record
OWNED_KEYS_STATE_KEY = "cleanview.gitignorePatterns"
ACTIVE_STATE_KEY = "cleanview.active"

# Limits for security and performance
MAX_IGNORE_FILE_SIZE = 1024 * 1024  # 1MB
MAX_PATTERNS_PER_FILE = 10000
