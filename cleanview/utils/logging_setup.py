"""
Logging configuration for CleanView.

Inside a container records go to stderr as JSON. Otherwise they go to a
rotating file under ~/.cleanview/logs, and warnings are echoed on stderr
so command output on stdout stays clean. A TRACE level below DEBUG
carries per-rule and per-event detail.
"""

import sys
import logging
import json
import os
from datetime import datetime, timezone
from pathlib import Path
from logging.handlers import RotatingFileHandler
from typing import Optional, Any

TRACE_LEVEL = 5
logging.addLevelName(TRACE_LEVEL, "TRACE")

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DEFAULT_LOG_PATH = Path.home() / '.cleanview' / 'logs' / 'cleanview.log'
QUIET_LIBRARIES = ('watchdog', 'asyncio')


def trace(self, message, *args, **kwargs):
    if self.isEnabledFor(TRACE_LEVEL):
        self._log(TRACE_LEVEL, message, args, **kwargs)


logging.Logger.trace = trace


class DockerFormatter(logging.Formatter):
    """One JSON object per record, for container log collectors"""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            'timestamp': datetime.now(timezone.utc).isoformat().replace('+00:00', 'Z'),
            'level': record.levelname,
            'component': record.name,
            'message': record.getMessage(),
            'pid': os.getpid(),
        }

        # Fields attached by log_with_context()
        if hasattr(record, 'extra'):
            log_data.update(record.extra)

        if record.exc_info:
            log_data['exception'] = self.formatException(record.exc_info)

        return json.dumps(log_data)


def resolve_level(log_level: Optional[str] = None) -> int:
    """
    Pick the numeric log level

    An explicit value wins, then CLEANVIEW_LOG_LEVEL, then LOG_LEVEL.
    Unknown names fall back to INFO.
    """
    name = (log_level or os.environ.get('CLEANVIEW_LOG_LEVEL')
            or os.environ.get('LOG_LEVEL') or 'INFO').upper()
    if name == 'TRACE':
        return TRACE_LEVEL
    level = logging.getLevelName(name)
    return level if isinstance(level, int) else logging.INFO


def running_in_container() -> bool:
    return (
        os.path.exists('/.dockerenv') or
        os.environ.get('DOCKER_CONTAINER', '').lower() == 'true'
    )


def _file_handler(log_file: Optional[str], enable_rotation: bool,
                  max_bytes: int, backup_count: int) -> logging.Handler:
    log_path = Path(log_file) if log_file else DEFAULT_LOG_PATH
    log_path.parent.mkdir(parents=True, exist_ok=True)
    if enable_rotation:
        return RotatingFileHandler(str(log_path), maxBytes=max_bytes, backupCount=backup_count)
    return logging.FileHandler(str(log_path))


def configure_logging(
    log_level: Optional[str] = None,
    log_file: Optional[str] = None,
    enable_rotation: bool = True,
    max_bytes: int = 5 * 1024 * 1024,
    backup_count: int = 3,
    quiet_libraries: bool = True,
) -> None:
    """
    Configure the root logger for the current environment.

    Args:
        log_level: Level name; see resolve_level() for the fallbacks
        log_file: Log file path outside containers (default ~/.cleanview/logs/cleanview.log)
        enable_rotation: Rotate the log file when it grows past max_bytes
        max_bytes: Maximum size of log file before rotation
        backup_count: Number of rotated files to keep
        quiet_libraries: Raise watchdog and asyncio loggers to WARNING
    """
    level = resolve_level(log_level)
    in_container = running_in_container()

    root_logger = logging.getLogger()
    root_logger.handlers = []

    if in_container:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(DockerFormatter())
    elif os.environ.get('LOG_TO_STDERR', '').lower() == 'true':
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
    else:
        handler = _file_handler(log_file, enable_rotation, max_bytes, backup_count)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))

        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setFormatter(logging.Formatter('%(levelname)s: %(message)s'))
        console_handler.setLevel(max(level, logging.WARNING))
        root_logger.addHandler(console_handler)

    root_logger.addHandler(handler)
    root_logger.setLevel(level)

    if quiet_libraries:
        for lib in QUIET_LIBRARIES:
            logging.getLogger(lib).setLevel(logging.WARNING)

    logging.getLogger('cleanview').debug(
        f"Logging configured - Level: {logging.getLevelName(level)}, Container: {in_container}"
    )


def get_logger(name: str) -> logging.Logger:
    """Logger with the trace() method available"""
    return logging.getLogger(name)


def log_with_context(
    logger: logging.Logger,
    level: int,
    message: str,
    **context: Any
) -> None:
    """
    Log a message with structured fields

    The fields show up as keys of the JSON record in containers.
    """
    extra = {'extra': context} if context else {}
    logger.log(level, message, extra=extra)
