#!/usr/bin/env python3
"""
Command-line interface for CleanView

Hides gitignored files from the project view by managing the
`files.exclude` section of the workspace settings.
"""

import argparse
import asyncio
import signal
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from . import __version__
from .commands import CleanViewCommands, PRODUCT_NAME, format_status
from .config import CleanViewConfig
from .controller import VisibilityController
from .errors import CleanViewError
from .settings_store import JsonSettingsStore
from .state_store import JsonStateStore
from .utils import configure_logging, get_logger
from .watchdog_monitor import WatchdogMonitor

logger = get_logger(__name__)

SIMPLE_COMMANDS = ('toggle', 'hide', 'show', 'refresh', 'disable', 'status', 'patterns')


def create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='cleanview',
        description='Hide gitignored files from the project view'
    )
    parser.add_argument('--version', action='version', version=f'%(prog)s {__version__}')
    parser.add_argument(
        '--root', '-r',
        default='.',
        help='Workspace root (default: current directory)'
    )
    parser.add_argument(
        '--settings',
        help='Settings file, relative to the root (default: .vscode/settings.json)'
    )
    parser.add_argument(
        '--state-dir',
        help='Directory for persisted state (default: $CLEANVIEW_STATE_DIR or ~/.cleanview/state)'
    )
    parser.add_argument(
        '--log-level',
        help='Log level (TRACE, DEBUG, INFO, WARNING, ERROR)'
    )

    subparsers = parser.add_subparsers(dest='command', required=True)
    subparsers.add_parser('toggle', help='Toggle hiding of gitignored files')
    subparsers.add_parser('hide', help='Hide gitignored files')
    subparsers.add_parser('show', help='Show gitignored files again')
    subparsers.add_parser('refresh', help='Rebuild exclusions after ignore files changed')
    subparsers.add_parser('disable', help='Remove all exclusions added by CleanView')
    subparsers.add_parser('status', help='Show whether gitignored files are hidden')
    subparsers.add_parser('patterns', help='List collected gitignore patterns')

    check_parser = subparsers.add_parser('check', help='Check whether paths are ignored')
    check_parser.add_argument('paths', nargs='+', help='Paths relative to the root')

    watch_parser = subparsers.add_parser(
        'watch', help='Hide gitignored files and keep exclusions in sync with .gitignore changes'
    )
    watch_parser.add_argument(
        '--keep-hidden',
        action='store_true',
        help='Leave exclusions in place when the watcher exits'
    )
    return parser


def build_controller(root: Path, settings: Optional[str] = None,
                     state_dir: Optional[str] = None) -> VisibilityController:
    """Wire a controller to the JSON settings and state stores for a root"""
    settings_store = JsonSettingsStore.for_workspace(root, Path(settings) if settings else None)
    state_store = JsonStateStore.for_workspace(root, Path(state_dir) if state_dir else None)
    return VisibilityController(root, settings_store, state_store)


def print_result(result: Dict[str, Any]) -> int:
    if result['stdout']:
        print(result['stdout'], end='')
    if result['stderr']:
        print(result['stderr'], end='', file=sys.stderr)
    return result['returncode']


async def run_command(args: argparse.Namespace) -> int:
    root = Path(args.root).resolve()
    if not root.is_dir():
        print(f"Error: {root} is not a directory", file=sys.stderr)
        return 1

    controller = build_controller(root, args.settings, args.state_dir)
    try:
        document = controller.settings_store.read_document()
        config = CleanViewConfig.from_settings(document)
        await controller.initialize()
    except CleanViewError as e:
        print(f"{PRODUCT_NAME}: {e}", file=sys.stderr)
        return 1

    if args.command == 'watch':
        return await watch(controller, config, keep_hidden=args.keep_hidden)

    commands = CleanViewCommands(controller, show_status_bar=config.show_status_bar)
    extra: List[str] = getattr(args, 'paths', None) or []
    return print_result(await commands.handle(args.command, extra))


async def watch(controller: VisibilityController, config: CleanViewConfig,
                keep_hidden: bool = False) -> int:
    """
    Keep exclusions in sync until interrupted

    Args:
        controller: Initialized controller
        config: Configuration read from the settings document
        keep_hidden: Skip disabling on exit
    """
    commands = CleanViewCommands(controller, show_status_bar=config.show_status_bar)

    if config.auto_hide:
        returncode = print_result(await commands.hide())
        if returncode:
            return returncode

    def on_change(message: str, path: str):
        print(f"{PRODUCT_NAME}: {message}")
        if config.show_status_bar:
            state = controller.status()
            print(format_status(state['active'], state['pattern_count']))

    loop = asyncio.get_running_loop()
    stop_event = asyncio.Event()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop_event.set)
        except (NotImplementedError, RuntimeError):
            logger.debug(f"Signal handlers not supported for {sig}")

    monitor = WatchdogMonitor(controller, debounce_seconds=config.debounce_seconds)
    monitor.start(loop=loop, on_change_callback=on_change)
    print(f"Watching {controller.root_path} for .gitignore changes. Press Ctrl+C to stop.")

    try:
        await stop_event.wait()
    finally:
        monitor.stop()

    if not keep_hidden:
        return print_result(await commands.disable())
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    parser = create_parser()
    args = parser.parse_args(argv)
    configure_logging(log_level=args.log_level)
    return asyncio.run(run_command(args))


if __name__ == '__main__':
    sys.exit(main())
