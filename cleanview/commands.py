"""
Command surface exposed to the outer shell

Every command returns a result dictionary with a success flag and a
human-readable message, mirroring how the shell reports outcomes.
"""

import logging
from typing import Any, Dict, List, Optional

from .controller import VisibilityController
from .errors import CleanViewError, NotInitializedError
from .ignore import translate_rule

logger = logging.getLogger(__name__)

PRODUCT_NAME = "CleanView"


def format_status(active: bool, pattern_count: int) -> str:
    """Status indicator text"""
    if active:
        return f"{PRODUCT_NAME} ({pattern_count}) [hidden]"
    return f"{PRODUCT_NAME} [visible]"


def _result(success: bool, message: str, **extra: Any) -> Dict[str, Any]:
    result = {
        'success': success,
        'stdout': f"{message}\n" if success else '',
        'stderr': '' if success else f"{message}\n",
        'returncode': 0 if success else 1,
    }
    result.update(extra)
    return result


class CleanViewCommands:
    """Handles toggle, refresh, disable, hide, show and status commands"""

    def __init__(self, controller: Optional[VisibilityController], show_status_bar: bool = True):
        self.controller = controller
        self.show_status_bar = show_status_bar

    async def handle(self, command: str, args: Optional[List[str]] = None) -> Dict[str, Any]:
        """Dispatch a command by name"""
        handlers = {
            'toggle': self.toggle,
            'refresh': self.refresh,
            'disable': self.disable,
            'hide': self.hide,
            'show': self.show,
            'status': self.status,
            'patterns': self.patterns,
        }
        if command == 'check':
            return await self.check(args or [])
        handler = handlers.get(command)
        if handler is None:
            return _result(False, f"Error: Unknown command: {command}")
        return await handler()

    async def toggle(self) -> Dict[str, Any]:
        try:
            controller = self._require_controller()
            is_now_hiding = await controller.toggle()
        except CleanViewError as e:
            return self._failure(f"{PRODUCT_NAME}: {e}")

        if is_now_hiding:
            message = f"{PRODUCT_NAME}: Gitignored files are now hidden"
        else:
            message = f"{PRODUCT_NAME}: Gitignored files are now visible"
        return _result(True, message, active=is_now_hiding)

    async def refresh(self) -> Dict[str, Any]:
        try:
            controller = self._require_controller()
            await controller.refresh_patterns()
        except CleanViewError as e:
            return self._failure(f"{PRODUCT_NAME}: Failed to refresh patterns - {e}")
        return _result(True, f"{PRODUCT_NAME}: Gitignore patterns refreshed",
                       active=controller.is_hiding_gitignored())

    async def disable(self) -> Dict[str, Any]:
        try:
            controller = self._require_controller()
            await controller.disable()
        except CleanViewError as e:
            return self._failure(f"{PRODUCT_NAME}: Failed to disable - {e}")
        return _result(True, f"{PRODUCT_NAME}: Disabled", active=False)

    async def hide(self) -> Dict[str, Any]:
        try:
            controller = self._require_controller()
            await controller.hide()
        except CleanViewError as e:
            return self._failure(f"{PRODUCT_NAME}: Failed to hide gitignored files - {e}")
        return _result(True, f"{PRODUCT_NAME}: Gitignored files are now hidden", active=True)

    async def show(self) -> Dict[str, Any]:
        try:
            controller = self._require_controller()
            await controller.show()
        except CleanViewError as e:
            return self._failure(f"{PRODUCT_NAME}: Failed to show gitignored files - {e}")
        return _result(True, f"{PRODUCT_NAME}: Gitignored files are now visible", active=False)

    async def status(self) -> Dict[str, Any]:
        try:
            controller = self._require_controller()
            if not controller.get_gitignore_patterns():
                # Count rules even when nothing has been collected in this process
                await controller.collect()
        except CleanViewError as e:
            return self._failure(f"{PRODUCT_NAME}: {e}")

        state = controller.status()
        message = format_status(state['active'], state['pattern_count']) if self.show_status_bar else ''
        result = _result(True, message, **state)
        if not self.show_status_bar:
            result['stdout'] = ''
        return result

    async def patterns(self) -> Dict[str, Any]:
        """List collected rules with their source and exclusion key"""
        try:
            controller = self._require_controller()
            rules = await controller.collect()
        except CleanViewError as e:
            return self._failure(f"{PRODUCT_NAME}: {e}")

        lines = []
        for rule in rules:
            key = translate_rule(rule.pattern)
            lines.append(f"{rule.source}\t{rule.pattern}\t{key if key is not None else '(not hidden)'}")
        return _result(True, '\n'.join(lines) if lines else "No gitignore patterns found",
                       pattern_count=len(rules))

    async def check(self, paths: List[str]) -> Dict[str, Any]:
        """Report whether each path is ignored by the collected rules"""
        if not paths:
            return _result(False, "Error: at least one path is required")
        try:
            controller = self._require_controller()
            await controller.collect()
            lines = [
                f"{'ignored' if controller.matches(path) else 'visible'}\t{path}"
                for path in paths
            ]
            diagnostics = controller.get_diagnostics()
        except CleanViewError as e:
            return self._failure(f"{PRODUCT_NAME}: {e}")

        result = _result(True, '\n'.join(lines), diagnostics=diagnostics)
        if diagnostics:
            result['stderr'] = '\n'.join(diagnostics) + '\n'
        return result

    def _require_controller(self) -> VisibilityController:
        if self.controller is None:
            raise NotInitializedError("Extension not properly initialized")
        return self.controller

    def _failure(self, message: str) -> Dict[str, Any]:
        logger.error(message)
        return _result(False, message)
