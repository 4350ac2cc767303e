"""
Tests for the visibility controller state machine
"""

from pathlib import Path
from unittest.mock import patch

import pytest

from cleanview.config import CleanViewConfig
from cleanview.controller import VisibilityController
from cleanview.errors import ExternalStoreError, NotInitializedError
from cleanview.ignore.constants import ACTIVE_STATE_KEY, OWNED_KEYS_STATE_KEY
from cleanview.settings_store import MemorySettingsStore
from cleanview.state_store import MemoryStateStore

USER_EXCLUDES = {"**/.git": True, "**/.hg": False}


def write(path: Path, content: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    return path


@pytest.fixture
def workspace(tmp_path):
    write(tmp_path / ".gitignore", "# deps\nnode_modules/\n*.log\n/build\n!important.log\n")
    write(tmp_path / "web" / ".gitignore", "dist/\n")
    return tmp_path


@pytest.fixture
def settings():
    return MemorySettingsStore({
        "editor.tabSize": 2,
        "files.exclude": dict(USER_EXCLUDES),
    })


@pytest.fixture
def state():
    return MemoryStateStore()


@pytest.fixture
def controller(workspace, settings, state):
    return VisibilityController(workspace, settings, state)


EXPECTED_KEYS = ["**/node_modules/**", "**/*.log", "build/**", "**/dist/**"]


@pytest.mark.asyncio
async def test_initial_state(controller):
    assert controller.is_hiding_gitignored() is False
    assert controller.get_gitignore_patterns() == []
    assert controller.status() == {"active": False, "pattern_count": 0}


@pytest.mark.asyncio
async def test_hide_merges_and_records_owned_keys(controller, settings, state):
    await controller.hide()

    assert controller.is_hiding_gitignored()
    assert settings.document["files.exclude"] == {
        **USER_EXCLUDES, **{key: True for key in EXPECTED_KEYS}
    }
    assert settings.document["editor.tabSize"] == 2
    assert state.data[OWNED_KEYS_STATE_KEY] == EXPECTED_KEYS
    assert state.data[ACTIVE_STATE_KEY] is True
    assert controller.status() == {"active": True, "pattern_count": 5}


@pytest.mark.asyncio
async def test_hide_is_idempotent(controller, settings, state):
    await controller.hide()
    exclusions_once = dict(settings.document["files.exclude"])
    owned_once = list(state.data[OWNED_KEYS_STATE_KEY])

    await controller.hide()

    assert settings.document["files.exclude"] == exclusions_once
    assert state.data[OWNED_KEYS_STATE_KEY] == owned_once


@pytest.mark.asyncio
async def test_hide_then_show_restores_original_map(controller, settings, state):
    await controller.hide()
    await controller.show()

    assert controller.is_hiding_gitignored() is False
    assert settings.document["files.exclude"] == USER_EXCLUDES
    assert settings.document["editor.tabSize"] == 2
    assert state.data == {}


@pytest.mark.asyncio
async def test_show_keeps_external_edits_to_other_keys(controller, settings):
    await controller.hide()
    settings.document["files.exclude"]["**/.hg"] = True
    settings.document["files.exclude"]["**/.svn"] = True
    # An owned key changed underneath is still owned
    settings.document["files.exclude"]["**/*.log"] = False

    await controller.show()

    assert settings.document["files.exclude"] == {"**/.git": True, "**/.hg": True, "**/.svn": True}


@pytest.mark.asyncio
async def test_show_when_inactive_is_noop(controller, settings):
    with patch.object(settings, "update_exclusions") as update:
        await controller.show()

    update.assert_not_called()
    assert controller.is_hiding_gitignored() is False


@pytest.mark.asyncio
async def test_show_with_no_owned_keys_only_deactivates(tmp_path, settings, state):
    controller = VisibilityController(tmp_path, settings, state)
    await controller.hide()
    assert controller.is_hiding_gitignored()
    assert state.data[OWNED_KEYS_STATE_KEY] == []

    with patch.object(settings, "update_exclusions") as update:
        await controller.show()

    update.assert_not_called()
    assert controller.is_hiding_gitignored() is False
    assert ACTIVE_STATE_KEY not in state.data


@pytest.mark.asyncio
async def test_toggle_alternates(controller, settings):
    for expected in [True, False, True, False]:
        result = await controller.toggle()
        assert result is expected
        assert controller.is_hiding_gitignored() is result

    assert settings.document["files.exclude"] == USER_EXCLUDES


@pytest.mark.asyncio
async def test_refresh_when_inactive_is_noop(controller, settings, state):
    await controller.refresh()

    assert controller.is_hiding_gitignored() is False
    assert settings.document["files.exclude"] == USER_EXCLUDES
    assert state.data == {}
    assert controller.get_gitignore_patterns() == []


@pytest.mark.asyncio
async def test_refresh_picks_up_changed_rules(controller, settings, state, workspace):
    await controller.hide()
    write(workspace / ".gitignore", "*.log\ncoverage/\n")
    (workspace / "web" / ".gitignore").unlink()

    await controller.refresh_patterns()

    assert controller.is_hiding_gitignored()
    assert settings.document["files.exclude"] == {
        **USER_EXCLUDES, "**/*.log": True, "**/coverage/**": True,
    }
    assert state.data[OWNED_KEYS_STATE_KEY] == ["**/*.log", "**/coverage/**"]


@pytest.mark.asyncio
async def test_disable_is_idempotent(controller, settings):
    await controller.hide()

    await controller.disable()
    await controller.disable()

    assert controller.is_hiding_gitignored() is False
    assert settings.document["files.exclude"] == USER_EXCLUDES


@pytest.mark.asyncio
async def test_failed_write_leaves_state_inactive(controller, settings, state):
    with patch.object(settings, "update_exclusions", side_effect=ExternalStoreError("disk full")):
        with pytest.raises(ExternalStoreError):
            await controller.hide()

    assert controller.is_hiding_gitignored() is False
    assert OWNED_KEYS_STATE_KEY not in state.data
    assert settings.document["files.exclude"] == USER_EXCLUDES


@pytest.mark.asyncio
async def test_unexpected_store_errors_are_wrapped(controller, state):
    with patch.object(state, "update", side_effect=OSError("read-only")):
        with pytest.raises(ExternalStoreError) as exc_info:
            await controller.hide()

    assert "record owned keys" in str(exc_info.value)
    assert controller.is_hiding_gitignored() is False


@pytest.mark.asyncio
async def test_failed_show_leaves_state_active(controller, settings, state):
    await controller.hide()

    with patch.object(settings, "update_exclusions", side_effect=ExternalStoreError("locked")):
        with pytest.raises(ExternalStoreError):
            await controller.show()

    assert controller.is_hiding_gitignored() is True
    assert state.data[OWNED_KEYS_STATE_KEY] == EXPECTED_KEYS


@pytest.mark.asyncio
async def test_operations_require_workspace_root(settings, state):
    controller = VisibilityController(None, settings, state)

    for operation in (controller.hide, controller.show, controller.toggle,
                      controller.refresh, controller.disable, controller.initialize):
        with pytest.raises(NotInitializedError):
            await operation()

    assert controller.get_gitignore_patterns() == []
    assert settings.document["files.exclude"] == USER_EXCLUDES
    assert state.data == {}


@pytest.mark.asyncio
async def test_initialize_restores_persisted_state(workspace, settings, state):
    first = VisibilityController(workspace, settings, state)
    await first.hide()

    second = VisibilityController(workspace, settings, state)
    assert await second.initialize() is True
    assert second.is_hiding_gitignored()

    await second.show()
    assert settings.document["files.exclude"] == USER_EXCLUDES


@pytest.mark.asyncio
async def test_initialize_with_owned_keys_but_no_flag(workspace, settings):
    state = MemoryStateStore({OWNED_KEYS_STATE_KEY: ["**/*.log"]})
    controller = VisibilityController(workspace, settings, state)

    assert await controller.initialize() is True


@pytest.mark.asyncio
async def test_initialize_without_state(controller):
    assert await controller.initialize() is False


@pytest.mark.asyncio
async def test_configuration_is_read_from_settings(workspace, state):
    settings = MemorySettingsStore({
        "cleanview.includeNestedGitignore": False,
        "cleanview.customPatterns": ["*.tmp", "  "],
    })
    controller = VisibilityController(workspace, settings, state)

    await controller.hide()

    assert list(settings.document["files.exclude"]) == [
        "**/node_modules/**", "**/*.log", "build/**", "**/*.tmp",
    ]
    assert controller.get_gitignore_patterns()[-1].source == "custom configuration"


@pytest.mark.asyncio
async def test_fixed_configuration(workspace, settings, state):
    config = CleanViewConfig(include_nested_gitignore=False)
    controller = VisibilityController(workspace, settings, state, config=config)

    await controller.hide()

    assert "**/dist/**" not in settings.document["files.exclude"]


@pytest.mark.asyncio
async def test_matches_after_hide(controller):
    await controller.hide()

    assert controller.matches("logs/server.log")
    assert controller.matches("web/dist/app.js")
    assert not controller.matches("src/app.py")


@pytest.mark.asyncio
async def test_collect_does_not_touch_settings(controller, settings):
    rules = await controller.collect()

    assert len(rules) == 5
    assert settings.document["files.exclude"] == USER_EXCLUDES
    assert controller.is_hiding_gitignored() is False
