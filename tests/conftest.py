"""
Shared fixtures for unitwatch tests.

Nothing here spawns systemctl or journalctl: every control-plane call goes
through a scripted executor.
"""

import pytest

from unitwatch.config import Settings
from unitwatch.control.executor import ScriptedCommandExecutor
from unitwatch.control.services import SystemdServiceManager
from unitwatch.control.timers import SystemdTimerManager
from unitwatch.services.watch_service import WatchService
from unitwatch.system.kv_store import InMemoryKeyValueStore


@pytest.fixture
def executor():
    """Scripted executor with no responses registered."""
    return ScriptedCommandExecutor()


@pytest.fixture
def settings(tmp_path):
    """Settings whose file locations all live under tmp_path."""
    return Settings(
        log_base_dir=tmp_path / 'timers',
        service_log_dir=tmp_path / 'log',
        settings_file=tmp_path / 'settings.json',
    )


@pytest.fixture
def store():
    return InMemoryKeyValueStore()


@pytest.fixture
def service_manager(executor, settings):
    return SystemdServiceManager(executor, settings)


@pytest.fixture
def timer_manager(executor, settings):
    return SystemdTimerManager(executor, settings)


@pytest.fixture
def watch_service(service_manager, timer_manager, store):
    return WatchService(service_manager, timer_manager, store)
