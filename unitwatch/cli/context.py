import asyncio
import logging
from collections.abc import Coroutine
from typing import Any

import click

from unitwatch.config import Settings
from unitwatch.control.executor import CommandExecutor, SystemCommandExecutor
from unitwatch.control.services import SystemdServiceManager
from unitwatch.control.timers import SystemdTimerManager
from unitwatch.errors import UnitControlError
from unitwatch.services.watch_service import WatchService
from unitwatch.system.kv_store import JsonFileKeyValueStore, KeyValueStore


class CliState:
    """Collaborators shared by all commands of one invocation.

    Tests pass a prepared instance as the click ``obj``.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        executor: CommandExecutor | None = None,
        store: KeyValueStore | None = None,
    ) -> None:
        self.settings = settings or Settings()
        self.executor = executor or SystemCommandExecutor(
            self.settings.command_timeout,
        )
        self.store = store or JsonFileKeyValueStore(
            self.settings.settings_file,
        )
        self.json_output = False

    def service_manager(self) -> SystemdServiceManager:
        return SystemdServiceManager(self.executor, self.settings)

    def timer_manager(self) -> SystemdTimerManager:
        return SystemdTimerManager(self.executor, self.settings)

    def watch_service(self) -> WatchService:
        return WatchService(
            self.service_manager(),
            self.timer_manager(),
            self.store,
        )


pass_state = click.make_pass_decorator(CliState, ensure=True)


def run_command(coroutine: Coroutine[Any, Any, None]) -> None:
    """Run a command body, reporting control errors on stderr.

    Exits with status 1 on failure.
    """
    try:
        asyncio.run(coroutine)
    except UnitControlError as e:
        logging.getLogger(__name__).error('Command failed: %s', e)
        click.echo(f'Error: {e}', err=True)
        raise SystemExit(1) from e
