import json
import logging

from unitwatch.control.services import SystemdServiceManager
from unitwatch.control.timers import SystemdTimerManager
from unitwatch.control.types import ExecutionStatus, UnitSuffix
from unitwatch.control.validation import (
    validate_service_name,
    validate_timer_name,
)
from unitwatch.errors import OutputParseError, UnitControlError
from unitwatch.models.timers import AvailableTimer
from unitwatch.models.watch import (
    WatchedServiceStatus,
    WatchedTimerStatus,
    WatchSettings,
)
from unitwatch.system.constants import SettingsKeys
from unitwatch.system.kv_store import KeyValueStore

UNKNOWN = 'unknown'

_SIMPLE_STATUS = {
    'active': 'running',
    'failed': 'failed',
}


class WatchService:
    """A service for the user's watch-list of services and timers.
    """

    def __init__(
        self,
        service_manager: SystemdServiceManager,
        timer_manager: SystemdTimerManager,
        store: KeyValueStore,
    ) -> None:
        """Initialise the service.
        """
        self._logger = logging.getLogger(__name__)
        self._services = service_manager
        self._timers = timer_manager
        self._store = store

    async def get_settings(self) -> WatchSettings:
        """Read both watch lists from the store.

        Raises:
            OutputParseError: If a stored list is not a JSON array of strings
        """
        return WatchSettings(
            watched_services=await self._load_list(
                SettingsKeys.WATCHED_SERVICES,
            ),
            watched_timers=await self._load_list(SettingsKeys.WATCHED_TIMERS),
        )

    async def save_settings(self, settings: WatchSettings) -> WatchSettings:
        """Validate and store both watch lists.

        Raises:
            InvalidIdentifierError: If any name is rejected; nothing is saved
        """
        for name in settings.watched_services:
            validate_service_name(name)
        for name in settings.watched_timers:
            validate_timer_name(name)

        await self._save_list(
            SettingsKeys.WATCHED_SERVICES,
            settings.watched_services,
        )
        await self._save_list(
            SettingsKeys.WATCHED_TIMERS,
            settings.watched_timers,
        )
        return settings

    async def summarize_services(self) -> list[WatchedServiceStatus]:
        """One status row per watched service, in watch-list order.
        """
        rows = []

        for name in await self._load_list(SettingsKeys.WATCHED_SERVICES):
            try:
                status = await self._services.get_service_status(name)
            except UnitControlError as e:
                self._logger.warning('Cannot read status of %s: %s', name, e)
                rows.append(WatchedServiceStatus(
                    name=name,
                    status=UNKNOWN,
                    active_state=UNKNOWN,
                    sub_state=UNKNOWN,
                ))
                continue

            rows.append(WatchedServiceStatus(
                name=name,
                status=_SIMPLE_STATUS.get(status.active_state, 'inactive'),
                active_state=status.active_state,
                sub_state=status.sub_state,
                uptime_seconds=status.uptime_seconds,
            ))

        return rows

    async def summarize_timers(self) -> list[WatchedTimerStatus]:
        """One status row per watched timer, in watch-list order.
        """
        rows = []

        for name in await self._load_list(SettingsKeys.WATCHED_TIMERS):
            try:
                timer = await self._timers.get_timer(name)
            except UnitControlError as e:
                self._logger.warning('Cannot read timer %s: %s', name, e)
                rows.append(WatchedTimerStatus(
                    name=name,
                    service=name.replace(UnitSuffix.TIMER, UnitSuffix.SERVICE),
                    enabled=False,
                    schedule=UNKNOWN,
                    schedule_human='Unable to read schedule',
                ))
                continue

            rows.append(WatchedTimerStatus(
                name=timer.name,
                service=timer.service,
                enabled=timer.enabled,
                schedule=timer.schedule,
                schedule_human=timer.schedule_human,
                next_run=timer.next_run,
                last_run=timer.last_trigger,
                last_result=await self._last_result(name),
            ))

        return rows

    async def available_timers(self) -> list[AvailableTimer]:
        """Every timer systemd knows, for picking into the watch-list.
        """
        return [
            AvailableTimer(
                name=timer.name,
                description=f'Activates {timer.service}',
            )
            for timer in await self._timers.list_timers()
        ]

    async def _last_result(self, timer_name: str) -> ExecutionStatus | None:
        try:
            history = await self._timers.get_execution_history(
                timer_name,
                limit=1,
            )
        except UnitControlError as e:
            self._logger.debug('No history for %s: %s', timer_name, e)
            return None
        return history[0].status if history else None

    async def _load_list(self, key: SettingsKeys) -> list[str]:
        raw = await self._store.get(key)
        if raw is None:
            return []

        try:
            names = json.loads(raw)
        except json.JSONDecodeError as e:
            raise OutputParseError(key, f'Invalid stored JSON: {e}') from e

        if not isinstance(names, list) or not all(
            isinstance(name, str) for name in names
        ):
            raise OutputParseError(key, 'Expected a JSON array of names')
        return names

    async def _save_list(self, key: SettingsKeys, names: list[str]) -> None:
        if not names:
            await self._store.delete(key)
            return
        await self._store.set(key, json.dumps(names))
