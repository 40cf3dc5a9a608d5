import logging
import sys
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from unitwatch.control.types import HistorySource
from unitwatch.system.constants import UnitwatchPaths

_LOG_FORMAT = '%(asctime)s %(levelname)s %(name)s: %(message)s'


class Settings(BaseSettings):
    """Runtime configuration loaded from ``UNITWATCH_*`` environment variables.
    """
    model_config = SettingsConfigDict(env_prefix='UNITWATCH_', frozen=True)

    systemctl_path: str = Field('systemctl', min_length=1)
    journalctl_path: str = Field('journalctl', min_length=1)
    # Seconds to wait for each control-plane command
    command_timeout: float = Field(10.0, gt=0)
    history_source: HistorySource = Field(HistorySource.JOURNAL)
    # One folder of run logs per service
    log_base_dir: Path = Field(Path(UnitwatchPaths.TIMER_LOG_DIR))
    # One aggregated log per service
    service_log_dir: Path = Field(Path(UnitwatchPaths.SERVICE_LOG_DIR))
    detail_tail_lines: int = Field(200, ge=0)
    # JSON file backing the watch-list
    settings_file: Path = Field(
        default_factory=lambda: (
            Path.home()
            / UnitwatchPaths.USER_CONFIG_DIR
            / UnitwatchPaths.SETTINGS_FILE_NAME
        ),
    )
    history_limit: int = Field(20, gt=0)
    log_lines: int = Field(100, gt=0)


def setup_logger(journal: bool = True) -> None:
    """Configure the ``unitwatch`` logger.

    Logs go to the systemd journal, or to stderr when ``journal`` is off.
    The journal handler needs the ``systemd-python`` package.
    """
    app_logger = logging.getLogger('unitwatch')
    app_logger.setLevel(logging.DEBUG)
    app_logger.handlers.clear()

    if journal:
        from systemd.journal import JournalHandler

        handler: logging.Handler = JournalHandler(
            SYSLOG_IDENTIFIER='unitwatch',
        )
    else:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(_LOG_FORMAT))
        handler.setLevel(logging.WARNING)

    app_logger.addHandler(handler)
