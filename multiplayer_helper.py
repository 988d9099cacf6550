"""
MultiplayerHelper
Copyright (C) 2024 thiccaxe

This program is free software: you can redistribute it and/or modify
it under the terms of the GNU Affero General Public License as published
by the Free Software Foundation, either version 3 of the License, or
(at your option) any later version.

This program is distributed in the hope that it will be useful,
but WITHOUT ANY WARRANTY; without even the implied warranty of
MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
GNU Affero General Public License for more details.

You should have received a copy of the GNU Affero General Public License
along with this program.  If not, see <https://www.gnu.org/licenses/>.
"""
import asyncio
import logging
import os
from pathlib import Path
from typing import Optional

from allow_list import AllowList, AllowListStore, AllowListWatcher
from config import Config, ConfigurationLoadError, HelperSettings
from host_api import Host
from logger import set_level
from session_manager import SessionManager


class MultiplayerHelper:

    def __init__(self, settings: HelperSettings, host: Host, data_dir: Path):
        self._settings = settings
        self._host = host
        self._store = AllowListStore(Path(data_dir) / settings.allow_list_file)
        self._manager = SessionManager(host, settings, self._store)
        self._watcher: Optional[AllowListWatcher] = None

    @property
    def manager(self) -> SessionManager:
        return self._manager

    @property
    def allow_list(self) -> AllowList:
        return self._store.current

    def begin(self):
        logging.info("Starting MultiplayerHelper")
        self._watcher = self._store.watch(
            self._on_allow_list_changed,
            poll_interval=self._settings.allow_list_poll_interval,
            settle_delay=self._settings.allow_list_settle_delay,
        )
        allow_list = self._watcher.start()
        logging.info(f"Allow-list has {allow_list.total_count} entries"
                     f"{'' if self._settings.allow_list_enabled else ' (gate disabled)'}")
        self._manager.start()
        logging.info("MultiplayerHelper loaded")

    def close(self):
        logging.info("Stopping MultiplayerHelper ...")
        self._manager.close()
        if self._watcher is not None:
            self._watcher.close()
            self._watcher = None

    def apply_settings(self, settings: HelperSettings):
        self._settings = settings
        set_level(settings.log_level)
        self._manager.apply_settings(settings)

    def allow(self, kind: str, value: str) -> AllowList:
        return self._run(self._store.add(kind, value))

    def disallow(self, kind: str, value: str) -> AllowList:
        return self._run(self._store.remove(kind, value))

    def _run(self, coro):
        if self._watcher is None:
            coro.close()
            raise RuntimeError("MultiplayerHelper has not been started")
        return self._watcher.run(coro)

    def _on_allow_list_changed(self, allow_list: AllowList):
        # watcher thread: only report, the gate picks the new snapshot up on its next check
        logging.info(f"Allow-list reloaded, {allow_list.total_count} entries")

    def __enter__(self):
        self.begin()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


def entry(host: Host, data_dir: Path = Path(".")) -> Optional[MultiplayerHelper]:
    data_dir = Path(data_dir)
    config = Config(Path(os.environ.get("MULTIPLAYER_HELPER_CONFIG", data_dir / "config.toml")))

    try:
        asyncio.run(config.initialize())
    except ConfigurationLoadError:
        logging.error("Could not load configuration. MultiplayerHelper stays inactive")
        return None

    settings = config.settings
    set_level(settings.log_level)
    if not settings.mod_enabled:
        logging.info("MultiplayerHelper is disabled in the configuration")
        return None

    helper = MultiplayerHelper(settings, host, data_dir)
    helper.begin()
    return helper
